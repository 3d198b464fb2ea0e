import json
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .config import DEFAULT_EXECUTION_TIMEOUT


VALIDATION_CHECK = 'validation_check'
STATUS_COMPLETED = 'completed'


def _as_text(raw: Any) -> str:
    if isinstance(raw, str):
        return raw
    try:
        return json.dumps(raw, default=str)
    except (TypeError, ValueError):
        return str(raw)


class KeywordCase(BaseModel):
    """Static check: every keyword must appear in the submitted code."""

    kind: Literal['keyword'] = 'keyword'
    keywords: List[str]

    def to_wire(self) -> Dict[str, Any]:
        return {'Testcase': list(self.keywords)}


class StructuredCase(BaseModel):
    kind: Literal['structured'] = 'structured'
    values: List[Any]
    expected_output: str

    def to_wire(self) -> Dict[str, Any]:
        return {'Testcase': {'Value': list(self.values), 'Output': self.expected_output}}


class FallbackCase(BaseModel):
    """Anything that is neither a keyword list nor a values/output pair."""

    kind: Literal['fallback'] = 'fallback'
    raw: Any = None

    def to_wire(self) -> Dict[str, Any]:
        return {'Testcase': {'Value': [_as_text(self.raw)], 'Output': VALIDATION_CHECK}}


CaseDescriptor = Union[KeywordCase, StructuredCase, FallbackCase]


def _is_json(value: Any) -> bool:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return False
    return True


def _first_present(body: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if body.get(key) is not None:
            return body[key]
    return None


def _parse_body(body: Any, raw: Any):
    if isinstance(body, list) and all(isinstance(k, str) for k in body):
        return KeywordCase(keywords=body)
    if isinstance(body, dict):
        values = _first_present(body, 'values', 'Value')
        expected = _first_present(body, 'expectedOutput', 'expected_output', 'Output')
        if isinstance(values, list) and expected is not None and _is_json(values):
            return StructuredCase(values=values, expected_output=_as_text(expected))
    return FallbackCase(raw=raw)


def parse_test_case(raw: Any) -> CaseDescriptor:
    """Classify one raw test-case descriptor. Never raises.

    Accepts a bare keyword list, a ``values``/``expectedOutput`` mapping, the
    judge's own ``{"Testcase": ...}`` envelope, or an already parsed case.
    """
    if isinstance(raw, (KeywordCase, StructuredCase, FallbackCase)):
        return raw
    if isinstance(raw, dict) and 'Testcase' in raw:
        return _parse_body(raw['Testcase'], raw)
    return _parse_body(raw, raw)


class SubmissionPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    code: str
    test_cases: List[Dict[str, Any]] = Field(alias='TestCases')
    function_call: str = Field('', alias='FunctionCall')
    language: str
    timeout: int
    memory_limit: str
    user_id: str
    question_id: str
    test_id: str


class SubmitResponse(BaseModel):
    submission_id: str
    status: Optional[str] = None
    message: Optional[str] = None
    estimated_wait_time: Optional[float] = None


class CaseOutcome(BaseModel):
    model_config = ConfigDict(extra='allow')

    passed: bool = False


class ParsedSummary(BaseModel):
    success: Optional[bool] = None
    output: Optional[str] = None
    error: Optional[str] = None


class ExecutionResult(BaseModel):
    model_config = ConfigDict(extra='allow')

    success: bool = False
    parsed_results: Union[List[CaseOutcome], ParsedSummary, None] = None
    raw_output: Optional[str] = None
    actual_output: Optional[str] = None
    exit_code: Optional[int] = None
    execution_time: Optional[float] = None
    error: Optional[str] = None

    @property
    def error_message(self) -> str:
        if self.error:
            return self.error
        if isinstance(self.parsed_results, ParsedSummary) and self.parsed_results.error:
            return self.parsed_results.error
        return 'Unknown error'

    @property
    def output(self) -> str:
        return self.actual_output or self.raw_output or ''


class StatusResponse(BaseModel):
    submission_id: Optional[str] = None
    status: str
    result: Optional[ExecutionResult] = None
    error: Optional[str] = None
    execution_time: Optional[float] = None
    created_at: Optional[str] = None
    completed_at: Optional[str] = None
    queue_position: Optional[int] = None


class HealthStatus(BaseModel):
    status: str
    timestamp: Optional[str] = None
    version: Optional[str] = None
    redis_connected: Optional[bool] = None
    docker_available: Optional[bool] = None
    queue_length: Optional[int] = None

    @property
    def is_healthy(self) -> bool:
        return self.status == 'healthy'


class GradedReport(BaseModel):
    per_case_labels: List[str]
    aggregate_passed: bool
    raw_output: str = ''
    message: str = ''
    additional_message: str = ''
    error: Optional[str] = None
    failure: Optional[str] = None


class RunRequest(BaseModel):
    code: str
    test_cases: List[Any] = Field(default_factory=list)
    function_call: str = ''
    timeout_seconds: int = DEFAULT_EXECUTION_TIMEOUT
    question_id: str
    test_id: str = 'practice'
    language: str = 'python'
    user_id: Optional[str] = None


class CanSubmitRequest(BaseModel):
    question_id: str
    code: str


class CanSubmitResponse(BaseModel):
    can_submit: bool
