import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx
from pydantic import ValidationError

from .config import (
    JUDGE_BASE_URL,
    JUDGE_HTTP_TIMEOUT,
    JUDGE_USER_ID,
    POLL_INTERVAL_SECONDS,
    memory_limit_for,
)
from .schemas import (
    STATUS_COMPLETED,
    ExecutionResult,
    HealthStatus,
    StatusResponse,
    SubmissionPayload,
    SubmitResponse,
    parse_test_case,
)


logger = logging.getLogger(__name__)


class JudgeError(Exception):
    pass


class TransportError(JudgeError):
    pass


class PollTimeoutError(JudgeError):
    def __init__(self, elapsed: float):
        self.elapsed = elapsed
        super().__init__(f'Execution timeout after {elapsed:.1f} seconds')


class PollCancelledError(JudgeError):
    pass


class JudgeReportedFailure(JudgeError):
    """The judge completed the run but reported ``success: false``."""

    def __init__(self, error: str, output: str = ''):
        self.error = error
        self.output = output
        super().__init__(error)


class CancellationSignal:
    """Set by the caller to stop polling at the next tick."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class JudgeClient:
    """Client for the external judge: submit, poll, health.

    ``sleep`` and ``now`` are injectable so the poll loop can be driven by a
    fake clock. When ``http_client`` is omitted a short-lived
    ``httpx.AsyncClient`` is opened per request.
    """

    def __init__(
        self,
        base_url: str = JUDGE_BASE_URL,
        http_client: Optional[httpx.AsyncClient] = None,
        user_id: str = JUDGE_USER_ID,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        request_timeout: float = JUDGE_HTTP_TIMEOUT,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        now: Callable[[], float] = time.monotonic,
    ):
        self.base_url = base_url.rstrip('/')
        self.user_id = user_id
        self.poll_interval = poll_interval
        self.request_timeout = request_timeout
        self._http = http_client
        self._sleep = sleep
        self._now = now

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f'{self.base_url}{path}'
        try:
            if self._http is not None:
                response = await self._http.request(method, url, timeout=self.request_timeout, **kwargs)
            else:
                async with httpx.AsyncClient(timeout=self.request_timeout) as client:
                    response = await client.request(method, url, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise TransportError(f'HTTP error! status: {e.response.status_code}') from e
        except httpx.HTTPError as e:
            raise TransportError(f'Network error: {e}') from e
        except ValueError as e:
            raise TransportError(f'Malformed response from judge: {e}') from e

    async def submit(
        self,
        code: str,
        test_cases: List[Any],
        function_call: str = '',
        timeout_seconds: int = 10,
        question_id: str = '',
        test_id: str = 'practice',
        language: str = 'python',
        user_id: Optional[str] = None,
    ) -> str:
        payload = SubmissionPayload(
            code=code,
            test_cases=[parse_test_case(tc).to_wire() for tc in test_cases],
            function_call=function_call or '',
            language=language.lower(),
            timeout=timeout_seconds,
            memory_limit=memory_limit_for(language, timeout_seconds),
            user_id=user_id if user_id is not None else self.user_id,
            question_id=question_id,
            test_id=test_id,
        )
        data = await self._request('POST', '/api/v1/submit', json=payload.model_dump(by_alias=True))
        try:
            submitted = SubmitResponse.model_validate(data)
        except ValidationError as e:
            raise TransportError('Judge service did not return a submission_id') from e
        logger.info(f'Submitted {len(test_cases)} test cases for question {question_id}: {submitted.submission_id}')
        return submitted.submission_id

    async def status(self, submission_id: str) -> StatusResponse:
        data = await self._request('GET', f'/api/v1/status/{submission_id}')
        try:
            return StatusResponse.model_validate(data)
        except ValidationError as e:
            raise TransportError(f'Malformed status for {submission_id}') from e

    async def poll_until_complete(
        self,
        submission_id: str,
        max_wait_seconds: float,
        cancel: Optional[CancellationSignal] = None,
    ) -> ExecutionResult:
        started = self._now()
        while True:
            elapsed = self._now() - started
            if elapsed >= max_wait_seconds:
                logger.warning(f'Polling {submission_id} timed out after {elapsed:.1f}s')
                raise PollTimeoutError(elapsed)
            if cancel is not None and cancel.cancelled:
                raise PollCancelledError(f'Polling {submission_id} cancelled')

            data = await self.status(submission_id)
            if data.status == STATUS_COMPLETED:
                logger.info(f'Submission {submission_id} completed')
                return data.result or ExecutionResult(error=data.error)

            remaining = max_wait_seconds - (self._now() - started)
            if remaining > 0:
                await self._sleep(min(self.poll_interval, remaining))

    async def health(self) -> HealthStatus:
        data = await self._request('GET', '/health')
        try:
            return HealthStatus.model_validate(data)
        except ValidationError as e:
            raise TransportError('Malformed health response') from e
