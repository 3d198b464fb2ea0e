import logging
from typing import Any, List, Optional

from .config import POLL_MARGIN_SECONDS
from .judge import (
    CancellationSignal,
    JudgeClient,
    JudgeError,
    JudgeReportedFailure,
)
from .schemas import ExecutionResult, GradedReport, ParsedSummary


logger = logging.getLogger(__name__)

PASSED = 'Passed'
FAILED = 'Failed'


def case_labels(outcomes: List[bool], aggregate: Optional[bool] = None) -> List[str]:
    """``TestCase{i}`` labels in request order plus the trailing aggregate."""
    if aggregate is None:
        aggregate = all(outcomes)
    labels = [f'TestCase{i + 1}: {PASSED if ok else FAILED}' for i, ok in enumerate(outcomes)]
    labels.append(f'Result: {PASSED if aggregate else FAILED}')
    return labels


def case_outcomes(result: ExecutionResult, case_count: int) -> List[bool]:
    parsed = result.parsed_results
    if isinstance(parsed, ParsedSummary):
        # a summary without its own verdict follows the run's
        ok = result.success if parsed.success is None else parsed.success
        return [ok] * case_count
    if parsed is None:
        return [result.success] * case_count
    # missing per-case entries count as failures, extras are dropped
    return [parsed[i].passed if i < len(parsed) else False for i in range(case_count)]


def failed_report(case_count: int, error: Optional[str], failure: str, raw_output: str = '') -> GradedReport:
    return GradedReport(
        per_case_labels=case_labels([False] * case_count, aggregate=False),
        aggregate_passed=False,
        raw_output=raw_output,
        message=f'Execution failed: {error}' if error else 'Execution failed',
        error=error,
        failure=failure,
    )


def grade(result: ExecutionResult, case_count: int) -> GradedReport:
    if not result.success:
        raise JudgeReportedFailure(result.error_message, result.output)

    outcomes = case_outcomes(result, case_count)
    passed = all(outcomes)
    labels = case_labels(outcomes, aggregate=passed)
    if passed:
        message = 'Congratulations!'
        additional = 'You have passed all the test cases. Click the submit code button.'
    else:
        message = 'Wrong Answer'
        additional = 'You have not passed all the test cases.'
    return GradedReport(
        per_case_labels=labels,
        aggregate_passed=passed,
        raw_output=result.output,
        message=message,
        additional_message=additional,
    )


async def run_and_grade(
    client: JudgeClient,
    code: str,
    test_cases: List[Any],
    function_call: str = '',
    timeout_seconds: int = 10,
    question_id: str = '',
    test_id: str = 'practice',
    language: str = 'python',
    user_id: Optional[str] = None,
    poll_timeout: Optional[float] = None,
    cancel: Optional[CancellationSignal] = None,
) -> GradedReport:
    """Submit ``code``, wait for the judge and return a uniform report.

    Judge and transport failures never escape: they come back as a report
    with every case ``Failed`` and ``failure`` naming what went wrong. Caller
    mistakes (blank code, bad poll timeout, unknown language) raise
    ``ValueError``.
    """
    if not code or not code.strip():
        raise ValueError('code must not be empty')
    if poll_timeout is None:
        poll_timeout = timeout_seconds + POLL_MARGIN_SECONDS
    elif poll_timeout <= timeout_seconds:
        raise ValueError('poll timeout must exceed the execution timeout')

    case_count = len(test_cases)
    try:
        submission_id = await client.submit(
            code,
            test_cases,
            function_call=function_call,
            timeout_seconds=timeout_seconds,
            question_id=question_id,
            test_id=test_id,
            language=language,
            user_id=user_id,
        )
        result = await client.poll_until_complete(submission_id, poll_timeout, cancel=cancel)
        return grade(result, case_count)
    except JudgeReportedFailure as e:
        logger.info(f'Judge reported failure for question {question_id}: {e.error}')
        return failed_report(case_count, e.error, type(e).__name__, e.output)
    except JudgeError as e:
        logger.warning(f'Run for question {question_id} failed: {type(e).__name__}: {e}')
        return failed_report(case_count, str(e), type(e).__name__)
