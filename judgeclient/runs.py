from typing import Dict, NamedTuple, Optional

from .schemas import GradedReport


def normalize_code(code: str) -> str:
    """Collapse newlines to spaces and drop one trailing semicolon."""
    text = code.strip().replace('\n', ' ')
    if text.endswith(';'):
        text = text[:-1]
    return text


class RunRecord(NamedTuple):
    code: str
    report: GradedReport


class RunCache:
    """Latest graded run per question; gates the final submit."""

    def __init__(self):
        self._runs: Dict[str, RunRecord] = {}

    def record(self, question_key: str, code: str, report: GradedReport) -> None:
        self._runs[question_key] = RunRecord(code, report)

    def get(self, question_key: str) -> Optional[RunRecord]:
        return self._runs.get(question_key)

    def clear(self, question_key: str) -> None:
        self._runs.pop(question_key, None)

    def can_submit(self, question_key: str, current_code: str) -> bool:
        run = self._runs.get(question_key)
        if run is None or not run.code:
            return False
        return normalize_code(current_code) == normalize_code(run.code)
