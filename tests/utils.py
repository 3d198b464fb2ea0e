"""Judge stub and fake clock shared by the test modules."""

import json
from typing import Any, Dict, List, Optional

import httpx

from judgeclient.judge import JudgeClient


BASE_URL = 'http://judge.test'


class FakeClock:
    """Monotonic clock that only moves when slept on (or advanced by hand)."""

    def __init__(self) -> None:
        self.current = 0.0
        self.sleeps: List[float] = []

    def now(self) -> float:
        return self.current

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += seconds


class JudgeStub:
    """httpx handler standing in for the judge's submit/status/health routes."""

    def __init__(
        self,
        statuses: Optional[List[Any]] = None,
        submit_status: int = 200,
        submit_body: Any = None,
        clock: Optional[FakeClock] = None,
        latency: float = 0.0,
    ) -> None:
        self.statuses = list(statuses or [{'status': 'running'}])
        self.submit_status = submit_status
        self.submit_body = submit_body if submit_body is not None else {
            'submission_id': 'sub-1',
            'status': 'queued',
            'message': 'Submission queued',
            'estimated_wait_time': 2,
        }
        self.clock = clock
        self.latency = latency
        self.submitted: List[Dict[str, Any]] = []
        self.status_calls = 0
        self.on_status = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == '/api/v1/submit':
            self.submitted.append(json.loads(request.content))
            return httpx.Response(self.submit_status, json=self.submit_body)
        if path.startswith('/api/v1/status/'):
            if self.clock is not None:
                self.clock.current += self.latency
            index = min(self.status_calls, len(self.statuses) - 1)
            self.status_calls += 1
            if self.on_status is not None:
                self.on_status()
            body = self.statuses[index]
            if isinstance(body, httpx.Response):
                return body
            if isinstance(body, Exception):
                raise body
            return httpx.Response(200, json=body)
        if path == '/health':
            return httpx.Response(200, json={
                'status': 'healthy',
                'timestamp': '2024-01-01T00:00:00',
                'version': '1.0.0',
                'redis_connected': True,
                'docker_available': True,
                'queue_length': 0,
            })
        return httpx.Response(404)


def completed(result: Dict[str, Any]) -> Dict[str, Any]:
    return {'submission_id': 'sub-1', 'status': 'completed', 'result': result, 'error': None}


def make_judge(stub: JudgeStub, clock: FakeClock) -> JudgeClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(stub))
    return JudgeClient(
        base_url=BASE_URL,
        http_client=http_client,
        user_id='student-7',
        sleep=clock.sleep,
        now=clock.now,
    )
