import logging
import sys
from contextlib import asynccontextmanager

import httpx
from fastapi import Depends, FastAPI, HTTPException, Request

from .config import JUDGE_HTTP_TIMEOUT, LOG_LEVEL
from .grader import run_and_grade
from .judge import JudgeClient, TransportError
from .runs import RunCache
from .schemas import (
    CanSubmitRequest,
    CanSubmitResponse,
    GradedReport,
    HealthStatus,
    RunRequest,
)


logging.basicConfig(stream=sys.stdout, level=LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with httpx.AsyncClient(timeout=JUDGE_HTTP_TIMEOUT) as http_client:
        app.state.http_client = http_client
        yield


app = FastAPI(title='Judge Run Client', lifespan=lifespan)

_run_cache = RunCache()


def get_judge_client(request: Request) -> JudgeClient:
    return JudgeClient(http_client=request.app.state.http_client)


def get_run_cache() -> RunCache:
    return _run_cache


@app.post('/run', response_model=GradedReport)
async def run_code(
    req: RunRequest,
    client: JudgeClient = Depends(get_judge_client),
    runs: RunCache = Depends(get_run_cache),
):
    try:
        report = await run_and_grade(
            client,
            req.code,
            req.test_cases,
            function_call=req.function_call,
            timeout_seconds=req.timeout_seconds,
            question_id=req.question_id,
            test_id=req.test_id,
            language=req.language,
            user_id=req.user_id,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    runs.record(req.question_id, req.code, report)
    return report


@app.post('/can-submit', response_model=CanSubmitResponse)
async def can_submit(req: CanSubmitRequest, runs: RunCache = Depends(get_run_cache)):
    return CanSubmitResponse(can_submit=runs.can_submit(req.question_id, req.code))


@app.get('/health', response_model=HealthStatus)
async def health(client: JudgeClient = Depends(get_judge_client)):
    try:
        return await client.health()
    except TransportError as e:
        logger.warning(f'Judge health check failed: {e}')
        raise HTTPException(status_code=503, detail='judge unavailable')
