import logging
import uuid
from functools import lru_cache

from fastapi import Depends, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .config import EngineConfig
from .executor import ExecutionEngine
from .logging import request_id
from .schemas import (
    ErrorKind,
    ExecutionRequest,
    ExecutionResult,
    RunRequest,
    RunResponse,
    RunTestsRequest,
    RunTestsResponse,
    SampleResult,
    TestCase,
)
from .testcases import TestRun

logger = logging.getLogger(__name__)

app = FastAPI(title='Code Runner')

RUN_TESTS_PATH = '/api/compiler/run-tests'


@lru_cache(maxsize=1)
def get_engine() -> ExecutionEngine:
    return ExecutionEngine(EngineConfig.from_env())


def to_response(result: ExecutionResult) -> RunResponse:
    return RunResponse(
        output=result.stdout,
        error=result.diagnostic,
        success=result.succeeded,
        kind=result.error_kind,
        time_ms=result.time_ms,
    )


@app.middleware('http')
async def assign_request_id(request: Request, call_next):
    rid = request.headers.get('X-Request-ID') or uuid.uuid4().hex[:12]
    token = request_id.set(rid)
    try:
        response = await call_next(request)
    finally:
        request_id.reset(token)
    response.headers['X-Request-ID'] = rid
    return response


@app.exception_handler(RequestValidationError)
async def invalid_request(request: Request, exc: RequestValidationError):
    # malformed bodies still get a well-formed failure, never a protocol error
    logger.info(f'rejected request body: {exc.errors()}')
    if request.url.path == RUN_TESTS_PATH:
        body = RunTestsResponse(results=[], cancelled=False, error='invalid request')
    else:
        body = RunResponse(output='', error='invalid request', success=False,
                           kind=ErrorKind.INTERNAL_ERROR)
    return JSONResponse(status_code=200, content=body.model_dump(mode='json'))


@app.get('/health')
async def health():
    return {'status': 'ok'}


@app.post('/api/compiler/run', response_model=RunResponse)
async def run_code(req: RunRequest, engine: ExecutionEngine = Depends(get_engine)):
    request = ExecutionRequest(source_code=req.code, language=req.language, stdin=req.input or '')
    try:
        result = await run_in_threadpool(engine.execute, request)
    except Exception as e:
        logger.exception('execution error')
        return RunResponse(output='', error=f'Internal error: {e}', success=False,
                           kind=ErrorKind.INTERNAL_ERROR)
    return to_response(result)


@app.post(RUN_TESTS_PATH, response_model=RunTestsResponse)
async def run_tests(req: RunTestsRequest, engine: ExecutionEngine = Depends(get_engine)):
    cases = [
        TestCase(ordinal_id=c.sample_number, input_payload=c.input, expected_output=c.expected_output)
        for c in req.test_cases
    ]
    test_run = TestRun(engine, req.code, req.language, cases)
    try:
        outcomes = await run_in_threadpool(test_run.run)
    except Exception:
        logger.exception('test run failed')
        outcomes = test_run.outcomes
    return RunTestsResponse(
        results=[
            SampleResult(sample_number=o.ordinal_id, passed=o.passed, output=o.actual_output)
            for o in outcomes
        ],
        cancelled=test_run.cancelled,
    )
