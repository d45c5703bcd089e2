from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Language(str, Enum):
    CPP = 'cpp'
    PYTHON = 'python'
    JAVASCRIPT = 'javascript'


class ErrorKind(str, Enum):
    UNSUPPORTED_LANGUAGE = 'unsupported_language'
    WORKSPACE_ERROR = 'workspace_error'
    COMPILE_ERROR = 'compile_error'
    RUNTIME_ERROR = 'runtime_error'
    TIME_LIMIT_EXCEEDED = 'time_limit_exceeded'
    OUTPUT_LIMIT_EXCEEDED = 'output_limit_exceeded'
    INTERNAL_ERROR = 'internal_error'


class ExecutionRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    source_code: str
    # kept as a raw string so unknown identifiers become a failed result
    language: str
    stdin: str = ''


class ExecutionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    stdout: str = ''
    diagnostic: Optional[str] = None
    succeeded: bool
    error_kind: Optional[ErrorKind] = None
    time_ms: Optional[int] = None

    @classmethod
    def failure(cls, kind: ErrorKind, diagnostic: str, stdout: str = '',
                time_ms: Optional[int] = None) -> 'ExecutionResult':
        return cls(stdout=stdout, diagnostic=diagnostic, succeeded=False,
                   error_kind=kind, time_ms=time_ms)


class TestCase(BaseModel):
    __test__ = False
    model_config = ConfigDict(frozen=True)

    ordinal_id: int = Field(ge=1)
    input_payload: str
    expected_output: str


class TestCaseOutcome(BaseModel):
    __test__ = False
    model_config = ConfigDict(frozen=True)

    ordinal_id: int
    passed: bool
    actual_output: str


# HTTP wire models


class RunRequest(BaseModel):
    code: str
    language: str
    input: Optional[str] = None


class RunResponse(BaseModel):
    output: str
    error: Optional[str] = None
    success: bool
    kind: Optional[ErrorKind] = None
    time_ms: Optional[int] = None


class SampleCase(BaseModel):
    sample_number: int = Field(ge=1)
    input: str = ''
    expected_output: str = ''


class RunTestsRequest(BaseModel):
    code: str
    language: str
    test_cases: List[SampleCase]


class SampleResult(BaseModel):
    sample_number: int
    passed: bool
    output: str


class RunTestsResponse(BaseModel):
    results: List[SampleResult]
    cancelled: bool = False
    error: Optional[str] = None
