import logging
from enum import Enum
from typing import Callable, Iterable, List, Optional

from .normalize import normalize_output
from .schemas import ExecutionRequest, ExecutionResult, TestCase, TestCaseOutcome

logger = logging.getLogger(__name__)

EXECUTION_FAILED = 'execution failed'


class RunState(str, Enum):
    IDLE = 'idle'
    RUNNING = 'running'
    DONE = 'done'


def is_runnable(case: TestCase) -> bool:
    return bool(case.input_payload.strip()) and bool(case.expected_output.strip())


def actual_output(result: ExecutionResult) -> str:
    if result.succeeded:
        return result.stdout
    return result.diagnostic or result.stdout or EXECUTION_FAILED


class TestRun:
    """One pass of a submission over a problem's test cases.

    Cases run one at a time in ascending ordinal order; the next case is only
    started once the previous outcome has been recorded. ``should_cancel`` is
    polled before each case. A finished run cannot be restarted.
    """

    __test__ = False

    def __init__(
        self,
        engine,
        source_code: str,
        language: str,
        test_cases: Iterable[TestCase],
        should_cancel: Optional[Callable[[], bool]] = None,
    ):
        self.engine = engine
        self.source_code = source_code
        self.language = language
        self.cases = sorted(
            (c for c in test_cases if is_runnable(c)), key=lambda c: c.ordinal_id
        )
        self.should_cancel = should_cancel
        self.state = RunState.IDLE
        self.case_index = 0
        self.cancelled = False
        self.outcomes: List[TestCaseOutcome] = []

    def run(self) -> List[TestCaseOutcome]:
        if self.state is not RunState.IDLE:
            raise RuntimeError(f'test run already {self.state.value}')
        self.state = RunState.RUNNING

        for self.case_index, case in enumerate(self.cases):
            if self.should_cancel and self.should_cancel():
                logger.info(f'test run cancelled before case {case.ordinal_id}')
                self.cancelled = True
                break
            self.outcomes.append(self._run_case(case))

        self.state = RunState.DONE
        passed = sum(1 for o in self.outcomes if o.passed)
        logger.info(f'test run done: {passed}/{len(self.outcomes)} passed')
        return list(self.outcomes)

    def _run_case(self, case: TestCase) -> TestCaseOutcome:
        logger.info(f'running test case {case.ordinal_id}')
        request = ExecutionRequest(
            source_code=self.source_code,
            language=self.language,
            stdin=case.input_payload,
        )
        try:
            output = actual_output(self.engine.execute(request))
        except Exception:
            logger.exception(f'test case {case.ordinal_id} could not be executed')
            output = EXECUTION_FAILED

        actual = normalize_output(output)
        return TestCaseOutcome(
            ordinal_id=case.ordinal_id,
            passed=actual == normalize_output(case.expected_output),
            actual_output=actual,
        )


def run_test_cases(engine, source_code: str, language: str,
                   test_cases: Iterable[TestCase],
                   should_cancel: Optional[Callable[[], bool]] = None) -> List[TestCaseOutcome]:
    return TestRun(engine, source_code, language, test_cases, should_cancel).run()
