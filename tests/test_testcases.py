import pytest

from conftest import needs_gxx
from coderunner.schemas import ErrorKind, ExecutionResult, TestCase, TestCaseOutcome
from coderunner.testcases import EXECUTION_FAILED, RunState, TestRun, run_test_cases

ADDER_CPP = (
    '#include <iostream>\n'
    'int main() { long long a, b; std::cin >> a >> b; std::cout << a + b << std::endl; }\n'
)
ADDER_PY = 'a = int(input())\nb = int(input())\nprint(a + b)\n'

SAMPLES = [
    TestCase(ordinal_id=1, input_payload='3\n4', expected_output='7'),
    TestCase(ordinal_id=2, input_payload='1\n1', expected_output='2'),
]


class ScriptedEngine:
    """Answers each stdin with a canned result and records the call order."""

    def __init__(self, answers):
        self.answers = answers
        self.seen = []

    def execute(self, request):
        self.seen.append(request.stdin)
        answer = self.answers[request.stdin]
        if isinstance(answer, Exception):
            raise answer
        return answer


def ok(stdout):
    return ExecutionResult(stdout=stdout, succeeded=True)


def test_adder_passes_every_case(engine):
    outcomes = run_test_cases(engine, ADDER_PY, 'python', SAMPLES)
    assert outcomes == [
        TestCaseOutcome(ordinal_id=1, passed=True, actual_output='7'),
        TestCaseOutcome(ordinal_id=2, passed=True, actual_output='2'),
    ]


@needs_gxx
def test_cpp_adder_end_to_end(engine):
    outcomes = run_test_cases(engine, ADDER_CPP, 'cpp', SAMPLES)
    assert [(o.ordinal_id, o.passed, o.actual_output) for o in outcomes] == [
        (1, True, '7'),
        (2, True, '2'),
    ]


def test_constant_output_fails_every_case(engine):
    outcomes = run_test_cases(engine, 'print(0)', 'python', SAMPLES)
    assert [(o.ordinal_id, o.passed, o.actual_output) for o in outcomes] == [
        (1, False, '0'),
        (2, False, '0'),
    ]


def test_empty_cases_are_skipped():
    cases = [
        TestCase(ordinal_id=1, input_payload='', expected_output='1'),
        TestCase(ordinal_id=2, input_payload='2', expected_output=''),
        TestCase(ordinal_id=3, input_payload='   \n', expected_output='3'),
        TestCase(ordinal_id=4, input_payload='4', expected_output='4'),
    ]
    engine = ScriptedEngine({'4': ok('4\n')})
    outcomes = run_test_cases(engine, 'code', 'python', cases)
    assert [o.ordinal_id for o in outcomes] == [4]
    assert engine.seen == ['4']


def test_cases_run_in_ordinal_order():
    cases = [
        TestCase(ordinal_id=3, input_payload='c', expected_output='c'),
        TestCase(ordinal_id=1, input_payload='a', expected_output='a'),
        TestCase(ordinal_id=2, input_payload='b', expected_output='b'),
    ]
    engine = ScriptedEngine({'a': ok('a'), 'b': ok('b'), 'c': ok('c')})
    outcomes = run_test_cases(engine, 'code', 'python', cases)
    assert engine.seen == ['a', 'b', 'c']
    assert [o.ordinal_id for o in outcomes] == [1, 2, 3]


def test_failed_execution_compares_diagnostic():
    failure = ExecutionResult.failure(ErrorKind.TIME_LIMIT_EXCEEDED, 'Time limit exceeded')
    engine = ScriptedEngine({'1': failure})
    cases = [TestCase(ordinal_id=1, input_payload='1', expected_output='1')]
    [outcome] = run_test_cases(engine, 'code', 'python', cases)
    assert not outcome.passed
    assert outcome.actual_output == 'Time limit exceeded'


def test_engine_exception_marks_case_failed_and_continues():
    engine = ScriptedEngine({'1': RuntimeError('daemon gone'), '2': ok('2\n')})
    cases = [
        TestCase(ordinal_id=1, input_payload='1', expected_output='1'),
        TestCase(ordinal_id=2, input_payload='2', expected_output='2'),
    ]
    outcomes = run_test_cases(engine, 'code', 'python', cases)
    assert outcomes[0] == TestCaseOutcome(ordinal_id=1, passed=False, actual_output=EXECUTION_FAILED)
    assert outcomes[1].passed


def test_output_whitespace_is_normalized():
    engine = ScriptedEngine({'x': ok('1 2  \r\n\r\n3\n\n')})
    cases = [TestCase(ordinal_id=1, input_payload='x', expected_output='1 2\n3')]
    [outcome] = run_test_cases(engine, 'code', 'python', cases)
    assert outcome.passed
    assert outcome.actual_output == '1 2\n3'


def test_cancel_between_cases():
    engine = ScriptedEngine({'a': ok('a'), 'b': ok('b')})
    cases = [
        TestCase(ordinal_id=1, input_payload='a', expected_output='a'),
        TestCase(ordinal_id=2, input_payload='b', expected_output='b'),
    ]
    test_run = TestRun(engine, 'code', 'python', cases, should_cancel=lambda: len(engine.seen) >= 1)
    outcomes = test_run.run()
    assert [o.ordinal_id for o in outcomes] == [1]
    assert test_run.cancelled
    assert test_run.state is RunState.DONE


def test_run_state_machine():
    engine = ScriptedEngine({'a': ok('a')})
    cases = [TestCase(ordinal_id=1, input_payload='a', expected_output='a')]
    test_run = TestRun(engine, 'code', 'python', cases)
    assert test_run.state is RunState.IDLE
    test_run.run()
    assert test_run.state is RunState.DONE
    assert not test_run.cancelled
    with pytest.raises(RuntimeError):
        test_run.run()


def test_ordinal_ids_start_at_one():
    with pytest.raises(ValueError):
        TestCase(ordinal_id=0, input_payload='a', expected_output='a')
