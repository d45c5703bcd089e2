import logging
from typing import List, Optional

from .backends import create_backend
from .config import EngineConfig, Toolchain
from .errors import (
    CompileError,
    ExecutionError,
    OutputLimitExceeded,
    RuntimeFailure,
    TimeLimitExceeded,
    UnsupportedLanguage,
)
from .process import ProcessOutcome
from .schemas import ErrorKind, ExecutionRequest, ExecutionResult, Language
from .workspace import Workspace

logger = logging.getLogger(__name__)

BINARY_NAME = 'main.out'

LANG_CONFIG = {
    Language.CPP: {
        'source_name': 'main.cpp',
        'compile': lambda tc: [tc.cxx, *tc.cxx_flags, 'main.cpp', '-o', BINARY_NAME],
        'run': lambda tc: [f'./{BINARY_NAME}'],
    },
    Language.PYTHON: {
        'source_name': 'main.py',
        'compile': None,
        'run': lambda tc: [tc.python, 'main.py'],
    },
    Language.JAVASCRIPT: {
        'source_name': 'main.js',
        'compile': None,
        'run': lambda tc: [tc.node, 'main.js'],
    },
}


def resolve_language(language: Optional[str]) -> Language:
    try:
        return Language((language or '').strip().lower())
    except ValueError:
        raise UnsupportedLanguage(language) from None


def compile_command(language: Language, toolchain: Toolchain) -> Optional[List[str]]:
    build = LANG_CONFIG[language]['compile']
    return build(toolchain) if build else None


def run_command(language: Language, toolchain: Toolchain) -> List[str]:
    return LANG_CONFIG[language]['run'](toolchain)


def describe_exit(outcome: ProcessOutcome) -> str:
    if outcome.stderr.strip():
        return outcome.stderr
    if outcome.signal_name:
        return f'Process terminated by signal {outcome.signal_name}'
    return f'Process exited with code {outcome.exit_code}'


class ExecutionEngine:
    """Compile (where needed) and run one submission against one stdin.

    ``execute`` never raises for a well-formed request: every failure is
    reported as an ``ExecutionResult`` with ``succeeded=False``. The engine
    keeps no state between calls, so one instance can serve many threads.
    """

    def __init__(self, config: Optional[EngineConfig] = None, backend=None):
        self.config = config or EngineConfig()
        self.backend = backend or create_backend(self.config)

    def execute(self, request: ExecutionRequest) -> ExecutionResult:
        try:
            return self._execute(request)
        except ExecutionError as e:
            logger.info(f'{e.kind.value}: {str(e)[:200]}')
            return ExecutionResult.failure(e.kind, str(e), stdout=e.stdout, time_ms=e.time_ms)
        except Exception as e:
            logger.exception('unexpected error while executing submission')
            return ExecutionResult.failure(ErrorKind.INTERNAL_ERROR, f'Internal error: {e}')

    def _execute(self, request: ExecutionRequest) -> ExecutionResult:
        language = resolve_language(request.language)
        cfg = LANG_CONFIG[language]
        toolchain = self.config.toolchain

        with Workspace(self.config.workspace_root) as ws:
            logger.info(f'workspace {ws.id}: {language.value}, {len(request.stdin)} bytes of stdin')
            ws.write_source(cfg['source_name'], request.source_code)
            ws.write_stdin(request.stdin)

            with self.backend.open(ws) as session:
                build = compile_command(language, toolchain)
                if build:
                    self._compile(session, build)
                outcome = session.run(
                    run_command(language, toolchain),
                    timeout_ms=self.config.run_timeout_ms,
                    max_output_bytes=self.config.max_output_bytes,
                    with_stdin=True,
                )
            return self._verdict(outcome)

    def _compile(self, session, argv: List[str]) -> None:
        outcome = session.run(
            argv,
            timeout_ms=self.config.compile_timeout_ms,
            max_output_bytes=self.config.max_output_bytes,
        )
        if outcome.timed_out:
            raise CompileError('Compilation timed out')
        if outcome.exit_code != 0:
            raise CompileError(outcome.stderr or outcome.stdout or None)
        logger.info(f'compiled in {outcome.duration_ms} ms')

    def _verdict(self, outcome: ProcessOutcome) -> ExecutionResult:
        logger.info(
            f'run finished: exit={outcome.exit_code} timed_out={outcome.timed_out} '
            f'time={outcome.duration_ms}ms'
        )
        if outcome.timed_out:
            raise TimeLimitExceeded(stdout=outcome.stdout, time_ms=outcome.duration_ms)
        if outcome.output_truncated:
            raise OutputLimitExceeded(stdout=outcome.stdout, time_ms=outcome.duration_ms)
        if outcome.exit_code != 0:
            raise RuntimeFailure(describe_exit(outcome), stdout=outcome.stdout,
                                 time_ms=outcome.duration_ms)
        return ExecutionResult(
            stdout=outcome.stdout,
            succeeded=True,
            time_ms=outcome.duration_ms,
        )

