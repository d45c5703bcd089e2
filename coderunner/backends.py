from typing import List

from .config import EngineConfig
from .process import ProcessOutcome, run_process
from .workspace import Workspace


class LocalSession:
    def __init__(self, workspace: Workspace, memory_limit_mb: int = 0):
        self.workspace = workspace
        self.memory_limit_mb = memory_limit_mb

    def __enter__(self) -> 'LocalSession':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def run(self, argv: List[str], timeout_ms: int, max_output_bytes: int,
            with_stdin: bool = False) -> ProcessOutcome:
        argv = list(argv)
        if argv[0].startswith('./'):
            argv[0] = self.workspace.file(argv[0][2:])
        return run_process(
            argv,
            cwd=self.workspace.path,
            stdin_path=self.workspace.stdin_path if with_stdin else None,
            timeout_ms=timeout_ms,
            max_output_bytes=max_output_bytes,
            memory_limit_mb=self.memory_limit_mb,
        )

    def close(self) -> None:
        pass


class LocalBackend:
    """Runs toolchains directly on the host, one process group per command."""

    def __init__(self, memory_limit_mb: int = 0):
        self.memory_limit_mb = memory_limit_mb

    def open(self, workspace: Workspace) -> LocalSession:
        return LocalSession(workspace, self.memory_limit_mb)


def create_backend(config: EngineConfig):
    if config.backend == 'docker':
        from .docker_runner import DockerBackend

        return DockerBackend(config.docker)
    return LocalBackend(config.memory_limit_mb)
