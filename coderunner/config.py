import os
import shlex
import shutil
import tempfile
from typing import List

from pydantic import BaseModel, Field


def _resolve(name: str) -> str:
    return shutil.which(name) or name


class Toolchain(BaseModel):
    cxx: str = 'g++'
    cxx_flags: List[str] = Field(default_factory=lambda: ['-O2', '-std=gnu++17'])
    python: str = 'python3'
    node: str = 'node'

    @classmethod
    def from_env(cls, resolve: bool = True) -> 'Toolchain':
        # binaries inside a container image are looked up there, not here
        find = _resolve if resolve else (lambda name: name)
        return cls(
            cxx=os.getenv('RUNNER_CXX') or find('g++'),
            cxx_flags=shlex.split(os.getenv('RUNNER_CXX_FLAGS', '-O2 -std=gnu++17')),
            python=os.getenv('RUNNER_PYTHON') or find('python3'),
            node=os.getenv('RUNNER_NODE') or find('node'),
        )


class DockerSettings(BaseModel):
    image: str = 'testportal/runner:latest'
    mem_limit: str = '256m'
    cpus: float = 0.5

    @classmethod
    def from_env(cls) -> 'DockerSettings':
        return cls(
            image=os.getenv('RUNNER_IMAGE', 'testportal/runner:latest'),
            mem_limit=os.getenv('RUNNER_DOCKER_MEM', '256m'),
            cpus=float(os.getenv('RUNNER_DOCKER_CPUS', '0.5')),
        )


class EngineConfig(BaseModel):
    toolchain: Toolchain = Field(default_factory=Toolchain)
    run_timeout_ms: int = Field(default=2000, gt=0)
    compile_timeout_ms: int = Field(default=10000, gt=0)
    max_output_bytes: int = Field(default=1024 * 1024, gt=0)
    # 0 disables the address-space ceiling; node reserves a lot of virtual memory
    memory_limit_mb: int = Field(default=0, ge=0)
    workspace_root: str = Field(default_factory=tempfile.gettempdir)
    backend: str = Field(default='local', pattern='^(local|docker)$')
    docker: DockerSettings = Field(default_factory=DockerSettings)

    @classmethod
    def from_env(cls) -> 'EngineConfig':
        backend = os.getenv('RUNNER_BACKEND', 'local').lower()
        return cls(
            toolchain=Toolchain.from_env(resolve=backend == 'local'),
            run_timeout_ms=int(os.getenv('RUNNER_RUN_TIMEOUT_MS', '2000')),
            compile_timeout_ms=int(os.getenv('RUNNER_COMPILE_TIMEOUT_MS', '10000')),
            max_output_bytes=int(os.getenv('RUNNER_MAX_OUTPUT_BYTES', str(1024 * 1024))),
            memory_limit_mb=int(os.getenv('RUNNER_MEMORY_LIMIT_MB', '0')),
            workspace_root=os.getenv('RUNNER_WORKSPACE_ROOT') or tempfile.gettempdir(),
            backend=backend,
            docker=DockerSettings.from_env(),
        )


class ServiceSettings(BaseModel):
    host: str = '0.0.0.0'
    port: int = 8000
    log_level: str = 'info'

    @classmethod
    def from_env(cls) -> 'ServiceSettings':
        return cls(
            host=os.getenv('HOST', '0.0.0.0'),
            port=int(os.getenv('PORT', '8000')),
            log_level=os.getenv('LOG_LEVEL', 'info').lower(),
        )
