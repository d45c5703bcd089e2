import logging
import os
import shlex
from typing import Iterable, List, Optional, Tuple

import docker
from docker.errors import DockerException

from .config import DockerSettings
from .errors import BackendUnavailable, WorkspaceError
from .process import ProcessOutcome, time_millis
from .workspace import STDIN_NAME, Workspace

logger = logging.getLogger(__name__)

RUN_DIR = '/tmp/run'
# exit statuses of coreutils `timeout -s KILL` when the budget ran out
TIMEOUT_STATUSES = (124, 137)


def _read_output(raw) -> str:
    if raw is None:
        return ''
    if isinstance(raw, tuple):
        raw = b''.join(p for p in raw if p)
    return raw.decode('utf-8', errors='replace')


def collect_capped(chunks: Iterable[Tuple[Optional[bytes], Optional[bytes]]],
                   limit: int) -> Tuple[bytes, bytes, bool]:
    """Gather demultiplexed (stdout, stderr) chunks, stopping past ``limit``.

    Each stream keeps at most ``limit`` bytes; reading ends as soon as either
    one has more than that, so the rest of the stream is never pulled in.
    """
    out = bytearray()
    err = bytearray()
    for chunk_out, chunk_err in chunks:
        if chunk_out:
            out += chunk_out[:limit + 1 - len(out)]
        if chunk_err:
            err += chunk_err[:limit + 1 - len(err)]
        if len(out) > limit or len(err) > limit:
            return bytes(out[:limit]), bytes(err[:limit]), True
    return bytes(out), bytes(err), False


class DockerSession:
    """One disposable container holding a single request's workspace."""

    def __init__(self, client, settings: DockerSettings, workspace: Workspace):
        self.api = client.api
        self.workspace = workspace
        self.container = None
        nano_cpus = int(settings.cpus * 1e9)
        try:
            # Mount the workspace read-only and use a writable tmpfs at /tmp/run
            self.container = client.containers.run(
                settings.image,
                command='/bin/sh',
                detach=True,
                tty=True,
                working_dir=RUN_DIR,
                volumes={workspace.path: {'bind': '/workspace', 'mode': 'ro'}},
                network_mode='none',
                read_only=True,
                tmpfs={RUN_DIR: 'rw,exec,size=64m'},
                security_opt=['no-new-privileges'],
                cap_drop=['ALL'],
                mem_limit=settings.mem_limit,
                nano_cpus=nano_cpus,
            )
            rc, out = self.container.exec_run(
                cmd=['/bin/sh', '-c', f'cp -a /workspace/. {RUN_DIR}/'], workdir='/'
            )
        except DockerException as e:
            self.close()
            raise BackendUnavailable(str(e)) from e
        if rc != 0:
            self.close()
            raise WorkspaceError(f'cannot copy workspace into container: {_read_output(out)}')

    def __enter__(self) -> 'DockerSession':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def run(self, argv: List[str], timeout_ms: int, max_output_bytes: int,
            with_stdin: bool = False) -> ProcessOutcome:
        cmd = f'exec timeout -s KILL {timeout_ms / 1000:.3f}s {shlex.join(argv)}'
        if with_stdin and self.workspace.stdin_path:
            cmd += f' < {STDIN_NAME}'
        else:
            cmd += ' < /dev/null'

        start = time_millis()
        try:
            exec_id = self.api.exec_create(
                self.container.id, ['/bin/sh', '-c', cmd], workdir=RUN_DIR
            )['Id']
            stream = self.api.exec_start(exec_id, stream=True, demux=True)
            raw_out, raw_err, truncated = collect_capped(stream, max_output_bytes)
            if truncated:
                # the exec is still producing output; nothing else may run here
                self.container.kill()
                rc = None
            else:
                rc = self.api.exec_inspect(exec_id)['ExitCode']
        except DockerException as e:
            raise BackendUnavailable(str(e)) from e
        duration = time_millis() - start

        timed_out = rc in TIMEOUT_STATUSES and duration >= timeout_ms
        exit_code = rc
        if not timed_out and rc is not None and rc > 128:
            # shell convention for "killed by signal N"
            exit_code = -(rc - 128)
        return ProcessOutcome(
            exit_code=exit_code,
            stdout=_read_output(raw_out),
            stderr=_read_output(raw_err),
            timed_out=timed_out,
            output_truncated=truncated,
            duration_ms=duration,
        )

    def close(self) -> None:
        if self.container is None:
            return
        try:
            # removing the container tears down every process it still holds
            self.container.remove(force=True)
        except DockerException as e:
            logger.warning(f'failed to remove container for {os.path.basename(self.workspace.path)}: {e}')
        self.container = None


class DockerBackend:
    """Runs each request inside its own locked-down container."""

    def __init__(self, settings: DockerSettings, client=None):
        self.settings = settings
        self._client = client

    @property
    def client(self):
        if self._client is None:
            try:
                self._client = docker.from_env()
            except DockerException as e:
                raise BackendUnavailable(str(e)) from e
        return self._client

    def open(self, workspace: Workspace) -> DockerSession:
        return DockerSession(self.client, self.settings, workspace)
