import logging
import os
import signal
import subprocess
import tempfile
import time
from contextlib import ExitStack
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .errors import ToolchainError

logger = logging.getLogger(__name__)

POSIX = os.name == 'posix'


def time_millis():
    return int(time.monotonic_ns() / 1000000)


@dataclass
class ProcessOutcome:
    exit_code: Optional[int]
    stdout: str
    stderr: str
    timed_out: bool = False
    output_truncated: bool = False
    duration_ms: int = 0

    @property
    def signal_name(self) -> Optional[str]:
        if self.exit_code is None or self.exit_code >= 0:
            return None
        try:
            return signal.Signals(-self.exit_code).name
        except ValueError:
            return f'signal {-self.exit_code}'


def apply_memory_limit(pid: int, memory_limit_mb: int) -> None:
    """Cap a running child's address space from the parent.

    Set with prlimit right after spawning rather than in a preexec hook,
    which can deadlock the fork while other threads hold locks. Linux only;
    elsewhere the limit is skipped with a warning.
    """
    import resource

    if not hasattr(resource, 'prlimit'):
        logger.warning('memory limit requested but prlimit is unavailable on this platform')
        return
    size_bytes = memory_limit_mb * 1024 * 1024
    try:
        resource.prlimit(pid, resource.RLIMIT_AS, (size_bytes, size_bytes))
    except ProcessLookupError:
        pass


def _read_capped(fh, limit: int) -> Tuple[str, bool]:
    fh.seek(0)
    raw = fh.read(limit + 1)
    return raw[:limit].decode('utf-8', errors='replace'), len(raw) > limit


def kill_process_tree(proc: subprocess.Popen) -> None:
    """SIGKILL the child's whole process group, tolerating an empty group."""
    if POSIX:
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except (ProcessLookupError, PermissionError):
            pass
    elif proc.poll() is None:
        proc.kill()


def run_process(
    argv: List[str],
    cwd: str,
    stdin_path: Optional[str] = None,
    timeout_ms: int = 2000,
    max_output_bytes: int = 1024 * 1024,
    memory_limit_mb: int = 0,
    env: Optional[Dict[str, str]] = None,
) -> ProcessOutcome:
    popen_kwargs = {}
    if POSIX:
        popen_kwargs['start_new_session'] = True
    else:
        popen_kwargs['creationflags'] = subprocess.CREATE_NEW_PROCESS_GROUP

    # stdout/stderr go to unlinked temp files so a chatty child can neither
    # fill a pipe nor our memory
    with ExitStack() as stack:
        out = stack.enter_context(tempfile.TemporaryFile())
        err = stack.enter_context(tempfile.TemporaryFile())
        if stdin_path:
            stdin = stack.enter_context(open(stdin_path, 'rb'))
        else:
            stdin = subprocess.DEVNULL

        start = time_millis()
        try:
            proc = subprocess.Popen(
                argv,
                cwd=cwd,
                stdin=stdin,
                stdout=out,
                stderr=err,
                env=env,
                **popen_kwargs,
            )
        except OSError as e:
            raise ToolchainError(f'cannot start {argv[0]}: {e}') from e
        if POSIX and memory_limit_mb > 0:
            apply_memory_limit(proc.pid, memory_limit_mb)

        timed_out = False
        try:
            proc.wait(timeout=timeout_ms / 1000.0)
        except subprocess.TimeoutExpired:
            timed_out = True
            logger.info(f'pid {proc.pid} exceeded {timeout_ms} ms, killing process group')
            kill_process_tree(proc)
            proc.wait()
        finally:
            # reap anything the child left running in its group
            kill_process_tree(proc)
        duration = time_millis() - start

        stdout, out_truncated = _read_capped(out, max_output_bytes)
        stderr, err_truncated = _read_capped(err, max_output_bytes)

    return ProcessOutcome(
        exit_code=proc.returncode,
        stdout=stdout,
        stderr=stderr,
        timed_out=timed_out,
        output_truncated=out_truncated or err_truncated,
        duration_ms=duration,
    )
