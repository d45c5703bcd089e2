import logging
import os
import shutil
import tempfile
import uuid
from typing import Optional

from .errors import WorkspaceError

logger = logging.getLogger(__name__)

STDIN_NAME = 'input.txt'


class Workspace:
    """Scratch directory owned by a single execution request.

    The directory name carries a random UUID so concurrent requests never
    share files. Everything under it is removed on close.
    """

    def __init__(self, root: Optional[str] = None):
        self.id = uuid.uuid4().hex
        try:
            self.path = tempfile.mkdtemp(prefix=f'exec_{self.id}_', dir=root)
        except OSError as e:
            raise WorkspaceError(f'cannot create workspace: {e}') from e
        self.stdin_path: Optional[str] = None
        self._closed = False

    def __enter__(self) -> 'Workspace':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def file(self, name: str) -> str:
        return os.path.join(self.path, name)

    def write(self, name: str, text: str) -> str:
        fn = self.file(name)
        try:
            with open(fn, 'w', encoding='utf-8', newline='') as fh:
                fh.write(text)
        except (OSError, UnicodeError) as e:
            raise WorkspaceError(f'cannot write {name}: {e}') from e
        return fn

    def write_source(self, name: str, code: str) -> str:
        return self.write(name, code)

    def write_stdin(self, text: str) -> Optional[str]:
        if text:
            self.stdin_path = self.write(STDIN_NAME, text)
        return self.stdin_path

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            shutil.rmtree(self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f'failed to remove workspace {self.path}: {e}')
