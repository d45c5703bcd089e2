import logging
import time
from contextvars import ContextVar

# Context variable holding the current request id (or '-' if none)
request_id: ContextVar[str] = ContextVar('request_id', default='-')


class RequestIdFilter(logging.Filter):
    """Inject the current request id from contextvars into log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id.get()
        return True


class _UTCFormatter(logging.Formatter):
    converter = time.gmtime


def configure_logging(level=logging.INFO) -> None:
    """Configure root logging with a request_id-aware formatter.

    - Single StreamHandler, UTC time with milliseconds
    - RequestIdFilter on the handler so %(request_id)s is always available
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    root = logging.getLogger()
    root.setLevel(level)

    handler = logging.StreamHandler()
    fmt = (
        '%(asctime)s.%(msecs)03dZ - %(name)s - %(levelname)s - '
        '[rid=%(request_id)s] - %(message)s'
    )
    handler.setFormatter(_UTCFormatter(fmt=fmt, datefmt='%Y-%m-%dT%H:%M:%S'))
    handler.addFilter(RequestIdFilter())

    # Replace existing handlers to avoid duplicates on reload
    root.handlers = [handler]
