"""
Service entry point for the code runner.
"""

import uvicorn

from .config import ServiceSettings
from .logging import configure_logging


def main():
    settings = ServiceSettings.from_env()
    configure_logging(settings.log_level)
    uvicorn.run(
        'coderunner.main:app',
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
    )


if __name__ == '__main__':
    main()
