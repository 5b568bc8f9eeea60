# src/libman/core/logging/builder.py
"""
Logging builder.

`make_dict_config(settings)` assembles a `logging.config.dictConfig` mapping and
`setup_logging(settings)` applies it. Call `setup_logging` once per process, from the
application lifespan (or a CLI entry point) before anything logs.

  - LOG_TO_STDOUT=True: console (stdout) plus a JSON error stream on stderr.
  - LOG_TO_STDOUT=False: console plus rotating files under LOG_DIR (all records and
    errors only).
  - ENABLE_SQL_LOGGING raises `sqlalchemy.engine` to INFO, which logs every statement.
"""

import logging
import logging.config
from pathlib import Path

from libman.config.settings import Settings
from libman.utils.project import get_project_name
from .filters import RedactFilter, RequestIdFilter
from .formatters import ColorFormatter, JsonFormatter
from .handlers import (
    get_console_handler,
    get_error_console_handler,
    get_error_file_handler,
    get_file_handler,
)

STANDARD_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(message)s"


def make_dict_config(settings: Settings) -> dict:
    handlers: dict[str, dict] = {"console": get_console_handler(settings)}
    if not settings.LOG_TO_STDOUT and settings.LOG_DIR:
        handlers["file"] = get_file_handler(settings)
        handlers["error_file"] = get_error_file_handler(settings)
    else:
        handlers["error_console"] = get_error_console_handler(settings)

    handler_names = list(handlers.keys())

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "()": ColorFormatter if settings.LOG_FORMAT == "text" else logging.Formatter,
                "format": STANDARD_FORMAT,
            },
            "json": {
                "()": JsonFormatter,
                "env": settings.ENV,
                "service": get_project_name(),
            },
        },
        "filters": {
            "request_id": {"()": RequestIdFilter},
            "redact": {"()": RedactFilter},
        },
        "handlers": handlers,
        "loggers": {
            "": {
                "handlers": handler_names,
                "level": settings.LOG_LEVEL,
            },
            "uvicorn.error": {
                "level": settings.LOG_LEVEL,
                "handlers": handler_names,
                "propagate": False,
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": ["console"],
                "propagate": False,
            },
            "sqlalchemy.engine": {
                "level": "INFO" if settings.ENABLE_SQL_LOGGING else "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }


def setup_logging(settings: Settings) -> None:
    if not settings.LOG_TO_STDOUT and settings.LOG_DIR:
        Path(settings.LOG_DIR).mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(make_dict_config(settings))

    # records logged straight on the root logger still get a request_id
    logging.getLogger().addFilter(RequestIdFilter())
