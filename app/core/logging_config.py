"""
Logging configuration.

INFO and WARNING go to stdout, ERROR and CRITICAL to stderr so the hosting
platform classifies them correctly. Every line carries the request id set by
``RequestIdMiddleware``.
"""
from __future__ import annotations

import logging
import sys
from contextvars import ContextVar

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


class MaxLevelFilter(logging.Filter):
    """Allows only records up to a specified level (inclusive)."""

    def __init__(self, max_level: int):
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno <= self.max_level


class RequestIdFilter(logging.Filter):
    """Stamps each record with the id of the request being served, "-" outside one."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True


def setup_logging(level: str = "INFO") -> None:
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)
    request_id_filter = RequestIdFilter()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.addFilter(MaxLevelFilter(logging.WARNING))
    stdout_handler.setFormatter(formatter)
    stdout_handler.addFilter(request_id_filter)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.ERROR)
    stderr_handler.setFormatter(formatter)
    stderr_handler.addFilter(request_id_filter)

    root_logger.addHandler(stdout_handler)
    root_logger.addHandler(stderr_handler)

    # SQL echo is controlled by APP_DEBUG on the engine itself.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
