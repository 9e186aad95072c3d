import logging
import sys
from contextvars import ContextVar
from typing import Optional, TextIO

from pythonjsonlogger import jsonlogger

from sawari.config import settings

# set per request by the trace-id middleware in main
TRACE_ID_CTX: ContextVar[Optional[str]] = ContextVar("trace_id", default=None)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(trace_id)s"

# third-party loggers that drown the reservation logs at INFO
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "passlib")


class TraceIdFilter(logging.Filter):
    def filter(self, record):
        record.trace_id = TRACE_ID_CTX.get(None)
        return True


def build_formatter() -> jsonlogger.JsonFormatter:
    return jsonlogger.JsonFormatter(
        LOG_FORMAT,
        rename_fields={"asctime": "timestamp", "levelname": "level", "name": "logger"},
        static_fields={"service": settings.APP_NAME},
    )


def setup_logging(level: int = logging.INFO, stream: Optional[TextIO] = None) -> logging.Handler:
    """Route every log record to one JSON handler, tagged with the request's trace id."""
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(build_formatter())
    handler.addFilter(TraceIdFilter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]
    if level > logging.DEBUG:
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
    return handler
