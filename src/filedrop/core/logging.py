"""Logging setup: JSON lines for Cloud Logging, plain text for local runs."""

import contextvars
import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict

# URI of the object whose record is being processed, attached to every log line
object_uri_context: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "object_uri", default=None
)

LOCAL_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRIBUTES = frozenset(vars(logging.makeLogRecord({}))) | {"message", "taskName"}

_SERVER_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error")


def _utc_timestamp(created: float) -> str:
    return datetime.fromtimestamp(created, tz=timezone.utc).isoformat().replace("+00:00", "Z")


class CloudLoggingFormatter(logging.Formatter):
    """Renders a record as one JSON object per line.

    Fields passed through ``extra`` become top-level keys, which Cloud Logging
    indexes as ``jsonPayload`` fields.
    """

    SEVERITY_MAP = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARNING",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
    }

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": _utc_timestamp(record.created),
            "severity": self.SEVERITY_MAP.get(record.levelno, "DEFAULT"),
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        object_uri = object_uri_context.get()
        if object_uri:
            entry["object_uri"] = object_uri

        entry.update(
            (key, value) for key, value in vars(record).items() if key not in _RECORD_ATTRIBUTES
        )

        if record.exc_info:
            entry.update(self._exception_fields(record.exc_info))

        return json.dumps(entry, default=str, ensure_ascii=False)

    @staticmethod
    def _exception_fields(exc_info) -> Dict[str, str]:
        exc_type, exc_value, _ = exc_info
        return {
            "exception": "".join(traceback.format_exception(*exc_info)),
            "exception_type": exc_type.__name__ if exc_type else "Unknown",
            "exception_message": str(exc_value) if exc_value else "",
        }


def setup_logging() -> None:
    """Route application and uvicorn logs to stdout.

    Local runs log at DEBUG in plain text; every other environment logs JSON
    at ``LOG_LEVEL``.
    """
    from filedrop.core.config import settings

    if settings.is_local:
        level = logging.DEBUG
        formatter: logging.Formatter = logging.Formatter(LOCAL_FORMAT)
    else:
        level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
        formatter = CloudLoggingFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    for name in (None, *_SERVER_LOGGERS):
        target = logging.getLogger(name)
        target.setLevel(level)
        target.handlers.clear()
        target.addHandler(handler)
        if name is not None:
            target.propagate = False
