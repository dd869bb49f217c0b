import logging
from logging.config import dictConfig
from typing import Literal

from .request_context import current_request_id

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]
LogFormat = Literal["json", "plain"]

JSON_FORMATTER_CLASS = "pythonjsonlogger.json.JsonFormatter"


class RequestIdFilter(logging.Filter):
    """Stamp each record with the id of the request being served, or "-"."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = current_request_id() or "-"
        return True


def configure_logging(level: LogLevel = "INFO", log_format: LogFormat = "plain") -> None:
    """Configure structured logging across the app."""
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {"request_id": {"()": RequestIdFilter}},
            "formatters": {
                "default": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(message)s",
                },
                "json": {
                    "class": JSON_FORMATTER_CLASS,
                    "format": "%(asctime)s %(levelname)s %(name)s %(request_id)s %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json" if log_format == "json" else "default",
                    "filters": ["request_id"],
                }
            },
            "root": {"handlers": ["console"], "level": level.upper()},
        }
    )

    logging.getLogger("uvicorn").handlers = []
    logging.getLogger("uvicorn.error").handlers = []
    logging.getLogger("uvicorn.access").handlers = []
