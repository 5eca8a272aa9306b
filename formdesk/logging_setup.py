"""Central logging configuration for the forms service.

One stdout handler on the root logger; every record carries the current
request id (``-`` outside a request) so form and response events can be
correlated with the X-Request-Id header returned to the client.
"""
from __future__ import annotations
import logging
from contextvars import ContextVar
from logging.config import dictConfig

REQUEST_ID: ContextVar[str] = ContextVar("formdesk_request_id", default="-")


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = REQUEST_ID.get()
        return True


def _dict_config(level: str) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"request_id": {"()": RequestIdFilter}},
        "formatters": {
            "default": {"format": "%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s"},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "filters": ["request_id"],
                "stream": "ext://sys.stdout",
            }
        },
        "root": {"level": level, "handlers": ["console"]},
        "loggers": {
            "uvicorn.error": {"level": "INFO", "handlers": ["console"], "propagate": False},
            "uvicorn.access": {"level": "INFO", "handlers": ["console"], "propagate": False},
            # Server selection and heartbeat chatter
            "pymongo": {"level": "WARNING"},
        },
    }


def configure_logging(level: str = "INFO") -> None:
    """Install the console handler once.

    Returns early when the root logger already has handlers, as under
    reloaders and pytest's log capture.
    """
    root = logging.getLogger()
    if root.handlers:
        return
    dictConfig(_dict_config(level.upper()))


__all__ = ["REQUEST_ID", "RequestIdFilter", "configure_logging"]
