"""Logging setup shared by the API, the seed script and the Celery worker."""

import logging
import logging.config
from contextvars import ContextVar

from app.core.config import settings

# request id of the HTTP request being served; "-" outside a request
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


class RequestIdFilter(logging.Filter):
    """Stamps every record with the current request id."""

    def __init__(self, request_id_storage: ContextVar[str] = request_id_var):
        super().__init__()
        self.request_id_storage = request_id_storage

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = self.request_id_storage.get()
        return True


def setup_logging(level: str | None = None) -> None:
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "request_id": {"()": RequestIdFilter},
        },
        "formatters": {
            "default": {
                "format": "%(asctime)s %(levelname)s [%(name)s] [%(request_id)s] %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "filters": ["request_id"],
            },
        },
        "root": {
            "handlers": ["console"],
            "level": (level or settings.LOG_LEVEL).upper(),
        },
        "loggers": {
            # SQL echo stays off unless explicitly raised
            "sqlalchemy.engine": {"level": "WARNING"},
        },
    })
