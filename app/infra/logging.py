"""Structured logging configuration with tenant-aware records."""

import logging
import sys
from contextvars import ContextVar
from typing import Optional
from pythonjsonlogger import jsonlogger
from app.infra.config import config

# Active tenant for the current request (set by the tenant dependency)
current_tenant_id: ContextVar[Optional[str]] = ContextVar("current_tenant_id", default=None)


class TenantLogFilter(logging.Filter):
    """Attach the active tenant id to every record emitted during a request."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "tenant_id"):
            record.tenant_id = current_tenant_id.get()
        return True


def bind_tenant(tenant_id: Optional[str]) -> None:
    """Bind tenant_id to log records of the current context."""
    current_tenant_id.set(tenant_id)


def setup_logging():
    """Setup structured JSON logging."""
    logger = logging.getLogger("app")
    logger.setLevel(logging.DEBUG if config.DEBUG else logging.INFO)

    # Remove existing handlers
    logger.handlers = []

    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(name)s %(levelname)s %(tenant_id)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(TenantLogFilter())
    logger.addHandler(console_handler)

    # Set levels for third-party loggers
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return logger


# Initialize logging
app_logger = setup_logging()
