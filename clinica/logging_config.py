"""Logging estructurado con structlog sobre el logging estándar."""
from __future__ import annotations

import logging
import sys

import structlog
from structlog.stdlib import BoundLogger

from .config import settings

_configured = False


def configure_logging(level: str | None = None, json: bool | None = None) -> None:
    """Configura structlog una sola vez (idempotente)."""
    global _configured
    if _configured:
        return

    use_json = settings.log_json if json is None else json
    renderer = structlog.processors.JSONRenderer() if use_json else structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, (level or settings.log_level).upper(), logging.INFO),
    )
    # SQLAlchemy ya loguea por su cuenta si CLINICA_DB_ECHO está activo
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)
    _configured = True


def get_logger(name: str) -> BoundLogger:
    return structlog.get_logger(name)
