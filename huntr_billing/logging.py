"""Structured logging helpers."""

from __future__ import annotations

import logging

import structlog

from huntr_billing.config import BillingSettings, get_settings


def configure_logging(settings: BillingSettings | None = None, *, level: int = logging.INFO) -> None:
    """Route structlog output through stdout; readable in ``dev``, JSON elsewhere."""

    settings = settings or get_settings()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[logging.StreamHandler()],
    )
    processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]
    if settings.environment == "dev":
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.extend(
            [
                structlog.processors.dict_tracebacks,
                structlog.processors.JSONRenderer(),
            ]
        )
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.bind_contextvars(environment=settings.environment)


logger = structlog.get_logger("huntr_billing")

__all__ = ["configure_logging", "logger"]
