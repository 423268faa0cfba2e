from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

from app.config import Settings


_CONFIGURED = False


class ServiceContext:
    """Stamps the service resource attributes onto every event.

    The same attributes back the ``service_info`` metric, so log lines and
    scrapes from one instance can be joined.
    """

    def __init__(self, settings: Settings) -> None:
        self.fields = {
            "service_name": settings.service_name,
            "service_version": settings.service_version,
            "service_instance_id": settings.service_instance_id,
            "environment": settings.environment,
        }

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        for key, value in self.fields.items():
            event_dict.setdefault(key, value)
        return event_dict


def _shared_processors(settings: Settings) -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        ServiceContext(settings),
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def build_formatter(settings: Settings) -> structlog.stdlib.ProcessorFormatter:
    """JSON formatter for stdlib records, including fields passed via ``extra=``."""

    foreign_pre_chain: list[Any] = [structlog.stdlib.ExtraAdder(), *_shared_processors(settings)]
    return structlog.stdlib.ProcessorFormatter(
        processor=structlog.processors.JSONRenderer(),
        foreign_pre_chain=foreign_pre_chain,
    )


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(settings: Settings) -> None:
    """Route structlog and stdlib logging (uvicorn included) to JSON on stdout.

    Safe to call multiple times (no-op after first call).
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    level = _resolve_level(settings.log_level)

    structlog.configure(
        processors=[
            *_shared_processors(settings),
            # Let ProcessorFormatter render JSON for stdlib log records too.
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter(settings))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logger = logging.getLogger(name)
        logger.handlers = [handler]
        logger.propagate = False
        logger.setLevel(level)

    _CONFIGURED = True
