"""
structlog configuration for the telematics engines

Records carry the service name and environment of the process plus any
context bound with ``structlog.contextvars`` (a running session binds
``driver_id``, and engine tasks started under it inherit the binding).
"""

import logging
import sys
from typing import Optional

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from telematics_core.config import TelematicsSettings


def _stamp_service(service_name: str, environment: str) -> Processor:
    def stamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", service_name)
        event_dict.setdefault("environment", environment)
        return event_dict

    return stamp


def _renderer(log_format: str) -> Processor:
    if log_format == "text":
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def setup_logging(
    service_name: Optional[str] = None,
    settings: Optional[TelematicsSettings] = None,
) -> structlog.BoundLogger:
    """Route engine logs through stdlib logging on stdout.

    ``service_name`` overrides ``settings.service_name`` on every record.
    Output is one JSON object per line unless ``settings.log_format`` is
    ``"text"``.
    """
    settings = settings or TelematicsSettings()
    service_name = service_name or settings.service_name

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=settings.log_level.upper(),
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _stamp_service(service_name, settings.environment),
        _renderer(settings.log_format),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger(service_name)


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    return structlog.get_logger(name)
