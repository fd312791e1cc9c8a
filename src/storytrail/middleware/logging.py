"""Structured logging configuration with structlog.

Engine modules log through both ``structlog.get_logger()`` and plain
``logging.getLogger(__name__)``. Both are rendered by one processor chain on
the root handler, so stdlib records also carry the ``request_id`` bound by
``RequestIdMiddleware``.
"""

import logging
import sys
from typing import Any

import structlog

from storytrail.config import Settings

# Library loggers that drown out engine events at INFO.
_QUIET_LOGGERS = ("sqlalchemy.engine", "httpx", "httpcore", "aiosqlite")


def _service_context(environment: str) -> structlog.types.Processor:
    def add_service(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:  # noqa: ANN401
        event_dict.setdefault("service", "storytrail")
        event_dict.setdefault("environment", environment)
        return event_dict

    return add_service


def setup_logging(settings: Settings) -> None:
    """Route structlog and stdlib logging to stdout as JSON or console lines."""
    json_output = settings.log_format == "json"
    shared: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        _service_context(settings.environment),
    ]

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    final: list[structlog.types.Processor] = [
        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        final += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        final.append(structlog.dev.ConsoleRenderer())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(foreign_pre_chain=shared, processors=final))

    root = logging.getLogger()
    # Replace a handler from an earlier create_app(); leave foreign ones alone.
    for existing in list(root.handlers):
        if isinstance(existing.formatter, structlog.stdlib.ProcessorFormatter):
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
