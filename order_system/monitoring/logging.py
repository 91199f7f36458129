"""
Structured logging for the order system.

Every module logs event names with key/value context:

    logger.info("stock_reserved", product_id=5, quantity=1, remaining=4)

setup_logging() routes those events through structlog into the stdlib root
logger, rendered either as JSON lines (python-json-logger) or as readable
console lines.
"""
import logging
import sys
from typing import Any, Callable, Optional

import structlog
from pythonjsonlogger import jsonlogger

from order_system.config import Settings, get_settings

Processor = Callable[[Any, str, dict[str, Any]], dict[str, Any]]


def app_context_processor(settings: Settings) -> Processor:
    """Build a processor that stamps app name and environment onto each event."""

    def add_app_context(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict["app_name"] = settings.app_name
        event_dict["app_env"] = settings.app_env
        return event_dict

    return add_app_context


def setup_logging(settings: Optional[Settings] = None, stream: Any = None) -> None:
    """
    Configure structlog and the root logger.

    Args:
        settings: Defaults to get_settings()
        stream: Where log lines go, defaults to stderr
    """
    settings = settings or get_settings()
    json_output = settings.log_format == "json"

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if json_output:
        processors += [app_context_processor(settings), structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    if json_output:
        formatter: logging.Formatter = jsonlogger.JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"asctime": "@timestamp", "levelname": "level", "name": "logger"},
        )
    else:
        formatter = logging.Formatter("%(message)s")
    handler.setFormatter(formatter)

    # One handler on the root logger, replacing whatever was there
    root = logging.getLogger()
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, settings.log_level))

    structlog.get_logger(__name__).debug(
        "logging_configured",
        log_level=settings.log_level,
        log_format=settings.log_format,
        app_env=settings.app_env,
    )


def get_logger(name: str) -> Any:
    """Named structlog logger."""
    return structlog.get_logger(name)
