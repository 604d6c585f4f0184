from __future__ import annotations

import logging
import sys
from typing import Any

import orjson
import structlog


def _json_serializer(obj: Any, default: Any) -> str:
    return orjson.dumps(obj, default=default).decode("utf-8")


def _renderer(json: bool) -> Any:
    if json:
        return structlog.processors.JSONRenderer(serializer=_json_serializer)
    # step-by-step sessions are easier to follow as aligned console lines
    return structlog.dev.ConsoleRenderer(colors=False)


def configure_logging(*, level: str = "INFO", json: bool = True) -> None:
    """
    Configure structlog for the process.

    Every session log line carries session_id/component once the controller
    has bound them (see bind_context). Safe to call again, e.g. per app
    instance in tests; the last call wins.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json:
        processors.append(structlog.processors.dict_tracebacks)
    processors.append(_renderer(json))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=True,
    )

    # stdlib loggers (uvicorn, fastapi) share stdout
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def bind_context(**values: Any) -> None:
    """
    Bind session_id/component to every following log line of this context.
    """
    structlog.contextvars.bind_contextvars(**values)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
