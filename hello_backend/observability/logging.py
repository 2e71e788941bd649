from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

import structlog

from hello_backend.config import Settings


UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _renderer(json_output: bool) -> Any:
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def configure_logging(settings: Settings, stream: TextIO | None = None) -> logging.Handler:
    """Route structlog and stdlib records (uvicorn's included) through one handler.

    Level and renderer come from ``LOG_LEVEL`` / ``LOG_JSON``. Calling it again
    replaces the previous handler, so the last call wins.
    """

    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[
            *pre_chain,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_renderer(settings.log_json),
            foreign_pre_chain=pre_chain,
        )
    )

    level = settings.log_level_number
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for name in UVICORN_LOGGERS:
        logger = logging.getLogger(name)
        logger.handlers = [handler]
        logger.propagate = False
        logger.setLevel(level)

    return handler
