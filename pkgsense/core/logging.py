"""Structured logging for pkgsense: structlog rendered through stdlib logging.

Everything goes to stderr; stdout is reserved for the report itself.
"""

from __future__ import annotations

import logging
import logging.config
import os
import sys

import structlog

LEVEL_ENV = "PKGSENSE_LOG_LEVEL"
FORMAT_ENV = "PKGSENSE_LOG_FORMAT"
DEFAULT_LEVEL = "WARNING"

# Chatty at DEBUG/INFO; only their warnings are of interest here.
_QUIET_LOGGERS = ("httpx", "httpcore", "asyncio")


def _resolve_level(level: str | None) -> str:
    name = (level or os.environ.get(LEVEL_ENV) or DEFAULT_LEVEL).upper()
    if not isinstance(logging.getLevelName(name), int):
        raise ValueError(f"{LEVEL_ENV}: unknown log level {name!r}")
    return name


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    if log_format == "console":
        return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    raise ValueError(f"{FORMAT_ENV}: expected 'console' or 'json', got {log_format!r}")


def setup_logging(level: str | None = None) -> None:
    """Configure structlog and stdlib logging.

    *level* (the CLI passes ``DEBUG`` for ``-v``) wins over
    ``PKGSENSE_LOG_LEVEL``; the default is ``WARNING`` so a normal run only
    shows retries, skipped lookups and failed analyzers.
    ``PKGSENSE_LOG_FORMAT`` selects ``console`` (default) or ``json``.
    Invalid values raise ``ValueError`` naming the variable.
    """
    log_level = _resolve_level(level)
    renderer = _renderer(os.environ.get(FORMAT_ENV, "console").lower())

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    loggers = {"pkgsense": {"level": log_level}}
    loggers.update({name: {"level": "WARNING"} for name in _QUIET_LOGGERS})

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "pkgsense": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": shared_processors,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        renderer,
                    ],
                },
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "pkgsense",
                },
            },
            "root": {"handlers": ["stderr"], "level": log_level},
            "loggers": loggers,
        }
    )
