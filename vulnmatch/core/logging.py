"""Logging setup for vulnmatch: structlog events rendered through stdlib handlers.

Environment:
    VULNMATCH_LOG_LEVEL   level for vulnmatch loggers (default INFO)
    VULNMATCH_LOG_FORMAT  ``console`` or ``json`` (default console)

Output goes to stderr so that CLI commands can print JSON on stdout.
"""

from __future__ import annotations

import logging
import logging.config
import os
from typing import Any

import structlog

# Driver and ORM chatter stays at WARNING whatever the vulnmatch level is.
_LIBRARY_LEVELS = {
    "sqlalchemy.engine": "WARNING",
    "asyncpg": "WARNING",
}


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def _dict_config(
    level: str,
    pre_chain: list[structlog.types.Processor],
    renderer: structlog.types.Processor,
) -> dict[str, Any]:
    loggers: dict[str, dict[str, Any]] = {"vulnmatch": {"level": level}}
    loggers.update({name: {"level": lvl} for name, lvl in _LIBRARY_LEVELS.items()})
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "vulnmatch": {
                "()": structlog.stdlib.ProcessorFormatter,
                "foreign_pre_chain": pre_chain,
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
                "formatter": "vulnmatch",
            },
        },
        "root": {"handlers": ["stderr"], "level": level},
        "loggers": loggers,
    }


def setup_logging(level: str | None = None) -> None:
    """Route structlog through stdlib logging.

    An explicit *level* (the CLI's ``--verbose``) wins over ``VULNMATCH_LOG_LEVEL``.
    """
    log_level = (level or os.environ.get("VULNMATCH_LOG_LEVEL", "INFO")).upper()
    log_format = os.environ.get("VULNMATCH_LOG_FORMAT", "console").lower()

    pre_chain = _pre_chain()
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logging.config.dictConfig(_dict_config(log_level, pre_chain, _renderer(log_format)))
