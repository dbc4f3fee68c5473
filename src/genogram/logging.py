"""Structlog setup for the genogram editor core.

Modules log through ``structlog.get_logger(__name__)`` and never print.
Hosts call ``configure_logging`` once; until then structlog's defaults apply.
"""
from __future__ import annotations

import logging
from typing import Literal

import structlog

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def configure_logging(level: LogLevel = "INFO", json_output: bool = True) -> None:
    """Route structlog output through the stdlib root logger at ``level``.

    JSON lines by default; ``json_output=False`` renders for a terminal.
    """
    numeric = getattr(logging, level)
    logging.basicConfig(format="%(message)s", level=numeric)
    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="ISO"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric),
        cache_logger_on_first_use=True,
    )
