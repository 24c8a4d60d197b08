"""Structured logging for a replication run.

Every record, structlog or stdlib, leaves through one handler on the root
logger.  Console output is local-time and coloured only on a terminal;
JSON output is UTC with tracebacks rendered as data.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog
from structlog.types import Processor

CONSOLE_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    *,
    json: bool = False,
    level: str = "INFO",
    stream: TextIO | None = None,
) -> logging.Handler:
    """Route structlog and stdlib logging to *stream* and return the handler.

    Parameters
    ----------
    json:
        Emit JSON lines instead of the console format.
    level:
        Root log level name, case-insensitive.
    stream:
        Defaults to stdout, leaving stderr to the progress bar.
    """
    stream = stream or sys.stdout
    chain = _pre_chain(json=json)

    structlog.configure(
        processors=[*chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *_render_chain(json=json, colors=_is_terminal(stream)),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())
    return handler


def _pre_chain(*, json: bool) -> list[Processor]:
    # Shared by structlog events and stdlib records
    if json:
        stamper = structlog.processors.TimeStamper(fmt="iso", utc=True)
    else:
        stamper = structlog.processors.TimeStamper(fmt=CONSOLE_TIME_FORMAT, utc=False)
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        stamper,
        structlog.processors.StackInfoRenderer(),
    ]


def _render_chain(*, json: bool, colors: bool) -> list[Processor]:
    if json:
        return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    # ConsoleRenderer formats exc_info itself
    return [structlog.dev.ConsoleRenderer(colors=colors)]


def _is_terminal(stream: TextIO) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())
