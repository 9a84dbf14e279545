"""Loguru logging configuration for the relay.

Every record carries a ``cid`` extra naming the conversation it belongs to
(``"-"`` outside a chat turn).  The chat turn use case binds it with
``conversation_context()``, so store and client logs emitted during a turn
are tagged without passing the ID around.

Records from stdlib loggers (uvicorn, fastapi, openai, httpx) are routed
through loguru and pick up the same ``cid``.
"""

from __future__ import annotations

import logging
import sys
from contextlib import AbstractContextManager

from loguru import logger

NO_CONVERSATION = "-"

_INTERCEPTED = ("uvicorn", "uvicorn.access", "uvicorn.error", "fastapi", "openai", "httpx")

_TEXT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>cid={extra[cid]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


class InterceptHandler(logging.Handler):
    """Forward stdlib logging records to loguru, keeping the caller's location."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back  # type: ignore[assignment]
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def conversation_context(cid: str) -> AbstractContextManager:
    """Tag every record logged inside the ``with`` block with *cid*."""
    return logger.contextualize(cid=cid)


def setup_logging(*, level: str = "INFO", json: bool = False) -> None:
    """Install the relay's stderr sink and take over stdlib logging.

    Safe to call more than once; each call replaces the previous sinks.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ...).
        json: Emit one JSON object per record (``cid`` lands under
            ``record.extra``) instead of coloured text.
    """
    logger.remove()
    logger.configure(extra={"cid": NO_CONVERSATION})

    if json:
        logger.add(sys.stderr, level=level, serialize=True)
    else:
        logger.add(sys.stderr, level=level, format=_TEXT_FORMAT, colorize=True)

    intercept = InterceptHandler()
    for name in _INTERCEPTED:
        stdlib_logger = logging.getLogger(name)
        stdlib_logger.handlers = [intercept]
        stdlib_logger.propagate = False

    logging.root.handlers = [intercept]
    logging.root.setLevel(logging.DEBUG)
