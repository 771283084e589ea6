from __future__ import annotations

import logging
import sys
from typing import IO, Any

import structlog


_CONFIGURED = False
_HANDLER: logging.Handler | None = None
_PREVIOUS_LEVEL: int | None = None


def _shared_processors() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]


def configure_logging(level: int | str = logging.INFO, stream: IO[str] | None = None) -> None:
    """Route runtime diagnostics and stdlib records through one JSON handler.

    Called on every invocation; only the first call does anything. The
    handler is bound to the current stdout, so an active capture session
    retargets it like any other stdout handler.
    """

    global _CONFIGURED, _HANDLER, _PREVIOUS_LEVEL
    if _CONFIGURED:
        return

    shared = _shared_processors()
    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=shared,
        )
    )

    root = logging.getLogger()
    _PREVIOUS_LEVEL = root.level
    root.addHandler(handler)
    root.setLevel(level.upper() if isinstance(level, str) else level)

    _HANDLER = handler
    _CONFIGURED = True


def reset_logging() -> None:
    """Undo configure_logging (used by tests)."""

    global _CONFIGURED, _HANDLER, _PREVIOUS_LEVEL
    root = logging.getLogger()
    if _HANDLER is not None:
        root.removeHandler(_HANDLER)
        _HANDLER = None
    if _PREVIOUS_LEVEL is not None:
        root.setLevel(_PREVIOUS_LEVEL)
        _PREVIOUS_LEVEL = None
    structlog.reset_defaults()
    _CONFIGURED = False
