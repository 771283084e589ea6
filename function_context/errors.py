from __future__ import annotations


class FunctionContextError(Exception):
    """Base class for errors raised while preparing an invocation context."""


class LoggerSetupError(FunctionContextError):
    """A log destination could not be opened; the sink was not constructed."""


class CaptureError(FunctionContextError):
    """Native stream capture could not be activated, or was misused."""
