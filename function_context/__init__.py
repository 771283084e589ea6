"""Execution context handed to functions running inside the runtime."""

from function_context.context import Context
from function_context.log import Log, LogKind, LogSink, StreamCapture, capture_native_output
from function_context.models.schemas import ContextRequest, ResponseOutput
from function_context.response import ContextResponse
from function_context.runtime import InvocationResult, open_invocation, run_invocation

__all__ = [
    "Context",
    "ContextRequest",
    "ContextResponse",
    "InvocationResult",
    "Log",
    "LogKind",
    "LogSink",
    "ResponseOutput",
    "StreamCapture",
    "capture_native_output",
    "open_invocation",
    "run_invocation",
]
