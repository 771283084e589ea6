"""Per-invocation log channel and native stdout/stderr capture."""

from function_context.log.capture import StreamCapture, capture_native_output
from function_context.log.records import Log, LogKind
from function_context.log.sink import LogSink

__all__ = ["Log", "LogKind", "LogSink", "StreamCapture", "capture_native_output"]
