from __future__ import annotations

import secrets
import time
from typing import Any

import structlog

from function_context.config import Settings, get_settings
from function_context.errors import LoggerSetupError
from function_context.log.capture import StreamCapture
from function_context.log.destinations import DestinationFactory, LogDestination, file_destinations
from function_context.log.records import LogKind, render_line

NATIVE_LOGS_ADVISORY = "Native logs detected. Use context.log() or context.error() for better experience."
DEV_INVOCATION_ID = "dev"

_HEX_CHOICES = "0123456789abcdef"

logger = structlog.get_logger(__name__)


def generate_id(padding: int = 7) -> str:
    """Hex microsecond timestamp followed by `padding` random hex characters."""
    timestamp = time.time_ns() // 1000
    suffix = "".join(secrets.choice(_HEX_CHOICES) for _ in range(max(padding, 0)))
    return f"{timestamp:x}{suffix}"


def is_enabled_status(status: str | None) -> bool:
    return status is None or status == "" or status == "enabled"


class LogSink:
    """Append-only log and error channel for a single invocation.

    Both destinations are opened on construction and addressed by the
    invocation id. A disabled sink opens nothing and drops every write.
    """

    def __init__(
        self,
        status: str | None = None,
        invocation_id: str | None = None,
        *,
        destinations: DestinationFactory | None = None,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.enabled = is_enabled_status(status)
        self.includes_native_info = False
        self.native_capture_active = False
        self._capture: StreamCapture | None = None
        self._destinations: dict[LogKind, LogDestination] = {}

        if not self.enabled:
            self._id = ""
            return

        if invocation_id:
            self._id = invocation_id
        elif settings.is_development:
            self._id = DEV_INVOCATION_ID
        else:
            self._id = generate_id(7)

        factory = destinations or file_destinations(settings.logs_path)
        try:
            for kind in (LogKind.LOG, LogKind.ERROR):
                self._destinations[kind] = factory(self._id, kind)
        except OSError as exc:
            for opened in self._destinations.values():
                opened.close()
            self._destinations.clear()
            logger.error("log_sink.setup_failed", invocation_id=self._id, error=str(exc))
            raise LoggerSetupError("could not prepare log file") from exc

    @property
    def id(self) -> str:
        return self._id

    def write(self, message: Any, kind: LogKind = LogKind.LOG, native: bool = False) -> None:
        if not self.enabled:
            return

        if native and not self.includes_native_info:
            self.includes_native_info = True
            self.write(NATIVE_LOGS_ADVISORY, kind, native)

        self._destinations[kind].write(render_line(message).encode("utf-8"))

    def native_capture(self) -> StreamCapture:
        """Return this sink's capture session, creating it on first use."""
        if self._capture is None:
            self._capture = StreamCapture(self)
        return self._capture

    def close(self) -> None:
        if not self.enabled:
            return

        # Captured output must be flushed while writes are still accepted.
        if self._capture is not None and self._capture.active:
            self._capture.deactivate()

        self.enabled = False
        for destination in self._destinations.values():
            destination.close()
