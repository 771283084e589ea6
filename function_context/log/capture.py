"""Process-wide capture of native stdout/stderr output for one invocation.

While a session is active, ``sys.stdout`` and ``sys.stderr`` (and any
stdlib logging handler bound to them) write into pipes. Two drain workers
copy each pipe into memory until end-of-stream; teardown hands the
collected text to the owning sink as native-origin log and error lines.

Only Python-level streams are swapped. Output written straight to file
descriptors 1 and 2 (C extensions, child processes) is not captured.
"""

from __future__ import annotations

import logging
import os
import sys
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from typing import IO, TYPE_CHECKING, Iterator

import structlog

from function_context.errors import CaptureError
from function_context.log.records import LogKind

if TYPE_CHECKING:
    from function_context.log.sink import LogSink

_READ_CHUNK_SIZE = 64 * 1024

_IDLE = "idle"
_ACTIVE = "active"
_CLOSED = "closed"

# Held for the whole lifetime of the one active session in this process.
_SESSION_LOCK = threading.Lock()

logger = structlog.get_logger(__name__)


def _drain(read_fd: int) -> str:
    chunks: list[bytes] = []
    with os.fdopen(read_fd, "rb", buffering=0) as reader:
        while True:
            chunk = reader.read(_READ_CHUNK_SIZE)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks).decode("utf-8", errors="replace")


def _open_pipes(count: int) -> list[tuple[int, int]]:
    pipes: list[tuple[int, int]] = []
    try:
        for _ in range(count):
            pipes.append(os.pipe())
    except OSError as exc:
        for read_fd, write_fd in pipes:
            os.close(read_fd)
            os.close(write_fd)
        raise CaptureError("could not prepare log capturing") from exc
    return pipes


def _pipe_writer(write_fd: int) -> IO[str]:
    return os.fdopen(write_fd, "w", buffering=1, encoding="utf-8", errors="backslashreplace")


def _stream_handlers() -> Iterator[logging.StreamHandler]:
    loggers = [logging.getLogger()]
    loggers.extend(
        candidate for candidate in list(logging.Logger.manager.loggerDict.values()) if isinstance(candidate, logging.Logger)
    )
    seen: set[int] = set()
    for candidate in loggers:
        for handler in candidate.handlers:
            if isinstance(handler, logging.StreamHandler) and id(handler) not in seen:
                seen.add(id(handler))
                yield handler


class StreamCapture:
    """Single-use capture session owned by one LogSink."""

    def __init__(self, sink: LogSink) -> None:
        self._sink = sink
        self._state = _IDLE
        self._original_stdout: IO[str] | None = None
        self._original_stderr: IO[str] | None = None
        self._writers: dict[LogKind, IO[str]] = {}
        self._drains: dict[LogKind, Future[str]] = {}
        self._executor: ThreadPoolExecutor | None = None
        self._handlers: list[tuple[logging.StreamHandler, IO[str]]] = []

    @property
    def active(self) -> bool:
        return self._state == _ACTIVE

    @property
    def closed(self) -> bool:
        return self._state == _CLOSED

    def activate(self) -> None:
        if self._state == _CLOSED:
            raise CaptureError("capture session was already torn down")
        if self._state == _ACTIVE:
            raise CaptureError("capture session is already active")
        if not _SESSION_LOCK.acquire(blocking=False):
            raise CaptureError("another capture session is already active")

        try:
            (out_read, out_write), (err_read, err_write) = _open_pipes(2)
        except CaptureError:
            _SESSION_LOCK.release()
            logger.error("native_capture.activate_failed", invocation_id=self._sink.id)
            raise

        # Readers start before anything can write, so a full pipe always has a consumer.
        self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="native-log-drain")
        self._drains = {
            LogKind.LOG: self._executor.submit(_drain, out_read),
            LogKind.ERROR: self._executor.submit(_drain, err_read),
        }
        self._writers = {
            LogKind.LOG: _pipe_writer(out_write),
            LogKind.ERROR: _pipe_writer(err_write),
        }

        logger.debug("native_capture.activated", invocation_id=self._sink.id)

        self._original_stdout = sys.stdout
        self._original_stderr = sys.stderr
        for handler in _stream_handlers():
            if handler.stream is self._original_stdout:
                target = self._writers[LogKind.LOG]
            elif handler.stream is self._original_stderr:
                target = self._writers[LogKind.ERROR]
            else:
                continue
            self._handlers.append((handler, handler.stream))
            handler.setStream(target)

        sys.stdout = self._writers[LogKind.LOG]
        sys.stderr = self._writers[LogKind.ERROR]

        self._state = _ACTIVE
        self._sink.native_capture_active = True

    def deactivate(self) -> None:
        if self._state != _ACTIVE:
            logger.warning("native_capture.deactivate_ignored", state=self._state, invocation_id=self._sink.id)
            return

        try:
            for writer in self._writers.values():
                writer.flush()
        finally:
            self._restore_streams()
            for writer in self._writers.values():
                writer.close()

        try:
            buffers = {kind: drain.result() for kind, drain in self._drains.items()}
        finally:
            if self._executor is not None:
                self._executor.shutdown(wait=True)
            self._state = _CLOSED
            self._sink.native_capture_active = False
            _SESSION_LOCK.release()

        logger.debug(
            "native_capture.deactivated",
            invocation_id=self._sink.id,
            log_chars=len(buffers[LogKind.LOG]),
            error_chars=len(buffers[LogKind.ERROR]),
        )

        for kind in (LogKind.LOG, LogKind.ERROR):
            if buffers[kind]:
                self._sink.write(buffers[kind], kind, native=True)

    def _restore_streams(self) -> None:
        for handler, stream in reversed(self._handlers):
            handler.setStream(stream)
        self._handlers.clear()
        sys.stdout = self._original_stdout
        sys.stderr = self._original_stderr


@contextmanager
def capture_native_output(sink: LogSink) -> Iterator[StreamCapture]:
    """Redirect native output into ``sink`` for the duration of the block."""
    capture = sink.native_capture()
    capture.activate()
    try:
        yield capture
    finally:
        capture.deactivate()
