from __future__ import annotations

from pathlib import Path
from typing import Callable, Protocol

from function_context.log.records import LogKind


class LogDestination(Protocol):
    def write(self, data: bytes) -> None: ...

    def close(self) -> None: ...


DestinationFactory = Callable[[str, LogKind], LogDestination]

_FILE_SUFFIXES = {
    LogKind.LOG: "_logs.log",
    LogKind.ERROR: "_errors.log",
}


def log_file_path(directory: Path, invocation_id: str, kind: LogKind) -> Path:
    return directory / f"{invocation_id}{_FILE_SUFFIXES[kind]}"


class FileDestination:
    """Unbuffered append-only file, one per invocation and kind."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._fh = open(path, "ab", buffering=0)

    def write(self, data: bytes) -> None:
        self._fh.write(data)

    def close(self) -> None:
        self._fh.close()


class MemoryDestination:
    """Keeps everything written in memory; contents stay readable after close."""

    def __init__(self) -> None:
        self._chunks: list[bytes] = []
        self.closed = False

    def write(self, data: bytes) -> None:
        if self.closed:
            raise ValueError("write to closed destination")
        self._chunks.append(data)

    def close(self) -> None:
        self.closed = True

    def getvalue(self) -> bytes:
        return b"".join(self._chunks)

    def lines(self) -> list[str]:
        return self.getvalue().decode("utf-8").splitlines()


def file_destinations(directory: Path) -> DestinationFactory:
    def factory(invocation_id: str, kind: LogKind) -> LogDestination:
        return FileDestination(log_file_path(directory, invocation_id, kind))

    return factory


class MemoryDestinations:
    """Destination factory that remembers what it created, keyed by (id, kind)."""

    def __init__(self) -> None:
        self.created: dict[tuple[str, LogKind], MemoryDestination] = {}

    def __call__(self, invocation_id: str, kind: LogKind) -> LogDestination:
        destination = MemoryDestination()
        self.created[(invocation_id, kind)] = destination
        return destination

    def get(self, invocation_id: str, kind: LogKind) -> MemoryDestination:
        return self.created[(invocation_id, kind)]
