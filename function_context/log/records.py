from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class LogKind(str, Enum):
    LOG = "log"
    ERROR = "error"


@dataclass(frozen=True)
class Log:
    """Tagged message whose display string is written as-is."""

    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class TextRecord:
    text: str

    def render(self) -> str:
        return self.text


@dataclass(frozen=True)
class DisplayRecord:
    wrapper: Log

    def render(self) -> str:
        return str(self.wrapper)


@dataclass(frozen=True)
class StructuredRecord:
    value: Any

    def render(self) -> str:
        try:
            return json.dumps(self.value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError, RecursionError):
            # Unserializable, circular, NaN or too deeply nested values degrade to text.
            return _fallback_text(self.value)


def _fallback_text(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return object.__repr__(value)


LogRecord = Union[TextRecord, DisplayRecord, StructuredRecord]


def to_record(message: Any) -> LogRecord:
    """Classify a message; order matters (str, then Log, then anything else)."""
    if isinstance(message, str):
        return TextRecord(message)
    if isinstance(message, Log):
        return DisplayRecord(message)
    return StructuredRecord(message)


def render_line(message: Any) -> str:
    """Resolve a message to one stored line; a trailing newline already present is not doubled."""
    line = to_record(message).render()
    if not line.endswith("\n"):
        line += "\n"
    return line
