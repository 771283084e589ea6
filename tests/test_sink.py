from __future__ import annotations

import re

import pytest

from function_context.config import get_settings
from function_context.errors import LoggerSetupError
from function_context.log.destinations import MemoryDestination, MemoryDestinations
from function_context.log.records import Log, LogKind
from function_context.log.sink import NATIVE_LOGS_ADVISORY, LogSink, generate_id


class _Opaque:
    def __str__(self) -> str:
        return "opaque"


def test_write_resolves_all_message_shapes(sink: LogSink, destinations: MemoryDestinations) -> None:
    sink.write("plain text")
    sink.write(Log("display text"))
    sink.write({"a": 1, "b": [True, None]})
    sink.write(_Opaque())

    assert destinations.get("test-invocation", LogKind.LOG).lines() == [
        "plain text",
        "display text",
        '{"a":1,"b":[true,null]}',
        "opaque",
    ]


def test_write_routes_by_kind(sink: LogSink, destinations: MemoryDestinations) -> None:
    sink.write("to log", LogKind.LOG)
    sink.write("to error", LogKind.ERROR)

    assert destinations.get("test-invocation", LogKind.LOG).lines() == ["to log"]
    assert destinations.get("test-invocation", LogKind.ERROR).lines() == ["to error"]


def test_native_write_emits_advisory_once(sink: LogSink, destinations: MemoryDestinations) -> None:
    sink.write("first", LogKind.LOG, native=True)
    sink.write("second", LogKind.LOG, native=True)
    sink.write("third", LogKind.ERROR, native=True)

    assert destinations.get("test-invocation", LogKind.LOG).lines() == [NATIVE_LOGS_ADVISORY, "first", "second"]
    assert destinations.get("test-invocation", LogKind.ERROR).lines() == ["third"]
    assert sink.includes_native_info is True


def test_structured_write_does_not_trigger_advisory(sink: LogSink, destinations: MemoryDestinations) -> None:
    sink.write("from context.log")
    assert sink.includes_native_info is False
    assert NATIVE_LOGS_ADVISORY not in destinations.get("test-invocation", LogKind.LOG).lines()


def test_close_is_idempotent(sink: LogSink, destinations: MemoryDestinations) -> None:
    sink.write("before close")
    sink.close()
    sink.close()

    log_destination = destinations.get("test-invocation", LogKind.LOG)
    assert sink.enabled is False
    assert log_destination.closed is True
    assert destinations.get("test-invocation", LogKind.ERROR).closed is True

    sink.write("after close")
    assert log_destination.lines() == ["before close"]


def test_disabled_sink_opens_nothing_and_drops_writes(destinations: MemoryDestinations) -> None:
    sink = LogSink("disabled", "ignored-id", destinations=destinations)

    sink.write("dropped")
    sink.close()

    assert sink.enabled is False
    assert sink.id == ""
    assert destinations.created == {}


@pytest.mark.parametrize("status", [None, "", "enabled"])
def test_enabled_statuses(status: str | None, destinations: MemoryDestinations) -> None:
    assert LogSink(status, "abc", destinations=destinations).enabled is True


def test_development_env_uses_fixed_id(monkeypatch: pytest.MonkeyPatch, destinations: MemoryDestinations) -> None:
    monkeypatch.setenv("OPEN_RUNTIMES_ENV", "development")
    get_settings.cache_clear()

    sink = LogSink(destinations=destinations)

    assert sink.id == "dev"
    assert ("dev", LogKind.LOG) in destinations.created


def test_generated_id_is_hex_timestamp_with_padding(destinations: MemoryDestinations) -> None:
    sink = LogSink(destinations=destinations)

    assert re.fullmatch(r"[0-9a-f]{8,}", sink.id)
    assert len(generate_id(7)) == len(generate_id(0)) + 7
    assert generate_id() != generate_id()


def test_default_destinations_are_per_invocation_files() -> None:
    sink = LogSink("enabled", "abc123")
    sink.write("hello")
    sink.write("oops", LogKind.ERROR)
    sink.close()

    logs_path = get_settings().logs_path
    assert (logs_path / "abc123_logs.log").read_text() == "hello\n"
    assert (logs_path / "abc123_errors.log").read_text() == "oops\n"


def test_missing_log_directory_fails_setup(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.setenv("OPEN_RUNTIMES_LOGS_DIR", str(tmp_path / "does-not-exist"))
    get_settings.cache_clear()

    with pytest.raises(LoggerSetupError, match="could not prepare log file"):
        LogSink("enabled", "abc")


def test_partial_setup_failure_closes_opened_destination() -> None:
    opened: list[MemoryDestination] = []

    def factory(invocation_id: str, kind: LogKind) -> MemoryDestination:
        if kind is LogKind.ERROR:
            raise PermissionError("read-only filesystem")
        destination = MemoryDestination()
        opened.append(destination)
        return destination

    with pytest.raises(LoggerSetupError):
        LogSink("enabled", "abc", destinations=factory)

    assert len(opened) == 1
    assert opened[0].closed is True
