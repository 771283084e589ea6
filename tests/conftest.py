from __future__ import annotations

import logging
import sys
from collections.abc import Iterator

import pytest

from function_context.config import get_settings
from function_context.log.destinations import MemoryDestinations
from function_context.log.sink import LogSink
from function_context.observability.logging import reset_logging


@pytest.fixture(autouse=True)
def test_environment(monkeypatch: pytest.MonkeyPatch, tmp_path) -> Iterator[None]:
    monkeypatch.setenv("OPEN_RUNTIMES_LOGS_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("OPEN_RUNTIMES_ENV", raising=False)
    monkeypatch.delenv("OPEN_RUNTIMES_CAPTURE_NATIVE_LOGS", raising=False)
    monkeypatch.delenv("OPEN_RUNTIMES_LOG_LEVEL", raising=False)
    get_settings.cache_clear()
    get_settings().logs_path.mkdir(parents=True, exist_ok=True)

    stdout, stderr = sys.stdout, sys.stderr
    root_handlers = list(logging.getLogger().handlers)

    yield

    # A failing capture test must not leave the process redirected.
    sys.stdout, sys.stderr = stdout, stderr
    reset_logging()
    logging.getLogger().handlers = root_handlers
    get_settings.cache_clear()


@pytest.fixture
def destinations() -> MemoryDestinations:
    return MemoryDestinations()


@pytest.fixture
def sink(destinations: MemoryDestinations) -> LogSink:
    return LogSink("enabled", "test-invocation", destinations=destinations)
