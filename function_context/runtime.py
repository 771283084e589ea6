from __future__ import annotations

import asyncio
import inspect
import traceback
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator

import structlog

from function_context.config import Settings, get_settings
from function_context.context import Context
from function_context.log.capture import capture_native_output
from function_context.log.destinations import DestinationFactory
from function_context.log.sink import LogSink
from function_context.models.schemas import ContextRequest, ResponseOutput
from function_context.observability.logging import configure_logging

MISSING_RETURN_MESSAGE = "Return statement missing. return context.res.empty() if no response is expected."

Handler = Callable[[Context], Any]

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class InvocationResult:
    output: ResponseOutput
    log_id: str
    failure: str | None = None


@contextmanager
def open_invocation(
    request: ContextRequest | None = None,
    *,
    logging_status: str | None = None,
    invocation_id: str | None = None,
    destinations: DestinationFactory | None = None,
    settings: Settings | None = None,
) -> Iterator[Context]:
    """Yield a Context whose sink and capture session are torn down exactly once."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    sink = LogSink(logging_status, invocation_id, destinations=destinations, settings=settings)
    try:
        context = Context(sink, request)
        if sink.enabled and settings.capture_native_logs:
            with capture_native_output(sink):
                yield context
        else:
            yield context
    finally:
        sink.close()


def _call_handler(handler: Handler, context: Context) -> tuple[ResponseOutput, str | None]:
    try:
        output = handler(context)
        if inspect.iscoroutine(output):
            output = asyncio.run(output)
    except Exception as exc:
        context.error(traceback.format_exc())
        return context.res.text("", status_code=500), type(exc).__name__

    if not isinstance(output, ResponseOutput):
        context.error(MISSING_RETURN_MESSAGE)
        return context.res.text("", status_code=500), "missing_return"

    return output, None


def run_invocation(
    handler: Handler,
    request: ContextRequest | None = None,
    *,
    logging_status: str | None = None,
    invocation_id: str | None = None,
    destinations: DestinationFactory | None = None,
    settings: Settings | None = None,
) -> InvocationResult:
    """Run one function invocation and return its response.

    Handler exceptions and missing returns are written to the invocation's
    error stream and turned into an empty 500 response.
    """
    with open_invocation(
        request,
        logging_status=logging_status,
        invocation_id=invocation_id,
        destinations=destinations,
        settings=settings,
    ) as context:
        output, failure = _call_handler(handler, context)
        log_id = context.logger.id

    # Logged after teardown so it never lands in the function's own captured output.
    if failure is not None:
        logger.warning("invocation.failed", log_id=log_id, failure=failure)

    return InvocationResult(output=output, log_id=log_id, failure=failure)
