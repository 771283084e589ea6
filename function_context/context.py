from __future__ import annotations

from typing import Any

from function_context.log.records import LogKind
from function_context.log.sink import LogSink
from function_context.models.schemas import ContextRequest
from function_context.response import ContextResponse


class Context:
    """What a function receives on every invocation: req, res, log and error."""

    def __init__(self, logger: LogSink, req: ContextRequest | None = None) -> None:
        self.logger = logger
        self.req = req or ContextRequest()
        self.res = ContextResponse()

    def log(self, message: Any) -> None:
        self.logger.write(message, LogKind.LOG, False)

    def error(self, message: Any) -> None:
        self.logger.write(message, LogKind.ERROR, False)
