from __future__ import annotations

import json
from typing import Any

from function_context.models.schemas import ResponseOutput

JSON_ENCODING_ERROR = "Error encoding JSON."


class ContextResponse:
    """Builds the frozen ResponseOutput returned by a function.

    Every helper funnels into `binary`. A status code of 0 or None means 200,
    missing headers mean an empty mapping.
    """

    def binary(
        self,
        body: bytes,
        status_code: int | None = None,
        headers: dict[str, str] | None = None,
    ) -> ResponseOutput:
        return ResponseOutput(
            body=body,
            status_code=status_code or 200,
            headers=dict(headers) if headers else {},
        )

    def text(self, body: str, status_code: int | None = None, headers: dict[str, str] | None = None) -> ResponseOutput:
        return self.binary(body.encode("utf-8"), status_code=status_code, headers=headers)

    def send(self, body: str, status_code: int | None = None, headers: dict[str, str] | None = None) -> ResponseOutput:
        return self.text(body, status_code=status_code, headers=headers)

    def json(self, body: Any, status_code: int | None = None, headers: dict[str, str] | None = None) -> ResponseOutput:
        merged = dict(headers or {})
        merged["content-type"] = "application/json"

        try:
            payload = json.dumps(body, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError, RecursionError):
            return self.text(JSON_ENCODING_ERROR, status_code=500, headers=merged)

        return self.text(payload, status_code=status_code, headers=merged)

    def empty(self) -> ResponseOutput:
        return self.text("", status_code=204)

    def redirect(self, url: str, status_code: int | None = None, headers: dict[str, str] | None = None) -> ResponseOutput:
        merged = dict(headers or {})
        merged["location"] = url
        return self.text("", status_code=status_code or 301, headers=merged)
