from __future__ import annotations

import json

from pydantic import BaseModel, ConfigDict, Field, field_validator

_BINARY_CONTENT_TYPES = ("application/", "audio/", "font/", "image/", "video/")


class ResponseOutput(BaseModel):
    model_config = ConfigDict(frozen=True)

    body: bytes = b""
    status_code: int = 200
    headers: dict[str, str] = Field(default_factory=dict)


class ContextRequest(BaseModel):
    """Read-only view of the inbound request."""

    model_config = ConfigDict(frozen=True)

    body_binary: bytes = b""
    headers: dict[str, str] = Field(default_factory=dict)
    method: str = "GET"
    url: str = ""
    path: str = "/"
    port: int = 80
    scheme: str = "http"
    host: str = ""
    query_string: str = ""
    query: dict[str, str] = Field(default_factory=dict)

    @field_validator("headers")
    @classmethod
    def _lowercase_header_names(cls, value: dict[str, str]) -> dict[str, str]:
        return {key.lower(): item for key, item in value.items()}

    def body_text(self) -> str:
        return self.body_binary.decode("utf-8", errors="replace")

    def body_raw(self) -> str:
        return self.body_text()

    def body_json(self) -> object:
        try:
            return json.loads(self.body_binary)
        except ValueError as exc:
            raise ValueError("could not parse body into a JSON") from exc

    def body(self) -> object:
        """Body interpreted according to the content-type header."""
        content_type = self.headers.get("content-type", "")

        if content_type == "application/json":
            if not self.body_binary:
                return {}
            try:
                parsed = self.body_json()
            except ValueError:
                return {}
            return parsed if isinstance(parsed, dict) else {}

        if content_type.startswith(_BINARY_CONTENT_TYPES):
            return self.body_binary

        return self.body_text()
