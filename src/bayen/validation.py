"""Schema checks for outgoing requests and incoming responses.

Both functions are pure: they inspect their input and either return or raise
``SchemaError`` naming the offending field.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from bayen.errors import SchemaError
from bayen.models import AssistantResponse, ChatRequest, Message, Model, Role

_MODELS = {m.value for m in Model}
_ROLES = {r.value for r in Role}


def _literal(value: Any) -> Any:
    # str-based enum members compare equal to their value
    return value.value if isinstance(value, (Model, Role)) else value


def validate_request(req: ChatRequest) -> None:
    """Raise ``SchemaError`` unless *req* matches the request contract."""
    model = _literal(req.model)
    if not isinstance(model, str) or model not in _MODELS:
        raise SchemaError("model", f"must be one of {sorted(_MODELS)}, got {model!r}")

    if not isinstance(req.messages, tuple):
        raise SchemaError("messages", "must be a sequence of messages")
    if not req.messages:
        raise SchemaError("messages", "must contain at least one message")

    for i, msg in enumerate(req.messages):
        if not isinstance(msg, Message):
            raise SchemaError(
                f"messages[{i}]", "expected a Message or a {role, content} mapping"
            )
        role = _literal(msg.role)
        if not isinstance(role, str) or role not in _ROLES:
            raise SchemaError(f"messages[{i}].role", f"unknown role {role!r}")
        if not isinstance(msg.content, str) or not msg.content.strip():
            raise SchemaError(f"messages[{i}].content", "must be non-empty text")

    if _literal(req.messages[0].role) != Role.USER.value:
        raise SchemaError("messages[0].role", "first message must have role 'user'")

    if not isinstance(req.structured_output, bool):
        raise SchemaError("structured_output", "must be a boolean")

    if req.max_tokens is not None:
        # bool is an int subclass
        if isinstance(req.max_tokens, bool) or not isinstance(req.max_tokens, int):
            raise SchemaError("max_tokens", "must be an integer")
        if req.max_tokens <= 0:
            raise SchemaError("max_tokens", "must be positive")


def _field_path(loc: tuple[int | str, ...]) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else part
    return path or "body"


def _parse_structured(text: str) -> AssistantResponse:
    try:
        data = json.loads(text)
    except ValueError as e:
        raise SchemaError("body", f"not valid JSON ({e})") from e
    if not isinstance(data, dict):
        raise SchemaError("body", f"expected a JSON object, got {type(data).__name__}")

    try:
        return AssistantResponse.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        raise SchemaError(_field_path(tuple(first["loc"])), first["msg"]) from e


def _parse_plain(text: str) -> str:
    stripped = text.strip()
    if stripped.startswith(('"', "{")):
        try:
            data = json.loads(stripped)
        except ValueError:
            data = text
        if isinstance(data, dict):
            raise SchemaError("body", "expected plain text, got a JSON object")
        if isinstance(data, str):
            text = data
    if not text.strip():
        raise SchemaError("body", "empty response")
    return text


def validate_response(body: str | bytes, structured: bool) -> AssistantResponse | str:
    """Parse a response body according to the ``structured_output`` flag sent.

    Structured mode returns an ``AssistantResponse``; plain mode returns the
    markdown text. A JSON-encoded string body is unwrapped in plain mode.
    """
    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SchemaError("body", "not valid UTF-8") from e
    if structured:
        return _parse_structured(body)
    return _parse_plain(body)
