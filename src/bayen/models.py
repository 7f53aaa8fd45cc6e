"""Request and response types for the ``/chat`` endpoint.

Design notes:
- Request types are frozen dataclasses and do not validate on construction,
  so an invalid request can still be built and rejected by
  ``validation.validate_request`` with a field-level ``SchemaError``.
- Response types are frozen pydantic models; ``validation.validate_response``
  parses into them.
- Nothing here is persisted; every value lives for a single call.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeAlias

from pydantic import BaseModel, ConfigDict, StrictInt, StrictStr, field_validator


class Model(str, Enum):
    """Models served by the API."""

    PRO = "bayen-pro"
    LITE = "bayen-lite"


class Role(str, Enum):
    """Author of a chat message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


def _wire(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


@dataclass(frozen=True)
class Message:
    """A single chat turn."""

    role: Role | str
    content: str

    def to_dict(self) -> dict[str, Any]:
        return {"role": _wire(self.role), "content": self.content}


def _as_message(item: Any) -> Any:
    if isinstance(item, Mapping) and set(item) == {"role", "content"}:
        return Message(role=item["role"], content=item["content"])
    return item


@dataclass(frozen=True)
class ChatRequest:
    """Body of a ``POST /chat`` call.

    ``messages`` accepts ``Message`` instances or ``{"role", "content"}``
    mappings and is stored as a tuple. Anything else is kept as given and
    left for ``validate_request`` to reject.
    """

    model: Model | str
    messages: Sequence[Message] = field(default_factory=tuple)
    structured_output: bool = True
    max_tokens: int | None = None

    def __post_init__(self):
        messages = self.messages
        if messages is None:
            messages = ()
        elif isinstance(messages, Iterable) and not isinstance(messages, (str, bytes, Mapping)):
            messages = tuple(_as_message(m) for m in messages)
        object.__setattr__(self, "messages", messages)

    def to_payload(self) -> dict[str, Any]:
        """Wire representation. ``structured_output`` is always sent explicitly."""
        payload: dict[str, Any] = {
            "model": _wire(self.model),
            "messages": [m.to_dict() for m in self.messages],
            "structured_output": self.structured_output,
        }
        if self.max_tokens is not None:
            payload["max_tokens"] = self.max_tokens
        return payload


class ResponseMetadata(BaseModel):
    """Envelope metadata of a structured answer."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: StrictStr
    model: StrictStr
    created: StrictInt  # Unix epoch seconds
    object: StrictStr
    title: StrictStr

    @field_validator("id")
    @classmethod
    def _check_uuid(cls, v: str) -> str:
        uuid.UUID(v)
        return v

    @field_validator("object")
    @classmethod
    def _check_object(cls, v: str) -> str:
        if not v:
            raise ValueError("must be a non-empty tag")
        return v


class AssistantResponse(BaseModel):
    """Structured answer: reasoning, markdown message, citations and metadata."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    think: StrictStr | None = None
    message: StrictStr
    citations: list[StrictStr]
    metadata: ResponseMetadata


# Non-structured mode returns the markdown answer itself.
PlainResponse: TypeAlias = str
