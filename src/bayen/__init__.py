"""Typed client for the Bayen legal chat API."""

__version__ = "0.1.0"

from bayen.client import BayenClient, CallState, chat  # noqa: E402
from bayen.config import ClientConfig, Settings, get_settings  # noqa: E402
from bayen.errors import (  # noqa: E402
    ApiError,
    AuthError,
    BayenError,
    NetworkError,
    RateLimitedError,
    RequestTimeoutError,
    SchemaError,
    ServerLogicError,
    UnexpectedStatus,
    UpstreamUnavailable,
)
from bayen.models import (  # noqa: E402
    AssistantResponse,
    ChatRequest,
    Message,
    Model,
    PlainResponse,
    ResponseMetadata,
    Role,
)
from bayen.retry import Classification, RetryPolicy, classify  # noqa: E402
from bayen.validation import validate_request, validate_response  # noqa: E402

__all__ = [
    "ApiError",
    "AssistantResponse",
    "AuthError",
    "BayenClient",
    "BayenError",
    "CallState",
    "ChatRequest",
    "Classification",
    "ClientConfig",
    "Message",
    "Model",
    "NetworkError",
    "PlainResponse",
    "RateLimitedError",
    "RequestTimeoutError",
    "ResponseMetadata",
    "RetryPolicy",
    "Role",
    "SchemaError",
    "ServerLogicError",
    "Settings",
    "UnexpectedStatus",
    "UpstreamUnavailable",
    "chat",
    "classify",
    "get_settings",
    "validate_request",
    "validate_response",
]
