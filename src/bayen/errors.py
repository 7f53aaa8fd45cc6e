"""Error taxonomy for the Bayen client.

Every failure surfaced by ``BayenClient.chat`` is a ``BayenError``:

  - SchemaError          local validation failure, never sent over the wire
  - NetworkError         transport-level failure (retryable)
      RequestTimeoutError  per-attempt deadline expired (retryable)
  - ApiError             non-2xx response, keeps status + body
      AuthError            401 (fatal)
      ServerLogicError     500, invalid structured output upstream (fatal)
      UpstreamUnavailable  502/503/504 (retryable)
        RateLimitedError     429 (retryable)
      UnexpectedStatus     any other non-2xx (fatal)
"""

from __future__ import annotations


class BayenError(Exception):
    """Base class for all client errors."""

    retryable: bool = False


class SchemaError(BayenError):
    """A request or response does not match the documented contract."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}")


class NetworkError(BayenError):
    """The HTTP exchange failed before a status code was received."""

    retryable = True


class RequestTimeoutError(NetworkError):
    """The per-attempt timeout elapsed."""


class ApiError(BayenError):
    """The server answered with a non-2xx status."""

    def __init__(self, status: int, body: str = "", detail: str | None = None):
        self.status = status
        self.body = body
        self.detail = detail
        message = f"HTTP {status}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class AuthError(ApiError):
    """Missing or invalid ``X-API-Key``."""


class ServerLogicError(ApiError):
    """The server failed to produce valid structured output.

    ``body`` is kept verbatim so it can be attached to a bug report.
    """


class UpstreamUnavailable(ApiError):
    """The inference upstream is temporarily unavailable."""

    retryable = True


class RateLimitedError(UpstreamUnavailable):
    """Too many requests; ``retry_after`` is the server hint in seconds, if any."""

    def __init__(
        self,
        status: int,
        body: str = "",
        detail: str | None = None,
        retry_after: float | None = None,
    ):
        super().__init__(status, body, detail)
        self.retry_after = retry_after


class UnexpectedStatus(ApiError):
    """Any non-2xx status without a documented meaning."""
