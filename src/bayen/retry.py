"""Failure classification and exponential back-off.

``classify`` and ``error_for_status`` map an HTTP status to the error
taxonomy; ``RetryPolicy.run`` drives attempts, sleeping between retryable
failures through an injectable ``sleep`` so tests never wait.
"""

from __future__ import annotations

import asyncio
import json
import logging
import random
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeVar

from bayen.errors import (
    ApiError,
    AuthError,
    BayenError,
    RateLimitedError,
    ServerLogicError,
    UnexpectedStatus,
    UpstreamUnavailable,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


class Classification(str, Enum):
    SUCCESS = "success"
    RETRYABLE = "retryable"
    FATAL = "fatal"


_RETRYABLE_STATUSES = frozenset({429, 502, 503, 504})

# (1 + j) * d < (1 - j) * 2d  holds for every j < 1/3
MAX_JITTER = 1 / 3


def classify(status: int) -> Classification:
    """Classify an HTTP status code. Pure."""
    if 200 <= status < 300:
        return Classification.SUCCESS
    if status in _RETRYABLE_STATUSES:
        return Classification.RETRYABLE
    return Classification.FATAL


def _detail(body: str) -> str | None:
    """Pull a human-readable message out of a JSON error body, if any."""
    try:
        data = json.loads(body)
    except ValueError:
        return body.strip()[:200] or None
    if isinstance(data, dict):
        for key in ("detail", "error", "message"):
            value = data.get(key)
            if isinstance(value, str):
                return value
            if isinstance(value, dict) and isinstance(value.get("message"), str):
                return value["message"]
    return None


def _retry_after(headers: Mapping[str, str]) -> float | None:
    for key, value in headers.items():
        if key.lower() == "retry-after":
            try:
                return max(0.0, float(value))
            except ValueError:
                # HTTP-date form is not used by this API
                return None
    return None


def error_for_status(
    status: int, body: str = "", headers: Mapping[str, str] | None = None
) -> ApiError:
    """Build the typed error for a non-2xx response, keeping status and body."""
    detail = _detail(body)
    if status == 401:
        return AuthError(status, body, detail or "invalid or missing API key")
    if status == 500:
        return ServerLogicError(status, body, detail or "invalid structured output")
    if status == 429:
        return RateLimitedError(
            status, body, detail or "rate limited", retry_after=_retry_after(headers or {})
        )
    if status in _RETRYABLE_STATUSES:
        return UpstreamUnavailable(status, body, detail or "upstream unavailable")
    return UnexpectedStatus(status, body, detail)


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential back-off: ``base_delay * 2**(attempt-1)`` capped at ``max_delay``.

    ``jitter`` is the fraction by which each delay is randomly spread in both
    directions; 0 disables it. It must stay below ``MAX_JITTER`` so a doubled
    delay always exceeds the one before it.
    """

    max_attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 8.0
    jitter: float = 0.1
    sleep: Sleep = field(default=asyncio.sleep, repr=False, compare=False)
    rng: random.Random = field(default_factory=random.Random, repr=False, compare=False)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be >= 0")
        if not 0 <= self.jitter < MAX_JITTER:
            raise ValueError("jitter must be >= 0 and < 1/3")

    def delay_for(self, attempt: int, retry_after: float | None = None) -> float:
        """Delay to wait after failed attempt number *attempt* (1-based)."""
        delay = min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)
        if self.jitter:
            delay *= 1 + self.jitter * self.rng.uniform(-1.0, 1.0)
        if retry_after is not None:
            delay = max(delay, retry_after)
        return min(delay, self.max_delay)

    async def run(
        self,
        attempt: Callable[[], Awaitable[T]],
        on_retry: Callable[[int, BayenError, float], None] | None = None,
    ) -> T:
        """Call *attempt* until it succeeds, fails fatally, or attempts run out.

        Retryable ``BayenError``s are retried; everything else propagates at
        once. After the last attempt the last error propagates unchanged.
        """
        for n in range(1, self.max_attempts + 1):
            try:
                return await attempt()
            except BayenError as e:
                if not e.retryable or n == self.max_attempts:
                    raise
                delay = self.delay_for(n, getattr(e, "retry_after", None))
                logger.warning(
                    "Attempt %d/%d failed (%s); retrying in %.2fs",
                    n,
                    self.max_attempts,
                    e,
                    delay,
                )
                if on_retry is not None:
                    on_retry(n, e, delay)
                await self.sleep(delay)
        raise AssertionError("unreachable")
