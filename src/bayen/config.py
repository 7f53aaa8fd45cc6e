"""Configuration.

``ClientConfig`` is the immutable per-client configuration passed to
``BayenClient``; library code never reads global state. ``Settings`` loads
the same options (plus the API key) from ``BAYEN_*`` environment variables
or a ``.env`` file and is only consulted by the command line.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from bayen.models import Model
from bayen.retry import MAX_JITTER, RetryPolicy, Sleep

DEFAULT_BASE_URL = "https://api.bayen.ai/v1"


@dataclass(frozen=True)
class ClientConfig:
    """Per-client options.

    Attributes:
        base_url: Endpoint root; requests go to ``{base_url}/chat``.
        timeout: Per-attempt deadline in seconds.
        max_retries: Attempt cap, counting the first attempt.
        backoff_base_ms: Delay before the first retry; doubles each retry.
        backoff_max_ms: Upper bound on any single back-off delay.
        jitter: Random spread applied to each delay (0 disables, < 1/3).
    """

    base_url: str = DEFAULT_BASE_URL
    timeout: float = 60.0
    max_retries: int = 3
    backoff_base_ms: int = 500
    backoff_max_ms: int = 8000
    jitter: float = 0.1

    def __post_init__(self):
        if not self.base_url:
            raise ValueError("base_url must not be empty")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if self.backoff_base_ms < 0 or self.backoff_max_ms < 0:
            raise ValueError("back-off delays must not be negative")
        if not 0 <= self.jitter < MAX_JITTER:
            raise ValueError("jitter must be >= 0 and < 1/3")

    def retry_policy(
        self, sleep: Sleep | None = None, rng: random.Random | None = None
    ) -> RetryPolicy:
        kwargs = {}
        if sleep is not None:
            kwargs["sleep"] = sleep
        if rng is not None:
            kwargs["rng"] = rng
        return RetryPolicy(
            max_attempts=self.max_retries,
            base_delay=self.backoff_base_ms / 1000,
            max_delay=self.backoff_max_ms / 1000,
            jitter=self.jitter,
            **kwargs,
        )


class Settings(BaseSettings):
    """Environment-backed settings (``BAYEN_API_KEY``, ``BAYEN_BASE_URL``, ...)."""

    model_config = SettingsConfigDict(env_prefix="BAYEN_", env_file=".env", extra="ignore")

    api_key: str | None = Field(default=None, repr=False)
    base_url: str = DEFAULT_BASE_URL
    timeout: float = Field(default=60.0, gt=0)
    max_retries: int = Field(default=3, ge=1)
    backoff_base_ms: int = Field(default=500, ge=0)
    backoff_max_ms: int = Field(default=8000, ge=0)
    jitter: float = Field(default=0.1, ge=0, lt=MAX_JITTER)
    model: Model = Model.PRO
    log_level: str = "WARNING"

    def to_client_config(self) -> ClientConfig:
        return ClientConfig(
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=self.max_retries,
            backoff_base_ms=self.backoff_base_ms,
            backoff_max_ms=self.backoff_max_ms,
            jitter=self.jitter,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
