# Transport: single signed POST to the /chat endpoint.
#
# No retry logic lives here; one call is one attempt. Retries are the job of
# bayen.retry so they can be tested without a network.

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx

from bayen import __version__
from bayen.errors import NetworkError, RequestTimeoutError

logger = logging.getLogger(__name__)

_USER_AGENT = f"bayen-client/{__version__}"


@dataclass(frozen=True)
class RawHttpResult:
    """Status, text body and headers of one HTTP exchange."""

    status: int
    body: str
    headers: Mapping[str, str] = field(default_factory=dict)


def chat_url(base_url: str) -> str:
    return f"{base_url.rstrip('/')}/chat"


async def send(
    base_url: str,
    api_key: str,
    body: dict[str, Any],
    timeout: float,
    *,
    client: httpx.AsyncClient | None = None,
) -> RawHttpResult:
    """POST *body* as JSON to ``{base_url}/chat``.

    Args:
        base_url: Endpoint root, e.g. ``https://api.bayen.ai/v1``.
        api_key: Sent as ``X-API-Key``. Never logged.
        body: JSON-serialisable request payload.
        timeout: Per-attempt deadline in seconds.
        client: Optional caller-owned ``httpx.AsyncClient`` for connection
            reuse. A short-lived client is used otherwise.

    Returns:
        RawHttpResult for any status code, including non-2xx.

    Raises:
        RequestTimeoutError: the deadline elapsed.
        NetworkError: connection failure, reset or protocol error.
    """
    url = chat_url(base_url)
    headers = {
        "X-API-Key": api_key,
        "Content-Type": "application/json",
        "Accept": "application/json, text/markdown, text/plain",
        "User-Agent": _USER_AGENT,
    }
    content = json.dumps(body, ensure_ascii=False).encode("utf-8")

    logger.debug("POST %s (%d bytes, timeout=%.1fs)", url, len(content), timeout)
    try:
        # deadline covers the whole attempt, not each read
        async with asyncio.timeout(timeout):
            if client is not None:
                resp = await client.post(
                    url, content=content, headers=headers, timeout=httpx.Timeout(timeout)
                )
            else:
                async with httpx.AsyncClient(timeout=httpx.Timeout(timeout)) as owned:
                    resp = await owned.post(url, content=content, headers=headers)
    except (httpx.TimeoutException, TimeoutError) as e:
        raise RequestTimeoutError(f"Request to {url} timed out after {timeout}s") from e
    except httpx.TransportError as e:
        raise NetworkError(f"Request to {url} failed: {e!r}") from e

    logger.debug("POST %s -> %d", url, resp.status_code)
    return RawHttpResult(status=resp.status_code, body=resp.text, headers=dict(resp.headers))
