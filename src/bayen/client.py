"""Client facade for the Bayen ``/chat`` endpoint.

Each ``chat`` call runs through::

    Idle -> Validating -> Sending -> Succeeded
                             |
                             +-> Retrying -> Sending ...
                             +-> Failed

The client holds only its API key and immutable ``ClientConfig``; calls may
run concurrently. Cancelling a call aborts the in-flight attempt or the
pending back-off wait.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable, Mapping, Sequence
from enum import Enum

import httpx

from bayen.config import ClientConfig
from bayen.errors import BayenError, SchemaError
from bayen.models import AssistantResponse, ChatRequest, Message, Model, Role
from bayen.retry import Classification, Sleep, classify, error_for_status
from bayen.transport import RawHttpResult, send
from bayen.validation import validate_request, validate_response

logger = logging.getLogger(__name__)


class CallState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SENDING = "sending"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def mask_secret(secret: str) -> str:
    """Render a secret for logs and reprs, keeping only the last 4 characters."""
    if len(secret) <= 8:
        return "****"
    return f"****{secret[-4:]}"


class BayenClient:
    """Typed, retrying client for ``POST {base_url}/chat``.

    Usage::

        async with BayenClient(api_key) as bayen:
            answer = await bayen.ask("ما العقوبة ...", model=Model.LITE)

    Args:
        api_key: Value of the ``X-API-Key`` header.
        config: Endpoint, timeout and retry options.
        http_client: Caller-owned ``httpx.AsyncClient``; never closed here.
        sleep: Back-off sleep, ``asyncio.sleep`` by default.
        rng: Random source for back-off jitter.
    """

    def __init__(
        self,
        api_key: str,
        config: ClientConfig | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        sleep: Sleep | None = None,
        rng: random.Random | None = None,
    ):
        if not api_key:
            raise ValueError("api_key is required")
        self._api_key = api_key
        self.config = config or ClientConfig()
        self._policy = self.config.retry_policy(sleep=sleep, rng=rng)
        self._http = http_client
        self._owns_http = False

    def __repr__(self) -> str:
        return (
            f"BayenClient(base_url={self.config.base_url!r}, "
            f"api_key={mask_secret(self._api_key)!r})"
        )

    async def __aenter__(self) -> BayenClient:
        if self._http is None:
            self._http = httpx.AsyncClient()
            self._owns_http = True
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the connection pool opened by ``async with``, if any."""
        if self._owns_http and self._http is not None:
            await self._http.aclose()
            self._http = None
            self._owns_http = False

    async def chat(self, request: ChatRequest) -> AssistantResponse | str:
        """Send *request* and return the validated answer.

        Returns an ``AssistantResponse`` when ``request.structured_output`` is
        true, otherwise the markdown text.

        Raises:
            SchemaError: the request is invalid (nothing is sent) or the
                response does not match the contract.
            AuthError, ServerLogicError, UnexpectedStatus: fatal statuses.
            UpstreamUnavailable, NetworkError: retryable failures that
                persisted through every attempt.
        """
        state = CallState.IDLE
        attempts = 0

        def transition(new: CallState) -> None:
            nonlocal state
            logger.debug("chat call %s -> %s (attempt %d)", state.value, new.value, attempts)
            state = new

        transition(CallState.VALIDATING)
        try:
            validate_request(request)
        except BayenError:
            transition(CallState.FAILED)
            raise
        payload = request.to_payload()

        async def attempt() -> RawHttpResult:
            nonlocal attempts
            attempts += 1
            transition(CallState.SENDING)
            raw = await send(
                self.config.base_url,
                self._api_key,
                payload,
                self.config.timeout,
                client=self._http,
            )
            if classify(raw.status) is not Classification.SUCCESS:
                raise error_for_status(raw.status, raw.body, raw.headers)
            return raw

        try:
            raw = await self._policy.run(
                attempt, on_retry=lambda n, err, delay: transition(CallState.RETRYING)
            )
            result = validate_response(raw.body, request.structured_output)
        except BayenError as e:
            transition(CallState.FAILED)
            logger.info("chat failed after %d attempt(s): %s", attempts, e)
            raise

        transition(CallState.SUCCEEDED)
        return result

    async def ask(
        self,
        content: str,
        *,
        model: Model | str = Model.PRO,
        history: Sequence[Message] | None = (),
        structured_output: bool = True,
        max_tokens: int | None = None,
    ) -> AssistantResponse | str:
        """Ask a single question, optionally after earlier *history* turns."""
        if history is None:
            history = ()
        elif not isinstance(history, Iterable) or isinstance(history, (str, bytes, Mapping)):
            raise SchemaError("history", "must be a sequence of messages")
        request = ChatRequest(
            model=model,
            messages=[*history, Message(role=Role.USER, content=content)],
            structured_output=structured_output,
            max_tokens=max_tokens,
        )
        return await self.chat(request)


async def chat(
    request: ChatRequest, api_key: str, config: ClientConfig | None = None
) -> AssistantResponse | str:
    """One-shot call: ``BayenClient(api_key, config).chat(request)``."""
    async with BayenClient(api_key, config) as client:
        return await client.chat(request)
