"""Shared fixtures: documented example payloads and a mock-backed client."""

import json

import httpx
import pytest

from bayen.client import BayenClient
from bayen.config import ClientConfig
from bayen.models import ChatRequest, Message, Model

ARABIC_QUESTION = "ما العقوبة المقررة لجريمة التزوير في المحررات الرسمية؟"

STRUCTURED_BODY = {
    "think": None,
    "message": "## الحكم\n\nيعاقب على التزوير في المحررات الرسمية بالسجن.",
    "citations": [
        "https://laws.boe.gov.sa/BoeLaws/Laws/LawDetails/a1b2c3",
        "https://laws.boe.gov.sa/BoeLaws/Laws/LawDetails/d4e5f6",
    ],
    "metadata": {
        "id": "6f1c2b9e-3c1a-4b8e-9f0d-2a7b5c4d3e21",
        "model": "bayen-lite",
        "created": 1735689600,
        "object": "chat.completion",
        "title": "عقوبة التزوير",
    },
}

PLAIN_BODY = "**Issue:** forgery of official documents.\n\n**Rule:** ..."


class RecordingSleep:
    """Stand-in for asyncio.sleep that records delays instead of waiting."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def structured_body() -> dict:
    return json.loads(json.dumps(STRUCTURED_BODY))


@pytest.fixture
def lite_request() -> ChatRequest:
    return ChatRequest(
        model=Model.LITE,
        messages=[Message(role="user", content=ARABIC_QUESTION)],
    )


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


class Responder:
    """MockTransport handler replaying a fixed sequence of responses."""

    def __init__(self, *responses: httpx.Response | Exception):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        # fresh copy so one canned response can serve many requests
        return httpx.Response(item.status_code, headers=item.headers, content=item.content)

    @property
    def calls(self) -> int:
        return len(self.requests)


@pytest.fixture
async def api(sleep):
    """Factory: ``api(*responses, **config)`` -> (client, responder).

    The client talks to a MockTransport replaying *responses*; back-off
    delays land in the ``sleep`` fixture.
    """
    clients: list[httpx.AsyncClient] = []

    def _make(*responses: httpx.Response | Exception, **config_overrides):
        responder = Responder(*responses)
        options = {"base_url": "https://api.test/v1", "jitter": 0.0, "timeout": 5.0}
        options.update(config_overrides)
        http = httpx.AsyncClient(transport=httpx.MockTransport(responder))
        clients.append(http)
        client = BayenClient(
            "sk-test-0123456789", ClientConfig(**options), http_client=http, sleep=sleep
        )
        return client, responder

    yield _make

    for http in clients:
        await http.aclose()


@pytest.fixture
def plain_body() -> str:
    return PLAIN_BODY
