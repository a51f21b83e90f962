import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from monday_client.monday_api import MondayAPI, set_monday_api
from monday_client.monday_models import RequestOptions

TEST_TOKEN = "test-token"
TEST_URL = "https://monday.test/v2"


class RecordingHandler:
    """
    MockTransport handler that replays a scripted list of responses/exceptions
    and keeps every request it saw.
    """

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.requests = []

    def __call__(self, request: httpx.Request):
        self.requests.append(request)
        outcome = self.outcomes[min(len(self.requests), len(self.outcomes)) - 1]
        if isinstance(outcome, type) and issubclass(outcome, Exception):
            raise outcome("simulated failure", request=request)
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, httpx.Response):
            return outcome
        return httpx.Response(200, json=outcome)

    @property
    def calls(self) -> int:
        return len(self.requests)

    def payload(self, index: int) -> dict:
        return json.loads(self.requests[index].content)


@pytest.fixture(autouse=True)
def monday_env(monkeypatch):
    """AUTOUSE: every test runs against a known token and endpoint, and no shared client."""
    monkeypatch.setenv("MONDAY_API_TOKEN", TEST_TOKEN)
    monkeypatch.setenv("MONDAY_API_URL", TEST_URL)
    for name in ("MONDAY_API_VERSION", "MONDAY_TIMEOUT_MS", "MONDAY_RETRIES", "MONDAY_RETRY_DELAY_MS"):
        monkeypatch.delenv(name, raising=False)
    set_monday_api(None)
    yield
    set_monday_api(None)


@pytest.fixture
def make_api():
    """Builds a MondayAPI whose HTTP traffic goes to the given handler."""

    def _make(handler, options: RequestOptions = None) -> MondayAPI:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return MondayAPI(http_client=client, default_options=options)

    return _make


@pytest.fixture
def mock_sleep():
    """Replaces asyncio.sleep so backoff and inter-page pauses return immediately."""
    with patch("monday_client.monday_api.asyncio.sleep", new_callable=AsyncMock) as sleep:
        yield sleep


@pytest.fixture
def handler():
    """Factory for RecordingHandler: handler({...}, {...}) scripts consecutive responses."""
    return RecordingHandler
