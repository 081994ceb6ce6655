"""
Shared fixtures: a DataLensClient wired to httpx.MockTransport so that no
test touches the network.
"""

import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from datalens_mcp.client import DataLensClient
from datalens_mcp.config import Settings, StaticCredentials, TOKEN_ENVS, ORG_ID_ENV
from datalens_mcp.dispatcher import Dispatcher

BASE_URL = "https://datalens.test"
ORG_ID = "org-123"
TOKEN = "t1.iam-token"


class RecordingHandler:
    """MockTransport handler that records requests and replies from a script."""

    def __init__(self, respond: Callable[[httpx.Request], Any] = None):
        self.requests: List[httpx.Request] = []
        self._respond = respond or (lambda request: httpx.Response(200, json={"ok": True}))

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self._respond(request)
        if not isinstance(response, httpx.Response):
            response = await response
        return response

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Dict[str, Any]:
        return json.loads(self.last.content)


def make_client(
    handler: Callable,
    org_id: Optional[str] = ORG_ID,
    token: Optional[str] = TOKEN,
    settings: Settings = None,
) -> DataLensClient:
    settings = settings or Settings(base_url=BASE_URL)
    http = httpx.AsyncClient(base_url=settings.base_url, transport=httpx.MockTransport(handler))
    return DataLensClient(settings, credentials=StaticCredentials(org_id, token), http=http)


@pytest.fixture
def settings() -> Settings:
    return Settings(base_url=BASE_URL)


@pytest.fixture
def handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def dispatcher(handler) -> Dispatcher:
    return Dispatcher(make_client(handler))


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every DataLens variable from the process environment."""
    for name in (ORG_ID_ENV, *TOKEN_ENVS):
        monkeypatch.delenv(name, raising=False)
    for name in (
        "DATALENS_BASE_URL",
        "DATALENS_API_VERSION",
        "DATALENS_TIMEOUT_SECONDS",
        "DATALENS_LOG_LEVEL",
        "DATALENS_HTTP_HOST",
        "DATALENS_HTTP_PORT",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
