"""
Shared fixtures — fake assistant platform, fake clock, recorded sleeps.

No real network: every outbound call goes through httpx.MockTransport
and is recorded on FakeUpstream.requests.
"""

import json
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient

from moneypenny.api.main import app
from moneypenny.api.routes import get_action_router
from moneypenny.assistant import (
    Dispatcher,
    HostResolver,
    InMemoryHostCache,
    build_action_router,
)
from moneypenny.config import Settings


CONTROL_PLANE = "https://api.pinecone.io"
DATA_PLANE_HOST = "prod-1-data.ke.pinecone.io"
DATA_PLANE_BASE = f"https://{DATA_PLANE_HOST}/assistant"
TEST_API_KEY = "pcsk_test_key_123456"


class FakeUpstream:
    """
    Scripted stand-in for the Pinecone Assistant API.
    
    Replies are queued per (method, url-without-query). The last queued
    reply repeats once earlier ones are consumed.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self._routes: Dict[Tuple[str, str], List[Dict[str, Any]]] = {}

    def add(self, method: str, url: str, status: int = 200, **reply: Any) -> "FakeUpstream":
        self._routes.setdefault((method, url), []).append({"status_code": status, **reply})
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        queue = self._routes.get((request.method, url))
        if not queue:
            return httpx.Response(404, json={"error": f"no route for {request.method} {url}"})
        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        return httpx.Response(**reply)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, method: Optional[str] = None, path: Optional[str] = None) -> List[httpx.Request]:
        return [
            r for r in self.requests
            if (method is None or r.method == method) and (path is None or r.url.path == path)
        ]

    def json_body(self, index: int = -1) -> Any:
        return json.loads(self.requests[index].content)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordedSleep:
    """Awaitable sleep that only records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def describe_reply(host: str = DATA_PLANE_HOST) -> Dict[str, Any]:
    return {"name": "demo", "status": "Ready", "host": host}


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeps() -> RecordedSleep:
    return RecordedSleep()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        PINECONE_API_KEY=TEST_API_KEY,
        PINECONE_API_VERSION="2025-01",
        PINECONE_CONTROL_PLANE_URL=CONTROL_PLANE,
        MONEYPENNY_AUTH_TOKEN="",
    )


@pytest.fixture
def dispatcher(upstream, sleeps) -> Dispatcher:
    return Dispatcher(
        api_key=TEST_API_KEY,
        api_version="2025-01",
        transport=upstream.transport,
        sleep=sleeps,
        jitter=lambda: 0.0,
    )


@pytest.fixture
def host_cache(clock) -> InMemoryHostCache:
    return InMemoryHostCache(ttl_seconds=300, clock=clock)


@pytest.fixture
def resolver(dispatcher, host_cache) -> HostResolver:
    return HostResolver(dispatcher, host_cache, CONTROL_PLANE)


@pytest.fixture
def action_router(test_settings, host_cache, upstream, sleeps):
    return build_action_router(
        test_settings,
        host_cache,
        transport=upstream.transport,
        sleep=sleeps,
        jitter=lambda: 0.0,
    )


@pytest.fixture
def client(action_router):
    """TestClient whose ActionRouter talks to the FakeUpstream."""
    app.dependency_overrides[get_action_router] = lambda: action_router
    yield TestClient(app)
    app.dependency_overrides.clear()
