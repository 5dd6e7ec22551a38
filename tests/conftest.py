"""
Pytest fixtures for Viz Insight tests.

Upstream services are replaced by httpx.MockTransport handlers, so no
test touches the network.
"""
import json
from typing import Callable, Dict, List

import httpx
import pytest

from viz.models.session import UserSession
from viz.services.notifications import NotificationCenter
from viz.utils.local_store import InMemoryStore

SUPABASE_URL = "https://project.supabase.co"
NO_WAIT = {"delay": 0.0, "max_delay": 0.0}


class Upstream:
    """
    Routes requests by URL path to canned responses and records calls.

    A route maps to a response, an exception, or a list consumed in order
    (the last entry repeats).
    """

    def __init__(self):
        self.routes: Dict[str, object] = {}
        self.calls: List[httpx.Request] = []

    def route(self, path: str, *responses):
        self.routes[path] = list(responses)
        return self

    def calls_to(self, path: str) -> List[httpx.Request]:
        return [r for r in self.calls if r.url.path == path]

    def json_body(self, request: httpx.Request):
        return json.loads(request.content or b"null")

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        queue = self.routes.get(request.url.path)
        if not queue:
            return httpx.Response(404, json={"error": f"no route for {request.url.path}"})
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(request)
        return item

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def upstream() -> Upstream:
    return Upstream()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def notifier() -> NotificationCenter:
    return NotificationCenter()


@pytest.fixture
def user() -> UserSession:
    return UserSession(user_id="user-1", email="analyst@example.com", access_token="token-abc")


@pytest.fixture
def auth_ok() -> Callable[[httpx.Request], httpx.Response]:
    def respond(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"id": "user-1", "email": "analyst@example.com"})
    return respond


@pytest.fixture(autouse=True)
def supabase_env(monkeypatch):
    """Point every client at a fixed project URL."""
    from viz.auth import config as auth_config

    monkeypatch.setattr(auth_config, "SUPABASE_URL", SUPABASE_URL)
    monkeypatch.setattr(auth_config, "SUPABASE_ANON_KEY", "anon-key")
    monkeypatch.setattr(auth_config, "SUPABASE_JWT_SECRET", "test-secret-with-at-least-32-bytes!!")


@pytest.fixture
def retry_options():
    """One retry and no waiting between attempts."""
    return {"retries": 1, **NO_WAIT}
