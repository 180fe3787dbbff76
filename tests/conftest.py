"""Shared fixtures: a controllable clock and an in-process fake Toornament API."""

import httpx
import pytest

from toornament_core.api.client import Toornament

TOKEN_PATH = "/oauth/v2/token"


class FakeClock:
    """Callable clock returning a settable Unix time."""

    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeServer:
    """
    httpx.MockTransport handler.

    Serves the token endpoint (issuing token-1, token-2, ... unless
    ``token_responses`` holds queued responses) and canned responses for
    registered routes. The last response of a route is repeated.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []
        self.token_responses = []
        self.issued = 0

    def add(self, method: str, path: str, *responses) -> None:
        self.routes.setdefault((method, path), []).extend(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.path == TOKEN_PATH:
            if self.token_responses:
                item = self.token_responses.pop(0)
                if isinstance(item, Exception):
                    raise item
                return item
            self.issued += 1
            return httpx.Response(
                200,
                json={"access_token": f"token-{self.issued}", "expires_in": 3600},
            )

        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, text="no route")
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item

    @property
    def token_requests(self) -> list:
        return [r for r in self.requests if r.url.path == TOKEN_PATH]

    @property
    def api_requests(self) -> list:
        return [r for r in self.requests if r.url.path != TOKEN_PATH]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
def transport(server):
    return httpx.MockTransport(server)


@pytest.fixture
def client(clock, transport):
    """Authenticated client talking to the fake server."""
    toornament = Toornament.with_application(
        "test_api_key",
        "test_client_id",
        "test_client_secret",
        clock=clock,
        transport=transport,
    )
    yield toornament
    toornament.close()
