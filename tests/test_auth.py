"""Tests for the token exchange and the token store."""

import threading
from urllib.parse import parse_qs

import httpx
import pytest

from toornament_core.api.auth import AccessToken, TokenStore, authenticate
from toornament_core.api.exceptions import AuthenticationError, LockError

TOKEN_URL = "https://api.toornament.com/oauth/v2/token"


def _http(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


class TestAuthenticate:
    """Test the client-credentials exchange."""

    def test_success(self, clock):
        """Test token and expiry are taken from the response."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"access_token": "abc", "expires_in": 3600})

        token = authenticate(_http(handler), TOKEN_URL, "id", "secret", clock=clock)

        assert token.token == "abc"
        assert token.expires_at == clock.now + 3600

        request = seen[0]
        assert request.method == "POST"
        assert request.headers["content-type"] == "application/x-www-form-urlencoded"
        assert parse_qs(request.content.decode()) == {
            "grant_type": ["client_credentials"],
            "client_id": ["id"],
            "client_secret": ["secret"],
        }

    def test_extra_fields_ignored(self, clock):
        """Test unknown response fields do not break parsing."""
        def handler(request):
            return httpx.Response(
                200,
                json={
                    "access_token": "abc",
                    "expires_in": 60,
                    "token_type": "bearer",
                    "scope": None,
                    "refresh_token": "ignored",
                },
            )

        token = authenticate(_http(handler), TOKEN_URL, "id", "secret", clock=clock)
        assert token.token == "abc"

    def test_rejected(self, clock):
        """Test a 401 from the token endpoint fails."""
        def handler(request):
            return httpx.Response(401, json={"error": "invalid_client"})

        with pytest.raises(AuthenticationError) as exc_info:
            authenticate(_http(handler), TOKEN_URL, "id", "bad", clock=clock)

        assert exc_info.value.status_code == 401

    def test_invalid_json(self, clock):
        """Test a non-JSON body fails."""
        def handler(request):
            return httpx.Response(200, text="<html>login</html>")

        with pytest.raises(AuthenticationError):
            authenticate(_http(handler), TOKEN_URL, "id", "secret", clock=clock)

    def test_missing_fields(self, clock):
        """Test a body without expires_in fails."""
        def handler(request):
            return httpx.Response(200, json={"access_token": "abc"})

        with pytest.raises(AuthenticationError):
            authenticate(_http(handler), TOKEN_URL, "id", "secret", clock=clock)

    def test_transport_failure(self, clock):
        """Test a connection failure is reported as an authentication error."""
        def handler(request):
            raise httpx.ConnectError("connection refused")

        with pytest.raises(AuthenticationError) as exc_info:
            authenticate(_http(handler), TOKEN_URL, "id", "secret", clock=clock)

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


class CountingRefresher:
    """Refresher issuing new-1, new-2, ... or raising when told to fail."""

    def __init__(self, clock, lifetime: float = 3600):
        self.clock = clock
        self.lifetime = lifetime
        self.calls = 0
        self.fail = False

    def __call__(self) -> AccessToken:
        self.calls += 1
        if self.fail:
            raise AuthenticationError("Token request rejected", status_code=401)
        return AccessToken(token=f"new-{self.calls}", expires_at=self.clock() + self.lifetime)


@pytest.fixture
def refresher(clock):
    return CountingRefresher(clock)


@pytest.fixture
def store(clock, refresher):
    initial = AccessToken(token="initial", expires_at=clock.now + 100)
    return TokenStore(initial, refresher=refresher, clock=clock)


class TestTokenStore:
    """Test token reads and refreshes."""

    def test_current_token(self, store):
        """Test current token is returned without refreshing."""
        assert store.current_token() == "initial"

    def test_current_token_ignores_expiry(self, store, clock, refresher):
        """Test current_token does not check expiry."""
        clock.advance(1_000)
        assert store.current_token() == "initial"
        assert refresher.calls == 0

    def test_fresh_token_not_expired(self, store, refresher):
        """Test a valid token is returned as-is."""
        assert store.fresh_token() == "initial"
        assert refresher.calls == 0

    def test_fresh_token_at_expiry_instant(self, store, clock, refresher):
        """Test a token is still used at exactly its expiry time."""
        clock.advance(100)
        assert store.fresh_token() == "initial"
        assert refresher.calls == 0

    def test_fresh_token_refreshes_expired(self, store, clock, refresher):
        """Test an expired token is replaced before being returned."""
        clock.advance(101)

        assert store.fresh_token() == "new-1"
        assert store.current_token() == "new-1"
        assert refresher.calls == 1

        # The new token is valid, no second refresh
        assert store.fresh_token() == "new-1"
        assert refresher.calls == 1

    def test_fresh_token_with_leeway(self, clock, refresher):
        """Test leeway makes a token expire early."""
        initial = AccessToken(token="initial", expires_at=clock.now + 100)
        store = TokenStore(initial, refresher=refresher, clock=clock, leeway=30)

        clock.advance(71)
        assert store.fresh_token() == "new-1"

    def test_fresh_token_refresh_failure(self, store, clock, refresher):
        """Test a failed refresh propagates and keeps the old token."""
        clock.advance(101)
        refresher.fail = True

        with pytest.raises(AuthenticationError):
            store.fresh_token()

        assert store.current_token() == "initial"

    def test_refresh_success(self, store, refresher):
        """Test explicit refresh installs a new token."""
        assert store.refresh() is True
        assert store.current_token() == "new-1"

    def test_refresh_failure_preserves_token(self, store, refresher):
        """Test failed refresh returns False and keeps the old token."""
        before = store.current_token()
        refresher.fail = True

        assert store.refresh() is False
        assert store.current_token() == before

    def test_lock_unavailable(self, clock, refresher):
        """Test a lock that cannot be acquired raises LockError."""
        initial = AccessToken(token="initial", expires_at=clock.now + 100)
        store = TokenStore(initial, refresher=refresher, clock=clock, lock_timeout=0.01)

        store._lock.acquire()
        try:
            with pytest.raises(LockError):
                store.current_token()
            with pytest.raises(LockError):
                store.fresh_token()
            assert store.refresh() is False
        finally:
            store._lock.release()

        assert store.current_token() == "initial"

    def test_concurrent_reads_see_complete_tokens(self, store, refresher):
        """Test readers only observe tokens produced by a full exchange."""
        observed = []
        errors = []

        def reader():
            try:
                for _ in range(200):
                    observed.append(store.current_token())
            except Exception as e:
                errors.append(e)

        def writer():
            for _ in range(50):
                store.refresh()

        threads = [threading.Thread(target=reader) for _ in range(4)]
        threads.append(threading.Thread(target=writer))
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert not errors
        valid = {"initial"} | {f"new-{i}" for i in range(1, refresher.calls + 1)}
        assert set(observed) <= valid
        assert store.current_token() == f"new-{refresher.calls}"
