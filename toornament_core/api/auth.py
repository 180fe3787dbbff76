"""
OAuth2 client-credentials authentication and access token storage.

The token store keeps exactly one access token behind a lock. Expiry is
checked under the lock, but the token exchange itself runs outside of
it; the lock is re-acquired only to install the new token. Two threads
that see an expired token at the same time may therefore both refresh.
"""

import threading
import time
from typing import Callable, Optional

import httpx
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from toornament_core.api.exceptions import AuthenticationError, LockError
from toornament_core.api.models import OAuthTokenResponse
from toornament_core.utils.logging import get_logger

logger = get_logger(__name__)

Clock = Callable[[], float]


class Credentials(BaseModel):
    """Application credentials, fixed for the lifetime of a client."""

    model_config = {"frozen": True}

    api_key: str = Field(repr=False)
    client_id: str
    client_secret: str = Field(repr=False)


class AccessToken(BaseModel):
    """Bearer token with its absolute expiry (Unix timestamp, seconds)."""

    model_config = {"frozen": True}

    token: str = Field(repr=False)
    expires_at: float

    def is_expired(self, now: float, leeway: float = 0.0) -> bool:
        return now > self.expires_at - leeway


def authenticate(
    http: httpx.Client,
    token_url: str,
    client_id: str,
    client_secret: str,
    clock: Clock = time.time,
) -> AccessToken:
    """
    Exchange client credentials for an access token.

    Args:
        http: HTTP client used for the exchange
        token_url: Absolute URL of the token endpoint
        client_id: Application client ID
        client_secret: Application client secret
        clock: Source of the current Unix time

    Returns:
        Access token expiring ``expires_in`` seconds from now

    Raises:
        AuthenticationError: If the request fails, is rejected, or the
            response is not a valid token payload
    """
    data = {
        "grant_type": "client_credentials",
        "client_id": client_id,
        "client_secret": client_secret,
    }
    logger.debug(f"Requesting access token from {token_url} for client_id={client_id}")

    try:
        response = http.post(token_url, data=data)
    except httpx.HTTPError as e:
        raise AuthenticationError(f"Token request failed: {e}") from e

    if not response.is_success:
        raise AuthenticationError(
            "Token request rejected",
            status_code=response.status_code,
            response_body=response.text,
        )

    try:
        payload = OAuthTokenResponse.model_validate_json(response.content)
    except PydanticValidationError as e:
        raise AuthenticationError(
            f"Invalid token response: {e}",
            status_code=response.status_code,
            response_body=response.text,
        ) from e

    token = AccessToken(
        token=payload.access_token,
        expires_at=clock() + payload.expires_in,
    )
    logger.info(f"Obtained access token, expires_in={payload.expires_in}s")
    return token


class TokenStore:
    """
    Thread-safe holder of the current access token.

    Readers always observe a complete token: the stored value is only
    ever replaced as a whole.
    """

    LOCK_TIMEOUT = 10.0

    def __init__(
        self,
        token: AccessToken,
        refresher: Callable[[], AccessToken],
        clock: Clock = time.time,
        leeway: float = 0.0,
        lock_timeout: Optional[float] = None,
    ):
        """
        Initialize the store.

        Args:
            token: Initial, freshly obtained token
            refresher: Performs the token exchange; raises on failure
            clock: Source of the current Unix time
            leeway: Seconds before ``expires_at`` at which a token is
                    already treated as expired
            lock_timeout: Seconds to wait for the lock before failing
        """
        self._token = token
        self._refresher = refresher
        self._clock = clock
        self._leeway = leeway
        self._lock_timeout = self.LOCK_TIMEOUT if lock_timeout is None else lock_timeout
        self._lock = threading.Lock()

    def _acquire(self) -> None:
        if not self._lock.acquire(timeout=self._lock_timeout):
            raise LockError("Can't get the token: token store lock unavailable")

    def snapshot(self) -> AccessToken:
        """Return the stored token record."""
        self._acquire()
        try:
            return self._token
        finally:
            self._lock.release()

    def current_token(self) -> str:
        """Return the stored token string without checking expiry."""
        return self.snapshot().token

    def fresh_token(self) -> str:
        """
        Return a token that was not expired at check time.

        Refreshes first if the stored token has expired.

        Raises:
            LockError: If the lock cannot be acquired
            AuthenticationError: If the refresh fails
        """
        self._acquire()
        try:
            token = self._token
            expired = token.is_expired(self._clock(), self._leeway)
        finally:
            self._lock.release()

        if not expired:
            return token.token

        logger.info("Access token expired, refreshing")
        return self._install(self._refresher()).token

    def refresh(self) -> bool:
        """
        Unconditionally refresh the token.

        On failure the previous token stays in place.

        Returns:
            True if a new token was installed
        """
        try:
            self._install(self._refresher())
        except (AuthenticationError, LockError) as e:
            logger.error(f"Unable to refresh token: {e}")
            return False
        return True

    def _install(self, token: AccessToken) -> AccessToken:
        self._acquire()
        try:
            self._token = token
        finally:
            self._lock.release()
        logger.debug("Installed new access token")
        return token
