"""
Authenticated request pipeline.

Sends one request with the API key and a fresh bearer token attached and
classifies the response into a ``RequestOutcome``. A connection-level
failure is retried exactly once, immediately; everything else is
returned to the caller as-is.
"""

from typing import Any, Optional, Type, TypeVar, Union, List

import httpx
from pydantic import BaseModel, ValidationError as PydanticValidationError
from tenacity import (
    retry,
    stop_after_attempt,
    retry_if_exception_type,
    RetryCallState,
)

from toornament_core.api.auth import TokenStore
from toornament_core.api.exceptions import TransportError
from toornament_core.api.models import ServiceErrorDetail, ServiceErrors, TooManyRequests
from toornament_core.utils.logging import get_logger

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)

# Failures of an established or reused connection. Timeouts are not included.
CONNECTION_ERRORS = (
    httpx.ConnectError,
    httpx.ReadError,
    httpx.WriteError,
    httpx.RemoteProtocolError,
)
MAX_ATTEMPTS = 2


# =============================================================================
# Outcomes
# =============================================================================


class Success(BaseModel):
    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    response: httpx.Response


class RateLimited(BaseModel):
    """429 with a parseable body; ``retry_after`` is in milliseconds."""

    model_config = {"frozen": True}

    retry_after: int


class ServiceRejected(BaseModel):
    model_config = {"frozen": True}

    status_code: int
    errors: List[ServiceErrorDetail]


class TransportFailure(BaseModel):
    """Non-2xx response whose body matched no known error shape."""

    model_config = {"frozen": True}

    status_code: int
    body: str


RequestOutcome = Union[Success, RateLimited, ServiceRejected, TransportFailure]


def _parse(model: Type[M], content: bytes) -> Optional[M]:
    try:
        return model.model_validate_json(content)
    except PydanticValidationError:
        return None


def classify_response(response: httpx.Response) -> RequestOutcome:
    """
    Classify an HTTP response.

    Order: 2xx is success; a 429 carrying ``retry_after`` is rate limited;
    any other non-2xx with an ``errors`` list is a service rejection;
    everything else keeps its status and raw body.
    """
    if response.is_success:
        return Success(response=response)

    status = response.status_code
    if status == 429:
        rate_limit = _parse(TooManyRequests, response.content)
        if rate_limit is not None:
            return RateLimited(retry_after=rate_limit.retry_after)

    service_errors = _parse(ServiceErrors, response.content)
    if service_errors is not None:
        return ServiceRejected(status_code=status, errors=service_errors.errors)

    return TransportFailure(status_code=status, body=response.text)


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(f"Connection failed ({exc!r}), retrying request once")


class RequestPipeline:
    """Builds, sends and classifies authenticated requests."""

    def __init__(self, http: httpx.Client, api_key: str, tokens: TokenStore):
        """
        Initialize the pipeline.

        Args:
            http: Transport used for every request
            api_key: Application API key, sent as ``X-Api-Key``
            tokens: Source of bearer tokens
        """
        self.http = http
        self.api_key = api_key
        self.tokens = tokens

    def headers(self) -> dict[str, str]:
        """Headers for one request attempt; may refresh the token."""
        return {
            "X-Api-Key": self.api_key,
            "Authorization": f"Bearer {self.tokens.fresh_token()}",
            "Accept": "application/json",
        }

    @retry(
        stop=stop_after_attempt(MAX_ATTEMPTS),
        retry=retry_if_exception_type(CONNECTION_ERRORS),
        before_sleep=_log_retry,
        reraise=True,
    )
    def _send(self, method: str, url: str, json: Optional[Any] = None) -> httpx.Response:
        logger.debug(f"API request: {method} {url}")
        return self.http.request(method, url, json=json, headers=self.headers())

    def authenticated_request(
        self,
        method: str,
        url: str,
        json: Optional[Any] = None,
    ) -> RequestOutcome:
        """
        Send an authenticated request and classify the response.

        Args:
            method: HTTP method
            url: Absolute URL
            json: Optional JSON-serializable body

        Returns:
            The classified outcome

        Raises:
            TransportError: If the transport fails (after the single
                retry for connection errors)
            AuthenticationError: If a needed token refresh fails
            LockError: If the token store lock is unavailable
        """
        try:
            response = self._send(method, url, json=json)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {url} failed: {e!r}") from e
        return classify_response(response)
