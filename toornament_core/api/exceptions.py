"""API exception classes."""

from typing import Optional, List, TYPE_CHECKING

if TYPE_CHECKING:
    from toornament_core.api.models import ServiceErrorDetail


class APIError(Exception):
    """Base exception for Toornament API errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.status_code:
            parts.append(f"(status={self.status_code})")
        return " ".join(parts)


class AuthenticationError(APIError):
    """Raised when the client-credentials exchange fails."""

    pass


class TransportError(APIError):
    """Raised when the HTTP stack fails (DNS, TLS, reset connection, timeout)."""

    pass


class SerializationError(APIError):
    """Raised when a JSON body does not have the expected shape."""

    pass


class LockError(APIError):
    """Raised when the token store lock cannot be acquired."""

    pass


class RateLimitError(APIError):
    """Raised when rate limit is exceeded (429).

    ``retry_after`` is the server's suggested wait in milliseconds.
    """

    def __init__(
        self,
        message: str,
        retry_after: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class ServiceError(APIError):
    """Raised when the API rejects a request with a structured error list."""

    def __init__(
        self,
        message: str,
        errors: Optional[List["ServiceErrorDetail"]] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.errors = errors or []


class StatusError(APIError):
    """Raised on a non-2xx response whose body is not a known error payload."""

    pass
