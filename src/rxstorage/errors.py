"""
Error taxonomy for the RxStorage client.

Two domains share a common base:

- AuthenticationError: raised by the token refresh flow. These propagate to
  every request waiting on the refresh and trigger the session-expired
  broadcast.
- APIError: raised by APIClient for non-success responses and transport
  failures. View models store these and render them as user-facing alerts.

``str(error)`` is always a message suitable for display.
"""

import asyncio


class RxStorageError(Exception):
    """Base class for every error raised by the package."""

    message = "Unexpected error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.message
        super().__init__(self.message)


# Authentication domain


class AuthenticationError(RxStorageError):
    """Failure while obtaining or refreshing credentials."""

    message = "Authentication failed"


class NoRefreshTokenError(AuthenticationError):
    message = "No refresh token available"


class InvalidURLError(AuthenticationError):
    message = "Invalid authentication URL"


class InvalidResponseError(AuthenticationError):
    message = "Invalid response from authentication server"


class RefreshFailedError(AuthenticationError):
    """
    The token endpoint answered with a non-200 status.

    Attributes:
        status_code: HTTP status returned by the token endpoint.
        body: Response body, truncated for diagnostics.
    """

    message = "Token refresh failed"
    BODY_PREVIEW_LENGTH = 200

    def __init__(self, status_code: int | None = None, body: str = "") -> None:
        self.status_code = status_code
        self.body = body[: self.BODY_PREVIEW_LENGTH]
        super().__init__(
            f"{self.message} (HTTP {status_code})" if status_code else None
        )

    def __repr__(self) -> str:
        return f"RefreshFailedError(status_code={self.status_code!r}, body={self.body!r})"


# Network domain


class APIError(RxStorageError):
    """A request to the RxStorage API did not produce a usable response."""

    message = "Request failed"

    @property
    def is_authentication_error(self) -> bool:
        """True when the user has to sign in again to recover."""
        return False

    @property
    def is_cancellation(self) -> bool:
        """True when the request was abandoned and should be ignored by the UI."""
        return False


class BadRequestError(APIError):
    message = "Invalid request"


class UnauthorizedError(APIError):
    message = "Authentication required. Please log in."

    @property
    def is_authentication_error(self) -> bool:
        return True


class ForbiddenError(APIError):
    message = "You don't have permission to access this resource."


class NotFoundError(APIError):
    message = "The requested resource was not found."


class ServerError(APIError):
    """
    5xx or undocumented status.

    Attributes:
        detail: Short server-side description, e.g. ``"HTTP 502"``.
    """

    def __init__(self, detail: str = "Internal server error") -> None:
        self.detail = detail
        super().__init__(f"Server error: {detail}")


class DecodingError(APIError):
    message = "Failed to process response"

    def __init__(self, cause: Exception | None = None) -> None:
        self.cause = cause
        super().__init__(f"{self.message}: {cause}" if cause else None)


class NetworkError(APIError):
    message = "Network connection error. Please check your internet connection"

    def __init__(self, cause: Exception | None = None) -> None:
        self.cause = cause
        super().__init__()


class RequestCancelledError(APIError):
    """The request was abandoned before a response arrived."""

    message = "Request cancelled"

    @property
    def is_cancellation(self) -> bool:
        return True


def is_cancellation(error: BaseException) -> bool:
    """Return True for errors that mean "abandoned", not "failed"."""
    if isinstance(error, asyncio.CancelledError):
        return True
    return isinstance(error, APIError) and error.is_cancellation
