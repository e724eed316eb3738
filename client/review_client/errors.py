"""
Review Client Exceptions

Provides a small exception hierarchy shared by the API client, the
resilience layer and the session engine.

Every exception carries:
- status_code: HTTP status (when the failure came from the server)
- error_code: short machine-readable category
- retryable: whether the resilience layer may try again
- details: optional context for logs

Classification:
    SessionValidationError  local, before any network call  → never retried
    AuthenticationError     HTTP 401/403                     → terminal
    ReviewApiError          HTTP 5xx/408/429 or success=false → retried
                            other HTTP 4xx                   → terminal
    ReviewNetworkError      timeouts, connection failures    → retried

Usage:
    from review_client.errors import AuthenticationError, ReviewClientError

    try:
        session = await api.start_session(request)
    except AuthenticationError:
        ...  # re-login
"""

from typing import Optional

# Statuses that indicate a transient server-side condition
RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({408, 429})
AUTH_STATUS_CODES: frozenset[int] = frozenset({401, 403})


class ReviewClientError(Exception):
    """
    Base exception for review client failures.

    Example:
        raise ReviewClientError("Review service unavailable", status_code=503)
    """

    status_code: Optional[int] = None
    error_code: str = "review_client_error"
    retryable: bool = True

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        retryable: Optional[bool] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if error_code:
            self.error_code = error_code
        if retryable is not None:
            self.retryable = retryable
        self.details = details


class SessionValidationError(ReviewClientError):
    """
    Malformed session-start or submission parameters, detected locally.

    Raised (or reported) before any network call is made.
    """

    error_code = "validation_error"
    retryable = False

    def __init__(self, errors: list[str], details: Optional[dict] = None):
        super().__init__(
            "Invalid session configuration: " + ", ".join(errors),
            details=details,
        )
        self.errors = errors


class ReviewApiError(ReviewClientError):
    """
    The review service answered with an error.

    Raised for non-2xx responses and for envelopes with success=false.
    """

    error_code = "api_error"

    @classmethod
    def from_status(
        cls, status_code: int, message: str, details: Optional[dict] = None
    ) -> "ReviewApiError":
        """
        Build the right error for an HTTP status code.

        Args:
            status_code: HTTP status of the failed response
            message: Server-provided or generic message
            details: Optional parsed error body

        Returns:
            AuthenticationError for 401/403, otherwise ReviewApiError with
            retryable set for 5xx/408/429 only.
        """
        if status_code in AUTH_STATUS_CODES:
            return AuthenticationError(message, status_code=status_code, details=details)
        retryable = status_code >= 500 or status_code in RETRYABLE_STATUS_CODES
        return cls(
            message,
            status_code=status_code,
            retryable=retryable,
            details=details,
        )


class AuthenticationError(ReviewApiError):
    """
    Credentials missing, expired or insufficient (HTTP 401/403).

    Terminal: retrying cannot succeed without new credentials.
    """

    status_code = 401
    error_code = "authentication_error"
    retryable = False


class ReviewNetworkError(ReviewClientError):
    """
    Transport failure before a response was received.

    Wraps httpx timeouts and connection errors.
    """

    error_code = "network_error"
    retryable = True
