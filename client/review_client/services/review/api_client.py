"""
Remote Review Service Client

Typed async request/response functions for the spaced repetition REST API.
Pure transport: no session state, no retries (see resilience.py).

Every server reply is wrapped in an ApiResponse envelope:
    {"success": true, "data": {...}, "message": null, "timestamp": "..."}

Failures are translated into the review_client.errors hierarchy:
- HTTP 401/403          → AuthenticationError (terminal)
- other non-2xx         → ReviewApiError (retryable for 5xx/408/429)
- success=false         → ReviewApiError (retryable)
- malformed payload     → ReviewApiError (terminal)
- timeouts / conn. loss → ReviewNetworkError (retryable)

Usage:
    from review_client.services.review.api_client import ReviewApiClient

    async with ReviewApiClient(auth_token="...") as api:
        session = await api.start_session(
            StartReviewSessionRequest(mode=ReviewMode.DUE_CARDS, limit=20)
        )
"""

import logging
from datetime import date, datetime
from typing import Any, Optional, TypeVar

import httpx
from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from review_client.config import settings
from review_client.errors import ReviewApiError, ReviewNetworkError
from review_client.models.base import ApiResponse
from review_client.models.review import (
    DueCardsResponse,
    ReviewInsights,
    ReviewModeInfo,
    ReviewSession,
    ReviewStatistics,
    SpacedRepetitionCard,
    StartReviewSessionRequest,
    SubmitReviewRequest,
    UserReviewPreferences,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ReviewApiClient:
    """
    Async HTTP client for the remote review service.

    The client owns an httpx.AsyncClient; close it with `await client.close()`
    or use the client as an async context manager.
    """

    # Endpoint roots
    SESSIONS_PATH = "/spaced-repetition/sessions"
    CARDS_PATH = "/spaced-repetition/cards"
    STATISTICS_PATH = "/spaced-repetition/statistics"
    INSIGHTS_PATH = "/spaced-repetition/analytics/insights"
    PREFERENCES_PATH = "/spaced-repetition/preferences"
    MODES_PATH = "/spaced-repetition/modes/available"

    DEFAULT_CARD_LIMIT: int = 20

    def __init__(
        self,
        base_url: Optional[str] = None,
        auth_token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the review API client.

        Args:
            base_url: Service root, e.g. http://localhost:8080/api (default: settings)
            auth_token: Bearer token (default: settings.API_AUTH_TOKEN)
            timeout: Request timeout in seconds (default: settings)
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.base_url: str = (base_url or settings.API_BASE_URL).rstrip("/")
        token = auth_token if auth_token is not None else settings.API_AUTH_TOKEN
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self.client: httpx.AsyncClient = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout if timeout is not None else settings.API_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self.client.aclose()

    async def __aenter__(self) -> "ReviewApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # =========================================================================
    # Session Management
    # =========================================================================

    async def get_active_session(self) -> Optional[ReviewSession]:
        """
        Look up the user's in-progress session.

        Returns:
            The active session, or None if the user has none
        """
        return await self._request(
            "GET", f"{self.SESSIONS_PATH}/active", ReviewSession, allow_empty=True
        )

    async def start_session(self, request: StartReviewSessionRequest) -> ReviewSession:
        """Start a new session; the server selects and returns the full card list."""
        return await self._request(
            "POST",
            f"{self.SESSIONS_PATH}/start",
            ReviewSession,
            json=request.to_wire(),
        )

    async def submit_review(self, request: SubmitReviewRequest) -> ReviewSession:
        """Submit one outcome; returns the updated authoritative session."""
        return await self._request(
            "POST",
            f"{self.SESSIONS_PATH}/{request.session_id}/submit",
            ReviewSession,
            json=request.to_wire(),
        )

    async def complete_session(self, session_id: str) -> ReviewSession:
        """Mark a session complete on the server; returns the final snapshot."""
        return await self._request(
            "POST", f"{self.SESSIONS_PATH}/{session_id}/complete", ReviewSession
        )

    # =========================================================================
    # Card Retrieval
    # =========================================================================

    async def get_due_cards(self, limit: int = DEFAULT_CARD_LIMIT) -> DueCardsResponse:
        return await self._request(
            "GET", f"{self.CARDS_PATH}/due", DueCardsResponse, params={"limit": limit}
        )

    async def get_new_cards(
        self, limit: int = DEFAULT_CARD_LIMIT
    ) -> list[SpacedRepetitionCard]:
        return await self._request(
            "GET",
            f"{self.CARDS_PATH}/new",
            list[SpacedRepetitionCard],
            params={"limit": limit},
        )

    async def get_difficult_cards(
        self, limit: int = DEFAULT_CARD_LIMIT
    ) -> list[SpacedRepetitionCard]:
        return await self._request(
            "GET",
            f"{self.CARDS_PATH}/difficult",
            list[SpacedRepetitionCard],
            params={"limit": limit},
        )

    async def get_random_cards(
        self, limit: int = DEFAULT_CARD_LIMIT
    ) -> list[SpacedRepetitionCard]:
        return await self._request(
            "GET",
            f"{self.CARDS_PATH}/random",
            list[SpacedRepetitionCard],
            params={"limit": limit},
        )

    # =========================================================================
    # Statistics, Insights, Preferences, Modes
    # =========================================================================

    async def get_statistics(self, from_date: date, to_date: date) -> ReviewStatistics:
        """
        Get review statistics for a date range.

        Args:
            from_date: First day (inclusive); datetimes are truncated to dates
            to_date: Last day (inclusive)
        """
        return await self._request(
            "GET",
            self.STATISTICS_PATH,
            ReviewStatistics,
            params={
                "from": _as_date(from_date).isoformat(),
                "to": _as_date(to_date).isoformat(),
            },
        )

    async def get_current_month_statistics(self) -> ReviewStatistics:
        return await self._request(
            "GET", f"{self.STATISTICS_PATH}/overview", ReviewStatistics
        )

    async def get_review_insights(self) -> ReviewInsights:
        return await self._request("GET", self.INSIGHTS_PATH, ReviewInsights)

    async def get_preferences(self) -> UserReviewPreferences:
        return await self._request("GET", self.PREFERENCES_PATH, UserReviewPreferences)

    async def update_preferences(self, changes: dict[str, Any]) -> UserReviewPreferences:
        """
        Partially update preferences.

        Args:
            changes: Fields to change; snake_case keys are sent as camelCase
        """
        body = {to_camel(key): value for key, value in changes.items()}
        return await self._request(
            "PUT", self.PREFERENCES_PATH, UserReviewPreferences, json=body
        )

    async def get_available_review_modes(self) -> list[ReviewModeInfo]:
        return await self._request("GET", self.MODES_PATH, list[ReviewModeInfo])

    # =========================================================================
    # Card Operations
    # =========================================================================

    async def suspend_card(self, card_id: str) -> None:
        await self._request("POST", f"{self.CARDS_PATH}/{card_id}/suspend", None)

    async def unsuspend_card(self, card_id: str) -> None:
        await self._request("POST", f"{self.CARDS_PATH}/{card_id}/unsuspend", None)

    async def reset_card(self, card_id: str) -> None:
        await self._request("POST", f"{self.CARDS_PATH}/{card_id}/reset", None)

    async def delete_card(self, card_id: str) -> None:
        await self._request("DELETE", f"{self.CARDS_PATH}/{card_id}", None)

    # =========================================================================
    # Transport
    # =========================================================================

    async def _request(
        self,
        method: str,
        path: str,
        data_type: Any,
        json: Optional[Any] = None,
        params: Optional[dict[str, Any]] = None,
        allow_empty: bool = False,
    ) -> Any:
        """
        Issue one HTTP request and unwrap the ApiResponse envelope.

        Args:
            method: HTTP method
            path: Path relative to base_url
            data_type: Type of the envelope's data field (None for void calls)
            json: Optional JSON body
            params: Optional query parameters
            allow_empty: Whether data=null is a valid answer

        Returns:
            The validated data payload (or None)

        Raises:
            ReviewClientError subclasses, see module docstring
        """
        try:
            response = await self.client.request(method, path, json=json, params=params)
        except httpx.TransportError as e:
            logger.warning(f"API call failed: {method} {path}: {e!r}")
            raise ReviewNetworkError(
                f"Network error calling {path}: {e}", details={"path": path}
            ) from e

        if response.is_error:
            error_body = _safe_json(response)
            message = (
                error_body.get("message")
                if isinstance(error_body, dict) and error_body.get("message")
                else f"HTTP error! status: {response.status_code}"
            )
            logger.warning(f"API call failed: {method} {path} → {response.status_code}")
            raise ReviewApiError.from_status(
                response.status_code,
                message,
                details={"path": path, "body": error_body},
            )

        if data_type is None and not response.content:
            return None

        payload = _safe_json(response)
        if payload is None:
            raise ReviewApiError(
                f"Malformed response from {path}", retryable=False, details={"path": path}
            )

        envelope_type = ApiResponse[Any] if data_type is None else ApiResponse[data_type]
        try:
            envelope = envelope_type.model_validate(payload)
        except ValidationError as e:
            logger.error(f"Unexpected response schema from {path}: {e}")
            raise ReviewApiError(
                f"Unexpected response schema from {path}",
                retryable=False,
                details={"path": path, "errors": e.errors()},
            ) from e

        if not envelope.success:
            raise ReviewApiError(
                envelope.message or "API request failed",
                status_code=response.status_code,
                details={"path": path, "errors": envelope.errors},
            )

        if envelope.data is None and data_type is not None and not allow_empty:
            raise ReviewApiError(
                f"Empty response from {path}", retryable=False, details={"path": path}
            )
        return envelope.data


def _safe_json(response: httpx.Response) -> Any:
    """Parse a response body as JSON, returning None if it isn't."""
    try:
        return response.json()
    except ValueError:
        return None


def _as_date(value: date) -> date:
    # datetime is a subclass of date
    return value.date() if isinstance(value, datetime) else value
