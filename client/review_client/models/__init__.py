"""
Pydantic models for the review service contract and client-side state.

Usage:
    from review_client.models import ReviewSession, SubmitReviewRequest
"""

from review_client.models.base import ApiResponse, StrictRequest, StrictResponse
from review_client.models.review import (
    DueCardsResponse,
    ProgressSnapshot,
    ReviewHistory,
    ReviewInsights,
    ReviewModeInfo,
    ReviewSession,
    ReviewSessionCard,
    ReviewStatistics,
    SessionEvent,
    SpacedRepetitionCard,
    StartReviewSessionRequest,
    SubmitReviewRequest,
    UserReviewPreferences,
    Word,
)

__all__ = [
    "ApiResponse",
    "StrictRequest",
    "StrictResponse",
    "DueCardsResponse",
    "ProgressSnapshot",
    "ReviewHistory",
    "ReviewInsights",
    "ReviewModeInfo",
    "ReviewSession",
    "ReviewSessionCard",
    "ReviewStatistics",
    "SessionEvent",
    "SpacedRepetitionCard",
    "StartReviewSessionRequest",
    "SubmitReviewRequest",
    "UserReviewPreferences",
    "Word",
]
