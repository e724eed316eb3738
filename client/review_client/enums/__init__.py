"""
Centralized enum definitions for the review client.

Usage:
    from review_client.enums import ReviewMode, ReviewOutcome

    # Or import from the module directly
    from review_client.enums.review import SessionEventType
"""

from review_client.enums.review import (
    GoalPeriod,
    ReviewMode,
    ReviewOutcome,
    SessionEventType,
    SessionState,
    WeekendReviewMode,
    WordType,
)

__all__ = [
    "GoalPeriod",
    "ReviewMode",
    "ReviewOutcome",
    "SessionEventType",
    "SessionState",
    "WeekendReviewMode",
    "WordType",
]
