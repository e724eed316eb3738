"""
Session Progress Calculator

Pure functions deriving display metrics from a session snapshot.

Nothing here is cached or persisted: the values are cheap enough to
recompute on every read.
"""

from datetime import datetime, timezone
from typing import Optional

from review_client.models.review import ProgressSnapshot, ReviewSession


def calculate_progress(session: ReviewSession, current_index: int) -> ProgressSnapshot:
    """
    Map a session snapshot and pointer to a ProgressSnapshot.

    - percentage = (current_index + 1) / total_cards * 100
    - accuracy = correct_answers / completed_cards * 100, or 0 before any answer
    - remaining = server-supplied remaining_cards when present, otherwise
      total_cards - completed_cards (the server may re-queue missed cards)

    Args:
        session: Authoritative session snapshot
        current_index: Zero-based index of the card being presented

    Returns:
        ProgressSnapshot for the current position
    """
    total = session.total_cards
    completed = session.completed_cards
    correct = session.correct_answers

    percentage = (current_index + 1) / total * 100 if total > 0 else 0.0
    accuracy = correct / completed * 100 if completed > 0 else 0.0
    remaining = session.remaining_cards or (total - completed)

    return ProgressSnapshot(
        current=current_index + 1,
        total=total,
        percentage=percentage,
        completed=completed,
        correct=correct,
        accuracy=accuracy,
        remaining=remaining,
        cards_per_minute=session.cards_per_minute or 0,
        efficiency_score=session.efficiency_score or 0,
        session_score=session.total_session_score or 0,
    )


def format_response_time(ms: float) -> str:
    """
    Format a response time for display.

    Examples:
        >>> format_response_time(850)
        '850ms'
        >>> format_response_time(1500)
        '1.5s'
        >>> format_response_time(120000)
        '2.0m'
    """
    if ms < 1000:
        return f"{int(ms)}ms"
    if ms < 60000:
        return f"{ms / 1000:.1f}s"
    return f"{ms / 60000:.1f}m"


def calculate_duration(start_time: datetime, end_time: Optional[datetime] = None) -> int:
    """
    Whole seconds elapsed between start_time and end_time (default: now).

    Naive datetimes are treated as UTC.
    """
    end = end_time or datetime.now(timezone.utc)
    if start_time.tzinfo is None:
        start_time = start_time.replace(tzinfo=timezone.utc)
    if end.tzinfo is None:
        end = end.replace(tzinfo=timezone.utc)
    return int((end - start_time).total_seconds())
