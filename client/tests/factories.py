"""
Test Data Factories

Builders for review models and an in-memory fake of the review service
that follows the server's contract: every call returns a full, new
ReviewSession snapshot and counters are only ever changed server-side.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from review_client.enums.review import ReviewMode, ReviewOutcome, WordType
from review_client.models.review import (
    ReviewSession,
    ReviewSessionCard,
    ReviewStatistics,
    SpacedRepetitionCard,
    StartReviewSessionRequest,
    SubmitReviewRequest,
    UserReviewPreferences,
    Word,
)

# =============================================================================
# Test Data Constants
# =============================================================================

NOW: datetime = datetime(2026, 1, 5, 9, 30, tzinfo=timezone.utc)
DEFAULT_USER_ID: str = "user-1"
DEFAULT_SESSION_ID: str = "session-1"
CORRECT_OUTCOMES: frozenset[ReviewOutcome] = frozenset(
    {ReviewOutcome.GOOD, ReviewOutcome.EASY}
)


# =============================================================================
# Model Factories
# =============================================================================


def make_word(index: int) -> Word:
    return Word(
        id=f"word-{index}",
        text=f"word{index}",
        translation=f"translation{index}",
        type=WordType.NOUN,
        difficulty_level=2,
    )


def make_card(index: int, user_id: str = DEFAULT_USER_ID) -> SpacedRepetitionCard:
    return SpacedRepetitionCard(
        id=f"card-{index}",
        user_id=user_id,
        word=make_word(index),
        interval_days=1,
        ease_factor=2.5,
        due_date=NOW,
        is_due=True,
    )


def make_session(
    total_cards: int = 10,
    completed_cards: int = 0,
    correct_answers: int = 0,
    current_card_index: int = 0,
    session_id: str = DEFAULT_SESSION_ID,
    mode: ReviewMode = ReviewMode.DUE_CARDS,
    **overrides: Any,
) -> ReviewSession:
    """
    Create a ReviewSession with `total_cards` cards.

    Args:
        total_cards: Number of cards (card ids are card-0 .. card-N-1)
        completed_cards: Server completed counter
        correct_answers: Server correct counter
        current_card_index: Server pointer
        session_id: Session identifier
        mode: Review mode
        **overrides: Any other ReviewSession field

    Returns:
        A fully populated ReviewSession
    """
    cards = [
        ReviewSessionCard(id=f"sc-{i}", session_id=session_id, card=make_card(i))
        for i in range(total_cards)
    ]
    return ReviewSession(
        id=session_id,
        user_id=DEFAULT_USER_ID,
        mode=mode,
        start_time=NOW,
        total_cards=total_cards,
        completed_cards=completed_cards,
        correct_answers=correct_answers,
        cards=cards,
        current_card_index=current_card_index,
        **overrides,
    )


def envelope(data: Any, success: bool = True, message: Optional[str] = None) -> dict:
    """Wrap a payload the way the review service does."""
    return {"success": success, "data": data, "message": message}


# =============================================================================
# Fakes
# =============================================================================


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeReviewService:
    """
    In-memory stand-in for the remote review service.

    Method signatures match ReviewApiClient so instances can back an
    AsyncMock(side_effect=...) per endpoint.
    """

    def __init__(self, available_cards: int = 100) -> None:
        self.available_cards = available_cards
        self.active: Optional[ReviewSession] = None
        self.sessions: dict[str, ReviewSession] = {}
        self.submissions: list[SubmitReviewRequest] = []
        self._counter = 0

    async def get_active_session(self) -> Optional[ReviewSession]:
        return self.active

    async def start_session(self, request: StartReviewSessionRequest) -> ReviewSession:
        self._counter += 1
        session = make_session(
            total_cards=min(request.limit, self.available_cards),
            session_id=f"session-{self._counter}",
            mode=request.mode,
        )
        self.sessions[session.id] = session
        return session

    async def submit_review(self, request: SubmitReviewRequest) -> ReviewSession:
        session = self.sessions[request.session_id]
        self.submissions.append(request)

        index = next(
            i for i, item in enumerate(session.cards) if item.card.id == request.card_id
        )
        was_correct = request.outcome in CORRECT_OUTCOMES
        cards = list(session.cards)
        cards[index] = cards[index].model_copy(
            update={
                "review_outcome": request.outcome,
                "response_time": request.response_time,
                "reviewed_at": NOW,
                "was_correct": was_correct,
            }
        )
        completed = session.completed_cards + 1
        correct = session.correct_answers + int(was_correct)
        updated = session.model_copy(
            update={
                "cards": cards,
                "completed_cards": completed,
                "correct_answers": correct,
                "current_card_index": min(index + 1, session.total_cards - 1),
                "session_accuracy": correct / completed * 100,
            }
        )
        self.sessions[session.id] = updated
        return updated

    async def complete_session(self, session_id: str) -> ReviewSession:
        final = self.sessions[session_id].model_copy(
            update={
                "is_completed": True,
                "end_time": NOW + timedelta(minutes=5),
                "session_duration": 300,
            }
        )
        self.sessions[session_id] = final
        return final

    async def get_current_month_statistics(self) -> ReviewStatistics:
        return ReviewStatistics(
            user_id=DEFAULT_USER_ID,
            period_start=NOW - timedelta(days=4),
            period_end=NOW,
            total_reviews=42,
            correct_reviews=35,
            average_accuracy=83.3,
        )

    async def get_preferences(self) -> UserReviewPreferences:
        return UserReviewPreferences(id="prefs-1", user_id=DEFAULT_USER_ID)
