"""
Unit tests for review service Pydantic models.

Tests the wire contract:
- camelCase aliases in both directions
- Strict requests reject unknown fields; responses ignore them
- Field constraints on submit requests
- ApiResponse envelope parsing
"""

from typing import Optional

import pytest
from pydantic import ValidationError

from review_client.enums.review import ReviewMode, ReviewOutcome
from review_client.models.base import ApiResponse
from review_client.models.review import (
    ProgressSnapshot,
    ReviewSession,
    StartReviewSessionRequest,
    SubmitReviewRequest,
)
from tests.factories import NOW, make_session


class TestReviewSession:
    """Tests for the ReviewSession response model."""

    def test_parses_camel_case_payload(self) -> None:
        session = ReviewSession.model_validate(
            {
                "id": "session-9",
                "userId": "user-1",
                "mode": "DIFFICULT_CARDS",
                "startTime": "2026-01-05T09:30:00Z",
                "totalCards": 2,
                "completedCards": 1,
                "correctAnswers": 1,
                "currentCardIndex": 1,
                "sessionAccuracy": 100.0,
            }
        )

        assert session.mode == ReviewMode.DIFFICULT_CARDS
        assert session.start_time == NOW
        assert session.current_card_index == 1
        assert session.session_accuracy == 100.0
        assert session.cards == []

    def test_ignores_unknown_fields(self) -> None:
        payload = make_session(total_cards=1).to_wire()
        payload["experimentalScore"] = 7

        session = ReviewSession.model_validate(payload)

        assert not hasattr(session, "experimentalScore")

    def test_negative_counters_rejected(self) -> None:
        with pytest.raises(ValidationError):
            make_session(total_cards=1, completed_cards=-1)

    def test_wire_format_uses_aliases(self) -> None:
        wire = make_session(total_cards=1).to_wire()

        assert "totalCards" in wire
        assert "total_cards" not in wire
        assert wire["cards"][0]["card"]["word"]["text"] == "word0"


class TestRequests:
    """Tests for request models."""

    def test_start_request_rejects_unknown_fields(self) -> None:
        with pytest.raises(ValidationError):
            StartReviewSessionRequest(mode=ReviewMode.DUE_CARDS, limit=5, color="red")

    def test_start_request_omits_unset_filters(self) -> None:
        request = StartReviewSessionRequest(mode="RANDOM_REVIEW", limit=5, shuffle=True)

        assert request.to_wire() == {"mode": "RANDOM_REVIEW", "limit": 5, "shuffle": True}

    def test_start_request_difficulty_range(self) -> None:
        request = StartReviewSessionRequest(
            mode=ReviewMode.TARGETED_REVIEW, limit=5, difficulty_range=(1, 3)
        )

        assert request.to_wire()["difficultyRange"] == [1.0, 3.0]

    @pytest.mark.parametrize("confidence", [0, 6])
    def test_submit_confidence_bounds(self, confidence: int) -> None:
        with pytest.raises(ValidationError):
            SubmitReviewRequest(
                session_id="s",
                card_id="c",
                outcome=ReviewOutcome.GOOD,
                response_time=100,
                confidence_level=confidence,
            )

    def test_submit_rejects_negative_response_time(self) -> None:
        with pytest.raises(ValidationError):
            SubmitReviewRequest(
                session_id="s", card_id="c", outcome=ReviewOutcome.AGAIN, response_time=-1
            )

    def test_submit_accepts_camel_case_input(self) -> None:
        request = SubmitReviewRequest.model_validate(
            {"sessionId": "s", "cardId": "c", "outcome": "EASY", "responseTime": 900}
        )

        assert request.session_id == "s"
        assert request.outcome == ReviewOutcome.EASY


class TestApiResponse:
    """Tests for the generic envelope."""

    def test_typed_data(self) -> None:
        envelope = ApiResponse[ReviewSession].model_validate(
            {"success": True, "data": make_session(total_cards=1).to_wire()}
        )

        assert isinstance(envelope.data, ReviewSession)

    def test_null_data(self) -> None:
        envelope = ApiResponse[Optional[ReviewSession]].model_validate(
            {"success": True, "data": None, "timestamp": "2026-01-05T09:30:00Z"}
        )

        assert envelope.data is None
        assert envelope.timestamp == NOW

    def test_failure_with_errors(self) -> None:
        envelope = ApiResponse[ReviewSession].model_validate(
            {"success": False, "message": "nope", "errors": ["limit too large"]}
        )

        assert envelope.success is False
        assert envelope.errors == ["limit too large"]


class TestProgressSnapshot:
    def test_is_frozen(self) -> None:
        snapshot = ProgressSnapshot(
            current=1, total=2, percentage=50, completed=0, correct=0, accuracy=0, remaining=2
        )

        with pytest.raises(ValidationError):
            snapshot.current = 2
