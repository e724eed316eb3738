"""
Unit tests for session persistence.

Tests SessionStore and its key-value backends:
- Save/load round trip with datetime reconstruction
- camelCase JSON on disk
- Malformed or missing records load as None
- Backend failures are logged and swallowed
- FileKeyValueStore atomic writes
"""

import json
import logging
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from review_client.enums.review import ReviewOutcome
from review_client.services.review.session_store import (
    FileKeyValueStore,
    MemoryKeyValueStore,
    SessionStore,
)
from tests.factories import NOW, make_session

KEY = "test_review_session"


@pytest.fixture
def backend() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def session_store(backend: MemoryKeyValueStore) -> SessionStore:
    return SessionStore(backend, key=KEY)


class TestRoundTrip:
    """save() followed by load()."""

    def test_round_trip_preserves_session(self, session_store: SessionStore) -> None:
        session = make_session(
            total_cards=4,
            completed_cards=2,
            correct_answers=1,
            current_card_index=2,
            session_accuracy=50.0,
        )

        session_store.save(session)
        restored = session_store.load()

        assert restored == session

    def test_datetimes_are_reconstructed(self, session_store: SessionStore) -> None:
        session = make_session(total_cards=1, end_time=NOW + timedelta(minutes=3))

        session_store.save(session)
        restored = session_store.load()

        assert isinstance(restored.start_time, datetime)
        assert restored.start_time == NOW
        assert restored.end_time == NOW + timedelta(minutes=3)
        assert restored.cards[0].card.due_date == NOW

    def test_per_card_outcomes_survive(self, session_store: SessionStore) -> None:
        session = make_session(total_cards=2)
        cards = list(session.cards)
        cards[0] = cards[0].model_copy(
            update={"review_outcome": ReviewOutcome.HARD, "reviewed_at": NOW}
        )
        session = session.model_copy(update={"cards": cards})

        session_store.save(session)
        restored = session_store.load()

        assert restored.cards[0].review_outcome == ReviewOutcome.HARD
        assert restored.cards[0].reviewed_at == NOW
        assert restored.cards[1].review_outcome is None

    def test_record_is_camel_case_json(
        self, session_store: SessionStore, backend: MemoryKeyValueStore
    ) -> None:
        session_store.save(make_session(total_cards=1))

        raw = json.loads(backend.get(KEY))

        assert raw["totalCards"] == 1
        assert raw["currentCardIndex"] == 0
        assert datetime.fromisoformat(raw["startTime"].replace("Z", "+00:00")) == NOW
        assert "endTime" not in raw

    def test_save_overwrites_previous_record(self, session_store: SessionStore) -> None:
        session_store.save(make_session(total_cards=3, session_id="old"))
        session_store.save(make_session(total_cards=5, session_id="new"))

        restored = session_store.load()

        assert restored.id == "new"
        assert restored.total_cards == 5

    def test_clear_removes_record(
        self, session_store: SessionStore, backend: MemoryKeyValueStore
    ) -> None:
        session_store.save(make_session(total_cards=1))

        session_store.clear()

        assert KEY not in backend
        assert session_store.load() is None


class TestMalformedRecords:
    """load() never raises."""

    def test_missing_record_loads_none(self, session_store: SessionStore) -> None:
        assert session_store.load() is None

    @pytest.mark.parametrize(
        "raw",
        [
            "{not json",
            json.dumps({"id": "session-1"}),
            json.dumps([1, 2, 3]),
            json.dumps({**make_session(total_cards=1).to_wire(), "startTime": "yesterday"}),
        ],
    )
    def test_malformed_record_loads_none(
        self,
        session_store: SessionStore,
        backend: MemoryKeyValueStore,
        raw: str,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        backend.set(KEY, raw)

        with caplog.at_level(logging.WARNING):
            assert session_store.load() is None

        assert "malformed" in caplog.text


class TestBackendFailures:
    """Backend errors are logged, never raised."""

    def test_save_failure_is_swallowed(self, caplog: pytest.LogCaptureFixture) -> None:
        backend = MagicMock()
        backend.set.side_effect = OSError("disk full")
        store = SessionStore(backend, key=KEY)

        with caplog.at_level(logging.ERROR):
            store.save(make_session(total_cards=1))

        assert "disk full" in caplog.text

    def test_load_failure_returns_none(self) -> None:
        backend = MagicMock()
        backend.get.side_effect = PermissionError("denied")

        assert SessionStore(backend, key=KEY).load() is None

    def test_clear_failure_is_swallowed(self) -> None:
        backend = MagicMock()
        backend.delete.side_effect = OSError("read-only")

        SessionStore(backend, key=KEY).clear()

        backend.delete.assert_called_once_with(KEY)

    def test_default_key_from_settings(self) -> None:
        from review_client.config import settings

        assert SessionStore(MemoryKeyValueStore()).key == settings.SESSION_STORAGE_KEY


class TestFileKeyValueStore:
    """Directory-backed backend."""

    def test_round_trip_through_files(self, tmp_path: Path) -> None:
        store = SessionStore(FileKeyValueStore(tmp_path / "sessions"), key=KEY)
        session = make_session(total_cards=3, current_card_index=1)

        store.save(session)

        assert (tmp_path / "sessions" / f"{KEY}.json").exists()
        assert store.load() == session

    def test_no_temp_files_left_behind(self, tmp_path: Path) -> None:
        backend = FileKeyValueStore(tmp_path)

        backend.set(KEY, "first")
        backend.set(KEY, "second")

        assert [p.name for p in tmp_path.iterdir()] == [f"{KEY}.json"]
        assert backend.get(KEY) == "second"

    def test_missing_key_returns_none(self, tmp_path: Path) -> None:
        assert FileKeyValueStore(tmp_path).get("absent") is None

    def test_delete_missing_key_is_noop(self, tmp_path: Path) -> None:
        FileKeyValueStore(tmp_path).delete("absent")
