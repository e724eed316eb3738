"""
Review Session Engine

Drives one spaced repetition review session from start to completion
against the remote review service.

The engine owns the authoritative in-memory session snapshot and the
pointer to the card being presented, and coordinates four collaborators:
- resilience.with_retry: bounded retry with backoff around every remote call
- ReviewApiClient: transport to the review service
- SessionStore: best-effort local persistence for resume-after-reload
- SessionEventBus: lifecycle notifications for UI/telemetry

Snapshot discipline:
    After every successful remote call the snapshot is replaced wholesale by
    the server's response. Counters and derived scores are never computed or
    incremented locally, so the client cannot drift from the server.

State machine (see SessionState):
    UNINITIALIZED → ACTIVE          start_review() / initialize()
    ACTIVE ⇄ PAUSED                 pause_session() / resume_session()
    ACTIVE → ACTIVE                 submit_review() on a non-final card
    ACTIVE → COMPLETED              submit_review() on the last card, complete_session()
    ACTIVE | PAUSED → UNINITIALIZED end_session()

Error policy:
    Remote failures never propagate out of the lifecycle operations. They are
    stored in `engine.error`, logged, emitted as an `error` event and passed
    to the on_error callback; the operation returns None. Calling an
    operation with no applicable session is a silent no-op.

Concurrency:
    Single event loop. The only suspension points are the awaited remote
    calls; every state mutation, persistence write and event dispatch runs
    synchronously between them. At most one submission is in flight at a
    time (is_submitting guard), so outcomes are applied in issue order.

Usage:
    from review_client.services.review.session_engine import ReviewSessionEngine

    engine = await ReviewSessionEngine.create(api, store)
    unsubscribe = engine.add_event_listener(print)

    await engine.start_review(ReviewMode.DUE_CARDS, limit=10)
    engine.toggle_answer()
    await engine.submit_review(ReviewOutcome.GOOD)
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, TypeVar
from uuid import uuid4

from pydantic import ValidationError

from review_client.config import settings
from review_client.enums.review import (
    ReviewMode,
    ReviewOutcome,
    SessionEventType,
    SessionState,
)
from review_client.errors import (
    AuthenticationError,
    ReviewClientError,
    SessionValidationError,
)
from review_client.models.review import (
    ProgressSnapshot,
    ReviewSession,
    ReviewSessionCard,
    ReviewStatistics,
    SessionEvent,
    SpacedRepetitionCard,
    StartReviewSessionRequest,
    SubmitReviewRequest,
    UserReviewPreferences,
)
from review_client.services.review.api_client import ReviewApiClient
from review_client.services.review.event_bus import SessionEventBus, SessionEventHandler
from review_client.services.review.progress import (
    calculate_duration,
    calculate_progress,
    format_response_time,
)
from review_client.services.review.resilience import with_retry
from review_client.services.review.session_store import MemoryKeyValueStore, SessionStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Mutually exclusive start filters
EXCLUSIVE_FILTERS: tuple[tuple[str, str, str], ...] = (
    (
        "include_word_list_ids",
        "exclude_word_list_ids",
        "Cannot specify both include and exclude word lists",
    ),
    (
        "include_word_types",
        "exclude_word_types",
        "Cannot specify both include and exclude word types",
    ),
)


def validate_session_request(
    mode: Any, limit: Any, options: Optional[dict[str, Any]] = None
) -> list[str]:
    """
    Check session-start parameters before any network call.

    Args:
        mode: Requested review mode (ReviewMode or its string value)
        limit: Requested number of cards
        options: Filter options (snake_case StartReviewSessionRequest fields)

    Returns:
        Human-readable error messages; empty if the request is valid
    """
    errors: list[str] = []
    options = options or {}

    try:
        ReviewMode(mode)
    except ValueError:
        errors.append("Invalid review mode")

    min_limit, max_limit = settings.REVIEW_MIN_LIMIT, settings.REVIEW_MAX_LIMIT
    if (
        isinstance(limit, bool)
        or not isinstance(limit, int)
        or not min_limit <= limit <= max_limit
    ):
        errors.append(f"Limit must be between {min_limit} and {max_limit}")

    for include_key, exclude_key, message in EXCLUSIVE_FILTERS:
        if options.get(include_key) is not None and options.get(exclude_key) is not None:
            errors.append(message)

    return errors


class ReviewSessionEngine:
    """
    Orchestrates the lifecycle of a review session.

    Create with ReviewSessionEngine.create() to run the dual-source
    initialization (server active session, then local record) up front, or
    construct directly and call initialize() later.
    """

    def __init__(
        self,
        api: ReviewApiClient,
        store: Optional[SessionStore] = None,
        event_bus: Optional[SessionEventBus] = None,
        *,
        max_attempts: Optional[int] = None,
        base_delay: Optional[float] = None,
        jitter: Optional[float] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        clock: Optional[Callable[[], float]] = None,
        on_success: Optional[Callable[[ReviewSession], None]] = None,
        on_error: Optional[Callable[[ReviewClientError], None]] = None,
        on_session_complete: Optional[Callable[[ReviewSession], None]] = None,
    ):
        """
        Initialize the engine.

        Args:
            api: Remote review service client
            store: Persistence adapter (default: in-memory store)
            event_bus: Event bus (default: a private bus)
            max_attempts: Retry budget per remote call (default: settings)
            base_delay: Backoff base in seconds (default: settings)
            jitter: Max random backoff offset in seconds (default: settings)
            sleep: Awaitable sleep between retries (default: asyncio.sleep)
            clock: Monotonic clock in seconds for response times
            on_success: Called with the session after a successful start
            on_error: Called with every reported error
            on_session_complete: Called with the final session on completion
        """
        self.api = api
        self.store = store or SessionStore(MemoryKeyValueStore())
        self.events = event_bus or SessionEventBus()

        self._retry_options: dict[str, Any] = {
            "max_attempts": max_attempts,
            "base_delay": base_delay,
            "jitter": jitter,
            "sleep": sleep,
        }
        self._clock: Callable[[], float] = clock or time.monotonic
        self.on_success = on_success
        self.on_error = on_error
        self.on_session_complete = on_session_complete

        # Session state
        self._session: Optional[ReviewSession] = None
        self._current_card_index: int = 0
        self._show_answer: bool = False
        self._is_submitting: bool = False
        self._is_paused: bool = False
        self._is_initialized: bool = False
        self._is_starting: bool = False
        self._is_completing: bool = False
        self._completion_pending: bool = False
        self._finished: bool = False
        self._presented_at: Optional[float] = None
        self._error: Optional[ReviewClientError] = None
        self._last_completed_session: Optional[ReviewSession] = None

        # Read-through caches
        self._statistics: Optional[ReviewStatistics] = None
        self._preferences: Optional[UserReviewPreferences] = None

    @classmethod
    async def create(
        cls,
        api: ReviewApiClient,
        store: Optional[SessionStore] = None,
        event_bus: Optional[SessionEventBus] = None,
        **kwargs: Any,
    ) -> "ReviewSessionEngine":
        """Construct an engine and run initialize()."""
        engine = cls(api, store, event_bus, **kwargs)
        await engine.initialize()
        return engine

    # =========================================================================
    # Read-only State
    # =========================================================================

    @property
    def session(self) -> Optional[ReviewSession]:
        """Deep copy of the current snapshot; mutating it has no effect."""
        return self._session.model_copy(deep=True) if self._session else None

    @property
    def current_session_card(self) -> Optional[ReviewSessionCard]:
        card = self._session_card()
        return card.model_copy(deep=True) if card else None

    @property
    def current_card(self) -> Optional[SpacedRepetitionCard]:
        card = self._session_card()
        return card.card.model_copy(deep=True) if card else None

    @property
    def current_card_index(self) -> int:
        return self._current_card_index

    @property
    def show_answer(self) -> bool:
        return self._show_answer

    @property
    def is_submitting(self) -> bool:
        return self._is_submitting

    @property
    def is_paused(self) -> bool:
        return self._is_paused

    @property
    def is_initialized(self) -> bool:
        return self._is_initialized

    @property
    def is_starting(self) -> bool:
        return self._is_starting

    @property
    def is_completing(self) -> bool:
        return self._is_completing

    @property
    def is_session_active(self) -> bool:
        return self._session is not None and not self._session.is_completed

    @property
    def error(self) -> Optional[ReviewClientError]:
        """Most recently reported error; cleared by the next successful call."""
        return self._error

    @property
    def last_completed_session(self) -> Optional[ReviewSession]:
        """Final snapshot of the most recently completed session."""
        if self._last_completed_session is None:
            return None
        return self._last_completed_session.model_copy(deep=True)

    @property
    def statistics(self) -> Optional[ReviewStatistics]:
        return self._statistics

    @property
    def preferences(self) -> Optional[UserReviewPreferences]:
        return self._preferences

    @property
    def state(self) -> SessionState:
        if self._session is None:
            return SessionState.COMPLETED if self._finished else SessionState.UNINITIALIZED
        if self._is_paused:
            return SessionState.PAUSED
        return SessionState.ACTIVE

    @property
    def progress(self) -> Optional[ProgressSnapshot]:
        if self._session is None:
            return None
        return calculate_progress(self._session, self._current_card_index)

    @property
    def current_response_time(self) -> int:
        """Milliseconds since the current card was presented (0 if none)."""
        if self._presented_at is None:
            return 0
        return max(0, int((self._clock() - self._presented_at) * 1000))

    @property
    def formatted_response_time(self) -> str:
        return format_response_time(self.current_response_time)

    # =========================================================================
    # Initialization
    # =========================================================================

    async def initialize(self) -> Optional[ReviewSession]:
        """
        Resume an existing session, if there is one.

        Asks the server for an active session first and falls back to the
        locally persisted record. The first source that yields a session
        wins and locks initialization; neither source is consulted again.
        A session started while the lookup was in flight is kept.

        Returns:
            Copy of the resumed session, or None
        """
        if self._is_initialized:
            return self.session

        try:
            active = await self._retry(self.api.get_active_session)
        except AuthenticationError as e:
            self._report_error(e, "initialize")
            return None
        except ReviewClientError as e:
            logger.warning(f"Active session lookup failed, trying local record: {e}")
            active = None

        if self._is_initialized or self._session is not None:
            # start_review() won the race
            self._is_initialized = True
            return self.session

        if active is not None and not active.is_completed:
            self._hydrate(active, source="server")
            return self.session

        saved = self.store.load()
        if saved is not None and not saved.is_completed:
            self._hydrate(saved, source="local store")
            return self.session

        logger.debug("No review session to resume")
        return None

    def _hydrate(self, session: ReviewSession, source: str) -> None:
        last_index = max(len(session.cards) - 1, 0)
        self._session = session
        self._current_card_index = min(max(session.current_card_index, 0), last_index)
        self._show_answer = False
        self._is_paused = False
        # every card already answered: only the completion call is outstanding
        self._completion_pending = 0 < session.total_cards <= session.completed_cards
        self._finished = False
        self._is_initialized = True
        self._restart_clock()
        self._persist()
        logger.info(
            f"Resumed review session {session.id} from {source} "
            f"at card {self._current_card_index + 1}/{session.total_cards}"
        )

    # =========================================================================
    # Lifecycle Operations
    # =========================================================================

    async def start_review(
        self,
        mode: ReviewMode,
        limit: Optional[int] = None,
        **options: Any,
    ) -> Optional[ReviewSession]:
        """
        Start a new review session.

        Args:
            mode: Card selection strategy
            limit: Number of cards, 1-100 (default: settings.REVIEW_DEFAULT_LIMIT)
            **options: Filters, e.g. include_word_list_ids, exclude_word_types,
                difficulty_range, shuffle, prioritize_new_cards

        Returns:
            Copy of the new session, or None on validation or remote failure
        """
        if limit is None:
            limit = settings.REVIEW_DEFAULT_LIMIT

        errors = validate_session_request(mode, limit, options)
        request: Optional[StartReviewSessionRequest] = None
        if not errors:
            try:
                request = StartReviewSessionRequest(mode=mode, limit=limit, **options)
            except ValidationError as e:
                errors = [_format_validation_error(err) for err in e.errors()]
        if errors:
            self._report_error(
                SessionValidationError(errors, details={"mode": str(mode), "limit": limit}),
                "start",
            )
            return None

        logger.info(f"Starting review session: mode={request.mode.value}, limit={limit}")
        self._is_starting = True
        try:
            session = await self._retry(lambda: self.api.start_session(request))
        except ReviewClientError as e:
            self._report_error(e, "start")
            return None
        finally:
            self._is_starting = False

        self._session = session
        self._current_card_index = 0
        self._show_answer = False
        self._is_paused = False
        self._completion_pending = False
        self._finished = False
        self._is_initialized = True
        self._error = None
        self._statistics = None
        self._restart_clock()
        self._persist()

        logger.info(f"Started review session {session.id} with {session.total_cards} cards")
        self._emit(
            SessionEventType.START,
            session.id,
            {"mode": session.mode.value, "totalCards": session.total_cards},
        )
        self._notify(self.on_success, self.session)
        return self.session

    async def submit_review(
        self,
        outcome: ReviewOutcome,
        user_answer: Optional[str] = None,
        confidence_level: Optional[int] = None,
        hint_used: Optional[bool] = None,
        marked_as_difficult: Optional[bool] = None,
        notes: Optional[str] = None,
    ) -> Optional[ReviewSession]:
        """
        Submit the learner's outcome for the current card.

        No-op when there is no session or card, the session is completed or
        paused, or another submission is still in flight. On success the
        snapshot is replaced by the server's response and the pointer
        advances; submitting the last card completes the session.
        If the last card was accepted but completing failed, the next call
        retries completion instead of submitting the card again.

        Args:
            outcome: Self-assessed recall quality
            user_answer: Optional typed answer
            confidence_level: Optional confidence, 1-5
            hint_used: Whether a hint was shown
            marked_as_difficult: Whether the learner flagged the card
            notes: Free-text notes

        Returns:
            Copy of the updated session (None if it completed or on failure)
        """
        if self._is_submitting:
            logger.debug("Ignoring submit: a submission is already in flight")
            return None

        session = self._session
        session_card = self._session_card()
        if session is None or session_card is None:
            logger.debug("Ignoring submit: no active session or card")
            return None
        if session.is_completed or self._is_paused:
            logger.debug(f"Ignoring submit: session {session.id} is completed or paused")
            return None

        self._is_submitting = True
        try:
            if self._completion_pending:
                # last card already accepted; resubmitting would count it twice
                logger.info(f"Retrying completion of review session {session.id}")
                await self.complete_session()
                return None

            index = self._current_card_index
            try:
                request = SubmitReviewRequest(
                    session_id=session.id,
                    card_id=session_card.card.id,
                    outcome=outcome,
                    response_time=self.current_response_time,
                    user_answer=user_answer,
                    confidence_level=confidence_level,
                    hint_used=hint_used,
                    marked_as_difficult=marked_as_difficult,
                    notes=notes,
                    submission_id=str(uuid4()),
                )
            except ValidationError as e:
                errors = [_format_validation_error(err) for err in e.errors()]
                self._report_error(
                    SessionValidationError(errors, details={"cardId": session_card.card.id}),
                    "submit",
                )
                return None

            try:
                updated = await self._retry(lambda: self.api.submit_review(request))
            except ReviewClientError as e:
                self._report_error(e, "submit")
                return None

            if self._session is None or self._session.id != session.id:
                logger.info(f"Discarding submit result for ended session {session.id}")
                return None

            self._session = updated
            self._error = None
            self._statistics = None
            is_last_card = index >= len(updated.cards) - 1

            if not is_last_card:
                self._current_card_index = index + 1
                self._show_answer = False
                self._restart_clock()
            self._persist()

            accuracy = updated.session_accuracy
            if accuracy is None:
                accuracy = calculate_progress(updated, index).accuracy
            self._emit(
                SessionEventType.SUBMIT,
                updated.id,
                {
                    "cardIndex": index,
                    "outcome": request.outcome.value,
                    "accuracy": accuracy,
                },
            )

            if is_last_card:
                self._completion_pending = True
                await self.complete_session()
            return self.session
        finally:
            self._is_submitting = False

    async def skip_card(self) -> None:
        """
        Move past the current card without submitting an outcome.

        Same guards as submit_review(). Skipping the last card, or skipping
        once every card is answered, completes the session.
        """
        session = self._session
        if session is None or self._session_card() is None:
            return
        if self._is_submitting or self._is_paused or session.is_completed:
            return

        if not self._completion_pending and self._current_card_index < len(session.cards) - 1:
            self._current_card_index += 1
            self._show_answer = False
            self._restart_clock()
            self._persist()
            return

        self._is_submitting = True
        try:
            await self.complete_session()
        finally:
            self._is_submitting = False

    async def complete_session(self) -> Optional[ReviewSession]:
        """
        Finish the session on the server.

        On success the live snapshot is cleared, the local record erased and
        a `complete` event emitted. The final snapshot (marked completed) is
        kept in last_completed_session.

        Returns:
            Copy of the final session, or None if there was nothing to
            complete or the call failed
        """
        if self._session is None or self._is_completing:
            return None

        session_id = self._session.id
        self._is_completing = True
        try:
            completed = await self._retry(lambda: self.api.complete_session(session_id))
        except ReviewClientError as e:
            self._report_error(e, "complete")
            return None
        finally:
            self._is_completing = False

        final = completed.model_copy(update={"is_completed": True})
        self._last_completed_session = final
        self._error = None
        self._statistics = None

        if self._session is not None and self._session.id == session_id:
            self._teardown()
            self._finished = True
            self.store.clear()

        duration = final.session_duration
        if duration is None:
            duration = calculate_duration(final.start_time, final.end_time)

        logger.info(
            f"Completed review session {final.id}: "
            f"{final.correct_answers}/{final.total_cards} correct"
        )
        self._emit(
            SessionEventType.COMPLETE,
            final.id,
            {
                "totalCards": final.total_cards,
                "correctAnswers": final.correct_answers,
                "accuracy": final.session_accuracy,
                "duration": duration,
            },
        )
        self._notify(self.on_session_complete, final.model_copy(deep=True))
        return final.model_copy(deep=True)

    def pause_session(self) -> None:
        """Pause locally; submissions are ignored until resumed."""
        self._is_paused = True
        if self._session is not None:
            logger.info(f"Paused review session {self._session.id}")
            self._emit(SessionEventType.PAUSE, self._session.id)

    def resume_session(self) -> None:
        """Resume locally; paused time is not counted as response time."""
        self._is_paused = False
        self._restart_clock()
        if self._session is not None:
            logger.info(f"Resumed review session {self._session.id}")
            self._emit(SessionEventType.RESUME, self._session.id)

    def restart_session(self) -> Optional[ReviewSession]:
        """
        Restart the current session locally with the same cards.

        Counters, pointer and per-card outcomes are reset and a new start
        time stamped. Card order and content are preserved; nothing is
        fetched from the server.
        """
        if self._session is None:
            return None

        cards = [
            card.model_copy(
                update={
                    "review_outcome": None,
                    "reviewed_at": None,
                    "response_time": 0,
                    "was_correct": None,
                    "score": None,
                    "user_answer": None,
                    "interval_after_review": None,
                    "ease_factor_after_review": None,
                    "is_completed": None,
                }
            )
            for card in self._session.cards
        ]
        self._session = self._session.model_copy(
            update={
                "completed_cards": 0,
                "correct_answers": 0,
                "current_card_index": 0,
                "start_time": datetime.now(timezone.utc),
                "end_time": None,
                "session_duration": None,
                "session_accuracy": None,
                "remaining_cards": None,
                "progress_percentage": None,
                "cards": cards,
            }
        )
        self._completion_pending = False
        self._current_card_index = 0
        self._show_answer = False
        self._is_paused = False
        self._restart_clock()
        self._persist()

        logger.info(f"Restarted review session {self._session.id}")
        return self.session

    def end_session(self) -> None:
        """
        Abandon the session locally without calling the completion endpoint.

        Emits `complete` with manualEnd=True if a session existed.
        """
        session = self._session
        self._teardown()
        self._finished = False
        self.store.clear()

        if session is not None:
            logger.info(f"Ended review session {session.id} manually")
            self._emit(SessionEventType.COMPLETE, session.id, {"manualEnd": True})

    def toggle_answer(self) -> bool:
        """Flip answer visibility and return the new value."""
        self._show_answer = not self._show_answer
        return self._show_answer

    def add_event_listener(self, handler: SessionEventHandler) -> Callable[[], None]:
        """
        Subscribe to lifecycle events.

        Returns:
            Unsubscribe callable; invoke it to stop receiving events
        """
        return self.events.subscribe(handler)

    # =========================================================================
    # Supporting Reads
    # =========================================================================

    async def load_statistics(self, refresh: bool = False) -> Optional[ReviewStatistics]:
        """
        Current-month review statistics, cached until the next session change.
        """
        if self._statistics is not None and not refresh:
            return self._statistics
        try:
            self._statistics = await self._retry(self.api.get_current_month_statistics)
        except ReviewClientError as e:
            self._report_error(e, "statistics")
            return None
        return self._statistics

    async def load_preferences(
        self, refresh: bool = False
    ) -> Optional[UserReviewPreferences]:
        """The user's review preferences, cached for the engine's lifetime."""
        if self._preferences is not None and not refresh:
            return self._preferences
        try:
            self._preferences = await self._retry(self.api.get_preferences)
        except ReviewClientError as e:
            self._report_error(e, "preferences")
            return None
        return self._preferences

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _retry(self, operation: Callable[[], Awaitable[T]]) -> T:
        return await with_retry(operation, **self._retry_options)

    def _session_card(self) -> Optional[ReviewSessionCard]:
        if self._session is None:
            return None
        if 0 <= self._current_card_index < len(self._session.cards):
            return self._session.cards[self._current_card_index]
        return None

    def _restart_clock(self) -> None:
        self._presented_at = self._clock()

    def _persist(self) -> None:
        """Save a copy of the snapshot carrying the local pointer."""
        if self._session is None:
            return
        self.store.save(
            self._session.model_copy(
                update={"current_card_index": self._current_card_index}
            )
        )

    def _teardown(self) -> None:
        self._session = None
        self._completion_pending = False
        self._current_card_index = 0
        self._show_answer = False
        self._is_paused = False
        self._presented_at = None

    def _emit(
        self,
        event_type: SessionEventType,
        session_id: str,
        data: Optional[dict[str, Any]] = None,
    ) -> None:
        self.events.emit(
            SessionEvent(
                type=event_type,
                session_id=session_id,
                timestamp=datetime.now(timezone.utc),
                data=data,
            )
        )

    def _report_error(self, error: ReviewClientError, action: str) -> None:
        """Record, log, emit and forward an error without raising it."""
        self._error = error
        logger.error(f"Review session {action} failed: {error.message}")
        self._emit(
            SessionEventType.ERROR,
            self._session.id if self._session else "",
            {"error": error.message, "action": action, "errorCode": error.error_code},
        )
        self._notify(self.on_error, error)

    def _notify(self, callback: Optional[Callable[..., None]], *args: Any) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception("Error in review session callback")


def _format_validation_error(error: dict[str, Any]) -> str:
    """Render one pydantic error as 'field: message'."""
    message = error.get("msg", "invalid value")
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"{location}: {message}" if location else message
