"""
Review Service API Models (Pydantic)

Request/response schemas for the remote review service including:
- Vocabulary words and their spaced repetition cards
- Review sessions and per-occurrence session cards
- Session start / submit requests
- Supporting read models (due cards, statistics, insights, preferences, modes)
- Client-side derived models (progress snapshot, lifecycle events)

ARCHITECTURE NOTE:
    The server is the single source of truth for every counter and derived
    score on ReviewSession. The client replaces its snapshot wholesale with
    each server response and never increments counters itself.

API Contract:
    Request models use StrictRequest (extra="forbid") to reject unknown fields.
    Response models use StrictResponse (extra="ignore") so newer servers with
    additional fields keep working.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from review_client.enums.review import (
    GoalPeriod,
    ReviewMode,
    ReviewOutcome,
    SessionEventType,
    WeekendReviewMode,
    WordType,
)
from review_client.models.base import StrictRequest, StrictResponse


# ===========================================
# Word and Card Models
# ===========================================


class Word(StrictResponse):
    """A vocabulary item as presented on a card."""

    id: str
    text: str
    translation: str
    pronunciation: Optional[str] = None
    type: WordType = WordType.OTHER
    category: Optional[str] = None
    difficulty_level: int = 1
    example_sentence: Optional[str] = None
    example_translation: Optional[str] = None


class ReviewHistory(StrictResponse):
    """One past review of a card, as recorded by the server."""

    id: str
    review_outcome: ReviewOutcome
    response_time: int = 0
    reviewed_at: datetime
    interval_before: float = 0
    interval_after: float = 0
    ease_factor_before: float = 0
    ease_factor_after: float = 0
    confidence_level: Optional[int] = None
    was_correct: bool = False
    score: float = 0


class SpacedRepetitionCard(StrictResponse):
    """
    Spaced repetition card with server-computed scheduling state.

    Interval, ease factor, difficulty and retention are computed by the
    review service and are read-only to the client.
    """

    id: str
    user_id: str
    word: Word
    interval_days: float = Field(0, description="Current interval in days")
    ease_factor: float = Field(2.5, description="SM-2 style ease factor")
    due_date: datetime
    next_review: Optional[datetime] = None
    last_reviewed: Optional[datetime] = None

    # Stats
    total_reviews: int = 0
    correct_reviews: int = 0
    consecutive_correct: int = 0
    consecutive_incorrect: int = 0
    difficulty_level: float = 0
    performance_index: float = 0
    average_response_time: float = 0
    is_active: bool = True
    is_suspended: bool = False
    stability_factor: float = 0
    total_study_time: int = 0
    last_review_outcome: Optional[ReviewOutcome] = None
    review_count_again: int = 0
    review_count_hard: int = 0
    review_count_good: int = 0
    review_count_easy: int = 0
    card_age_days: int = 0
    retention_rate: float = 0

    # Flags
    is_due: bool = False
    is_new: bool = False
    is_difficult: bool = False
    difficulty_rating: float = 0
    review_history: list[ReviewHistory] = Field(default_factory=list)


class ReviewSessionCard(StrictResponse):
    """
    One scheduled occurrence of a card within a review session.

    Per-occurrence fields (outcome, response time, interval and ease-factor
    snapshots) are populated by the server after the card is reviewed.
    """

    id: str
    session_id: str
    card: SpacedRepetitionCard
    response_time: int = Field(0, description="Measured response time in ms")
    review_outcome: Optional[ReviewOutcome] = None
    reviewed_at: Optional[datetime] = None
    interval_before_review: Optional[float] = None
    interval_after_review: Optional[float] = None
    ease_factor_before_review: Optional[float] = None
    ease_factor_after_review: Optional[float] = None
    review_number: Optional[int] = None
    consecutive_correct_before: Optional[int] = None
    was_correct: Optional[bool] = None
    score: Optional[float] = None
    user_answer: Optional[str] = None
    hint_used: Optional[bool] = None
    confidence_level: Optional[int] = None
    marked_as_difficult: Optional[bool] = None
    notes: Optional[str] = None
    is_new_card: Optional[bool] = None
    was_difficult: Optional[bool] = None
    is_completed: Optional[bool] = None


# ===========================================
# Review Session
# ===========================================


class ReviewSession(StrictResponse):
    """
    Authoritative, server-confirmed state of one review run.

    Invariants (maintained by the server):
    - 0 <= current_card_index < total_cards while active
    - completed_cards <= total_cards
    - correct_answers <= completed_cards
    - once is_completed is true, no further submissions are accepted

    The derived fields (session_accuracy, cards_per_minute, efficiency_score,
    ...) are advisory and never recomputed client-side.
    """

    id: str
    user_id: str
    mode: ReviewMode
    start_time: datetime
    end_time: Optional[datetime] = None
    total_cards: int = Field(0, ge=0)
    completed_cards: int = Field(0, ge=0)
    correct_answers: int = Field(0, ge=0)
    average_response_time: float = 0
    is_completed: bool = False
    cards: list[ReviewSessionCard] = Field(default_factory=list)
    current_card_index: int = Field(0, ge=0)

    # Server-derived, advisory
    session_accuracy: Optional[float] = None
    session_duration: Optional[int] = None
    cards_per_minute: Optional[float] = None
    total_session_score: Optional[float] = None
    efficiency_score: Optional[float] = None
    new_cards_learned: Optional[int] = None
    difficult_cards_mastered: Optional[int] = None
    learning_velocity: Optional[float] = None
    remaining_cards: Optional[int] = None
    progress_percentage: Optional[float] = None


# ===========================================
# Session Requests
# ===========================================


class StartReviewSessionRequest(StrictRequest):
    """
    Request to start a review session.

    The include/exclude word-list filters are mutually exclusive; that rule
    and the limit bounds are checked by the engine before this model is
    built so that violations are reported as validation errors rather than
    pydantic exceptions.
    """

    mode: ReviewMode
    limit: int
    include_word_list_ids: Optional[list[str]] = None
    exclude_word_list_ids: Optional[list[str]] = None
    include_word_types: Optional[list[WordType]] = None
    exclude_word_types: Optional[list[WordType]] = None
    difficulty_range: Optional[tuple[float, float]] = None
    shuffle: Optional[bool] = None
    prioritize_new_cards: Optional[bool] = None


class SubmitReviewRequest(StrictRequest):
    """
    Submit the learner's outcome for one card.

    submission_id is generated once per submission by the client and reused
    across retries so the server can deduplicate replays.
    """

    session_id: str
    card_id: str
    outcome: ReviewOutcome
    response_time: int = Field(..., ge=0, description="Response time in ms")
    user_answer: Optional[str] = None
    confidence_level: Optional[int] = Field(None, ge=1, le=5)
    hint_used: Optional[bool] = None
    marked_as_difficult: Optional[bool] = None
    notes: Optional[str] = None
    submission_id: Optional[str] = None


# ===========================================
# Supporting Read Models
# ===========================================


class DueCardsResponse(StrictResponse):
    """Due cards plus the counters the server uses to recommend a session size."""

    due_cards: list[SpacedRepetitionCard] = Field(default_factory=list)
    total_due: int = 0
    total_new: int = 0
    total_difficult: int = 0
    total_active: int = 0
    recommended_limit: int = 0
    daily_limit: int = 0
    exceeds_daily_limit: bool = False
    new_cards_today: int = 0
    reviews_today: int = 0
    available_review_modes: list[str] = Field(default_factory=list)


class LearningVelocity(StrictResponse):
    cards_per_hour: float = 0
    cards_per_day: float = 0
    cards_per_week: float = 0
    cards_per_month: float = 0
    improvement_rate: float = 0
    trend: str = "stable"


class DailyMetric(StrictResponse):
    date: str
    cards_reviewed: int = 0
    accuracy: float = 0
    study_time: int = 0
    new_cards: int = 0
    difficult_cards: int = 0
    streak: int = 0


class WeeklyMetric(StrictResponse):
    week: str
    cards_reviewed: int = 0
    accuracy: float = 0
    study_time: int = 0
    new_cards: int = 0
    retention_rate: float = 0
    streak: int = 0


class Achievement(StrictResponse):
    id: str
    title: str
    description: str = ""
    icon: str = ""
    category: str = ""
    earned_at: Optional[datetime] = None
    progress: float = 0
    max_progress: float = 0
    is_unlocked: bool = False
    rarity: str = "common"


class RecentActivity(StrictResponse):
    date: str
    cards_reviewed: int = 0
    accuracy: float = 0
    study_time: int = 0
    session_mode: Optional[ReviewMode] = None
    streak: int = 0


class PerformanceInsight(StrictResponse):
    overall_accuracy: float = 0
    average_response_time: float = 0
    retention_rate: float = 0
    learning_velocity: float = 0
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    risk_factors: list[str] = Field(default_factory=list)
    growth_opportunities: list[str] = Field(default_factory=list)


class ReviewStatistics(StrictResponse):
    """Aggregated review statistics for a period."""

    user_id: str
    period_start: datetime
    period_end: datetime
    total_reviews: int = 0
    correct_reviews: int = 0
    average_accuracy: float = 0
    total_study_time: int = 0
    streak_days: int = 0
    longest_streak: int = 0
    learning_velocity: Optional[LearningVelocity] = None
    retention_rate: float = 0
    daily_metrics: list[DailyMetric] = Field(default_factory=list)
    weekly_metrics: list[WeeklyMetric] = Field(default_factory=list)
    achievements: list[Achievement] = Field(default_factory=list)
    due_cards_count: Optional[int] = None
    new_cards_count: Optional[int] = None
    difficult_cards_count: Optional[int] = None
    total_cards: Optional[int] = None
    today_reviews: Optional[int] = None
    weekly_reviews: Optional[int] = None
    recent_activity: list[RecentActivity] = Field(default_factory=list)
    performance_insight: Optional[PerformanceInsight] = None


class DifficultyDistribution(StrictResponse):
    easy: float = 0
    medium: float = 0
    hard: float = 0
    very_hard: float = 0


class PerformanceTrend(StrictResponse):
    accuracy: list[float] = Field(default_factory=list)
    response_time: list[float] = Field(default_factory=list)
    retention_rate: list[float] = Field(default_factory=list)
    timestamps: list[str] = Field(default_factory=list)


class ReviewInsights(StrictResponse):
    learning_velocity: float = 0
    retention_trend: str = "stable"
    optimal_study_times: list[str] = Field(default_factory=list)
    difficulty_distribution: Optional[DifficultyDistribution] = None
    recommendations: list[str] = Field(default_factory=list)
    performance_trends: Optional[PerformanceTrend] = None


class ReviewGoal(StrictResponse):
    period: GoalPeriod
    target: int


class UserReviewPreferences(StrictResponse):
    """
    Per-user review preferences.

    Only the fields the client acts on are modelled explicitly; any other
    server fields are ignored on read.
    """

    id: str
    user_id: str
    daily_review_limit: int = 100
    daily_new_card_limit: int = 20
    session_goal: int = 20
    preferred_review_time: Optional[str] = None
    enable_notifications: bool = True
    default_review_mode: ReviewMode = ReviewMode.DUE_CARDS
    auto_advance_cards: bool = False
    show_answer_delay: int = 0
    enable_hints: bool = True
    enable_pronunciation: bool = True
    timezone: Optional[str] = None
    weekend_review_mode: WeekendReviewMode = WeekendReviewMode.NORMAL
    vacation_mode: bool = False
    preferred_modes: list[ReviewMode] = Field(default_factory=list)
    included_card_types: list[WordType] = Field(default_factory=list)
    excluded_card_types: list[WordType] = Field(default_factory=list)
    review_goals: list[ReviewGoal] = Field(default_factory=list)
    weekly_goal: int = 0
    monthly_goal: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ReviewModeInfo(StrictResponse):
    """Catalogue entry describing one review mode and its availability."""

    mode: ReviewMode
    name: str
    description: str = ""
    available: bool = True
    card_count: int = 0
    is_recommended: bool = False
    estimated_time: int = 0
    difficulty: str = "medium"


# ===========================================
# Client-side Derived Models
# ===========================================


class ProgressSnapshot(BaseModel):
    """
    Derived progress metrics for the current position in a session.

    Recomputed on demand from a ReviewSession and the current pointer;
    never persisted and has no identity.
    """

    model_config = ConfigDict(frozen=True)

    current: int  # 1-based position
    total: int
    percentage: float
    completed: int
    correct: int
    accuracy: float
    remaining: int
    cards_per_minute: float = 0
    efficiency_score: float = 0
    session_score: float = 0


class SessionEvent(BaseModel):
    """
    Lifecycle notification delivered to event bus subscribers.

    Frozen so that one subscriber cannot alter what the next one sees.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    type: SessionEventType
    session_id: str
    timestamp: datetime
    data: Optional[dict[str, Any]] = None
