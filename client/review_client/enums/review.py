"""
Review System Enums

Defines enums shared between the review service contract and the
client-side session engine: review modes, recall outcomes, word types,
preference options, session lifecycle states and event types.

Values mirror the wire format of the remote review service (upper-case
strings), except for the client-only SessionState and SessionEventType.
"""

from enum import Enum


class ReviewMode(str, Enum):
    """
    Strategy the review service uses to select cards for a session.
    """

    DUE_CARDS = "DUE_CARDS"  # Cards due for review
    DIFFICULT_CARDS = "DIFFICULT_CARDS"  # Cards marked as difficult
    RANDOM_REVIEW = "RANDOM_REVIEW"  # Random sample of available cards
    NEW_CARDS = "NEW_CARDS"  # Cards never studied
    TARGETED_REVIEW = "TARGETED_REVIEW"  # Specific lists or word types
    ALL_CARDS = "ALL_CARDS"  # Everything available


class ReviewOutcome(str, Enum):
    """
    Learner's self-assessed recall quality for one card.

    The engine treats this as an opaque tag; interval and ease-factor
    updates are computed by the review service.
    """

    AGAIN = "AGAIN"  # Didn't know
    HARD = "HARD"  # Barely knew
    GOOD = "GOOD"  # Knew it
    EASY = "EASY"  # Knew perfectly


class WordType(str, Enum):
    """Part of speech of a vocabulary word."""

    NOUN = "NOUN"
    VERB = "VERB"
    ADJECTIVE = "ADJECTIVE"
    ADVERB = "ADVERB"
    PHRASE = "PHRASE"
    OTHER = "OTHER"


class WeekendReviewMode(str, Enum):
    """How reviews are scheduled on weekends."""

    NORMAL = "NORMAL"
    REDUCED = "REDUCED"
    PAUSED = "PAUSED"


class GoalPeriod(str, Enum):
    """Period a review goal applies to."""

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"


class SessionState(str, Enum):
    """
    Client-side lifecycle state of the review session engine.

    State transitions:
    - UNINITIALIZED → ACTIVE (session started or hydrated)
    - ACTIVE ⇄ PAUSED (pause / resume)
    - ACTIVE → COMPLETED (last card submitted or explicit completion)
    - ACTIVE | PAUSED → UNINITIALIZED (manual end)
    """

    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


class SessionEventType(str, Enum):
    """Lifecycle notifications published by the session engine."""

    START = "start"
    SUBMIT = "submit"
    COMPLETE = "complete"
    PAUSE = "pause"
    RESUME = "resume"
    ERROR = "error"
