"""
Review Session Services

Services that drive a spaced repetition review session against the remote
review service.

Modules:
- resilience: retry with exponential backoff and jitter (tenacity)
- api_client: typed async transport to the review service (httpx)
- session_store: best-effort local persistence for resume-after-reload
- progress: derived progress metrics
- event_bus: lifecycle event publish/subscribe
- session_engine: session lifecycle orchestration

Usage:
    from review_client.services.review import (
        ReviewApiClient,
        ReviewSessionEngine,
        SessionStore,
    )
"""

from review_client.services.review.api_client import ReviewApiClient
from review_client.services.review.event_bus import SessionEventBus
from review_client.services.review.progress import (
    calculate_duration,
    calculate_progress,
    format_response_time,
)
from review_client.services.review.resilience import is_retryable, with_retry
from review_client.services.review.session_engine import (
    ReviewSessionEngine,
    validate_session_request,
)
from review_client.services.review.session_store import (
    FileKeyValueStore,
    KeyValueStore,
    MemoryKeyValueStore,
    SessionStore,
)

__all__ = [
    # Transport and resilience
    "ReviewApiClient",
    "is_retryable",
    "with_retry",
    # Persistence
    "FileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SessionStore",
    # Progress
    "calculate_duration",
    "calculate_progress",
    "format_response_time",
    # Events
    "SessionEventBus",
    # Engine
    "ReviewSessionEngine",
    "validate_session_request",
]
