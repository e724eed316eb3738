"""
Shared Test Fixtures and Configuration

This module provides pytest fixtures used across the unit tests.
"""

import os
from pathlib import Path
from typing import Generator
from unittest.mock import AsyncMock, MagicMock

import pytest
from dotenv import load_dotenv

from review_client.services.review.api_client import ReviewApiClient
from review_client.services.review.session_engine import ReviewSessionEngine
from review_client.services.review.session_store import (
    MemoryKeyValueStore,
    SessionStore,
)
from tests.factories import FakeClock, FakeReviewService

# Load .env from the project root so local overrides are visible to tests
_env_file = Path(__file__).parent.parent.parent / ".env"
if _env_file.exists():
    load_dotenv(_env_file)


# ============================================================================
# Environment Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment() -> Generator[None, None, None]:
    """
    Set up test environment variables before any tests run.

    Overrides values from .env files so tests never talk to a real service.
    """
    original_env = os.environ.copy()

    test_env = {
        "API_BASE_URL": "http://review.test/api",
        "API_AUTH_TOKEN": "test-token",
        "DEBUG": "true",
    }
    os.environ.update(test_env)

    yield

    os.environ.clear()
    os.environ.update(original_env)


# ============================================================================
# Clock
# ============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ============================================================================
# Review Service Mocks
# ============================================================================


@pytest.fixture
def fake_service() -> FakeReviewService:
    """In-memory review service backing the mock API."""
    return FakeReviewService()


@pytest.fixture
def mock_api(fake_service: FakeReviewService) -> MagicMock:
    """
    ReviewApiClient mock whose endpoints delegate to fake_service.

    Each endpoint is an AsyncMock, so tests can count awaits or replace
    side effects to inject failures.
    """
    api = MagicMock(spec=ReviewApiClient)
    api.get_active_session = AsyncMock(side_effect=fake_service.get_active_session)
    api.start_session = AsyncMock(side_effect=fake_service.start_session)
    api.submit_review = AsyncMock(side_effect=fake_service.submit_review)
    api.complete_session = AsyncMock(side_effect=fake_service.complete_session)
    api.get_current_month_statistics = AsyncMock(
        side_effect=fake_service.get_current_month_statistics
    )
    api.get_preferences = AsyncMock(side_effect=fake_service.get_preferences)
    return api


@pytest.fixture
def store() -> SessionStore:
    return SessionStore(MemoryKeyValueStore(), key="test_review_session")


@pytest.fixture
def sleep() -> AsyncMock:
    """Stand-in for asyncio.sleep so retries don't actually wait."""
    return AsyncMock()


@pytest.fixture
def engine(
    mock_api: MagicMock, store: SessionStore, sleep: AsyncMock, clock: FakeClock
) -> ReviewSessionEngine:
    """Engine with a 3-attempt retry budget, instant backoff and a fake clock."""
    return ReviewSessionEngine(
        mock_api,
        store,
        max_attempts=3,
        base_delay=1.0,
        jitter=0,
        sleep=sleep,
        clock=clock,
    )
