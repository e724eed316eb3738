#!/usr/bin/env python3
"""
Terminal Review Session Driver

Run a spaced repetition review session against the review service from the
terminal, using the same session engine a graphical client would use.

Setup:
    1. Start the review service
    2. Put API_BASE_URL and API_AUTH_TOKEN in .env (or export them)
    3. pip install -e .

Usage:
    # Resume the active session, or start a new due-cards session
    python scripts/review_session.py review

    # Start a specific mode with a custom size
    python scripts/review_session.py review --mode NEW_CARDS --limit 10

    # Show the active session and this month's statistics
    python scripts/review_session.py status

    # List review modes available to the user
    python scripts/review_session.py modes

Keys during a review (see config/default.yaml):
    Enter / space  show or hide the answer
    1 2 3 4        AGAIN / HARD / GOOD / EASY
    s              skip card
    p / r          pause / resume
    x              restart session
    q              end session and quit

Environment Variables (set in .env or environment):
    - API_BASE_URL: Review service root (default http://localhost:8080/api)
    - API_AUTH_TOKEN: Bearer token
    - SESSION_STORE_DIR: Where the resumable session is kept
    - DEBUG: Enable verbose logging
"""

import argparse
import asyncio
import logging
import sys
from typing import Any

from review_client.config import settings, yaml_config
from review_client.enums import ReviewMode, ReviewOutcome, SessionEventType
from review_client.models import SessionEvent
from review_client.services.review import (
    ReviewApiClient,
    ReviewSessionEngine,
    SessionStore,
)

REVIEW_CONFIG: dict[str, Any] = yaml_config.get("review", {})
OUTCOME_KEYS: dict[str, str] = REVIEW_CONFIG.get(
    "outcome_keys", {"1": "AGAIN", "2": "HARD", "3": "GOOD", "4": "EASY"}
)
COMMAND_KEYS: dict[str, str] = REVIEW_CONFIG.get(
    "command_keys",
    {" ": "toggle", "s": "skip", "p": "pause", "r": "resume", "x": "restart", "q": "quit"},
)


def setup_logging(debug: bool = False) -> None:
    """Configure logging based on debug flag."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    # Reduce noise from httpx (unless --debug)
    if not debug:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)


def print_event(event: SessionEvent) -> None:
    """Echo lifecycle events that the learner should see."""
    data = event.data or {}
    if event.type == SessionEventType.COMPLETE and not data.get("manualEnd"):
        accuracy = data.get("accuracy") or 0
        print(f"\n🎉 Session completed! {accuracy:.1f}% accuracy")
    elif event.type == SessionEventType.ERROR:
        print(f"\n❌ {data.get('action', 'operation')} failed: {data.get('error')}")


def render_card(engine: ReviewSessionEngine) -> None:
    """Print the current card and progress line."""
    card = engine.current_card
    progress = engine.progress
    if card is None or progress is None:
        return

    print()
    print(
        f"[{progress.current}/{progress.total}] "
        f"{progress.percentage:.0f}% · accuracy {progress.accuracy:.1f}% · "
        f"{engine.formatted_response_time}"
    )
    pronunciation = f"  /{card.word.pronunciation}/" if card.word.pronunciation else ""
    print(f"  {card.word.text}{pronunciation}")
    if engine.show_answer:
        print(f"  → {card.word.translation}")
        if card.word.example_sentence:
            print(f"    e.g. {card.word.example_sentence}")


# =============================================================================
# Commands
# =============================================================================


async def run_review(engine: ReviewSessionEngine, mode: ReviewMode, limit: int) -> None:
    """Interactive review loop."""
    if engine.session is None:
        session = await engine.start_review(mode, limit)
        if session is None:
            return
        print(f"🎯 Review session started: {session.total_cards} cards")
    else:
        print("↩️  Resuming your review session")

    while engine.is_session_active:
        render_card(engine)
        raw = await asyncio.to_thread(input, "> ")
        key = raw.strip().lower() or " "

        if key in OUTCOME_KEYS:
            if not engine.show_answer:
                print("Show the answer first (Enter).")
                continue
            await engine.submit_review(ReviewOutcome(OUTCOME_KEYS[key]))
            continue

        command = COMMAND_KEYS.get(key)
        if command == "toggle":
            engine.toggle_answer()
        elif command == "skip":
            await engine.skip_card()
        elif command == "pause":
            engine.pause_session()
            print("⏸  Session paused. Press r to resume.")
        elif command == "resume":
            engine.resume_session()
        elif command == "restart":
            engine.restart_session()
            print("🔄 Session restarted.")
        elif command == "quit":
            engine.end_session()
            print("Session ended.")
            return
        else:
            print("Unknown key.")


async def show_status(engine: ReviewSessionEngine) -> None:
    """Print the active session and this month's statistics."""
    progress = engine.progress
    if progress is None:
        print("No active review session.")
    else:
        print(
            f"Active session: card {progress.current}/{progress.total}, "
            f"{progress.completed} done, {progress.accuracy:.1f}% accuracy"
        )

    stats = await engine.load_statistics()
    if stats is not None:
        print(
            f"This month: {stats.total_reviews} reviews, "
            f"{stats.average_accuracy:.1f}% accuracy, {stats.streak_days}-day streak"
        )


async def list_modes(api: ReviewApiClient) -> None:
    """Print the available review modes."""
    for info in await api.get_available_review_modes():
        marker = "★" if info.is_recommended else " "
        status = f"{info.card_count} cards" if info.available else "unavailable"
        print(f"{marker} {info.mode.value:<16} {info.name} ({status})")


# =============================================================================
# CLI Setup
# =============================================================================


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        description="Run spaced repetition review sessions from the terminal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    review_parser = subparsers.add_parser("review", help="Resume or start a session")
    review_parser.add_argument(
        "--mode",
        choices=[mode.value for mode in ReviewMode],
        default=REVIEW_CONFIG.get("default_mode", ReviewMode.DUE_CARDS.value),
        help="Card selection mode for a new session",
    )
    review_parser.add_argument(
        "--limit",
        type=int,
        default=REVIEW_CONFIG.get("default_limit", settings.REVIEW_DEFAULT_LIMIT),
        help="Number of cards for a new session (1-100)",
    )

    subparsers.add_parser("status", help="Show the active session and statistics")
    subparsers.add_parser("modes", help="List available review modes")

    return parser


async def main() -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(args.debug or settings.DEBUG)

    async with ReviewApiClient() as api:
        if args.command == "modes":
            await list_modes(api)
            return

        engine = await ReviewSessionEngine.create(api, SessionStore.from_settings())
        unsubscribe = engine.add_event_listener(print_event)
        try:
            if args.command == "review":
                await run_review(engine, ReviewMode(args.mode), args.limit)
            elif args.command == "status":
                await show_status(engine)
        finally:
            unsubscribe()


if __name__ == "__main__":
    asyncio.run(main())
