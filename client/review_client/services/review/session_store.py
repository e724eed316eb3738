"""
Session Persistence Adapter

Keeps a serialized copy of the active review session in a durable
client-side key-value store so that a session can be resumed after a
reload or crash.

Responsibilities:
- Serialize a ReviewSession to camelCase JSON (datetimes as ISO-8601)
- Write it under a single well-known key, fully overwriting the old record
- Load and validate it back, reconstructing datetime fields
- Remove it when the session completes or is ended

Persistence is best-effort:
    Every failure is logged and swallowed. Losing the ability to resume is
    acceptable; corrupting or interrupting the live session is not. load()
    never raises and returns None for missing or malformed records.

All operations are synchronous so that the engine never suspends in the
middle of a state mutation.

Usage:
    from review_client.services.review.session_store import SessionStore

    store = SessionStore.from_settings()
    store.save(session)
    restored = store.load()
    store.clear()
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol

from pydantic import ValidationError

from review_client.config import settings
from review_client.models.review import ReviewSession

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Minimal string key-value storage used by SessionStore."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """In-process store; survives engine instances but not the process."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class FileKeyValueStore:
    """
    Directory-backed store: one `<key>.json` file per key.

    Writes go to a temporary file in the same directory followed by an
    atomic replace, so a crash mid-write leaves the previous record intact.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_name, self._path(key))
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class SessionStore:
    """
    Persistence adapter for the active review session.

    Holds only serialized copies; it never keeps a reference to the
    engine's live snapshot.
    """

    def __init__(self, backend: KeyValueStore, key: Optional[str] = None):
        """
        Initialize the session store.

        Args:
            backend: Key-value store to write to
            key: Record key (default: settings.SESSION_STORAGE_KEY)
        """
        self.backend = backend
        self.key = key or settings.SESSION_STORAGE_KEY

    @classmethod
    def from_settings(cls) -> "SessionStore":
        """Build a file-backed store in settings.SESSION_STORE_PATH."""
        return cls(FileKeyValueStore(settings.SESSION_STORE_PATH))

    def save(self, session: ReviewSession) -> None:
        """Serialize and overwrite the persisted record. Never raises."""
        try:
            self.backend.set(
                self.key, session.model_dump_json(by_alias=True, exclude_none=True)
            )
            logger.debug(f"Persisted review session {session.id}")
        except Exception as e:
            logger.error(f"Failed to persist review session {session.id}: {e}")

    def load(self) -> Optional[ReviewSession]:
        """
        Read back the persisted session.

        Returns:
            The session with datetime fields reconstructed, or None if there
            is no record or it cannot be parsed
        """
        try:
            raw = self.backend.get(self.key)
        except Exception as e:
            logger.error(f"Failed to read persisted review session: {e}")
            return None

        if not raw:
            return None

        try:
            return ReviewSession.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Discarding malformed persisted review session: {e}")
            return None

    def clear(self) -> None:
        """Remove the persisted record. Never raises."""
        try:
            self.backend.delete(self.key)
            logger.debug("Cleared persisted review session")
        except Exception as e:
            logger.error(f"Failed to clear persisted review session: {e}")
