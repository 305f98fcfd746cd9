"""Persisted set of saved (bookmarked) tool ids."""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from datetime import timezone
from pathlib import Path
from typing import Callable
from typing import Dict
from typing import List
from typing import Optional
from typing import Protocol

from pydantic import ValidationError

from toolscope.errors import StorageCorruptionError
from toolscope.models import SavedEntry

logger = logging.getLogger(__name__)

STORAGE_KEY = "toolscope_saved_tools"


class KeyValueStorage(Protocol):
    """Durable string storage addressed by key."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStorage:
    """In-process storage, used by tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


class FileStorage:
    """Stores each key as a JSON file inside a directory."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        safe_key = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self.directory / f"{safe_key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text()

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(value)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def decode_entries(payload: str) -> List[SavedEntry]:
    """Decode a persisted saved-tool payload.

    Raises StorageCorruptionError when the payload is not a JSON list of entries.
    """
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise StorageCorruptionError(f"Saved tools payload is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise StorageCorruptionError("Saved tools payload is not a JSON list")
    try:
        return [SavedEntry.model_validate(item) for item in data]
    except ValidationError as e:
        raise StorageCorruptionError(f"Saved tools payload has malformed entries: {e}") from e


def encode_entries(entries: List[SavedEntry]) -> str:
    return json.dumps([entry.model_dump(mode="json", by_alias=True) for entry in entries])


class SavedToolsStore:
    """Saved tool ids backed by a key/value storage.

    Entries are loaded once on construction; unreadable or corrupt data loads as
    an empty set. Every mutation writes the full set. A failed write is logged and
    the in-memory change is kept for the rest of the session.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        key: str = STORAGE_KEY,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._storage = storage
        self._key = key
        self._clock = clock
        self._entries: Dict[str, SavedEntry] = self._load()

    def _load(self) -> Dict[str, SavedEntry]:
        try:
            payload = self._storage.get(self._key)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read saved tools, starting empty: {e}")
            return {}
        if not payload:
            return {}
        try:
            entries = decode_entries(payload)
        except StorageCorruptionError as e:
            logger.warning(f"Resetting saved tools: {e}")
            return {}
        loaded = {entry.tool_id: entry for entry in entries}
        logger.info(f"Loaded {len(loaded)} saved tools")
        return loaded

    def _commit(self, entries: Dict[str, SavedEntry]) -> None:
        self._entries = entries
        try:
            self._storage.set(self._key, encode_entries(list(entries.values())))
        except OSError as e:
            logger.error(f"Failed to persist saved tools: {e}")

    def is_saved(self, tool_id) -> bool:
        return str(tool_id) in self._entries

    def toggle(self, tool_id) -> bool:
        """Save an unsaved tool or unsave a saved one; return whether it is now saved."""
        tool_id = str(tool_id)
        entries = dict(self._entries)
        if tool_id in entries:
            del entries[tool_id]
            self._commit(entries)
            return False
        entries[tool_id] = SavedEntry(tool_id=tool_id, saved_at=self._clock())
        self._commit(entries)
        return True

    def clear_all(self) -> None:
        self._commit({})

    def list_ids(self) -> List[str]:
        """Saved ids in the order they were saved."""
        return list(self._entries)

    @property
    def count(self) -> int:
        return len(self._entries)
