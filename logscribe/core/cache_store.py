"""TTL cache over a KeyValueStore with a persisted key tracker."""

import json
import logging
import time
from typing import Any, Callable, Optional

from logscribe.core.database import KeyValueStore
from logscribe.core.exceptions import CacheCorruptionError
from logscribe.core.types import CacheEntry

logger = logging.getLogger("logscribe")

TRACKER_KEY = "__logscribe_cache_keys__"


class CacheStore:
    """Time-bounded cache with full-wipe support.

    The underlying store cannot enumerate its keys, so every key written
    through this class is recorded in a tracker list persisted under
    TRACKER_KEY. The tracker may hold keys whose entries are already gone;
    clear() tolerates that.

    Payloads must be JSON-serializable.
    """

    def __init__(
        self,
        store: KeyValueStore,
        duration_minutes: float = 30,
        clock: Callable[[], float] = time.time,
    ):
        self._store = store
        self._duration_sec = duration_minutes * 60
        self._clock = clock

    def update_duration(self, duration_minutes: float) -> None:
        self._duration_sec = duration_minutes * 60

    def get(self, key: str) -> Optional[Any]:
        """Return the cached payload, or None when absent, expired or corrupted."""
        raw = self._store.raw_get(key)
        if raw is None:
            return None

        try:
            entry = self._decode_entry(raw)
        except CacheCorruptionError as e:
            logger.warning(f"Ignoring corrupted cache entry '{key}': {e}")
            return None

        if not entry.is_valid(self._clock(), self._duration_sec):
            logger.debug(f"Cache entry expired: {key}")
            self.delete(key)
            return None

        return entry.data

    def set(self, key: str, data: Any) -> None:
        entry = {"data": data, "timestamp": self._clock()}
        self._store.raw_set(key, json.dumps(entry, ensure_ascii=False))
        self._track_key(key)

    def delete(self, key: str) -> None:
        self._store.raw_delete(key)
        keys = self.tracked_keys()
        if key in keys:
            keys.remove(key)
            self._save_tracker(keys)

    def clear(self) -> int:
        """Delete every tracked entry and empty the tracker.

        Returns:
            Number of tracked keys that were cleared.
        """
        keys = self.tracked_keys()
        for key in keys:
            self._store.raw_delete(key)
        self._store.raw_delete(TRACKER_KEY)
        logger.info(f"Cleared {len(keys)} cache entries")
        return len(keys)

    def tracked_keys(self) -> list[str]:
        raw = self._store.raw_get(TRACKER_KEY)
        if raw is None:
            return []
        try:
            keys = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Cache key tracker is corrupted, starting fresh")
            return []
        if not isinstance(keys, list):
            return []
        return [k for k in keys if isinstance(k, str)]

    def _track_key(self, key: str) -> None:
        keys = self.tracked_keys()
        if key not in keys:
            keys.append(key)
            self._save_tracker(keys)

    def _save_tracker(self, keys: list[str]) -> None:
        self._store.raw_set(TRACKER_KEY, json.dumps(keys, ensure_ascii=False))

    @staticmethod
    def _decode_entry(raw: str) -> CacheEntry:
        try:
            payload = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            raise CacheCorruptionError(f"Invalid JSON: {e}")

        if not isinstance(payload, dict) or "data" not in payload:
            raise CacheCorruptionError("Missing 'data' field")

        timestamp = payload.get("timestamp")
        if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
            raise CacheCorruptionError("Missing or invalid 'timestamp' field")

        return CacheEntry(data=payload["data"], timestamp=float(timestamp))
