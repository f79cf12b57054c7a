"""Two-tier (memory and file) cache used by the collector."""

import json
import logging
from typing import Any, Dict, Optional

from .datetime_handler import SystemClock
from .error_handler import FileSystemError
from .models import CacheEntry
from .storage import Storage

DEFAULT_TTL_MS = 24 * 60 * 60 * 1000


def holiday_cache_key(country_code: str, year: int) -> str:
    return f"holiday:{country_code.upper()}:{year}"


class DualCache:
    """Memory map backed by JSON files under ``cache/``.

    Reads check memory first, then the file; a valid file entry is copied
    back into memory. Writes go to both tiers. Entries older than their TTL
    are treated as absent.
    """

    PREFIX = 'cache'

    def __init__(self, storage: Storage, clock: Optional[SystemClock] = None, ttl_ms: int = DEFAULT_TTL_MS):
        self.storage = storage
        self.clock = clock or SystemClock()
        self.ttl_ms = ttl_ms
        self._memory: Dict[str, CacheEntry] = {}
        self.logger = logging.getLogger(__name__)

    def file_key(self, key: str) -> str:
        return f"{self.PREFIX}/{key.replace(':', '_')}.json"

    def get(self, key: str) -> Optional[Any]:
        now_ms = self.clock.now_ms()

        entry = self._memory.get(key)
        if entry is not None:
            if entry.is_valid(now_ms):
                return entry.data
            self.logger.debug(f"Memory cache entry expired: {key}")
            del self._memory[key]

        file_key = self.file_key(key)
        try:
            raw = self.storage.get(file_key)
        except FileSystemError as e:
            self.logger.warning(f"Failed to read cache file for {key}: {e}")
            return None
        if raw is None:
            return None

        try:
            entry = CacheEntry.from_dict(json.loads(raw.decode('utf-8')))
        except (ValueError, KeyError, TypeError) as e:
            self.logger.warning(f"Ignoring malformed cache file {file_key}: {e}")
            return None

        if not entry.is_valid(now_ms):
            self.logger.debug(f"File cache entry expired: {key}")
            return None

        self._memory[key] = entry
        return entry.data

    def set(self, key: str, data: Any) -> None:
        entry = CacheEntry(data=data, timestamp=self.clock.now_ms(), ttl=self.ttl_ms, key=key)
        self._memory[key] = entry
        try:
            self.storage.put(self.file_key(key),
                             json.dumps(entry.to_dict(), ensure_ascii=False, indent=2).encode('utf-8'))
        except FileSystemError as e:
            self.logger.error(f"Failed to write cache file for {key}: {e}")

    def clear(self) -> int:
        """Drop every entry from both tiers; return the number of files removed."""
        self._memory.clear()
        removed = 0
        for file_key in self.storage.list(f"{self.PREFIX}/"):
            if file_key.endswith('.json') and self.storage.delete(file_key):
                removed += 1
        self.logger.info(f"Cache cleared ({removed} files)")
        return removed
