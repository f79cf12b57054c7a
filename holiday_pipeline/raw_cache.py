"""Fallback cache of normalized provider responses.

Written after every successful fetch and read only when a fetch has failed.
Entries older than the TTL (30 days by default) are treated as absent.
"""

import json
import logging
from datetime import timedelta
from typing import List, Optional

from .datetime_handler import SystemClock, parse_timestamp, to_iso
from .error_handler import FileSystemError
from .models import Holiday
from .storage import Storage


class RawFileCache:
    """Per (country, year) fallback cache over a ``Storage`` backend."""

    PREFIX = 'raw-cache'

    def __init__(self, storage: Storage, clock: Optional[SystemClock] = None, ttl_days: int = 30):
        self.storage = storage
        self.clock = clock or SystemClock()
        self.ttl = timedelta(days=ttl_days)
        self.logger = logging.getLogger(__name__)

    def key(self, country_code: str, year: int) -> str:
        return f"{self.PREFIX}/holiday_{country_code.upper()}_{year}.json"

    def save(self, country_code: str, year: int, holidays: List[Holiday]) -> None:
        """Store a normalized batch. Write failures are logged, not raised."""
        key = self.key(country_code, year)
        payload = {
            'countryCode': country_code.upper(),
            'year': year,
            'cachedAt': to_iso(self.clock.now()),
            'data': [h.to_dict() for h in holidays],
        }
        try:
            self.storage.put(key, json.dumps(payload, ensure_ascii=False, indent=2).encode('utf-8'))
            self.logger.info(f"Saved fallback cache {key} ({len(holidays)} holidays)")
        except FileSystemError as e:
            self.logger.warning(f"Failed to save fallback cache {key}: {e}")

    def load(self, country_code: str, year: int) -> Optional[List[Holiday]]:
        """Return cached holidays, or None if absent, unreadable or expired."""
        key = self.key(country_code, year)
        try:
            raw = self.storage.get(key)
        except FileSystemError as e:
            self.logger.warning(f"Failed to read fallback cache {key}: {e}")
            return None
        if raw is None:
            self.logger.warning(f"No fallback cache: {key}")
            return None

        try:
            payload = json.loads(raw.decode('utf-8'))
            data = payload['data']
            cached_at = parse_timestamp(payload['cachedAt'])
        except (ValueError, KeyError, TypeError) as e:
            self.logger.warning(f"Malformed fallback cache {key}: {e}")
            return None
        if not isinstance(data, list):
            self.logger.warning(f"Malformed fallback cache {key}: data is not a list")
            return None

        age = self.clock.now() - cached_at
        if age > self.ttl:
            self.logger.warning(f"Fallback cache expired: {key} ({age.days} days old)")
            return None

        holidays = [Holiday.from_dict(item) for item in data if isinstance(item, dict)]
        self.logger.info(f"Loaded fallback cache {key} ({len(holidays)} holidays)")
        return holidays
