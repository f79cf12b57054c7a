"""
Pytest configuration and shared fixtures for the test suite.
"""

import pytest
import tempfile
import shutil
from pathlib import Path
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
import copy

import pytz

from holiday_pipeline import error_handler
from holiday_pipeline.logging_config import LogLevel, setup_logging
from holiday_pipeline.migration import DescriptionStore
from holiday_pipeline.models import ProviderName
from holiday_pipeline.providers import ProviderClient
from holiday_pipeline.storage import MemoryStorage

# Test data constants
NAGER_US_2024 = [
    {"date": "2024-01-01", "localName": "New Year's Day", "name": "New Year's Day",
     "countryCode": "US", "global": True, "counties": None},
    {"date": "2024-07-04", "localName": "Independence Day", "name": "Independence Day",
     "countryCode": "US", "global": True, "counties": None},
    {"date": "2024-10-14", "localName": "Columbus Day", "name": "Columbus Day",
     "countryCode": "US", "global": False, "counties": ["US-AL", "US-AZ"]},
]

CALENDARIFIC_US_2024 = {
    "meta": {"code": 200},
    "response": {
        "holidays": [
            {
                "name": "New Year's Day",
                "description": "New Year's Day is the first day of the year.",
                "country": {"id": "us", "name": "United States"},
                "date": {"iso": "2024-01-01"},
                "type": ["National holiday"],
                "primary_type": "Public Holiday",
            },
            {
                "name": "Daylight Saving Time starts",
                "description": "Clocks go forward.",
                "country": {"id": "us", "name": "United States"},
                "date": {"iso": "2024-03-10T02:00:00-08:00"},
                "type": ["Clock change/Daylight Saving Time"],
                "primary_type": "Clock change/Daylight Saving Time",
            },
            {
                "name": "Lincoln's Birthday",
                "description": "",
                "country": {"id": "us", "name": "United States"},
                "date": {"iso": "2024-02-12"},
                "type": ["Local holiday"],
                "primary_type": "Local holiday",
                "states": "Connecticut, Illinois, New York",
            },
        ]
    },
}

DESCRIPTION_SOURCE = {
    "a": {
        "holidayId": "US-2025-07-04-9",
        "holidayName": "Independence Day",
        "countryName": "United States",
        "locale": "ko",
        "description": "미국 독립기념일은 1776년 독립선언을 기념하는 날입니다.",
        "confidence": 0.95,
        "generatedAt": "2025-07-28T04:56:09.346Z",
        "lastUsed": "2025-07-29T08:29:09.974Z",
    }
}


class FakeClock:
    """Deterministic clock; ``sleep`` records the delay and advances time."""

    def __init__(self, start: Optional[datetime] = None):
        self.current = start or datetime(2025, 1, 15, 12, 0, 0, tzinfo=pytz.utc)
        self.sleeps: List[float] = []

    def now(self) -> datetime:
        return self.current

    def now_ms(self) -> int:
        return int(self.current.timestamp() * 1000)

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += timedelta(seconds=seconds)

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class FakeProvider(ProviderClient):
    """Scripted provider: per-country payloads, or an exception to raise."""

    name = ProviderName.NAGER
    base_url = 'https://date.nager.at/api/v3'

    def __init__(self, responses: Optional[Dict[str, Any]] = None, provider: ProviderName = ProviderName.NAGER):
        super().__init__(session=object())
        self.name = provider
        self.responses = responses or {}
        self.calls: List[tuple] = []

    def build_request(self, country_code: str, year: int) -> Dict[str, Any]:
        return {'url': f"{self.base_url}/PublicHolidays/{year}/{country_code}"}

    def fetch_raw(self, country_code: str, year: int) -> Any:
        self.calls.append((country_code, year))
        response = self.responses.get(country_code)
        if isinstance(response, Exception):
            raise response
        if response is None:
            raise ConnectionError(f"no scripted response for {country_code}")
        return copy.deepcopy(response)


class InMemoryDescriptionStore(DescriptionStore):
    """Description store backed by a list of rows."""

    def __init__(self, rows: Optional[List[Dict[str, Any]]] = None, fail_on: Optional[set] = None,
                 connection_error: Optional[Exception] = None):
        self.rows: List[Dict[str, Any]] = list(rows or [])
        self.fail_on = set(fail_on or ())
        self.connection_error = connection_error
        self.insert_calls = 0
        self.delete_calls = 0
        self.find_calls = 0

    def check_connection(self) -> None:
        if self.connection_error:
            raise self.connection_error

    def find_existing(self, holiday_name, country_name, locale):
        self.find_calls += 1
        for row in self.rows:
            if (row['holiday_name'], row['country_name'], row['locale']) == (holiday_name, country_name, locale):
                return row
        return None

    def insert(self, record):
        self.insert_calls += 1
        if record['holiday_name'] in self.fail_on:
            raise RuntimeError("duplicate key value violates unique constraint")
        row = dict(record, id=str(len(self.rows) + 1))
        self.rows.append(row)
        return row['id']

    def delete_by_modified_by(self, marker):
        self.delete_calls += 1
        before = len(self.rows)
        self.rows = [row for row in self.rows if row.get('modified_by') != marker]
        return before - len(self.rows)

    def count(self):
        return len(self.rows)

    def sample(self, limit=5):
        return self.rows[:limit]


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Redirect HOME and reset global logging/error state for every test."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv('HOME', str(home))
    for name in ('HOLIDAY_API_PROVIDER', 'CALENDARIFIC_API_KEY', 'HOLIDAY_DATA_DIR',
                 'MIGRATION_BATCH_SIZE', 'AWS_PROFILE', 'AWS_DEFAULT_REGION',
                 'HOLIDAY_DESCRIPTIONS_TABLE'):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(error_handler, '_global_error_handler', None)
    setup_logging(log_level=LogLevel.DEBUG, enable_console=False, enable_file=False)
    yield home


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture
def nager_payload():
    return copy.deepcopy(NAGER_US_2024)


@pytest.fixture
def calendarific_payload():
    return copy.deepcopy(CALENDARIFIC_US_2024)


@pytest.fixture
def description_source():
    return copy.deepcopy(DESCRIPTION_SOURCE)


@pytest.fixture
def description_store():
    return InMemoryDescriptionStore()
