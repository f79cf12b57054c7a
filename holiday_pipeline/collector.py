"""Holiday data collection orchestrator.

Collects holidays per (country, year), persists them as
``holidays/{cc}-{year}.json`` and keeps a short-lived dual cache in front of
the provider. Runs are sequential with fixed politeness delays.
"""

import json
import logging
import re
from typing import Iterable, List, Optional

from .datetime_handler import SystemClock, to_iso
from .dual_cache import DualCache, holiday_cache_key
from .error_handler import FileSystemError, handle_error
from .holiday_api import HolidayApiClient
from .logging_config import log_performance
from .models import (
    CatalogCollectionResult,
    CollectionResult,
    DataStatistics,
    Holiday,
    HolidayDataFile,
)
from .storage import Storage
from .validator import HolidayValidator

HOLIDAYS_PREFIX = 'holidays'
HOLIDAY_FILE_PATTERN = re.compile(r'^holidays/([a-z]{2})-(\d{4})\.json$')


class HolidayDataCollector:
    """Collect, validate, persist and cache holiday data."""

    def __init__(self,
                 api_client: HolidayApiClient,
                 storage: Storage,
                 cache: Optional[DualCache] = None,
                 validator: Optional[HolidayValidator] = None,
                 clock: Optional[SystemClock] = None,
                 request_delay: float = 0.5,
                 year_delay: float = 5.0):
        self.api_client = api_client
        self.storage = storage
        self.clock = clock or SystemClock()
        self.cache = cache or DualCache(storage, clock=self.clock)
        self.validator = validator or HolidayValidator(clock=self.clock)
        self.request_delay = request_delay
        self.year_delay = year_delay
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def holiday_file_key(country_code: str, year: int) -> str:
        return f"{HOLIDAYS_PREFIX}/{country_code.lower()}-{year}.json"

    def has_data(self, country_code: str, year: int) -> bool:
        """Whether a persisted file exists; the content is not checked."""
        return self.storage.exists(self.holiday_file_key(country_code, year))

    @log_performance("collector.collect_holiday_data")
    def collect_holiday_data(self, country_code: str, year: int, use_cache: bool = True) -> List[Holiday]:
        """Collect holidays for one country and year.

        Args:
            country_code: ISO 3166-1 alpha-2 code
            year: Calendar year
            use_cache: Serve a recent dual cache entry when present

        Returns:
            Validated holidays sorted by date

        Raises:
            Exception: The fetch error, when no persisted file can stand in
        """
        country_code = country_code.upper()
        cache_key = holiday_cache_key(country_code, year)

        if use_cache:
            cached = self.cache.get(cache_key)
            if cached is not None:
                self.logger.info(f"Loaded {country_code} {year} from cache")
                return [Holiday.from_dict(item) for item in cached]

        self.logger.info(f"Collecting {country_code} {year} from provider")
        try:
            fetched = self.api_client.fetch_holidays_by_country_year(country_code, year)
        except Exception as error:
            self.logger.error(f"Collection failed for {country_code} {year}: {error}")
            fallback = self.load_holidays_from_file(country_code, year)
            if fallback:
                self.logger.warning(
                    f"Using previously persisted data for {country_code} {year} ({len(fallback)} holidays)"
                )
                return fallback
            raise

        holidays = self.validator.validate(fetched, country_code, year)
        self.save_holidays_to_file(country_code, year, holidays)
        self.cache.set(cache_key, [h.to_dict() for h in holidays])

        self.logger.info(f"Collected {country_code} {year} ({len(holidays)} holidays)")
        return holidays

    def save_holidays_to_file(self, country_code: str, year: int, holidays: List[Holiday]) -> None:
        data_file = HolidayDataFile(
            country_code=country_code.upper(),
            year=year,
            total_holidays=len(holidays),
            last_updated=to_iso(self.clock.now()),
            holidays=holidays,
        )
        key = self.holiday_file_key(country_code, year)
        self.storage.put(key, json.dumps(data_file.to_dict(), ensure_ascii=False, indent=2).encode('utf-8'))
        self.logger.info(f"Saved {self.storage.describe(key)}")

    def load_holidays_from_file(self, country_code: str, year: int) -> List[Holiday]:
        """Read the persisted holidays for one country and year.

        A ``totalHolidays`` value that disagrees with the list length is
        logged and left as is.

        Returns:
            The persisted holidays, or an empty list when absent or unreadable
        """
        key = self.holiday_file_key(country_code, year)
        try:
            raw = self.storage.get(key)
        except FileSystemError as e:
            self.logger.warning(f"Failed to read {key}: {e}")
            return []
        if raw is None:
            return []

        try:
            payload = json.loads(raw.decode('utf-8'))
            data_file = HolidayDataFile.from_dict(payload)
        except (ValueError, TypeError, AttributeError) as e:
            self.logger.warning(f"Failed to parse {key}: {e}")
            return []

        if data_file.total_holidays != len(data_file.holidays):
            self.logger.warning(
                f"{key}: totalHolidays={data_file.total_holidays} but "
                f"{len(data_file.holidays)} holidays are stored"
            )
        return data_file.holidays

    def collect_multiple_countries(self, country_codes: List[str], year: int) -> CollectionResult:
        """Collect one year for several countries, one after another.

        A failing country is recorded in ``errors`` and the run continues.
        """
        started = self.clock.now()
        result = CollectionResult()
        self.logger.info(f"Collecting {len(country_codes)} countries for {year}")

        for index, country_code in enumerate(country_codes):
            if index > 0:
                self.clock.sleep(self.request_delay)
            try:
                holidays = self.collect_holiday_data(country_code, year)
                result.holidays_collected += len(holidays)
            except Exception as e:
                handle_error(e, {'country_code': country_code, 'year': year})
                result.errors.append(f"{country_code}: {e}")

        result.success = not result.errors
        result.duration = (self.clock.now() - started).total_seconds()
        self.logger.info(
            f"Batch collection finished: {result.holidays_collected} holidays, {len(result.errors)} errors"
        )
        return result

    @log_performance("collector.collect_catalog")
    def collect_catalog(self, country_codes: List[str], years: Iterable[int],
                        skip_existing: bool = True) -> CatalogCollectionResult:
        """Collect every (country, year) pair, years in order.

        Countries within a year are ``request_delay`` apart and years are
        ``year_delay`` apart. The dual cache is bypassed.
        """
        started = self.clock.now()
        result = CatalogCollectionResult()
        years = list(years)

        for year_index, year in enumerate(years):
            if year_index > 0:
                self.logger.info(f"Waiting {self.year_delay}s before {year}")
                self.clock.sleep(self.year_delay)

            self.logger.info(f"Collecting {year} for {len(country_codes)} countries")
            requested = False
            for country_code in country_codes:
                if skip_existing and self.has_data(country_code, year):
                    self.logger.debug(f"Skipping {country_code} {year}: already collected")
                    result.skipped += 1
                    continue

                if requested:
                    self.clock.sleep(self.request_delay)
                requested = True

                try:
                    holidays = self.collect_holiday_data(country_code, year, use_cache=False)
                    result.holidays_collected += len(holidays)
                    result.successful_collections += 1
                except Exception as e:
                    handle_error(e, {'country_code': country_code, 'year': year})
                    result.failed_collections += 1
                    result.errors.append(f"{country_code.upper()} {year}: {e}")

        result.success = not result.errors
        result.duration = (self.clock.now() - started).total_seconds()
        self.logger.info(
            f"Catalog collection finished: {result.successful_collections} collected, "
            f"{result.failed_collections} failed, {result.skipped} skipped"
        )
        return result

    def get_data_statistics(self) -> DataStatistics:
        """Aggregate all persisted files; unreadable files are skipped."""
        keys = [k for k in self.storage.list(f"{HOLIDAYS_PREFIX}/") if k.endswith('.json')]
        total_holidays = 0
        countries = set()
        years = set()
        last_updated = ""

        for key in keys:
            try:
                payload = json.loads(self.storage.get(key).decode('utf-8'))
                country = str(payload['countryCode'])
                year = int(payload['year'])
                count = int(payload.get('totalHolidays') or 0)
                updated = str(payload.get('lastUpdated') or "")
            except (FileSystemError, ValueError, KeyError, TypeError, AttributeError) as e:
                self.logger.warning(f"Skipping unreadable file {key}: {e}")
                continue

            total_holidays += count
            countries.add(country)
            years.add(year)
            if updated > last_updated:
                last_updated = updated

        return DataStatistics(
            total_files=len(keys),
            total_holidays=total_holidays,
            countries=sorted(countries),
            years=sorted(years),
            last_updated=last_updated,
        )

    def get_collected_countries(self) -> List[str]:
        """Country codes with at least one persisted file."""
        codes = set()
        for key in self.storage.list(f"{HOLIDAYS_PREFIX}/"):
            match = HOLIDAY_FILE_PATTERN.match(key)
            if match:
                codes.add(match.group(1).upper())
        return sorted(codes)

    def clear_cache(self) -> int:
        return self.cache.clear()
