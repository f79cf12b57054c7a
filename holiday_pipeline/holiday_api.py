"""Holiday API client: fetch with retries, normalize, fall back to the raw cache."""

import logging
from typing import List, Optional

from .datetime_handler import SystemClock
from .logging_config import log_performance
from .models import Holiday
from .normalizer import normalize
from .providers import ProviderClient
from .raw_cache import RawFileCache
from .retry import RetryExecutor


class HolidayApiClient:
    """Fetches normalized holidays for one country and year.

    Successful responses are written to the raw fallback cache. When the
    provider keeps failing, a fresh enough cached batch is served instead;
    otherwise the provider's last exception propagates unchanged.
    """

    def __init__(self, provider: ProviderClient, raw_cache: RawFileCache,
                 retry: Optional[RetryExecutor] = None, clock: Optional[SystemClock] = None):
        self.provider = provider
        self.raw_cache = raw_cache
        self.retry = retry or RetryExecutor(clock=clock)
        self.logger = logging.getLogger(__name__)

    @log_performance("holiday_api.fetch")
    def fetch_holidays_by_country_year(self, country_code: str, year: int) -> List[Holiday]:
        country_code = country_code.upper()
        self.logger.info(f"Fetching holidays: {country_code} {year} ({self.provider.name.value})")

        try:
            raw = self.retry.execute(
                lambda: self.provider.fetch_raw(country_code, year),
                description=f"fetch {country_code} {year}"
            )
        except Exception as error:
            self.logger.warning(f"Fetch failed for {country_code} {year}, trying fallback cache: {error}")
            cached = self.raw_cache.load(country_code, year)
            if cached:
                self.logger.info(f"Using fallback cache: {country_code} {year} ({len(cached)} holidays)")
                return cached
            self.logger.error(f"No fallback cache for {country_code} {year}")
            raise

        holidays = normalize(raw, country_code, self.provider.name)
        self.raw_cache.save(country_code, year, holidays)
        self.logger.info(f"Received {len(holidays)} holidays for {country_code} {year}")
        return holidays

    def test_connection(self) -> bool:
        """Check the provider answers a request for US 2024.

        Goes to the provider directly: the fallback cache is neither read nor written.
        """
        try:
            self.retry.execute(
                lambda: self.provider.fetch_raw('US', 2024),
                description="connection test US 2024"
            )
            return True
        except Exception as e:
            self.logger.error(f"API connection test failed: {e}")
            return False
