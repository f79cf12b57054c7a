"""Holiday provider clients.

Each client performs one HTTP request per call and returns the decoded JSON
body unchanged. Normalization and retries happen elsewhere.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests

from .config import Config
from .error_handler import ConfigurationError, ProviderFetchError
from .models import ProviderName
from .security import NetworkSecurityManager, validate_url_input


DEFAULT_TIMEOUT = 10


class ProviderClient(ABC):
    """One external holiday data source."""

    name: ProviderName
    base_url: str

    def __init__(self, base_url: Optional[str] = None, timeout: float = DEFAULT_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.base_url = validate_url_input(base_url or self.base_url)
        self.timeout = timeout
        self.session = session or NetworkSecurityManager.create_secure_session()
        self.logger = logging.getLogger(__name__)

    @abstractmethod
    def build_request(self, country_code: str, year: int) -> Dict[str, Any]:
        """Return the ``url`` and ``params`` for one provider call."""

    def fetch_raw(self, country_code: str, year: int) -> Any:
        """Fetch the raw provider response for one country and year.

        Args:
            country_code: ISO 3166-1 alpha-2 code
            year: Calendar year

        Returns:
            Decoded JSON body

        Raises:
            ProviderFetchError: On network error, timeout, non-2xx status or
                an undecodable body
        """
        request = self.build_request(country_code, year)
        url = request['url']
        self.logger.debug(f"API request: GET {url} ({self.name.value})")

        try:
            response = self.session.get(url, params=request.get('params'), timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise ProviderFetchError(
                f"Request to {self.name.value} timed out after {self.timeout}s",
                provider=self.name.value, url=url, cause=e
            )
        except requests.exceptions.RequestException as e:
            raise ProviderFetchError(
                f"Request to {self.name.value} failed: {e}",
                provider=self.name.value, url=url, cause=e
            )

        if not 200 <= response.status_code < 300:
            raise ProviderFetchError(
                f"{self.name.value} returned HTTP {response.status_code} for {country_code} {year}",
                provider=self.name.value, url=url, status_code=response.status_code
            )

        try:
            body = response.json()
        except ValueError as e:
            raise ProviderFetchError(
                f"{self.name.value} returned a non-JSON body for {country_code} {year}",
                provider=self.name.value, url=url, status_code=response.status_code, cause=e
            )

        self.logger.debug(f"API response: {response.status_code} {url}")
        return body


class CalendarificClient(ProviderClient):
    """Keyed provider; the key travels as a query parameter."""

    name = ProviderName.CALENDARIFIC
    base_url = 'https://calendarific.com/api/v2'

    def __init__(self, api_key: str, **kwargs):
        if not api_key:
            raise ConfigurationError("Calendarific API key is required", config_key='provider.api_key')
        super().__init__(**kwargs)
        self.api_key = api_key

    def build_request(self, country_code: str, year: int) -> Dict[str, Any]:
        return {
            'url': f"{self.base_url}/holidays",
            'params': {
                'api_key': self.api_key,
                'country': country_code,
                'year': year,
                'type': 'national',
            },
        }


class NagerDateClient(ProviderClient):
    """Keyless provider; country and year are path parameters."""

    name = ProviderName.NAGER
    base_url = 'https://date.nager.at/api/v3'

    def build_request(self, country_code: str, year: int) -> Dict[str, Any]:
        return {'url': f"{self.base_url}/PublicHolidays/{year}/{country_code}"}


def create_provider_client(config: Config, session: Optional[requests.Session] = None) -> ProviderClient:
    """Build the provider client selected by configuration.

    Raises:
        ConfigurationError: If the provider is unknown or misses its API key
    """
    provider_config = config.get_provider_config()
    timeout = provider_config.get('timeout') or DEFAULT_TIMEOUT
    base_url = provider_config.get('base_url')

    if provider_config['name'] == ProviderName.CALENDARIFIC.value:
        return CalendarificClient(provider_config['api_key'], base_url=base_url,
                                  timeout=timeout, session=session)
    return NagerDateClient(base_url=base_url, timeout=timeout, session=session)
