"""
Security module for input validation and HTTP session setup.

Validates the user-supplied inputs of the pipeline (country codes, years,
file paths, provider URLs) and builds the HTTPS session used by provider
clients.
"""

import re
from pathlib import Path
from typing import Union
from urllib.parse import urlparse

import requests

from .error_handler import ValidationError


class InputValidator:
    """
    Input validation and sanitization.
    """

    COUNTRY_CODE_PATTERN = re.compile(r'^[A-Za-z]{2}$')

    MIN_YEAR = 1900
    MAX_YEAR = 2100
    MAX_FILE_PATH_LENGTH = 4096

    @classmethod
    def validate_country_code(cls, country_code: str) -> str:
        """
        Validate an ISO 3166-1 alpha-2 country code.

        Args:
            country_code: Country code in any case

        Returns:
            str: Uppercased country code

        Raises:
            ValidationError: If the code is not two ASCII letters
        """
        if not isinstance(country_code, str):
            raise ValidationError(f"Country code must be string, got: {type(country_code)}",
                                  field='country_code', value=country_code)

        sanitized = country_code.strip()
        if not cls.COUNTRY_CODE_PATTERN.match(sanitized):
            raise ValidationError(f"Invalid country code: {country_code!r}",
                                  field='country_code', value=country_code)

        return sanitized.upper()

    @classmethod
    def validate_year(cls, year: Union[int, str]) -> int:
        """
        Validate a calendar year.

        Raises:
            ValidationError: If the year is not an integer within range
        """
        if isinstance(year, bool):
            raise ValidationError(f"Invalid year: {year!r}", field='year', value=year)
        try:
            parsed = int(str(year).strip())
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid year: {year!r}", field='year', value=year)

        if parsed < cls.MIN_YEAR or parsed > cls.MAX_YEAR:
            raise ValidationError(f"Year out of valid range ({cls.MIN_YEAR}-{cls.MAX_YEAR}): {parsed}",
                                  field='year', value=year)
        return parsed

    @classmethod
    def validate_file_path(cls, file_path: Union[str, Path], require_exists: bool = False) -> Path:
        """
        Validate a file path.

        Args:
            file_path: File path to validate
            require_exists: Whether the file must already exist

        Returns:
            Path: Resolved file path

        Raises:
            ValidationError: If the path is malformed or missing when required
        """
        if not isinstance(file_path, (str, Path)):
            raise ValidationError(f"File path must be string or Path, got: {type(file_path)}")

        path_str = str(file_path)

        if not path_str.strip():
            raise ValidationError("File path cannot be empty")

        if len(path_str) > cls.MAX_FILE_PATH_LENGTH:
            raise ValidationError(f"File path too long: {len(path_str)} > {cls.MAX_FILE_PATH_LENGTH}")

        # Null bytes are rejected by the OS layer with confusing errors
        if '\x00' in path_str:
            raise ValidationError("File path contains null bytes")

        try:
            resolved_path = Path(path_str).expanduser().resolve()
        except (OSError, RuntimeError) as e:
            raise ValidationError(f"Cannot resolve file path: {e}")

        if require_exists and not resolved_path.exists():
            raise ValidationError(f"File does not exist: {resolved_path}")

        return resolved_path

    @classmethod
    def validate_url(cls, url: str, require_https: bool = True) -> str:
        """
        Validate a provider base URL.

        Raises:
            ValidationError: If the URL is malformed or not HTTPS when required
        """
        if not isinstance(url, str) or not url.strip():
            raise ValidationError("URL cannot be empty")

        parsed = urlparse(url.strip())
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            raise ValidationError(f"Invalid URL: {url}")

        if require_https and parsed.scheme != 'https':
            raise ValidationError(f"HTTPS required: {url}")

        return url.strip().rstrip('/')


def validate_country_code_input(country_code: str) -> str:
    """Convenience function for country code validation."""
    return InputValidator.validate_country_code(country_code)


def validate_year_input(year: Union[int, str]) -> int:
    """Convenience function for year validation."""
    return InputValidator.validate_year(year)


def validate_file_path_input(file_path: Union[str, Path], **kwargs) -> Path:
    """Convenience function for file path validation."""
    return InputValidator.validate_file_path(file_path, **kwargs)


def validate_url_input(url: str, require_https: bool = True) -> str:
    """Convenience function for URL validation."""
    return InputValidator.validate_url(url, require_https)


class NetworkSecurityManager:
    """
    HTTP session factory for provider clients.
    """

    USER_AGENT = 'holiday-pipeline/1.0'

    @staticmethod
    def create_secure_session() -> requests.Session:
        """
        Create an HTTP session with certificate verification enabled.

        Transport-level retries are left disabled: retry policy belongs to
        the retry executor so attempts are counted in one place.

        Returns:
            requests.Session: Configured session
        """
        session = requests.Session()
        session.headers.update({
            'User-Agent': NetworkSecurityManager.USER_AGENT,
            'Accept': 'application/json',
            'Content-Type': 'application/json',
        })
        session.verify = True
        return session
