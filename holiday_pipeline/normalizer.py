"""Provider response normalization.

Maps Calendarific and Nager.Date payloads onto the internal ``Holiday``
schema. Malformed payloads yield an empty list and a warning.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .models import Holiday, HolidayType, ProviderName

logger = logging.getLogger(__name__)


# Known provider tags, lowercased.
HOLIDAY_TYPE_TAGS: Dict[str, HolidayType] = {
    'public holiday': HolidayType.PUBLIC,
    'national holiday': HolidayType.PUBLIC,
    'federal holiday': HolidayType.PUBLIC,
    'public': HolidayType.PUBLIC,
    'national': HolidayType.PUBLIC,
    'bank holiday': HolidayType.BANK,
    'bank': HolidayType.BANK,
    'school holiday': HolidayType.SCHOOL,
    'school': HolidayType.SCHOOL,
    'optional holiday': HolidayType.OPTIONAL,
    'observance': HolidayType.OPTIONAL,
    'local holiday': HolidayType.OPTIONAL,
    'common local holiday': HolidayType.OPTIONAL,
    'season': HolidayType.OPTIONAL,
}

# Keyword fallback for tags missing from the table, checked in order.
HOLIDAY_TYPE_KEYWORDS: Tuple[Tuple[str, HolidayType], ...] = (
    ('public', HolidayType.PUBLIC),
    ('national', HolidayType.PUBLIC),
    ('bank', HolidayType.BANK),
    ('school', HolidayType.SCHOOL),
)

# Highest first; a holiday with several tags takes the best one.
HOLIDAY_TYPE_PRIORITY: Tuple[HolidayType, ...] = (
    HolidayType.PUBLIC,
    HolidayType.BANK,
    HolidayType.SCHOOL,
    HolidayType.OPTIONAL,
)


def _classify_tag(tag: str) -> HolidayType:
    normalized = tag.strip().lower()
    if normalized in HOLIDAY_TYPE_TAGS:
        return HOLIDAY_TYPE_TAGS[normalized]
    for keyword, holiday_type in HOLIDAY_TYPE_KEYWORDS:
        if keyword in normalized:
            return holiday_type
    return HolidayType.OPTIONAL


def classify_holiday_type(tags: Union[Sequence[str], str, None]) -> HolidayType:
    """Classify provider type tags into a ``HolidayType``.

    Args:
        tags: Provider tags, e.g. ``["National holiday"]``; a bare string is
            treated as a single tag

    Returns:
        The highest-priority type among the tags, ``OPTIONAL`` when none match
    """
    if not tags:
        return HolidayType.OPTIONAL
    if isinstance(tags, str):
        tags = [tags]

    found = {_classify_tag(tag) for tag in tags if isinstance(tag, str)}
    for holiday_type in HOLIDAY_TYPE_PRIORITY:
        if holiday_type in found:
            return holiday_type
    return HolidayType.OPTIONAL


def _split_states(states: Any) -> Optional[List[str]]:
    # Calendarific sends "All" or a comma separated string; occasionally a list of objects
    if isinstance(states, str):
        parts = [s.strip() for s in states.split(',') if s.strip()]
        return parts or None
    if isinstance(states, list):
        parts = []
        for state in states:
            if isinstance(state, dict):
                state = state.get('name')
            if isinstance(state, str) and state.strip():
                parts.append(state.strip())
        return parts or None
    return None


def _optional_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def normalize_calendarific(raw: Any, country_code: str) -> List[Holiday]:
    if not isinstance(raw, dict):
        logger.warning(f"Calendarific response for {country_code} is not an object")
        return []
    response = raw.get('response')
    holidays = response.get('holidays') if isinstance(response, dict) else None
    if not isinstance(holidays, list):
        logger.warning(f"Calendarific response for {country_code} has no holiday list")
        return []

    code = country_code.upper()
    normalized = []
    for index, item in enumerate(holidays):
        if not isinstance(item, dict):
            logger.warning(f"Skipping non-object Calendarific holiday for {code}: {item!r}")
            continue
        date_info = item.get('date')
        iso_date = date_info.get('iso') if isinstance(date_info, dict) else None
        country_info = item.get('country')
        country_name = country_info.get('name') if isinstance(country_info, dict) else None

        normalized.append(Holiday(
            id=f"{code}-{iso_date}-{index}",
            name=_optional_str(item.get('name')),
            date=_optional_str(iso_date),
            country=country_name or "",
            country_code=code,
            description=_optional_str(item.get('description')) or None,
            type=classify_holiday_type(item.get('type')),
            global_=item.get('primary_type') == 'Public Holiday',
            counties=_split_states(item.get('states')),
        ))
    return normalized


def normalize_nager(raw: Any, country_code: str) -> List[Holiday]:
    if not isinstance(raw, list):
        logger.warning(f"Nager.Date response for {country_code} is not an array")
        return []

    code = country_code.upper()
    normalized = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            logger.warning(f"Skipping non-object Nager.Date holiday for {code}: {item!r}")
            continue
        is_global = bool(item.get('global', False))
        counties = item.get('counties')

        normalized.append(Holiday(
            id=f"{code}-{item.get('date')}-{index}",
            name=_optional_str(item.get('name')) or _optional_str(item.get('localName')),
            date=_optional_str(item.get('date')),
            country="",
            country_code=code,
            type=HolidayType.PUBLIC if is_global else HolidayType.OPTIONAL,
            global_=is_global,
            counties=list(counties) if isinstance(counties, list) and counties else None,
        ))
    return normalized


def normalize(raw: Any, country_code: str, provider: ProviderName) -> List[Holiday]:
    """Normalize a raw provider response.

    Args:
        raw: Decoded provider JSON
        country_code: Requested country code
        provider: Provider that produced ``raw``

    Returns:
        Normalized holidays in provider order; empty for a malformed payload
    """
    if provider == ProviderName.CALENDARIFIC:
        return normalize_calendarific(raw, country_code)
    if provider == ProviderName.NAGER:
        return normalize_nager(raw, country_code)
    raise ValueError(f"Unknown provider: {provider}")
