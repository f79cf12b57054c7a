"""Holiday batch validation and deduplication."""

import dataclasses
import json
import logging
from typing import List, Optional, Set, Tuple

from .datetime_handler import SystemClock, parse_holiday_date, to_iso
from .models import Holiday


class HolidayValidator:
    """Turns a normalized batch into the authoritative holiday list.

    Records are checked in order: required fields, date parse and year,
    then duplicates by (date, name) with the first occurrence kept. Survivors
    get an id when missing, an uppercased country code, trimmed text fields
    and fresh timestamps, and the result is sorted by date. Every dropped
    record is logged at WARNING with its content.
    """

    def __init__(self, clock: Optional[SystemClock] = None):
        self.clock = clock or SystemClock()
        self.logger = logging.getLogger(__name__)

    def _describe(self, holiday: Holiday) -> str:
        return json.dumps(holiday.to_dict(), ensure_ascii=False, default=str)

    def validate(self, holidays: List[Holiday], country_code: str, year: int) -> List[Holiday]:
        country_code = country_code.upper()
        stamp = to_iso(self.clock.now())
        valid: List[Holiday] = []
        seen: Set[Tuple[str, str]] = set()

        for holiday in holidays:
            if not holiday.name or not holiday.name.strip() or not holiday.date:
                self.logger.warning(f"Dropping holiday with missing required field: {self._describe(holiday)}")
                continue

            parsed = parse_holiday_date(holiday.date)
            if parsed is None:
                self.logger.warning(f"Dropping holiday with invalid date: {self._describe(holiday)}")
                continue
            if parsed.year != year:
                self.logger.warning(
                    f"Dropping holiday outside {year}: {self._describe(holiday)}"
                )
                continue

            date_str = parsed.isoformat()
            name = holiday.name.strip()
            dedup_key = (date_str, name)
            if dedup_key in seen:
                self.logger.warning(f"Dropping duplicate holiday {date_str} {name}: {self._describe(holiday)}")
                continue
            seen.add(dedup_key)

            description = holiday.description.strip() if holiday.description else None
            valid.append(dataclasses.replace(
                holiday,
                id=holiday.id or f"{country_code}-{date_str}-{len(valid)}",
                name=name,
                date=date_str,
                country_code=country_code,
                description=description or None,
                created_at=stamp,
                updated_at=stamp,
            ))

        # sorted() is stable, so same-day holidays keep input order
        valid = sorted(valid, key=lambda h: h.date)
        self.logger.info(f"Validated {country_code} {year}: {len(holidays)} -> {len(valid)}")
        return valid
