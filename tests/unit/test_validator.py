"""
Unit tests for holiday validation and deduplication.
"""

import logging

from conftest import FakeClock
from holiday_pipeline.datetime_handler import to_iso
from holiday_pipeline.models import Holiday, HolidayType
from holiday_pipeline.validator import HolidayValidator


def holiday(name, date, **kwargs):
    kwargs.setdefault('country_code', 'us')
    return Holiday(name=name, date=date, **kwargs)


class TestHolidayValidator:
    """Test cases for HolidayValidator."""

    def setup_method(self):
        self.clock = FakeClock()
        self.validator = HolidayValidator(clock=self.clock)

    def test_drops_records_missing_name_or_date(self, caplog):
        batch = [
            holiday(None, "2024-01-01"),
            holiday("   ", "2024-01-02"),
            holiday("Valid", None),
            holiday("Kept", "2024-01-03"),
        ]

        with caplog.at_level(logging.WARNING):
            result = self.validator.validate(batch, 'US', 2024)

        assert [h.name for h in result] == ["Kept"]
        assert caplog.text.count("missing required field") == 3

    def test_drops_unparseable_dates(self, caplog):
        with caplog.at_level(logging.WARNING):
            result = self.validator.validate([holiday("Bad", "not-a-date")], 'US', 2024)

        assert result == []
        assert "not-a-date" in caplog.text

    def test_year_invariant(self, caplog):
        batch = [
            holiday("New Year 2025", "2025-01-01"),
            holiday("Christmas", "2024-12-25"),
        ]

        with caplog.at_level(logging.WARNING):
            result = self.validator.validate(batch, 'US', 2024)

        assert [h.name for h in result] == ["Christmas"]
        assert "New Year 2025" in caplog.text
        assert any(r.levelno == logging.WARNING for r in caplog.records)

    def test_dedup_keeps_first_occurrence(self):
        batch = [
            holiday("Independence Day", "2024-07-04", description="first", type=HolidayType.PUBLIC),
            holiday("Independence Day", "2024-07-04", description="second", type=HolidayType.BANK),
        ]

        result = self.validator.validate(batch, 'US', 2024)

        assert len(result) == 1
        assert result[0].description == "first"
        assert result[0].type == HolidayType.PUBLIC

    def test_dedup_uses_trimmed_name_and_normalized_date(self):
        batch = [
            holiday("Spring Day", "2024-03-10T02:00:00-08:00"),
            holiday(" Spring Day ", "2024-03-10"),
        ]

        result = self.validator.validate(batch, 'US', 2024)

        assert len(result) == 1
        assert result[0].date == "2024-03-10"

    def test_same_date_different_names_are_kept(self):
        batch = [holiday("A", "2024-05-01"), holiday("B", "2024-05-01")]
        assert len(self.validator.validate(batch, 'US', 2024)) == 2

    def test_normalizes_fields_and_stamps_timestamps(self):
        batch = [holiday("  Labor Day ", "2024-09-02", description="  First Monday  ")]

        result = self.validator.validate(batch, 'us', 2024)[0]

        assert result.name == "Labor Day"
        assert result.description == "First Monday"
        assert result.country_code == "US"
        assert result.created_at == to_iso(self.clock.now())
        assert result.updated_at == result.created_at

    def test_blank_description_becomes_none(self):
        result = self.validator.validate([holiday("X", "2024-02-02", description="   ")], 'US', 2024)[0]
        assert result.description is None

    def test_assigns_id_only_when_absent(self):
        batch = [
            holiday("Provided", "2024-02-01", id="custom-id"),
            holiday("Generated", "2024-03-01"),
        ]

        result = self.validator.validate(batch, 'US', 2024)

        assert result[0].id == "custom-id"
        assert result[1].id == "US-2024-03-01-1"

    def test_sorted_by_date_stable(self):
        batch = [
            holiday("December", "2024-12-25"),
            holiday("Same day first", "2024-05-01"),
            holiday("January", "2024-01-01"),
            holiday("Same day second", "2024-05-01"),
        ]

        result = self.validator.validate(batch, 'US', 2024)

        assert [h.name for h in result] == ["January", "Same day first", "Same day second", "December"]

    def test_empty_batch(self):
        assert self.validator.validate([], 'US', 2024) == []
