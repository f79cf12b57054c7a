"""
Unit tests for provider response normalization.
"""

import logging

import pytest

from holiday_pipeline.models import HolidayType, ProviderName
from holiday_pipeline.normalizer import classify_holiday_type, normalize


class TestClassifyHolidayType:
    """Test cases for provider tag classification."""

    @pytest.mark.parametrize("tags,expected", [
        (["National holiday"], HolidayType.PUBLIC),
        (["Public Holiday"], HolidayType.PUBLIC),
        (["Bank Holiday"], HolidayType.BANK),
        (["School holiday"], HolidayType.SCHOOL),
        (["Observance"], HolidayType.OPTIONAL),
        (["Clock change/Daylight Saving Time"], HolidayType.OPTIONAL),
        ([], HolidayType.OPTIONAL),
        (None, HolidayType.OPTIONAL),
    ])
    def test_single_tags(self, tags, expected):
        assert classify_holiday_type(tags) == expected

    def test_priority_prefers_public_over_bank_and_school(self):
        assert classify_holiday_type(["School holiday", "Bank holiday", "National holiday"]) == HolidayType.PUBLIC
        assert classify_holiday_type(["School holiday", "Bank holiday"]) == HolidayType.BANK
        assert classify_holiday_type(["Observance", "School holiday"]) == HolidayType.SCHOOL

    def test_unknown_tag_falls_back_to_keywords(self):
        assert classify_holiday_type(["Regional public holiday"]) == HolidayType.PUBLIC
        assert classify_holiday_type(["Half-day bank closure"]) == HolidayType.BANK
        assert classify_holiday_type(["Religious festival"]) == HolidayType.OPTIONAL

    def test_string_tag_is_accepted(self):
        assert classify_holiday_type("Bank holiday") == HolidayType.BANK


class TestNormalizeCalendarific:
    """Test cases for the keyed provider format."""

    def test_maps_fields(self, calendarific_payload):
        holidays = normalize(calendarific_payload, 'us', ProviderName.CALENDARIFIC)

        assert len(holidays) == 3
        new_year = holidays[0]
        assert new_year.id == "US-2024-01-01-0"
        assert new_year.name == "New Year's Day"
        assert new_year.date == "2024-01-01"
        assert new_year.country == "United States"
        assert new_year.country_code == "US"
        assert new_year.type == HolidayType.PUBLIC
        assert new_year.global_ is True
        assert new_year.counties is None

    def test_states_are_split_and_global_follows_primary_type(self, calendarific_payload):
        lincoln = normalize(calendarific_payload, 'US', ProviderName.CALENDARIFIC)[2]

        assert lincoln.global_ is False
        assert lincoln.counties == ["Connecticut", "Illinois", "New York"]
        assert lincoln.type == HolidayType.OPTIONAL

    def test_empty_description_becomes_none(self, calendarific_payload):
        lincoln = normalize(calendarific_payload, 'US', ProviderName.CALENDARIFIC)[2]
        assert lincoln.description is None

    def test_datetime_iso_is_kept_for_validator(self, calendarific_payload):
        dst = normalize(calendarific_payload, 'US', ProviderName.CALENDARIFIC)[1]
        assert dst.date == "2024-03-10T02:00:00-08:00"

    @pytest.mark.parametrize("payload", [
        [],
        "error",
        {"meta": {"code": 401}},
        {"response": []},
        {"response": {"holidays": None}},
    ])
    def test_malformed_shape_returns_empty_with_warning(self, payload, caplog):
        with caplog.at_level(logging.WARNING):
            assert normalize(payload, 'US', ProviderName.CALENDARIFIC) == []
        assert any(record.levelno == logging.WARNING for record in caplog.records)


class TestNormalizeNager:
    """Test cases for the keyless provider format."""

    def test_maps_fields(self, nager_payload):
        holidays = normalize(nager_payload, 'US', ProviderName.NAGER)

        assert [h.id for h in holidays] == ["US-2024-01-01-0", "US-2024-07-04-1", "US-2024-10-14-2"]
        assert holidays[0].type == HolidayType.PUBLIC
        assert holidays[0].global_ is True
        assert holidays[0].country == ""
        assert holidays[0].description is None
        assert holidays[2].type == HolidayType.OPTIONAL
        assert holidays[2].counties == ["US-AL", "US-AZ"]

    def test_name_falls_back_to_local_name(self):
        raw = [{"date": "2024-03-01", "localName": "삼일절", "global": True}]
        holidays = normalize(raw, 'KR', ProviderName.NAGER)
        assert holidays[0].name == "삼일절"

    def test_non_array_returns_empty(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert normalize({"status": 404}, 'US', ProviderName.NAGER) == []
        assert "not an array" in caplog.text

    def test_non_object_items_are_skipped(self):
        raw = ["junk", {"date": "2024-01-01", "name": "New Year", "global": True}]
        holidays = normalize(raw, 'US', ProviderName.NAGER)
        assert len(holidays) == 1
        assert holidays[0].id == "US-2024-01-01-1"
