from datetime import date, time

import pytest

from cohort_schedule.utils import (
    format_date_for_display,
    format_long_date,
    format_time_for_display,
    is_email_address,
    join_materials,
    merge_materials,
    normalize_phone,
    parse_materials,
    shift_date,
    week_cadence_shift,
    weekday_name,
)


def test_weekday_name():
    assert weekday_name(date(2025, 1, 8)) == "Wednesday"


@pytest.mark.parametrize(
    "first,last,expected",
    [
        (date(2024, 12, 30), date(2025, 1, 1), 7),  # Mon..Wed
        (date(2025, 1, 6), date(2025, 1, 12), 7),  # Mon..Sun
        (date(2025, 1, 6), date(2025, 1, 13), 7),
        (date(2025, 1, 8), date(2025, 1, 15), 7),  # postponed past the week
        (date(2025, 1, 6), date(2025, 1, 6), 7),
        (None, date(2025, 1, 6), 7),
    ],
)
def test_week_cadence_shift(first, last, expected):
    assert week_cadence_shift(first, last) == expected


def test_shift_date():
    assert shift_date(date(2025, 1, 13), 7) == date(2025, 1, 6)
    assert shift_date(None, 7) is None


def test_display_formats():
    assert format_date_for_display(date(2025, 1, 6)) == "Mon, 6 Jan 2025"
    assert format_long_date(date(2025, 1, 6)) == "Monday, 6 January 2025"
    assert format_date_for_display(None) == "TBD"
    assert format_time_for_display(time(19, 30)) == "7:30 PM"
    assert format_time_for_display(time(0, 5)) == "12:05 AM"
    assert format_time_for_display(time(12, 0)) == "12:00 PM"
    assert format_time_for_display(None) == "TBD"


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("98765 43210", "919876543210"),
        (9876543210, "919876543210"),
        ("+91-98765-43210", "919876543210"),
        ("09876543210", "919876543210"),
        ("+44 20 7946 0958", "442079460958"),
        ("12345678", None),
        ("1234567890123456", None),
        ("", None),
        (None, None),
    ],
)
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


def test_normalize_phone_uses_given_country_code():
    assert normalize_phone("2025550123", country_code="1") == "12025550123"


def test_is_email_address():
    assert is_email_address("a@example.com")
    assert not is_email_address("not-an-email")
    assert not is_email_address(None)


def test_materials_helpers():
    assert parse_materials(" https://a ,https://b,, https://a ") == ["https://a", "https://b"]
    assert parse_materials(None) == []
    assert merge_materials(["https://a"], ["https://b", "https://a"]) == ["https://a", "https://b"]
    assert join_materials(["https://a", "https://b"]) == "https://a, https://b"
