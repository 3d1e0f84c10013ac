"""Shared helpers: weekday arithmetic, display formatting, phone and materials normalization."""

import re
from datetime import date, time, timedelta

from cohort_schedule.logging import get_logger

log = get_logger(__name__)

DAY_NAMES: tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

DAYS_PER_WEEK = 7

_NON_DIGITS = re.compile(r"\D")

MATERIALS_SEPARATOR = ", "


def weekday_name(value: date) -> str:
    """Return the English weekday name for a date, e.g. "Monday"."""
    return DAY_NAMES[value.weekday()]


def week_cadence_shift(first: date | None, last: date | None) -> int:
    """Days to shift later sessions back after removing a week.

    The span between the first and last session of the removed week plus
    the days left to close that week is one cadence, so the shift is 7 for
    any class-day pattern (Mon/Wed, Mon/Wed/Fri, ...). A session postponed
    past the week boundary widens the span but not the cadence.
    """
    if first is not None and last is not None:
        span = abs((last - first).days)
        if span >= DAYS_PER_WEEK:
            log.debug("week_span_exceeds_cadence", span=span)
    return DAYS_PER_WEEK


def shift_date(value: date | None, days: int) -> date | None:
    if value is None:
        return None
    return value - timedelta(days=days)


def format_date_for_display(value: date | None) -> str:
    """Format a date like "Mon, 6 Jan 2025"."""
    if value is None:
        return "TBD"
    return f"{value:%a}, {value.day} {value:%b} {value.year}"


def format_long_date(value: date | None) -> str:
    """Format a date like "Monday, 6 January 2025"."""
    if value is None:
        return "TBD"
    return f"{value:%A}, {value.day} {value:%B} {value.year}"


def format_time_for_display(value: time | None) -> str:
    """Format a time of day like "7:30 PM"; "TBD" when unset."""
    if value is None:
        return "TBD"
    suffix = "PM" if value.hour >= 12 else "AM"
    hour12 = value.hour % 12 or 12
    return f"{hour12}:{value.minute:02d} {suffix}"


def normalize_phone(phone: str | int | None, country_code: str = "91") -> str | None:
    """Normalize a phone number to international digits without "+".

    A 10-digit number is domestic and gets the country code; a leading 0
    is replaced by the country code. Anything outside 10-15 digits after
    that is rejected with None.

    Examples:
        >>> normalize_phone("98765 43210")
        '919876543210'
        >>> normalize_phone("+44 20 7946 0958")
        '442079460958'
        >>> normalize_phone("12345678") is None
        True
    """
    if phone is None or phone == "":
        return None

    # Non-digits (including a leading "+") are dropped here
    cleaned = _NON_DIGITS.sub("", str(phone))

    if len(cleaned) == 10:
        cleaned = country_code + cleaned
    elif cleaned.startswith("0"):
        cleaned = country_code + cleaned[1:]

    if len(cleaned) < 10 or len(cleaned) > 15:
        log.debug("phone_rejected", digits=len(cleaned))
        return None

    return cleaned


def is_email_address(value: str | None) -> bool:
    return bool(value) and "@" in value


def parse_materials(raw: str | list[str] | None) -> list[str]:
    """Split a stored materials string into trimmed, de-duplicated links."""
    if raw is None:
        return []
    parts = raw.split(",") if isinstance(raw, str) else raw
    return merge_materials([], parts)


def merge_materials(existing: list[str], new_links: list[str]) -> list[str]:
    """Append new links after existing ones, keeping first-seen order."""
    merged: list[str] = []
    for link in [*existing, *new_links]:
        trimmed = link.strip()
        if trimmed and trimmed not in merged:
            merged.append(trimmed)
    return merged


def join_materials(links: list[str]) -> str:
    return MATERIALS_SEPARATOR.join(links)
