"""Cohort key <-> schedule partition resolution.

A cohort is keyed by (type, number), e.g. ("Basic", "1.1"), and its
sessions live in the schedule table "basic1_1_schedule". The mapping is
injective: the type is letters only and the number is exactly two digit
groups, so the digits can never run into the type.
"""

import re

from cohort_schedule.errors import ValidationError
from cohort_schedule.models import CohortKey

PARTITION_SUFFIX = "_schedule"

_COHORT_TYPE = re.compile(r"^[A-Za-z]+$")
_COHORT_NUMBER = re.compile(r"^(\d+)\.(\d+)$")
_PARTITION_NAME = re.compile(r"^[A-Za-z0-9_]+$")
_COHORT_PARTITION = re.compile(r"^([a-zA-Z]+)(\d+)_(\d+)_schedule$")


def make_cohort_key(cohort_type: str, cohort_number: str) -> CohortKey:
    """Validate and build a CohortKey.

    Raises:
        ValidationError: If the type is not alphabetic or the number is not "N.M".
    """
    cohort_type = (cohort_type or "").strip()
    cohort_number = (cohort_number or "").strip()
    if not _COHORT_TYPE.match(cohort_type):
        raise ValidationError(f"Invalid cohort type {cohort_type!r}")
    if not _COHORT_NUMBER.match(cohort_number):
        raise ValidationError(
            f"Invalid cohort number {cohort_number!r} (expected e.g. '1.1')"
        )
    return CohortKey(cohort_type=cohort_type.capitalize(), cohort_number=cohort_number)


def partition_for(key: CohortKey) -> str:
    """Map a cohort key to its schedule partition name."""
    match = _COHORT_NUMBER.match(key.cohort_number)
    if match is None or not _COHORT_TYPE.match(key.cohort_type):
        raise ValidationError(f"Malformed cohort key {key!r}")
    major, minor = match.groups()
    return f"{key.cohort_type.lower()}{major}_{minor}{PARTITION_SUFFIX}"


def validate_partition(name: str) -> str:
    """Reject partition names that are not plain identifiers.

    Raises:
        ValidationError: If the name is empty or contains anything but
            letters, digits and underscores.
    """
    if not name or not _PARTITION_NAME.match(name):
        raise ValidationError(f"Invalid partition name {name!r}")
    return name


def parse_partition(name: str) -> CohortKey | None:
    """Recover the cohort key from a partition name.

    Returns None when the name does not follow "{type}{N}_{M}_schedule".
    """
    match = _COHORT_PARTITION.match(name)
    if match is None:
        return None
    raw_type, major, minor = match.groups()
    return CohortKey(cohort_type=raw_type.capitalize(), cohort_number=f"{major}.{minor}")


def cohort_display_name(partition: str) -> str:
    """Human-readable cohort name, e.g. "Basic 1.1".

    Falls back to the humanized raw partition name ("summer camp") when
    the partition is not a standard cohort table.
    """
    key = parse_partition(partition)
    if key is not None:
        return key.display_name
    return partition.removesuffix(PARTITION_SUFFIX).replace("_", " ").strip()
