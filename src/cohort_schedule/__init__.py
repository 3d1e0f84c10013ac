"""Cohort schedule mutation and consequence engine.

Deletes and renumbers schedule weeks, reschedules sessions with
coordinator/student notifications, swaps mentors, and recomputes the
mentor attendance ledger.
"""

from cohort_schedule.errors import (
    NotFoundError,
    ScheduleError,
    StorageError,
    TransientStorageError,
    ValidationError,
)
from cohort_schedule.models import (
    ActionType,
    AttendanceLedgerEntry,
    CohortKey,
    PartialFailure,
    Session,
)
from cohort_schedule.service import ScheduleService

__all__ = [
    "ScheduleService",
    "ActionType",
    "AttendanceLedgerEntry",
    "CohortKey",
    "PartialFailure",
    "Session",
    "ScheduleError",
    "NotFoundError",
    "ValidationError",
    "StorageError",
    "TransientStorageError",
]
