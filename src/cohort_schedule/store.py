"""Data access for schedule partitions, the mentor/student directory and the attendance ledger.

These classes are thin passthroughs over RestClient: no business rules
live here. Every method raises StorageError (or TransientStorageError) on
persistence failures and NotFoundError only where a single row is requested.
"""

import datetime as dt
from typing import Any

from cohort_schedule.cohorts import validate_partition
from cohort_schedule.errors import NotFoundError, StorageError
from cohort_schedule.logging import get_logger
from cohort_schedule.models import (
    AttendanceLedgerEntry,
    CohortKey,
    Mentor,
    Recipient,
    RecipientKind,
    RecordedSession,
    Session,
)
from cohort_schedule.rest import RestClient, eq

logger = get_logger(__name__)

# Columns a recorded session query may match on
MENTOR_COLUMNS = frozenset({"mentor_id", "swapped_mentor_id"})
RECORDED_COLUMNS = "id,mentor_id,swapped_mentor_id,session_recording"


def _to_column(value: Any) -> Any:
    if isinstance(value, (dt.date, dt.time)):
        return value.isoformat()
    return value


def _parse_rows(rows: list[dict], model, **extra) -> list:
    try:
        return [model.model_validate({**row, **extra}) for row in rows]
    except ValueError as e:
        raise StorageError(f"Unexpected row shape for {model.__name__}: {e}") from e


class ScheduleStore:
    """Per-cohort schedule tables in the schedule database."""

    def __init__(self, client: RestClient) -> None:
        self.client = client

    async def list_sessions(self, partition: str) -> list[Session]:
        """All sessions of a partition ordered by (week_number, session_number)."""
        validate_partition(partition)
        rows = await self.client.select(
            partition,
            [("select", "*"), ("order", "week_number.asc,session_number.asc")],
        )
        sessions = _parse_rows(rows, Session, partition=partition)
        return sorted(sessions, key=lambda s: s.sort_key)

    async def get_session(self, partition: str, session_id: int) -> Session:
        """Fetch one session by id.

        Raises:
            NotFoundError: If no row has this id.
        """
        validate_partition(partition)
        rows = await self.client.select(partition, [("select", "*"), eq("id", session_id)])
        if not rows:
            raise NotFoundError(f"Session {session_id} not found in {partition}")
        return _parse_rows(rows[:1], Session, partition=partition)[0]

    async def update_session(self, partition: str, session_id: int, fields: dict) -> None:
        """Patch columns of one session. Keys are column names."""
        validate_partition(partition)
        payload = {column: _to_column(value) for column, value in fields.items()}
        await self.client.update(partition, [eq("id", session_id)], payload)

    async def delete_sessions(self, partition: str, **filters: Any) -> int:
        """Delete sessions matching all equality filters; returns the deleted count."""
        validate_partition(partition)
        if not filters:
            raise StorageError("Refusing to delete a partition without filters")
        params = [eq(column, _to_column(value)) for column, value in filters.items()]
        deleted = await self.client.delete(partition, params)
        return len(deleted)

    async def list_recorded_sessions(
        self, partition: str, column: str, mentor_id: int
    ) -> list[RecordedSession]:
        """Sessions where column == mentor_id and a recording exists (non-null, non-empty).

        Only the attendance columns are selected and validated.
        """
        validate_partition(partition)
        if column not in MENTOR_COLUMNS:
            raise ValueError(f"Unsupported mentor column {column!r}")
        rows = await self.client.select(
            partition,
            [
                ("select", RECORDED_COLUMNS),
                eq(column, mentor_id),
                ("session_recording", "not.is.null"),
                ("session_recording", "neq."),
            ],
        )
        return _parse_rows(rows, RecordedSession)


class Directory:
    """Read-only lookup of mentors, coordinators, students and cohort partitions."""

    MENTOR_TABLE = "Mentor Details"
    COORDINATOR_TABLE = "supermentor_details"
    STUDENT_TABLE = "onboarding"
    SCHEDULE_TABLES_RPC = "get_schedule_tables"

    def __init__(self, main: RestClient, schedule: RestClient) -> None:
        self.main = main
        self.schedule = schedule

    async def list_cohort_partitions(self) -> list[str]:
        """Names of every schedule table known to the schedule database."""
        rows = await self.schedule.rpc(self.SCHEDULE_TABLES_RPC)
        if not isinstance(rows, list):
            raise StorageError(f"{self.SCHEDULE_TABLES_RPC} returned no table list")
        names = []
        for row in rows:
            name = row.get("table_name") if isinstance(row, dict) else row
            if name:
                names.append(str(name))
        return names

    async def get_mentor(self, mentor_id: int) -> Mentor:
        """Fetch one mentor.

        Raises:
            NotFoundError: If the mentor does not exist.
        """
        rows = await self.schedule.select(
            self.MENTOR_TABLE, [("select", "*"), eq("mentor_id", mentor_id)]
        )
        if not rows:
            raise NotFoundError(f"Mentor {mentor_id} not found")
        return _parse_rows(rows[:1], Mentor)[0]

    async def list_coordinators(self) -> list[Recipient]:
        rows = await self.main.select(self.COORDINATOR_TABLE, [("select", "*")])
        return [
            Recipient(
                kind=RecipientKind.COORDINATOR,
                name=row.get("name"),
                email=row.get("email"),
                phone=row.get("phone_num"),
            )
            for row in rows
        ]

    async def list_students(self, key: CohortKey) -> list[Recipient]:
        rows = await self.main.select(
            self.STUDENT_TABLE,
            [
                ("select", "Name,Email,Phone"),
                eq("Cohort Type", key.cohort_type),
                eq("Cohort Number", key.cohort_number),
            ],
        )
        return [
            Recipient(
                kind=RecipientKind.STUDENT,
                name=row.get("Name"),
                email=row.get("Email"),
                phone=row.get("Phone"),
            )
            for row in rows
        ]


class LedgerStore:
    """Mentor attendance ledger in the main database."""

    TABLE = "mentor_attendance"

    def __init__(self, client: RestClient) -> None:
        self.client = client

    async def upsert(self, entry: AttendanceLedgerEntry) -> None:
        """Create or fully replace the ledger row for entry.mentor_id."""
        await self.client.upsert(self.TABLE, entry.model_dump(mode="json"), "mentor_id")

    async def list_entries(self) -> list[AttendanceLedgerEntry]:
        rows = await self.client.select(
            self.TABLE, [("select", "*"), ("order", "attendance_percent.desc")]
        )
        return _parse_rows(rows, AttendanceLedgerEntry)
