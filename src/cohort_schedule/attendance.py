"""Mentor attendance ledger computed from recorded sessions across every cohort.

For one mentor, every partition is scanned for:
  (a) recorded sessions assigned to the mentor: each counts toward
      total_classes, as absent when someone else covered it (a swap is
      set) and present otherwise;
  (b) recorded sessions the mentor covered for someone else: each counts
      as special_attendance only, outside the percentage.

The ledger row is rebuilt from scratch on every call and replaces the
stored row. A partition that fails to answer is skipped and reported.
"""

from datetime import datetime, timezone

from cohort_schedule.batch import BestEffortBatch
from cohort_schedule.errors import StorageError
from cohort_schedule.logging import get_logger
from cohort_schedule.models import (
    AttendanceLedgerEntry,
    AttendanceResult,
    Mentor,
    RecordedSession,
)
from cohort_schedule.store import Directory, LedgerStore, ScheduleStore

logger = get_logger(__name__)


def attendance_percent(present: int, total: int) -> float:
    """present/total as a percentage rounded to 2 decimals; 0 when total is 0."""
    if total == 0:
        return 0.0
    return round(present / total * 100, 2)


class AttendanceTally:
    """Running counts for one mentor."""

    def __init__(self) -> None:
        self.total_classes = 0
        self.present = 0
        self.absent = 0
        self.special_attendance = 0

    def add_assigned(self, sessions: list[RecordedSession]) -> None:
        for session in sessions:
            self.total_classes += 1
            if session.is_swapped:
                self.absent += 1
            else:
                self.present += 1

    def add_covered(self, sessions: list[RecordedSession]) -> None:
        self.special_attendance += len(sessions)

    def to_entry(self, mentor: Mentor) -> AttendanceLedgerEntry:
        return AttendanceLedgerEntry(
            mentor_id=mentor.id,
            name=mentor.name or "Unknown",
            email=mentor.email,
            total_classes=self.total_classes,
            present=self.present,
            absent=self.absent,
            special_attendance=self.special_attendance,
            attendance_percent=attendance_percent(self.present, self.total_classes),
            updated_at=datetime.now(timezone.utc),
        )


class AttendanceAggregator:
    """Recomputes and stores a mentor's attendance ledger entry."""

    STEP = "scan_partition"

    def __init__(self, store: ScheduleStore, directory: Directory, ledger: LedgerStore) -> None:
        self.store = store
        self.directory = directory
        self.ledger = ledger

    async def _scan(
        self, partition: str, mentor_id: int
    ) -> tuple[list[RecordedSession], list[RecordedSession]]:
        assigned = await self.store.list_recorded_sessions(partition, "mentor_id", mentor_id)
        covered = await self.store.list_recorded_sessions(
            partition, "swapped_mentor_id", mentor_id
        )
        return assigned, covered

    async def recompute_attendance(self, mentor_id: int) -> AttendanceResult:
        """Rebuild and upsert the ledger entry for one mentor.

        Raises:
            NotFoundError: If the mentor does not exist.
            StorageError: If the partition list cannot be read or the upsert fails.
        """
        mentor = await self.directory.get_mentor(mentor_id)
        partitions = await self.directory.list_cohort_partitions()
        logger.info(
            "attendance_scan_started",
            mentor_id=mentor_id,
            mentor=mentor.name,
            partitions=len(partitions),
        )

        tally = AttendanceTally()
        batch = BestEffortBatch(self.STEP)
        for partition in partitions:
            try:
                assigned, covered = await self._scan(partition, mentor_id)
            except StorageError as e:
                logger.warning("attendance_scan_failed", partition=partition, error=str(e))
                batch.record_failure(partition, e)
                continue
            # Both queries answered; only now does the partition count
            tally.add_assigned(assigned)
            tally.add_covered(covered)
            batch.succeeded += 1
            if assigned or covered:
                logger.debug(
                    "attendance_partition_scanned",
                    partition=partition,
                    assigned=len(assigned),
                    covered=len(covered),
                )

        entry = tally.to_entry(mentor)
        await self.ledger.upsert(entry)
        logger.info(
            "attendance_saved",
            mentor_id=mentor_id,
            total=entry.total_classes,
            present=entry.present,
            absent=entry.absent,
            special=entry.special_attendance,
            percent=entry.attendance_percent,
            skipped_partitions=batch.failed,
        )

        return AttendanceResult(
            entry=entry,
            partitions_scanned=batch.succeeded,
            failures=batch.failures,
        )

    async def list_attendance(self) -> list[AttendanceLedgerEntry]:
        """Stored ledger rows, highest attendance first."""
        return await self.ledger.list_entries()
