"""Week deletion with renumbering of every later session.

Deleting week N removes its sessions and moves every session of week N+k
to week N+k-1, dated back by one week cadence, so the sequence stays
contiguous and weekday-aligned.

All new values are computed from the single snapshot loaded at the start;
nothing is re-read between updates, so a retried call cannot compound
shifts. Updates are best-effort: a failing row is reported and the rest
continue. There is no rollback.
"""

from cohort_schedule.batch import BestEffortBatch
from cohort_schedule.cohorts import validate_partition
from cohort_schedule.errors import NotFoundError, ValidationError
from cohort_schedule.locks import PartitionLocks
from cohort_schedule.logging import get_logger
from cohort_schedule.models import DeleteWeekResult, Session
from cohort_schedule.store import ScheduleStore
from cohort_schedule.utils import shift_date, week_cadence_shift, weekday_name

logger = get_logger(__name__)


def compute_day_shift(week_sessions: list[Session]) -> int:
    """Shift for sessions after a removed week: one cadence, from its first and last dated session."""
    dated = sorted(
        (s for s in week_sessions if s.date is not None),
        key=lambda s: s.session_number,
    )
    if len(dated) < 2:
        return week_cadence_shift(None, None)
    return week_cadence_shift(dated[0].date, dated[-1].date)


def shifted_fields(session: Session, days: int) -> dict:
    """Column updates that move one session back a week by days."""
    new_date = shift_date(session.date, days)
    return {
        "week_number": session.week_number - 1,
        "date": new_date,
        "day": weekday_name(new_date) if new_date is not None else session.day,
    }


class WeekRenumberer:
    """Deletes a week from a cohort partition and repairs the sequence."""

    STEP = "renumber_session"

    def __init__(self, store: ScheduleStore, locks: PartitionLocks | None = None) -> None:
        self.store = store
        self.locks = locks or PartitionLocks()

    async def delete_week(self, partition: str, week_number: int) -> DeleteWeekResult:
        """Delete every session of week_number and shift later weeks back.

        Args:
            partition: Schedule table of the cohort.
            week_number: Week to delete.

        Returns:
            DeleteWeekResult with counts and any per-session failures.

        Raises:
            ValidationError: If the partition name or week number is malformed.
            NotFoundError: If the week has no sessions.
            StorageError: If loading the partition or deleting the week fails.
        """
        validate_partition(partition)
        if not isinstance(week_number, int) or isinstance(week_number, bool) or week_number < 1:
            raise ValidationError(f"Invalid week number {week_number!r}")

        async with self.locks.hold(partition):
            snapshot = await self.store.list_sessions(partition)

            target = [s for s in snapshot if s.week_number == week_number]
            after = [s for s in snapshot if s.week_number > week_number]

            if not target:
                raise NotFoundError(f"Week {week_number} not found in {partition}")

            days = compute_day_shift(target)
            updates = [(s, shifted_fields(s, days)) for s in after]

            deleted = await self.store.delete_sessions(partition, week_number=week_number)
            logger.info(
                "week_deleted",
                partition=partition,
                week_number=week_number,
                deleted=deleted,
                later_sessions=len(after),
                days_shifted=days,
            )

            batch = BestEffortBatch(self.STEP)
            for session, fields in updates:
                await batch.attempt(
                    session.id, self.store.update_session(partition, session.id, fields)
                )

        if batch.failures:
            logger.warning(
                "renumber_incomplete",
                partition=partition,
                week_number=week_number,
                updated=batch.succeeded,
                failed=batch.failed,
            )
        else:
            logger.info("renumber_complete", partition=partition, updated=batch.succeeded)

        return DeleteWeekResult(
            partition=partition,
            week_number=week_number,
            deleted_count=deleted,
            updated_count=batch.succeeded,
            failed_count=batch.failed,
            days_shifted=days,
            failures=batch.failures,
        )
