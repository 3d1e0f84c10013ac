"""Reschedule one session and notify coordinators and students.

The session's date update is the primary mutation; once it commits the
operation succeeds. The day, meeting link and time updates, the directory
lookups and every notification are secondary and only reported.
"""

import datetime as dt

from cohort_schedule.batch import BestEffortBatch, Pacer
from cohort_schedule.cohorts import cohort_display_name, parse_partition, validate_partition
from cohort_schedule.config import EngineConfig
from cohort_schedule.dispatch import NotificationDispatcher
from cohort_schedule.errors import StorageError, ValidationError
from cohort_schedule.locks import PartitionLocks
from cohort_schedule.logging import get_logger
from cohort_schedule.models import ActionType, RescheduleResult, Session
from cohort_schedule.notify import fan_out
from cohort_schedule.store import Directory, ScheduleStore
from cohort_schedule.templates import (
    DEFAULT_MENTOR_NAME,
    RescheduleDetails,
    reschedule_coordinator_message,
    reschedule_student_message,
)
from cohort_schedule.utils import format_date_for_display, format_time_for_display, weekday_name

logger = get_logger(__name__)


def parse_action(action_type: str | ActionType) -> ActionType:
    try:
        return ActionType(action_type)
    except ValueError:
        raise ValidationError(
            f"Invalid action type {action_type!r} (expected 'prepone' or 'postpone')"
        ) from None


class RescheduleOrchestrator:
    """Moves a session to a new date/time and fans out notifications."""

    def __init__(
        self,
        store: ScheduleStore,
        directory: Directory,
        dispatcher: NotificationDispatcher,
        config: EngineConfig,
        locks: PartitionLocks | None = None,
        coordinator_pacer: Pacer | None = None,
        student_pacer: Pacer | None = None,
    ) -> None:
        self.store = store
        self.directory = directory
        self.dispatcher = dispatcher
        self.config = config
        self.locks = locks or PartitionLocks()
        self.coordinator_pacer = coordinator_pacer or Pacer(config.coordinator_pacing_seconds)
        self.student_pacer = student_pacer or Pacer(config.student_pacing_seconds)

    async def _apply(
        self,
        partition: str,
        session_id: int,
        new_date: dt.date,
        new_time: dt.time | None,
        batch: BestEffortBatch,
    ) -> Session:
        """Load the session and write the new schedule; returns the pre-update snapshot."""
        async with self.locks.hold(partition):
            session = await self.store.get_session(partition, session_id)

            # Primary: a failure here aborts the whole operation
            await self.store.update_session(partition, session_id, {"date": new_date})

            await batch.attempt(
                "day",
                self.store.update_session(partition, session_id, {"day": weekday_name(new_date)}),
            )
            # A new meeting is provisioned out of band for the new slot
            await batch.attempt(
                "meeting_link",
                self.store.update_session(partition, session_id, {"teams_meeting_link": None}),
            )
            if new_time is not None:
                await batch.attempt(
                    "time",
                    self.store.update_session(partition, session_id, {"time": new_time}),
                )
        return session

    async def reschedule(
        self,
        partition: str,
        session_id: int,
        new_date: dt.date | None,
        new_time: dt.time | None = None,
        action_type: str | ActionType = ActionType.POSTPONE,
        actor_mentor_name: str | None = None,
    ) -> RescheduleResult:
        """Prepone or postpone a session.

        Args:
            partition: Schedule table of the cohort.
            session_id: Session to move.
            new_date: New calendar date (required).
            new_time: New time of day; the current time is kept when None.
            action_type: "prepone" or "postpone".
            actor_mentor_name: Mentor who requested the change, for messages.

        Returns:
            RescheduleResult with per-audience, per-channel counts.

        Raises:
            ValidationError: If inputs are missing or malformed.
            NotFoundError: If the session does not exist.
            StorageError: If loading the session or updating its date fails.
        """
        validate_partition(partition)
        if new_date is None:
            raise ValidationError("new_date is required")
        if not isinstance(new_date, dt.date) or isinstance(new_date, dt.datetime):
            raise ValidationError(f"new_date must be a date, got {new_date!r}")
        action = parse_action(action_type)

        update_batch = BestEffortBatch("session_update")
        session = await self._apply(partition, session_id, new_date, new_time, update_batch)
        logger.info(
            "session_rescheduled",
            partition=partition,
            session_id=session_id,
            action=action.value,
            previous_date=str(session.date),
            new_date=new_date.isoformat(),
        )

        cohort = parse_partition(partition)
        cohort_name = cohort_display_name(partition)
        details = RescheduleDetails(
            cohort_name=cohort_name,
            subject_name=session.subject_name or "Class",
            action_label=action.label,
            original_date=format_date_for_display(session.date),
            original_time=format_time_for_display(session.time),
            new_date=format_date_for_display(new_date),
            new_time=format_time_for_display(new_time or session.time),
            mentor_name=actor_mentor_name or DEFAULT_MENTOR_NAME,
        )

        result = RescheduleResult(
            partition=partition,
            session_id=session_id,
            action_type=action,
            cohort_name=cohort_name,
            previous_date=session.date,
            previous_time=session.time,
            new_date=new_date,
            new_day=weekday_name(new_date),
            new_time=new_time or session.time,
            failures=list(update_batch.failures),
        )

        lookup_batch = BestEffortBatch("directory_lookup")
        country_code = self.config.default_country_code

        coordinators = []
        try:
            coordinators = await self.directory.list_coordinators()
        except StorageError as e:
            logger.warning("coordinator_lookup_failed", error=str(e))
            lookup_batch.record_failure("coordinators", e)

        result.super_mentor_notified = await fan_out(
            self.dispatcher,
            coordinators,
            lambda r: reschedule_coordinator_message(
                details, r.name, self.config.whatsapp_reschedule_supermentor_template
            ),
            self.coordinator_pacer,
            country_code,
            audience="coordinators",
        )

        if cohort is not None:
            students = []
            try:
                students = await self.directory.list_students(cohort)
            except StorageError as e:
                logger.warning("student_lookup_failed", cohort=cohort_name, error=str(e))
                lookup_batch.record_failure(f"students:{cohort_name}", e)

            result.student_notified = await fan_out(
                self.dispatcher,
                students,
                lambda r: reschedule_student_message(
                    details, r.name, self.config.whatsapp_reschedule_student_template
                ),
                self.student_pacer,
                country_code,
                audience="students",
            )
        else:
            logger.info("student_fan_out_skipped", partition=partition, reason="unparsed_cohort")

        result.failures.extend(lookup_batch.failures)
        return result
