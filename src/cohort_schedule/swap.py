"""Assign a substitute mentor to a session, or clear the substitution.

The original mentor_id is never touched; swapped_mentor_id records who
actually teaches, which is what the attendance ledger reads. Setting a
substitute notifies every coordinator and the substitute; clearing one
sends nothing.
"""

from cohort_schedule.batch import BestEffortBatch, Pacer
from cohort_schedule.cohorts import cohort_display_name, validate_partition
from cohort_schedule.config import EngineConfig
from cohort_schedule.dispatch import NotificationDispatcher
from cohort_schedule.errors import NotFoundError, StorageError
from cohort_schedule.locks import PartitionLocks
from cohort_schedule.logging import get_logger
from cohort_schedule.models import Mentor, Recipient, RecipientKind, SwapResult
from cohort_schedule.notify import fan_out
from cohort_schedule.store import Directory, ScheduleStore
from cohort_schedule.templates import (
    DEFAULT_MENTOR_NAME,
    SwapDetails,
    swap_coordinator_message,
    swap_substitute_message,
)
from cohort_schedule.utils import format_date_for_display, format_long_date, format_time_for_display

logger = get_logger(__name__)

UNKNOWN_MENTOR = "Unknown Mentor"


class MentorSwapper:
    """Sets or clears a session's substitute mentor."""

    def __init__(
        self,
        store: ScheduleStore,
        directory: Directory,
        dispatcher: NotificationDispatcher,
        config: EngineConfig,
        locks: PartitionLocks | None = None,
        pacer: Pacer | None = None,
    ) -> None:
        self.store = store
        self.directory = directory
        self.dispatcher = dispatcher
        self.config = config
        self.locks = locks or PartitionLocks()
        self.pacer = pacer or Pacer(config.swap_pacing_seconds)

    async def _lookup_mentor(self, mentor_id: int | None, batch: BestEffortBatch) -> Mentor | None:
        if mentor_id is None:
            return None
        try:
            return await self.directory.get_mentor(mentor_id)
        except NotFoundError:
            return None
        except StorageError as e:
            batch.record_failure(f"mentor:{mentor_id}", e)
            return None

    async def swap_mentor(
        self,
        partition: str,
        session_id: int,
        swapped_mentor_id: int | None,
        swapped_by_name: str | None = None,
    ) -> SwapResult:
        """Set swapped_mentor_id on a session (None clears it).

        Raises:
            ValidationError: If the partition name is malformed.
            NotFoundError: If the session or the substitute mentor does not exist.
            StorageError: If the session cannot be loaded or updated.
        """
        validate_partition(partition)
        batch = BestEffortBatch("swap_lookup")

        # Resolve the substitute before any write
        substitute = None
        if swapped_mentor_id is not None:
            substitute = await self.directory.get_mentor(swapped_mentor_id)

        async with self.locks.hold(partition):
            session = await self.store.get_session(partition, session_id)
            await self.store.update_session(
                partition, session_id, {"swapped_mentor_id": swapped_mentor_id}
            )

        logger.info(
            "mentor_swapped" if substitute else "mentor_swap_cleared",
            partition=partition,
            session_id=session_id,
            mentor_id=session.mentor_id,
            swapped_mentor_id=swapped_mentor_id,
        )

        result = SwapResult(
            partition=partition,
            session_id=session_id,
            mentor_id=session.mentor_id,
            swapped_mentor_id=swapped_mentor_id,
        )
        if substitute is None:
            return result

        original = await self._lookup_mentor(session.mentor_id, batch)
        details = SwapDetails(
            cohort_name=cohort_display_name(partition),
            subject_name=session.subject_name or "Session",
            subject_topic=session.subject_topic or "",
            session_date=format_date_for_display(session.date),
            session_time=format_time_for_display(session.time),
            original_mentor=(original.name if original else None) or UNKNOWN_MENTOR,
            new_mentor=substitute.name or UNKNOWN_MENTOR,
            swapped_by=swapped_by_name or DEFAULT_MENTOR_NAME,
            meeting_link=session.meeting_link or "",
        )
        country_code = self.config.default_country_code

        coordinators = []
        try:
            coordinators = await self.directory.list_coordinators()
        except StorageError as e:
            logger.warning("coordinator_lookup_failed", error=str(e))
            batch.record_failure("coordinators", e)

        result.coordinator_notified = await fan_out(
            self.dispatcher,
            coordinators,
            lambda r: swap_coordinator_message(details, r.name, self.config.whatsapp_swap_template),
            self.pacer,
            country_code,
            audience="coordinators",
        )

        # The substitute gets the long date format
        substitute_details = SwapDetails(
            **{**vars(details), "session_date": format_long_date(session.date)}
        )
        result.substitute_notified = await fan_out(
            self.dispatcher,
            [
                Recipient(
                    kind=RecipientKind.MENTOR,
                    name=substitute.name,
                    email=substitute.email,
                    phone=substitute.phone,
                )
            ],
            lambda r: swap_substitute_message(
                substitute_details, r.name, self.config.whatsapp_new_mentor_template
            ),
            self.pacer,
            country_code,
            audience="substitute",
        )

        result.failures.extend(batch.failures)
        return result
