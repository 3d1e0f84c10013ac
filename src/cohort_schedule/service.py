"""ScheduleService wires the operations to their stores and transports.

One service instance owns the HTTP sessions and a single PartitionLocks
shared by every mutating operation, so week deletion, rescheduling,
swaps and material edits of one partition never interleave.
"""

import datetime as dt

import aiohttp

from cohort_schedule.attendance import AttendanceAggregator
from cohort_schedule.config import EngineConfig, get_config
from cohort_schedule.dispatch import NotificationDispatcher
from cohort_schedule.locks import PartitionLocks
from cohort_schedule.logging import get_logger
from cohort_schedule.materials import MaterialsManager
from cohort_schedule.models import (
    ActionType,
    AttendanceLedgerEntry,
    AttendanceResult,
    DeleteWeekResult,
    MaterialsResult,
    RescheduleResult,
    SwapResult,
)
from cohort_schedule.renumber import WeekRenumberer
from cohort_schedule.reschedule import RescheduleOrchestrator
from cohort_schedule.rest import RestClient
from cohort_schedule.store import Directory, LedgerStore, ScheduleStore
from cohort_schedule.swap import MentorSwapper

logger = get_logger(__name__)


class ScheduleService:
    """Entry point for the schedule mutation operations.

    Usage:
        async with ScheduleService() as service:
            result = await service.delete_week("basic1_1_schedule", 3)
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self.config = config or get_config()
        self.locks = PartitionLocks()
        self._http: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "ScheduleService":
        self._http = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.config.http_timeout_seconds)
        )
        timeout = self.config.http_timeout_seconds
        main = RestClient(
            self.config.main_db_url, self.config.main_db_key, self._http, timeout
        )
        schedule = RestClient(
            self.config.schedule_db_url, self.config.schedule_db_key, self._http, timeout
        )

        store = ScheduleStore(schedule)
        directory = Directory(main, schedule)
        ledger = LedgerStore(main)
        dispatcher = NotificationDispatcher(self.config, self._http)

        self.renumberer = WeekRenumberer(store, self.locks)
        self.orchestrator = RescheduleOrchestrator(
            store, directory, dispatcher, self.config, self.locks
        )
        self.aggregator = AttendanceAggregator(store, directory, ledger)
        self.swapper = MentorSwapper(store, directory, dispatcher, self.config, self.locks)
        self.materials = MaterialsManager(store, self.locks)
        logger.debug("schedule_service_opened")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._http is not None:
            await self._http.close()
            self._http = None
        logger.debug("schedule_service_closed")

    async def delete_week(self, partition: str, week_number: int) -> DeleteWeekResult:
        return await self.renumberer.delete_week(partition, week_number)

    async def reschedule(
        self,
        partition: str,
        session_id: int,
        new_date: dt.date,
        new_time: dt.time | None = None,
        action_type: str | ActionType = ActionType.POSTPONE,
        actor_mentor_name: str | None = None,
    ) -> RescheduleResult:
        return await self.orchestrator.reschedule(
            partition, session_id, new_date, new_time, action_type, actor_mentor_name
        )

    async def recompute_attendance(self, mentor_id: int) -> AttendanceResult:
        return await self.aggregator.recompute_attendance(mentor_id)

    async def list_attendance(self) -> list[AttendanceLedgerEntry]:
        return await self.aggregator.list_attendance()

    async def swap_mentor(
        self,
        partition: str,
        session_id: int,
        swapped_mentor_id: int | None,
        swapped_by_name: str | None = None,
    ) -> SwapResult:
        return await self.swapper.swap_mentor(
            partition, session_id, swapped_mentor_id, swapped_by_name
        )

    async def get_materials(self, partition: str, session_id: int) -> MaterialsResult:
        return await self.materials.get_materials(partition, session_id)

    async def add_materials(
        self, partition: str, session_id: int, links: list[str]
    ) -> MaterialsResult:
        return await self.materials.add_materials(partition, session_id, links)

    async def replace_materials(
        self, partition: str, session_id: int, links: list[str]
    ) -> MaterialsResult:
        return await self.materials.replace_materials(partition, session_id, links)
