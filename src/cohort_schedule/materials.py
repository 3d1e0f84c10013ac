"""Session materials: an ordered, de-duplicated list of resource links per session."""

from cohort_schedule.cohorts import validate_partition
from cohort_schedule.errors import ValidationError
from cohort_schedule.locks import PartitionLocks
from cohort_schedule.logging import get_logger
from cohort_schedule.models import MaterialsResult
from cohort_schedule.store import ScheduleStore
from cohort_schedule.utils import join_materials, merge_materials

logger = get_logger(__name__)

MATERIALS_COLUMN = "initial_session_material"


class MaterialsManager:
    def __init__(self, store: ScheduleStore, locks: PartitionLocks | None = None) -> None:
        self.store = store
        self.locks = locks or PartitionLocks()

    async def get_materials(self, partition: str, session_id: int) -> MaterialsResult:
        validate_partition(partition)
        session = await self.store.get_session(partition, session_id)
        return MaterialsResult(
            partition=partition, session_id=session_id, materials=session.materials
        )

    async def add_materials(
        self, partition: str, session_id: int, links: list[str]
    ) -> MaterialsResult:
        """Append links that are not already attached, keeping existing order.

        Raises:
            ValidationError: If no non-empty link is given.
            NotFoundError: If the session does not exist.
        """
        validate_partition(partition)
        new_links = [link.strip() for link in links or [] if link and link.strip()]
        if not new_links:
            raise ValidationError("At least one material link is required")

        async with self.locks.hold(partition):
            session = await self.store.get_session(partition, session_id)
            materials = merge_materials(session.materials, new_links)
            if materials != session.materials:
                await self.store.update_session(
                    partition, session_id, {MATERIALS_COLUMN: join_materials(materials)}
                )

        logger.info(
            "materials_added",
            partition=partition,
            session_id=session_id,
            added=len(materials) - len(session.materials),
            total=len(materials),
        )
        return MaterialsResult(partition=partition, session_id=session_id, materials=materials)

    async def replace_materials(
        self, partition: str, session_id: int, links: list[str]
    ) -> MaterialsResult:
        """Store exactly the given links (de-duplicated); an empty list clears them."""
        validate_partition(partition)
        materials = merge_materials([], links or [])

        async with self.locks.hold(partition):
            # Missing session raises NotFoundError
            await self.store.get_session(partition, session_id)
            await self.store.update_session(
                partition, session_id, {MATERIALS_COLUMN: join_materials(materials)}
            )

        logger.info(
            "materials_replaced", partition=partition, session_id=session_id, total=len(materials)
        )
        return MaterialsResult(partition=partition, session_id=session_id, materials=materials)
