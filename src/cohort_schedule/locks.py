"""Per-partition mutual exclusion for schedule mutations.

Week deletion renumbers sessions that a concurrent reschedule might be
editing, so every mutation of a partition runs inside hold(partition).
The scope is one process; separate processes are not excluded.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from cohort_schedule.logging import get_logger

logger = get_logger(__name__)


class PartitionLocks:
    """Lazily created asyncio.Lock per partition name."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, partition: str) -> asyncio.Lock:
        lock = self._locks.get(partition)
        if lock is None:
            lock = self._locks[partition] = asyncio.Lock()
        return lock

    def is_locked(self, partition: str) -> bool:
        lock = self._locks.get(partition)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, partition: str) -> AsyncIterator[None]:
        lock = self._lock_for(partition)
        if lock.locked():
            logger.debug("partition_lock_wait", partition=partition)
        async with lock:
            yield
