"""Best-effort batches and outbound pacing.

A BestEffortBatch runs secondary steps one item at a time and turns each
StorageError into a PartialFailure record instead of aborting. A Pacer
enforces a minimum interval between consecutive recipients.
"""

import asyncio
from collections.abc import Awaitable

from cohort_schedule.errors import StorageError
from cohort_schedule.logging import get_logger
from cohort_schedule.models import PartialFailure

logger = get_logger(__name__)


class BestEffortBatch:
    """Accumulates per-item outcomes of a non-transactional bulk step."""

    def __init__(self, step: str) -> None:
        self.step = step
        self.succeeded = 0
        self.failures: list[PartialFailure] = []

    @property
    def failed(self) -> int:
        return len(self.failures)

    def record_failure(self, item: object, error: Exception | str) -> None:
        self.failures.append(PartialFailure(step=self.step, item=str(item), error=str(error)))

    async def attempt(self, item: object, operation: Awaitable) -> bool:
        """Await one item's operation; StorageError is logged and recorded.

        Returns:
            True if the operation completed.
        """
        try:
            await operation
        except StorageError as e:
            logger.warning("batch_item_failed", step=self.step, item=str(item), error=str(e))
            self.record_failure(item, e)
            return False
        self.succeeded += 1
        return True


class Pacer:
    """Minimum spacing between consecutive recipients.

    wait() returns immediately the first time and afterwards sleeps until
    interval seconds have passed since the previous call returned.
    An interval of 0 disables pacing. Concurrent callers sharing one Pacer
    are served one at a time, so the interval holds across operations.
    """

    def __init__(self, interval: float) -> None:
        if interval < 0:
            raise ValueError("Pacing interval must be >= 0")
        self.interval = interval
        self._last: float | None = None
        self._lock = asyncio.Lock()

    async def wait(self) -> None:
        loop = asyncio.get_running_loop()
        async with self._lock:
            if self.interval and self._last is not None:
                remaining = self.interval - (loop.time() - self._last)
                if remaining > 0:
                    await asyncio.sleep(remaining)
            self._last = loop.time()
