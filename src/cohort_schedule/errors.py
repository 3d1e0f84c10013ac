"""Error hierarchy for schedule operations.

Operations abort on NotFoundError and ValidationError before any side effect.
StorageError on a primary mutation propagates to the caller; on secondary
steps it is caught by a BestEffortBatch and returned as a PartialFailure.

TransientStorageError lets tenacity retry idempotent reads:
    @retry(retry=retry_if_exception_type(TransientStorageError), stop=stop_after_attempt(3))
    async def get(self, table: str, params): ...
"""


class ScheduleError(Exception):
    """Base exception for all schedule engine errors."""

    pass


class NotFoundError(ScheduleError):
    """Target entity is absent (session, mentor, week)."""

    pass


class ValidationError(ScheduleError):
    """Missing or malformed input, e.g. absent new date or bad partition name."""

    pass


class StorageError(ScheduleError):
    """Persistence layer unavailable or write rejected.

    Examples: 4xx from PostgREST on a write, malformed response body.
    """

    pass


class TransientStorageError(StorageError):
    """Temporary storage failure that may succeed on retry.

    Examples: connection reset, timeout, 429 Too Many Requests, 503.
    Only idempotent reads are retried; writes surface this immediately.
    """

    pass
