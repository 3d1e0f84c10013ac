"""In-memory stand-ins for the store, directory, ledger and dispatcher."""

import datetime as dt

import pytest

from cohort_schedule.batch import Pacer
from cohort_schedule.config import EngineConfig
from cohort_schedule.errors import NotFoundError, StorageError
from cohort_schedule.models import Mentor, Recipient, RecipientKind, RecordedSession, Session
from cohort_schedule.store import MENTOR_COLUMNS


def session_row(
    id,
    week,
    number,
    date=None,
    *,
    time=None,
    mentor_id=1,
    swapped_mentor_id=None,
    recording=None,
    link=None,
    materials=None,
    subject="DSA",
):
    day = None
    if date is not None:
        date = dt.date.fromisoformat(date) if isinstance(date, str) else date
        day = date.strftime("%A")
    return {
        "id": id,
        "week_number": week,
        "session_number": number,
        "date": date,
        "day": day,
        "time": time,
        "mentor_id": mentor_id,
        "swapped_mentor_id": swapped_mentor_id,
        "session_recording": recording,
        "teams_meeting_link": link,
        "initial_session_material": materials,
        "subject_name": subject,
    }


class FakeScheduleStore:
    def __init__(self, tables: dict[str, list[dict]] | None = None) -> None:
        self.tables = {
            name: {row["id"]: dict(row) for row in rows} for name, rows in (tables or {}).items()
        }
        self.fail_update_ids: set[int] = set()
        self.fail_update_columns: set[str] = set()
        self.fail_scan_partitions: set[str] = set()
        self.fail_delete = False
        self.updates: list[tuple[str, int, dict]] = []
        self.list_calls = 0

    def _table(self, partition: str) -> dict:
        return self.tables.setdefault(partition, {})

    def rows(self, partition: str) -> list[Session]:
        return sorted(
            (Session.model_validate({**row, "partition": partition}) for row in self._table(partition).values()),
            key=lambda s: s.sort_key,
        )

    async def list_sessions(self, partition: str) -> list[Session]:
        self.list_calls += 1
        return self.rows(partition)

    async def get_session(self, partition: str, session_id: int) -> Session:
        row = self._table(partition).get(session_id)
        if row is None:
            raise NotFoundError(f"Session {session_id} not found in {partition}")
        return Session.model_validate({**row, "partition": partition})

    async def update_session(self, partition: str, session_id: int, fields: dict) -> None:
        if session_id in self.fail_update_ids or self.fail_update_columns & set(fields):
            raise StorageError(f"update of {session_id} rejected")
        self.updates.append((partition, session_id, dict(fields)))
        self._table(partition)[session_id].update(fields)

    async def delete_sessions(self, partition: str, **filters) -> int:
        if self.fail_delete:
            raise StorageError("delete rejected")
        table = self._table(partition)
        doomed = [
            sid
            for sid, row in table.items()
            if all(row.get(column) == value for column, value in filters.items())
        ]
        for sid in doomed:
            del table[sid]
        return len(doomed)

    async def list_recorded_sessions(
        self, partition: str, column: str, mentor_id: int
    ) -> list[RecordedSession]:
        assert column in MENTOR_COLUMNS
        if partition in self.fail_scan_partitions:
            raise StorageError(f"{partition} unavailable")
        return [
            RecordedSession.model_validate(row)
            for row in self._table(partition).values()
            if row.get(column) == mentor_id and row.get("session_recording") not in (None, "")
        ]


class FakeDirectory:
    def __init__(
        self,
        mentors: list[Mentor] | None = None,
        coordinators: list[Recipient] | None = None,
        students: dict[tuple[str, str], list[Recipient]] | None = None,
        partitions: list[str] | None = None,
    ) -> None:
        self.mentors = {m.id: m for m in mentors or []}
        self.coordinators = coordinators or []
        self.students = students or {}
        self.partitions = partitions or []
        self.fail_coordinators = False
        self.fail_students = False
        self.fail_partitions = False
        self.student_lookups: list[tuple[str, str]] = []

    async def list_cohort_partitions(self) -> list[str]:
        if self.fail_partitions:
            raise StorageError("rpc unavailable")
        return list(self.partitions)

    async def get_mentor(self, mentor_id: int) -> Mentor:
        if mentor_id not in self.mentors:
            raise NotFoundError(f"Mentor {mentor_id} not found")
        return self.mentors[mentor_id]

    async def list_coordinators(self) -> list[Recipient]:
        if self.fail_coordinators:
            raise StorageError("coordinators unavailable")
        return list(self.coordinators)

    async def list_students(self, key) -> list[Recipient]:
        self.student_lookups.append((key.cohort_type, key.cohort_number))
        if self.fail_students:
            raise StorageError("students unavailable")
        return list(self.students.get((key.cohort_type, key.cohort_number), []))


class FakeLedger:
    def __init__(self) -> None:
        self.rows = {}
        self.fail = False

    async def upsert(self, entry) -> None:
        if self.fail:
            raise StorageError("upsert rejected")
        self.rows[entry.mentor_id] = entry

    async def list_entries(self):
        return sorted(self.rows.values(), key=lambda e: e.attendance_percent, reverse=True)


class FakeDispatcher:
    def __init__(self) -> None:
        self.emails: list[tuple[str, str, str]] = []
        self.whatsapps: list[tuple[str, str, list[str]]] = []
        self.failing_emails: set[str] = set()
        self.failing_phones: set[str] = set()

    async def send_email(self, to: str, subject: str, html: str) -> bool:
        self.emails.append((to, subject, html))
        return to not in self.failing_emails

    async def send_whatsapp(self, to_phone: str, template_name: str, params: list[str]) -> bool:
        self.whatsapps.append((to_phone, template_name, params))
        return to_phone not in self.failing_phones


def coordinator(name, email=None, phone=None) -> Recipient:
    return Recipient(kind=RecipientKind.COORDINATOR, name=name, email=email, phone=phone)


def student(name, email=None, phone=None) -> Recipient:
    return Recipient(kind=RecipientKind.STUDENT, name=name, email=email, phone=phone)


@pytest.fixture
def config() -> EngineConfig:
    return EngineConfig(
        _env_file=None,
        coordinator_pacing_seconds=0,
        student_pacing_seconds=0,
        swap_pacing_seconds=0,
        default_country_code="91",
    )


@pytest.fixture
def no_pacing() -> Pacer:
    return Pacer(0)


@pytest.fixture
def dispatcher() -> FakeDispatcher:
    return FakeDispatcher()


class FakeResponse:
    """Async context manager shaped like an aiohttp response."""

    def __init__(self, status: int = 200, body: str = "") -> None:
        self.status = status
        self._body = body

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        return None

    async def text(self) -> str:
        return self._body


class FakeHttpSession:
    """Replays queued responses (or raises queued exceptions) and records requests."""

    def __init__(self, *responses) -> None:
        self.responses = list(responses)
        self.calls: list[dict] = []

    def _next(self, **call):
        self.calls.append(call)
        outcome = self.responses.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def request(self, method, url, **kwargs):
        return self._next(method=method, url=url, **kwargs)

    def post(self, url, **kwargs):
        return self._next(method="POST", url=url, **kwargs)
