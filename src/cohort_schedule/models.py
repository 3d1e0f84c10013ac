"""Pydantic models for sessions, directory records, ledger rows and operation results.

Field aliases carry the column names used by the PostgREST tables, so rows
can be validated straight from JSON and written back with by_alias=True.
"""

import datetime as dt
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from cohort_schedule.utils import join_materials, parse_materials


class CohortKey(BaseModel):
    """External cohort identity, e.g. ("Basic", "1.1")."""

    model_config = ConfigDict(frozen=True)

    cohort_type: str
    cohort_number: str

    @property
    def display_name(self) -> str:
        return f"{self.cohort_type} {self.cohort_number}"


class Session(BaseModel):
    """One scheduled class occurrence in a cohort partition."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int
    partition: str | None = Field(default=None, exclude=True)
    week_number: int = Field(ge=1)
    session_number: int = Field(ge=1)
    date: dt.date | None = None
    day: str | None = None
    time: dt.time | None = None
    mentor_id: int | None = None
    swapped_mentor_id: int | None = None
    session_recording: str | None = None
    meeting_link: str | None = Field(default=None, alias="teams_meeting_link")
    materials: list[str] = Field(default_factory=list, alias="initial_session_material")
    subject_name: str | None = None
    subject_topic: str | None = None

    @field_validator("materials", mode="before")
    @classmethod
    def _split_materials(cls, value):
        return parse_materials(value)

    @property
    def is_recorded(self) -> bool:
        """True once the class actually took place (a recording is attached)."""
        return bool(self.session_recording)

    @property
    def is_swapped(self) -> bool:
        return self.swapped_mentor_id is not None

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.week_number, self.session_number)

    @property
    def materials_column(self) -> str:
        return join_materials(self.materials)


class RecordedSession(BaseModel):
    """The attendance-relevant columns of a session that has a recording."""

    model_config = ConfigDict(extra="ignore")

    id: int
    mentor_id: int | None = None
    swapped_mentor_id: int | None = None
    session_recording: str | None = None

    @property
    def is_swapped(self) -> bool:
        return self.swapped_mentor_id is not None


class Mentor(BaseModel):
    """Mentor directory record (read-only)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int = Field(alias="mentor_id")
    name: str | None = Field(default=None, alias="Name")
    email: str | None = Field(default=None, alias="Email address")
    phone: str | None = Field(default=None, alias="Mobile number")

    @field_validator("phone", mode="before")
    @classmethod
    def _phone_as_text(cls, value):
        return None if value is None else str(value)


class RecipientKind(str, Enum):
    COORDINATOR = "coordinator"
    STUDENT = "student"
    MENTOR = "mentor"


class Recipient(BaseModel):
    """Someone who receives a notification over email and/or WhatsApp."""

    kind: RecipientKind
    name: str | None = None
    email: str | None = None
    phone: str | None = None

    @field_validator("phone", mode="before")
    @classmethod
    def _phone_as_text(cls, value):
        return None if value is None else str(value)


class AttendanceLedgerEntry(BaseModel):
    """One mentor's attendance ledger row, replaced wholesale on each recompute."""

    mentor_id: int
    name: str | None = None
    email: str | None = None
    total_classes: int = 0
    present: int = 0
    absent: int = 0
    special_attendance: int = 0
    attendance_percent: float = 0
    updated_at: dt.datetime | None = None


class ActionType(str, Enum):
    PREPONE = "prepone"
    POSTPONE = "postpone"

    @property
    def label(self) -> str:
        return "Preponed" if self is ActionType.PREPONE else "Postponed"


class PartialFailure(BaseModel):
    """A secondary step that did not complete after the primary mutation committed."""

    step: str
    item: str
    error: str


class ChannelCounts(BaseModel):
    """Notification outcomes for one audience."""

    email: int = 0
    email_failed: int = 0
    whatsapp: int = 0
    whatsapp_failed: int = 0
    whatsapp_skipped: int = 0  # phone could not be normalized

    @property
    def failed(self) -> int:
        return self.email_failed + self.whatsapp_failed

    def record(self, *, email: bool | None, whatsapp: bool | None) -> None:
        """Tally one recipient; None means the channel was not attempted."""
        if email is True:
            self.email += 1
        elif email is False:
            self.email_failed += 1
        if whatsapp is True:
            self.whatsapp += 1
        elif whatsapp is False:
            self.whatsapp_failed += 1


class OperationResult(BaseModel):
    """Base for results that may carry partial failures."""

    failures: list[PartialFailure] = Field(default_factory=list)

    def _degraded(self) -> bool:
        return False

    @computed_field
    @property
    def partial(self) -> bool:
        """True when any secondary step or notification did not complete."""
        return bool(self.failures) or self._degraded()


class DeleteWeekResult(OperationResult):
    partition: str
    week_number: int
    deleted_count: int = 0
    updated_count: int = 0
    failed_count: int = 0
    days_shifted: int = 0


class RescheduleResult(OperationResult):
    partition: str
    session_id: int
    action_type: ActionType
    cohort_name: str
    previous_date: dt.date | None = None
    previous_time: dt.time | None = None
    new_date: dt.date
    new_day: str
    new_time: dt.time | None = None
    super_mentor_notified: ChannelCounts = Field(default_factory=ChannelCounts)
    student_notified: ChannelCounts = Field(default_factory=ChannelCounts)

    def _degraded(self) -> bool:
        return bool(self.super_mentor_notified.failed or self.student_notified.failed)


class AttendanceResult(OperationResult):
    entry: AttendanceLedgerEntry
    partitions_scanned: int = 0


class SwapResult(OperationResult):
    partition: str
    session_id: int
    mentor_id: int | None = None
    swapped_mentor_id: int | None = None
    coordinator_notified: ChannelCounts = Field(default_factory=ChannelCounts)
    substitute_notified: ChannelCounts = Field(default_factory=ChannelCounts)

    def _degraded(self) -> bool:
        return bool(self.coordinator_notified.failed or self.substitute_notified.failed)


class MaterialsResult(BaseModel):
    partition: str
    session_id: int
    materials: list[str]

    @computed_field
    @property
    def link_count(self) -> int:
        return len(self.materials)
