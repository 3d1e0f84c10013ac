import datetime as dt

import pytest

from cohort_schedule.errors import NotFoundError
from cohort_schedule.models import Mentor
from cohort_schedule.swap import MentorSwapper

from conftest import FakeDirectory, FakeScheduleStore, coordinator, session_row

PARTITION = "basic1_1_schedule"


@pytest.fixture
def store() -> FakeScheduleStore:
    return FakeScheduleStore(
        {PARTITION: [session_row(42, 3, 1, "2025-01-06", time=dt.time(19, 30), mentor_id=5)]}
    )


@pytest.fixture
def directory() -> FakeDirectory:
    return FakeDirectory(
        mentors=[
            Mentor(mentor_id=5, Name="Asha"),
            Mentor(
                mentor_id=8,
                Name="Dev",
                **{"Email address": "dev@example.com", "Mobile number": 9123456780},
            ),
        ],
        coordinators=[
            coordinator("Ravi", "ravi@example.com", "9876543210"),
            coordinator("Isha", "isha@example.com"),
        ],
    )


@pytest.fixture
def swapper(store, directory, dispatcher, config, no_pacing):
    return MentorSwapper(store, directory, dispatcher, config, pacer=no_pacing)


async def test_swap_sets_substitute_and_keeps_original(swapper, store):
    result = await swapper.swap_mentor(PARTITION, 42, 8, "Ravi")

    session = await store.get_session(PARTITION, 42)
    assert session.mentor_id == 5
    assert session.swapped_mentor_id == 8
    assert result.mentor_id == 5
    assert result.swapped_mentor_id == 8


async def test_swap_notifies_coordinators_and_substitute(swapper, dispatcher):
    result = await swapper.swap_mentor(PARTITION, 42, 8, "Ravi")

    assert result.coordinator_notified.email == 2
    assert result.coordinator_notified.whatsapp == 1
    assert result.substitute_notified.email == 1
    assert result.substitute_notified.whatsapp == 1

    subjects = [subject for _, subject, _ in dispatcher.emails]
    assert subjects[0] == "Mentor Swap Alert: Basic 1.1 - DSA"
    assert subjects[-1] == "Class Assigned to You: Basic 1.1 - DSA"

    to, template, params = dispatcher.whatsapps[-1]
    assert to == "919123456780"
    assert template == "class_assigned_mentor"
    assert params == [
        "Dev",
        "Basic 1.1",
        "Monday, 6 January 2025",
        "7:30 PM",
        "DSA",
        "Check Dashboard",
    ]
    swap_params = dispatcher.whatsapps[0][2]
    assert swap_params[-2:] == ["Asha", "Dev"]


async def test_clearing_swap_sends_nothing(swapper, store, dispatcher):
    await swapper.swap_mentor(PARTITION, 42, 8)

    dispatcher.emails.clear()
    dispatcher.whatsapps.clear()
    result = await swapper.swap_mentor(PARTITION, 42, None)

    assert (await store.get_session(PARTITION, 42)).swapped_mentor_id is None
    assert dispatcher.emails == []
    assert dispatcher.whatsapps == []
    assert result.coordinator_notified.email == 0


async def test_unknown_substitute_is_rejected_before_writing(swapper, store):
    with pytest.raises(NotFoundError):
        await swapper.swap_mentor(PARTITION, 42, 99)
    assert store.updates == []


async def test_missing_session_is_not_found(swapper):
    with pytest.raises(NotFoundError):
        await swapper.swap_mentor(PARTITION, 1000, 8)
