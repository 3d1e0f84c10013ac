import json

from cohort_schedule.rest import RestClient
from cohort_schedule.store import RECORDED_COLUMNS, ScheduleStore

from conftest import FakeHttpSession, FakeResponse


async def test_recorded_sessions_read_only_attendance_columns():
    rows = [
        {"id": 1, "mentor_id": 5, "swapped_mentor_id": None, "session_recording": "https://rec/1"},
        {"id": 2, "mentor_id": 5, "swapped_mentor_id": 8, "session_recording": "https://rec/2"},
    ]
    http = FakeHttpSession(FakeResponse(200, json.dumps(rows)))
    store = ScheduleStore(RestClient("https://db.example", "secret", session=http))

    sessions = await store.list_recorded_sessions("basic1_1_schedule", "mentor_id", 5)

    assert [s.id for s in sessions] == [1, 2]
    assert [s.is_swapped for s in sessions] == [False, True]
    params = http.calls[0]["params"]
    assert ("select", RECORDED_COLUMNS) in params
    assert ("mentor_id", "eq.5") in params
    assert ("session_recording", "not.is.null") in params


async def test_recorded_sessions_ignore_unrelated_columns():
    # week_number 0 would not validate as a full Session
    rows = [{"id": 3, "week_number": 0, "mentor_id": 5, "session_recording": "https://rec/3"}]
    http = FakeHttpSession(FakeResponse(200, json.dumps(rows)))
    store = ScheduleStore(RestClient("https://db.example", "secret", session=http))

    sessions = await store.list_recorded_sessions("basic1_1_schedule", "mentor_id", 5)

    assert [s.id for s in sessions] == [3]
