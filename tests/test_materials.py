import pytest

from cohort_schedule.errors import NotFoundError, ValidationError
from cohort_schedule.materials import MaterialsManager

from conftest import FakeScheduleStore, session_row

PARTITION = "basic1_1_schedule"


@pytest.fixture
def store() -> FakeScheduleStore:
    return FakeScheduleStore(
        {PARTITION: [session_row(1, 1, 1, "2025-01-06", materials="https://a, https://b")]}
    )


async def test_add_appends_only_new_links(store):
    result = await MaterialsManager(store).add_materials(
        PARTITION, 1, [" https://b ", "https://c", "https://c", ""]
    )

    assert result.materials == ["https://a", "https://b", "https://c"]
    assert result.link_count == 3
    assert store.tables[PARTITION][1]["initial_session_material"] == "https://a, https://b, https://c"


async def test_add_without_new_links_does_not_write(store):
    result = await MaterialsManager(store).add_materials(PARTITION, 1, ["https://a"])

    assert result.materials == ["https://a", "https://b"]
    assert store.updates == []


async def test_add_requires_a_link(store):
    with pytest.raises(ValidationError):
        await MaterialsManager(store).add_materials(PARTITION, 1, ["  "])


async def test_replace_and_clear(store):
    manager = MaterialsManager(store)

    result = await manager.replace_materials(PARTITION, 1, ["https://b"])
    assert result.materials == ["https://b"]

    cleared = await manager.replace_materials(PARTITION, 1, [])
    assert cleared.materials == []
    assert (await manager.get_materials(PARTITION, 1)).materials == []


async def test_missing_session(store):
    with pytest.raises(NotFoundError):
        await MaterialsManager(store).replace_materials(PARTITION, 2, ["https://x"])
