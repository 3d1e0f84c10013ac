import asyncio
import json

import aiohttp
import pytest
from tenacity import wait_none

from cohort_schedule.errors import StorageError, TransientStorageError
from cohort_schedule.rest import RestClient, eq

from conftest import FakeHttpSession, FakeResponse


def make_client(*responses) -> tuple[RestClient, FakeHttpSession]:
    http = FakeHttpSession(*responses)
    return RestClient("https://db.example/", "secret", session=http), http


async def select_fast(client: RestClient, table: str, params=None):
    return await RestClient.select.retry_with(wait=wait_none())(client, table, params)


async def test_select_sends_auth_headers_and_filters():
    client, http = make_client(FakeResponse(200, json.dumps([{"id": 1}])))

    rows = await client.select("basic1_1_schedule", [eq("id", 1)])

    assert rows == [{"id": 1}]
    call = http.calls[0]
    assert call["method"] == "GET"
    assert call["url"] == "https://db.example/rest/v1/basic1_1_schedule"
    assert call["params"] == [("id", "eq.1")]
    assert call["headers"]["apikey"] == "secret"
    assert call["headers"]["Authorization"] == "Bearer secret"


def test_table_names_are_quoted():
    client, _ = make_client()
    assert client.table_url("Mentor Details") == "https://db.example/rest/v1/Mentor%20Details"


async def test_transient_status_is_retried_then_succeeds():
    client, http = make_client(
        FakeResponse(503, "unavailable"),
        FakeResponse(429, "slow down"),
        FakeResponse(200, "[]"),
    )

    assert await select_fast(client, "onboarding") == []
    assert len(http.calls) == 3


async def test_transient_failures_exhaust_retries():
    client, http = make_client(
        aiohttp.ClientConnectionError("reset"),
        asyncio.TimeoutError(),
        FakeResponse(502, "bad gateway"),
    )

    with pytest.raises(TransientStorageError):
        await select_fast(client, "onboarding")
    assert len(http.calls) == 3


async def test_client_error_status_is_not_retried():
    client, http = make_client(FakeResponse(400, "bad filter"))

    with pytest.raises(StorageError) as excinfo:
        await select_fast(client, "onboarding")
    assert not isinstance(excinfo.value, TransientStorageError)
    assert len(http.calls) == 1


async def test_writes_are_not_retried():
    client, http = make_client(FakeResponse(503, "unavailable"))

    with pytest.raises(TransientStorageError):
        await client.update("basic1_1_schedule", [eq("id", 1)], {"date": "2025-01-08"})
    assert len(http.calls) == 1


async def test_update_uses_patch_with_minimal_return():
    client, http = make_client(FakeResponse(204))

    await client.update("basic1_1_schedule", [eq("id", 7)], {"day": "Wednesday"})

    call = http.calls[0]
    assert call["method"] == "PATCH"
    assert call["json"] == {"day": "Wednesday"}
    assert call["headers"]["Prefer"] == "return=minimal"


async def test_delete_returns_deleted_rows():
    client, http = make_client(FakeResponse(200, json.dumps([{"id": 1}, {"id": 2}])))

    rows = await client.delete("basic1_1_schedule", [eq("week_number", 3)])

    assert len(rows) == 2
    assert http.calls[0]["headers"]["Prefer"] == "return=representation"


async def test_upsert_merges_on_conflict_column():
    client, http = make_client(FakeResponse(201))

    await client.upsert("mentor_attendance", {"mentor_id": 5}, "mentor_id")

    call = http.calls[0]
    assert call["params"] == [("on_conflict", "mentor_id")]
    assert "merge-duplicates" in call["headers"]["Prefer"]


async def test_malformed_json_is_storage_error():
    client, _ = make_client(FakeResponse(200, "<html>"))

    with pytest.raises(StorageError):
        await client.select("onboarding")


async def test_generic_client_error_is_storage_error():
    client, _ = make_client(aiohttp.ClientPayloadError("truncated"))

    with pytest.raises(StorageError) as excinfo:
        await client.select("onboarding")
    assert not isinstance(excinfo.value, TransientStorageError)


async def test_request_outside_context_fails():
    client = RestClient("https://db.example", "secret")

    with pytest.raises(StorageError):
        await client.update("t", [eq("id", 1)], {})
