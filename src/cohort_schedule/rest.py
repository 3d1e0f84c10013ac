"""Minimal async PostgREST client over aiohttp.

One RestClient per database. Transport failures are classified into the
error hierarchy: timeouts, connection errors, 429 and 5xx become
TransientStorageError; other non-2xx responses become StorageError.
Idempotent reads are retried with tenacity, writes never are.
"""

import asyncio
import json
from typing import Any
from urllib.parse import quote

import aiohttp
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from cohort_schedule.errors import StorageError, TransientStorageError
from cohort_schedule.logging import get_logger

logger = get_logger(__name__)

Params = list[tuple[str, str]]

_TRANSIENT_STATUSES = frozenset({408, 429, 500, 502, 503, 504})


class RestClient:
    """Async client for a single PostgREST (Supabase) project."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        session: aiohttp.ClientSession | None = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        """Initialize RestClient.

        Args:
            base_url: Project URL, e.g. https://xyz.supabase.co.
            api_key: Service role key, sent as apikey and bearer token.
            session: Optional aiohttp session. If None, one is created on enter.
            timeout_seconds: Total timeout per request.
        """
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._session = session
        self._own_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async def __aenter__(self) -> "RestClient":
        if self._own_session:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._own_session and self._session:
            await self._session.close()
            self._session = None

    def _headers(self, prefer: str | None = None) -> dict[str, str]:
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def table_url(self, table: str) -> str:
        # Table names may contain spaces ("Mentor Details")
        return f"{self.base_url}/rest/v1/{quote(table)}"

    def rpc_url(self, function: str) -> str:
        return f"{self.base_url}/rest/v1/rpc/{quote(function)}"

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: Params | None = None,
        json_body: Any = None,
        prefer: str | None = None,
    ) -> Any:
        if self._session is None:
            raise StorageError("RestClient used outside of its async context")

        try:
            async with self._session.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=self._headers(prefer),
                timeout=self._timeout,
            ) as resp:
                if resp.status in _TRANSIENT_STATUSES:
                    body = await resp.text()
                    logger.warning(
                        "rest_transient_status", method=method, url=url, status=resp.status
                    )
                    raise TransientStorageError(
                        f"{method} {url} returned {resp.status}: {body[:200]}"
                    )
                if resp.status >= 400:
                    body = await resp.text()
                    logger.error(
                        "rest_request_rejected",
                        method=method,
                        url=url,
                        status=resp.status,
                        body=body[:500],
                    )
                    raise StorageError(f"{method} {url} returned {resp.status}: {body[:200]}")
                if resp.status == 204:
                    return None
                text = await resp.text()
                if not text:
                    return None
                try:
                    return json.loads(text)
                except ValueError as e:
                    raise StorageError(f"Malformed JSON from {url}: {e}") from e
        except (aiohttp.ClientConnectionError, asyncio.TimeoutError) as e:
            logger.warning("rest_transport_error", method=method, url=url, error=str(e))
            raise TransientStorageError(f"{method} {url} failed: {e}") from e
        except aiohttp.ClientError as e:
            logger.error("rest_client_error", method=method, url=url, error=str(e))
            raise StorageError(f"{method} {url} failed: {e}") from e

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_fixed(1),
        retry=retry_if_exception_type(TransientStorageError),
        reraise=True,
    )
    async def select(self, table: str, params: Params | None = None) -> list[dict]:
        """GET rows from a table. Retried on transient failures.

        Args:
            table: Table name.
            params: PostgREST query parameters, e.g. [("id", "eq.5")].

        Returns:
            List of row dicts (possibly empty).
        """
        rows = await self._request("GET", self.table_url(table), params=params)
        if rows is None:
            return []
        if not isinstance(rows, list):
            raise StorageError(f"Expected a list of rows from {table}")
        return rows

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_fixed(1),
        retry=retry_if_exception_type(TransientStorageError),
        reraise=True,
    )
    async def rpc(self, function: str, args: dict | None = None) -> Any:
        """Call a read-only RPC function. Retried on transient failures."""
        return await self._request("POST", self.rpc_url(function), json_body=args or {})

    async def update(self, table: str, params: Params, fields: dict) -> None:
        """PATCH rows matching params."""
        await self._request(
            "PATCH",
            self.table_url(table),
            params=params,
            json_body=fields,
            prefer="return=minimal",
        )

    async def delete(self, table: str, params: Params) -> list[dict]:
        """DELETE rows matching params and return the deleted rows."""
        rows = await self._request(
            "DELETE",
            self.table_url(table),
            params=params,
            prefer="return=representation",
        )
        return rows or []

    async def upsert(self, table: str, row: dict, on_conflict: str) -> None:
        """Insert or fully replace a row keyed by on_conflict."""
        await self._request(
            "POST",
            self.table_url(table),
            params=[("on_conflict", on_conflict)],
            json_body=row,
            prefer="resolution=merge-duplicates,return=minimal",
        )


def eq(column: str, value: Any) -> tuple[str, str]:
    """Build a PostgREST equality filter."""
    return (column, f"eq.{value}")
