"""Remote mirror for the stored collections.

Talks to a PostgREST endpoint (e.g. Supabase) exposing a single table::

    create table user_data (
        id text primary key,
        content jsonb,
        updated_at timestamp with time zone default now()
    );

Each collection is one row whose ``content`` is the whole JSON array.
Writes are upserts keyed on ``id``, so the last writer wins.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from wager_tracker.core.errors import RemoteMirrorError
from wager_tracker.core.ids import utc_now

logger = logging.getLogger(__name__)

CREATE_TABLE_SQL = (
    "create table user_data (id text primary key, content jsonb, "
    "updated_at timestamp with time zone default now());"
)


class RemoteMirror:
    """Async client for the ``user_data`` mirror table.

    Args:
        url: Project base URL, e.g. ``https://xyz.supabase.co``.
        key: API key sent as ``apikey`` and bearer token.
        table: Table name. Defaults to ``"user_data"``.
        timeout_seconds: Total timeout per request.
    """

    def __init__(
        self,
        url: str,
        key: str,
        *,
        table: str = "user_data",
        timeout_seconds: float = 10.0,
    ) -> None:
        if not url or not key:
            raise RemoteMirrorError("Remote mirror requires both url and key")
        self._base = url.rstrip("/")
        self._key = key
        self._table = table
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    @property
    def endpoint(self) -> str:
        return f"{self._base}/rest/v1/{self._table}"

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self._key,
            "Authorization": f"Bearer {self._key}",
            "Content-Type": "application/json",
        }

    async def fetch(self, record_id: str) -> Any | None:
        """Return the ``content`` of *record_id*, or None if the row is absent."""
        params = {"id": f"eq.{record_id}", "select": "content"}
        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.get(
                    self.endpoint, params=params, headers=self._headers()
                ) as resp:
                    if resp.status >= 300:
                        raise RemoteMirrorError(
                            f"Mirror fetch {record_id} failed: "
                            f"status={resp.status} body={await resp.text()}"
                        )
                    rows = await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise RemoteMirrorError(f"Mirror fetch {record_id} failed: {exc}") from exc

        if not isinstance(rows, list):
            raise RemoteMirrorError(
                f"Mirror fetch {record_id} returned {type(rows).__name__}, expected a list of rows"
            )
        if not rows:
            return None
        row = rows[0]
        if not isinstance(row, dict):
            raise RemoteMirrorError(f"Mirror fetch {record_id} returned a malformed row: {row!r}")
        return row.get("content")

    async def upsert(self, record_id: str, content: Any) -> None:
        """Overwrite the row *record_id* with *content*."""
        payload = {
            "id": record_id,
            "content": content,
            "updated_at": utc_now().isoformat(),
        }
        headers = {**self._headers(), "Prefer": "resolution=merge-duplicates"}
        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.post(
                    self.endpoint, json=payload, headers=headers
                ) as resp:
                    if resp.status >= 300:
                        raise RemoteMirrorError(
                            f"Mirror upsert {record_id} failed: "
                            f"status={resp.status} body={await resp.text()}"
                        )
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise RemoteMirrorError(f"Mirror upsert {record_id} failed: {exc}") from exc
        logger.info("Mirrored %s to %s", record_id, self.endpoint)
