# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Relational session storage on a SQLAlchemy async engine."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy import Column, DateTime, LargeBinary, MetaData, Table, delete, insert, select
from sqlalchemy.ext.asyncio import AsyncEngine

from tandem.session.models import Clock, utc_now

_logger = logging.getLogger(__name__)

DEFAULT_TABLE = "sessions"


def _naive_utc(value: datetime) -> datetime:
    # expires_at holds naive UTC
    return value.astimezone(UTC).replace(tzinfo=None)


class SqlSessionStorage:
    """Stores one row per key: ``(key, value, expires_at)``.

    Rows past ``expires_at`` read as absent. They stay in the table until
    the key is written again or :meth:`delete_expired` runs, either called
    from the application's own scheduler or periodically after
    :meth:`start_cleanup`.
    """

    def __init__(self, engine: AsyncEngine, table_name: str = DEFAULT_TABLE, clock: Clock = utc_now) -> None:
        self._engine = engine
        self._clock = clock
        self._cleanup_task: asyncio.Task[None] | None = None
        self._metadata = MetaData()
        self._table = Table(
            table_name,
            self._metadata,
            Column("key", LargeBinary, primary_key=True),
            Column("value", LargeBinary, nullable=False),
            Column("expires_at", DateTime, nullable=False, index=True),
        )

    @property
    def table(self) -> Table:
        return self._table

    async def create_table(self) -> None:
        """Create the session table if it does not exist."""
        async with self._engine.begin() as conn:
            await conn.run_sync(self._metadata.create_all)

    async def store(self, key: bytes, value: bytes, exp: datetime) -> None:
        t = self._table
        async with self._engine.begin() as conn:
            await conn.execute(delete(t).where(t.c.key == key))
            await conn.execute(insert(t).values(key=key, value=value, expires_at=_naive_utc(exp)))

    async def fetch(self, key: bytes) -> bytes | None:
        t = self._table
        stmt = select(t.c.value).where(t.c.key == key, t.c.expires_at > _naive_utc(self._clock()))
        async with self._engine.connect() as conn:
            value = (await conn.execute(stmt)).scalar_one_or_none()
        if value is None:
            return None
        return bytes(value)

    async def delete(self, key: bytes) -> None:
        t = self._table
        async with self._engine.begin() as conn:
            await conn.execute(delete(t).where(t.c.key == key))

    async def delete_expired(self) -> int:
        """Remove rows whose expiry has passed; returns how many were deleted."""
        t = self._table
        async with self._engine.begin() as conn:
            result = await conn.execute(delete(t).where(t.c.expires_at <= _naive_utc(self._clock())))
        _logger.debug("Deleted %d expired session rows from '%s'", result.rowcount, t.name)
        return int(result.rowcount)

    async def start_cleanup(self, interval: timedelta) -> None:
        """Run :meth:`delete_expired` every *interval* until :meth:`stop_cleanup`."""
        if interval <= timedelta(0):
            raise ValueError("cleanup interval must be positive")
        if self._cleanup_task is not None:
            return
        self._cleanup_task = asyncio.create_task(self._run_cleanup_loop(interval.total_seconds()))
        self._cleanup_task.add_done_callback(self._cleanup_done_callback)

    async def stop_cleanup(self) -> None:
        """Cancel the periodic cleanup started by :meth:`start_cleanup`."""
        task, self._cleanup_task = self._cleanup_task, None
        if task is None:
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    async def _run_cleanup_loop(self, seconds: float) -> None:
        while True:
            await asyncio.sleep(seconds)
            try:
                await self.delete_expired()
            except Exception:
                _logger.exception("Failed to delete expired sessions from '%s'", self._table.name)

    @staticmethod
    def _cleanup_done_callback(task: asyncio.Task[Any]) -> None:
        if not task.cancelled():
            exc = task.exception()
            if exc is not None:
                _logger.error("Session cleanup task failed: %s", exc, exc_info=exc)
