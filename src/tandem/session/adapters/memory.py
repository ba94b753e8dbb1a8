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
"""In-memory session storage with expiry."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime

from tandem.session.models import Clock, utc_now


class _ReadWriteLock:
    """asyncio lock admitting concurrent readers or one exclusive writer."""

    def __init__(self) -> None:
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writing = False

    @asynccontextmanager
    async def reading(self) -> AsyncIterator[None]:
        async with self._cond:
            await self._cond.wait_for(lambda: not self._writing)
            self._readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @asynccontextmanager
    async def writing(self) -> AsyncIterator[None]:
        async with self._cond:
            await self._cond.wait_for(lambda: not self._writing and not self._readers)
            self._writing = True
        try:
            yield
        finally:
            async with self._cond:
                self._writing = False
                self._cond.notify_all()


class InMemorySessionStorage:
    """Process-local storage for development, tests and single-process apps.

    Expired entries read as absent. A fetch that finds one drops it, and
    every store sweeps all expired entries, so keys that are never read
    again do not accumulate.
    """

    def __init__(self, clock: Clock = utc_now) -> None:
        self._items: dict[bytes, tuple[bytes, datetime]] = {}
        self._clock = clock
        self._lock = _ReadWriteLock()

    async def store(self, key: bytes, value: bytes, exp: datetime) -> None:
        async with self._lock.writing():
            self._sweep(self._clock())
            self._items[bytes(key)] = (bytes(value), exp)

    async def fetch(self, key: bytes) -> bytes | None:
        async with self._lock.reading():
            entry = self._items.get(key)
        if entry is None:
            return None
        value, exp = entry
        now = self._clock()
        if exp <= now:
            async with self._lock.writing():
                current = self._items.get(key)
                if current is not None and current[1] <= now:
                    del self._items[key]
            return None
        return value

    async def delete(self, key: bytes) -> None:
        async with self._lock.writing():
            self._items.pop(key, None)

    def _sweep(self, now: datetime) -> None:
        expired = [k for k, (_, exp) in self._items.items() if exp <= now]
        for k in expired:
            del self._items[k]

    def __len__(self) -> int:
        return len(self._items)
