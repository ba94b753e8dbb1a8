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
"""Redis-backed session storage."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from tandem.session.models import Clock, utc_now

_logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "tandem:session:"


class RedisSessionStorage:
    """Session storage backed by a ``redis.asyncio.Redis``-like client.

    Keys are namespaced with a prefix. The absolute expiry is converted into
    a millisecond TTL; a value whose expiry has already passed is deleted
    rather than written. Cancellation is native to ``redis.asyncio``.
    """

    def __init__(self, client: Any, prefix: str = DEFAULT_PREFIX, clock: Clock = utc_now) -> None:
        self._client = client
        self._prefix = prefix.encode("utf-8")
        self._clock = clock

    def _key(self, key: bytes) -> bytes:
        return self._prefix + key

    async def store(self, key: bytes, value: bytes, exp: datetime) -> None:
        ttl_ms = int((exp - self._clock()).total_seconds() * 1000)
        if ttl_ms <= 0:
            _logger.debug("Dropping session list whose expiry already passed")
            await self._client.delete(self._key(key))
            return
        await self._client.set(self._key(key), value, px=ttl_ms)

    async def fetch(self, key: bytes) -> bytes | None:
        raw = await self._client.get(self._key(key))
        if raw is None:
            return None
        return bytes(raw)

    async def delete(self, key: bytes) -> None:
        await self._client.delete(self._key(key))
