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
"""Tests for RedisSessionStorage using a FakeRedis stub."""

from __future__ import annotations

from datetime import timedelta

from tandem.session.adapters.redis import RedisSessionStorage
from tandem.session.ports.outbound import SessionStorage
from tandem.session.registry import SessionRegistry
from tandem.session.models import Session


class FakeRedis:
    """Minimal in-memory stub matching the redis.asyncio.Redis interface."""

    def __init__(self) -> None:
        self._store: dict[bytes, bytes] = {}
        self.ttls: dict[bytes, int | None] = {}

    async def get(self, key: bytes) -> bytes | None:
        return self._store.get(key)

    async def set(self, key: bytes, value: bytes, px: int | None = None) -> None:
        self._store[key] = value
        self.ttls[key] = px

    async def delete(self, *keys: bytes) -> int:
        count = 0
        for k in keys:
            if k in self._store:
                del self._store[k]
                count += 1
        return count


class TestRedisSessionStorage:
    async def test_protocol_compliance(self, clock):
        assert isinstance(RedisSessionStorage(FakeRedis(), clock=clock), SessionStorage)

    async def test_store_uses_prefix_and_ttl(self, clock):
        client = FakeRedis()
        storage = RedisSessionStorage(client, clock=clock)
        await storage.store(b"user", b"blob", clock() + timedelta(seconds=90))
        assert client._store == {b"tandem:session:user": b"blob"}
        assert client.ttls[b"tandem:session:user"] == 90_000

    async def test_fetch(self, clock):
        storage = RedisSessionStorage(FakeRedis(), prefix="app:", clock=clock)
        assert await storage.fetch(b"user") is None
        await storage.store(b"user", b"", clock() + timedelta(minutes=1))
        assert await storage.fetch(b"user") == b""

    async def test_past_expiry_deletes(self, clock):
        client = FakeRedis()
        storage = RedisSessionStorage(client, clock=clock)
        await storage.store(b"user", b"blob", clock() + timedelta(minutes=1))
        await storage.store(b"user", b"blob", clock() - timedelta(seconds=1))
        assert await storage.fetch(b"user") is None

    async def test_delete_missing_key(self, clock):
        storage = RedisSessionStorage(FakeRedis(), clock=clock)
        await storage.delete(b"nobody")

    async def test_registry_round_trip(self, clock):
        registry = SessionRegistry(RedisSessionStorage(FakeRedis(), clock=clock), clock=clock)
        await registry.add(Session(b"user", b"tok", clock() + timedelta(hours=1), {"ua": "cli"}))
        found = await registry.lookup(b"user", b"tok")
        assert found is not None
        assert found.meta == {"ua": "cli"}
