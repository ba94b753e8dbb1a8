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
"""Tests for MemcacheSessionStorage over stub and socket-backed clients."""

from __future__ import annotations

import asyncio
import socketserver
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest
from pymemcache.client.base import PooledClient

from tandem.session.adapters.memcache import MemcacheSessionStorage
from tandem.session.codec import encode
from tandem.session.ports.outbound import SessionStorage


class FakeMemcache:
    """Blocking stub shaped like pymemcache.client.base.Client."""

    def __init__(self) -> None:
        self._store: dict[str, tuple[bytes, int]] = {}
        self.gate = threading.Event()
        self.gate.set()

    def set(self, key: str, value: bytes, expire: int = 0, noreply: bool | None = None) -> bool:
        self.gate.wait()
        self._store[key] = (value, expire)
        return True

    def get(self, key: str) -> bytes | None:
        self.gate.wait()
        entry = self._store.get(key)
        return entry[0] if entry else None

    def delete(self, key: str, noreply: bool | None = None) -> bool:
        self.gate.wait()
        return self._store.pop(key, None) is not None


class _MemcachedHandler(socketserver.StreamRequestHandler):
    """Speaks the get/set/delete subset of the memcached text protocol."""

    def handle(self) -> None:
        items = self.server.items  # type: ignore[attr-defined]
        while line := self.rfile.readline():
            parts = line.split()
            if not parts:
                continue
            if parts[0] == b"set":
                key, flags, size = parts[1], parts[2], int(parts[4])
                items[key] = (flags, self.rfile.read(size + 2)[:-2])
                if b"noreply" not in parts[5:]:
                    self.wfile.write(b"STORED\r\n")
            elif parts[0] == b"get":
                # slow replies so concurrent gets overlap
                time.sleep(0.002)
                reply = b""
                for key in parts[1:]:
                    if key in items:
                        flags, data = items[key]
                        reply += b"VALUE %s %s %d\r\n%s\r\n" % (key, flags, len(data), data)
                self.wfile.write(reply + b"END\r\n")
            elif parts[0] == b"delete":
                found = items.pop(parts[1], None) is not None
                self.wfile.write(b"DELETED\r\n" if found else b"NOT_FOUND\r\n")
            else:
                self.wfile.write(b"ERROR\r\n")


@pytest.fixture
def memcached_server():
    server = socketserver.ThreadingTCPServer(("127.0.0.1", 0), _MemcachedHandler)
    server.daemon_threads = True
    server.items = {}  # type: ignore[attr-defined]
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server.server_address
    server.shutdown()
    server.server_close()


class TestMemcacheSessionStorage:
    async def test_protocol_compliance(self):
        assert isinstance(MemcacheSessionStorage(FakeMemcache()), SessionStorage)

    async def test_keys_are_encoded(self, clock):
        client = FakeMemcache()
        storage = MemcacheSessionStorage(client)
        exp = clock() + timedelta(days=30)
        await storage.store(b"super@exa::mple .com", b"blob", exp)
        key = "tandem:session:" + encode(b"super@exa::mple .com")
        assert client._store[key] == (b"blob", int(exp.timestamp()))
        assert " " not in key

    async def test_fetch_and_delete(self, clock):
        storage = MemcacheSessionStorage(FakeMemcache())
        assert await storage.fetch(b"user") is None
        await storage.store(b"user", b"blob", clock() + timedelta(minutes=1))
        assert await storage.fetch(b"user") == b"blob"
        await storage.delete(b"user")
        await storage.delete(b"user")
        assert await storage.fetch(b"user") is None

    async def test_cancellation_returns_promptly(self):
        client = FakeMemcache()
        client.gate.clear()
        storage = MemcacheSessionStorage(client)
        try:
            with pytest.raises(TimeoutError):
                async with asyncio.timeout(0.05):
                    await storage.fetch(b"user")
        finally:
            # the abandoned call completes in the background once unblocked
            client.gate.set()

    async def test_concurrent_fetches_over_pooled_socket_client(self, memcached_server, clock):
        client = PooledClient(memcached_server, connect_timeout=2, timeout=2)
        executor = ThreadPoolExecutor(max_workers=16)
        storage = MemcacheSessionStorage(client, executor=executor)
        keys = [f"user{i}".encode() for i in range(16)]
        try:
            for key in keys:
                await storage.store(key, key * 16, clock() + timedelta(days=1))
            for _ in range(3):
                results = await asyncio.gather(*(storage.fetch(key) for key in keys))
                assert results == [key * 16 for key in keys]
            await asyncio.gather(*(storage.delete(key) for key in keys))
            assert await asyncio.gather(*(storage.fetch(key) for key in keys)) == [None] * 16
        finally:
            client.close()
            executor.shutdown(wait=True)
