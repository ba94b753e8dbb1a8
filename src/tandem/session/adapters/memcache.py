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
"""memcached session storage over a blocking ``pymemcache`` client."""

from __future__ import annotations

from concurrent.futures import Executor
from datetime import datetime
from typing import Any

from tandem.session.adapters._blocking import run_blocking
from tandem.session.codec import encode

DEFAULT_PREFIX = "tandem:session:"


class MemcacheSessionStorage:
    """Session storage backed by a ``pymemcache.client.base.Client``-like client.

    memcached keys may not hold whitespace or control characters, so the
    session key is stored base64url-encoded after the prefix. Expiries are
    passed as absolute unix timestamps.

    Every client call runs on *executor* (the loop's default when ``None``),
    so calls from concurrent requests overlap on different threads and the
    client must be thread-safe: use ``pymemcache.client.base.PooledClient``
    or ``HashClient(..., use_pooling=True)``, never a bare ``Client``, whose
    single socket interleaves replies between threads. A cancelled caller
    returns immediately while the socket call finishes on its thread.
    """

    def __init__(self, client: Any, prefix: str = DEFAULT_PREFIX, executor: Executor | None = None) -> None:
        self._client = client
        self._prefix = prefix
        self._executor = executor

    def _key(self, key: bytes) -> str:
        return self._prefix + encode(key)

    async def store(self, key: bytes, value: bytes, exp: datetime) -> None:
        await run_blocking(
            self._executor, self._client.set, self._key(key), value, expire=int(exp.timestamp()), noreply=False
        )

    async def fetch(self, key: bytes) -> bytes | None:
        raw = await run_blocking(self._executor, self._client.get, self._key(key))
        if raw is None:
            return None
        return bytes(raw)

    async def delete(self, key: bytes) -> None:
        await run_blocking(self._executor, self._client.delete, self._key(key), noreply=False)
