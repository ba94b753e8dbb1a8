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
"""Session storage protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable


@runtime_checkable
class SessionStorage(Protocol):
    """Durable key-value persistence for serialized session lists.

    All backends (in-memory, Redis, memcached, SQL) implement this protocol.
    The engine never asks a backend for transactions or locks.

    Contract:
        * ``fetch`` returns ``None`` for keys never stored and for keys whose
          expiry has passed; an empty value is returned as ``b""``.
        * ``delete`` of a missing key is not an error.
        * Cancelling the awaiting task (directly or through a deadline such
          as ``asyncio.timeout``) must return control to the caller promptly.
          Adapters over blocking clients may leave the underlying call running
          in the background; its result is discarded.
    """

    async def store(self, key: bytes, value: bytes, exp: datetime) -> None: ...

    async def fetch(self, key: bytes) -> bytes | None: ...

    async def delete(self, key: bytes) -> None: ...
