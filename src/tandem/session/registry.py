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
"""Session list engine — read-modify-write over one principal's session list.

Every write prunes expired records, so expiry needs no background sweeper.
There is no locking: two concurrent cycles on the same key race and the last
completed ``save`` wins. Serialize logins per key outside the engine (or in
the storage backend) if that matters.
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Sequence
from datetime import datetime, timedelta

from tandem.session import serializer
from tandem.session.models import Clock, Session, utc_now
from tandem.session.ports.outbound import SessionStorage

logger = logging.getLogger(__name__)

DEFAULT_STORE_TTL = timedelta(days=30)


def _index_of(sessions: Sequence[Session], token: bytes) -> int:
    for i, s in enumerate(sessions):
        if secrets.compare_digest(s.token, token):
            return i
    return -1


def find(sessions: Sequence[Session], token: bytes, now: datetime) -> tuple[Session | None, int]:
    """Locate the unexpired session for *token*.

    Tokens are compared in constant time. The scan stops at the first
    matching token; if that record has expired the result is ``(None, -1)``.
    """
    i = _index_of(sessions, token)
    if i < 0 or sessions[i].is_expired(now):
        return None, -1
    return sessions[i], i


def prune(sessions: Sequence[Session], now: datetime) -> list[Session]:
    """Drop every record expiring at or before *now*, keeping order."""
    return [s for s in sessions if not s.is_expired(now)]


def merge(sessions: Sequence[Session], record: Session) -> list[Session]:
    """Replace the record holding the same token in place, else append."""
    merged = list(sessions)
    i = _index_of(merged, record.token)
    if i >= 0:
        merged[i] = record
    else:
        merged.append(record)
    return merged


class SessionRegistry:
    """Owns every read-modify-write of the persisted session lists.

    Args:
        storage: Backend holding one serialized list per key.
        clock: Time source used for pruning and the outer TTL.
        store_ttl: Lifetime of the persisted list itself, independent of the
            expiries of the records inside it.
        max_sessions_per_key: Optional cap; the oldest logins are evicted
            once a write would exceed it.
    """

    def __init__(
        self,
        storage: SessionStorage,
        clock: Clock = utc_now,
        store_ttl: timedelta = DEFAULT_STORE_TTL,
        max_sessions_per_key: int | None = None,
    ) -> None:
        self._storage = storage
        self._clock = clock
        self._store_ttl = store_ttl
        self._max_sessions = max_sessions_per_key

    @property
    def storage(self) -> SessionStorage:
        return self._storage

    async def load(self, key: bytes) -> list[Session]:
        """Fetch the list for *key*; a missing list is an empty one."""
        raw = await self._storage.fetch(key)
        if raw is None:
            return []
        return serializer.loads(raw)

    async def lookup(self, key: bytes, token: bytes) -> Session | None:
        sessions = await self.load(key)
        session, _ = find(sessions, token, self._clock())
        return session

    async def save(self, key: bytes, sessions: Sequence[Session]) -> None:
        await self._storage.store(key, serializer.dumps(sessions), self._clock() + self._store_ttl)

    async def add(self, record: Session) -> list[Session]:
        """Merge a new login into its principal's list and persist it."""
        sessions = await self.load(record.key)
        sessions = prune(merge(sessions, record), self._clock())
        if self._max_sessions is not None and len(sessions) > self._max_sessions:
            evicted = len(sessions) - self._max_sessions
            logger.debug("Evicting %d oldest session(s) over the per-key cap", evicted)
            sessions = sessions[evicted:]
        await self.save(record.key, sessions)
        return sessions

    async def remove_tokens(self, key: bytes, *tokens: bytes) -> None:
        """Remove the given tokens' sessions, or the whole list when none are given.

        Removing the last session writes an empty list rather than deleting
        the key.
        """
        if not tokens:
            await self.remove_all(key)
            return

        sessions = await self.load(key)
        # O(len(sessions) * len(tokens))
        for token in tokens:
            i = _index_of(sessions, token)
            if i >= 0:
                del sessions[i]
        await self.save(key, prune(sessions, self._clock()))

    async def remove_all(self, key: bytes) -> None:
        await self._storage.delete(key)
