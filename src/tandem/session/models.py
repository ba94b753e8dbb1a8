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
"""Session record — one login of one principal."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

Meta = bytes | dict[str, str] | None
"""Opaque application data: a blob or ordered string pairs."""

Clock = Callable[[], datetime]
"""Source of the current time; must return timezone-aware datetimes."""


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(UTC)


@dataclass(frozen=True)
class Session:
    """A single login for ``key`` proven by possession of ``token``.

    Attributes:
        key: Opaque principal identity shared by all of its sessions.
        token: URL-safe secret unique within the principal's session list.
        exp: Absolute expiry.
        meta: Application data carried through unchanged.
    """

    key: bytes
    token: bytes
    exp: datetime
    meta: Meta = None

    def is_expired(self, now: datetime) -> bool:
        """An expiry at exactly ``now`` counts as expired."""
        return self.exp <= now
