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
"""MessagePack serialization of a principal's session list.

Each record is a map ``{"key": bin, "token": bin, "exp": Timestamp,
"meta": nil | bin | map}``; the list is a msgpack array of such maps.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

import msgpack

from tandem.kernel.exceptions import SessionDataError
from tandem.session.models import Session


def _to_record(session: Session) -> dict[str, Any]:
    return {
        "key": session.key,
        "token": session.token,
        "exp": session.exp,
        "meta": session.meta,
    }


def _from_record(record: Any) -> Session:
    if not isinstance(record, dict):
        raise SessionDataError(f"expected a session map, got {type(record).__name__}")
    try:
        key, token, exp = record["key"], record["token"], record["exp"]
    except KeyError as exc:
        raise SessionDataError(f"session record missing field {exc}") from exc
    if not isinstance(key, bytes) or not isinstance(token, bytes) or not isinstance(exp, datetime):
        raise SessionDataError("session record has fields of the wrong type")
    return Session(key=key, token=token, exp=exp, meta=record.get("meta"))


def dumps(sessions: Sequence[Session]) -> bytes:
    """Serialize a session list. Expiries must be timezone-aware."""
    return msgpack.packb([_to_record(s) for s in sessions], use_bin_type=True, datetime=True)


def loads(raw: bytes) -> list[Session]:
    """Deserialize a session list written by :func:`dumps`.

    Raises:
        SessionDataError: If *raw* is not a valid session list.
    """
    try:
        data = msgpack.unpackb(raw, raw=False, timestamp=3)
    except (ValueError, TypeError, msgpack.UnpackException) as exc:
        raise SessionDataError("stored session list is not valid msgpack") from exc
    if not isinstance(data, list):
        raise SessionDataError(f"expected a session list, got {type(data).__name__}")
    return [_from_record(record) for record in data]
