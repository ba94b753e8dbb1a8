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
"""Tests for session list serialization."""

from __future__ import annotations

from datetime import UTC, datetime

import msgpack
import pytest

from tandem.kernel.exceptions import SessionDataError
from tandem.session import serializer
from tandem.session.models import Session

EXP = datetime(2026, 3, 1, 12, 30, 15, 250000, tzinfo=UTC)


class TestSerializer:
    def test_meta_survives_unchanged(self):
        sessions = [
            Session(b"k", b"t1", EXP, None),
            Session(b"k", b"t2", EXP, b"\x00agent"),
            Session(b"k", b"t3", EXP, {"ua": "firefox", "ip": "10.0.0.1", "a": ""}),
        ]
        restored = serializer.loads(serializer.dumps(sessions))
        assert restored == sessions
        assert isinstance(restored[1].meta, bytes)
        assert list(restored[2].meta) == ["ua", "ip", "a"]

    def test_empty_list(self):
        assert serializer.loads(serializer.dumps([])) == []

    def test_expiry_is_timezone_aware(self):
        restored = serializer.loads(serializer.dumps([Session(b"k", b"t", EXP)]))
        assert restored[0].exp.tzinfo is not None
        assert restored[0].exp == EXP

    @pytest.mark.parametrize(
        "raw",
        [
            b"\xc1",
            msgpack.packb({"not": "a list"}),
            msgpack.packb([1, 2]),
            msgpack.packb([{"key": b"k"}]),
            msgpack.packb([{"key": "text", "token": b"t", "exp": 5}]),
        ],
    )
    def test_corrupt_data(self, raw):
        with pytest.raises(SessionDataError):
            serializer.loads(raw)
