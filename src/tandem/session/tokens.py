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
"""Session token generation from the operating system CSPRNG."""

from __future__ import annotations

import secrets

from tandem.kernel.exceptions import EntropyError
from tandem.session.codec import encode

DEFAULT_TOKEN_BYTES = 24
"""192 bits of randomness per session token."""


def random_bytes(n: int) -> bytes:
    """Return *n* securely generated random bytes.

    Raises:
        ValueError: If *n* is not positive.
        EntropyError: If the random source fails or returns fewer bytes.
    """
    if n <= 0:
        raise ValueError(f"token size must be positive, got {n}")
    try:
        data = secrets.token_bytes(n)
    except OSError as exc:
        raise EntropyError("secure random source unavailable") from exc
    if len(data) != n:
        raise EntropyError(f"secure random source returned {len(data)} of {n} bytes")
    return data


def generate_token(n: int = DEFAULT_TOKEN_BYTES) -> bytes:
    """Generate a session token: *n* random bytes as padding-free base64url text."""
    return encode(random_bytes(n)).encode("ascii")
