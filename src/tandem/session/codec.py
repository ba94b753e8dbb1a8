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
"""Credential codec for the session cookie value.

Cookie format::

    <base64url(key), no padding>::<token>

The separator cannot occur in the base64url alphabet, so splitting on its
first occurrence is unambiguous. Only the key half is decoded; the token is
taken verbatim. Token validity is never checked here.
"""

from __future__ import annotations

import base64
import binascii
import re

from tandem.kernel.exceptions import CredentialFormatError

SEPARATOR = "::"

_ALPHABET_RE = re.compile(r"[A-Za-z0-9_-]*")


def encode(data: bytes) -> str:
    """URL-safe base64 without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def decode(text: str) -> bytes:
    """Inverse of :func:`encode`.

    Raises:
        CredentialFormatError: On characters outside the alphabet or an
            impossible length.
    """
    if len(text) % 4 == 1 or not _ALPHABET_RE.fullmatch(text):
        raise CredentialFormatError()
    try:
        return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))
    except binascii.Error as exc:
        raise CredentialFormatError() from exc


def format_credential(key: bytes, token: bytes) -> str:
    return encode(key) + SEPARATOR + token.decode("ascii")


def parse_credential(value: str) -> tuple[bytes, bytes]:
    """Split a cookie value into ``(key, token)``.

    Raises:
        CredentialFormatError: On a missing separator or a key segment that
            is not valid base64url. Empty parts are well formed; an empty
            token simply never matches a stored session.
    """
    parts = value.split(SEPARATOR, 1)
    if len(parts) != 2:
        raise CredentialFormatError()
    key_text, token_text = parts
    try:
        token = token_text.encode("ascii")
    except UnicodeEncodeError as exc:
        raise CredentialFormatError() from exc
    return decode(key_text), token
