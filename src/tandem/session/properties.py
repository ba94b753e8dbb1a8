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
"""SessionProperties — validated cookie and engine settings."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tandem.core.config import config_properties
from tandem.session.registry import DEFAULT_STORE_TTL
from tandem.session.tokens import DEFAULT_TOKEN_BYTES

logger = logging.getLogger(__name__)

FallbackHandler = Callable[[Any], Awaitable[Any]]
"""Async ``(request) -> response`` called when a protected route fails to authenticate."""


@config_properties(prefix="tandem.session")
class SessionProperties(BaseModel):
    """Session cookie and engine settings.

    Expiry modes, in precedence order:

    * ``max_age`` set: the cookie carries ``Max-Age`` and the session lives
      that many seconds.
    * ``expires`` set: the cookie carries ``Expires`` and the session lives
      for that duration.
    * both ``None``: a browser-session cookie (no expiry attributes); the
      server-side record lives for ``store_ttl``.

    ``insecure`` drops the ``Secure`` attribute and is for local development
    over plain HTTP only. ``HttpOnly`` is always set.
    """

    model_config = ConfigDict(frozen=True)

    cookie_name: str = Field(default="_session", min_length=1)
    path: str = "/"
    domain: str | None = None
    insecure: bool = False
    same_site: Literal["lax", "strict", "none"] | None = None
    expires: timedelta | None = timedelta(days=30)
    max_age: int | None = Field(default=None, gt=0)
    redirect_path: str = "/login"
    fallback: FallbackHandler | None = None
    store_ttl: timedelta = DEFAULT_STORE_TTL
    token_bytes: int = Field(default=DEFAULT_TOKEN_BYTES, ge=16)
    max_sessions_per_key: int | None = Field(default=None, ge=1)
    lookup_timeout: float | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _check(self) -> SessionProperties:
        if self.expires is not None and self.expires <= timedelta(0):
            raise ValueError("expires must be positive; use None for a browser-session cookie")
        if self.store_ttl <= timedelta(0):
            raise ValueError("store_ttl must be positive")
        if self.same_site == "none" and self.insecure:
            raise ValueError("same_site='none' requires a Secure cookie")
        if self.insecure:
            logger.warning("Session cookies configured without Secure; for development only")
        return self

    @property
    def lifetime(self) -> timedelta | None:
        """Session lifetime from issuance, ``None`` for browser-session cookies."""
        if self.max_age is not None:
            return timedelta(seconds=self.max_age)
        return self.expires
