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
"""SessionManager — login, logout and request validation over a session registry."""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC
from typing import Any

from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from tandem.core.config import Config
from tandem.kernel.exceptions import NotAuthenticatedError
from tandem.session.codec import format_credential, parse_credential
from tandem.session.models import Clock, Meta, Session, utc_now
from tandem.session.ports.outbound import SessionStorage
from tandem.session.properties import SessionProperties
from tandem.session.registry import SessionRegistry
from tandem.session.tokens import generate_token

logger = logging.getLogger(__name__)

Endpoint = Callable[[Request], Awaitable[Response]]

_STATE_ATTR = "tandem_session"


def active_session(request: Request) -> Session | None:
    """Return the session resolved for *request*, or ``None`` when unauthenticated."""
    session: Session | None = getattr(request.state, _STATE_ATTR, None)
    return session


def attach_session(request: Request, session: Session | None) -> None:
    """Record the resolution outcome on the request."""
    setattr(request.state, _STATE_ATTR, session)


def _as_key(key: bytes | str) -> bytes:
    return key.encode("utf-8") if isinstance(key, str) else key


def _as_token(token: bytes | str) -> bytes:
    return token.encode("ascii") if isinstance(token, str) else token


class SessionManager:
    """Issues, validates and revokes cookie sessions.

    A principal (``key``) may hold any number of concurrent sessions, one per
    login. Validation failures of every kind (missing cookie, malformed
    value, unknown or expired token, storage outage, lookup timeout) look the
    same to the application: the fallback runs on protected endpoints and no
    session is attached on public ones.

    Usage::

        sessions = SessionManager(RedisSessionStorage(client))

        @sessions.protected
        async def account(request):
            session = active_session(request)
            ...

        async def login(request):
            response = RedirectResponse("/account", status_code=302)
            await sessions.set(response, user_id)
            return response
    """

    def __init__(
        self,
        storage: SessionStorage,
        properties: SessionProperties | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._props = properties or SessionProperties()
        self._clock = clock
        self._registry = SessionRegistry(
            storage,
            clock=clock,
            store_ttl=self._props.store_ttl,
            max_sessions_per_key=self._props.max_sessions_per_key,
        )

    @classmethod
    def from_config(
        cls,
        config: Config,
        storage: SessionStorage | None = None,
        clock: Clock = utc_now,
    ) -> SessionManager:
        """Build a manager from ``tandem.session`` settings.

        When *storage* is omitted the backend named by
        ``tandem.session.store.type`` is created.
        """
        if storage is None:
            from tandem.session.auto_configuration import create_storage

            storage = create_storage(config, clock=clock)
        return cls(storage, config.bind(SessionProperties), clock=clock)

    @property
    def properties(self) -> SessionProperties:
        return self._props

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    # -- request validation -------------------------------------------------

    async def resolve(self, request: Request) -> Session | None:
        """Validate the request's credential; ``None`` means unauthenticated."""
        value = request.cookies.get(self._props.cookie_name)
        if not value:
            return None
        try:
            key, token = parse_credential(value)
            async with asyncio.timeout(self._props.lookup_timeout):
                return await self._registry.lookup(key, token)
        except Exception:
            logger.debug("Session validation failed, treating request as unauthenticated", exc_info=True)
            return None

    async def fallback(self, request: Request) -> Response:
        """Answer a request that failed authentication on a protected route."""
        if self._props.fallback is not None:
            response: Response = await self._props.fallback(request)
            return response
        return RedirectResponse(self._props.redirect_path, status_code=302)

    def protected(self, endpoint: Endpoint) -> Endpoint:
        """Wrap an endpoint so it only runs for an authenticated request."""

        @functools.wraps(endpoint)
        async def wrapper(request: Request) -> Response:
            session = await self.resolve(request)
            if session is None:
                return await self.fallback(request)
            attach_session(request, session)
            return await endpoint(request)

        return wrapper

    def public(self, endpoint: Endpoint) -> Endpoint:
        """Wrap an endpoint that runs either way, with a session when one is valid."""

        @functools.wraps(endpoint)
        async def wrapper(request: Request) -> Response:
            attach_session(request, await self.resolve(request))
            return await endpoint(request)

        return wrapper

    # -- direct operations ---------------------------------------------------

    async def set(self, response: Response, key: bytes | str, meta: Meta = None) -> Session:
        """Log *key* in: persist a new session and set its cookie on *response*.

        Storage errors propagate; the cookie is only set once the session
        has been persisted.
        """
        raw_key = _as_key(key)
        if not raw_key:
            raise ValueError("session key must not be empty")
        now = self._clock()
        lifetime = self._props.lifetime
        exp = now + (lifetime if lifetime is not None else self._props.store_ttl)
        session = Session(key=raw_key, token=generate_token(self._props.token_bytes), exp=exp, meta=meta)

        await self._registry.add(session)

        cookie: dict[str, Any] = {}
        if self._props.max_age is not None:
            cookie["max_age"] = self._props.max_age
        elif self._props.expires is not None:
            cookie["expires"] = exp.astimezone(UTC)
        response.set_cookie(
            self._props.cookie_name,
            format_credential(session.key, session.token),
            path=self._props.path,
            domain=self._props.domain,
            secure=not self._props.insecure,
            httponly=True,
            samesite=self._props.same_site,
            **cookie,
        )
        return session

    async def clear(self, request: Request, response: Response) -> None:
        """Log out the request's own session, leaving the principal's others intact.

        Raises:
            NotAuthenticatedError: If the request carries no resolved session.
        """
        session = active_session(request)
        if session is None:
            raise NotAuthenticatedError()
        await self._registry.remove_tokens(session.key, session.token)
        attach_session(request, None)
        response.delete_cookie(
            self._props.cookie_name,
            path=self._props.path,
            domain=self._props.domain,
            secure=not self._props.insecure,
            httponly=True,
            samesite=self._props.same_site,
        )

    async def delete(self, key: bytes | str, *tokens: bytes | str) -> None:
        """Revoke the given sessions of *key*, or all of them when no tokens are given."""
        await self._registry.remove_tokens(_as_key(key), *(_as_token(t) for t in tokens))

    async def sessions_for_key(self, key: bytes | str) -> list[Session]:
        """Every stored session of *key*; may include records that already expired."""
        return await self._registry.load(_as_key(key))
