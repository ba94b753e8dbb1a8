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
"""SessionMiddleware — resolves the session cookie for every request."""

from __future__ import annotations

from collections.abc import Sequence
from fnmatch import fnmatch

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from tandem.session.manager import SessionManager, attach_session


class SessionMiddleware(BaseHTTPMiddleware):
    """Attaches the active session (or ``None``) to every request.

    Requests run unauthenticated when validation fails, unless their path
    matches one of ``protected_paths``, in which case the manager's fallback
    answers instead. Paths matching ``exclude_paths`` skip resolution and
    are never protected. Patterns are ``fnmatch`` globs, e.g. ``/admin/*``.
    """

    def __init__(
        self,
        app: ASGIApp,
        manager: SessionManager,
        protected_paths: Sequence[str] = (),
        exclude_paths: Sequence[str] = (),
    ) -> None:
        super().__init__(app)
        self._manager = manager
        self._protected = list(protected_paths)
        self._exclude = list(exclude_paths)

    def _matches(self, path: str, patterns: list[str]) -> bool:
        return any(fnmatch(path, p) for p in patterns)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if self._matches(path, self._exclude):
            attach_session(request, None)
            return await call_next(request)

        session = await self._manager.resolve(request)
        if session is None and self._matches(path, self._protected):
            return await self._manager.fallback(request)

        attach_session(request, session)
        return await call_next(request)
