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
"""Unified exception hierarchy for tandem.

All library exceptions inherit from TandemException so callers can catch
one base type or target a specific category.

Categories:
- SecurityException: credential syntax and authentication state errors
- InfrastructureException: persisted data and entropy source failures

Storage backend errors (connection failures, timeouts) are not wrapped:
they propagate unchanged from the client library that raised them.
"""

from __future__ import annotations


class TandemException(Exception):
    """Base exception for all tandem errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "CREDENTIAL_FORMAT").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


class SecurityException(TandemException):
    """Authentication errors."""


class CredentialFormatError(SecurityException):
    """The transport credential is syntactically invalid.

    Covers a missing separator, a wrong part count and malformed base64.
    Carries no detail about which check failed.
    """

    def __init__(self, message: str = "malformed credential") -> None:
        super().__init__(message, code="CREDENTIAL_FORMAT")


class NotAuthenticatedError(SecurityException):
    """An operation that needs an authenticated request got none."""

    def __init__(self, message: str = "request has no active session") -> None:
        super().__init__(message, code="NOT_AUTHENTICATED")


class InfrastructureException(TandemException):
    """Failures below the session engine: persisted data, entropy source."""


class SessionDataError(InfrastructureException):
    """A stored session list could not be decoded."""


class EntropyError(InfrastructureException):
    """The secure random source failed to deliver the requested bytes."""
