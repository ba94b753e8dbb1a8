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
"""tandem sessions — concurrent cookie sessions per principal over pluggable storage.

Import concrete storage types from the adapter package::

    from tandem.session.adapters.memory import InMemorySessionStorage
    from tandem.session.adapters.redis import RedisSessionStorage
"""

from tandem.session.manager import SessionManager, active_session
from tandem.session.middleware import SessionMiddleware
from tandem.session.models import Session
from tandem.session.ports.outbound import SessionStorage
from tandem.session.properties import SessionProperties
from tandem.session.registry import SessionRegistry

__all__ = [
    "Session",
    "SessionManager",
    "SessionMiddleware",
    "SessionProperties",
    "SessionRegistry",
    "SessionStorage",
    "active_session",
]
