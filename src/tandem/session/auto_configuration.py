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
"""Session storage auto-configuration from ``tandem.session.store``."""

from __future__ import annotations

import importlib

import structlog

from tandem.core.config import Config
from tandem.session.models import Clock, utc_now
from tandem.session.ports.outbound import SessionStorage

logger = structlog.get_logger("tandem.session.auto_configuration")

_PROVIDERS = {
    "redis": "redis.asyncio",
    "memcache": "pymemcache",
    "sql": "sqlalchemy.ext.asyncio",
}


def is_available(module_name: str) -> bool:
    """Check if a Python package is importable."""
    try:
        importlib.import_module(module_name)
        return True
    except ImportError:
        return False


def create_storage(config: Config, clock: Clock = utc_now) -> SessionStorage:
    """Create the storage adapter named by ``tandem.session.store.type``.

    Supported types are ``memory`` (default), ``redis``, ``memcache`` and
    ``sql``. ``url`` names the server (or SQLAlchemy database URL),
    ``prefix`` the key namespace, ``table`` the SQL table name. The SQL
    table is not created here; await ``create_table()`` at startup.

    Raises:
        ValueError: For an unknown store type.
        ImportError: When the backend's client library is not installed.
    """
    store_type = str(config.get("tandem.session.store.type", "memory")).lower()

    if store_type in _PROVIDERS and not is_available(_PROVIDERS[store_type]):
        raise ImportError(
            f"Session store '{store_type}' requires the '{_PROVIDERS[store_type]}' package; "
            f"install tandem-sessions[{store_type}]"
        )

    if store_type == "memory":
        from tandem.session.adapters.memory import InMemorySessionStorage

        logger.info("session_store_selected", type="memory")
        return InMemorySessionStorage(clock=clock)

    if store_type == "redis":
        import redis.asyncio as aioredis

        from tandem.session.adapters.redis import DEFAULT_PREFIX, RedisSessionStorage

        url = str(config.get("tandem.session.store.url", "redis://localhost:6379/0"))
        prefix = str(config.get("tandem.session.store.prefix", DEFAULT_PREFIX))
        logger.info("session_store_selected", type="redis", url=url)
        return RedisSessionStorage(aioredis.from_url(url), prefix=prefix, clock=clock)

    if store_type == "memcache":
        from pymemcache.client.base import PooledClient

        from tandem.session.adapters.memcache import DEFAULT_PREFIX as MC_PREFIX
        from tandem.session.adapters.memcache import MemcacheSessionStorage

        server = str(config.get("tandem.session.store.url", "localhost:11211"))
        prefix = str(config.get("tandem.session.store.prefix", MC_PREFIX))
        logger.info("session_store_selected", type="memcache", server=server)
        return MemcacheSessionStorage(PooledClient(server), prefix=prefix)

    if store_type == "sql":
        from sqlalchemy.ext.asyncio import create_async_engine

        from tandem.session.adapters.sqlalchemy import DEFAULT_TABLE, SqlSessionStorage

        url = str(config.get("tandem.session.store.url", "sqlite+aiosqlite:///./sessions.db"))
        table = str(config.get("tandem.session.store.table", DEFAULT_TABLE))
        logger.info("session_store_selected", type="sql", table=table)
        return SqlSessionStorage(create_async_engine(url), table_name=table, clock=clock)

    raise ValueError(f"Unknown session store type '{store_type}'")
