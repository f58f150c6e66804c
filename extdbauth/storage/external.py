"""Read-only access to the user table of the external database.

Uses SQLAlchemy's async engine so any backend with an async driver works
(``mysql+aiomysql`` in production, ``sqlite+aiosqlite`` in tests). The
provider only ever issues one single-row lookup per attempt. Driver errors
are not caught here.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import column, literal_column, select, table
from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from extdbauth.config import DatabaseSettings, FieldMapping
from extdbauth.exceptions import ConfigurationError

logger = logging.getLogger("extdbauth.storage.external")


def build_url(database: DatabaseSettings) -> URL:
    """Assemble the SQLAlchemy URL from the configured connection parameters."""
    if not database.driver:
        raise ConfigurationError("EDA_DATABASE__DRIVER must not be empty")
    if not database.database:
        raise ConfigurationError("EDA_DATABASE__DATABASE must name the external database")
    password = database.password.get_secret_value()
    return URL.create(
        drivername=database.driver,
        username=database.user or None,
        password=password or None,
        host=database.host or None,
        port=database.port,
        database=database.database,
    )


class ExternalUserStore:
    """Single-row lookups against the external user table."""

    def __init__(self, database: DatabaseSettings, fields: FieldMapping) -> None:
        self.url = build_url(database)
        self.table_name = database.table_prefix + fields.table
        self._fields = fields
        self._engine: AsyncEngine | None = None

    async def connect(self) -> None:
        if self._engine is None:
            self._engine = create_async_engine(self.url)
            logger.debug(
                "External user store ready: %s",
                self.url.render_as_string(hide_password=True),
            )

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("External user store not connected. Call connect() first.")
        return self._engine

    async def find_user(self, login: str) -> dict[str, Any] | None:
        """Return the full row whose login column equals ``login``, or None.

        If several rows match, the first one the database returns wins.
        """
        await self.connect()
        users = table(self.table_name, column(self._fields.user_login))
        stmt = (
            select(literal_column("*"))
            .select_from(users)
            .where(users.c[self._fields.user_login] == login)
            .limit(1)
        )
        async with self.engine.connect() as conn:
            result = await conn.execute(stmt)
            row = result.mappings().first()
        if row is None:
            return None
        return dict(row)
