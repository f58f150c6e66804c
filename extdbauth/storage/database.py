"""Async SQLite storage for local users.

Uses aiosqlite. The local user is a mirror of the external record: it keeps
the login name, real name and email, and never a password hash. Providers
only see it through the narrow ``LocalIdentity`` contract.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

logger = logging.getLogger("extdbauth.storage.database")

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS local_users (
    name TEXT PRIMARY KEY,
    real_name TEXT NOT NULL DEFAULT '',
    email TEXT NOT NULL DEFAULT '',
    email_authenticated TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


class LocalUser:
    """A local user row; setters stage changes, ``save_settings`` writes them."""

    def __init__(
        self,
        store: LocalUserStore,
        name: str,
        real_name: str = "",
        email: str = "",
        email_authenticated: datetime | None = None,
    ) -> None:
        self._store = store
        self.name = name
        self.real_name = real_name
        self.email = email
        self.email_authenticated = email_authenticated

    def __repr__(self) -> str:
        return f"LocalUser(name={self.name!r}, email={self.email!r})"

    def set_real_name(self, real_name: str) -> None:
        self.real_name = real_name

    def set_email(self, email: str) -> None:
        self.email = email

    def set_email_authenticated_at(self, timestamp: datetime) -> None:
        self.email_authenticated = timestamp

    async def save_settings(self) -> None:
        await self._store.save_user(self)


class LocalUserStore:
    """Async SQLite wrapper for the local user table."""

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = Path(db_path)
        self._db: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        self._db = await aiosqlite.connect(self.db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA_SQL)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._db

    async def get_user(self, name: str) -> LocalUser | None:
        cursor = await self.db.execute("SELECT * FROM local_users WHERE name = ?", (name,))
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    async def get_or_create_user(self, name: str) -> LocalUser:
        now = _utcnow()
        cursor = await self.db.execute(
            "INSERT OR IGNORE INTO local_users (name, created_at, updated_at) VALUES (?, ?, ?)",
            (name, now, now),
        )
        await self.db.commit()
        if cursor.rowcount:
            logger.info("Created local user %s", name, extra={"username": name})
        user = await self.get_user(name)
        if user is None:
            raise RuntimeError(f"Local user {name!r} vanished after insert")
        return user

    async def save_user(self, user: LocalUser) -> None:
        email_authenticated = (
            user.email_authenticated.isoformat() if user.email_authenticated else None
        )
        await self.db.execute(
            """UPDATE local_users
               SET real_name = ?, email = ?, email_authenticated = ?, updated_at = ?
               WHERE name = ?""",
            (user.real_name, user.email, email_authenticated, _utcnow(), user.name),
        )
        await self.db.commit()

    def _row_to_user(self, row: aiosqlite.Row) -> LocalUser:
        email_authenticated = row["email_authenticated"]
        return LocalUser(
            self,
            name=row["name"],
            real_name=row["real_name"],
            email=row["email"],
            email_authenticated=(
                datetime.fromisoformat(email_authenticated) if email_authenticated else None
            ),
        )
