"""Shared fixtures for extdbauth tests."""

from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy import text

from extdbauth.config import DatabaseSettings, FieldMapping
from extdbauth.storage.database import LocalUserStore
from extdbauth.storage.external import ExternalUserStore

EXTERNAL_SCHEMA = """
CREATE TABLE ext_accounts (
    id INTEGER PRIMARY KEY,
    login TEXT NOT NULL,
    pass_hash TEXT,
    realname TEXT,
    mail TEXT,
    department TEXT
)
"""


@pytest.fixture
def fields():
    """Column mapping for the test external table."""
    return FieldMapping(
        table="accounts",
        user_login="login",
        user_password="pass_hash",
        user_real_name="realname",
        user_email="mail",
    )


@pytest.fixture
def database_settings(tmp_path):
    """SQLite file standing in for the external database."""
    return DatabaseSettings(
        driver="sqlite+aiosqlite",
        host="",
        database=str(tmp_path / "external.db"),
        table_prefix="ext_",
    )


@pytest_asyncio.fixture
async def external_store(database_settings, fields):
    """External store with an empty ``ext_accounts`` table."""
    store = ExternalUserStore(database_settings, fields)
    await store.connect()
    async with store.engine.begin() as conn:
        await conn.execute(text(EXTERNAL_SCHEMA))
    yield store
    await store.close()


@pytest.fixture
def add_external_user(external_store):
    """Insert a row into the external table."""

    async def _add(login, pass_hash, realname="", mail="", department=None):
        async with external_store.engine.begin() as conn:
            await conn.execute(
                text(
                    "INSERT INTO ext_accounts (login, pass_hash, realname, mail, department) "
                    "VALUES (:login, :pass_hash, :realname, :mail, :department)"
                ),
                {
                    "login": login,
                    "pass_hash": pass_hash,
                    "realname": realname,
                    "mail": mail,
                    "department": department,
                },
            )

    return _add


@pytest_asyncio.fixture
async def user_store(tmp_path):
    """Fresh local user database for each test."""
    store = LocalUserStore(tmp_path / "local.db")
    await store.connect()
    yield store
    await store.close()
