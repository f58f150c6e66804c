"""Tests for lookups against the external user table."""

from __future__ import annotations

import pytest
from pydantic import SecretStr
from sqlalchemy.exc import OperationalError

from extdbauth.config import DatabaseSettings, FieldMapping
from extdbauth.exceptions import ConfigurationError
from extdbauth.storage.external import ExternalUserStore, build_url


class TestBuildUrl:
    def test_full_connection_parameters(self):
        url = build_url(
            DatabaseSettings(
                driver="mysql+aiomysql",
                host="db.example.org",
                port=3306,
                user="wiki",
                password=SecretStr("hunter2"),
                database="accounts",
            )
        )
        assert url.drivername == "mysql+aiomysql"
        assert url.host == "db.example.org"
        assert url.port == 3306
        assert url.username == "wiki"
        assert url.password == "hunter2"
        assert url.database == "accounts"

    def test_password_hidden_when_rendered(self):
        url = build_url(DatabaseSettings(user="wiki", password=SecretStr("hunter2"), database="a"))
        assert "hunter2" not in url.render_as_string(hide_password=True)

    def test_empty_values_are_omitted(self):
        url = build_url(DatabaseSettings(driver="sqlite+aiosqlite", host="", database="x.db"))
        assert url.host is None
        assert url.username is None
        assert url.password is None

    def test_missing_database_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            build_url(DatabaseSettings(database=""))

    def test_missing_driver_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            build_url(DatabaseSettings(driver="", database="accounts"))


class TestExternalUserStore:
    def test_table_prefix_applied(self, database_settings, fields):
        store = ExternalUserStore(database_settings, fields)
        assert store.table_name == "ext_accounts"

    def test_engine_requires_connect(self, database_settings, fields):
        store = ExternalUserStore(database_settings, fields)
        with pytest.raises(RuntimeError):
            store.engine

    async def test_find_user_returns_whole_row(self, external_store, add_external_user):
        await add_external_user("alice", "h4sh", "Alice A", "a@x.com", department="R&D")
        record = await external_store.find_user("alice")
        assert record is not None
        assert record["login"] == "alice"
        assert record["pass_hash"] == "h4sh"
        assert record["realname"] == "Alice A"
        assert record["mail"] == "a@x.com"
        assert record["department"] == "R&D"

    async def test_find_user_missing(self, external_store, add_external_user):
        await add_external_user("alice", "h4sh")
        assert await external_store.find_user("bob") is None

    async def test_find_user_exact_match_only(self, external_store, add_external_user):
        await add_external_user("alice", "h4sh")
        assert await external_store.find_user("alice%") is None
        assert await external_store.find_user("' OR '1'='1") is None

    async def test_duplicate_logins_return_one_row(self, external_store, add_external_user):
        await add_external_user("alice", "first")
        await add_external_user("alice", "second")
        record = await external_store.find_user("alice")
        assert record is not None
        assert record["pass_hash"] in ("first", "second")

    async def test_find_user_connects_lazily(self, database_settings, fields, external_store):
        store = ExternalUserStore(database_settings, fields)
        try:
            assert await store.find_user("nobody") is None
        finally:
            await store.close()

    async def test_missing_table_propagates(self, database_settings):
        store = ExternalUserStore(database_settings, FieldMapping(table="nope", user_login="login"))
        try:
            with pytest.raises(OperationalError):
                await store.find_user("alice")
        finally:
            await store.close()

    async def test_close_is_idempotent(self, database_settings, fields):
        store = ExternalUserStore(database_settings, fields)
        await store.connect()
        await store.close()
        await store.close()
        with pytest.raises(RuntimeError):
            store.engine
