"""Tests for the async SQLite local user store."""

from datetime import datetime, timezone

import pytest

from extdbauth.auth_providers.base import LocalIdentity
from extdbauth.storage.database import LocalUser, LocalUserStore


class TestLocalUserStore:
    async def test_get_missing_user(self, user_store):
        assert await user_store.get_user("nobody") is None

    async def test_get_or_create_new_user(self, user_store):
        created = await user_store.get_or_create_user("alice")
        loaded = await user_store.get_user("alice")

        assert created.name == "alice"
        assert loaded is not None
        assert loaded.real_name == ""
        assert loaded.email == ""
        assert loaded.email_authenticated is None

    async def test_get_or_create_keeps_one_row(self, user_store):
        await user_store.get_or_create_user("alice")
        await user_store.get_or_create_user("alice")
        cursor = await user_store.db.execute(
            "SELECT COUNT(*) FROM local_users WHERE name = ?", ("alice",)
        )
        assert (await cursor.fetchone())[0] == 1

    async def test_get_or_create_is_stable(self, user_store):
        first = await user_store.get_or_create_user("alice")
        first.set_email("a@x.com")
        await first.save_settings()

        second = await user_store.get_or_create_user("alice")
        assert second.email == "a@x.com"

    async def test_save_settings_round_trip(self, user_store):
        when = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        user = await user_store.get_or_create_user("alice")
        user.set_real_name("Alice A")
        user.set_email("a@x.com")
        user.set_email_authenticated_at(when)
        await user.save_settings()

        loaded = await user_store.get_user("alice")
        assert loaded.real_name == "Alice A"
        assert loaded.email == "a@x.com"
        assert loaded.email_authenticated == when

    async def test_setters_do_not_persist_without_save(self, user_store):
        user = await user_store.get_or_create_user("alice")
        user.set_real_name("Unsaved")
        loaded = await user_store.get_user("alice")
        assert loaded.real_name == ""

    async def test_no_password_column(self, user_store):
        cursor = await user_store.db.execute("PRAGMA table_info(local_users)")
        columns = {row["name"] for row in await cursor.fetchall()}
        assert not any("pass" in c for c in columns)

    async def test_user_is_local_identity(self, user_store):
        user = await user_store.get_or_create_user("alice")
        assert isinstance(user, LocalUser)
        assert isinstance(user, LocalIdentity)

    def test_db_requires_connect(self, tmp_path):
        store = LocalUserStore(tmp_path / "x.db")
        with pytest.raises(RuntimeError):
            store.db

    def test_path_is_required(self):
        with pytest.raises(TypeError):
            LocalUserStore()
