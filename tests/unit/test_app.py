"""
Tests for datastore startup and the application lifespan.
"""

from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from mitsuki.config.properties import reload_config
from mitsuki.data import SQLAlchemyAdapter, get_database_adapter, set_database_adapter
from mitsuki.exceptions import DataException

from pizzeria.app import (
    DEFAULT_DATABASE_URL,
    PizzeriaASGIApp,
    create_app,
    initialize_datastore,
    masked_database_url,
)


@pytest.fixture
def use_database(tmp_path, monkeypatch):
    """Point the global configuration at a database URL written to application.yml."""

    def configure(url):
        (tmp_path / "application.yml").write_text(f"database:\n  url: {url}\n")
        reload_config()

    monkeypatch.chdir(tmp_path)
    yield configure

    monkeypatch.undo()
    reload_config()
    set_database_adapter(None)


class TestInitializeDatastore:
    """Tests for initialize_datastore."""

    @pytest.mark.asyncio
    async def test_connects_and_creates_table(self, use_database):
        use_database("sqlite+aiosqlite:///:memory:")

        adapter = await initialize_datastore()

        assert adapter is not None
        assert get_database_adapter() is adapter
        assert await adapter.table_exists("pizza_orders")
        await adapter.disconnect()

    @pytest.mark.asyncio
    async def test_unreachable_database_returns_none(self, use_database):
        """A database that cannot be opened leaves no adapter behind."""
        use_database("sqlite+aiosqlite:////nonexistent-dir/orders.db")

        assert await initialize_datastore() is None

        with pytest.raises(DataException):
            get_database_adapter()

    @pytest.mark.asyncio
    async def test_invalid_url_returns_none(self, use_database):
        use_database("not a database url")

        assert await initialize_datastore() is None

    @pytest.mark.asyncio
    async def test_failed_table_creation_disconnects(self, use_database):
        """An engine created before a failure is disposed, not leaked."""
        use_database("sqlite+aiosqlite:///:memory:")
        failure = OperationalError("CREATE TABLE", {}, Exception("disk I/O error"))

        with patch.object(
            SQLAlchemyAdapter,
            "create_table_if_not_exists",
            autospec=True,
            side_effect=failure,
        ) as create_table:
            assert await initialize_datastore() is None

        adapter = create_table.call_args.args[0]
        assert adapter.engine is None

    @pytest.mark.asyncio
    async def test_default_url_used_when_unset(self, use_database, tmp_path):
        (tmp_path / "application.yml").write_text("server:\n  port: 8080\n")
        reload_config()

        adapter = await initialize_datastore()

        assert str(adapter.engine.url) == DEFAULT_DATABASE_URL
        assert (tmp_path / "pizzeria.db").exists()
        await adapter.disconnect()


class TestLifespan:
    """Tests for ASGI lifespan startup and shutdown."""

    @pytest.mark.asyncio
    async def test_startup_and_shutdown(self, use_database):
        use_database("sqlite+aiosqlite:///:memory:")
        app = create_app()

        async with app._lifespan(app.app):
            adapter = get_database_adapter()
            assert adapter.engine is not None

        assert adapter.engine is None
        with pytest.raises(DataException):
            get_database_adapter()

    @pytest.mark.asyncio
    async def test_startup_survives_unreachable_database(self, use_database):
        use_database("sqlite+aiosqlite:////nonexistent-dir/orders.db")
        app = create_app()

        async with app._lifespan(app.app):
            with pytest.raises(DataException):
                get_database_adapter()

    def test_create_app_returns_pizzeria_app(self, use_database):
        use_database("sqlite+aiosqlite:///:memory:")

        assert isinstance(create_app(), PizzeriaASGIApp)


class TestMaskedDatabaseUrl:
    """Tests for hiding credentials in logged URLs."""

    def test_password_hidden(self):
        masked = masked_database_url("postgresql+asyncpg://pizza:secret@db:5432/orders")

        assert "secret" not in masked
        assert "pizza:***@db" in masked

    def test_invalid_url(self):
        assert masked_database_url("not a url") == "<invalid url>"
