from contextlib import asynccontextmanager
from typing import Optional

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from mitsuki import Application, get_logger
from mitsuki.config.properties import get_config, log_config_sources
from mitsuki.core.application import ApplicationContext
from mitsuki.core.container import (
    DIContainer,
    populate_container_from_decorators,
    set_container,
)
from mitsuki.core.providers import initialize_configuration_providers
from mitsuki.core.scanner import scan_components
from mitsuki.core.server import MitsukiASGIApp
from mitsuki.data import (
    SQLAlchemyAdapter,
    get_entity_metadata,
    set_database_adapter,
)
from mitsuki.web.controllers import get_all_controllers

from pizzeria.domain import PizzaOrder
from pizzeria.version import get_version

logger = get_logger()

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///pizzeria.db"


@Application(scan_packages=["pizzeria.controllers"])
class PizzeriaApp:
    """Pizza order status service."""


def masked_database_url(database_url: str) -> str:
    try:
        return make_url(database_url).render_as_string(hide_password=True)
    except ArgumentError:
        return "<invalid url>"


async def initialize_datastore() -> Optional[SQLAlchemyAdapter]:
    """
    Connect to the configured database and create the pizza_orders table.

    A database that cannot be reached is logged and left unset instead of
    raised, so the service still starts and answers /ping. Any engine that
    was created before the failure is disposed.

    Returns:
        The connected adapter, or None if the database is unavailable
    """
    config = get_config()
    database_url = config.get("database.url") or DEFAULT_DATABASE_URL

    adapter = SQLAlchemyAdapter()
    try:
        await adapter.connect(
            database_url,
            echo=config.get_bool("database.echo"),
            pool_size=config.get_int("database.pool.size", 10),
            max_overflow=config.get_int("database.pool.max_overflow", 20),
            pool_timeout=config.get_int("database.pool.timeout", 30),
            pool_recycle=config.get_int("database.pool.recycle", 3600),
            enable_pooling=config.get_bool("database.pool.enabled", True),
        )
        await adapter.create_table_if_not_exists(get_entity_metadata(PizzaOrder))
    except (SQLAlchemyError, OSError) as e:
        logger.error(
            f"Database {masked_database_url(database_url)} unavailable, "
            f"order endpoints will fail until restart: {e}"
        )
        await adapter.disconnect()
        set_database_adapter(None)
        return None

    set_database_adapter(adapter)
    logger.info(f"Database: {masked_database_url(database_url)}")
    return adapter


class PizzeriaASGIApp(MitsukiASGIApp):
    """
    MitsukiASGIApp whose lifespan owns the datastore.

    The database is connected on startup rather than before the server is
    built, and a failed connection leaves the app serving.
    """

    @asynccontextmanager
    async def _lifespan(self, app):
        await initialize_datastore()
        async with super()._lifespan(app):
            logger.info("Application started")
            yield
        set_database_adapter(None)
        logger.info("Application stopped")


def create_app() -> PizzeriaASGIApp:
    """
    Build the ASGI app on a freshly populated container.

    Each app gets its own controller and repository instances, so a
    repository never holds on to an adapter from an earlier app.
    """
    set_container(DIContainer())
    scan_components(PizzeriaApp, scan_packages=PizzeriaApp.__mitsuki_scan_packages__)
    populate_container_from_decorators()

    context = ApplicationContext(PizzeriaApp)
    initialize_configuration_providers()
    context.controllers = get_all_controllers()

    return PizzeriaASGIApp(context)


def main():
    """Serve the application with uvicorn until interrupted."""
    import uvicorn

    app = create_app()
    config = get_config()
    if config.get_bool("logging.log_config_sources"):
        log_config_sources(config, logger)

    host = config.get("server.host")
    port = config.get_int("server.port", 8000)
    logger.info(f"Pizzeria {get_version()}")
    logger.info(f"Listening on http://{host}:{port}")

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_config=None,
        access_log=config.get_bool("server.access_log", True),
    )
