"""
database.py — Connection Pool Management

This module owns the single SQLAlchemy engine (and its connection pool) of the
process. The engine is created explicitly at application startup and disposed
at shutdown; repositories borrow connections from it per operation.

Lifecycle:
    initialize() → engine available → close()
"""

import logging
from typing import Optional, Union

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.exc import SQLAlchemyError

from . import config
from .errors import PersistenceError
from .schema import create_schema

log = logging.getLogger(__name__)


class Database:
    """
    Holds the process-wide engine and connection pool.

    Attributes:
        url (URL): Target database, set by initialize().
    """

    def __init__(self):
        self.url: Optional[URL] = None
        self._engine: Optional[Engine] = None

    @property
    def engine(self) -> Engine:
        """
        Returns the initialized engine.

        Raises:
            PersistenceError: If initialize() has not been called.
        """
        if self._engine is None:
            raise PersistenceError("Database connection not initialized. Call initialize() first.")
        return self._engine

    def is_initialized(self) -> bool:
        return self._engine is not None

    def initialize(self, url: Union[str, URL, None] = None, create_tables: bool = None, **engine_options):
        """
        Creates the engine and, optionally, the order tables.

        Args:
            url (str | URL, optional): Database URL. Defaults to config.database_url().
            create_tables (bool, optional): Create missing tables. Defaults to
                the DB_CREATE_SCHEMA setting.
            **engine_options: Extra keyword arguments for sqlalchemy.create_engine().
                When omitted for a server database, the pool settings from
                config are applied.

        Raises:
            PersistenceError: If the schema cannot be created.
        """
        if self._engine is not None:
            log.info("Database connection already initialized.")
            return

        self.url = make_url(url) if url is not None else config.database_url()
        if not engine_options and self.url.get_backend_name() != "sqlite":
            engine_options = {
                "pool_size": config.DB_POOL_SIZE,
                "max_overflow": config.DB_MAX_OVERFLOW,
                "pool_timeout": config.DB_POOL_TIMEOUT,
                "pool_pre_ping": True,
            }

        log.info(f"Initializing database connection to {self.url.render_as_string(hide_password=True)}")
        self._engine = create_engine(self.url, echo=config.DB_ECHO, **engine_options)

        if create_tables is None:
            create_tables = config.DB_CREATE_SCHEMA
        if create_tables:
            try:
                create_schema(self._engine)
            except SQLAlchemyError as e:
                log.error(f"Failed to create order schema: {e}")
                self.close()
                raise PersistenceError(f"Failed to create order schema: {e}") from e

        log.info("Database connection initialized.")

    def health_check(self) -> bool:
        """
        Runs a trivial query against the database.

        Returns:
            bool: True if the database answered, False otherwise.
        """
        if self._engine is None:
            return False
        try:
            with self._engine.connect() as conn:
                return conn.execute(text("SELECT 1")).scalar() == 1
        except SQLAlchemyError as e:
            log.error(f"Database health check failed: {e}")
            return False

    def close(self):
        """Disposes the engine and all pooled connections."""
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        log.info("Database connection closed.")


_database = Database()


def get_database() -> Database:
    """Returns the process-wide Database instance."""
    return _database
