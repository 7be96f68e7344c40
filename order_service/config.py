"""
config.py — Environment Configuration for the Orders API

All settings are read once from environment variables at import time.
A .env file in the working directory is loaded first; variables already
set in the process environment win over it.
The PostgreSQL variables follow the libpq naming (PGHOST, PGPORT, ...);
DATABASE_URL, when set, takes precedence over them.
"""

import os

from dotenv import find_dotenv, load_dotenv
from sqlalchemy.engine import URL, make_url

load_dotenv(find_dotenv(usecwd=True))


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Database (normally provided by the container environment)
PGHOST = os.environ.get("PGHOST", "localhost")
PGPORT = int(os.environ.get("PGPORT", "5432"))
PGDATABASE = os.environ.get("PGDATABASE", "orders_db")
PGUSER = os.environ.get("PGUSER", "postgres")
PGPASSWORD = os.environ.get("PGPASSWORD", "")
DATABASE_URL = os.environ.get("DATABASE_URL")

DB_POOL_SIZE = int(os.environ.get("DB_POOL_SIZE", "5"))
DB_MAX_OVERFLOW = int(os.environ.get("DB_MAX_OVERFLOW", "10"))
DB_POOL_TIMEOUT = int(os.environ.get("DB_POOL_TIMEOUT", "30"))
DB_ECHO = _env_bool("DB_ECHO", False)
DB_CREATE_SCHEMA = _env_bool("DB_CREATE_SCHEMA", True)

# HTTP listener
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "3000"))

# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.environ.get("LOG_FILE", "order_service.log")


def database_url() -> URL:
    """
    Returns the SQLAlchemy URL of the order database.

    Returns:
        sqlalchemy.engine.URL: DATABASE_URL if set, otherwise a psycopg URL
        assembled from the PG* variables.
    """
    if DATABASE_URL:
        return make_url(DATABASE_URL)
    return URL.create(
        "postgresql+psycopg",
        username=PGUSER,
        password=PGPASSWORD or None,
        host=PGHOST,
        port=PGPORT,
        database=PGDATABASE,
    )
