"""DuckDB connection management."""

import threading
from pathlib import Path

import duckdb
from loguru import logger

from app.models import ALL_DDL, ANALYTICS_DDL
from settings import ANALYTICS_DB_PATH, DB_PATH

_local = threading.local()


def db_exists(path: str = DB_PATH) -> bool:
    """Check if database file exists."""
    return Path(path).exists()


def _tables_exist(conn: duckdb.DuckDBPyConnection) -> bool:
    """Check if sync tables already exist."""
    try:
        result = conn.execute(
            "SELECT COUNT(*) FROM information_schema.tables WHERE table_name = 'job_watermark'"
        ).fetchone()
        return result[0] > 0
    except duckdb.Error:
        return False


def init_tables(conn: duckdb.DuckDBPyConnection) -> None:
    """Initialize all tables from DDL statements (idempotent - uses IF NOT EXISTS)."""
    if _tables_exist(conn):
        return

    for ddl in ALL_DDL:
        conn.execute(ddl)
    logger.info("DB tables initialized")


def init_analytics_tables(conn: duckdb.DuckDBPyConnection) -> None:
    """Initialize analytics event tables."""
    for ddl in ANALYTICS_DDL:
        conn.execute(ddl)
    logger.debug("Analytics tables initialized")


def get_db() -> duckdb.DuckDBPyConnection:
    """Get thread-local connection to the database of record."""
    if not hasattr(_local, "conn") or _local.conn is None:
        if not db_exists():
            logger.warning("DB not found: {}. Creating empty DB.", DB_PATH)
        _local.conn = duckdb.connect(DB_PATH)
        init_tables(_local.conn)
        logger.debug("DB connected: {}", DB_PATH)
    return _local.conn


def get_analytics_db() -> duckdb.DuckDBPyConnection:
    """Get thread-local connection to the analytics event store."""
    if ANALYTICS_DB_PATH == DB_PATH:
        conn = get_db()
        init_analytics_tables(conn)
        return conn

    if not hasattr(_local, "analytics") or _local.analytics is None:
        _local.analytics = duckdb.connect(ANALYTICS_DB_PATH)
        init_analytics_tables(_local.analytics)
        logger.debug("Analytics DB connected: {}", ANALYTICS_DB_PATH)
    return _local.analytics


def close_db() -> None:
    """Close thread-local connections."""
    for attr in ("conn", "analytics"):
        conn = getattr(_local, attr, None)
        if conn is not None:
            conn.close()
            setattr(_local, attr, None)
    logger.debug("DB connections closed")
