"""
db/connection.py
----------------
Manages the PostgreSQL connection pool used by the repositories.
Uses psycopg2's SimpleConnectionPool; NUMERIC columns come back as Decimal,
which is what the reconciliation engine computes with.
"""

from contextlib import contextmanager
from typing import Optional

import psycopg2
from psycopg2 import pool

from household_recon.config import DATABASE_URL
from household_recon.utils.logger import get_logger

logger = get_logger(__name__)

_pool: pool.SimpleConnectionPool | None = None


def init_pool(min_conn: int = 1, max_conn: int = 5, dsn: Optional[str] = None) -> None:
    """
    Initialize the database connection pool.

    Args:
        min_conn: Minimum number of connections to keep open.
        max_conn: Maximum number of connections allowed.
        dsn: Connection string, defaults to DATABASE_URL from the environment.

    Raises:
        psycopg2.OperationalError: If the database is unreachable.
    """
    global _pool
    if _pool is not None:
        return
    try:
        _pool = pool.SimpleConnectionPool(min_conn, max_conn, dsn or DATABASE_URL)
        logger.info("Database connection pool initialized successfully.")
    except psycopg2.OperationalError as e:
        logger.error(f"Failed to initialize database pool: {e}")
        raise


def get_connection():
    """
    Get a connection from the pool.

    Raises:
        RuntimeError: If the pool has not been initialized.
    """
    if _pool is None:
        raise RuntimeError("Database pool not initialized. Call init_pool() first.")
    return _pool.getconn()


def release_connection(conn) -> None:
    """Return a connection back to the pool."""
    if _pool is not None:
        _pool.putconn(conn)


@contextmanager
def transaction(action: str):
    """
    Borrow a connection for one unit of work.

    Commits when the block finishes, rolls back and re-raises on error, and
    always returns the connection to the pool.

    Args:
        action: Short description used in the error log, e.g. "upsert invoice".
    """
    conn = get_connection()
    try:
        yield conn
        conn.commit()
    except Exception as e:
        conn.rollback()
        logger.error(f"Failed to {action}: {e}")
        raise
    finally:
        release_connection(conn)


def close_pool() -> None:
    """Close all connections in the pool."""
    global _pool
    if _pool is not None:
        _pool.closeall()
        _pool = None
        logger.info("Database connection pool closed.")
