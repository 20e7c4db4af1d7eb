# mediagate/database/core.py

"""
Database connection management.

The pipeline and the workers are synchronous (Pillow and boto3 block), so the
metadata store is accessed through a psycopg3 connection pool with dict rows.
"""

from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from ..config import settings
from ..enums import LoggerName
from ..services.logger import get_service_logger
from ..utils.time_utils import utc_now

logger = get_service_logger(LoggerName.DATABASE)


class SyncDatabaseCore:
    """
    Core sync database functionality.

    Owns one connection pool; operation classes receive an instance and
    borrow connections through ``get_connection()``.
    """

    def __init__(self, database_url: Optional[str] = None) -> None:
        """Initialize the SyncDatabaseCore instance with empty connection pool."""
        self.database_url = database_url or settings.database_url
        self._pool: Optional[ConnectionPool] = None
        self._pool_created_at = None
        self._last_health_check = None

    def initialize(self, timeout: float = 30.0) -> None:
        """
        Open the connection pool and wait until it holds a live connection.

        Args:
            timeout: Seconds to wait for the first connection

        Raises:
            psycopg_pool.PoolTimeout: If the database cannot be reached
            psycopg.Error: If connecting fails outright
        """
        try:
            self._pool = ConnectionPool(
                self.database_url,
                min_size=2,
                max_size=settings.db_pool_size,
                max_waiting=settings.db_max_overflow,
                timeout=timeout,
                kwargs={
                    "row_factory": dict_row,
                    "connect_timeout": 15,
                },
                open=False,
            )
            self._pool.open(wait=True, timeout=timeout)
            self._pool_created_at = utc_now()
        except Exception as e:
            logger.error(f"Failed to initialize database pool: {e}")
            self._pool = None
            raise

    def close(self) -> None:
        """
        Close the connection pool.

        Called during shutdown so all connections are released.
        """
        if self._pool:
            self._pool.close()
            self._pool = None

    def check_pool_health(self) -> bool:
        """
        Check if the database connection pool is healthy.

        Returns:
            True if pool is healthy, False otherwise
        """
        if not self._pool:
            return False

        try:
            with self._pool.connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT 1")
                    cur.fetchone()

            self._last_health_check = utc_now()
            return True
        except psycopg.Error as e:
            logger.warning(f"Database health check failed: {e}")
            return False

    def get_pool_stats(self) -> Dict[str, Any]:
        """
        Get connection pool statistics.

        Returns:
            Dictionary with pool statistics
        """
        if not self._pool:
            return {"pool_initialized": False}

        stats = self._pool.get_stats()
        return {
            "pool_initialized": True,
            "pool_created_at": self._pool_created_at,
            "last_health_check": self._last_health_check,
            "pool_size": stats.get("pool_size", 0),
            "pool_available": stats.get("pool_available", 0),
            "requests_waiting": stats.get("requests_waiting", 0),
        }

    @contextmanager
    def get_connection(self) -> Generator[Any, None, None]:
        """
        Borrow a connection wrapped in a transaction.

        Yields:
            Connection: A sync database connection with dict_row factory

        Raises:
            RuntimeError: If the pool has not been initialized

        Usage:
            with db.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT * FROM profiles")
                    rows = cur.fetchall()
        """
        if not self._pool:
            raise RuntimeError("Database pool not initialized")

        with self._pool.connection() as conn:
            with conn.transaction():
                yield conn


SyncDatabase = SyncDatabaseCore
