"""
Pooled PostgreSQL connections for the event recorder.

The pool is created lazily on first use so that building a recorder never
touches the network; connection failures surface when events are persisted
and are logged there.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Optional

import psycopg2
import psycopg2.pool
from psycopg2 import sql

from interfaces.configuration_interface import DatabaseConfig
from utils.database_config import get_connection_params, describe_connection


class EventStoreError(Exception):
    """Raised when the event store cannot be reached or prepared."""
    pass


class PooledConnectionProvider:
    """
    Hands out pooled connections through a context manager.

    Usage:
        provider = PooledConnectionProvider(db_config)
        with provider.get_connection() as conn:
            with conn.cursor() as cur:
                ...
    """

    def __init__(self, config: DatabaseConfig, min_connections: int = 1,
                 connection_params: Optional[Dict[str, Any]] = None):
        self._config = config
        self._min_connections = max(1, min_connections)
        self._params = connection_params
        self._pool: Optional[psycopg2.pool.ThreadedConnectionPool] = None
        self._pool_lock = threading.Lock()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def _ensure_pool(self) -> psycopg2.pool.ThreadedConnectionPool:
        with self._pool_lock:
            if self._pool is None:
                params = self._params or get_connection_params(self._config)
                try:
                    self._pool = psycopg2.pool.ThreadedConnectionPool(
                        minconn=self._min_connections,
                        maxconn=max(self._min_connections, self._config.pool_size),
                        **params
                    )
                except psycopg2.Error as e:
                    raise EventStoreError(f"Cannot connect to {describe_connection(params)}: {e}")
                self.logger.info(f"Connection pool ready ({describe_connection(params)})")
            return self._pool

    @contextmanager
    def get_connection(self):
        """Get a database connection from the pool; rolled back if the block raises."""
        pool = self._ensure_pool()
        conn = pool.getconn()
        try:
            yield conn
        except Exception:
            conn.rollback()
            raise
        finally:
            pool.putconn(conn)

    def ensure_schema(self, table_name: str) -> None:
        """Create the event table if it does not exist yet."""
        statement = sql.SQL(
            """
            CREATE TABLE IF NOT EXISTS {} (
                id BIGSERIAL PRIMARY KEY,
                cell_id TEXT,
                event_type TEXT NOT NULL,
                unit_id TEXT,
                box_id TEXT,
                payload JSONB NOT NULL,
                occurred_at TIMESTAMPTZ NOT NULL
            )
            """
        ).format(sql.Identifier(table_name))
        with self.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(statement)
            conn.commit()
        self.logger.info(f"Event table {table_name} is ready")

    def close(self) -> None:
        with self._pool_lock:
            if self._pool is not None:
                self._pool.closeall()
                self._pool = None
