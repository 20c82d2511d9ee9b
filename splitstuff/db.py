import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Optional

from mysql.connector import pooling

from .config import config

logger = logging.getLogger(__name__)


class Database:
    def __init__(self, settings=config) -> None:
        self.settings = settings
        self._pool: Optional[pooling.MySQLConnectionPool] = None

    @property
    def pool(self) -> pooling.MySQLConnectionPool:
        # Created on first use so importing the app never opens a connection.
        if self._pool is None:
            logger.info(
                "Opening MySQL pool to %s:%s/%s",
                self.settings.DB_HOST,
                self.settings.DB_PORT,
                self.settings.DB_NAME,
            )
            self._pool = pooling.MySQLConnectionPool(
                pool_name="splitstuff_pool",
                pool_size=self.settings.DB_POOL_SIZE,
                host=self.settings.DB_HOST,
                port=self.settings.DB_PORT,
                user=self.settings.DB_USER,
                password=self.settings.DB_PASSWORD,
                database=self.settings.DB_NAME,
                auth_plugin="mysql_native_password",
            )
        return self._pool

    @contextmanager
    def connection(self):
        conn = self.pool.get_connection()
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def cursor(self, dictionary: bool = True):
        with self.connection() as conn:
            cursor = conn.cursor(dictionary=dictionary)
            try:
                yield cursor
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            finally:
                cursor.close()

    # Several statements committed together, e.g. an expense and its splits.
    transaction = cursor

    def fetch_one(self, query: str, params: Optional[Iterable[Any]] = None) -> Optional[Dict[str, Any]]:
        with self.cursor() as cursor:
            cursor.execute(query, params or ())
            return cursor.fetchone()

    def fetch_all(self, query: str, params: Optional[Iterable[Any]] = None) -> List[Dict[str, Any]]:
        with self.cursor() as cursor:
            cursor.execute(query, params or ())
            return cursor.fetchall()

    def execute(self, query: str, params: Optional[Iterable[Any]] = None) -> int:
        """Run a write and return the number of affected rows."""
        with self.cursor() as cursor:
            cursor.execute(query, params or ())
            return cursor.rowcount


db = Database()
