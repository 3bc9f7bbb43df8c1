"""
Database connection and operations
"""
import asyncpg
from contextlib import asynccontextmanager, contextmanager
from typing import Optional, List, Dict, Any
import logging

from .config import settings
from .exceptions import StoreError, StoreConflictError

logger = logging.getLogger(__name__)


@contextmanager
def store_errors():
    """Translate asyncpg failures into StoreError"""
    try:
        yield
    except asyncpg.UniqueViolationError as e:
        raise StoreConflictError(f"Unique constraint violated: {e}") from e
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
        logger.error(f"Database query failed: {e}")
        raise StoreError(f"Database error: {e}") from e


class Database:
    """PostgreSQL database connection manager using asyncpg"""

    def __init__(self):
        self.pool: Optional[asyncpg.Pool] = None

    async def connect(self):
        """Create database connection pool"""
        try:
            self.pool = await asyncpg.create_pool(
                settings.DATABASE_URL,
                min_size=1,
                max_size=settings.DB_POOL_SIZE,
                command_timeout=60,
            )
            logger.info("Database connection pool created successfully")
        except Exception as e:
            logger.error(f"Failed to connect to database: {e}")
            raise

    async def disconnect(self):
        """Close database connection pool"""
        if self.pool:
            await self.pool.close()
            logger.info("Database connection pool closed")

    @asynccontextmanager
    async def _connection(self, conn: Optional[asyncpg.Connection]):
        if conn is not None:
            yield conn
            return
        if not self.pool:
            raise StoreError("Database pool is not initialized")
        async with self.pool.acquire() as acquired:
            yield acquired

    async def fetch_one(
        self, query: str, *args, conn: Optional[asyncpg.Connection] = None
    ) -> Optional[Dict[str, Any]]:
        """Fetch a single row"""
        with store_errors():
            async with self._connection(conn) as c:
                row = await c.fetchrow(query, *args)
                return dict(row) if row else None

    async def fetch_all(
        self, query: str, *args, conn: Optional[asyncpg.Connection] = None
    ) -> List[Dict[str, Any]]:
        """Fetch all rows"""
        with store_errors():
            async with self._connection(conn) as c:
                rows = await c.fetch(query, *args)
                return [dict(row) for row in rows]

    async def execute(
        self, query: str, *args, conn: Optional[asyncpg.Connection] = None
    ) -> str:
        """Execute a query"""
        with store_errors():
            async with self._connection(conn) as c:
                return await c.execute(query, *args)

    async def execute_many(
        self, query: str, args_list: List[tuple], conn: Optional[asyncpg.Connection] = None
    ) -> None:
        """Execute a query for each argument tuple"""
        with store_errors():
            async with self._connection(conn) as c:
                await c.executemany(query, args_list)

    @asynccontextmanager
    async def transaction(self, conn: Optional[asyncpg.Connection] = None):
        """
        Run the enclosed block in a transaction and yield its connection

        Given an open connection, a savepoint is created on it instead.
        """
        with store_errors():
            async with self._connection(conn) as c:
                async with c.transaction():
                    yield c


# Global database instance
db = Database()


async def get_db() -> Database:
    """Dependency for getting database instance"""
    return db
