"""Item storage on PostgreSQL, primary or read replica"""
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from psycopg import errors
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from app.errors import ReplicaWriteRejected

logger = logging.getLogger(__name__)

class ItemStore:
    """
    Reads and writes items through a single connection pool.
    The pool points at whichever endpoint the region router picked at startup.
    """

    def __init__(self, conninfo: str, min_size: int = 1, max_size: int = 10):
        self.conninfo = conninfo
        self.min_size = min_size
        self.max_size = max_size
        self.pool: Optional[AsyncConnectionPool] = None

    async def open(self):
        """Open the connection pool"""
        self.pool = AsyncConnectionPool(
            conninfo=self.conninfo,
            min_size=self.min_size,
            max_size=self.max_size,
            open=False
        )
        await self.pool.open(wait=True)

    async def close(self):
        """Close the connection pool"""
        if self.pool:
            await self.pool.close()
            self.pool = None

    @asynccontextmanager
    async def connection(self):
        """
        Get a pooled connection.
        A write rejected by a read-only replica surfaces as ReplicaWriteRejected.
        """
        if self.pool is None:
            raise RuntimeError("Item store is not open")
        try:
            async with self.pool.connection() as conn:
                yield conn
        except errors.ReadOnlySqlTransaction as e:
            raise ReplicaWriteRejected(str(e)) from e

    async def init_schema(self):
        """Create the items table; only valid against the primary"""
        async with self.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute("""
                    CREATE TABLE IF NOT EXISTS items (
                        id SERIAL PRIMARY KEY,
                        name VARCHAR(255) NOT NULL,
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)
                await cur.execute("""
                    CREATE INDEX IF NOT EXISTS idx_items_created_at ON items(created_at DESC)
                """)
            await conn.commit()

    async def recent_items(self, limit: int = 5) -> List[dict]:
        """Most recent items first, id and name only"""
        async with self.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute("""
                    SELECT id, name
                    FROM items
                    ORDER BY created_at DESC
                    LIMIT %s
                """, (limit,))
                return await cur.fetchall()

    async def create_item(self, name: str) -> dict:
        async with self.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute("""
                    INSERT INTO items (name)
                    VALUES (%s)
                    RETURNING id, name, created_at
                """, (name,))
                row = await cur.fetchone()
            await conn.commit()
        logger.debug("Created item %s", row["id"])
        return row
