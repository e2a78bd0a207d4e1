"""
PostgreSQL Store Gateway

Features:
- Bounded asyncpg connection pool (fixed max size, fail-fast connect)
- Parameterized statement execution returning plain dict rows
- Connectivity probe and idempotent schema creation used at startup
- Failures wrapped in StoreFailure with the statement name for logging
"""
import asyncio
import time
from typing import Any, Dict, List, Optional

import asyncpg

from support_lab.config import Settings
from support_lab.errors import StoreFailure
from support_lab.utils.logger import get_logger

logger = get_logger(__name__)


SCHEMA_STATEMENTS = [
    (
        "schema.create_table",
        """
        CREATE TABLE IF NOT EXISTS support_tickets (
            id SERIAL PRIMARY KEY,
            title VARCHAR(255) NOT NULL,
            description TEXT,
            severity VARCHAR(20) DEFAULT 'low',
            status VARCHAR(20) DEFAULT 'open',
            customer_id INTEGER,
            assigned_to VARCHAR(100),
            resolution_time INTEGER,
            created_at TIMESTAMP DEFAULT NOW(),
            updated_at TIMESTAMP DEFAULT NOW()
        );
        """,
    ),
    (
        "schema.index_status",
        "CREATE INDEX IF NOT EXISTS idx_status ON support_tickets(status);",
    ),
    (
        "schema.index_severity",
        "CREATE INDEX IF NOT EXISTS idx_severity ON support_tickets(severity);",
    ),
]


class Database:
    """Store gateway over an asyncpg pool"""

    def __init__(self, settings: Settings):
        """
        Initialize connection parameters

        Args:
            settings: Application settings (database_url, pool size, timeouts)
        """
        self.dsn = settings.database_url
        self.max_size = settings.db_pool_max_size
        self.connect_timeout = settings.db_connect_timeout_seconds
        # Hosted PostgreSQL terminates TLS with certificates we do not verify
        self.ssl = "require" if settings.is_production else None

        self.pool: Optional[asyncpg.Pool] = None

    async def connect(self) -> asyncpg.Pool:
        """Create the connection pool if it does not exist yet"""
        if self.pool is None:
            try:
                self.pool = await asyncpg.create_pool(
                    dsn=self.dsn,
                    min_size=1,
                    max_size=self.max_size,
                    timeout=self.connect_timeout,
                    ssl=self.ssl
                )
            except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError) as e:
                logger.error(f"Failed to create connection pool: {e}")
                raise StoreFailure(
                    "Could not connect to database",
                    statement="connection.pool",
                    detail=str(e)
                ) from e
            logger.info(f"PostgreSQL connection pool created (max_size={self.max_size})")
        return self.pool

    async def close(self):
        """Close connection pool"""
        if self.pool:
            await self.pool.close()
            self.pool = None
            logger.info("PostgreSQL connection pool closed")

    async def execute(self, name: str, statement: str, *params: Any) -> List[Dict[str, Any]]:
        """
        Execute a parameterized statement and return its rows

        Args:
            name: Statement identity used in logs and errors (e.g. "tickets.list")
            statement: SQL text with $1..$n placeholders
            *params: Bound values, in placeholder order

        Returns:
            Rows as dictionaries, in the order returned by the store

        Raises:
            StoreFailure: Pool missing, connection failure or statement error
        """
        if self.pool is None:
            raise StoreFailure(
                "Database is not connected",
                statement=name,
                detail="connection pool has not been created"
            )

        start = time.time()
        try:
            records = await self.pool.fetch(statement, *params)
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError) as e:
            logger.error(f"Statement {name} failed: {e}")
            logger.error(f"Statement text: {' '.join(statement.split())}")
            raise StoreFailure(
                f"Statement {name} failed",
                statement=name,
                detail=str(e)
            ) from e

        duration_ms = int((time.time() - start) * 1000)
        logger.debug(f"Statement {name} executed in {duration_ms}ms ({len(records)} rows)")
        return [dict(record) for record in records]

    async def ping(self) -> bool:
        """
        Connectivity probe

        Returns:
            True if the store answered

        Raises:
            StoreFailure: If the store is unreachable
        """
        rows = await self.execute("connection.probe", "SELECT NOW() AS current_time")
        logger.info(f"Database connection test successful: {rows[0]['current_time']}")
        return True

    async def initialize_schema(self) -> bool:
        """
        Create the ticket table and its indexes if they do not exist

        Safe to run on every startup.

        Returns:
            True if successful
        """
        logger.info("Initializing schema...")
        for name, statement in SCHEMA_STATEMENTS:
            await self.execute(name, statement)
        logger.info("Schema initialized successfully")
        return True
