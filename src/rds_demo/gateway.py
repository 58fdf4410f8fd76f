"""Connection-pool gateway: every database access goes through here.

The gateway owns a bounded ``AsyncConnectionPool``. Each operation leases one
connection, runs its statements and releases it. ``close()`` stops new
leases, waits until every in-flight lease has been released and only then
closes the physical connections.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Self

import psycopg
from psycopg import AsyncConnection
from psycopg.conninfo import make_conninfo
from psycopg_pool import AsyncConnectionPool
from pydantic import BaseModel, Field

from rds_demo.models import DemoItem, ItemList, Liveness
from rds_demo.services import items as item_service

logger = logging.getLogger(__name__)


# =============================================================================
# Errors
# =============================================================================


class GatewayError(Exception):
    """Base class for database failures surfaced by the gateway."""


class ConnectionFailed(GatewayError):
    """No usable connection: pool timeout, network or authentication failure."""


class GatewayClosed(ConnectionFailed):
    """A lease was requested after shutdown began."""


class QueryFailed(GatewayError):
    """A statement failed on an otherwise healthy connection."""


CONNECTION_FAILED = "DB connection failed"


def client_message(error: GatewayError) -> str:
    """Connection problems stay generic; query errors keep the database message."""
    if isinstance(error, ConnectionFailed):
        return CONNECTION_FAILED
    return str(error)


# =============================================================================
# Configuration
# =============================================================================


class GatewayConfig(BaseModel):
    """Connection and pool options for a Gateway."""

    host: str = Field(min_length=1)
    database_name: str = Field(min_length=1)
    user: str = Field(min_length=1)
    password: str = Field(min_length=1)
    port: int = Field(default=5432, ge=1, le=65535)
    # Encrypt the transport without verifying the server certificate.
    use_encrypted_transport: bool = True
    max_connections: int = Field(default=5, ge=1)
    idle_timeout_ms: int = Field(default=30_000, gt=0)
    connect_timeout_ms: int = Field(default=5_000, gt=0)

    @property
    def idle_timeout(self) -> float:
        return self.idle_timeout_ms / 1000

    @property
    def connect_timeout(self) -> float:
        return self.connect_timeout_ms / 1000

    def conninfo(self) -> str:
        """Build the libpq connection string."""
        return make_conninfo(
            host=self.host,
            port=self.port,
            dbname=self.database_name,
            user=self.user,
            password=self.password,
            sslmode="require" if self.use_encrypted_transport else "disable",
            # libpq only takes whole seconds here
            connect_timeout=max(1, round(self.connect_timeout)),
        )


# =============================================================================
# Gateway
# =============================================================================


class Gateway:
    """
    Owns the connection pool and exposes the demo operations.

    Usage:
        async with Gateway(config) as gateway:
            now = await gateway.check_database_connectivity()
            item = await gateway.run_demo_migration("hello")
            listing = await gateway.list_demo_items(limit=10)
    """

    def __init__(
        self,
        config: GatewayConfig,
        pool: AsyncConnectionPool[Any] | None = None,
    ):
        self.config = config
        if pool is None:
            pool = AsyncConnectionPool(
                config.conninfo(),
                open=False,
                min_size=0,
                max_size=config.max_connections,
                timeout=config.connect_timeout,
                max_idle=config.idle_timeout,
                name="rds-demo",
            )
        self._pool = pool
        self._in_flight = 0
        self._drained = asyncio.Event()
        self._drained.set()
        self._closing = False
        self._closed = False

    async def __aenter__(self) -> Self:
        await self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def in_flight(self) -> int:
        """Number of leases currently held."""
        return self._in_flight

    async def open(self) -> None:
        """Start the pool without waiting for the database to answer."""
        await self._pool.open(wait=False)
        logger.info(
            "Database pool opened for %s:%s/%s (max %d connections)",
            self.config.host,
            self.config.port,
            self.config.database_name,
            self.config.max_connections,
        )

    async def close(self) -> None:
        """Reject new leases, wait for in-flight ones, then close the pool."""
        if self._closed:
            return
        self._closing = True
        if self._in_flight:
            logger.info("Waiting for %d in-flight lease(s) to be released", self._in_flight)
        await self._drained.wait()
        await self._pool.close()
        self._closed = True
        logger.info("Database pool closed")

    @asynccontextmanager
    async def lease(self) -> AsyncIterator[AsyncConnection]:
        """Borrow one pooled connection for the duration of the block.

        Driver errors are translated into ConnectionFailed or QueryFailed.
        """
        if self._closing:
            raise GatewayClosed("Gateway is shutting down")

        self._in_flight += 1
        self._drained.clear()
        try:
            async with self._pool.connection() as conn:
                yield conn
        except psycopg.OperationalError as e:
            # PoolTimeout and PoolClosed are OperationalErrors too
            raise ConnectionFailed(str(e)) from e
        except psycopg.Error as e:
            raise QueryFailed(str(e)) from e
        finally:
            self._in_flight -= 1
            if self._in_flight == 0:
                self._drained.set()

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def check_liveness(self) -> Liveness:
        """Report the process as alive. Never touches the database."""
        return Liveness()

    async def check_database_connectivity(self) -> datetime:
        """Return the database server time."""
        async with self.lease() as conn:
            return await item_service.server_time(conn)

    async def run_demo_migration(self, label: str) -> DemoItem:
        """Create the demo table if needed and insert one row, atomically."""
        async with self.lease() as conn:
            try:
                await item_service.ensure_schema(conn)
                item = await item_service.insert_item(conn, label)
                await conn.commit()
            except Exception:
                await _rollback_quietly(conn)
                raise
            return item

    async def list_demo_items(self, limit: int = item_service.MAX_ITEMS) -> ItemList:
        """List up to ``limit`` items, newest first."""
        async with self.lease() as conn:
            rows = await item_service.list_items(conn, limit)
        return ItemList(count=len(rows), items=rows)


async def _rollback_quietly(conn: AsyncConnection) -> None:
    """Roll back, logging rather than raising so the original error survives."""
    try:
        await conn.rollback()
    except psycopg.Error as e:
        logger.warning("Rollback failed: %s", e)
