"""Pytest fixtures for rds-demo tests."""

import asyncio
import contextlib
import os
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from psycopg_pool import PoolClosed, PoolTimeout

from rds_demo.gateway import Gateway, GatewayConfig
from rds_demo.main import create_app

# =============================================================================
# In-memory stand-ins for psycopg_pool / psycopg
# =============================================================================


class FakeDatabase:
    """Just enough of PostgreSQL to run the demo statements."""

    def __init__(self) -> None:
        self.table_exists = False
        self.rows: list[tuple] = []
        self.next_id = 1
        self.statements: list[str] = []
        # statement fragment -> exception raised when it runs
        self.failures: dict[str, Exception] = {}
        self.rollback_error: Exception | None = None


class FakeCursor:
    def __init__(self, rows: list[tuple]):
        self._rows = rows

    async def fetchone(self) -> tuple | None:
        return self._rows[0] if self._rows else None

    async def fetchall(self) -> list[tuple]:
        return list(self._rows)


class FakeConnection:
    """Stages writes until commit, like a transaction."""

    def __init__(self, db: FakeDatabase):
        self.db = db
        self._pending: list[tuple] = []
        self._create_pending = False
        self.commits = 0
        self.rollbacks = 0

    async def execute(self, query: str, params: tuple = ()) -> FakeCursor:
        sql = " ".join(query.split())
        self.db.statements.append(sql)
        for fragment, error in self.db.failures.items():
            if fragment in sql:
                raise error
        await asyncio.sleep(0)

        if sql.startswith("SELECT NOW()"):
            return FakeCursor([(datetime.now(UTC),)])
        if sql.startswith("CREATE TABLE IF NOT EXISTS demo_items"):
            self._create_pending = True
            return FakeCursor([])
        if sql.startswith("INSERT INTO demo_items"):
            row = (self.db.next_id, params[0], datetime.now(UTC))
            self.db.next_id += 1
            self._pending.append(row)
            return FakeCursor([row])
        if sql.startswith("SELECT id, label, created_at FROM demo_items"):
            rows = sorted(self.db.rows, key=lambda r: r[0], reverse=True)
            return FakeCursor(rows[: params[0]])
        raise AssertionError(f"unexpected statement: {sql}")

    async def commit(self) -> None:
        self.commits += 1
        if self._create_pending:
            self.db.table_exists = True
        self.db.rows.extend(self._pending)
        self._reset()

    async def rollback(self) -> None:
        self.rollbacks += 1
        self._reset()
        if self.db.rollback_error is not None:
            raise self.db.rollback_error

    def _reset(self) -> None:
        self._pending = []
        self._create_pending = False


class FakePool:
    """Bounded pool with the psycopg_pool open/connection/close surface."""

    def __init__(self, db: FakeDatabase, max_size: int = 5, timeout: float = 1.0):
        self.db = db
        self.max_size = max_size
        self.timeout = timeout
        self.opened = False
        self.closed = False
        self.in_use = 0
        self.peak_in_use = 0
        self.connections: list[FakeConnection] = []
        self._slots = asyncio.Semaphore(max_size)

    async def open(self, wait: bool = False, timeout: float = 30.0) -> None:
        self.opened = True

    async def close(self, timeout: float = 5.0) -> None:
        self.closed = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[FakeConnection]:
        if self.closed:
            raise PoolClosed("the pool 'fake' is already closed")
        try:
            await asyncio.wait_for(self._slots.acquire(), self.timeout)
        except TimeoutError:
            raise PoolTimeout(f"couldn't get a connection after {self.timeout:.2f} sec") from None

        conn = FakeConnection(self.db)
        self.connections.append(conn)
        self.in_use += 1
        self.peak_in_use = max(self.peak_in_use, self.in_use)
        try:
            yield conn
        except BaseException:
            # psycopg warns instead of replacing the exception in flight
            with contextlib.suppress(Exception):
                await conn.rollback()
            raise
        else:
            await conn.commit()
        finally:
            self.in_use -= 1
            self._slots.release()


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def gateway_config() -> GatewayConfig:
    """Configuration that never reaches a real server in unit tests."""
    return GatewayConfig(
        host="db.invalid",
        database_name="demo",
        user="demo",
        password="secret",
    )


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def make_gateway(
    gateway_config: GatewayConfig,
    fake_db: FakeDatabase,
) -> Callable[..., Gateway]:
    """Build gateways over a FakePool sharing ``fake_db``."""

    def _make(max_size: int = 5, timeout: float = 1.0) -> Gateway:
        pool = FakePool(fake_db, max_size=max_size, timeout=timeout)
        return Gateway(gateway_config, pool=pool)  # type: ignore[arg-type]

    return _make


@pytest_asyncio.fixture
async def gateway(make_gateway: Callable[..., Gateway]) -> AsyncIterator[Gateway]:
    """An open gateway over a fake pool."""
    async with make_gateway() as gateway:
        yield gateway


@pytest_asyncio.fixture
async def client(gateway: Gateway) -> AsyncIterator[AsyncClient]:
    """Create an async HTTP client for testing."""
    app = create_app()
    app.state.gateway = gateway

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


# =============================================================================
# Integration fixtures (real PostgreSQL)
# =============================================================================


def _integration_config(**overrides) -> GatewayConfig:
    host = os.environ.get("TEST_DB_HOST")
    if not host:
        pytest.skip("TEST_DB_HOST is not set")
    return GatewayConfig(
        host=host,
        database_name=os.environ.get("TEST_DB_NAME", "postgres"),
        user=os.environ.get("TEST_DB_USER", "postgres"),
        password=os.environ.get("TEST_DB_PASSWORD", "postgres"),
        port=int(os.environ.get("TEST_DB_PORT", "5432")),
        use_encrypted_transport=os.environ.get("TEST_DB_SSL", "false").lower() == "true",
        **overrides,
    )


@pytest.fixture
def pg_gateway_factory() -> Callable[..., Gateway]:
    """Build gateways against the database named by TEST_DB_* variables."""

    def _make(**overrides) -> Gateway:
        return Gateway(_integration_config(**overrides))

    return _make


@pytest_asyncio.fixture
async def pg_gateway(pg_gateway_factory: Callable[..., Gateway]) -> AsyncIterator[Gateway]:
    """An open gateway on an empty demo_items table."""
    async with pg_gateway_factory() as gateway:
        async with gateway.lease() as conn:
            await conn.execute("DROP TABLE IF EXISTS demo_items")
        yield gateway
