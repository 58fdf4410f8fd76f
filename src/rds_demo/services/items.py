"""Item service for the demo_items table."""

from datetime import datetime

from psycopg import AsyncConnection

from rds_demo.models import DemoItem

MAX_ITEMS = 50

CREATE_TABLE = """
    CREATE TABLE IF NOT EXISTS demo_items (
        id SERIAL PRIMARY KEY,
        label TEXT NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
"""


async def server_time(conn: AsyncConnection) -> datetime:
    """Return the database server's current time."""
    row = await conn.execute("SELECT NOW() AS now")
    result = await row.fetchone()
    assert result is not None
    return result[0]


async def ensure_schema(conn: AsyncConnection) -> None:
    """Create the demo_items table if it does not exist yet."""
    await conn.execute(CREATE_TABLE)


async def insert_item(
    conn: AsyncConnection,
    label: str,
) -> DemoItem:
    """Insert one item; the server assigns id and created_at."""
    row = await conn.execute(
        """
        INSERT INTO demo_items (label)
        VALUES (%s)
        RETURNING id, label, created_at
        """,
        (label,),
    )
    result = await row.fetchone()
    assert result is not None
    return _row_to_item(result)


async def list_items(
    conn: AsyncConnection,
    limit: int = MAX_ITEMS,
) -> list[DemoItem]:
    """List the newest items first, never more than MAX_ITEMS."""
    row = await conn.execute(
        """
        SELECT id, label, created_at
        FROM demo_items
        ORDER BY id DESC
        LIMIT %s
        """,
        (max(0, min(limit, MAX_ITEMS)),),
    )
    results = await row.fetchall()
    return [_row_to_item(r) for r in results]


def _row_to_item(row: tuple) -> DemoItem:
    """Convert a database row to a DemoItem model."""
    return DemoItem(
        id=row[0],
        label=row[1],
        created_at=row[2],
    )
