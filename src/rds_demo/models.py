"""Models for the demo service."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel

__all__ = [
    "DemoItem",
    "Liveness",
    "DatabaseStatus",
    "MigrationResult",
    "ItemList",
    "DatabaseFailure",
    "MigrationFailure",
    "ErrorResponse",
]


# =============================================================================
# Database Models
# =============================================================================


class DemoItem(BaseModel):
    """Row of the demo_items table."""

    id: int
    label: str
    created_at: datetime


# =============================================================================
# API Response Models
# =============================================================================


class Liveness(BaseModel):
    """Response for GET /health."""

    status: Literal["ok"] = "ok"


class DatabaseStatus(BaseModel):
    """Response for GET /db."""

    ok: bool = True
    now: datetime


class MigrationResult(BaseModel):
    """Response for GET /migrate."""

    migrated: bool = True
    inserted: DemoItem


class ItemList(BaseModel):
    """Response for GET /items."""

    count: int
    items: list[DemoItem]


class DatabaseFailure(BaseModel):
    """Failure body for GET /db."""

    ok: bool = False
    error: str


class MigrationFailure(BaseModel):
    """Failure body for GET /migrate."""

    migrated: bool = False
    error: str


class ErrorResponse(BaseModel):
    """Failure body for GET /items."""

    error: str
