"""Demo item routes."""

import logging
from typing import Annotated

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from rds_demo.database import GatewayDep
from rds_demo.gateway import GatewayError, client_message
from rds_demo.models import ErrorResponse, ItemList, MigrationFailure, MigrationResult
from rds_demo.services.items import MAX_ITEMS

logger = logging.getLogger(__name__)

router = APIRouter(tags=["items"])

MIGRATION_LABEL = "hello-from-eb"


@router.get(
    "/migrate",
    response_model=MigrationResult,
    responses={500: {"model": MigrationFailure}},
)
async def migrate(gateway: GatewayDep) -> MigrationResult | JSONResponse:
    """Create the demo table if missing and insert one row."""
    try:
        inserted = await gateway.run_demo_migration(MIGRATION_LABEL)
    except GatewayError as e:
        logger.exception("Migration failed")
        return JSONResponse(
            status_code=500,
            content=MigrationFailure(error=client_message(e)).model_dump(),
        )
    return MigrationResult(inserted=inserted)


@router.get(
    "/items",
    response_model=ItemList,
    responses={500: {"model": ErrorResponse}},
)
async def list_items(
    gateway: GatewayDep,
    limit: Annotated[int, Query(ge=1, le=MAX_ITEMS)] = MAX_ITEMS,
) -> ItemList | JSONResponse:
    """List demo items, newest first."""
    try:
        return await gateway.list_demo_items(limit)
    except GatewayError as e:
        logger.exception("Listing items failed")
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error=client_message(e)).model_dump(),
        )
