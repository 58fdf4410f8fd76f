"""Probe routes: landing page, liveness and database connectivity."""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse, PlainTextResponse

from rds_demo.database import GatewayDep
from rds_demo.gateway import CONNECTION_FAILED, GatewayError
from rds_demo.models import DatabaseFailure, DatabaseStatus, Liveness

logger = logging.getLogger(__name__)

router = APIRouter(tags=["probes"])

LANDING_TEXT = (
    "Hello from rds-demo!\n"
    "Routes:\n"
    "  /health    -> 200 OK for load balancer health checks\n"
    "  /db        -> test DB connectivity (SELECT NOW())\n"
    "  /migrate   -> create demo table and insert a row\n"
    "  /items     -> list rows from demo table\n"
)


@router.get("/", response_class=PlainTextResponse)
async def landing() -> PlainTextResponse:
    """Describe the available routes."""
    return PlainTextResponse(LANDING_TEXT)


@router.get("/health")
async def health(gateway: GatewayDep) -> Liveness:
    """Liveness probe; independent of database availability."""
    return gateway.check_liveness()


@router.get(
    "/db",
    response_model=DatabaseStatus,
    responses={500: {"model": DatabaseFailure}},
)
async def database_status(gateway: GatewayDep) -> DatabaseStatus | JSONResponse:
    """Check that a pooled connection can reach the database."""
    try:
        now = await gateway.check_database_connectivity()
    except GatewayError:
        logger.exception("DB connectivity check failed")
        return JSONResponse(
            status_code=500,
            content=DatabaseFailure(error=CONNECTION_FAILED).model_dump(),
        )
    return DatabaseStatus(now=now)
