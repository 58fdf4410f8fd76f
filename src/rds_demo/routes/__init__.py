"""API routes for the demo service."""

from fastapi import APIRouter

from rds_demo.routes.items import router as items_router
from rds_demo.routes.probes import router as probes_router

router = APIRouter()
router.include_router(probes_router)
router.include_router(items_router)
