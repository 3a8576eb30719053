"""API v1 router registration."""

from fastapi import APIRouter

from freight_intel.api.routes import (
    classifications,
    extractions,
    shipments,
    workflow_states,
)

v1_router = APIRouter(prefix="/v1")
v1_router.include_router(classifications.router)
v1_router.include_router(extractions.router)
v1_router.include_router(shipments.router)
v1_router.include_router(workflow_states.router)
