"""API v1 router and endpoint organization."""

from fastapi import APIRouter

from gtm_workspace.api.v1 import ai, workspaces

router = APIRouter(tags=["v1"])

router.include_router(workspaces.router)
router.include_router(ai.router)
