"""Workspaces API router.

REST endpoints for workspaces, their collaborators, the ICP editor and the
nested products, segments and personas. Handlers are thin: access checks,
validation, reconciliation and persistence live in WorkspaceService.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Query, status

from gtm_workspace.api.v1.dependencies import get_workspace_service
from gtm_workspace.core.auth import UserInfo, get_current_user
from gtm_workspace.core.logging import get_logger
from gtm_workspace.schemas.workspace import (
    CollaboratorAdd,
    EnrichmentVersionsEnvelope,
    EntityEnvelope,
    IcpUpdate,
    MessageEnvelope,
    WorkspaceCreate,
    WorkspaceEnvelope,
    WorkspaceListEnvelope,
    WorkspaceUpdate,
)
from gtm_workspace.services.workspace import WorkspaceService

logger = get_logger(__name__)

router = APIRouter(prefix="/workspaces", tags=["Workspaces"])

EnrichFlag = Query(False, description="Generate missing details for the new entity")
RefineFlag = Query(False, description="Polish submitted values before saving")


@router.post("", response_model=WorkspaceEnvelope, status_code=status.HTTP_201_CREATED)
async def create_workspace(
    data: WorkspaceCreate,
    user: UserInfo = Depends(get_current_user),
    service: WorkspaceService = Depends(get_workspace_service),
) -> WorkspaceEnvelope:
    """Create a workspace owned by the caller. The slug is derived from the name."""
    workspace = await service.create_workspace(data, user)
    return WorkspaceEnvelope(workspace=workspace)


@router.get("", response_model=WorkspaceListEnvelope)
async def list_workspaces(
    user: UserInfo = Depends(get_current_user),
    service: WorkspaceService = Depends(get_workspace_service),
) -> WorkspaceListEnvelope:
    """List workspaces the caller owns or collaborates on."""
    workspaces = await service.list_workspaces(user)
    return WorkspaceListEnvelope(workspaces=workspaces, total=len(workspaces))


@router.get("/user/{user_id}", response_model=WorkspaceListEnvelope)
async def list_user_workspaces(
    user_id: str,
    user: UserInfo = Depends(get_current_user),
    service: WorkspaceService = Depends(get_workspace_service),
) -> WorkspaceListEnvelope:
    workspaces = await service.list_workspaces_for_user(user_id, user)
    return WorkspaceListEnvelope(workspaces=workspaces, total=len(workspaces))


@router.get("/slug/{slug}", response_model=WorkspaceEnvelope)
async def get_workspace_by_slug(
    slug: str,
    user: UserInfo = Depends(get_current_user),
    service: WorkspaceService = Depends(get_workspace_service),
) -> WorkspaceEnvelope:
    return WorkspaceEnvelope(workspace=await service.get_workspace_by_slug(slug, user))


@router.put("/slug/{slug}/icp", response_model=WorkspaceEnvelope)
async def update_icp(
    slug: str,
    data: IcpUpdate,
    user: UserInfo = Depends(get_current_user),
    service: WorkspaceService = Depends(get_workspace_service),
) -> WorkspaceEnvelope:
    """Update the ICP fields, then regenerate the enrichment version set.

    Raises:
        HTTPException: 400 if a required field is missing or malformed.
    """
    return WorkspaceEnvelope(workspace=await service.update_icp(slug, data, user))


@router.post("/slug/{slug}/icp/re-enrich", response_model=EnrichmentVersionsEnvelope)
async def re_enrich_icp(
    slug: str,
    user: UserInfo = Depends(get_current_user),
    service: WorkspaceService = Depends(get_workspace_service),
) -> EnrichmentVersionsEnvelope:
    versions = await service.re_enrich(slug, user)
    return EnrichmentVersionsEnvelope(message="Re-enriched successfully", data=versions)


@router.get("/{workspace_id}", response_model=WorkspaceEnvelope)
async def get_workspace(
    workspace_id: str,
    user: UserInfo = Depends(get_current_user),
    service: WorkspaceService = Depends(get_workspace_service),
) -> WorkspaceEnvelope:
    return WorkspaceEnvelope(workspace=await service.get_workspace(workspace_id, user))


@router.patch("/{workspace_id}", response_model=WorkspaceEnvelope)
async def update_workspace(
    workspace_id: str,
    data: WorkspaceUpdate,
    user: UserInfo = Depends(get_current_user),
    service: WorkspaceService = Depends(get_workspace_service),
) -> WorkspaceEnvelope:
    """Update name and company profile. The slug is never changed."""
    return WorkspaceEnvelope(workspace=await service.update_workspace(workspace_id, data, user))


@router.delete("/{workspace_id}", response_model=MessageEnvelope)
async def delete_workspace(
    workspace_id: str,
    user: UserInfo = Depends(get_current_user),
    service: WorkspaceService = Depends(get_workspace_service),
) -> MessageEnvelope:
    """Delete a workspace. Owner only."""
    await service.delete_workspace(workspace_id, user)
    return MessageEnvelope(message="Workspace deleted")


@router.post("/{workspace_id}/collaborators", response_model=WorkspaceEnvelope)
async def add_collaborator(
    workspace_id: str,
    data: CollaboratorAdd,
    user: UserInfo = Depends(get_current_user),
    service: WorkspaceService = Depends(get_workspace_service),
) -> WorkspaceEnvelope:
    """Grant a user read/write access. Owner only."""
    workspace = await service.add_collaborator(workspace_id, data.user_id, user)
    return WorkspaceEnvelope(workspace=workspace)


@router.delete("/{workspace_id}/collaborators/{user_id}", response_model=WorkspaceEnvelope)
async def remove_collaborator(
    workspace_id: str,
    user_id: str,
    user: UserInfo = Depends(get_current_user),
    service: WorkspaceService = Depends(get_workspace_service),
) -> WorkspaceEnvelope:
    """Revoke a collaborator. Owner only."""
    workspace = await service.remove_collaborator(workspace_id, user_id, user)
    return WorkspaceEnvelope(workspace=workspace)


@router.post("/{workspace_id}/enhanced-icp", response_model=WorkspaceEnvelope)
async def save_enhanced_icp(
    workspace_id: str,
    payload: dict[str, Any] = Body(...),
    refine: bool = RefineFlag,
    user: UserInfo = Depends(get_current_user),
    service: WorkspaceService = Depends(get_workspace_service),
) -> WorkspaceEnvelope:
    """Bulk save of the ICP editor; a non-empty segments list replaces the stored one."""
    workspace = await service.save_enhanced_icp(workspace_id, payload, user, refine=refine)
    return WorkspaceEnvelope(workspace=workspace)


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


@router.post(
    "/{workspace_id}/products",
    response_model=EntityEnvelope,
    status_code=status.HTTP_201_CREATED,
)
async def add_product(
    workspace_id: str,
    body: dict[str, Any] = Body(...),
    enrich: bool = EnrichFlag,
    refine: bool = RefineFlag,
    user: UserInfo = Depends(get_current_user),
    service: WorkspaceService = Depends(get_workspace_service),
) -> EntityEnvelope:
    entity, workspace = await service.add_entity(
        workspace_id, "product", body, user, enrich=enrich, refine=refine
    )
    return EntityEnvelope(entity=entity, workspace=workspace)


@router.put("/{workspace_id}/products/{product_id}", response_model=EntityEnvelope)
async def update_product(
    workspace_id: str,
    product_id: str,
    body: dict[str, Any] = Body(...),
    refine: bool = RefineFlag,
    user: UserInfo = Depends(get_current_user),
    service: WorkspaceService = Depends(get_workspace_service),
) -> EntityEnvelope:
    entity, workspace = await service.update_entity(
        workspace_id, "product", product_id, body, user, refine=refine
    )
    return EntityEnvelope(entity=entity, workspace=workspace)


@router.delete("/{workspace_id}/products/{product_id}", response_model=EntityEnvelope)
async def delete_product(
    workspace_id: str,
    product_id: str,
    user: UserInfo = Depends(get_current_user),
    service: WorkspaceService = Depends(get_workspace_service),
) -> EntityEnvelope:
    workspace = await service.delete_entity(workspace_id, "product", product_id, user)
    return EntityEnvelope(workspace=workspace)


# ---------------------------------------------------------------------------
# Segments
# ---------------------------------------------------------------------------


@router.post(
    "/{workspace_id}/segments",
    response_model=EntityEnvelope,
    status_code=status.HTTP_201_CREATED,
)
async def add_segment(
    workspace_id: str,
    body: dict[str, Any] = Body(...),
    enrich: bool = EnrichFlag,
    refine: bool = RefineFlag,
    user: UserInfo = Depends(get_current_user),
    service: WorkspaceService = Depends(get_workspace_service),
) -> EntityEnvelope:
    entity, workspace = await service.add_entity(
        workspace_id, "segment", body, user, enrich=enrich, refine=refine
    )
    return EntityEnvelope(entity=entity, workspace=workspace)


@router.put("/{workspace_id}/segments/{segment_id}", response_model=EntityEnvelope)
async def update_segment(
    workspace_id: str,
    segment_id: str,
    body: dict[str, Any] = Body(...),
    refine: bool = RefineFlag,
    user: UserInfo = Depends(get_current_user),
    service: WorkspaceService = Depends(get_workspace_service),
) -> EntityEnvelope:
    entity, workspace = await service.update_entity(
        workspace_id, "segment", segment_id, body, user, refine=refine
    )
    return EntityEnvelope(entity=entity, workspace=workspace)


@router.delete("/{workspace_id}/segments/{segment_id}", response_model=EntityEnvelope)
async def delete_segment(
    workspace_id: str,
    segment_id: str,
    user: UserInfo = Depends(get_current_user),
    service: WorkspaceService = Depends(get_workspace_service),
) -> EntityEnvelope:
    """Delete a segment together with its personas."""
    workspace = await service.delete_entity(workspace_id, "segment", segment_id, user)
    return EntityEnvelope(workspace=workspace)


# ---------------------------------------------------------------------------
# Personas (owned by a segment)
# ---------------------------------------------------------------------------


@router.post(
    "/{workspace_id}/segments/{segment_id}/personas",
    response_model=EntityEnvelope,
    status_code=status.HTTP_201_CREATED,
)
async def add_persona(
    workspace_id: str,
    segment_id: str,
    body: dict[str, Any] = Body(...),
    enrich: bool = EnrichFlag,
    refine: bool = RefineFlag,
    user: UserInfo = Depends(get_current_user),
    service: WorkspaceService = Depends(get_workspace_service),
) -> EntityEnvelope:
    entity, workspace = await service.add_entity(
        workspace_id,
        "persona",
        body,
        user,
        segment_id=segment_id,
        enrich=enrich,
        refine=refine,
    )
    return EntityEnvelope(entity=entity, workspace=workspace)


@router.put(
    "/{workspace_id}/segments/{segment_id}/personas/{persona_id}",
    response_model=EntityEnvelope,
)
async def update_persona(
    workspace_id: str,
    segment_id: str,
    persona_id: str,
    body: dict[str, Any] = Body(...),
    refine: bool = RefineFlag,
    user: UserInfo = Depends(get_current_user),
    service: WorkspaceService = Depends(get_workspace_service),
) -> EntityEnvelope:
    entity, workspace = await service.update_entity(
        workspace_id,
        "persona",
        persona_id,
        body,
        user,
        segment_id=segment_id,
        refine=refine,
    )
    return EntityEnvelope(entity=entity, workspace=workspace)


@router.delete(
    "/{workspace_id}/segments/{segment_id}/personas/{persona_id}",
    response_model=EntityEnvelope,
)
async def delete_persona(
    workspace_id: str,
    segment_id: str,
    persona_id: str,
    user: UserInfo = Depends(get_current_user),
    service: WorkspaceService = Depends(get_workspace_service),
) -> EntityEnvelope:
    workspace = await service.delete_entity(
        workspace_id, "persona", persona_id, user, segment_id=segment_id
    )
    return EntityEnvelope(workspace=workspace)
