"""Workspace service: the request data flow around the workspace document.

Every mutating operation follows the same order:

1. load the workspace and check access (404/403 before anything else)
2. validate the payload (400 before any generation call)
3. normalize the payload and the stored document through the shim
4. optionally enrich and/or refine new values, concurrently
5. reconcile onto the stored document
6. persist the whole document once

Generation never fails a request: the engines return fallbacks and the
save proceeds with whatever values are available.
"""

import asyncio
from collections.abc import Mapping
from typing import Any, TypeVar
from uuid import uuid4

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from gtm_workspace.core.auth import UserInfo
from gtm_workspace.core.logging import get_logger
from gtm_workspace.models.workspace import Workspace
from gtm_workspace.repositories.workspace import WorkspaceRepository
from gtm_workspace.schemas.workspace import (
    IcpUpdate,
    WorkspaceCreate,
    WorkspaceResponse,
    WorkspaceUpdate,
)
from gtm_workspace.services.compat import normalize_document, normalize_payload
from gtm_workspace.services.enrichment import (
    EnrichmentResult,
    EntityEnrichmentEngine,
    fill_missing,
)
from gtm_workspace.services.reconciliation import (
    entity_label,
    find_entity,
    reconcile,
    reconcile_entity,
    remove_entity,
)
from gtm_workspace.services.refinement import FieldRefinementEngine
from gtm_workspace.utils.normalize import clean_text, slugify

logger = get_logger(__name__)

T = TypeVar("T")

ENTITY_SECTIONS: Mapping[str, str] = {
    "product": "products",
    "segment": "segments",
    "persona": "personas",
}

_REQUIRED_LABEL = {
    "product": "Product name",
    "segment": "Segment name",
    "persona": "Persona title",
}

# Sections a bulk enhanced-ICP save may write.
_BULK_SECTIONS = (
    "products",
    "segments",
    "personas",
    "adminAccess",
    "socialProof",
    "outboundExperience",
    "numberOfSegments",
)


def workspace_to_dict(workspace: Workspace) -> dict[str, Any]:
    """API representation: normalized document sections plus the columns."""
    columns = WorkspaceResponse(
        id=workspace.id,
        slug=workspace.slug,
        name=workspace.name,
        owner_id=workspace.owner_id,
        collaborators=workspace.collaborator_ids,
        company_name=workspace.company_name,
        company_url=workspace.company_url,
        domain=workspace.domain,
        icp_enrichment_versions=workspace.icp_enrichment_versions,
        created_at=workspace.created_at,
        updated_at=workspace.updated_at,
    )
    return {
        **normalize_document(workspace.document),
        **columns.model_dump(by_alias=True, mode="json"),
    }


def _entity_payload(kind: str, entity: Mapping[str, Any], segment_id: str | None) -> dict[str, Any]:
    """Wrap one entity as a document patch addressing its collection."""
    if kind == "persona":
        return {"segments": [{"id": segment_id, "personas": [dict(entity)]}]}
    return {ENTITY_SECTIONS[kind]: [dict(entity)]}


def _entity_items(document: Mapping[str, Any], kind: str, segment_id: str | None) -> list[Any]:
    if kind == "persona":
        segment = find_entity(document.get("segments"), segment_id or "")
        return (segment or {}).get("personas") or []
    return document.get(ENTITY_SECTIONS[kind]) or []


async def _resolved(value: T) -> T:
    return value


class WorkspaceService:
    """Business logic for workspaces and their nested entities."""

    def __init__(
        self,
        session: AsyncSession,
        refinement: FieldRefinementEngine | None = None,
        enrichment: EntityEnrichmentEngine | None = None,
    ) -> None:
        self.repository = WorkspaceRepository(session)
        self.refinement = refinement
        self.enrichment = enrichment

    # ------------------------------------------------------------------
    # Loading and access
    # ------------------------------------------------------------------

    @staticmethod
    def _authorize(workspace: Workspace, user: UserInfo, owner_only: bool = False) -> None:
        """Raise 403 unless the user may act on the workspace."""
        allowed = workspace.is_owner(user.id) if owner_only else workspace.is_member(user.id)
        if allowed:
            return
        logger.warning(
            "Workspace access denied",
            extra={
                "workspace_id": workspace.id,
                "user_id": user.id,
                "owner_only": owner_only,
            },
        )
        detail = (
            "Only the workspace owner can perform this action"
            if owner_only
            else "Not authorized to access this workspace"
        )
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)

    async def _load_by_id(
        self, workspace_id: str, user: UserInfo, owner_only: bool = False
    ) -> Workspace:
        workspace = await self.repository.find_by_id(workspace_id)
        if workspace is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Workspace with id '{workspace_id}' not found",
            )
        self._authorize(workspace, user, owner_only)
        return workspace

    async def _load_by_slug(self, slug: str, user: UserInfo) -> Workspace:
        workspace = await self.repository.find_by_slug(slug)
        if workspace is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Workspace with slug '{slug}' not found",
            )
        self._authorize(workspace, user)
        return workspace

    def _require_engines(self) -> tuple[FieldRefinementEngine, EntityEnrichmentEngine]:
        if self.refinement is None or self.enrichment is None:
            raise RuntimeError("WorkspaceService was created without generation engines")
        return self.refinement, self.enrichment

    # ------------------------------------------------------------------
    # Workspace lifecycle
    # ------------------------------------------------------------------

    async def _unique_slug(self, name: str) -> str:
        """Slugify the name, appending -1, -2... until unused."""
        base = slugify(name)
        slug = base
        count = 1
        while await self.repository.slug_exists(slug):
            slug = f"{base}-{count}"
            count += 1
        return slug

    async def create_workspace(self, data: WorkspaceCreate, user: UserInfo) -> dict[str, Any]:
        slug = await self._unique_slug(data.name)
        workspace = await self.repository.insert(
            slug=slug,
            name=data.name,
            owner_id=user.id,
            company_name=data.company_name,
            company_url=data.company_url,
        )
        return workspace_to_dict(workspace)

    async def list_workspaces(self, user: UserInfo) -> list[dict[str, Any]]:
        workspaces = await self.repository.find_many_by_owner_or_collaborator(user.id)
        return [workspace_to_dict(w) for w in workspaces]

    async def list_workspaces_for_user(self, user_id: str, user: UserInfo) -> list[dict[str, Any]]:
        """Listing by owner reference; only the user themself may ask."""
        if user_id != user.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not authorized to list another user's workspaces",
            )
        return await self.list_workspaces(user)

    async def get_workspace(self, workspace_id: str, user: UserInfo) -> dict[str, Any]:
        return workspace_to_dict(await self._load_by_id(workspace_id, user))

    async def get_workspace_by_slug(self, slug: str, user: UserInfo) -> dict[str, Any]:
        return workspace_to_dict(await self._load_by_slug(slug, user))

    async def update_workspace(
        self, workspace_id: str, data: WorkspaceUpdate, user: UserInfo
    ) -> dict[str, Any]:
        workspace = await self._load_by_id(workspace_id, user)
        for field, value in data.model_dump(exclude_unset=True).items():
            if field == "domain":
                value = value or None
            elif value is None:
                continue
            setattr(workspace, field, value)
        workspace.document = normalize_document(workspace.document)
        await self.repository.save(workspace)
        return workspace_to_dict(workspace)

    async def delete_workspace(self, workspace_id: str, user: UserInfo) -> None:
        await self._load_by_id(workspace_id, user, owner_only=True)
        await self.repository.delete_by_id(workspace_id)

    async def add_collaborator(
        self, workspace_id: str, collaborator_id: str, user: UserInfo
    ) -> dict[str, Any]:
        workspace = await self._load_by_id(workspace_id, user, owner_only=True)
        if workspace.is_owner(collaborator_id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="The owner cannot be added as a collaborator",
            )
        await self.repository.add_collaborator(workspace, collaborator_id)
        return workspace_to_dict(workspace)

    async def remove_collaborator(
        self, workspace_id: str, collaborator_id: str, user: UserInfo
    ) -> dict[str, Any]:
        workspace = await self._load_by_id(workspace_id, user, owner_only=True)
        if not await self.repository.remove_collaborator(workspace, collaborator_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"User '{collaborator_id}' is not a collaborator",
            )
        return workspace_to_dict(workspace)

    # ------------------------------------------------------------------
    # ICP
    # ------------------------------------------------------------------

    @staticmethod
    def _company_context(workspace: Workspace, document: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "companyName": workspace.company_name,
            "domain": workspace.domain or workspace.company_url,
            "products": document.get("products") or [],
        }

    @staticmethod
    def _icp_inputs(workspace: Workspace, document: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "companyName": workspace.company_name,
            "companyUrl": workspace.company_url,
            "products": document.get("products") or [],
            "competitors": document.get("competitors") or [],
            "segments": document.get("segments") or [],
        }

    async def update_icp(self, slug: str, data: IcpUpdate, user: UserInfo) -> dict[str, Any]:
        """Merge the ICP fields, then regenerate the enrichment version set."""
        _, enrichment = self._require_engines()
        workspace = await self._load_by_slug(slug, user)
        current = normalize_document(workspace.document)

        payload = normalize_payload(
            data.model_dump(by_alias=True),
            stored=current,
            company_name=workspace.company_name,
        )
        document = reconcile(current, payload)
        workspace.company_url = data.company_url.strip()
        workspace.document = document

        workspace.icp_enrichment_versions = await enrichment.generate_icp_versions(
            self._icp_inputs(workspace, document), workspace.id
        )
        await self.repository.save(workspace)

        logger.info(
            "ICP updated",
            extra={"workspace_id": workspace.id, "slug": slug, "user_id": user.id},
        )
        return workspace_to_dict(workspace)

    async def re_enrich(self, slug: str, user: UserInfo) -> dict[str, Any]:
        """Regenerate and store the enrichment version set."""
        _, enrichment = self._require_engines()
        workspace = await self._load_by_slug(slug, user)
        document = normalize_document(workspace.document)

        versions = await enrichment.generate_icp_versions(
            self._icp_inputs(workspace, document), workspace.id
        )
        workspace.document = document
        workspace.icp_enrichment_versions = versions
        await self.repository.save(workspace)
        return versions

    async def save_enhanced_icp(
        self,
        workspace_id: str,
        payload: Mapping[str, Any],
        user: UserInfo,
        refine: bool = False,
    ) -> dict[str, Any]:
        """Bulk save of the ICP editor.

        The single ``product``/``offerSales`` sections merge into the first
        product. A non-empty ``segments`` list replaces the stored segments
        (with their personas); entities matched by id or name keep their id
        and createdAt.
        Top-level personas are added to their segment and never replace
        anything.
        """
        workspace = await self._load_by_id(workspace_id, user)
        current = normalize_document(workspace.document)
        context = self._company_context(workspace, current)

        # Top-level personas are placed separately so they only ever merge
        sections = {key: value for key, value in payload.items() if key != "personas"}
        normalized = normalize_payload(
            sections,
            stored=current,
            company_name=workspace.company_name,
            mirror_challenges=True,
        )
        patch = {name: normalized[name] for name in _BULK_SECTIONS if name in normalized}
        replace: set[str] = set()
        if patch.get("segments"):
            replace.add("segments")
        else:
            patch.pop("segments", None)
        if refine:
            patch = await self._refine_sections(patch, context)
        document = reconcile(current, patch, replace=replace)

        if payload.get("personas"):
            placed = normalize_payload({"personas": payload["personas"]}, stored=document)
            if refine:
                placed = await self._refine_sections(placed, context)
            document = reconcile(document, placed)

        if "domain" in payload:
            workspace.domain = clean_text(payload.get("domain")) or None
        workspace.document = document
        await self.repository.save(workspace)

        logger.info(
            "Enhanced ICP saved",
            extra={
                "workspace_id": workspace.id,
                "sections": sorted(patch),
                "top_level_personas": bool(payload.get("personas")),
                "replaced": sorted(replace),
                "refined": refine,
            },
        )
        return workspace_to_dict(workspace)

    async def _refine_segment(
        self, segment: Mapping[str, Any], context: Mapping[str, Any]
    ) -> dict[str, Any]:
        refinement, _ = self._require_engines()
        personas = [p for p in segment.get("personas") or [] if isinstance(p, Mapping)]
        refined, *refined_personas = await asyncio.gather(
            refinement.refine_object("segment", segment, context),
            *(refinement.refine_object("persona", p, context) for p in personas),
        )
        if "personas" in segment:
            refined["personas"] = list(refined_personas)
        return refined

    async def _refine_sections(
        self, patch: dict[str, Any], context: Mapping[str, Any]
    ) -> dict[str, Any]:
        """Refine every product, segment and persona in a patch concurrently."""
        refinement, _ = self._require_engines()
        products = [p for p in patch.get("products") or [] if isinstance(p, Mapping)]
        segments = [s for s in patch.get("segments") or [] if isinstance(s, Mapping)]

        refined_products, refined_segments = await asyncio.gather(
            asyncio.gather(*(refinement.refine_object("product", p, context) for p in products)),
            asyncio.gather(*(self._refine_segment(s, context) for s in segments)),
        )
        refined = dict(patch)
        if "products" in patch:
            refined["products"] = list(refined_products)
        if "segments" in patch:
            refined["segments"] = list(refined_segments)
        return refined

    # ------------------------------------------------------------------
    # Products, segments and personas
    # ------------------------------------------------------------------

    @staticmethod
    def _inbound_entity(
        kind: str,
        body: Mapping[str, Any],
        current: Mapping[str, Any],
        segment_id: str | None,
    ) -> dict[str, Any]:
        """Normalize a single entity body through the shim."""
        normalized = normalize_payload(_entity_payload(kind, body, segment_id), stored=current)
        if kind == "persona":
            personas = normalized["segments"][0].get("personas") or [{}]
            return dict(personas[0])
        items = normalized.get(ENTITY_SECTIONS[kind]) or [{}]
        return dict(items[0])

    @staticmethod
    def _require_segment(current: Mapping[str, Any], segment_id: str | None) -> None:
        if find_entity(current.get("segments"), segment_id or "") is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Segment with id '{segment_id}' not found",
            )

    @staticmethod
    def _seed(kind: str, entity: Mapping[str, Any]) -> str:
        if kind == "segment":
            return clean_text(entity.get("description")) or entity_label(kind, entity)
        return entity_label(kind, entity)

    async def _augment(
        self,
        kind: str,
        entity: dict[str, Any],
        context: Mapping[str, Any],
        enrich: bool,
        refine: bool,
    ) -> dict[str, Any]:
        """Refine user values and enrich blank fields, concurrently.

        Enrichment only fills fields the user left absent or blank, so the two
        never write the same field.
        """
        if not enrich and not refine:
            return entity
        refinement, enrichment = self._require_engines()

        enriched: EnrichmentResult | None
        enriched, refined = await asyncio.gather(
            enrichment.enrich(kind, self._seed(kind, entity), context) if enrich else _resolved(None),
            refinement.refine_object(kind, entity, context) if refine else _resolved(entity),
        )
        if enriched is not None and enriched.success:
            return fill_missing(refined, enriched.data)
        return refined

    async def add_entity(
        self,
        workspace_id: str,
        kind: str,
        body: Mapping[str, Any],
        user: UserInfo,
        segment_id: str | None = None,
        enrich: bool = False,
        refine: bool = False,
    ) -> tuple[dict[str, Any] | None, dict[str, Any]]:
        """Add a product, segment or persona (under ``segment_id``).

        Returns:
            (created entity, workspace)
        """
        workspace = await self._load_by_id(workspace_id, user)
        current = normalize_document(workspace.document)
        if kind == "persona":
            self._require_segment(current, segment_id)

        entity = self._inbound_entity(kind, body, current, segment_id)
        if not entity_label(kind, entity):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{_REQUIRED_LABEL[kind]} is required",
            )
        entity["id"] = str(uuid4())

        entity = await self._augment(
            kind, entity, self._company_context(workspace, current), enrich, refine
        )
        document = reconcile(current, _entity_payload(kind, entity, segment_id))
        workspace.document = document
        await self.repository.save(workspace)

        logger.info(
            "Entity added",
            extra={
                "workspace_id": workspace.id,
                "entity_kind": kind,
                "entity_id": entity["id"],
                "enriched": enrich,
                "refined": refine,
            },
        )
        created = find_entity(_entity_items(document, kind, segment_id), entity["id"])
        return created, workspace_to_dict(workspace)

    async def update_entity(
        self,
        workspace_id: str,
        kind: str,
        entity_id: str,
        body: Mapping[str, Any],
        user: UserInfo,
        segment_id: str | None = None,
        refine: bool = False,
    ) -> tuple[dict[str, Any] | None, dict[str, Any]]:
        """Field-level merge of one entity; absent fields are untouched."""
        workspace = await self._load_by_id(workspace_id, user)
        current = normalize_document(workspace.document)
        if kind == "persona":
            self._require_segment(current, segment_id)

        existing = find_entity(_entity_items(current, kind, segment_id), entity_id)
        if existing is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"{kind.capitalize()} with id '{entity_id}' not found",
            )

        patch = self._inbound_entity(kind, body, current, segment_id)
        patch["id"] = entity_id
        if not entity_label(kind, reconcile_entity(kind, existing, patch)):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{_REQUIRED_LABEL[kind]} cannot be cleared",
            )

        if refine:
            patch = await self._augment(
                kind, patch, self._company_context(workspace, current), False, True
            )
        document = reconcile(current, _entity_payload(kind, patch, segment_id))
        workspace.document = document
        await self.repository.save(workspace)

        updated = find_entity(_entity_items(document, kind, segment_id), entity_id)
        return updated, workspace_to_dict(workspace)

    async def delete_entity(
        self,
        workspace_id: str,
        kind: str,
        entity_id: str,
        user: UserInfo,
        segment_id: str | None = None,
    ) -> dict[str, Any]:
        workspace = await self._load_by_id(workspace_id, user)
        current = normalize_document(workspace.document)
        if kind == "persona":
            self._require_segment(current, segment_id)

        document = remove_entity(current, ENTITY_SECTIONS[kind], entity_id, segment_id)
        if document is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"{kind.capitalize()} with id '{entity_id}' not found",
            )
        workspace.document = document
        await self.repository.save(workspace)

        logger.info(
            "Entity deleted",
            extra={"workspace_id": workspace.id, "entity_kind": kind, "entity_id": entity_id},
        )
        return workspace_to_dict(workspace)
