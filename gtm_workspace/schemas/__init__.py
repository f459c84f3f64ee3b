"""Schemas layer - Pydantic request/response models."""

from gtm_workspace.schemas.ai import (
    EntityDetailsResponse,
    PersonaDetailsRequest,
    ProductDetailsRequest,
    RefineObjectRequest,
    RefineRequest,
    RefineResponse,
    SegmentDetailsRequest,
    SuggestionRequest,
    SuggestionResponse,
)
from gtm_workspace.schemas.workspace import (
    CollaboratorAdd,
    CompetitorRef,
    EntityEnvelope,
    EnrichmentVersionsEnvelope,
    IcpUpdate,
    MessageEnvelope,
    WorkspaceCreate,
    WorkspaceEnvelope,
    WorkspaceListEnvelope,
    WorkspaceResponse,
    WorkspaceUpdate,
)

__all__ = [
    "CollaboratorAdd",
    "CompetitorRef",
    "EnrichmentVersionsEnvelope",
    "EntityDetailsResponse",
    "EntityEnvelope",
    "IcpUpdate",
    "MessageEnvelope",
    "PersonaDetailsRequest",
    "ProductDetailsRequest",
    "RefineObjectRequest",
    "RefineRequest",
    "RefineResponse",
    "SegmentDetailsRequest",
    "SuggestionRequest",
    "SuggestionResponse",
    "WorkspaceCreate",
    "WorkspaceEnvelope",
    "WorkspaceListEnvelope",
    "WorkspaceResponse",
    "WorkspaceUpdate",
]
