"""Pydantic schemas for Workspace validation.

Request models cover the fixed-shape inputs (create, profile update, ICP
update, collaborators). Product, segment, persona and bulk ICP bodies are
accepted as plain JSON objects: their shape varies across client revisions
and is normalized by the compatibility shim, and the per-entity allow-lists
live in the reconciler.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model exchanging camelCase JSON, ignoring unknown keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _required_text(value: str, label: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{label} cannot be empty or whitespace only")
    return value


class WorkspaceCreate(CamelModel):
    """Schema for creating a new workspace."""

    name: str = Field(..., max_length=255, description="Workspace display name")
    company_name: str = Field(..., max_length=255, description="Company name")
    company_url: str = Field(..., max_length=2048, description="Company website URL")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _required_text(v, "Workspace name")

    @field_validator("company_name")
    @classmethod
    def validate_company_name(cls, v: str) -> str:
        return _required_text(v, "Company name")

    @field_validator("company_url")
    @classmethod
    def validate_company_url(cls, v: str) -> str:
        return _required_text(v, "Company URL")


class WorkspaceUpdate(CamelModel):
    """Schema for updating the workspace profile. The slug never changes."""

    name: str | None = Field(None, max_length=255)
    company_name: str | None = Field(None, max_length=255)
    company_url: str | None = Field(None, max_length=2048)
    domain: str | None = Field(None, max_length=255)

    @field_validator("name", "company_name", "company_url")
    @classmethod
    def validate_not_blank(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _required_text(v, "Value")

    @field_validator("domain")
    @classmethod
    def strip_domain(cls, v: str | None) -> str | None:
        return v.strip() if v is not None else v


class CollaboratorAdd(CamelModel):
    """Schema for adding a collaborator."""

    user_id: str = Field(..., min_length=1, max_length=255)

    @field_validator("user_id")
    @classmethod
    def validate_user_id(cls, v: str) -> str:
        return _required_text(v, "User ID")


class CompetitorRef(CamelModel):
    """Competitor entry in an ICP update; both fields must be strings."""

    name: StrictStr
    url: StrictStr


class IcpUpdate(CamelModel):
    """Schema for the ICP update.

    Products, personas, use cases and segments must be non-empty lists;
    items may be plain strings (older clients) or objects.
    """

    company_url: StrictStr
    products: list[Any] = Field(..., min_length=1)
    personas: list[Any] = Field(..., min_length=1)
    use_cases: list[Any] = Field(..., min_length=1)
    segments: list[Any] = Field(..., min_length=1)
    differentiation: StrictStr
    competitors: list[CompetitorRef]


class WorkspaceResponse(CamelModel):
    """Workspace columns as returned by the API; document sections are merged in."""

    id: str
    slug: str
    name: str
    owner_id: str
    collaborators: list[str] = Field(default_factory=list)
    company_name: str
    company_url: str
    domain: str | None = None
    icp_enrichment_versions: dict[str, Any] | None = None
    created_at: datetime
    updated_at: datetime


class WorkspaceEnvelope(BaseModel):
    success: bool = True
    workspace: dict[str, Any]


class WorkspaceListEnvelope(BaseModel):
    success: bool = True
    workspaces: list[dict[str, Any]]
    total: int


class EntityEnvelope(BaseModel):
    """A mutated sub-entity plus the workspace it now lives in."""

    success: bool = True
    entity: dict[str, Any] | None = None
    workspace: dict[str, Any]


class EnrichmentVersionsEnvelope(BaseModel):
    success: bool = True
    message: str
    data: dict[str, Any] | None


class MessageEnvelope(BaseModel):
    success: bool = True
    message: str
