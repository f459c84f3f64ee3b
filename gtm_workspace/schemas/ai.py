"""Pydantic schemas for the AI refinement, suggestion and enrichment endpoints."""

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from gtm_workspace.schemas.workspace import CamelModel


class RefineRequest(CamelModel):
    """Refine one field value."""

    field_type: str = Field(..., min_length=1, description="Refinement kind, e.g. productName")
    value: str | list[Any]
    context: dict[str, Any] = Field(default_factory=dict)


class RefineObjectRequest(CamelModel):
    """Refine every mapped field of a product, persona or segment."""

    object_type: Literal["product", "persona", "segment"]
    value: dict[str, Any]
    context: dict[str, Any] = Field(default_factory=dict)


class SuggestionRequest(CamelModel):
    """Suggest values for one ICP editor field."""

    field: str = Field(..., min_length=1)
    context: dict[str, Any] = Field(default_factory=dict)

    @property
    def domain(self) -> str:
        admin = self.context.get("admin")
        if isinstance(admin, dict) and isinstance(admin.get("domain"), str):
            return admin["domain"]
        company_domain = self.context.get("companyDomain")
        return company_domain if isinstance(company_domain, str) else ""


def _seed(value: str, label: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{label} is required")
    return value


class PersonaDetailsRequest(CamelModel):
    persona_title: str
    company_data: dict[str, Any] = Field(default_factory=dict)

    @field_validator("persona_title")
    @classmethod
    def validate_seed(cls, v: str) -> str:
        return _seed(v, "Persona title")


class SegmentDetailsRequest(CamelModel):
    segment_description: str
    company_data: dict[str, Any] = Field(default_factory=dict)

    @field_validator("segment_description")
    @classmethod
    def validate_seed(cls, v: str) -> str:
        return _seed(v, "Segment description")


class ProductDetailsRequest(CamelModel):
    product_name: str
    company_data: dict[str, Any] = Field(default_factory=dict)

    @field_validator("product_name")
    @classmethod
    def validate_seed(cls, v: str) -> str:
        return _seed(v, "Product name")


class RefineResponse(BaseModel):
    success: bool = True
    data: Any
    refined: bool


class SuggestionResponse(BaseModel):
    success: bool
    suggestions: list[str | dict[str, Any]] | str
    error: str | None = None


class EntityDetailsResponse(BaseModel):
    """Enrichment result; on failure ``data`` is the seed entity."""

    success: bool = True
    enriched: bool
    data: dict[str, Any]
    error: str | None = None
