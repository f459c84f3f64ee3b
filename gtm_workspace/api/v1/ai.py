"""AI assistance API router.

Field refinement, per-field suggestions and entity enrichment for the ICP
editor. Generation failures degrade to the caller's own values: refinement
echoes the input, enrichment echoes the seed entity with ``enriched=false``.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from gtm_workspace.api.v1.dependencies import (
    get_enrichment_engine,
    get_refinement_engine,
    get_suggestion_service,
)
from gtm_workspace.core.auth import UserInfo, get_current_user
from gtm_workspace.core.logging import get_logger
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
from gtm_workspace.services.enrichment import EntityEnrichmentEngine
from gtm_workspace.services.refinement import FieldRefinementEngine
from gtm_workspace.services.suggestions import SuggestionService, UnknownSuggestionFieldError

logger = get_logger(__name__)

router = APIRouter(prefix="/ai", tags=["AI"])


@router.post("/refine", response_model=RefineResponse)
async def refine_field(
    data: RefineRequest,
    user: UserInfo = Depends(get_current_user),
    engine: FieldRefinementEngine = Depends(get_refinement_engine),
) -> RefineResponse:
    """Polish one value. Always succeeds; ``refined`` tells whether it changed."""
    outcome = await engine.refine(data.field_type, data.value, data.context)
    return RefineResponse(data=outcome.value, refined=outcome.refined)


@router.post("/refine-object", response_model=RefineResponse)
async def refine_object(
    data: RefineObjectRequest,
    user: UserInfo = Depends(get_current_user),
    engine: FieldRefinementEngine = Depends(get_refinement_engine),
) -> RefineResponse:
    refined = await engine.refine_object(data.object_type, data.value, data.context)
    return RefineResponse(data=refined, refined=refined != data.value)


@router.post("/suggestions", response_model=SuggestionResponse)
async def generate_suggestions(
    data: SuggestionRequest,
    user: UserInfo = Depends(get_current_user),
    service: SuggestionService = Depends(get_suggestion_service),
) -> SuggestionResponse:
    """Suggest values for one field from the domain and data entered so far.

    Raises:
        HTTPException: 400 if the field has no suggestion prompt.
    """
    try:
        suggestion = await service.suggest(data.field, data.domain, data.context)
    except UnknownSuggestionFieldError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e
    return SuggestionResponse(
        success=suggestion.success,
        suggestions=suggestion.value,
        error=suggestion.error,
    )


async def _details(
    engine: EntityEnrichmentEngine,
    kind: str,
    seed_name: str,
    seed_entity: dict,
    company_data: dict,
) -> EntityDetailsResponse:
    result = await engine.enrich(kind, seed_name, company_data)
    if not result.success:
        return EntityDetailsResponse(enriched=False, data=seed_entity, error=result.error)
    return EntityDetailsResponse(enriched=True, data={**seed_entity, **result.data})


@router.post("/persona-details", response_model=EntityDetailsResponse)
async def generate_persona_details(
    data: PersonaDetailsRequest,
    user: UserInfo = Depends(get_current_user),
    engine: EntityEnrichmentEngine = Depends(get_enrichment_engine),
) -> EntityDetailsResponse:
    return await _details(
        engine, "persona", data.persona_title, {"title": data.persona_title}, data.company_data
    )


@router.post("/segment-details", response_model=EntityDetailsResponse)
async def generate_segment_details(
    data: SegmentDetailsRequest,
    user: UserInfo = Depends(get_current_user),
    engine: EntityEnrichmentEngine = Depends(get_enrichment_engine),
) -> EntityDetailsResponse:
    return await _details(
        engine,
        "segment",
        data.segment_description,
        {"description": data.segment_description},
        data.company_data,
    )


@router.post("/product-details", response_model=EntityDetailsResponse)
async def generate_product_details(
    data: ProductDetailsRequest,
    user: UserInfo = Depends(get_current_user),
    engine: EntityEnrichmentEngine = Depends(get_enrichment_engine),
) -> EntityDetailsResponse:
    return await _details(
        engine, "product", data.product_name, {"name": data.product_name}, data.company_data
    )
