"""Shared FastAPI dependencies for the v1 routers."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gtm_workspace.core.database import get_session
from gtm_workspace.integrations.claude import ClaudeClient, get_claude
from gtm_workspace.services.enrichment import EntityEnrichmentEngine
from gtm_workspace.services.generation import GenerationGateway
from gtm_workspace.services.refinement import FieldRefinementEngine
from gtm_workspace.services.suggestions import SuggestionService
from gtm_workspace.services.workspace import WorkspaceService


async def get_generation_gateway(
    claude: ClaudeClient = Depends(get_claude),
) -> GenerationGateway:
    return GenerationGateway(claude)


async def get_refinement_engine(
    gateway: GenerationGateway = Depends(get_generation_gateway),
) -> FieldRefinementEngine:
    return FieldRefinementEngine(gateway)


async def get_enrichment_engine(
    gateway: GenerationGateway = Depends(get_generation_gateway),
) -> EntityEnrichmentEngine:
    return EntityEnrichmentEngine(gateway)


async def get_suggestion_service(
    gateway: GenerationGateway = Depends(get_generation_gateway),
) -> SuggestionService:
    return SuggestionService(gateway)


async def get_workspace_service(
    db: AsyncSession = Depends(get_session),
    refinement: FieldRefinementEngine = Depends(get_refinement_engine),
    enrichment: EntityEnrichmentEngine = Depends(get_enrichment_engine),
) -> WorkspaceService:
    return WorkspaceService(db, refinement=refinement, enrichment=enrichment)
