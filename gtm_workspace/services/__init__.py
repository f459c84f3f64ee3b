"""Services layer - Business logic and orchestration.

Services coordinate between repositories, integrations, and other services
to implement business use cases. They contain no direct database or
external API access - that's delegated to repositories and integrations.
"""

from gtm_workspace.services.compat import normalize_document, normalize_payload
from gtm_workspace.services.enrichment import (
    EnrichmentResult,
    EntityEnrichmentEngine,
    fill_missing,
)
from gtm_workspace.services.generation import (
    GenerationGateway,
    GenerationOptions,
    GenerationResult,
)
from gtm_workspace.services.reconciliation import (
    reconcile,
    reconcile_entity,
    remove_entity,
)
from gtm_workspace.services.refinement import FieldRefinementEngine, RefinedValue
from gtm_workspace.services.suggestions import (
    Suggestion,
    SuggestionService,
    UnknownSuggestionFieldError,
)
from gtm_workspace.services.workspace import WorkspaceService

__all__ = [
    # Compatibility shim
    "normalize_document",
    "normalize_payload",
    # Generation
    "GenerationGateway",
    "GenerationOptions",
    "GenerationResult",
    # Refinement
    "FieldRefinementEngine",
    "RefinedValue",
    # Suggestions
    "Suggestion",
    "SuggestionService",
    "UnknownSuggestionFieldError",
    # Enrichment
    "EnrichmentResult",
    "EntityEnrichmentEngine",
    "fill_missing",
    # Reconciliation
    "reconcile",
    "reconcile_entity",
    "remove_entity",
    # Workspaces
    "WorkspaceService",
]
