"""Entity enrichment engine.

Asks the generation gateway for a fixed JSON shape per entity kind, salvages
the JSON out of whatever text comes back, conforms it to that shape and
bounds every array to ENRICHMENT_ARRAY_LIMIT items. Failures are returned as
tagged results; nothing here raises for generation or parse problems.

Also produces the ICP enrichment version set: one GTM summary per style
variant, generated concurrently.
"""

import asyncio
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from gtm_workspace.core.config import get_settings
from gtm_workspace.core.logging import generation_logger, get_logger
from gtm_workspace.services.generation import GenerationGateway, GenerationOptions
from gtm_workspace.services.prompts import (
    ENRICHMENT_ARRAY_LIMIT,
    ENTITY_PROMPTS,
    ICP_ENRICHMENT_TEMPLATE,
    ICP_STYLE_VARIANTS,
    render_prompt,
)
from gtm_workspace.utils.llm_json import extract_json_object
from gtm_workspace.utils.normalize import clean_string_list, clean_text

logger = get_logger(__name__)

ENTITY_KINDS = frozenset(ENTITY_PROMPTS)

# Enrichment output keys that differ from the canonical entity field names.
_ENTITY_FIELD_RENAMES: Mapping[str, Mapping[str, str]] = {
    "product": {"problems": "problemsWithRootCauses", "usps": "uniqueSellingPoints"},
}


@dataclass
class EnrichmentResult:
    """Result of enriching one entity."""

    success: bool
    entity_kind: str
    data: dict[str, Any] = field(default_factory=dict)
    error: str | None = None


def _scalar_text(value: Any) -> str:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return clean_text(value)


def conform_to_schema(schema: Mapping[str, Any], raw: Any) -> dict[str, Any]:
    """Project ``raw`` onto ``schema``.

    Tuple placeholders in the schema are arrays: their values are cleaned to
    non-blank strings and truncated to ENRICHMENT_ARRAY_LIMIT. Mapping
    placeholders recurse. Everything else is a string. Keys not in the
    schema are dropped and missing keys take their empty default.
    """
    source = raw if isinstance(raw, Mapping) else {}
    conformed: dict[str, Any] = {}
    for key, placeholder in schema.items():
        value = source.get(key)
        if isinstance(placeholder, tuple):
            conformed[key] = clean_string_list(value)[:ENRICHMENT_ARRAY_LIMIT]
        elif isinstance(placeholder, Mapping):
            conformed[key] = conform_to_schema(placeholder, value)
        else:
            conformed[key] = _scalar_text(value)
    return conformed


def as_entity_fields(entity_kind: str, data: Mapping[str, Any]) -> dict[str, Any]:
    """Rename enrichment keys to canonical entity field names."""
    renames = _ENTITY_FIELD_RENAMES.get(entity_kind, {})
    return {renames.get(key, key): value for key, value in data.items()}


def fill_missing(entity: Mapping[str, Any], enriched: Mapping[str, Any]) -> dict[str, Any]:
    """Overlay enrichment output onto an entity without overwriting user input.

    A field is filled only when it is absent or blank on ``entity``; nested
    objects are filled key by key.
    """
    merged = dict(entity)
    for key, value in enriched.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = fill_missing(current, value)
        elif _is_empty(current):
            merged[key] = value
    return merged


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, list):
        return all(_is_empty(item) for item in value)
    if isinstance(value, Mapping):
        return not value
    return False


def _names(items: Any) -> list[str]:
    """Display names from a list of strings or entity dicts."""
    if not isinstance(items, list):
        return []
    names: list[str] = []
    for item in items:
        if isinstance(item, Mapping):
            name = clean_text(item.get("name")) or clean_text(item.get("title"))
        else:
            name = clean_text(item)
        if name:
            names.append(name)
    return names


class EntityEnrichmentEngine:
    """Generates structured detail for products, personas and segments."""

    def __init__(self, gateway: GenerationGateway) -> None:
        self._gateway = gateway
        settings = get_settings()
        self._options = GenerationOptions(
            max_tokens=settings.enrichment_max_tokens,
            temperature=settings.enrichment_temperature,
        )
        self._icp_options = GenerationOptions(
            max_tokens=settings.icp_enrichment_max_tokens,
            temperature=settings.enrichment_temperature,
        )

    async def enrich(
        self,
        entity_kind: str,
        seed_name: str,
        company_context: Mapping[str, Any] | None = None,
    ) -> EnrichmentResult:
        """Enrich one entity.

        Args:
            entity_kind: "product", "persona" or "segment".
            seed_name: Name, title or description the user supplied.
            company_context: companyName, products, industry.

        Returns:
            EnrichmentResult. On failure ``data`` is empty and callers
            must fall back to their seed entity.
        """
        prompt_spec = ENTITY_PROMPTS.get(entity_kind)
        if prompt_spec is None:
            return EnrichmentResult(False, entity_kind, error=f"Unknown entity kind: {entity_kind}")
        if not clean_text(seed_name):
            return EnrichmentResult(False, entity_kind, error="Seed name is blank")

        context = dict(company_context or {})
        prompt = prompt_spec.render(
            {
                **context,
                "seedName": seed_name.strip(),
                "products": _names(context.get("products")),
            }
        )

        subject = f"{entity_kind}: {seed_name}"
        result = await self._gateway.generate(prompt, self._options)
        if not result.ok:
            generation_logger.fallback("enrich", subject, result.reason or "unknown")
            return EnrichmentResult(False, entity_kind, error=result.reason)

        try:
            raw = extract_json_object(result.text)
        except ValueError as e:
            generation_logger.fallback("enrich", subject, f"unparseable: {e}")
            return EnrichmentResult(False, entity_kind, error="Failed to parse enrichment response")

        data = as_entity_fields(entity_kind, conform_to_schema(prompt_spec.schema, raw))
        logger.info(
            "Entity enriched",
            extra={
                "entity_kind": entity_kind,
                "seed_name": seed_name[:200],
                "duration_ms": round(result.duration_ms, 2),
            },
        )
        return EnrichmentResult(True, entity_kind, data=data)

    async def _icp_variant(self, variant: int, inputs: Mapping[str, Any]) -> dict[str, Any] | None:
        prompt = render_prompt(
            ICP_ENRICHMENT_TEMPLATE,
            {**inputs, "styleVariant": ICP_STYLE_VARIANTS[variant - 1]},
        )
        result = await self._gateway.generate(prompt, self._icp_options)
        if not result.ok:
            generation_logger.fallback("icp", f"variant {variant}", result.reason or "unknown")
            return None
        try:
            return extract_json_object(result.text)
        except ValueError as e:
            generation_logger.fallback("icp", f"variant {variant}", f"unparseable: {e}")
            return None

    async def generate_icp_versions(
        self,
        workspace: Mapping[str, Any],
        workspace_id: str | None = None,
    ) -> dict[str, dict[str, Any] | None]:
        """Generate one GTM summary per style variant.

        The returned map always has one key per variant ("1".."4"); a variant
        whose call or parse failed maps to None.
        """
        start_time = time.monotonic()
        inputs = {
            "companyName": workspace.get("companyName"),
            "companyUrl": workspace.get("companyUrl"),
            "products": _names(workspace.get("products")),
            "competitors": _names(workspace.get("competitors")),
            "segments": _names(workspace.get("segments")),
        }
        variants = range(1, len(ICP_STYLE_VARIANTS) + 1)
        results = await asyncio.gather(*(self._icp_variant(v, inputs) for v in variants))
        versions = {str(v): data for v, data in zip(variants, results, strict=True)}

        generation_logger.icp_versions_complete(
            workspace_id,
            succeeded=sum(1 for data in results if data is not None),
            total=len(results),
            duration_ms=(time.monotonic() - start_time) * 1000,
        )
        return versions
