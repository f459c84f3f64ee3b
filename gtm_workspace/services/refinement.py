"""Field refinement engine.

Polishes user-supplied values through the generation gateway. Refinement is
an enhancement, never a dependency: every public method returns a usable
value and no generation failure escapes this module.
"""

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from gtm_workspace.core.config import get_settings
from gtm_workspace.core.logging import generation_logger, get_logger
from gtm_workspace.services.generation import GenerationGateway, GenerationOptions
from gtm_workspace.services.prompts import (
    OBJECT_REFINEMENT_FIELDS,
    REFINEMENT_PROMPTS,
    RefinementPrompt,
    render_prompt,
)
from gtm_workspace.utils.llm_json import extract_json_array, parse_json_value
from gtm_workspace.utils.normalize import clean_string_list

logger = get_logger(__name__)


@dataclass(frozen=True)
class RefinedValue:
    """A refinement outcome. ``value`` is always safe to store."""

    value: Any
    refined: bool
    reason: str | None = None


def is_blank(value: Any) -> bool:
    """True for None, blank strings and lists with no non-blank strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, list):
        return not clean_string_list(value)
    return False


class FieldRefinementEngine:
    """Refines scalar and list values by semantic field kind."""

    def __init__(self, gateway: GenerationGateway) -> None:
        self._gateway = gateway
        settings = get_settings()
        self._options = GenerationOptions(
            max_tokens=settings.refinement_max_tokens,
            temperature=settings.refinement_temperature,
        )

    async def refine(
        self,
        field_kind: str,
        value: Any,
        context: Mapping[str, Any] | None = None,
    ) -> RefinedValue:
        """Refine one value.

        Args:
            field_kind: Key into the refinement prompt registry.
            value: A string or a list of strings.
            context: Open key/value bag interpolated into the prompt.

        Returns:
            RefinedValue; on any failure ``value`` is the original input.
        """
        if is_blank(value):
            return RefinedValue(value=value, refined=False, reason="blank input")

        prompt_spec = REFINEMENT_PROMPTS.get(field_kind)
        if prompt_spec is None:
            logger.warning(
                "No refinement prompt for field kind",
                extra={"field_kind": field_kind},
            )
            return RefinedValue(value=value, refined=False, reason="unknown field kind")

        ctx = dict(context or {})
        if prompt_spec.returns_list:
            return await self._refine_list(field_kind, prompt_spec, value, ctx)
        if isinstance(value, list):
            return await self._refine_each(field_kind, value, ctx)
        return await self._refine_scalar(field_kind, prompt_spec, value, ctx)

    async def _refine_scalar(
        self,
        field_kind: str,
        prompt_spec: RefinementPrompt,
        value: Any,
        ctx: dict[str, Any],
    ) -> RefinedValue:
        prompt = render_prompt(prompt_spec.template, {**ctx, "value": str(value).strip()})
        result = await self._gateway.generate(prompt, self._options)
        if not result.ok:
            generation_logger.fallback("refine", field_kind, result.reason or "unknown")
            return RefinedValue(value=value, refined=False, reason=result.reason)
        return RefinedValue(value=result.text, refined=True)

    async def _refine_each(
        self, field_kind: str, values: list[Any], ctx: dict[str, Any]
    ) -> RefinedValue:
        """Apply a scalar kind to every entry of a list, concurrently."""
        items = clean_string_list(values)
        outcomes = await asyncio.gather(
            *(self.refine(field_kind, item, ctx) for item in items)
        )
        return RefinedValue(
            value=[outcome.value for outcome in outcomes],
            refined=any(outcome.refined for outcome in outcomes),
        )

    async def _refine_list(
        self,
        field_kind: str,
        prompt_spec: RefinementPrompt,
        value: Any,
        ctx: dict[str, Any],
    ) -> RefinedValue:
        original = value if isinstance(value, list) else [value]
        items = clean_string_list(original)
        numbered = "\n".join(f"{index}. {item}" for index, item in enumerate(items, start=1))
        prompt = render_prompt(prompt_spec.template, {**ctx, "numberedItems": numbered})

        result = await self._gateway.generate(prompt, self._options)
        if not result.ok:
            generation_logger.fallback("refine", field_kind, result.reason or "unknown")
            return RefinedValue(value=original, refined=False, reason=result.reason)

        try:
            parsed = parse_json_value(result.text)
        except ValueError:
            parsed = None
            try:
                parsed = extract_json_array(result.text)
            except ValueError:
                generation_logger.fallback("refine", field_kind, "unparseable array response")
                return RefinedValue(
                    value=original, refined=False, reason="unparseable array response"
                )

        if not isinstance(parsed, list):
            # Valid JSON but not a list: keep the text as a single item
            return RefinedValue(value=[result.text], refined=True)

        cleaned = clean_string_list(parsed)
        if not cleaned:
            generation_logger.fallback("refine", field_kind, "empty array response")
            return RefinedValue(value=original, refined=False, reason="empty array response")
        return RefinedValue(value=cleaned, refined=True)

    async def refine_object(
        self,
        object_kind: str,
        obj: Mapping[str, Any],
        context: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Refine every mapped field of a product, persona or segment.

        Fields that are absent or blank are left alone. The input mapping is
        not modified; a new dict is returned.
        """
        refined = dict(obj)
        field_kinds = OBJECT_REFINEMENT_FIELDS.get(object_kind)
        if not field_kinds:
            return refined

        owner_name = obj.get("name") or obj.get("title") or ""
        fields = [name for name in field_kinds if not is_blank(obj.get(name))]
        outcomes = await asyncio.gather(
            *(
                self.refine(
                    field_kinds[name],
                    obj[name],
                    {**(context or {}), "itemType": name, f"{object_kind}Name": owner_name},
                )
                for name in fields
            )
        )
        for name, outcome in zip(fields, outcomes, strict=True):
            refined[name] = outcome.value

        logger.debug(
            "Object refinement complete",
            extra={
                "object_kind": object_kind,
                "field_count": len(fields),
                "refined_count": sum(1 for outcome in outcomes if outcome.refined),
            },
        )
        return refined
