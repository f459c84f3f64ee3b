"""Per-field suggestions for the ICP editor."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from gtm_workspace.core.config import get_settings
from gtm_workspace.core.logging import generation_logger, get_logger
from gtm_workspace.services.generation import GenerationGateway, GenerationOptions
from gtm_workspace.services.prompts import SUGGESTION_PROMPTS, render_prompt
from gtm_workspace.utils.llm_json import extract_json_array, parse_json_value
from gtm_workspace.utils.normalize import clean_text

logger = get_logger(__name__)


class UnknownSuggestionFieldError(ValueError):
    """Raised when a suggestion is requested for an unregistered field."""


@dataclass(frozen=True)
class Suggestion:
    """Suggested value(s) for one field."""

    field_type: str
    value: list[str | dict[str, Any]] | str
    success: bool
    error: str | None = None


def _clean_items(items: list[Any]) -> list[str | dict[str, Any]]:
    """Trimmed non-empty strings and objects (competitor records) with any text in them."""
    cleaned: list[str | dict[str, Any]] = []
    for item in items:
        if isinstance(item, str):
            text = clean_text(item)
            if text:
                cleaned.append(text)
        elif isinstance(item, Mapping):
            record = {
                str(key): clean_text(value) if isinstance(value, str) else value
                for key, value in item.items()
            }
            if any(value not in (None, "", [], {}) for value in record.values()):
                cleaned.append(record)
    return cleaned


class SuggestionService:
    """Generates suggested values from the domain and already-entered data."""

    def __init__(self, gateway: GenerationGateway) -> None:
        self._gateway = gateway
        settings = get_settings()
        self._options = GenerationOptions(
            max_tokens=settings.suggestion_max_tokens,
            temperature=settings.suggestion_temperature,
        )

    @staticmethod
    def supports(field_type: str) -> bool:
        return field_type in SUGGESTION_PROMPTS

    async def suggest(
        self,
        field_type: str,
        domain: str,
        cumulative: Mapping[str, Any] | None = None,
    ) -> Suggestion:
        """Suggest values for ``field_type``.

        Raises:
            UnknownSuggestionFieldError: If the field type has no prompt.
        """
        prompt_spec = SUGGESTION_PROMPTS.get(field_type)
        if prompt_spec is None:
            raise UnknownSuggestionFieldError(f"Unknown field type: {field_type}")

        prompt = render_prompt(
            prompt_spec.template,
            {**(cumulative or {}), "domain": domain},
            default="",
            defaults=prompt_spec.defaults,
        )
        empty: list[str | dict[str, Any]] | str = [] if prompt_spec.returns_list else ""

        result = await self._gateway.generate(prompt, self._options)
        if not result.ok:
            generation_logger.fallback("suggest", field_type, result.reason or "unknown")
            return Suggestion(field_type, empty, success=False, error=result.reason)

        if not prompt_spec.returns_list:
            return Suggestion(field_type, result.text, success=True)

        try:
            parsed = parse_json_value(result.text)
        except ValueError:
            try:
                parsed = extract_json_array(result.text)
            except ValueError:
                logger.warning(
                    "Suggestion response was not JSON, treating as single item",
                    extra={"field_type": field_type},
                )
                return Suggestion(field_type, [result.text], success=True)

        if not isinstance(parsed, list):
            return Suggestion(field_type, [result.text], success=True)
        return Suggestion(field_type, _clean_items(parsed), success=True)
