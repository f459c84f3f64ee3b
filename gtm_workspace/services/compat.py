"""Schema compatibility shim.

Workspace documents have gone through several shapes: flat string arrays
before structured products/segments/personas, personas at the top level
before they moved under segments, a single awareness level before a list of
tags, and ``problems``/``usps`` before ``problemsWithRootCauses``/
``uniqueSellingPoints``. This module turns any of those shapes into the one
canonical shape the reconciler understands. It runs on inbound payloads and
on stored documents as they are read; nothing outside this module deals
with legacy shapes.

When a payload carries both a legacy field and its replacement, the
replacement wins and the legacy value is discarded.
"""

import copy
import uuid
from collections.abc import Mapping
from typing import Any

from gtm_workspace.core.logging import get_logger
from gtm_workspace.utils.normalize import clean_string_list, clean_text, natural_key

logger = get_logger(__name__)

# Fields that were once scalars and are lists now.
_SCALAR_TO_LIST: Mapping[str, tuple[str, ...]] = {
    "product": ("clientTimeline", "roiRequirements", "salesDeckUrl", "pricingTiers"),
    "segment": ("awarenessLevel", "locations"),
    "persona": ("jobTitles",),
}

# (legacy, current) field pairs.
_LEGACY_ALIASES: Mapping[str, tuple[tuple[str, str], ...]] = {
    "product": (("problems", "problemsWithRootCauses"), ("usps", "uniqueSellingPoints")),
}

_OFFER_SALES_FIELDS = ("pricingTiers", "clientTimeline", "roiRequirements", "salesDeckUrl")

DEFAULT_PRODUCT_NAME = "Main Product"


def _as_list(value: Any) -> list[Any]:
    """Wrap a legacy scalar; blank or missing becomes an empty list."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        return [value] if value.strip() else []
    return [value]


def _structured(kind: str, item: Any) -> dict[str, Any] | None:
    """Turn a flat string entry into a structured entity dict."""
    if isinstance(item, Mapping):
        entity = dict(item)
        if "_id" in entity:
            legacy_id = entity.pop("_id")
            entity.setdefault("id", str(legacy_id))
        return entity
    text = clean_text(item)
    if not text:
        return None
    return {"title": text} if kind == "persona" else {"name": text}


def _normalize_entity(kind: str, entity: dict[str, Any], keep_legacy: bool) -> dict[str, Any]:
    for name in _SCALAR_TO_LIST.get(kind, ()):
        if name in entity:
            entity[name] = _as_list(entity[name])

    for legacy, current in _LEGACY_ALIASES.get(kind, ()):
        if legacy not in entity:
            continue
        if current not in entity:
            entity[current] = _as_list(entity[legacy])
        elif not keep_legacy and entity[legacy] != entity[current]:
            logger.debug(
                "Legacy field discarded in favour of current field",
                extra={"entity_kind": kind, "legacy_field": legacy, "current_field": current},
            )
        if not keep_legacy:
            del entity[legacy]

    if kind == "segment" and "personas" in entity:
        entity["personas"] = _normalize_list("persona", entity["personas"], keep_legacy)
    return entity


def _normalize_list(kind: str, items: Any, keep_legacy: bool) -> list[dict[str, Any]]:
    if items is None:
        return []
    result: list[dict[str, Any]] = []
    for item in _as_list(items):
        entity = _structured(kind, item)
        if entity is not None:
            result.append(_normalize_entity(kind, entity, keep_legacy))
    return result


def _normalize_competitors(items: Any) -> list[dict[str, Any]]:
    competitors: list[dict[str, Any]] = []
    for item in _as_list(items):
        if isinstance(item, Mapping):
            competitors.append(dict(item))
        elif clean_text(item):
            competitors.append({"name": clean_text(item), "url": ""})
    return competitors


def _segment_matches(segment: Mapping[str, Any], reference: str) -> bool:
    key = natural_key(reference)
    return bool(key) and (
        clean_text(segment.get("id")) == clean_text(reference)
        or natural_key(segment.get("name")) == key
    )


def _place_personas(
    document: dict[str, Any],
    stored_segments: list[Mapping[str, Any]],
) -> None:
    """Move top-level personas under their segment.

    A persona goes to the segment named by ``mappedSegment``/``segmentId``
    (looked up in the payload, then in the stored document), else to the
    first available segment. With no segment anywhere it stays top-level.
    """
    personas = document.get("personas")
    if not personas:
        return

    segments: list[dict[str, Any]] = document.get("segments") or []
    remaining: list[dict[str, Any]] = []

    def patch_for(stored_segment: Mapping[str, Any]) -> dict[str, Any]:
        """Payload entry addressing a stored segment, created on first use."""
        for segment in segments:
            if segment.get("id") and segment.get("id") == stored_segment.get("id"):
                return segment
        patch: dict[str, Any] = {"id": stored_segment.get("id"), "personas": []}
        if not patch["id"]:
            patch = {"name": stored_segment.get("name"), "personas": []}
        segments.append(patch)
        return patch

    def target_for(persona: Mapping[str, Any]) -> dict[str, Any] | None:
        reference = clean_text(persona.get("segmentId")) or clean_text(persona.get("mappedSegment"))
        if reference:
            for segment in segments:
                if _segment_matches(segment, reference):
                    return segment
            for stored_segment in stored_segments:
                if _segment_matches(stored_segment, reference):
                    return patch_for(stored_segment)
        if segments:
            return segments[0]
        if stored_segments:
            return patch_for(stored_segments[0])
        return None

    for persona in personas:
        target = target_for(persona)
        if target is None:
            remaining.append(persona)
            continue
        persona.pop("segmentId", None)
        target.setdefault("personas", []).append(persona)

    if segments:
        document["segments"] = segments
    if remaining:
        document["personas"] = remaining
    else:
        document.pop("personas", None)


def _fold_single_product(
    document: dict[str, Any],
    stored_products: list[Mapping[str, Any]],
    company_name: str | None,
) -> None:
    """Fold ``product`` and ``offerSales`` into a patch for products[0]."""
    product = document.pop("product", None)
    offer_sales = document.pop("offerSales", None)
    if not isinstance(product, Mapping) and not isinstance(offer_sales, Mapping):
        return

    patch: dict[str, Any] = dict(product) if isinstance(product, Mapping) else {}
    if isinstance(offer_sales, Mapping):
        for name in _OFFER_SALES_FIELDS:
            if name in offer_sales:
                patch[name] = offer_sales[name]
    patch = _normalize_entity("product", patch, keep_legacy=False)

    if stored_products and stored_products[0].get("id"):
        patch["id"] = stored_products[0]["id"]
        if "name" in patch and not clean_text(patch["name"]):
            # A blank name must not clear the stored product's name
            del patch["name"]
    elif not clean_text(patch.get("name")):
        patch["name"] = clean_text(company_name) or DEFAULT_PRODUCT_NAME

    products: list[dict[str, Any]] = document.get("products") or []
    for existing in products:
        if patch.get("id") and existing.get("id") == patch["id"]:
            existing.update(patch)
            break
    else:
        products.insert(0, patch)
    document["products"] = products


def normalize_payload(
    payload: Mapping[str, Any],
    stored: Mapping[str, Any] | None = None,
    company_name: str | None = None,
    mirror_challenges: bool = False,
) -> dict[str, Any]:
    """Normalize an inbound payload into the canonical document shape.

    Args:
        payload: Raw request payload (camelCase keys).
        stored: The stored canonical document, used to address products[0]
            and to place personas under stored segments.
        company_name: Name for a newly created single product.
        mirror_challenges: Copy persona ``challenges`` to ``painPoints`` when
            the persona carries no ``painPoints`` (bulk ICP editor shape).

    Returns:
        A new dict; ``payload`` is not modified.
    """
    document = copy.deepcopy(dict(payload))
    stored = stored or {}

    for kind, section in (("product", "products"), ("segment", "segments"), ("persona", "personas")):
        if section in document:
            document[section] = _normalize_list(kind, document[section], keep_legacy=False)

    if "competitors" in document:
        document["competitors"] = _normalize_competitors(document["competitors"])

    _fold_single_product(document, list(stored.get("products") or []), company_name)

    if mirror_challenges:
        for segment in document.get("segments") or []:
            for persona in segment.get("personas") or []:
                if "painPoints" not in persona and "challenges" in persona:
                    persona["painPoints"] = clean_string_list(persona["challenges"])

    _place_personas(document, [s for s in stored.get("segments") or [] if isinstance(s, Mapping)])
    return document


def _stable_id(kind: str, index: int, entity: Mapping[str, Any], parent: str = "") -> str:
    label = clean_text(entity.get("name")) or clean_text(entity.get("title"))
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"gtm:{parent}:{kind}:{index}:{label}"))


def normalize_document(document: Mapping[str, Any] | None) -> dict[str, Any]:
    """Read-path normalization of a stored document.

    Legacy scalars become lists, legacy aliases are read through into
    their current fields (the aliases themselves are kept, they are still
    dual-written), id-less entities get deterministic ids and top-level
    personas move under a segment when one exists.
    """
    result = copy.deepcopy(dict(document or {}))

    for kind, section in (("product", "products"), ("segment", "segments"), ("persona", "personas")):
        if section not in result:
            continue
        entities = _normalize_list(kind, result[section], keep_legacy=True)
        for index, entity in enumerate(entities):
            if not clean_text(entity.get("id")):
                entity["id"] = _stable_id(kind, index, entity)
            if kind == "segment":
                for p_index, persona in enumerate(entity.get("personas") or []):
                    if not clean_text(persona.get("id")):
                        persona["id"] = _stable_id("persona", p_index, persona, entity["id"])
        result[section] = entities

    if "competitors" in result:
        result["competitors"] = _normalize_competitors(result["competitors"])

    if result.get("personas") and result.get("segments"):
        _place_personas(result, [])
    return result
