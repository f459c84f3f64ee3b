"""Workspace document reconciliation.

Merges an incoming partial payload (already normalized by
``services.compat``) onto the stored workspace document and returns the next
document state. Rules, applied uniformly at every depth:

- A key absent from the payload leaves the stored value untouched.
- A key present with an empty string/list (or null) clears the stored value.
- String lists drop null, non-string and blank entries; strings are trimmed.
- Only allow-listed fields are accepted; anything else is ignored.
- Sub-entity lists (products, segments, personas) are matched by ``id``,
  else by natural key (name, or title for personas); unmatched items are
  appended. Omission never deletes, except in sections the caller marks as
  replaced (bulk save), where the incoming list defines membership.
- New-shape fields are mirrored onto their legacy aliases.
- Personas with no title, name or job title are never persisted; the same
  goes for products and segments without a name.
- ``createdAt`` is stamped on creation and ``updatedAt`` whenever an entity's
  content actually changes, including through a nested child. Re-applying the
  same payload is a no-op.

Nothing here performs I/O.
"""

import math
import uuid
from collections.abc import Collection, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any

from gtm_workspace.core.logging import get_logger
from gtm_workspace.utils.normalize import clean_string_list, clean_text, natural_key

logger = get_logger(__name__)


class FieldKind(Enum):
    TEXT = "text"
    LIST = "list"
    INT = "int"
    NUMBER = "number"
    BOOL = "bool"
    OBJECT = "object"
    RECORDS = "records"
    ENTITIES = "entities"
    ALIAS = "alias"


@dataclass(frozen=True)
class FieldSpec:
    """How one field is normalized and merged."""

    kind: FieldKind
    fields: Mapping[str, "FieldSpec"] = field(default_factory=dict)
    entity: str | None = None


TEXT = FieldSpec(FieldKind.TEXT)
LIST = FieldSpec(FieldKind.LIST)
INT = FieldSpec(FieldKind.INT)
NUMBER = FieldSpec(FieldKind.NUMBER)
BOOL = FieldSpec(FieldKind.BOOL)
# Written only through dual-write; never accepted from a payload.
ALIAS = FieldSpec(FieldKind.ALIAS)


def _object(**fields: FieldSpec) -> FieldSpec:
    return FieldSpec(FieldKind.OBJECT, fields=MappingProxyType(fields))


def _records(*names: str) -> FieldSpec:
    return FieldSpec(FieldKind.RECORDS, fields=MappingProxyType({name: TEXT for name in names}))


def _entities(kind: str) -> FieldSpec:
    return FieldSpec(FieldKind.ENTITIES, entity=kind)


PRODUCT_FIELDS: Mapping[str, FieldSpec] = MappingProxyType(
    {
        "name": TEXT,
        "description": TEXT,
        "category": TEXT,
        "targetAudience": TEXT,
        "valueProposition": TEXT,
        "valuePropositionVariations": LIST,
        "problemsWithRootCauses": LIST,
        "problems": ALIAS,
        "features": LIST,
        "keyFeatures": LIST,
        "benefits": LIST,
        "businessOutcomes": LIST,
        "useCases": LIST,
        "competitors": LIST,
        "competitorAnalysis": _records("domain", "differentiation"),
        "uniqueSellingPoints": LIST,
        "usps": ALIAS,
        "competitiveAdvantages": LIST,
        "solution": TEXT,
        "whyNow": LIST,
        "urgencyConsequences": LIST,
        "pricing": TEXT,
        "pricingTiers": LIST,
        "clientTimeline": LIST,
        "roiRequirements": LIST,
        "salesDeckUrl": LIST,
        "implementation": _object(
            timeToValue=TEXT, complexity=TEXT, requirements=LIST, successFactors=LIST
        ),
        "status": TEXT,
        "priority": TEXT,
    }
)

PERSONA_FIELDS: Mapping[str, FieldSpec] = MappingProxyType(
    {
        "name": TEXT,
        "title": TEXT,
        "jobTitles": LIST,
        "department": TEXT,
        "departments": LIST,
        "seniority": TEXT,
        "industry": TEXT,
        "company": TEXT,
        "location": TEXT,
        "description": TEXT,
        "mappedSegment": TEXT,
        "valueProposition": TEXT,
        "specificCTA": TEXT,
        "primaryResponsibilities": LIST,
        "okrs": LIST,
        "painPoints": LIST,
        "goals": LIST,
        "responsibilities": LIST,
        "challenges": LIST,
        "decisionInfluence": TEXT,
        "budget": TEXT,
        "teamSize": TEXT,
        "channels": LIST,
        "objections": LIST,
        "triggers": LIST,
        "messaging": TEXT,
        "status": TEXT,
        "priority": TEXT,
        "contactInfo": _object(email=TEXT, phone=TEXT, linkedin=TEXT, location=TEXT),
        "demographics": _object(
            age=TEXT, experience=TEXT, education=TEXT, industry=TEXT, teamSize=TEXT, budget=TEXT
        ),
        "buyingBehavior": _object(
            researchTime=TEXT, decisionFactors=LIST, preferredChannels=LIST
        ),
    }
)

SEGMENT_FIELDS: Mapping[str, FieldSpec] = MappingProxyType(
    {
        "name": TEXT,
        "description": TEXT,
        "size": TEXT,
        "region": TEXT,
        "budget": TEXT,
        "focus": TEXT,
        "industry": TEXT,
        "companySize": TEXT,
        "employeeCount": TEXT,
        "idealEmployeeRange": _object(min=NUMBER, max=NUMBER),
        "revenue": TEXT,
        "geography": TEXT,
        "locations": LIST,
        "employees": TEXT,
        "marketSize": TEXT,
        "growthRate": TEXT,
        "customerCount": TEXT,
        "competitiveIntensity": TEXT,
        "characteristics": LIST,
        "industries": LIST,
        "companySizes": LIST,
        "technologies": LIST,
        "qualificationCriteria": LIST,
        "signals": LIST,
        "painPoints": LIST,
        "buyingProcesses": LIST,
        "firmographics": _records("label", "value"),
        "benefits": TEXT,
        "specificBenefits": LIST,
        "awarenessLevel": LIST,
        "ctaOptions": LIST,
        "qualification": _object(
            tier1Criteria=LIST,
            idealCriteria=LIST,
            lookalikeCompanies=LIST,
            disqualifyingCriteria=LIST,
        ),
        "buyingBehavior": _object(
            decisionTimeframe=TEXT, budgetRange=TEXT, decisionMakers=LIST, evaluationCriteria=LIST
        ),
        "priority": TEXT,
        "status": TEXT,
        "personas": _entities("persona"),
    }
)

DOCUMENT_FIELDS: Mapping[str, FieldSpec] = MappingProxyType(
    {
        "products": _entities("product"),
        "segments": _entities("segment"),
        "personas": _entities("persona"),
        "socialProof": _object(
            caseStudies=_records("url", "marketSegment", "title", "description"),
            testimonials=_records("content", "author", "company", "metrics", "title"),
        ),
        "outboundExperience": _object(successfulEmails=LIST, successfulCallScripts=LIST),
        "adminAccess": _object(
            emailSignatures=_records("firstName", "lastName", "title"),
            platformAccessGranted=BOOL,
        ),
        "numberOfSegments": INT,
        "useCases": LIST,
        "differentiation": TEXT,
        "competitors": _records("name", "url"),
    }
)

ENTITY_FIELDS: Mapping[str, Mapping[str, FieldSpec]] = MappingProxyType(
    {"product": PRODUCT_FIELDS, "segment": SEGMENT_FIELDS, "persona": PERSONA_FIELDS}
)

# (new field, legacy alias) pairs mirrored new -> old on write.
DUAL_WRITES: Mapping[str, tuple[tuple[str, str], ...]] = MappingProxyType(
    {
        "product": (("problemsWithRootCauses", "problems"), ("uniqueSellingPoints", "usps")),
        "persona": (("title", "name"),),
    }
)

ENTITY_DEFAULTS: Mapping[str, Mapping[str, Any]] = MappingProxyType(
    {
        "product": MappingProxyType({"status": "active", "priority": "medium"}),
        "segment": MappingProxyType({"status": "active", "priority": "medium", "personas": ()}),
        "persona": MappingProxyType(
            {"status": "active", "priority": "medium", "decisionInfluence": "Decision Maker"}
        ),
    }
)

RECOMMENDED_DECISION_INFLUENCE = frozenset(
    {"Decision Maker", "Champion", "End User", "Influencer", "Gatekeeper"}
)

_TIMESTAMP_FIELDS = ("createdAt", "updatedAt")


def timestamp(now: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp used for createdAt/updatedAt."""
    return (now or datetime.now(UTC)).astimezone(UTC).isoformat()


def entity_label(kind: str, entity: Mapping[str, Any]) -> str:
    """Display label used for admission and natural-key matching."""
    if kind == "persona":
        job_titles = clean_string_list(entity.get("jobTitles"))
        return (
            clean_text(entity.get("title"))
            or clean_text(entity.get("name"))
            or (job_titles[0] if job_titles else "")
        )
    return clean_text(entity.get("name"))


@dataclass
class _Pass:
    """State shared by one reconciliation pass."""

    stamp: str
    replace: Collection[str] = ()
    dropped: int = 0


def _content(entity: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in entity.items() if key not in _TIMESTAMP_FIELDS}


def _as_number(value: Any) -> int | float | None:
    """Numbers pass through; numeric strings are parsed; anything else is None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip().replace(",", "")
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def _normalize_value(
    spec: FieldSpec,
    incoming: Any,
    stored: Any,
    state: _Pass,
    replace_children: bool,
) -> Any:
    kind = spec.kind
    if kind is FieldKind.TEXT:
        if isinstance(incoming, (int, float)) and not isinstance(incoming, bool):
            return str(incoming)
        return clean_text(incoming)
    if kind is FieldKind.LIST:
        return clean_string_list(incoming)
    if kind in (FieldKind.INT, FieldKind.NUMBER):
        if incoming is None:
            return None
        number = _as_number(incoming)
        if number is None:
            return stored
        return int(number) if kind is FieldKind.INT else number
    if kind is FieldKind.BOOL:
        return incoming if isinstance(incoming, bool) else stored
    if kind is FieldKind.OBJECT:
        if incoming is None:
            return {}
        return _merge_fields(spec.fields, stored, incoming, state, replace_children)
    if kind is FieldKind.RECORDS:
        return _clean_records(spec.fields, incoming)
    if kind is FieldKind.ENTITIES:
        assert spec.entity is not None
        return _reconcile_collection(
            spec.entity, stored, incoming, state, replace=replace_children
        )
    raise ValueError(f"Unsupported field kind: {kind}")


def _clean_records(fields: Mapping[str, FieldSpec], incoming: Any) -> list[dict[str, str]]:
    """Trim record text fields and drop records with nothing in them."""
    if not isinstance(incoming, list):
        return []
    records: list[dict[str, str]] = []
    for item in incoming:
        if not isinstance(item, Mapping):
            continue
        record = {name: clean_text(item.get(name)) for name in fields if name in item}
        if any(record.values()):
            records.append(record)
    return records


def _merge_fields(
    fields: Mapping[str, FieldSpec],
    stored: Any,
    incoming: Any,
    state: _Pass,
    replace_children: bool,
) -> dict[str, Any]:
    """Apply every allow-listed key present in ``incoming`` onto ``stored``."""
    result = dict(stored) if isinstance(stored, Mapping) else {}
    if not isinstance(incoming, Mapping):
        return result
    for name, value in incoming.items():
        spec = fields.get(name)
        if spec is None or spec.kind is FieldKind.ALIAS:
            continue
        result[name] = _normalize_value(spec, value, result.get(name), state, replace_children)
    return result


def _reconcile_entity(
    kind: str,
    stored: Mapping[str, Any] | None,
    incoming: Mapping[str, Any],
    state: _Pass,
    replace_children: bool,
) -> dict[str, Any]:
    """Merge one sub-entity; stamps timestamps only on real changes."""
    if stored is None:
        base: dict[str, Any] = {
            key: list(value) if isinstance(value, tuple) else value
            for key, value in ENTITY_DEFAULTS.get(kind, {}).items()
        }
        entity_id = clean_text(incoming.get("id")) or str(uuid.uuid4())
        base["id"] = entity_id
    else:
        base = dict(stored)

    merged = _merge_fields(ENTITY_FIELDS[kind], base, incoming, state, replace_children)

    for source, alias in DUAL_WRITES.get(kind, ()):
        if source not in incoming:
            continue
        value = merged.get(source)
        if kind == "persona" and not value:
            continue
        merged[alias] = list(value) if isinstance(value, list) else value

    if kind == "persona":
        influence = merged.get("decisionInfluence")
        if influence and influence not in RECOMMENDED_DECISION_INFLUENCE:
            logger.info(
                "Persona decision influence outside recommended set",
                extra={"decision_influence": influence, "persona_id": merged.get("id")},
            )

    if stored is None:
        merged["createdAt"] = state.stamp
        merged["updatedAt"] = state.stamp
        return merged

    if _content(merged) == _content(stored):
        return dict(stored)

    merged.setdefault("createdAt", state.stamp)
    merged["updatedAt"] = state.stamp
    return merged


def _find_match(
    kind: str,
    candidate: Mapping[str, Any],
    stored_items: list[dict[str, Any]],
    claimed: set[int],
) -> int | None:
    incoming_id = clean_text(candidate.get("id"))
    if incoming_id:
        for index, item in enumerate(stored_items):
            if index not in claimed and clean_text(item.get("id")) == incoming_id:
                return index
        return None
    key = natural_key(entity_label(kind, candidate))
    if not key:
        return None
    for index, item in enumerate(stored_items):
        if index not in claimed and natural_key(entity_label(kind, item)) == key:
            return index
    return None


def _reconcile_collection(
    kind: str,
    stored: Any,
    incoming: Any,
    state: _Pass,
    replace: bool,
) -> list[dict[str, Any]]:
    """Merge a list of sub-entities by identity.

    In merge mode stored items keep their position and unmatched incoming
    items are appended. In replace mode the result holds exactly the
    admitted incoming items, in payload order, each merged onto its stored
    match so ids and createdAt survive.
    """
    stored_items = [dict(item) for item in stored or [] if isinstance(item, Mapping)]
    if incoming is None:
        incoming = []
    if not isinstance(incoming, list):
        return stored_items

    claimed: set[int] = set()
    updated: dict[int, dict[str, Any] | None] = {}
    appended: list[dict[str, Any]] = []
    ordered: list[dict[str, Any]] = []

    for candidate in incoming:
        if not isinstance(candidate, Mapping):
            continue
        index = _find_match(kind, candidate, stored_items, claimed)
        current = stored_items[index] if index is not None else None
        merged = _reconcile_entity(kind, current, candidate, state, replace)

        admitted = bool(entity_label(kind, merged))
        if not admitted:
            state.dropped += 1
            logger.debug(
                "Dropping unnamed entity",
                extra={"entity_kind": kind, "entity_id": merged.get("id")},
            )

        if index is not None:
            claimed.add(index)
            updated[index] = merged if admitted else None
        elif admitted:
            appended.append(merged)

        if admitted:
            ordered.append(merged)

    if replace:
        return ordered

    result: list[dict[str, Any]] = []
    for index, item in enumerate(stored_items):
        if index in updated:
            replacement = updated[index]
            if replacement is not None:
                result.append(replacement)
        else:
            result.append(item)
    return result + appended


def reconcile(
    stored: Mapping[str, Any] | None,
    incoming: Mapping[str, Any],
    now: datetime | None = None,
    replace: Collection[str] = (),
) -> dict[str, Any]:
    """Produce the next workspace document.

    Args:
        stored: Current canonical document (may be empty).
        incoming: Canonical-shaped partial payload.
        now: Clock override for timestamps.
        replace: Top-level entity sections whose incoming list replaces the
            stored list (bulk save). All other sections merge by identity.

    Returns:
        A new document; ``stored`` is not modified.
    """
    state = _Pass(stamp=timestamp(now), replace=frozenset(replace))
    document = dict(stored) if isinstance(stored, Mapping) else {}

    for name, value in incoming.items():
        spec = DOCUMENT_FIELDS.get(name)
        if spec is None:
            continue
        document[name] = _normalize_value(
            spec, value, document.get(name), state, replace_children=name in state.replace
        )

    if state.dropped:
        logger.info(
            "Reconciliation dropped unnamed entities",
            extra={"dropped_count": state.dropped},
        )
    return document


def reconcile_entity(
    kind: str,
    stored: Mapping[str, Any] | None,
    incoming: Mapping[str, Any],
    now: datetime | None = None,
) -> dict[str, Any]:
    """Merge a single product, segment or persona outside a document."""
    if kind not in ENTITY_FIELDS:
        raise ValueError(f"Unknown entity kind: {kind}")
    return _reconcile_entity(kind, stored, incoming, _Pass(stamp=timestamp(now)), False)


def find_entity(items: Any, entity_id: str) -> dict[str, Any] | None:
    """Return the entity with ``entity_id`` from a list, if present."""
    for item in items or []:
        if isinstance(item, Mapping) and item.get("id") == entity_id:
            return dict(item)
    return None


def remove_entity(
    document: Mapping[str, Any],
    section: str,
    entity_id: str,
    segment_id: str | None = None,
    now: datetime | None = None,
) -> dict[str, Any] | None:
    """Delete one sub-entity by id.

    ``section`` is "products", "segments" or "personas"; personas are removed
    from the segment ``segment_id`` (whose updatedAt is restamped). Returns
    the new document, or None when nothing matched.
    """
    result = dict(document)
    if section == "personas":
        segments = [dict(s) for s in result.get("segments") or [] if isinstance(s, Mapping)]
        for segment in segments:
            if segment.get("id") != segment_id:
                continue
            personas = segment.get("personas") or []
            kept = [p for p in personas if not (isinstance(p, Mapping) and p.get("id") == entity_id)]
            if len(kept) == len(personas):
                return None
            segment["personas"] = kept
            segment["updatedAt"] = timestamp(now)
            result["segments"] = segments
            return result
        return None

    items = result.get(section) or []
    kept = [item for item in items if not (isinstance(item, Mapping) and item.get("id") == entity_id)]
    if len(kept) == len(items):
        return None
    result[section] = kept
    return result
