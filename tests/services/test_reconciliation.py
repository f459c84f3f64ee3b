"""Unit tests for workspace document reconciliation.

Tests cover:
- Absent keys preserve, empty values clear
- String list cleaning and the field allow-list
- Sub-entity identity (id, then natural key), append-only merge
- Replace mode for bulk saves
- Dual-write of new fields onto legacy aliases
- Admission of unnamed entities
- createdAt/updatedAt stamping and idempotence
- Single-entity removal
"""

import copy
from datetime import UTC, datetime, timedelta

import pytest

from gtm_workspace.services.reconciliation import (
    entity_label,
    find_entity,
    reconcile,
    reconcile_entity,
    remove_entity,
    timestamp,
)

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
T1 = T0 + timedelta(hours=1)


@pytest.fixture
def stored_document() -> dict:
    """A canonical document with one product and one segment holding a persona."""
    stamp = timestamp(T0)
    return {
        "products": [
            {
                "id": "p1",
                "name": "Ledger",
                "features": ["Auto-reconcile"],
                "status": "active",
                "priority": "medium",
                "createdAt": stamp,
                "updatedAt": stamp,
            }
        ],
        "segments": [
            {
                "id": "s1",
                "name": "Fintech",
                "status": "active",
                "priority": "medium",
                "personas": [
                    {
                        "id": "pe1",
                        "title": "CFO",
                        "name": "CFO",
                        "goals": ["Faster close"],
                        "createdAt": stamp,
                        "updatedAt": stamp,
                    }
                ],
                "createdAt": stamp,
                "updatedAt": stamp,
            }
        ],
        "useCases": ["Month-end close"],
        "differentiation": "Built for finance teams",
    }


class TestTopLevelFields:
    """Absent vs empty semantics at the document level."""

    def test_absent_key_preserves_stored_value(self, stored_document: dict) -> None:
        result = reconcile(stored_document, {"differentiation": "Faster than spreadsheets"})

        assert result["useCases"] == ["Month-end close"]
        assert result["differentiation"] == "Faster than spreadsheets"
        assert result["products"] == stored_document["products"]

    def test_empty_values_clear(self, stored_document: dict) -> None:
        result = reconcile(stored_document, {"useCases": [], "differentiation": ""})

        assert result["useCases"] == []
        assert result["differentiation"] == ""

    def test_string_lists_are_cleaned(self) -> None:
        result = reconcile({}, {"useCases": ["  Audit prep ", None, "", "   ", 7, "Close"]})

        assert result["useCases"] == ["Audit prep", "Close"]

    def test_unknown_fields_are_ignored(self) -> None:
        result = reconcile({}, {"bogus": "x", "products": [{"name": "Ledger", "hack": True}]})

        assert "bogus" not in result
        assert "hack" not in result["products"][0]

    def test_records_are_trimmed_and_empty_ones_dropped(self) -> None:
        result = reconcile(
            {},
            {"competitors": [{"name": " Rival ", "url": ""}, {"name": "", "url": " "}]},
        )

        assert result["competitors"] == [{"name": "Rival", "url": ""}]

    def test_integer_section(self) -> None:
        assert reconcile({}, {"numberOfSegments": 3.0})["numberOfSegments"] == 3

    def test_numeric_strings_are_parsed(self) -> None:
        result = reconcile({}, {"numberOfSegments": " 4 "})

        assert result["numberOfSegments"] == 4

    def test_unparseable_number_keeps_stored_value(self) -> None:
        result = reconcile({"numberOfSegments": 2}, {"numberOfSegments": "a few"})

        assert result["numberOfSegments"] == 2

    def test_null_number_clears(self) -> None:
        result = reconcile({"numberOfSegments": 2}, {"numberOfSegments": None})

        assert result["numberOfSegments"] is None

    def test_employee_range_accepts_numeric_strings(self, stored_document: dict) -> None:
        stored_document["segments"][0]["idealEmployeeRange"] = {"min": 10, "max": 200}

        result = reconcile(
            stored_document,
            {"segments": [{"id": "s1", "idealEmployeeRange": {"min": "50", "max": "many"}}]},
        )

        assert result["segments"][0]["idealEmployeeRange"] == {"min": 50, "max": 200}

    def test_boolean_accepts_only_real_booleans(self) -> None:
        stored = {"adminAccess": {"platformAccessGranted": True}}

        kept = reconcile(stored, {"adminAccess": {"platformAccessGranted": "false"}})
        revoked = reconcile(stored, {"adminAccess": {"platformAccessGranted": False}})

        assert kept["adminAccess"]["platformAccessGranted"] is True
        assert revoked["adminAccess"]["platformAccessGranted"] is False

    def test_stored_document_is_not_modified(self, stored_document: dict) -> None:
        before = copy.deepcopy(stored_document)

        reconcile(stored_document, {"products": [{"id": "p1", "features": []}]}, now=T1)

        assert stored_document == before


class TestEntityIdentity:
    """Sub-entities merge by id, else by natural key."""

    def test_match_by_id_merges_fields(self, stored_document: dict) -> None:
        result = reconcile(
            stored_document, {"products": [{"id": "p1", "description": "GL automation"}]}, now=T1
        )

        (product,) = result["products"]
        assert product["id"] == "p1"
        assert product["name"] == "Ledger"
        assert product["features"] == ["Auto-reconcile"]
        assert product["description"] == "GL automation"

    def test_match_by_natural_key(self, stored_document: dict) -> None:
        result = reconcile(
            stored_document, {"products": [{"name": "  LEDGER ", "pricing": "$99"}]}, now=T1
        )

        assert len(result["products"]) == 1
        assert result["products"][0]["id"] == "p1"
        assert result["products"][0]["pricing"] == "$99"

    def test_unknown_id_does_not_fall_back_to_name(self, stored_document: dict) -> None:
        result = reconcile(
            stored_document, {"products": [{"id": "p2", "name": "Ledger"}]}, now=T1
        )

        assert [p["id"] for p in result["products"]] == ["p1", "p2"]

    def test_unmatched_items_are_appended_and_omission_keeps(
        self, stored_document: dict
    ) -> None:
        result = reconcile(stored_document, {"products": [{"name": "Payroll"}]}, now=T1)

        assert [p["name"] for p in result["products"]] == ["Ledger", "Payroll"]

    def test_persona_matched_by_title(self, stored_document: dict) -> None:
        result = reconcile(
            stored_document,
            {"segments": [{"id": "s1", "personas": [{"title": "cfo", "okrs": ["DSO < 30"]}]}]},
            now=T1,
        )

        (persona,) = result["segments"][0]["personas"]
        assert persona["id"] == "pe1"
        assert persona["goals"] == ["Faster close"]
        assert persona["okrs"] == ["DSO < 30"]

    def test_nested_objects_merge_key_by_key(self) -> None:
        stored = reconcile({}, {"personas": [{"title": "CFO", "demographics": {"age": "45"}}]}, now=T0)

        result = reconcile(
            stored,
            {"personas": [{"title": "CFO", "demographics": {"education": "MBA"}}]},
            now=T1,
        )

        assert result["personas"][0]["demographics"] == {"age": "45", "education": "MBA"}


class TestReplaceMode:
    """Sections marked as replaced take their membership from the payload."""

    def test_replace_drops_omitted_and_keeps_matched_identity(self) -> None:
        stored = reconcile(
            {}, {"segments": [{"name": "Fintech"}, {"name": "Healthcare"}]}, now=T0
        )
        healthcare = stored["segments"][1]

        result = reconcile(
            stored,
            {"segments": [{"name": "Healthcare", "size": "Large"}, {"name": "Retail"}]},
            now=T1,
            replace={"segments"},
        )

        assert [s["name"] for s in result["segments"]] == ["Healthcare", "Retail"]
        assert result["segments"][0]["id"] == healthcare["id"]
        assert result["segments"][0]["createdAt"] == healthcare["createdAt"]
        assert result["segments"][0]["updatedAt"] == timestamp(T1)

    def test_replace_applies_to_named_sections_only(self, stored_document: dict) -> None:
        result = reconcile(
            stored_document,
            {"products": [{"name": "Payroll"}], "segments": [{"name": "Retail"}]},
            now=T1,
            replace={"segments"},
        )

        assert [p["name"] for p in result["products"]] == ["Ledger", "Payroll"]
        assert [s["name"] for s in result["segments"]] == ["Retail"]


class TestDualWrite:
    """New-shape fields are mirrored onto their legacy aliases."""

    def test_product_aliases(self) -> None:
        result = reconcile(
            {},
            {
                "products": [
                    {
                        "name": "Ledger",
                        "problemsWithRootCauses": ["Manual entry causes errors"],
                        "uniqueSellingPoints": ["Native ERP sync"],
                    }
                ]
            },
        )

        product = result["products"][0]
        assert product["problems"] == ["Manual entry causes errors"]
        assert product["usps"] == ["Native ERP sync"]

    def test_alias_not_accepted_from_payload(self) -> None:
        result = reconcile({}, {"products": [{"name": "Ledger", "problems": ["legacy"]}]})

        assert "problems" not in result["products"][0]

    def test_persona_title_mirrored_to_name(self) -> None:
        result = reconcile({}, {"personas": [{"title": "VP Finance"}]})

        assert result["personas"][0]["name"] == "VP Finance"


class TestAdmission:
    """Unnamed entities are never persisted."""

    def test_persona_without_title_is_dropped(self, stored_document: dict) -> None:
        result = reconcile(
            stored_document,
            {"segments": [{"id": "s1", "personas": [{"goals": ["Grow"]}]}]},
            now=T1,
        )

        assert [p["id"] for p in result["segments"][0]["personas"]] == ["pe1"]

    def test_persona_with_job_title_only_is_admitted(self) -> None:
        result = reconcile({}, {"personas": [{"jobTitles": ["", "Controller"]}]})

        (persona,) = result["personas"]
        assert entity_label("persona", persona) == "Controller"

    def test_clearing_a_name_removes_the_entity(self, stored_document: dict) -> None:
        result = reconcile(stored_document, {"products": [{"id": "p1", "name": ""}]}, now=T1)

        assert result["products"] == []

    def test_nameless_segment_dropped(self) -> None:
        result = reconcile({}, {"segments": [{"description": "No name"}]})

        assert result["segments"] == []


class TestTimestamps:
    """createdAt on creation, updatedAt on real change only."""

    def test_new_entity_gets_defaults_and_timestamps(self) -> None:
        result = reconcile({}, {"segments": [{"name": "Fintech"}]}, now=T0)

        segment = result["segments"][0]
        assert segment["id"]
        assert segment["status"] == "active"
        assert segment["priority"] == "medium"
        assert segment["personas"] == []
        assert segment["createdAt"] == segment["updatedAt"] == timestamp(T0)

    def test_new_persona_default_influence(self) -> None:
        result = reconcile({}, {"personas": [{"title": "CFO"}]})

        assert result["personas"][0]["decisionInfluence"] == "Decision Maker"

    def test_reapplying_same_payload_is_noop(self) -> None:
        payload = {"products": [{"name": "Ledger", "features": ["Sync"]}]}
        first = reconcile({}, payload, now=T0)

        second = reconcile(first, payload, now=T1)

        assert second == first

    def test_change_restamps_updated_at_only(self, stored_document: dict) -> None:
        result = reconcile(
            stored_document, {"products": [{"id": "p1", "features": ["New"]}]}, now=T1
        )

        product = result["products"][0]
        assert product["createdAt"] == timestamp(T0)
        assert product["updatedAt"] == timestamp(T1)

    def test_nested_persona_change_restamps_segment(self, stored_document: dict) -> None:
        result = reconcile(
            stored_document,
            {"segments": [{"id": "s1", "personas": [{"id": "pe1", "goals": ["Audit ready"]}]}]},
            now=T1,
        )

        segment = result["segments"][0]
        assert segment["updatedAt"] == timestamp(T1)
        assert segment["personas"][0]["updatedAt"] == timestamp(T1)
        assert segment["personas"][0]["goals"] == ["Audit ready"]


class TestReconcileEntity:
    def test_merges_single_entity(self) -> None:
        stored = {"id": "p1", "name": "Ledger", "features": ["A"]}

        merged = reconcile_entity("product", stored, {"features": ["A", "B"]}, now=T1)

        assert merged["features"] == ["A", "B"]
        assert merged["updatedAt"] == timestamp(T1)

    def test_unknown_kind_raises(self) -> None:
        with pytest.raises(ValueError):
            reconcile_entity("company", None, {"name": "x"})


class TestRemoveEntity:
    def test_remove_product(self, stored_document: dict) -> None:
        result = remove_entity(stored_document, "products", "p1")

        assert result is not None
        assert result["products"] == []
        assert len(stored_document["products"]) == 1

    def test_remove_segment_takes_personas_with_it(self, stored_document: dict) -> None:
        result = remove_entity(stored_document, "segments", "s1")

        assert result is not None
        assert result["segments"] == []

    def test_remove_persona_restamps_segment(self, stored_document: dict) -> None:
        result = remove_entity(stored_document, "personas", "pe1", segment_id="s1", now=T1)

        assert result is not None
        segment = find_entity(result["segments"], "s1")
        assert segment is not None
        assert segment["personas"] == []
        assert segment["updatedAt"] == timestamp(T1)

    def test_missing_id_returns_none(self, stored_document: dict) -> None:
        assert remove_entity(stored_document, "products", "nope") is None
        assert remove_entity(stored_document, "personas", "pe1", segment_id="nope") is None
