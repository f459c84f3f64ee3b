"""Unit tests for the schema compatibility shim.

Tests cover:
- Flat string arrays becoming structured entities
- Legacy scalars becoming lists (awarenessLevel, jobTitles, offer fields)
- Legacy product aliases and precedence of the current field
- Folding the single product/offerSales sections into products[0]
- Placing top-level personas under their segment
- Read-path normalization of stored documents
"""

import copy

from gtm_workspace.services.compat import (
    DEFAULT_PRODUCT_NAME,
    normalize_document,
    normalize_payload,
)


class TestFlatArrays:
    def test_strings_become_entities(self) -> None:
        result = normalize_payload({"products": ["Ledger", "  ", None], "segments": ["Fintech"]})

        assert result["products"] == [{"name": "Ledger"}]
        assert result["segments"] == [{"name": "Fintech"}]

    def test_persona_strings_become_titles(self) -> None:
        result = normalize_payload({"personas": ["CFO"]})

        assert result["personas"] == [{"title": "CFO"}]

    def test_legacy_object_id_is_renamed(self) -> None:
        result = normalize_payload({"products": [{"_id": 42, "name": "Ledger"}]})

        assert result["products"] == [{"id": "42", "name": "Ledger"}]

    def test_competitor_strings_become_records(self) -> None:
        result = normalize_payload({"competitors": ["Rival", {"name": "Other", "url": "o.io"}]})

        assert result["competitors"] == [
            {"name": "Rival", "url": ""},
            {"name": "Other", "url": "o.io"},
        ]

    def test_payload_is_not_modified(self) -> None:
        payload = {"segments": [{"name": "Fintech", "awarenessLevel": "Solution aware"}]}
        before = copy.deepcopy(payload)

        normalize_payload(payload)

        assert payload == before


class TestScalarToList:
    def test_awareness_level_string_becomes_list(self) -> None:
        result = normalize_payload(
            {"segments": [{"name": "Fintech", "awarenessLevel": "Problem aware"}]}
        )

        assert result["segments"][0]["awarenessLevel"] == ["Problem aware"]

    def test_blank_awareness_level_becomes_empty_list(self) -> None:
        result = normalize_payload({"segments": [{"name": "Fintech", "awarenessLevel": " "}]})

        assert result["segments"][0]["awarenessLevel"] == []

    def test_persona_job_titles_under_segment(self) -> None:
        result = normalize_payload(
            {"segments": [{"name": "Fintech", "personas": [{"title": "CFO", "jobTitles": "Finance Lead"}]}]}
        )

        assert result["segments"][0]["personas"][0]["jobTitles"] == ["Finance Lead"]


class TestLegacyAliases:
    def test_legacy_field_read_into_current(self) -> None:
        result = normalize_payload({"products": [{"name": "Ledger", "problems": ["Errors"]}]})

        product = result["products"][0]
        assert product["problemsWithRootCauses"] == ["Errors"]
        assert "problems" not in product

    def test_current_field_wins_over_legacy(self) -> None:
        result = normalize_payload(
            {
                "products": [
                    {
                        "name": "Ledger",
                        "usps": ["Old USP"],
                        "uniqueSellingPoints": ["New USP"],
                    }
                ]
            }
        )

        product = result["products"][0]
        assert product["uniqueSellingPoints"] == ["New USP"]
        assert "usps" not in product


class TestSingleProductFold:
    def test_product_section_patches_first_stored_product(self) -> None:
        stored = {"products": [{"id": "p1", "name": "Ledger"}, {"id": "p2", "name": "Payroll"}]}

        result = normalize_payload(
            {
                "product": {"description": "GL automation", "problems": ["Manual entry"]},
                "offerSales": {"pricingTiers": "Starter $99", "unrelated": True},
            },
            stored=stored,
        )

        assert "product" not in result
        assert "offerSales" not in result
        assert result["products"] == [
            {
                "description": "GL automation",
                "problemsWithRootCauses": ["Manual entry"],
                "pricingTiers": ["Starter $99"],
                "id": "p1",
            }
        ]

    def test_blank_name_does_not_clear_stored_product(self) -> None:
        result = normalize_payload(
            {"product": {"name": "", "description": "New"}},
            stored={"products": [{"id": "p1", "name": "Ledger"}]},
        )

        assert "name" not in result["products"][0]

    def test_new_product_named_after_company(self) -> None:
        result = normalize_payload({"product": {"description": "x"}}, company_name="Acme")

        assert result["products"][0]["name"] == "Acme"

    def test_new_product_default_name(self) -> None:
        result = normalize_payload({"offerSales": {"clientTimeline": ["2 weeks"]}})

        assert result["products"][0]["name"] == DEFAULT_PRODUCT_NAME


class TestChallengesMirror:
    def test_challenges_copied_when_pain_points_absent(self) -> None:
        payload = {
            "segments": [
                {
                    "name": "Fintech",
                    "personas": [
                        {"title": "CFO", "challenges": ["Audit stress", ""]},
                        {"title": "CTO", "challenges": ["Legacy"], "painPoints": ["Security"]},
                    ],
                }
            ]
        }

        result = normalize_payload(payload, mirror_challenges=True)

        cfo, cto = result["segments"][0]["personas"]
        assert cfo["painPoints"] == ["Audit stress"]
        assert cto["painPoints"] == ["Security"]

    def test_not_mirrored_by_default(self) -> None:
        result = normalize_payload(
            {"segments": [{"name": "Fintech", "personas": [{"title": "CFO", "challenges": ["x"]}]}]}
        )

        assert "painPoints" not in result["segments"][0]["personas"][0]


class TestPersonaPlacement:
    def test_mapped_segment_in_payload(self) -> None:
        result = normalize_payload(
            {
                "segments": [{"name": "Fintech"}, {"name": "Healthcare"}],
                "personas": [{"title": "CMO", "mappedSegment": "healthcare"}],
            }
        )

        assert "personas" not in result
        assert "personas" not in result["segments"][0]
        assert result["segments"][1]["personas"][0]["title"] == "CMO"

    def test_segment_id_in_stored_document(self) -> None:
        stored = {"segments": [{"id": "s1", "name": "Fintech"}, {"id": "s2", "name": "Retail"}]}

        result = normalize_payload({"personas": [{"title": "Buyer", "segmentId": "s2"}]}, stored=stored)

        assert result["segments"] == [{"id": "s2", "personas": [{"title": "Buyer"}]}]

    def test_defaults_to_first_segment(self) -> None:
        result = normalize_payload(
            {"segments": ["Fintech", "Retail"], "personas": ["CFO"]}
        )

        assert result["segments"][0]["personas"] == [{"title": "CFO"}]

    def test_stays_top_level_without_segments(self) -> None:
        result = normalize_payload({"personas": ["CFO"]})

        assert result["personas"] == [{"title": "CFO"}]


class TestNormalizeDocument:
    def test_legacy_stored_document(self) -> None:
        stored = {
            "products": [{"name": "Ledger", "problems": ["Errors"], "salesDeckUrl": "deck.pdf"}],
            "segments": [{"name": "Fintech", "awarenessLevel": "Most aware"}],
            "personas": ["CFO"],
        }

        result = normalize_document(stored)

        product = result["products"][0]
        assert product["problemsWithRootCauses"] == ["Errors"]
        assert product["problems"] == ["Errors"]
        assert product["salesDeckUrl"] == ["deck.pdf"]
        segment = result["segments"][0]
        assert segment["awarenessLevel"] == ["Most aware"]
        assert [p["title"] for p in segment["personas"]] == ["CFO"]
        assert "personas" not in result

    def test_ids_are_stable_across_reads(self) -> None:
        stored = {"segments": [{"name": "Fintech", "personas": [{"title": "CFO"}]}]}

        first = normalize_document(stored)
        second = normalize_document(stored)

        assert first["segments"][0]["id"] == second["segments"][0]["id"]
        assert (
            first["segments"][0]["personas"][0]["id"]
            == second["segments"][0]["personas"][0]["id"]
        )
        assert "id" not in stored["segments"][0]

    def test_existing_ids_kept(self) -> None:
        result = normalize_document({"products": [{"id": "p1", "name": "Ledger"}]})

        assert result["products"][0]["id"] == "p1"

    def test_empty_document(self) -> None:
        assert normalize_document(None) == {}
