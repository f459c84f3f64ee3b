"""Tests for the product, segment and persona endpoints.

Tests cover:
- Add/update/delete for each entity kind
- Field-level merge on update (absent fields untouched)
- Required labels on add and update
- Enrichment filling only blank fields, refinement on add/update
- Legacy entity bodies
- 403/404 handling and validation ahead of generation
"""

import pytest
from httpx import AsyncClient

from tests.conftest import ENRICHED_PERSONA, as_user, gtm_responder


@pytest.fixture
async def workspace_id(create_workspace) -> str:
    workspace = await create_workspace()
    return workspace["id"]


@pytest.fixture
async def segment_id(async_client: AsyncClient, workspace_id: str) -> str:
    response = await async_client.post(
        f"/api/v1/workspaces/{workspace_id}/segments", json={"name": "Fintech"}
    )
    return response.json()["entity"]["id"]


class TestProducts:
    """Tests for /api/v1/workspaces/{id}/products."""

    @pytest.mark.asyncio
    async def test_add_product(self, async_client: AsyncClient, workspace_id: str) -> None:
        response = await async_client.post(
            f"/api/v1/workspaces/{workspace_id}/products",
            json={"name": " Ledger ", "features": ["Sync", ""], "unknownField": "x"},
        )

        assert response.status_code == 201
        data = response.json()
        product = data["entity"]
        assert product["id"]
        assert product["name"] == "Ledger"
        assert product["features"] == ["Sync"]
        assert "unknownField" not in product
        assert product["createdAt"] == product["updatedAt"]
        assert data["workspace"]["products"] == [product]

    @pytest.mark.asyncio
    async def test_add_product_requires_name(
        self, async_client: AsyncClient, workspace_id: str, mock_claude
    ) -> None:
        mock_claude.responder = gtm_responder

        response = await async_client.post(
            f"/api/v1/workspaces/{workspace_id}/products?enrich=true&refine=true",
            json={"name": "  ", "features": ["Sync"]},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Product name is required"
        assert mock_claude.prompts == []

    @pytest.mark.asyncio
    async def test_update_merges_fields(
        self, async_client: AsyncClient, workspace_id: str
    ) -> None:
        added = await async_client.post(
            f"/api/v1/workspaces/{workspace_id}/products",
            json={"name": "Ledger", "features": ["Sync"]},
        )
        product_id = added.json()["entity"]["id"]

        response = await async_client.put(
            f"/api/v1/workspaces/{workspace_id}/products/{product_id}",
            json={"description": "GL automation"},
        )

        assert response.status_code == 200
        product = response.json()["entity"]
        assert product["id"] == product_id
        assert product["name"] == "Ledger"
        assert product["features"] == ["Sync"]
        assert product["description"] == "GL automation"

    @pytest.mark.asyncio
    async def test_update_cannot_clear_name(
        self, async_client: AsyncClient, workspace_id: str
    ) -> None:
        added = await async_client.post(
            f"/api/v1/workspaces/{workspace_id}/products", json={"name": "Ledger"}
        )
        product_id = added.json()["entity"]["id"]

        response = await async_client.put(
            f"/api/v1/workspaces/{workspace_id}/products/{product_id}", json={"name": ""}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Product name cannot be cleared"

    @pytest.mark.asyncio
    async def test_update_unknown_product(
        self, async_client: AsyncClient, workspace_id: str
    ) -> None:
        response = await async_client.put(
            f"/api/v1/workspaces/{workspace_id}/products/nope", json={"description": "x"}
        )

        assert response.status_code == 404
        assert response.json()["error"] == "Product with id 'nope' not found"

    @pytest.mark.asyncio
    async def test_delete_product(self, async_client: AsyncClient, workspace_id: str) -> None:
        added = await async_client.post(
            f"/api/v1/workspaces/{workspace_id}/products", json={"name": "Ledger"}
        )
        product_id = added.json()["entity"]["id"]

        response = await async_client.delete(
            f"/api/v1/workspaces/{workspace_id}/products/{product_id}"
        )
        again = await async_client.delete(
            f"/api/v1/workspaces/{workspace_id}/products/{product_id}"
        )

        assert response.status_code == 200
        assert response.json()["entity"] is None
        assert response.json()["workspace"]["products"] == []
        assert again.status_code == 404

    @pytest.mark.asyncio
    async def test_legacy_body_fields(self, async_client: AsyncClient, workspace_id: str) -> None:
        response = await async_client.post(
            f"/api/v1/workspaces/{workspace_id}/products",
            json={"name": "Ledger", "problems": ["Errors"], "usps": ["Fast"]},
        )

        product = response.json()["entity"]
        assert product["problemsWithRootCauses"] == ["Errors"]
        assert product["uniqueSellingPoints"] == ["Fast"]
        assert product["problems"] == ["Errors"]
        assert product["usps"] == ["Fast"]

    @pytest.mark.asyncio
    async def test_enrich_fills_blank_fields_only(
        self, async_client: AsyncClient, workspace_id: str, mock_claude
    ) -> None:
        mock_claude.responder = gtm_responder

        response = await async_client.post(
            f"/api/v1/workspaces/{workspace_id}/products?enrich=true",
            json={"name": "Ledger", "features": ["Bank sync"]},
        )

        assert response.status_code == 201
        product = response.json()["entity"]
        assert product["features"] == ["Bank sync"]
        assert product["problemsWithRootCauses"] == ["Manual entry"]
        assert product["uniqueSellingPoints"] == ["ERP sync"]
        assert '"Ledger"' in mock_claude.prompts[0]

    @pytest.mark.asyncio
    async def test_enrich_failure_still_saves(
        self, async_client: AsyncClient, workspace_id: str, mock_claude
    ) -> None:
        mock_claude.fail()

        response = await async_client.post(
            f"/api/v1/workspaces/{workspace_id}/products?enrich=true", json={"name": "Ledger"}
        )

        assert response.status_code == 201
        product = response.json()["entity"]
        assert product["name"] == "Ledger"
        assert "features" not in product

    @pytest.mark.asyncio
    async def test_refine_on_update_touches_submitted_fields(
        self, async_client: AsyncClient, workspace_id: str, mock_claude
    ) -> None:
        added = await async_client.post(
            f"/api/v1/workspaces/{workspace_id}/products", json={"name": "Ledger"}
        )
        product_id = added.json()["entity"]["id"]
        mock_claude.responder = gtm_responder

        response = await async_client.put(
            f"/api/v1/workspaces/{workspace_id}/products/{product_id}?refine=true",
            json={"description": "does ledgers", "benefits": ["saves time"]},
        )

        product = response.json()["entity"]
        assert product["name"] == "Ledger"
        assert product["description"] == "Polished value"
        assert product["benefits"] == ["Polished item"]


class TestSegments:
    """Tests for /api/v1/workspaces/{id}/segments."""

    @pytest.mark.asyncio
    async def test_add_segment_defaults(
        self, async_client: AsyncClient, workspace_id: str
    ) -> None:
        response = await async_client.post(
            f"/api/v1/workspaces/{workspace_id}/segments",
            json={"name": "Fintech", "awarenessLevel": "Problem aware"},
        )

        assert response.status_code == 201
        segment = response.json()["entity"]
        assert segment["status"] == "active"
        assert segment["priority"] == "medium"
        assert segment["personas"] == []
        assert segment["awarenessLevel"] == ["Problem aware"]

    @pytest.mark.asyncio
    async def test_add_segment_requires_name(
        self, async_client: AsyncClient, workspace_id: str
    ) -> None:
        response = await async_client.post(
            f"/api/v1/workspaces/{workspace_id}/segments", json={"description": "Lenders"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Segment name is required"

    @pytest.mark.asyncio
    async def test_enrich_seeds_from_description(
        self, async_client: AsyncClient, workspace_id: str, mock_claude
    ) -> None:
        mock_claude.responder = gtm_responder

        response = await async_client.post(
            f"/api/v1/workspaces/{workspace_id}/segments?enrich=true",
            json={"name": "Fintech", "description": "Mid-market fintech lenders"},
        )

        segment = response.json()["entity"]
        assert segment["characteristics"] == ["Series B+"]
        assert segment["description"] == "Mid-market fintech lenders"
        assert '"Mid-market fintech lenders"' in mock_claude.prompts[0]

    @pytest.mark.asyncio
    async def test_update_segment(
        self, async_client: AsyncClient, workspace_id: str, segment_id: str
    ) -> None:
        response = await async_client.put(
            f"/api/v1/workspaces/{workspace_id}/segments/{segment_id}",
            json={"size": "Enterprise"},
        )

        assert response.status_code == 200
        segment = response.json()["entity"]
        assert segment["name"] == "Fintech"
        assert segment["size"] == "Enterprise"

    @pytest.mark.asyncio
    async def test_delete_segment_removes_personas(
        self, async_client: AsyncClient, workspace_id: str, segment_id: str
    ) -> None:
        await async_client.post(
            f"/api/v1/workspaces/{workspace_id}/segments/{segment_id}/personas",
            json={"title": "CFO"},
        )

        response = await async_client.delete(
            f"/api/v1/workspaces/{workspace_id}/segments/{segment_id}"
        )

        assert response.status_code == 200
        assert response.json()["workspace"]["segments"] == []


class TestPersonas:
    """Tests for /api/v1/workspaces/{id}/segments/{sid}/personas."""

    @pytest.mark.asyncio
    async def test_add_persona_under_segment(
        self, async_client: AsyncClient, workspace_id: str, segment_id: str
    ) -> None:
        response = await async_client.post(
            f"/api/v1/workspaces/{workspace_id}/segments/{segment_id}/personas",
            json={"title": "CFO", "jobTitles": "Finance Lead"},
        )

        assert response.status_code == 201
        persona = response.json()["entity"]
        assert persona["title"] == "CFO"
        assert persona["name"] == "CFO"
        assert persona["jobTitles"] == ["Finance Lead"]
        assert persona["decisionInfluence"] == "Decision Maker"
        segment = response.json()["workspace"]["segments"][0]
        assert [p["id"] for p in segment["personas"]] == [persona["id"]]

    @pytest.mark.asyncio
    async def test_unknown_segment(self, async_client: AsyncClient, workspace_id: str) -> None:
        response = await async_client.post(
            f"/api/v1/workspaces/{workspace_id}/segments/nope/personas", json={"title": "CFO"}
        )

        assert response.status_code == 404
        assert response.json()["error"] == "Segment with id 'nope' not found"

    @pytest.mark.asyncio
    async def test_add_persona_requires_title(
        self, async_client: AsyncClient, workspace_id: str, segment_id: str
    ) -> None:
        response = await async_client.post(
            f"/api/v1/workspaces/{workspace_id}/segments/{segment_id}/personas",
            json={"goals": ["Grow"]},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Persona title is required"

    @pytest.mark.asyncio
    async def test_enrich_keeps_user_values(
        self, async_client: AsyncClient, workspace_id: str, segment_id: str, mock_claude
    ) -> None:
        mock_claude.responder = gtm_responder

        response = await async_client.post(
            f"/api/v1/workspaces/{workspace_id}/segments/{segment_id}/personas?enrich=true",
            json={"title": "CFO", "goals": ["Grow revenue"]},
        )

        persona = response.json()["entity"]
        assert persona["goals"] == ["Grow revenue"]
        assert persona["painPoints"] == ENRICHED_PERSONA["painPoints"]

    @pytest.mark.asyncio
    async def test_update_and_delete_persona(
        self, async_client: AsyncClient, workspace_id: str, segment_id: str
    ) -> None:
        base = f"/api/v1/workspaces/{workspace_id}/segments/{segment_id}/personas"
        added = await async_client.post(base, json={"title": "CFO", "goals": ["Close faster"]})
        persona_id = added.json()["entity"]["id"]

        updated = await async_client.put(f"{base}/{persona_id}", json={"okrs": ["DSO < 30"]})
        assert updated.status_code == 200
        assert updated.json()["entity"]["goals"] == ["Close faster"]
        assert updated.json()["entity"]["okrs"] == ["DSO < 30"]

        deleted = await async_client.delete(f"{base}/{persona_id}")
        assert deleted.status_code == 200
        assert deleted.json()["workspace"]["segments"][0]["personas"] == []

    @pytest.mark.asyncio
    async def test_update_persona_in_wrong_segment(
        self, async_client: AsyncClient, workspace_id: str, segment_id: str
    ) -> None:
        added = await async_client.post(
            f"/api/v1/workspaces/{workspace_id}/segments/{segment_id}/personas",
            json={"title": "CFO"},
        )
        persona_id = added.json()["entity"]["id"]
        other = await async_client.post(
            f"/api/v1/workspaces/{workspace_id}/segments", json={"name": "Retail"}
        )
        other_id = other.json()["entity"]["id"]

        response = await async_client.put(
            f"/api/v1/workspaces/{workspace_id}/segments/{other_id}/personas/{persona_id}",
            json={"goals": ["x"]},
        )

        assert response.status_code == 404


class TestEntityAccess:
    @pytest.mark.asyncio
    async def test_non_member_cannot_add(
        self, async_client: AsyncClient, workspace_id: str
    ) -> None:
        response = await async_client.post(
            f"/api/v1/workspaces/{workspace_id}/products",
            json={"name": "Ledger"},
            headers=as_user("user-stranger"),
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_workspace(self, async_client: AsyncClient) -> None:
        response = await async_client.post(
            "/api/v1/workspaces/00000000-0000-0000-0000-000000000000/segments",
            json={"name": "Fintech"},
        )

        assert response.status_code == 404
