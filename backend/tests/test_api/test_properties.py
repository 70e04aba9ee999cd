"""Tests for property endpoints — catalogue CRUD and unavailable dates."""

from datetime import date, timedelta

import pytest
from httpx import AsyncClient

from app.models.property import Property

pytestmark = pytest.mark.asyncio


def _future(days: int) -> str:
    return (date.today() + timedelta(days=days)).isoformat()


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------


class TestCreateProperty:
    """Tests for creating properties."""

    async def test_create_success(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await client.post(
            "/api/v1/properties",
            json={
                "title": "Loft Croix-Rousse",
                "listing_type": "sale",
                "price": 385000,
                "location": "Lyon",
                "bedrooms": 2,
                "area": 74,
                "features": ["lift", "cellar"],
            },
            headers=auth_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Loft Croix-Rousse"
        assert data["listing_type"] == "sale"
        assert float(data["price"]) == 385000
        assert data["features"] == ["lift", "cellar"]
        assert "id" in data
        assert "created_at" in data

    async def test_create_unauthenticated(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/properties", json={"title": "Nope", "listing_type": "sale"})
        assert response.status_code in (401, 403)

    async def test_create_invalid_listing_type(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await client.post(
            "/api/v1/properties",
            json={"title": "Castle", "listing_type": "castle"},
            headers=auth_headers,
        )
        assert response.status_code == 400


class TestReadProperties:
    """Tests for the public catalogue reads."""

    async def test_list_is_public(self, client: AsyncClient, sale_property: Property, rental_property: Property):
        response = await client.get("/api/v1/properties")
        assert response.status_code == 200
        assert response.json()["total"] == 2

    async def test_filter_by_type(self, client: AsyncClient, sale_property: Property, rental_property: Property):
        response = await client.get("/api/v1/properties", params={"type": "short_term_rental"})
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["id"] == str(rental_property.id)

    async def test_get_detail(self, client: AsyncClient, sale_property: Property) -> None:
        response = await client.get(f"/api/v1/properties/{sale_property.id}")
        assert response.status_code == 200
        assert response.json()["title"] == sale_property.title

    async def test_get_unknown(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/properties/00000000-0000-0000-0000-000000000001")
        assert response.status_code == 404


class TestUpdateDeleteProperty:
    async def test_partial_update(self, client: AsyncClient, auth_headers: dict, sale_property: Property) -> None:
        response = await client.put(
            f"/api/v1/properties/{sale_property.id}",
            json={"price": 399000},
            headers=auth_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert float(data["price"]) == 399000
        assert data["title"] == sale_property.title

    async def test_delete_cascades_to_blocks(
        self, client: AsyncClient, auth_headers: dict, rental_property: Property
    ) -> None:
        day = _future(10)
        await client.post(
            f"/api/v1/properties/{rental_property.id}/unavailable-dates",
            json={"date": day, "reason": "Painting"},
            headers=auth_headers,
        )
        response = await client.delete(f"/api/v1/properties/{rental_property.id}", headers=auth_headers)
        assert response.status_code == 200

        assert (await client.get(f"/api/v1/properties/{rental_property.id}")).status_code == 404
        blocks = await client.get(f"/api/v1/properties/{rental_property.id}/unavailable-dates")
        assert blocks.status_code == 404


# ---------------------------------------------------------------------------
# Unavailable dates
# ---------------------------------------------------------------------------


class TestUnavailableDates:
    """Tests for the per-property calendar."""

    async def test_empty_calendar(self, client: AsyncClient, rental_property: Property) -> None:
        response = await client.get(f"/api/v1/properties/{rental_property.id}/unavailable-dates")
        assert response.status_code == 200
        assert response.json() == []

    async def test_block_then_list(self, client: AsyncClient, auth_headers: dict, rental_property: Property):
        day = _future(12)
        response = await client.post(
            f"/api/v1/properties/{rental_property.id}/unavailable-dates",
            json={"date": day, "reason": "Owner stay"},
            headers=auth_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["date"] == day
        assert data["time"] is None
        assert data["reason"] == "Owner stay"
        assert data["booking_id"] is None

        listed = await client.get(f"/api/v1/properties/{rental_property.id}/unavailable-dates")
        assert listed.json() == [day]

    async def test_block_requires_admin(self, client: AsyncClient, rental_property: Property) -> None:
        response = await client.post(
            f"/api/v1/properties/{rental_property.id}/unavailable-dates",
            json={"date": _future(12)},
        )
        assert response.status_code in (401, 403)

    async def test_double_block_conflicts(self, client: AsyncClient, auth_headers: dict, rental_property: Property):
        url = f"/api/v1/properties/{rental_property.id}/unavailable-dates"
        body = {"date": _future(12)}
        assert (await client.post(url, json=body, headers=auth_headers)).status_code == 201
        assert (await client.post(url, json=body, headers=auth_headers)).status_code == 409

    async def test_unblock(self, client: AsyncClient, auth_headers: dict, rental_property: Property) -> None:
        url = f"/api/v1/properties/{rental_property.id}/unavailable-dates"
        day = _future(12)
        await client.post(url, json={"date": day}, headers=auth_headers)

        response = await client.request("DELETE", url, json={"date": day}, headers=auth_headers)
        assert response.status_code == 200
        assert (await client.get(url)).json() == []

    async def test_unblock_missing_is_404(self, client: AsyncClient, auth_headers: dict, rental_property: Property):
        url = f"/api/v1/properties/{rental_property.id}/unavailable-dates"
        response = await client.request("DELETE", url, json={"date": _future(12)}, headers=auth_headers)
        assert response.status_code == 404

    async def test_slot_block_listed_in_blocked_dates_only(
        self, client: AsyncClient, auth_headers: dict, sale_property: Property
    ) -> None:
        day = _future(12)
        await client.post(
            f"/api/v1/properties/{sale_property.id}/unavailable-dates",
            json={"date": day, "time": "10:00"},
            headers=auth_headers,
        )
        assert (await client.get(f"/api/v1/properties/{sale_property.id}/unavailable-dates")).json() == []

        blocks = await client.get(f"/api/v1/properties/{sale_property.id}/blocked-dates", headers=auth_headers)
        assert blocks.status_code == 200
        assert [(b["date"], b["time"]) for b in blocks.json()] == [(day, "10:00:00")]

    async def test_unknown_property(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/properties/00000000-0000-0000-0000-000000000001/unavailable-dates")
        assert response.status_code == 404
