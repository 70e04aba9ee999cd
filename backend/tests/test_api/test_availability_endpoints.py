"""Tests for the weekly visiting-hours template and host-wide blocks."""

import uuid
from datetime import date, timedelta

import pytest
from httpx import AsyncClient

from app.models.property import Property

pytestmark = pytest.mark.asyncio


class TestWeeklyTemplate:
    """Tests for /api/v1/availability."""

    async def test_create_and_list(self, client: AsyncClient, auth_headers: dict) -> None:
        for day in ("wednesday", "monday"):
            response = await client.post(
                "/api/v1/availability",
                json={"day_of_week": day, "start_time": "09:00", "end_time": "12:00"},
                headers=auth_headers,
            )
            assert response.status_code == 201

        listed = await client.get("/api/v1/availability")
        assert listed.status_code == 200
        assert [w["day_of_week"] for w in listed.json()] == ["monday", "wednesday"]

    async def test_inverted_hours_rejected(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await client.post(
            "/api/v1/availability",
            json={"day_of_week": "monday", "start_time": "12:00", "end_time": "09:00"},
            headers=auth_headers,
        )
        assert response.status_code == 400

    async def test_unknown_weekday_rejected(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await client.post(
            "/api/v1/availability",
            json={"day_of_week": "funday", "start_time": "09:00", "end_time": "12:00"},
            headers=auth_headers,
        )
        assert response.status_code == 400

    async def test_requires_admin(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/availability",
            json={"day_of_week": "monday", "start_time": "09:00", "end_time": "12:00"},
        )
        assert response.status_code in (401, 403)

    async def test_template_drives_slots(
        self, client: AsyncClient, auth_headers: dict, sale_property: Property, next_monday: date
    ) -> None:
        await client.post(
            "/api/v1/availability",
            json={"day_of_week": "monday", "start_time": "14:00", "end_time": "16:00"},
            headers=auth_headers,
        )
        response = await client.get(f"/api/v1/reservations/available-slots/{sale_property.id}/{next_monday}")
        assert response.json() == ["14:00", "15:00"]

        tuesday = next_monday + timedelta(days=1)
        response = await client.get(f"/api/v1/reservations/available-slots/{sale_property.id}/{tuesday}")
        assert response.json() == []

    async def test_update_that_empties_window_is_400(self, client: AsyncClient, auth_headers: dict) -> None:
        created = await client.post(
            "/api/v1/availability",
            json={"day_of_week": "friday", "start_time": "09:00", "end_time": "12:00"},
            headers=auth_headers,
        )
        response = await client.put(
            f"/api/v1/availability/{created.json()['id']}",
            json={"end_time": "08:00"},
            headers=auth_headers,
        )
        assert response.status_code == 400

    async def test_update_and_delete(self, client: AsyncClient, auth_headers: dict) -> None:
        created = await client.post(
            "/api/v1/availability",
            json={"day_of_week": "friday", "start_time": "09:00", "end_time": "12:00"},
            headers=auth_headers,
        )
        window_id = created.json()["id"]

        updated = await client.put(
            f"/api/v1/availability/{window_id}",
            json={"is_active": False},
            headers=auth_headers,
        )
        assert updated.status_code == 200
        assert updated.json()["is_active"] is False

        deleted = await client.delete(f"/api/v1/availability/{window_id}", headers=auth_headers)
        assert deleted.status_code == 200
        assert (await client.get("/api/v1/availability")).json() == []

    async def test_delete_unknown_is_404(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await client.delete(f"/api/v1/availability/{uuid.uuid4()}", headers=auth_headers)
        assert response.status_code == 404


class TestHostWideBlocks:
    """Tests for /api/v1/availability/blocked-dates."""

    async def test_block_applies_to_every_property(
        self,
        client: AsyncClient,
        auth_headers: dict,
        sale_property: Property,
        rental_property: Property,
        next_monday: date,
    ) -> None:
        response = await client.post(
            "/api/v1/availability/blocked-dates",
            json={"date": next_monday.isoformat(), "reason": "Public holiday"},
            headers=auth_headers,
        )
        assert response.status_code == 201
        assert response.json()["property_id"] is None

        slots = await client.get(f"/api/v1/reservations/available-slots/{sale_property.id}/{next_monday}")
        assert slots.json() == []
        days = await client.get(f"/api/v1/properties/{rental_property.id}/unavailable-dates")
        assert days.json() == [next_monday.isoformat()]

    async def test_slot_block_removes_one_slot(
        self, client: AsyncClient, auth_headers: dict, sale_property: Property, next_monday: date
    ) -> None:
        await client.post(
            "/api/v1/availability/blocked-dates",
            json={"date": next_monday.isoformat(), "time": "15:00"},
            headers=auth_headers,
        )
        slots = await client.get(f"/api/v1/reservations/available-slots/{sale_property.id}/{next_monday}")
        assert slots.json() == ["09:00", "10:00", "11:00", "12:00", "14:00", "16:00"]

    async def test_list_and_remove(self, client: AsyncClient, auth_headers: dict, next_monday: date) -> None:
        created = await client.post(
            "/api/v1/availability/blocked-dates",
            json={"date": next_monday.isoformat()},
            headers=auth_headers,
        )
        listed = await client.get("/api/v1/availability/blocked-dates", headers=auth_headers)
        assert [b["id"] for b in listed.json()] == [created.json()["id"]]

        removed = await client.delete(
            f"/api/v1/availability/blocked-dates/{created.json()['id']}", headers=auth_headers
        )
        assert removed.status_code == 200
        assert (await client.get("/api/v1/availability/blocked-dates", headers=auth_headers)).json() == []

    async def test_remove_unknown_is_404(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await client.delete(f"/api/v1/availability/blocked-dates/{uuid.uuid4()}", headers=auth_headers)
        assert response.status_code == 404


class TestHealth:
    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
