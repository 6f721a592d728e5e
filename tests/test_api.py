"""
HTTP-level tests through the ASGI app with the database dependency overridden
"""
from datetime import date, timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.core.config import settings
from app.core.rate_limiter import limiter
from app.database import get_db
from app.main import app
from app.services.settings_service import SettingsService

START = date.today() + timedelta(days=30)
END = START + timedelta(days=2)


def iso(day: date) -> str:
    return day.isoformat()


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    limiter.reset()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


def booking_payload(room_id="12", start=START, end=END, session_id=None, email="jana@example.cz"):
    return {
        "reservation": {
            "kind": "per_room",
            "rooms": [
                {
                    "room_id": room_id,
                    "start_date": iso(start),
                    "end_date": iso(end),
                    "guests": {"internal_adults": 1, "external_adults": 1},
                }
            ],
        },
        "contact": {"name": "Jana Nováková", "email": email, "phone": "+420601234567"},
        "session_id": session_id,
    }


@pytest.mark.integration
class TestPublicEndpoints:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "database": "ok"}
        assert "X-Request-ID" in response.headers

    @pytest.mark.asyncio
    async def test_rooms_and_sessions(self, client):
        rooms = (await client.get("/api/rooms")).json()
        assert {"id": "12", "name": "Pokoj 12", "beds": 2, "size": "small"} in rooms
        assert len(rooms) == 10

        session = (await client.post("/api/sessions")).json()
        assert session["session_id"].startswith("SESS")

    @pytest.mark.asyncio
    async def test_price_rooms(self, client):
        response = await client.post(
            "/api/price/rooms",
            json={
                "rooms": [
                    {
                        "room_id": "12",
                        "start_date": iso(START),
                        "end_date": iso(END),
                        "guests": {"internal_adults": 1, "external_adults": 1},
                    }
                ]
            },
        )
        assert response.status_code == 200
        # 250*2 + 50*2 + 100*2
        assert response.json() == {"total": 800, "rooms": {"12": 800}}

    @pytest.mark.asyncio
    async def test_price_bulk_defaults_to_every_room(self, client):
        response = await client.post(
            "/api/price/bulk",
            json={
                "start_date": iso(START),
                "end_date": iso(END),
                "guests": {"internal_adults": 4, "external_adults": 2},
            },
        )
        assert response.status_code == 200
        assert response.json() == {"total": 2000 * 2 + 4 * 100 * 2 + 2 * 250 * 2, "rooms": {}}

    @pytest.mark.asyncio
    async def test_missing_rates_are_not_exposed(self, client, session_factory):
        async with session_factory() as session:
            await SettingsService.set_json_setting(session, "bulk_prices", None)

        response = await client.post(
            "/api/price/bulk?lang=en",
            json={"start_date": iso(START), "end_date": iso(END)},
        )
        assert response.status_code == 500
        assert response.json() == {
            "error": "pricing_unavailable",
            "message": "The price cannot be calculated right now. Please contact the administrator.",
        }

    @pytest.mark.asyncio
    async def test_invalid_range_is_400(self, client):
        response = await client.post(
            "/api/availability/validate",
            json={"start_date": iso(END), "end_date": iso(START), "room_ids": ["12"]},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_range"


@pytest.mark.integration
class TestHoldEndpoints:
    @pytest.mark.asyncio
    async def test_hold_lifecycle(self, client):
        created = await client.post(
            "/api/holds",
            json={"session_id": "SESSA", "start_date": iso(START), "end_date": iso(END), "room_ids": ["7"]},
        )
        assert created.status_code == 201
        proposal_id = created.json()["proposal_id"]

        conflict = await client.post(
            "/api/holds?lang=en",
            json={
                "session_id": "SESSB",
                "start_date": iso(START + timedelta(days=1)),
                "end_date": iso(END + timedelta(days=1)),
                "room_ids": ["7"],
            },
        )
        assert conflict.status_code == 409
        body = conflict.json()
        assert body["error"] == "conflict"
        assert body["room_id"] == "7"
        assert body["date"] == iso(START + timedelta(days=1))
        assert body["reason"] == "proposed"
        assert body["message"].startswith("Room 7 is not available")

        back_to_back = await client.post(
            "/api/holds",
            json={"session_id": "SESSB", "start_date": iso(END), "end_date": iso(END + timedelta(days=2)), "room_ids": ["7"]},
        )
        assert back_to_back.status_code == 201

        listed = (await client.get("/api/holds", params={"session_id": "SESSA"})).json()
        assert [hold["proposal_id"] for hold in listed] == [proposal_id]
        assert listed[0]["room_ids"] == ["7"]

        status = await client.get(
            "/api/availability", params={"room_id": "7", "day": iso(START), "session_id": "SESSB"}
        )
        assert status.json()["status"] == "proposed"
        assert status.json()["label"] == "navrženo jiným uživatelem"
        own = await client.get(
            "/api/availability", params={"room_id": "7", "day": iso(START), "session_id": "SESSA"}
        )
        assert own.json()["status"] == "available"

        stolen = await client.delete(f"/api/holds/{proposal_id}", params={"session_id": "SESSB"})
        assert stolen.status_code == 403
        assert stolen.json()["error"] == "hold_not_owned"

        deleted = await client.delete(f"/api/holds/{proposal_id}", params={"session_id": "SESSA"})
        assert deleted.status_code == 204
        again = await client.delete(f"/api/holds/{proposal_id}", params={"session_id": "SESSA"})
        assert again.status_code == 204

    @pytest.mark.asyncio
    async def test_reap_endpoint(self, client):
        response = await client.post("/api/holds/reap")
        assert response.status_code == 200
        assert response.json() == {"removed": 0}

    @pytest.mark.asyncio
    async def test_calendar(self, client):
        await client.post(
            "/api/holds",
            json={"session_id": "SESSA", "start_date": iso(START), "end_date": iso(END), "room_ids": ["13"]},
        )
        response = await client.get(
            "/api/availability/calendar",
            params={"year": START.year, "month": START.month, "session_id": "SESSB"},
        )
        assert response.status_code == 200
        rooms = response.json()["rooms"]
        assert set(rooms) == {"7", "12", "13", "14", "22", "23", "24", "42", "43", "44"}
        day = next(day for day in rooms["13"] if day["date"] == iso(START))
        assert day["status"] == "proposed"


@pytest.mark.integration
class TestBookingEndpoints:
    @pytest.mark.asyncio
    async def test_booking_lifecycle(self, client):
        created = await client.post("/api/bookings", json=booking_payload())
        assert created.status_code == 201
        booking = created.json()
        assert booking["total_price"] == 800
        assert booking["phone"] == "+420 601 234 567"
        headers = {"X-Edit-Token": booking["edit_token"]}

        fetched = await client.get(f"/api/bookings/{booking['id']}", headers=headers)
        assert fetched.status_code == 200
        assert "edit_token" not in fetched.json()
        assert fetched.json()["rooms"][0]["guests"]["external_adults"] == 1

        wrong = await client.get(f"/api/bookings/{booking['id']}", headers={"X-Edit-Token": "nope"})
        assert wrong.status_code == 403

        validate = await client.post(
            "/api/availability/validate",
            json={"start_date": iso(START), "end_date": iso(END), "room_ids": ["12"]},
        )
        assert validate.json()["ok"] is False
        assert validate.json()["conflict"]["reason"] == "booked"

        edit = booking_payload(end=END + timedelta(days=1))
        updated = await client.put(f"/api/bookings/{booking['id']}", json=edit, headers=headers)
        assert updated.status_code == 200
        assert updated.json()["total_price"] == 1200

        cancelled = await client.delete(f"/api/bookings/{booking['id']}", headers=headers)
        assert cancelled.status_code == 204
        gone = await client.get(f"/api/bookings/{booking['id']}", headers=headers)
        assert gone.status_code == 404

    @pytest.mark.asyncio
    async def test_booking_releases_session_holds(self, client):
        await client.post(
            "/api/holds",
            json={"session_id": "SESSA", "start_date": iso(START), "end_date": iso(END), "room_ids": ["12"]},
        )
        created = await client.post("/api/bookings", json=booking_payload(session_id="SESSA"))
        assert created.status_code == 201
        assert (await client.get("/api/holds", params={"session_id": "SESSA"})).json() == []

    @pytest.mark.asyncio
    async def test_double_booking_conflicts(self, client):
        assert (await client.post("/api/bookings", json=booking_payload())).status_code == 201
        response = await client.post("/api/bookings", json=booking_payload())
        assert response.status_code == 409
        assert response.json()["reason"] == "booked"

    @pytest.mark.asyncio
    async def test_invalid_contact_is_422(self, client):
        response = await client.post("/api/bookings", json=booking_payload(email="not-an-email"))
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_capacity_exceeded(self, client):
        payload = booking_payload()
        payload["reservation"]["rooms"][0]["guests"] = {"external_adults": 3}
        response = await client.post("/api/bookings", json=payload)
        assert response.status_code == 400
        assert response.json()["error"] == "capacity_exceeded"


@pytest.mark.integration
class TestAdminEndpoints:
    @pytest.mark.asyncio
    async def test_disabled_without_configured_key(self, client, monkeypatch):
        monkeypatch.setattr(settings, "admin_api_key", "")
        response = await client.post(
            "/api/admin/blockages", json={"start_date": iso(START), "end_date": iso(START)}
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_blockage_lifecycle(self, client, monkeypatch):
        monkeypatch.setattr(settings, "admin_api_key", "secret")

        rejected = await client.post(
            "/api/admin/blockages",
            json={"start_date": iso(START), "end_date": iso(START)},
            headers={"X-API-Key": "wrong"},
        )
        assert rejected.status_code == 401

        headers = {"X-API-Key": "secret"}
        created = await client.post(
            "/api/admin/blockages",
            json={"start_date": iso(START), "end_date": iso(START + timedelta(days=1)), "room_ids": ["12"], "reason": "malování"},
            headers=headers,
        )
        assert created.status_code == 201
        blockage_id = created.json()["blockage_id"]

        listed = await client.get(
            "/api/admin/blockages",
            params={"start_date": iso(START), "end_date": iso(END + timedelta(days=5))},
            headers=headers,
        )
        assert [row["blocked_date"] for row in listed.json()] == [iso(START), iso(START + timedelta(days=1))]

        status = await client.get("/api/availability", params={"room_id": "12", "day": iso(START)})
        assert status.json()["status"] == "blocked"
        assert status.json()["detail"]["reason"] == "malování"

        hold = await client.post(
            "/api/holds",
            json={"session_id": "SESSA", "start_date": iso(START), "end_date": iso(END), "room_ids": ["12"]},
        )
        assert hold.status_code == 409
        assert hold.json()["reason"] == "blocked"

        deleted = await client.delete(f"/api/admin/blockages/{blockage_id}", headers=headers)
        assert deleted.json() == {"removed": 2}
        missing = await client.delete(f"/api/admin/blockages/{blockage_id}", headers=headers)
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_christmas_period_requires_code(self, client, monkeypatch):
        monkeypatch.setattr(settings, "admin_api_key", "secret")
        # Next year's Christmas: always before its 30 September cutoff, always within the horizon
        period_start = date(date.today().year + 1, 12, 23)
        period_end = date(date.today().year + 2, 1, 2)

        saved = await client.put(
            "/api/admin/christmas",
            json={
                "periods": [{"name": "Vánoce", "start": iso(period_start), "end": iso(period_end)}],
                "access_codes": ["XMAS"],
            },
            headers={"X-API-Key": "secret"},
        )
        assert saved.status_code == 200
        stored = await client.get("/api/admin/christmas", headers={"X-API-Key": "secret"})
        assert stored.json()["access_codes"] == ["XMAS"]

        public = await client.get("/api/christmas-periods")
        assert public.json() == [{"name": "Vánoce", "start": iso(period_start), "end": iso(period_end)}]

        payload = booking_payload(start=period_start + timedelta(days=1), end=period_start + timedelta(days=3))
        refused = await client.post("/api/bookings?lang=en", json=payload)
        assert refused.status_code == 403
        assert refused.json()["error"] == "christmas_code_required"
        assert refused.json()["period_start"] == iso(period_start)

        payload["access_code"] = "XMAS"
        created = await client.post("/api/bookings", json=payload)
        assert created.status_code == 201
