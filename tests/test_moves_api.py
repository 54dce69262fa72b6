"""
Integration tests for the HTTP API over the in-memory store
"""

import httpx
import pytest
from datetime import timedelta

from app.core.security import create_access_token
from app.core.store import get_clock, get_place_client
from app.services.places import PlaceLookupClient


async def _post_move(client, headers, payload):
    response = await client.post("/api/v1/moves", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["id"]


@pytest.mark.integration
@pytest.mark.asyncio
class TestMoveEndpoints:

    async def test_create_and_fetch(self, client, alice_headers, move_payload):
        move_id = await _post_move(client, alice_headers, move_payload)

        response = await client.get(f"/api/v1/moves/{move_id}", headers=alice_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Pickup soccer"
        assert data["attendees"] == ["Alice"]
        assert data["status"] == "Upcoming"
        assert data["is_host"] is True
        assert data["spots_left"] == 1
        assert data["place"]["kind"] == "resolved"
        assert data["place"]["latitude"] == 42.0425

    async def test_requires_authentication(self, client, move_payload):
        response = await client.post("/api/v1/moves", json=move_payload)
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTH_ERROR"

    async def test_non_school_email_forbidden(self, client):
        token = create_access_token({"sub": "uid-eve", "name": "Eve", "email": "eve@gmail.com"})
        response = await client.get("/api/v1/feed", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 403
        assert response.json()["error"]["message"].startswith("Access Restricted")

    async def test_long_title_rejected(self, client, alice_headers, move_payload):
        move_payload["title"] = "x" * 51
        response = await client.post("/api/v1/moves", json=move_payload, headers=alice_headers)

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert body["error"]["message"] == "Title must be 50 characters or fewer."

    async def test_full_move_then_waitlist_then_promotion(
        self, client, alice_headers, bob_headers, cara_headers, move_payload
    ):
        move_id = await _post_move(client, alice_headers, move_payload)

        response = await client.post(f"/api/v1/moves/{move_id}/join", headers=bob_headers)
        assert response.status_code == 200
        assert response.json()["is_full"] is True

        response = await client.post(f"/api/v1/moves/{move_id}/join", headers=cara_headers)
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "MOVE_FULL"

        response = await client.post(f"/api/v1/moves/{move_id}/waitlist", headers=cara_headers)
        assert response.status_code == 200
        assert response.json()["waitlist_position"] == 1

        response = await client.post(f"/api/v1/moves/{move_id}/leave", headers=bob_headers)
        assert response.status_code == 200

        response = await client.get(f"/api/v1/moves/{move_id}", headers=cara_headers)
        data = response.json()
        assert data["attendees"] == ["Alice", "Cara"]
        assert data["waitlist"] == []
        assert data["is_joined"] is True

    async def test_join_with_required_prompt(self, client, alice_headers, bob_headers, move_payload):
        move_payload["signup_prompt"] = "What position do you play?"
        move_payload["signup_prompt_requires_response"] = True
        move_id = await _post_move(client, alice_headers, move_payload)

        response = await client.post(f"/api/v1/moves/{move_id}/join", headers=bob_headers)
        assert response.status_code == 400

        response = await client.post(
            f"/api/v1/moves/{move_id}/join", json={"response": "Midfield"}, headers=bob_headers
        )
        assert response.status_code == 200
        assert response.json()["signup_responses"][0]["response"] == "Midfield"

    async def test_only_host_edits_and_cancels(self, client, alice_headers, bob_headers, move_payload):
        move_id = await _post_move(client, alice_headers, move_payload)

        response = await client.patch(
            f"/api/v1/moves/{move_id}", json={"title": "Mine"}, headers=bob_headers
        )
        assert response.status_code == 403

        response = await client.patch(
            f"/api/v1/moves/{move_id}", json={"title": "Night soccer"}, headers=alice_headers
        )
        assert response.status_code == 200
        assert response.json()["title"] == "Night soccer"

        response = await client.delete(f"/api/v1/moves/{move_id}", headers=bob_headers)
        assert response.status_code == 403

        response = await client.delete(f"/api/v1/moves/{move_id}", headers=alice_headers)
        assert response.status_code == 204

        response = await client.get(f"/api/v1/moves/{move_id}", headers=alice_headers)
        assert response.status_code == 404

    async def test_comments(self, client, alice_headers, bob_headers, move_payload):
        move_id = await _post_move(client, alice_headers, move_payload)

        response = await client.post(
            f"/api/v1/moves/{move_id}/comments", json={"text": "See you there"}, headers=bob_headers
        )
        assert response.status_code == 201
        comment_id = response.json()["comments"][0]["id"]

        response = await client.delete(
            f"/api/v1/moves/{move_id}/comments/{comment_id}", headers=alice_headers
        )
        assert response.status_code == 403

        response = await client.delete(
            f"/api/v1/moves/{move_id}/comments/{comment_id}", headers=bob_headers
        )
        assert response.status_code == 200
        assert response.json()["comments"] == []


    async def test_relative_created_labels(self, client, alice_headers, bob_headers, move_payload, now):
        from app.main import app

        move_id = await _post_move(client, alice_headers, move_payload)
        await client.post(
            f"/api/v1/moves/{move_id}/comments", json={"text": "In"}, headers=bob_headers
        )
        app.dependency_overrides[get_clock] = lambda: (lambda: now + timedelta(hours=2))

        data = (await client.get(f"/api/v1/moves/{move_id}", headers=alice_headers)).json()
        assert data["created_ago"] == "2h ago"
        assert data["comments"][0]["created_ago"] == "2h ago"

        feed = (await client.get("/api/v1/feed", headers=alice_headers)).json()
        assert feed["hosting"][0]["created_ago"] == "2h ago"

    async def test_campus_location_resolved_on_create(self, client, alice_headers, move_payload):
        move_payload.update(location="Norris Center", location_name=None, latitude=None, longitude=None)
        del move_payload["area"]
        move_id = await _post_move(client, alice_headers, move_payload)

        data = (await client.get(f"/api/v1/moves/{move_id}", headers=alice_headers)).json()
        assert data["area"] == "North"
        assert data["place"]["kind"] == "resolved"
        assert data["place"]["name"] == "Norris Center"
        assert (data["place"]["latitude"], data["place"]["longitude"]) == (42.0547, -87.6752)

    async def test_unknown_location_without_coordinates_rejected(self, client, alice_headers, move_payload):
        move_payload.update(location="The Rock", latitude=None, longitude=None)
        response = await client.post("/api/v1/moves", json=move_payload, headers=alice_headers)

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Pick a suggested location so we can place it on the map."

@pytest.mark.integration
@pytest.mark.asyncio
class TestFeedEndpoints:

    async def test_feed_views(self, client, alice_headers, bob_headers, move_payload):
        move_id = await _post_move(client, alice_headers, move_payload)
        await client.post(f"/api/v1/moves/{move_id}/join", headers=bob_headers)

        response = await client.get("/api/v1/feed", headers=bob_headers)
        assert response.status_code == 200
        data = response.json()
        assert [m["id"] for m in data["explore"]] == [move_id]
        assert [m["id"] for m in data["joined"]] == [move_id]
        assert data["hosting"] == []
        assert data["my_active_count"] == 1

    async def test_feed_filters(self, client, alice_headers, move_payload):
        await _post_move(client, alice_headers, move_payload)

        response = await client.get(
            "/api/v1/feed", params={"area": ["North", "Downtown"]}, headers=alice_headers
        )
        assert response.json()["explore"] == []

        response = await client.get(
            "/api/v1/feed", params={"category": "Sports", "q": "soccer"}, headers=alice_headers
        )
        assert len(response.json()["explore"]) == 1

    async def test_feed_distance(self, client, alice_headers, move_payload):
        await _post_move(client, alice_headers, move_payload)

        response = await client.get(
            "/api/v1/feed", params={"lat": 42.0425, "lng": -87.672}, headers=alice_headers
        )
        assert response.json()["explore"][0]["distance"] == "0 m"

    async def test_saved_moves(self, client, alice_headers, bob_headers, move_payload):
        move_id = await _post_move(client, alice_headers, move_payload)

        response = await client.post(f"/api/v1/saved/{move_id}/toggle", headers=bob_headers)
        assert response.json() == {"move_id": move_id, "saved": True}

        response = await client.get("/api/v1/feed", headers=bob_headers)
        saved = response.json()["saved"]
        assert [m["id"] for m in saved] == [move_id]
        assert saved[0]["is_saved"] is True

        response = await client.delete(f"/api/v1/saved/{move_id}", headers=bob_headers)
        assert response.json()["saved"] is False

        response = await client.get("/api/v1/saved", headers=bob_headers)
        assert response.json()["move_ids"] == []

    async def test_save_unknown_move(self, client, bob_headers):
        response = await client.put("/api/v1/saved/ghost", headers=bob_headers)
        assert response.status_code == 404


@pytest.mark.integration
@pytest.mark.asyncio
class TestPlaceAndHealthEndpoints:

    async def test_place_details_not_found(self, client, alice_headers):
        from app.main import app

        def handler(request):
            return httpx.Response(200, json={"status": "NOT_FOUND"})

        places = PlaceLookupClient(
            api_key="test-key",
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        app.dependency_overrides[get_place_client] = lambda: places

        response = await client.get("/api/v1/places/p-unknown", headers=alice_headers)
        assert response.status_code == 404

    async def test_health(self, client):
        response = await client.get("/api/v1/health/live")
        assert response.json()["status"] == "alive"

        response = await client.get("/api/v1/health/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"
