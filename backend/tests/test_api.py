"""
PinDrop Backend — API Endpoint Tests
======================================

What:  End-to-end HTTP tests through the FastAPI app (ASGITransport).
Why:   Checks routing, auth dependencies, status codes and the error
       envelope; the business rules themselves are covered by the
       service tests.
"""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError


async def _register(client, username, is_private=True):
    response = await client.post(
        "/api/auth/register",
        json={
            "email": f"{username}@example.com",
            "username": username,
            "full_name": username.title(),
            "password": "s3cret-password",
        },
    )
    assert response.status_code == 201, response.text
    body = response.json()
    headers = {"Authorization": f"Bearer {body['token']}"}
    if not is_private:
        response = await client.patch("/api/auth/me", json={"is_private": False}, headers=headers)
        assert response.status_code == 200
    return body["user"]["id"], headers


class TestHealthAndErrors:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] in ("healthy", "unhealthy")
        assert "X-Request-ID" in response.headers

    @pytest.mark.asyncio
    async def test_client_request_id_is_echoed(self, client):
        response = await client.get("/health", headers={"X-Request-ID": "trace-123"})
        assert response.headers["X-Request-ID"] == "trace-123"

    @pytest.mark.asyncio
    async def test_missing_token_is_401_envelope(self, client):
        response = await client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        body = response.json()
        assert body["error"] == "not_authenticated"
        assert body["request_id"]

    @pytest.mark.asyncio
    async def test_garbage_token_is_anonymous_on_optional_routes(self, client):
        response = await client.get(
            "/api/pins", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 200
        assert response.headers["X-Total-Count"] == "0"

    @pytest.mark.asyncio
    async def test_store_failure_is_opaque_500(self, client):
        failure = OperationalError("SELECT pins", {}, Exception("connection refused to 10.0.0.5"))
        with patch(
            "app.routes.pins.pin_service.get_pin",
            new=AsyncMock(side_effect=failure),
        ):
            response = await client.get("/api/pins/00000000-0000-0000-0000-000000000001")

        assert response.status_code == 500
        assert response.json()["error"] == "server_error"
        assert "10.0.0.5" not in response.text


class TestAuthEndpoints:

    @pytest.mark.asyncio
    async def test_register_login_me(self, client):
        user_id, headers = await _register(client, "alice")

        response = await client.post(
            "/api/auth/login",
            json={"email": "alice@example.com", "password": "s3cret-password"},
        )
        assert response.status_code == 200
        assert response.json()["user"]["id"] == user_id

        me = await client.get("/api/auth/me", headers=headers)
        assert me.status_code == 200
        assert me.json()["is_private"] is True

    @pytest.mark.asyncio
    async def test_duplicate_registration_is_409(self, client):
        await _register(client, "alice")
        response = await client.post(
            "/api/auth/register",
            json={
                "email": "alice@example.com",
                "username": "alice2",
                "full_name": "Alice Two",
                "password": "s3cret-password",
            },
        )
        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    @pytest.mark.asyncio
    async def test_bad_login_is_401(self, client):
        await _register(client, "alice")
        response = await client.post(
            "/api/auth/login",
            json={"email": "alice@example.com", "password": "wrong-password"},
        )
        assert response.status_code == 401


class TestFollowEndpoints:

    @pytest.mark.asyncio
    async def test_follow_public_user(self, client):
        u1_id, _ = await _register(client, "user1", is_private=False)
        _, u2_headers = await _register(client, "user2")

        response = await client.post(f"/api/users/{u1_id}/follow", headers=u2_headers)

        assert response.status_code == 201
        assert response.json()["type"] == "follow"
        profile = (await client.get("/api/users/user1", headers=u2_headers)).json()
        assert profile["followers_count"] == 1
        assert profile["is_following"] is True

    @pytest.mark.asyncio
    async def test_private_request_accept_flow(self, client):
        u2_id, u2_headers = await _register(client, "user2")
        u3_id, u3_headers = await _register(client, "user3")

        response = await client.post(f"/api/users/{u3_id}/follow", headers=u2_headers)
        assert response.status_code == 201
        assert response.json()["type"] == "request"
        request_id = response.json()["request"]["id"]

        again = await client.post(f"/api/users/{u3_id}/follow", headers=u2_headers)
        assert again.status_code == 409
        assert again.json()["error"] == "request_already_pending"

        pending = (await client.get("/api/follow-requests/pending", headers=u3_headers)).json()
        assert pending["total"] == 1
        assert pending["requests"][0]["sender"]["username"] == "user2"

        # Only the receiver may accept
        stolen = await client.post(f"/api/follow-requests/{request_id}/accept", headers=u2_headers)
        assert stolen.status_code == 403
        assert stolen.json()["error"] == "unauthorized"

        accepted = await client.post(f"/api/follow-requests/{request_id}/accept", headers=u3_headers)
        assert accepted.status_code == 200
        assert accepted.json()["follow"]["follower_id"] == u2_id

        followers = (await client.get(f"/api/users/{u3_id}/followers")).json()
        assert [u["username"] for u in followers["followers"]] == ["user2"]

        # Accepted requests can't be cancelled
        cancel = await client.delete(f"/api/users/{u3_id}/follow-request", headers=u2_headers)
        assert cancel.status_code == 409
        assert cancel.json()["error"] == "request_not_pending"

    @pytest.mark.asyncio
    async def test_self_follow_and_unknown_target(self, client):
        u1_id, headers = await _register(client, "user1")

        response = await client.post(f"/api/users/{u1_id}/follow", headers=headers)
        assert response.status_code == 400
        assert response.json()["error"] == "self_follow"

        response = await client.post(
            "/api/users/00000000-0000-0000-0000-000000000001/follow", headers=headers
        )
        assert response.status_code == 404
        assert response.json()["error"] == "user_not_found"

    @pytest.mark.asyncio
    async def test_unfollow_when_not_following(self, client):
        u1_id, _ = await _register(client, "user1")
        _, u2_headers = await _register(client, "user2")

        response = await client.delete(f"/api/users/{u1_id}/follow", headers=u2_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "not_following"


class TestPinEndpoints:

    @pytest.mark.asyncio
    async def test_non_public_pin_hidden_until_followed(self, client):
        u2_id, u2_headers = await _register(client, "user2")
        u3_id, u3_headers = await _register(client, "user3")

        created = await client.post(
            "/api/pins",
            json={"lat": 52.52, "lng": 13.405, "content": "secret spot"},
            headers=u3_headers,
        )
        assert created.status_code == 201
        pin_id = created.json()["id"]
        assert created.json()["is_public"] is False

        assert (await client.get(f"/api/pins/{pin_id}")).status_code == 404
        assert (await client.get(f"/api/pins/{pin_id}", headers=u2_headers)).status_code == 404
        listing = await client.get("/api/pins", params={"author_id": u3_id}, headers=u2_headers)
        assert listing.json() == {"pins": [], "total": 0}

        request = await client.post(f"/api/users/{u3_id}/follow", headers=u2_headers)
        await client.post(
            f"/api/follow-requests/{request.json()['request']['id']}/accept", headers=u3_headers
        )

        visible = await client.get(f"/api/pins/{pin_id}", headers=u2_headers)
        assert visible.status_code == 200
        assert visible.json()["author"]["id"] == u3_id

        liked = await client.post(f"/api/pins/{pin_id}/like", headers=u2_headers)
        assert liked.status_code == 201
        assert (await client.post(f"/api/pins/{pin_id}/like", headers=u2_headers)).status_code == 409

    @pytest.mark.asyncio
    async def test_pin_validation_is_422(self, client):
        _, headers = await _register(client, "user1")
        response = await client.post(
            "/api/pins", json={"lat": 123, "lng": 0, "content": "nowhere"}, headers=headers
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_list_sets_total_header(self, client):
        _, headers = await _register(client, "user1")
        for i in range(3):
            await client.post(
                "/api/pins",
                json={"lat": 0, "lng": 0, "content": f"pin {i}", "is_public": True},
                headers=headers,
            )

        response = await client.get("/api/pins", params={"limit": 2})

        assert response.status_code == 200
        assert response.headers["X-Total-Count"] == "3"
        assert len(response.json()["pins"]) == 2

    @pytest.mark.asyncio
    async def test_comment_and_delete(self, client):
        _, author_headers = await _register(client, "author", is_private=False)
        _, fan_headers = await _register(client, "fan")
        pin = await client.post(
            "/api/pins",
            json={"lat": 0, "lng": 0, "content": "talk to me", "is_public": True},
            headers=author_headers,
        )
        pin_id = pin.json()["id"]

        comment = await client.post(
            f"/api/pins/{pin_id}/comments", json={"content": "hello"}, headers=fan_headers
        )
        assert comment.status_code == 201

        blank = await client.post(
            f"/api/pins/{pin_id}/comments", json={"content": "   "}, headers=fan_headers
        )
        assert blank.status_code == 422

        listing = (await client.get(f"/api/pins/{pin_id}/comments")).json()
        assert listing["total"] == 1

        deleted = await client.delete(
            f"/api/comments/{comment.json()['id']}", headers=author_headers
        )
        assert deleted.status_code == 200


class TestPartialUpdates:

    @pytest.mark.asyncio
    async def test_null_for_required_pin_fields_is_422(self, client):
        _, headers = await _register(client, "user1")
        pin = await client.post(
            "/api/pins", json={"lat": 0, "lng": 0, "content": "draft"}, headers=headers
        )
        pin_id = pin.json()["id"]

        for body in ({"is_public": None}, {"content": None}):
            response = await client.put(f"/api/pins/{pin_id}", json=body, headers=headers)
            assert response.status_code == 422, body

        # Nullable columns can still be cleared
        cleared = await client.put(f"/api/pins/{pin_id}", json={"feeling": None}, headers=headers)
        assert cleared.status_code == 200
        assert cleared.json()["feeling"] is None
        assert cleared.json()["is_public"] is False

    @pytest.mark.asyncio
    async def test_null_for_required_profile_fields_is_422(self, client):
        _, headers = await _register(client, "user1")

        for body in ({"is_private": None}, {"full_name": None}):
            response = await client.patch("/api/auth/me", json=body, headers=headers)
            assert response.status_code == 422, body

        me = (await client.get("/api/auth/me", headers=headers)).json()
        assert me["is_private"] is True
        assert me["full_name"] == "User1"

        cleared = await client.patch("/api/auth/me", json={"bio": None}, headers=headers)
        assert cleared.status_code == 200

    @pytest.mark.asyncio
    async def test_pin_with_unknown_event_is_404(self, client):
        _, headers = await _register(client, "user1")
        response = await client.post(
            "/api/pins",
            json={
                "lat": 0,
                "lng": 0,
                "content": "at the show",
                "event_id": "00000000-0000-0000-0000-000000000001",
            },
            headers=headers,
        )
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"
