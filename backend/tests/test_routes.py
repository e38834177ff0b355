"""
WikiMaps Backend: HTTP Route Tests
==================================

What:  End-to-end tests through the ASGI app with httpx.AsyncClient.
How:   The `test_client` fixture wires get_db_session to a per-test SQLite
       file; the client's cookie jar carries the session between requests.

What we test:
    ✅ Protected routes answer 401 without touching the store
    ✅ Login → create map → listing shows it
    ✅ Logout clears the session (and is safe to repeat)
    ✅ Tampered cookies count as logged out
    ✅ Point add/list over JSON, including failure bodies
    ✅ Non-numeric ids answer 404, store failures answer 500
    ✅ Favourites, profile and ownership checks
    ✅ /api/users, /health and X-Request-ID
"""

from unittest.mock import AsyncMock, patch

import pytest

from wikimaps.exceptions import PersistenceError
from wikimaps.middleware.request_id import REQUEST_ID_HEADER


POINT_FORM = {
    "title": "Pier",
    "description": "Sunset spot",
    "image": "",
    "lat": "49.28271234567891",
    "long": "-123.12071234567891",
}


async def login(client, user_id="42"):
    response = await client.get(f"/login/{user_id}")
    assert response.status_code == 302
    return response


async def create_map(client, title="Food trucks", description="Lunch options") -> int:
    response = await client.post("/maps/new", data={"title": title, "description": description})
    assert response.status_code == 200
    listing = await client.get("/")
    # Newest map is listed first
    marker = 'href="/maps/'
    start = listing.text.index(marker, listing.text.index('class="maps"')) + len(marker)
    return int(listing.text[start:listing.text.index('"', start)])


class TestAuthGate:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/maps/new"),
            ("POST", "/maps/new"),
            ("GET", "/maps/1/edit"),
            ("POST", "/maps/1/delete"),
        ],
    )
    async def test_map_routes_require_login(self, test_client, method, path):
        with patch("wikimaps.routes.maps.map_service") as mock_service:
            mock_service.create_map = AsyncMock()
            mock_service.get_map = AsyncMock()
            mock_service.delete_map = AsyncMock()

            response = await test_client.request(method, path, data={"title": "x"})

            assert response.status_code == 401
            assert "Login required" in response.text
            mock_service.create_map.assert_not_awaited()
            mock_service.get_map.assert_not_awaited()
            mock_service.delete_map.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_point_route_requires_login(self, test_client):
        with patch("wikimaps.routes.points.map_service") as mock_service:
            mock_service.add_point = AsyncMock()

            response = await test_client.post("/maps/1/points", data={**POINT_FORM, "map_id": "1"})

            assert response.status_code == 401
            assert response.json()["error"] == "authentication_required"
            mock_service.add_point.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_profile_requires_login(self, test_client):
        response = await test_client.get("/users/42")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_public_pages_do_not_require_login(self, test_client):
        response = await test_client.get("/")
        assert response.status_code == 200
        assert "No maps yet." in response.text

    @pytest.mark.asyncio
    async def test_tampered_cookie_is_logged_out(self, test_client):
        response = await test_client.get(
            "/maps/new", headers={"Cookie": "session=eyJ1c2VyX2lkIjoiNDIifQ.forged.signature"}
        )
        assert response.status_code == 401


class TestLoginLogout:

    @pytest.mark.asyncio
    async def test_login_sets_cookie_and_redirects(self, test_client):
        response = await login(test_client)

        assert response.headers["location"] == "/"
        assert "session=" in response.headers["set-cookie"]
        assert "httponly" in response.headers["set-cookie"].lower()

        form = await test_client.get("/maps/new")
        assert form.status_code == 200

    @pytest.mark.asyncio
    async def test_logout_clears_session(self, test_client):
        await login(test_client)

        response = await test_client.post("/logout")
        assert response.status_code == 303
        assert response.headers["location"] == "/"

        after = await test_client.get("/maps/new")
        assert after.status_code == 401

    @pytest.mark.asyncio
    async def test_logout_twice_is_harmless(self, test_client):
        await login(test_client)
        first = await test_client.post("/logout")
        second = await test_client.post("/logout")
        assert first.status_code == second.status_code == 303
        assert (await test_client.get("/maps/new")).status_code == 401

    @pytest.mark.asyncio
    async def test_public_route_does_not_set_cookie(self, test_client):
        response = await test_client.get("/")
        assert "set-cookie" not in response.headers


class TestMapRoutes:

    @pytest.mark.asyncio
    async def test_create_map_and_see_it_listed(self, test_client):
        await login(test_client)

        created = await test_client.post("/maps/new", data={"title": "Food trucks", "description": "Lunch"})
        assert created.status_code == 200
        assert "Food trucks" in created.text

        listing = await test_client.get("/")
        assert listing.text.count("Food trucks") == 1

    @pytest.mark.asyncio
    async def test_create_map_without_title_is_400(self, test_client):
        await login(test_client)
        response = await test_client.post("/maps/new", data={"title": ""})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_view_and_edit_map(self, test_client):
        await login(test_client)
        map_id = await create_map(test_client, title="Murals")

        view = await test_client.get(f"/maps/{map_id}")
        edit = await test_client.get(f"/maps/{map_id}/edit")

        assert view.status_code == 200
        assert "Murals" in view.text
        assert edit.status_code == 200

    @pytest.mark.asyncio
    async def test_unknown_map_page_is_404(self, test_client):
        response = await test_client.get("/maps/999")
        assert response.status_code == 404
        assert "text/html" in response.headers["content-type"]

    @pytest.mark.asyncio
    async def test_json_for_unknown_map_is_404(self, test_client):
        response = await test_client.get("/maps/999/json")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_non_numeric_map_page_is_404_view(self, test_client):
        response = await test_client.get("/maps/abc")
        assert response.status_code == 404
        assert "text/html" in response.headers["content-type"]
        assert "<h1>404</h1>" in response.text

    @pytest.mark.asyncio
    async def test_non_numeric_map_json_is_404(self, test_client):
        response = await test_client.get("/maps/abc/json")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"
        assert "detail" not in response.json()

    @pytest.mark.asyncio
    async def test_store_failure_is_500_and_app_keeps_serving(self, test_client):
        with patch("wikimaps.routes.maps.map_service") as mock_service:
            mock_service.get_map_names = AsyncMock(
                side_effect=PersistenceError(message="Could not retrieve maps.")
            )

            response = await test_client.get("/")

            assert response.status_code == 500
            assert "An internal error occurred" in response.text
            mock_service.get_map_names.assert_awaited_once()

        assert (await test_client.get("/")).status_code == 200

    @pytest.mark.asyncio
    async def test_json_for_map_without_points_is_empty_list(self, test_client):
        await login(test_client)
        map_id = await create_map(test_client)

        response = await test_client.get(f"/maps/{map_id}/json")

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_owner_can_delete_map(self, test_client):
        await login(test_client)
        map_id = await create_map(test_client)

        response = await test_client.post(f"/maps/{map_id}/delete")

        assert response.status_code == 303
        assert (await test_client.get(f"/maps/{map_id}/json")).status_code == 404

    @pytest.mark.asyncio
    async def test_other_user_cannot_delete_map(self, test_client):
        await login(test_client, "alice")
        map_id = await create_map(test_client)
        await login(test_client, "mallory")

        response = await test_client.post(f"/maps/{map_id}/delete")

        assert response.status_code == 403
        assert (await test_client.get(f"/maps/{map_id}")).status_code == 200


class TestPointRoutes:

    @pytest.mark.asyncio
    async def test_add_point_then_list(self, test_client):
        await login(test_client)
        map_id = await create_map(test_client)

        response = await test_client.post(
            f"/maps/{map_id}/points", data={**POINT_FORM, "map_id": str(map_id)}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "Pier"
        assert body["user_id"] == "42"
        assert body["image"] is None

        points = (await test_client.get(f"/maps/{map_id}/json")).json()
        assert len(points) == 1
        assert points[0]["id"] == body["id"]
        assert points[0]["latitude"] == 49.28271234567891
        assert points[0]["longitude"] == -123.12071234567891

    @pytest.mark.asyncio
    async def test_malformed_point_is_404_with_reason(self, test_client):
        await login(test_client)
        map_id = await create_map(test_client)
        form = {k: v for k, v in POINT_FORM.items() if k != "lat"}

        response = await test_client.post(
            f"/maps/{map_id}/points", data={**form, "map_id": str(map_id)}
        )

        assert response.status_code == 404
        assert response.json()["error"] == "point_not_added"
        assert "lat" in response.json()["message"]
        assert (await test_client.get(f"/maps/{map_id}/json")).json() == []

    @pytest.mark.asyncio
    async def test_point_without_map_id_is_404_and_not_stored(self, test_client):
        await login(test_client)
        map_id = await create_map(test_client)

        response = await test_client.post(f"/maps/{map_id}/points", data=POINT_FORM)

        assert response.status_code == 404
        assert response.json()["error"] == "point_not_added"
        assert "map_id" in response.json()["message"]
        assert (await test_client.get(f"/maps/{map_id}/json")).json() == []

    @pytest.mark.asyncio
    async def test_point_on_non_numeric_map_is_404(self, test_client):
        await login(test_client)

        response = await test_client.post("/maps/abc/points", data={**POINT_FORM, "map_id": "abc"})

        assert response.status_code == 404
        assert response.json()["error"] == "point_not_added"
        assert "map_id" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_point_for_unknown_map_is_404(self, test_client):
        await login(test_client)
        response = await test_client.post("/maps/555/points", data={**POINT_FORM, "map_id": "555"})
        assert response.status_code == 404
        assert response.json()["error"] == "point_not_added"

    @pytest.mark.asyncio
    async def test_body_map_id_must_match_url(self, test_client):
        await login(test_client)
        first = await create_map(test_client, title="First")
        second = await create_map(test_client, title="Second")

        response = await test_client.post(
            f"/maps/{first}/points", data={**POINT_FORM, "map_id": str(second)}
        )

        assert response.status_code == 404
        assert (await test_client.get(f"/maps/{second}/json")).json() == []

    @pytest.mark.asyncio
    async def test_edit_and_delete_point(self, test_client):
        await login(test_client)
        map_id = await create_map(test_client)
        added = await test_client.post(
            f"/maps/{map_id}/points", data={**POINT_FORM, "map_id": str(map_id)}
        )
        point_id = added.json()["id"]

        edited = await test_client.post(
            f"/maps/{map_id}/points/{point_id}", data={"title": "Old pier"}
        )
        assert edited.status_code == 200
        assert edited.json()["title"] == "Old pier"

        deleted = await test_client.post(f"/maps/{map_id}/points/{point_id}/delete")
        assert deleted.json() == {"deleted": point_id, "map_id": map_id}
        assert (await test_client.get(f"/maps/{map_id}/json")).json() == []

    @pytest.mark.asyncio
    async def test_edit_missing_point_is_404(self, test_client):
        await login(test_client)
        map_id = await create_map(test_client)
        response = await test_client.post(f"/maps/{map_id}/points/99", data={"title": "x"})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_other_user_cannot_edit_or_delete_point(self, test_client):
        await login(test_client, "alice")
        map_id = await create_map(test_client)
        added = await test_client.post(
            f"/maps/{map_id}/points", data={**POINT_FORM, "map_id": str(map_id)}
        )
        point_id = added.json()["id"]
        await login(test_client, "mallory")

        edited = await test_client.post(
            f"/maps/{map_id}/points/{point_id}", data={"title": "Defaced"}
        )
        deleted = await test_client.post(f"/maps/{map_id}/points/{point_id}/delete")

        assert edited.status_code == 403
        assert edited.json()["error"] == "permission_denied"
        assert deleted.status_code == 403
        points = (await test_client.get(f"/maps/{map_id}/json")).json()
        assert [p["title"] for p in points] == ["Pier"]

    @pytest.mark.asyncio
    async def test_edit_with_blank_image_clears_it(self, test_client):
        await login(test_client)
        map_id = await create_map(test_client)
        added = await test_client.post(
            f"/maps/{map_id}/points",
            data={**POINT_FORM, "image": "/images/pier.jpg", "map_id": str(map_id)},
        )
        point_id = added.json()["id"]

        edited = await test_client.post(f"/maps/{map_id}/points/{point_id}", data={"image": ""})

        assert edited.status_code == 200
        assert edited.json()["image"] is None


class TestFavouriteRoutes:

    @pytest.mark.asyncio
    async def test_add_and_remove_favourite(self, test_client):
        await login(test_client)
        map_id = await create_map(test_client, title="Bookshops")

        added = await test_client.post("/users/42/favourites", data={"map_id": str(map_id)})
        assert added.status_code == 303
        assert added.headers["location"] == "/users/42"

        profile = await test_client.get("/users/42")
        assert profile.status_code == 200
        assert "Bookshops" in profile.text
        marker = "/favourites/"
        start = profile.text.index(marker) + len(marker)
        favourite_id = profile.text[start:profile.text.index("/delete", start)]

        removed = await test_client.post(f"/users/42/favourites/{favourite_id}/delete")
        assert removed.status_code == 303
        assert "No favourites yet." in (await test_client.get("/users/42")).text

    @pytest.mark.asyncio
    async def test_cannot_edit_another_users_favourites(self, test_client):
        await login(test_client)
        map_id = await create_map(test_client)

        response = await test_client.post("/users/7/favourites", data={"map_id": str(map_id)})

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_non_numeric_map_id_is_400(self, test_client):
        await login(test_client)
        response = await test_client.post("/users/42/favourites", data={"map_id": "abc"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_profile_of_unknown_user_shows_placeholder(self, test_client):
        await login(test_client)
        response = await test_client.get("/users/somebody")
        assert response.status_code == 200
        assert "somebody" in response.text


class TestApiAndHealth:

    @pytest.mark.asyncio
    async def test_users_api_empty(self, test_client):
        response = await test_client.get("/api/users")
        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_users_api_unknown_user_is_404_json(self, test_client):
        response = await test_client.get("/api/users/ghost")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"

    @pytest.mark.asyncio
    async def test_request_id_generated(self, test_client):
        response = await test_client.get("/")
        assert len(response.headers[REQUEST_ID_HEADER]) == 8

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client):
        response = await test_client.get("/", headers={REQUEST_ID_HEADER: "abc123"})
        assert response.headers[REQUEST_ID_HEADER] == "abc123"
