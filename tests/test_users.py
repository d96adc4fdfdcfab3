from __future__ import annotations

import pytest

from conftest import BUILD_PAYLOAD, csrf_headers, sign_in

pytestmark = pytest.mark.anyio


async def test_sync_user_creates_then_refreshes_record(client) -> None:
    sign_in(client, "user_new", email="melina@example.com", first_name="Melina", last_name="Kindling")
    headers = await csrf_headers(client)

    created = await client.post("/api/sync-user", headers=headers)
    assert created.status_code == 200
    body = created.json()
    assert body["username"] == "melina"
    assert body["name"] == "Melina Kindling"

    sign_in(client, "user_new", email="melina@example.com", username="maiden", image_url="https://img/1.png")
    refreshed = await client.post("/api/sync-user", headers=headers)
    assert refreshed.status_code == 200
    assert refreshed.json()["id"] == body["id"]
    assert refreshed.json()["username"] == "maiden"
    assert refreshed.json()["image_url"] == "https://img/1.png"


async def test_sync_user_requires_email(client) -> None:
    sign_in(client, "user_new", email="")
    headers = await csrf_headers(client)

    response = await client.post("/api/sync-user", headers=headers)

    assert response.status_code == 400
    assert response.json() == {"detail": "User email is required"}


async def test_sync_user_requires_identity(client) -> None:
    response = await client.post("/api/sync-user")
    assert response.status_code == 403


async def test_forged_session_cookie_is_ignored(client) -> None:
    client.cookies.set("__session", "forged.value")
    response = await client.get("/api/csrf-token")
    assert response.status_code == 401


async def test_check_username(client, create_user) -> None:
    await create_user("user_abc", username="ranni")

    taken = await client.get("/api/users/check-username", params={"username": "ranni"})
    free = await client.get("/api/users/check-username", params={"username": "blaidd"})

    assert taken.json() == {"available": False}
    assert free.json() == {"available": True}


async def test_update_profile(client, create_user) -> None:
    await create_user("user_abc", username="ranni")
    sign_in(client, "user_abc")
    headers = await csrf_headers(client)

    response = await client.put(
        "/api/users/profile",
        json={"username": "ranni_the_witch", "bio": "Age of Stars", "favorite_weapon": "Dark Moon Greatsword"},
        headers=headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["username"] == "ranni_the_witch"
    assert body["bio"] == "Age of Stars"
    assert body["favorite_weapon"] == "Dark Moon Greatsword"


async def test_update_profile_rejects_taken_username(client, create_user) -> None:
    await create_user("user_abc", username="ranni")
    await create_user("user_xyz", username="blaidd")
    sign_in(client, "user_abc")
    headers = await csrf_headers(client)

    response = await client.put("/api/users/profile", json={"username": "blaidd"}, headers=headers)

    assert response.status_code == 409
    assert response.json() == {"detail": "Username is already taken"}


async def test_update_profile_validates_fields(client, create_user) -> None:
    await create_user("user_abc")
    sign_in(client, "user_abc")
    headers = await csrf_headers(client)

    bad_name = await client.put("/api/users/profile", json={"username": "no spaces"}, headers=headers)
    long_bio = await client.put("/api/users/profile", json={"bio": "x" * 501}, headers=headers)

    assert bad_name.status_code == 422
    assert long_bio.status_code == 422


async def test_public_profile_and_builds(client, create_user) -> None:
    await create_user("user_abc", username="ranni")
    sign_in(client, "user_abc")
    headers = await csrf_headers(client)
    build = (await client.post("/api/builds/", json=BUILD_PAYLOAD, headers=headers)).json()
    await client.post("/api/builds/", json={**BUILD_PAYLOAD, "is_published": False}, headers=headers)
    await client.post(f"/api/builds/{build['id']}/like", headers=headers)
    await client.post(f"/api/builds/{build['id']}/comments", json={"content": "Notes to self"}, headers=headers)

    profile = await client.get("/api/users/ranni")
    assert profile.status_code == 200
    assert profile.json()["stats"] == {
        "build_count": 2,
        "published_build_count": 1,
        "likes_received": 1,
        "comments_received": 1,
    }

    builds = (await client.get("/api/users/ranni/builds")).json()
    assert builds["total_builds"] == 1
    assert builds["builds"][0]["id"] == build["id"]


async def test_unknown_profile_is_404(client) -> None:
    assert (await client.get("/api/users/nobody")).status_code == 404
    assert (await client.get("/api/users/nobody/builds")).status_code == 404


async def test_logout_clears_cookies_without_redirect(client) -> None:
    sign_in(client, "user_abc")
    await csrf_headers(client)

    response = await client.get("/logout")

    assert response.status_code == 204
    cleared = response.headers.get_list("set-cookie")
    assert any(cookie.startswith("__session=") for cookie in cleared)
    assert any(cookie.startswith("csrf_token=") for cookie in cleared)
