"""
Photo Browser API — Album Endpoint Tests
==========================================

What:  Album CRUD through HTTP: id assignment, listing (filters, sorting,
       pagination envelope), ownership and the non-empty delete rule.
"""

import math
from unittest.mock import AsyncMock, patch

import pytest

from conftest import auth_header


class TestCreateAlbum:
    @pytest.mark.asyncio
    async def test_requires_token(self, client):
        response = await client.post("/api/albums", json={"title": "Trip"})
        assert response.status_code == 401
        assert response.json() == {"error": "No token provided"}

    @pytest.mark.asyncio
    async def test_auth_checked_before_body(self, client):
        response = await client.post("/api/albums", json={})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_create_returns_album_with_owner(self, client, create_user):
        user, token = await create_user(name="Ada", email="ada@example.com")

        response = await client.post("/api/albums", json={"title": "Trip"}, headers=auth_header(token))

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Album created successfully"
        album = body["album"]
        assert album["id"] == 1
        assert album["title"] == "Trip"
        assert album["userId"] == user.id
        assert album["user"] == {"id": user.id, "name": "Ada", "email": "ada@example.com"}
        assert "createdAt" in album and "updatedAt" in album

    @pytest.mark.asyncio
    async def test_sequential_creation_yields_increasing_ids(self, client, create_user):
        _, token = await create_user()

        ids = []
        for i in range(4):
            response = await client.post("/api/albums", json={"title": f"A{i}"}, headers=auth_header(token))
            ids.append(response.json()["album"]["id"])

        assert ids == [1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_id_follows_current_maximum(self, client, create_user, create_album):
        user, token = await create_user()
        await create_album(user, album_id=41)

        response = await client.post("/api/albums", json={"title": "Next"}, headers=auth_header(token))
        assert response.json()["album"]["id"] == 42

    @pytest.mark.asyncio
    async def test_colliding_id_is_a_conflict(self, client, create_user, create_album):
        user, token = await create_user()
        await create_album(user, album_id=1)

        # A concurrent creator that read the same max(id) loses on the primary key
        with patch("photo_browser.services.album_service.next_id", new=AsyncMock(return_value=1)):
            response = await client.post("/api/albums", json={"title": "Race"}, headers=auth_header(token))

        assert response.status_code == 409
        assert response.json() == {"error": "id already exists"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{}, {"title": ""}, {"title": "   "}, {"title": "x" * 201}])
    async def test_invalid_title(self, client, create_user, payload):
        _, token = await create_user()
        response = await client.post("/api/albums", json=payload, headers=auth_header(token))

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Validation failed"
        assert body["details"][0]["field"] == "title"


class TestListAlbums:
    @pytest.mark.asyncio
    async def test_empty_list(self, client):
        response = await client.get("/api/albums")

        assert response.status_code == 200
        assert response.json() == {
            "albums": [],
            "pagination": {
                "currentPage": 1,
                "totalPages": 0,
                "totalCount": 0,
                "limit": 18,
                "hasNextPage": False,
                "hasPrevPage": False,
            },
        }

    @pytest.mark.asyncio
    async def test_pagination_envelope(self, client, create_user, create_album):
        user, _ = await create_user()
        for i in range(7):
            await create_album(user, title=f"Album {i}")

        for page, limit in [(1, 3), (2, 3), (3, 3), (1, 7), (2, 5), (4, 2)]:
            response = await client.get("/api/albums", params={"_page": page, "_limit": limit})
            pagination = response.json()["pagination"]

            assert pagination["totalCount"] == 7
            assert pagination["totalPages"] == math.ceil(7 / limit)
            assert pagination["hasNextPage"] == (page < pagination["totalPages"])
            assert pagination["hasPrevPage"] == (page > 1)

        last = (await client.get("/api/albums", params={"_page": 3, "_limit": 3})).json()
        assert [a["id"] for a in last["albums"]] == [7]

    @pytest.mark.asyncio
    async def test_default_order_is_by_id(self, client, create_user, create_album):
        user, _ = await create_user()
        for title in ("Charlie", "alpha", "Bravo"):
            await create_album(user, title=title)

        albums = (await client.get("/api/albums")).json()["albums"]
        assert [a["id"] for a in albums] == [1, 2, 3]
        assert albums[0]["user"]["id"] == user.id

    @pytest.mark.asyncio
    async def test_sort_by_title_desc(self, client, create_user, create_album):
        user, _ = await create_user()
        for title in ("Bravo", "Delta", "Alpha", "Charlie"):
            await create_album(user, title=title)

        albums = (await client.get("/api/albums", params={"sort": "title", "order": "desc"})).json()["albums"]
        assert [a["title"] for a in albums] == ["Delta", "Charlie", "Bravo", "Alpha"]

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive_substring(self, client, create_user, create_album):
        user, _ = await create_user()
        for title in ("Summer in Rome", "ROME again", "Paris"):
            await create_album(user, title=title)

        body = (await client.get("/api/albums", params={"search": "rome"})).json()
        assert sorted(a["title"] for a in body["albums"]) == ["ROME again", "Summer in Rome"]
        assert body["pagination"]["totalCount"] == 2

    @pytest.mark.asyncio
    async def test_search_wildcards_are_literal(self, client, create_user, create_album):
        user, _ = await create_user()
        await create_album(user, title="100% fun")
        await create_album(user, title="100 fun")

        albums = (await client.get("/api/albums", params={"search": "0%"})).json()["albums"]
        assert [a["title"] for a in albums] == ["100% fun"]

    @pytest.mark.asyncio
    async def test_filter_by_user(self, client, create_user, create_album):
        ada, _ = await create_user()
        bob, _ = await create_user()
        await create_album(ada, title="Ada's")
        await create_album(bob, title="Bob's")

        albums = (await client.get("/api/albums", params={"userId": str(bob.id)})).json()["albums"]
        assert [a["title"] for a in albums] == ["Bob's"]

    @pytest.mark.asyncio
    async def test_invalid_query_lists_every_problem(self, client):
        response = await client.get("/api/albums", params={"_page": "x", "_limit": "500", "sort": "password"})

        assert response.status_code == 400
        fields = [d["field"] for d in response.json()["details"]]
        assert fields == ["_page", "_limit", "sort"]


class TestGetAlbum:
    @pytest.mark.asyncio
    async def test_get_album(self, client, create_user, create_album):
        user, _ = await create_user()
        await create_album(user, title="Trip")

        response = await client.get("/api/albums/1")
        assert response.status_code == 200
        assert response.json()["title"] == "Trip"

    @pytest.mark.asyncio
    async def test_missing_album(self, client):
        response = await client.get("/api/albums/99")
        assert response.status_code == 404
        assert response.json() == {"error": "Album not found"}

    @pytest.mark.asyncio
    async def test_album_photos_plain_array(self, client, create_user, create_album, create_photo):
        user, _ = await create_user()
        album = await create_album(user)
        other = await create_album(user)
        await create_photo(user, album, title="One")
        await create_photo(user, other, title="Elsewhere")
        await create_photo(user, album, title="Two")

        response = await client.get(f"/api/albums/{album.id}/photos")

        assert response.status_code == 200
        photos = response.json()
        assert isinstance(photos, list)
        assert [p["title"] for p in photos] == ["One", "Two"]

    @pytest.mark.asyncio
    async def test_album_photos_paging(self, client, create_user, create_album, create_photo):
        user, _ = await create_user()
        album = await create_album(user)
        for i in range(5):
            await create_photo(user, album, title=f"P{i}")

        photos = (await client.get(f"/api/albums/{album.id}/photos", params={"_page": 2, "_limit": 2})).json()
        assert [p["title"] for p in photos] == ["P2", "P3"]

    @pytest.mark.asyncio
    async def test_album_photos_of_missing_album(self, client):
        response = await client.get("/api/albums/5/photos")
        assert response.status_code == 404
        assert response.json() == {"error": "Album not found"}


class TestUpdateAlbum:
    @pytest.mark.asyncio
    async def test_owner_can_rename(self, client, create_user, create_album):
        user, token = await create_user()
        await create_album(user, title="Old")

        response = await client.put("/api/albums/1", json={"title": "New"}, headers=auth_header(token))

        assert response.status_code == 200
        assert response.json()["message"] == "Album updated successfully"
        assert response.json()["album"]["title"] == "New"

    @pytest.mark.asyncio
    async def test_empty_update_changes_nothing(self, client, create_user, create_album):
        user, token = await create_user()
        await create_album(user, title="Keep")

        response = await client.put("/api/albums/1", json={}, headers=auth_header(token))
        assert response.json()["album"]["title"] == "Keep"

    @pytest.mark.asyncio
    async def test_non_owner_is_forbidden(self, client, create_user, create_album):
        owner, _ = await create_user()
        _, intruder_token = await create_user()
        await create_album(owner, title="Mine")

        response = await client.put("/api/albums/1", json={"title": "Stolen"}, headers=auth_header(intruder_token))

        assert response.status_code == 403
        assert response.json() == {"error": "You can only update your own albums"}
        assert (await client.get("/api/albums/1")).json()["title"] == "Mine"

    @pytest.mark.asyncio
    async def test_update_missing_album(self, client, create_user):
        _, token = await create_user()
        response = await client.put("/api/albums/3", json={"title": "X"}, headers=auth_header(token))
        assert response.status_code == 404


class TestDeleteAlbum:
    @pytest.mark.asyncio
    async def test_delete_empty_album(self, client, create_user, create_album):
        user, token = await create_user()
        await create_album(user)

        response = await client.delete("/api/albums/1", headers=auth_header(token))

        assert response.status_code == 200
        assert response.json() == {"message": "Album deleted successfully"}
        assert (await client.get("/api/albums/1")).status_code == 404

    @pytest.mark.asyncio
    async def test_album_with_photos_is_kept(self, client, create_user, create_album, create_photo):
        user, token = await create_user()
        album = await create_album(user)
        await create_photo(user, album)
        await create_photo(user, album)

        response = await client.delete(f"/api/albums/{album.id}", headers=auth_header(token))

        assert response.status_code == 400
        assert response.json() == {
            "error": "Cannot delete album. It contains 2 photo(s). Please delete or move the photos first."
        }
        assert (await client.get(f"/api/albums/{album.id}")).status_code == 200
        assert len((await client.get(f"/api/albums/{album.id}/photos")).json()) == 2

    @pytest.mark.asyncio
    async def test_non_owner_cannot_delete(self, client, create_user, create_album):
        owner, _ = await create_user()
        _, intruder_token = await create_user()
        await create_album(owner)

        response = await client.delete("/api/albums/1", headers=auth_header(intruder_token))

        assert response.status_code == 403
        assert response.json() == {"error": "You can only delete your own albums"}
        assert (await client.get("/api/albums/1")).status_code == 200

    @pytest.mark.asyncio
    async def test_delete_requires_token(self, client, create_user, create_album):
        user, _ = await create_user()
        await create_album(user)
        assert (await client.delete("/api/albums/1")).status_code == 401
