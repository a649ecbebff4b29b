"""
RecipeBox Backend — Recipe Endpoint Tests
===========================================

What:  End-to-end tests for /auth/recipe, /auth/searchRecipes and /health.
How:   Two users (Ann, Bob) register through the API; every request goes
       through the full middleware chain via the `client` fixture.

Test Strategy:
    ✅ Create via JSON and via multipart (with and without an image)
    ✅ Uploaded images are served back under /uploads; oversize parts are never read
    ✅ A failed insert of any kind removes the stored image
    ✅ Listing and search never leak another user's recipes
    ✅ Update: 200 own / 403 other / 404 unknown / 400 malformed id
    ✅ Delete: 204 own / 204 unknown / 403 other (recipe untouched)
    ✅ Missing fields → 400; datastore failures → 500 with the operation's message
"""

import logging
import uuid
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from starlette.datastructures import UploadFile

from recipebox.exceptions import DatabaseError
from recipebox.middleware.logging import level_for_status
from recipebox.services.recipe_service import recipe_service

SOUP = {"title": "Soup", "ingredients": ["water", "salt"], "instructions": "boil"}


@pytest_asyncio.fixture
async def ann(register, bearer):
    return bearer(await register("Ann", "ann@x.io"))


@pytest_asyncio.fixture
async def bob(register, bearer):
    return bearer(await register("Bob", "bob@x.io"))


def user_id_of(app, headers) -> str:
    token = headers["Authorization"].split(" ")[1]
    return str(app.state.token_service.verify(token))


async def create(client, headers, **overrides):
    response = await client.post("/auth/recipe", json={**SOUP, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


# ── Create ────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_json(client, app, ann):
    response = await client.post("/auth/recipe", json=SOUP, headers=ann)
    assert response.status_code == 201

    body = response.json()
    assert body["title"] == "Soup"
    assert body["ingredients"] == ["water", "salt"]
    assert body["instructions"] == "boil"
    assert body["imageUrl"] is None
    assert body["userId"] == user_id_of(app, ann)
    assert uuid.UUID(body["id"])
    assert body["createdAt"]


@pytest.mark.asyncio
async def test_create_ignores_client_supplied_owner(client, app, ann):
    body = await create(client, ann, userId=str(uuid.uuid4()))
    assert body["userId"] == user_id_of(app, ann)


@pytest.mark.asyncio
async def test_create_single_ingredient_string(client, ann):
    body = await create(client, ann, ingredients="water")
    assert body["ingredients"] == ["water"]


@pytest.mark.asyncio
async def test_create_form_without_image(client, ann):
    response = await client.post(
        "/auth/recipe",
        data={"title": "Soup", "ingredients": ["water", "salt"], "instructions": "boil"},
        headers=ann,
    )
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["ingredients"] == ["water", "salt"]
    assert body["imageUrl"] is None


@pytest.mark.asyncio
async def test_create_multipart_with_image(client, ann, test_settings, sample_image_bytes):
    response = await client.post(
        "/auth/recipe",
        data={"title": "Cake", "ingredients": '["flour", "eggs"]', "instructions": "bake"},
        files={"image": ("cake.jpg", sample_image_bytes, "image/jpeg")},
        headers=ann,
    )
    assert response.status_code == 201, response.text

    body = response.json()
    assert body["ingredients"] == ["flour", "eggs"]
    image_url = body["imageUrl"]
    assert image_url.startswith("http://localhost:4000/uploads/")
    assert image_url.endswith(".jpg")

    stored_name = image_url.rsplit("/", 1)[1]
    assert (Path(test_settings.upload_dir) / stored_name).read_bytes() == sample_image_bytes

    served = await client.get(f"/uploads/{stored_name}")
    assert served.status_code == 200
    assert served.content == sample_image_bytes


@pytest.mark.asyncio
async def test_create_oversize_image(client, ann, test_settings):
    response = await client.post(
        "/auth/recipe",
        data=SOUP,
        files={"image": ("big.jpg", b"x" * (test_settings.max_upload_size + 1), "image/jpeg")},
        headers=ann,
    )
    assert response.status_code == 400
    assert list(Path(test_settings.upload_dir).iterdir()) == []


@pytest.mark.asyncio
async def test_oversize_image_rejected_before_read(client, ann, test_settings):
    reader = AsyncMock(return_value=b"")
    with patch.object(UploadFile, "read", reader):
        response = await client.post(
            "/auth/recipe",
            data=SOUP,
            files={"image": ("big.jpg", b"x" * (test_settings.max_upload_size * 2), "image/jpeg")},
            headers=ann,
        )
    assert response.status_code == 400
    assert response.json()["details"]["field"] == "image"
    reader.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize("missing", ["title", "ingredients", "instructions"])
async def test_create_missing_field(client, ann, missing):
    payload = {k: v for k, v in SOUP.items() if k != missing}
    response = await client.post("/auth/recipe", json=payload, headers=ann)
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "validation_error"
    assert missing in body["details"]["fields"]


@pytest.mark.asyncio
async def test_create_unreadable_body(client, ann):
    response = await client.post(
        "/auth/recipe",
        content=b"not json",
        headers={**ann, "Content-Type": "application/json"},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_failure_cleans_up_image(client, ann, test_settings, sample_image_bytes):
    failing = AsyncMock(side_effect=DatabaseError(message="Error adding recipe"))
    with patch.object(recipe_service, "create", failing):
        response = await client.post(
            "/auth/recipe",
            data=SOUP,
            files={"image": ("cake.jpg", sample_image_bytes, "image/jpeg")},
            headers=ann,
        )
    assert response.status_code == 500
    assert response.json()["message"] == "Error adding recipe"
    assert list(Path(test_settings.upload_dir).iterdir()) == []


@pytest.mark.asyncio
async def test_unexpected_failure_cleans_up_image(client, ann, test_settings, sample_image_bytes):
    failing = AsyncMock(side_effect=RuntimeError("driver crashed"))
    with patch.object(recipe_service, "create", failing):
        # ASGITransport re-raises errors that reach ServerErrorMiddleware
        with pytest.raises(RuntimeError):
            await client.post(
                "/auth/recipe",
                data=SOUP,
                files={"image": ("cake.jpg", sample_image_bytes, "image/jpeg")},
                headers=ann,
            )
    assert list(Path(test_settings.upload_dir).iterdir()) == []


# ── List / Search ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_list_only_own_recipes_in_order(client, ann, bob):
    first = await create(client, ann, title="First")
    await create(client, bob, title="Bob's")
    second = await create(client, ann, title="Second")

    response = await client.get("/auth/recipe", headers=ann)
    assert response.status_code == 200
    assert [r["id"] for r in response.json()] == [first["id"], second["id"]]

    bob_list = (await client.get("/auth/recipe", headers=bob)).json()
    assert [r["title"] for r in bob_list] == ["Bob's"]


@pytest.mark.asyncio
async def test_list_empty(client, ann):
    response = await client.get("/auth/recipe", headers=ann)
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_search_case_insensitive_and_owner_scoped(client, ann, bob):
    await create(client, ann, title="Tomato Soup")
    await create(client, ann, title="Bread")
    await create(client, bob, title="Soup")

    response = await client.get("/auth/searchRecipes/sOU", headers=ann)
    assert response.status_code == 200
    assert [r["title"] for r in response.json()] == ["Tomato Soup"]


@pytest.mark.asyncio
async def test_search_no_match(client, ann):
    await create(client, ann, title="Bread")
    response = await client.get("/auth/searchRecipes/soup", headers=ann)
    assert response.json() == []


@pytest.mark.asyncio
async def test_search_regex(client, ann):
    await create(client, ann, title="Soup")
    await create(client, ann, title="Tomato Soup")

    anchored = await client.get("/auth/searchRecipes/%5Eso", headers=ann)
    assert [r["title"] for r in anchored.json()] == ["Soup"]

    dotted = await client.get("/auth/searchRecipes/s.up", headers=ann)
    assert [r["title"] for r in dotted.json()] == ["Soup", "Tomato Soup"]


@pytest.mark.asyncio
async def test_search_invalid_regex(client, ann):
    await create(client, ann, title="Soup")
    response = await client.get("/auth/searchRecipes/(", headers=ann)
    assert response.status_code == 500
    assert response.json()["message"] == "Error searching recipes"


# ── Update ────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_update_own_recipe(client, ann):
    created = await create(client, ann)
    response = await client.put(
        f"/auth/recipe/{created['id']}",
        json={"title": "Better Soup", "ingredients": ["stock"], "instructions": "simmer"},
        headers=ann,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["id"] == created["id"]
    assert body["title"] == "Better Soup"
    assert body["userId"] == created["userId"]

    listed = (await client.get("/auth/recipe", headers=ann)).json()
    assert listed[0]["title"] == "Better Soup"


@pytest.mark.asyncio
async def test_update_other_users_recipe(client, ann, bob):
    created = await create(client, ann)
    response = await client.put(f"/auth/recipe/{created['id']}", json={**SOUP, "title": "Mine now"}, headers=bob)
    assert response.status_code == 403
    assert response.json()["error"] == "forbidden"

    listed = (await client.get("/auth/recipe", headers=ann)).json()
    assert listed[0]["title"] == "Soup"


@pytest.mark.asyncio
async def test_update_unknown_recipe(client, ann):
    response = await client.put(f"/auth/recipe/{uuid.uuid4()}", json=SOUP, headers=ann)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_missing_field(client, ann):
    created = await create(client, ann)
    response = await client.put(f"/auth/recipe/{created['id']}", json={"title": "x"}, headers=ann)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_malformed_id(client, ann):
    put = await client.put("/auth/recipe/not-a-uuid", json=SOUP, headers=ann)
    delete = await client.delete("/auth/recipe/not-a-uuid", headers=ann)
    assert put.status_code == 400
    assert delete.status_code == 400


# ── Delete ────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_delete_own_recipe(client, ann):
    created = await create(client, ann)
    response = await client.delete(f"/auth/recipe/{created['id']}", headers=ann)
    assert response.status_code == 204
    assert response.content == b""
    assert (await client.get("/auth/recipe", headers=ann)).json() == []


@pytest.mark.asyncio
async def test_delete_unknown_recipe(client, ann):
    response = await client.delete(f"/auth/recipe/{uuid.uuid4()}", headers=ann)
    assert response.status_code == 204


@pytest.mark.asyncio
async def test_delete_other_users_recipe(client, ann, bob):
    created = await create(client, ann)
    response = await client.delete(f"/auth/recipe/{created['id']}", headers=bob)
    assert response.status_code == 403
    assert len((await client.get("/auth/recipe", headers=ann)).json()) == 1


# ── Datastore Failures ────────────────────────────────────────────────────


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method_name, message, request_args",
    [
        ("list_by_owner", "Error fetching recipes", ("GET", "/auth/recipe")),
        ("search_by_owner_and_title", "Error searching recipes", ("GET", "/auth/searchRecipes/soup")),
        ("delete_by_id", "Error deleting recipe", ("DELETE", f"/auth/recipe/{uuid.uuid4()}")),
    ],
)
async def test_datastore_failure(client, ann, method_name, message, request_args):
    failing = AsyncMock(side_effect=DatabaseError(message=message))
    with patch.object(recipe_service, method_name, failing):
        method, url = request_args
        response = await client.request(method, url, headers=ann)
    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "server_error"
    assert body["message"] == message


# ── Health / Request ID ───────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["database"] == "connected"


@pytest.mark.asyncio
async def test_request_id_echoed(client):
    response = await client.get("/health", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"


@pytest.mark.asyncio
async def test_access_log_names_caller(client, app, ann, caplog):
    with caplog.at_level(logging.INFO, logger="recipebox.access"):
        await client.get("/auth/recipe", headers=ann)
        await client.get("/auth/recipe")

    lines = [r for r in caplog.records if r.name == "recipebox.access"]
    assert lines[0].levelno == logging.INFO
    assert user_id_of(app, ann) in lines[0].getMessage()
    assert lines[1].levelno == logging.WARNING
    assert "user=-" in lines[1].getMessage()


@pytest.mark.parametrize("status, level", [(200, logging.INFO), (204, logging.INFO), (403, logging.WARNING), (500, logging.ERROR)])
def test_level_for_status(status, level):
    assert level_for_status(status) == level
