"""
Tests for the Supabase repositories and storage.

The Supabase client is a MagicMock whose query builder returns itself
for every chained call.
"""

from unittest.mock import MagicMock, patch

import pytest

from recetario.domain.entities import Profile
from recetario.domain.exceptions import ExternalServiceException, StorageException
from recetario.repositories.supabase_repository import (
    RECIPE_WITH_AUTHOR,
    SupabaseFavoriteRepository,
    SupabasePhotoStorage,
    SupabaseProfileRepository,
    SupabaseRecipeRepository,
)
from recetario.supabase_client import extract_project_reference

BUILDER_METHODS = (
    "select",
    "eq",
    "order",
    "limit",
    "maybe_single",
    "insert",
    "update",
    "delete",
    "upsert",
)


def make_client(data=None, error=None):
    """Supabase client mock whose table queries resolve to ``data``."""
    query = MagicMock()
    for name in BUILDER_METHODS:
        getattr(query, name).return_value = query
    if error is not None:
        query.execute.side_effect = error
    else:
        query.execute.return_value = MagicMock(data=data)

    client = MagicMock()
    client.table.return_value = query
    return client, query


class TestRecipeRepository:
    """Test recipe table access."""

    @pytest.mark.asyncio
    async def test_list_recent(self, recipe_rows):
        client, query = make_client(recipe_rows)
        repo = SupabaseRecipeRepository(client)

        recipes = await repo.list_recent(200)

        assert [r.id for r in recipes] == ["r1", "r2", "r3"]
        client.table.assert_called_once_with("recetas")
        query.select.assert_called_once_with(RECIPE_WITH_AUTHOR)
        query.order.assert_called_once_with("fecha", desc=True)
        query.limit.assert_called_once_with(200)

    @pytest.mark.asyncio
    async def test_list_recent_without_limit(self):
        client, query = make_client([])

        assert await SupabaseRecipeRepository(client).list_recent() == []
        query.limit.assert_not_called()

    @pytest.mark.asyncio
    async def test_list_recent_error(self):
        client, _ = make_client(error=RuntimeError("boom"))

        with pytest.raises(ExternalServiceException):
            await SupabaseRecipeRepository(client).list_recent()

    @pytest.mark.asyncio
    async def test_search_rpc(self, recipe_rows):
        client = MagicMock()
        client.rpc.return_value.execute.return_value = MagicMock(data=[recipe_rows[0]])
        repo = SupabaseRecipeRepository(client, rpc_name="search_recetas")

        recipes = await repo.search("tarta", 50)

        assert [r.title for r in recipes] == ["Tarta de Queso"]
        client.rpc.assert_called_once_with("search_recetas", {"q": "tarta", "lim": 50})

    @pytest.mark.asyncio
    async def test_search_errors_propagate(self):
        client = MagicMock()
        client.rpc.return_value.execute.side_effect = RuntimeError("42883")

        with pytest.raises(RuntimeError):
            await SupabaseRecipeRepository(client).search("tarta", 50)

    @pytest.mark.asyncio
    async def test_get(self, recipe_rows):
        client, query = make_client(recipe_rows[1])

        recipe = await SupabaseRecipeRepository(client).get("r2")

        assert recipe.title == "Pollo al horno con patatas"
        query.eq.assert_called_once_with("id", "r2")

    @pytest.mark.asyncio
    async def test_get_missing(self):
        client, query = make_client()
        query.execute.return_value = None

        assert await SupabaseRecipeRepository(client).get("nope") is None

    @pytest.mark.asyncio
    async def test_update_scoped_to_owner(self, sample_recipes):
        client, query = make_client([])

        await SupabaseRecipeRepository(client).update(sample_recipes[0], owner_id="user-1")

        payload = query.update.call_args.args[0]
        assert "id" not in payload
        assert "user_id" not in payload
        assert "fecha" not in payload
        assert payload["titulo"] == "Tarta de Queso"
        query.eq.assert_any_call("id", "r1")
        query.eq.assert_any_call("user_id", "user-1")

    @pytest.mark.asyncio
    async def test_delete_by_admin_not_scoped(self):
        client, query = make_client([])

        await SupabaseRecipeRepository(client).delete("r1")

        query.eq.assert_called_once_with("id", "r1")

    @pytest.mark.asyncio
    async def test_insert(self, sample_recipes):
        client, query = make_client([])

        result = await SupabaseRecipeRepository(client).insert(sample_recipes[0])

        assert result is sample_recipes[0]
        assert query.insert.call_args.args[0]["user_id"] == "user-1"


class TestFavoriteRepository:
    """Test favorites table access."""

    @pytest.mark.asyncio
    async def test_list_ids(self):
        client, _ = make_client([{"receta_id": "r1"}, {"receta_id": 5}, {"receta_id": None}])

        assert await SupabaseFavoriteRepository(client).list_ids("user-1") == {"r1", "5"}

    @pytest.mark.asyncio
    async def test_list_recipes_skips_deleted(self, recipe_rows):
        client, query = make_client(
            [
                {"created_at": "2024-03-20T00:00:00Z", "receta": recipe_rows[1]},
                {"created_at": "2024-03-19T00:00:00Z", "receta": None},
            ]
        )

        recipes = await SupabaseFavoriteRepository(client).list_recipes("user-1")

        assert [r.id for r in recipes] == ["r2"]
        assert recipes[0].is_favorite is True
        query.order.assert_called_once_with("created_at", desc=True)

    @pytest.mark.asyncio
    async def test_add_and_remove(self):
        client, query = make_client([])
        repo = SupabaseFavoriteRepository(client)

        await repo.add("user-1", "r1")
        await repo.remove("user-1", "r1")

        query.insert.assert_called_once_with({"user_id": "user-1", "receta_id": "r1"})
        query.eq.assert_any_call("receta_id", "r1")

    @pytest.mark.asyncio
    async def test_add_error(self):
        client, _ = make_client(error=RuntimeError("duplicate key"))

        with pytest.raises(ExternalServiceException):
            await SupabaseFavoriteRepository(client).add("user-1", "r1")


class TestProfileRepository:
    """Test profiles and roles."""

    @pytest.mark.asyncio
    async def test_get(self):
        client, _ = make_client({"id": "u1", "username": "ana"})

        profile = await SupabaseProfileRepository(client).get("u1")

        assert profile == Profile(id="u1", username="ana")

    @pytest.mark.asyncio
    async def test_upsert(self):
        client, query = make_client([])

        await SupabaseProfileRepository(client).upsert(Profile(id="u1", username="ana"))

        assert query.upsert.call_args.kwargs == {"on_conflict": "id"}

    @pytest.mark.asyncio
    async def test_role(self):
        client, _ = make_client({"role": "admin"})

        assert await SupabaseProfileRepository(client).get_role("u1") == "admin"
        client.table.assert_called_once_with("user_roles")

    @pytest.mark.asyncio
    async def test_role_missing(self):
        client, query = make_client()
        query.execute.return_value = None

        assert await SupabaseProfileRepository(client).get_role("u1") is None


class TestPhotoStorage:
    """Test uploads with retry."""

    @pytest.mark.asyncio
    async def test_upload_returns_public_url(self):
        client = MagicMock()
        bucket = client.storage.from_.return_value
        bucket.get_public_url.return_value = "https://x.supabase.co/storage/v1/object/public/b/p.png"

        url = await SupabasePhotoStorage(client).upload("b", "p.png", b"img", "image/png")

        assert url.endswith("/b/p.png")
        bucket.upload.assert_called_once_with("p.png", b"img", {"content-type": "image/png"})

    @pytest.mark.asyncio
    async def test_transient_error_retried(self):
        client = MagicMock()
        bucket = client.storage.from_.return_value
        bucket.upload.side_effect = [ConnectionError("reset"), None]

        with patch.object(SupabasePhotoStorage._upload.retry, "sleep", lambda seconds: None):
            await SupabasePhotoStorage(client).upload("b", "p.png", b"img", "image/png")

        assert bucket.upload.call_count == 2

    @pytest.mark.asyncio
    async def test_persistent_error(self):
        client = MagicMock()
        bucket = client.storage.from_.return_value
        bucket.upload.side_effect = ConnectionError("reset")

        with patch.object(SupabasePhotoStorage._upload.retry, "sleep", lambda seconds: None):
            with pytest.raises(StorageException) as exc_info:
                await SupabasePhotoStorage(client).upload("b", "p.png", b"img", "image/png")

        assert bucket.upload.call_count == 3
        assert exc_info.value.details["bucket"] == "b"


class TestProjectReference:
    """Test Supabase URL parsing."""

    def test_valid(self):
        assert extract_project_reference("https://abc123xyz.supabase.co") == "abc123xyz"

    def test_invalid(self):
        assert extract_project_reference("https://example.com") is None
        assert extract_project_reference("") is None
