"""
Tests for recipe search orchestration.

Covers:
- Empty query short-circuit
- Server search
- Fallback on error and on empty results
- Failure of the fallback listing
"""

import pytest

from recetario.domain.exceptions import ExternalServiceException
from recetario.services.search_service import RecipeSearchService


@pytest.fixture
def search_service(repos):
    return RecipeSearchService(repos.recipes, rpc_limit=50, fallback_limit=200)


class TestEmptyQuery:
    """Test queries with nothing to search."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   ", None])
    async def test_backend_not_contacted(self, search_service, repos, query):
        result = await search_service.search(query)

        assert result.source == "none"
        assert result.recipes == []
        repos.recipes.search.assert_not_called()
        repos.recipes.list_recent.assert_not_called()


class TestServerSearch:
    """Test the primary strategy."""

    @pytest.mark.asyncio
    async def test_uses_server_results(self, search_service, repos, sample_recipes):
        repos.recipes.search.return_value = [sample_recipes[1]]

        result = await search_service.search("  Pollo ")

        assert result.source == "server"
        assert result.query == "Pollo"
        assert [r.id for r in result.recipes] == ["r2"]
        repos.recipes.search.assert_awaited_once_with("pollo", 50)
        repos.recipes.list_recent.assert_not_called()

    @pytest.mark.asyncio
    async def test_server_order_kept(self, search_service, repos, sample_recipes):
        repos.recipes.search.return_value = list(reversed(sample_recipes))

        result = await search_service.search("horno")

        assert [r.id for r in result.recipes] == ["r3", "r2", "r1"]


class TestFallback:
    """Test the local fuzzy fallback."""

    @pytest.mark.asyncio
    async def test_fallback_on_error(self, search_service, repos, sample_recipes):
        repos.recipes.search.side_effect = RuntimeError("function search_recetas does not exist")
        repos.recipes.list_recent.return_value = sample_recipes

        result = await search_service.search("tarta de qeso")

        assert result.source == "fallback"
        assert [r.id for r in result.recipes] == ["r1"]
        repos.recipes.list_recent.assert_awaited_once_with(200)

    @pytest.mark.asyncio
    async def test_fallback_on_empty_result(self, search_service, repos, sample_recipes):
        repos.recipes.search.return_value = []
        repos.recipes.list_recent.return_value = sample_recipes

        result = await search_service.search("horno")

        assert result.source == "fallback"
        assert [r.id for r in result.recipes] == ["r1", "r2"]

    @pytest.mark.asyncio
    async def test_fallback_without_matches(self, search_service, repos, sample_recipes):
        repos.recipes.list_recent.return_value = sample_recipes

        result = await search_service.search("lentejas")

        assert result.source == "fallback"
        assert result.recipes == []

    @pytest.mark.asyncio
    async def test_fallback_listing_fails(self, search_service, repos):
        repos.recipes.search.side_effect = RuntimeError("rpc down")
        repos.recipes.list_recent.side_effect = ExternalServiceException("supabase", "timeout")

        with pytest.raises(ExternalServiceException):
            await search_service.search("pollo")

    @pytest.mark.asyncio
    async def test_unexpected_listing_error_wrapped(self, search_service, repos):
        repos.recipes.list_recent.side_effect = ConnectionError("reset")

        with pytest.raises(ExternalServiceException) as exc_info:
            await search_service.search("pollo")

        assert exc_info.value.details["reason"] == "reset"


class TestSearchResult:
    """Test the API representation."""

    @pytest.mark.asyncio
    async def test_to_dict(self, search_service, repos, sample_recipes):
        repos.recipes.search.return_value = [sample_recipes[0]]

        data = (await search_service.search("tarta")).to_dict()

        assert data["source"] == "server"
        assert data["count"] == 1
        assert data["results"][0]["title"] == "Tarta de Queso"
