"""
Recipe search orchestration.

Queries are answered by the server-side ``search_recetas`` function when
it works and returns something. Otherwise the most recent recipes are
fetched and matched locally with the fuzzy matcher, so typos and missing
accents still find results.
"""

import time
from dataclasses import dataclass, field
from typing import List, Optional

import structlog

from ..domain.entities import Recipe
from ..domain.exceptions import ExternalServiceException
from ..metrics import track_search, track_search_fallback
from ..repositories.recipe_repository import IRecipeRepository
from ..search.fuzzy_matcher import FuzzyMatcher

logger = structlog.get_logger(__name__)

SOURCE_NONE = "none"
SOURCE_SERVER = "server"
SOURCE_FALLBACK = "fallback"


@dataclass(frozen=True)
class SearchResult:
    """Recipes found for a query and the strategy that found them."""

    query: str
    source: str
    recipes: List[Recipe] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "query": self.query,
            "source": self.source,
            "count": len(self.recipes),
            "results": [recipe.to_dict() for recipe in self.recipes],
        }


class RecipeSearchService:
    """
    Search with server-first strategy and local fuzzy fallback.

    1. Empty query: nothing is searched
    2. Server RPC with the lowercased query
    3. On RPC error or empty result: fuzzy match over recent recipes
    """

    def __init__(
        self,
        recipe_repo: IRecipeRepository,
        matcher: Optional[FuzzyMatcher] = None,
        rpc_limit: int = 50,
        fallback_limit: int = 200,
    ):
        """
        Initialize search service.

        Args:
            recipe_repo: Recipe repository (RPC and recent listing)
            matcher: Matcher used by the fallback
            rpc_limit: Maximum results requested from the server
            fallback_limit: Number of recent recipes scanned locally
        """
        self.recipe_repo = recipe_repo
        self.matcher = matcher or FuzzyMatcher()
        self.rpc_limit = rpc_limit
        self.fallback_limit = fallback_limit

    async def search(self, query: str) -> SearchResult:
        """
        Search recipes for a free-text query.

        Returns:
            SearchResult whose source is "none", "server" or "fallback"

        Raises:
            ExternalServiceException: If the fallback listing also fails
        """
        query = (query or "").strip()
        if not query:
            return SearchResult(query=query, source=SOURCE_NONE)

        start_time = time.time()

        try:
            recipes = await self.recipe_repo.search(query.lower(), self.rpc_limit)
        except Exception as e:
            logger.warning("Server search failed, using fallback", query=query, error=str(e))
            track_search_fallback("error")
        else:
            if recipes:
                return self._finish(query, SOURCE_SERVER, recipes, start_time)
            logger.info("Server search returned nothing, using fallback", query=query)
            track_search_fallback("empty")

        recipes = await self._fallback(query)
        return self._finish(query, SOURCE_FALLBACK, recipes, start_time)

    async def _fallback(self, query: str) -> List[Recipe]:
        try:
            recent = await self.recipe_repo.list_recent(self.fallback_limit)
        except ExternalServiceException:
            raise
        except Exception as e:
            raise ExternalServiceException("supabase", str(e))
        return self.matcher.filter(query, recent)

    def _finish(
        self, query: str, source: str, recipes: List[Recipe], start_time: float
    ) -> SearchResult:
        duration = time.time() - start_time
        track_search(source, duration, len(recipes))
        logger.info(
            "Search completed",
            query=query,
            source=source,
            results=len(recipes),
            duration_ms=round(duration * 1000, 2),
        )
        return SearchResult(query=query, source=source, recipes=list(recipes))
