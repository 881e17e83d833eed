"""
Favorites service.

Keeps the user/recipe favorite relation and lists a user's favorite
recipes with the same term filter and pagination as the feed.
"""

from typing import Optional, Set

import structlog

from ..domain.entities import Page, Recipe, UserContext
from ..domain.exceptions import ExternalServiceException
from ..metrics import track_favorite
from ..repositories.recipe_repository import IFavoriteRepository
from ..search.recipe_filter import DEFAULT_PAGE_SIZE, build_filters, filter_recipes, paginate

logger = structlog.get_logger(__name__)


class FavoriteService:
    """Favorite marks for authenticated users."""

    def __init__(self, favorite_repo: IFavoriteRepository, page_size: int = DEFAULT_PAGE_SIZE):
        self.favorite_repo = favorite_repo
        self.page_size = page_size

    async def favorite_ids(self, user: Optional[UserContext]) -> Set[str]:
        """
        Ids of the caller's favorite recipes.

        Anonymous callers have none. A backend failure is logged and
        treated as no favorites so listings still render.
        """
        if user is None:
            return set()
        try:
            return await self.favorite_repo.list_ids(user.id)
        except ExternalServiceException as e:
            logger.warning("Favorites unavailable", user_id=user.id, error=e.message)
            return set()

    async def is_favorite(self, user: UserContext, recipe_id: str) -> bool:
        return recipe_id in await self.favorite_repo.list_ids(user.id)

    async def toggle_favorite(self, user: UserContext, recipe_id: str) -> bool:
        """
        Flip the favorite mark on a recipe.

        Returns:
            True if the recipe is now a favorite
        """
        if await self.is_favorite(user, recipe_id):
            await self.favorite_repo.remove(user.id, recipe_id)
            track_favorite(False)
            logger.info("Favorite removed", user_id=user.id, recipe_id=recipe_id)
            return False

        await self.favorite_repo.add(user.id, recipe_id)
        track_favorite(True)
        logger.info("Favorite added", user_id=user.id, recipe_id=recipe_id)
        return True

    async def add_favorite(self, user: UserContext, recipe_id: str) -> bool:
        """Mark a recipe as favorite; no-op when already marked."""
        if not await self.is_favorite(user, recipe_id):
            await self.favorite_repo.add(user.id, recipe_id)
            track_favorite(True)
        return True

    async def remove_favorite(self, user: UserContext, recipe_id: str) -> bool:
        """Unmark a recipe; no-op when not marked."""
        if await self.is_favorite(user, recipe_id):
            await self.favorite_repo.remove(user.id, recipe_id)
            track_favorite(False)
        return False

    async def list_favorites(
        self, user: UserContext, term: Optional[str] = None, page: int = 1
    ) -> Page[Recipe]:
        """Favorite recipes, most recently favorited first, filtered and paginated."""
        recipes = await self.favorite_repo.list_recipes(user.id)
        filtered = filter_recipes(recipes, build_filters(term))
        return paginate(filtered, page, self.page_size)
