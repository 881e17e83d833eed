"""
Shared dependencies for the application.

Provides dependency injection functions used across routers.
"""

from typing import TYPE_CHECKING, Optional

from fastapi import Depends

from .core.auth import get_current_user, require_authentication
from .domain.entities import UserContext
from .services.profile_service import ProfileService

if TYPE_CHECKING:
    from .services.favorite_service import FavoriteService
    from .services.recipe_service import RecipeService
    from .services.search_service import RecipeSearchService

# Global service instances (set by main app)
_recipe_service: Optional["RecipeService"] = None
_search_service: Optional["RecipeSearchService"] = None
_favorite_service: Optional["FavoriteService"] = None
_profile_service: Optional[ProfileService] = None


def set_services(
    recipe_service: "RecipeService",
    search_service: "RecipeSearchService",
    favorite_service: "FavoriteService",
    profile_service: ProfileService,
) -> None:
    """
    Set the global service instances.

    Called by main app during startup.
    """
    global _recipe_service, _search_service, _favorite_service, _profile_service
    _recipe_service = recipe_service
    _search_service = search_service
    _favorite_service = favorite_service
    _profile_service = profile_service


async def get_recipe_service() -> "RecipeService":
    if _recipe_service is None:
        raise RuntimeError("Recipe service not initialized")
    return _recipe_service


async def get_search_service() -> "RecipeSearchService":
    if _search_service is None:
        raise RuntimeError("Search service not initialized")
    return _search_service


async def get_favorite_service() -> "FavoriteService":
    if _favorite_service is None:
        raise RuntimeError("Favorite service not initialized")
    return _favorite_service


async def get_profile_service() -> ProfileService:
    if _profile_service is None:
        raise RuntimeError("Profile service not initialized")
    return _profile_service


async def get_optional_user(
    user: Optional[UserContext] = Depends(get_current_user),
    profile_service: ProfileService = Depends(get_profile_service),
) -> Optional[UserContext]:
    """Caller with the admin flag resolved, None when anonymous."""
    return await profile_service.resolve_user(user)


async def get_required_user(
    user: UserContext = Depends(require_authentication),
    profile_service: ProfileService = Depends(get_profile_service),
) -> UserContext:
    """Authenticated caller with the admin flag resolved."""
    return await profile_service.resolve_user(user)
