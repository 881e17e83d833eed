"""
Favorites router.

All endpoints require an authenticated caller.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..dependencies import get_favorite_service, get_required_user
from ..domain.entities import UserContext
from ..domain.exceptions import RecetarioException
from ..services.favorite_service import FavoriteService
from .common import page_to_dict
from .errors import ERROR_RESPONSES, to_http_exception

router = APIRouter(prefix="/api/v1", tags=["favorites"])


def _state(recipe_id: str, is_favorite: bool) -> dict:
    return {"success": True, "data": {"recipe_id": recipe_id, "is_favorite": is_favorite}}


@router.get("/favorites", responses=ERROR_RESPONSES, summary="My favorite recipes")
async def list_favorites(
    q: Optional[str] = Query(None, max_length=200, description="Search term"),
    page: int = Query(1, description="1-based page number"),
    service: FavoriteService = Depends(get_favorite_service),
    user: UserContext = Depends(get_required_user),
):
    try:
        result = await service.list_favorites(user, q, page)
    except RecetarioException as e:
        raise to_http_exception(e)

    return {"success": True, "data": page_to_dict(result, lambda r: r.to_dict())}


@router.post("/favorites/{recipe_id}", responses=ERROR_RESPONSES, summary="Add a favorite")
async def add_favorite(
    recipe_id: str,
    service: FavoriteService = Depends(get_favorite_service),
    user: UserContext = Depends(get_required_user),
):
    try:
        return _state(recipe_id, await service.add_favorite(user, recipe_id))
    except RecetarioException as e:
        raise to_http_exception(e)


@router.delete("/favorites/{recipe_id}", responses=ERROR_RESPONSES, summary="Remove a favorite")
async def remove_favorite(
    recipe_id: str,
    service: FavoriteService = Depends(get_favorite_service),
    user: UserContext = Depends(get_required_user),
):
    try:
        return _state(recipe_id, await service.remove_favorite(user, recipe_id))
    except RecetarioException as e:
        raise to_http_exception(e)


@router.post(
    "/favorites/{recipe_id}/toggle", responses=ERROR_RESPONSES, summary="Toggle a favorite"
)
async def toggle_favorite(
    recipe_id: str,
    service: FavoriteService = Depends(get_favorite_service),
    user: UserContext = Depends(get_required_user),
):
    try:
        return _state(recipe_id, await service.toggle_favorite(user, recipe_id))
    except RecetarioException as e:
        raise to_http_exception(e)
