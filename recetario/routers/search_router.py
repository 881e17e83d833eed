"""
Recipe search router.

Typo-tolerant search: the server-side search function answers first and
the fuzzy matcher takes over when it fails or finds nothing.
"""

from fastapi import APIRouter, Depends, Query

from ..dependencies import get_search_service
from ..domain.exceptions import RecetarioException
from ..services.search_service import RecipeSearchService
from .errors import ERROR_RESPONSES, to_http_exception

router = APIRouter(prefix="/api/v1", tags=["search"])


@router.get(
    "/search",
    responses=ERROR_RESPONSES,
    summary="Search recipes",
    description="""
    Free-text recipe search, case and accent insensitive. Words of three
    or more letters tolerate small typos ("tarta de qeso" finds
    "Tarta de queso"). `source` tells which strategy answered: `server`,
    `fallback` or `none` for an empty query.
    """,
)
async def search_recipes(
    q: str = Query("", max_length=200, description="Search query"),
    service: RecipeSearchService = Depends(get_search_service),
):
    try:
        result = await service.search(q)
    except RecetarioException as e:
        raise to_http_exception(e)

    return {"success": True, "data": result.to_dict()}
