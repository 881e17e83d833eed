"""
Recipe API router.

Feed listing with filters, sorting and pagination, recipe detail, and
the create/edit/delete endpoints. Writes take multipart forms so a
photo can travel with the recipe fields.
"""

from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from ..config import settings
from ..dependencies import get_optional_user, get_recipe_service, get_required_user
from ..domain.entities import SortOption, UserContext
from ..domain.exceptions import RecetarioException
from ..search.recipe_filter import build_filters
from ..services.recipe_service import RecipeService, can_edit
from ..validators import RecipeDraft
from .common import page_to_dict, parse_model, read_upload
from .errors import ERROR_RESPONSES, to_http_exception

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["recipes"])


@router.get(
    "/recipes",
    responses=ERROR_RESPONSES,
    summary="Recipe feed",
    description="""
    Recipes newest first by default. `q` narrows by substring over title,
    summary, ingredients, steps, category and tags; `category` and `tag`
    may be repeated. Pages hold five recipes.
    """,
)
async def list_recipes(
    q: Optional[str] = Query(None, max_length=200, description="Search term"),
    category: List[str] = Query(default=[], description="Selected categories"),
    tag: List[str] = Query(default=[], description="Selected tags"),
    sort: SortOption = Query(SortOption.NEWEST, description="newest, oldest or favorites"),
    page: int = Query(1, description="1-based page number"),
    service: RecipeService = Depends(get_recipe_service),
    user: Optional[UserContext] = Depends(get_optional_user),
):
    filters = build_filters(q, category, tag)
    try:
        result = await service.list_feed(filters, sort, page, user)
    except RecetarioException as e:
        raise to_http_exception(e)

    return {"success": True, "data": page_to_dict(result, lambda r: r.to_dict())}


@router.get("/recipes/{recipe_id}", responses=ERROR_RESPONSES, summary="Recipe detail")
async def get_recipe(
    recipe_id: str,
    service: RecipeService = Depends(get_recipe_service),
    user: Optional[UserContext] = Depends(get_optional_user),
):
    try:
        recipe = await service.get_recipe(recipe_id, user)
    except RecetarioException as e:
        raise to_http_exception(e)

    data = recipe.to_dict()
    data["can_edit"] = can_edit(user, recipe)
    return {"success": True, "data": data}


@router.post(
    "/recipes",
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
    summary="Publish a recipe",
    description="""
    Multipart form. `ingredients` and `steps` take one item per line;
    `tags` is comma separated. The photo is optional (JPG, PNG, WEBP or
    GIF, up to 5 MB).
    """,
)
async def create_recipe(
    title: str = Form(""),
    summary: str = Form(""),
    ingredients: str = Form(""),
    steps: str = Form(""),
    category: str = Form(""),
    tags: str = Form(""),
    photo: Optional[UploadFile] = File(None),
    service: RecipeService = Depends(get_recipe_service),
    user: UserContext = Depends(get_required_user),
):
    try:
        draft = parse_model(
            RecipeDraft,
            title=title,
            summary=summary,
            ingredients=ingredients,
            steps=steps,
            category=category,
            tags=tags,
        )
        upload = await read_upload(photo, settings.MAX_RECIPE_PHOTO_BYTES)
        recipe = await service.create_recipe(user, draft, upload)
    except RecetarioException as e:
        raise to_http_exception(e)

    logger.info("Recipe published", recipe_id=recipe.id, user_id=user.id)
    return {"success": True, "data": recipe.to_dict(), "message": "Receta publicada"}


@router.put("/recipes/{recipe_id}", responses=ERROR_RESPONSES, summary="Edit a recipe")
async def update_recipe(
    recipe_id: str,
    title: str = Form(""),
    summary: str = Form(""),
    ingredients: str = Form(""),
    steps: str = Form(""),
    category: str = Form(""),
    tags: str = Form(""),
    photo: Optional[UploadFile] = File(None),
    service: RecipeService = Depends(get_recipe_service),
    user: UserContext = Depends(get_required_user),
):
    """Only the author or an admin may edit. The photo is kept unless replaced."""
    try:
        draft = parse_model(
            RecipeDraft,
            title=title,
            summary=summary,
            ingredients=ingredients,
            steps=steps,
            category=category,
            tags=tags,
        )
        upload = await read_upload(photo, settings.MAX_RECIPE_PHOTO_BYTES)
        recipe = await service.update_recipe(user, recipe_id, draft, upload)
    except RecetarioException as e:
        raise to_http_exception(e)

    return {"success": True, "data": recipe.to_dict(), "message": "Receta actualizada"}


@router.delete("/recipes/{recipe_id}", responses=ERROR_RESPONSES, summary="Delete a recipe")
async def delete_recipe(
    recipe_id: str,
    service: RecipeService = Depends(get_recipe_service),
    user: UserContext = Depends(get_required_user),
):
    """Only the author or an admin may delete."""
    try:
        await service.delete_recipe(user, recipe_id)
    except RecetarioException as e:
        raise to_http_exception(e)

    return {"success": True, "data": {"id": recipe_id}, "message": "Receta eliminada"}
