"""
Profile router.

The caller's own profile and recipes under ``/me``, and public
profiles of other users.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from ..config import settings
from ..dependencies import (
    get_profile_service,
    get_recipe_service,
    get_required_user,
)
from ..domain.entities import UserContext, display_name_for
from ..domain.exceptions import RecetarioException
from ..services.profile_service import ProfileService
from ..services.recipe_service import RecipeService
from ..validators import ProfileUpdate
from .common import page_to_dict, parse_model, read_upload
from .errors import ERROR_RESPONSES, to_http_exception

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["profiles"])


@router.get("/me/recipes", responses=ERROR_RESPONSES, summary="My recipes")
async def my_recipes(
    q: Optional[str] = Query(None, max_length=200, description="Search term"),
    page: int = Query(1, description="1-based page number"),
    service: RecipeService = Depends(get_recipe_service),
    user: UserContext = Depends(get_required_user),
):
    try:
        result = await service.list_user_recipes(user.id, q, page)
    except RecetarioException as e:
        raise to_http_exception(e)

    return {"success": True, "data": page_to_dict(result, lambda r: r.to_dict())}


@router.get("/me/profile", responses=ERROR_RESPONSES, summary="My profile")
async def my_profile(
    service: ProfileService = Depends(get_profile_service),
    user: UserContext = Depends(get_required_user),
):
    """The caller's profile; created from auth metadata on first access."""
    try:
        profile = await service.get_own_profile(user)
    except RecetarioException as e:
        raise to_http_exception(e)

    data = profile.to_dict()
    data["email"] = user.email
    data["display_name"] = profile.username or display_name_for(user.metadata, user.email)
    data["is_admin"] = user.is_admin
    return {"success": True, "data": data}


@router.put(
    "/me/profile",
    responses=ERROR_RESPONSES,
    summary="Edit my profile",
    description="Multipart form. Avatar optional (JPG, PNG, WEBP or GIF, up to 2 MB).",
)
async def update_my_profile(
    username: Optional[str] = Form(None),
    full_name: Optional[str] = Form(None),
    bio: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    service: ProfileService = Depends(get_profile_service),
    user: UserContext = Depends(get_required_user),
):
    try:
        changes = parse_model(ProfileUpdate, username=username, full_name=full_name, bio=bio)
        upload = await read_upload(avatar, settings.MAX_AVATAR_BYTES)
        profile = await service.update_profile(user, changes, upload)
    except RecetarioException as e:
        raise to_http_exception(e)

    logger.info("Profile updated", user_id=user.id)
    return {"success": True, "data": profile.to_dict(), "message": "Perfil actualizado"}


@router.get("/profiles/{user_id}", responses=ERROR_RESPONSES, summary="Public profile")
async def public_profile(
    user_id: str,
    service: ProfileService = Depends(get_profile_service),
):
    try:
        profile, recipes = await service.get_public_profile(user_id)
    except RecetarioException as e:
        raise to_http_exception(e)

    return {
        "success": True,
        "data": {"profile": profile.to_dict(), "recipes": [r.to_dict() for r in recipes]},
    }
