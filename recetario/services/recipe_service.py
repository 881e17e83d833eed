"""
Recipe management service.

Feed listing, recipe lookup and the create/edit/delete flows, including
photo upload. Only a recipe's author or an admin may change it.
"""

import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional, Tuple

import structlog

from ..domain.entities import FeedFilters, Page, Recipe, SortOption, UserContext
from ..domain.exceptions import (
    PermissionDeniedException,
    RecipeNotFoundException,
    ValidationException,
)
from ..metrics import track_upload
from ..repositories.recipe_repository import IPhotoStorage, IRecipeRepository
from ..search.recipe_filter import (
    DEFAULT_PAGE_SIZE,
    build_feed,
    build_filters,
    filter_recipes,
    paginate,
)
from ..validators import ImageUpload, RecipeDraft, validate_image
from .favorite_service import FavoriteService

logger = structlog.get_logger(__name__)


def can_edit(user: Optional[UserContext], recipe: Recipe) -> bool:
    """True if the caller is an admin or the recipe's author."""
    if user is None:
        return False
    return user.is_admin or (recipe.user_id is not None and recipe.user_id == user.id)


def photo_path(upload: ImageUpload) -> str:
    """Storage path for a recipe photo: ``<uuid4>-<filename>``."""
    return f"{uuid.uuid4()}-{upload.safe_filename}"


class RecipeService:
    """Recipe feed and lifecycle."""

    def __init__(
        self,
        recipe_repo: IRecipeRepository,
        favorite_service: FavoriteService,
        storage: IPhotoStorage,
        bucket: str = "recetas-fotos",
        max_photo_bytes: int = 5 * 1024 * 1024,
        max_photo_size: Tuple[int, int] = (2000, 2000),
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        """
        Initialize recipe service.

        Args:
            recipe_repo: Recipe repository
            favorite_service: Used to flag the caller's favorites
            storage: Photo storage
            bucket: Bucket recipe photos are uploaded to
            max_photo_bytes: Photo size limit in bytes
            max_photo_size: Photo width and height limit in pixels
            page_size: Feed page size
        """
        self.recipe_repo = recipe_repo
        self.favorite_service = favorite_service
        self.storage = storage
        self.bucket = bucket
        self.max_photo_bytes = max_photo_bytes
        self.max_photo_size = max_photo_size
        self.page_size = page_size

    async def list_feed(
        self,
        filters: FeedFilters,
        sort: SortOption = SortOption.NEWEST,
        page: int = 1,
        user: Optional[UserContext] = None,
    ) -> Page[Recipe]:
        """
        Build one page of the feed.

        All recipes are loaded newest first, flagged with the caller's
        favorites, then filtered, ordered and paginated.
        """
        recipes = await self.recipe_repo.list_recent()
        favorite_ids = await self.favorite_service.favorite_ids(user)
        flagged = [r.with_favorite(r.id in favorite_ids) for r in recipes]
        return build_feed(flagged, filters, sort, page, self.page_size)

    async def get_recipe(self, recipe_id: str, user: Optional[UserContext] = None) -> Recipe:
        """
        Find a recipe by id.

        Raises:
            RecipeNotFoundException: If no recipe has this id
        """
        recipe = await self.recipe_repo.get(recipe_id)
        if recipe is None:
            raise RecipeNotFoundException(recipe_id)
        if user is not None:
            favorite_ids = await self.favorite_service.favorite_ids(user)
            recipe = recipe.with_favorite(recipe.id in favorite_ids)
        return recipe

    async def list_user_recipes(
        self, user_id: str, term: Optional[str] = None, page: int = 1
    ) -> Page[Recipe]:
        """
        One page of a user's recipes, newest first.

        The term filters by substring across title, summary, ingredients,
        steps, category and tags; out of range pages are clamped.
        """
        recipes = await self.recipe_repo.list_by_user(user_id)
        filtered = filter_recipes(recipes, build_filters(term))
        return paginate(filtered, page, self.page_size)

    async def create_recipe(
        self, user: UserContext, draft: RecipeDraft, photo: Optional[ImageUpload] = None
    ) -> Recipe:
        """
        Publish a new recipe owned by the caller.

        The photo, when given, is validated and uploaded before the row
        is inserted.

        Raises:
            ValidationException: If required fields are missing or the
                photo is rejected
            StorageException: If the photo upload fails
        """
        self._check_complete(draft)
        photo_url = await self._upload_photo(photo) if photo else None

        recipe = Recipe(
            id=str(uuid.uuid4()),
            title=draft.title,
            summary=draft.summary or None,
            ingredients=tuple(draft.ingredients),
            steps=tuple(draft.steps),
            photo_url=photo_url,
            created_at=datetime.now(timezone.utc),
            category=draft.category or None,
            tags=tuple(draft.tags),
            user_id=user.id,
        )
        return await self.recipe_repo.insert(recipe)

    async def update_recipe(
        self,
        user: UserContext,
        recipe_id: str,
        draft: RecipeDraft,
        photo: Optional[ImageUpload] = None,
    ) -> Recipe:
        """
        Edit a recipe. The current photo is kept unless a new one is sent.

        Raises:
            RecipeNotFoundException: If the recipe does not exist
            PermissionDeniedException: If the caller may not edit it
            ValidationException: If required fields are missing
        """
        existing = await self.get_recipe(recipe_id)
        if not can_edit(user, existing):
            raise PermissionDeniedException("edit", recipe_id)

        self._check_complete(draft)
        photo_url = await self._upload_photo(photo) if photo else existing.photo_url

        updated = replace(
            existing,
            title=draft.title,
            summary=draft.summary or None,
            ingredients=tuple(draft.ingredients),
            steps=tuple(draft.steps),
            photo_url=photo_url,
            category=draft.category or None,
            tags=tuple(draft.tags),
        )
        await self.recipe_repo.update(updated, owner_id=None if user.is_admin else user.id)
        return updated

    async def delete_recipe(self, user: UserContext, recipe_id: str) -> None:
        """
        Delete a recipe.

        Non-admin deletes are additionally scoped to the caller's rows.

        Raises:
            RecipeNotFoundException: If the recipe does not exist
            PermissionDeniedException: If the caller may not delete it
        """
        existing = await self.get_recipe(recipe_id)
        if not can_edit(user, existing):
            raise PermissionDeniedException("delete", recipe_id)

        await self.recipe_repo.delete(recipe_id, owner_id=None if user.is_admin else user.id)
        logger.info("Recipe removed", recipe_id=recipe_id, by_admin=user.is_admin)

    def _check_complete(self, draft: RecipeDraft) -> None:
        missing = draft.missing_fields()
        if missing:
            raise ValidationException(
                ", ".join(missing),
                "",
                "Completa titulo, ingredientes y pasos.",
            )

    async def _upload_photo(self, photo: ImageUpload) -> str:
        validate_image(photo, self.max_photo_bytes, *self.max_photo_size)
        path = photo_path(photo)
        try:
            url = await self.storage.upload(self.bucket, path, photo.content, photo.content_type)
        except Exception:
            track_upload(self.bucket, False)
            raise
        track_upload(self.bucket, True)
        return url
