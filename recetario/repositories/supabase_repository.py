"""
Supabase implementation of the recipe repositories.

Talks to the ``recetas``, ``favorites``, ``profiles`` and ``user_roles``
tables, the ``search_recetas`` RPC and the storage buckets through the
Supabase client. Row-level security on the backend still applies.
"""

from typing import Any, List, Optional, Set

import structlog
from supabase import Client
from tenacity import retry, stop_after_attempt, wait_exponential

from ..domain.entities import Profile, Recipe
from ..domain.exceptions import ExternalServiceException, StorageException
from .recipe_repository import (
    IFavoriteRepository,
    IPhotoStorage,
    IProfileRepository,
    IRecipeRepository,
)

logger = structlog.get_logger(__name__)

RECIPES_TABLE = "recetas"
FAVORITES_TABLE = "favorites"
PROFILES_TABLE = "profiles"
ROLES_TABLE = "user_roles"

AUTHOR_JOIN = "profiles:profiles (username, full_name, avatar_url)"
RECIPE_WITH_AUTHOR = f"*, {AUTHOR_JOIN}"
FAVORITE_WITH_RECIPE = f"created_at, receta:recetas ({RECIPE_WITH_AUTHOR})"

UPLOAD_RETRY_ATTEMPTS = 3
UPLOAD_RETRY_MIN_WAIT_SECONDS = 0.5
UPLOAD_RETRY_MAX_WAIT_SECONDS = 4


def _rows(response: Any) -> List[dict]:
    data = getattr(response, "data", None) if response is not None else None
    return list(data or [])


def _single_row(response: Any) -> Optional[dict]:
    # maybe_single() yields None instead of a response when nothing matched
    data = getattr(response, "data", None) if response is not None else None
    return data or None


class SupabaseRecipeRepository(IRecipeRepository):
    """Recipe persistence in the ``recetas`` table."""

    def __init__(self, client: Client, rpc_name: str = "search_recetas"):
        """
        Initialize repository.

        Args:
            client: Supabase client
            rpc_name: Name of the server-side search function
        """
        self.client = client
        self.rpc_name = rpc_name

    async def list_recent(self, limit: Optional[int] = None) -> List[Recipe]:
        try:
            query = (
                self.client.table(RECIPES_TABLE)
                .select(RECIPE_WITH_AUTHOR)
                .order("fecha", desc=True)
            )
            if limit is not None:
                query = query.limit(limit)
            response = query.execute()
            return [Recipe.from_row(row) for row in _rows(response)]
        except Exception as e:
            logger.error("Failed to list recipes", error=str(e))
            raise ExternalServiceException("supabase", str(e))

    async def search(self, query: str, limit: int) -> List[Recipe]:
        # Errors propagate untouched; the caller falls back on any failure.
        response = self.client.rpc(self.rpc_name, {"q": query, "lim": limit}).execute()
        return [Recipe.from_row(row) for row in _rows(response)]

    async def get(self, recipe_id: str) -> Optional[Recipe]:
        try:
            response = (
                self.client.table(RECIPES_TABLE)
                .select(RECIPE_WITH_AUTHOR)
                .eq("id", recipe_id)
                .maybe_single()
                .execute()
            )
        except Exception as e:
            logger.error("Failed to fetch recipe", recipe_id=recipe_id, error=str(e))
            raise ExternalServiceException("supabase", str(e))

        row = _single_row(response)
        return Recipe.from_row(row) if row else None

    async def list_by_user(self, user_id: str) -> List[Recipe]:
        try:
            response = (
                self.client.table(RECIPES_TABLE)
                .select(RECIPE_WITH_AUTHOR)
                .eq("user_id", user_id)
                .order("fecha", desc=True)
                .execute()
            )
            return [Recipe.from_row(row) for row in _rows(response)]
        except Exception as e:
            logger.error("Failed to list user recipes", user_id=user_id, error=str(e))
            raise ExternalServiceException("supabase", str(e))

    async def insert(self, recipe: Recipe) -> Recipe:
        try:
            self.client.table(RECIPES_TABLE).insert(recipe.to_row()).execute()
            logger.info("Recipe created", recipe_id=recipe.id, user_id=recipe.user_id)
            return recipe
        except Exception as e:
            logger.error("Failed to create recipe", error=str(e))
            raise ExternalServiceException("supabase", str(e))

    async def update(self, recipe: Recipe, owner_id: Optional[str] = None) -> None:
        payload = recipe.to_row()
        # id, author and publication date never change on edit
        for key in ("id", "user_id", "fecha"):
            payload.pop(key, None)

        try:
            query = self.client.table(RECIPES_TABLE).update(payload).eq("id", recipe.id)
            if owner_id:
                query = query.eq("user_id", owner_id)
            query.execute()
            logger.info("Recipe updated", recipe_id=recipe.id)
        except Exception as e:
            logger.error("Failed to update recipe", recipe_id=recipe.id, error=str(e))
            raise ExternalServiceException("supabase", str(e))

    async def delete(self, recipe_id: str, owner_id: Optional[str] = None) -> None:
        try:
            query = self.client.table(RECIPES_TABLE).delete().eq("id", recipe_id)
            if owner_id:
                query = query.eq("user_id", owner_id)
            query.execute()
            logger.info("Recipe deleted", recipe_id=recipe_id)
        except Exception as e:
            logger.error("Failed to delete recipe", recipe_id=recipe_id, error=str(e))
            raise ExternalServiceException("supabase", str(e))


class SupabaseFavoriteRepository(IFavoriteRepository):
    """Favorites stored in the ``favorites`` table."""

    def __init__(self, client: Client):
        self.client = client

    async def list_ids(self, user_id: str) -> Set[str]:
        try:
            response = (
                self.client.table(FAVORITES_TABLE)
                .select("receta_id")
                .eq("user_id", user_id)
                .execute()
            )
            return {str(row["receta_id"]) for row in _rows(response) if row.get("receta_id")}
        except Exception as e:
            logger.error("Failed to load favorites", user_id=user_id, error=str(e))
            raise ExternalServiceException("supabase", str(e))

    async def list_recipes(self, user_id: str) -> List[Recipe]:
        try:
            response = (
                self.client.table(FAVORITES_TABLE)
                .select(FAVORITE_WITH_RECIPE)
                .eq("user_id", user_id)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            logger.error("Failed to load favorite recipes", user_id=user_id, error=str(e))
            raise ExternalServiceException("supabase", str(e))

        # Favorites whose recipe was deleted come back with an empty join
        return [
            Recipe.from_row(row["receta"]).with_favorite(True)
            for row in _rows(response)
            if row.get("receta")
        ]

    async def add(self, user_id: str, recipe_id: str) -> None:
        try:
            self.client.table(FAVORITES_TABLE).insert(
                {"user_id": user_id, "receta_id": recipe_id}
            ).execute()
        except Exception as e:
            logger.error("Failed to add favorite", user_id=user_id, recipe_id=recipe_id, error=str(e))
            raise ExternalServiceException("supabase", str(e))

    async def remove(self, user_id: str, recipe_id: str) -> None:
        try:
            (
                self.client.table(FAVORITES_TABLE)
                .delete()
                .eq("user_id", user_id)
                .eq("receta_id", recipe_id)
                .execute()
            )
        except Exception as e:
            logger.error(
                "Failed to remove favorite", user_id=user_id, recipe_id=recipe_id, error=str(e)
            )
            raise ExternalServiceException("supabase", str(e))


class SupabaseProfileRepository(IProfileRepository):
    """Profiles and roles stored in ``profiles`` and ``user_roles``."""

    def __init__(self, client: Client):
        self.client = client

    async def get(self, user_id: str) -> Optional[Profile]:
        try:
            response = (
                self.client.table(PROFILES_TABLE)
                .select("id, username, full_name, bio, avatar_url, updated_at")
                .eq("id", user_id)
                .maybe_single()
                .execute()
            )
        except Exception as e:
            logger.error("Failed to fetch profile", user_id=user_id, error=str(e))
            raise ExternalServiceException("supabase", str(e))

        row = _single_row(response)
        return Profile.from_row(row) if row else None

    async def upsert(self, profile: Profile) -> Profile:
        try:
            self.client.table(PROFILES_TABLE).upsert(profile.to_row(), on_conflict="id").execute()
            logger.info("Profile saved", user_id=profile.id)
            return profile
        except Exception as e:
            logger.error("Failed to save profile", user_id=profile.id, error=str(e))
            raise ExternalServiceException("supabase", str(e))

    async def get_role(self, user_id: str) -> Optional[str]:
        try:
            response = (
                self.client.table(ROLES_TABLE)
                .select("role")
                .eq("user_id", user_id)
                .maybe_single()
                .execute()
            )
        except Exception as e:
            logger.warning("Failed to load role", user_id=user_id, error=str(e))
            raise ExternalServiceException("supabase", str(e))

        row = _single_row(response)
        return row.get("role") if row else None


class SupabasePhotoStorage(IPhotoStorage):
    """Uploads to Supabase storage buckets with public URLs."""

    def __init__(self, client: Client):
        self.client = client

    @retry(
        stop=stop_after_attempt(UPLOAD_RETRY_ATTEMPTS),
        wait=wait_exponential(
            multiplier=1, min=UPLOAD_RETRY_MIN_WAIT_SECONDS, max=UPLOAD_RETRY_MAX_WAIT_SECONDS
        ),
        reraise=True,
    )
    def _upload(self, bucket: str, path: str, content: bytes, content_type: str) -> None:
        self.client.storage.from_(bucket).upload(
            path, content, {"content-type": content_type}
        )

    async def upload(self, bucket: str, path: str, content: bytes, content_type: str) -> str:
        try:
            self._upload(bucket, path, content, content_type)
        except Exception as e:
            logger.error("Upload failed", bucket=bucket, path=path, error=str(e))
            raise StorageException(bucket, str(e))

        public_url = self.client.storage.from_(bucket).get_public_url(path)
        logger.info("File uploaded", bucket=bucket, path=path, size=len(content))
        return public_url
