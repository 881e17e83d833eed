"""
Profile service.

Creates missing profiles on first sign-in, serves own and public
profiles, applies profile edits with avatar upload and resolves the
admin role.
"""

import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import List, Optional, Tuple

import structlog

from ..domain.entities import Profile, Recipe, UserContext, username_for
from ..domain.exceptions import ProfileNotFoundException, RecetarioException
from ..metrics import track_upload
from ..repositories.recipe_repository import (
    IPhotoStorage,
    IProfileRepository,
    IRecipeRepository,
)
from ..validators import ImageUpload, ProfileUpdate, validate_image

logger = structlog.get_logger(__name__)

ADMIN_ROLE = "admin"


def avatar_path(user_id: str, upload: ImageUpload) -> str:
    """Storage path for an avatar: ``<user_id>/<uuid4>-<filename>``."""
    return f"{user_id}/{uuid.uuid4()}-{upload.safe_filename}"


class ProfileService:
    """User profiles and roles."""

    def __init__(
        self,
        profile_repo: IProfileRepository,
        recipe_repo: IRecipeRepository,
        storage: IPhotoStorage,
        bucket: str = "avatars",
        max_avatar_bytes: int = 2 * 1024 * 1024,
        max_avatar_size: Tuple[int, int] = (800, 800),
    ):
        self.profile_repo = profile_repo
        self.recipe_repo = recipe_repo
        self.storage = storage
        self.bucket = bucket
        self.max_avatar_bytes = max_avatar_bytes
        self.max_avatar_size = max_avatar_size

    async def ensure_profile(self, user: UserContext) -> Optional[Profile]:
        """
        Create the caller's profile row if it does not exist yet.

        The username comes from auth metadata or the email local part and
        the full name from auth metadata; no avatar is set.
        Failures are logged and None is returned.
        """
        try:
            profile = await self.profile_repo.get(user.id)
            if profile is not None:
                return profile

            profile = Profile(
                id=user.id,
                username=username_for(user.metadata, user.email),
                full_name=(user.metadata or {}).get("full_name") or None,
                updated_at=datetime.now(timezone.utc),
            )
            saved = await self.profile_repo.upsert(profile)
            logger.info("Profile created", user_id=user.id, username=profile.username)
            return saved
        except RecetarioException as e:
            logger.warning("Could not ensure profile", user_id=user.id, error=e.message)
            return None

    async def get_own_profile(self, user: UserContext) -> Profile:
        """
        The caller's profile, created on demand.

        Raises:
            ProfileNotFoundException: If it can neither be read nor created
        """
        profile = await self.ensure_profile(user)
        if profile is None:
            raise ProfileNotFoundException(user.id)
        return profile

    async def get_public_profile(self, user_id: str) -> Tuple[Profile, List[Recipe]]:
        """
        Another user's profile together with their recipes.

        Raises:
            ProfileNotFoundException: If the user has no profile
        """
        profile = await self.profile_repo.get(user_id)
        if profile is None:
            raise ProfileNotFoundException(user_id)
        recipes = await self.recipe_repo.list_by_user(user_id)
        return profile, recipes

    async def update_profile(
        self,
        user: UserContext,
        changes: ProfileUpdate,
        avatar: Optional[ImageUpload] = None,
    ) -> Profile:
        """
        Save profile edits. Blank fields are stored as null.

        Raises:
            ValidationException: If the avatar is rejected
            StorageException: If the avatar upload fails
        """
        current = await self.profile_repo.get(user.id) or Profile(id=user.id)

        avatar_url = current.avatar_url
        if avatar is not None:
            validate_image(avatar, self.max_avatar_bytes, *self.max_avatar_size)
            try:
                avatar_url = await self.storage.upload(
                    self.bucket, avatar_path(user.id, avatar), avatar.content, avatar.content_type
                )
            except Exception:
                track_upload(self.bucket, False)
                raise
            track_upload(self.bucket, True)

        updated = replace(
            current,
            username=changes.username,
            full_name=changes.full_name,
            bio=changes.bio,
            avatar_url=avatar_url,
            updated_at=datetime.now(timezone.utc),
        )
        return await self.profile_repo.upsert(updated)

    async def is_admin(self, user_id: str) -> bool:
        """True if the user has the admin role; lookup failures mean False."""
        try:
            return await self.profile_repo.get_role(user_id) == ADMIN_ROLE
        except Exception as e:
            logger.warning("Role lookup failed", user_id=user_id, error=str(e))
            return False

    async def resolve_user(self, user: Optional[UserContext]) -> Optional[UserContext]:
        """Attach the admin flag to an authenticated caller."""
        if user is None:
            return None
        return replace(user, is_admin=await self.is_admin(user.id))
