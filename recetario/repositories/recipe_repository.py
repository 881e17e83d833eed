"""
Repository interfaces (Abstract Base Classes).

Define the contracts for recipe, favorite, profile and photo storage
access independent of the backend that fulfils them.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Set

from ..domain.entities import Profile, Recipe


class IRecipeRepository(ABC):
    """
    Abstract repository interface for recipe operations.

    This interface defines all recipe data access methods without
    implementation details, enabling dependency inversion.
    """

    @abstractmethod
    async def list_recent(self, limit: Optional[int] = None) -> List[Recipe]:
        """
        List recipes newest first, with author details.

        Args:
            limit: Maximum number of recipes, None for all

        Returns:
            List of recipes ordered by date descending
        """
        pass

    @abstractmethod
    async def search(self, query: str, limit: int) -> List[Recipe]:
        """
        Run the server-side search function.

        Args:
            query: Lowercased search query
            limit: Maximum number of results

        Returns:
            Ranked list of matching recipes
        """
        pass

    @abstractmethod
    async def get(self, recipe_id: str) -> Optional[Recipe]:
        """
        Find a recipe by id.

        Returns:
            Recipe if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_by_user(self, user_id: str) -> List[Recipe]:
        """List one author's recipes, newest first."""
        pass

    @abstractmethod
    async def insert(self, recipe: Recipe) -> Recipe:
        """Persist a new recipe."""
        pass

    @abstractmethod
    async def update(self, recipe: Recipe, owner_id: Optional[str] = None) -> None:
        """
        Update an existing recipe.

        Args:
            recipe: Recipe with the new field values
            owner_id: When set, only a row owned by this user is updated
        """
        pass

    @abstractmethod
    async def delete(self, recipe_id: str, owner_id: Optional[str] = None) -> None:
        """
        Delete a recipe.

        Args:
            recipe_id: Recipe to delete
            owner_id: When set, only a row owned by this user is deleted
        """
        pass


class IFavoriteRepository(ABC):
    """Repository for the user/recipe favorite relation."""

    @abstractmethod
    async def list_ids(self, user_id: str) -> Set[str]:
        """Ids of the recipes a user marked as favorite."""
        pass

    @abstractmethod
    async def list_recipes(self, user_id: str) -> List[Recipe]:
        """Favorited recipes, most recently favorited first."""
        pass

    @abstractmethod
    async def add(self, user_id: str, recipe_id: str) -> None:
        pass

    @abstractmethod
    async def remove(self, user_id: str, recipe_id: str) -> None:
        pass


class IProfileRepository(ABC):
    """Repository for user profiles and roles."""

    @abstractmethod
    async def get(self, user_id: str) -> Optional[Profile]:
        """Find a profile by user id."""
        pass

    @abstractmethod
    async def upsert(self, profile: Profile) -> Profile:
        """Create or replace a profile."""
        pass

    @abstractmethod
    async def get_role(self, user_id: str) -> Optional[str]:
        """Role assigned to a user (e.g. "admin"), None if none."""
        pass


class IPhotoStorage(ABC):
    """Blob storage with public URL issuance."""

    @abstractmethod
    async def upload(self, bucket: str, path: str, content: bytes, content_type: str) -> str:
        """
        Store a file and return its public URL.

        Raises:
            StorageException: If the upload fails
        """
        pass
