"""
Domain entities for recipe data.

Core business objects representing recipes, profiles and feed state.
These entities are framework-agnostic; mapping to and from backend rows
(Spanish column names, nested joins) lives here so the rest of the code
only sees English attribute names.
"""

import math
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, FrozenSet, Generic, Iterable, List, Optional, Sequence, Tuple, TypeVar
from urllib.parse import quote

from pydantic import TypeAdapter, ValidationError

T = TypeVar("T")

AVATAR_FALLBACK_URL = (
    "https://api.dicebear.com/6.x/initials/svg?seed={seed}"
    "&radius=50&backgroundColor=b6e3f4,c0aede,d1d4f9"
)

_timestamp_adapter = TypeAdapter(datetime)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a backend timestamp; unparseable values become None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return _timestamp_adapter.validate_python(value)
    except ValidationError:
        return None


def _as_tuple(values: Optional[Iterable[Any]]) -> Tuple[str, ...]:
    if not values:
        return ()
    return tuple(str(v) for v in values if v is not None)


class SortOption(str, Enum):
    """Feed orderings."""

    NEWEST = "newest"
    OLDEST = "oldest"
    FAVORITES = "favorites"


@dataclass(frozen=True)
class SearchableRecord:
    """
    The fields a free-text query is matched against.

    Any object exposing these attribute names (``Recipe`` included) can be
    handed to the matcher; missing attributes count as empty.
    """

    title: Optional[str] = None
    summary: Optional[str] = None
    ingredients: Sequence[str] = ()
    steps: Sequence[str] = ()
    category: Optional[str] = None
    tags: Iterable[str] = ()


@dataclass(frozen=True)
class AuthorSummary:
    """Author fields joined onto a recipe row."""

    username: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.username or "Autor"


@dataclass(frozen=True)
class Recipe:
    """
    A shared recipe.

    Immutable; use ``with_favorite`` to derive a flagged copy for a caller.
    """

    id: str
    title: str
    summary: Optional[str] = None
    ingredients: Tuple[str, ...] = ()
    steps: Tuple[str, ...] = ()
    photo_url: Optional[str] = None
    created_at: Optional[datetime] = None
    category: Optional[str] = None
    tags: Tuple[str, ...] = ()
    user_id: Optional[str] = None
    author: Optional[AuthorSummary] = None
    is_favorite: bool = False

    @classmethod
    def from_row(cls, row: dict) -> "Recipe":
        """Build a recipe from a ``recetas`` row, optionally with a ``profiles`` join."""
        profile = row.get("profiles")
        author = None
        if isinstance(profile, dict):
            author = AuthorSummary(
                username=profile.get("username"),
                full_name=profile.get("full_name"),
                avatar_url=profile.get("avatar_url"),
            )
        elif row.get("username"):
            author = AuthorSummary(username=row.get("username"))

        return cls(
            id=str(row.get("id")),
            title=row.get("titulo") or "",
            summary=row.get("resumen"),
            ingredients=_as_tuple(row.get("ingredientes")),
            steps=_as_tuple(row.get("pasos")),
            photo_url=row.get("foto_url") or row.get("foto"),
            created_at=parse_timestamp(row.get("fecha")),
            category=row.get("categoria") or None,
            tags=_as_tuple(row.get("tags")),
            user_id=row.get("user_id"),
            author=author,
            is_favorite=bool(row.get("favorita", False)),
        )

    def to_row(self) -> dict:
        """Insert/update payload for the ``recetas`` table."""
        return {
            "id": self.id,
            "titulo": self.title,
            "resumen": self.summary,
            "ingredientes": list(self.ingredients),
            "pasos": list(self.steps),
            "foto_url": self.photo_url,
            "fecha": self.created_at.isoformat() if self.created_at else None,
            "categoria": self.category,
            "tags": list(self.tags),
            "user_id": self.user_id,
        }

    def to_dict(self) -> dict:
        """API representation."""
        return {
            "id": self.id,
            "title": self.title,
            "summary": self.summary,
            "ingredients": list(self.ingredients),
            "steps": list(self.steps),
            "photo_url": self.photo_url,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "category": self.category,
            "tags": list(self.tags),
            "user_id": self.user_id,
            "author": self.author.display_name if self.author else "Autor desconocido",
            "author_avatar_url": avatar_url_for(self.author) if self.author else None,
            "is_favorite": self.is_favorite,
        }

    def with_favorite(self, is_favorite: bool) -> "Recipe":
        return replace(self, is_favorite=is_favorite)

    @property
    def timestamp(self) -> float:
        """Sort key; recipes without a date sort as the epoch."""
        return self.created_at.timestamp() if self.created_at else 0.0


@dataclass(frozen=True)
class Profile:
    """Public profile of a user."""

    id: str
    username: Optional[str] = None
    full_name: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: dict) -> "Profile":
        return cls(
            id=str(row.get("id")),
            username=row.get("username"),
            full_name=row.get("full_name"),
            bio=row.get("bio"),
            avatar_url=row.get("avatar_url"),
            updated_at=parse_timestamp(row.get("updated_at")),
        )

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "full_name": self.full_name,
            "bio": self.bio,
            "avatar_url": self.avatar_url,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username or "Usuario",
            "full_name": self.full_name or "",
            "bio": self.bio or "Sin biografia",
            "avatar_url": avatar_url_for(self),
        }


@dataclass(frozen=True)
class UserContext:
    """The authenticated caller of a request."""

    id: str
    email: Optional[str] = None
    metadata: dict = field(default_factory=dict)
    is_admin: bool = False


@dataclass(frozen=True)
class FeedFilters:
    """
    Explicit feed state: search term plus category and tag selections.

    Categories and tags are stored normalized so membership checks are
    diacritic and case insensitive.
    """

    term: str = ""
    categories: FrozenSet[str] = frozenset()
    tags: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a result list."""

    items: List[T]
    page: int
    page_size: int
    total_items: int

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(self.total_items / self.page_size))

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def avatar_url_for(profile: Any, email: Optional[str] = None) -> str:
    """
    Avatar to show for a profile or author summary.

    Falls back to a generated initials avatar seeded by username, full
    name or the local part of the email address.
    """
    if profile is not None and getattr(profile, "avatar_url", None):
        return profile.avatar_url
    seed = (
        getattr(profile, "username", None)
        or getattr(profile, "full_name", None)
        or (email.split("@")[0] if email else None)
        or "user"
    )
    return AVATAR_FALLBACK_URL.format(seed=quote(seed, safe=""))


def username_for(metadata: Optional[dict], email: Optional[str]) -> Optional[str]:
    """Username from auth metadata, else the email local part, else None."""
    meta = metadata or {}
    for key in ("username", "user_name", "preferred_username"):
        if meta.get(key):
            return meta[key]
    if email:
        return email.split("@")[0] or None
    return None


def display_name_for(metadata: Optional[dict], email: Optional[str]) -> str:
    """Name to greet a user with, from auth metadata or email."""
    return username_for(metadata, email) or "Usuario"
