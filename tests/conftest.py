"""
Test configuration and fixtures
"""

import io
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from recetario.app import app
from recetario.core.auth import get_current_user
from recetario.dependencies import (
    get_favorite_service,
    get_profile_service,
    get_recipe_service,
    get_search_service,
)
from recetario.domain.entities import Recipe, UserContext
from recetario.repositories.recipe_repository import (
    IFavoriteRepository,
    IPhotoStorage,
    IProfileRepository,
    IRecipeRepository,
)
from recetario.services.favorite_service import FavoriteService
from recetario.services.profile_service import ProfileService
from recetario.services.recipe_service import RecipeService
from recetario.services.search_service import RecipeSearchService

PHOTO_URL = "https://abc123.supabase.co/storage/v1/object/public/recetas-fotos/foto.jpg"


@pytest.fixture
def make_image():
    """Encode a blank image of the given size, PNG unless a format is given."""

    def _make(width=10, height=10, fmt="PNG"):
        buffer = io.BytesIO()
        Image.new("RGB", (width, height), "white").save(buffer, fmt)
        return buffer.getvalue()

    return _make


@pytest.fixture
def recipe_rows():
    """Backend rows as returned by the recetas table with the author join."""
    return [
        {
            "id": "r1",
            "titulo": "Tarta de Queso",
            "resumen": "Postre frío",
            "ingredientes": ["500 g queso crema", "3 huevos", "200 g azúcar"],
            "pasos": ["Batir todo", "Hornear 45 minutos"],
            "foto_url": PHOTO_URL,
            "fecha": "2024-03-10T12:00:00+00:00",
            "categoria": "Postres",
            "tags": ["dulce", "horno"],
            "user_id": "user-1",
            "profiles": {"username": "ana", "full_name": "Ana Pérez", "avatar_url": None},
        },
        {
            "id": "r2",
            "titulo": "Pollo al horno con patatas",
            "resumen": "Clásico de domingo",
            "ingredientes": ["1 pollo", "4 patatas", "sal"],
            "pasos": ["Salpimentar", "Hornear"],
            "foto_url": None,
            "fecha": "2024-03-12T09:30:00+00:00",
            "categoria": "Carnes",
            "tags": ["horno"],
            "user_id": "user-2",
            "profiles": {"username": "luis", "full_name": None, "avatar_url": None},
        },
        {
            "id": "r3",
            "titulo": "Café helado",
            "resumen": None,
            "ingredientes": None,
            "pasos": None,
            "foto": "https://example.com/legacy.jpg",
            "fecha": "2024-03-01T08:00:00+00:00",
            "categoria": "Bebidas",
            "tags": None,
            "user_id": "user-1",
            "profiles": None,
        },
    ]


@pytest.fixture
def sample_recipes(recipe_rows):
    """Recipes in backend order (as stored, not sorted)."""
    return [Recipe.from_row(row) for row in recipe_rows]


@pytest.fixture
def user():
    return UserContext(id="user-1", email="ana@example.com", metadata={"username": "ana"})


@pytest.fixture
def other_user():
    return UserContext(id="user-9", email="otro@example.com")


@pytest.fixture
def admin_user():
    return UserContext(id="admin-1", email="admin@example.com", is_admin=True)


@pytest.fixture
def repos():
    """Mock repositories with empty defaults."""
    recipes = AsyncMock(spec=IRecipeRepository)
    recipes.list_recent.return_value = []
    recipes.search.return_value = []
    recipes.get.return_value = None
    recipes.list_by_user.return_value = []
    recipes.insert.side_effect = lambda recipe: recipe

    favorites = AsyncMock(spec=IFavoriteRepository)
    favorites.list_ids.return_value = set()
    favorites.list_recipes.return_value = []

    profiles = AsyncMock(spec=IProfileRepository)
    profiles.get.return_value = None
    profiles.get_role.return_value = None
    profiles.upsert.side_effect = lambda profile: profile

    storage = AsyncMock(spec=IPhotoStorage)
    storage.upload.return_value = PHOTO_URL

    return SimpleNamespace(recipes=recipes, favorites=favorites, profiles=profiles, storage=storage)


@pytest.fixture
def services(repos):
    """Real services on top of the mock repositories."""
    favorite_service = FavoriteService(repos.favorites)
    return SimpleNamespace(
        favorites=favorite_service,
        recipes=RecipeService(repos.recipes, favorite_service, repos.storage),
        search=RecipeSearchService(repos.recipes),
        profiles=ProfileService(repos.profiles, repos.recipes, repos.storage),
    )


@pytest.fixture
def make_client(services):
    """
    Build a test client acting as the given caller (None for anonymous).

    The lifespan is not entered, so no Supabase client is created.
    """

    def _make(caller=None, **kwargs):
        app.dependency_overrides[get_recipe_service] = lambda: services.recipes
        app.dependency_overrides[get_search_service] = lambda: services.search
        app.dependency_overrides[get_favorite_service] = lambda: services.favorites
        app.dependency_overrides[get_profile_service] = lambda: services.profiles
        app.dependency_overrides[get_current_user] = lambda: caller
        return TestClient(app, **kwargs)

    yield _make
    app.dependency_overrides.clear()
