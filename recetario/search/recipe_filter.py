"""
Feed filtering, ordering and pagination.

The feed narrows recipes with plain substring search plus category and
tag selections; fuzzy matching is reserved for the search endpoint.
All state is passed in explicitly and inputs are never mutated.
"""

from typing import Iterable, List, Optional, Sequence, TypeVar

from ..domain.entities import FeedFilters, Page, Recipe, SortOption
from .fuzzy_matcher import FuzzyMatcher, normalize_text

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 5

_matcher = FuzzyMatcher()


def build_filters(
    term: Optional[str] = None,
    categories: Optional[Iterable[str]] = None,
    tags: Optional[Iterable[str]] = None,
) -> FeedFilters:
    """Build feed filters with normalized category and tag selections."""
    return FeedFilters(
        term=(term or "").strip(),
        categories=frozenset(normalize_text(c) for c in categories or () if c),
        tags=frozenset(normalize_text(t) for t in tags or () if t),
    )


def contains_term(recipe: Recipe, term: str) -> bool:
    """True if the normalized term appears verbatim in any searchable field."""
    query = normalize_text(term)
    return any(query in value for value in _matcher.normalized_fields(recipe))


def filter_recipes(recipes: Iterable[Recipe], filters: FeedFilters) -> List[Recipe]:
    """Apply term, category and tag filters, preserving input order."""
    result = list(recipes)

    if filters.term:
        result = [r for r in result if contains_term(r, filters.term)]

    if filters.categories:
        result = [r for r in result if normalize_text(r.category) in filters.categories]

    if filters.tags:
        result = [
            r for r in result if any(normalize_text(tag) in filters.tags for tag in r.tags)
        ]

    return result


def sort_recipes(recipes: Iterable[Recipe], option: SortOption = SortOption.NEWEST) -> List[Recipe]:
    """
    Order recipes for display.

    - newest: most recent first
    - oldest: oldest first
    - favorites: favorites first, newest first within each group
    """
    if option == SortOption.OLDEST:
        return sorted(recipes, key=lambda r: r.timestamp)
    if option == SortOption.FAVORITES:
        return sorted(recipes, key=lambda r: (not r.is_favorite, -r.timestamp))
    return sorted(recipes, key=lambda r: r.timestamp, reverse=True)


def paginate(items: Sequence[T], page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> Page[T]:
    """
    Slice one page out of a list.

    Pages are 1-based. Requests before the first page return the first
    page; requests past the end return the last one.
    """
    if page_size < 1:
        raise ValueError("page_size must be positive")

    total = len(items)
    last_page = max(1, -(-total // page_size))
    current = min(max(1, page), last_page)
    start = (current - 1) * page_size

    return Page(
        items=list(items[start : start + page_size]),
        page=current,
        page_size=page_size,
        total_items=total,
    )


def build_feed(
    recipes: Iterable[Recipe],
    filters: FeedFilters,
    sort: SortOption = SortOption.NEWEST,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> Page[Recipe]:
    """Filter, order and paginate recipes in one step."""
    return paginate(sort_recipes(filter_recipes(recipes, filters), sort), page, page_size)
