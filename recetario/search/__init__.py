"""
Search module for recipe lookup.

Provides fuzzy matching plus feed filtering, ordering and pagination.
"""
from .fuzzy_matcher import FuzzyMatcher, levenshtein, matches, normalize_text, tokenize
from .recipe_filter import build_feed, build_filters, filter_recipes, paginate, sort_recipes

__all__ = [
    "FuzzyMatcher",
    "build_feed",
    "build_filters",
    "filter_recipes",
    "levenshtein",
    "matches",
    "normalize_text",
    "paginate",
    "sort_recipes",
    "tokenize",
]
