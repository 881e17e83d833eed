"""
Fuzzy matching engine for recipe search.

Decides whether a recipe is relevant to a free-text query in two tiers:

1. Substring containment of the whole normalized query in any single field.
2. Per-token approximate matching: every significant query word must be
   found in the record, either as a substring of a field token or within a
   small Levenshtein distance of one.

Normalization lowercases and strips diacritics, so "Café" and "cafe"
compare equal. Everything here is pure and never raises.
"""

import re
import unicodedata
from collections.abc import Mapping
from typing import Any, Iterable, List, Sequence

from rapidfuzz.distance import Levenshtein

COMBINING_MARKS = re.compile("[\u0300-\u036f]")
NON_TOKEN_CHARS = re.compile(r"[^a-z0-9ñ]", re.IGNORECASE | re.ASCII)

SEQUENCE_FIELDS = ("ingredients", "steps", "tags")
MATCH_FIELDS = ("title", "summary", "ingredients", "steps", "category", "tags")


def normalize_text(value: Any) -> str:
    """
    Lowercase and strip diacritics.

    Examples:
        "Café" -> "cafe"
        "PIÑA" -> "pina"
        None -> ""
    """
    if value is None:
        return ""
    decomposed = unicodedata.normalize("NFD", str(value).lower())
    return COMBINING_MARKS.sub("", decomposed)


def tokenize(text: Any) -> List[str]:
    """
    Split normalized text into alphanumeric tokens.

    Punctuation is stripped from inside each word and empty words dropped:
    "¡Tarta, de queso!" -> ["tarta", "de", "queso"]
    """
    tokens = (NON_TOKEN_CHARS.sub("", word) for word in normalize_text(text).split())
    return [token for token in tokens if token]


def levenshtein(a: str, b: str) -> int:
    """Edit distance with unit cost for insertion, deletion and substitution."""
    return Levenshtein.distance(a, b)


def _field_value(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _field_text(record: Any, name: str) -> str:
    value = _field_value(record, name)
    if name in SEQUENCE_FIELDS:
        return " ".join(str(item) for item in value or () if item is not None)
    return "" if value is None else str(value)


class FuzzyMatcher:
    """
    Typo-tolerant matcher for searchable records.

    Distance thresholds: one edit for query tokens of up to five
    characters, two edits for longer ones.
    """

    MIN_TOKEN_LENGTH = 3
    SHORT_TOKEN_MAX_LENGTH = 5
    SHORT_TOKEN_MAX_DISTANCE = 1
    LONG_TOKEN_MAX_DISTANCE = 2

    def threshold_for(self, token: str) -> int:
        """Maximum edit distance tolerated for a query token."""
        if len(token) <= self.SHORT_TOKEN_MAX_LENGTH:
            return self.SHORT_TOKEN_MAX_DISTANCE
        return self.LONG_TOKEN_MAX_DISTANCE

    def normalized_fields(self, record: Any) -> List[str]:
        """Normalized title, summary, ingredients, steps, category and tags."""
        return [normalize_text(_field_text(record, name)) for name in MATCH_FIELDS]

    def query_tokens(self, query: str) -> List[str]:
        """Query tokens long enough to be matched approximately."""
        return [t for t in tokenize(query) if len(t) >= self.MIN_TOKEN_LENGTH]

    def fuzzy_token_match(self, token: str, field_tokens: Sequence[str]) -> bool:
        """
        Check whether one query token is present in the field tokens.

        A field token containing the query token counts ("tomat" is found in
        "tomate"); otherwise the closest field token must be within the
        length-dependent edit distance.
        """
        if not field_tokens:
            return False
        if any(token in candidate for candidate in field_tokens):
            return True
        min_distance = min(levenshtein(token, candidate) for candidate in field_tokens)
        return min_distance <= self.threshold_for(token)

    def matches(self, query: str, record: Any) -> bool:
        """
        Decide whether a record is relevant to a query.

        Args:
            query: Raw user query
            record: Object or mapping with title, summary, ingredients,
                steps, category and tags (any of them may be missing)

        Returns:
            True if the record matches on either tier
        """
        normalized_query = normalize_text(query)
        fields = self.normalized_fields(record)

        if any(normalized_query in value for value in fields):
            return True

        query_tokens = self.query_tokens(query)
        if not query_tokens:
            return False

        field_tokens = tokenize(" ".join(fields))
        return all(self.fuzzy_token_match(token, field_tokens) for token in query_tokens)

    def filter(self, query: str, records: Iterable[Any]) -> List[Any]:
        """Records matching the query, in their original order."""
        return [record for record in records if self.matches(query, record)]


_default_matcher = FuzzyMatcher()


def fuzzy_token_match(token: str, field_tokens: Sequence[str]) -> bool:
    return _default_matcher.fuzzy_token_match(token, field_tokens)


def matches(query: str, record: Any) -> bool:
    return _default_matcher.matches(query, record)
