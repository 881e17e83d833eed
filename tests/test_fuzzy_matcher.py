"""
Tests for the fuzzy matcher.

Covers normalization, tokenization, edit distance and both matching tiers.
"""

import pytest

from recetario.domain.entities import SearchableRecord
from recetario.search.fuzzy_matcher import (
    FuzzyMatcher,
    fuzzy_token_match,
    levenshtein,
    matches,
    normalize_text,
    tokenize,
)


def record_with_title(title, **fields):
    return SearchableRecord(title=title, **fields)


class TestNormalizeText:
    """Test lowercasing and diacritic stripping."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("Café", "cafe"),
            ("PIÑA", "pina"),
            ("Crème Brûlée", "creme brulee"),
            ("pollo", "pollo"),
            ("", ""),
            (None, ""),
            (42, "42"),
        ],
    )
    def test_normalize(self, value, expected):
        """Test normalization of mixed inputs."""
        assert normalize_text(value) == expected

    @pytest.mark.parametrize("value", ["Café con Leche", "ÑOQUIS", "tarta de queso", "Año 2024!"])
    def test_idempotent(self, value):
        """Normalizing twice equals normalizing once."""
        once = normalize_text(value)
        assert normalize_text(once) == once


class TestTokenize:
    """Test tokenization."""

    def test_strips_punctuation(self):
        assert tokenize("¡Tarta, de queso!") == ["tarta", "de", "queso"]

    def test_collapses_whitespace_and_drops_empty_tokens(self):
        assert tokenize("  pollo \t al   horno -- ") == ["pollo", "al", "horno"]

    def test_keeps_digits(self):
        assert tokenize("200g harina 3 huevos") == ["200g", "harina", "3", "huevos"]

    def test_accents_removed_before_splitting(self):
        assert tokenize("Crème Brûlée") == ["creme", "brulee"]

    def test_none(self):
        assert tokenize(None) == []


class TestLevenshtein:
    """Test edit distance."""

    def test_identity(self):
        assert levenshtein("queso", "queso") == 0

    def test_empty_strings(self):
        assert levenshtein("", "horno") == 5
        assert levenshtein("horno", "") == 5
        assert levenshtein("", "") == 0

    def test_classic_example(self):
        assert levenshtein("kitten", "sitting") == 3

    def test_single_edits(self):
        assert levenshtein("qeso", "queso") == 1
        assert levenshtein("tomate", "tomat") == 1
        assert levenshtein("pollo", "pollp") == 1

    def test_inputs_not_normalized(self):
        assert levenshtein("Café", "cafe") == 2


class TestFuzzyTokenMatch:
    """Test single token matching."""

    def test_empty_field_tokens(self):
        assert fuzzy_token_match("queso", []) is False

    def test_substring_of_field_token(self):
        assert fuzzy_token_match("tomat", ["tomates", "cebolla"]) is True

    def test_short_token_distance_one(self):
        assert fuzzy_token_match("qeso", ["tarta", "queso"]) is True

    def test_short_token_distance_two_rejected(self):
        # "pollo" has five characters: threshold stays at one edit
        assert fuzzy_token_match("pollo", ["pelle"]) is False

    def test_long_token_distance_one(self):
        assert fuzzy_token_match("tomate", ["tomat"]) is True

    def test_long_token_distance_two_accepted(self):
        # six characters allow two edits
        assert fuzzy_token_match("patata", ["pateto"]) is True

    def test_long_token_distance_three_rejected(self):
        assert fuzzy_token_match("zanahoria", ["manzana"]) is False


class TestThreshold:
    """Test the length dependent distance threshold."""

    @pytest.mark.parametrize(
        "token,expected",
        [("sal", 1), ("qeso", 1), ("pollo", 1), ("tomate", 2), ("zanahoria", 2)],
    )
    def test_threshold_for(self, token, expected):
        assert FuzzyMatcher().threshold_for(token) == expected


class TestMatches:
    """Test full record matching."""

    def test_diacritic_insensitive(self):
        assert matches("cafe", record_with_title("Café")) is True

    def test_case_insensitive(self):
        assert matches("POLLO", record_with_title("pollo al horno")) is True

    def test_phrase_substring_matches(self):
        assert matches("al horno", record_with_title("Pollo al horno con patatas")) is True

    def test_phrase_in_joined_ingredients(self):
        record = record_with_title("Bizcocho", ingredients=["harina", "huevos"])
        assert matches("harina huevos", record) is True

    def test_short_tokens_only_do_not_match(self):
        assert matches("de", record_with_title("Pollo asado")) is False
        assert matches("y la", record_with_title("Pollo asado")) is False

    def test_short_token_can_still_match_as_substring(self):
        assert matches("de", record_with_title("Tarta de queso")) is True

    def test_five_char_token_at_distance_two_does_not_match(self):
        assert matches("pollo", record_with_title("Pelle rara")) is False

    def test_six_char_token_at_distance_one_matches(self):
        assert matches("tomate", record_with_title("Salsa de tomat")) is True

    def test_all_tokens_required(self):
        record = record_with_title("Pollo al horno", ingredients=["pollo", "sal"])

        assert matches("pollo", record) is True
        assert matches("pollo zanahoria", record) is False

    def test_tokens_may_match_in_different_fields(self):
        record = record_with_title("Guiso", category="Carnes", tags=["invierno"])
        assert matches("guiso invierno", record) is True

    def test_token_order_irrelevant(self):
        record = record_with_title("Tarta de queso")
        assert matches("qeso tarta", record) is True

    def test_missing_fields(self):
        record = SearchableRecord(title="Sopa de ajo", ingredients=None, steps=None, tags=None)

        assert matches("sopa", record) is True
        assert matches("soppa", record) is True
        assert matches("lentejas", record) is False

    def test_mapping_records(self):
        record = {"title": "Crème brûlée", "tags": None}
        assert matches("creme brulee", record) is True

    def test_object_without_fields(self):
        assert matches("tarta", object()) is False

    def test_empty_query_matches_everything(self):
        assert matches("", record_with_title("Cualquier cosa")) is True

    def test_recipe_entities_are_searchable(self, sample_recipes):
        cheesecake = sample_recipes[0]
        assert matches("postre frio", cheesecake) is True

    def test_tarta_de_qeso(self):
        """A misspelled query finds the recipe through per-token matching."""
        record = SearchableRecord(
            title="Tarta de Queso", summary="Postre frío", tags=["dulce", "horno"]
        )
        matcher = FuzzyMatcher()

        assert matcher.query_tokens("tarta de qeso") == ["tarta", "qeso"]
        assert matcher.matches("tarta de qeso", record) is True

    def test_does_not_mutate_inputs(self):
        ingredients = ["Harina", "Azúcar"]
        tags = ["dulce"]
        record = {"title": "Galletas", "ingredients": ingredients, "tags": tags}

        matches("azucar", record)

        assert ingredients == ["Harina", "Azúcar"]
        assert tags == ["dulce"]


class TestFilter:
    """Test filtering a collection."""

    def test_preserves_order(self, sample_recipes):
        result = FuzzyMatcher().filter("horno", sample_recipes)
        assert [r.id for r in result] == ["r1", "r2"]

    def test_no_match(self, sample_recipes):
        assert FuzzyMatcher().filter("lentejas", sample_recipes) == []
