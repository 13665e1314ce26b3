"""Tests for input cleaning, key normalization and the skip-AI heuristic."""
import pytest

from packages.domain.ingredients.exceptions import ValidationError
from packages.domain.ingredients.normalization import (
    MAX_INPUT_LENGTH,
    clean_input,
    looks_canonical,
    normalize_key,
)


class TestCleanInput:
    """Test input validation."""

    def test_trims_and_collapses_whitespace(self):
        assert clean_input("  Green \t  Apple \n") == "Green Apple"

    @pytest.mark.parametrize("value", ["", "   ", "\n\t"])
    def test_rejects_empty(self, value):
        with pytest.raises(ValidationError):
            clean_input(value)

    def test_rejects_none(self):
        with pytest.raises(ValidationError):
            clean_input(None)

    def test_rejects_oversized(self):
        with pytest.raises(ValidationError, match="too long"):
            clean_input("a" * (MAX_INPUT_LENGTH + 1))

    def test_accepts_max_length(self):
        assert len(clean_input("a" * MAX_INPUT_LENGTH)) == MAX_INPUT_LENGTH


class TestNormalizeKey:
    """Test dictionary key normalization."""

    def test_case_and_space_variants_share_a_key(self):
        assert normalize_key("Apple") == normalize_key("apple") == normalize_key("  APPLE  ") == "apple"

    def test_inner_whitespace_collapsed(self):
        assert normalize_key("Sea   Salt") == "sea salt"

    def test_cyrillic_lowercased(self):
        assert normalize_key(" МОЛОКО ") == "молоко"


class TestLooksCanonical:
    """Test skip-AI heuristic."""

    @pytest.mark.parametrize("value", ["Green Apple", "milk", "7-Up", "Baker's Yeast", "Flour 00"])
    def test_plain_latin_passes(self, value):
        assert looks_canonical(value)

    @pytest.mark.parametrize("value", ["Молоко", "Jabłko", "Crème fraîche", "Salt & Pepper", "Milk (2%)"])
    def test_other_scripts_and_symbols_fail(self, value):
        assert not looks_canonical(value)
