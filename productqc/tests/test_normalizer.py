"""Tests for attribute-name normalization and the junk deny-list."""

import pytest

from productqc.normalizer import (
    DENY_LIST_VERSION,
    JUNK_PATTERNS,
    MOQ,
    SYNONYMS,
    match_junk,
    normalize,
    normalize_specifications,
    normalize_value,
    parse_key_value_lines,
)


class TestRejection:
    """Keys that must be discarded."""

    @pytest.mark.parametrize(
        "raw_key",
        [
            "https://shop.example/spec",
            "see www.example.com for details",
            "a" * 101,
            "12345",
            "ab",
            "x",
            "",
            "   ",
            "Add to Cart",
            "Page 2 of 5",
            "1 x",
            "::::",
        ],
    )
    def test_rejected_keys_return_none(self, raw_key):
        """Test that URLs, overlong keys, numbers, short tokens and junk return None."""
        assert normalize(raw_key) is None

    def test_non_string_returns_none(self):
        """Test that non-string keys are rejected."""
        assert normalize(None) is None
        assert normalize(42) is None

    def test_key_of_exactly_100_chars_is_not_rejected_for_length(self):
        """Test that the length limit is exclusive."""
        key = "Material " + ("abcdefghij " * 10)[:91]
        assert len(key) == 100
        assert normalize(key) is not None


class TestDenyList:
    """The versioned junk-pattern table."""

    def test_deny_list_is_versioned(self):
        """Test that the deny-list carries a version string."""
        assert DENY_LIST_VERSION

    def test_rule_names_are_unique(self):
        """Test that every deny rule has a distinct name."""
        names = [rule.name for rule in JUNK_PATTERNS]
        assert len(names) == len(set(names))

    @pytest.mark.parametrize(
        "text, rule",
        [
            ("123.45", "pure_number"),
            ("---", "punctuation_only"),
            ("http://x.y", "url"),
            ("2 ab", "leading_numeral_fragment"),
            ("M A T E", "letter_spaced"),
            ("Colouuuur", "repeated_chars"),
            ("Buy Now", "ui_text"),
            ("Contact Us", "navigation"),
            ("var x = 1", "code_fragment"),
        ],
    )
    def test_match_junk_reports_rule_name(self, text, rule):
        """Test that match_junk names the rule that fired."""
        assert match_junk(text) == rule

    def test_clean_key_matches_no_rule(self):
        """Test that an ordinary attribute name is not junk."""
        assert match_junk("Material") is None


class TestCleaning:
    """Prefix stripping, character cleanup and casing."""

    def test_strips_everything_before_last_separator(self):
        """Test that mis-split prefixes are dropped."""
        assert normalize("Product Details: Material:") == "Material"
        assert normalize("spec=Finish") == "Finish"

    def test_trims_surrounding_punctuation(self):
        """Test that leading/trailing non-word characters are trimmed."""
        assert normalize("--- Colour ---") == "Color"

    def test_underscores_become_spaces(self):
        """Test that snake_case keys are title-cased words."""
        assert normalize("shell_type") == "Shell Type"

    def test_preserves_abbreviations(self):
        """Test that 2-4 letter all-caps tokens survive title-casing."""
        assert normalize("SKU code") == "SKU Code"
        assert normalize("USB port type") == "USB Port Type"

    def test_collapses_whitespace(self):
        """Test that internal whitespace is collapsed."""
        assert normalize("  lining    fabric  ") == "Lining Fabric"


class TestSynonyms:
    """Synonym table lookups."""

    @pytest.mark.parametrize(
        "raw_key",
        ["Min Order Quantity", "minimum order quantity", "MIN ORDER", "moq", "Min Qty"],
    )
    def test_moq_variants(self, raw_key):
        """Test that MOQ spellings map to the canonical MOQ name."""
        assert normalize(raw_key) == MOQ

    def test_every_synonym_maps_to_its_canonical_name(self):
        """Test that each table entry resolves exactly."""
        for raw, canonical in SYNONYMS.items():
            assert normalize(raw) == canonical, raw

    def test_colour_spelling(self):
        """Test British spelling maps to Color."""
        assert normalize("Colour") == "Color"


class TestValues:
    """Value flattening and whole-map normalization."""

    def test_normalize_value_variants(self):
        """Test flattening of loosely typed values."""
        assert normalize_value(None) == ""
        assert normalize_value(False) == ""
        assert normalize_value(True) == "Yes"
        assert normalize_value(["Red", "", "Blue"]) == "Red, Blue"
        assert normalize_value({"L": "10 cm", "W": None}) == "L: 10 cm"
        assert normalize_value("  a   b ") == "a b"
        assert normalize_value(0) == "0"

    def test_first_raw_key_wins(self):
        """Test that two raw keys for one canonical key keep the first."""
        specs = normalize_specifications({"Material": "Steel", "material type": "Plastic"})
        assert specs == {"Material": "Steel"}

    def test_drops_rejected_keys_and_empty_values(self):
        """Test that junk keys and empty values are dropped."""
        specs = normalize_specifications(
            {"https://x.example": "junk", "Weight": None, "Colour": ["Red", "Blue"]}
        )
        assert specs == {"Color": "Red, Blue"}


class TestKeyValueLines:
    """Line splitting for OCR and PDF text."""

    def test_parses_supported_separators(self):
        """Test colon, equals and dash separated lines."""
        text = "Material: Steel\nrandom line without separator\nMOQ = 500\nColour - Blue"
        assert list(parse_key_value_lines(text)) == [
            ("Material", "Steel"),
            (MOQ, "500"),
            ("Color", "Blue"),
        ]

    def test_skips_lines_with_junk_keys(self):
        """Test that lines whose key is rejected are skipped."""
        assert list(parse_key_value_lines("Add to cart: now")) == []
