"""Tests for the free-text attribute extraction rules."""

import pytest

from productqc.patterns import EXTRACTION_RULES, AttributeRule, FlagRule, extract


def _rule(name):
    return next(rule for rule in EXTRACTION_RULES if rule.name == name)


class TestExtract:
    """End-to-end behaviour of extract()."""

    def test_litres_converted_to_ml(self):
        """Test that a labelled litre capacity is reported in ml."""
        assert extract("Capacity: 1.5L bottle") == {"Capacity": "1500ml"}

    def test_hot_retention_hours(self):
        """Test that retention phrases yield an hours value."""
        assert extract("keeps drinks hot for 12 hours") == {"Hot Retention": "12 hours"}

    def test_title_used_only_when_text_has_no_capacity(self):
        """Test the title fallback for capacity."""
        assert extract("Great for travel", title="Milton Flask 750 ml") == {"Capacity": "750ml"}
        assert extract("Volume: 500 ml", title="Bottle 1L")["Capacity"] == "500ml"

    def test_title_not_used_for_other_attributes(self):
        """Test that only fallback-enabled rules consult the title."""
        assert extract("", title="Black Steel Bottle") == {}

    def test_returns_new_dict_each_call(self):
        """Test that results do not accumulate across calls."""
        first = extract("Colour: Red")
        second = extract("Weight: 1.2 kg")
        assert first == {"Color": "Red"}
        assert second == {"Weight": "1.2 kg"}

    def test_empty_text(self):
        """Test that empty input yields an empty map."""
        assert extract("") == {}

    def test_full_product_blurb(self):
        """Test a realistic description covering many rules."""
        text = (
            "Made from 304 stainless steel with double wall vacuum insulation. "
            "Keeps hot for 12 hours and cold for 24 hours. Leak-Proof lid, BPA free "
            "and dishwasher safe. Size: 7 x 7 x 26 cm. Weight: 350 g. Colour: Black. "
            "1 year warranty."
        )
        result = extract(text)
        assert result["Material"] == "304 Stainless Steel"
        assert result["Insulation Type"] == "Double Wall Vacuum"
        assert result["Hot Retention"] == "12 hours"
        assert result["Cold Retention"] == "24 hours"
        assert result["Leak Proof"] == "Yes"
        assert result["BPA Free"] == "Yes"
        assert result["Dishwasher Safe"] == "Yes"
        assert result["Dimensions"] == "7 x 7 x 26 cm"
        assert result["Weight"] == "350 g"
        assert result["Color"] == "Black"
        assert result["Warranty"] == "1 year"


class TestRules:
    """Individual rules are independently testable."""

    def test_rule_table_order(self):
        """Test that rules are declared in the documented order."""
        names = [rule.name for rule in EXTRACTION_RULES]
        assert names[0] == "Capacity"
        assert names[-1] == "Warranty"
        assert len(names) == len(set(names))

    def test_first_pattern_is_authoritative(self):
        """Test that the labelled capacity beats a later bare ml value."""
        assert _rule("Capacity").apply("Capacity: 2 L and a 300 ml cup") == "2000ml"

    def test_bare_ml_pattern(self):
        """Test the unlabelled ml pattern."""
        assert _rule("Capacity").apply("holds 500 ml of water") == "500ml"

    def test_material_prefers_longest_vocabulary_term(self):
        """Test that multi-word materials beat their suffix."""
        assert _rule("Material").apply("body: 18/8 stainless steel") == "18/8 Stainless Steel"

    def test_weight_unit_normalized(self):
        """Test weight units are canonicalized."""
        assert _rule("Weight").apply("Net wt: 2 kgs") == "2 kg"

    def test_dimensions_two_axes(self):
        """Test L x W dimensions."""
        assert _rule("Dimensions").apply("Dimensions: 30x40 cm") == "30 x 40 cm"

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("1 year warranty", "1 year"),
            ("Warranty: 2 years", "2 years"),
            ("6 months manufacturer warranty", "6 months"),
        ],
    )
    def test_warranty_duration(self, text, expected):
        """Test warranty phrasing variants."""
        assert _rule("Warranty").apply(text) == expected

    def test_flag_rule_is_case_insensitive_substring(self):
        """Test flag rules on case-folded text."""
        rule = FlagRule("Leak Proof", ("leak proof",))
        assert rule.apply("LEAK PROOF design") == "Yes"
        assert rule.apply("leaks sometimes") is None

    def test_custom_attribute_rule(self):
        """Test that AttributeRule works standalone."""
        import re

        rule = AttributeRule("Pages", (re.compile(r"(\d+)\s*pages", re.IGNORECASE),))
        assert rule.apply("A5 notebook, 120 Pages") == "120"
        assert rule.apply("no page count") is None
