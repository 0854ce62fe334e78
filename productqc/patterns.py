"""Free-text attribute extraction.

Each attribute is described by one rule: an ordered list of regexes plus an
optional step that turns the match into a display value. Rules are applied
in declaration order, the first pattern that matches is authoritative and
later patterns for that attribute are never consulted.
"""

import re
from dataclasses import dataclass
from re import Match, Pattern
from typing import Callable, Dict, Optional, Sequence, Tuple, Union

__all__ = [
    "AttributeRule",
    "FlagRule",
    "EXTRACTION_RULES",
    "MATERIALS",
    "COLORS",
    "extract",
]


# ============================================================================
# Rule types
# ============================================================================


def _first_group(match: Match[str]) -> str:
    return " ".join(match.group(1).split())


@dataclass(frozen=True)
class AttributeRule:
    """Regex-driven attribute; the value comes from the first matching pattern."""

    name: str
    patterns: Tuple[Pattern[str], ...]
    normalizer: Callable[[Match[str]], str] = _first_group
    title_fallback: bool = False

    def apply(self, text: str) -> Optional[str]:
        for pattern in self.patterns:
            match = pattern.search(text)
            if match:
                value = self.normalizer(match)
                if value:
                    return value
        return None


@dataclass(frozen=True)
class FlagRule:
    """Boolean attribute satisfied by any keyword being present."""

    name: str
    keywords: Tuple[str, ...]
    title_fallback: bool = False

    def apply(self, text: str) -> Optional[str]:
        folded = text.casefold()
        if any(keyword in folded for keyword in self.keywords):
            return "Yes"
        return None


Rule = Union[AttributeRule, FlagRule]


def _compile(*patterns: str) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


def _vocabulary(terms: Sequence[str]) -> str:
    # Longest first so "stainless steel" wins over "steel" at the same position
    ordered = sorted(terms, key=len, reverse=True)
    alternatives = (r"[\s-]+".join(re.escape(word) for word in term.split()) for term in ordered)
    return "(" + "|".join(alternatives) + ")"


def _display(match: Match[str]) -> str:
    words = re.split(r"[\s-]+", match.group(1).strip())
    return " ".join(w if w.isupper() or any(c.isdigit() for c in w) else w.capitalize() for w in words)


# ============================================================================
# Unit normalization
# ============================================================================

_NUMBER = r"(\d+(?:\.\d+)?)"


def _format_number(value: float) -> str:
    if value == int(value):
        return str(int(value))
    return f"{value:g}"


def _capacity_ml(match: Match[str]) -> str:
    amount = float(match.group(1))
    unit = match.group(2).lower()
    if unit.startswith("l"):
        amount *= 1000
    return f"{_format_number(amount)}ml"


def _hours(match: Match[str]) -> str:
    amount = re.sub(r"\s+", "", match.group(1))
    return f"{amount} hour" if amount == "1" else f"{amount} hours"


_WEIGHT_UNITS = {
    "g": "g", "gm": "g", "gms": "g", "gram": "g", "grams": "g",
    "kg": "kg", "kgs": "kg",
    "lb": "lb", "lbs": "lb",
    "oz": "oz",
}


def _weight(match: Match[str]) -> str:
    unit = _WEIGHT_UNITS.get(match.group(2).lower(), match.group(2).lower())
    return f"{match.group(1)} {unit}"


def _dimensions(match: Match[str]) -> str:
    parts = [p for p in match.group(1, 2, 3) if p]
    unit = match.group(4).lower()
    if unit.startswith("in") or unit == '"':
        unit = "in"
    return " x ".join(parts) + f" {unit}"


def _duration(number: str, unit: str) -> str:
    unit = unit.lower().rstrip("s")
    if unit == "yr":
        unit = "year"
    return f"{number} {unit}" if number == "1" else f"{number} {unit}s"


def _warranty(match: Match[str]) -> str:
    return _duration(match.group(1), match.group(2))


def _insulation(match: Match[str]) -> str:
    text = re.sub(r"[\s-]+", " ", match.group(1).lower()).replace("walled", "wall")
    return text.title()


# ============================================================================
# Vocabularies
# ============================================================================

MATERIALS: Tuple[str, ...] = (
    "304 stainless steel", "316 stainless steel", "18/8 stainless steel",
    "stainless steel", "borosilicate glass", "tritan", "copper", "glass",
    "aluminium", "aluminum", "ceramic", "porcelain", "bamboo", "cork",
    "silicone", "polypropylene", "polycarbonate", "abs plastic", "plastic",
    "polyester", "nylon", "canvas", "jute", "cotton", "faux leather",
    "pu leather", "leather", "wood", "metal",
)

COLORS: Tuple[str, ...] = (
    "black", "white", "navy blue", "sky blue", "blue", "red", "green", "navy",
    "grey", "gray", "silver", "rose gold", "gold", "pink", "yellow", "orange",
    "purple", "brown", "beige", "maroon", "teal", "multicolor",
)

_RETENTION_UNIT = r"\s*(?:hours?|hrs?)\b"
_RETENTION_VALUE = r"(?:up\s*to\s+)?(\d+(?:\s*-\s*\d+)?)" + _RETENTION_UNIT
_DIMENSION_BODY = (
    r"(\d+(?:\.\d+)?)\s*[x×*]\s*(\d+(?:\.\d+)?)(?:\s*[x×*]\s*(\d+(?:\.\d+)?))?"
    r"\s*(mm|cm|inch(?:es)?|in\b|\"|m\b)"
)
_DURATION_UNIT = r"(years?|yrs?|months?|days?)"


# ============================================================================
# Rule table
# ============================================================================

EXTRACTION_RULES: Tuple[Rule, ...] = (
    AttributeRule(
        "Capacity",
        _compile(
            r"(?:capacity|volume)\s*[:\-]?\s*" + _NUMBER + r"\s*(ml|millilit(?:er|re)s?|ltrs?|lit(?:er|re)s?|l)\b",
            _NUMBER + r"\s*(ml|millilit(?:er|re)s?)\b",
            _NUMBER + r"\s*(ltrs?|lit(?:er|re)s?|l)\b",
        ),
        normalizer=_capacity_ml,
        title_fallback=True,
    ),
    AttributeRule(
        "Material",
        _compile(
            r"material\s*[:\-]?\s*" + _vocabulary(MATERIALS),
            r"\b" + _vocabulary(MATERIALS) + r"\b",
        ),
        normalizer=_display,
    ),
    AttributeRule(
        "Hot Retention",
        _compile(
            r"hot\s*retention\s*(?:time)?\s*[:\-]?\s*" + _RETENTION_VALUE,
            r"\bhot\s+(?:for\s+)?" + _RETENTION_VALUE,
            r"(\d+(?:\s*-\s*\d+)?)" + _RETENTION_UNIT + r"\s*(?:of\s+)?hot\b",
        ),
        normalizer=_hours,
    ),
    AttributeRule(
        "Cold Retention",
        _compile(
            r"cold\s*retention\s*(?:time)?\s*[:\-]?\s*" + _RETENTION_VALUE,
            r"\bcold\s+(?:for\s+)?" + _RETENTION_VALUE,
            r"(\d+(?:\s*-\s*\d+)?)" + _RETENTION_UNIT + r"\s*(?:of\s+)?cold\b",
        ),
        normalizer=_hours,
    ),
    AttributeRule(
        "Insulation Type",
        _compile(
            r"\b(double[\s-]wall(?:ed)?[\s-]+vacuum|vacuum[\s-]insulated|"
            r"double[\s-]wall(?:ed)?|single[\s-]wall(?:ed)?|triple[\s-]wall(?:ed)?)\b",
        ),
        normalizer=_insulation,
    ),
    AttributeRule(
        "Weight",
        _compile(
            r"(?:weight|wt)\.?\s*[:\-]?\s*" + _NUMBER + r"\s*(kgs?|grams?|gms?|g|lbs?|oz)\b",
            _NUMBER + r"\s*(kgs?|grams?|gms?)\b",
        ),
        normalizer=_weight,
    ),
    AttributeRule(
        "Dimensions",
        _compile(
            r"(?:dimensions?|size)\s*[:\-]?\s*" + _DIMENSION_BODY,
            _DIMENSION_BODY,
        ),
        normalizer=_dimensions,
    ),
    AttributeRule(
        "Color",
        _compile(
            r"colou?rs?\s*[:\-]?\s*" + _vocabulary(COLORS) + r"\b",
            r"\b" + _vocabulary(COLORS) + r"\b",
        ),
        normalizer=_display,
    ),
    FlagRule("Leak Proof", ("leak proof", "leak-proof", "leakproof", "leak resistant", "spill proof", "spill-proof")),
    FlagRule("BPA Free", ("bpa free", "bpa-free", "bpafree")),
    FlagRule("Dishwasher Safe", ("dishwasher safe", "dishwasher-safe")),
    AttributeRule(
        "Warranty",
        _compile(
            r"(\d+)\s*" + _DURATION_UNIT + r"\s*(?:of\s+)?(?:limited\s+|manufacturer(?:'s)?\s+)?warranty",
            r"warranty\s*(?:period)?\s*[:\-]?\s*(?:of\s+)?(\d+)\s*" + _DURATION_UNIT,
        ),
        normalizer=_warranty,
    ),
)


def extract(text: str, title: Optional[str] = None) -> Dict[str, str]:
    """Run every extraction rule over ``text``.

    Args:
        text: Free text (page body, OCR text, PDF text, search snippets)
        title: Product title, consulted only by rules with ``title_fallback``
            and only when ``text`` produced nothing for them

    Returns:
        New dict of canonical attribute name -> value
    """
    found: Dict[str, str] = {}
    text = text or ""
    for rule in EXTRACTION_RULES:
        value = rule.apply(text)
        if value is None and rule.title_fallback and title:
            value = rule.apply(title)
        if value is not None:
            found[rule.name] = value
    return found
