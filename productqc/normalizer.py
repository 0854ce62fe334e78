"""Attribute-name normalization.

Raw attribute names arrive from HTML tables, list items, PDF text and OCR
output. Most of them are fine ("Material", "Capacity:"), a lot of them are
not ("Add to Cart", "1 x", "P a g e"). ``normalize`` turns the good ones into
a canonical display name and returns ``None`` for everything else.

The garbage filter is a table of named rules (``JUNK_PATTERNS``). Bump
``DENY_LIST_VERSION`` whenever a rule is added, removed or changed so that
stored results can be traced back to the filter that produced them.
"""

import re
from re import Pattern
from typing import Any, Dict, Iterator, Mapping, NamedTuple, Optional, Tuple

__all__ = [
    "DENY_LIST_VERSION",
    "JUNK_PATTERNS",
    "SYNONYMS",
    "DenyRule",
    "match_junk",
    "normalize",
    "normalize_value",
    "normalize_specifications",
    "parse_key_value_lines",
]

DENY_LIST_VERSION = "2024.3"

MAX_KEY_LENGTH = 100
MIN_KEY_LENGTH = 3


class DenyRule(NamedTuple):
    name: str
    pattern: Pattern[str]


def _rule(name: str, pattern: str) -> DenyRule:
    return DenyRule(name, re.compile(pattern, re.IGNORECASE))


# ============================================================================
# Deny-list
# ============================================================================

JUNK_PATTERNS: Tuple[DenyRule, ...] = (
    _rule("pure_number", r"^[\d\s.,]+$"),
    _rule("punctuation_only", r"^[\W_]+$"),
    _rule("url", r"https?://|www\.|\.(?:com|in|net|org)/"),
    _rule("leading_numeral_fragment", r"^\d{1,3}\s*[.)x-]?\s*[a-z]{1,2}$"),
    _rule("single_letter_fragment", r"^[a-z]\s*[-:|/]\s*\S*$"),
    _rule("letter_spaced", r"^(?:\w\s){3,}\w$"),
    _rule("repeated_chars", r"(\S)\1{3,}"),
    _rule(
        "ui_text",
        r"^(?:add to (?:cart|bag|wishlist|compare)|buy now|buy it now|checkout|"
        r"write a review|reviews?|ratings?|share|notify me|in stock|out of stock|"
        r"view (?:more|all|details)|read more|show (?:more|less)|click here|"
        r"sign in|sign up|log ?in|register|subscribe|wishlist|compare)$",
    ),
    _rule(
        "navigation",
        r"^(?:home|menu|search|cart|account|my account|contact(?: us)?|about(?: us)?|"
        r"faqs?|help|shop|categories|next|prev(?:ious)?|back|close|more)$",
    ),
    _rule("page_marker", r"^page\s*\d+(?:\s*(?:of|/)\s*\d+)?$"),
    _rule("code_fragment", r"[{};<>]|=>|\bfunction\s*\(|\b(?:var|const|let|return)\s"),
)


def match_junk(text: str) -> Optional[str]:
    """Return the name of the first deny-list rule matching ``text``."""
    for rule in JUNK_PATTERNS:
        if rule.pattern.search(text):
            return rule.name
    return None


# ============================================================================
# Synonyms
# ============================================================================

MOQ = "MOQ (Minimum Order Quantity)"

SYNONYMS: Dict[str, str] = {
    # Commercial
    "moq": MOQ,
    "minimum order quantity": MOQ,
    "min order quantity": MOQ,
    "min order qty": MOQ,
    "minimum order qty": MOQ,
    "min order": MOQ,
    "minimum order": MOQ,
    "minimum quantity": MOQ,
    "min qty": MOQ,
    "lead time": "Lead Time",
    "delivery time": "Lead Time",
    "production time": "Lead Time",
    "dispatch time": "Lead Time",
    "turnaround time": "Lead Time",
    "price": "Price",
    "mrp": "Price",
    "unit price": "Price",
    "selling price": "Price",
    "brand": "Brand",
    "brand name": "Brand",
    "manufacturer": "Brand",
    "sku": "SKU",
    "item code": "SKU",
    "product code": "SKU",
    "article number": "SKU",
    "model": "Model Number",
    "model number": "Model Number",
    "model no": "Model Number",
    "item model number": "Model Number",
    "warranty": "Warranty",
    "warranty period": "Warranty",
    "country of origin": "Country of Origin",
    "origin": "Country of Origin",
    "made in": "Country of Origin",
    "hsn": "HSN Code",
    "hsn code": "HSN Code",
    # Physical
    "capacity": "Capacity",
    "volume": "Capacity",
    "capacity (ml)": "Capacity",
    "capacity in ml": "Capacity",
    "material": "Material",
    "material type": "Material",
    "body material": "Material",
    "made of": "Material",
    "composition": "Material",
    "color": "Color",
    "colour": "Color",
    "colors": "Color",
    "colours": "Color",
    "available colors": "Color",
    "dimensions": "Dimensions",
    "dimension": "Dimensions",
    "product dimensions": "Dimensions",
    "size": "Dimensions",
    "item dimensions": "Dimensions",
    "weight": "Weight",
    "item weight": "Weight",
    "net weight": "Weight",
    "product weight": "Weight",
    # Drinkware
    "hot retention": "Hot Retention",
    "keeps hot": "Hot Retention",
    "hot retention time": "Hot Retention",
    "cold retention": "Cold Retention",
    "keeps cold": "Cold Retention",
    "cold retention time": "Cold Retention",
    "insulation": "Insulation Type",
    "insulation type": "Insulation Type",
    "leak proof": "Leak Proof",
    "leakproof": "Leak Proof",
    "leak-proof": "Leak Proof",
    "bpa free": "BPA Free",
    "bpa-free": "BPA Free",
    "dishwasher safe": "Dishwasher Safe",
    # Branding
    "branding": "Branding Methods",
    "branding method": "Branding Methods",
    "branding methods": "Branding Methods",
    "branding options": "Branding Methods",
    "printing method": "Branding Methods",
    "customization": "Branding Methods",
    "printable area": "Printable Area",
    "branding area": "Printable Area",
    "logo area": "Printable Area",
    "print area": "Printable Area",
    "packaging": "Packaging",
    "packing": "Packaging",
    "package type": "Packaging",
    # Apparel / bags
    "gsm": "GSM",
    "fabric": "Fabric",
    "fabric type": "Fabric",
    "laptop size": "Laptop Size Supported",
    "laptop compatibility": "Laptop Size Supported",
    "fits laptop": "Laptop Size Supported",
}


# ============================================================================
# Normalization
# ============================================================================

_URL_RE = re.compile(r"https?://|www\.", re.IGNORECASE)
_SHORT_TOKEN_RE = re.compile(r"^[A-Za-z]{1,2}$")
_SEPARATOR_RE = re.compile(r"[:=]")
_DISALLOWED_RE = re.compile(r"[^\w\s\-()%/]")
_LEADING_RE = re.compile(r"^[^\w(]+")
_TRAILING_RE = re.compile(r"[^\w)%]+$")
_ABBREVIATION_RE = re.compile(r"^[A-Z0-9]{2,4}$")


def _title_case(text: str) -> str:
    words = []
    for word in text.split(" "):
        if _ABBREVIATION_RE.match(word) and any(c.isalpha() for c in word):
            words.append(word)
        else:
            words.append(word[:1].upper() + word[1:].lower())
    return " ".join(words)


def normalize(raw_key: Any) -> Optional[str]:
    """Map a raw attribute name to its canonical display name.

    Returns None when the key should be discarded.
    """
    if not isinstance(raw_key, str):
        return None
    text = raw_key.strip()
    if not text:
        return None

    if _URL_RE.search(text) or len(text) > MAX_KEY_LENGTH:
        return None
    if _SHORT_TOKEN_RE.match(text) or match_junk(text):
        return None

    # "Product Details: Material:" -> "Material"
    text = text.rstrip(":= \t")
    if _SEPARATOR_RE.search(text):
        text = _SEPARATOR_RE.split(text)[-1]

    text = text.replace("_", " ")
    text = _DISALLOWED_RE.sub("", text)
    text = " ".join(text.split())
    text = _LEADING_RE.sub("", text)
    text = _TRAILING_RE.sub("", text)
    if not text:
        return None

    canonical = SYNONYMS.get(text.lower())
    if canonical:
        return canonical

    if len(text) < MIN_KEY_LENGTH or match_junk(text):
        return None
    return _title_case(text)


def normalize_value(value: Any) -> str:
    """Flatten a loosely-typed extracted value into a display string."""
    if value is None or value is False:
        return ""
    if value is True:
        return "Yes"
    if isinstance(value, (list, tuple, set)):
        return ", ".join(v for v in (normalize_value(item) for item in value) if v)
    if isinstance(value, Mapping):
        parts = []
        for key, item in value.items():
            text = normalize_value(item)
            if text:
                parts.append(f"{key}: {text}")
        return "; ".join(parts)
    return " ".join(str(value).split())


def normalize_specifications(raw: Mapping[Any, Any]) -> Dict[str, str]:
    """Normalize the keys of a raw specification map.

    Rejected keys and empty values are dropped. When two raw keys map to the
    same canonical name the first one wins.
    """
    specs: Dict[str, str] = {}
    for raw_key, raw_value in raw.items():
        key = normalize(raw_key)
        if key is None or key in specs:
            continue
        value = normalize_value(raw_value)
        if value:
            specs[key] = value
    return specs


_KV_LINE_RE = re.compile(r"^\s*(?P<key>[^:=\n]{2,60}?)\s*(?::|=|\s[-–]\s)\s*(?P<value>\S.*?)\s*$")


def parse_key_value_lines(text: str) -> Iterator[Tuple[str, str]]:
    """Yield (canonical key, value) pairs from ``key: value`` style lines.

    Used on OCR and PDF text where specifications come one per line.
    """
    for line in text.splitlines():
        match = _KV_LINE_RE.match(line)
        if not match:
            continue
        key = normalize(match.group("key"))
        if key:
            yield key, match.group("value")
