"""Per-category attribute requirements and completeness validation."""

import json
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from productqc.models import ParsedFile, ValidationResult, round_half_up
from productqc.taxonomy import CategoryDefinition, get_category

__all__ = [
    "CRITICAL_WEIGHT",
    "RECOMMENDED_WEIGHT",
    "required_attributes",
    "searchable_dump",
    "attribute_present",
    "validate",
    "extract_category_attributes",
]

CRITICAL_WEIGHT = 70
RECOMMENDED_WEIGHT = 30

_FLAG_MARKERS = ("proof", "safe", "biodegradable")

CategoryRef = Union[str, CategoryDefinition, None]


def _resolve(category: CategoryRef) -> Optional[CategoryDefinition]:
    if category is None or isinstance(category, CategoryDefinition):
        return category
    return get_category(category)


def required_attributes(category: CategoryRef) -> Dict[str, List[str]]:
    definition = _resolve(category)
    if definition is None:
        return {"critical": [], "recommended": []}
    return {
        "critical": list(definition.critical_attributes),
        "recommended": list(definition.recommended_attributes),
    }


def searchable_dump(data: Mapping[str, Any], vendor_files: Iterable[ParsedFile] = ()) -> str:
    """Lower-cased JSON dump of product data plus every vendor file's parsed data."""
    payload = dict(data)
    payload["vendorFiles"] = [f.data for f in vendor_files]
    return json.dumps(payload, ensure_ascii=False, default=str).lower()


def attribute_present(attribute: str, dump: str) -> bool:
    """Loose presence check: the attribute name appears anywhere in the dump."""
    attribute = attribute.lower()
    return attribute in dump or attribute.replace("_", " ") in dump


def _bucket_score(found: int, total: int, weight: int) -> float:
    # A category without attributes in a bucket loses nothing for it
    if total == 0:
        return float(weight)
    return found * weight / total


def validate(
    data: Mapping[str, Any],
    category: CategoryRef,
    vendor_files: Iterable[ParsedFile] = (),
) -> Optional[ValidationResult]:
    """Check which of the category's attributes appear in the product data.

    Args:
        data: Product data as a JSON-serializable mapping (merged product or
            a flat attribute map)
        category: Category key or definition; None skips validation
        vendor_files: Parsed vendor files whose data is searched too

    Returns:
        ValidationResult, or None when no category was detected
    """
    definition = _resolve(category)
    if definition is None:
        return None

    dump = searchable_dump(data, vendor_files)
    critical = definition.critical_attributes
    recommended = definition.recommended_attributes
    missing_critical = [a for a in critical if not attribute_present(a, dump)]
    missing_recommended = [a for a in recommended if not attribute_present(a, dump)]
    critical_found = len(critical) - len(missing_critical)
    recommended_found = len(recommended) - len(missing_recommended)

    score = _bucket_score(critical_found, len(critical), CRITICAL_WEIGHT) + _bucket_score(
        recommended_found, len(recommended), RECOMMENDED_WEIGHT
    )
    return ValidationResult(
        category=definition.key,
        missing_critical=missing_critical,
        missing_recommended=missing_recommended,
        critical_found=critical_found,
        critical_total=len(critical),
        recommended_found=recommended_found,
        recommended_total=len(recommended),
        completeness_percent=round_half_up(score),
    )


def extract_category_attributes(text: str, category: CategoryRef) -> Dict[str, str]:
    """Apply the category's own extraction patterns to ``text``."""
    definition = _resolve(category)
    if definition is None or not text:
        return {}

    extracted: Dict[str, str] = {}
    for name, pattern in definition.extraction_patterns.items():
        matches: List[str] = []
        for match in pattern.finditer(text):
            value = " ".join(match.group(0).split())
            if value and value not in matches:
                matches.append(value)
        if not matches:
            continue
        if any(marker in name for marker in _FLAG_MARKERS):
            extracted[name] = "Yes"
        else:
            extracted[name] = ", ".join(matches)
    return extracted
