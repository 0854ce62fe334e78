"""Rule-based conflict and completeness evaluation of a merged product.

Checks are independent presence tests over the merged record, its raw text
and the parsed vendor files:

- missing price / missing title: critical conflicts
- no MOQ anywhere: high-severity conflict
- no lead time, branding, material or dimensions: recommended-missing only

Cross-source disagreements are not conflicts; ``productqc.report.compare_sources``
reports them.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence

from productqc.documents import NOT_SPECIFIED
from productqc.logging_config import get_logger
from productqc.models import (
    CompletenessScore,
    Conflict,
    EvaluationResult,
    MergedProduct,
    ParsedFile,
    Severity,
    ValidationResult,
    round_half_up,
)
from productqc.normalizer import MOQ

__all__ = [
    "PRODUCT_PAGE_WEIGHTS",
    "VENDOR_FILE_WEIGHT",
    "evaluate",
    "vendor_file_checklist",
    "calculate_product_page_score",
    "calculate_vendor_files_score",
    "generate_recommendations",
    "calculate_overall_risk",
    "detect_brand_name",
]

logger = get_logger("evaluator")

PRODUCT_PAGE_WEIGHTS = {
    "title": 25,
    "price": 25,
    "description": 15,
    "specifications": 20,
    "images": 15,
}
VENDOR_FILE_WEIGHT = 20

PRODUCT_PAGE_LABEL = "Product Page"
VENDOR_FILES_LABEL = "Vendor Files"


# =============================================================================
# Completeness scorecards
# =============================================================================


def calculate_product_page_score(record: Any) -> int:
    """Checklist score for anything with title/price/description/specifications/images."""
    score = 0
    for field_name, weight in PRODUCT_PAGE_WEIGHTS.items():
        if getattr(record, field_name, None):
            score += weight
    return score


def vendor_file_checklist(parsed: ParsedFile) -> Dict[str, bool]:
    """Which of products/pricing/specifications/moq/branding a vendor file provides."""
    data = parsed.data
    if parsed.kind == "excel":
        extracted = data.get("extractedData") or {}
        return {
            "products": bool(extracted.get("products")),
            "pricing": bool(extracted.get("pricing")),
            "specifications": bool(extracted.get("specifications")),
            "moq": bool(extracted.get("moq")),
            "branding": bool(extracted.get("branding")),
        }
    return {
        "products": bool((data.get("extractedData") or {}).get("productCodes")),
        "pricing": bool(data.get("pricing")),
        "specifications": bool(data.get("specifications")),
        "moq": bool(data.get("moq")) and data.get("moq") != NOT_SPECIFIED,
        "branding": bool(data.get("brandingMethods")),
    }


def calculate_vendor_files_score(vendor_files: Sequence[ParsedFile]) -> int:
    """Average checklist score across files; 0 when there are none."""
    if not vendor_files:
        return 0
    total = sum(
        VENDOR_FILE_WEIGHT * sum(vendor_file_checklist(f).values())
        for f in vendor_files
    )
    return round_half_up(total / len(vendor_files))


def _completeness(
    merged: MergedProduct,
    vendor_files: Sequence[ParsedFile],
    validation: Optional[ValidationResult],
) -> CompletenessScore:
    page_score = calculate_product_page_score(merged)
    vendor_score = calculate_vendor_files_score(vendor_files)

    per_source = {PRODUCT_PAGE_LABEL: page_score}
    for record in merged.records:
        if not record.source.is_vendor_document:
            per_source[record.source.value] = calculate_product_page_score(record)
    per_source[VENDOR_FILES_LABEL] = vendor_score

    per_bucket: Dict[str, int] = {}
    if validation is not None:
        per_bucket = {
            "critical": validation.critical_percent,
            "recommended": validation.recommended_percent,
            "category": validation.completeness_percent,
        }

    return CompletenessScore(
        per_source=per_source,
        per_category_bucket=per_bucket,
        overall=round_half_up((page_score + vendor_score) / 2),
    )


# =============================================================================
# Presence checks
# =============================================================================


def _has_moq(merged: MergedProduct, vendor_files: Sequence[ParsedFile], text: str) -> bool:
    if MOQ in merged.specifications or "moq" in text:
        return True
    return any(vendor_file_checklist(f)["moq"] for f in vendor_files)


def _has_lead_time(merged: MergedProduct, vendor_files: Sequence[ParsedFile], text: str) -> bool:
    if "Lead Time" in merged.specifications or "lead time" in text or "delivery time" in text:
        return True
    for f in vendor_files:
        if f.kind == "excel":
            rows = (f.data.get("extractedData") or {}).get("moq") or []
            if any(row.get("leadTime") for row in rows):
                return True
        elif f.data.get("leadTime") and f.data["leadTime"] != NOT_SPECIFIED:
            return True
    return False


def _has_branding(merged: MergedProduct, vendor_files: Sequence[ParsedFile], text: str) -> bool:
    if "Branding Methods" in merged.specifications or "customization" in text or "branding" in text:
        return True
    return any(vendor_file_checklist(f)["branding"] for f in vendor_files)


def _has_material(merged: MergedProduct, vendor_files: Sequence[ParsedFile]) -> bool:
    if any("material" in key.lower() for key in merged.specifications):
        return True
    for f in vendor_files:
        if f.kind == "excel":
            rows = (f.data.get("extractedData") or {}).get("specifications") or []
            if any(row.get("material") for row in rows):
                return True
        elif any("material" in key.lower() for key in f.data.get("specifications") or {}):
            return True
    return False


def _has_dimensions(merged: MergedProduct) -> bool:
    return any("dimension" in key.lower() or "size" in key.lower() for key in merged.specifications)


# =============================================================================
# Summary
# =============================================================================


def generate_recommendations(conflicts: Sequence[Conflict], missing: Mapping[str, List[str]]) -> List[str]:
    recommendations = []
    if missing.get("critical"):
        recommendations.append(f"URGENT: Obtain critical missing data: {', '.join(missing['critical'])}")
    if not conflicts:
        recommendations.append("No major conflicts detected. Proceed with vendor onboarding.")
    else:
        recommendations.append(f"Resolve {len(conflicts)} conflict(s) before proceeding")
    if missing.get("recommended"):
        recommendations.append(f"Consider adding: {', '.join(missing['recommended'])}")
    return recommendations


def calculate_overall_risk(conflicts: Sequence[Conflict]) -> str:
    """critical > high (more than one high conflict) > medium (more than three total) > low."""
    if any(c.severity == Severity.CRITICAL for c in conflicts):
        return "critical"
    if sum(1 for c in conflicts if c.severity == Severity.HIGH) > 1:
        return "high"
    if len(conflicts) > 3:
        return "medium"
    return "low"


def detect_brand_name(title: str) -> Optional[str]:
    """First word of the title, when it is longer than two characters."""
    words = (title or "").split()
    if words and len(words[0]) > 2:
        return words[0]
    return None


def evaluate(
    merged: MergedProduct,
    vendor_files: Sequence[ParsedFile] = (),
    validation: Optional[ValidationResult] = None,
) -> EvaluationResult:
    """Run every rule check and score the merged product.

    Args:
        merged: Aggregated product
        vendor_files: Successfully parsed vendor documents
        validation: Category validation, when a category was detected

    Returns:
        EvaluationResult with conflicts, missing attributes, completeness,
        recommendations, overall risk and brand validation
    """
    conflicts: List[Conflict] = []
    missing: Dict[str, List[str]] = {"critical": [], "recommended": []}
    text = merged.raw_text.lower()

    if not merged.price:
        conflicts.append(Conflict(
            type="missing_data",
            severity=Severity.CRITICAL,
            description="Product price not found on product page",
            sources=[PRODUCT_PAGE_LABEL],
            recommendation="Obtain pricing from vendor files or contact vendor",
        ))
        missing["critical"].append("Price")

    if not merged.title:
        conflicts.append(Conflict(
            type="missing_data",
            severity=Severity.CRITICAL,
            description="Product title/name not found",
            sources=[PRODUCT_PAGE_LABEL],
            recommendation="Verify product URL and scraping accuracy",
        ))
        missing["critical"].append("Product Title")

    if not _has_moq(merged, vendor_files, text):
        conflicts.append(Conflict(
            type="missing_data",
            severity=Severity.HIGH,
            description="MOQ (Minimum Order Quantity) not specified in any source",
            sources=["All Sources"],
            recommendation="Contact vendor for MOQ information",
        ))
        missing["critical"].append(MOQ)

    if not _has_lead_time(merged, vendor_files, text):
        missing["recommended"].append("Lead Time")
    if not _has_branding(merged, vendor_files, text):
        missing["recommended"].append("Branding Methods")
    if not _has_material(merged, vendor_files):
        missing["recommended"].append("Material Specifications")
    if not _has_dimensions(merged):
        missing["recommended"].append("Dimensions")

    brand = detect_brand_name(merged.title)
    result = EvaluationResult(
        conflicts=conflicts,
        missing_attributes=missing,
        completeness=_completeness(merged, vendor_files, validation),
        recommendations=generate_recommendations(conflicts, missing),
        overall_risk=calculate_overall_risk(conflicts),
        brand_validation={
            "brandName": brand or "Unknown",
            "confidence": "medium" if brand else "low",
            "verified": False,
            "notes": "Rule-based brand detection from the product title",
        },
    )
    logger.info(
        f"Evaluation: {len(conflicts)} conflicts, risk={result.overall_risk}, "
        f"completeness={result.completeness.overall}"
    )
    return result
