"""Shape an analysis into the report consumed by the QC dashboard."""

import re
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from productqc.aggregator import CONFIDENCE_BY_RANK, precedence_rank
from productqc.models import EvaluationResult, MergedProduct, ProductRecord, Severity, SourceTag, ValidationResult
from productqc.taxonomy import CategoryDefinition

__all__ = [
    "NOT_LISTED",
    "compare_values",
    "compare_sources",
    "build_issues",
    "downstream_flags",
    "build_report",
]

NOT_LISTED = "Not Listed"

# Token overlap at or above this ratio counts as "similar"
SIMILARITY_THRESHOLD = 0.5

_TOKEN_RE = re.compile(r"[a-z0-9]+(?:\.[0-9]+)?")


def _tokens(value: str) -> List[str]:
    return _TOKEN_RE.findall(value.lower())


def compare_values(web_value: Optional[str], pdf_value: Optional[str]) -> str:
    """Comparison status for one attribute seen by the website and a vendor document."""
    if not web_value and not pdf_value:
        return "match"
    if not pdf_value:
        return "only-web"
    if not web_value:
        return "only-pdf"

    web_tokens = _tokens(web_value)
    pdf_tokens = _tokens(pdf_value)
    if web_tokens == pdf_tokens:
        return "match"
    web_joined = " ".join(web_tokens)
    pdf_joined = " ".join(pdf_tokens)
    if web_joined and web_joined in pdf_joined:
        return "pdf-more-detail"
    if pdf_joined and pdf_joined in web_joined:
        return "web-more-detail"

    shared = set(web_tokens) & set(pdf_tokens)
    smaller = min(len(set(web_tokens)), len(set(pdf_tokens))) or 1
    if len(shared) / smaller >= SIMILARITY_THRESHOLD:
        return "similar"
    return "conflict"


def compare_sources(web_record: ProductRecord, pdf_record: ProductRecord) -> List[Dict[str, str]]:
    """Side-by-side rows over the canonical attributes of two single-source records.

    Runs on the unmerged records so both values survive.
    """
    keys = list(web_record.specifications)
    keys += [k for k in pdf_record.specifications if k not in web_record.specifications]
    rows = []
    for key in keys:
        web_value = web_record.specifications.get(key)
        pdf_value = pdf_record.specifications.get(key)
        rows.append({
            "attribute": key,
            "webValue": web_value or NOT_LISTED,
            "pdfValue": pdf_value or NOT_LISTED,
            "status": compare_values(web_value, pdf_value),
        })
    return rows


def _issue(title: str, description: str, action: str, severity: str, sources: List[str]) -> Dict[str, Any]:
    return {
        "title": title,
        "description": description,
        "action": action,
        "severity": severity,
        "sources": sources,
    }


def build_issues(
    evaluation: EvaluationResult,
    validation: Optional[ValidationResult] = None,
) -> Dict[str, List[Dict[str, Any]]]:
    """Bucket conflicts: critical/high -> critical, medium -> buildAmbiguities, low -> missingInfo.

    Missing critical category attributes are added to missingInfo.
    """
    issues: Dict[str, List[Dict[str, Any]]] = {"critical": [], "buildAmbiguities": [], "missingInfo": []}
    for conflict in evaluation.conflicts:
        issue = _issue(
            conflict.description,
            conflict.description,
            conflict.recommendation,
            conflict.severity.value,
            list(conflict.sources),
        )
        if conflict.severity in (Severity.CRITICAL, Severity.HIGH):
            issues["critical"].append(issue)
        elif conflict.severity == Severity.MEDIUM:
            issues["buildAmbiguities"].append(issue)
        else:
            issues["missingInfo"].append(issue)

    if validation is not None:
        for attribute in validation.missing_critical:
            issues["missingInfo"].append(_issue(
                f"Missing {attribute}",
                f'Critical attribute "{attribute}" not found in product page or vendor files',
                f"Request {attribute} information from vendor",
                Severity.LOW.value,
                ["All Sources"],
            ))
    return issues


def downstream_flags(issues: Mapping[str, List[Any]]) -> Dict[str, bool]:
    critical = len(issues.get("critical", []))
    ambiguities = len(issues.get("buildAmbiguities", []))
    missing = len(issues.get("missingInfo", []))
    return {
        "customizationEnabled": critical == 0 and ambiguities < 3,
        "salesSafeToPitch": critical == 0,
        "opsReady": critical == 0 and missing < 5,
        "requiresManualReview": critical > 0 or ambiguities > 5,
    }


def _confidence_level(merged: MergedProduct) -> str:
    if merged.error or not merged.sources:
        return "Low"
    return CONFIDENCE_BY_RANK[min(precedence_rank(s) for s in merged.sources)]


def _extracted_attributes(
    merged: MergedProduct,
    brand: str,
    category: Optional[CategoryDefinition],
    category_attributes: Mapping[str, str],
) -> List[Dict[str, str]]:
    title_source = merged.field_sources.get("title")
    attributes = [
        {
            "attribute": "Product Name",
            "value": merged.title or NOT_LISTED,
            "source": title_source.value if title_source else NOT_LISTED,
            "confidence": CONFIDENCE_BY_RANK[precedence_rank(title_source)] if title_source else "Low",
        },
        {"attribute": "Brand", "value": brand or NOT_LISTED, "source": "Vendor", "confidence": "Medium"},
        {
            "attribute": "Category",
            "value": category.display_name if category else "Unknown",
            "source": "Keyword Classifier",
            "confidence": "High" if category else "Low",
        },
    ]
    seen = {a["attribute"] for a in attributes}
    for key, spec in merged.specifications.items():
        if key not in seen:
            attributes.append({
                "attribute": key,
                "value": spec.value,
                "source": spec.source.value,
                "confidence": spec.confidence,
            })
            seen.add(key)
    for key, value in category_attributes.items():
        if key not in seen and value:
            attributes.append({
                "attribute": key,
                "value": value,
                "source": "Category Patterns",
                "confidence": "Medium",
            })
            seen.add(key)
    return attributes


def build_report(
    merged: MergedProduct,
    evaluation: EvaluationResult,
    category: Optional[CategoryDefinition] = None,
    validation: Optional[ValidationResult] = None,
    category_attributes: Optional[Mapping[str, str]] = None,
    vendor_name: str = "",
) -> Dict[str, Any]:
    """Assemble the dashboard report.

    Returns:
        Dict with productSummary, extractedAttributes, sourceComparison,
        issues, completeness, downstreamFlags and timestamp
    """
    brand = vendor_name or evaluation.brand_validation.get("brandName", "")
    web_record = merged.record_for(SourceTag.WEBSITE)
    document_record = merged.record_for(SourceTag.VENDOR_PDF) or merged.record_for(SourceTag.VENDOR_EXCEL)
    comparison: List[Dict[str, str]] = []
    if web_record is not None and document_record is not None:
        comparison = compare_sources(web_record, document_record)

    issues = build_issues(evaluation, validation)
    return {
        "productSummary": {
            "productName": merged.title or "Unknown Product",
            "brand": brand or "Unknown Brand",
            "category": category.display_name if category else "Unknown",
            "confidenceLevel": _confidence_level(merged),
        },
        "extractedAttributes": _extracted_attributes(merged, brand, category, category_attributes or {}),
        "sourceComparison": comparison,
        "issues": issues,
        "completeness": {
            "overall": evaluation.completeness.overall,
            "perSource": dict(evaluation.completeness.per_source),
            "perCategoryBucket": dict(evaluation.completeness.per_category_bucket),
        },
        "downstreamFlags": downstream_flags(issues),
        "timestamp": datetime.now().isoformat(),
    }
