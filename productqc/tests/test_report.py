"""Tests for report assembly."""

import pytest

from productqc.aggregator import aggregate
from productqc.evaluator import evaluate
from productqc.models import (
    CompletenessScore,
    Conflict,
    EvaluationResult,
    ProductRecord,
    Severity,
    SourceTag,
    ValidationResult,
)
from productqc.normalizer import MOQ
from productqc.report import (
    NOT_LISTED,
    build_issues,
    build_report,
    compare_sources,
    compare_values,
    downstream_flags,
)
from productqc.taxonomy import get_category


class TestCompareValues:
    """Per-attribute comparison statuses."""

    @pytest.mark.parametrize(
        "web, pdf, expected",
        [
            ("Steel", "steel", "match"),
            (None, None, "match"),
            ("Steel", None, "only-web"),
            ("", "Steel", "only-pdf"),
            ("Steel", "304 Stainless Steel", "pdf-more-detail"),
            ("304 Stainless Steel", "Steel", "web-more-detail"),
            ("Stainless steel body", "Steel body, stainless", "similar"),
            ("Blue", "Red", "conflict"),
        ],
    )
    def test_statuses(self, web, pdf, expected):
        assert compare_values(web, pdf) == expected

    def test_compare_sources_rows(self):
        """Test that rows cover both records' keys, web keys first."""
        web = ProductRecord(source=SourceTag.WEBSITE, specifications={"Material": "Steel", "Color": "Blue"})
        pdf = ProductRecord(source=SourceTag.VENDOR_PDF, specifications={"Material": "304 Stainless Steel", MOQ: "100"})
        rows = compare_sources(web, pdf)
        assert [r["attribute"] for r in rows] == ["Material", "Color", MOQ]
        assert rows[0]["status"] == "pdf-more-detail"
        assert rows[1] == {"attribute": "Color", "webValue": "Blue", "pdfValue": NOT_LISTED, "status": "only-web"}
        assert rows[2]["status"] == "only-pdf"


class TestIssues:
    """Issue bucketing and downstream flags."""

    def test_severity_buckets(self):
        """Test critical/high, medium and low routing plus missing category attributes."""
        evaluation = EvaluationResult(
            conflicts=[
                Conflict("missing_data", Severity.CRITICAL, "No price", ["Product Page"], "Ask vendor"),
                Conflict("missing_data", Severity.HIGH, "No MOQ", ["All Sources"], "Ask vendor"),
                Conflict("unclear_spec", Severity.MEDIUM, "Material differs", ["VendorPDF", "Website"], "Confirm"),
                Conflict("note", Severity.LOW, "Minor", ["Website"], "Optional"),
            ],
            missing_attributes={"critical": [], "recommended": []},
            completeness=CompletenessScore(),
            recommendations=[],
            overall_risk="critical",
        )
        validation = ValidationResult("home_living", ["capacity"], [], 3, 4, 0, 0, 83)
        issues = build_issues(evaluation, validation)

        assert [i["severity"] for i in issues["critical"]] == ["critical", "high"]
        assert issues["buildAmbiguities"][0]["title"] == "Material differs"
        assert issues["buildAmbiguities"][0]["action"] == "Confirm"
        assert [i["title"] for i in issues["missingInfo"]] == ["Minor", "Missing capacity"]
        assert issues["missingInfo"][1]["action"] == "Request capacity information from vendor"

    def test_downstream_flags_clean(self):
        assert downstream_flags({"critical": [], "buildAmbiguities": [], "missingInfo": []}) == {
            "customizationEnabled": True,
            "salesSafeToPitch": True,
            "opsReady": True,
            "requiresManualReview": False,
        }

    def test_downstream_flags_thresholds(self):
        """Test the ambiguity and missing-info thresholds."""
        flags = downstream_flags({"critical": [], "buildAmbiguities": [{}] * 6, "missingInfo": [{}] * 5})
        assert flags == {
            "customizationEnabled": False,
            "salesSafeToPitch": True,
            "opsReady": False,
            "requiresManualReview": True,
        }
        assert downstream_flags({"critical": [{}]})["salesSafeToPitch"] is False


class TestBuildReport:
    """Full report shape."""

    def test_report_from_web_and_pdf(self):
        """Test summary, attributes and source comparison."""
        merged = aggregate([
            ProductRecord(
                source=SourceTag.WEBSITE,
                title="Milton Thermosteel Bottle",
                price="Rs. 799",
                specifications={"Material": "Steel", "Capacity": "1000ml"},
            ),
            ProductRecord(source=SourceTag.VENDOR_PDF, specifications={"Material": "304 Stainless Steel", MOQ: "100"}),
        ])
        category = get_category("home_living")
        evaluation = evaluate(merged)
        report = build_report(
            merged,
            evaluation,
            category=category,
            category_attributes={"leak_proof": "Yes"},
            vendor_name="Milton",
        )

        assert report["productSummary"] == {
            "productName": "Milton Thermosteel Bottle",
            "brand": "Milton",
            "category": "Home & Living",
            "confidenceLevel": "High",
        }
        names = [a["attribute"] for a in report["extractedAttributes"]]
        assert names[:3] == ["Product Name", "Brand", "Category"]
        assert names[-1] == "leak_proof"
        product_name = report["extractedAttributes"][0]
        assert product_name["source"] == "Website"
        assert product_name["confidence"] == "High"
        material = next(a for a in report["extractedAttributes"] if a["attribute"] == "Material")
        assert material == {"attribute": "Material", "value": "304 Stainless Steel", "source": "VendorPDF", "confidence": "High"}
        assert {r["attribute"] for r in report["sourceComparison"]} == {"Material", "Capacity", MOQ}
        assert report["completeness"]["overall"] == evaluation.completeness.overall
        assert set(report["downstreamFlags"]) == {
            "customizationEnabled",
            "salesSafeToPitch",
            "opsReady",
            "requiresManualReview",
        }

    def test_report_without_sources(self):
        """Test the low-confidence defaults."""
        merged = aggregate([])
        report = build_report(merged, evaluate(merged))
        assert report["productSummary"]["productName"] == "Unknown Product"
        assert report["productSummary"]["brand"] == "Unknown"
        assert report["productSummary"]["confidenceLevel"] == "Low"
        assert report["sourceComparison"] == []
        assert report["downstreamFlags"]["requiresManualReview"] is True

    def test_product_name_source_is_the_title_supplier(self):
        """Test that a lower-ranked screenshot title is credited to the screenshot."""
        merged = aggregate([
            ProductRecord(source=SourceTag.VENDOR_EXCEL, price="650", specifications={MOQ: "100"}),
            ProductRecord(source=SourceTag.SCREENSHOT, title="Milton Flask"),
        ])
        report = build_report(merged, evaluate(merged))
        product_name = report["extractedAttributes"][0]
        assert product_name == {
            "attribute": "Product Name",
            "value": "Milton Flask",
            "source": "Screenshot",
            "confidence": "Low",
        }
