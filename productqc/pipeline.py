"""End-to-end QC analysis workflow.

One call runs one analysis:

1. Fetch the primary source (product page or screenshot) and parse the
   vendor files concurrently
2. Search for the product on the vendor's site and marketplaces
3. Fall back to search-snippet specifications when the page was not scraped
4. Merge by source precedence, classify, extract category attributes,
   validate, evaluate and build the report

``run_qc_analysis`` never raises; anything unexpected becomes a fallback
analysis carrying an explicit error marker.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from functools import partial
from typing import Any, Dict, List, Optional

import requests  # type: ignore[import-untyped]
from openai import OpenAI

from productqc.aggregator import SourceFetcher, aggregate_results, gather_sources
from productqc.classifier import classify
from productqc.documents import document_kind, fetch_vendor_file
from productqc.evaluator import evaluate
from productqc.logging_config import get_logger, log_qc_event
from productqc.models import MergedProduct, ParsedFile, SourceResult, SourceTag
from productqc.ocr import fetch_screenshot
from productqc.report import build_report
from productqc.schema import extract_category_attributes, required_attributes, validate
from productqc.scraper import scrape_product
from productqc.search import SearchClient, SearchError, search_product_specifications, search_vendor
from productqc.url_validation import product_name_from_url

__all__ = [
    "InvalidRequestError",
    "UploadedFile",
    "AnalysisRequest",
    "collect_sources",
    "run_qc_analysis",
]

logger = get_logger("pipeline")


class InvalidRequestError(ValueError):
    """Raised when an analysis request is missing required inputs."""
    pass


@dataclass
class UploadedFile:
    filename: str
    mime_type: str
    content: bytes

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")


@dataclass
class AnalysisRequest:
    """Inputs for one analysis.

    ``screenshot`` replaces the product URL as the primary source.
    ``search_only`` skips the direct page scrape and relies on search
    snippets instead.
    """

    vendor_name: str
    product_url: str = ""
    files: List[UploadedFile] = field(default_factory=list)
    screenshot: Optional[UploadedFile] = None
    search_only: bool = False
    product_name: str = ""

    def validate(self) -> None:
        """Raises InvalidRequestError with a user-facing message."""
        if not self.vendor_name or not self.vendor_name.strip():
            raise InvalidRequestError("Vendor name is required")
        if self.screenshot is None and not self.product_url:
            raise InvalidRequestError("Product URL is required (or enable screenshot mode)")
        if self.screenshot is not None and not self.screenshot.is_image:
            raise InvalidRequestError("Screenshot mode requires an image file upload")

    @property
    def vendor_files(self) -> List[UploadedFile]:
        return [f for f in self.files if not f.is_image]


def _primary_fetcher(
    request: AnalysisRequest,
    session: Optional[requests.Session],
    vision_client: Optional[OpenAI],
) -> Optional[SourceFetcher]:
    if request.screenshot is not None:
        shot = request.screenshot
        return SourceTag.SCREENSHOT, partial(fetch_screenshot, shot.content, shot.mime_type, client=vision_client)
    if request.product_url and not request.search_only:
        return SourceTag.WEBSITE, partial(scrape_product, request.product_url, session=session)
    return None


def collect_sources(
    request: AnalysisRequest,
    session: Optional[requests.Session] = None,
    vision_client: Optional[OpenAI] = None,
) -> List[SourceResult]:
    """Fetch the primary source and parse every vendor file concurrently."""
    fetchers: List[SourceFetcher] = []
    primary = _primary_fetcher(request, session, vision_client)
    if primary is not None:
        fetchers.append(primary)
    for upload in request.vendor_files:
        kind = document_kind(upload.filename, upload.mime_type)
        source = SourceTag.VENDOR_PDF if kind == "pdf" else SourceTag.VENDOR_EXCEL
        fetchers.append((source, partial(fetch_vendor_file, upload.filename, upload.mime_type, upload.content)))
    return gather_sources(fetchers)


def _product_name(request: AnalysisRequest, results: List[SourceResult]) -> str:
    if request.product_name:
        return request.product_name
    for result in results:
        if result.ok and result.record is not None and result.record.title and not result.source.is_vendor_document:
            return result.record.title
    return product_name_from_url(request.product_url) if request.product_url else ""


def _analyze(
    request: AnalysisRequest,
    search_client: Optional[SearchClient],
    session: Optional[requests.Session],
    vision_client: Optional[OpenAI],
) -> Dict[str, Any]:
    results = collect_sources(request, session=session, vision_client=vision_client)
    product_name = _product_name(request, results)
    warnings: List[str] = []

    vendor_results = []
    try:
        vendor_results = search_vendor(request.vendor_name, product_name, client=search_client)
    except SearchError as e:
        logger.warning(f"Vendor search failed: {e}")
        warnings.append(f"Vendor search unavailable: {e}")

    website_ok = any(r.source == SourceTag.WEBSITE and r.ok for r in results)
    if not website_ok and product_name:
        results.append(
            search_product_specifications(product_name, request.vendor_name, client=search_client, session=session)
        )

    merged = aggregate_results(results)
    merged.warnings.extend(warnings)
    vendor_files: List[ParsedFile] = [r.document for r in results if r.document is not None]

    category = classify(merged.title, merged.description, merged.raw_text)
    category_text = "\n".join(p for p in (merged.title, merged.description, merged.raw_text) if p)
    category_attributes = extract_category_attributes(category_text, category)
    searchable = merged.to_dict()
    searchable["categoryAttributes"] = category_attributes
    validation = validate(searchable, category, vendor_files)
    evaluation = evaluate(merged, vendor_files, validation)
    report = build_report(
        merged,
        evaluation,
        category=category,
        validation=validation,
        category_attributes=category_attributes,
        vendor_name=request.vendor_name,
    )

    analysis: Dict[str, Any] = {
        "productPage": merged.to_dict(),
        "sourceStatus": [
            {"source": r.source.value, "status": r.status, "error": r.error} for r in results
        ],
        "vendorSearchResults": [r.to_dict() for r in vendor_results],
        "uploadedFiles": [f.to_dict() for f in vendor_files],
        "category": {
            "key": category.key if category else None,
            "displayName": category.display_name if category else "Unknown",
            "attributes": category_attributes,
            "requiredAttributes": required_attributes(category),
            "validation": validation.to_dict() if validation else None,
        },
        **evaluation.to_dict(),
        "report": report,
        "timestamp": datetime.now().isoformat(),
    }
    return {"merged": merged, "analysis": analysis}


def _fallback_analysis(request: AnalysisRequest, error: Exception) -> Dict[str, Any]:
    merged = MergedProduct(
        title=request.product_name or (product_name_from_url(request.product_url) if request.product_url else ""),
        url=request.product_url,
        error=str(error),
        warnings=[f"Analysis failed: {error}"],
    )
    evaluation = evaluate(merged)
    return {
        "productPage": merged.to_dict(),
        "sourceStatus": [],
        "vendorSearchResults": [],
        "uploadedFiles": [],
        "category": {
            "key": None,
            "displayName": "Unknown",
            "attributes": {},
            "requiredAttributes": required_attributes(None),
            "validation": None,
        },
        **evaluation.to_dict(),
        "report": build_report(merged, evaluation, vendor_name=request.vendor_name),
        "timestamp": datetime.now().isoformat(),
    }


def run_qc_analysis(
    request: AnalysisRequest,
    search_client: Optional[SearchClient] = None,
    session: Optional[requests.Session] = None,
    vision_client: Optional[OpenAI] = None,
) -> Dict[str, Any]:
    """Run a full QC analysis.

    Args:
        request: Validated analysis request
        search_client: Optional search client (module default otherwise)
        session: Optional requests.Session for page fetches
        vision_client: Optional OpenAI client for screenshots

    Returns:
        ``{"success": True, "analysis": {...}}`` plus a ``warning`` string
        when any source degraded or the analysis itself failed
    """
    start = time.time()
    log_qc_event(
        "analysis_started",
        {
            "vendor": request.vendor_name,
            "url": request.product_url,
            "files": len(request.vendor_files),
            "screenshot": request.screenshot is not None,
        },
        logger_name="pipeline",
    )

    try:
        outcome = _analyze(request, search_client, session, vision_client)
    except Exception as e:
        logger.exception("QC analysis failed, returning fallback analysis")
        log_qc_event("analysis_failed", {"error": str(e)}, level=logging.ERROR, logger_name="pipeline")
        return {
            "success": True,
            "warning": f"Analysis completed with errors: {e}",
            "analysis": _fallback_analysis(request, e),
        }

    merged: MergedProduct = outcome["merged"]
    analysis = outcome["analysis"]
    log_qc_event(
        "analysis_complete",
        {
            "sources": [s.value for s in merged.sources],
            "specifications": len(merged.specifications),
            "category": analysis["category"]["key"],
            "risk": analysis["overallRisk"],
            "elapsed_s": round(time.time() - start, 2),
        },
        logger_name="pipeline",
    )

    response: Dict[str, Any] = {"success": True, "analysis": analysis}
    if merged.warnings:
        response["warning"] = "; ".join(merged.warnings)
    return response
