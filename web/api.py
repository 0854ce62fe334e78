"""API endpoints for product QC.

``POST /api/qc-analysis`` runs the full pipeline over a product URL (or an
admin-panel screenshot) plus uploaded vendor files. The remaining endpoints
expose single pipeline stages for debugging and for the dashboard's
incremental views.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from flask import Blueprint, Response, jsonify, request
from werkzeug.datastructures import FileStorage

from productqc.documents import DocumentParseError, parse_excel, parse_pdf
from productqc.pipeline import AnalysisRequest, InvalidRequestError, UploadedFile, run_qc_analysis
from productqc.scraper import scrape_product
from productqc.search import SearchClient, SearchError, search_vendor
from productqc.taxonomy import load_taxonomy

# Handle imports for both direct execution and package import
if __package__ is None or __package__ == "":
    sys.path.insert(0, str(Path(__file__).parent))
    from config import ALLOWED_MIME_TYPES, MAX_FILES, MAX_UPLOAD_SIZE
    from image_utils import prepare_screenshot
    from logging_utils import log_interaction, summarize_qc_result, summarize_uploads
else:
    from .config import ALLOWED_MIME_TYPES, MAX_FILES, MAX_UPLOAD_SIZE
    from .image_utils import prepare_screenshot
    from .logging_utils import log_interaction, summarize_qc_result, summarize_uploads

__all__ = ["api"]

logger = logging.getLogger(__name__)

# Create blueprint for API
api = Blueprint("api", __name__, url_prefix="/api")

ApiResponse = Union[Response, Tuple[Response, int]]

INVALID_FILE_TYPE = "Invalid file type. Only PDF, Excel, CSV, and image files are allowed."


def _error(message: str, status: int) -> Tuple[Response, int]:
    return jsonify({"error": message}), status


def _is_truthy(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


def _read_upload(storage: FileStorage) -> UploadedFile:
    return UploadedFile(
        filename=storage.filename or "upload",
        mime_type=storage.mimetype or "application/octet-stream",
        content=storage.read(),
    )


def _collect_uploads(vendor_name: str = "") -> Tuple[List[UploadedFile], Optional[Tuple[Response, int]]]:
    """Read multipart ``files`` / ``files[]``; returns (uploads, error response)."""
    storages = request.files.getlist("files") + request.files.getlist("files[]")
    if len(storages) > MAX_FILES:
        return [], _error(f"Too many files. Maximum is {MAX_FILES}.", 400)

    uploads = []
    for storage in storages:
        if storage.mimetype not in ALLOWED_MIME_TYPES:
            log_interaction(
                "upload_rejected",
                {"vendor": vendor_name, "filename": storage.filename, "mime_type": storage.mimetype},
            )
            return [], _error(INVALID_FILE_TYPE, 400)
        upload = _read_upload(storage)
        if len(upload.content) > MAX_UPLOAD_SIZE:
            return [], _error(
                f"{upload.filename} is too large. Maximum size is {MAX_UPLOAD_SIZE // (1024 * 1024)}MB per file.",
                413,
            )
        uploads.append(upload)
    return uploads, None


def _single_upload(label: str) -> Tuple[Optional[UploadedFile], Optional[Tuple[Response, int]]]:
    storage = request.files.get("file")
    if storage is None or not storage.filename:
        return None, _error(f"No {label} file uploaded", 400)
    upload = _read_upload(storage)
    if len(upload.content) > MAX_UPLOAD_SIZE:
        return None, _error(f"File too large. Maximum size is {MAX_UPLOAD_SIZE // (1024 * 1024)}MB.", 413)
    return upload, None


# ---------- QC ANALYSIS ----------


@api.route("/qc-analysis", methods=["POST"])
def qc_analysis() -> ApiResponse:
    """Run a complete QC analysis.

    Multipart form fields: ``productUrl``, ``vendorName``,
    ``useScreenshotMode``, optional ``searchOnly`` and ``productName``, and up
    to MAX_FILES ``files``. In screenshot mode the first image upload
    replaces the product URL.
    """
    product_url = (request.form.get("productUrl") or "").strip()
    vendor_name = (request.form.get("vendorName") or "").strip()
    screenshot_mode = _is_truthy(request.form.get("useScreenshotMode"))

    if not vendor_name:
        return _error("Vendor name is required", 400)
    if not screenshot_mode and not product_url:
        return _error("Product URL is required (or enable screenshot mode)", 400)

    uploads, upload_error = _collect_uploads(vendor_name)
    if upload_error is not None:
        return upload_error

    screenshot: Optional[UploadedFile] = None
    if screenshot_mode:
        image = next((u for u in uploads if u.is_image), None)
        if image is None:
            return _error("Screenshot mode requires an image file upload", 400)
        png_data, mime_type, image_error = prepare_screenshot(image.content)
        if image_error or png_data is None:
            return _error(image_error or "Could not read the uploaded image", 400)
        screenshot = UploadedFile(filename=image.filename, mime_type=mime_type or "image/png", content=png_data)

    qc_request = AnalysisRequest(
        vendor_name=vendor_name,
        product_url=product_url,
        files=uploads,
        screenshot=screenshot,
        search_only=_is_truthy(request.form.get("searchOnly")),
        product_name=(request.form.get("productName") or "").strip(),
    )
    try:
        qc_request.validate()
    except InvalidRequestError as e:
        return _error(str(e), 400)

    log_interaction(
        "qc_request",
        {
            "vendor": vendor_name,
            "product_url": product_url,
            "screenshot_mode": screenshot_mode,
            "search_only": qc_request.search_only,
            "files": summarize_uploads(uploads),
        },
    )

    result = run_qc_analysis(qc_request)

    log_interaction("qc_response", {"vendor": vendor_name, **summarize_qc_result(result)})
    return jsonify(result)


# ---------- SINGLE STAGES ----------


@api.route("/search", methods=["POST"])
def search() -> ApiResponse:
    """Run one search query. Body: ``{"query": ..., "numResults": 5}``."""
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    query = (data.get("query") or "").strip()
    if not query:
        return _error("Query parameter is required", 400)

    try:
        results = SearchClient().search(query, int(data.get("numResults") or 5))
    except SearchError as e:
        logger.error(f"Search error: {e}")
        return _error(str(e), 500)
    return jsonify({"results": [r.to_dict() for r in results], "count": len(results)})


@api.route("/search-vendor", methods=["POST"])
def search_vendor_products() -> ApiResponse:
    """Vendor-site and marketplace search. Body: ``{"vendorName", "productName"}``."""
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    vendor_name = (data.get("vendorName") or "").strip()
    product_name = (data.get("productName") or "").strip()
    if not vendor_name or not product_name:
        return _error("Vendor name and product name are required", 400)

    try:
        results = search_vendor(vendor_name, product_name)
    except SearchError as e:
        logger.error(f"Vendor search error: {e}")
        return _error(str(e), 500)
    return jsonify({"results": [r.to_dict() for r in results], "count": len(results)})


@api.route("/scrape", methods=["POST"])
def scrape() -> ApiResponse:
    """Scrape one product page. Blocked pages come back as limited data."""
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    url = (data.get("url") or "").strip()
    if not url:
        return _error("URL parameter is required", 400)

    result = scrape_product(url)
    payload: Dict[str, Any] = {"success": True, "data": result.record.to_dict() if result.record else None}
    if result.error:
        payload["warning"] = result.error
    return jsonify(payload)


@api.route("/parse-pdf", methods=["POST"])
def parse_pdf_upload() -> ApiResponse:
    upload, error = _single_upload("PDF")
    if error is not None:
        return error

    try:
        parsed = parse_pdf(upload.content)
    except DocumentParseError as e:
        logger.error(f"PDF parsing error: {e}")
        return _error(str(e), 500)
    return jsonify({"success": True, "data": parsed, "filename": upload.filename, "filesize": len(upload.content)})


@api.route("/parse-excel", methods=["POST"])
def parse_excel_upload() -> ApiResponse:
    upload, error = _single_upload("Excel/CSV")
    if error is not None:
        return error

    try:
        parsed = parse_excel(upload.content, upload.filename, upload.mime_type)
    except DocumentParseError as e:
        logger.error(f"Excel parsing error: {e}")
        return _error(str(e), 500)
    return jsonify({"success": True, "data": parsed, "filename": upload.filename, "filesize": len(upload.content)})


@api.route("/categories", methods=["GET"])
def list_categories() -> Response:
    """List the product category taxonomy.

    Returns:
        JSON list of category definitions.
    """
    return jsonify({"categories": [category.to_dict() for category in load_taxonomy()]})
