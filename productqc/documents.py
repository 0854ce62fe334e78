"""Vendor document parsing (PDF catalogues, Excel/CSV price lists).

Parsers return plain dicts so they can be shipped as JSON unchanged; the
``*_to_record`` helpers turn them into VendorPDF / VendorExcel records for
the aggregator.
"""

import re
import zipfile
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd
from pdfminer.high_level import extract_text
from pdfminer.pdfdocument import PDFDocument
from pdfminer.pdfpage import PDFPage
from pdfminer.pdfparser import PDFParser

from productqc.config import MAX_RAW_TEXT_CHARS
from productqc.logging_config import get_logger
from productqc.models import ParsedFile, ProductRecord, SourceResult, SourceTag
from productqc.normalizer import normalize_specifications, parse_key_value_lines
from productqc.patterns import extract

__all__ = [
    "DocumentParseError",
    "NOT_SPECIFIED",
    "parse_pdf",
    "parse_excel",
    "extract_product_codes",
    "extract_tables",
    "extract_specifications",
    "extract_pricing",
    "extract_moq",
    "extract_lead_time",
    "extract_branding_methods",
    "pdf_to_record",
    "excel_to_record",
    "document_kind",
    "fetch_vendor_file",
]

logger = get_logger("documents")

NOT_SPECIFIED = "Not specified"

PDF_MIME_TYPES = {"application/pdf"}
EXCEL_MIME_TYPES = {
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/csv",
}


class DocumentParseError(Exception):
    """Raised when a vendor file cannot be parsed."""
    pass


# =============================================================================
# Text helpers
# =============================================================================

_PRODUCT_CODE_RE = re.compile(r"\b([A-Z]{2,}\d{3,}|\d{3,}[A-Z]{2,})\b")
_TABLE_SPLIT_RE = re.compile(r"\s{2,}|\t")
_SPEC_LINE_RE = re.compile(
    r"\b(material|dimensions?|weight|colou?r|size|capacity|packaging)\s*:\s*([^\n]+)",
    re.IGNORECASE,
)
_PRICE_RE = re.compile(r"(?:₹|Rs\.?|INR|USD|\$|EUR|€)\s*\d[\d,]*(?:\.\d{2})?", re.IGNORECASE)
_PRICE_RANGE_RE = re.compile(r"\d+\s*-\s*\d+\s*(?:₹|Rs\.?|USD|\$)", re.IGNORECASE)
_MOQ_PATTERNS = [
    re.compile(r"MOQ:?\s*(\d+)", re.IGNORECASE),
    re.compile(r"Minimum Order Quantity:?\s*(\d+)", re.IGNORECASE),
    re.compile(r"Min\.? Order:?\s*(\d+)", re.IGNORECASE),
    re.compile(r"Minimum Quantity:?\s*(\d+)", re.IGNORECASE),
]
_LEAD_TIME_PATTERNS = [
    re.compile(r"Lead Time:?\s*([^\n]+)", re.IGNORECASE),
    re.compile(r"Delivery Time:?\s*([^\n]+)", re.IGNORECASE),
    re.compile(r"Production Time:?\s*([^\n]+)", re.IGNORECASE),
    re.compile(r"(\d+\s*(?:days?|weeks?|months?))\s*(?:lead time|delivery)", re.IGNORECASE),
]
BRANDING_KEYWORDS = [
    "screen print", "embroidery", "laser engraving", "pad print",
    "digital print", "heat transfer", "debossing", "embossing",
    "sublimation", "uv print", "laser etch",
]


def _unique(values: List[str]) -> List[str]:
    seen: List[str] = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen


def extract_product_codes(text: str) -> List[str]:
    """SKU-like tokens such as ``BTL1000`` or ``500ML``."""
    return _unique(_PRODUCT_CODE_RE.findall(text))


def extract_tables(text: str) -> List[List[List[str]]]:
    """Runs of at least three lines that split into three or more columns."""
    tables = []
    current: List[List[str]] = []
    for line in text.splitlines():
        columns = [c for c in _TABLE_SPLIT_RE.split(line.strip()) if c.strip()]
        if len(columns) >= 3:
            current.append(columns)
            continue
        if len(current) > 2:
            tables.append(current)
        current = []
    if len(current) > 2:
        tables.append(current)
    return tables


def extract_specifications(text: str) -> Dict[str, str]:
    specs: Dict[str, str] = {}
    for match in _SPEC_LINE_RE.finditer(text):
        specs[match.group(1).strip().title()] = match.group(2).strip()
    return specs


def extract_pricing(text: str) -> List[str]:
    prices = [m.group(0).strip() for m in _PRICE_RE.finditer(text)]
    prices += [m.group(0).strip() for m in _PRICE_RANGE_RE.finditer(text)]
    return _unique(prices)


def extract_moq(text: str) -> str:
    for pattern in _MOQ_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return NOT_SPECIFIED


def extract_lead_time(text: str) -> str:
    for pattern in _LEAD_TIME_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1).strip()
    return NOT_SPECIFIED


def extract_branding_methods(text: str) -> List[str]:
    lowered = text.lower()
    return [keyword for keyword in BRANDING_KEYWORDS if keyword in lowered]


# =============================================================================
# PDF
# =============================================================================


def _decode_metadata(info: Mapping[str, Any]) -> Dict[str, str]:
    metadata = {}
    for key, value in info.items():
        if isinstance(value, bytes):
            value = value.decode("utf-8", errors="ignore")
        metadata[str(key)] = str(value)
    return metadata


def parse_pdf(content: bytes) -> Dict[str, Any]:
    """Parse a PDF catalogue.

    Returns:
        Dict with totalPages, rawText, metadata, extractedData (product
        codes), tables, specifications, pricing, moq, leadTime and
        brandingMethods

    Raises:
        DocumentParseError: If pdfminer cannot read the document
    """
    try:
        document = PDFDocument(PDFParser(BytesIO(content)))
        total_pages = sum(1 for _ in PDFPage.create_pages(document))
        metadata: Dict[str, str] = {}
        for info in document.info:
            metadata.update(_decode_metadata(info))
        text = extract_text(BytesIO(content))
    except Exception as e:
        raise DocumentParseError(f"Failed to parse PDF: {e}") from e

    logger.info(f"PDF parsed: {total_pages} pages, {len(text)} characters")
    codes = extract_product_codes(text)
    return {
        "totalPages": total_pages,
        "rawText": text,
        "metadata": metadata,
        "extractedData": {"productCodes": codes, "totalProducts": len(codes)},
        "tables": extract_tables(text),
        "specifications": extract_specifications(text),
        "pricing": extract_pricing(text),
        "moq": extract_moq(text),
        "leadTime": extract_lead_time(text),
        "brandingMethods": extract_branding_methods(text),
    }


# =============================================================================
# Excel / CSV
# =============================================================================


def _has_any(row: Mapping[str, str], keys: List[str]) -> bool:
    return any(key in row for key in keys)


def _find_value(row: Mapping[str, str], keys: List[str]) -> Optional[str]:
    for key in keys:
        value = row.get(key)
        if value not in (None, ""):
            return value
    return None


def _extract_structured_rows(rows: List[Dict[str, str]], extracted: Dict[str, List[Dict[str, Any]]]) -> None:
    for raw_row in rows:
        row = {str(k).strip().lower(): v for k, v in raw_row.items()}
        item = _find_value(row, ["product", "item", "name"])

        if _has_any(row, ["product", "item", "sku", "code", "name"]):
            extracted["products"].append({
                "name": _find_value(row, ["product", "item", "name", "product name"]),
                "sku": _find_value(row, ["sku", "code", "item code", "product code"]),
                "description": _find_value(row, ["description", "desc", "details"]),
                "category": _find_value(row, ["category", "type", "group"]),
            })
        if _has_any(row, ["price", "cost", "rate", "amount"]):
            extracted["pricing"].append({
                "item": item,
                "price": _find_value(row, ["price", "unit price", "cost", "rate"]),
                "quantity": _find_value(row, ["quantity", "qty", "units"]),
                "currency": _find_value(row, ["currency", "curr"]) or "INR",
                "discount": _find_value(row, ["discount", "disc", "discount %"]),
            })
        if _has_any(row, ["material", "dimensions", "weight", "size", "color"]):
            extracted["specifications"].append({
                "item": item,
                "material": _find_value(row, ["material", "mat"]),
                "dimensions": _find_value(row, ["dimensions", "size", "dim"]),
                "weight": _find_value(row, ["weight", "wt"]),
                "color": _find_value(row, ["color", "colour"]),
                "packaging": _find_value(row, ["packaging", "packing", "pack"]),
            })
        if _has_any(row, ["moq", "minimum", "min order"]):
            extracted["moq"].append({
                "item": item,
                "moq": _find_value(row, ["moq", "minimum order quantity", "min order", "minimum"]),
                "unit": _find_value(row, ["unit", "uom"]) or "pieces",
                "leadTime": _find_value(row, ["lead time", "delivery time", "production time"]),
            })
        if _has_any(row, ["branding", "printing", "customization", "logo"]):
            extracted["branding"].append({
                "item": item,
                "method": _find_value(row, ["branding", "branding method", "printing", "customization"]),
                "area": _find_value(row, ["printable area", "logo area", "branding area"]),
                "colors": _find_value(row, ["colors", "colour options", "available colors"]),
                "cost": _find_value(row, ["branding cost", "printing cost", "logo cost"]),
            })


def _is_csv(filename: str, mime_type: str = "") -> bool:
    return mime_type == "text/csv" or filename.lower().endswith(".csv")


def parse_excel(content: bytes, filename: str = "", mime_type: str = "") -> Dict[str, Any]:
    """Parse an Excel workbook or CSV file.

    Every cell is read as text. Rows are scanned for product, pricing,
    specification, MOQ and branding columns by (lower-cased) header name.

    Raises:
        DocumentParseError: If the file cannot be read
    """
    try:
        if _is_csv(filename, mime_type):
            frames = {Path(filename).stem or "Sheet1": pd.read_csv(BytesIO(content), dtype=str, keep_default_na=False)}
        else:
            frames = pd.read_excel(BytesIO(content), sheet_name=None, dtype=str)
    except (ValueError, KeyError, OSError, ImportError, zipfile.BadZipFile, pd.errors.ParserError) as e:
        raise DocumentParseError(f"Failed to parse Excel file: {e}") from e

    parsed: Dict[str, Any] = {
        "sheets": [],
        "totalSheets": len(frames),
        "extractedData": {"products": [], "pricing": [], "specifications": [], "moq": [], "branding": []},
    }
    for name, frame in frames.items():
        frame = frame.fillna("")
        rows = frame.to_dict(orient="records")
        parsed["sheets"].append({
            "name": str(name),
            "rows": len(frame),
            "columns": len(frame.columns),
            "data": rows,
        })
        _extract_structured_rows(rows, parsed["extractedData"])

    logger.info(f"Spreadsheet parsed: {len(frames)} sheet(s)")
    return parsed


# =============================================================================
# Records
# =============================================================================


def pdf_to_record(parsed: Mapping[str, Any]) -> ProductRecord:
    """VendorPDF record from ``parse_pdf`` output."""
    text = parsed.get("rawText") or ""
    raw_specs: Dict[str, Any] = dict(parsed.get("specifications") or {})
    if parsed.get("moq") and parsed["moq"] != NOT_SPECIFIED:
        raw_specs["MOQ"] = parsed["moq"]
    if parsed.get("leadTime") and parsed["leadTime"] != NOT_SPECIFIED:
        raw_specs["Lead Time"] = parsed["leadTime"]
    if parsed.get("brandingMethods"):
        raw_specs["Branding Methods"] = parsed["brandingMethods"]

    specifications = normalize_specifications(raw_specs)
    for key, value in parse_key_value_lines(text):
        specifications.setdefault(key, value)
    for key, value in extract(text).items():
        specifications.setdefault(key, value)

    pricing = parsed.get("pricing") or []
    return ProductRecord(
        source=SourceTag.VENDOR_PDF,
        price=pricing[0] if pricing else "",
        specifications=specifications,
        raw_text=text[:MAX_RAW_TEXT_CHARS],
    )


def _first(rows: List[Mapping[str, Any]], field: str) -> Optional[str]:
    for row in rows:
        value = row.get(field)
        if value:
            return value
    return None


def _sheet_text(parsed: Mapping[str, Any]) -> str:
    lines = []
    for sheet in parsed.get("sheets") or []:
        for row in sheet.get("data") or []:
            cells = [f"{k}: {v}" for k, v in row.items() if v not in (None, "")]
            if cells:
                lines.append("; ".join(cells))
    return "\n".join(lines)


def excel_to_record(parsed: Mapping[str, Any]) -> ProductRecord:
    """VendorExcel record from ``parse_excel`` output (first non-empty value per field)."""
    data = parsed.get("extractedData") or {}
    specs_rows = data.get("specifications") or []
    moq_rows = data.get("moq") or []
    branding_rows = data.get("branding") or []

    raw_specs: Dict[str, Any] = {
        "Material": _first(specs_rows, "material"),
        "Dimensions": _first(specs_rows, "dimensions"),
        "Weight": _first(specs_rows, "weight"),
        "Color": _first(specs_rows, "color"),
        "Packaging": _first(specs_rows, "packaging"),
        "MOQ": _first(moq_rows, "moq"),
        "Lead Time": _first(moq_rows, "leadTime"),
        "Branding Methods": _first(branding_rows, "method"),
        "Printable Area": _first(branding_rows, "area"),
        "SKU": _first(data.get("products") or [], "sku"),
    }
    text = _sheet_text(parsed)
    return ProductRecord(
        source=SourceTag.VENDOR_EXCEL,
        title=_first(data.get("products") or [], "name") or "",
        price=_first(data.get("pricing") or [], "price") or "",
        description=_first(data.get("products") or [], "description") or "",
        specifications=normalize_specifications(raw_specs),
        raw_text=text[:MAX_RAW_TEXT_CHARS],
    )


def document_kind(filename: str, mime_type: str) -> Optional[str]:
    """``pdf``, ``excel`` or None for unsupported files."""
    lowered = filename.lower()
    if mime_type in PDF_MIME_TYPES or lowered.endswith(".pdf"):
        return "pdf"
    if mime_type in EXCEL_MIME_TYPES or lowered.endswith((".xlsx", ".xls", ".csv")):
        return "excel"
    return None


def fetch_vendor_file(filename: str, mime_type: str, content: bytes) -> SourceResult:
    """Parse one uploaded vendor file into a VendorPDF / VendorExcel result.

    Unsupported or unreadable files come back ``failed`` so the remaining
    sources still get merged.
    """
    kind = document_kind(filename, mime_type)
    source = SourceTag.VENDOR_PDF if kind == "pdf" else SourceTag.VENDOR_EXCEL
    if kind is None:
        return SourceResult.failed(source, f"Unsupported file type for {filename}: {mime_type}")

    try:
        if kind == "pdf":
            data = parse_pdf(content)
            record = pdf_to_record(data)
        else:
            data = parse_excel(content, filename, mime_type)
            record = excel_to_record(data)
    except DocumentParseError as e:
        logger.warning(f"Skipping {filename}: {e}")
        return SourceResult.failed(source, f"{filename}: {e}")

    document = ParsedFile(filename=filename, mime_type=mime_type, size=len(content), kind=kind, data=data)
    return SourceResult.success(record, document=document)
