"""Screenshot attribute extraction via the OpenAI vision model.

The model reads an admin-panel or catalogue screenshot and returns a JSON
guess of the visible attributes. ``normalize_extracted_data`` turns that
guess into a Screenshot record with canonical keys.
"""

import base64
import json
import re
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from openai import OpenAI, OpenAIError

from productqc.config import MAX_RAW_TEXT_CHARS, VISION_MODEL
from productqc.logging_config import get_logger, log_qc_event
from productqc.models import ProductRecord, SourceResult, SourceTag
from productqc.normalizer import normalize_specifications, normalize_value, parse_key_value_lines
from productqc.patterns import extract

__all__ = [
    "VisionError",
    "EXTRACTION_PROMPT",
    "extract_from_image",
    "parse_model_output",
    "normalize_extracted_data",
    "fetch_screenshot",
]

logger = get_logger("ocr")


class VisionError(Exception):
    """Raised when the vision model cannot be called."""
    pass


EXTRACTION_PROMPT = """You are analyzing a screenshot of product attributes from an e-commerce admin panel or vendor catalog.

TASK: Extract ALL visible product information from this image and return it as structured JSON.

FIELDS TO EXTRACT (if visible):
- Product name / title
- Brand / vendor name
- Category
- Price (and currency)
- MOQ (minimum order quantity)
- Material / composition
- Dimensions
- Weight
- Color / colors available
- SKU / product code
- Lead time / delivery time
- Branding methods (printing, engraving, etc.)
- Printable area
- Packaging details
- Certifications
- Product description
- Any other specifications visible

RULES:
1. Extract exactly what you see, do not make assumptions
2. Set fields that are not visible to null
3. Preserve numbers, units and formatting as shown
4. Return ONLY valid JSON, no markdown

RESPONSE FORMAT:
{
  "productName": "...",
  "brand": "...",
  "category": "...",
  "price": {"value": "...", "currency": "..."},
  "moq": "...",
  "material": "...",
  "dimensions": "...",
  "weight": "...",
  "color": "...",
  "sku": "...",
  "leadTime": "...",
  "brandingMethods": ["..."],
  "printableArea": "...",
  "packaging": "...",
  "certifications": ["..."],
  "description": "...",
  "specifications": {},
  "extractedText": "all text visible in the image"
}"""

_FENCE_RE = re.compile(r"```(?:json)?\s*")

# Fixed response fields -> attribute names the normalizer maps to canonical keys
_FIELD_KEYS = {
    "brand": "brand",
    "moq": "moq",
    "material": "material",
    "dimensions": "dimensions",
    "weight": "weight",
    "color": "color",
    "sku": "sku",
    "leadTime": "lead time",
    "brandingMethods": "branding methods",
    "printableArea": "printable area",
    "packaging": "packaging",
    "certifications": "certifications",
}


def parse_model_output(raw: str) -> Dict[str, Any]:
    """Parse the model's reply, tolerating markdown code fences.

    Unparseable replies come back as ``{"extractedText": raw, "error": ...}``
    so the visible text can still be mined.
    """
    text = _FENCE_RE.sub("", raw).strip()
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning(f"Vision response is not valid JSON: {e}")
        return {
            "productName": None,
            "extractedText": raw,
            "error": "Failed to parse structured data",
            "specifications": {},
        }
    if not isinstance(parsed, dict):
        return {"extractedText": raw, "error": "Unexpected response shape", "specifications": {}}
    return parsed


def extract_from_image(
    image: bytes,
    mime_type: str,
    client: Optional[OpenAI] = None,
    model: str = VISION_MODEL,
) -> Dict[str, Any]:
    """Ask the vision model for the attributes visible in a screenshot.

    Args:
        image: Raw image bytes
        mime_type: Image MIME type, used in the data URL
        client: Optional OpenAI client (one is created from the environment otherwise)
        model: Vision model name

    Returns:
        The model's best-effort attribute dict plus a ``_metadata`` block

    Raises:
        VisionError: If the API call fails
    """
    image_b64 = base64.b64encode(image).decode("utf-8")
    input_payload = [
        {
            "role": "user",
            "content": [
                {"type": "input_text", "text": EXTRACTION_PROMPT},
                {"type": "input_image", "image_url": f"data:{mime_type};base64,{image_b64}"},
            ],
        }
    ]

    try:
        client = client or OpenAI()
        resp = client.responses.create(model=model, input=input_payload)
    except OpenAIError as e:
        logger.error(f"Vision API call failed: {e}")
        raise VisionError(f"Image analysis failed: {e}") from e

    raw = resp.output_text or ""
    extracted = parse_model_output(raw)
    extracted["_metadata"] = {
        "source": "screenshot-ocr",
        "model": model,
        "extractedAt": datetime.now().isoformat(),
        "imageSize": len(image),
    }
    log_qc_event(
        "vision_extraction",
        {"model": model, "fields": len(extracted), "parse_error": extracted.get("error")},
        logger_name="ocr",
    )
    return extracted


def _price(value: Any) -> str:
    if isinstance(value, Mapping):
        amount = normalize_value(value.get("value"))
        currency = normalize_value(value.get("currency"))
        return " ".join(p for p in (currency, amount) if p) if amount else ""
    return normalize_value(value)


def normalize_extracted_data(extracted: Mapping[str, Any]) -> ProductRecord:
    """Screenshot record from a vision-model attribute guess.

    Explicit fields take priority, then the free-form ``specifications``
    block, then ``key: value`` lines and pattern matches in the visible text.
    """
    visible_text = extracted.get("extractedText") or ""
    if not isinstance(visible_text, str):
        visible_text = normalize_value(visible_text)

    raw_specs: Dict[str, Any] = {}
    for field_name, key in _FIELD_KEYS.items():
        raw_specs[key] = extracted.get(field_name)
    specifications = normalize_specifications(raw_specs)

    free_form = extracted.get("specifications")
    if isinstance(free_form, Mapping):
        for key, value in normalize_specifications(free_form).items():
            specifications.setdefault(key, value)

    for key, value in parse_key_value_lines(visible_text):
        specifications.setdefault(key, value)

    title = normalize_value(extracted.get("productName") or extracted.get("title"))
    for key, value in extract(visible_text, title=title or None).items():
        specifications.setdefault(key, value)

    return ProductRecord(
        source=SourceTag.SCREENSHOT,
        title=title,
        price=_price(extracted.get("price")),
        description=normalize_value(extracted.get("description")) or visible_text[:500],
        specifications=specifications,
        raw_text=visible_text[:MAX_RAW_TEXT_CHARS],
    )


def fetch_screenshot(image: bytes, mime_type: str, client: Optional[OpenAI] = None) -> SourceResult:
    """Screenshot source fetcher; a failed API call comes back ``failed``."""
    try:
        extracted = extract_from_image(image, mime_type, client=client)
    except VisionError as e:
        return SourceResult.failed(SourceTag.SCREENSHOT, str(e))

    record = normalize_extracted_data(extracted)
    if extracted.get("error"):
        return SourceResult.fallback(record, str(extracted["error"]))
    return SourceResult.success(record)
