"""HTML parsing and extraction utilities for product pages."""

from typing import Dict, List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from productqc.config import MAX_IMAGES, MAX_RAW_TEXT_CHARS

__all__ = [
    "extract_title",
    "extract_description",
    "extract_price",
    "extract_specifications",
    "extract_images",
    "extract_meta_tags",
    "extract_raw_text",
    "remove_page_chrome",
]

PRICE_SELECTORS = [
    ".price",
    "#price",
    '[itemprop="price"]',
    ".product-price",
    ".a-price-whole",  # Amazon
    ".a-offscreen",  # Amazon
    ".pdp-price",  # Flipkart
    ".seller-card__price",  # IndiaMART
]

# Page regions that never hold the product's own data
CHROME_SELECTORS = [
    "nav",
    "header",
    "footer",
    ".navigation",
    ".menu",
    ".sidebar",
    ".related-products",
    ".you-may-also-like",
    ".recommendations",
]

SPEC_LIST_SELECTORS = [".specifications li", ".specs li", ".product-specs li"]

PRODUCT_CONTAINER_SELECTORS = [
    ".product-view",
    ".product-info",
    ".product-details",
    ".product-description",
    ".product-content",
    "main",
    ".main-content",
    "#product",
    ".item-view",
    '[itemtype*="Product"]',
]

MIN_CONTAINER_TEXT = 100


def _meta_content(soup: BeautifulSoup, **attrs: str) -> Optional[str]:
    tag = soup.find("meta", attrs=attrs)
    if tag:
        content = tag.get("content")
        if isinstance(content, str) and content.strip():
            return content.strip()
    return None


def extract_title(soup: BeautifulSoup) -> str:
    """Title from the first <h1>, then <title>, then og:title."""
    h1 = soup.find("h1")
    if h1 and h1.get_text(strip=True):
        return h1.get_text(" ", strip=True)
    if soup.title and soup.title.get_text(strip=True):
        return soup.title.get_text(strip=True)
    return _meta_content(soup, property="og:title") or ""


def extract_description(soup: BeautifulSoup) -> str:
    """Meta description, then og:description, then the first paragraph."""
    description = _meta_content(soup, name="description") or _meta_content(soup, property="og:description")
    if description:
        return description
    p = soup.find("p")
    return p.get_text(" ", strip=True) if p else ""


def extract_price(soup: BeautifulSoup) -> str:
    for selector in PRICE_SELECTORS:
        el = soup.select_one(selector)
        if el is not None:
            text = el.get_text(strip=True)
            if text:
                return text
    return ""


def remove_page_chrome(soup: BeautifulSoup, extra: Optional[List[str]] = None) -> None:
    """Remove navigation, footers and related-product blocks in place."""
    for selector in CHROME_SELECTORS + (extra or []):
        for el in soup.select(selector):
            el.decompose()


def extract_specifications(soup: BeautifulSoup) -> Dict[str, str]:
    """Raw (un-normalized) specifications from 2-cell table rows and list items.

    Expects page chrome to be removed already.
    """
    specs: Dict[str, str] = {}
    for row in soup.select("table tr"):
        cells = row.find_all(["td", "th"])
        if len(cells) != 2:
            continue
        key = cells[0].get_text(" ", strip=True)
        value = cells[1].get_text(" ", strip=True)
        if key and value:
            specs[key] = value

    for selector in SPEC_LIST_SELECTORS:
        for item in soup.select(selector):
            parts = item.get_text(" ", strip=True).split(":")
            if len(parts) == 2 and parts[0].strip() and parts[1].strip():
                specs[parts[0].strip()] = parts[1].strip()
    return specs


def extract_images(soup: BeautifulSoup, base_url: str, limit: int = MAX_IMAGES) -> List[str]:
    """Absolute product image URLs, skipping icons and logos."""
    images: List[str] = []
    for img in soup.find_all("img"):
        src = img.get("src") or img.get("data-src")
        if not isinstance(src, str) or not src.strip():
            continue
        lowered = src.lower()
        if "icon" in lowered or "logo" in lowered:
            continue
        full_url = src if src.startswith("http") else urljoin(base_url, src)
        if full_url not in images:
            images.append(full_url)
        if len(images) >= limit:
            break
    return images


def extract_meta_tags(soup: BeautifulSoup) -> Dict[str, str]:
    meta: Dict[str, str] = {}
    for tag in soup.find_all("meta"):
        name = tag.get("name") or tag.get("property")
        content = tag.get("content")
        if isinstance(name, str) and isinstance(content, str) and content:
            meta[name] = content
    return meta


def extract_raw_text(soup: BeautifulSoup, limit: int = MAX_RAW_TEXT_CHARS) -> str:
    """Whitespace-collapsed text of the main product container, or the body.

    Expects page chrome, scripts and styles to be removed already.
    """
    content = ""
    for selector in PRODUCT_CONTAINER_SELECTORS:
        el = soup.select_one(selector)
        if el is not None:
            text = el.get_text(" ")
            if len(text.strip()) > MIN_CONTAINER_TEXT:
                content = text
                break
    if not content:
        body = soup.body or soup
        content = body.get_text(" ")
    return " ".join(content.split())[:limit]
