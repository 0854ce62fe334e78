"""Product page scraping.

``fetch_html`` does the network part (user-agent rotation, retry with
backoff) and raises ``ScrapeError`` when it gives up. ``scrape_product``
wraps it for the pipeline: it never raises for network trouble and instead
returns a fallback record built from the URL alone.
"""

import logging
import time
from typing import Optional

import requests  # type: ignore[import-untyped]
from bs4 import BeautifulSoup

from productqc.config import (
    BASE_HEADERS,
    MAX_RETRIES,
    REQUEST_TIMEOUT,
    RETRY_BACKOFF_BASE,
    RETRY_STATUS_CODES,
    USER_AGENTS,
)
from productqc.html_utils import (
    extract_description,
    extract_images,
    extract_meta_tags,
    extract_price,
    extract_raw_text,
    extract_specifications,
    extract_title,
    remove_page_chrome,
)
from productqc.logging_config import get_logger, log_qc_event
from productqc.models import ProductRecord, SourceResult, SourceTag
from productqc.normalizer import normalize_specifications
from productqc.patterns import extract
from productqc.url_validation import URLValidationError, product_name_from_url, validate_url

__all__ = [
    "ScrapeError",
    "create_session",
    "fetch_html",
    "parse_product_page",
    "create_fallback_record",
    "scrape_product",
]

logger = get_logger("scraper")


class ScrapeError(Exception):
    """Raised when a page cannot be fetched after all retries."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


# Module-level session for connection reuse
_session: Optional[requests.Session] = None


def create_session() -> requests.Session:
    """Create a requests Session with the base browser headers."""
    session = requests.Session()
    session.headers.update(BASE_HEADERS)
    return session


def _get_session() -> requests.Session:
    global _session
    if _session is None:
        _session = create_session()
    return _session


def _headers_for_attempt(attempt: int) -> dict:
    headers = dict(BASE_HEADERS)
    headers["User-Agent"] = USER_AGENTS[attempt % len(USER_AGENTS)]
    return headers


def fetch_html(
    url: str,
    session: Optional[requests.Session] = None,
    timeout: float = REQUEST_TIMEOUT,
    max_retries: int = MAX_RETRIES,
) -> str:
    """HTTP GET with user-agent rotation and retry.

    Blocked responses (403) back off ``RETRY_BACKOFF_BASE * attempt``;
    timeouts and connection errors wait ``2 * RETRY_BACKOFF_BASE``. Every
    retry uses the next user agent in the rotation.

    Args:
        url: Page URL
        session: Optional requests.Session for connection reuse
        timeout: Per-request timeout in seconds
        max_retries: Additional attempts after the first one

    Returns:
        HTML content as string

    Raises:
        ScrapeError: If the request fails after all retries or returns a
            non-retryable error status
    """
    sess = session or _get_session()

    for attempt in range(max_retries + 1):
        logger.info(f"Fetching {url} (attempt {attempt + 1}/{max_retries + 1})")
        try:
            resp = sess.get(url, headers=_headers_for_attempt(attempt), timeout=timeout, allow_redirects=True)
        except requests.exceptions.Timeout as e:
            if attempt < max_retries:
                logger.warning(f"Timeout fetching {url}, retrying")
                time.sleep(2 * RETRY_BACKOFF_BASE)
                continue
            raise ScrapeError("Request timeout - website took too long to respond.") from e
        except requests.exceptions.ConnectionError as e:
            if attempt < max_retries:
                logger.warning(f"Connection error fetching {url}, retrying")
                time.sleep(2 * RETRY_BACKOFF_BASE)
                continue
            raise ScrapeError(f"Failed to access website: {e}") from e
        except requests.exceptions.RequestException as e:
            raise ScrapeError(f"Failed to access website: {e}") from e

        if resp.status_code in RETRY_STATUS_CODES:
            if attempt < max_retries:
                backoff = RETRY_BACKOFF_BASE * (attempt + 1)
                logger.warning(
                    f"Received {resp.status_code} from {url}, switching user agent "
                    f"and backing off {backoff:.1f}s"
                )
                time.sleep(backoff)
                continue
            raise ScrapeError(
                f"Website is blocking automated access ({resp.status_code} Forbidden).",
                status_code=resp.status_code,
            )

        if not 200 <= resp.status_code < 300:
            raise ScrapeError(
                f"Failed to access website: HTTP {resp.status_code}",
                status_code=resp.status_code,
            )
        return str(resp.text)

    # Loop always returns or raises; guard for max_retries < 0
    raise ScrapeError(f"No attempts made for {url}")


def parse_product_page(html: str, url: str) -> ProductRecord:
    """Parse a product page into a Website record.

    Table and list specifications are normalized first; attributes the
    pattern extractor finds in the page text only fill keys still missing.
    """
    soup = BeautifulSoup(html, "html.parser")

    title = extract_title(soup)
    description = extract_description(soup)
    price = extract_price(soup)
    images = extract_images(soup, url)
    meta_tags = extract_meta_tags(soup)

    remove_page_chrome(soup, extra=["script", "style", "noscript"])
    specifications = normalize_specifications(extract_specifications(soup))
    raw_text = extract_raw_text(soup)

    for key, value in extract(raw_text, title=title).items():
        specifications.setdefault(key, value)

    return ProductRecord(
        source=SourceTag.WEBSITE,
        url=url,
        title=title,
        price=price,
        description=description,
        specifications=specifications,
        images=tuple(images),
        meta_tags=meta_tags,
        raw_text=raw_text,
    )


def create_fallback_record(url: str, error_message: str) -> ProductRecord:
    """Minimal Website record for a page that could not be scraped."""
    return ProductRecord(
        source=SourceTag.WEBSITE,
        url=url,
        title=product_name_from_url(url),
        price="",
        description=f"Unable to extract full product details. {error_message}",
        specifications={},
        scraping_error=error_message,
        is_limited_data=True,
    )


def scrape_product(
    url: str,
    session: Optional[requests.Session] = None,
    timeout: float = REQUEST_TIMEOUT,
    max_retries: int = MAX_RETRIES,
) -> SourceResult:
    """Scrape a product page.

    Returns:
        ``ok`` with the parsed record, or ``fallback`` with a URL-derived
        record when the URL is invalid or the fetch fails
    """
    try:
        url = validate_url(url)
        html = fetch_html(url, session=session, timeout=timeout, max_retries=max_retries)
    except (URLValidationError, ScrapeError) as e:
        message = str(e)
        logger.warning(f"Scrape failed for {url}: {message}")
        log_qc_event(
            "source_fallback",
            {"source": SourceTag.WEBSITE.value, "url": url, "error": message},
            level=logging.WARNING,
            logger_name="scraper",
        )
        return SourceResult.fallback(create_fallback_record(url, message), message)

    record = parse_product_page(html, url)
    logger.info(f"Scraped {url}: {len(record.specifications)} specifications")
    return SourceResult.success(record)
