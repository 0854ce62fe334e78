"""Search-engine lookups (Google Custom Search JSON API).

Two uses:

- ``search_vendor``: find the product on the vendor's own site and on
  marketplaces, for the report's vendor results.
- ``search_product_specifications``: build a SearchSnippet record from
  result titles and snippets, scraping the top results only when the
  snippets are too thin.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests  # type: ignore[import-untyped]

from productqc.config import (
    EXCLUDED_SEARCH_DOMAINS,
    GOOGLE_API_KEY,
    GOOGLE_CX,
    MAX_RAW_TEXT_CHARS,
    REQUEST_TIMEOUT,
    SEARCH_API_URL,
    SEARCH_MAX_RESULTS,
    SEARCH_RESULT_SCRAPE_LIMIT,
    SEARCH_RESULT_SCRAPE_TIMEOUT,
    SNIPPET_ATTRIBUTE_THRESHOLD,
)
from productqc.documents import extract_pricing
from productqc.logging_config import get_logger, log_qc_event
from productqc.models import ProductRecord, SourceResult, SourceTag
from productqc.patterns import extract
from productqc.scraper import ScrapeError, fetch_html, parse_product_page
from productqc.url_validation import URLValidationError, domain_of, validate_url

__all__ = [
    "SearchError",
    "SearchResult",
    "SearchClient",
    "search_vendor",
    "filter_relevant_results",
    "search_product_specifications",
]

logger = get_logger("search")


class SearchError(Exception):
    """Raised when the search API cannot be queried."""
    pass


@dataclass(frozen=True)
class SearchResult:
    title: str
    link: str
    snippet: str = ""
    display_link: str = ""

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "SearchResult":
        return cls(
            title=item.get("title") or "",
            link=item.get("link") or "",
            snippet=item.get("snippet") or "",
            display_link=item.get("displayLink") or "",
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "title": self.title,
            "link": self.link,
            "snippet": self.snippet,
            "displayLink": self.display_link,
        }


class SearchClient:
    """Thin client for the Custom Search JSON API."""

    def __init__(
        self,
        api_key: str = GOOGLE_API_KEY,
        cx: str = GOOGLE_CX,
        session: Optional[requests.Session] = None,
        endpoint: str = SEARCH_API_URL,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.api_key = api_key
        self.cx = cx
        self.session = session or requests.Session()
        self.endpoint = endpoint
        self.timeout = timeout

    def search(self, query: str, num_results: int = 5) -> List[SearchResult]:
        """Run a query.

        Raises:
            SearchError: If credentials are missing or the API call fails
        """
        if not self.api_key or not self.cx:
            raise SearchError("Search API is not configured (set GOOGLE_API_KEY and GOOGLE_CX)")

        params = {
            "key": self.api_key,
            "cx": self.cx,
            "q": query,
            "num": max(1, min(num_results, SEARCH_MAX_RESULTS)),
        }
        try:
            resp = self.session.get(self.endpoint, params=params, timeout=self.timeout)
            resp.raise_for_status()
            payload = resp.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Search API error for {query!r}: {e}")
            raise SearchError(f"Failed to perform search: {e}") from e
        except ValueError as e:
            raise SearchError(f"Search API returned invalid JSON: {e}") from e

        items = payload.get("items") or []
        return [SearchResult.from_api(item) for item in items]


_default_client: Optional[SearchClient] = None


def _get_client() -> SearchClient:
    global _default_client
    if _default_client is None:
        _default_client = SearchClient()
    return _default_client


# =============================================================================
# Vendor search
# =============================================================================


def _is_excluded(result: SearchResult) -> bool:
    domain = domain_of(result.link)
    return any(domain == d or domain.endswith("." + d) for d in EXCLUDED_SEARCH_DOMAINS)


def filter_relevant_results(results: List[SearchResult], product_name: str) -> List[SearchResult]:
    """Drop excluded domains and results that do not mention the product.

    A result is kept when at least two of the first three words of the
    product name appear in its title or snippet (all of them for one-word
    names).
    """
    keywords = product_name.lower().split()[:3]
    required = min(2, len(keywords))
    kept = []
    for result in results:
        if _is_excluded(result):
            logger.debug(f"Excluded {result.link} (excluded domain)")
            continue
        haystack = f"{result.title} {result.snippet}".lower()
        if sum(1 for keyword in keywords if keyword in haystack) >= required:
            kept.append(result)
    return kept


def _vendor_domains(vendor_name: str) -> List[str]:
    slug = "".join(vendor_name.lower().split())
    return [f"{slug}.com", f"{slug}.co.in", f"{slug}.in"]


def search_vendor(
    vendor_name: str,
    product_name: str,
    client: Optional[SearchClient] = None,
) -> List[SearchResult]:
    """Search the vendor's own site first, then Amazon and marketplaces.

    Results are ordered vendor domain > Amazon > everything else.

    Raises:
        SearchError: If the search API fails
    """
    client = client or _get_client()
    slug = "".join(vendor_name.lower().split())
    vendor_query = (
        f'"{product_name}" site:{slug}.com OR site:{slug}.co.in OR site:{slug}.in '
        f"specifications features"
    )
    marketplace_query = (
        f'"{product_name}" {vendor_name} site:amazon.in OR site:amazon.com '
        f"OR site:flipkart.com specifications"
    )
    results = client.search(vendor_query, 3) + client.search(marketplace_query, 3)
    relevant = filter_relevant_results(results, product_name)

    vendor_domains = _vendor_domains(vendor_name)

    def priority(result: SearchResult) -> int:
        link = result.link.lower()
        if any(d in link for d in vendor_domains):
            return 0
        if "amazon" in link:
            return 1
        return 2

    ranked = sorted(relevant, key=priority)
    logger.info(f"Vendor search: {len(results)} results, kept {len(ranked)} relevant")
    return ranked


# =============================================================================
# Snippet-first specification search
# =============================================================================


def _scrape_top_results(results: List[SearchResult], session: Optional[requests.Session]) -> List[ProductRecord]:
    records = []
    for result in results[:SEARCH_RESULT_SCRAPE_LIMIT]:
        try:
            url = validate_url(result.link)
            html = fetch_html(url, session=session, timeout=SEARCH_RESULT_SCRAPE_TIMEOUT, max_retries=0)
        except (URLValidationError, ScrapeError) as e:
            logger.warning(f"Skipping search result {result.link}: {e}")
            continue
        records.append(parse_product_page(html, url))
    return records


def search_product_specifications(
    product_name: str,
    vendor_name: str = "",
    client: Optional[SearchClient] = None,
    session: Optional[requests.Session] = None,
) -> SourceResult:
    """Build a SearchSnippet record for a product.

    The pattern extractor runs over every result's title and snippet. Only
    when that yields fewer than ``SNIPPET_ATTRIBUTE_THRESHOLD`` attributes
    are the top results fetched, each with a short timeout and no retries.
    Page attributes only fill keys the snippets did not provide.
    """
    client = client or _get_client()
    query = " ".join(p for p in (product_name, vendor_name, "specifications features price") if p)
    try:
        results = [r for r in client.search(query, SEARCH_MAX_RESULTS) if not _is_excluded(r)]
    except SearchError as e:
        logger.warning(f"Specification search failed: {e}")
        return SourceResult.failed(SourceTag.SEARCH_SNIPPET, str(e))

    if not results:
        return SourceResult.failed(SourceTag.SEARCH_SNIPPET, f"No search results for {query!r}")

    snippet_text = "\n".join(f"{r.title} {r.snippet}" for r in results)
    specifications = extract(snippet_text, title=product_name)
    price = next(iter(extract_pricing(snippet_text)), "")
    scraped_pages = 0

    if len(specifications) < SNIPPET_ATTRIBUTE_THRESHOLD:
        logger.info(
            f"Snippets yielded {len(specifications)} attributes "
            f"(< {SNIPPET_ATTRIBUTE_THRESHOLD}), scraping top results"
        )
        for page in _scrape_top_results(results, session):
            scraped_pages += 1
            for key, value in page.specifications.items():
                specifications.setdefault(key, value)
            price = price or page.price

    log_qc_event(
        "snippet_search",
        {
            "query": query,
            "results": len(results),
            "attributes": len(specifications),
            "scraped_pages": scraped_pages,
        },
        level=logging.DEBUG,
        logger_name="search",
    )

    record = ProductRecord(
        source=SourceTag.SEARCH_SNIPPET,
        title=product_name or results[0].title,
        price=price,
        description=results[0].snippet,
        url=results[0].link,
        specifications=specifications,
        raw_text=snippet_text[:MAX_RAW_TEXT_CHARS],
    )
    return SourceResult.success(record)
