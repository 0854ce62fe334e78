"""Tests for search API access and snippet-first specification search."""

from unittest.mock import MagicMock, patch

import pytest
import requests  # type: ignore[import-untyped]

from productqc.models import SourceResult, SourceTag
from productqc.search import (
    SearchClient,
    SearchError,
    SearchResult,
    filter_relevant_results,
    search_product_specifications,
    search_vendor,
)


class TestSearchClient:
    """HTTP access to the search API."""

    def test_missing_credentials(self):
        """Test that an unconfigured client refuses to search."""
        client = SearchClient(api_key="", cx="", session=MagicMock())
        with pytest.raises(SearchError, match="not configured"):
            client.search("steel bottle")

    def test_parses_items_and_clamps_num(self):
        """Test result parsing and the per-request result cap."""
        session = MagicMock()
        session.get.return_value.json.return_value = {
            "items": [
                {
                    "title": "Steel Bottle",
                    "link": "https://shop.example/bottle",
                    "snippet": "1 litre",
                    "displayLink": "shop.example",
                }
            ]
        }
        client = SearchClient(api_key="key", cx="cx", session=session)
        results = client.search("steel bottle", num_results=50)

        assert results == [SearchResult("Steel Bottle", "https://shop.example/bottle", "1 litre", "shop.example")]
        params = session.get.call_args.kwargs["params"]
        assert params["num"] == 10
        assert params["q"] == "steel bottle"

    def test_no_items(self):
        """Test that a response without items is an empty list."""
        session = MagicMock()
        session.get.return_value.json.return_value = {}
        assert SearchClient(api_key="key", cx="cx", session=session).search("x") == []

    def test_request_error_becomes_search_error(self):
        """Test that transport errors are wrapped."""
        session = MagicMock()
        session.get.side_effect = requests.exceptions.ConnectionError("refused")
        client = SearchClient(api_key="key", cx="cx", session=session)
        with pytest.raises(SearchError, match="Failed to perform search"):
            client.search("steel bottle")


class TestVendorSearch:
    """Vendor and marketplace lookups."""

    def test_filter_drops_excluded_and_irrelevant(self):
        """Test the domain exclusion and keyword relevance filter."""
        results = [
            SearchResult("Milton Thermosteel Flask", "https://www.offineeds.com/milton-flask"),
            SearchResult("Garden hose", "https://garden.example/hose", "50 m hose"),
            SearchResult("Thermosteel 1L", "https://shop.example/flask", "Milton flask for travel"),
        ]
        kept = filter_relevant_results(results, "Milton Thermosteel Flask")
        assert [r.link for r in kept] == ["https://shop.example/flask"]

    def test_vendor_domain_ranks_first(self, mock_search_client):
        """Test vendor site > Amazon > other marketplaces."""
        flipkart = SearchResult("Milton Thermosteel Flask", "https://www.flipkart.com/milton-flask")
        amazon = SearchResult("Milton Thermosteel Flask 1L", "https://www.amazon.in/dp/B01")
        vendor = SearchResult("Thermosteel Flask", "https://milton.in/thermosteel-flask", "By Milton")
        mock_search_client.search.side_effect = [[vendor], [flipkart, amazon]]

        ranked = search_vendor("Milton", "Milton Thermosteel Flask", client=mock_search_client)

        assert ranked == [vendor, amazon, flipkart]
        vendor_query = mock_search_client.search.call_args_list[0].args[0]
        assert "site:milton.com" in vendor_query

    def test_search_error_propagates(self, mock_search_client):
        """Test that vendor search leaves error handling to the caller."""
        mock_search_client.search.side_effect = SearchError("quota exceeded")
        with pytest.raises(SearchError):
            search_vendor("Milton", "Flask", client=mock_search_client)


class TestSpecificationSearch:
    """Snippet-first SearchSnippet records."""

    def test_rich_snippets_skip_page_fetch(self, mock_search_client, bottle_results):
        """Test that enough snippet attributes avoid scraping."""
        mock_search_client.search.return_value = bottle_results
        with patch("productqc.search.fetch_html") as mock_fetch:
            result = search_product_specifications("Milton Thermosteel Bottle", "Milton", client=mock_search_client)

        mock_fetch.assert_not_called()
        assert result.ok
        record = result.record
        assert record.source == SourceTag.SEARCH_SNIPPET
        assert record.title == "Milton Thermosteel Bottle"
        assert record.url == bottle_results[0].link
        specs = dict(record.specifications)
        assert specs["Capacity"] == "1000ml"
        assert specs["Material"] == "Stainless Steel"
        assert specs["Hot Retention"] == "24 hours"
        assert specs["Weight"] == "450 g"
        assert specs["Color"] == "Silver"
        assert specs["Insulation Type"] == "Double Wall Vacuum"

    def test_thin_snippets_scrape_top_results(self, mock_search_client, product_page_html):
        """Test that thin snippets fall back to fetching the top results."""
        mock_search_client.search.return_value = [
            SearchResult("Steel bottle", "https://shop.example/a", "Nice gift"),
            SearchResult("Steel bottle", "https://shop.example/b", "Great value"),
            SearchResult("Steel bottle", "https://shop.example/c", "Buy now"),
        ]
        with patch("productqc.search.fetch_html", return_value=product_page_html) as mock_fetch:
            result = search_product_specifications("Steel bottle", client=mock_search_client)

        assert mock_fetch.call_count == 2
        mock_fetch.assert_any_call("https://shop.example/a", session=None, timeout=8, max_retries=0)
        specs = dict(result.record.specifications)
        assert specs["Material"] == "304 Stainless Steel"
        assert result.record.price == "Rs. 799"

    def test_search_error_is_failed_result(self, mock_search_client):
        """Test that API failure yields a failed SearchSnippet result."""
        mock_search_client.search.side_effect = SearchError("quota exceeded")
        result = search_product_specifications("Flask", client=mock_search_client)
        assert result.status == SourceResult.FAILED
        assert result.source == SourceTag.SEARCH_SNIPPET
        assert result.error == "quota exceeded"

    def test_no_results_is_failed_result(self, mock_search_client):
        """Test that an empty result set is reported."""
        result = search_product_specifications("Flask", client=mock_search_client)
        assert result.status == SourceResult.FAILED
        assert "No search results" in result.error
