"""Tests for product page scraping with mocked HTTP."""

from unittest.mock import MagicMock, patch

import pytest
import requests  # type: ignore[import-untyped]

from productqc.config import USER_AGENTS
from productqc.models import SourceResult, SourceTag
from productqc.scraper import ScrapeError, fetch_html, parse_product_page, scrape_product

PRODUCT_URL = "https://shop.example/products/steel-water-bottle-1l.html"


def _response(status_code=200, text=""):
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = text
    return resp


@pytest.fixture
def no_sleep():
    with patch("productqc.scraper.time.sleep") as mock_sleep:
        yield mock_sleep


class TestFetchHtml:
    """Retry and user-agent rotation."""

    def test_returns_body_on_success(self, no_sleep):
        """Test a plain 200 response."""
        session = MagicMock()
        session.get.return_value = _response(200, "<html>ok</html>")
        assert fetch_html(PRODUCT_URL, session=session) == "<html>ok</html>"
        no_sleep.assert_not_called()

    def test_403_exhausts_retries(self, no_sleep):
        """Test that a persistently blocked page raises after every attempt."""
        session = MagicMock()
        session.get.return_value = _response(403)
        with pytest.raises(ScrapeError) as exc_info:
            fetch_html(PRODUCT_URL, session=session, max_retries=2)
        assert exc_info.value.status_code == 403
        assert "blocking automated access" in str(exc_info.value)
        assert session.get.call_count == 3
        # Linear backoff: base * attempt
        assert [c.args[0] for c in no_sleep.call_args_list] == [1.0, 2.0]

    def test_user_agent_rotates_per_attempt(self, no_sleep):
        """Test that each retry sends the next user agent."""
        session = MagicMock()
        session.get.side_effect = [_response(403), _response(403), _response(200, "done")]
        assert fetch_html(PRODUCT_URL, session=session, max_retries=2) == "done"
        agents = [c.kwargs["headers"]["User-Agent"] for c in session.get.call_args_list]
        assert agents == USER_AGENTS[:3]

    def test_timeout_retries_then_raises(self, no_sleep):
        """Test that timeouts are retried with the fixed wait."""
        session = MagicMock()
        session.get.side_effect = requests.exceptions.Timeout("slow")
        with pytest.raises(ScrapeError, match="timeout"):
            fetch_html(PRODUCT_URL, session=session, max_retries=1)
        assert session.get.call_count == 2
        no_sleep.assert_called_once_with(2.0)

    def test_non_retryable_status_fails_fast(self, no_sleep):
        """Test that a 404 is not retried."""
        session = MagicMock()
        session.get.return_value = _response(404)
        with pytest.raises(ScrapeError) as exc_info:
            fetch_html(PRODUCT_URL, session=session)
        assert exc_info.value.status_code == 404
        assert session.get.call_count == 1


class TestParseProductPage:
    """HTML to Website record."""

    def test_fixture_page(self, product_page_html):
        """Test extraction from a realistic product page."""
        record = parse_product_page(product_page_html, PRODUCT_URL)
        assert record.source == SourceTag.WEBSITE
        assert record.title == "Stainless Steel Water Bottle 1L"
        assert record.price == "Rs. 799"
        assert record.description.startswith("Double wall vacuum insulated bottle")
        specs = dict(record.specifications)
        assert specs["Material"] == "304 Stainless Steel"
        assert specs["Color"] == "Silver"
        assert specs["Weight"] == "350 g"
        assert specs["Hot Retention"] == "12 hours"
        assert specs["Capacity"] == "1000ml"
        assert record.images == ("https://shop.example/img/bottle-front.jpg",)

    def test_related_products_and_urls_are_ignored(self, product_page_html):
        """Test that chrome tables and URL keys never reach the specifications."""
        record = parse_product_page(product_page_html, PRODUCT_URL)
        assert "Plastic" not in record.specifications.values()
        assert not any("tracking" in key.lower() for key in record.specifications)
        assert "Related" not in record.raw_text
        assert "Copyright" not in record.raw_text


class TestScrapeProduct:
    """Pipeline-facing wrapper."""

    def test_success(self, no_sleep, product_page_html):
        """Test an ok result."""
        session = MagicMock()
        session.get.return_value = _response(200, product_page_html)
        result = scrape_product(PRODUCT_URL, session=session)
        assert result.status == SourceResult.OK
        assert result.record.url == PRODUCT_URL

    def test_blocked_page_returns_fallback(self, no_sleep):
        """Test the URL-derived fallback record."""
        session = MagicMock()
        session.get.return_value = _response(403)
        result = scrape_product(PRODUCT_URL, session=session)
        assert result.status == SourceResult.FALLBACK
        assert result.usable
        record = result.record
        assert record.title == "Steel Water Bottle 1l"
        assert dict(record.specifications) == {}
        assert record.price == ""
        assert record.is_limited_data
        assert "403" in record.scraping_error
        assert record.to_dict()["scrapingError"] == record.scraping_error

    def test_invalid_url_returns_fallback_without_request(self):
        """Test that a rejected URL never hits the network."""
        session = MagicMock()
        result = scrape_product("javascript:alert(1)", session=session)
        assert result.status == SourceResult.FALLBACK
        assert "Dangerous URL scheme" in result.error
        session.get.assert_not_called()
