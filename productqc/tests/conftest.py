"""Shared fixtures for the productqc test suite."""

from io import BytesIO
from unittest.mock import MagicMock

import pandas as pd
import pytest

from productqc.models import ProductRecord, SourceTag
from productqc.search import SearchResult


PRODUCT_PAGE_HTML = """
<html>
<head>
  <title>Steel Bottle | Example Shop</title>
  <meta name="description" content="Double wall vacuum insulated bottle, keeps drinks hot for 12 hours.">
  <meta property="og:image" content="https://shop.example/img/bottle.jpg">
</head>
<body>
  <header><nav><a href="/">Home</a> <a href="/bags">Bags</a></nav></header>
  <main>
    <h1>Stainless Steel Water Bottle 1L</h1>
    <span class="price">Rs. 799</span>
    <img src="/img/bottle-front.jpg">
    <img src="/img/logo.png">
    <table>
      <tr><th>Material</th><td>304 Stainless Steel</td></tr>
      <tr><th>Colour</th><td>Silver</td></tr>
      <tr><th>https://tracking.example/</th><td>junk</td></tr>
    </table>
    <ul class="specs"><li>Net Weight: 350 g</li></ul>
    <p>Double wall vacuum insulated bottle. Keeps drinks hot for 12 hours and
    cold for 24 hours. Leak-proof lid, BPA free. Capacity: 1 litre.</p>
  </main>
  <div class="related-products"><table><tr><td>Material</td><td>Plastic</td></tr></table></div>
  <footer>Copyright Example Shop</footer>
</body>
</html>
"""


@pytest.fixture
def product_page_html():
    """A representative product page."""
    return PRODUCT_PAGE_HTML


@pytest.fixture
def make_record():
    """Factory for ProductRecords with sensible defaults."""

    def _make(source=SourceTag.WEBSITE, **fields):
        return ProductRecord(source=source, **fields)

    return _make


@pytest.fixture
def mock_search_client():
    """Search client whose results are set per test."""
    client = MagicMock()
    client.search.return_value = []
    return client


@pytest.fixture
def bottle_results():
    return [
        SearchResult(
            title="Milton Thermosteel Bottle 1000 ml",
            link="https://www.amazon.in/milton-thermosteel/dp/B01",
            snippet="Stainless steel, keeps hot for 24 hours, cold for 24 hours. Leak proof. 1 litre.",
            display_link="www.amazon.in",
        ),
        SearchResult(
            title="Thermosteel Flask - Milton",
            link="https://milton.in/thermosteel-flask",
            snippet="Double wall vacuum insulated flask. Weight: 450 g. Colour: Silver.",
            display_link="milton.in",
        ),
    ]


@pytest.fixture
def excel_bytes():
    """In-memory vendor price list."""
    frame = pd.DataFrame(
        [
            {
                "Product": "Thermo Bottle 1L",
                "SKU": "BTL1000",
                "Price": "650",
                "Material": "304 Stainless Steel",
                "MOQ": "100",
                "Lead Time": "15 days",
                "Branding": "Laser engraving",
            },
            {
                "Product": "Thermo Bottle 500ml",
                "SKU": "BTL500",
                "Price": "450",
                "Material": "304 Stainless Steel",
                "MOQ": "200",
                "Lead Time": "",
                "Branding": "Screen print",
            },
        ]
    )
    buffer = BytesIO()
    frame.to_excel(buffer, index=False, sheet_name="Products")
    return buffer.getvalue()


@pytest.fixture
def csv_bytes():
    return b"Item,Price,Qty\nMug 350ml,199,50\nMug 450ml,249,50\n"
