"""Shared test fixtures and utilities for the web test suite."""

from io import BytesIO

import pytest
from PIL import Image


@pytest.fixture(autouse=True)
def isolated_interaction_log(tmp_path, monkeypatch):
    """Write interaction logs into a temp dir instead of web/logs."""
    log_file = tmp_path / "qc_interactions.jsonl"
    monkeypatch.setattr("web.logging_utils.LOG_FILE", log_file)
    return log_file


@pytest.fixture(autouse=True)
def no_demo_auth(monkeypatch):
    """Disable basic auth unless a test sets DEMO_USER/DEMO_PASS itself."""
    monkeypatch.delenv("DEMO_USER", raising=False)
    monkeypatch.delenv("DEMO_PASS", raising=False)


@pytest.fixture
def client():
    """Create Flask test client."""
    from web.app import app
    app.config["TESTING"] = True

    with app.test_client() as test_client:
        yield test_client


def _image_bytes(mode, color, fmt="PNG", size=(8, 8)):
    buffer = BytesIO()
    Image.new(mode, size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    """A small opaque PNG screenshot."""
    return _image_bytes("RGB", (200, 30, 30))


@pytest.fixture
def rgba_png_bytes():
    """A fully transparent PNG."""
    return _image_bytes("RGBA", (0, 0, 0, 0))


@pytest.fixture
def jpeg_bytes():
    return _image_bytes("RGB", (10, 120, 200), fmt="JPEG")


@pytest.fixture
def qc_result():
    """Minimal pipeline response used when run_qc_analysis is mocked."""
    return {
        "success": True,
        "analysis": {
            "overallRisk": "medium",
            "category": {"key": "home_living", "displayName": "Home & Living"},
            "productPage": {"title": "Milton Thermosteel Bottle 1L"},
        },
    }
