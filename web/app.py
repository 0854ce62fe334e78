"""Flask web app for the product QC engine.

Serves the QC API used by the catalogue team's dashboard: a product page
plus vendor uploads go in, a merged record, completeness scores and a
structured QC report come out.
"""

import base64
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv
from flask import Flask, Response, jsonify, request
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

# Load environment variables from .env file (explicitly specify path)
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# Handle imports for both direct execution and package import
# When run directly (python web/app.py), __package__ is None
# When imported as module (from web.app import app), __package__ is "web"
if __package__ is None or __package__ == "":
    # Running directly - add parent to path for absolute imports
    sys.path.insert(0, str(Path(__file__).parent))
    sys.path.insert(0, str(Path(__file__).parent.parent))
    from config import FLASK_DEBUG, FLASK_HOST, FLASK_PORT, MAX_FILES, MAX_UPLOAD_SIZE, SERVICE_NAME
    from api import api
else:
    # Running as package
    from .config import FLASK_DEBUG, FLASK_HOST, FLASK_PORT, MAX_FILES, MAX_UPLOAD_SIZE, SERVICE_NAME
    from .api import api

from productqc.logging_config import setup_logging

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config["MAX_CONTENT_LENGTH"] = MAX_UPLOAD_SIZE * MAX_FILES
app.register_blueprint(api)

FEATURES = [
    "web-scraping",
    "google-search",
    "pdf-parsing",
    "excel-parsing",
    "screenshot-ocr",
    "category-classification",
    "qc-report",
]


# ---------- BASIC AUTH ----------


def _basic_auth_creds() -> Tuple[Optional[str], Optional[str]]:
    """Get demo credentials from environment."""
    return os.getenv("DEMO_USER"), os.getenv("DEMO_PASS")


def _unauthorized() -> Response:
    return Response(
        "Authentication required",
        401,
        {"WWW-Authenticate": 'Basic realm="Login Required"'},
    )


@app.before_request
def require_basic_auth() -> Optional[Response]:
    """
    Enforce HTTP Basic Auth for all routes except the health check.
    Skips enforcement if credentials are not configured (DEMO_USER/DEMO_PASS unset).
    """
    if request.path == "/health":
        return None

    user, password = _basic_auth_creds()
    if not user or not password:
        return None  # auth disabled

    header = request.headers.get("Authorization", "")
    if not header.startswith("Basic "):
        return _unauthorized()

    try:
        decoded = base64.b64decode(header.split(" ", 1)[1]).decode("utf-8")
        username, passwd = decoded.split(":", 1)
    except ValueError:
        return _unauthorized()

    if username == user and passwd == password:
        return None
    return _unauthorized()


# ---------- FLASK ROUTES ----------


@app.route("/health", methods=["GET"])
def health() -> Response:
    """Liveness check listing the enabled features."""
    return jsonify(
        {
            "status": "ok",
            "timestamp": datetime.now().isoformat(),
            "service": SERVICE_NAME,
            "features": FEATURES,
        }
    )


# ---------- ERROR HANDLERS ----------


@app.errorhandler(RequestEntityTooLarge)
def handle_too_large(e: RequestEntityTooLarge) -> Tuple[Response, int]:
    limit_mb = MAX_UPLOAD_SIZE // (1024 * 1024)
    return jsonify({"error": f"Upload too large. Maximum size is {limit_mb}MB per file.", "timestamp": datetime.now().isoformat()}), 413


@app.errorhandler(Exception)
def handle_unexpected_error(e: Exception):
    """Answer unhandled errors with JSON instead of an HTML error page."""
    if isinstance(e, HTTPException):
        return e
    logger.exception(f"Unhandled error on {request.path}: {e}")
    return jsonify({"error": str(e) or "Internal server error", "timestamp": datetime.now().isoformat()}), 500


if __name__ == "__main__":
    setup_logging()
    app.run(host=FLASK_HOST, port=FLASK_PORT, debug=FLASK_DEBUG)
