"""Centralized configuration for the QC web app."""

import os

# Flask app settings (allow env overrides; default debug off for safety)
# Render sets PORT dynamically; fall back to FLASK_PORT or 5000 for local.
FLASK_HOST = os.getenv("FLASK_HOST", "0.0.0.0")
FLASK_PORT = int(os.getenv("FLASK_PORT", os.getenv("PORT", "5000")))
FLASK_DEBUG = os.getenv("FLASK_DEBUG", "False").lower() == "true"

SERVICE_NAME = "Product QC Engine API"

# Uploads
MAX_UPLOAD_SIZE = 10 * 1024 * 1024  # per request
MAX_FILES = 10
MAX_IMAGE_SIZE = 5 * 1024 * 1024

PDF_MIME_TYPES = frozenset({"application/pdf"})
SPREADSHEET_MIME_TYPES = frozenset({
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/csv",
})
IMAGE_MIME_TYPES = frozenset({"image/png", "image/jpeg", "image/jpg", "image/webp", "image/heic", "image/heif"})
ALLOWED_MIME_TYPES = PDF_MIME_TYPES | SPREADSHEET_MIME_TYPES | IMAGE_MIME_TYPES
