"""Configuration and constants for the QC pipeline."""

import os
from pathlib import Path
from typing import Dict, FrozenSet, List

from dotenv import load_dotenv

__all__ = [
    "PROJECT_ROOT",
    "REQUEST_TIMEOUT",
    "MAX_RETRIES",
    "RETRY_BACKOFF_BASE",
    "RETRY_STATUS_CODES",
    "USER_AGENTS",
    "BASE_HEADERS",
    "MAX_RAW_TEXT_CHARS",
    "MAX_IMAGES",
    "GOOGLE_API_KEY",
    "GOOGLE_CX",
    "SEARCH_API_URL",
    "SEARCH_MAX_RESULTS",
    "SNIPPET_ATTRIBUTE_THRESHOLD",
    "SEARCH_RESULT_SCRAPE_LIMIT",
    "SEARCH_RESULT_SCRAPE_TIMEOUT",
    "EXCLUDED_SEARCH_DOMAINS",
    "VISION_MODEL",
    "MAX_WORKERS",
]

PROJECT_ROOT = Path(__file__).parent.parent

# Load .env from the project root so API keys are available to every entry point
load_dotenv(dotenv_path=PROJECT_ROOT / ".env")

# Request timeouts (seconds)
REQUEST_TIMEOUT = int(os.getenv("QC_REQUEST_TIMEOUT", "15"))

# Retry settings: up to MAX_RETRIES additional attempts after the first one.
# 403 backs off linearly (base * attempt), timeouts and refused connections
# wait a fixed 2 * base.
MAX_RETRIES = 2
RETRY_BACKOFF_BASE = 1.0
RETRY_STATUS_CODES: FrozenSet[int] = frozenset({403})

# Rotated per retry attempt
USER_AGENTS: List[str] = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.1 Safari/605.1.15",
]

BASE_HEADERS: Dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
    "Upgrade-Insecure-Requests": "1",
}

# Page extraction limits
MAX_RAW_TEXT_CHARS = 5000
MAX_IMAGES = 10

# Search engine (Google Custom Search JSON API)
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY", "")
GOOGLE_CX = os.getenv("GOOGLE_CX", "")
SEARCH_API_URL = "https://www.googleapis.com/customsearch/v1"
SEARCH_MAX_RESULTS = 10  # API hard limit per request

# Snippet-first search: only scrape result pages when snippets yield fewer
# attributes than this, and then only the top N results with a short timeout.
SNIPPET_ATTRIBUTE_THRESHOLD = 5
SEARCH_RESULT_SCRAPE_LIMIT = 2
SEARCH_RESULT_SCRAPE_TIMEOUT = 8

# Search results from these domains are dropped before extraction
EXCLUDED_SEARCH_DOMAINS: FrozenSet[str] = frozenset(
    d.strip().lower()
    for d in os.getenv("QC_EXCLUDED_SEARCH_DOMAINS", "offineeds.com").split(",")
    if d.strip()
)

# Screenshot analysis
VISION_MODEL = os.getenv("VISION_MODEL", "gpt-4o")

# Concurrent source fetches per analysis
MAX_WORKERS = int(os.getenv("QC_MAX_WORKERS", "4"))
