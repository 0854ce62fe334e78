"""URL validation and sanitization utilities.

Product URLs come straight from user input, so they are checked before any
request goes out.
"""

import re
from typing import FrozenSet, Optional
from urllib.parse import unquote, urlparse

__all__ = [
    "validate_url",
    "sanitize_url",
    "is_safe_url",
    "domain_of",
    "product_name_from_url",
    "URLValidationError",
]


class URLValidationError(Exception):
    """Raised when URL validation fails."""
    pass


# Dangerous URL schemes to reject
DANGEROUS_SCHEMES = {"javascript", "data", "vbscript", "file"}

SUSPICIOUS_PATTERNS = [
    r"\.\./",  # Path traversal
    r"%2e%2e",  # Encoded path traversal
    r"<script",  # XSS attempt
    r"javascript:",  # JS injection
]


def sanitize_url(url: str) -> str:
    """Strip whitespace, control characters and null bytes."""
    if not url:
        return ""
    url = url.strip()
    url = re.sub(r"[\x00-\x1f\x7f-\x9f]", "", url)
    return url.replace("%00", "")


def validate_url(url: str, allowed_domains: Optional[FrozenSet[str]] = None) -> str:
    """Validate a URL for safety.

    Args:
        url: URL to validate
        allowed_domains: Optional allow-list; None accepts any domain

    Returns:
        Sanitized URL

    Raises:
        URLValidationError: If URL is malformed, uses a non-HTTP scheme or is
            outside the allow-list
    """
    if not url:
        raise URLValidationError("URL is empty")

    url = sanitize_url(url)
    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise URLValidationError(f"Failed to parse URL: {e}") from e

    scheme = parsed.scheme.lower()
    if scheme in DANGEROUS_SCHEMES:
        raise URLValidationError(f"Dangerous URL scheme: {scheme}")
    if scheme not in ("http", "https"):
        raise URLValidationError(f"Invalid URL scheme: {scheme or '(none)'}")

    domain = (parsed.hostname or "").lower()
    if not domain:
        raise URLValidationError("URL has no domain")
    if allowed_domains is not None and domain not in allowed_domains:
        raise URLValidationError(f"URL domain '{domain}' not in allowed domains")

    url_lower = url.lower()
    for pattern in SUSPICIOUS_PATTERNS:
        if re.search(pattern, url_lower):
            raise URLValidationError(f"URL contains suspicious pattern: {pattern}")

    return url


def is_safe_url(url: str) -> bool:
    try:
        validate_url(url)
        return True
    except URLValidationError:
        return False


def domain_of(url: str) -> str:
    """Lower-cased host name without a leading ``www.``; empty if unparseable."""
    try:
        host = (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""
    return host[4:] if host.startswith("www.") else host


def product_name_from_url(url: str, default: str = "Unknown Product") -> str:
    """Best-effort product name from the last URL path segment.

    ``https://shop.example/products/steel-water-bottle-1l.html`` becomes
    ``Steel Water Bottle 1l``.
    """
    try:
        path = urlparse(url).path
    except ValueError:
        return default
    segments = [s for s in unquote(path).split("/") if s]
    if not segments:
        return default
    slug = re.sub(r"\.html?$", "", segments[-1], flags=re.IGNORECASE)
    words = [w for w in re.split(r"[-_\s]+", slug) if w]
    if not words:
        return default
    return " ".join(w[:1].upper() + w[1:] for w in words)
