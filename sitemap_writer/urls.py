import logging
import re
from urllib.parse import urljoin, urlsplit

from sitemap_writer.errors import MalformedURLError

logger = logging.getLogger(__name__)

_INVALID_CHARS_RE = re.compile(r"[\x00-\x20\x7f]")
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f]")


def _check_base(base: str) -> None:
    if not base:
        raise MalformedURLError(base, "base URL is empty")
    if _INVALID_CHARS_RE.search(base):
        raise MalformedURLError(base, "contains whitespace or control characters")
    try:
        parts = urlsplit(base)
    except ValueError as e:
        raise MalformedURLError(base, str(e)) from e
    if not parts.scheme or not parts.netloc:
        raise MalformedURLError(base, "base URL must be absolute (scheme and host required)")


def _clean_reference(reference: str) -> str:
    """Reject unusable references and percent-encode spaces ('/about us' -> '/about%20us')."""
    if not reference:
        raise MalformedURLError(reference, "location is empty")
    if _CONTROL_CHARS_RE.search(reference):
        raise MalformedURLError(reference, "contains control characters")
    try:
        parts = urlsplit(reference)
    except ValueError as e:
        raise MalformedURLError(reference, str(e)) from e
    if " " in parts.netloc:
        raise MalformedURLError(reference, "invalid character ' ' in host name")
    return reference.replace(" ", "%20")


def resolve(base: str, reference: str) -> str:
    """
    Resolve a relative or absolute reference against base (RFC 3986).

    Absolute references come back unchanged.

    Raises:
        MalformedURLError: If base or reference cannot be parsed
    """
    _check_base(base)
    cleaned = _clean_reference(reference)
    try:
        resolved = urljoin(base, cleaned)
    except ValueError as e:
        raise MalformedURLError(reference, str(e)) from e
    return resolved


def resolve_sitemap_url(sitemap_base: str, filename: str) -> str:
    """
    Resolve a sitemap filename against the base the index advertises.

    The base is treated as a directory so a path prefix such as
    https://cdn.example.com/sitemaps is kept.
    """
    base = (sitemap_base or "").strip().rstrip("/") + "/"
    return resolve(base, filename)
