"""
Error types raised while generating and validating sitemaps.

Callers can tell schema non-conformance (SchemaViolationError) apart from
infrastructure failures (StorageError) and bad input URLs (MalformedURLError).
"""

from typing import Optional


class SitemapError(Exception):
    """Base class for every error raised by sitemap_writer."""


class ConfigError(SitemapError):
    """Invalid or incomplete generation configuration."""


class MalformedURLError(SitemapError):
    """A base URL or entry location could not be parsed or resolved."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Malformed URL '{url}': {reason}")


class StorageError(SitemapError):
    """Directory creation, file write or file read failed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Storage error for {path}: {reason}")


class SerializationError(SitemapError):
    """An in-memory document could not be rendered to XML."""


class SchemaViolationError(SitemapError):
    """A written file does not conform to the sitemaps.org schema."""

    def __init__(self, path: Optional[str], message: str):
        self.path = path
        self.message = message
        where = path or "<bytes>"
        super().__init__(f"Schema validation failed for {where}: {message}")


class IndexParseError(SitemapError):
    """A just-written sitemap index could not be parsed back."""

    def __init__(self, path: Optional[str], message: str):
        self.path = path
        self.message = message
        where = path or "<bytes>"
        super().__init__(f"Could not parse sitemap index {where}: {message}")
