"""
Sitemap Writer - Source Package

Modules:
- config: GenerationConfig and config.json loading/validation
- entries: URL entries, lastmod normalization, SitemapSet
- urls: Base URL resolution for entries and sitemap references
- planner: Single sitemap vs index + shards partitioning
- schemas: Embedded sitemaps.org XSDs
- emitter: XML rendering and atomic file writes
- reader: Strict parse-back of written sitemaps
- validator: On-disk schema validation (index first, then shards)
- generator: End-to-end generation
- manifest: CSV entry loading and written-file manifest
"""

__version__ = "1.0.0"

from sitemap_writer.config import GenerationConfig
from sitemap_writer.entries import SitemapSet, URLEntry, normalize_lastmod
from sitemap_writer.errors import (
    ConfigError,
    IndexParseError,
    MalformedURLError,
    SchemaViolationError,
    SerializationError,
    SitemapError,
    StorageError,
)
from sitemap_writer.generator import GenerationResult, SitemapGenerator, generate
from sitemap_writer.planner import PartitionPlan, plan
from sitemap_writer.schemas import SchemaKind
from sitemap_writer.validator import SitemapValidator
