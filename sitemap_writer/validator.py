"""
Schema validation of written sitemap files.

Files are always re-read from disk so the check covers exactly what landed
in the output directory. For an indexed layout the index is validated first,
then every shard it references, in order. The first failure is raised.
"""

import logging
import os
import posixpath
from typing import List, Optional
from urllib.parse import urlsplit

from lxml import etree

from sitemap_writer.errors import IndexParseError, SchemaViolationError, StorageError
from sitemap_writer.planner import PartitionPlan
from sitemap_writer.reader import SitemapReader
from sitemap_writer.schemas import SchemaKind, load_schema

logger = logging.getLogger(__name__)


class SitemapValidator:
    """Validates sitemap documents against the embedded sitemaps.org XSDs."""

    def __init__(self, reader: Optional[SitemapReader] = None):
        self.reader = reader or SitemapReader()
        self._parser = etree.XMLParser(resolve_entities=False, no_network=True)

    def validate_bytes(self, data: bytes, kind: SchemaKind, path: Optional[str] = None) -> None:
        """
        Validate raw document bytes against the schema for `kind`.

        Raises:
            SchemaViolationError: If the bytes are not well-formed XML or break the schema
        """
        schema = load_schema(SchemaKind(kind))
        try:
            doc = etree.fromstring(data, parser=self._parser)
        except etree.XMLSyntaxError as e:
            raise SchemaViolationError(path, f"failed to parse XML: {e}") from e

        if not schema.validate(doc):
            errors = list(schema.error_log)
            first = errors[0] if errors else None
            message = f"line {first.line}: {first.message}" if first is not None else "unknown schema error"
            raise SchemaViolationError(path, message)

    def validate_file(self, path: str, kind: SchemaKind) -> None:
        """Re-read a written file from disk and validate it."""
        try:
            with open(path, 'rb') as f:
                data = f.read()
        except OSError as e:
            raise StorageError(path, f"failed to read XML file for validation: {e}") from e

        self.validate_bytes(data, kind, path=path)
        logger.debug(f"Validated {path} against {SchemaKind(kind).value} schema")

    def referenced_files(self, index_path: str) -> List[str]:
        """
        Parse a sitemap index back and return the referenced shard filenames.

        Each filename is the basename of the path of a <loc> URL.
        """
        parsed = self.reader.parse_file(index_path)
        if parsed["type"] != "sitemapindex":
            raise IndexParseError(index_path, f"expected <sitemapindex>, found <{parsed['type']}>")

        filenames = []
        for sitemap in parsed["urls"]:
            loc = sitemap.get("loc")
            if not loc:
                raise IndexParseError(index_path, "<sitemap> entry without <loc>")
            try:
                filename = posixpath.basename(urlsplit(loc).path)
            except ValueError as e:
                raise IndexParseError(index_path, f"invalid sitemap URL '{loc}': {e}") from e
            if not filename:
                raise IndexParseError(index_path, f"sitemap URL '{loc}' has no filename")
            filenames.append(filename)
        return filenames

    def validate_index_and_shards(self, index_path: str) -> List[str]:
        """
        Validate the index, then each shard it references in order.

        Returns:
            Paths of every validated file, index first
        """
        self.validate_file(index_path, SchemaKind.SITEMAPINDEX)

        output_dir = os.path.dirname(index_path)
        validated = [index_path]
        for filename in self.referenced_files(index_path):
            shard_path = os.path.join(output_dir, filename)
            self.validate_file(shard_path, SchemaKind.URLSET)
            validated.append(shard_path)

        logger.info(f"Validated sitemap index and {len(validated) - 1} sitemap files")
        return validated

    def validate_output(self, plan: PartitionPlan, output_dir: str) -> List[str]:
        """Validate the files a plan produced in output_dir."""
        if plan.is_indexed:
            return self.validate_index_and_shards(os.path.join(output_dir, plan.index_filename))

        path = os.path.join(output_dir, plan.shards[0].filename)
        self.validate_file(path, SchemaKind.URLSET)
        logger.info(f"Validated {path}")
        return [path]
