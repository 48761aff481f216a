"""
1.0 Sitemap Generator Module
Turns an accumulated set of URL entries into validated sitemap files.

Flow of one generate() call:
1. Resolve every entry location against the configured base URL
2. Plan a single sitemap.xml or an index plus sitemap_N.xml shards
3. Resolve shard references against the sitemap base URL
4. Write each shard, then the index
5. Re-read and validate everything that was written

Any error aborts the run immediately. Files written before the failure stay
on disk.
"""

import hashlib
import logging
import os
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from sitemap_writer.config import DEFAULT_MAX_URLS_PER_FILE, GenerationConfig
from sitemap_writer.emitter import IndexRef, SitemapEmitter
from sitemap_writer.entries import SitemapSet, URLEntry, utc_today
from sitemap_writer.errors import StorageError
from sitemap_writer.planner import PartitionPlan, plan
from sitemap_writer.schemas import SchemaKind
from sitemap_writer.urls import resolve, resolve_sitemap_url
from sitemap_writer.validator import SitemapValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WrittenFile:
    """Metadata for one file written by a generation run."""
    filename: str
    kind: str
    url_count: int
    content_length: int
    content_hash: str
    generated_at: str


@dataclass
class GenerationResult:
    output_dir: str
    files: List[WrittenFile] = field(default_factory=list)
    index_filename: Optional[str] = None
    url_count: int = 0

    @property
    def is_indexed(self) -> bool:
        return self.index_filename is not None

    @property
    def primary_filename(self) -> str:
        """The file search engines should be pointed at."""
        if self.index_filename:
            return self.index_filename
        return self.files[0].filename


class SitemapGenerator:
    """
    2.0 SitemapGenerator Class
    Accumulates URL entries and writes them as validated sitemaps.
    """

    def __init__(self, config: GenerationConfig, validator: Optional[SitemapValidator] = None,
                 today: Optional[date] = None):
        """
        2.1 Initialize the generator.

        Args:
            config: Immutable generation settings
            validator: Anything with validate_output(plan, output_dir); defaults
                to the XSD-backed SitemapValidator
            today: Override for the current UTC date (lastmod defaults and index dates)
        """
        self.config = config
        self.validator = validator or SitemapValidator()
        self.today = today
        self.urls = SitemapSet(today=today)
        self.emitter = SitemapEmitter(
            output_dir=config.output_dir,
            stylesheet_url=config.stylesheet_url,
            max_file_size=config.max_file_size,
        )

    # =========================================================================
    # 3.0 ENTRY ACCUMULATION
    # =========================================================================

    def add_url(self, entry: Union[URLEntry, Dict[str, Any]]) -> URLEntry:
        """3.1 Add one entry (lastmod is normalized on the way in)."""
        return self.urls.add_url(entry)

    def add_urls(self, entries: Iterable[Union[URLEntry, Dict[str, Any]]]) -> None:
        """3.2 Add multiple entries."""
        self.urls.add_urls(entries)

    # =========================================================================
    # 4.0 GENERATION
    # =========================================================================

    def _resolve_entries(self) -> List[URLEntry]:
        """4.1 Resolve every location to an absolute URL."""
        base_url = self.config.base_url
        return [replace(entry, loc=resolve(base_url, entry.loc)) for entry in self.urls]

    def _index_refs(self, partition: PartitionPlan, generation_day: str) -> List[IndexRef]:
        """4.2 Build index entries for every shard of an indexed plan."""
        return [
            IndexRef(loc=resolve_sitemap_url(self.config.sitemap_base_url, filename), lastmod=generation_day)
            for filename in partition.filenames
        ]

    def _ensure_output_dir(self) -> None:
        """4.3 Create the output directory if it is missing."""
        output_dir = self.config.output_dir
        try:
            os.makedirs(output_dir, exist_ok=True)
        except OSError as e:
            raise StorageError(output_dir, f"could not create output directory: {e}") from e

    def _write(self, filename: str, data: bytes, kind: SchemaKind, url_count: int,
               generated_at: str) -> WrittenFile:
        size = self.emitter.write_bytes(filename, data)
        return WrittenFile(
            filename=filename,
            kind=kind.value,
            url_count=url_count,
            content_length=size,
            content_hash=hashlib.md5(data).hexdigest(),
            generated_at=generated_at,
        )

    def generate(self) -> GenerationResult:
        """
        4.4 Write and validate the sitemap(s) for all accumulated entries.

        Returns:
            GenerationResult describing every written file

        Raises:
            MalformedURLError: A base URL or entry location cannot be resolved
            StorageError: The directory or a file cannot be created/read
            SerializationError: A document cannot be rendered to XML
            SchemaViolationError: A written file fails schema validation
            IndexParseError: The written index cannot be parsed back
        """
        generated_at = datetime.now(timezone.utc).isoformat()
        generation_day = (self.today or utc_today()).isoformat()
        output_dir = self.config.output_dir

        # 4.4.1 Everything that can fail on bad URLs happens before any write
        entries = self._resolve_entries()
        partition = plan(entries, self.config.max_urls_per_file)
        refs = self._index_refs(partition, generation_day) if partition.is_indexed else []

        logger.info(
            f"Generating {len(partition.shards)} sitemap file(s) for {len(entries):,} URLs "
            f"in {output_dir}" + (" with index" if partition.is_indexed else "")
        )

        # 4.4.2 Write shards in order, then the index
        self._ensure_output_dir()
        result = GenerationResult(output_dir=output_dir, url_count=len(entries))
        for shard in partition.shards:
            data = self.emitter.render_urlset(shard.entries)
            written = self._write(shard.filename, data, SchemaKind.URLSET, len(shard), generated_at)
            result.files.append(written)
            logger.debug(f"Wrote {shard.filename}: {len(shard):,} URLs, {written.content_length:,} bytes")

        if partition.is_indexed:
            data = self.emitter.render_index(refs)
            written = self._write(partition.index_filename, data, SchemaKind.SITEMAPINDEX,
                                  len(refs), generated_at)
            result.files.append(written)
            result.index_filename = partition.index_filename
            logger.info(f"Wrote sitemap index {partition.index_filename} referencing {len(refs)} sitemaps")

        # 4.4.3 Validate what actually landed on disk
        self.validator.validate_output(partition, output_dir)

        logger.info(f"Sitemap generation complete: {result.primary_filename} ({len(result.files)} files)")
        return result


def generate(output_dir: str, content_base_url: str, index_base_url: Optional[str],
             stylesheet_url: Optional[str], entries: Iterable[Union[URLEntry, Dict[str, Any]]],
             max_per_file: int = DEFAULT_MAX_URLS_PER_FILE,
             today: Optional[date] = None) -> GenerationResult:
    """
    5.0 One-call entry point: configure, add entries, generate.
    """
    config = GenerationConfig(
        output_dir=output_dir,
        base_url=content_base_url,
        sitemap_base_url=index_base_url,
        stylesheet_url=stylesheet_url,
        max_urls_per_file=max_per_file,
    )
    generator = SitemapGenerator(config, today=today)
    generator.add_urls(entries)
    return generator.generate()
