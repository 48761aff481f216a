"""
1.0 Main Orchestrator Module
Runs one sitemap generation from config.json.

Key features:
- Loads URL entries from a CSV file
- Writes sitemap.xml, or sitemap_index.xml + sitemap_N.xml for large sets
- Validates every written file against the sitemaps.org schema
- Optional CSV manifest of the written files
"""

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Optional

from sitemap_writer.config import CONFIG_FILE_PATH, build_generation_config, load_config
from sitemap_writer.errors import SchemaViolationError, SitemapError
from sitemap_writer.generator import SitemapGenerator
from sitemap_writer.manifest import load_entries_csv, save_manifest

logger = logging.getLogger(__name__)


def setup_logging(log_file: str = "sitemap_writer.log") -> None:
    """1.1 Setup logging to file and console."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )


def main(config_path: Optional[str] = None) -> int:
    """
    2.0 Main function to orchestrate a sitemap generation run.

    Flow:
    1. Load and validate configuration
    2. Load URL entries from the configured CSV
    3. Generate and validate sitemaps
    4. Save the manifest (if configured)

    Returns:
        Process exit code (0 on success)
    """
    logger.info("=" * 60)
    logger.info("Starting sitemap generation")
    logger.info(f"Run timestamp: {datetime.now(timezone.utc).isoformat()}")
    logger.info("=" * 60)

    # 2.1 Load configuration
    config = load_config(config_path or CONFIG_FILE_PATH)
    if not config:
        logger.error("Failed to load configuration. Exiting.")
        return 1

    try:
        generation_config = build_generation_config(config)

        # 2.2 Load entries
        entries = load_entries_csv(config["entries_csv"])

        # 2.3 Generate + validate
        generator = SitemapGenerator(generation_config)
        generator.add_urls(entries)
        result = generator.generate()

        # 2.4 Manifest
        manifest_csv = config.get("manifest_csv")
        if manifest_csv:
            save_manifest(result, manifest_csv)

    except SchemaViolationError as e:
        logger.error(f"Generated sitemap is not protocol-conformant: {e}")
        logger.error("Files remain on disk but generation is reported as failed.")
        return 2
    except SitemapError as e:
        logger.error(f"FAILED sitemap generation: {type(e).__name__}: {e}")
        return 1

    # 2.5 Summary
    logger.info("=" * 60)
    logger.info("Generation Summary:")
    for written in result.files:
        logger.info(
            f"  [OK] {written.filename}: {written.url_count:,} {'sitemaps' if written.kind == 'sitemapindex' else 'URLs'}, "
            f"{written.content_length:,} bytes"
        )
    logger.info(f"Submit: {os.path.join(result.output_dir, result.primary_filename)}")
    logger.info("=" * 60)
    return 0


def cli() -> None:
    """3.0 Console entry point."""
    setup_logging()
    sys.exit(main())


if __name__ == "__main__":
    cli()
