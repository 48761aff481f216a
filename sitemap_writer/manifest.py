"""
1.0 Manifest Module
CSV input and output around a generation run.

- load_entries_csv: reads a pre-built URL list (loc, lastmod, changefreq, priority)
- save_manifest: records every written sitemap file (size, hash, URL count)
"""

import logging
import os
from dataclasses import asdict
from typing import List

import pandas as pd

from sitemap_writer.entries import URLEntry
from sitemap_writer.errors import ConfigError, StorageError
from sitemap_writer.generator import GenerationResult

logger = logging.getLogger(__name__)

# 1.1 Column name constants for consistency
COL_LOC = "loc"
COL_LASTMOD = "lastmod"
COL_CHANGEFREQ = "changefreq"
COL_PRIORITY = "priority"

ENTRY_COLUMNS = [COL_LOC, COL_LASTMOD, COL_CHANGEFREQ, COL_PRIORITY]

MANIFEST_COLUMNS = [
    'filename', 'kind', 'url_count', 'content_length', 'content_hash', 'generated_at'
]


def load_entries_csv(csv_path: str) -> List[URLEntry]:
    """
    2.1 Load URL entries from a CSV file.

    Only 'loc' is required. Missing optional columns default to empty and
    rows with an empty 'loc' are skipped.

    Args:
        csv_path: Path to the CSV file

    Returns:
        Entries in file order
    """
    if not os.path.exists(csv_path):
        raise StorageError(csv_path, "entries CSV not found")

    try:
        df = pd.read_csv(csv_path, dtype=str, keep_default_na=False)
    except (OSError, pd.errors.ParserError) as e:
        raise StorageError(csv_path, f"could not read entries CSV: {e}") from e
    except pd.errors.EmptyDataError:
        logger.warning(f"Entries CSV is empty: {csv_path}")
        return []

    if COL_LOC not in df.columns:
        raise ConfigError(f"Entries CSV {csv_path} has no '{COL_LOC}' column (found: {list(df.columns)})")

    for col in ENTRY_COLUMNS:
        if col not in df.columns:
            df[col] = ""

    df = df[ENTRY_COLUMNS].apply(lambda column: column.str.strip())

    empty_loc = df[COL_LOC] == ""
    skipped = int(empty_loc.sum())
    if skipped:
        logger.warning(f"Skipping {skipped:,} rows without '{COL_LOC}' in {csv_path}")
        df = df[~empty_loc]

    entries = [
        URLEntry(loc=row.loc, lastmod=row.lastmod, changefreq=row.changefreq, priority=row.priority)
        for row in df.itertuples(index=False)
    ]
    logger.info(f"Loaded {len(entries):,} URL entries from {csv_path}")
    return entries


def save_manifest(result: GenerationResult, csv_path: str) -> None:
    """
    2.2 Save metadata of every written sitemap file to CSV.
    """
    df = pd.DataFrame([asdict(f) for f in result.files])
    df = df.reindex(columns=MANIFEST_COLUMNS)

    directory = os.path.dirname(csv_path)
    try:
        if directory:
            os.makedirs(directory, exist_ok=True)
        df.to_csv(csv_path, index=False)
    except OSError as e:
        raise StorageError(csv_path, f"could not write manifest: {e}") from e
    logger.info(f"Saved {len(df)} sitemap file records to {csv_path}")
