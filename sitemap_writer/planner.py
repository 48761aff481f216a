"""
Batch planner: decides between a single sitemap and an index plus shards.

Pure computation, no I/O.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")

SINGLE_SITEMAP_FILENAME = "sitemap.xml"
SITEMAP_INDEX_FILENAME = "sitemap_index.xml"
SHARD_FILENAME_TEMPLATE = "sitemap_{}.xml"


@dataclass(frozen=True)
class Shard:
    """One output file and the contiguous slice of entries it holds."""
    filename: str
    start: int
    end: int
    entries: Sequence

    def __len__(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class PartitionPlan:
    shards: List[Shard]
    index_filename: Optional[str] = None

    @property
    def is_indexed(self) -> bool:
        return self.index_filename is not None

    @property
    def filenames(self) -> List[str]:
        return [shard.filename for shard in self.shards]


def shard_count(total: int, max_per_file: int) -> int:
    """Number of files needed for `total` entries (ceiling division)."""
    return (total + max_per_file - 1) // max_per_file


def plan(entries: Sequence[T], max_per_file: int) -> PartitionPlan:
    """
    Partition entries into sitemap files.

    Up to `max_per_file` entries go into a single sitemap.xml. Anything larger
    is split into sitemap_1.xml ... sitemap_N.xml, in input order, with the
    last shard holding the remainder, plus a sitemap_index.xml.
    """
    if max_per_file < 1:
        raise ValueError(f"max_per_file must be at least 1, got {max_per_file}")

    total = len(entries)
    if total <= max_per_file:
        return PartitionPlan(shards=[Shard(SINGLE_SITEMAP_FILENAME, 0, total, entries[0:total])])

    shards = []
    for i in range(shard_count(total, max_per_file)):
        start = i * max_per_file
        end = min(start + max_per_file, total)
        shards.append(Shard(SHARD_FILENAME_TEMPLATE.format(i + 1), start, end, entries[start:end]))

    return PartitionPlan(shards=shards, index_filename=SITEMAP_INDEX_FILENAME)
