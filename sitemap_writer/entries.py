"""
URL entries and the in-memory sitemap set.

Entries are normalized as they are added: a missing, malformed or
future-dated lastmod is replaced with today's UTC date.
"""

import logging
import re
from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

logger = logging.getLogger(__name__)

LASTMOD_FORMAT = "%Y-%m-%d"
_LASTMOD_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class URLEntry:
    """A single <url> record of a sitemap."""
    loc: str
    lastmod: str = ""
    changefreq: str = ""
    priority: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "URLEntry":
        return cls(
            loc=_as_text(data.get("loc")),
            lastmod=_as_text(data.get("lastmod")),
            changefreq=_as_text(data.get("changefreq")),
            priority=_as_text(data.get("priority")),
        )


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value).strip()


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def normalize_lastmod(value: Union[str, date, None], today: Optional[date] = None) -> str:
    """
    Return a valid, non-future lastmod for an entry.

    Valid past (or today's) dates are returned unchanged. Empty values,
    anything that is not a real YYYY-MM-DD calendar date, and dates after
    today all become today's date.

    Args:
        value: Caller-supplied lastmod (string, date or datetime)
        today: Override for "today" (defaults to the current UTC date)

    Returns:
        Date string in YYYY-MM-DD format
    """
    today = today or utc_today()

    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return value.isoformat() if value <= today else today.isoformat()

    if not value:
        return today.isoformat()

    if not _LASTMOD_RE.match(value):
        logger.debug(f"Replacing malformed lastmod '{value}' with {today.isoformat()}")
        return today.isoformat()

    try:
        parsed = datetime.strptime(value, LASTMOD_FORMAT).date()
    except ValueError:
        logger.debug(f"Replacing invalid lastmod '{value}' with {today.isoformat()}")
        return today.isoformat()

    if parsed > today:
        logger.debug(f"Replacing future lastmod '{value}' with {today.isoformat()}")
        return today.isoformat()

    return value


class SitemapSet:
    """
    Append-only collection of URL entries waiting to be written.

    Every added entry has its lastmod normalized against `today`.
    """

    def __init__(self, today: Optional[date] = None):
        self._today = today
        self._entries: List[URLEntry] = []

    def add_url(self, entry: Union[URLEntry, Dict[str, Any]]) -> URLEntry:
        """Adds a single entry, normalizing its lastmod."""
        if isinstance(entry, dict):
            entry = URLEntry.from_dict(entry)
        normalized = replace(entry, lastmod=normalize_lastmod(entry.lastmod, self._today))
        self._entries.append(normalized)
        return normalized

    def add_urls(self, entries: Iterable[Union[URLEntry, Dict[str, Any]]]) -> None:
        """Adds multiple entries, normalizing each one."""
        for entry in entries:
            self.add_url(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[URLEntry]:
        return iter(self._entries)
