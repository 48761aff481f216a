"""
Sitemap emitter: renders urlset / sitemapindex documents and writes them.

Document layout:
    <?xml version="1.0" encoding="UTF-8"?>
    <?xml-stylesheet type="text/xsl" href="..."?>   (only if configured)
    <urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
      ...
"""

import logging
import os
import tempfile
from dataclasses import dataclass
from typing import Iterable, Optional
from xml.sax.saxutils import escape

from lxml import etree

from sitemap_writer.config import DEFAULT_MAX_FILE_SIZE
from sitemap_writer.entries import URLEntry
from sitemap_writer.errors import SerializationError, StorageError
from sitemap_writer.schemas import SITEMAP_NAMESPACE

logger = logging.getLogger(__name__)

XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>\n'


@dataclass(frozen=True)
class IndexRef:
    """A <sitemap> entry of the index: absolute shard URL + generation date."""
    loc: str
    lastmod: str = ""


def stylesheet_instruction(stylesheet_url: str) -> str:
    if "?>" in stylesheet_url:
        raise SerializationError(f"Stylesheet URL would end the processing instruction early: {stylesheet_url}")
    href = escape(stylesheet_url, {'"': "&quot;"})
    return f'<?xml-stylesheet type="text/xsl" href="{href}"?>\n'


def _add_text_child(parent: etree._Element, tag: str, text: str) -> None:
    # Empty optional fields are left out entirely, never written as empty tags.
    if not text:
        return
    child = etree.SubElement(parent, f"{{{SITEMAP_NAMESPACE}}}{tag}")
    child.text = text


class SitemapEmitter:
    """
    Serializes sitemap documents and writes them atomically to a directory.
    """

    def __init__(self, output_dir: str, stylesheet_url: Optional[str] = None,
                 max_file_size: int = DEFAULT_MAX_FILE_SIZE):
        self.output_dir = output_dir
        self.stylesheet_url = stylesheet_url or None
        self.max_file_size = max_file_size

    # =========================================================================
    # RENDERING
    # =========================================================================

    def _serialize(self, root: etree._Element) -> bytes:
        try:
            body = etree.tostring(root, encoding="UTF-8", xml_declaration=False, pretty_print=True)
        except (etree.LxmlError, ValueError, TypeError) as e:
            raise SerializationError(f"Could not serialize <{etree.QName(root).localname}>: {e}") from e

        header = XML_HEADER
        if self.stylesheet_url:
            header += stylesheet_instruction(self.stylesheet_url)
        return header.encode("utf-8") + body

    def render_urlset(self, entries: Iterable[URLEntry]) -> bytes:
        """Render a <urlset> document for the given entries, in order."""
        try:
            root = etree.Element(f"{{{SITEMAP_NAMESPACE}}}urlset", nsmap={None: SITEMAP_NAMESPACE})
            for entry in entries:
                url_el = etree.SubElement(root, f"{{{SITEMAP_NAMESPACE}}}url")
                loc_el = etree.SubElement(url_el, f"{{{SITEMAP_NAMESPACE}}}loc")
                loc_el.text = entry.loc
                _add_text_child(url_el, "lastmod", entry.lastmod)
                _add_text_child(url_el, "changefreq", entry.changefreq)
                _add_text_child(url_el, "priority", entry.priority)
        except (ValueError, TypeError) as e:
            # lxml rejects control characters and NULs in text
            raise SerializationError(f"Could not build <urlset>: {e}") from e
        return self._serialize(root)

    def render_index(self, refs: Iterable[IndexRef]) -> bytes:
        """Render a <sitemapindex> document referencing each shard."""
        try:
            root = etree.Element(f"{{{SITEMAP_NAMESPACE}}}sitemapindex", nsmap={None: SITEMAP_NAMESPACE})
            for ref in refs:
                sitemap_el = etree.SubElement(root, f"{{{SITEMAP_NAMESPACE}}}sitemap")
                loc_el = etree.SubElement(sitemap_el, f"{{{SITEMAP_NAMESPACE}}}loc")
                loc_el.text = ref.loc
                _add_text_child(sitemap_el, "lastmod", ref.lastmod)
        except (ValueError, TypeError) as e:
            raise SerializationError(f"Could not build <sitemapindex>: {e}") from e
        return self._serialize(root)

    # =========================================================================
    # WRITING
    # =========================================================================

    def write_bytes(self, filename: str, data: bytes) -> int:
        """
        Atomically write data to {output_dir}/{filename}.

        The bytes go to a temporary file in the same directory which is then
        moved over the target, so readers never see a half-written sitemap.

        Returns:
            Number of bytes written

        Raises:
            StorageError: If the file cannot be written
        """
        target = os.path.join(self.output_dir, filename)
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=f".{filename}.", suffix=".tmp", dir=self.output_dir)
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, target)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StorageError(target, str(e)) from e

        size = len(data)
        if size > self.max_file_size:
            logger.warning(
                f"{filename} is {size:,} bytes, above the advisory limit of {self.max_file_size:,} bytes"
            )
        logger.debug(f"Wrote {target} ({size:,} bytes)")
        return size

    def emit_file(self, filename: str, entries: Iterable[URLEntry]) -> int:
        """Render and write one urlset file. Returns bytes written."""
        return self.write_bytes(filename, self.render_urlset(entries))

    def emit_index(self, refs: Iterable[IndexRef], filename: str) -> int:
        """Render and write the sitemap index. Returns bytes written."""
        return self.write_bytes(filename, self.render_index(refs))
