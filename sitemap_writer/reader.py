import logging
from typing import Any, Dict, List, Optional

from lxml import etree

from sitemap_writer.errors import IndexParseError, StorageError
from sitemap_writer.schemas import SITEMAP_NAMESPACE

logger = logging.getLogger(__name__)

SITEMAP_NS = {'sm': SITEMAP_NAMESPACE}


class SitemapReader:
    """
    Strict parser for sitemap documents written by this package.

    Unlike a crawler-side parser there is no recover mode: a document that
    is not well-formed raises instead of being partially read.
    """

    def __init__(self):
        self._parser = etree.XMLParser(
            remove_blank_text=True, resolve_entities=False, no_network=True
        )

    def parse(self, xml_content: bytes, source: Optional[str] = None) -> Dict[str, Any]:
        """
        Parses the given sitemap XML content.

        Args:
            xml_content: Raw XML bytes
            source: File path or URL the bytes came from (for error context)

        Returns:
            A dictionary with:
                'type': 'sitemapindex' or 'urlset'
                'urls': list of dicts with 'loc'/'lastmod' (index) or
                        'loc'/'lastmod'/'changefreq'/'priority' (urlset)

        Raises:
            IndexParseError: If the content is empty, malformed or has an unknown root
        """
        if not xml_content:
            raise IndexParseError(source, "empty XML content")

        try:
            root = etree.fromstring(xml_content, parser=self._parser)
        except etree.XMLSyntaxError as e:
            raise IndexParseError(source, f"XMLSyntaxError: {e}") from e

        root_tag_name = etree.QName(root.tag).localname
        if root_tag_name == 'sitemapindex':
            sitemaps = self._extract_sitemaps_from_index(root)
            logger.debug(f"Parsed sitemap index {source or ''}: {len(sitemaps)} sitemaps")
            return {"type": "sitemapindex", "urls": sitemaps}
        if root_tag_name == 'urlset':
            urls = self._extract_urls_from_urlset(root)
            logger.debug(f"Parsed URL set {source or ''}: {len(urls)} URLs")
            return {"type": "urlset", "urls": urls}

        raise IndexParseError(source, f"unknown root element '{root.tag}'")

    def parse_file(self, path: str) -> Dict[str, Any]:
        """Reads a sitemap file from disk and parses it."""
        try:
            with open(path, 'rb') as f:
                data = f.read()
        except OSError as e:
            raise StorageError(path, f"failed to read sitemap file: {e}") from e
        return self.parse(data, source=path)

    def _extract_sitemaps_from_index(self, root_element: etree._Element) -> List[Dict[str, Optional[str]]]:
        sitemaps = []
        for sitemap_el in root_element.findall('sm:sitemap', SITEMAP_NS):
            sitemaps.append({
                'loc': self._child_text(sitemap_el, 'loc'),
                'lastmod': self._child_text(sitemap_el, 'lastmod'),
            })
        return sitemaps

    def _extract_urls_from_urlset(self, root_element: etree._Element) -> List[Dict[str, Optional[str]]]:
        url_entries = []
        for url_el in root_element.findall('sm:url', SITEMAP_NS):
            url_entries.append({
                'loc': self._child_text(url_el, 'loc'),
                'lastmod': self._child_text(url_el, 'lastmod'),
                'changefreq': self._child_text(url_el, 'changefreq'),
                'priority': self._child_text(url_el, 'priority'),
            })
        return url_entries

    @staticmethod
    def _child_text(element: etree._Element, tag: str) -> Optional[str]:
        child = element.find(f'sm:{tag}', SITEMAP_NS)
        if child is not None and child.text:
            return child.text.strip()
        return None
