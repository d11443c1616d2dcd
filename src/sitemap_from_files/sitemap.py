from __future__ import annotations

from datetime import timezone
from typing import Iterable, List

from lxml import etree

from .errors import SitemapSizeError
from .log import get_logger
from .scan import SitemapEntry

logger = get_logger("sitemap_from_files.sitemap")

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
MAX_SITEMAP_BYTES = 50_428_800


def _tag(name: str) -> str:
    return f"{{{SITEMAP_NS}}}{name}"


def format_lastmod(entry: SitemapEntry) -> str:
    t = entry.last_modified.astimezone(timezone.utc).replace(microsecond=0)
    return t.isoformat()


class SitemapAssembler:
    def __init__(self, max_bytes: int = MAX_SITEMAP_BYTES) -> None:
        self.max_bytes = max_bytes

    @staticmethod
    def sort(entries: Iterable[SitemapEntry]) -> List[SitemapEntry]:
        return sorted(entries, key=lambda entry: entry.url)

    def serialize(self, entries: Iterable[SitemapEntry]) -> bytes:
        urlset = etree.Element(_tag("urlset"), nsmap={None: SITEMAP_NS})
        for entry in entries:
            url = etree.SubElement(urlset, _tag("url"))
            etree.SubElement(url, _tag("loc")).text = entry.url
            if entry.last_modified is not None:
                etree.SubElement(url, _tag("lastmod")).text = format_lastmod(entry)
        return etree.tostring(
            urlset,
            xml_declaration=True,
            encoding="UTF-8",
            pretty_print=True,
        )

    def assemble(self, entries: Iterable[SitemapEntry]) -> bytes:
        """Sort ``entries`` by URL and serialize them as a `<urlset>` document."""
        data = self.serialize(self.sort(entries))
        if len(data) > self.max_bytes:
            raise SitemapSizeError(
                f"generated sitemap is {len(data)} bytes, but the maximum size allowed by the "
                f"sitemap protocol is {self.max_bytes} bytes; please divide the files into multiple "
                "sitemaps and join them together in a sitemap index"
            )
        logger.info(f"Sitemap assembled: {len(data)} bytes")
        return data
