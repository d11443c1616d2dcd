from __future__ import annotations

import os
import stat
import urllib.parse
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from .errors import ScanError
from .html_meta import HtmlMetaScanner
from .log import get_logger
from .robots import RobotsFilter
from .rules import RuleSet

logger = get_logger("sitemap_from_files.scan")

MAX_SITEMAP_URLS = 50_000

# Left unescaped besides the unreserved set; matches the URL path percent-encode set plus `%`.
PATH_SAFE_CHARS = "/!$&'()*+,;=:@[]\\^|"


@dataclass(frozen=True)
class SitemapEntry:
    url: str
    last_modified: Optional[datetime] = None


def relative_url_path(path: Path, root_dir: Path) -> str:
    """URL-path of ``path`` relative to ``root_dir``: `/`-separated, percent-encoded, no leading slash."""
    try:
        rel = path.relative_to(root_dir)
    except ValueError as exc:
        raise ScanError(f"path `{path}` could not be made relative to `{root_dir}`") from exc
    return urllib.parse.quote(rel.as_posix(), safe=PATH_SAFE_CHARS)


def join_url(base: str, ref: str) -> str:
    """Resolve ``ref`` against ``base`` whatever ``base``'s scheme is.

    ``urljoin`` leaves references alone for schemes it doesn't know, so such
    bases are resolved as `http` and get their own scheme back.
    """
    scheme = urllib.parse.urlsplit(base).scheme
    if scheme in urllib.parse.uses_relative or urllib.parse.urlsplit(ref).scheme:
        return urllib.parse.urljoin(base, ref)
    joined = urllib.parse.urljoin("http" + base[len(scheme):], ref)
    return scheme + joined[len("http"):]


def modification_time(st: os.stat_result) -> Optional[datetime]:
    """Modification time in UTC, floored to the whole second."""
    try:
        seconds = st.st_mtime_ns // 1_000_000_000
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


class DirectoryScanner:
    """Walks ``root_dir`` and collects the entries that belong in the sitemap.

    A scanner holds the entries of one walk; create a new one per run.
    """

    def __init__(
        self,
        *,
        root_dir: Path,
        root_url: str,
        rules: RuleSet,
        robots: Optional[RobotsFilter] = None,
        html_meta: Optional[HtmlMetaScanner] = None,
        max_urls: int = MAX_SITEMAP_URLS,
    ) -> None:
        self.root_dir = Path(root_dir)
        self.root_url = root_url
        self.rules = rules
        self.robots = robots
        self.html_meta = html_meta or HtmlMetaScanner()
        self.max_urls = max_urls
        self.entries: List[SitemapEntry] = []

    def scan(self) -> List[SitemapEntry]:
        logger.debug(f"Scanning {self.root_dir}")
        self.scan_dir(self.root_dir)
        logger.info(f"Scan complete: {len(self.entries)} entries under {self.root_dir}")
        return self.entries

    def scan_dir(self, directory: Path) -> None:
        try:
            with os.scandir(directory) as it:
                dents = list(it)
        except OSError as exc:
            raise ScanError(f"couldn't read folder `{directory}`: {exc}") from exc

        for dent in dents:
            path = Path(dent.path)
            try:
                is_dir = dent.is_dir()
            except OSError as exc:
                raise ScanError(f"couldn't get file type of `{path}`: {exc}") from exc
            if is_dir:
                self.scan_dir(path)
                continue
            self.scan_file(path)

    def scan_file(self, path: Path) -> None:
        try:
            st = path.stat()
        except OSError as exc:
            raise ScanError(f"couldn't get file system metadata for file `{path}`: {exc}") from exc
        if not stat.S_ISREG(st.st_mode):
            return

        url_rel = relative_url_path(path, self.root_dir)

        decision = self.rules.apply(url_rel)
        if decision is None:
            logger.debug(f"Excluded by rules: {url_rel}")
            return

        web_url = self.resolve(url_rel, decision.path)

        if self.robots is not None and self.robots.active:
            if not self.robots.allowed(f"/{url_rel}"):
                logger.debug(f"Excluded by robots.txt: {url_rel}")
                return

        if decision.check_html_meta_robots:
            try:
                with path.open("rb") as fd:
                    meta = self.html_meta.read(fd)
            except OSError as exc:
                raise ScanError(f"couldn't read HTML file `{path}`: {exc}") from exc
            if meta.no_index:
                logger.debug(f"Excluded by <meta name=robots> noindex: {url_rel}")
                return

        self.add(SitemapEntry(url=web_url, last_modified=modification_time(st)))

    def resolve(self, url_rel: str, new_path: str) -> str:
        """Absolute web URL for ``new_path``, which must stay under ``root_url``."""
        try:
            web_url = join_url(self.root_url, new_path)
        except ValueError as exc:
            raise ScanError(
                f"applying configured replacements to `{url_rel}` yielded `{new_path}`, "
                f"which is not a valid relative URL: {exc}"
            ) from exc

        if not web_url.startswith(self.root_url):
            raise ScanError(
                f"applying replacements to the path `{url_rel}` resulted in the URL `{web_url}`, "
                f"which does not start with the configured `root_url`, `{self.root_url}`, "
                "in violation of the sitemaps protocol"
            )
        return web_url

    def add(self, entry: SitemapEntry) -> None:
        if len(self.entries) >= self.max_urls:
            raise ScanError(
                f"more than {self.max_urls} files are to be included in the sitemap, which is not "
                "allowed by the sitemaps protocol; please divide the files into multiple sitemaps "
                "and join them together in a sitemap index"
            )
        self.entries.append(entry)
