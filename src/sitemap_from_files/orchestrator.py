from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

from .config import Config, is_base_url
from .errors import ConfigError, SitemapError
from .html_meta import HtmlMetaScanner
from .log import get_logger
from .robots import RobotsFilter
from .rules import RuleSet
from .scan import MAX_SITEMAP_URLS, DirectoryScanner
from .sitemap import MAX_SITEMAP_BYTES, SitemapAssembler

logger = get_logger("sitemap_from_files.orchestrator")

STDOUT = "-"


def build_sitemap(
    cfg: Config,
    *,
    max_urls: int = MAX_SITEMAP_URLS,
    max_bytes: int = MAX_SITEMAP_BYTES,
) -> bytes:
    """End-to-end: config -> robots -> rules -> directory scan -> sorted XML bytes."""
    if not is_base_url(cfg.root_url):
        raise ConfigError(
            f"the configured `root_url`, `{cfg.root_url}`, is unusable as it cannot serve as a base URL"
        )

    robots = RobotsFilter.for_root_dir(cfg.root_dir)
    scanner = DirectoryScanner(
        root_dir=cfg.root_dir,
        root_url=cfg.root_url,
        rules=RuleSet(cfg.rules),
        robots=robots,
        html_meta=HtmlMetaScanner(),
        max_urls=max_urls,
    )
    entries = scanner.scan()
    return SitemapAssembler(max_bytes=max_bytes).assemble(entries)


def output_target(cfg: Config, output: Optional[str] = None) -> Optional[Path]:
    """Where to write: ``output`` wins, then ``sitemap_path``; ``None`` means stdout."""
    if output is not None:
        return None if output == STDOUT else Path(output)
    return cfg.sitemap_path


def write_sitemap(data: bytes, target: Optional[Path]) -> None:
    if target is None:
        try:
            sys.stdout.buffer.write(data)
            sys.stdout.buffer.flush()
        except OSError as exc:
            raise SitemapError(f"couldn't write sitemap to standard output: {exc}") from exc
        return

    try:
        Path(target).write_bytes(data)
    except OSError as exc:
        raise SitemapError(f"couldn't write sitemap file `{target}`: {exc}") from exc
    logger.info(f"Wrote {len(data)} bytes to {target}")
