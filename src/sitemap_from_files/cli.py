from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv

from .config import Config
from .errors import SitemapError
from .log import configure_logging, get_logger
from .orchestrator import build_sitemap, output_target, write_sitemap

logger = get_logger("sitemap_from_files.cli")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="sitemap-from-files",
        description="Generate an XML sitemap (sitemaps.org protocol) from a directory of files",
    )
    p.add_argument("config_file", help="Path to the configuration file")
    p.add_argument(
        "-o",
        "--output",
        help="Write the sitemap to this file (`-` means standard output), ignoring the configuration's `sitemap_path`",
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Explain why files are excluded from the sitemap",
    )
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    load_dotenv(find_dotenv(usecwd=True))
    configure_logging(logging.DEBUG if args.verbose else None)

    try:
        cfg = Config.from_file(args.config_file)
        data = build_sitemap(cfg)
        write_sitemap(data, output_target(cfg, args.output))
    except SitemapError as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
