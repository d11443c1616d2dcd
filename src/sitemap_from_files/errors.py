from __future__ import annotations


class SitemapError(Exception):
    """A condition that aborts the whole run; no sitemap is produced."""


class ConfigError(SitemapError):
    pass


class RobotsError(SitemapError):
    pass


class RuleError(SitemapError):
    pass


class ScanError(SitemapError):
    pass


class SitemapSizeError(SitemapError):
    pass
