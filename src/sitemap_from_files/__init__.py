__all__ = [
    "build_sitemap",
    "Config",
    "DirectoryScanner",
    "HtmlMetaScanner",
    "RobotsFilter",
    "Rule",
    "RuleSet",
    "SitemapAssembler",
    "SitemapEntry",
    "SitemapError",
]

from .config import Config, Rule
from .errors import SitemapError
from .html_meta import HtmlMetaScanner
from .orchestrator import build_sitemap
from .robots import RobotsFilter
from .rules import RuleSet
from .scan import DirectoryScanner, SitemapEntry
from .sitemap import SitemapAssembler
