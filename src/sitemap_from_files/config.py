from __future__ import annotations

import re
import tomllib
import urllib.parse
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping, Optional

from .errors import ConfigError
from .log import get_logger

logger = get_logger("sitemap_from_files.config")

_CONFIG_KEYS = {"root_dir", "root_url", "sitemap_path", "rule"}
_RULE_KEYS = {"match", "replace", "replace_limit", "include", "check_html_meta_robots"}


@dataclass(frozen=True)
class Rule:
    pattern: re.Pattern
    replace: Optional[str] = None
    replace_limit: int = 0  # 0 = replace every match
    include: Optional[bool] = None
    check_html_meta_robots: Optional[bool] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, index: int = 0) -> "Rule":
        where = f"rule #{index + 1}"
        if not isinstance(data, Mapping):
            raise ConfigError(f"{where} must be a table")
        unknown = sorted(set(data) - _RULE_KEYS)
        if unknown:
            raise ConfigError(f"{where} has unknown key(s): {', '.join(unknown)}")

        raw_match = data.get("match")
        if not isinstance(raw_match, str):
            raise ConfigError(f"{where} needs a `match` string")
        try:
            pattern = re.compile(raw_match)
        except re.error as exc:
            raise ConfigError(f"{where} has an invalid `match` {raw_match!r}: {exc}") from exc

        replace = data.get("replace")
        if replace is not None:
            if not isinstance(replace, str):
                raise ConfigError(f"{where}: `replace` must be a string")
            try:
                # Compiles the template, which rejects unknown group references.
                pattern.sub(replace, "")
            except (re.error, IndexError) as exc:
                raise ConfigError(f"{where} has an invalid `replace` {replace!r}: {exc}") from exc

        replace_limit = data.get("replace_limit", 0)
        if isinstance(replace_limit, bool) or not isinstance(replace_limit, int) or replace_limit < 0:
            raise ConfigError(f"{where}: `replace_limit` must be a non-negative integer")

        include = data.get("include")
        check_html_meta_robots = data.get("check_html_meta_robots")
        for key, value in (("include", include), ("check_html_meta_robots", check_html_meta_robots)):
            if value is not None and not isinstance(value, bool):
                raise ConfigError(f"{where}: `{key}` must be true or false")

        return cls(
            pattern=pattern,
            replace=replace,
            replace_limit=replace_limit,
            include=include,
            check_html_meta_robots=check_html_meta_robots,
        )


def is_base_url(url: str) -> bool:
    """True if ``url`` is absolute and hierarchical, so relative references resolve against it."""
    parsed = urllib.parse.urlsplit(url)
    if not parsed.scheme:
        return False
    return bool(parsed.netloc) or parsed.path.startswith("/")


def normalize_root_url(url: str) -> str:
    parsed = urllib.parse.urlsplit(url.strip())
    if parsed.netloc and not parsed.path:
        parsed = parsed._replace(path="/")
    return urllib.parse.urlunsplit(parsed)


@dataclass
class Config:
    root_dir: Path
    root_url: str
    sitemap_path: Optional[Path] = None
    rules: List[Rule] = field(default_factory=list)

    @classmethod
    def from_file(cls, path: str | Path) -> "Config":
        path = Path(path)
        if not path.is_absolute():
            path = Path.cwd() / path
        logger.debug(f"Loading configuration from {path}")
        try:
            raw = path.read_bytes()
        except OSError as exc:
            raise ConfigError(f"couldn't read configuration file `{path}`: {exc}") from exc
        try:
            data = tomllib.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
            raise ConfigError(f"invalid configuration file `{path}`: {exc}") from exc
        return cls.from_dict(data, base_dir=path.parent)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, base_dir: Path) -> "Config":
        unknown = sorted(set(data) - _CONFIG_KEYS)
        if unknown:
            raise ConfigError(f"unknown configuration key(s): {', '.join(unknown)}")

        root_dir = data.get("root_dir")
        if not isinstance(root_dir, str):
            raise ConfigError("the configuration needs a `root_dir` string")

        root_url = data.get("root_url")
        if not isinstance(root_url, str):
            raise ConfigError("the configuration needs a `root_url` string")
        root_url = normalize_root_url(root_url)
        if not is_base_url(root_url):
            raise ConfigError(
                f"the configured `root_url`, `{root_url}`, is unusable as it cannot serve as a base URL"
            )

        sitemap_path = data.get("sitemap_path")
        if sitemap_path is not None and not isinstance(sitemap_path, str):
            raise ConfigError("`sitemap_path` must be a string")

        raw_rules = data.get("rule", [])
        if not isinstance(raw_rules, list):
            raise ConfigError("`rule` must be an array of tables (`[[rule]]`)")
        rules = [Rule.from_dict(r, index=i) for i, r in enumerate(raw_rules)]

        if not any(rule.include is True for rule in rules):
            raise ConfigError(
                "the configuration needs to have at least one `[[rule]]` with `include = true`"
            )

        cfg = cls(
            root_dir=Path(root_dir),
            root_url=root_url,
            sitemap_path=Path(sitemap_path) if sitemap_path is not None else None,
            rules=rules,
        )
        cfg.resolve_paths(base_dir)
        return cfg

    def resolve_paths(self, base_dir: Path) -> None:
        """Make ``root_dir`` and ``sitemap_path`` absolute relative to ``base_dir``."""
        if not self.root_dir.is_absolute():
            self.root_dir = base_dir / self.root_dir
        if self.sitemap_path is not None and not self.sitemap_path.is_absolute():
            self.sitemap_path = base_dir / self.sitemap_path
