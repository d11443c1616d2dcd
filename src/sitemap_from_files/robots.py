from __future__ import annotations

import re
import urllib.parse
import urllib.robotparser as robotparser
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .errors import RobotsError
from .log import get_logger

logger = get_logger("sitemap_from_files.robots")

ROBOTS_FILE_NAME = "robots.txt"
USER_AGENT = "*"

_WILDCARD = "*"
_END_ANCHOR = "$"


@dataclass(frozen=True)
class _PathRule:
    pattern: re.Pattern
    length: int
    allow: bool


def _normalize_path(path: str) -> str:
    # robotparser keeps rule paths percent-quoted; compare both sides decoded.
    return urllib.parse.unquote(path)


def _compile_rule(path: str, allow: bool) -> _PathRule:
    path = _normalize_path(path)
    body = path
    anchored = body.endswith(_END_ANCHOR)
    if anchored:
        body = body[: -len(_END_ANCHOR)]
    regex = ".*".join(re.escape(part) for part in body.split(_WILDCARD))
    if anchored:
        regex += r"\Z"
    return _PathRule(pattern=re.compile(regex), length=len(path), allow=allow)


def _wildcard_group_lines(text: str) -> List[robotparser.RuleLine]:
    """Allow/Disallow lines of every group addressed to `User-agent: *`.

    Blank lines and comments do not end a group; a group ends when a
    `User-agent` line follows its rules. All `*` groups are merged.
    """
    lines: List[robotparser.RuleLine] = []
    agents: List[str] = []
    in_rules = False
    for raw in text.splitlines():
        line = raw.split("#", 1)[0].strip()
        if not line or ":" not in line:
            continue
        key, value = (part.strip() for part in line.split(":", 1))
        key = key.lower()
        if key == "user-agent":
            if in_rules:
                agents = []
                in_rules = False
            agents.append(value)
        elif key in ("allow", "disallow"):
            in_rules = True
            if USER_AGENT in agents:
                lines.append(robotparser.RuleLine(urllib.parse.unquote(value), key == "allow"))
    return lines


class RobotsFilter:
    """Evaluates the `User-agent: *` group of a robots.txt file.

    Matching is longest-match: the most specific Allow/Disallow pattern that
    matches wins, Allow breaks ties, and a path matched by nothing is allowed.
    A filter built without content allows everything.
    """

    def __init__(self, rules: Optional[List[_PathRule]] = None) -> None:
        self._rules = rules
        self.active = rules is not None

    @classmethod
    def parse(cls, content: bytes) -> "RobotsFilter":
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise RobotsError(f"`{ROBOTS_FILE_NAME}` is invalid: {exc}") from exc

        rules = [_compile_rule(line.path, line.allowance) for line in _wildcard_group_lines(text)]
        return cls(rules)

    @classmethod
    def from_file(cls, path: Path) -> "RobotsFilter":
        try:
            content = path.read_bytes()
        except FileNotFoundError:
            logger.debug(f"No robots file at {path}; every path is allowed")
            return cls()
        except OSError as exc:
            raise RobotsError(f"couldn't read `{path}`: {exc}") from exc
        robots = cls.parse(content)
        logger.info(f"Loaded robots file {path} ({len(robots._rules or [])} rules for `{USER_AGENT}`)")
        return robots

    @classmethod
    def for_root_dir(cls, root_dir: Path) -> "RobotsFilter":
        return cls.from_file(root_dir / ROBOTS_FILE_NAME)

    def allowed(self, path: str) -> bool:
        """``path`` is a URL-path with a leading slash."""
        if not self._rules:
            return True
        target = _normalize_path(path)
        best: Optional[_PathRule] = None
        for rule in self._rules:
            if not rule.pattern.match(target):
                continue
            if (
                best is None
                or rule.length > best.length
                or (rule.length == best.length and rule.allow and not best.allow)
            ):
                best = rule
        return best is None or best.allow
