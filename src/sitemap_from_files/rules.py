from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .config import Rule
from .errors import RuleError


@dataclass(frozen=True)
class Decision:
    """Outcome of the rules for a file that is to be included."""

    # URL-path for the sitemap entry, after any replacement.
    path: str
    # Whether to parse the file as HTML and look for `<meta name=robots>`.
    check_html_meta_robots: bool
    # The rule whose `replace` was applied, if any.
    replacing_rule: Optional[Rule] = None


class RuleSet:
    def __init__(self, rules: Sequence[Rule]) -> None:
        self._rules: tuple[Rule, ...] = tuple(rules)

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    def matching(self, path: str) -> List[Rule]:
        """Rules whose pattern matches ``path``, in declaration order."""
        return [rule for rule in self._rules if rule.pattern.search(path)]

    def apply(self, path: str) -> Optional[Decision]:
        """Decide what to do with the file at the relative URL-path ``path``.

        Returns ``None`` if the rules exclude the file. Each field is taken from
        the last matching rule that sets it.
        """
        matches = self.matching(path)
        if not matches:
            return None

        include = False
        check_html_meta_robots = False
        replacing_rule: Optional[Rule] = None

        for rule in matches:
            if rule.include is not None:
                include = rule.include
            if rule.replace is not None:
                replacing_rule = rule
            if rule.check_html_meta_robots is not None:
                check_html_meta_robots = rule.check_html_meta_robots

        if not include:
            return None

        new_path = path
        if replacing_rule is not None:
            try:
                new_path = replacing_rule.pattern.sub(
                    replacing_rule.replace, path, count=replacing_rule.replace_limit
                )
            except (re.error, IndexError) as exc:
                raise RuleError(
                    f"couldn't apply replacement {replacing_rule.replace!r} to `{path}`: {exc}"
                ) from exc

        return Decision(
            path=new_path,
            check_html_meta_robots=check_html_meta_robots,
            replacing_rule=replacing_rule,
        )
