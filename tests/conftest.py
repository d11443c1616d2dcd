import os
import re
from pathlib import Path

import pytest

from sitemap_from_files.config import Config, Rule


def write_files(root: Path, files: dict) -> None:
    """``files`` maps relative paths to content or to ``(content, mtime_seconds)``."""
    for rel, spec in files.items():
        content, mtime = spec if isinstance(spec, tuple) else (spec, None)
        path = root.joinpath(*rel.split("/"))
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content.encode("utf-8") if isinstance(content, str) else content)
        if mtime is not None:
            ns = int(mtime * 1_000_000_000)
            os.utime(path, ns=(ns, ns))


def rule(match: str, **kwargs) -> Rule:
    return Rule(pattern=re.compile(match), **kwargs)


@pytest.fixture
def site(tmp_path):
    root = tmp_path / "site"
    root.mkdir()
    return root


@pytest.fixture
def make_config(site):
    def _make(rules=None, root_url="https://example.com/", sitemap_path=None):
        return Config(
            root_dir=site,
            root_url=root_url,
            sitemap_path=sitemap_path,
            rules=rules if rules is not None else [rule(".*", include=True)],
        )

    return _make
