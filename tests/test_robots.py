import pytest

from sitemap_from_files.errors import RobotsError
from sitemap_from_files.robots import RobotsFilter

ROBOTS = b"""\
User-agent: googlebot
Disallow: /

User-agent: *
Disallow: /secret/
Allow: /secret/public.html
Disallow: /*.pdf$
"""


def test_filter_without_content_allows_everything():
    robots = RobotsFilter()
    assert not robots.active
    assert robots.allowed("/anything.html")


def test_disallowed_subtree():
    robots = RobotsFilter.parse(ROBOTS)
    assert robots.active
    assert not robots.allowed("/secret/secrets.html")
    assert not robots.allowed("/secret/deeper/file.txt")
    assert robots.allowed("/index.html")
    assert robots.allowed("/secretive.html")


def test_longest_match_wins():
    robots = RobotsFilter.parse(ROBOTS)
    assert robots.allowed("/secret/public.html")


def test_wildcard_and_end_anchor():
    robots = RobotsFilter.parse(ROBOTS)
    assert not robots.allowed("/docs/manual.pdf")
    assert robots.allowed("/docs/manual.pdf.html")


def test_allow_wins_a_tie():
    robots = RobotsFilter.parse(b"User-agent: *\nDisallow: /page\nAllow: /page\n")
    assert robots.allowed("/page.html")


def test_empty_disallow_allows_everything():
    robots = RobotsFilter.parse(b"User-agent: *\nDisallow:\n")
    assert robots.allowed("/secret/secrets.html")


def test_groups_for_other_agents_are_ignored():
    robots = RobotsFilter.parse(b"User-agent: googlebot\nDisallow: /\n")
    assert robots.allowed("/index.html")


def test_percent_encoded_paths_match():
    robots = RobotsFilter.parse(b"User-agent: *\nDisallow: /my files/\n")
    assert not robots.allowed("/my%20files/a.html")


def test_invalid_content_is_fatal():
    with pytest.raises(RobotsError, match="invalid"):
        RobotsFilter.parse(b"User-agent: *\nDisallow: /\xff\xfe\n")


def test_missing_file_means_no_restrictions(tmp_path):
    robots = RobotsFilter.for_root_dir(tmp_path)
    assert not robots.active
    assert robots.allowed("/secret/")


def test_unreadable_file_is_fatal(tmp_path):
    (tmp_path / "robots.txt").mkdir()
    with pytest.raises(RobotsError, match="couldn't read"):
        RobotsFilter.for_root_dir(tmp_path)


def test_from_file(tmp_path):
    (tmp_path / "robots.txt").write_bytes(ROBOTS)
    robots = RobotsFilter.for_root_dir(tmp_path)
    assert not robots.allowed("/secret/x.html")


@pytest.mark.parametrize(
    "content, path",
    [
        (b"User-agent: *\nDisallow: /a/\n\nDisallow: /b/\n", "/b/x.html"),
        (b"User-agent: *\n\nDisallow: /secret/\n", "/secret/x.html"),
        (b"User-agent: *\nDisallow: /a/\n\nUser-agent: *\nDisallow: /b/\n", "/b/x.html"),
        (b"User-agent: *\n# private area\nDisallow: /b/ # trailing comment\n", "/b/x.html"),
        (b"User-agent: googlebot\nUser-agent: *\nDisallow: /b/\n", "/b/x.html"),
    ],
)
def test_blank_lines_comments_and_repeated_groups(content, path):
    robots = RobotsFilter.parse(content)
    assert not robots.allowed(path)
    assert robots.allowed("/elsewhere.html")


def test_rules_after_another_agent_group_are_not_applied():
    robots = RobotsFilter.parse(b"User-agent: *\nDisallow: /a/\nUser-agent: googlebot\nDisallow: /b/\n")
    assert not robots.allowed("/a/x.html")
    assert robots.allowed("/b/x.html")
