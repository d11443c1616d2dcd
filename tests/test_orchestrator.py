import pytest
from lxml import etree

from sitemap_from_files.errors import ConfigError, RobotsError, ScanError, SitemapError, SitemapSizeError
from sitemap_from_files.orchestrator import build_sitemap, output_target, write_sitemap
from sitemap_from_files.sitemap import SITEMAP_NS

from conftest import rule, write_files

NS = {"sm": SITEMAP_NS}


def entries(data):
    root = etree.fromstring(data)
    return [
        (url.findtext("sm:loc", namespaces=NS), url.findtext("sm:lastmod", namespaces=NS))
        for url in root.findall("sm:url", NS)
    ]


def test_two_file_site(site, make_config):
    write_files(site, {
        "index.html": ("<html></html>", 42),
        "foo/bar.html": ("<html></html>", 101),
    })

    assert entries(build_sitemap(make_config())) == [
        ("https://example.com/foo/bar.html", "1970-01-01T00:01:41+00:00"),
        ("https://example.com/index.html", "1970-01-01T00:00:42+00:00"),
    ]


def test_robots_file_at_root_is_honored(site, make_config):
    write_files(site, {
        "robots.txt": "User-agent: *\nDisallow: /private/\n",
        "private/a.html": "a",
        "public/b.html": "b",
    })
    cfg = make_config(rules=[rule(r"\.html$", include=True)])
    assert [loc for loc, _ in entries(build_sitemap(cfg))] == ["https://example.com/public/b.html"]


def test_invalid_robots_file_is_fatal(site, make_config):
    write_files(site, {"robots.txt": b"\xff\xfe\x00", "a.html": "a"})
    with pytest.raises(RobotsError, match="robots.txt"):
        build_sitemap(make_config())


def test_non_base_root_url_is_fatal(site, make_config):
    write_files(site, {"a.html": "a"})
    with pytest.raises(ConfigError, match="base URL"):
        build_sitemap(make_config(root_url="mailto:someone@example.com"))


def test_url_ceiling(site, make_config):
    write_files(site, {f"{i}.html": "x" for i in range(5)})
    assert len(entries(build_sitemap(make_config(), max_urls=5))) == 5
    with pytest.raises(ScanError):
        build_sitemap(make_config(), max_urls=4)


def test_byte_ceiling(site, make_config):
    write_files(site, {"a.html": "x"})
    with pytest.raises(SitemapSizeError):
        build_sitemap(make_config(), max_bytes=10)


def test_output_target(site, make_config, tmp_path):
    cfg = make_config(sitemap_path=tmp_path / "sitemap.xml")
    assert output_target(cfg) == tmp_path / "sitemap.xml"
    assert output_target(cfg, "-") is None
    assert output_target(cfg, "other.xml").name == "other.xml"
    assert output_target(make_config()) is None


def test_write_sitemap_to_file(tmp_path):
    target = tmp_path / "sitemap.xml"
    write_sitemap(b"<urlset/>", target)
    assert target.read_bytes() == b"<urlset/>"


def test_write_sitemap_failure(tmp_path):
    with pytest.raises(SitemapError, match="couldn't write sitemap file"):
        write_sitemap(b"<urlset/>", tmp_path / "missing" / "sitemap.xml")
