import pytest

from crawler.url_classifier import (
    PathScopedHost,
    is_downloadable_file,
    is_internal_url,
    is_media_file,
    normalize_url,
    page_filename,
    resolve_url,
    resource_filename,
    should_skip_url,
)

URLS = [
    "https://Example.COM/a/b/#frag",
    "https://example.com",
    "https://example.com/",
    "https://example.com/x//",
    "http://user@Host.example:8080/p/?q=1#z",
    "https://example.com/path?x=1&y=2",
    "not a url",
]


@pytest.mark.parametrize("url", URLS)
def test_normalize_is_idempotent(url):
    once = normalize_url(url)
    assert normalize_url(once) == once


def test_normalize_drops_fragment_and_trailing_slash():
    assert normalize_url("https://example.com/docs#intro") == normalize_url("https://example.com/docs")
    assert normalize_url("https://example.com/docs/") == normalize_url("https://example.com/docs")
    assert normalize_url("https://example.com/docs/") == "https://example.com/docs"


def test_normalize_keeps_root_and_query():
    assert normalize_url("https://example.com") == "https://example.com/"
    assert normalize_url("https://example.com/") == "https://example.com/"
    assert normalize_url("https://example.com/s/?q=1") == "https://example.com/s?q=1"


def test_normalize_lowercases_host_only():
    assert normalize_url("https://EXAMPLE.com/CaseSensitive") == "https://example.com/CaseSensitive"


def test_internal_requires_same_origin():
    seed = "https://example.com/start"
    assert is_internal_url(seed, "https://example.com/other")
    assert is_internal_url(seed, "https://EXAMPLE.com:443/other")
    assert not is_internal_url(seed, "http://example.com/other")
    assert not is_internal_url(seed, "https://sub.example.com/other")
    assert not is_internal_url(seed, "https://example.com:8443/other")


def test_path_scoped_host_keeps_sub_site():
    seed = "https://sites.google.com/view/my-site/home"
    assert is_internal_url(seed, "https://sites.google.com/view/my-site/about")
    assert not is_internal_url(seed, "https://sites.google.com/view/other-site/home")


def test_scope_rules_are_pluggable():
    seed = "https://example.com/team-a/index"
    rules = [PathScopedHost("example.com", segments=1)]
    assert is_internal_url(seed, "https://example.com/team-a/docs", rules)
    assert not is_internal_url(seed, "https://example.com/team-b/docs", rules)
    assert is_internal_url(seed, "https://example.com/team-b/docs", [])


@pytest.mark.parametrize("href", [
    "mailto:someone@example.com",
    "JavaScript:void(0)",
    "tel:+123",
    "data:image/png;base64,AAAA",
    "#top",
    "",
    None,
])
def test_should_skip(href):
    assert should_skip_url(href)


def test_should_not_skip_regular_links():
    assert not should_skip_url("/about")
    assert not should_skip_url("https://example.com/page#section")


def test_file_classification():
    assert is_downloadable_file("https://example.com/files/Report.PDF")
    assert is_downloadable_file("https://example.com/data.csv?download=1")
    assert is_media_file("https://example.com/img/photo.JPG")
    assert is_media_file("https://example.com/clip.webm")
    assert not is_downloadable_file("https://example.com/page.html")
    assert not is_media_file("https://example.com/pdf/overview")


@pytest.mark.parametrize("ref,expected", [
    ("https://cdn.example.net/lib.js?v=3", "https://cdn.example.net/lib.js"),
    ("//cdn.example.net/lib.js", "https://cdn.example.net/lib.js"),
    ("/static/site.css#x", "https://example.com/static/site.css"),
    ("img/logo.png", "https://example.com/blog/img/logo.png"),
    ("../css/site.css", "https://example.com/css/site.css"),
    ("/a/../css/site.css", "https://example.com/css/site.css"),
])
def test_resolve_url(ref, expected):
    assert resolve_url("https://example.com/blog/post.html", ref) == expected


def test_resolve_url_drops_other_schemes():
    assert resolve_url("https://example.com/", "ftp://example.com/file") is None
    assert resolve_url("https://example.com/", "?only=query") is None


def test_resource_filename_preserves_directories():
    assert resource_filename("https://example.com/assets/css/site.css", "css") == "assets/css/site.css"
    assert resource_filename("https://example.com/logo.png", "images") == "logo.png"
    assert resource_filename("https://example.com/a/../../etc/passwd", "js") == "a/etc/passwd"


def test_resource_filename_synthesizes_unique_names():
    a = resource_filename("https://cdn-a.example.net/", "js")
    b = resource_filename("https://cdn-b.example.net/", "js")
    assert a.startswith("js/resource-")
    assert a != b


def test_page_filename():
    assert page_filename("https://example.com/anything", 0) == "index.html"
    assert page_filename("https://example.com/", 3) == "page-3.html"
    assert page_filename("https://example.com/docs/intro/", 1) == "pages/docs-intro.html"
    assert page_filename("https://example.com/about.html", 2) == "pages/about.html"
    assert page_filename("https://example.com/a b/c?d", 4) == "pages/a-b-c.html"
