"""URL normalization, scoping and classification for the site crawler.

Everything here is pure string work on ``urllib.parse`` results so it can be
used from the scheduler, the extractor and tests without any I/O.
"""
import posixpath
import re
from typing import Callable, Iterable, Optional, Sequence
from urllib.parse import SplitResult, urljoin, urlsplit, urlunsplit

from utils import hash_url, sanitize_segment

DOWNLOADABLE_EXTENSIONS = frozenset({
    "pdf", "doc", "docx", "xls", "xlsx", "ppt", "pptx",
    "zip", "rar", "7z", "tar", "gz",
    "txt", "csv", "json", "xml",
})

MEDIA_EXTENSIONS = frozenset({
    "jpg", "jpeg", "png", "gif", "svg", "webp", "ico", "bmp", "tiff",
    "mp4", "mp3", "avi", "mov", "wmv", "flv", "wav", "ogg", "webm",
})

SKIP_PREFIXES = ("mailto:", "javascript:", "tel:", "data:", "#")

DEFAULT_PORTS = {"http": 80, "https": 443}

_scheme_re = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")

ScopeRule = Callable[[SplitResult, SplitResult], bool]


def normalize_url(url: str) -> str:
    """Canonical form used for visited-set membership.

    Drops the fragment, lower-cases the host and strips trailing slashes from
    non-root paths. Unparsable input is returned unchanged.
    """
    try:
        parts = urlsplit(url)
        parts.port  # raises on a malformed port
    except ValueError:
        return url

    userinfo, sep, hostport = parts.netloc.rpartition("@")
    netloc = userinfo + sep + hostport.lower()

    path = parts.path
    if netloc and not path:
        path = "/"
    if path != "/":
        path = path.rstrip("/") or "/"

    return urlunsplit((parts.scheme, netloc, path, parts.query, ""))


def _origin(parts: SplitResult):
    scheme = parts.scheme.lower()
    return scheme, (parts.hostname or "").lower(), parts.port or DEFAULT_PORTS.get(scheme)


def _leading_segments(path: str, count: int) -> list:
    return [s for s in path.split("/") if s][:count]


class PathScopedHost:
    """Keeps a crawl inside one sub-site on hosts that serve many sites under
    path prefixes (e.g. ``sites.google.com/view/<site>``).

    Hosts other than ``host`` are always accepted.
    """

    def __init__(self, host: str, segments: int = 2):
        self.host = host.lower()
        self.segments = segments

    def applies_to(self, hostname: str) -> bool:
        hostname = (hostname or "").lower()
        return hostname == self.host or hostname.endswith("." + self.host)

    def __call__(self, seed: SplitResult, candidate: SplitResult) -> bool:
        if not self.applies_to(seed.hostname):
            return True
        return _leading_segments(seed.path, self.segments) == _leading_segments(candidate.path, self.segments)


DEFAULT_SCOPE_RULES: Sequence[ScopeRule] = (PathScopedHost("sites.google.com"),)


def is_internal_url(seed_url: str, candidate_url: str, scope_rules: Iterable[ScopeRule] = DEFAULT_SCOPE_RULES) -> bool:
    try:
        seed = urlsplit(seed_url)
        candidate = urlsplit(candidate_url)
        if _origin(seed) != _origin(candidate):
            return False
    except ValueError:
        return False
    return all(rule(seed, candidate) for rule in scope_rules)


def should_skip_url(href: Optional[str]) -> bool:
    lower = (href or "").strip().lower()
    return not lower or lower.startswith(SKIP_PREFIXES)


def _extension(url: str) -> str:
    try:
        path = urlsplit(url).path
    except ValueError:
        return ""
    return posixpath.splitext(path)[1].lower().lstrip(".")


def is_downloadable_file(url: str) -> bool:
    return _extension(url) in DOWNLOADABLE_EXTENSIONS


def is_media_file(url: str) -> bool:
    return _extension(url) in MEDIA_EXTENSIONS


def resolve_url(page_url: str, ref: str) -> Optional[str]:
    """Resolves ``ref`` against the page it appeared on.

    Query string and fragment are stripped first. Returns None for refs that
    cannot be fetched over http(s).
    """
    clean = (ref or "").strip().split("#", 1)[0].split("?", 1)[0]
    if not clean:
        return None

    if clean.lower().startswith(("http://", "https://")):
        return clean

    try:
        page = urlsplit(page_url)
        if clean.startswith("//"):
            return f"{page.scheme}:{clean}"
        if _scheme_re.match(clean):
            return None
        if clean.startswith("/"):
            return urljoin(f"{page.scheme}://{page.netloc}/", clean)

        directory = page.path[: page.path.rfind("/") + 1] or "/"
        return urljoin(f"{page.scheme}://{page.netloc}{directory}", clean)
    except ValueError:
        return None


def resource_filename(url: str, kind: str) -> str:
    """Relative output path for a resource, mirroring its URL path."""
    try:
        path = urlsplit(url).path
    except ValueError:
        path = ""

    segments = [s for s in path.split("/") if s and s not in (".", "..")]
    if not segments:
        return f"{kind}/resource-{hash_url(url)[:12]}"
    return "/".join(segments)


def page_filename(url: str, index: int) -> str:
    if index == 0:
        return "index.html"

    try:
        path = urlsplit(url).path.strip("/")
    except ValueError:
        path = ""

    cleaned = sanitize_segment(path.replace("/", "-"))
    if not cleaned.strip("-."):
        return f"page-{index}.html"

    if cleaned.lower().endswith((".html", ".htm")):
        return f"pages/{cleaned}"
    return f"pages/{cleaned}.html"
