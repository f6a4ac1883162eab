from dataclasses import dataclass, field
from typing import Iterable, List
from urllib.parse import urldefrag, urljoin

from bs4 import BeautifulSoup

from models import Resource
from .url_classifier import (
    DEFAULT_SCOPE_RULES,
    ScopeRule,
    is_downloadable_file,
    is_internal_url,
    is_media_file,
    resolve_url,
    resource_filename,
    should_skip_url,
)

# (css selector, attribute, kind used for fallback filenames)
EMBED_SELECTORS = (
    ('link[rel~="stylesheet"][href]', "href", "css"),
    ("script[src]", "src", "js"),
    ("img[src]", "src", "images"),
)


@dataclass
class ExtractedPage:
    resources: List[Resource] = field(default_factory=list)
    links: List[str] = field(default_factory=list)


class LinkExtractor:
    """Collects embedded resources, linked attachments and outbound links."""

    def __init__(self, seed_url: str, scope_rules: Iterable[ScopeRule] = DEFAULT_SCOPE_RULES):
        self.seed_url = seed_url
        self.scope_rules = tuple(scope_rules)

    def extract(self, page_url: str, html: str) -> ExtractedPage:
        soup = BeautifulSoup(html or "", "html.parser")
        out = ExtractedPage()

        for selector, attr, kind in EMBED_SELECTORS:
            for tag in soup.select(selector):
                ref = tag.get(attr)
                if should_skip_url(ref):
                    continue
                url = resolve_url(page_url, ref)
                if url:
                    out.resources.append(Resource(url=url, filename=resource_filename(url, kind)))

        seen = set()
        for a in soup.select("a[href]"):
            href = a.get("href")
            if should_skip_url(href):
                continue
            url = resolve_url(page_url, href)
            if url and (is_downloadable_file(url) or is_media_file(url)):
                if is_internal_url(self.seed_url, url, self.scope_rules):
                    out.resources.append(Resource(url=url, filename=resource_filename(url, "attachments")))
                continue

            try:
                link, _ = urldefrag(urljoin(page_url, href.strip()))
            except ValueError:
                continue
            if link not in seen:
                seen.add(link)
                out.links.append(link)

        return out
