import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterable, List, Optional, Set

from models import DownloadJob, PageTask, Resource
from utils import decode_html
from storage.filesystem_store import FilesystemStore
from .errors import DownloadCancelled, FetchError
from .http_fetcher import HttpFetcher
from .link_extractor import LinkExtractor
from .progress import ProgressReporter
from .url_classifier import (
    DEFAULT_SCOPE_RULES,
    ScopeRule,
    is_downloadable_file,
    is_internal_url,
    is_media_file,
    normalize_url,
    page_filename,
    should_skip_url,
)

logger = logging.getLogger(__name__)

HTML_TYPES = ("text/html", "application/xhtml+xml")


def is_html(content_type: str) -> bool:
    ctype = (content_type or "").lower()
    return not ctype or any(t in ctype for t in HTML_TYPES)


@dataclass
class CrawlResult:
    written: List[str] = field(default_factory=list)
    sizes: Dict[str, int] = field(default_factory=dict)
    resources: List[Resource] = field(default_factory=list)
    visited: Set[str] = field(default_factory=set)


class Crawler:
    """Breadth-first page crawl for a single download job.

    Pages are fetched one at a time. Every fetched page contributes its
    resources to ``CrawlResult.resources``; links are only followed while the
    page depth is below ``job.crawl_depth``.
    """

    def __init__(
        self,
        job: DownloadJob,
        fetcher: HttpFetcher,
        store: FilesystemStore,
        reporter: ProgressReporter,
        scope_rules: Iterable[ScopeRule] = DEFAULT_SCOPE_RULES,
        cancel_event: Optional[asyncio.Event] = None,
    ):
        self.job = job
        self.fetcher = fetcher
        self.store = store
        self.reporter = reporter
        self.scope_rules = tuple(scope_rules)
        self.cancel_event = cancel_event or asyncio.Event()
        self.extractor = LinkExtractor(job.url, self.scope_rules)

        self._page_index = 0
        self._assigned_names: Set[str] = set()

    def _in_scope(self, url: str) -> bool:
        return is_internal_url(self.job.url, url, self.scope_rules)

    def _next_filename(self, url: str) -> str:
        self._page_index += 1
        name = page_filename(url, self._page_index)
        if name in self._assigned_names:
            stem = name[: -len(".html")] if name.endswith(".html") else name
            suffix = self._page_index
            name = f"{stem}-{suffix}.html"
            while name in self._assigned_names:
                suffix += 1
                name = f"{stem}-{suffix}.html"
        self._assigned_names.add(name)
        return name

    def _check_cancelled(self):
        if self.cancel_event.is_set():
            raise DownloadCancelled("Download cancelled")

    async def crawl(self) -> CrawlResult:
        result = CrawlResult()
        visited = result.visited
        max_pages = self.job.max_pages

        seed_name = page_filename(self.job.url, 0)
        self._assigned_names.add(seed_name)
        queue: Deque[PageTask] = deque([PageTask(self.job.url, 0, seed_name)])

        while queue and len(visited) < max_pages:
            self._check_cancelled()

            task = queue.popleft()
            normalized = normalize_url(task.url)
            if normalized in visited:
                continue
            visited.add(normalized)

            logger.info("[CRAWL] page %d/%d depth=%d %s", len(visited), max_pages, task.depth, task.url)
            try:
                data, ctype = await self.fetcher.fetch(task.url)
            except FetchError as e:
                logger.warning("[CRAWL] failed page %s: %s", task.url, e.reason)
                await self.reporter.skipped()
                continue

            html = decode_html(data, ctype) if is_html(ctype) else ""
            extracted = self.extractor.extract(task.url, html) if html else None
            if extracted:
                result.resources.extend(extracted.resources)

            size = await self.store.write_file(self.job.id, task.filename, data)
            result.written.append(task.filename)
            result.sizes[task.filename] = size
            await self.reporter.page_written(size, total_pages=len(visited))

            if extracted and task.depth < self.job.crawl_depth:
                for link in extracted.links:
                    if should_skip_url(link) or is_downloadable_file(link) or is_media_file(link):
                        continue
                    if not self._in_scope(link):
                        continue
                    if normalize_url(link) in visited:
                        continue
                    queue.append(PageTask(link, task.depth + 1, self._next_filename(link)))

        if queue:
            logger.info("[CRAWL] page budget reached, %d queued pages dropped", len(queue))
        return result
