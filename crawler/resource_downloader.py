import asyncio
import logging
from typing import Dict, Iterable, List, Optional

from models import Resource
from storage.filesystem_store import FilesystemStore
from .errors import DownloadCancelled, FetchError
from .http_fetcher import HttpFetcher
from .progress import ProgressReporter

logger = logging.getLogger(__name__)


def dedupe_resources(resources: Iterable[Resource]) -> List[Resource]:
    """One entry per URL; the first filename assigned to a URL wins."""
    unique: Dict[str, Resource] = {}
    for r in resources:
        if r.url not in unique:
            unique[r.url] = r
    return list(unique.values())


class ResourceDownloader:
    def __init__(
        self,
        job_id: str,
        fetcher: HttpFetcher,
        store: FilesystemStore,
        reporter: ProgressReporter,
        cancel_event: Optional[asyncio.Event] = None,
    ):
        self.job_id = job_id
        self.fetcher = fetcher
        self.store = store
        self.reporter = reporter
        self.cancel_event = cancel_event or asyncio.Event()

    async def download(self, resources: List[Resource], written: List[str], sizes: Dict[str, int]):
        """Fetches each resource in order, appending successful paths to ``written``."""
        for i, resource in enumerate(resources, 1):
            if self.cancel_event.is_set():
                raise DownloadCancelled("Download cancelled")

            try:
                data, _ = await self.fetcher.fetch(resource.url)
            except FetchError as e:
                logger.warning("[RESOURCE] failed %s: %s", resource.url, e.reason)
                await self.reporter.skipped()
                continue

            size = await self.store.write_file(self.job_id, resource.filename, data)
            written.append(resource.filename)
            sizes[resource.filename] = size
            logger.debug("[RESOURCE] %d/%d %s -> %s", i, len(resources), resource.url, resource.filename)
            await self.reporter.resource_written(size)
