import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional

from config import Settings, get_settings
from crawler.crawler_core import Crawler
from crawler.errors import (
    DownloadCancelled,
    DownloadFinishedError,
    DownloadInProgressError,
    DownloadNotFoundError,
)
from crawler.http_fetcher import HttpFetcher
from crawler.progress import ProgressReporter
from crawler.resource_downloader import ResourceDownloader, dedupe_resources
from crawler.url_classifier import DEFAULT_SCOPE_RULES, ScopeRule
from db.job_store import JobStore
from models import JobStatus
from storage.archive import create_archive
from storage.file_tree import build_file_tree
from storage.filesystem_store import FilesystemStore

logger = logging.getLogger(__name__)

DEFAULT_ERROR = "Failed to download website"


@dataclass
class ActiveDownload:
    task: "asyncio.Task[None]"
    cancel_event: asyncio.Event


class DownloadService:
    """Runs download jobs as background tasks, one task per job id.

    Cancellation only stops work that has not started yet; a fetch already
    in flight runs until it returns or times out.
    """

    def __init__(
        self,
        store: JobStore,
        files: Optional[FilesystemStore] = None,
        fetcher_factory: Optional[Callable[[], HttpFetcher]] = None,
        scope_rules: Iterable[ScopeRule] = DEFAULT_SCOPE_RULES,
        settings: Optional[Settings] = None,
    ):
        settings = settings or get_settings()
        self.store = store
        self.files = files or FilesystemStore(settings.downloads_dir)
        self.fetcher_factory = fetcher_factory or (
            lambda: HttpFetcher(timeout_s=settings.fetch_timeout_s, user_agent=settings.user_agent)
        )
        self.scope_rules = tuple(scope_rules)
        self._active: Dict[str, ActiveDownload] = {}

    def is_active(self, job_id: str) -> bool:
        return job_id in self._active

    async def start(self, job_id: str) -> "asyncio.Task[None]":
        job = await self.store.get(job_id)
        if job is None:
            raise DownloadNotFoundError(job_id)
        if job_id in self._active:
            raise DownloadInProgressError(f"Download {job_id} already in progress")
        if job.status != JobStatus.PENDING:
            raise DownloadFinishedError(f"Download {job_id} is {job.status.value}")

        cancel_event = asyncio.Event()
        task = asyncio.create_task(self._run(job_id, cancel_event), name=f"download-{job_id}")
        self._active[job_id] = ActiveDownload(task, cancel_event)
        return task

    def cancel(self, job_id: str) -> bool:
        active = self._active.get(job_id)
        if active is None:
            return False
        active.cancel_event.set()
        return True

    async def shutdown(self):
        tasks = [a.task for a in self._active.values()]
        for t in tasks:
            t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _run(self, job_id: str, cancel_event: asyncio.Event):
        reporter = ProgressReporter(self.store, job_id)
        try:
            await self._process(job_id, reporter, cancel_event)
        except asyncio.CancelledError:
            logger.error("[JOB] %s interrupted", job_id)
            await reporter.failed("Interrupted")
            raise
        except DownloadCancelled as e:
            logger.info("[JOB] %s cancelled", job_id)
            await reporter.failed(str(e))
        except Exception as e:
            logger.exception("[JOB] %s failed", job_id)
            await reporter.failed(str(e) or DEFAULT_ERROR)
        finally:
            self._active.pop(job_id, None)

    async def _process(self, job_id: str, reporter: ProgressReporter, cancel_event: asyncio.Event):
        job = await self.store.get(job_id)
        if job is None:
            return

        await reporter.started()
        self.files.ensure_dirs(job_id)
        logger.info("[JOB] %s started url=%s depth=%d max_pages=%d", job_id, job.url, job.crawl_depth, job.max_pages)

        fetcher = self.fetcher_factory()
        await fetcher.open()
        try:
            crawler = Crawler(job, fetcher, self.files, reporter, self.scope_rules, cancel_event)
            result = await crawler.crawl()

            resources = dedupe_resources(result.resources)
            await reporter.discovery_finished(
                total_files=len(result.written) + len(resources),
                total_pages=len(result.visited),
            )

            downloader = ResourceDownloader(job_id, fetcher, self.files, reporter, cancel_event)
            await downloader.download(resources, result.written, result.sizes)
        finally:
            await fetcher.close()

        tree = build_file_tree(result.written, result.sizes)
        zip_path = await create_archive(self.files.job_dir(job_id), self.files.archive_path(job_id))

        await reporter.completed(tree, zip_path)
        logger.info(
            "[JOB] %s completed pages=%d files=%d skipped=%d bytes=%d",
            job_id, len(result.visited), reporter.downloaded_files, reporter.skipped_files, reporter.file_size,
        )
