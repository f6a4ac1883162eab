from typing import Callable, Dict, List, Optional

import pytest

from config import Settings
from crawler.errors import FetchError
from db.memory_store import MemoryJobStore
from storage.filesystem_store import FilesystemStore
from workers.download_service import DownloadService


class FakeFetcher:
    """Serves canned responses keyed by exact URL.

    str values are served as HTML, bytes as binary, tuples as (bytes, content_type)
    and exceptions are raised. Unknown URLs behave like a 404.
    """

    def __init__(self, responses: Dict[str, object], on_fetch: Optional[Callable[[str], None]] = None):
        self.responses = responses
        self.on_fetch = on_fetch
        self.calls: List[str] = []
        self.opened = False
        self.closed = False

    async def open(self):
        self.opened = True

    async def close(self):
        self.closed = True

    async def fetch(self, url: str):
        self.calls.append(url)
        if self.on_fetch:
            self.on_fetch(url)

        value = self.responses.get(url)
        if value is None:
            raise FetchError(url, "HTTP 404")
        if isinstance(value, Exception):
            raise value
        if isinstance(value, tuple):
            return value
        if isinstance(value, str):
            return value.encode("utf-8"), "text/html; charset=utf-8"
        return value, "application/octet-stream"


@pytest.fixture
def store():
    return MemoryJobStore()


@pytest.fixture
def files(tmp_path):
    return FilesystemStore(str(tmp_path / "downloads"))


@pytest.fixture
def make_service(store, files, tmp_path):
    def _make(fetcher, files_store=None):
        return DownloadService(
            store,
            files=files_store or files,
            fetcher_factory=lambda: fetcher,
            settings=Settings(downloads_dir=str(tmp_path / "downloads")),
        )

    return _make


@pytest.fixture
def run_job(store, make_service):
    async def _run(fetcher, url, crawl_depth=0, max_pages=50, files_store=None):
        job = await store.create(url, crawl_depth=crawl_depth, max_pages=max_pages)
        service = make_service(fetcher, files_store)
        task = await service.start(job.id)
        await task
        return await store.get(job.id)

    return _run
