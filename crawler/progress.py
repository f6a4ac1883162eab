from typing import List

from db.job_store import JobStore
from models import FileNode, JobStatus, utcnow


class ProgressReporter:
    """Keeps the running counters for one job and pushes them to its record."""

    def __init__(self, store: JobStore, job_id: str):
        self.store = store
        self.job_id = job_id
        self.downloaded_files = 0
        self.file_size = 0
        self.skipped_files = 0

    async def started(self):
        await self.store.update(self.job_id, status=JobStatus.DOWNLOADING)

    async def page_written(self, size: int, total_pages: int):
        self.downloaded_files += 1
        self.file_size += size
        await self.store.update(
            self.job_id,
            total_pages=total_pages,
            downloaded_files=self.downloaded_files,
            file_size=self.file_size,
        )

    async def resource_written(self, size: int):
        self.downloaded_files += 1
        self.file_size += size
        await self.store.update(
            self.job_id,
            downloaded_files=self.downloaded_files,
            file_size=self.file_size,
        )

    async def skipped(self):
        self.skipped_files += 1
        await self.store.update(self.job_id, skipped_files=self.skipped_files)

    async def discovery_finished(self, total_files: int, total_pages: int):
        await self.store.update(self.job_id, total_files=total_files, total_pages=total_pages)

    async def completed(self, files: List[FileNode], zip_path: str):
        await self.store.update(
            self.job_id,
            status=JobStatus.COMPLETED,
            files=files,
            zip_path=zip_path,
            completed_at=utcnow(),
        )

    async def failed(self, message: str):
        await self.store.update(self.job_id, status=JobStatus.ERROR, error=message)
