import dataclasses
from typing import Dict, List, Optional

from models import DownloadJob, validate_limits

_READ_ONLY = {"id", "created_at"}


class MemoryJobStore:
    """Process-local job registry. Create one per app and inject it."""

    def __init__(self):
        self._jobs: Dict[str, DownloadJob] = {}

    async def create(self, url: str, crawl_depth: int = 0, max_pages: int = 50) -> DownloadJob:
        validate_limits(crawl_depth, max_pages)
        job = DownloadJob(url=url, crawl_depth=crawl_depth, max_pages=max_pages)
        self._jobs[job.id] = job
        return job

    async def get(self, job_id: str) -> Optional[DownloadJob]:
        return self._jobs.get(job_id)

    async def list(self) -> List[DownloadJob]:
        return sorted(self._jobs.values(), key=lambda j: j.created_at, reverse=True)

    async def update(self, job_id: str, **fields) -> Optional[DownloadJob]:
        job = self._jobs.get(job_id)
        if job is None:
            return None
        bad = _READ_ONLY.intersection(fields)
        if bad:
            raise ValueError(f"cannot update {', '.join(sorted(bad))}")

        updated = dataclasses.replace(job, **fields)
        self._jobs[job_id] = updated
        return updated

    async def delete(self, job_id: str) -> bool:
        return self._jobs.pop(job_id, None) is not None
