from typing import List, Optional, Protocol

from models import DownloadJob


class JobStore(Protocol):
    """Repository for download job records.

    ``update`` replaces the whole record with a copy carrying the given
    fields, so readers always see either the old or the new version.
    """

    async def create(self, url: str, crawl_depth: int = 0, max_pages: int = 50) -> DownloadJob: ...

    async def get(self, job_id: str) -> Optional[DownloadJob]: ...

    async def list(self) -> List[DownloadJob]: ...

    async def update(self, job_id: str, **fields) -> Optional[DownloadJob]: ...

    async def delete(self, job_id: str) -> bool: ...
