import logging
import os

import aiofiles

logger = logging.getLogger(__name__)


class FilesystemStore:
    """
    Output layout:
      <base_dir>/<job_id>/...      pages and resources
      <base_dir>/<job_id>.zip      packaged archive
    """

    def __init__(self, base_dir: str = "downloads"):
        self.base_dir = base_dir

    def job_dir(self, job_id: str) -> str:
        return os.path.join(self.base_dir, job_id)

    def archive_path(self, job_id: str) -> str:
        return os.path.join(self.base_dir, f"{job_id}.zip")

    def ensure_dirs(self, job_id: str):
        os.makedirs(self.job_dir(job_id), exist_ok=True)

    def _target(self, job_id: str, rel_path: str) -> str:
        base = os.path.abspath(self.job_dir(job_id))
        target = os.path.abspath(os.path.join(base, *rel_path.split("/")))
        if os.path.commonpath([base, target]) != base:
            raise ValueError(f"refusing to write outside job directory: {rel_path}")
        return target

    async def write_file(self, job_id: str, rel_path: str, data: bytes) -> int:
        """Writes ``data`` at ``rel_path`` under the job directory. OSErrors propagate."""
        target = self._target(job_id, rel_path)
        os.makedirs(os.path.dirname(target), exist_ok=True)

        async with aiofiles.open(target, "wb") as f:
            await f.write(data)

        logger.debug("[STORE] wrote %d bytes -> %s", len(data), target)
        return len(data)
