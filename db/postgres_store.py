import json
import os
import uuid
from typing import List, Optional

import asyncpg
from dotenv import load_dotenv

from models import DownloadJob, FileNode, JobStatus, validate_limits

load_dotenv()

SCHEMA = """
CREATE TABLE IF NOT EXISTS downloads (
    id               TEXT PRIMARY KEY,
    url              TEXT NOT NULL,
    status           TEXT NOT NULL DEFAULT 'pending',
    total_files      INTEGER NOT NULL DEFAULT 0,
    downloaded_files INTEGER NOT NULL DEFAULT 0,
    file_size        BIGINT NOT NULL DEFAULT 0,
    skipped_files    INTEGER NOT NULL DEFAULT 0,
    error            TEXT,
    zip_path         TEXT,
    files            JSONB NOT NULL DEFAULT '[]',
    crawl_depth      INTEGER NOT NULL DEFAULT 0,
    max_pages        INTEGER NOT NULL DEFAULT 50,
    total_pages      INTEGER NOT NULL DEFAULT 1,
    created_at       TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    completed_at     TIMESTAMPTZ,
    updated_at       TIMESTAMPTZ NOT NULL DEFAULT NOW()
)
"""

UPDATABLE = (
    "url", "status", "total_files", "downloaded_files", "file_size", "skipped_files",
    "error", "zip_path", "files", "crawl_depth", "max_pages", "total_pages", "completed_at",
)


def row_to_job(row) -> DownloadJob:
    files = row["files"]
    if isinstance(files, str):
        files = json.loads(files or "[]")

    return DownloadJob(
        id=row["id"],
        url=row["url"],
        status=JobStatus(row["status"]),
        total_files=row["total_files"],
        downloaded_files=row["downloaded_files"],
        file_size=row["file_size"],
        skipped_files=row["skipped_files"],
        error=row["error"],
        zip_path=row["zip_path"],
        files=[FileNode.from_dict(x) for x in files or []],
        crawl_depth=row["crawl_depth"],
        max_pages=row["max_pages"],
        total_pages=row["total_pages"],
        created_at=row["created_at"],
        completed_at=row["completed_at"],
    )


def _to_db_value(name: str, value):
    if name == "files":
        return json.dumps([f.to_dict() if isinstance(f, FileNode) else f for f in value or []])
    if name == "status":
        return JobStatus(value).value
    return value


class PostgresJobStore:
    def __init__(self, dsn: Optional[str] = None):
        self.dsn = dsn or os.environ["DATABASE_URL"]
        self.pool = None

    # -------------------- CONNECTION --------------------

    async def connect(self):
        if self.pool is None:
            self.pool = await asyncpg.create_pool(self.dsn)
            async with self.pool.acquire() as con:
                await con.execute(SCHEMA)

    async def close(self):
        if self.pool is not None:
            await self.pool.close()
            self.pool = None

    # -------------------- JOBS --------------------

    async def create(self, url: str, crawl_depth: int = 0, max_pages: int = 50) -> DownloadJob:
        validate_limits(crawl_depth, max_pages)
        q = """
            INSERT INTO downloads (id, url, crawl_depth, max_pages, status)
            VALUES ($1, $2, $3, $4, 'pending')
            RETURNING *
            """
        async with self.pool.acquire() as con:
            row = await con.fetchrow(q, str(uuid.uuid4()), url, crawl_depth, max_pages)
        return row_to_job(row)

    async def get(self, job_id: str) -> Optional[DownloadJob]:
        async with self.pool.acquire() as con:
            row = await con.fetchrow("SELECT * FROM downloads WHERE id = $1", job_id)
        return row_to_job(row) if row else None

    async def list(self) -> List[DownloadJob]:
        async with self.pool.acquire() as con:
            rows = await con.fetch("SELECT * FROM downloads ORDER BY created_at DESC")
        return [row_to_job(r) for r in rows]

    async def update(self, job_id: str, **fields) -> Optional[DownloadJob]:
        unknown = set(fields) - set(UPDATABLE)
        if unknown:
            raise ValueError(f"cannot update {', '.join(sorted(unknown))}")
        if not fields:
            return await self.get(job_id)

        names = list(fields)
        assignments = ", ".join(
            f"{name} = ${i}::jsonb" if name == "files" else f"{name} = ${i}"
            for i, name in enumerate(names, start=2)
        )
        q = f"UPDATE downloads SET {assignments}, updated_at = NOW() WHERE id = $1 RETURNING *"
        values = [_to_db_value(n, fields[n]) for n in names]

        async with self.pool.acquire() as con:
            row = await con.fetchrow(q, job_id, *values)
        return row_to_job(row) if row else None

    async def delete(self, job_id: str) -> bool:
        async with self.pool.acquire() as con:
            result = await con.execute("DELETE FROM downloads WHERE id = $1", job_id)
        return result.endswith(" 1")

    async def fail_stale_jobs(self) -> int:
        """Marks jobs left 'downloading' by a previous process as failed."""
        q = """
            UPDATE downloads
            SET status     = 'error',
                error      = 'Interrupted by server restart',
                updated_at = NOW()
            WHERE status = 'downloading'
            """
        async with self.pool.acquire() as con:
            result = await con.execute(q)
        return int(result.split()[-1])
