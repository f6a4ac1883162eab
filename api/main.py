import logging
import os
from contextlib import asynccontextmanager
from typing import Optional
from urllib.parse import urlsplit

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.responses import FileResponse
from pydantic import BaseModel, Field, HttpUrl

from config import Settings, get_settings
from db.job_store import JobStore
from db.memory_store import MemoryJobStore
from models import MAX_CRAWL_DEPTH, MAX_PAGES, MIN_CRAWL_DEPTH, MIN_PAGES
from workers.download_service import DownloadService

logger = logging.getLogger("api")


class CreateDownloadRequest(BaseModel):
    url: HttpUrl
    crawl_depth: int = Field(default=0, ge=MIN_CRAWL_DEPTH, le=MAX_CRAWL_DEPTH)
    max_pages: int = Field(default=50, ge=MIN_PAGES, le=MAX_PAGES)


def _archive_name(url: str) -> str:
    host = urlsplit(url).hostname
    return f"{host}.zip" if host else "website.zip"


def create_app(
    store: Optional[JobStore] = None,
    service: Optional[DownloadService] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _configure_logging()
        pg = None
        if app.state.store is None:
            if settings.database_url:
                from db.postgres_store import PostgresJobStore

                pg = PostgresJobStore(settings.database_url)
                await pg.connect()
                stale = await pg.fail_stale_jobs()
                if stale:
                    logger.warning("[API] marked %d stale downloads as failed", stale)
                app.state.store = pg
            else:
                app.state.store = MemoryJobStore()
        if app.state.service is None:
            app.state.service = DownloadService(app.state.store, settings=settings)

        try:
            yield
        finally:
            await app.state.service.shutdown()
            if pg is not None:
                await pg.close()

    app = FastAPI(title="Website Downloader API", lifespan=lifespan)
    app.state.store = store
    app.state.service = service

    @app.get("/api/downloads")
    async def list_downloads(request: Request):
        jobs = await request.app.state.store.list()
        return [j.to_dict() for j in jobs]

    @app.post("/api/downloads", status_code=201)
    async def create_download(req: CreateDownloadRequest, request: Request):
        store = request.app.state.store
        job = await store.create(str(req.url), req.crawl_depth, req.max_pages)
        await request.app.state.service.start(job.id)
        logger.info("[API] created download %s for %s", job.id, job.url)
        return job.to_dict()

    @app.get("/api/downloads/{job_id}")
    async def get_download(job_id: str, request: Request):
        job = await request.app.state.store.get(job_id)
        if job is None:
            raise HTTPException(status_code=404, detail="Download not found")
        return job.to_dict()

    @app.get("/api/downloads/{job_id}/zip")
    async def download_zip(job_id: str, request: Request):
        job = await request.app.state.store.get(job_id)
        if job is None or not job.zip_path or not os.path.exists(job.zip_path):
            raise HTTPException(status_code=404, detail="ZIP file not found")
        return FileResponse(job.zip_path, media_type="application/zip", filename=_archive_name(job.url))

    @app.post("/api/downloads/{job_id}/cancel", status_code=202)
    async def cancel_download(job_id: str, request: Request):
        if not request.app.state.service.cancel(job_id):
            raise HTTPException(status_code=404, detail="No active download")
        return {"id": job_id, "cancelling": True}

    @app.delete("/api/downloads/{job_id}", status_code=204)
    async def delete_download(job_id: str, request: Request):
        request.app.state.service.cancel(job_id)
        if not await request.app.state.store.delete(job_id):
            raise HTTPException(status_code=404, detail="Download not found")
        return Response(status_code=204)

    return app


def _configure_logging():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


app = create_app()


if __name__ == "__main__":
    import uvicorn

    s = get_settings()
    uvicorn.run("api.main:app", host=s.api_host, port=s.api_port)
