import asyncio

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from config import Settings
from db.memory_store import MemoryJobStore


class StubService:
    def __init__(self):
        self.started = []
        self.cancelled = []
        self.active = set()

    async def start(self, job_id):
        self.started.append(job_id)
        self.active.add(job_id)

    def cancel(self, job_id):
        self.cancelled.append(job_id)
        return job_id in self.active

    async def shutdown(self):
        pass


@pytest.fixture
def store():
    return MemoryJobStore()


@pytest.fixture
def service():
    return StubService()


@pytest.fixture
def client(store, service, tmp_path):
    app = create_app(store=store, service=service, settings=Settings(downloads_dir=str(tmp_path)))
    with TestClient(app) as c:
        yield c


def test_create_download_schedules_processing(client, service):
    r = client.post("/api/downloads", json={"url": "https://example.com", "crawl_depth": 2, "max_pages": 10})

    assert r.status_code == 201
    body = r.json()
    assert body["status"] == "pending"
    assert body["crawl_depth"] == 2
    assert body["max_pages"] == 10
    assert service.started == [body["id"]]


@pytest.mark.parametrize("payload", [
    {"url": "not a url"},
    {"url": "https://example.com", "crawl_depth": 6},
    {"url": "https://example.com", "max_pages": 0},
    {"url": "https://example.com", "max_pages": 501},
])
def test_create_download_validation(client, payload, service):
    r = client.post("/api/downloads", json=payload)
    assert r.status_code == 422
    assert service.started == []


def test_get_and_list(client):
    a = client.post("/api/downloads", json={"url": "https://a.example.com"}).json()

    assert client.get(f"/api/downloads/{a['id']}").json()["url"].startswith("https://a.example.com")
    assert client.get("/api/downloads/nope").status_code == 404
    assert [j["id"] for j in client.get("/api/downloads").json()] == [a["id"]]


def test_download_zip(client, store, tmp_path):
    zip_file = tmp_path / "job.zip"
    zip_file.write_bytes(b"PK\x05\x06" + b"\x00" * 18)
    job = asyncio.run(store.create("https://example.com/docs"))

    assert client.get(f"/api/downloads/{job.id}/zip").status_code == 404

    asyncio.run(store.update(job.id, zip_path=str(zip_file)))
    r = client.get(f"/api/downloads/{job.id}/zip")

    assert r.status_code == 200
    assert r.content == zip_file.read_bytes()
    assert "example.com.zip" in r.headers["content-disposition"]


def test_cancel(client, service):
    job = client.post("/api/downloads", json={"url": "https://example.com"}).json()

    assert client.post(f"/api/downloads/{job['id']}/cancel").status_code == 202
    assert client.post("/api/downloads/unknown/cancel").status_code == 404


def test_delete(client, service):
    job = client.post("/api/downloads", json={"url": "https://example.com"}).json()

    assert client.delete(f"/api/downloads/{job['id']}").status_code == 204
    assert job["id"] in service.cancelled
    assert client.get(f"/api/downloads/{job['id']}").status_code == 404
    assert client.delete(f"/api/downloads/{job['id']}").status_code == 404
