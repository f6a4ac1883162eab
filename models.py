import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

MIN_CRAWL_DEPTH = 0
MAX_CRAWL_DEPTH = 5
MIN_PAGES = 1
MAX_PAGES = 500


class JobStatus(str, Enum):
    PENDING = "pending"
    DOWNLOADING = "downloading"
    COMPLETED = "completed"
    ERROR = "error"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_limits(crawl_depth: int, max_pages: int):
    if not MIN_CRAWL_DEPTH <= crawl_depth <= MAX_CRAWL_DEPTH:
        raise ValueError(f"crawl_depth must be between {MIN_CRAWL_DEPTH} and {MAX_CRAWL_DEPTH}")
    if not MIN_PAGES <= max_pages <= MAX_PAGES:
        raise ValueError(f"max_pages must be between {MIN_PAGES} and {MAX_PAGES}")


@dataclass
class FileNode:
    name: str
    path: str
    type: str  # "file" | "folder"
    size: Optional[int] = None
    children: Optional[List["FileNode"]] = None

    def to_dict(self) -> dict:
        out = {"name": self.name, "path": self.path, "type": self.type}
        if self.size is not None:
            out["size"] = self.size
        if self.children is not None:
            out["children"] = [c.to_dict() for c in self.children]
        return out

    @classmethod
    def from_dict(cls, raw: dict) -> "FileNode":
        children = raw.get("children")
        return cls(
            name=raw["name"],
            path=raw["path"],
            type=raw["type"],
            size=raw.get("size"),
            children=[cls.from_dict(c) for c in children] if children is not None else None,
        )


@dataclass
class DownloadJob:
    url: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    crawl_depth: int = 0
    max_pages: int = 50

    status: JobStatus = JobStatus.PENDING
    downloaded_files: int = 0
    total_files: int = 0
    total_pages: int = 1
    file_size: int = 0
    skipped_files: int = 0

    error: Optional[str] = None
    files: List[FileNode] = field(default_factory=list)
    zip_path: Optional[str] = None

    created_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "url": self.url,
            "crawl_depth": self.crawl_depth,
            "max_pages": self.max_pages,
            "status": self.status.value,
            "downloaded_files": self.downloaded_files,
            "total_files": self.total_files,
            "total_pages": self.total_pages,
            "file_size": self.file_size,
            "skipped_files": self.skipped_files,
            "error": self.error,
            "files": [f.to_dict() for f in self.files],
            "zip_path": self.zip_path,
            "created_at": self.created_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }


@dataclass
class PageTask:
    url: str
    depth: int
    filename: str


@dataclass
class Resource:
    url: str
    filename: str
