import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; WebsiteDownloader/1.0)"


@dataclass(frozen=True)
class Settings:
    downloads_dir: str = "downloads"
    fetch_timeout_s: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    database_url: Optional[str] = None
    api_host: str = "127.0.0.1"
    api_port: int = 8000


def get_settings() -> Settings:
    """Reads settings from the environment (and .env, if present)."""
    return Settings(
        downloads_dir=os.environ.get("DOWNLOADS_DIR", os.path.join(os.getcwd(), "downloads")),
        fetch_timeout_s=float(os.environ.get("FETCH_TIMEOUT_S", "30")),
        user_agent=os.environ.get("USER_AGENT", DEFAULT_USER_AGENT),
        database_url=os.environ.get("DATABASE_URL") or None,
        api_host=os.environ.get("API_HOST", "127.0.0.1"),
        api_port=int(os.environ.get("API_PORT", "8000")),
    )
