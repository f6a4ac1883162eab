import asyncio
from typing import Optional, Tuple

import aiohttp

from config import DEFAULT_USER_AGENT
from .errors import FetchError


class HttpFetcher:
    """One aiohttp session per job; requests are issued one at a time by the caller."""

    def __init__(
        self,
        timeout_s: float = 30,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        self._timeout = aiohttp.ClientTimeout(total=timeout_s)
        self._session: Optional[aiohttp.ClientSession] = None
        self._ua = user_agent

    async def open(self):
        if self._session is None or self._session.closed:
            headers = {"User-Agent": self._ua}
            self._session = aiohttp.ClientSession(timeout=self._timeout, headers=headers)

    async def close(self):
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def fetch(self, url: str) -> Tuple[bytes, str]:
        """
        Returns (data_bytes, content_type).
        Raises FetchError on network errors, timeouts and non-2xx responses.
        """
        await self.open()
        assert self._session is not None

        try:
            async with self._session.get(url, allow_redirects=True) as resp:
                if resp.status >= 400:
                    raise FetchError(url, f"HTTP {resp.status}")
                ctype = resp.headers.get("Content-Type", "") or ""
                data = await resp.read()
                return data, ctype
        except asyncio.TimeoutError:
            raise FetchError(url, "timed out") from None
        except (aiohttp.ClientError, ValueError) as e:
            raise FetchError(url, str(e) or type(e).__name__) from e
