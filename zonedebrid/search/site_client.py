"""aiohttp + BeautifulSoup page fetcher for the indexing site."""

from __future__ import annotations

import asyncio
import time
from typing import Callable, Dict

import aiohttp
from bs4 import BeautifulSoup

from zonedebrid import logger
from zonedebrid.config import SiteConfig
from zonedebrid.search.protocols import HtmlFetcher

ACCEPT_LANGUAGE = "fr-FR,fr;q=0.9,en-US;q=0.8,en;q=0.7"


class SiteClient(HtmlFetcher):
    """Fetches site pages with browser-like headers and parses them."""

    def __init__(
        self,
        site: SiteConfig,
        referer: Callable[[], str] | None = None,
    ):
        self.site = site
        self.timeout = site.timeout
        self._referer = referer
        self._session: aiohttp.ClientSession | None = None
        self._session_lock = asyncio.Lock()

    async def fetch_html(self, url: str) -> BeautifulSoup:
        """GET ``url`` and return the parsed document. Non-2xx raises."""
        status, text, elapsed_ms = await self._get_text(url)
        logger.get_logger().api_response(status, f"<{len(text)} chars of HTML>", elapsed_ms)
        return BeautifulSoup(text, "html.parser")

    async def _get_text(self, url: str) -> tuple[int, str, float]:
        logger.get_logger().api_request("GET", url)
        request_start = time.time()
        session = await self._ensure_session()
        async with session.get(url, headers=self._request_headers()) as response:
            if response.status >= 400:
                text = await response.text()
                raise aiohttp.ClientResponseError(
                    request_info=response.request_info,
                    history=response.history,
                    status=response.status,
                    message=text[:200],
                    headers=response.headers,
                )
            text = await response.text()
            elapsed_ms = (time.time() - request_start) * 1000
            return response.status, text, elapsed_ms

    def _request_headers(self) -> Dict[str, str]:
        if self._referer is None:
            return {}
        return {"Referer": self._referer()}

    async def _ensure_session(self) -> aiohttp.ClientSession:
        session = self._session
        if session is not None and not session.closed:
            return session

        async with self._session_lock:
            session = self._session
            if session is None or session.closed:
                timeout = aiohttp.ClientTimeout(total=self.timeout)
                self._session = aiohttp.ClientSession(
                    headers=self._get_headers(),
                    timeout=timeout,
                )
            return self._session

    def _get_headers(self) -> Dict[str, str]:
        return {"User-Agent": self.site.user_agent, "Accept-Language": ACCEPT_LANGUAGE}

    async def close(self) -> None:
        """Close any open connections."""
        async with self._session_lock:
            session = self._session
            self._session = None
        if session is not None and not session.closed:
            await session.close()
