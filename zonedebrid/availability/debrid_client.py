"""AllDebrid API adapter (link redirector, link unlock, user)."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import aiohttp

from zonedebrid import logger
from zonedebrid.__version__ import __version__
from zonedebrid.availability.resilience import debrid_payload, optional_list
from zonedebrid.config import DebridConfig

DEFAULT_USER_AGENT = f"zonedebrid/{__version__}"
SERVICE_NAME = "AllDebrid"


@dataclass
class UnlockedLink:
    link: Optional[str]
    filename: Optional[str] = None
    filesize: Optional[int] = None


class AllDebridClient:
    """Form-encoded POST client authenticated with a bearer API key."""

    def __init__(self, debrid: DebridConfig):
        if not debrid.api_key:
            raise ValueError("AllDebrid API key is required for availability checks.")

        self.debrid = debrid
        self.timeout = debrid.timeout
        self.base_url = debrid.base_url.rstrip("/")
        self._session: aiohttp.ClientSession | None = None
        self._session_lock = asyncio.Lock()

    async def redirect(self, link: str) -> List[str]:
        """Expand a protector link into the hoster links behind it."""
        data = await self._post("/link/redirector", {"link": link})
        return [str(item) for item in optional_list(data, "links", "redirector") if item]

    async def unlock(self, link: str) -> UnlockedLink:
        data = await self._post("/link/unlock", {"link": link})
        filesize = data.get("filesize")
        return UnlockedLink(
            link=data.get("link") or None,
            filename=data.get("filename"),
            filesize=int(filesize) if isinstance(filesize, (int, float)) else None,
        )

    async def _post(self, path: str, form: Dict[str, str]) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        logger.get_logger().api_request("POST", url, form)
        request_start = time.time()
        session = await self._ensure_session()
        async with session.post(url, data=form) as response:
            if response.status >= 400 and response.content_type != "application/json":
                text = await response.text()
                raise aiohttp.ClientResponseError(
                    request_info=response.request_info,
                    history=response.history,
                    status=response.status,
                    message=text[:200],
                    headers=response.headers,
                )
            payload = await response.json()
            elapsed_ms = (time.time() - request_start) * 1000
        logger.get_logger().api_response(response.status, payload, elapsed_ms)
        return debrid_payload(payload, f"{SERVICE_NAME} {path}")

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
        return {"Authorization": f"Bearer {self.debrid.api_key}", "User-Agent": DEFAULT_USER_AGENT}

    async def close(self) -> None:
        """Close any open connections."""
        async with self._session_lock:
            session = self._session
            self._session = None
        if session is not None and not session.closed:
            await session.close()
