"""Tracks the indexing site's current domain as it relocates."""

from __future__ import annotations

import re
import time
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

from zonedebrid import logger
from zonedebrid.config import DEFAULT_SITE_URL
from zonedebrid.search.protocols import HtmlFetcher, SiteLocationStore

BANNER_SELECTOR = 'h2 span[style*="font-weight:bold"][style*="color:red"][style*="font-size: 110%"]'
HEALTHY_RESPONSE_MS = 10_000
_FULL_URL_RE = re.compile(r"https?://[^\s]+")


def with_trailing_slash(url: str) -> str:
    return url if url.endswith("/") else url + "/"


class SiteLocationRecord(BaseModel):
    current_url: str = DEFAULT_SITE_URL
    url_history: List[str] = Field(default_factory=list)
    last_checked: Optional[datetime] = None
    response_time_ms: float = 0.0


class JsonSiteLocationStore(SiteLocationStore):
    """Persists the record as a JSON file; a missing file yields the default."""

    def __init__(self, path: Path, default_url: str = DEFAULT_SITE_URL) -> None:
        self.path = path
        self.default_url = default_url

    def load(self) -> SiteLocationRecord:
        if not self.path.exists():
            return SiteLocationRecord(current_url=self.default_url)
        return SiteLocationRecord.model_validate_json(self.path.read_text(encoding="utf-8"))

    def save(self, record: SiteLocationRecord) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(record.model_dump_json(indent=2), encoding="utf-8")


def extract_announced_url(html_text: str, domain_hint: str = "zone-telechargement") -> Optional[str]:
    """Pull a full URL or a bare ``<hint>.<tld>`` domain from banner text."""
    full = _FULL_URL_RE.search(html_text)
    if full:
        return full.group(0)
    bare = re.search(rf"{re.escape(domain_hint)}\.[a-zA-Z0-9.-]+", html_text)
    if bare:
        return f"https://{bare.group(0)}"
    return None


class SiteLocationTracker:
    """
    Owns the site's current base URL.

    ``refresh`` is awaited before a search to follow domain moves; scrapers
    read ``current_base_url`` at the start of each call. Concurrent refreshes
    are not serialized, so the last write wins.
    """

    def __init__(
        self,
        store: SiteLocationStore,
        fetcher: HtmlFetcher,
        domain_hint: str = "zone-telechargement",
    ) -> None:
        self._store = store
        self._fetcher = fetcher
        self._domain_hint = domain_hint
        self._record: SiteLocationRecord | None = None

    @property
    def record(self) -> SiteLocationRecord:
        if self._record is None:
            self._record = self._store.load()
        return self._record

    def current_base_url(self) -> str:
        return with_trailing_slash(self.record.current_url)

    def is_healthy(self) -> bool:
        return 0 < self.record.response_time_ms < HEALTHY_RESPONSE_MS

    async def refresh(self) -> None:
        """Follow a domain move announced on the home page; errors keep the stored URL."""
        log = logger.get_logger()
        try:
            record = self._store.load()
            start = time.monotonic()
            soup = await self._fetcher.fetch_html(record.current_url)
            elapsed_ms = (time.monotonic() - start) * 1000

            banner = soup.select_one(BANNER_SELECTOR)
            announced = extract_announced_url(banner.get_text(), self._domain_hint) if banner is not None else None
            if announced:
                announced = with_trailing_slash(announced)
            if announced and announced != with_trailing_slash(record.current_url):
                log.info(f"Site moved: {record.current_url} -> {announced}")
                record.url_history.append(record.current_url)
                record.current_url = announced

            record.last_checked = datetime.now()
            record.response_time_ms = elapsed_ms
            self._store.save(record)
            self._record = record
        except Exception as exc:
            log.warning(f"Site location check failed, keeping the stored URL: {exc}")
