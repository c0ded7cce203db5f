"""Protocol definitions for the collaborators the search pipeline depends on."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from bs4 import BeautifulSoup

    from zonedebrid.search.site_location import SiteLocationRecord


class HtmlFetcher(Protocol):
    """Fetch a page and return a queryable document; non-2xx raises."""

    async def fetch_html(self, url: str) -> BeautifulSoup:
        ...


class SiteLocationStore(Protocol):
    """Load-or-default and save of the tracked site location."""

    def load(self) -> SiteLocationRecord:
        ...

    def save(self, record: SiteLocationRecord) -> None:
        ...

