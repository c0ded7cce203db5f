"""Search orchestration: pages -> listings -> details -> consolidated results."""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional

from zonedebrid import logger
from zonedebrid.search.consolidator import consolidate
from zonedebrid.search.detail import scrape_film_detail, scrape_series_detail
from zonedebrid.search.listing import build_search_url, scrape_page, total_pages
from zonedebrid.search.protocols import HtmlFetcher
from zonedebrid.search.site_location import SiteLocationTracker
from zonedebrid.search.types import ALL_CONTENT_TYPES, ContentType, SearchResult, is_episodic


def validate_search_request(query: str, content_type: Optional[str]) -> str:
    """Return the trimmed query, raising ValueError on bad input."""
    if not query or not query.strip():
        raise ValueError("A non-empty search query is required")
    if content_type is not None and content_type not in ALL_CONTENT_TYPES:
        allowed = ", ".join(ALL_CONTENT_TYPES)
        raise ValueError(f"Unsupported content type '{content_type}' (expected one of: {allowed})")
    return query.strip()


class SearchCoordinator:
    """Runs type-scoped searches against the tracked site location."""

    def __init__(
        self,
        fetcher: HtmlFetcher,
        site: SiteLocationTracker,
        default_type: Optional[ContentType] = None,
    ) -> None:
        self.fetcher = fetcher
        self.site = site
        self.default_type = default_type

    async def search(
        self,
        query: str,
        content_type: Optional[str] = None,
        year: Optional[int | str] = None,
    ) -> List[SearchResult]:
        """Refresh the site location, then search one content type or all of them."""
        content_type = content_type or self.default_type
        query = validate_search_request(query, content_type)
        await self.site.refresh()
        if content_type is None:
            return await self.search_all(query, year)
        return [await self._search_type(content_type, query, year)]

    async def search_films(self, query: str, year: Optional[int | str] = None) -> SearchResult:
        return await self._search_type("films", query, year)

    async def search_series(self, query: str, year: Optional[int | str] = None) -> SearchResult:
        return await self._search_type("series", query, year)

    async def search_mangas(self, query: str, year: Optional[int | str] = None) -> SearchResult:
        return await self._search_type("mangas", query, year)

    async def search_all(self, query: str, year: Optional[int | str] = None) -> List[SearchResult]:
        films, series, mangas = await asyncio.gather(
            self.search_films(query, year),
            self.search_series(query, year),
            self.search_mangas(query, year),
        )
        return [films, series, mangas]

    async def page_counts(self, query: str, year: Optional[int | str] = None) -> Dict[ContentType, int]:
        base_url = self.site.current_base_url()
        try:
            counts = await asyncio.gather(
                *(
                    total_pages(self.fetcher, build_search_url(base_url, content_type, query, year))
                    for content_type in ALL_CONTENT_TYPES
                )
            )
        except Exception as exc:
            logger.get_logger().warning(f"Page counts unavailable for '{query}': {exc}")
            return {content_type: 1 for content_type in ALL_CONTENT_TYPES}
        return dict(zip(ALL_CONTENT_TYPES, counts))

    async def _search_type(
        self,
        content_type: ContentType,
        query: str,
        year: Optional[int | str],
    ) -> SearchResult:
        base_url = self.site.current_base_url()
        log = logger.get_logger()
        try:
            first_page_url = build_search_url(base_url, content_type, query, year)
            pages = await total_pages(self.fetcher, first_page_url)
            log.debug(f"{content_type}: {pages} page(s) for '{query}'")

            page_entries = await asyncio.gather(
                *(
                    scrape_page(
                        self.fetcher,
                        build_search_url(base_url, content_type, query, year, page=page),
                        content_type,
                        query,
                        base_url,
                    )
                    for page in range(1, pages + 1)
                )
            )
            raw_entries = [entry for entries in page_entries for entry in entries]

            scrape_detail = scrape_series_detail if is_episodic(content_type) else scrape_film_detail
            detailed = await asyncio.gather(
                *(scrape_detail(self.fetcher, item, query, base_url) for item in raw_entries)
            )

            results = consolidate(list(detailed), content_type)
            results.sort(key=lambda entry: entry.relevance_score, reverse=True)
        except Exception as exc:
            log.error(f"{content_type} search failed for '{query}': {exc}")
            raise
        log.info(f"{content_type}: {len(results)} result(s) for '{query}'")
        return SearchResult(content_type=content_type, results=results)
