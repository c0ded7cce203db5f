"""Search-results page scraping and pagination discovery."""

from __future__ import annotations

import re
from typing import List, Optional
from urllib.parse import parse_qs, quote, urljoin, urlparse

from bs4 import BeautifulSoup, Tag

from zonedebrid import logger
from zonedebrid.search.protocols import HtmlFetcher
from zonedebrid.search.similarity import minimum_score, relevance_score
from zonedebrid.search.text import season_from_link
from zonedebrid.search.types import CONTENT_TYPE_ALIASES, ContentType, RawListingEntry, is_episodic

LISTING_ANCHOR_SELECTOR = 'a[href*="?p="][href*="id="]'
PAGINATION_SELECTOR = '.navigation[align="center"]'
_PAGE_PARAM_RE = re.compile(r"page=(\d+)")


def build_search_url(
    base_url: str,
    content_type: ContentType,
    query: str,
    year: Optional[int | str] = None,
    page: int = 1,
) -> str:
    url = f"{base_url}?p={content_type}&search={quote(query, safe='')}"
    if year:
        url += f"&year={year}"
    if page > 1:
        url += f"&page={page}"
    return url


def query_param(href: str, name: str) -> Optional[str]:
    values = parse_qs(urlparse(href).query).get(name)
    return values[0] if values else None


def _tag_text(container: Optional[Tag], selector: str) -> Optional[str]:
    if container is None:
        return None
    node = container.select_one(selector)
    if node is None:
        return None
    text = node.get_text(strip=True)
    return text or None


def _card_image(card: Optional[Tag], anchor: Tag, base_url: str) -> Optional[str]:
    image = card.select_one("img.mainimg") if card is not None else None
    if image is None:
        image = anchor.find("img")
    src = image.get("src") if image is not None else None
    return urljoin(base_url, src) if src else None


def extract_listing_entries(
    soup: BeautifulSoup,
    content_type: ContentType,
    query: str,
    base_url: str,
) -> List[RawListingEntry]:
    """Pull relevant candidates of ``content_type`` out of a results page."""
    aliases = CONTENT_TYPE_ALIASES[content_type]
    threshold = minimum_score(query)
    seen: set[str] = set()
    entries: List[RawListingEntry] = []

    for anchor in soup.select(LISTING_ANCHOR_SELECTOR):
        href = anchor.get("href")
        if not href or href in seen:
            continue
        if query_param(href, "p") not in aliases:
            continue
        title = anchor.get_text(strip=True)
        if len(title) <= 1:
            # Cover-image anchors share the href of the titled anchor.
            continue
        if is_episodic(content_type):
            season = season_from_link(href)
            if season is not None and season != 1:
                continue

        score = relevance_score(query, title)
        if score < threshold:
            logger.get_logger().debug(f"Skipping '{title}' (score {score:.2f} < {threshold:.2f})")
            continue

        seen.add(href)
        card = anchor.find_parent(class_="cover_global")
        entries.append(
            RawListingEntry(
                title=title,
                link=urljoin(base_url, href),
                image=_card_image(card, anchor, base_url),
                date=_tag_text(card, "time"),
                version=_tag_text(card, ".detail_release"),
            )
        )
    return entries


async def scrape_page(
    fetcher: HtmlFetcher,
    url: str,
    content_type: ContentType,
    query: str,
    base_url: str,
) -> List[RawListingEntry]:
    """Scrape one results page; a failing page yields no entries."""
    try:
        soup = await fetcher.fetch_html(url)
        return extract_listing_entries(soup, content_type, query, base_url)
    except Exception as exc:
        logger.get_logger().warning(f"Listing page skipped ({url}): {exc}")
        return []


def highest_page(soup: BeautifulSoup) -> int:
    navigation = soup.select_one(PAGINATION_SELECTOR)
    if navigation is None:
        return 1
    highest = 1
    for anchor in soup.select('a[href*="page="]'):
        for match in _PAGE_PARAM_RE.finditer(anchor.get("href", "")):
            highest = max(highest, int(match.group(1)))
    for span in navigation.find_all("span"):
        text = span.get_text(strip=True)
        if text.isdigit():
            highest = max(highest, int(text))
    return highest


async def total_pages(fetcher: HtmlFetcher, url: str) -> int:
    """Number of result pages for a search URL, 1 when unknown."""
    try:
        soup = await fetcher.fetch_html(url)
        return highest_page(soup)
    except Exception as exc:
        logger.get_logger().warning(f"Page count unavailable ({url}): {exc}")
        return 1
