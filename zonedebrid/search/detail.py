"""Detail-page scraping: language/quality link maps, synopsis and year."""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from zonedebrid import logger
from zonedebrid.search.protocols import HtmlFetcher
from zonedebrid.search.similarity import relevance_score
from zonedebrid.search.text import season_from_link, strip_season_suffix
from zonedebrid.search.types import (
    DetailedEntry,
    FilmLinks,
    QualityLink,
    RawListingEntry,
    SeriesLinks,
    season_key,
    season_number,
)

CURRENT_VERSION_SELECTOR = 'div[style*="color:red"][style*="font-weight:bold"]'
QUALITY_BADGE_SELECTOR = '.otherquality span[style*="color:#FE8903"] b'
LANGUAGE_BADGE_SELECTOR = '.otherquality span[style*="color:#03AAFE"] b'
EPISODE_LINK_SELECTOR = 'a[href*="dl-protect"][href*="Episode"]'

_FILM_BANNER_RE = re.compile(r"([A-Z0-9\-\s]+)\s*\|\s*([A-Z]+)", re.IGNORECASE)
_MULTI_LANGUAGE_RE = re.compile(r"MULTI\s*\(([^)]+)\)", re.IGNORECASE)
_SERIES_BANNER_RE = re.compile(r"^([A-Z]+)(?:\s*HD\d*)?", re.IGNORECASE)
_OTHER_SEASON_RE = re.compile(r"Saison\s*(\d+)\s*\(([A-Z\s]+)\)", re.IGNORECASE)
_CURRENT_SEASON_VERSION_RE = re.compile(r"\(([A-Z\s]+)\)", re.IGNORECASE)
_LANGUAGE_QUALITY_RE = re.compile(r"^([A-Z]+)(?:\s+(HD))?$", re.IGNORECASE)
_RELEASE_YEAR_RE = re.compile(r"Année de production\s*:\s*(\d{4})", re.IGNORECASE)
_EPISODE_COUNT_RE = re.compile(r"(\d+)\s*Episodes?\s*\|\s*Saison\s*\d+", re.IGNORECASE)
_FILE_SIZE_RE = re.compile(r"Taille d'[^:]*:\s*(~?\d+(?:\.\d+)?\s*[KMG]o)", re.IGNORECASE)


def _collapsed_text(node) -> str:
    return " ".join(node.get_text().split())


def _current_banner(soup: BeautifulSoup) -> str:
    banner = soup.select_one(CURRENT_VERSION_SELECTOR)
    return _collapsed_text(banner) if banner is not None else ""


def extract_synopsis(soup: BeautifulSoup) -> Optional[str]:
    marker = soup.select_one('img[src*="synopsis.png"]')
    if marker is None or marker.parent is None:
        return None
    emphasis = marker.parent.find("em")
    if emphasis is None:
        return None
    return emphasis.get_text(strip=True) or None


def extract_release_year(soup: BeautifulSoup) -> Optional[str]:
    """Production year from the labeled field, else anywhere in the page text."""
    for label in soup.find_all("strong"):
        if "année de production" not in label.get_text().lower() or label.parent is None:
            continue
        match = _RELEASE_YEAR_RE.search(_collapsed_text(label.parent))
        if match:
            return match.group(1)
    match = _RELEASE_YEAR_RE.search(soup.get_text(" "))
    return match.group(1) if match else None


def _film_language(raw: str) -> str:
    multi = _MULTI_LANGUAGE_RE.search(raw)
    if multi:
        return multi.group(1).strip().upper()
    language = raw.replace("(", "").replace(")", "").strip().upper()
    return "MULTI" if "MULTI" in language else language


def _quality_key(raw: str) -> str:
    return "_".join(raw.split()).upper()


def parse_film_versions(soup: BeautifulSoup, page_link: str, base_url: str) -> FilmLinks:
    links = FilmLinks()

    match = _FILM_BANNER_RE.search(_current_banner(soup))
    if match:
        links.add(match.group(2).upper(), _quality_key(match.group(1)), QualityLink(page_link))

    for anchor in soup.select(".otherversions a"):
        href = anchor.get("href")
        quality_badge = anchor.select_one(QUALITY_BADGE_SELECTOR)
        language_badge = anchor.select_one(LANGUAGE_BADGE_SELECTOR)
        if not href or quality_badge is None or language_badge is None:
            continue
        quality = _quality_key(quality_badge.get_text())
        language = _film_language(language_badge.get_text())
        if not quality or not language:
            continue
        # The page's own listing order decides when a version appears twice.
        if quality not in links.languages.get(language, {}):
            links.add(language, quality, QualityLink(urljoin(base_url, href)))
    return links


def _language_quality(text: str) -> Optional[tuple[str, str]]:
    match = _LANGUAGE_QUALITY_RE.match(text.strip())
    if match is None:
        return None
    return match.group(1).upper(), (match.group(2) or "NORMAL").upper()


def parse_series_versions(soup: BeautifulSoup, page_link: str, base_url: str) -> SeriesLinks:
    links = SeriesLinks()
    current_season = season_from_link(page_link)

    if current_season is not None:
        banner = _current_banner(soup)
        match = _SERIES_BANNER_RE.match(banner)
        language = match.group(1).upper() if match else "UNKNOWN"
        quality = "HD" if "HD" in banner else "NORMAL"
        links.season(season_key(current_season)).add(language, quality, QualityLink(page_link))

    for anchor in soup.select(".otherversions a"):
        href = anchor.get("href")
        block = anchor.select_one(".otherquality")
        if not href or block is None:
            continue
        text = _collapsed_text(block)

        other_season = _OTHER_SEASON_RE.search(text)
        if other_season:
            season = int(other_season.group(1))
            version = _language_quality(other_season.group(2))
        elif current_season is not None:
            same_season = _CURRENT_SEASON_VERSION_RE.search(text)
            season = current_season
            version = _language_quality(same_season.group(1)) if same_season else None
        else:
            continue

        if version is not None:
            language, quality = version
            links.season(season_key(season)).add(language, quality, QualityLink(urljoin(base_url, href)))
    return links


@dataclass
class SeasonPageDetails:
    episodes: Optional[int] = None
    file_size: Optional[str] = None


def parse_season_page(soup: BeautifulSoup) -> SeasonPageDetails:
    details = SeasonPageDetails()
    for block in soup.find_all("div"):
        match = _EPISODE_COUNT_RE.search(_collapsed_text(block))
        if match:
            details.episodes = int(match.group(1))

    for label in soup.find_all("strong"):
        label_text = label.get_text()
        if "Taille d'un episode" not in label_text and "Taille d'un épisode" not in label_text:
            continue
        if label.parent is None:
            continue
        match = _FILE_SIZE_RE.search(_collapsed_text(label.parent))
        if match:
            details.file_size = match.group(1).strip()

    if not details.episodes:
        episode_links = len(soup.select(EPISODE_LINK_SELECTOR))
        if episode_links:
            details.episodes = episode_links
    return details


async def _enrich_season_variant(
    fetcher: HtmlFetcher,
    links: SeriesLinks,
    key: str,
    language: str,
    quality: str,
) -> None:
    season = links.seasons[key]
    entry = season.versions[language][quality]
    try:
        details = parse_season_page(await fetcher.fetch_html(entry.link))
    except Exception as exc:
        logger.get_logger().warning(f"Season details skipped for {key} {language} {quality}: {exc}")
        return
    if details.episodes and (season.episodes is None or details.episodes > season.episodes):
        season.episodes = details.episodes
    if details.file_size:
        entry.file_size = details.file_size


def _first_season_link(links: SeriesLinks) -> Optional[str]:
    if not links.seasons:
        return None
    first_key = min(links.seasons, key=season_number)
    for qualities in links.seasons[first_key].versions.values():
        for entry in qualities.values():
            return entry.link
    return None


async def _release_year_from(fetcher: HtmlFetcher, link: str) -> Optional[str]:
    try:
        return extract_release_year(await fetcher.fetch_html(link))
    except Exception as exc:
        logger.get_logger().warning(f"Release year lookup failed ({link}): {exc}")
        return None


async def scrape_film_detail(
    fetcher: HtmlFetcher,
    item: RawListingEntry,
    query: str,
    base_url: str,
) -> DetailedEntry:
    """Fetch a film page; failures give an entry with no versions."""
    score = relevance_score(query, item.title)
    try:
        logger.get_logger().debug(f"Scraping film details for: {item.title}")
        soup = await fetcher.fetch_html(item.link)
        return DetailedEntry(
            title=item.title,
            link=item.link,
            image=item.image,
            description=extract_synopsis(soup),
            release_year=extract_release_year(soup),
            relevance_score=score,
            links=parse_film_versions(soup, item.link, base_url),
        )
    except Exception as exc:
        logger.get_logger().warning(f"Film details unavailable for '{item.title}': {exc}")
        return DetailedEntry(title=item.title, link=item.link, image=item.image, relevance_score=score, links=FilmLinks())


async def scrape_series_detail(
    fetcher: HtmlFetcher,
    item: RawListingEntry,
    query: str,
    base_url: str,
) -> DetailedEntry:
    """
    Fetch a season page of a series and every sibling season/version it lists.

    Each (season, language, quality) variant page is fetched concurrently to
    read the episode count and per-episode size; a failing variant is skipped.
    The year comes from the lowest season's page and the title loses its
    " - Saison N" suffix so all seasons group under one name.
    """
    title = strip_season_suffix(item.title)
    score = relevance_score(query, title)
    try:
        logger.get_logger().debug(f"Scraping series details for: {item.title}")
        soup = await fetcher.fetch_html(item.link)
        links = parse_series_versions(soup, item.link, base_url)

        await asyncio.gather(
            *(
                _enrich_season_variant(fetcher, links, key, language, quality)
                for key, season in links.seasons.items()
                for language, qualities in season.versions.items()
                for quality in qualities
            )
        )
        links = links.sorted()

        release_year = None
        first_link = _first_season_link(links)
        if first_link is not None:
            release_year = await _release_year_from(fetcher, first_link)

        return DetailedEntry(
            title=title,
            link=item.link,
            image=item.image,
            description=extract_synopsis(soup),
            release_year=release_year,
            relevance_score=score,
            links=links,
        )
    except Exception as exc:
        logger.get_logger().warning(f"Series details unavailable for '{item.title}': {exc}")
        return DetailedEntry(title=title, link=item.link, image=item.image, relevance_score=score, links=SeriesLinks())
