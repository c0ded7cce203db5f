"""Per-host download links from a download page's host block."""

from __future__ import annotations

import re
from typing import Dict, Optional

from bs4 import BeautifulSoup

from zonedebrid import logger
from zonedebrid.availability.types import HostLinkMap, HostLinks, episode_key
from zonedebrid.search.protocols import HtmlFetcher

# Ordered best-first; also the allow-list of hosts worth checking.
HOST_PRIORITY: tuple[str, ...] = (
    "1fichier",
    "Uptobox",
    "Mega",
    "Rapidgator",
    "Nitroflare",
    "Turbobit",
    "Xubster",
    "DailyUploads",
    "Uploady",
    "Darkibox",
    "GoFile",
)
_CANONICAL_HOSTS: Dict[str, str] = {host.lower(): host for host in HOST_PRIORITY}
PROTECTED_LINK_MARKER = "dl-protect"
_EPISODE_LABEL_RE = re.compile(r"[ée]pisode\s*(\d+)", re.IGNORECASE)


def _is_host_header(node) -> bool:
    return node.name == "div" and "font-weight:bold" in (node.get("style") or "")


def extract_host_links(soup: BeautifulSoup, target_episode: Optional[int] = None) -> HostLinkMap:
    """
    Walk ``.postinfo`` in document order, attributing links to the last host header.

    Headers naming a host outside HOST_PRIORITY close the current section.
    "Télécharger" links are the film link, "Episode N" links are keyed per
    episode, and multi-part ("partie") links are ignored.
    """
    hosts: HostLinkMap = {}
    current: Optional[str] = None

    for block in soup.select(".postinfo"):
        for node in block.find_all(True):
            if _is_host_header(node):
                current = _CANONICAL_HOSTS.get(node.get_text(strip=True).lower())
                continue
            if node.name != "a" or current is None:
                continue
            href = node.get("href") or ""
            if PROTECTED_LINK_MARKER not in href:
                continue

            label = node.get_text(" ", strip=True).lower()
            if "partie" in label:
                continue
            if "télécharger" in label or "telecharger" in label:
                hosts.setdefault(current, HostLinks()).link = href
                continue
            match = _EPISODE_LABEL_RE.search(label)
            if match is None:
                continue
            number = int(match.group(1))
            if target_episode is not None and number != target_episode:
                continue
            hosts.setdefault(current, HostLinks()).episodes[episode_key(number)] = href
    return hosts


async def scrape_host_links(
    fetcher: HtmlFetcher,
    url: str,
    target_episode: Optional[int] = None,
) -> HostLinkMap:
    soup = await fetcher.fetch_html(url)
    hosts = extract_host_links(soup, target_episode)
    logger.get_logger().debug(f"Host links on {url}: {', '.join(hosts) or 'none'}")
    return hosts
