"""Cluster detailed entries that describe the same title and merge their links."""

from __future__ import annotations

from typing import List, Optional

from zonedebrid.search.similarity import string_similarity
from zonedebrid.search.text import normalize_text
from zonedebrid.search.types import (
    ConsolidatedEntry,
    ContentType,
    DetailedEntry,
    FilmLinks,
    LinkMap,
    SeriesLinks,
    is_episodic,
)

FILM_TITLE_SIMILARITY = 0.8
FILM_MAX_YEAR_GAP = 2
FILM_SYNOPSIS_SIMILARITY = 0.6
SERIES_TITLE_SIMILARITY = 0.9


def _as_year(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _title_similarity(a: DetailedEntry, b: DetailedEntry) -> float:
    return string_similarity(normalize_text(a.title), normalize_text(b.title))


def films_are_similar(a: DetailedEntry, b: DetailedEntry) -> bool:
    """Same film when titles match closely; year and synopsis only veto when both sides have them."""
    if _title_similarity(a, b) < FILM_TITLE_SIMILARITY:
        return False
    year_a, year_b = _as_year(a.release_year), _as_year(b.release_year)
    if year_a is not None and year_b is not None and abs(year_a - year_b) > FILM_MAX_YEAR_GAP:
        return False
    if a.description and b.description:
        synopsis = string_similarity(normalize_text(a.description), normalize_text(b.description))
        if synopsis < FILM_SYNOPSIS_SIMILARITY:
            return False
    return True


def series_are_similar(a: DetailedEntry, b: DetailedEntry) -> bool:
    return _title_similarity(a, b) >= SERIES_TITLE_SIMILARITY


def _merge_links(members: List[DetailedEntry], content_type: ContentType) -> Optional[LinkMap]:
    merged: LinkMap = SeriesLinks() if is_episodic(content_type) else FilmLinks()
    for member in members:
        if isinstance(merged, SeriesLinks) and isinstance(member.links, SeriesLinks):
            merged.merge(member.links)
        elif isinstance(merged, FilmLinks) and isinstance(member.links, FilmLinks):
            merged.merge(member.links)
    if merged.is_empty():
        return None
    return merged.sorted() if isinstance(merged, SeriesLinks) else merged


def consolidate(entries: List[DetailedEntry], content_type: ContentType) -> List[ConsolidatedEntry]:
    """
    Group similar entries, keeping cluster-discovery order.

    Single-linkage scan: each unprocessed entry seeds a cluster that keeps
    absorbing later unprocessed entries similar to any of its members until
    nothing more joins, so no two resulting clusters hold similar entries.
    The highest-scoring member (first on ties) provides the metadata; link
    maps are unioned with later members overwriting duplicate quality slots.
    """
    similar = series_are_similar if is_episodic(content_type) else films_are_similar
    processed: set[int] = set()
    consolidated: List[ConsolidatedEntry] = []

    for i in range(len(entries)):
        if i in processed:
            continue
        processed.add(i)
        member_indexes = [i]
        grown = True
        while grown:
            grown = False
            for j in range(i + 1, len(entries)):
                if j in processed:
                    continue
                if any(similar(entries[k], entries[j]) for k in member_indexes):
                    member_indexes.append(j)
                    processed.add(j)
                    grown = True
        members = [entries[k] for k in sorted(member_indexes)]

        titles: List[str] = []
        for member in members:
            if member.title not in titles:
                titles.append(member.title)

        best = members[0]
        for member in members[1:]:
            if member.relevance_score > best.relevance_score:
                best = member

        consolidated.append(
            ConsolidatedEntry(
                title=best.title,
                link=best.link,
                image=best.image,
                description=best.description,
                release_year=best.release_year,
                relevance_score=best.relevance_score,
                links=_merge_links(members, content_type),
                similar_titles=titles,
            )
        )
    return consolidated
