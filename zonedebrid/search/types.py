"""Shared data structures for the search pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Union

ContentType = Literal["films", "series", "mangas"]
ALL_CONTENT_TYPES: tuple[ContentType, ...] = ("films", "series", "mangas")

# Values accepted for the site's ``p`` query parameter, per content type.
CONTENT_TYPE_ALIASES: Dict[ContentType, tuple[str, ...]] = {
    "films": ("film", "films"),
    "series": ("serie", "series"),
    "mangas": ("manga", "mangas"),
}


def is_episodic(content_type: ContentType) -> bool:
    return content_type != "films"


@dataclass
class RawListingEntry:
    """One candidate anchor scraped from a search-results page."""

    title: str
    link: str
    image: Optional[str] = None
    date: Optional[str] = None
    version: Optional[str] = None


@dataclass
class QualityLink:
    link: str
    file_size: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"link": self.link}
        if self.file_size:
            data["fileSize"] = self.file_size
        return data


# language -> quality -> link
VersionMap = Dict[str, Dict[str, QualityLink]]


@dataclass
class FilmLinks:
    """Language/quality versions of a film."""

    languages: VersionMap = field(default_factory=dict)
    kind: Literal["film"] = "film"

    def is_empty(self) -> bool:
        return not self.languages

    def add(self, language: str, quality: str, link: QualityLink) -> None:
        self.languages.setdefault(language, {})[quality] = link

    def merge(self, other: "FilmLinks") -> None:
        for language, qualities in other.languages.items():
            for quality, link in qualities.items():
                self.add(language, quality, link)

    def to_dict(self) -> Dict[str, Any]:
        return {
            language: {quality: link.to_dict() for quality, link in qualities.items()}
            for language, qualities in self.languages.items()
        }


@dataclass
class SeasonLinks:
    episodes: Optional[int] = None
    versions: VersionMap = field(default_factory=dict)

    def add(self, language: str, quality: str, link: QualityLink) -> None:
        self.versions.setdefault(language, {})[quality] = link


def season_key(season: int) -> str:
    return f"SAISON_{season}"


def season_number(key: str) -> int:
    try:
        return int(key.rsplit("_", 1)[-1])
    except ValueError:
        return 0


@dataclass
class SeriesLinks:
    """Per-season language/quality versions of a series."""

    seasons: Dict[str, SeasonLinks] = field(default_factory=dict)
    kind: Literal["series"] = "series"

    def is_empty(self) -> bool:
        return not self.seasons

    def season(self, key: str) -> SeasonLinks:
        return self.seasons.setdefault(key, SeasonLinks())

    def merge(self, other: "SeriesLinks") -> None:
        for key, incoming in other.seasons.items():
            existing = self.seasons.get(key)
            if existing is None:
                self.seasons[key] = SeasonLinks(
                    episodes=incoming.episodes,
                    versions={lang: dict(q) for lang, q in incoming.versions.items()},
                )
                continue
            if existing.episodes is None:
                existing.episodes = incoming.episodes
            for language, qualities in incoming.versions.items():
                for quality, link in qualities.items():
                    existing.add(language, quality, link)

    def sorted(self) -> "SeriesLinks":
        ordered = dict(sorted(self.seasons.items(), key=lambda item: season_number(item[0])))
        return SeriesLinks(seasons=ordered)

    def to_dict(self) -> Dict[str, Any]:
        output: Dict[str, Any] = {}
        for key, season in self.seasons.items():
            payload: Dict[str, Any] = {}
            if season.episodes is not None:
                payload["episodes"] = season.episodes
            for language, qualities in season.versions.items():
                payload[language] = {quality: link.to_dict() for quality, link in qualities.items()}
            output[key] = payload
        return output


LinkMap = Union[FilmLinks, SeriesLinks]


@dataclass
class DetailedEntry:
    """A listing entry enriched with its detail page."""

    title: str
    link: str
    relevance_score: float
    links: LinkMap
    image: Optional[str] = None
    description: Optional[str] = None
    release_year: Optional[str] = None


@dataclass
class ConsolidatedEntry:
    """One logical title after clustering similar detailed entries."""

    title: str
    link: str
    relevance_score: float
    links: Optional[LinkMap] = None
    image: Optional[str] = None
    description: Optional[str] = None
    release_year: Optional[str] = None
    similar_titles: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "link": self.link,
            "image": self.image,
            "description": self.description,
            "release_date": self.release_year,
            "relevanceScore": self.relevance_score,
            "details": self.links.to_dict() if self.links is not None else None,
            "similarTitles": list(self.similar_titles),
        }


@dataclass
class SearchResult:
    content_type: ContentType
    results: List[ConsolidatedEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.content_type, "results": [entry.to_dict() for entry in self.results]}
