"""Data structures for host-link availability checks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

FILM_KEY = "film"


def episode_key(number: int) -> str:
    return f"episode_{number}"


def episode_number(key: str) -> int:
    try:
        return int(key.rsplit("_", 1)[-1])
    except ValueError:
        return 0


@dataclass
class HostLinks:
    """Links one host offers on a download page: a film link or per-episode links."""

    link: Optional[str] = None
    episodes: Dict[str, str] = field(default_factory=dict)

    def link_for(self, key: str) -> Optional[str]:
        if key == FILM_KEY:
            return self.link
        return self.episodes.get(key)


HostLinkMap = Dict[str, HostLinks]


@dataclass
class LinkAvailability:
    available: bool
    debrided_link: Optional[str] = None
    filename: Optional[str] = None
    filesize: Optional[int] = None
    error: Optional[str] = None


@dataclass
class EpisodeAvailability:
    host: Optional[str]
    available: bool
    link: Optional[str] = None
    error: Optional[str] = None
    filesize: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"host": self.host, "available": self.available}
        if self.link:
            data["link"] = self.link
        if self.error:
            data["error"] = self.error
        if self.filesize is not None:
            data["filesize"] = self.filesize
        return data


@dataclass
class DownloadAvailability:
    session_id: str
    content_type: str
    availability: Dict[str, EpisodeAvailability] = field(default_factory=dict)
    episodes: Optional[List[int]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "sessionId": self.session_id,
            "type": self.content_type,
            "availability": {key: result.to_dict() for key, result in self.availability.items()},
        }
        if self.episodes:
            data["episodes"] = list(self.episodes)
        return data


ProgressType = Literal["started", "status", "error", "complete"]


@dataclass
class ProgressUpdate:
    type: ProgressType
    message: str
    progress: Optional[int] = None
    data: Optional[Dict[str, Any]] = None
