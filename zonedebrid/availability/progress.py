"""Progress event sinks for availability sessions."""

from __future__ import annotations

from typing import List, Protocol, Tuple

from zonedebrid import logger
from zonedebrid.availability.types import FILM_KEY, ProgressUpdate, episode_number


def format_episode_name(key: str) -> str:
    if key == FILM_KEY:
        return "Film"
    return f"Épisode {episode_number(key)}"


class ProgressSink(Protocol):
    """Fire-and-forget delivery of progress updates keyed by session."""

    def publish(self, session_id: str, update: ProgressUpdate) -> None:
        ...


class LoggingProgressSink(ProgressSink):
    """Renders updates through the global logger; intermediate ones stay inline."""

    def publish(self, session_id: str, update: ProgressUpdate) -> None:
        log = logger.get_logger()
        if update.type == "error":
            log.warning(f"[{session_id[:8]}] {update.message}")
        elif update.type == "complete":
            log.info(f"[{session_id[:8]}] {update.message}")
        else:
            percent = f"{update.progress:>3}% " if update.progress is not None else ""
            log.status(f"[{session_id[:8]}] {percent}{update.message}")


class CollectingProgressSink(ProgressSink):
    def __init__(self) -> None:
        self.events: List[Tuple[str, ProgressUpdate]] = []

    def publish(self, session_id: str, update: ProgressUpdate) -> None:
        self.events.append((session_id, update))

    def of_type(self, update_type: str) -> List[ProgressUpdate]:
        return [update for _, update in self.events if update.type == update_type]
