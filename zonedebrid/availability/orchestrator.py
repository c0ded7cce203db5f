"""Session-scoped, cancellable availability checks across all episodes."""

from __future__ import annotations

import asyncio
import uuid
from typing import Any, Awaitable, Dict, List, Mapping, Optional, TypeVar, Union

from zonedebrid import logger
from zonedebrid.availability.episode_verifier import LinkCheck, verify_episode
from zonedebrid.availability.host_links import scrape_host_links
from zonedebrid.availability.progress import ProgressSink, format_episode_name
from zonedebrid.availability.sessions import AvailabilitySession, CheckCancelledError, SessionRegistry
from zonedebrid.availability.types import (
    FILM_KEY,
    DownloadAvailability,
    EpisodeAvailability,
    HostLinkMap,
    ProgressType,
    ProgressUpdate,
    episode_key,
    episode_number,
)
from zonedebrid.search.protocols import HtmlFetcher
from zonedebrid.search.types import ContentType, is_episodic

_T = TypeVar("_T")

VERIFY_PROGRESS_START = 40
VERIFY_PROGRESS_SPAN = 50
USER_CANCELLED_MESSAGE = "Check cancelled by user"


async def settle_all(tasks: Mapping[str, Awaitable[_T]]) -> Dict[str, Union[_T, BaseException]]:
    """Wait for every task; each key maps to its result or the exception it raised."""
    keys = list(tasks)
    outcomes = await asyncio.gather(*tasks.values(), return_exceptions=True)
    return dict(zip(keys, outcomes))


def plan_episode_keys(
    content_type: ContentType,
    host_links: HostLinkMap,
    episodes: Optional[List[int]] = None,
) -> List[str]:
    if not is_episodic(content_type):
        return [FILM_KEY]
    if episodes:
        return [episode_key(number) for number in episodes]
    discovered = {key for links in host_links.values() for key in links.episodes}
    return sorted(discovered, key=episode_number)


def aggregate_outcomes(outcomes: Mapping[str, Any]) -> Dict[str, EpisodeAvailability]:
    """Fold settled outcomes into results; any cancellation discards them all."""
    for outcome in outcomes.values():
        if isinstance(outcome, CheckCancelledError):
            raise outcome
        if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
            raise outcome

    availability: Dict[str, EpisodeAvailability] = {}
    for key, outcome in outcomes.items():
        if isinstance(outcome, Exception):
            logger.get_logger().warning(f"Verification failed for {key}: {outcome}")
            availability[key] = EpisodeAvailability(
                host=None,
                available=False,
                error=f"Verification error: {outcome}",
            )
        else:
            availability[key] = outcome
    return availability


class _Counter:
    def __init__(self, total: int) -> None:
        self.total = total
        self.done = 0


class AvailabilityOrchestrator:
    """
    Runs availability checks and lets callers cancel them by session id.

    A session is registered when a check starts and removed when it ends,
    whatever the outcome. Episodes are verified concurrently and joined with
    ``settle_all`` so one failing episode never hides the others; a
    cancellation observed by any episode fails the whole check.
    """

    def __init__(
        self,
        fetcher: HtmlFetcher,
        check: LinkCheck,
        sessions: SessionRegistry,
        sink: ProgressSink,
    ) -> None:
        self.fetcher = fetcher
        self.check = check
        self.sessions = sessions
        self.sink = sink

    def _emit(
        self,
        session_id: str,
        update_type: ProgressType,
        message: str,
        progress: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.sink.publish(session_id, ProgressUpdate(type=update_type, message=message, progress=progress, data=data))

    def cancel(self, session_id: str) -> bool:
        """Flag a running session as cancelled; False when no such session runs."""
        if not self.sessions.cancel(session_id):
            return False
        logger.get_logger().info(f"Cancellation requested for session {session_id}")
        self._emit(session_id, "error", USER_CANCELLED_MESSAGE)
        return True

    async def check_availability(
        self,
        url: str,
        content_type: ContentType,
        episodes: Optional[List[int]] = None,
        session_id: Optional[str] = None,
    ) -> DownloadAvailability:
        session_id = session_id or uuid.uuid4().hex
        session = self.sessions.register(session_id)
        log = logger.get_logger()
        self._emit(session_id, "started", "Starting availability check", 0)
        try:
            self._emit(session_id, "status", "Fetching download links", 10)
            target = episodes[0] if episodes and len(episodes) == 1 else None
            host_links = await scrape_host_links(self.fetcher, url, target)
            session.raise_if_cancelled()
            self._emit(session_id, "status", f"Links found on {len(host_links)} host(s)", 30)

            keys = plan_episode_keys(content_type, host_links, episodes)
            self._emit(session_id, "status", f"Checking {len(keys)} item(s)", VERIFY_PROGRESS_START)

            counter = _Counter(len(keys))
            outcomes = await settle_all(
                {key: self._verify(session, key, host_links, counter) for key in keys}
            )
            result = DownloadAvailability(
                session_id=session_id,
                content_type=content_type,
                availability=aggregate_outcomes(outcomes),
                episodes=list(episodes) if episodes else None,
            )
            self._emit(session_id, "complete", "Availability check complete", 100, data=result.to_dict())
            return result
        except CheckCancelledError as exc:
            log.info(f"Availability check {session_id} cancelled")
            self._emit(session_id, "error", str(exc))
            raise
        except Exception as exc:
            log.error(f"Availability check {session_id} failed: {exc}")
            self._emit(session_id, "error", f"Availability check failed: {exc}")
            raise
        finally:
            self.sessions.remove(session_id)

    async def _verify(
        self,
        session: AvailabilitySession,
        key: str,
        host_links: HostLinkMap,
        counter: _Counter,
    ) -> EpisodeAvailability:
        session.raise_if_cancelled()
        try:
            result = await verify_episode(
                self.check,
                key,
                host_links,
                session.is_cancelled,
                on_status=lambda message: self._emit(session.session_id, "status", message),
            )
            session.raise_if_cancelled()
        except CheckCancelledError:
            raise
        except Exception:
            self._advance(session.session_id, key, counter, succeeded=False)
            raise
        self._advance(session.session_id, key, counter, succeeded=True)
        return result

    def _advance(self, session_id: str, key: str, counter: _Counter, succeeded: bool) -> None:
        counter.done += 1
        outcome = "done" if succeeded else "failed"
        progress = VERIFY_PROGRESS_START + round(counter.done / counter.total * VERIFY_PROGRESS_SPAN)
        self._emit(
            session_id,
            "status",
            f"{format_episode_name(key)} {outcome} ({counter.done}/{counter.total})",
            progress,
        )
