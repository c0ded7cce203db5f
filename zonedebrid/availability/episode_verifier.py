"""Try each host for one episode, best host first."""

from __future__ import annotations

from typing import Awaitable, Callable, Optional

from zonedebrid import logger
from zonedebrid.availability.host_links import HOST_PRIORITY
from zonedebrid.availability.progress import format_episode_name
from zonedebrid.availability.sessions import CheckCancelledError
from zonedebrid.availability.types import EpisodeAvailability, HostLinkMap, LinkAvailability

NO_HOST_AVAILABLE = "No host available"

LinkCheck = Callable[[str, Optional[Callable[[], bool]]], Awaitable[LinkAvailability]]
StatusCallback = Callable[[str], None]


async def verify_episode(
    check: LinkCheck,
    key: str,
    host_links: HostLinkMap,
    is_cancelled: Optional[Callable[[], bool]] = None,
    on_status: Optional[StatusCallback] = None,
) -> EpisodeAvailability:
    """
    First host in HOST_PRIORITY whose link unlocks wins; cancellation propagates.

    ``on_status`` receives one message before each host attempt and one
    for its outcome.
    """
    log = logger.get_logger()
    name = format_episode_name(key)

    def _status(message: str) -> None:
        if on_status is not None:
            on_status(message)

    for host in HOST_PRIORITY:
        if is_cancelled is not None and is_cancelled():
            raise CheckCancelledError()
        links = host_links.get(host)
        link = links.link_for(key) if links is not None else None
        if not link:
            continue

        _status(f"Testing {host} for {name}")
        try:
            result = await check(link, is_cancelled)
        except CheckCancelledError:
            raise
        except Exception as exc:
            _status(f"Error with {host} for {name}")
            log.warning(f"{host} check failed for {key}: {exc}")
            continue

        if result.available:
            _status(f"{name} available on {host}")
            log.debug(f"{key}: available on {host}")
            return EpisodeAvailability(
                host=host,
                available=True,
                link=result.debrided_link,
                filesize=result.filesize,
            )
        _status(f"{host} unavailable for {name}")
        log.debug(f"{key}: {host} unavailable ({result.error})")

    return EpisodeAvailability(host=None, available=False, error=NO_HOST_AVAILABLE)
