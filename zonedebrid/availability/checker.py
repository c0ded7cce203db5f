"""Resolve one protected link to a direct download through the debrid API."""

from __future__ import annotations

from typing import Callable, Optional, Protocol

from zonedebrid import logger
from zonedebrid.availability.debrid_client import SERVICE_NAME, UnlockedLink
from zonedebrid.availability.resilience import is_retryable_exception, run_with_retries
from zonedebrid.availability.sessions import CheckCancelledError
from zonedebrid.availability.types import LinkAvailability

DEFAULT_RETRY_DELAY_SECONDS = 2.0


class DebridClient(Protocol):
    async def redirect(self, link: str) -> list[str]:
        ...

    async def unlock(self, link: str) -> UnlockedLink:
        ...


async def check_link_availability(
    client: DebridClient,
    link: str,
    is_cancelled: Optional[Callable[[], bool]] = None,
    *,
    retry_delay: float = DEFAULT_RETRY_DELAY_SECONDS,
    max_retries: Optional[int] = None,
) -> LinkAvailability:
    """
    Redirect ``link`` to its hoster links and unlock the first one that works.

    A "could not extract links" failure restarts both steps after
    ``retry_delay`` seconds, without limit unless ``max_retries`` is set.
    ``is_cancelled`` is consulted before the first attempt, before each retry
    and before each unlock; a positive answer raises CheckCancelledError.
    Every other failure ends the check with ``available=False``.
    """
    log = logger.get_logger()

    def _raise_if_cancelled() -> None:
        if is_cancelled is not None and is_cancelled():
            raise CheckCancelledError()

    async def _attempt() -> LinkAvailability:
        _raise_if_cancelled()
        redirects = await client.redirect(link)
        if not redirects:
            return LinkAvailability(available=False, error="No links returned by the redirector")

        for candidate in redirects:
            _raise_if_cancelled()
            try:
                unlocked = await client.unlock(candidate)
            except Exception as exc:
                log.warning(f"{SERVICE_NAME} unlock failed for {candidate}: {exc}")
                continue
            if unlocked.link:
                return LinkAvailability(
                    available=True,
                    debrided_link=unlocked.link,
                    filename=unlocked.filename,
                    filesize=unlocked.filesize,
                )
        return LinkAvailability(available=False, error="No link could be unlocked")

    def _on_retry(attempt: int, delay: float, exc: Exception) -> None:
        log.api_retry(SERVICE_NAME, attempt, delay, reason=str(exc), max_attempts=max_attempts)

    max_attempts = None if max_retries is None else max_retries + 1
    try:
        return await run_with_retries(
            _attempt,
            delay=retry_delay,
            max_attempts=max_attempts,
            before_retry=_raise_if_cancelled,
            on_retry=_on_retry,
        )
    except CheckCancelledError:
        raise
    except Exception as exc:
        if max_attempts is not None and is_retryable_exception(exc):
            log.api_failed(SERVICE_NAME, max_attempts)
        return LinkAvailability(available=False, error=str(exc))
