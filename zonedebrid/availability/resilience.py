"""Debrid API envelope guards, error kinds and the transient-retry loop."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TypeVar

_T = TypeVar("_T")

# Upstream wording of the one failure known to clear on its own.
_LINKS_NOT_EXTRACTED_MARKERS = ("could not extract links",)


class DebridErrorKind(str, Enum):
    LINKS_NOT_EXTRACTED = "links_not_extracted"
    AUTH = "auth"
    LINK = "link"
    OTHER = "other"


def classify_debrid_error(code: str, message: str) -> DebridErrorKind:
    """Map an API error code/message onto a kind; the only place wording is inspected."""
    text = f"{code} {message}".lower()
    if any(marker in text for marker in _LINKS_NOT_EXTRACTED_MARKERS):
        return DebridErrorKind.LINKS_NOT_EXTRACTED
    upper_code = code.upper()
    if upper_code.startswith("AUTH"):
        return DebridErrorKind.AUTH
    if upper_code.startswith(("LINK", "REDIRECTOR")):
        return DebridErrorKind.LINK
    return DebridErrorKind.OTHER


class DebridAPIError(Exception):
    """Non-success envelope returned by the debrid API."""

    def __init__(self, code: str, message: str, kind: DebridErrorKind | None = None) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message
        self.kind = kind or classify_debrid_error(code, message)


def expect_dict(value: object, context: str) -> dict:
    if isinstance(value, dict):
        return value
    value_type = type(value).__name__
    raise ValueError(f"{context} has unexpected type '{value_type}'")


def optional_dict(container: dict, key: str, context: str) -> dict:
    value = container.get(key, {})
    if value is None:
        return {}
    return expect_dict(value, f"{context}.{key}")


def optional_list(container: dict, key: str, context: str) -> list:
    value = container.get(key, [])
    if value is None:
        return []
    if isinstance(value, list):
        return value
    value_type = type(value).__name__
    raise ValueError(f"{context}.{key} has unexpected type '{value_type}'")


def debrid_payload(payload: object, context: str) -> dict:
    """Return ``data`` from a ``{status, data|error}`` envelope or raise DebridAPIError."""
    root = expect_dict(payload, f"{context} payload")
    if root.get("status") == "success":
        return optional_dict(root, "data", context)
    error = root.get("error")
    if isinstance(error, dict):
        code = str(error.get("code") or "UNKNOWN")
        message = str(error.get("message") or "Unknown error")
    else:
        code, message = "UNKNOWN", str(error or "Unknown error")
    raise DebridAPIError(code, message)


def is_retryable_exception(exc: Exception) -> bool:
    return isinstance(exc, DebridAPIError) and exc.kind is DebridErrorKind.LINKS_NOT_EXTRACTED


async def run_with_retries(
    operation: Callable[[], Awaitable[_T]],
    *,
    delay: float,
    max_attempts: int | None = None,
    before_retry: Callable[[], None] | None = None,
    on_retry: Callable[[int, float, Exception], None] | None = None,
) -> _T:
    """
    Await ``operation`` until it succeeds or fails with a non-retryable error.

    With ``max_attempts`` unset the loop only ends through success, a
    non-retryable error, or an exception raised by ``before_retry``.
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return await operation()
        except Exception as exc:
            if not is_retryable_exception(exc):
                raise
            if max_attempts is not None and attempt >= max_attempts:
                raise
            if before_retry is not None:
                before_retry()
            if on_retry is not None:
                on_retry(attempt, delay, exc)
            await asyncio.sleep(delay)
