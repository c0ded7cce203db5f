"""Per-session cancellation state for availability checks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional


class CheckCancelledError(Exception):
    """Raised at a cancellation check point once the user cancels a session."""

    def __init__(self, message: str = "Check cancelled by user") -> None:
        super().__init__(message)


@dataclass
class AvailabilitySession:
    session_id: str
    cancelled: bool = False

    def is_cancelled(self) -> bool:
        return self.cancelled

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise CheckCancelledError()


class SessionRegistry:
    """
    Process-wide map of running checks keyed by session id.

    Entries are inserted when a check starts and removed when it ends on any
    path. All access happens on one event loop, so flag flips are visible to
    every task at its next check point.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, AvailabilitySession] = {}

    def register(self, session_id: str) -> AvailabilitySession:
        if session_id in self._sessions:
            raise ValueError(f"Availability session '{session_id}' is already running")
        session = AvailabilitySession(session_id)
        self._sessions[session_id] = session
        return session

    def get(self, session_id: str) -> Optional[AvailabilitySession]:
        return self._sessions.get(session_id)

    def cancel(self, session_id: str) -> bool:
        session = self._sessions.get(session_id)
        if session is None:
            return False
        session.cancelled = True
        return True

    def remove(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
