"""Host-link extraction and debrid availability checks."""

from .checker import check_link_availability
from .debrid_client import AllDebridClient
from .episode_verifier import verify_episode
from .host_links import HOST_PRIORITY, extract_host_links, scrape_host_links
from .orchestrator import AvailabilityOrchestrator, settle_all
from .progress import CollectingProgressSink, LoggingProgressSink, ProgressSink, format_episode_name
from .sessions import CheckCancelledError, SessionRegistry
from .types import DownloadAvailability, EpisodeAvailability, HostLinks, LinkAvailability

__all__ = [
    "AllDebridClient",
    "AvailabilityOrchestrator",
    "CheckCancelledError",
    "CollectingProgressSink",
    "DownloadAvailability",
    "EpisodeAvailability",
    "HOST_PRIORITY",
    "HostLinks",
    "LinkAvailability",
    "LoggingProgressSink",
    "ProgressSink",
    "SessionRegistry",
    "check_link_availability",
    "extract_host_links",
    "format_episode_name",
    "scrape_host_links",
    "settle_all",
    "verify_episode",
]
