"""Search pipeline for the indexing site."""

from .consolidator import consolidate
from .search_coordinator import SearchCoordinator, validate_search_request
from .site_client import SiteClient
from .site_location import JsonSiteLocationStore, SiteLocationRecord, SiteLocationTracker
from .types import ALL_CONTENT_TYPES, ConsolidatedEntry, ContentType, DetailedEntry, SearchResult

__all__ = [
    "ALL_CONTENT_TYPES",
    "ConsolidatedEntry",
    "ContentType",
    "DetailedEntry",
    "JsonSiteLocationStore",
    "SearchCoordinator",
    "SearchResult",
    "SiteClient",
    "SiteLocationRecord",
    "SiteLocationTracker",
    "consolidate",
    "validate_search_request",
]
