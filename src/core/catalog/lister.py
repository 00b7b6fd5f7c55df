"""
Catalog listing: one level of the bucket, filtered to videos and paged.

This module is framework-agnostic. It talks to storage through the
StorageGateway protocol and knows nothing about boto3 or HTTP.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Optional, Protocol

from .keys import stream_url_for
from .models import LevelListing, ListingPage, PaginationWindow, StoredObject, VideoEntry

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = (".mp4", ".mov", ".avi", ".mkv", ".webm")
DEFAULT_PAGE_SIZE = 18
KEY_DELIMITER = "/"

# Single backend page per request. Prefixes holding more raw objects than
# this under-report; continuation is deliberately not followed.
MAX_LISTED_KEYS = 1000


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class StorageGateway(Protocol):
    """
    What the catalog needs from object storage.

    Implementations raise BackendUnavailable for any backend failure.
    """

    async def list_one_level(
        self,
        prefix: str,
        delimiter: str = KEY_DELIMITER,
        limit: int = MAX_LISTED_KEYS,
    ) -> LevelListing:
        """List sub-prefixes and objects directly under prefix."""
        ...

    async def sign_get(self, key: str, ttl_seconds: int) -> str:
        """Produce a time-bounded GET URL for key."""
        ...


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def is_video_key(key: str) -> bool:
    """Case-insensitive match against the recognized video extensions."""
    return key.lower().endswith(VIDEO_EXTENSIONS)


def effective_page_size(page_size: Optional[int]) -> int:
    """Absent, zero or negative page sizes fall back to the default."""
    if not page_size or page_size <= 0:
        return DEFAULT_PAGE_SIZE
    return page_size


def paginate(
    videos: list[VideoEntry],
    page: Optional[int],
    page_size: Optional[int],
) -> tuple[list[VideoEntry], PaginationWindow]:
    """
    Slice an already sorted list of videos into one page.

    Bad values are corrected, never rejected. Pages below 1 saturate to
    page 1 so the reported flags match the slice; pages past the end
    return an empty slice.
    """
    requested_page = 1 if page is None else max(page, 1)
    size = effective_page_size(page_size)
    total = len(videos)

    start = (requested_page - 1) * size
    end = min(start + size, total)
    window = videos[start:end] if start < total else []

    pagination = PaginationWindow(
        page=requested_page,
        page_size=size,
        total_pages=math.ceil(total / size),
        total_videos=total,
    )
    return window, pagination


def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """RFC 3339 in UTC with a "Z" suffix; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def to_video_entry(obj: StoredObject) -> VideoEntry:
    return VideoEntry(
        key=obj.key,
        size_bytes=obj.size if obj.size and obj.size > 0 else 0,
        last_modified=_format_timestamp(obj.last_modified),
        stream_url=stream_url_for(obj.key),
    )


# ---------------------------------------------------------------------------
# Lister
# ---------------------------------------------------------------------------

class CatalogLister:
    """
    Browses the bucket one hierarchy level at a time.

    Stateless apart from the injected gateway, so one instance per
    request is fine.
    """

    def __init__(self, storage: StorageGateway) -> None:
        self._storage = storage

    async def list(
        self,
        prefix: str = "",
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> ListingPage:
        """
        List folders and videos directly under prefix.

        The backend is queried exactly once. BackendUnavailable from the
        gateway propagates unchanged; there are no partial results.
        """
        listing = await self._storage.list_one_level(
            prefix,
            delimiter=KEY_DELIMITER,
            limit=MAX_LISTED_KEYS,
        )

        videos = sorted(
            (to_video_entry(obj) for obj in listing.entries if obj.key and is_video_key(obj.key)),
            key=lambda video: video.key,
        )
        page_videos, pagination = paginate(videos, page, page_size)

        logger.info(
            "Listed catalog level",
            extra={
                "prefix": prefix,
                "folders": len(listing.sub_prefixes),
                "raw_entries": len(listing.entries),
                "total_videos": pagination.total_videos,
                "page": pagination.page,
                "page_size": pagination.page_size,
            }
        )

        return ListingPage(
            prefix=prefix,
            folders=list(listing.sub_prefixes),
            videos=page_videos,
            pagination=pagination,
        )
