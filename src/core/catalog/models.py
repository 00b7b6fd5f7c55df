"""
Domain models for browsing a video bucket.

Everything here is a request-scoped value: built from a backend listing,
shaped into a response, then discarded. Nothing is persisted.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class StoredObject:
    """One raw entry returned by the storage backend for a listing."""
    key: str
    size: Optional[int] = None
    last_modified: Optional[datetime] = None


@dataclass(frozen=True)
class LevelListing:
    """
    One level of the key hierarchy under a prefix.

    sub_prefixes are the "folders" the backend folded deeper keys into;
    entries are the objects sitting directly at this level.
    """
    sub_prefixes: list[str] = field(default_factory=list)
    entries: list[StoredObject] = field(default_factory=list)


@dataclass(frozen=True)
class VideoEntry:
    """A playable file at the listed level."""
    key: str
    size_bytes: int
    last_modified: Optional[str]
    stream_url: str

    def __post_init__(self) -> None:
        if self.size_bytes < 0:
            raise ValueError("size_bytes cannot be negative")


@dataclass(frozen=True)
class PaginationWindow:
    """
    Page arithmetic for a listing.

    page is reported as requested (no upper clamp). A page past the end
    simply has no videos.
    """
    page: int
    page_size: int
    total_pages: int
    total_videos: int

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev_page(self) -> bool:
        return self.page > 1


@dataclass(frozen=True)
class ListingPage:
    """Result of browsing one prefix."""
    prefix: str
    folders: list[str]
    videos: list[VideoEntry]
    pagination: PaginationWindow


@dataclass(frozen=True)
class SignedAccessUrl:
    """A presigned GET URL for exactly one key."""
    key: str
    url: str
    expires_in_seconds: int
