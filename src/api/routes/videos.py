"""
Video catalog API endpoints.

Two operations:
1. GET /api/videos: browse one level of the bucket (folders + paged videos)
2. GET /api/videos/stream/{key}: redirect to a short-lived signed URL

Bad paging parameters are silently corrected rather than rejected, so
the query parameters are read as strings and parsed leniently.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Query, Request, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ...core.catalog.errors import InvalidKeyEncoding
from ...core.catalog.models import ListingPage
from ..dependencies import AccessIssuerDep, CatalogListerDep

logger = logging.getLogger(__name__)

router = APIRouter()

STREAM_ROUTE_MARKER = "/videos/stream/"


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class CamelModel(BaseModel):
    """Serializes snake_case fields as camelCase for the frontend."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VideoItem(CamelModel):
    """A playable video at the listed level."""
    key: str = Field(description="Full storage key")
    size: int = Field(description="Size in bytes (0 if unknown)")
    last_modified: Optional[str] = Field(default=None, description="RFC 3339 UTC timestamp")
    stream_url: str = Field(description="Relative URL that redirects to a signed URL")


class PaginationInfo(CamelModel):
    page: int
    page_size: int
    total_pages: int
    total_videos: int
    has_next_page: bool
    has_prev_page: bool


class VideoListResponse(CamelModel):
    """One level of the bucket."""
    prefix: str = Field(description="Prefix that was listed")
    folders: list[str] = Field(description="Sub-prefixes directly under prefix")
    videos: list[VideoItem] = Field(description="Videos on the requested page")
    pagination: PaginationInfo


# ---------------------------------------------------------------------------
# Helper Functions
# ---------------------------------------------------------------------------

def parse_optional_int(value: Optional[str]) -> Optional[int]:
    """Non-numeric input counts as absent."""
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def to_response(listing: ListingPage) -> VideoListResponse:
    window = listing.pagination
    return VideoListResponse(
        prefix=listing.prefix,
        folders=listing.folders,
        videos=[
            VideoItem(
                key=video.key,
                size=video.size_bytes,
                last_modified=video.last_modified,
                stream_url=video.stream_url,
            )
            for video in listing.videos
        ],
        pagination=PaginationInfo(
            page=window.page,
            page_size=window.page_size,
            total_pages=window.total_pages,
            total_videos=window.total_videos,
            has_next_page=window.has_next_page,
            has_prev_page=window.has_prev_page,
        ),
    )


def raw_stream_key(request: Request, key: str) -> str:
    """
    The key exactly as the client encoded it.

    The ASGI server has already percent-decoded the path once. Taking the
    tail of raw_path instead means the key is decoded exactly once, so
    keys that themselves contain "%" survive the round trip.
    Unescaped non-ASCII bytes in the path are read as UTF-8.
    """
    raw_path = request.scope.get("raw_path")
    if not raw_path:
        return key

    marker = STREAM_ROUTE_MARKER.encode("ascii")
    marker_at = raw_path.find(marker)
    if marker_at < 0:
        return key

    tail = raw_path[marker_at + len(marker):]
    try:
        return tail.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidKeyEncoding(repr(tail), f"path bytes are not UTF-8 ({e.reason})")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=VideoListResponse,
    status_code=status.HTTP_200_OK,
    summary="Browse videos",
    description="List folders and videos directly under a prefix, with pagination",
    responses={500: {"description": "Storage backend unavailable"}},
)
async def list_videos(
    lister: CatalogListerDep,
    page: Annotated[Optional[str], Query()] = None,
    page_size: Annotated[Optional[str], Query(alias="pageSize")] = None,
    prefix: Annotated[str, Query()] = "",
) -> VideoListResponse:
    """
    Browse one level of the bucket.

    Every call re-queries storage. pageSize defaults to 18 when absent,
    zero or unparseable; pages past the end come back empty.
    """
    listing = await lister.list(
        prefix=prefix,
        page=parse_optional_int(page),
        page_size=parse_optional_int(page_size),
    )
    return to_response(listing)


@router.get(
    "/stream/{key:path}",
    status_code=status.HTTP_302_FOUND,
    summary="Stream a video",
    description="Redirect to a signed URL valid for one hour",
    response_class=RedirectResponse,
    responses={
        400: {"description": "Key is not valid percent-encoding"},
        500: {"description": "Signing failed"},
    },
)
async def stream_video(
    key: str,
    request: Request,
    issuer: AccessIssuerDep,
) -> RedirectResponse:
    """
    Redirect to a presigned GET URL for the key.

    The object's existence isn't checked; a missing key surfaces as a
    404 from storage when the client follows the redirect.
    """
    signed = await issuer.issue(raw_stream_key(request, key))

    logger.info("Redirecting to signed URL", extra={"key": signed.key})

    return RedirectResponse(url=signed.url, status_code=status.HTTP_302_FOUND)
