"""
Video catalog logic.

Contains the lister, the access issuer, key encoding and domain models.
"""

from .errors import BackendUnavailable, CatalogError, ClientInputError, InvalidKeyEncoding
from .issuer import SIGNED_URL_TTL_SECONDS, AccessIssuer
from .keys import decode_key, encode_key, stream_url_for
from .lister import (
    DEFAULT_PAGE_SIZE,
    MAX_LISTED_KEYS,
    VIDEO_EXTENSIONS,
    CatalogLister,
    StorageGateway,
    is_video_key,
    paginate,
)
from .models import (
    LevelListing,
    ListingPage,
    PaginationWindow,
    SignedAccessUrl,
    StoredObject,
    VideoEntry,
)

__all__ = [
    "AccessIssuer",
    "BackendUnavailable",
    "CatalogError",
    "CatalogLister",
    "ClientInputError",
    "DEFAULT_PAGE_SIZE",
    "InvalidKeyEncoding",
    "LevelListing",
    "ListingPage",
    "MAX_LISTED_KEYS",
    "PaginationWindow",
    "SIGNED_URL_TTL_SECONDS",
    "SignedAccessUrl",
    "StorageGateway",
    "StoredObject",
    "VIDEO_EXTENSIONS",
    "VideoEntry",
    "decode_key",
    "encode_key",
    "is_video_key",
    "paginate",
    "stream_url_for",
]
