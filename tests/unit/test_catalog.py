"""
Unit tests for the catalog domain logic.

These tests verify listing, paging, key encoding and URL issuance
without touching a real bucket. Storage is a RecordingGateway.

Testing philosophy:
- Test behavior, not implementation
- Use descriptive names that explain what we're testing
- Prefer real objects over mocks where practical
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from src.core.catalog.errors import BackendUnavailable, ClientInputError, InvalidKeyEncoding
from src.core.catalog.issuer import SIGNED_URL_TTL_SECONDS, AccessIssuer
from src.core.catalog.keys import decode_key, encode_key, stream_url_for
from src.core.catalog.lister import (
    DEFAULT_PAGE_SIZE,
    CatalogLister,
    effective_page_size,
    is_video_key,
    paginate,
    to_video_entry,
)
from src.core.catalog.models import PaginationWindow, StoredObject, VideoEntry


def numbered_videos(count: int, prefix: str = "") -> list[str]:
    return [f"{prefix}clip-{i:02d}.mp4" for i in range(1, count + 1)]


def entries_for(keys: list[str]) -> list[VideoEntry]:
    return [to_video_entry(StoredObject(key=key, size=1)) for key in keys]


# ---------------------------------------------------------------------------
# Key Encoding Tests
# ---------------------------------------------------------------------------

class TestKeyEncoding:
    """Tests for percent-encoding of storage keys."""

    def test_encode_escapes_slash(self):
        """The whole key must fit into one path segment."""
        assert encode_key("folder/movie.mp4") == "folder%2Fmovie.mp4"

    def test_encode_leaves_unreserved_characters(self):
        assert encode_key("A-z_0.9~") == "A-z_0.9~"

    @pytest.mark.parametrize("key", [
        "folder/movie.mp4",
        "deep/nested/path/clip one.mov",
        "percent%20literal.mkv",
        "unicode/überfilm 東京.webm",
        "plus+and&ampersand?.avi",
    ])
    def test_decode_reverses_encode(self, key):
        assert decode_key(encode_key(key)) == key

    def test_decode_plain_key_is_unchanged(self):
        assert decode_key("folder/movie.mp4") == "folder/movie.mp4"

    def test_decode_does_not_treat_plus_as_space(self):
        """Path segments aren't form data."""
        assert decode_key("a+b.mp4") == "a+b.mp4"

    @pytest.mark.parametrize("raw", ["%zz", "movie%", "movie%4", "%g1.mp4"])
    def test_decode_rejects_malformed_escapes(self, raw):
        with pytest.raises(InvalidKeyEncoding, match="malformed"):
            decode_key(raw)

    def test_decode_rejects_invalid_utf8(self):
        with pytest.raises(InvalidKeyEncoding, match="UTF-8"):
            decode_key("%ff%fe.mp4")

    def test_invalid_encoding_is_a_client_error(self):
        with pytest.raises(ClientInputError):
            decode_key("%zz")

    def test_stream_url_embeds_encoded_key(self):
        assert stream_url_for("clips/a b.mp4") == "/api/videos/stream/clips%2Fa%20b.mp4"


# ---------------------------------------------------------------------------
# Filtering and Paging Tests
# ---------------------------------------------------------------------------

class TestVideoFilter:
    """Tests for recognizing video files by extension."""

    @pytest.mark.parametrize("key", [
        "clips/a.mp4",
        "clips/a.MP4",
        "b.Mov",
        "c.avi",
        "d.MKV",
        "e.webm",
    ])
    def test_recognizes_video_extensions_case_insensitively(self, key):
        assert is_video_key(key)

    @pytest.mark.parametrize("key", [
        "clips/readme.txt",
        "poster.jpg",
        "clips/",
        "mp4",
        "movie.mp4.part",
    ])
    def test_rejects_other_files(self, key):
        assert not is_video_key(key)


class TestPageSize:
    """Bad page sizes are corrected, never rejected."""

    @pytest.mark.parametrize("page_size", [None, 0, -1, -50])
    def test_missing_or_non_positive_falls_back_to_default(self, page_size):
        assert effective_page_size(page_size) == DEFAULT_PAGE_SIZE == 18

    def test_positive_value_is_kept(self):
        assert effective_page_size(5) == 5


class TestPaginate:
    """Tests for page window arithmetic."""

    def test_twenty_videos_first_page(self):
        videos = entries_for(numbered_videos(20))

        window, pagination = paginate(videos, page=1, page_size=18)

        assert len(window) == 18
        assert pagination.total_pages == 2
        assert pagination.total_videos == 20
        assert pagination.has_next_page
        assert not pagination.has_prev_page

    def test_twenty_videos_second_page(self):
        videos = entries_for(numbered_videos(20))

        window, pagination = paginate(videos, page=2, page_size=18)

        assert [v.key for v in window] == ["clip-19.mp4", "clip-20.mp4"]
        assert not pagination.has_next_page
        assert pagination.has_prev_page

    def test_page_past_end_is_empty_not_error(self):
        videos = entries_for(numbered_videos(5))

        window, pagination = paginate(videos, page=7, page_size=2)

        assert window == []
        assert pagination.page == 7
        assert pagination.total_pages == 3
        assert not pagination.has_next_page
        assert pagination.has_prev_page

    def test_missing_page_means_first_page(self):
        videos = entries_for(numbered_videos(3))

        window, pagination = paginate(videos, page=None, page_size=None)

        assert len(window) == 3
        assert pagination.page == 1
        assert pagination.page_size == 18

    @pytest.mark.parametrize("page", [0, -3])
    def test_page_below_one_saturates_to_first_page(self, page):
        videos = entries_for(numbered_videos(4))

        window, pagination = paginate(videos, page=page, page_size=2)

        assert [v.key for v in window] == ["clip-01.mp4", "clip-02.mp4"]
        assert pagination.page == 1
        assert pagination.has_next_page
        assert not pagination.has_prev_page

    def test_negative_page_on_empty_listing_has_no_next_page(self):
        """Flags must never advertise a page that doesn't exist."""
        window, pagination = paginate([], page=-3, page_size=None)

        assert window == []
        assert pagination.page == 1
        assert pagination.total_pages == 0
        assert not pagination.has_next_page
        assert not pagination.has_prev_page

    def test_empty_listing_has_zero_pages(self):
        window, pagination = paginate([], page=1, page_size=10)

        assert window == []
        assert pagination.total_pages == 0
        assert not pagination.has_next_page
        assert not pagination.has_prev_page

    def test_exact_multiple_does_not_add_a_page(self):
        _, pagination = paginate(entries_for(numbered_videos(36)), page=1, page_size=18)
        assert pagination.total_pages == 2


class TestPaginationWindow:
    def test_flags_derive_from_page_and_total(self):
        window = PaginationWindow(page=2, page_size=10, total_pages=3, total_videos=25)
        assert window.has_next_page
        assert window.has_prev_page


class TestVideoEntry:
    def test_missing_size_defaults_to_zero(self):
        entry = to_video_entry(StoredObject(key="a.mp4"))

        assert entry.size_bytes == 0
        assert entry.last_modified is None
        assert entry.stream_url == "/api/videos/stream/a.mp4"

    def test_last_modified_is_rfc3339_utc(self):
        modified = datetime(2024, 5, 1, 14, 30, 5, tzinfo=timezone(timedelta(hours=2)))

        entry = to_video_entry(StoredObject(key="a.mp4", last_modified=modified))

        assert entry.last_modified == "2024-05-01T12:30:05Z"

    def test_naive_last_modified_is_taken_as_utc(self):
        entry = to_video_entry(StoredObject(key="a.mp4", last_modified=datetime(2024, 5, 1, 12, 0)))

        assert entry.last_modified == "2024-05-01T12:00:00Z"

    def test_rejects_negative_size(self):
        with pytest.raises(ValueError, match="cannot be negative"):
            VideoEntry(key="a.mp4", size_bytes=-1, last_modified=None, stream_url="x")


# ---------------------------------------------------------------------------
# Catalog Lister Tests
# ---------------------------------------------------------------------------

class TestCatalogLister:
    """Tests for listing one level of the bucket."""

    def test_queries_backend_once_with_delimiter_and_limit(self, gateway):
        lister = CatalogLister(gateway)

        asyncio.run(lister.list(prefix="clips/"))

        assert gateway.list_calls == [("clips/", "/", 1000)]

    def test_sorts_videos_by_key(self, gateway_factory):
        gateway = gateway_factory(keys=["b.mp4", "a.mp4"])

        listing = asyncio.run(CatalogLister(gateway).list())

        assert [v.key for v in listing.videos] == ["a.mp4", "b.mp4"]

    def test_sort_is_case_sensitive_codepoint_order(self, gateway_factory):
        gateway = gateway_factory(keys=["b.mp4", "B.mp4", "a.mp4"])

        listing = asyncio.run(CatalogLister(gateway).list())

        assert [v.key for v in listing.videos] == ["B.mp4", "a.mp4", "b.mp4"]

    def test_drops_non_video_entries(self, gateway_factory):
        gateway = gateway_factory(keys=["clips/a.MP4", "clips/readme.txt", "clips/cover.jpg"])

        listing = asyncio.run(CatalogLister(gateway).list(prefix="clips/"))

        assert [v.key for v in listing.videos] == ["clips/a.MP4"]
        assert listing.pagination.total_videos == 1

    def test_folders_pass_through_in_backend_order(self, gateway_factory):
        gateway = gateway_factory(
            keys=["a.mp4"],
            sub_prefixes=["zeta/", "alpha/", "notes.txt/"],
        )

        listing = asyncio.run(CatalogLister(gateway).list())

        assert listing.folders == ["zeta/", "alpha/", "notes.txt/"]

    def test_paginates_after_filtering(self, gateway_factory):
        keys = numbered_videos(20) + ["readme.txt", "thumb.png"]
        gateway = gateway_factory(keys=keys)

        listing = asyncio.run(CatalogLister(gateway).list(page=2, page_size=18))

        assert [v.key for v in listing.videos] == ["clip-19.mp4", "clip-20.mp4"]
        assert listing.pagination.total_videos == 20
        assert listing.pagination.total_pages == 2

    def test_builds_stream_urls_and_metadata(self, gateway_factory):
        gateway = gateway_factory(keys=["folder/movie.mp4"])

        listing = asyncio.run(CatalogLister(gateway).list(prefix="folder/"))

        video = listing.videos[0]
        assert video.stream_url == "/api/videos/stream/folder%2Fmovie.mp4"
        assert video.size_bytes == 1024
        assert video.last_modified == "2024-05-01T12:00:00Z"

    def test_empty_prefix_is_a_successful_empty_listing(self, gateway):
        listing = asyncio.run(CatalogLister(gateway).list(prefix="missing/"))

        assert listing.prefix == "missing/"
        assert listing.folders == []
        assert listing.videos == []
        assert listing.pagination.total_pages == 0

    def test_backend_failure_propagates(self, gateway_factory):
        gateway = gateway_factory(error=BackendUnavailable("down", operation="list"))

        with pytest.raises(BackendUnavailable):
            asyncio.run(CatalogLister(gateway).list())


# ---------------------------------------------------------------------------
# Access Issuer Tests
# ---------------------------------------------------------------------------

class TestAccessIssuer:
    """Tests for signed URL issuance."""

    def test_decodes_key_and_signs_for_one_hour(self, gateway):
        issuer = AccessIssuer(gateway)

        signed = asyncio.run(issuer.issue("folder%2Fmovie.mp4"))

        assert gateway.sign_calls == [("folder/movie.mp4", 3600)]
        assert signed.key == "folder/movie.mp4"
        assert signed.url == "https://signed.example.com/folder/movie.mp4?X-Amz-Expires=3600"
        assert signed.expires_in_seconds == SIGNED_URL_TTL_SECONDS == 3600

    def test_malformed_key_never_reaches_backend(self, gateway):
        issuer = AccessIssuer(gateway)

        with pytest.raises(InvalidKeyEncoding):
            asyncio.run(issuer.issue("%zz"))

        assert gateway.sign_calls == []

    def test_nonexistent_key_still_gets_a_url(self, gateway):
        """Existence is the backend's problem at dereference time."""
        signed = asyncio.run(AccessIssuer(gateway).issue("no/such/file.mp4"))

        assert signed.url.startswith("https://signed.example.com/no/such/file.mp4")

    def test_signing_failure_propagates(self, gateway_factory):
        gateway = gateway_factory(error=BackendUnavailable("bad creds", operation="sign"))

        with pytest.raises(BackendUnavailable):
            asyncio.run(AccessIssuer(gateway).issue("a.mp4"))
