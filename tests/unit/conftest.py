"""
Shared test doubles.

RecordingGateway stands in for object storage and remembers every call,
so tests can check what reached the backend (and what didn't).
"""

from datetime import datetime, timezone
from typing import Optional

import pytest

from src.core.catalog.models import LevelListing, StoredObject


class RecordingGateway:
    """In-memory StorageGateway that records calls."""

    def __init__(
        self,
        keys: Optional[list[str]] = None,
        sub_prefixes: Optional[list[str]] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.keys = keys or []
        self.sub_prefixes = sub_prefixes or []
        self.error = error
        self.list_calls: list[tuple[str, str, int]] = []
        self.sign_calls: list[tuple[str, int]] = []

    async def list_one_level(
        self,
        prefix: str,
        delimiter: str = "/",
        limit: int = 1000,
    ) -> LevelListing:
        self.list_calls.append((prefix, delimiter, limit))
        if self.error:
            raise self.error
        return LevelListing(
            sub_prefixes=list(self.sub_prefixes),
            entries=[
                StoredObject(
                    key=key,
                    size=1024,
                    last_modified=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
                )
                for key in self.keys
            ],
        )

    async def sign_get(self, key: str, ttl_seconds: int) -> str:
        self.sign_calls.append((key, ttl_seconds))
        if self.error:
            raise self.error
        return f"https://signed.example.com/{key}?X-Amz-Expires={ttl_seconds}"

    async def ping(self) -> None:
        if self.error:
            raise self.error


@pytest.fixture
def gateway() -> RecordingGateway:
    return RecordingGateway()


@pytest.fixture
def gateway_factory() -> type[RecordingGateway]:
    """For tests that need a gateway preloaded with keys or an error."""
    return RecordingGateway
