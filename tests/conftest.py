"""Pytest configuration and shared fixtures."""

import asyncio

import pytest

from media_portability.destinations.base import MediaCreation
from media_portability.job_store import InMemoryJobStore
from media_portability.models import (
    Album,
    AuthContext,
    MediaContainer,
    MediaItem,
    Photo,
    Video,
)


class FakeDestination:
    """In-memory destination recording every creation call.

    ``failures`` maps an idempotent key to the exception raised whenever
    that item is created; remove the key to let a later attempt succeed.
    """

    def __init__(self, delay: float = 0.0, report_bytes: bool = True) -> None:
        self.delay = delay
        self.report_bytes = report_bytes
        self.failures: dict[str, Exception] = {}
        self.album_calls: list[str] = []
        self.media_calls: list[tuple[str, str | None]] = []

    async def create_album(self, auth: AuthContext, album: Album) -> str:
        self.album_calls.append(album.idempotent_key)
        await asyncio.sleep(self.delay)
        if album.idempotent_key in self.failures:
            raise self.failures[album.idempotent_key]
        return f"dest-album-{album.idempotent_key}"

    async def create_media_item(
        self,
        auth: AuthContext,
        item: MediaItem,
        destination_album_id: str | None,
    ) -> MediaCreation:
        self.media_calls.append((item.idempotent_key, destination_album_id))
        await asyncio.sleep(self.delay)
        if item.idempotent_key in self.failures:
            raise self.failures[item.idempotent_key]
        return MediaCreation(
            destination_id=f"dest-{item.category.value}-{item.idempotent_key}",
            bytes_transferred=item.size_bytes if self.report_bytes else None,
        )


@pytest.fixture
def job_id() -> str:
    return "job-0001"


@pytest.fixture
def auth_context() -> AuthContext:
    """Return fake destination credentials for testing."""
    return AuthContext(access_token="test_access_token_123", url="https://media.example.com/v1")


@pytest.fixture
def job_store() -> InMemoryJobStore:
    return InMemoryJobStore()


@pytest.fixture
def destination() -> FakeDestination:
    return FakeDestination()


@pytest.fixture
def media_batch() -> MediaContainer:
    """Create a batch with 2 albums, 3 photos and 1 video.

    Structure:
        album-1: photo-1 (100 bytes), photo-2 (200 bytes)
        album-2: photo-3 (0 bytes), video-1 (1000 bytes)
    """
    return MediaContainer(
        albums=(
            Album(idempotent_key="album-1", title="Holidays"),
            Album(idempotent_key="album-2", title="Birthdays"),
        ),
        photos=(
            Photo(idempotent_key="photo-1", title="Beach", album_key="album-1", size_bytes=100),
            Photo(idempotent_key="photo-2", title="Sunset", album_key="album-1", size_bytes=200),
            Photo(idempotent_key="photo-3", title="Cake", album_key="album-2", size_bytes=0),
        ),
        videos=(
            Video(idempotent_key="video-1", title="Candles", album_key="album-2", size_bytes=1000),
        ),
    )
