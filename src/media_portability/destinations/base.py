"""Capability interface implemented by every import destination."""

from dataclasses import dataclass
from typing import Protocol

from media_portability.models import Album, AuthContext, MediaItem


@dataclass(frozen=True)
class MediaCreation:
    """Result of creating one photo or video at the destination.

    ``bytes_transferred`` is None when the destination does not report it.
    """

    destination_id: str
    bytes_transferred: int | None = None


class MediaInterface(Protocol):
    """Creates albums and media items at one destination service.

    Implementations raise subclasses of
    :class:`~media_portability.errors.MediaImportError` so the importer can
    tell skippable failures from fatal ones.
    """

    async def create_album(self, auth: AuthContext, album: Album) -> str: ...

    async def create_media_item(
        self,
        auth: AuthContext,
        item: MediaItem,
        destination_album_id: str | None,
    ) -> MediaCreation: ...
