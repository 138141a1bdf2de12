"""Destination that simulates imports without making API calls."""

import logging

from media_portability.destinations.base import MediaCreation
from media_portability.models import Album, AuthContext, MediaItem

logger = logging.getLogger(__name__)


class DryRunMediaInterface:
    """Fabricates destination ids and reports each item's declared size."""

    async def create_album(self, auth: AuthContext, album: Album) -> str:
        logger.info(f"[DRY RUN] Would create album: {album.display_name}")
        return f"dry_run_album_{album.idempotent_key}"

    async def create_media_item(
        self,
        auth: AuthContext,
        item: MediaItem,
        destination_album_id: str | None,
    ) -> MediaCreation:
        logger.info(
            f"[DRY RUN] Would import {item.category.value} {item.display_name} "
            f"into album {destination_album_id}"
        )
        return MediaCreation(
            destination_id=f"dry_run_media_{item.idempotent_key}",
            bytes_transferred=item.size_bytes,
        )
