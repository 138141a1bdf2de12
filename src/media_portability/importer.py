"""Category importer with concurrency control."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Mapping, Sequence, TypeVar

from media_portability.collector import ErrorCollector, build_error_record
from media_portability.destinations.base import MediaInterface
from media_portability.errors import MissingAlbumError, is_skippable
from media_portability.ledger import IdempotencyLedger
from media_portability.models import (
    ITEMS_CREATED,
    Album,
    AuthContext,
    Category,
    CategoryResult,
    ErrorRecord,
    MediaItem,
)

logger = logging.getLogger(__name__)

ItemT = TypeVar("ItemT", Album, MediaItem)

# Creates one item and returns (destination_id, bytes_transferred)
CreateItem = Callable[[ItemT], Awaitable[tuple[str, int]]]

ALBUM_NAMESPACE = "album:"


def album_ledger_key(idempotent_key: str) -> str:
    """Ledger key of an album; albums never collide with photos or videos."""
    return f"{ALBUM_NAMESPACE}{idempotent_key}"


class CategoryAbortedError(Exception):
    """A fatal failure stopped the import of a category.

    Carries what the category achieved before it stopped so the caller can
    still report partial progress.
    """

    def __init__(
        self, category: Category, partial: CategoryResult, record: ErrorRecord
    ) -> None:
        super().__init__(
            f"Import of {category.value}s aborted after fatal failure on "
            f"'{record.display_name}'"
        )
        self.category = category
        self.partial = partial
        self.record = record


@dataclass
class _Tally:
    items_created: int = 0
    bytes: int = 0
    destination_ids: dict[str, str] = field(default_factory=dict)
    fatal: list[ErrorRecord] = field(default_factory=list)


class CategoryImporter:
    """Imports one category of items at a time.

    All destination calls made through one importer share a semaphore, so
    categories imported concurrently still respect a single limit.
    """

    def __init__(
        self, media_interface: MediaInterface, max_concurrent_imports: int = 10
    ) -> None:
        """Initialize the category importer.

        Args:
            media_interface: Destination to create albums and media items at
            max_concurrent_imports: Maximum number of concurrent destination calls
        """
        self.media_interface = media_interface
        self.max_concurrent_imports = max_concurrent_imports
        self._semaphore = asyncio.Semaphore(max_concurrent_imports)

    async def import_albums(
        self,
        job_id: str,
        auth: AuthContext,
        albums: Sequence[Album],
        ledger: IdempotencyLedger,
        collector: ErrorCollector,
    ) -> CategoryResult:
        """Import albums.

        The result's ``destination_ids`` is the album mapping media imports
        need to attach items to their destination album.
        """

        async def create(album: Album) -> tuple[str, int]:
            return await self.media_interface.create_album(auth, album), 0

        return await self.import_category(
            job_id,
            Category.ALBUM,
            albums,
            create,
            ledger,
            collector,
            key_prefix=ALBUM_NAMESPACE,
        )

    async def import_media(
        self,
        job_id: str,
        auth: AuthContext,
        category: Category,
        items: Sequence[MediaItem],
        album_ids: Mapping[str, str],
        ledger: IdempotencyLedger,
        collector: ErrorCollector,
    ) -> CategoryResult:
        """Import photos or videos into their destination albums.

        Args:
            album_ids: Album idempotent key to destination album id, as
                resolved by the album import of the same call
        """

        async def create(item: MediaItem) -> tuple[str, int]:
            album_id = self._resolve_album(item, album_ids, ledger)
            creation = await self.media_interface.create_media_item(
                auth, item, album_id
            )
            if creation.bytes_transferred is None:
                logger.warning(
                    f"Destination reported no byte count for {item.display_name}, "
                    f"counting 0 bytes"
                )
                return creation.destination_id, 0
            return creation.destination_id, creation.bytes_transferred

        return await self.import_category(
            job_id, category, items, create, ledger, collector
        )

    @staticmethod
    def _resolve_album(
        item: MediaItem, album_ids: Mapping[str, str], ledger: IdempotencyLedger
    ) -> str | None:
        if item.album_key is None:
            return None
        # Albums created by an earlier attempt are only in the ledger
        album_id = album_ids.get(item.album_key)
        if album_id is None:
            album_id = ledger.get(album_ledger_key(item.album_key))
        if album_id is None:
            raise MissingAlbumError(
                f"Album {item.album_key} of {item.display_name} was not imported"
            )
        return album_id

    async def import_category(
        self,
        job_id: str,
        category: Category,
        items: Sequence[ItemT],
        create: CreateItem,
        ledger: IdempotencyLedger,
        collector: ErrorCollector,
        key_prefix: str = "",
    ) -> CategoryResult:
        """Import every item of one category concurrently.

        Skippable failures are recorded and the remaining items continue.
        A fatal failure is recorded, items not yet started are skipped and,
        once in-flight items finish, CategoryAbortedError is raised.

        Items are recorded in the ledger under ``key_prefix`` plus their
        idempotent key. ``destination_ids`` of the result uses the bare key.

        Raises:
            CategoryAbortedError: If any item failed fatally
        """
        tally = _Tally()
        if not items:
            return self._result(category, tally)

        logger.info(f"Importing {len(items)} {category.value}(s) for job {job_id}")
        abort = asyncio.Event()

        tasks = [
            self._import_with_semaphore(
                job_id, item, key_prefix, create, ledger, collector, tally, abort
            )
            for item in items
        ]
        await asyncio.gather(*tasks)

        result = self._result(category, tally)
        if tally.fatal:
            raise CategoryAbortedError(category, result, tally.fatal[0])

        logger.info(
            f"Imported {result.items_created} new {category.value}(s) "
            f"({result.bytes} bytes) for job {job_id}"
        )
        return result

    @staticmethod
    def _result(category: Category, tally: _Tally) -> CategoryResult:
        return CategoryResult(
            category=category,
            counts={ITEMS_CREATED: tally.items_created},
            bytes=tally.bytes,
            destination_ids=tally.destination_ids,
        )

    async def _import_with_semaphore(
        self,
        job_id: str,
        item: ItemT,
        key_prefix: str,
        create: CreateItem,
        ledger: IdempotencyLedger,
        collector: ErrorCollector,
        tally: _Tally,
        abort: asyncio.Event,
    ) -> None:
        async with self._semaphore:
            if abort.is_set():
                logger.debug(f"Not importing {item.display_name}: category aborted")
                return
            await self._import_item(
                job_id, item, key_prefix, create, ledger, collector, tally, abort
            )

    async def _import_item(
        self,
        job_id: str,
        item: ItemT,
        key_prefix: str,
        create: CreateItem,
        ledger: IdempotencyLedger,
        collector: ErrorCollector,
        tally: _Tally,
        abort: asyncio.Event,
    ) -> None:
        created_bytes: list[int] = []

        async def create_fn() -> str:
            destination_id, transferred = await create(item)
            created_bytes.append(transferred)
            return destination_id

        try:
            destination_id = await ledger.resolve_or_create(
                job_id, f"{key_prefix}{item.idempotent_key}", create_fn
            )
        except Exception as e:
            record = build_error_record(
                item.idempotent_key, item.display_name, e, is_skippable(e)
            )
            collector.record(record)
            if not collector.can_continue(record):
                tally.fatal.append(record)
                abort.set()
            return

        tally.destination_ids[item.idempotent_key] = destination_id
        # Items resolved from the ledger were counted by the attempt that created them
        if created_bytes:
            tally.items_created += 1
            tally.bytes += created_bytes[0]
