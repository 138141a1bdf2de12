"""Idempotency ledger guaranteeing at-most-once creation per item key."""

import asyncio
import logging
from typing import Awaitable, Callable, Iterator

from media_portability.job_store import JobStore

logger = logging.getLogger(__name__)

CreateFn = Callable[[], Awaitable[str]]
CommitHook = Callable[[str, str, str], Awaitable[None]]


class IdempotencyLedger:
    """Maps idempotent keys of one job to destination identifiers.

    Creation is single-flight per key: concurrent callers for the same key
    wait on a per-key lock and the second one finds the entry committed by
    the first. Callers for different keys never wait on each other.
    """

    def __init__(
        self,
        job_id: str,
        entries: dict[str, str] | None = None,
        on_commit: CommitHook | None = None,
    ) -> None:
        """Initialize the ledger.

        Args:
            job_id: The job this ledger belongs to
            entries: Entries committed by earlier attempts of the job
            on_commit: Awaited with (job_id, key, destination_id) for every
                new entry, before resolve_or_create returns
        """
        self.job_id = job_id
        self._entries: dict[str, str] = dict(entries or {})
        self._on_commit = on_commit
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}
        self._pending: set[asyncio.Future[str]] = set()

    @classmethod
    async def restore(cls, job_id: str, job_store: JobStore) -> "IdempotencyLedger":
        """Rebuild the ledger of a job from its job store.

        New entries are written back to the same store as they are committed.
        """
        entries = await job_store.load_ledger(job_id)
        if entries:
            logger.info(f"Restored {len(entries)} ledger entry(ies) for job {job_id}")
        return cls(job_id, entries, on_commit=job_store.record_ledger_entry)

    def __contains__(self, idempotent_key: object) -> bool:
        return idempotent_key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, idempotent_key: str) -> str | None:
        return self._entries.get(idempotent_key)

    def entries(self) -> Iterator[tuple[str, str]]:
        return iter(list(self._entries.items()))

    async def resolve_or_create(
        self, job_id: str, idempotent_key: str, create_fn: CreateFn
    ) -> str:
        """Return the destination id for a key, creating the entity if needed.

        Args:
            job_id: Job the key belongs to; must match the ledger's job
            idempotent_key: Source-stable key of the item
            create_fn: Coroutine function creating the entity and returning
                its destination id

        Returns:
            The destination id, identical for every call with the same key

        Raises:
            ValueError: If job_id does not belong to this ledger
            Exception: Whatever create_fn raised; nothing is recorded
        """
        if job_id != self.job_id:
            raise ValueError(
                f"Ledger for job {self.job_id} cannot resolve keys of job {job_id}"
            )

        existing = self._entries.get(idempotent_key)
        if existing is not None:
            logger.debug(f"Key {idempotent_key} already imported as {existing}")
            return existing

        # A cancelled caller stops waiting but the creation still commits
        creation = asyncio.ensure_future(self._create_once(idempotent_key, create_fn))
        self._pending.add(creation)
        creation.add_done_callback(
            lambda done: self._creation_done(idempotent_key, done)
        )
        return await asyncio.shield(creation)

    def _creation_done(
        self, idempotent_key: str, creation: "asyncio.Future[str]"
    ) -> None:
        self._pending.discard(creation)
        if creation.cancelled():
            return
        # Retrieved here so failures nobody awaits any more are still reported
        exc = creation.exception()
        if exc is not None:
            logger.debug(f"Creation of {idempotent_key} failed: {exc!r}")

    async def _create_once(self, idempotent_key: str, create_fn: CreateFn) -> str:
        lock = self._locks.setdefault(idempotent_key, asyncio.Lock())
        self._waiters[idempotent_key] = self._waiters.get(idempotent_key, 0) + 1
        try:
            async with lock:
                existing = self._entries.get(idempotent_key)
                if existing is not None:
                    return existing

                destination_id = await create_fn()
                self._entries[idempotent_key] = destination_id
                if self._on_commit is not None:
                    await self._on_commit(self.job_id, idempotent_key, destination_id)
                logger.debug(f"Recorded {idempotent_key} -> {destination_id}")
                return destination_id
        finally:
            self._waiters[idempotent_key] -= 1
            if not self._waiters[idempotent_key]:
                del self._waiters[idempotent_key]
                del self._locks[idempotent_key]
