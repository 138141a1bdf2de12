"""Import orchestration: albums first, then photos and videos concurrently."""

import asyncio
import logging

from media_portability.aggregator import aggregate_results
from media_portability.collector import ErrorCollector
from media_portability.config import ImporterSettings
from media_portability.destinations.base import MediaInterface
from media_portability.importer import CategoryAbortedError, CategoryImporter
from media_portability.job_store import JobStore
from media_portability.ledger import IdempotencyLedger
from media_portability.models import (
    AuthContext,
    Category,
    CategoryResult,
    ImportJob,
    ImportResult,
    MediaContainer,
)

logger = logging.getLogger(__name__)


class ImportOrchestrator:
    """Imports a job's media library into one destination.

    Safe to invoke again for the same job after a crash or a partial
    failure: entities created by earlier attempts are found in the job's
    ledger and are neither created nor counted again.
    """

    def __init__(
        self,
        media_interface: MediaInterface,
        job_store: JobStore,
        settings: ImporterSettings | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            media_interface: Destination to import into
            job_store: Durable store for ledger entries and error records
            settings: Importer settings, defaults when omitted
        """
        self.settings = settings or ImporterSettings()
        self.media_interface = media_interface
        self.job_store = job_store
        self.importer = CategoryImporter(
            media_interface,
            max_concurrent_imports=self.settings.max_concurrent_imports,
        )

    async def run(self, job: ImportJob) -> ImportResult:
        return await self.import_job(job.job_id, job.auth, job.data)

    async def import_job(
        self, job_id: str, auth: AuthContext, data: MediaContainer | None
    ) -> ImportResult:
        """Import albums, photos and videos of one job.

        Args:
            job_id: Job being imported
            auth: Destination credentials
            data: Items to import; None is an empty batch

        Returns:
            The merged result. Status is ERROR when a category aborted on a
            fatal failure; counts and bytes then cover what was imported
            before it stopped.
        """
        if data is None or data.is_empty:
            logger.info(f"Nothing to import for job {job_id}")
            return ImportResult.ok()

        logger.info(
            f"Importing job {job_id}: {len(data.albums)} album(s), "
            f"{len(data.photos)} photo(s), {len(data.videos)} video(s)"
        )

        ledger = await IdempotencyLedger.restore(job_id, self.job_store)
        collector = ErrorCollector(job_id, self.job_store)
        results: list[CategoryResult] = []
        aborted: list[CategoryAbortedError] = []

        try:
            try:
                albums = await self.importer.import_albums(
                    job_id, auth, data.albums, ledger, collector
                )
            except CategoryAbortedError as e:
                logger.error(f"Album import failed for job {job_id}, skipping media")
                results.append(e.partial)
                aborted.append(e)
            else:
                results.append(albums)
                results.extend(
                    await self._import_media(
                        job_id, auth, data, albums, ledger, collector, aborted
                    )
                )
        finally:
            errors = await collector.flush()

        result = aggregate_results(results).copy_with_errors(errors)
        if aborted:
            failure = "; ".join(str(e) for e in aborted)
            logger.error(f"Job {job_id} finished with errors: {failure}")
            return result.copy_with_failure(failure)

        logger.info(
            f"Job {job_id} imported {dict(result.counts)} ({result.bytes} bytes), "
            f"{len(errors)} item(s) skipped"
        )
        return result

    async def _import_media(
        self,
        job_id: str,
        auth: AuthContext,
        data: MediaContainer,
        albums: CategoryResult,
        ledger: IdempotencyLedger,
        collector: ErrorCollector,
        aborted: list[CategoryAbortedError],
    ) -> list[CategoryResult]:
        # Photos and videos only depend on the album mapping, not on each other
        outcomes = await asyncio.gather(
            self.importer.import_media(
                job_id, auth, Category.PHOTO, data.photos,
                albums.destination_ids, ledger, collector,
            ),
            self.importer.import_media(
                job_id, auth, Category.VIDEO, data.videos,
                albums.destination_ids, ledger, collector,
            ),
            return_exceptions=True,
        )

        results: list[CategoryResult] = []
        for outcome in outcomes:
            if isinstance(outcome, CategoryAbortedError):
                results.append(outcome.partial)
                aborted.append(outcome)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results.append(outcome)
        return results

    async def complete_job(self, job_id: str) -> None:
        """Discard the ledger of a job that has fully completed."""
        await self.job_store.discard_ledger(job_id)
        logger.info(f"Discarded ledger of completed job {job_id}")
