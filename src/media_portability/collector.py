"""Collection of per-item failures for one import call."""

import logging
import threading
import traceback

from media_portability.job_store import JobStore
from media_portability.models import ErrorRecord

logger = logging.getLogger(__name__)


def build_error_record(
    idempotent_key: str, display_name: str, exc: BaseException, can_skip: bool
) -> ErrorRecord:
    """Create an ErrorRecord carrying the formatted exception and traceback."""
    description = "".join(
        traceback.format_exception(type(exc), exc, exc.__traceback__)
    ).rstrip()
    return ErrorRecord(
        idempotent_key=idempotent_key,
        display_name=display_name,
        failure_description=description,
        can_skip=can_skip,
    )


class ErrorCollector:
    """Accumulates ErrorRecords and hands them to the job store once."""

    def __init__(self, job_id: str, job_store: JobStore) -> None:
        self.job_id = job_id
        self.job_store = job_store
        self._records: list[ErrorRecord] = []
        self._lock = threading.Lock()
        self._flushed = False

    @property
    def records(self) -> tuple[ErrorRecord, ...]:
        with self._lock:
            return tuple(self._records)

    @property
    def flushed(self) -> bool:
        return self._flushed

    def record(self, record: ErrorRecord) -> None:
        """Append a failure record.

        Raises:
            RuntimeError: If the collector was already flushed
        """
        with self._lock:
            if self._flushed:
                raise RuntimeError(
                    f"Error collector for job {self.job_id} was already flushed"
                )
            self._records.append(record)

        if record.can_skip:
            logger.warning(f"Skipping '{record.display_name}' ({record.idempotent_key})")
        else:
            logger.error(
                f"Fatal failure on '{record.display_name}' ({record.idempotent_key})"
            )

    def can_continue(self, record: ErrorRecord) -> bool:
        return record.can_skip

    async def flush(self) -> tuple[ErrorRecord, ...]:
        """Persist every collected record to the job store.

        Returns:
            The records handed to the job store

        Raises:
            RuntimeError: If called more than once
        """
        with self._lock:
            if self._flushed:
                raise RuntimeError(
                    f"Error collector for job {self.job_id} was already flushed"
                )
            self._flushed = True
            records = tuple(self._records)

        if not records:
            logger.debug(f"No errors to persist for job {self.job_id}")
            return records

        await self.job_store.persist_errors(self.job_id, list(records))
        logger.info(f"Persisted {len(records)} error(s) for job {self.job_id}")
        return records
