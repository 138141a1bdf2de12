"""Durable per-job state: persisted error records and ledger entries."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Iterable, Protocol

from media_portability.models import ErrorRecord

logger = logging.getLogger(__name__)


class JobStore(Protocol):
    """Storage used by the importer for anything that must survive a retry.

    ``persist_errors`` must be safe to call more than once with the same
    records: duplicates are dropped by record identity.
    """

    async def persist_errors(
        self, job_id: str, records: Iterable[ErrorRecord]
    ) -> None: ...

    async def get_errors(self, job_id: str) -> list[ErrorRecord]: ...

    async def load_ledger(self, job_id: str) -> dict[str, str]: ...

    async def record_ledger_entry(
        self, job_id: str, idempotent_key: str, destination_id: str
    ) -> None: ...

    async def discard_ledger(self, job_id: str) -> None: ...


class InMemoryJobStore:
    """Job store kept in process memory."""

    def __init__(self) -> None:
        self._errors: dict[str, list[ErrorRecord]] = {}
        self._ledgers: dict[str, dict[str, str]] = {}

    async def persist_errors(
        self, job_id: str, records: Iterable[ErrorRecord]
    ) -> None:
        stored = self._errors.setdefault(job_id, [])
        for record in records:
            if record not in stored:
                stored.append(record)

    async def get_errors(self, job_id: str) -> list[ErrorRecord]:
        return list(self._errors.get(job_id, []))

    async def load_ledger(self, job_id: str) -> dict[str, str]:
        return dict(self._ledgers.get(job_id, {}))

    async def record_ledger_entry(
        self, job_id: str, idempotent_key: str, destination_id: str
    ) -> None:
        self._ledgers.setdefault(job_id, {})[idempotent_key] = destination_id

    async def discard_ledger(self, job_id: str) -> None:
        self._ledgers.pop(job_id, None)


class JsonLinesJobStore:
    """Job store writing one JSON-lines file per job and kind of state.

    Layout under ``root``::

        <job_id>.errors.jsonl   one ErrorRecord per line
        <job_id>.ledger.jsonl   one {"key": ..., "destination_id": ...} per line
    """

    def __init__(self, root: Path) -> None:
        """Initialize the store.

        Args:
            root: Directory holding the job files; created if missing
        """
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)
        self._lock = asyncio.Lock()

    def _errors_path(self, job_id: str) -> Path:
        return self.root / f"{job_id}.errors.jsonl"

    def _ledger_path(self, job_id: str) -> Path:
        return self.root / f"{job_id}.ledger.jsonl"

    @staticmethod
    def _read_lines(path: Path) -> list[dict]:
        if not path.exists():
            return []
        with path.open(encoding="utf-8") as handle:
            return [json.loads(line) for line in handle if line.strip()]

    async def persist_errors(
        self, job_id: str, records: Iterable[ErrorRecord]
    ) -> None:
        path = self._errors_path(job_id)
        async with self._lock:
            existing = {
                ErrorRecord.from_dict(data) for data in self._read_lines(path)
            }
            new_records = []
            for record in records:
                if record not in existing:
                    existing.add(record)
                    new_records.append(record)

            if not new_records:
                logger.debug(f"No new error records to persist for job {job_id}")
                return

            with path.open("a", encoding="utf-8") as handle:
                for record in new_records:
                    handle.write(json.dumps(record.to_dict()) + "\n")
            logger.debug(f"Persisted {len(new_records)} error record(s) for job {job_id}")

    async def get_errors(self, job_id: str) -> list[ErrorRecord]:
        async with self._lock:
            return [
                ErrorRecord.from_dict(data)
                for data in self._read_lines(self._errors_path(job_id))
            ]

    async def load_ledger(self, job_id: str) -> dict[str, str]:
        async with self._lock:
            return {
                data["key"]: data["destination_id"]
                for data in self._read_lines(self._ledger_path(job_id))
            }

    async def record_ledger_entry(
        self, job_id: str, idempotent_key: str, destination_id: str
    ) -> None:
        line = json.dumps({"key": idempotent_key, "destination_id": destination_id})
        async with self._lock:
            with self._ledger_path(job_id).open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")

    async def discard_ledger(self, job_id: str) -> None:
        async with self._lock:
            self._ledger_path(job_id).unlink(missing_ok=True)
