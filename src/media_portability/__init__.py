"""Media portability - idempotent import of albums, photos and videos."""

__version__ = "0.1.0"

from media_portability.aggregator import aggregate_results
from media_portability.collector import ErrorCollector
from media_portability.config import ImporterSettings
from media_portability.importer import CategoryAbortedError, CategoryImporter
from media_portability.job_store import InMemoryJobStore, JsonLinesJobStore
from media_portability.ledger import IdempotencyLedger
from media_portability.logging_setup import configure_logging, setup_logging
from media_portability.models import (
    Album,
    AuthContext,
    Category,
    CategoryResult,
    ErrorRecord,
    ImportJob,
    ImportResult,
    ImportStatus,
    MediaContainer,
    Photo,
    Video,
)
from media_portability.orchestrator import ImportOrchestrator

__all__ = [
    "Album",
    "AuthContext",
    "Category",
    "CategoryAbortedError",
    "CategoryImporter",
    "CategoryResult",
    "ErrorCollector",
    "ErrorRecord",
    "IdempotencyLedger",
    "ImportJob",
    "ImportOrchestrator",
    "ImportResult",
    "ImportStatus",
    "ImporterSettings",
    "InMemoryJobStore",
    "JsonLinesJobStore",
    "MediaContainer",
    "Photo",
    "Video",
    "aggregate_results",
    "configure_logging",
    "setup_logging",
]
