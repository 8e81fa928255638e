"""
Ingestion service.

Boundary between callers (HTTP endpoint, CLI) and the core: checks the
shared secret, parses the document, merges it into the stored series and
reports what was imported.
"""

import hmac
import logging
import threading
from pathlib import Path

from recon_health.domain.metrics import DailyMetric, ImportSummary
from recon_health.infrastructure.parsers.dispatch import parse_file, parse_health_data
from recon_health.infrastructure.storage.base import MetricsStore
from recon_health.services.merger import MergeService
from recon_health.utils.exceptions import AuthenticationError, EmptyImportError
from recon_health.utils.parameters import CSVConfig, IngestionConfig

logger = logging.getLogger(__name__)


class IngestionService:
    """
    Service for importing export documents into a store.

    Unauthorized requests are rejected before anything is parsed or saved.
    """

    def __init__(
        self,
        store: MetricsStore,
        ingestion_config: IngestionConfig | None = None,
        csv_config: CSVConfig | None = None,
        default_identity: str = "default",
    ) -> None:
        """
        Initialize ingestion service.

        Args:
            store: Storage adapter holding the canonical series.
            ingestion_config: Shared-secret configuration.
            csv_config: CSV parsing configuration.
            default_identity: Identity used when a call does not name one.
        """
        self.store = store
        self.ingestion_config = ingestion_config or IngestionConfig()
        self.csv_config = csv_config
        self.default_identity = default_identity
        self.merger = MergeService()
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _identity_lock(self, identity: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(identity, threading.Lock())

    def authorize(self, api_key: str | None) -> None:
        """
        Check a request's shared secret.

        No check is made when no secret is configured.

        Raises:
            AuthenticationError: If the key is missing or wrong.
        """
        expected = self.ingestion_config.resolved_api_key()
        if not expected:
            return
        if not api_key or not hmac.compare_digest(api_key.encode(), expected.encode()):
            logger.warning("Rejected ingestion request with missing or invalid API key")
            raise AuthenticationError("Unauthorized")

    def _store_records(self, records: list[DailyMetric], identity: str | None) -> ImportSummary:
        """
        Merge parsed records into the stored series.

        Raises:
            EmptyImportError: If there is nothing to import.
        """
        if not records:
            raise EmptyImportError("No valid data found")

        identity = identity or self.default_identity
        # Load, merge and save must not interleave for one identity.
        with self._identity_lock(identity):
            existing = self.store.load_metrics(identity)
            merged = self.merger.merge(existing, records)
            self.store.save_metrics(identity, merged)

        summary = ImportSummary(
            imported_days=len(records),
            start_date=records[0].date,
            end_date=records[-1].date,
            total_days=len(merged),
        )
        logger.info(f"Import for '{identity}': {summary.message}")
        return summary

    def ingest(
        self,
        body: str,
        source_hint: str | None = None,
        api_key: str | None = None,
        identity: str | None = None,
    ) -> ImportSummary:
        """
        Authorize, parse and store one document.

        Args:
            body: Raw JSON or CSV text.
            source_hint: ``"csv"``, ``"json"``, a file name or a content type.
            api_key: Shared secret supplied by the caller.
            identity: Store key; defaults to the service's identity.

        Returns:
            Summary of the imported days.

        Raises:
            AuthenticationError: If the shared secret check fails.
            ParsingError: If the document cannot be read.
            EmptyImportError: If the document holds no dated records.
        """
        self.authorize(api_key)
        records = parse_health_data(body, source_hint, self.csv_config)
        return self._store_records(records, identity)

    def import_file(self, file_path: Path, identity: str | None = None) -> ImportSummary:
        """Parse and store a local export file."""
        records = parse_file(file_path, self.csv_config)
        return self._store_records(records, identity)
