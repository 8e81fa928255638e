"""
Merge service for building the canonical per-date series.

Combines partial records for the same date field by field. Records are
applied in order, and a later defined value replaces an earlier one while
an undefined value never clears what is already there. When two imports
disagree on a field for the same date, whichever is applied last wins;
there is no field-level provenance.
"""

import logging
from collections.abc import Iterable

from recon_health.domain.metrics import DailyMetric
from recon_health.utils.exceptions import MergeError

logger = logging.getLogger(__name__)


class MergeService:
    """Service for merging daily records into a date-keyed, sorted series."""

    def _apply(self, by_date: dict[str, DailyMetric], record: DailyMetric) -> None:
        """
        Apply one record onto the accumulating per-date map.

        Args:
            by_date: Records merged so far, keyed by date.
            record: Record to apply.

        Raises:
            MergeError: If the record has no date.
        """
        if not record.date:
            raise MergeError("Cannot merge a record without a date")

        current = by_date.get(record.date)
        if current is None:
            by_date[record.date] = record
        else:
            by_date[record.date] = current.with_values(record.values())

    def accumulate(self, records: Iterable[DailyMetric]) -> list[DailyMetric]:
        """
        Collapse records that may share dates into a canonical series.

        Args:
            records: Partial records in application order.

        Returns:
            One record per date, sorted ascending by date.
        """
        by_date: dict[str, DailyMetric] = {}
        for record in records:
            self._apply(by_date, record)
        return [by_date[day] for day in sorted(by_date)]

    def merge(
        self, existing: Iterable[DailyMetric], incoming: Iterable[DailyMetric]
    ) -> list[DailyMetric]:
        """
        Merge an incoming batch into an existing series.

        Existing records are applied first, incoming after, so a defined
        incoming value overrides and an undefined one preserves.

        Args:
            existing: Current canonical series.
            incoming: Newly parsed records.

        Returns:
            Merged series sorted ascending by date.
        """
        existing = list(existing)
        incoming = list(incoming)

        merged = self.accumulate([*existing, *incoming])

        logger.info(
            f"Merged {len(incoming)} incoming into {len(existing)} existing records "
            f"-> {len(merged)} days"
        )
        return merged


_default_service = MergeService()


def merge_metrics(
    existing: Iterable[DailyMetric], incoming: Iterable[DailyMetric]
) -> list[DailyMetric]:
    """Merge ``incoming`` into ``existing`` with the default service."""
    return _default_service.merge(existing, incoming)
