"""
Remote REST storage.

Networked adapter for a PostgREST-style backend (e.g. Supabase). Metric
rows are upserted on ``(user_id, date)`` so the table holds one row per
date per identity; goals are upserted on ``user_id``.
"""

import logging
from typing import Any

import requests

from recon_health.domain.metrics import FIELD_ATTRIBUTES, DailyMetric, Goals
from recon_health.infrastructure.storage.base import MetricsStore
from recon_health.utils.exceptions import StorageError
from recon_health.utils.parameters import GoalDefaultsConfig, RemoteStorageConfig

logger = logging.getLogger(__name__)


class RemoteStore(MetricsStore):
    """REST-backed store."""

    def __init__(
        self,
        config: RemoteStorageConfig,
        goal_defaults: GoalDefaultsConfig | None = None,
        session: requests.Session | None = None,
    ) -> None:
        """
        Initialize remote store.

        Args:
            config: Remote storage configuration.
            goal_defaults: Goals used when none are saved.
            session: HTTP session to reuse; a new one is created if omitted.
        """
        super().__init__(goal_defaults)
        if not config.url:
            raise StorageError("Remote storage URL is not configured")

        self.config = config
        self.base_url = config.url.rstrip("/") + "/rest/v1"
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "apikey": config.api_key,
                "Authorization": f"Bearer {config.api_key}",
                "Content-Type": "application/json",
            }
        )

    def _request(self, method: str, table: str, **kwargs: Any) -> requests.Response:
        url = f"{self.base_url}/{table}"
        try:
            response = self.session.request(
                method, url, timeout=self.config.timeout_seconds, **kwargs
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise StorageError(f"{method} {url} failed: {e}") from e
        return response

    def _metric_row(self, identity: str, record: DailyMetric) -> dict[str, Any]:
        # Bulk upserts need every row to carry the same columns.
        row: dict[str, Any] = {"user_id": identity, "date": record.date}
        for field in FIELD_ATTRIBUTES:
            row[field.value] = record.get(field)
        return row

    def load_metrics(self, identity: str) -> list[DailyMetric]:
        """Fetch the series page by page until the server returns a short page."""
        page_size = self.config.page_size
        rows: list[dict[str, Any]] = []

        while True:
            response = self._request(
                "GET",
                self.config.metrics_table,
                params={
                    "user_id": f"eq.{identity}",
                    "order": "date.asc",
                    "limit": str(page_size),
                    "offset": str(len(rows)),
                },
            )
            page = response.json()
            rows.extend(page)
            if len(page) < page_size:
                break

        series = [DailyMetric.from_dict(row) for row in rows if row.get("date")]
        logger.debug(f"Loaded {len(series)} remote days for '{identity}'")
        return series

    def save_metrics(self, identity: str, series: list[DailyMetric]) -> None:
        if not series:
            return
        self._request(
            "POST",
            self.config.metrics_table,
            params={"on_conflict": "user_id,date"},
            headers={"Prefer": "resolution=merge-duplicates"},
            json=[self._metric_row(identity, record) for record in series],
        )
        logger.info(f"Upserted {len(series)} remote days for '{identity}'")

    def clear_metrics(self, identity: str) -> None:
        self._request("DELETE", self.config.metrics_table, params={"user_id": f"eq.{identity}"})
        logger.info(f"Cleared remote metrics for '{identity}'")

    def load_goals(self, identity: str) -> Goals:
        response = self._request(
            "GET", self.config.goals_table, params={"user_id": f"eq.{identity}", "limit": "1"}
        )
        rows = response.json()
        if not rows:
            return self.default_goals()
        return Goals.model_validate(rows[0])

    def save_goals(self, identity: str, goals: Goals) -> None:
        self._request(
            "POST",
            self.config.goals_table,
            params={"on_conflict": "user_id"},
            headers={"Prefer": "resolution=merge-duplicates"},
            json={"user_id": identity, **goals.to_dict()},
        )
