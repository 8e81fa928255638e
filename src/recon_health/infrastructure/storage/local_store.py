"""
Local JSON file storage.

Offline adapter: each identity gets a metrics file and a goals file in the
configured directory. Files are replaced atomically on save.
"""

import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any

from recon_health.domain.metrics import DailyMetric, Goals
from recon_health.infrastructure.storage.base import MetricsStore
from recon_health.utils.exceptions import StorageError
from recon_health.utils.parameters import GoalDefaultsConfig, LocalStorageConfig

logger = logging.getLogger(__name__)

UNSAFE_IDENTITY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class LocalFileStore(MetricsStore):
    """
    JSON file store keyed by identity.

    A missing or unreadable file loads as an empty series / default goals,
    so a corrupt file never blocks a fresh import.
    """

    def __init__(
        self, config: LocalStorageConfig, goal_defaults: GoalDefaultsConfig | None = None
    ) -> None:
        """
        Initialize local store.

        Args:
            config: Local storage configuration.
            goal_defaults: Goals used when none are saved.
        """
        super().__init__(goal_defaults)
        self.data_dir = Path(config.dir)

    def _path(self, identity: str, kind: str) -> Path:
        safe_identity = UNSAFE_IDENTITY_CHARS.sub("_", identity) or "default"
        return self.data_dir / f"{safe_identity}.{kind}.json"

    def _read(self, path: Path) -> Any:
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable store file {path}: {e}")
            return None

    def _write(self, path: Path, payload: Any) -> None:
        tmp_name: str | None = None
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.data_dir, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
            os.replace(tmp_name, path)
            tmp_name = None
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to write {path}: {e}") from e
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)

    def load_metrics(self, identity: str) -> list[DailyMetric]:
        payload = self._read(self._path(identity, "metrics"))
        if not isinstance(payload, list):
            return []

        series: list[DailyMetric] = []
        for item in payload:
            if isinstance(item, dict) and item.get("date"):
                series.append(DailyMetric.from_dict(item))

        series.sort(key=lambda record: record.date)
        logger.debug(f"Loaded {len(series)} days for '{identity}'")
        return series

    def save_metrics(self, identity: str, series: list[DailyMetric]) -> None:
        ordered = sorted(series, key=lambda record: record.date)
        self._write(self._path(identity, "metrics"), [record.to_dict() for record in ordered])
        logger.info(f"Saved {len(ordered)} days for '{identity}'")

    def clear_metrics(self, identity: str) -> None:
        path = self._path(identity, "metrics")
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete {path}: {e}") from e
        logger.info(f"Cleared metrics for '{identity}'")

    def load_goals(self, identity: str) -> Goals:
        payload = self._read(self._path(identity, "goals"))
        if not isinstance(payload, dict):
            return self.default_goals()
        return Goals.model_validate(payload)

    def save_goals(self, identity: str, goals: Goals) -> None:
        self._write(self._path(identity, "goals"), goals.to_dict())
