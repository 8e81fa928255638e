"""
RECON Health - Health export ingestion and dashboard metrics.

Normalizes Health Auto Export CSV/JSON files into a canonical per-day
series and computes the derived metrics behind the dashboard views.
"""

__version__ = "0.1.0"

from recon_health.infrastructure.parsers.dispatch import parse_health_data as parse  # noqa: E402
from recon_health.services.merger import merge_metrics as merge  # noqa: E402

__all__ = ["__version__", "merge", "parse"]
