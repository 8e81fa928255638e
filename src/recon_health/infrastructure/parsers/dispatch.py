"""
Format selection for health export documents.

Chooses the CSV or JSON parser from an explicit hint, a file name or a
content type, and falls back to JSON-then-CSV when none of them decide.
"""

import logging
from pathlib import Path

from recon_health.domain.metrics import DailyMetric
from recon_health.infrastructure.parsers.csv_parser import CSVParser
from recon_health.infrastructure.parsers.json_parser import JSONParser
from recon_health.utils.exceptions import ParsingError
from recon_health.utils.parameters import CSVConfig

logger = logging.getLogger(__name__)

CSV_HINTS = ("csv", "text/csv", "application/csv")
JSON_HINTS = ("json", "application/json", "text/json")


def detect_format(source_hint: str | None) -> str | None:
    """
    Resolve a source hint to ``"csv"``, ``"json"`` or None.

    Args:
        source_hint: ``"csv"``, ``"json"``, a file name or a content type.

    Returns:
        Format name, or None when the hint is ambiguous.
    """
    if not source_hint:
        return None

    hint = source_hint.strip().lower()
    media_type = hint.split(";", 1)[0].strip()

    if media_type in CSV_HINTS:
        return "csv"
    if media_type in JSON_HINTS:
        return "json"

    suffix = Path(hint).suffix
    if suffix == ".csv":
        return "csv"
    if suffix == ".json":
        return "json"

    return None


def parse_health_data(
    text: str, source_hint: str | None = None, csv_config: CSVConfig | None = None
) -> list[DailyMetric]:
    """
    Parse an export document into daily records.

    Args:
        text: Raw document text.
        source_hint: ``"csv"``, ``"json"``, a file name or a content type.
        csv_config: Optional CSV parsing configuration.

    Returns:
        Records sorted by date, one per date.

    Raises:
        ParsingError: If the selected parser cannot read the document.
    """
    fmt = detect_format(source_hint)
    csv_parser = CSVParser(csv_config)

    if fmt == "csv":
        return csv_parser.parse(text)
    if fmt == "json":
        return JSONParser().parse(text)

    try:
        return JSONParser().parse(text)
    except ParsingError:
        logger.debug("Document is not JSON, falling back to CSV")
        return csv_parser.parse(text)


def read_export_file(file_path: Path, csv_config: CSVConfig | None = None) -> str:
    """
    Read an export file, trying the configured encodings in order.

    Args:
        file_path: Path to the export.
        csv_config: Configuration holding the candidate encodings.

    Returns:
        Decoded file contents.

    Raises:
        ParsingError: If the file cannot be read.
    """
    encodings = (csv_config or CSVConfig()).encodings

    try:
        raw = file_path.read_bytes()
    except OSError as e:
        raise ParsingError(f"Failed to read {file_path}: {e}") from e

    for encoding in encodings:
        try:
            text = raw.decode(encoding)
            logger.debug(f"Decoded {file_path.name} as {encoding}")
            return text
        except (UnicodeDecodeError, LookupError):
            continue

    raise ParsingError(f"Could not decode {file_path.name} with any of {encodings}")


def parse_file(file_path: Path, csv_config: CSVConfig | None = None) -> list[DailyMetric]:
    """Read and parse an export file, using its name as the format hint."""
    return parse_health_data(read_export_file(file_path, csv_config), file_path.name, csv_config)
