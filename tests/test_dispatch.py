"""Unit tests for export format selection."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from recon_health.infrastructure.parsers.dispatch import (
    detect_format,
    parse_file,
    parse_health_data,
    read_export_file,
)
from recon_health.utils.exceptions import ParsingError

CSV_TEXT = "Date,Steps\n2024-01-01,1000\n"
JSON_TEXT = json.dumps([{"date": "2024-01-01", "steps": 2000}])


def test_detect_format() -> None:
    """Test hints, file names and content types."""
    cases = {
        "csv": "csv",
        "JSON": "json",
        "text/csv; charset=utf-8": "csv",
        "application/json": "json",
        "export.csv": "csv",
        "HealthAutoExport-2024.json": "json",
        "application/octet-stream": None,
        "notes.txt": None,
        "": None,
        None: None,
    }
    for hint, expected in cases.items():
        if detect_format(hint) != expected:
            raise AssertionError(f"detect_format({hint!r}): expected {expected}, got {detect_format(hint)}")


def test_unhinted_documents_try_json_then_csv() -> None:
    """Test a document without a hint is parsed by whichever parser accepts it."""
    from_json = parse_health_data(JSON_TEXT)
    if len(from_json) != 1 or from_json[0].steps != 2000:
        raise AssertionError(f"Unexpected JSON result: {from_json}")

    from_csv = parse_health_data(CSV_TEXT)
    if len(from_csv) != 1 or from_csv[0].steps != 1000:
        raise AssertionError(f"Unexpected CSV result: {from_csv}")


def test_explicit_hint_skips_fallback() -> None:
    """Test a forced format does not fall back to the other parser."""
    with patch(
        "recon_health.infrastructure.parsers.dispatch.JSONParser.parse"
    ) as json_parse:
        records = parse_health_data(CSV_TEXT, "csv")

    json_parse.assert_not_called()
    if len(records) != 1:
        raise AssertionError(f"Expected 1 record, got {len(records)}")

    with pytest.raises(ParsingError):
        parse_health_data(CSV_TEXT, "application/json")


def test_read_export_file_tries_encodings(tmp_path: Path) -> None:
    """Test Latin-1 files are decoded after UTF-8 fails."""
    path = tmp_path / "export.csv"
    path.write_bytes("Date,Weight (kg)\n2024-01-01,80.5\n# café\n".encode("latin-1"))

    text = read_export_file(path)

    if "café" not in text:
        raise AssertionError(f"Expected latin-1 decoding, got {text!r}")


def test_parse_file_uses_file_name(tmp_path: Path) -> None:
    """Test the file suffix selects the parser."""
    path = tmp_path / "export.json"
    path.write_text(JSON_TEXT, encoding="utf-8")

    records = parse_file(path)

    if len(records) != 1 or records[0].date != "2024-01-01":
        raise AssertionError(f"Unexpected records: {records}")

    with pytest.raises(ParsingError):
        parse_file(tmp_path / "missing.csv")
