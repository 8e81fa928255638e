"""
CSV parser for Health Auto Export data.

Provides CSV parsing with delimiter detection, vendor column resolution,
sleep unit handling and per-date accumulation.
"""

import io
import logging
from typing import Any

import pandas as pd

from recon_health.domain.field_mappings import DATE_KEY, resolve_field
from recon_health.domain.metrics import DailyMetric, MetricField
from recon_health.services.merger import MergeService
from recon_health.utils.exceptions import ParsingError
from recon_health.utils.normalization import (
    is_hours_column,
    normalize_date,
    parse_number,
    round_half_up,
)
from recon_health.utils.parameters import CSVConfig

logger = logging.getLogger(__name__)


class CSVParser:
    """
    Parser for CSV health exports.

    Binds columns by header name, resolves them through the flat field
    table and produces one record per date.
    """

    def __init__(self, csv_config: CSVConfig | None = None) -> None:
        """
        Initialize CSV parser.

        Args:
            csv_config: CSV parsing configuration. Defaults are used when omitted.
        """
        self.csv_config = csv_config or CSVConfig()
        self.merger = MergeService()

    def _detect_delimiter(self, text: str) -> str:
        """
        Detect the CSV delimiter from the header line.

        Args:
            text: CSV document.

        Returns:
            Detected delimiter.
        """
        first_line = text.lstrip("\r\n").split("\n", 1)[0]

        for delimiter in self.csv_config.delimiters:
            if delimiter in first_line:
                logger.debug(f"Detected delimiter: {repr(delimiter)}")
                return delimiter

        logger.debug("Delimiter detection failed, using comma")
        return ","

    def _resolve_columns(self, df: pd.DataFrame) -> dict[str, str]:
        """
        Resolve CSV headers to canonical keys.

        Args:
            df: DataFrame as read, headers untouched.

        Returns:
            Mapping of header to canonical key, mapped columns only.
        """
        resolved: dict[str, str] = {}

        for col in df.columns:
            canonical = resolve_field(str(col))
            if canonical is not None:
                resolved[col] = canonical

        unmapped = [str(col) for col in df.columns if col not in resolved]
        if unmapped:
            logger.debug(f"Ignoring unmapped columns: {unmapped}")

        return resolved

    def _read_value(self, column: str, field: str, value: Any) -> float | None:
        """
        Convert one cell to a canonical value.

        Columns labelled ``(hr)`` holding sleep data are always hours.
        """
        number = parse_number(value)
        if number is not None and is_hours_column(column, field):
            number = round_half_up(number * 60)
        return number

    def _skip_bad_line(self, fields: list[str]) -> None:
        """Drop a row with more cells than the header; the rest of the file still loads."""
        logger.debug(f"Skipping malformed row with {len(fields)} cells: {fields}")
        return None

    def parse(self, text: str) -> list[DailyMetric]:
        """
        Parse CSV text into daily records.

        Args:
            text: CSV document with a header row.

        Returns:
            Records sorted by date, one per date.

        Raises:
            ParsingError: If the document cannot be tokenized as CSV.
        """
        try:
            df = pd.read_csv(
                io.StringIO(text),
                sep=self._detect_delimiter(text),
                skip_blank_lines=True,
                engine="python",
                on_bad_lines=self._skip_bad_line,
            )
        except (pd.errors.EmptyDataError, pd.errors.ParserError) as e:
            raise ParsingError(f"Failed to parse CSV document: {e}") from e

        columns = self._resolve_columns(df)
        partials: list[DailyMetric] = []

        for idx, row in df.iterrows():
            date_str: str | None = None
            values: dict[MetricField, float | None] = {}

            for column, key in columns.items():
                value = row[column]
                if key == DATE_KEY:
                    if not pd.isna(value) and str(value).strip():
                        date_str = normalize_date(value)
                    continue

                number = self._read_value(str(column), key, value)
                if number is not None:
                    values[MetricField(key)] = number

            if not date_str:
                logger.debug(f"Row {idx}: no date, skipping")
                continue

            partials.append(DailyMetric(date=date_str).with_values(values))

        records = self.merger.accumulate(partials)
        logger.info(f"Parsed {len(records)} days from {len(df)} CSV rows")
        return records
