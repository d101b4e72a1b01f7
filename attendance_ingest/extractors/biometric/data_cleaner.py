"""
DataCleaner: value normalisation utilities for the attendance engine.

Responsibilities:
- Raw reader value → tagged ``Cell`` (``to_cell``)
- ``Cell`` → clean string (``cell_to_str``)
- Label / marker text normalisation
- Time normalisation (``HH:MM:SS``, day fractions, minutes since midnight)
- Date parsing (``DD-MMM`` text, spreadsheet serials)
- Summary value cleaning (counts, ``H:MM`` totals)
"""

from __future__ import annotations

import math
from datetime import date, datetime, time
from numbers import Number
from typing import Any, Optional

import pandas as pd

from attendance_ingest.extractors.biometric.config import (
    DD_MMM_RE,
    LEADING_HH_MM_RE,
    MONTH_BY_ABBR,
    TIME_HMS_RE,
    WHITESPACE_RE,
)
from attendance_ingest.ir import EMPTY_CELL, Cell, CellKind

ZERO_TIME = "00:00:00"
ZERO_SUMMARY_TIME = "00:00"

_SERIAL_ORIGIN = pd.Timestamp("1899-12-30")
_ONE_DAY = pd.Timedelta(days=1)


class DataCleaner:
    """Stateless helper that normalises raw cell values and label text."""

    # ----- raw value → Cell ------------------------------------------------

    @staticmethod
    def to_cell(value: Any) -> Cell:
        """Tag a value as produced by pandas / openpyxl / xlrd."""
        if value is None or value is pd.NaT:
            return EMPTY_CELL
        if isinstance(value, Cell):
            return value
        if isinstance(value, str):
            text = value.strip()
            return Cell.text(text) if text else EMPTY_CELL
        if isinstance(value, (pd.Timestamp, datetime, date)):
            if pd.isna(value):
                return EMPTY_CELL
            return Cell.date_serial(DataCleaner.date_to_serial(value))
        if isinstance(value, time):
            seconds = value.hour * 3600 + value.minute * 60 + value.second
            return Cell.number(seconds / 86400)
        if isinstance(value, Number):
            if pd.isna(value):
                return EMPTY_CELL
            return Cell.number(float(value))
        # Rich-text objects from openpyxl may expose .plain or .text
        for attr in ("plain", "text"):
            attr_value = getattr(value, attr, None)
            if isinstance(attr_value, str):
                return DataCleaner.to_cell(attr_value)
        return DataCleaner.to_cell(str(value))

    # ----- Cell → string ---------------------------------------------------

    @staticmethod
    def format_number(value: float) -> str:
        """``101.0`` → ``"101"``; other floats keep their decimal form."""
        if math.isfinite(value) and float(value).is_integer():
            return str(int(value))
        return str(value)

    @staticmethod
    def cell_to_str(cell: Cell) -> str:
        if cell.kind is CellKind.EMPTY:
            return ""
        if cell.kind is CellKind.TEXT:
            return str(cell.value).strip()
        if cell.kind in (CellKind.NUMBER, CellKind.DATE_SERIAL):
            return DataCleaner.format_number(float(cell.value))
        raise ValueError(f"Unknown cell kind: {cell.kind!r}")

    # ----- label / marker text ---------------------------------------------

    @staticmethod
    def normalize_label(text: Any) -> str:
        """Lower-case, collapse inner whitespace, trim."""
        if text is None:
            return ""
        return WHITESPACE_RE.sub(" ", str(text)).strip().lower()

    @staticmethod
    def compact_marker(text: Any) -> str:
        """Lower-case with every whitespace character removed."""
        if text is None:
            return ""
        return WHITESPACE_RE.sub("", str(text)).lower()

    @staticmethod
    def collapse_whitespace(text: str) -> str:
        return WHITESPACE_RE.sub(" ", text or "").strip()

    # ----- times -----------------------------------------------------------

    @staticmethod
    def normalize_time(value: Any) -> str:
        """
        Zero-pad ``H:M`` / ``H:M:S`` to ``HH:MM:SS``.

        Anything else (absent, blank, non-numeric parts) becomes ``00:00:00``.
        Already-normalised input is returned unchanged.
        """
        if not isinstance(value, str):
            return ZERO_TIME
        m = TIME_HMS_RE.match(value.strip())
        if not m:
            return ZERO_TIME
        hours, minutes, seconds = m.group(1), m.group(2), m.group(3) or "0"
        return f"{hours.zfill(2)}:{minutes.zfill(2)}:{seconds.zfill(2)}"

    @staticmethod
    def day_fraction_to_hhmm(value: float) -> str:
        """Spreadsheet time (fraction of a day) → ``HH:MM``, nearest minute."""
        total_minutes = int(math.floor(value * 24 * 60 + 0.5))
        hours, minutes = divmod(total_minutes, 60)
        return f"{hours:02d}:{minutes:02d}"

    @staticmethod
    def time_to_minutes(value: str) -> Optional[int]:
        """
        Minutes since midnight of a normalised time.

        ``None`` when the time is unset: ``00:00:00``, unparseable, or
        zero minutes.
        """
        if not value or value == ZERO_TIME:
            return None
        m = TIME_HMS_RE.match(value.strip())
        if not m:
            return None
        minutes = int(m.group(1)) * 60 + int(m.group(2))
        return minutes or None

    # ----- dates -----------------------------------------------------------

    @staticmethod
    def date_to_serial(value: Any) -> float:
        """Date-like value → spreadsheet serial (days since 1899-12-30)."""
        return (pd.Timestamp(value) - _SERIAL_ORIGIN) / _ONE_DAY

    @staticmethod
    def serial_to_date(value: float) -> Optional[date]:
        """
        Spreadsheet serial → calendar date.

        Serials count days from 1899-12-30 (``25569`` is 1970-01-01); the
        fractional (time-of-day) part is dropped. Missing or out-of-range
        serials give ``None``.
        """
        try:
            ts = _SERIAL_ORIGIN + pd.Timedelta(days=float(value))
        except (ValueError, OverflowError):
            return None
        if pd.isna(ts):
            return None
        return ts.to_pydatetime().date()

    @staticmethod
    def parse_day_month(text: str, year: int) -> Optional[date]:
        """Parse ``DD-MMM`` (e.g. ``01-Jan``) into a date in *year*."""
        if not isinstance(text, str) or not DD_MMM_RE.match(text.strip()):
            return None
        day_str, month_str = text.strip().split("-")
        month = MONTH_BY_ABBR.get(month_str.lower())
        if not month:
            return None
        try:
            return date(year, month, int(day_str))
        except ValueError:
            return None

    # ----- summary values --------------------------------------------------

    @staticmethod
    def parse_count(value: Optional[str]) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return 0

    @staticmethod
    def clean_summary_time(value: Optional[str]) -> str:
        """
        Keep the leading ``H:MM`` of a summary total.

        Malformed device output such as ``00:0-284`` keeps only its valid
        prefix when there is one; otherwise ``00:00``.
        """
        if not value:
            return ZERO_SUMMARY_TIME
        m = LEADING_HH_MM_RE.match(value.strip())
        return m.group(1) if m else ZERO_SUMMARY_TIME
