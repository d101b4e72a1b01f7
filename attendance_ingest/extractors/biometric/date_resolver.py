"""
DateColumnResolver: decide which columns of the "Days" row are calendar days.

Devices export the day header in several incompatible shapes (``01-Jan``,
``01/01``, ``01-01``, raw serials, bare day numbers...). Each non-empty
cell from column 1 onward is tested against an ordered rule list; the first
rule that matches classifies the column.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import List, Optional, Tuple

from attendance_ingest.extractors.biometric.block_locator import EmployeeBlockLocator
from attendance_ingest.extractors.biometric.config import (
    BARE_DAY_RE,
    DATE_PUNCTUATION,
    DATES_ROW_LABEL,
    DD_DASH_MM_RE,
    DD_MMM_RE,
    DD_SLASH_MM_RE,
    HAS_DIGIT_RE,
    ExtractorConfig,
    DEFAULT_CONFIG,
)
from attendance_ingest.extractors.biometric.data_cleaner import DataCleaner
from attendance_ingest.ir import Cell, CellKind, Grid, Row
from attendance_ingest.logger import get_logger

logger = get_logger(__name__)


class DateRule(str, Enum):
    """Which classification rule accepted a column, in priority order."""
    DD_MMM = "dd_mmm"
    DD_SLASH_MM = "dd_slash_mm"
    DD_DASH_MM = "dd_dash_mm"
    SERIAL = "serial"
    BARE_DAY = "bare_day"
    GENERIC = "generic"


@dataclass(frozen=True)
class DateColumn:
    col: int
    cell: Cell
    rule: DateRule


class DateColumnResolver:
    """Locate the "Days" row and classify its date columns."""

    def __init__(
        self,
        cfg: ExtractorConfig = DEFAULT_CONFIG,
        locator: Optional[EmployeeBlockLocator] = None,
    ):
        self._cfg = cfg
        self._locator = locator or EmployeeBlockLocator(cfg)

    # ------------------------------------------------------------------
    # Dates row
    # ------------------------------------------------------------------

    @staticmethod
    def is_dates_row(row: Row) -> bool:
        return bool(row) and DataCleaner.normalize_label(DataCleaner.cell_to_str(row[0])) == DATES_ROW_LABEL

    def find_dates_row(self, grid: Grid, reference_row: int) -> Tuple[Optional[int], int]:
        """
        Search the rows after *reference_row* for the "Days" row.

        The search covers at most ``date_row_scan_rows`` rows and stops at
        the next employee marker. Returns ``(dates_row_idx or None,
        row_where_search_stopped)``.
        """
        start = reference_row + 1
        end = min(len(grid), start + self._cfg.date_row_scan_rows)
        for row_idx in range(start, end):
            row = grid[row_idx]
            if self.is_dates_row(row):
                return row_idx, row_idx
            if self._locator.row_has_marker(row):
                return None, row_idx
        return None, end

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def classify(self, cell: Cell) -> Optional[DateRule]:
        """Return the first matching rule for *cell*, or ``None``."""
        if cell.kind is CellKind.EMPTY:
            return None
        if cell.kind is CellKind.DATE_SERIAL:
            return DateRule.SERIAL

        text = DataCleaner.cell_to_str(cell)
        if cell.kind is CellKind.TEXT:
            if DD_MMM_RE.match(text):
                return DateRule.DD_MMM
            if DD_SLASH_MM_RE.match(text):
                return DateRule.DD_SLASH_MM
            if DD_DASH_MM_RE.match(text):
                return DateRule.DD_DASH_MM
        elif cell.kind is CellKind.NUMBER:
            if self._in_serial_range(float(cell.value)):
                return DateRule.SERIAL
        else:
            raise ValueError(f"Unknown cell kind: {cell.kind!r}")

        if BARE_DAY_RE.match(text) and 1 <= int(text) <= 31:
            return DateRule.BARE_DAY
        if HAS_DIGIT_RE.search(text) and any(p in text for p in DATE_PUNCTUATION):
            return DateRule.GENERIC
        return None

    def resolve(self, dates_row: Row) -> List[DateColumn]:
        """Ordered date columns of *dates_row* (column 0 is the label)."""
        columns: List[DateColumn] = []
        for col in range(1, len(dates_row)):
            cell = dates_row[col]
            if cell.is_empty:
                continue
            rule = self.classify(cell)
            if rule is None:
                logger.debug("Not a date: %r at column %d", DataCleaner.cell_to_str(cell), col)
                continue
            columns.append(DateColumn(col=col, cell=cell, rule=rule))
        return columns

    def resolve_row(self, grid: Grid, dates_row_idx: int) -> List[DateColumn]:
        row = grid[dates_row_idx] if 0 <= dates_row_idx < len(grid) else []
        return self.resolve(row)

    # ------------------------------------------------------------------
    # Calendar date of a column
    # ------------------------------------------------------------------

    def to_date(self, cell: Cell, year: int) -> Optional[date]:
        """
        Calendar date of a date cell.

        ``DD-MMM`` text takes *year*; serials are converted from the
        spreadsheet epoch. Other shapes carry no month and are unparseable.
        """
        if cell.kind is CellKind.TEXT:
            return DataCleaner.parse_day_month(str(cell.value), year)
        if cell.kind is CellKind.DATE_SERIAL:
            return DataCleaner.serial_to_date(float(cell.value))
        if cell.kind is CellKind.NUMBER:
            if self._in_serial_range(float(cell.value)):
                return DataCleaner.serial_to_date(float(cell.value))
            return None
        return None

    def _in_serial_range(self, value: float) -> bool:
        return self._cfg.serial_min < value < self._cfg.serial_max


def raw_date_values(grid: Grid, dates_row_idx: int) -> List[Cell]:
    """Every non-empty cell of the dates row from column 1 on."""
    row = grid[dates_row_idx] if 0 <= dates_row_idx < len(grid) else []
    return [c for c in row[1:] if not c.is_empty]


__all__ = ["DateColumn", "DateColumnResolver", "DateRule", "raw_date_values"]
