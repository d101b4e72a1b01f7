"""
EmployeeBlockLocator: find the next employee section of the sheet.

An employee block starts with free-text marker cells ("Employee Code",
"Emp Name", ...) whose values sit somewhere to their right on the same row.
The code and the name may be on different rows; the block's reference row
is the row where the second of the two is found.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from attendance_ingest.extractors.biometric.config import (
    EMP_CODE_MARKERS,
    EMP_NAME_MARKERS,
    ExtractorConfig,
    DEFAULT_CONFIG,
)
from attendance_ingest.extractors.biometric.data_cleaner import DataCleaner
from attendance_ingest.ir import Cell, CellKind, Grid, Row
from attendance_ingest.logger import get_logger

logger = get_logger(__name__)


@dataclass
class EmployeeBlock:
    """One employee's section; lives for a single scan pass."""
    emp_id: str
    emp_name: str
    row_range_start: int
    reference_row: int
    row_range_end: Optional[int] = None


class EmployeeBlockLocator:
    """Scan forward from a cursor for the next (empId, empName) marker pair."""

    def __init__(self, cfg: ExtractorConfig = DEFAULT_CONFIG):
        self._cfg = cfg

    # ------------------------------------------------------------------
    # Marker tests
    # ------------------------------------------------------------------

    @staticmethod
    def is_code_marker(cell: Cell) -> bool:
        if cell.kind is not CellKind.TEXT:
            return False
        compact = DataCleaner.compact_marker(cell.value)
        return any(m in compact for m in EMP_CODE_MARKERS)

    @staticmethod
    def is_name_marker(cell: Cell) -> bool:
        if cell.kind is not CellKind.TEXT:
            return False
        compact = DataCleaner.compact_marker(cell.value)
        return any(m in compact for m in EMP_NAME_MARKERS)

    def row_has_marker(self, row: Row) -> bool:
        """True when any cell of *row* is an employee code or name marker."""
        return any(self.is_code_marker(c) or self.is_name_marker(c) for c in row)

    def row_starts_with_code_marker(self, row: Row) -> bool:
        return bool(row) and self.is_code_marker(row[0])

    # ------------------------------------------------------------------
    # Locate
    # ------------------------------------------------------------------

    def locate(self, grid: Grid, start_row: int) -> Optional[EmployeeBlock]:
        """
        Return the next block at or after *start_row*, or ``None`` at
        end of input.
        """
        emp_id = ""
        emp_name = ""
        first_marker_row: Optional[int] = None

        for row_idx in range(max(0, start_row), len(grid)):
            row = grid[row_idx]
            for col_idx, cell in enumerate(row):
                if not emp_id and self.is_code_marker(cell):
                    found, found_col = self._scan_right(row, col_idx, min_length=1)
                    if found:
                        emp_id = found
                        first_marker_row = row_idx if first_marker_row is None else first_marker_row
                        logger.debug("Employee code %r at row %d, col %d", emp_id, row_idx, found_col)
                if not emp_name and self.is_name_marker(cell):
                    found, found_col = self._scan_right(
                        row, col_idx, min_length=self._cfg.min_emp_name_length,
                    )
                    if found:
                        emp_name = found
                        first_marker_row = row_idx if first_marker_row is None else first_marker_row
                        logger.debug("Employee name %r at row %d, col %d", emp_name, row_idx, found_col)
            if emp_id and emp_name:
                return EmployeeBlock(
                    emp_id=emp_id,
                    emp_name=emp_name,
                    row_range_start=first_marker_row,
                    reference_row=row_idx,
                )

        if emp_id or emp_name:
            logger.info(
                "Incomplete employee markers after row %d (code=%r, name=%r); end of input",
                start_row, emp_id, emp_name,
            )
        return None

    @staticmethod
    def _scan_right(row: Row, marker_col: int, min_length: int) -> Tuple[str, Optional[int]]:
        """First non-empty cell right of the marker, distinct from it, long enough."""
        marker = row[marker_col]
        for k in range(marker_col, len(row)):
            candidate = row[k]
            if candidate.is_empty or candidate == marker:
                continue
            if candidate.kind is CellKind.NUMBER and candidate.value == 0:
                continue
            text = DataCleaner.cell_to_str(candidate)
            if len(text) >= min_length:
                return text, k
        return "", None
