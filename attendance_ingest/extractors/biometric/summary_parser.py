"""
SummaryTextParser: monthly totals from the block's free-text summary.

The device prints a block's totals as prose, either in one cell or spread
over a row::

    Total Present - 20 Total Absent - 5 Total Leave Taken - 2 ...
    Total WO Count 4 Total HO Count 1

Each of the twelve totals has one label-specific pattern. The reporting
month is the plurality month of the block's own date cells; the prose is
only consulted for a month name when the block has no date cells at all.
"""

from __future__ import annotations

import re
from collections import Counter
from datetime import date
from typing import Dict, Optional, Pattern, Sequence, Tuple

from attendance_ingest.extractors.biometric.config import (
    DAY_MONTH_TOKEN_RE,
    MONTH_ABBRS,
    MONTH_BY_ABBR,
    SUMMARY_SELF_CONTAINED_TOKEN,
    SUMMARY_START_TOKEN,
    ExtractorConfig,
    DEFAULT_CONFIG,
)
from attendance_ingest.extractors.biometric.data_cleaner import DataCleaner
from attendance_ingest.extractors.biometric.field_mapper import FieldRowMapper
from attendance_ingest.ir import Cell, CellKind, Grid, MonthlySummaryRecord
from attendance_ingest.logger import get_logger

logger = get_logger(__name__)


# Ordered extractors; model attribute → pattern. "Label - value" family first,
# then the two "Label value" counts.
SUMMARY_PATTERNS: Tuple[Tuple[str, Pattern[str]], ...] = (
    ("total_present", re.compile(r"Total Present\s*-\s*(\d+)", re.IGNORECASE)),
    ("total_absent", re.compile(r"Total Absent\s*-\s*(\d+)", re.IGNORECASE)),
    ("total_leave_taken", re.compile(r"Total Leave Taken\s*-\s*(\d+)", re.IGNORECASE)),
    ("total_weekly_off_present", re.compile(r"Total Weekly Off Present\s*-\s*(\d+)", re.IGNORECASE)),
    ("total_duration", re.compile(r"Total Duration\s*-\s*([\d:]+)", re.IGNORECASE)),
    ("total_t_duration", re.compile(r"Total T\.?\s?Duration\s*-\s*([\d:]+)", re.IGNORECASE)),
    ("total_over_time", re.compile(r"Total Over Time\s*-\s*([\d:]+)", re.IGNORECASE)),
    ("total_late_by", re.compile(r"Total LateBy\s*-\s*([\d:]+)", re.IGNORECASE)),
    ("total_early_by", re.compile(r"Total EarlyBy\s*-\s*([\d:]+)", re.IGNORECASE)),
    ("total_regular_ot", re.compile(r"Total Regular OT\s*-\s*([\d:\-]+)", re.IGNORECASE)),
    ("total_wo_count", re.compile(r"Total WO Count\s+(\d+)", re.IGNORECASE)),
    ("total_ho_count", re.compile(r"Total HO Count\s+(\d+)", re.IGNORECASE)),
)

COUNT_FIELDS = frozenset({
    "total_present",
    "total_absent",
    "total_leave_taken",
    "total_weekly_off_present",
    "total_wo_count",
    "total_ho_count",
})

_MONTH_ALT = "|".join(a.lower() for a in MONTH_ABBRS)
TEXT_MONTH_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(rf"\d{{1,2}}-?({_MONTH_ALT})", re.IGNORECASE),
    re.compile(rf"\b({_MONTH_ALT})[a-z]*\b", re.IGNORECASE),
)


class SummaryTextParser:
    """Locate and parse a block's monthly summary prose."""

    def __init__(self, cfg: ExtractorConfig = DEFAULT_CONFIG):
        self._cfg = cfg

    # ------------------------------------------------------------------
    # Locate
    # ------------------------------------------------------------------

    def find_summary_text(self, grid: Grid, dates_row: int) -> Optional[Tuple[int, str]]:
        """
        Look a few rows below the dates row for "Total Present".

        Returns ``(row_idx, text)``: the cell alone when it also holds
        "Total Absent", otherwise the whole row joined by spaces. Stops at
        the "Shift" row.
        """
        start = dates_row + 1
        end = min(len(grid), start + self._cfg.summary_scan_rows)
        for row_idx in range(start, end):
            row = grid[row_idx]
            for cell in row[: self._cfg.summary_scan_cols]:
                if cell.kind is not CellKind.TEXT:
                    continue
                lowered = str(cell.value).lower()
                if SUMMARY_START_TOKEN not in lowered:
                    continue
                if SUMMARY_SELF_CONTAINED_TOKEN in lowered:
                    return row_idx, str(cell.value)
                return row_idx, " ".join(DataCleaner.cell_to_str(c) for c in row)
            if FieldRowMapper.is_shift_row(row):
                break
        return None

    # ------------------------------------------------------------------
    # Parse
    # ------------------------------------------------------------------

    @staticmethod
    def extract_fields(summary_text: str) -> Dict[str, str]:
        """Raw matched value per field; unmatched fields are left out."""
        cleaned = DataCleaner.collapse_whitespace(summary_text)
        extracted: Dict[str, str] = {}
        for name, pattern in SUMMARY_PATTERNS:
            m = pattern.search(cleaned)
            if m:
                extracted[name] = m.group(1)
        return extracted

    def parse(
        self,
        summary_text: str,
        emp_id: str,
        emp_name: str,
        date_values: Sequence[Cell],
        processing_date: date,
    ) -> Optional[MonthlySummaryRecord]:
        """
        Build the block's ``MonthlySummaryRecord``.

        ``None`` when not a single total could be extracted from the text.
        """
        extracted = self.extract_fields(summary_text)
        if not extracted:
            logger.warning("No summary totals recognised for %s in %r", emp_id, summary_text[:120])
            return None

        year, month = self.reporting_period(date_values, summary_text, processing_date)
        totals = {
            name: (
                DataCleaner.parse_count(extracted.get(name))
                if name in COUNT_FIELDS
                else DataCleaner.clean_summary_time(extracted.get(name))
            )
            for name, _ in SUMMARY_PATTERNS
        }
        logger.debug("Summary for %s: matched %s", emp_id, sorted(extracted))
        return MonthlySummaryRecord(
            emp_id=emp_id,
            emp_name=emp_name,
            year=year,
            month=month,
            month_name=MONTH_ABBRS[month - 1],
            **totals,
        )

    # ------------------------------------------------------------------
    # Reporting month
    # ------------------------------------------------------------------

    def reporting_period(
        self,
        date_values: Sequence[Cell],
        summary_text: str,
        processing_date: date,
    ) -> Tuple[int, int]:
        """
        ``(year, month)`` of the summary.

        Plurality month of *date_values* (ties → first month seen); year of
        the first parsed date. Without date values, a month name in the
        text; otherwise the processing date.
        """
        year, month = processing_date.year, processing_date.month

        if date_values:
            tally: Counter = Counter()
            detected_year: Optional[int] = None
            for cell in date_values:
                parsed = self._tally_date(cell, processing_date.year)
                if parsed is None:
                    continue
                tally[parsed.month] += 1
                if detected_year is None:
                    detected_year = parsed.year
            if tally:
                month = tally.most_common(1)[0][0]
                year = detected_year
                logger.debug("Month counts %s -> %d/%d", dict(tally), month, year)
            return year, month

        text_month = self.month_from_text(summary_text)
        if text_month is not None:
            month = text_month
        return year, month

    @staticmethod
    def month_from_text(text: str) -> Optional[int]:
        for pattern in TEXT_MONTH_PATTERNS:
            m = pattern.search(text or "")
            if m:
                found = MONTH_BY_ABBR.get(m.group(1).lower())
                if found:
                    return found
        return None

    def _tally_date(self, cell: Cell, year: int) -> Optional[date]:
        if cell.kind is CellKind.TEXT:
            m = DAY_MONTH_TOKEN_RE.search(str(cell.value))
            if not m:
                return None
            day = int(m.group(1))
            month = MONTH_BY_ABBR.get(m.group(2).lower())
            if month and 1 <= day <= 31:
                return date(year, month, 1)
            return None
        if cell.kind is CellKind.DATE_SERIAL:
            return DataCleaner.serial_to_date(float(cell.value))
        if cell.kind is CellKind.NUMBER:
            value = float(cell.value)
            if self._cfg.serial_min < value < self._cfg.serial_max:
                return DataCleaner.serial_to_date(value)
            return None
        return None
