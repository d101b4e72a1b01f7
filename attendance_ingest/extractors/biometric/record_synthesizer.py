"""
RecordSynthesizer: one date column of one employee block → one AttendanceRecord.

Steps per column:
1. Resolve the column's calendar date (``DD-MMM`` text or a serial).
2. Pull every mapped field's cell from that column and normalise it.
3. Derive the attendance status from the weekly-off day, the time-in
   lateness window and the early-departure rule. Lateness and early
   departures are tolerated a few times per month; the running counts live
   in a ``BlockCounters`` object created fresh for every block.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Optional, Tuple

from attendance_ingest.extractors.biometric.block_locator import EmployeeBlock
from attendance_ingest.extractors.biometric.config import ExtractorConfig, DEFAULT_CONFIG
from attendance_ingest.extractors.biometric.data_cleaner import DataCleaner, ZERO_TIME
from attendance_ingest.extractors.biometric.date_resolver import DateColumn, DateColumnResolver
from attendance_ingest.extractors.biometric.field_mapper import FieldRowMapping
from attendance_ingest.ir import (
    AttendanceRecord,
    AttendanceStatus,
    Cell,
    CellKind,
    DiagnosticKind,
    EMPTY_CELL,
    SkipDiagnostic,
)
from attendance_ingest.logger import get_logger

logger = get_logger(__name__)

TIME_FIELDS = (
    "timeInActual",
    "timeOutActual",
    "lateBy",
    "earlyBy",
    "ot",
    "duration",
    "totalDuration",
    "total_regular_ot",
)

WEEKLY_OFF_SHIFT = "WO"

_PRESENT_CREDIT = {
    AttendanceStatus.PRESENT: 1,
    AttendanceStatus.HALF_PRESENT: 0.5,
}


@dataclass
class BlockCounters:
    """Late-arrival / early-departure counts keyed by (empId, year-month)."""
    late: Dict[Tuple[str, str], int] = field(default_factory=dict)
    early: Dict[Tuple[str, str], int] = field(default_factory=dict)

    @staticmethod
    def _key(emp_id: str, day: date) -> Tuple[str, str]:
        return emp_id, f"{day.year}-{day.month:02d}"

    def record_late(self, emp_id: str, day: date) -> int:
        key = self._key(emp_id, day)
        self.late[key] = self.late.get(key, 0) + 1
        return self.late[key]

    def record_early(self, emp_id: str, day: date) -> int:
        key = self._key(emp_id, day)
        self.early[key] = self.early.get(key, 0) + 1
        return self.early[key]


@dataclass
class DerivedStatus:
    status: AttendanceStatus
    total_present: float = 0
    total_absent: int = 0
    total_wo: int = 0
    shift_override: Optional[str] = None


class RecordSynthesizer:
    """Build attendance records for the date columns of a resolved block."""

    def __init__(
        self,
        cfg: ExtractorConfig = DEFAULT_CONFIG,
        resolver: Optional[DateColumnResolver] = None,
    ):
        self._cfg = cfg
        self._resolver = resolver or DateColumnResolver(cfg)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def synthesize(
        self,
        block: EmployeeBlock,
        column: DateColumn,
        mapping: FieldRowMapping,
        counters: BlockCounters,
        processing_year: int,
        dates_row: int,
    ) -> Tuple[Optional[AttendanceRecord], Optional[SkipDiagnostic]]:
        """
        Return ``(record, None)`` or ``(None, diagnostic)`` when the column's
        date cannot be parsed.
        """
        record_date = self._resolver.to_date(column.cell, processing_year)
        if record_date is None:
            raw = DataCleaner.cell_to_str(column.cell)
            logger.debug("Could not parse date %r at column %d", raw, column.col)
            return None, SkipDiagnostic(
                kind=DiagnosticKind.UNPARSEABLE_DATE_CELL,
                row=dates_row,
                col=column.col,
                emp_id=block.emp_id,
                reason=f"Invalid date format: {raw}",
            )

        values = self.extract_values(mapping, column.col)
        derived = self.derive_status(block.emp_id, record_date, values, counters)

        record = AttendanceRecord(
            record_date=record_date,
            emp_id=block.emp_id,
            emp_name=block.emp_name,
            shift=derived.shift_override or values.get("shift", ""),
            time_in_actual=values["timeInActual"],
            time_out_actual=values["timeOutActual"],
            late_by=values["lateBy"],
            early_by=values["earlyBy"],
            ot=values["ot"],
            duration=values["duration"],
            total_duration=values["totalDuration"],
            status=derived.status,
            total_present=derived.total_present,
            total_absent=derived.total_absent,
            total_wo=derived.total_wo,
            total_regular_ot=values["total_regular_ot"],
        )
        return record, None

    # ------------------------------------------------------------------
    # Field values
    # ------------------------------------------------------------------

    def extract_values(self, mapping: FieldRowMapping, col: int) -> Dict[str, str]:
        """Normalised value of every field for one column; defaults filled in."""
        values: Dict[str, str] = {}
        for key in mapping.rows_by_key:
            row = mapping.row_for(key)
            cell = row[col] if row is not None and col < len(row) else EMPTY_CELL
            values[key] = self.cell_value(key, cell)
        for key in TIME_FIELDS:
            values[key] = DataCleaner.normalize_time(values.get(key))
        return values

    @staticmethod
    def cell_value(key: str, cell: Cell) -> str:
        if cell.kind is CellKind.EMPTY:
            return ""
        if cell.kind is CellKind.TEXT:
            return str(cell.value).strip()
        if cell.kind in (CellKind.NUMBER, CellKind.DATE_SERIAL):
            number = float(cell.value)
            if key in TIME_FIELDS and 0 < number < 1:
                return DataCleaner.day_fraction_to_hhmm(number)
            return DataCleaner.format_number(number)
        raise ValueError(f"Unknown cell kind: {cell.kind!r}")

    # ------------------------------------------------------------------
    # Status rules
    # ------------------------------------------------------------------

    def derive_status(
        self,
        emp_id: str,
        record_date: date,
        values: Dict[str, str],
        counters: BlockCounters,
    ) -> DerivedStatus:
        cfg = self._cfg
        if record_date.weekday() == cfg.weekly_off_weekday:
            return DerivedStatus(
                status=AttendanceStatus.WEEKLY_OFF,
                total_wo=1,
                shift_override=WEEKLY_OFF_SHIFT,
            )

        in_minutes = DataCleaner.time_to_minutes(values.get("timeInActual", ZERO_TIME))
        if in_minutes is None:
            return DerivedStatus(status=AttendanceStatus.ABSENT, total_absent=1)

        if cfg.late_window_start <= in_minutes < cfg.late_window_end:
            late_count = counters.record_late(emp_id, record_date)
            status = (
                AttendanceStatus.PRESENT
                if late_count <= cfg.late_allowance
                else AttendanceStatus.HALF_PRESENT
            )
        elif in_minutes >= cfg.late_window_end:
            status = AttendanceStatus.HALF_PRESENT
        else:
            status = AttendanceStatus.PRESENT

        out_minutes = DataCleaner.time_to_minutes(values.get("timeOutActual", ZERO_TIME))
        if out_minutes is not None and out_minutes < cfg.early_leave_before:
            early_count = counters.record_early(emp_id, record_date)
            if early_count > cfg.early_allowance:
                status = AttendanceStatus.HALF_PRESENT

        return DerivedStatus(status=status, total_present=_PRESENT_CREDIT.get(status, 0))
