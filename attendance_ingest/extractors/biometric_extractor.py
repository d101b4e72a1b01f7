"""
Biometric attendance sheet extractor.

Drives the whole-sheet scan as an explicit state machine::

    SEEK_EMPLOYEE → SEEK_DATES_ROW → SEEK_SHIFT_ROW → SYNTHESIZE
        → SEEK_SUMMARY → RESYNC → SEEK_EMPLOYEE ... → DONE

Block-level failures (no "Days" row, no date columns, no "Shift" row)
abandon only the current employee block; column-level failures skip only
that column. Every anomaly is recorded as a ``SkipDiagnostic`` and the scan
carries on. The scan is a pure function of the grid: no I/O happens here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from attendance_ingest.extractors.biometric.block_locator import EmployeeBlock, EmployeeBlockLocator
from attendance_ingest.extractors.biometric.config import ExtractorConfig, DEFAULT_CONFIG
from attendance_ingest.extractors.biometric.date_resolver import (
    DateColumn,
    DateColumnResolver,
    raw_date_values,
)
from attendance_ingest.extractors.biometric.field_mapper import (
    FieldAliasTable,
    FieldRowMapper,
    FieldRowMapping,
)
from attendance_ingest.extractors.biometric.record_synthesizer import BlockCounters, RecordSynthesizer
from attendance_ingest.extractors.biometric.summary_parser import SummaryTextParser
from attendance_ingest.ir import (
    AttendanceRecord,
    DiagnosticKind,
    EmployeeReport,
    Grid,
    IngestionResult,
    MonthlySummaryRecord,
    ProcessingReport,
    SkipDiagnostic,
)
from attendance_ingest.logger import get_logger

logger = get_logger(__name__)


class ScanState(str, Enum):
    SEEK_EMPLOYEE = "seek_employee"
    SEEK_DATES_ROW = "seek_dates_row"
    SEEK_SHIFT_ROW = "seek_shift_row"
    SYNTHESIZE = "synthesize"
    SEEK_SUMMARY = "seek_summary"
    RESYNC = "resync"
    DONE = "done"


@dataclass
class ScanContext:
    """Cursor plus the state of the block currently being processed."""
    cursor: int = 0
    block: Optional[EmployeeBlock] = None
    dates_row: Optional[int] = None
    date_columns: List[DateColumn] = field(default_factory=list)
    mapping: Optional[FieldRowMapping] = None

    def reset_block(self) -> None:
        self.block = None
        self.dates_row = None
        self.date_columns = []
        self.mapping = None


@dataclass
class ScanOutput:
    """Accumulates records keyed by natural key; later writes replace earlier ones."""
    records: Dict[Tuple, AttendanceRecord] = field(default_factory=dict)
    summaries: Dict[Tuple, MonthlySummaryRecord] = field(default_factory=dict)
    diagnostics: List[SkipDiagnostic] = field(default_factory=list)
    employee_count: int = 0
    blocks_abandoned: int = 0
    block_spans: List[Tuple[str, int, int]] = field(default_factory=list)

    def add_record(self, record: AttendanceRecord, row: int, col: int) -> None:
        key = record.natural_key
        if key in self.records:
            self.diagnostics.append(SkipDiagnostic(
                kind=DiagnosticKind.DUPLICATE_RECORD,
                row=row,
                col=col,
                emp_id=record.emp_id,
                reason=f"Duplicate attendance for {record.emp_id} on {record.record_date.isoformat()}; last value kept",
            ))
        self.records[key] = record

    def add_summary(self, summary: MonthlySummaryRecord, row: int) -> None:
        key = summary.natural_key
        if key in self.summaries:
            self.diagnostics.append(SkipDiagnostic(
                kind=DiagnosticKind.DUPLICATE_RECORD,
                row=row,
                emp_id=summary.emp_id,
                reason=f"Duplicate summary for {summary.emp_id} {summary.month_name} {summary.year}; last value kept",
            ))
        self.summaries[key] = summary


class BiometricSheetExtractor:
    """
    Turn a device attendance grid into attendance records, monthly
    summaries and diagnostics.

    Usage::

        extractor = BiometricSheetExtractor()
        result = extractor.extract(grid, processing_date=date(2024, 5, 1))
    """

    def __init__(
        self,
        cfg: ExtractorConfig = DEFAULT_CONFIG,
        alias_table: Optional[FieldAliasTable] = None,
    ):
        self._cfg = cfg
        self._locator = EmployeeBlockLocator(cfg)
        self._resolver = DateColumnResolver(cfg, self._locator)
        self._mapper = FieldRowMapper(cfg, alias_table, self._locator)
        self._synthesizer = RecordSynthesizer(cfg, self._resolver)
        self._summary_parser = SummaryTextParser(cfg)
        self._handlers: Dict[ScanState, Callable[..., ScanState]] = {
            ScanState.SEEK_EMPLOYEE: self._seek_employee,
            ScanState.SEEK_DATES_ROW: self._seek_dates_row,
            ScanState.SEEK_SHIFT_ROW: self._seek_shift_row,
            ScanState.SYNTHESIZE: self._synthesize,
            ScanState.SEEK_SUMMARY: self._seek_summary,
            ScanState.RESYNC: self._resync,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract(self, grid: Grid, processing_date: Optional[date] = None) -> IngestionResult:
        processing_date = processing_date or date.today()
        ctx = ScanContext()
        out = ScanOutput()

        state = ScanState.SEEK_EMPLOYEE
        while state is not ScanState.DONE:
            state = self._handlers[state](grid, ctx, out, processing_date)

        attendance = list(out.records.values())
        report = self._build_report(grid, out, attendance)
        self._log_report(report, out)
        return IngestionResult(
            attendance=attendance,
            summaries=list(out.summaries.values()),
            diagnostics=out.diagnostics,
            report=report,
        )

    # ------------------------------------------------------------------
    # State handlers
    # ------------------------------------------------------------------

    def _seek_employee(self, grid: Grid, ctx: ScanContext, out: ScanOutput, processing_date: date) -> ScanState:
        ctx.reset_block()
        block = self._locator.locate(grid, ctx.cursor)
        if block is None:
            ctx.cursor = len(grid)
            return ScanState.DONE
        out.employee_count += 1
        ctx.block = block
        ctx.cursor = block.reference_row + 1
        logger.info(
            "Employee %d found: %s - %s (row %d)",
            out.employee_count, block.emp_id, block.emp_name, block.reference_row,
        )
        return ScanState.SEEK_DATES_ROW

    def _seek_dates_row(self, grid: Grid, ctx: ScanContext, out: ScanOutput, processing_date: date) -> ScanState:
        block = ctx.block
        dates_row, stopped_at = self._resolver.find_dates_row(grid, block.reference_row)
        if dates_row is None:
            return self._abandon(
                ctx, out, DiagnosticKind.MISSING_DATE_ROW, block.reference_row,
                f"Days row not found for {block.emp_id}", resume_at=stopped_at,
            )

        ctx.dates_row = dates_row
        ctx.date_columns = self._resolver.resolve_row(grid, dates_row)
        if not ctx.date_columns:
            return self._abandon(
                ctx, out, DiagnosticKind.NO_DATE_COLUMNS_FOUND, dates_row,
                f"No date columns found for {block.emp_id}", resume_at=dates_row + 1,
            )
        if len(ctx.date_columns) < self._cfg.short_month_warning_columns:
            logger.warning(
                "Only %d date columns found for %s; expected around 30 for a full month",
                len(ctx.date_columns), block.emp_id,
            )
        return ScanState.SEEK_SHIFT_ROW

    def _seek_shift_row(self, grid: Grid, ctx: ScanContext, out: ScanOutput, processing_date: date) -> ScanState:
        block = ctx.block
        shift_row, stopped_at = self._mapper.find_shift_row(grid, ctx.dates_row)
        if shift_row is None:
            return self._abandon(
                ctx, out, DiagnosticKind.MISSING_SHIFT_ROW, ctx.dates_row,
                f"Shift row not found for {block.emp_id}", resume_at=stopped_at,
            )
        ctx.mapping = self._mapper.map_fields(grid, shift_row)
        block.row_range_end = ctx.mapping.end_row
        return ScanState.SYNTHESIZE

    def _synthesize(self, grid: Grid, ctx: ScanContext, out: ScanOutput, processing_date: date) -> ScanState:
        block = ctx.block
        counters = BlockCounters()
        produced = 0
        for column in ctx.date_columns:
            record, diagnostic = self._synthesizer.synthesize(
                block, column, ctx.mapping, counters, processing_date.year, ctx.dates_row,
            )
            if diagnostic is not None:
                out.diagnostics.append(diagnostic)
                continue
            out.add_record(record, ctx.dates_row, column.col)
            produced += 1
        logger.info(
            "Processed %d records for %s - %s (rows %d-%d)",
            produced, block.emp_id, block.emp_name, block.row_range_start, block.row_range_end,
        )
        out.block_spans.append((block.emp_id, block.row_range_start, block.row_range_end))
        return ScanState.SEEK_SUMMARY

    def _seek_summary(self, grid: Grid, ctx: ScanContext, out: ScanOutput, processing_date: date) -> ScanState:
        block = ctx.block
        found = self._summary_parser.find_summary_text(grid, ctx.dates_row)
        if found is None:
            logger.info("No summary found for %s below row %d", block.emp_id, ctx.dates_row)
            out.diagnostics.append(SkipDiagnostic(
                kind=DiagnosticKind.MISSING_SUMMARY,
                row=ctx.dates_row,
                emp_id=block.emp_id,
                reason=f"Summary row not found for {block.emp_id}",
            ))
            return ScanState.RESYNC

        summary_row, summary_text = found
        summary = self._summary_parser.parse(
            summary_text,
            block.emp_id,
            block.emp_name,
            raw_date_values(grid, ctx.dates_row),
            processing_date,
        )
        if summary is None:
            out.diagnostics.append(SkipDiagnostic(
                kind=DiagnosticKind.UNPARSEABLE_SUMMARY,
                row=summary_row,
                emp_id=block.emp_id,
                reason=f"No totals recognised in summary for {block.emp_id}",
            ))
        else:
            out.add_summary(summary, summary_row)
        return ScanState.RESYNC

    def _resync(self, grid: Grid, ctx: ScanContext, out: ScanOutput, processing_date: date) -> ScanState:
        ctx.cursor = self.resync_cursor(grid, ctx.mapping.shift_row + self._cfg.field_window_rows)
        return ScanState.SEEK_EMPLOYEE

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def resync_cursor(self, grid: Grid, cursor: int) -> int:
        """
        Next scan position after a finished block.

        Looks ahead ``resync_lookahead_rows`` rows for a row starting with
        an employee-code marker and resumes there; otherwise resumes at
        *cursor* and lets the linear scan continue.
        """
        end = min(len(grid), cursor + self._cfg.resync_lookahead_rows)
        for row_idx in range(cursor, end):
            if self._locator.row_starts_with_code_marker(grid[row_idx]):
                logger.debug("Next employee marker at row %d", row_idx)
                return row_idx
        if cursor < len(grid):
            logger.info(
                "No employee marker in next %d rows; continuing search from row %d",
                self._cfg.resync_lookahead_rows, cursor,
            )
        return cursor

    def _abandon(
        self,
        ctx: ScanContext,
        out: ScanOutput,
        kind: DiagnosticKind,
        row: int,
        reason: str,
        resume_at: int,
    ) -> ScanState:
        logger.warning("%s (row %d); block abandoned", reason, row)
        out.diagnostics.append(SkipDiagnostic(
            kind=kind, row=row, emp_id=ctx.block.emp_id if ctx.block else None, reason=reason,
        ))
        out.blocks_abandoned += 1
        ctx.cursor = max(resume_at, ctx.cursor)
        return ScanState.SEEK_EMPLOYEE

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    @staticmethod
    def _build_report(grid: Grid, out: ScanOutput, attendance: List[AttendanceRecord]) -> ProcessingReport:
        per_employee: Dict[str, EmployeeReport] = {}
        for record in attendance:
            entry = per_employee.setdefault(record.emp_id, EmployeeReport())
            entry.records += 1
            if entry.first_date is None or record.record_date < entry.first_date:
                entry.first_date = record.record_date
            if entry.last_date is None or record.record_date > entry.last_date:
                entry.last_date = record.record_date
        for emp_id, start, end in out.block_spans:
            per_employee.setdefault(emp_id, EmployeeReport()).row_ranges.append((start, end))
        return ProcessingReport(
            total_rows=len(grid),
            employee_count=out.employee_count,
            blocks_abandoned=out.blocks_abandoned,
            records_per_employee=per_employee,
        )

    @staticmethod
    def _log_report(report: ProcessingReport, out: ScanOutput) -> None:
        logger.info(
            "Scan finished: rows=%d employees=%d records=%d summaries=%d diagnostics=%d abandoned=%d",
            report.total_rows,
            report.employee_count,
            sum(e.records for e in report.records_per_employee.values()),
            len(out.summaries),
            len(out.diagnostics),
            report.blocks_abandoned,
        )
        for emp_id, entry in report.records_per_employee.items():
            logger.info(
                "  %s: %d records (%s to %s)",
                emp_id, entry.records, entry.first_date, entry.last_date,
            )


def extract_attendance(
    grid: Grid,
    alias_table: Optional[FieldAliasTable] = None,
    processing_date: Optional[date] = None,
    cfg: ExtractorConfig = DEFAULT_CONFIG,
) -> IngestionResult:
    """Functional entry point: one grid in, one ``IngestionResult`` out."""
    return BiometricSheetExtractor(cfg, alias_table).extract(grid, processing_date)
