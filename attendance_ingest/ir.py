"""
Intermediate Representation Module
==================================

Core data structures shared by the reader, the extraction engine and the
callers: the tagged ``Cell`` grid on the way in, ``AttendanceRecord`` /
``MonthlySummaryRecord`` / ``SkipDiagnostic`` on the way out.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

class CellKind(str, Enum):
    """Tag of a grid cell. Every parsing step matches on all four."""
    EMPTY = "empty"
    TEXT = "text"
    NUMBER = "number"
    DATE_SERIAL = "date_serial"

@dataclass(frozen=True)
class Cell:
    """
    One materialized spreadsheet cell.

    ``value`` is ``None`` for EMPTY, ``str`` for TEXT and ``float`` for
    NUMBER / DATE_SERIAL (DATE_SERIAL counts days since 1899-12-30).
    """
    kind: CellKind
    value: Union[str, float, None] = None

    @classmethod
    def text(cls, value: str) -> "Cell":
        return cls(CellKind.TEXT, value)

    @classmethod
    def number(cls, value: float) -> "Cell":
        return cls(CellKind.NUMBER, float(value))

    @classmethod
    def date_serial(cls, value: float) -> "Cell":
        return cls(CellKind.DATE_SERIAL, float(value))

    @property
    def is_empty(self) -> bool:
        return self.kind is CellKind.EMPTY

EMPTY_CELL = Cell(CellKind.EMPTY)

Row = List[Cell]
Grid = List[Row]

class AttendanceStatus(str, Enum):
    """Derived day status; values are the device's own codes."""
    PRESENT = "P"
    HALF_PRESENT = "½P"
    ABSENT = "A"
    WEEKLY_OFF = "WO"

class DiagnosticKind(str, Enum):
    """Why a unit of the sheet was skipped or flagged."""
    MISSING_DATE_ROW = "MissingDateRow"
    MISSING_SHIFT_ROW = "MissingShiftRow"
    NO_DATE_COLUMNS_FOUND = "NoDateColumnsFound"
    UNPARSEABLE_DATE_CELL = "UnparseableDateCell"
    UNPARSEABLE_SUMMARY = "UnparseableSummary"
    MISSING_SUMMARY = "MissingSummary"
    DUPLICATE_RECORD = "DuplicateRecord"

class AttendanceRecord(BaseModel):
    """
    One employee-day. Serialized with ``by_alias=True`` the keys are the
    persistence field names (``empId``, ``timeInActual``, ``total_present``...).
    Natural key: (empId, date).
    """
    model_config = ConfigDict(populate_by_name=True)

    record_date: date = Field(alias="date")
    emp_id: str = Field(alias="empId")
    emp_name: str = Field(alias="empName")
    shift: str = ""
    time_in_actual: str = Field(default="00:00:00", alias="timeInActual")
    time_out_actual: str = Field(default="00:00:00", alias="timeOutActual")
    late_by: str = Field(default="00:00:00", alias="lateBy")
    early_by: str = Field(default="00:00:00", alias="earlyBy")
    ot: str = "00:00:00"
    duration: str = "00:00:00"
    total_duration: str = Field(default="00:00:00", alias="totalDuration")
    status: AttendanceStatus = AttendanceStatus.ABSENT
    total_present: float = 0
    total_absent: int = 0
    total_leave: int = 0
    total_wo: int = 0
    total_ho: int = 0
    total_regular_ot: str = "00:00:00"

    @property
    def natural_key(self) -> tuple:
        return (self.emp_id, self.record_date)

class MonthlySummaryRecord(BaseModel):
    """Per-employee monthly totals parsed from the sheet's summary prose."""
    model_config = ConfigDict(populate_by_name=True)

    emp_id: str = Field(alias="empId")
    emp_name: str = Field(alias="empName")
    year: int
    month: int
    month_name: str = Field(alias="monthName")
    total_present: int = Field(default=0, alias="totalPresent")
    total_absent: int = Field(default=0, alias="totalAbsent")
    total_leave_taken: int = Field(default=0, alias="totalLeaveTaken")
    total_weekly_off_present: int = Field(default=0, alias="totalWeeklyOffPresent")
    total_duration: str = Field(default="00:00", alias="totalDuration")
    total_t_duration: str = Field(default="00:00", alias="totalTDuration")
    total_over_time: str = Field(default="00:00", alias="totalOverTime")
    total_wo_count: int = Field(default=0, alias="totalWOCount")
    total_ho_count: int = Field(default=0, alias="totalHOCount")
    total_late_by: str = Field(default="00:00", alias="totalLateBy")
    total_early_by: str = Field(default="00:00", alias="totalEarlyBy")
    total_regular_ot: str = Field(default="00:00", alias="totalRegularOT")

    @property
    def natural_key(self) -> tuple:
        return (self.emp_id, self.year, self.month)

class SkipDiagnostic(BaseModel):
    """Audit entry for anything skipped or flagged during a scan."""
    kind: DiagnosticKind
    row: int
    col: Optional[int] = None
    emp_id: Optional[str] = None
    reason: str

    @property
    def location(self) -> str:
        if self.col is None:
            return f"row {self.row}"
        return f"row {self.row}, col {self.col}"

class EmployeeReport(BaseModel):
    records: int = 0
    first_date: Optional[date] = None
    last_date: Optional[date] = None
    # (first marker row, last field-table row) of every block synthesized
    row_ranges: List[Tuple[int, int]] = Field(default_factory=list)

class ProcessingReport(BaseModel):
    """End-of-run figures for one sheet."""
    total_rows: int = 0
    employee_count: int = 0
    blocks_abandoned: int = 0
    records_per_employee: Dict[str, EmployeeReport] = Field(default_factory=dict)

class IngestionResult(BaseModel):
    """Everything one scan of one grid produces."""
    attendance: List[AttendanceRecord] = []
    summaries: List[MonthlySummaryRecord] = []
    diagnostics: List[SkipDiagnostic] = []
    report: ProcessingReport = Field(default_factory=ProcessingReport)

    def to_dict(self) -> dict:
        """JSON-ready dict using the persistence field names."""
        return {
            "attendance": [r.model_dump(mode="json", by_alias=True) for r in self.attendance],
            "summaries": [s.model_dump(mode="json", by_alias=True) for s in self.summaries],
            "diagnostics": [
                dict(d.model_dump(mode="json"), location=d.location) for d in self.diagnostics
            ],
            "report": self.report.model_dump(mode="json"),
        }
