"""
Caller-visible failures of an ingestion run.

Everything below the level of "the file could not be read" or "nothing at
all was extracted" is reported as a ``SkipDiagnostic`` instead.
"""

from typing import List, Optional

from attendance_ingest.ir import SkipDiagnostic


class CatastrophicReadFailure(RuntimeError):
    """The source file could not be read or parsed as a grid."""

    def __init__(self, file_path: str, cause: Optional[BaseException] = None):
        self.file_path = file_path
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Cannot read attendance workbook {file_path}{detail}")


class NoAttendanceRecords(ValueError):
    """The whole sheet yielded zero attendance records."""

    def __init__(
        self,
        diagnostics: Optional[List[SkipDiagnostic]] = None,
        employee_count: int = 0,
        summaries_count: int = 0,
    ):
        self.diagnostics = list(diagnostics or [])
        self.employee_count = employee_count
        self.summaries_count = summaries_count
        super().__init__(
            "No valid activity data found in sheet "
            f"(employees={employee_count}, summaries={summaries_count}, "
            f"diagnostics={len(self.diagnostics)})"
        )
