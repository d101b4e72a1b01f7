"""
Pipeline: thin orchestrator that composes read → extract → validate.

run_ingest  – workbook path → IngestionResult
ingest_grid – already materialized Grid → IngestionResult

Heavy lifting is delegated to:
  attendance_ingest.extractors.biometric.reader  – GridReader
  attendance_ingest.extractors.biometric_extractor – BiometricSheetExtractor
"""

from __future__ import annotations

from datetime import date
from typing import Optional, Union

from attendance_ingest.config import get_settings
from attendance_ingest.errors import NoAttendanceRecords
from attendance_ingest.extractors.biometric.config import ExtractorConfig, DEFAULT_CONFIG
from attendance_ingest.extractors.biometric.field_mapper import FieldAliasTable
from attendance_ingest.extractors.biometric.reader import GridReader
from attendance_ingest.extractors.biometric_extractor import BiometricSheetExtractor
from attendance_ingest.ir import Grid, IngestionResult
from attendance_ingest.logger import get_logger, set_level
from attendance_ingest.profile_loader import alias_table_from_profile, load_profile

logger = get_logger(__name__)


def ingest_grid(
    grid: Grid,
    alias_table: Optional[FieldAliasTable] = None,
    processing_date: Optional[date] = None,
    cfg: ExtractorConfig = DEFAULT_CONFIG,
) -> IngestionResult:
    """
    Run the extractor over *grid*.

    Raises:
        NoAttendanceRecords: the sheet produced zero attendance records
    """
    if processing_date is None:
        processing_date = get_settings().processing_date()
    result = BiometricSheetExtractor(cfg, alias_table).extract(grid, processing_date)
    if not result.attendance:
        raise NoAttendanceRecords(
            diagnostics=result.diagnostics,
            employee_count=result.report.employee_count,
            summaries_count=len(result.summaries),
        )
    return result


def run_ingest(
    file_path: str,
    sheet: Optional[Union[str, int]] = None,
    profile_path: Optional[str] = None,
    processing_date: Optional[date] = None,
    cfg: ExtractorConfig = DEFAULT_CONFIG,
) -> IngestionResult:
    """
    Read *file_path* and extract its attendance.

    Sheet precedence: explicit *sheet*, then the profile's ``excel.sheet``,
    then ``DEFAULT_SHEET`` from settings, then the first sheet.

    Raises:
        CatastrophicReadFailure: the workbook cannot be read
        NoAttendanceRecords: nothing was extracted
        FileNotFoundError: *profile_path* does not exist
    """
    settings = get_settings()
    set_level(settings.LOG_LEVEL)

    profile = load_profile(profile_path)
    if sheet is None:
        sheet = profile["excel"].get("sheet")
    if sheet is None:
        sheet = settings.DEFAULT_SHEET
    if sheet is None:
        sheet = 0

    grid, backend = GridReader().read_grid(file_path, sheet)
    logger.info("Starting attendance extraction for %s (%d rows, %s)", file_path, len(grid), backend)
    return ingest_grid(
        grid,
        alias_table=alias_table_from_profile(profile),
        processing_date=processing_date,
        cfg=cfg,
    )
