from datetime import date, datetime, time

import pytest
from openpyxl import Workbook

from attendance_ingest.config import reset_settings
from attendance_ingest.errors import CatastrophicReadFailure, NoAttendanceRecords
from attendance_ingest.ir import AttendanceStatus, DiagnosticKind
from attendance_ingest.pipeline import ingest_grid, run_ingest

from conftest import employee_block_rows, make_grid

FIRST_WEEK = [f"{d:02d}-Jan" for d in range(1, 8)]


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    for name in ("PROCESSING_YEAR", "DEFAULT_SHEET", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


def _write_attendance_workbook(path, block_rows):
    wb = Workbook()
    cover = wb.active
    cover.title = "Cover"
    cover.append(["Attendance export"])
    ws = wb.create_sheet("Monthly Status")
    for row in block_rows:
        ws.append(row)
    wb.save(path)
    return str(path)


def test_ingest_grid_without_records_raises() -> None:
    grid = make_grid(employee_block_rows("E1", "Alice Smith", FIRST_WEEK, with_days_row=False))
    with pytest.raises(NoAttendanceRecords) as exc_info:
        ingest_grid(grid, processing_date=date(2024, 1, 15))

    err = exc_info.value
    assert str(err).startswith("No valid activity data found in sheet")
    assert err.employee_count == 1
    assert [d.kind for d in err.diagnostics] == [DiagnosticKind.MISSING_DATE_ROW]


def test_processing_year_from_settings(monkeypatch) -> None:
    monkeypatch.setenv("PROCESSING_YEAR", "2023")
    reset_settings()
    result = ingest_grid(make_grid(employee_block_rows("E1", "Alice Smith", FIRST_WEEK)))

    assert {r.record_date.year for r in result.attendance} == {2023}
    # 2023-01-01 was a Sunday
    first = next(r for r in result.attendance if r.record_date == date(2023, 1, 1))
    assert first.status is AttendanceStatus.WEEKLY_OFF
    assert result.summaries[0].year == 2023


def test_run_ingest_reads_profile_sheet_and_aliases(tmp_path) -> None:
    rows = employee_block_rows("E1", "Alice Smith", FIRST_WEEK)
    rows[4][0] = "Punch In"
    workbook = _write_attendance_workbook(tmp_path / "attendance.xlsx", rows)

    profile = tmp_path / "profile.yaml"
    profile.write_text(
        "profile_id: essl_monthly\n"
        "excel:\n"
        "  sheet: Monthly Status\n"
        "field_aliases:\n"
        "  timeInActual: [punch in]\n",
        encoding="utf-8",
    )

    result = run_ingest(workbook, profile_path=str(profile), processing_date=date(2024, 1, 15))
    by_day = {r.record_date.day: r for r in result.attendance}
    assert len(by_day) == 7
    assert by_day[1].time_in_actual == "09:00:00"
    assert by_day[1].status is AttendanceStatus.PRESENT

    plain = run_ingest(workbook, sheet="Monthly Status", processing_date=date(2024, 1, 15))
    assert {r.record_date.day: r.status for r in plain.attendance}[1] is AttendanceStatus.ABSENT


def test_run_ingest_uses_default_sheet_setting(tmp_path, monkeypatch) -> None:
    workbook = _write_attendance_workbook(
        tmp_path / "attendance.xlsx", employee_block_rows("E1", "Alice Smith", FIRST_WEEK),
    )
    with pytest.raises(NoAttendanceRecords):
        run_ingest(workbook, processing_date=date(2024, 1, 15))

    monkeypatch.setenv("DEFAULT_SHEET", "Monthly Status")
    reset_settings()
    result = run_ingest(workbook, processing_date=date(2024, 1, 15))
    assert len(result.attendance) == 7


def test_run_ingest_missing_workbook(tmp_path) -> None:
    with pytest.raises(CatastrophicReadFailure):
        run_ingest(str(tmp_path / "missing.xlsx"))


def test_run_ingest_missing_profile(tmp_path) -> None:
    workbook = _write_attendance_workbook(
        tmp_path / "attendance.xlsx", employee_block_rows("E1", "Alice Smith", FIRST_WEEK),
    )
    with pytest.raises(FileNotFoundError):
        run_ingest(workbook, profile_path=str(tmp_path / "missing.yaml"))


def test_run_ingest_with_date_typed_days_row(tmp_path) -> None:
    days = [datetime(2024, 1, d) for d in range(1, 8)]
    ins = [time(9, 0), time(9, 20), None, time(11, 30), time(8, 55), time(9, 0), time(9, 0)]
    outs = [time(18, 0)] * 7
    workbook = _write_attendance_workbook(
        tmp_path / "dated.xlsx",
        employee_block_rows(101, "Alice Smith", days, ins=ins, outs=outs),
    )

    result = run_ingest(workbook, sheet="Monthly Status", processing_date=date(2025, 6, 1))

    assert result.diagnostics == []
    by_date = {r.record_date: r for r in result.attendance}
    assert sorted(by_date) == [date(2024, 1, d) for d in range(1, 8)]
    assert {r.emp_id for r in result.attendance} == {"101"}
    assert by_date[date(2024, 1, 2)].time_in_actual == "09:20:00"
    assert by_date[date(2024, 1, 1)].time_out_actual == "18:00:00"
    assert by_date[date(2024, 1, 3)].status is AttendanceStatus.ABSENT
    assert by_date[date(2024, 1, 4)].status is AttendanceStatus.HALF_PRESENT
    assert by_date[date(2024, 1, 7)].status is AttendanceStatus.WEEKLY_OFF

    summary = result.summaries[0]
    assert (summary.year, summary.month, summary.month_name) == (2024, 1, "Jan")
