from datetime import date, datetime

from attendance_ingest.extractors import BiometricSheetExtractor, extract_attendance
from attendance_ingest.extractors.biometric.reader import GridReader
from attendance_ingest.ir import AttendanceStatus, DiagnosticKind

from conftest import employee_block_rows, make_grid

FIRST_WEEK = [f"{d:02d}-Jan" for d in range(1, 8)]


def _kinds(result):
    return [d.kind for d in result.diagnostics]


def test_first_week_of_january_statuses(january_2024) -> None:
    # 2024-01-01 is a Monday; four late arrivals, one on time, one absence, Sunday off
    block = employee_block_rows(
        "E001", "Alice Smith", FIRST_WEEK,
        ins=["09:30", "09:30", "09:30", "09:30", "09:00", None, "09:00"],
    )
    result = extract_attendance(make_grid(block), processing_date=january_2024)

    by_date = {r.record_date: r for r in result.attendance}
    assert len(by_date) == 7
    assert [by_date[date(2024, 1, d)].status for d in range(1, 8)] == [
        AttendanceStatus.PRESENT,
        AttendanceStatus.PRESENT,
        AttendanceStatus.PRESENT,
        AttendanceStatus.HALF_PRESENT,
        AttendanceStatus.PRESENT,
        AttendanceStatus.ABSENT,
        AttendanceStatus.WEEKLY_OFF,
    ]
    sunday = by_date[date(2024, 1, 7)]
    assert sunday.shift == "WO"
    assert sunday.total_wo == 1
    assert by_date[date(2024, 1, 4)].total_present == 0.5
    assert by_date[date(2024, 1, 6)].total_absent == 1
    assert by_date[date(2024, 1, 1)].time_in_actual == "09:30:00"
    assert by_date[date(2024, 1, 1)].emp_name == "Alice Smith"

    assert len(result.summaries) == 1
    summary = result.summaries[0]
    assert (summary.emp_id, summary.year, summary.month) == ("E001", 2024, 1)
    assert summary.total_present == 20
    assert result.diagnostics == []


def test_late_allowance_with_january_punches(january_2024) -> None:
    block = employee_block_rows(
        "E001", "Alice Smith", [f"{d:02d}-Jan" for d in range(1, 6)],
        ins=["08:00", "09:20", "09:20", "09:20", "09:25"],
    )
    result = extract_attendance(make_grid(block), processing_date=january_2024)

    statuses = {r.record_date: r.status for r in result.attendance}
    assert statuses == {
        date(2024, 1, 1): AttendanceStatus.PRESENT,
        date(2024, 1, 2): AttendanceStatus.PRESENT,
        date(2024, 1, 3): AttendanceStatus.PRESENT,
        date(2024, 1, 4): AttendanceStatus.PRESENT,
        date(2024, 1, 5): AttendanceStatus.HALF_PRESENT,
    }
    fifth = next(r for r in result.attendance if r.record_date == date(2024, 1, 5))
    assert fifth.total_present == 0.5
    assert fifth.time_in_actual == "09:25:00"


def test_block_without_days_row_does_not_borrow_next_calendar(january_2024) -> None:
    grid = make_grid(
        employee_block_rows("E1", "Alice Smith", FIRST_WEEK, with_days_row=False),
        employee_block_rows("E2", "Bob Jones", FIRST_WEEK),
    )
    result = extract_attendance(grid, processing_date=january_2024)

    assert {r.emp_id for r in result.attendance} == {"E2"}
    assert len(result.attendance) == 7
    assert _kinds(result) == [DiagnosticKind.MISSING_DATE_ROW]
    assert result.diagnostics[0].emp_id == "E1"
    assert result.report.employee_count == 2
    assert result.report.blocks_abandoned == 1


def test_block_without_date_columns_is_abandoned(january_2024) -> None:
    grid = make_grid(
        employee_block_rows("E1", "Alice Smith", ["Mon", "Tue"]),
        employee_block_rows("E2", "Bob Jones", FIRST_WEEK),
    )
    result = extract_attendance(grid, processing_date=january_2024)

    assert {r.emp_id for r in result.attendance} == {"E2"}
    assert _kinds(result) == [DiagnosticKind.NO_DATE_COLUMNS_FOUND]
    assert result.diagnostics[0].row == 3


def test_block_without_shift_row_is_abandoned(january_2024) -> None:
    grid = make_grid(
        employee_block_rows("E1", "Alice Smith", FIRST_WEEK, with_shift_row=False),
        employee_block_rows("E2", "Bob Jones", FIRST_WEEK),
    )
    result = extract_attendance(grid, processing_date=january_2024)

    assert {r.emp_id for r in result.attendance} == {"E2"}
    assert _kinds(result) == [DiagnosticKind.MISSING_SHIFT_ROW]
    assert [s.emp_id for s in result.summaries] == ["E2"]


def test_unparseable_date_column_skips_only_that_column(january_2024) -> None:
    block = employee_block_rows("E1", "Alice Smith", ["01-Jan", "02/01", "03-Jan"])
    result = extract_attendance(make_grid(block), processing_date=january_2024)

    assert sorted(r.record_date.day for r in result.attendance) == [1, 3]
    assert _kinds(result) == [DiagnosticKind.UNPARSEABLE_DATE_CELL]
    assert result.diagnostics[0].col == 2
    assert result.diagnostics[0].location == "row 3, col 2"


def test_summary_problems_are_diagnostics(january_2024) -> None:
    grid = make_grid(
        employee_block_rows("E1", "Alice Smith", FIRST_WEEK, summary=None),
        employee_block_rows("E2", "Bob Jones", FIRST_WEEK, summary="Total Present - none"),
    )
    result = extract_attendance(grid, processing_date=january_2024)

    assert len(result.attendance) == 14
    assert result.summaries == []
    assert _kinds(result) == [DiagnosticKind.MISSING_SUMMARY, DiagnosticKind.UNPARSEABLE_SUMMARY]


def test_repeated_block_keeps_one_record_per_employee_day(january_2024) -> None:
    block = employee_block_rows("E1", "Alice Smith", FIRST_WEEK)
    result = extract_attendance(make_grid(block, block), processing_date=january_2024)

    keys = [r.natural_key for r in result.attendance]
    assert len(keys) == len(set(keys)) == 7
    assert len(result.summaries) == 1
    assert _kinds(result).count(DiagnosticKind.DUPLICATE_RECORD) == 8
    assert result.report.employee_count == 2


def test_resync_skips_noise_between_blocks(january_2024) -> None:
    noise = [["Printed on", "15-Jan-2024"], ["Page 1 of 2"], []]
    grid = make_grid(
        employee_block_rows("E1", "Alice Smith", FIRST_WEEK),
        noise,
        employee_block_rows("E2", "Bob Jones", FIRST_WEEK),
    )
    result = extract_attendance(grid, processing_date=january_2024)
    assert sorted({r.emp_id for r in result.attendance}) == ["E1", "E2"]
    assert len(result.attendance) == 14


def test_resync_cursor_bounded_lookahead() -> None:
    rows = [["noise"]] * 5 + [["Employee Code:", "E1"]]
    extractor = BiometricSheetExtractor()
    assert extractor.resync_cursor(GridReader.build_grid(rows), 0) == 5

    far = [["noise"]] * 60 + [["Employee Code:", "E1"]]
    assert extractor.resync_cursor(GridReader.build_grid(far), 0) == 0


def test_serial_date_header(january_2024) -> None:
    days = [datetime(2024, 2, d) for d in range(1, 4)]
    block = employee_block_rows("E1", "Alice Smith", days)
    result = extract_attendance(make_grid(block), processing_date=january_2024)

    assert sorted(r.record_date for r in result.attendance) == [
        date(2024, 2, 1), date(2024, 2, 2), date(2024, 2, 3),
    ]
    assert (result.summaries[0].year, result.summaries[0].month) == (2024, 2)


def test_report_and_serialisation(january_2024) -> None:
    block = employee_block_rows("E1", "Alice Smith", FIRST_WEEK, ins=["11:30"] * 7)
    result = extract_attendance(make_grid(block), processing_date=january_2024)

    entry = result.report.records_per_employee["E1"]
    assert entry.records == 7
    assert (entry.first_date, entry.last_date) == (date(2024, 1, 1), date(2024, 1, 7))
    # marker row through the last row of the ten-row field table
    assert entry.row_ranges == [(2, 14)]

    data = result.to_dict()
    first = data["attendance"][0]
    assert first["empId"] == "E1"
    assert first["date"] == "2024-01-01"
    assert first["status"] == "½P"
    assert first["timeInActual"] == "11:30:00"
    assert data["summaries"][0]["monthName"] == "Jan"
    assert data["report"]["employee_count"] == 1
    assert data["report"]["records_per_employee"]["E1"]["row_ranges"] == [[2, 14]]


def test_empty_grid_yields_nothing() -> None:
    result = extract_attendance([], processing_date=date(2024, 1, 1))
    assert result.attendance == []
    assert result.report.employee_count == 0
