from datetime import date

from attendance_ingest.extractors.biometric.block_locator import EmployeeBlock
from attendance_ingest.extractors.biometric.date_resolver import DateColumn, DateColumnResolver, DateRule
from attendance_ingest.extractors.biometric.field_mapper import FieldRowMapper
from attendance_ingest.extractors.biometric.reader import GridReader
from attendance_ingest.extractors.biometric.record_synthesizer import BlockCounters, RecordSynthesizer
from attendance_ingest.ir import EMPTY_CELL, AttendanceStatus, Cell, DiagnosticKind


def _times(time_in, time_out="18:00:00"):
    return {"timeInActual": time_in, "timeOutActual": time_out}


def test_sunday_is_weekly_off_regardless_of_punches() -> None:
    derived = RecordSynthesizer().derive_status("E1", date(2024, 1, 7), _times("09:00:00"), BlockCounters())
    assert derived.status is AttendanceStatus.WEEKLY_OFF
    assert derived.total_wo == 1
    assert derived.total_present == 0
    assert derived.shift_override == "WO"


def test_missing_time_in_is_absent() -> None:
    derived = RecordSynthesizer().derive_status("E1", date(2024, 1, 2), _times("00:00:00"), BlockCounters())
    assert derived.status is AttendanceStatus.ABSENT
    assert derived.total_absent == 1


def test_on_time_is_present() -> None:
    derived = RecordSynthesizer().derive_status("E1", date(2024, 1, 2), _times("09:14:00"), BlockCounters())
    assert derived.status is AttendanceStatus.PRESENT
    assert derived.total_present == 1


def test_fourth_late_arrival_in_month_is_half_day() -> None:
    synth = RecordSynthesizer()
    counters = BlockCounters()
    statuses = [
        synth.derive_status("E1", date(2024, 1, day), _times("09:15:00"), counters).status
        for day in (1, 2, 3, 4)
    ]
    assert statuses == [
        AttendanceStatus.PRESENT,
        AttendanceStatus.PRESENT,
        AttendanceStatus.PRESENT,
        AttendanceStatus.HALF_PRESENT,
    ]
    assert counters.late == {("E1", "2024-01"): 4}


def test_late_allowance_resets_each_month() -> None:
    synth = RecordSynthesizer()
    counters = BlockCounters()
    for day in (22, 23, 24, 25):
        synth.derive_status("E1", date(2024, 1, day), _times("09:30:00"), counters)
    derived = synth.derive_status("E1", date(2024, 2, 1), _times("09:30:00"), counters)
    assert derived.status is AttendanceStatus.PRESENT


def test_arrival_after_late_window_is_half_day_without_counting() -> None:
    counters = BlockCounters()
    derived = RecordSynthesizer().derive_status("E1", date(2024, 1, 2), _times("11:00:00"), counters)
    assert derived.status is AttendanceStatus.HALF_PRESENT
    assert derived.total_present == 0.5
    assert counters.late == {}


def test_third_early_departure_is_half_day() -> None:
    synth = RecordSynthesizer()
    counters = BlockCounters()
    statuses = [
        synth.derive_status("E1", date(2024, 1, day), _times("09:00:00", "15:00:00"), counters).status
        for day in (1, 2, 3)
    ]
    assert statuses == [
        AttendanceStatus.PRESENT,
        AttendanceStatus.PRESENT,
        AttendanceStatus.HALF_PRESENT,
    ]


def test_cell_value_converts_day_fractions_for_time_fields() -> None:
    assert RecordSynthesizer.cell_value("timeInActual", Cell.number(0.375)) == "09:00"
    assert RecordSynthesizer.cell_value("shift", Cell.number(1)) == "1"
    assert RecordSynthesizer.cell_value("shift", Cell.text(" GS ")) == "GS"
    assert RecordSynthesizer.cell_value("ot", EMPTY_CELL) == ""


def _block_grid():
    return GridReader.build_grid(
        [
            ["Days", "01-Jan", "01/01"],
            ["Shift", "GS", "GS"],
            ["In Time", 0.40625, "09:00"],
            ["Out Time", "18:5", None],
            ["Late By", "0:45", None],
        ]
    )


def test_synthesize_builds_normalised_record() -> None:
    grid = _block_grid()
    resolver = DateColumnResolver()
    mapping = FieldRowMapper().map_fields(grid, 1)
    column = resolver.resolve_row(grid, 0)[0]
    block = EmployeeBlock(emp_id="E1", emp_name="Alice Smith", row_range_start=0, reference_row=0)

    record, diag = RecordSynthesizer(resolver=resolver).synthesize(
        block, column, mapping, BlockCounters(), 2024, 0,
    )
    assert diag is None
    assert record.record_date == date(2024, 1, 1)
    assert record.shift == "GS"
    assert record.time_in_actual == "09:45:00"
    assert record.time_out_actual == "18:05:00"
    assert record.late_by == "00:45:00"
    assert record.early_by == "00:00:00"
    assert record.total_regular_ot == "00:00:00"
    assert record.status is AttendanceStatus.PRESENT


def test_synthesize_reports_unparseable_date() -> None:
    grid = _block_grid()
    mapping = FieldRowMapper().map_fields(grid, 1)
    column = DateColumn(col=2, cell=Cell.text("01/01"), rule=DateRule.DD_SLASH_MM)
    block = EmployeeBlock(emp_id="E1", emp_name="Alice Smith", row_range_start=0, reference_row=0)

    record, diag = RecordSynthesizer().synthesize(block, column, mapping, BlockCounters(), 2024, 0)
    assert record is None
    assert diag.kind is DiagnosticKind.UNPARSEABLE_DATE_CELL
    assert (diag.row, diag.col, diag.emp_id) == (0, 2, "E1")
    assert "01/01" in diag.reason
