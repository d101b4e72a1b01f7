from datetime import datetime, time
from pathlib import Path

import pandas as pd
import pytest
from openpyxl import Workbook

from attendance_ingest.errors import CatastrophicReadFailure
from attendance_ingest.extractors.biometric.reader import GridReader
from attendance_ingest.ir import Cell, CellKind


def _write_workbook(path: Path) -> Path:
    wb = Workbook()
    ws = wb.active
    ws.title = "Monthly Status"
    ws.append(["Employee Code:", 101, None, "Employee Name:", "Alice Smith"])
    ws.append(["Days", datetime(2024, 1, 1), datetime(2024, 1, 2)])
    ws.append(["In Time", time(9, 30), "09:05", None, None])
    other = wb.create_sheet("Other")
    other.append(["Days", "01-Feb"])
    wb.save(path)
    return path


def test_read_grid_tags_cells(tmp_path) -> None:
    path = _write_workbook(tmp_path / "attendance.xlsx")
    grid, backend = GridReader().read_grid(str(path))

    assert backend == "pandas_openpyxl"
    assert grid[0][0] == Cell.text("Employee Code:")
    assert grid[0][1] == Cell.number(101)
    assert grid[0][2].kind is CellKind.EMPTY
    assert grid[1][1] == Cell.date_serial(45292)
    assert grid[2][1].kind is CellKind.NUMBER
    assert grid[2][1].value == pytest.approx(9.5 / 24)
    assert grid[2][2] == Cell.text("09:05")
    # trailing empties are dropped
    assert len(grid[2]) == 3


def test_read_grid_by_sheet_name(tmp_path) -> None:
    path = _write_workbook(tmp_path / "attendance.xlsx")
    grid, _ = GridReader().read_grid(str(path), "Other")
    assert grid == [[Cell.text("Days"), Cell.text("01-Feb")]]


def test_read_grid_falls_back_to_openpyxl(tmp_path, monkeypatch) -> None:
    path = _write_workbook(tmp_path / "attendance.xlsx")

    def _broken_read_excel(*args, **kwargs):
        raise ValueError("simulated pandas failure")

    monkeypatch.setattr(pd, "read_excel", _broken_read_excel)

    grid, backend = GridReader().read_grid(str(path))
    assert backend == "openpyxl_values"
    assert grid[0][4] == Cell.text("Alice Smith")
    assert grid[1][2] == Cell.date_serial(45293)


def test_missing_file_is_catastrophic(tmp_path) -> None:
    with pytest.raises(CatastrophicReadFailure) as exc_info:
        GridReader().read_grid(str(tmp_path / "nope.xlsx"))
    assert exc_info.value.file_path.endswith("nope.xlsx")


@pytest.mark.parametrize("name", ["broken.xlsx", "broken.xls"])
def test_corrupt_workbook_is_catastrophic(tmp_path, name) -> None:
    path = tmp_path / name
    path.write_bytes(b"this is not a spreadsheet")
    with pytest.raises(CatastrophicReadFailure):
        GridReader().read_grid(str(path))


def test_build_grid_keeps_ragged_rows() -> None:
    grid = GridReader.build_grid([["a", None, ""], [], [None, 1.0]])
    assert grid == [[Cell.text("a")], [], [Cell(CellKind.EMPTY), Cell.number(1)]]
