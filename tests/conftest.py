"""
Pytest configuration and shared fixtures.
"""
import os
import sys
from datetime import date

import pytest

# Add project root to path for imports
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from attendance_ingest.extractors.biometric.reader import GridReader

FIELD_LABELS = ("In Time", "Out Time", "Late By", "Early By", "OT", "Duration", "T Duration", "Status")


def employee_block_rows(
    code,
    name,
    days,
    ins=None,
    outs=None,
    summary="Total Present - 20 Total Absent - 5 Total Leave Taken - 2",
    with_days_row=True,
    with_shift_row=True,
    shift="GS",
):
    """
    Raw rows of one employee block, laid out as the device exports it.

    Marker row, "Days" row, summary row, then a ten-row field table
    starting at "Shift". Absent cells are ``None``.
    """
    n = len(days)
    ins = list(ins) if ins is not None else ["09:00"] * n
    outs = list(outs) if outs is not None else ["18:00"] * n
    rows = [["Employee Code:", code, None, "Employee Name:", name]]
    if with_days_row:
        rows.append(["Days"] + list(days))
    rows.append([summary] if summary else [])
    if with_shift_row:
        rows.append(["Shift"] + [shift] * n)
    else:
        rows.append(["Remarks"])
    rows.append(["In Time"] + ins)
    rows.append(["Out Time"] + outs)
    rows.append(["Late By"] + [None] * n)
    rows.append(["Early By"] + [None] * n)
    rows.append(["OT"] + [None] * n)
    rows.append(["Duration"] + ["09:00"] * n)
    rows.append(["T Duration"] + ["09:00"] * n)
    rows.append(["Status"] + ["P"] * n)
    rows.append([])
    return rows


def make_grid(*blocks, header=True):
    rows = []
    if header:
        rows.append(["Monthly Status Report (Detailed Work Duration)"])
        rows.append([])
    for block in blocks:
        rows.extend(block)
    return GridReader.build_grid(rows)


@pytest.fixture
def block_rows():
    return employee_block_rows


@pytest.fixture
def grid_of():
    return make_grid


@pytest.fixture
def january_2024():
    """Processing date for sheets covering January 2024 (1st is a Monday)."""
    return date(2024, 1, 15)
