"""
Monthly Roll-up
===============

Re-aggregates day-level ``AttendanceRecord``s into per-employee monthly
totals. Unlike ``MonthlySummaryRecord`` (the device's own printed totals),
these figures are computed from the derived day statuses, so the two can be
compared to spot disagreements between the device and the status rules.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from pydantic import BaseModel, ConfigDict, Field

from attendance_ingest.ir import AttendanceRecord, MonthlySummaryRecord


class MonthlyRollup(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    emp_id: str = Field(alias="empId")
    emp_name: str = Field(alias="empName")
    year: int
    month: int
    total_present: float = Field(default=0, alias="totalPresent")
    total_absent: int = Field(default=0, alias="totalAbsent")
    total_leave: int = Field(default=0, alias="totalLeave")
    total_wo: int = Field(default=0, alias="totalWO")
    total_ho: int = Field(default=0, alias="totalHO")


def rollup_by_month(records: Iterable[AttendanceRecord]) -> List[MonthlyRollup]:
    """
    Sum the per-day counters of *records* per (empId, year, month).

    Output order follows the first appearance of each group.
    """
    grouped: Dict[Tuple[str, int, int], MonthlyRollup] = {}
    for record in records:
        key = (record.emp_id, record.record_date.year, record.record_date.month)
        row = grouped.get(key)
        if row is None:
            row = MonthlyRollup(
                emp_id=record.emp_id,
                emp_name=record.emp_name,
                year=key[1],
                month=key[2],
            )
            grouped[key] = row
        row.total_present += record.total_present
        row.total_absent += record.total_absent
        row.total_leave += record.total_leave
        row.total_wo += record.total_wo
        row.total_ho += record.total_ho
    return list(grouped.values())


def compare_with_summaries(
    rollups: Iterable[MonthlyRollup],
    summaries: Iterable[MonthlySummaryRecord],
) -> List[dict]:
    """
    List the months where derived present/absent counts differ from the
    device's printed totals.
    """
    by_key = {s.natural_key: s for s in summaries}
    mismatches: List[dict] = []
    for row in rollups:
        summary = by_key.get((row.emp_id, row.year, row.month))
        if summary is None:
            continue
        if row.total_present != summary.total_present or row.total_absent != summary.total_absent:
            mismatches.append({
                "empId": row.emp_id,
                "year": row.year,
                "month": row.month,
                "derivedPresent": row.total_present,
                "sheetPresent": summary.total_present,
                "derivedAbsent": row.total_absent,
                "sheetAbsent": summary.total_absent,
            })
    return mismatches
