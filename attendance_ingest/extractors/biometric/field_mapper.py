"""
FieldRowMapper: map canonical field keys to the rows that hold their values.

Below the "Days" row each employee block carries a small field table whose
first column names the measure on that row ("Shift", "In Time",
"Late By"...). Label spellings vary between device firmware versions, so
matching goes through a declarative ``FieldAliasTable`` and one generic
resolver instead of per-field substring checks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from attendance_ingest.extractors.biometric.block_locator import EmployeeBlockLocator
from attendance_ingest.extractors.biometric.config import (
    SHIFT_ROW_LABEL,
    ExtractorConfig,
    DEFAULT_CONFIG,
)
from attendance_ingest.extractors.biometric.data_cleaner import DataCleaner
from attendance_ingest.ir import Grid, Row
from attendance_ingest.logger import get_logger

logger = get_logger(__name__)


# Resolution order of the canonical keys.
FIELD_KEYS: Tuple[str, ...] = (
    "shift",
    "timeInActual",
    "timeOutActual",
    "lateBy",
    "earlyBy",
    "ot",
    "duration",
    "totalDuration",
    "status",
)

DEFAULT_FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "shift": ("shift",),
    "timeInActual": ("in time", "time in", "intime", "in_time", "timein"),
    "timeOutActual": ("out time", "time out", "outtime", "out_time", "timeout"),
    "lateBy": ("late by", "late_by", "lateby", "late"),
    "earlyBy": ("early by", "early_by", "earlyby", "early"),
    "ot": ("total ot", "ot", "overtime", "over time"),
    "duration": ("duration", "dur"),
    "totalDuration": ("t duration", "total duration", "total_duration", "tduration"),
    "status": ("status",),
}


class FieldAliasTable:
    """
    Canonical field key → ordered, normalised label spellings.

    Aliases are stored lower-cased with whitespace collapsed; earlier
    aliases win when several are present in the same field table.
    """

    def __init__(self, aliases: Mapping[str, Iterable[str]] = DEFAULT_FIELD_ALIASES):
        unknown = [k for k in aliases if k not in FIELD_KEYS]
        if unknown:
            raise ValueError(f"Unknown field keys in alias table: {unknown}. Known: {list(FIELD_KEYS)}")
        self._aliases: Dict[str, Tuple[str, ...]] = {}
        for key in FIELD_KEYS:
            normalized: List[str] = []
            for alias in aliases.get(key, ()):
                norm = DataCleaner.normalize_label(alias)
                if norm and norm not in normalized:
                    normalized.append(norm)
            self._aliases[key] = tuple(normalized)

    @property
    def keys(self) -> Tuple[str, ...]:
        return FIELD_KEYS

    def aliases(self, key: str) -> Tuple[str, ...]:
        return self._aliases.get(key, ())

    def resolve(self, key: str, label_rows: Mapping[str, int]) -> Optional[int]:
        """Row offset of the first alias of *key* present in *label_rows*."""
        for alias in self._aliases.get(key, ()):
            if alias in label_rows:
                return label_rows[alias]
        return None

    def with_overrides(self, overrides: Mapping[str, Iterable[str]]) -> "FieldAliasTable":
        """New table where each key in *overrides* gets the given alias list."""
        merged: Dict[str, Iterable[str]] = dict(self._aliases)
        for key, values in overrides.items():
            merged[key] = tuple(values)
        return FieldAliasTable(merged)

    def to_dict(self) -> Dict[str, List[str]]:
        return {k: list(v) for k, v in self._aliases.items()}


DEFAULT_ALIAS_TABLE = FieldAliasTable()


@dataclass
class FieldRowMapping:
    """Resolved field table of one block."""
    shift_row: int
    window: List[Row]
    label_rows: Dict[str, int] = field(default_factory=dict)
    rows_by_key: Dict[str, int] = field(default_factory=dict)

    @property
    def end_row(self) -> int:
        """Absolute index of the last row of the field window."""
        return self.shift_row + max(len(self.window), 1) - 1

    def row_for(self, key: str) -> Optional[Row]:
        offset = self.rows_by_key.get(key)
        if offset is None:
            return None
        return self.window[offset]


class FieldRowMapper:
    """Find the "Shift" row after the dates row and map its field window."""

    def __init__(
        self,
        cfg: ExtractorConfig = DEFAULT_CONFIG,
        alias_table: Optional[FieldAliasTable] = None,
        locator: Optional[EmployeeBlockLocator] = None,
    ):
        self._cfg = cfg
        self._aliases = alias_table or DEFAULT_ALIAS_TABLE
        self._locator = locator or EmployeeBlockLocator(cfg)

    @staticmethod
    def first_label(row: Row) -> str:
        if not row:
            return ""
        return DataCleaner.normalize_label(DataCleaner.cell_to_str(row[0]))

    @classmethod
    def is_shift_row(cls, row: Row) -> bool:
        return cls.first_label(row) == SHIFT_ROW_LABEL

    def find_shift_row(self, grid: Grid, dates_row: int) -> Tuple[Optional[int], int]:
        """
        Search up to ``shift_row_scan_rows`` rows after *dates_row*.

        Stops at the next employee marker. Returns ``(shift_row or None,
        row_where_search_stopped)``.
        """
        start = dates_row + 1
        end = min(len(grid), start + self._cfg.shift_row_scan_rows)
        for row_idx in range(start, end):
            row = grid[row_idx]
            if self.is_shift_row(row):
                return row_idx, row_idx
            if self._locator.row_has_marker(row):
                return None, row_idx
        return None, end

    def map_fields(self, grid: Grid, shift_row: int) -> FieldRowMapping:
        window = grid[shift_row: shift_row + self._cfg.field_window_rows]
        label_rows: Dict[str, int] = {}
        for offset, row in enumerate(window):
            label = self.first_label(row)
            if label:
                # later rows with the same label win
                label_rows[label] = offset

        rows_by_key: Dict[str, int] = {}
        for key in self._aliases.keys:
            offset = self._aliases.resolve(key, label_rows)
            if offset is not None:
                rows_by_key[key] = offset

        logger.debug(
            "Field table at row %d: labels=%s mapped=%s",
            shift_row, list(label_rows), list(rows_by_key),
        )
        return FieldRowMapping(
            shift_row=shift_row,
            window=list(window),
            label_rows=label_rows,
            rows_by_key=rows_by_key,
        )
