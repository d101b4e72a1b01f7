"""
GridReader: low-level file I/O for attendance workbooks.

Materializes one sheet into a ``Grid`` of tagged cells:
- pandas with the openpyxl engine (``.xlsx``/``.xlsm``) or xlrd (``.xls``)
- direct openpyxl value read when pandas cannot parse an ``.xlsx`` sheet
- ``CatastrophicReadFailure`` when neither path yields a grid
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, List, Tuple, Union

import pandas as pd
from openpyxl import load_workbook

from attendance_ingest.errors import CatastrophicReadFailure
from attendance_ingest.extractors.biometric.data_cleaner import DataCleaner
from attendance_ingest.ir import Grid, Row
from attendance_ingest.logger import get_logger

logger = get_logger(__name__)

SheetRef = Union[str, int]

class GridReader:
    """Load a workbook sheet into a fully materialized ``Grid``."""

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def read_grid(self, file_path: str, sheet_name: SheetRef = 0) -> Tuple[Grid, str]:
        """
        Read *sheet_name* (name or index) of *file_path*.

        Returns ``(grid, backend_label)``.
        """
        path = Path(file_path)
        if not path.is_file():
            raise CatastrophicReadFailure(file_path, FileNotFoundError(str(path)))
        suffix = path.suffix.lower()

        try:
            rows, backend = self._read_rows_pandas(file_path, sheet_name, suffix)
        except Exception as pandas_error:
            if suffix == ".xls":
                raise CatastrophicReadFailure(file_path, pandas_error) from pandas_error
            logger.warning(
                "pandas could not read %s (%s); falling back to openpyxl values",
                file_path, pandas_error,
            )
            try:
                rows = self._read_rows_openpyxl(file_path, sheet_name)
                backend = "openpyxl_values"
            except Exception as openpyxl_error:
                raise CatastrophicReadFailure(file_path, openpyxl_error) from openpyxl_error

        grid = self.build_grid(rows)
        logger.info(
            "Read %d rows from %s (sheet=%r, backend=%s)",
            len(grid), path.name, sheet_name, backend,
        )
        return grid, backend

    @staticmethod
    def build_grid(rows: Iterable[Iterable[Any]]) -> Grid:
        """
        Tag every value and drop trailing empty cells from each row.

        Rows stay ragged, matching how a sheet-to-array export looks.
        """
        grid: Grid = []
        for raw_row in rows:
            row: Row = [DataCleaner.to_cell(v) for v in (list(raw_row) if raw_row is not None else [])]
            while row and row[-1].is_empty:
                row.pop()
            grid.append(row)
        return grid

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _read_rows_pandas(
        file_path: str,
        sheet_name: SheetRef,
        suffix: str,
    ) -> Tuple[List[List[Any]], str]:
        engine = "xlrd" if suffix == ".xls" else "openpyxl"
        df = pd.read_excel(
            file_path,
            sheet_name=sheet_name,
            header=None,
            engine=engine,
            keep_default_na=False,
        )
        rows = [list(r) for r in df.itertuples(index=False, name=None)]
        return rows, f"pandas_{engine}"

    @staticmethod
    def _read_rows_openpyxl(file_path: str, sheet_name: SheetRef) -> List[List[Any]]:
        wb = load_workbook(file_path, data_only=True, read_only=False)
        try:
            if isinstance(sheet_name, int):
                names = wb.sheetnames
                ws = wb[names[sheet_name]] if 0 <= sheet_name < len(names) else wb[names[0]]
            else:
                ws = wb[sheet_name]
            return [list(r) for r in ws.iter_rows(values_only=True)]
        finally:
            wb.close()
