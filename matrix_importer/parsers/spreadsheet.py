"""
Spreadsheet parser for Office Open XML workbooks (.xlsx / .xlsm).

Reads one worksheet (``sheetIndex`` hint, default 0) through openpyxl and
resolves every cell to a string with cells.resolve_cell().

Row handling:
  - Only rows inside the ``startRow``/``endRow`` window are visited.
  - The column count is the extent of the first non-blank row in the
    window, or of the widest row with ``makeRowsEqualLength``. Cells
    beyond it are ignored, missing cells become ``""``.
  - Rows whose cells all resolve to ``""`` are dropped, including blank
    rows in the middle of the window.

A sheet index outside the workbook raises SheetIndexError; the registry
treats that like any other parse failure.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import BinaryIO

from openpyxl import load_workbook
from openpyxl.cell.cell import Cell
from openpyxl.worksheet.worksheet import Worksheet

from matrix_importer.cells import CachedValueEvaluator, FormulaEvaluator, resolve_cell
from matrix_importer.config import ImportHints
from matrix_importer.exceptions import SheetIndexError
from matrix_importer.parsers.base import BaseParser, ParseResult
from matrix_importer.window import RowWindow, column_count, is_blank_row

logger = logging.getLogger(__name__)

# (stream, start position, sheet index) -> evaluator
EvaluatorFactory = Callable[[BinaryIO, int, int], FormulaEvaluator]


def _row_extent(cells: Sequence[Cell]) -> int:
    """Number of cells up to and including the last one holding a value."""
    for i in range(len(cells) - 1, -1, -1):
        if cells[i].value is not None:
            return i + 1
    return 0


def _window_rows(sheet: Worksheet, window: RowWindow) -> list[tuple[Cell, ...]]:
    # openpyxl rows are 1-based
    min_row = window.start + 1
    max_row = sheet.max_row if window.end is None else min(window.end + 1, sheet.max_row)
    if min_row > max_row:
        return []
    return list(sheet.iter_rows(min_row=min_row, max_row=max_row))


class SpreadsheetParser(BaseParser):
    """Parser for Excel workbooks."""

    description = "Matrix importer for reading Excel files"
    extensions = ("xlsx", "xlsm")

    def __init__(self, evaluator_factory: EvaluatorFactory | None = None) -> None:
        self._evaluator_factory = evaluator_factory or CachedValueEvaluator

    def parse(self, stream: BinaryIO, hints: ImportHints) -> ParseResult:
        position = stream.tell()
        workbook = load_workbook(stream, data_only=False)
        sheets = workbook.worksheets
        index = hints.sheet_index
        if not 0 <= index < len(sheets):
            raise SheetIndexError(
                f"Sheet index {index} out of range: workbook has {len(sheets)} sheet(s)"
            )
        sheet = sheets[index]
        evaluate = self._evaluator_factory(stream, position, index)

        rows = _window_rows(sheet, RowWindow.from_hints(hints))
        width = column_count(
            [_row_extent(cells) for cells in rows],
            widest=hints.make_rows_equal_length,
        )

        matrix: list[list[str]] = []
        for cells in rows:
            values = [resolve_cell(cell, evaluate) for cell in cells[:width]]
            values.extend([""] * (width - len(values)))
            if not is_blank_row(values):
                matrix.append(values)

        logger.info(
            "Parsed sheet '%s': %d rows x %d columns", sheet.title, len(matrix), width
        )
        return ParseResult(
            matrix=matrix,
            details={
                "sheet_index": index,
                "sheet_name": sheet.title,
                "sheet_names": [ws.title for ws in sheets],
            },
        )
