"""
Legacy Excel parser for binary workbooks (.xls) via xlrd.

xlrd 2.x reads only the BIFF format, so an .xlsx input fails here and is
left to SpreadsheetParser. The workbook is opened from the stream contents
with ``formatting_info=True`` so date cells keep their number format.

Formula cells carry the result Excel saved with the file and are resolved
like plain cells; no evaluator is involved. Sheet selection, the row
window, the column count and the blank-row filter behave as in
spreadsheet.py.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import BinaryIO

import xlrd
from xlrd.sheet import Cell

from matrix_importer.cells import resolve_xls_cell
from matrix_importer.config import ImportHints
from matrix_importer.exceptions import SheetIndexError
from matrix_importer.parsers.base import BaseParser, ParseResult
from matrix_importer.window import RowWindow, column_count, is_blank_row

logger = logging.getLogger(__name__)

_EMPTY_TYPES = (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK)


def _row_extent(cells: Sequence[Cell]) -> int:
    for i in range(len(cells) - 1, -1, -1):
        if cells[i].ctype not in _EMPTY_TYPES:
            return i + 1
    return 0


class LegacySpreadsheetParser(BaseParser):
    """Parser for Excel 97-2003 workbooks."""

    description = "Matrix importer for reading legacy Excel files"
    extensions = ("xls",)

    def parse(self, stream: BinaryIO, hints: ImportHints) -> ParseResult:
        book = xlrd.open_workbook(file_contents=stream.read(), formatting_info=True)
        index = hints.sheet_index
        if not 0 <= index < book.nsheets:
            raise SheetIndexError(
                f"Sheet index {index} out of range: workbook has {book.nsheets} sheet(s)"
            )
        sheet = book.sheet_by_index(index)

        window = RowWindow.from_hints(hints)
        last = sheet.nrows - 1 if window.end is None else min(window.end, sheet.nrows - 1)
        rows = [sheet.row(r) for r in range(window.start, last + 1)]
        width = column_count(
            [_row_extent(cells) for cells in rows],
            widest=hints.make_rows_equal_length,
        )

        matrix: list[list[str]] = []
        for cells in rows:
            values = [resolve_xls_cell(cell, book) for cell in cells[:width]]
            values.extend([""] * (width - len(values)))
            if not is_blank_row(values):
                matrix.append(values)

        logger.info(
            "Parsed sheet '%s': %d rows x %d columns", sheet.name, len(matrix), width
        )
        return ParseResult(
            matrix=matrix,
            details={
                "sheet_index": index,
                "sheet_name": sheet.name,
                "sheet_names": book.sheet_names(),
            },
        )
