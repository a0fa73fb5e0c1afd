"""
Spreadsheet cell resolution for matrix-importer.

Turns one openpyxl cell into the string that goes into the matrix:

- missing cell / no value -> ``""``
- formula -> evaluated result (number, then string)
- date-formatted number -> rendered with the cell's number format
- plain number -> plain string, no number formatting (``42.0`` -> ``"42"``)
- text -> as is
- anything else (booleans, error values) -> ``""``

openpyxl does not render number formats and has no calculation engine,
so this module carries both pieces: ``format_date`` translates the Excel
date/time format codes it knows, and ``CachedValueEvaluator`` answers
formulas with the value Excel stored when the workbook was last saved.

Legacy .xls cells (xlrd) go through ``resolve_xls_cell``, which applies
the same table to xlrd cell types. xlrd already reports a formula cell by
its saved result type.
"""

from __future__ import annotations

import calendar
import logging
import re
from collections.abc import Callable
from datetime import date, datetime, time, timedelta
from typing import Any, BinaryIO

from openpyxl import load_workbook
from openpyxl.cell.cell import Cell
from openpyxl.utils.datetime import from_excel
from xlrd import XL_CELL_DATE, XL_CELL_NUMBER, XL_CELL_TEXT
from xlrd.book import Book
from xlrd.sheet import Cell as XlsCell
from xlrd.xldate import xldate_as_datetime

from matrix_importer.exceptions import FormulaEvaluationError, SheetIndexError

logger = logging.getLogger(__name__)

FormulaEvaluator = Callable[[Cell], Any]

_TEXT_TYPES = ("s", "str", "inlineStr")

# Excel's day zero for time-only values (1900 date system)
_EXCEL_EPOCH = datetime(1899, 12, 30)

_FORMAT_TOKEN = re.compile(
    r'"[^"]*"|\\.|\[[^\]]*\]|AM/PM|A/P|\.0+'
    r"|y{3,4}|y{1,2}|m{5}|m{4}|m{3}|m{1,2}|d{4}|d{3}|d{1,2}|h{1,2}|s{1,2}|.",
    re.IGNORECASE,
)


# ---------------------------------------------------------------------------
# Value formatting
# ---------------------------------------------------------------------------

def format_number(value: Any) -> str:
    """Plain string form of a numeric cell value, without number formatting."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, float):
        return repr(value)
    return str(value)


def _as_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    if isinstance(value, time):
        return datetime.combine(_EXCEL_EPOCH.date(), value)
    if isinstance(value, timedelta):
        return _EXCEL_EPOCH + value
    converted = from_excel(value)
    if isinstance(converted, datetime):
        return converted
    return _as_datetime(converted)


def _minute_positions(tokens: list[str]) -> set[int]:
    """Indexes of ``m``/``mm`` tokens that mean minutes rather than months.

    Excel reads ``m`` as minutes right after an hour code or right before
    a seconds code.
    """
    codes = [
        (i, t.lower()) for i, t in enumerate(tokens)
        if t[0].lower() in "hms" and t[0] not in "\"\\["
    ]
    minutes: set[int] = set()
    for pos, (i, code) in enumerate(codes):
        if code not in ("m", "mm"):
            continue
        before = codes[pos - 1][1] if pos > 0 else ""
        after = codes[pos + 1][1] if pos + 1 < len(codes) else ""
        if before.startswith("h") or after.startswith("s"):
            minutes.add(i)
    return minutes


def format_date(value: Any, number_format: str | None) -> str:
    """Render a date/time cell value the way its number format displays it.

    Only the first format section is used; locale, colour and elapsed-time
    brackets are dropped. With no usable format the value is rendered as
    ``YYYY-MM-DD`` (plus ``HH:MM:SS`` when it has a time part).
    """
    moment = _as_datetime(value)
    section = (number_format or "").split(";")[0]
    if not section or section.lower() == "general":
        if moment.time() == time():
            return moment.strftime("%Y-%m-%d")
        return moment.strftime("%Y-%m-%d %H:%M:%S")

    tokens = _FORMAT_TOKEN.findall(section)
    minutes = _minute_positions(tokens)
    twelve_hour = any(t.upper() in ("AM/PM", "A/P") for t in tokens)

    out: list[str] = []
    for i, token in enumerate(tokens):
        code = token.lower()
        if token.startswith('"'):
            out.append(token[1:-1])
        elif token.startswith("\\"):
            out.append(token[1:])
        elif token.startswith("["):
            continue
        elif code == "am/pm":
            out.append("AM" if moment.hour < 12 else "PM")
        elif code == "a/p":
            out.append("A" if moment.hour < 12 else "P")
        elif code.startswith(".0"):
            digits = len(token) - 1
            out.append("." + f"{moment.microsecond:06d}"[:digits])
        elif code.startswith("y"):
            out.append(f"{moment.year:04d}" if len(code) > 2 else f"{moment.year % 100:02d}")
        elif code.startswith("m") and i in minutes:
            out.append(f"{moment.minute:02d}" if len(code) == 2 else str(moment.minute))
        elif code.startswith("m"):
            out.append(_render_month(moment, len(code)))
        elif code.startswith("d"):
            out.append(_render_day(moment, len(code)))
        elif code.startswith("h"):
            hour = (moment.hour % 12 or 12) if twelve_hour else moment.hour
            out.append(f"{hour:02d}" if len(code) == 2 else str(hour))
        elif code.startswith("s"):
            out.append(f"{moment.second:02d}" if len(code) == 2 else str(moment.second))
        else:
            out.append(token)
    return "".join(out)


def _render_month(moment: datetime, width: int) -> str:
    if width == 1:
        return str(moment.month)
    if width == 2:
        return f"{moment.month:02d}"
    if width == 3:
        return calendar.month_abbr[moment.month]
    if width == 4:
        return calendar.month_name[moment.month]
    return calendar.month_name[moment.month][0]


def _render_day(moment: datetime, width: int) -> str:
    if width == 1:
        return str(moment.day)
    if width == 2:
        return f"{moment.day:02d}"
    if width == 3:
        return calendar.day_abbr[moment.weekday()]
    return calendar.day_name[moment.weekday()]


def _format_formula_result(value: Any, number_format: str | None) -> str:
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        return format_number(value)
    if isinstance(value, (datetime, date, time, timedelta)):
        return format_date(value, number_format)
    return str(value)


# ---------------------------------------------------------------------------
# Cell resolution
# ---------------------------------------------------------------------------

def resolve_cell(cell: Cell | None, evaluate: FormulaEvaluator | None = None) -> str:
    """Resolve one cell to its matrix string.

    Args:
        cell: An openpyxl cell, or ``None`` when the cell does not exist.
        evaluate: Callable returning the computed value of a formula cell.

    Raises:
        FormulaEvaluationError: If the cell holds a formula and no result
            can be obtained for it.
    """
    if cell is None or cell.value is None:
        return ""
    if cell.data_type == "f":
        if evaluate is None:
            raise FormulaEvaluationError(
                f"No formula evaluator available for cell {cell.coordinate}"
            )
        result = evaluate(cell)
        if result is None:
            raise FormulaEvaluationError(
                f"Formula {cell.value!r} in cell {cell.coordinate} has no result"
            )
        return _format_formula_result(result, cell.number_format)
    if cell.is_date:
        return format_date(cell.value, cell.number_format)
    if cell.data_type == "n":
        return format_number(cell.value)
    if cell.data_type in _TEXT_TYPES:
        return str(cell.value)
    return ""


class CachedValueEvaluator:
    """Formula evaluator backed by the values cached in the workbook file.

    The cached values live in the same file, so the workbook is loaded a
    second time with ``data_only=True``. That load only happens when the
    first formula cell is met.
    """

    def __init__(self, stream: BinaryIO, position: int, sheet_index: int) -> None:
        self._stream = stream
        self._position = position
        self._sheet_index = sheet_index
        self._sheet = None

    def _values_sheet(self):
        if self._sheet is None:
            resume = self._stream.tell()
            self._stream.seek(self._position)
            workbook = load_workbook(self._stream, data_only=True)
            self._stream.seek(resume)
            if not 0 <= self._sheet_index < len(workbook.worksheets):
                raise SheetIndexError(
                    f"Sheet index {self._sheet_index} out of range for cached values"
                )
            self._sheet = workbook.worksheets[self._sheet_index]
            logger.debug("Loaded cached formula values for sheet %d", self._sheet_index)
        return self._sheet

    def __call__(self, cell: Cell) -> Any:
        cached = self._values_sheet().cell(row=cell.row, column=cell.column)
        value = cached.value
        # Excel stores an empty string result as a typed cell with an empty <v>
        if value is None and cached.data_type in _TEXT_TYPES:
            return ""
        if value is None:
            raise FormulaEvaluationError(
                f"Formula {cell.value!r} in cell {cell.coordinate} has no cached "
                "value; save the workbook in a spreadsheet application first"
            )
        return value


# ---------------------------------------------------------------------------
# Legacy .xls cells
# ---------------------------------------------------------------------------

def _xls_number_format(book: Book, cell: XlsCell) -> str | None:
    if cell.xf_index is None or not book.xf_list:
        return None
    fmt = book.format_map.get(book.xf_list[cell.xf_index].format_key)
    return fmt.format_str if fmt is not None else None


def resolve_xls_cell(cell: XlsCell | None, book: Book) -> str:
    """Resolve one xlrd cell to its matrix string.

    Dates are rendered with the cell's number format, which xlrd only
    exposes when the workbook was opened with ``formatting_info=True``.
    """
    if cell is None:
        return ""
    if cell.ctype == XL_CELL_DATE:
        moment = xldate_as_datetime(cell.value, book.datemode)
        return format_date(moment, _xls_number_format(book, cell))
    if cell.ctype == XL_CELL_NUMBER:
        return format_number(cell.value)
    if cell.ctype == XL_CELL_TEXT:
        return str(cell.value)
    return ""
