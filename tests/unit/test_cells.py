"""
Unit tests for spreadsheet cell resolution (matrix_importer.cells).

Cells are created on an in-memory openpyxl worksheet, so their data
types are the ones openpyxl assigns when a value is written.
"""

import io
from datetime import date, datetime, time

import pytest
from openpyxl import Workbook, load_workbook

from matrix_importer.cells import (
    CachedValueEvaluator,
    format_date,
    format_number,
    resolve_cell,
)
from matrix_importer.exceptions import FormulaEvaluationError, SheetIndexError
from tests.conftest import patch_cell_xml, workbook_bytes


@pytest.fixture()
def sheet():
    return Workbook().active


def _cell(sheet, value, number_format=None):
    cell = sheet["A1"]
    cell.value = value
    if number_format is not None:
        cell.number_format = number_format
    return cell


# ---------------------------------------------------------------------------
# format_number / format_date
# ---------------------------------------------------------------------------

class TestFormatNumber:
    """Tests for format_number()."""

    def test_int(self):
        assert format_number(42) == "42"

    def test_integral_float(self):
        assert format_number(42.0) == "42"

    def test_fraction(self):
        assert format_number(3.25) == "3.25"

    def test_negative(self):
        assert format_number(-0.5) == "-0.5"


class TestFormatDate:
    """Tests for format_date() with Excel number format codes."""

    MOMENT = datetime(2024, 3, 5, 14, 7, 9)

    def test_iso(self):
        assert format_date(self.MOMENT, "yyyy-mm-dd") == "2024-03-05"

    def test_day_first(self):
        assert format_date(self.MOMENT, "dd/mm/yyyy") == "05/03/2024"

    def test_short_year(self):
        assert format_date(self.MOMENT, "m/d/yy") == "3/5/24"

    def test_month_names(self):
        assert format_date(self.MOMENT, "d mmm yyyy") == "5 Mar 2024"
        assert format_date(self.MOMENT, "mmmm") == "March"
        assert format_date(self.MOMENT, "mmmmm") == "M"

    def test_day_names(self):
        assert format_date(self.MOMENT, "ddd") == "Tue"
        assert format_date(self.MOMENT, "dddd, d mmmm") == "Tuesday, 5 March"

    def test_minutes_after_hours(self):
        assert format_date(self.MOMENT, "hh:mm:ss") == "14:07:09"

    def test_minutes_before_seconds(self):
        assert format_date(self.MOMENT, "mm:ss") == "07:09"

    def test_month_and_minutes_in_one_format(self):
        assert format_date(self.MOMENT, "yyyy-mm-dd h:mm") == "2024-03-05 14:07"

    def test_twelve_hour_clock(self):
        assert format_date(self.MOMENT, "h:mm AM/PM") == "2:07 PM"
        assert format_date(datetime(2024, 3, 5, 0, 30), "h:mm am/pm") == "12:30 AM"
        assert format_date(self.MOMENT, "h A/P") == "2 P"

    def test_locale_prefix_dropped(self):
        assert format_date(self.MOMENT, "[$-409]mmmm d, yyyy") == "March 5, 2024"

    def test_quoted_and_escaped_literals(self):
        assert format_date(self.MOMENT, 'yyyy "week" \\d') == "2024 week d"

    def test_only_first_section(self):
        assert format_date(self.MOMENT, "yyyy;@") == "2024"

    def test_fractional_seconds(self):
        moment = datetime(2024, 3, 5, 14, 7, 9, 250000)
        assert format_date(moment, "ss.00") == "09.25"

    def test_general_falls_back_to_iso(self):
        assert format_date(datetime(2024, 3, 5), "General") == "2024-03-05"
        assert format_date(self.MOMENT, None) == "2024-03-05 14:07:09"

    def test_date_and_time_objects(self):
        assert format_date(date(2024, 3, 5), "d/m/yyyy") == "5/3/2024"
        assert format_date(time(8, 15), "hh:mm") == "08:15"

    def test_serial_number(self):
        assert format_date(45356, "yyyy-mm-dd") == "2024-03-05"


# ---------------------------------------------------------------------------
# resolve_cell
# ---------------------------------------------------------------------------

class TestResolveCell:
    """Tests for resolve_cell() on each cell kind."""

    def test_missing_cell(self):
        assert resolve_cell(None) == ""

    def test_empty_cell(self, sheet):
        assert resolve_cell(sheet["B2"]) == ""

    def test_text(self, sheet):
        assert resolve_cell(_cell(sheet, "Sample 1")) == "Sample 1"

    def test_number_without_formatting(self, sheet):
        assert resolve_cell(_cell(sheet, 42)) == "42"
        assert resolve_cell(_cell(sheet, 42.0)) == "42"
        assert resolve_cell(_cell(sheet, 1234.5, "#,##0.00")) == "1234.5"

    def test_date_uses_number_format(self, sheet):
        cell = _cell(sheet, datetime(2024, 3, 5), "dd/mm/yyyy")
        assert resolve_cell(cell) == "05/03/2024"

    def test_boolean_is_empty(self, sheet):
        assert resolve_cell(_cell(sheet, True)) == ""

    def test_error_value_is_empty(self, sheet):
        assert resolve_cell(_cell(sheet, "#N/A")) == ""


class TestResolveFormula:
    """Tests for formula cells with a pluggable evaluator."""

    def test_numeric_result(self, sheet):
        cell = _cell(sheet, "=6*7")
        assert resolve_cell(cell, lambda c: 42.0) == "42"

    def test_string_result(self, sheet):
        cell = _cell(sheet, '=CONCAT("a","b")')
        assert resolve_cell(cell, lambda c: "ab") == "ab"

    def test_boolean_result(self, sheet):
        cell = _cell(sheet, "=1=1")
        assert resolve_cell(cell, lambda c: True) == "TRUE"

    def test_date_result(self, sheet):
        cell = _cell(sheet, "=TODAY()", "yyyy-mm-dd")
        assert resolve_cell(cell, lambda c: datetime(2024, 3, 5)) == "2024-03-05"

    def test_evaluator_receives_cell(self, sheet):
        seen = []
        cell = _cell(sheet, "=1+1")
        resolve_cell(cell, lambda c: seen.append(c.coordinate) or 2)
        assert seen == ["A1"]

    def test_no_evaluator(self, sheet):
        with pytest.raises(FormulaEvaluationError, match="No formula evaluator"):
            resolve_cell(_cell(sheet, "=1+1"))

    def test_no_result(self, sheet):
        with pytest.raises(FormulaEvaluationError, match="has no result"):
            resolve_cell(_cell(sheet, "=1+1"), lambda c: None)


# ---------------------------------------------------------------------------
# CachedValueEvaluator
# ---------------------------------------------------------------------------

class TestCachedValueEvaluator:
    """Tests for the cached-value formula evaluator."""

    def _formula_workbook(self):
        data = workbook_bytes({"Sheet": [["=1+1"]]})
        formula_cell = load_workbook(io.BytesIO(data)).worksheets[0]["A1"]
        return data, formula_cell

    def test_formula_without_cached_value(self):
        """openpyxl does not calculate, so its own files carry no cache."""
        data, cell = self._formula_workbook()
        evaluate = CachedValueEvaluator(io.BytesIO(data), 0, 0)
        with pytest.raises(FormulaEvaluationError, match="no cached value"):
            evaluate(cell)

    def test_cached_value(self):
        data, _ = self._formula_workbook()
        data = patch_cell_xml(data, "A1", '<c r="A1"><f>1+1</f><v>2</v></c>')
        cell = load_workbook(io.BytesIO(data)).worksheets[0]["A1"]
        evaluate = CachedValueEvaluator(io.BytesIO(data), 0, 0)
        assert evaluate(cell) == 2
        assert resolve_cell(cell, evaluate) == "2"

    def test_cached_empty_string(self):
        """An empty string result is saved as a typed cell with an empty value."""
        data, _ = self._formula_workbook()
        data = patch_cell_xml(data, "A1", '<c r="A1" t="str"><f>""&amp;""</f><v></v></c>')
        cell = load_workbook(io.BytesIO(data)).worksheets[0]["A1"]
        evaluate = CachedValueEvaluator(io.BytesIO(data), 0, 0)
        assert evaluate(cell) == ""
        assert resolve_cell(cell, evaluate) == ""

    def test_bad_sheet_index(self):
        data, cell = self._formula_workbook()
        evaluate = CachedValueEvaluator(io.BytesIO(data), 0, 3)
        with pytest.raises(SheetIndexError):
            evaluate(cell)

    def test_restores_stream_position(self):
        data, cell = self._formula_workbook()
        stream = io.BytesIO(b"xyz" + data)
        stream.seek(7)
        evaluate = CachedValueEvaluator(stream, 3, 0)
        with pytest.raises(FormulaEvaluationError):
            evaluate(cell)
        assert stream.tell() == 7
