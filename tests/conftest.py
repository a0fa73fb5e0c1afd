"""
Shared test fixtures and sample inputs for matrix-importer tests.

Inputs are synthetic: delimited samples are module-level strings and
workbooks are built with openpyxl into ``tmp_path`` (or into memory), so
no input files need to be checked in.
"""

from __future__ import annotations

import io
import re
import zipfile
from pathlib import Path

import pytest
import xlwt
from openpyxl import Workbook

# ---------------------------------------------------------------------------
# Delimited samples
# ---------------------------------------------------------------------------
COMMA_SAMPLE = "a,b,c\n1,2,3\n4,5,6\n"
SEMICOLON_SAMPLE = "name;dose;unit\nA;1;mg\nB;2;mg\nC;3;mg\n"
TAB_SAMPLE = "id\tvalue\n1\tx\n2\ty\n3\tz\n4\tw\n5\tv\n"
# Ten single-column rows numbered 0..9 plus enough commas to sniff
NUMBERED_ROWS = "".join(f"{i},row{i}\n" for i in range(10))


# ---------------------------------------------------------------------------
# Workbook builder
# ---------------------------------------------------------------------------

def build_workbook(sheets: dict[str, list[list]]) -> Workbook:
    """Build a workbook from ``{sheet title: rows}``.

    A cell value may be a ``(value, number_format)`` tuple; ``None``
    leaves the cell unset.
    """
    wb = Workbook()
    wb.remove(wb.active)
    for title, rows in sheets.items():
        ws = wb.create_sheet(title)
        for r, row in enumerate(rows, start=1):
            for c, value in enumerate(row, start=1):
                if value is None:
                    continue
                if isinstance(value, tuple):
                    value, number_format = value
                    cell = ws.cell(row=r, column=c, value=value)
                    cell.number_format = number_format
                else:
                    ws.cell(row=r, column=c, value=value)
    return wb


def workbook_bytes(sheets: dict[str, list[list]]) -> bytes:
    buf = io.BytesIO()
    build_workbook(sheets).save(buf)
    return buf.getvalue()


def patch_cell_xml(data: bytes, coordinate: str, cell_xml: str, sheet: int = 1) -> bytes:
    """Replace one cell element in a saved workbook's sheet XML.

    openpyxl never writes cached formula results, so tests that need one
    write the ``<c>`` element Excel would have saved.
    """
    part = f"xl/worksheets/sheet{sheet}.xml"
    pattern = re.compile(rf'<c r="{coordinate}"[^>]*?(/>|>.*?</c>)', re.DOTALL)
    src = zipfile.ZipFile(io.BytesIO(data))
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as dst:
        for item in src.infolist():
            content = src.read(item.filename)
            if item.filename == part:
                text, count = pattern.subn(lambda m: cell_xml, content.decode("utf-8"), count=1)
                assert count == 1, f"cell {coordinate} not found in {part}"
                content = text.encode("utf-8")
            dst.writestr(item, content)
    return buf.getvalue()


def xls_bytes(sheets: dict[str, list[list]]) -> bytes:
    """Build a legacy .xls workbook with xlwt, same cell convention as
    build_workbook().
    """
    wb = xlwt.Workbook()
    for title, rows in sheets.items():
        ws = wb.add_sheet(title)
        for r, row in enumerate(rows):
            for c, value in enumerate(row):
                if value is None:
                    continue
                if isinstance(value, tuple):
                    value, number_format = value
                    ws.write(r, c, value, xlwt.easyxf(num_format_str=number_format))
                else:
                    ws.write(r, c, value)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


@pytest.fixture()
def write_workbook(tmp_path: Path):
    """Factory fixture: write a workbook to ``tmp_path`` and return its path."""

    def _write(sheets: dict[str, list[list]], name: str = "book.xlsx") -> Path:
        path = tmp_path / name
        build_workbook(sheets).save(path)
        return path

    return _write


# ---------------------------------------------------------------------------
# Pytest markers
# ---------------------------------------------------------------------------
def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (runs the full import path)",
    )
