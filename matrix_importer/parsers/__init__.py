"""
Parsers sub-package for matrix-importer.

Contains format-specific parsers that turn an input stream into a
rectangular matrix of strings.

Design: Strategy Pattern
- base.py defines the BaseParser ABC (can_parse / parse / describe).
- delimited.py implements DelimitedTextParser for CSV, TSV and
  semicolon separated text, with delimiter sniffing.
- spreadsheet.py implements SpreadsheetParser for .xlsx/.xlsm workbooks.
- xls.py implements LegacySpreadsheetParser for .xls workbooks (xlrd).

The ParserRegistry (registry.py) tries registered parsers in order and
falls back to the next one when a parser fails.
"""

from matrix_importer.parsers.base import BaseParser, ParseResult
from matrix_importer.parsers.delimited import DelimitedTextParser
from matrix_importer.parsers.spreadsheet import SpreadsheetParser
from matrix_importer.parsers.xls import LegacySpreadsheetParser

__all__ = [
    "BaseParser",
    "ParseResult",
    "DelimitedTextParser",
    "SpreadsheetParser",
    "LegacySpreadsheetParser",
]
