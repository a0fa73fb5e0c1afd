"""
Delimited text parser (CSV, TSV, semicolon separated).

Input structure:
  - Any number of records separated by line breaks; fields separated by
    a single-character delimiter; double quotes may wrap fields that
    contain the delimiter or line breaks.

Delimiter resolution, first match wins:
  1. ``delimiter`` hint (explicit character).
  2. ``delimiterName`` hint (``comma``, ``semicolon``, ``tab``).
  3. Sniffing the first 16 KiB of text (see sniff.py). The sample is
     read and then rewound, so the full read starts at the beginning.

Output:
  - Rows within the ``startRow``/``endRow`` window, rectangularized
    (width of the first row read, or of the widest row with
    ``makeRowsEqualLength``).
  - details: ``delimiter``, ``delimiter_name``, ``delimiter_names``.

Importing this module lifts the csv module's field size limit so a single
long field (e.g. an embedded document) does not fail the whole import.
"""

from __future__ import annotations

import csv
import io
import logging
import sys
from typing import BinaryIO, TextIO

from matrix_importer.config import ImportHints
from matrix_importer.parsers.base import BaseParser, ParseResult
from matrix_importer.sniff import (
    DELIMITER_NAMES,
    LOOKAHEAD_CHARS,
    delimiter_name,
    peek,
    sniff_delimiter,
)
from matrix_importer.window import RowWindow, rectangularize

logger = logging.getLogger(__name__)

# csv caps fields at 128 KiB by default; the limit is process-wide
csv.field_size_limit(min(sys.maxsize, 2**31 - 1))


class DelimitedTextParser(BaseParser):
    """Parser for comma, semicolon and tab separated text."""

    description = "Matrix importer for reading CSV files"
    extensions = ("csv", "txt", "tsv")

    def parse(self, stream: BinaryIO, hints: ImportHints) -> ParseResult:
        reader = io.TextIOWrapper(stream, encoding=hints.encoding, newline="")
        try:
            delimiter = self._resolve_delimiter(reader, hints)
            rows = self._read_rows(reader, delimiter, RowWindow.from_hints(hints))
        finally:
            # Hand the binary stream back to the caller still open
            reader.detach()

        matrix = rectangularize(rows, pad_to_longest=hints.make_rows_equal_length)
        logger.info(
            "Parsed %d rows x %d columns (delimiter=%r)",
            len(matrix), len(matrix[0]) if matrix else 0, delimiter,
        )
        return ParseResult(
            matrix=matrix,
            details={
                "delimiter": delimiter,
                "delimiter_name": delimiter_name(delimiter),
                "delimiter_names": dict(DELIMITER_NAMES),
            },
        )

    def _resolve_delimiter(self, reader: TextIO, hints: ImportHints) -> str:
        if hints.delimiter:
            return hints.delimiter
        if hints.delimiter_name in DELIMITER_NAMES:
            return DELIMITER_NAMES[hints.delimiter_name]
        if hints.delimiter_name:
            logger.debug(
                "Unknown delimiterName %r, falling back to detection",
                hints.delimiter_name,
            )
        return sniff_delimiter(peek(reader, LOOKAHEAD_CHARS), hints.threshold)

    def _read_rows(
        self, reader: TextIO, delimiter: str, window: RowWindow
    ) -> list[list[str]]:
        rows: list[list[str]] = []
        for index, record in enumerate(csv.reader(reader, delimiter=delimiter)):
            if window.is_past(index):
                break
            if index in window:
                # A blank line is one empty field, not zero fields
                rows.append(record or [""])
        return rows
