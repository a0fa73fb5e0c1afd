"""
matrix-importer: read delimited text and spreadsheets into a string matrix.

Public API surface:

- ``import_file(path, hints=None, with_metadata=False)`` -- **recommended
  entry point**. Opens the file, derives the ``fileName`` hint from the
  path, and returns a rectangular ``list[list[str]]`` (or ``None`` if no
  parser could read it).
- ``import_text``, ``import_bytes``, ``import_stream`` -- same for
  in-memory text, raw bytes or an already open stream.
- ``get_default_registry()`` -- the process-wide ``ParserRegistry`` used
  by the functions above; register custom parsers on it, or build an
  independent ``ParserRegistry`` for isolation.

Examples::

    import matrix_importer

    matrix = matrix_importer.import_file("inputs/samples.csv")

    outcome = matrix_importer.import_file(
        "inputs/plate.xlsx",
        hints={"startRow": 2, "sheetIndex": 1},
        with_metadata=True,
    )
    if outcome.succeeded:
        print(outcome.description, outcome.details)
        df = outcome.to_frame(header=True)
"""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, TextIO

from matrix_importer.config import ImportHints, load_hints, save_hints
from matrix_importer.exceptions import (
    ConfigValidationError,
    DelimiterNotFoundError,
    FormulaEvaluationError,
    MatrixImportError,
    NotApplicableError,
    ParsingError,
    SheetIndexError,
)
from matrix_importer.parsers import (
    BaseParser,
    DelimitedTextParser,
    LegacySpreadsheetParser,
    ParseResult,
    SpreadsheetParser,
)
from matrix_importer.registry import (
    AttemptStatus,
    HintsLike,
    ParseAttempt,
    ParseOutcome,
    ParserRegistry,
    get_default_registry,
)

__all__ = [
    "import_file",
    "import_text",
    "import_bytes",
    "import_stream",
    "get_default_registry",
    "ParserRegistry",
    "ParseOutcome",
    "ParseAttempt",
    "AttemptStatus",
    "ImportHints",
    "load_hints",
    "save_hints",
    "BaseParser",
    "ParseResult",
    "DelimitedTextParser",
    "SpreadsheetParser",
    "LegacySpreadsheetParser",
    "MatrixImportError",
    "NotApplicableError",
    "DelimiterNotFoundError",
    "ParsingError",
    "FormulaEvaluationError",
    "SheetIndexError",
    "ConfigValidationError",
]


def import_file(
    path: str | Path,
    hints: HintsLike = None,
    with_metadata: bool = False,
) -> list[list[str]] | ParseOutcome | None:
    """Import a file with the default registry.

    Args:
        path: File to read. Its name is used as the ``fileName`` hint
            unless *hints* already carries one.
        hints: ImportHints or a mapping such as ``{"startRow": 1}``.
        with_metadata: Return a ParseOutcome instead of the bare matrix.

    Returns:
        The matrix, ``None`` if no parser could read the file, or a
        ParseOutcome when *with_metadata* is True.

    Raises:
        FileNotFoundError: If *path* does not exist.
        pydantic.ValidationError: If a hint value is invalid.
    """
    return get_default_registry().import_file(path, hints, with_metadata=with_metadata)


def import_text(
    text: str,
    hints: HintsLike = None,
    with_metadata: bool = False,
) -> list[list[str]] | ParseOutcome | None:
    """Import delimited text held in a string."""
    return get_default_registry().import_text(text, hints, with_metadata=with_metadata)


def import_bytes(
    data: bytes,
    hints: HintsLike = None,
    with_metadata: bool = False,
) -> list[list[str]] | ParseOutcome | None:
    """Import raw file contents (CSV bytes or a workbook)."""
    return get_default_registry().import_bytes(data, hints, with_metadata=with_metadata)


def import_stream(
    stream: BinaryIO | TextIO,
    hints: HintsLike = None,
    with_metadata: bool = False,
) -> list[list[str]] | ParseOutcome | None:
    """Import from an open stream; the caller keeps ownership and closes it."""
    return get_default_registry().import_stream(stream, hints, with_metadata=with_metadata)
