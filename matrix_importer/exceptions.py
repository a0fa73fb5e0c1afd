"""
Custom exception hierarchy for matrix-importer.

The registry catches every error a parser raises and moves on to the next
parser, so these classes are mainly about telling the two kinds of
failure apart in logs and in ``ParseOutcome.attempts``:

- ``NotApplicableError``: the parser is the wrong tool for this input
  (e.g. no delimiter could be sniffed). Expected, logged at INFO.
- ``ParsingError``: the input looked right but could not be read
  (bad sheet index, formula without a value). Logged at WARNING.
"""


class MatrixImportError(Exception):
    """Base exception for all matrix-importer errors."""


class NotApplicableError(MatrixImportError):
    """Raised when a parser determines it cannot handle the given input."""


class DelimiterNotFoundError(NotApplicableError):
    """Raised when no candidate delimiter occurs often enough in the input.

    The message includes the per-candidate counts and the threshold.
    """


class ParsingError(MatrixImportError):
    """Raised when a parser encounters input it cannot read."""


class FormulaEvaluationError(ParsingError):
    """Raised when a spreadsheet formula cell has no usable result."""


class SheetIndexError(ParsingError):
    """Raised when the requested sheet does not exist in the workbook."""


class ConfigValidationError(MatrixImportError):
    """Raised when a hints YAML file is empty or not a mapping."""
