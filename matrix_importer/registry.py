"""
Parser registry: picks the parser that can turn an input into a matrix.

Algorithm (``import_stream``):
1. Make the input rewindable and remember its start position.
2. For each registered parser, in registration order:
   a. Skip it if ``can_parse(hints)`` is False (file name mismatch).
   b. Rewind the input to the start position and call ``parse()``.
   c. Record the attempt. Any exception means "this parser cannot handle
      this input": it is logged and the next parser is tried.
   d. The first non-empty matrix wins; later parsers are not tried.
3. If nothing produced a matrix, return ``None`` (or an outcome with
   ``matrix=None``). Parse failures never reach the caller.

The registered parsers are kept in an immutable tuple that is replaced
under a lock on register/unregister, so imports running on other threads
always iterate over a consistent snapshot.
"""

from __future__ import annotations

import io
import logging
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO, TextIO

import pandas as pd

from matrix_importer.config import DEFAULT_ENCODING, ImportHints
from matrix_importer.exceptions import NotApplicableError
from matrix_importer.parsers.base import BaseParser, ParseResult
from matrix_importer.parsers.delimited import DelimitedTextParser
from matrix_importer.parsers.spreadsheet import SpreadsheetParser
from matrix_importer.parsers.xls import LegacySpreadsheetParser
from matrix_importer.streams import as_rewindable, from_bytes, from_text

logger = logging.getLogger(__name__)

HintsLike = ImportHints | Mapping[str, Any] | None


class AttemptStatus(str, Enum):
    """What happened when the registry considered one parser."""

    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    EMPTY = "empty"
    NOT_APPLICABLE = "not_applicable"
    FAILED = "failed"


@dataclass
class ParseAttempt:
    """One parser considered during an import."""
    parser: BaseParser
    status: AttemptStatus
    error: Exception | None = None


@dataclass
class ParseOutcome:
    """Result of an import with metadata.

    Attributes:
        matrix: The imported matrix, or ``None`` if no parser succeeded.
        parser: The parser that produced the matrix.
        details: Parser-specific details (delimiter, sheet name, ...).
        attempts: Every parser considered, in order.
    """
    matrix: list[list[str]] | None = None
    parser: BaseParser | None = None
    details: dict[str, Any] = field(default_factory=dict)
    attempts: list[ParseAttempt] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.matrix is not None

    @property
    def description(self) -> str | None:
        return self.parser.describe() if self.parser is not None else None

    def to_frame(self, header: bool = False) -> pd.DataFrame:
        """Convert the matrix to a string-typed DataFrame.

        Args:
            header: If True, the first row becomes the column labels.

        Raises:
            ValueError: If the import produced no matrix.
        """
        if self.matrix is None:
            raise ValueError("Import produced no matrix; nothing to convert")
        if header and self.matrix:
            return pd.DataFrame(self.matrix[1:], columns=self.matrix[0], dtype=str)
        return pd.DataFrame(self.matrix, dtype=str)


def default_parsers() -> list[BaseParser]:
    """Built-in parsers in priority order."""
    return [DelimitedTextParser(), SpreadsheetParser(), LegacySpreadsheetParser()]


class ParserRegistry:
    """Ordered collection of parsers with fallback import.

    ``ParserRegistry()`` comes with the built-in parsers registered;
    ``ParserRegistry([])`` starts empty.
    """

    def __init__(self, parsers: Iterable[BaseParser] | None = None) -> None:
        self._lock = threading.Lock()
        self._parsers: tuple[BaseParser, ...] = ()
        for parser in default_parsers() if parsers is None else parsers:
            self.register(parser)

    @property
    def parsers(self) -> list[BaseParser]:
        """Snapshot of the registered parsers, in priority order."""
        return list(self._parsers)

    def register(self, parser: BaseParser) -> None:
        """Append *parser* unless this exact instance is already registered.

        Raises:
            TypeError: If *parser* does not implement BaseParser.
        """
        if not isinstance(parser, BaseParser):
            raise TypeError(
                f"Parser {parser!r} must inherit from BaseParser"
            )
        with self._lock:
            if any(p is parser for p in self._parsers):
                return
            self._parsers = (*self._parsers, parser)
        logger.debug("Registered parser %s", parser.describe())

    def unregister(self, parser: BaseParser | type[BaseParser]) -> None:
        """Remove a parser instance, or every parser of exactly the given class."""
        with self._lock:
            if isinstance(parser, type):
                kept = tuple(p for p in self._parsers if type(p) is not parser)
            else:
                kept = tuple(p for p in self._parsers if p is not parser)
            self._parsers = kept

    # -- Import entry points ------------------------------------------------

    def import_stream(
        self,
        stream: BinaryIO | TextIO,
        hints: HintsLike = None,
        with_metadata: bool = False,
    ) -> list[list[str]] | ParseOutcome | None:
        """Import a matrix from an open stream.

        The stream is not closed; that stays with the caller.

        Args:
            stream: Binary or text stream. Non-seekable streams are
                buffered in memory.
            hints: ImportHints or a mapping of hint keys.
            with_metadata: If True, return a ParseOutcome instead of the
                bare matrix.

        Returns:
            The matrix, or ``None`` when no parser could import the input;
            a ParseOutcome when *with_metadata* is True.
        """
        hints = ImportHints.coerce(hints)
        if isinstance(stream, io.TextIOBase):
            hints = hints.model_copy(update={"encoding": DEFAULT_ENCODING})
        outcome = self._run(as_rewindable(stream), hints)
        return outcome if with_metadata else outcome.matrix

    def import_bytes(
        self, data: bytes, hints: HintsLike = None, with_metadata: bool = False
    ) -> list[list[str]] | ParseOutcome | None:
        return self.import_stream(from_bytes(data), hints, with_metadata=with_metadata)

    def import_text(
        self, text: str, hints: HintsLike = None, with_metadata: bool = False
    ) -> list[list[str]] | ParseOutcome | None:
        hints = ImportHints.coerce(hints).model_copy(update={"encoding": DEFAULT_ENCODING})
        return self.import_stream(from_text(text), hints, with_metadata=with_metadata)

    def import_file(
        self, path: str | Path, hints: HintsLike = None, with_metadata: bool = False
    ) -> list[list[str]] | ParseOutcome | None:
        """Import a file; its name becomes the ``fileName`` hint unless given.

        Raises:
            FileNotFoundError: If *path* does not exist.
        """
        path = Path(path)
        hints = ImportHints.coerce(hints).with_file_name(path.name)
        with open(path, "rb") as f:
            return self.import_stream(f, hints, with_metadata=with_metadata)

    # -- Internals ----------------------------------------------------------

    def _run(self, stream: BinaryIO, hints: ImportHints) -> ParseOutcome:
        start = stream.tell()
        outcome = ParseOutcome()

        for parser in self._parsers:
            if not parser.can_parse(hints):
                logger.debug(
                    "Skipping %s for file name %r", parser.describe(), hints.file_name
                )
                outcome.attempts.append(ParseAttempt(parser, AttemptStatus.SKIPPED))
                continue

            stream.seek(start)
            attempt, result = self._attempt(parser, stream, hints)
            outcome.attempts.append(attempt)
            if result is not None:
                outcome.matrix = result.matrix
                outcome.parser = parser
                outcome.details = result.details
                logger.info(
                    "Imported %d rows with %s", len(result.matrix), parser.describe()
                )
                return outcome

        logger.info(
            "No parser could import input (file_name=%r, %d parser(s) considered)",
            hints.file_name, len(outcome.attempts),
        )
        return outcome

    def _attempt(
        self, parser: BaseParser, stream: BinaryIO, hints: ImportHints
    ) -> tuple[ParseAttempt, ParseResult | None]:
        """Run one parser and turn whatever happens into a ParseAttempt."""
        name = type(parser).__name__
        try:
            result = parser.parse(stream, hints)
        except NotApplicableError as e:
            logger.info("%s (%s) not applicable: %s", name, parser.describe(), e)
            return ParseAttempt(parser, AttemptStatus.NOT_APPLICABLE, e), None
        except Exception as e:
            logger.warning("%s (%s) could not parse input: %s", name, parser.describe(), e)
            logger.debug("Parser failure traceback", exc_info=True)
            return ParseAttempt(parser, AttemptStatus.FAILED, e), None

        if not result.matrix:
            logger.info("%s (%s) produced an empty matrix", name, parser.describe())
            return ParseAttempt(parser, AttemptStatus.EMPTY), None
        return ParseAttempt(parser, AttemptStatus.SUCCEEDED), result


_default_registry: ParserRegistry | None = None
_default_lock = threading.Lock()


def get_default_registry() -> ParserRegistry:
    """Process-wide registry with the built-in parsers, created on first use."""
    global _default_registry
    with _default_lock:
        if _default_registry is None:
            _default_registry = ParserRegistry()
        return _default_registry
