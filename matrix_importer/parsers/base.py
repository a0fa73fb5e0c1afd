"""
Base parser ABC for matrix-importer.

All format parsers implement this interface. The contract is:
1. can_parse() takes only the hints (no peeking at content) and answers
   whether the parser should be tried at all. Without a file name a
   parser must optimistically answer True.
2. parse() takes a seekable binary stream positioned at the start of the
   input plus the hints, and returns a ParseResult.
3. describe() returns a human-readable name used in logs and metadata.

Parsers must be stateless between calls, must not close the stream they
are given, and must not assume they are the only parser tried: any
exception they raise makes the registry move on to the next parser.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, BinaryIO

from matrix_importer.config import ImportHints


@dataclass
class ParseResult:
    """Output of a single parser.

    Attributes:
        matrix: Rectangular list of rows of cell strings.
        details: Parser-specific facts derived while parsing (e.g. the
            sniffed delimiter, the sheet read).
    """
    matrix: list[list[str]]
    details: dict[str, Any] = field(default_factory=dict)


class BaseParser(ABC):
    """Abstract base class for format parsers.

    Subclasses set ``description`` and, for extension-based capability
    matching, ``extensions`` (lower-case, without the dot).
    """

    description: str = ""
    extensions: tuple[str, ...] = ()

    def can_parse(self, hints: ImportHints) -> bool:
        """Match the ``fileName`` hint against ``extensions``, case-insensitively."""
        if not hints.file_name or not self.extensions:
            return True
        pattern = r".+\.(%s)" % "|".join(re.escape(ext) for ext in self.extensions)
        return re.fullmatch(pattern, hints.file_name, re.IGNORECASE) is not None

    @abstractmethod
    def parse(self, stream: BinaryIO, hints: ImportHints) -> ParseResult:
        """Parse the input into a matrix.

        Args:
            stream: Seekable binary stream positioned at the input start.
            hints: Immutable import hints.

        Returns:
            ParseResult with a rectangular matrix.

        Raises:
            NotApplicableError: If the input is not in this parser's format.
            ParsingError: If the input cannot be read.
        """

    def describe(self) -> str:
        return self.description or type(self).__name__

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
