"""
Delimiter sniffing for delimited text.

Counts raw occurrences of each candidate delimiter in a look-ahead
sample and picks the most frequent one, provided it reaches a minimum
count. Candidates are scanned in a fixed order (comma, semicolon, tab)
with a strict greater-than comparison, so on a tie the earlier candidate
wins.

Counting is over the whole sample, not per line: a stray comma in a
free-text column counts as much as a real separator. Callers with
unusual data should pass an explicit ``delimiter`` hint.
"""

from __future__ import annotations

import logging
from typing import TextIO

from matrix_importer.exceptions import DelimiterNotFoundError

logger = logging.getLogger(__name__)

# Human readable name -> character. Order defines candidate priority;
# "semi-colon" is an alias and does not add a candidate.
DELIMITER_NAMES: dict[str, str] = {
    "comma": ",",
    "semicolon": ";",
    "semi-colon": ";",
    "tab": "\t",
}

CANDIDATES: tuple[str, ...] = tuple(dict.fromkeys(DELIMITER_NAMES.values()))

LOOKAHEAD_CHARS = 16 * 1024


def delimiter_name(delimiter: str) -> str | None:
    """Return the first human readable name for *delimiter*, if any."""
    for name, char in DELIMITER_NAMES.items():
        if char == delimiter:
            return name
    return None


def count_delimiters(text: str) -> dict[str, int]:
    return {char: text.count(char) for char in CANDIDATES}


def choose_delimiter(counts: dict[str, int], threshold: int) -> str | None:
    """Pick the most frequent candidate with at least *threshold* hits."""
    best: str | None = None
    best_count = 0
    for char in CANDIDATES:
        count = counts.get(char, 0)
        if count > best_count and count >= threshold:
            best = char
            best_count = count
    return best


def sniff_delimiter(text: str, threshold: int = 5) -> str:
    """Infer the delimiter used in *text*.

    Raises:
        DelimiterNotFoundError: If no candidate occurs at least
            *threshold* times.
    """
    counts = count_delimiters(text)
    delimiter = choose_delimiter(counts, threshold)
    logger.debug("Delimiter counts %s (threshold=%d) -> %r", counts, threshold, delimiter)
    if delimiter is None:
        readable = ", ".join(
            f"{delimiter_name(char)}={count}" for char, count in counts.items()
        )
        raise DelimiterNotFoundError(
            f"CSV delimiter could not be determined: no candidate occurs at "
            f"least {threshold} times ({readable})"
        )
    return delimiter


def peek(reader: TextIO, size: int = LOOKAHEAD_CHARS) -> str:
    """Read up to *size* characters, then rewind *reader* to where it was."""
    mark = reader.tell()
    sample = reader.read(size)
    reader.seek(mark)
    return sample
