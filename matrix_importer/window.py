"""
Row window and rectangularization shared by all parsers.

Bounds come from the ``startRow`` / ``endRow`` hints and are clamped
rather than rejected:

- start: absent or negative -> 0.
- end: absent or before start -> unbounded (read to the last row).

Rectangularization fixes the column count either from the first row read
(rows are then padded or cut to that width) or, with
``makeRowsEqualLength``, from the widest row (rows are only ever padded).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from matrix_importer.config import ImportHints


@dataclass(frozen=True)
class RowWindow:
    """Inclusive 0-based row range; ``end=None`` means no upper bound."""

    start: int = 0
    end: int | None = None

    @classmethod
    def from_hints(cls, hints: ImportHints) -> RowWindow:
        start = hints.start_row
        if start is None or start < 0:
            start = 0
        end = hints.end_row
        if end is not None and end < start:
            end = None
        return cls(start=start, end=end)

    def __contains__(self, index: int) -> bool:
        return index >= self.start and (self.end is None or index <= self.end)

    def is_past(self, index: int) -> bool:
        """True once *index* lies beyond the window, so reading can stop."""
        return self.end is not None and index > self.end


def fit_row(row: Sequence[str], width: int) -> list[str]:
    """Right-pad *row* with empty strings, or cut it, to exactly *width* cells."""
    cells = list(row[:width])
    if len(cells) < width:
        cells.extend([""] * (width - len(cells)))
    return cells


def rectangularize(
    rows: Sequence[Sequence[str]],
    pad_to_longest: bool = False,
) -> list[list[str]]:
    """Make every row the same length.

    Args:
        rows: Rows in source order.
        pad_to_longest: If True, use the widest row as the column count so
            no cell is ever dropped. Otherwise the first row decides.

    Returns:
        A new rectangular matrix. An empty input gives an empty matrix.
    """
    if not rows:
        return []
    if pad_to_longest:
        width = max(len(row) for row in rows)
    else:
        width = len(rows[0])
    return [fit_row(row, width) for row in rows]


def is_blank_row(row: Sequence[str]) -> bool:
    return not any(row)


def column_count(extents: Sequence[int], widest: bool = False) -> int:
    """Column count for workbook rows given each row's filled extent.

    The first row with any value decides, unless *widest* asks for the
    largest extent.
    """
    if widest:
        return max(extents, default=0)
    return next((extent for extent in extents if extent), 0)
