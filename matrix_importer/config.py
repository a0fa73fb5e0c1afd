"""
Import hints model and YAML I/O for matrix-importer.

``ImportHints`` is the single configuration value threaded through the
registry into every parser. It is immutable: anything a parser derives
while reading (the sniffed delimiter, the sheet name) is reported back in
``ParseResult.details`` instead of being written into the hints.

Keys may be given in snake_case (``start_row``) or in the camelCase used
by hint files and older callers (``startRow``). Recognized keys:

- fileName: used only for extension-based capability matching.
- startRow / endRow: 0-based inclusive row window (clamped, see window.py).
- delimiter: explicit single-character field separator.
- delimiterName: ``comma`` / ``semicolon`` / ``tab`` (see sniff.py).
- sheetIndex: 0-based workbook sheet to read.
- threshold: minimum occurrences for delimiter auto-detection.
- makeRowsEqualLength: pad ragged rows to the widest row.
- encoding: text encoding of delimited input.

Unknown keys are preserved so custom parsers can read their own hints.

Key functions:
- load_hints(path) -> ImportHints: Load and validate a YAML hint preset.
- save_hints(hints, path): Serialize to YAML.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from matrix_importer.exceptions import ConfigValidationError

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 5
DEFAULT_ENCODING = "utf-8-sig"


class ImportHints(BaseModel):
    """Caller-supplied hints steering parser selection and parsing."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="allow",
    )

    file_name: str | None = Field(
        None, description="Name of the source file; only its extension is used"
    )
    start_row: int | None = Field(None, description="First row to read (0-based)")
    end_row: int | None = Field(None, description="Last row to read (0-based, inclusive)")
    delimiter: str | None = Field(None, description="Explicit field separator")
    delimiter_name: str | None = Field(
        None, description="Human readable delimiter, e.g. 'tab'"
    )
    sheet_index: int = Field(0, description="Workbook sheet to read (0-based)")
    threshold: int = Field(
        DEFAULT_THRESHOLD,
        description="Minimum delimiter occurrences required for auto-detection",
    )
    make_rows_equal_length: bool = Field(
        False, description="Pad short rows with empty cells up to the widest row"
    )
    encoding: str = Field(DEFAULT_ENCODING, description="Encoding of delimited text")

    @field_validator("delimiter", mode="before")
    @classmethod
    def _check_delimiter(cls, value: Any) -> str | None:
        if value is None or value == "":
            return None
        if not isinstance(value, str) or len(value) != 1:
            raise ValueError(
                f"delimiter must be a single character, got {value!r}"
            )
        return value

    @field_validator("sheet_index", "threshold", mode="before")
    @classmethod
    def _none_means_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].default
        return value

    @classmethod
    def coerce(cls, hints: ImportHints | Mapping[str, Any] | None) -> ImportHints:
        """Normalize ``None``, a plain mapping, or an ``ImportHints`` instance."""
        if hints is None:
            return cls()
        if isinstance(hints, cls):
            return hints
        return cls.model_validate(dict(hints))

    def with_file_name(self, file_name: str | None) -> ImportHints:
        """Return a copy carrying *file_name*, unless one was already given."""
        if self.file_name or not file_name:
            return self
        return self.model_copy(update={"file_name": file_name})

    def to_dict(self) -> dict[str, Any]:
        """Camel-case mapping of all non-empty hints, as written to YAML."""
        return self.model_dump(by_alias=True, exclude_none=True)


def load_hints(path: str | Path) -> ImportHints:
    """Load and validate a YAML hint preset.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the file is empty or not a mapping.
        pydantic.ValidationError: If a hint has an invalid value.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Hints file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    if raw is None:
        raise ConfigValidationError(f"Hints file is empty: {path}")
    if not isinstance(raw, dict):
        raise ConfigValidationError(
            f"Hints file must contain a mapping, got {type(raw).__name__}: {path}"
        )
    logger.info("Loaded hints from %s", path)
    return ImportHints.model_validate(raw)


def save_hints(hints: ImportHints, path: str | Path) -> None:
    """Serialize hints to YAML with camelCase keys."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write("# matrix-importer hints\n\n")
        yaml.safe_dump(
            hints.to_dict(),
            f,
            allow_unicode=True,
            default_flow_style=False,
            sort_keys=False,
        )
    logger.info("Saved hints to %s", path)
