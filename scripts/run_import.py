"""
Demo script: import a delimited text file or workbook via the public API.

Usage:
    uv run python scripts/run_import.py inputs/samples.csv
    uv run python scripts/run_import.py inputs/plate.xlsx --sheet-index 1 --start-row 2
    uv run python scripts/run_import.py inputs/export.txt --hints hints.yaml --pad

Hints given on the command line override the ones loaded from --hints.
Exits with status 1 when no parser could import the file.
"""

from __future__ import annotations

import argparse
import logging
import sys

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger("run_import")


# ---------------------------------------------------------------------------
# Helper
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Import a file into a string matrix.")
    parser.add_argument("path", help="CSV/TXT/TSV file or .xlsx/.xls workbook")
    parser.add_argument("--hints", help="YAML file with import hints")
    parser.add_argument("--start-row", type=int, help="first row to read (0-based)")
    parser.add_argument("--end-row", type=int, help="last row to read (0-based, inclusive)")
    parser.add_argument("--delimiter", help="field separator, e.g. ';'")
    parser.add_argument("--delimiter-name", help="comma, semicolon or tab")
    parser.add_argument("--sheet-index", type=int, help="workbook sheet (0-based)")
    parser.add_argument("--pad", action="store_true", help="pad rows to the widest row")
    parser.add_argument("--preview", type=int, default=5, help="rows to print")
    return parser


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> int:
    import matrix_importer

    args = _build_parser().parse_args()

    hints = {}
    if args.hints:
        hints = matrix_importer.load_hints(args.hints).to_dict()
    overrides = {
        "startRow": args.start_row,
        "endRow": args.end_row,
        "delimiter": args.delimiter,
        "delimiterName": args.delimiter_name,
        "sheetIndex": args.sheet_index,
    }
    hints.update({k: v for k, v in overrides.items() if v is not None})
    if args.pad:
        hints["makeRowsEqualLength"] = True

    outcome = matrix_importer.import_file(args.path, hints, with_metadata=True)

    for attempt in outcome.attempts:
        log.info("  %-20s %s", type(attempt.parser).__name__, attempt.status.value)

    if not outcome.succeeded:
        log.error("No parser could import %s", args.path)
        return 1

    log.info("Parser  : %s", outcome.description)
    log.info("Shape   : %d rows x %d cols", len(outcome.matrix), len(outcome.matrix[0]))
    for key, value in outcome.details.items():
        log.info("  %-16s: %r", key, value)

    for row in outcome.matrix[: args.preview]:
        print("\t".join(row))
    return 0


if __name__ == "__main__":
    sys.exit(main())
