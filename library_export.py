"""Goodreads-style library export ingestion helpers."""

from __future__ import annotations

import csv
import logging
import os
from pathlib import Path
from typing import Iterable, TextIO

from exceptions import ExtractionError
from models import Book

LIBRARY_EXPORT_PATH = os.getenv("LIBRARY_EXPORT_PATH", "data/goodreads_library_export.csv")

# Column positions after the leading "Book Id" column.
_TITLE_COLUMN = 1
_AUTHOR_COLUMN = 2
_AUTHOR_LF_COLUMN = 3
_ADDITIONAL_AUTHORS_COLUMN = 4
_MIN_COLUMNS = _ADDITIONAL_AUTHORS_COLUMN + 1

LOGGER = logging.getLogger(__name__)


def load_library_export(path: str | Path | None = None) -> list[Book]:
    """Open the export file and extract its books.

    Raises OSError if the file cannot be opened and ExtractionError if it is
    empty or malformed.
    """
    path = Path(path or LIBRARY_EXPORT_PATH)
    LOGGER.info("Reading library export from %s", path)
    with path.open(newline="", encoding="utf-8") as fh:
        return parse_library_csv(fh)


def parse_library_csv(stream: TextIO | Iterable[str]) -> list[Book]:
    """Parse delimited export text into Book records, in row order.

    The header row is consumed and discarded. Rows that stop before the
    "Additional Authors" column are skipped. Field values are kept verbatim.
    Stray quotes inside a field do not abort parsing.
    """
    reader = csv.reader(stream, strict=False)

    try:
        # Blank lines before the header are not rows.
        header = next((row for row in reader if row), None)
        if header is None:
            raise ExtractionError("CSV source is empty: no header row found")

        books: list[Book] = []
        skipped = 0
        for row in reader:
            if len(row) < _MIN_COLUMNS:
                skipped += 1
                LOGGER.debug("Skipping short row at line %s: %s fields", reader.line_num, len(row))
                continue

            books.append(
                Book(
                    title=row[_TITLE_COLUMN],
                    author=row[_AUTHOR_COLUMN],
                    author_lf=row[_AUTHOR_LF_COLUMN],
                    additional_authors=row[_ADDITIONAL_AUTHORS_COLUMN],
                )
            )
    except csv.Error as exc:
        raise ExtractionError(f"Error reading CSV record near line {reader.line_num}: {exc}") from exc

    LOGGER.info("Extracted %s books from export (skipped %s short rows)", len(books), skipped)
    return books
