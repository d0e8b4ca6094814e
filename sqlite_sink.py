"""SQLite sink for tagged books."""

from __future__ import annotations

import logging
import os
import sqlite3
from pathlib import Path
from typing import Sequence

from exceptions import PersistenceError
from models import Book, TaggedBook

DB_PATH = os.getenv("BOOKTAG_DB_PATH", "db/taggedbooks.db")

LOGGER = logging.getLogger(__name__)

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS BOOK (
    title TEXT NOT NULL,
    author TEXT NOT NULL,
    authorLF TEXT NOT NULL,
    additionalAuthors TEXT NOT NULL,
    tag TEXT NOT NULL
)
"""

_INSERT_SQL = """
INSERT INTO BOOK (title, author, authorLF, additionalAuthors, tag)
VALUES (?, ?, ?, ?, lower(?))
"""

_SELECT_BOOKS_SQL = "SELECT title, author, authorLF, additionalAuthors FROM BOOK"

_SELECT_ROWS_SQL = "SELECT title, author, authorLF, additionalAuthors, tag FROM BOOK ORDER BY rowid"


def open_store(db_path: str | Path | None = None) -> sqlite3.Connection:
    """Open (creating if needed) the store file and its parent directory."""
    path = Path(db_path or DB_PATH)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(path)
    except (OSError, sqlite3.Error) as exc:
        raise PersistenceError(f"Failed to open database file '{path}': {exc}") from exc

    try:
        conn.execute(_CREATE_TABLE_SQL)
        conn.commit()
    except sqlite3.Error as exc:
        conn.close()
        raise PersistenceError(f"Failed to prepare BOOK table in '{path}': {exc}") from exc
    return conn


def insert_tagged_books(tagged_books: Sequence[TaggedBook], db_path: str | Path | None = None) -> int:
    """Insert every tagged book in one transaction and return the row count.

    Tags are stored lowercase. If any insert fails the whole batch is rolled
    back and PersistenceError is raised. Existing rows are not checked, so
    inserting the same books twice duplicates them.
    """
    path = Path(db_path or DB_PATH)
    conn = open_store(path)
    inserted = 0
    try:
        for tagged in tagged_books:
            try:
                conn.execute(_INSERT_SQL, tagged.as_row())
            except sqlite3.Error as exc:
                conn.rollback()
                LOGGER.error("Rolled back %s pending inserts into %s", inserted, path)
                raise PersistenceError(f"Failed to execute insert for book '{tagged.title}': {exc}") from exc
            inserted += 1

        try:
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise PersistenceError(f"Failed to commit transaction: {exc}") from exc
    finally:
        conn.close()

    LOGGER.info("Successfully inserted %s records into the BOOK table in %s", inserted, path)
    return inserted


def filter_untagged_books(books: Sequence[Book], db_path: str | Path | None = None) -> list[Book]:
    """Return the books that have no rows in the store yet, in input order."""
    path = Path(db_path or DB_PATH)
    if not path.exists():
        return list(books)

    conn = open_store(path)
    try:
        tagged_keys = {tuple(row) for row in conn.execute(_SELECT_BOOKS_SQL)}
    except sqlite3.Error as exc:
        raise PersistenceError(f"Failed to query tagged books: {exc}") from exc
    finally:
        conn.close()

    untagged = [book for book in books if book.key() not in tagged_keys]
    LOGGER.info("%s of %s books are not yet tagged in %s", len(untagged), len(books), path)
    return untagged


def fetch_tagged_books(db_path: str | Path | None = None) -> list[TaggedBook]:
    """Read every persisted row back, in insertion order."""
    conn = open_store(db_path)
    try:
        rows = conn.execute(_SELECT_ROWS_SQL).fetchall()
    except sqlite3.Error as exc:
        raise PersistenceError(f"Failed to read tagged books: {exc}") from exc
    finally:
        conn.close()

    return [
        TaggedBook(
            book=Book(title=title, author=author, author_lf=author_lf, additional_authors=additional),
            tag=tag,
        )
        for title, author, author_lf, additional, tag in rows
    ]
