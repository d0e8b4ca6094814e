from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

import sqlite_sink
from exceptions import PersistenceError
from models import Book, TaggedBook

DUNE = Book(title="Dune", author="Frank Herbert", author_lf="Herbert, Frank", additional_authors="")
GUIDE = Book(
    title="A Practical Guide",
    author="Sally A. Goldman",
    author_lf="Goldman, Sally A.",
    additional_authors="Kenneth J. Goldman",
)


@pytest.fixture(autouse=True)
def patch_db_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point DB_PATH at a temp file (inside a not-yet-created directory) for every test."""
    monkeypatch.setattr(sqlite_sink, "DB_PATH", str(tmp_path / "db" / "taggedbooks.db"))


def _rows(db_path: str) -> list[tuple]:
    with sqlite3.connect(db_path) as conn:
        return conn.execute(
            "SELECT title, author, authorLF, additionalAuthors, tag FROM BOOK ORDER BY rowid"
        ).fetchall()


def test_insert_tagged_books_creates_directory_and_store() -> None:
    inserted = sqlite_sink.insert_tagged_books([TaggedBook(DUNE, "Science Fiction")])

    assert inserted == 1
    assert Path(sqlite_sink.DB_PATH).exists()
    assert _rows(sqlite_sink.DB_PATH) == [
        ("Dune", "Frank Herbert", "Herbert, Frank", "", "science fiction"),
    ]


def test_insert_tagged_books_lowercases_tags_and_keeps_order() -> None:
    sqlite_sink.insert_tagged_books([
        TaggedBook(GUIDE, "Programming"),
        TaggedBook(GUIDE, "Java"),
        TaggedBook(DUNE, "Error: Could not retrieve tags"),
    ])

    assert [row[4] for row in _rows(sqlite_sink.DB_PATH)] == [
        "programming",
        "java",
        "error: could not retrieve tags",
    ]


def test_insert_tagged_books_twice_duplicates_rows() -> None:
    batch = [TaggedBook(DUNE, "Classic")]
    sqlite_sink.insert_tagged_books(batch)
    sqlite_sink.insert_tagged_books(batch)

    assert len(_rows(sqlite_sink.DB_PATH)) == 2


def test_insert_tagged_books_rolls_back_whole_batch_on_failure() -> None:
    conn = sqlite_sink.open_store()
    conn.execute(
        "CREATE TRIGGER reject_boom BEFORE INSERT ON BOOK WHEN NEW.tag = 'boom' "
        "BEGIN SELECT RAISE(ABORT, 'rejected tag'); END"
    )
    conn.commit()
    conn.close()

    batch = [
        TaggedBook(DUNE, "Classic"),
        TaggedBook(GUIDE, "Programming"),
        TaggedBook(GUIDE, "Boom"),
        TaggedBook(DUNE, "Desert"),
    ]
    with pytest.raises(PersistenceError, match="A Practical Guide"):
        sqlite_sink.insert_tagged_books(batch)

    assert _rows(sqlite_sink.DB_PATH) == []


def test_open_store_unusable_path_raises(tmp_path: Path) -> None:
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x", encoding="utf-8")

    with pytest.raises(PersistenceError):
        sqlite_sink.open_store(blocker / "store.db")


def test_filter_untagged_books_without_store_returns_all() -> None:
    assert sqlite_sink.filter_untagged_books([DUNE, GUIDE]) == [DUNE, GUIDE]


def test_filter_untagged_books_excludes_persisted_books() -> None:
    sqlite_sink.insert_tagged_books([TaggedBook(DUNE, "Classic")])
    changed_co_author = Book(
        title=DUNE.title,
        author=DUNE.author,
        author_lf=DUNE.author_lf,
        additional_authors="Someone Else",
    )

    untagged = sqlite_sink.filter_untagged_books([DUNE, GUIDE, changed_co_author])

    assert untagged == [GUIDE, changed_co_author]


def test_fetch_tagged_books_round_trips_rows() -> None:
    sqlite_sink.insert_tagged_books([TaggedBook(GUIDE, "Java"), TaggedBook(DUNE, "Classic")])

    assert sqlite_sink.fetch_tagged_books() == [TaggedBook(GUIDE, "java"), TaggedBook(DUNE, "classic")]
