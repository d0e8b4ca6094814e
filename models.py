"""Shared typed models for the tagging pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Book:
    """One book extracted from a library export row.

    Identity is structural: two books with the same four fields are the same book.
    """

    title: str
    author: str
    author_lf: str
    additional_authors: str

    def key(self) -> tuple[str, str, str, str]:
        """Column-ordered field tuple, used for SQL parameters and lookups."""
        return (self.title, self.author, self.author_lf, self.additional_authors)

    def to_dict(self) -> dict[str, Any]:
        """Return the export-style JSON shape (camelCase keys)."""
        return {
            "title": self.title,
            "author": self.author,
            "authorLF": self.author_lf,
            "additionalAuthors": self.additional_authors,
        }


@dataclass(frozen=True, slots=True)
class TaggedBook:
    """A book paired with exactly one tag; one instance per (book, tag) pair."""

    book: Book
    tag: str

    @property
    def title(self) -> str:
        return self.book.title

    def as_row(self) -> tuple[str, str, str, str, str]:
        return (*self.book.key(), self.tag)
