"""Tag enrichment: fan books out to a tagging provider and flatten the replies.

Two policies share the same contract (books in, one TaggedBook per tag out):

- concurrent: a bounded worker pool calls the provider for many books at once.
  A failed book is kept with FAILED_TAG so every input book appears in the output.
- sequential: one book at a time; a failed book is logged and dropped.

Neither policy retries a provider call.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

from exceptions import EmptyBatchError
from models import Book, TaggedBook
from tagging import CONCURRENT_POLICY, SEQUENTIAL_POLICY, TaggingProvider

# Hard ceiling on in-flight provider calls; BOOKTAG_MAX_CONCURRENT can only lower it.
MAX_CONCURRENT_REQUESTS = 10
FAILED_TAG = "Error: Could not retrieve tags"

LOGGER = logging.getLogger(__name__)


def split_tags(raw: str) -> list[str]:
    """Split comma-separated model output into clean tags, keeping their order."""
    return [tag for tag in (part.strip() for part in raw.split(",")) if tag]


def tag_book(book: Book, raw: str) -> list[TaggedBook]:
    return [TaggedBook(book=book, tag=tag) for tag in split_tags(raw)]


def enrich_books(
    books: Sequence[Book],
    provider: TaggingProvider,
    policy: str | None = None,
) -> list[TaggedBook]:
    """Run enrichment under ``policy``, defaulting to the provider's own policy."""
    policy = policy or provider.default_policy
    if policy == CONCURRENT_POLICY:
        return enrich_books_concurrently(books, provider)
    if policy == SEQUENTIAL_POLICY:
        return enrich_books_sequentially(books, provider)
    raise ValueError(f"Unknown enrichment policy {policy!r}")


def concurrency_limit(requested: int | None = None) -> int:
    """Resolve the gate size: ``requested``, else BOOKTAG_MAX_CONCURRENT, capped at 10."""
    if requested is None:
        requested = int(os.getenv("BOOKTAG_MAX_CONCURRENT", str(MAX_CONCURRENT_REQUESTS)))
    if requested < 1:
        raise ValueError(f"max_concurrent must be at least 1, got {requested}")
    return min(requested, MAX_CONCURRENT_REQUESTS)


def enrich_books_concurrently(
    books: Sequence[Book],
    provider: TaggingProvider,
    max_concurrent: int | None = None,
) -> list[TaggedBook]:
    """Tag every book with at most ``max_concurrent`` provider calls in flight.

    Returns once every book has been handled. Tags for one book stay together and
    in reply order; order across books is not guaranteed.

    Raises:
        EmptyBatchError: if ``books`` is empty.
    """
    if not books:
        raise EmptyBatchError("input book list is empty")

    max_concurrent = concurrency_limit(max_concurrent)

    LOGGER.info(
        "Starting concurrent tagging for %s books with provider=%s (max_concurrent=%s)",
        len(books),
        provider.name,
        max_concurrent,
    )
    start_time = time.monotonic()

    tagged_books: list[TaggedBook] = []
    results_lock = threading.Lock()

    def _enrich_one(book: Book) -> None:
        try:
            entries = tag_book(book, provider.tag(book))
        except Exception as exc:
            LOGGER.warning("Error tagging book '%s': %s. Marking as failed.", book.title, exc)
            entries = [TaggedBook(book=book, tag=FAILED_TAG)]

        with results_lock:
            tagged_books.extend(entries)

    with ThreadPoolExecutor(max_workers=max_concurrent, thread_name_prefix="tagger") as executor:
        futures = [executor.submit(_enrich_one, book) for book in books]

    # The executor has joined every worker; surface anything that escaped a task.
    for future in futures:
        future.result()

    LOGGER.info(
        "Finished tagging %s books in %.1fs. Resulted in %s individual tag entries.",
        len(books),
        time.monotonic() - start_time,
        len(tagged_books),
    )
    return tagged_books


def enrich_books_sequentially(books: Sequence[Book], provider: TaggingProvider) -> list[TaggedBook]:
    """Tag books one at a time; books whose call fails are left out of the result.

    Raises:
        EmptyBatchError: if ``books`` is empty.
    """
    if not books:
        raise EmptyBatchError("input book list is empty")

    LOGGER.info("Starting sequential tagging for %s books with provider=%s", len(books), provider.name)
    start_time = time.monotonic()

    tagged_books: list[TaggedBook] = []
    failed = 0
    for book in books:
        try:
            raw = provider.tag(book)
        except Exception as exc:
            failed += 1
            LOGGER.error("Error generating tags for book '%s': %s", book.title, exc)
            continue
        tagged_books.extend(tag_book(book, raw))

    LOGGER.info(
        "Finished tagging %s books in %.1fs: tag_entries=%s failed=%s",
        len(books),
        time.monotonic() - start_time,
        len(tagged_books),
        failed,
    )
    return tagged_books
