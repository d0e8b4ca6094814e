"""CLI entrypoint for the library export -> LLM tags -> SQLite pipeline."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys

from dotenv import load_dotenv

from enrichment import enrich_books
from exceptions import BookTagError
from library_export import load_library_export
from sqlite_sink import filter_untagged_books, insert_tagged_books
from tagging import POLICIES, PROVIDER_NAMES, get_provider


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line flags."""
    parser = argparse.ArgumentParser(description="Tag a Goodreads library export with an LLM and store the tags")
    parser.add_argument(
        "--input",
        default=os.getenv("LIBRARY_EXPORT_PATH", "data/goodreads_library_export.csv"),
        help="Path to the library export CSV",
    )
    parser.add_argument(
        "--db",
        default=os.getenv("BOOKTAG_DB_PATH", "db/taggedbooks.db"),
        help="Path to the SQLite store",
    )
    parser.add_argument(
        "--provider",
        choices=PROVIDER_NAMES,
        default=os.getenv("BOOKTAG_PROVIDER", "ollama"),
        help="Tagging provider: hosted 'openai' or 'claude', or a local 'ollama' model",
    )
    parser.add_argument("--model", default=None, help="Override the provider's default model name")
    parser.add_argument(
        "--policy",
        choices=POLICIES,
        default=None,
        help=(
            "Enrichment policy. 'concurrent' keeps failed books with an error tag; "
            "'sequential' drops them. Defaults to the provider's policy "
            "(ollama: concurrent, openai/claude: sequential)."
        ),
    )
    parser.add_argument(
        "--skip-tagged",
        action="store_true",
        help="Only tag books that have no rows in the store yet",
    )
    parser.add_argument(
        "--extract-only",
        action="store_true",
        help="Print the extracted books as JSON and exit, without tagging or writing",
    )
    return parser.parse_args(argv)


def run(args: argparse.Namespace) -> int:
    """Run one pipeline cycle and return the number of rows written."""
    books = load_library_export(args.input)
    logging.info("Loaded %s books from %s", len(books), args.input)

    if args.extract_only:
        print(json.dumps([book.to_dict() for book in books], indent=2))
        return 0

    if args.skip_tagged:
        books = filter_untagged_books(books, db_path=args.db)
        if not books:
            logging.info("All books are already tagged in %s; nothing to do.", args.db)
            return 0

    provider = get_provider(args.provider, model=args.model)
    tagged_books = enrich_books(books, provider, policy=args.policy)

    written = insert_tagged_books(tagged_books, db_path=args.db)
    logging.info("Run complete. books=%s tag_rows=%s", len(books), written)
    return written


def main(argv: list[str] | None = None) -> None:
    """Initialize config and execute the pipeline; exit non-zero on setup errors."""
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    args = parse_args(argv)

    try:
        run(args)
    except (BookTagError, OSError) as exc:
        logging.error("Fatal: %s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
