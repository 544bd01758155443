"""Command line interface for scripture search."""

import argparse
import json
import logging
import sys

from .config import (
    DEFAULT_CONTEXT_SIZE,
    DEFAULT_SEARCH_LIMIT,
    DEFAULT_SUGGESTION_LIMIT,
    get_default_corpus_dir,
)
from .corpus import discover_books, load_book, load_chapter
from .downloader import ensure_corpus_downloaded
from .index import VerseIndex
from .query import VerseSearchEngine
from .suggestions import SuggestionEngine


def cmd_download(args):
    """Handle the download command."""
    try:
        corpus_dir = ensure_corpus_downloaded(
            corpus_dir=args.corpus_dir, url=args.url, force=args.force
        )
        print(f"✓ Corpus available at {corpus_dir}")
        return 0
    except Exception as e:
        print(f"Error during download: {e}", file=sys.stderr)
        return 1


def cmd_index(args):
    """Handle the index command."""
    try:
        index = VerseIndex(args.corpus_dir)
        index.build()
        stats = index.last_build
        print(
            f"✓ Indexed {stats.verses} verses from {stats.chapters} chapters "
            f"in {stats.books} books ({stats.seconds:.2f}s)"
        )
        if stats.skipped_chapters:
            print(f"  Skipped {stats.skipped_chapters} unreadable chapters")
        return 0
    except Exception as e:
        print(f"Error during indexing: {e}", file=sys.stderr)
        return 1


def cmd_books(args):
    """Handle the books command."""
    try:
        for book in discover_books(args.corpus_dir):
            print(book)
        return 0
    except Exception as e:
        print(f"Error listing books: {e}", file=sys.stderr)
        return 1


def cmd_read(args):
    """Handle the read command."""
    try:
        if args.chapter is None:
            chapters = load_book(args.corpus_dir, args.book).chapters
        else:
            chapters = [load_chapter(args.corpus_dir, args.book, args.chapter)]

        for i, chapter in enumerate(chapters):
            if i:
                print()
            print(chapter.title or f"{chapter.book} {chapter.number}")
            print()
            for verse in chapter.verses:
                print(f"{verse.verse:>3} {verse.text}")
        return 0
    except Exception as e:
        print(f"Error reading: {e}", file=sys.stderr)
        return 1


def cmd_search(args):
    """Handle the search command."""
    try:
        engine = VerseSearchEngine(VerseIndex(args.corpus_dir))
        response = engine.search(
            args.query,
            book=args.book,
            limit=args.limit,
            include_context=args.context,
            context_size=args.context_size,
        )

        if args.json:
            print(json.dumps(response.to_dict(), ensure_ascii=False, indent=2))
            return 0

        if not response.results:
            print("No matching verses found.")
            return 0

        print(f"Found {response.total} matching verses", end="")
        if response.has_more:
            print(f" (showing top {len(response.results)})", end="")
        print()

        for i, result in enumerate(response.results, 1):
            print(f"\n[{i}] {result.reference}  (relevance: {result.relevance})")
            if result.context:
                for verse in result.context:
                    marker = ">" if verse.verse == result.verse else " "
                    print(f"  {marker} {verse.verse:>3} {verse.text}")
            else:
                print(f"    {result.text}")

        return 0

    except Exception as e:
        print(f"Error during search: {e}", file=sys.stderr)
        return 1


def cmd_suggest(args):
    """Handle the suggest command."""
    try:
        engine = SuggestionEngine(VerseIndex(args.corpus_dir))
        for word in engine.get_suggestions(args.prefix, limit=args.limit):
            print(word)
        return 0
    except Exception as e:
        print(f"Error during suggest: {e}", file=sys.stderr)
        return 1


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Scripture Search - Full-text search over a markdown scripture corpus"
    )
    parser.add_argument(
        "--corpus-dir",
        type=str,
        help="Path to corpus directory (default: $SCRIPTURE_SEARCH_CORPUS_DIR or "
        "~/.scripture-search/corpus)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show progress logging")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Download command
    download_parser = subparsers.add_parser("download", help="Download the scripture corpus")
    download_parser.add_argument("--url", type=str, help="Corpus archive URL")
    download_parser.add_argument(
        "--force", action="store_true", help="Download even if the corpus already exists"
    )

    # Index command
    subparsers.add_parser("index", help="Build the search index and report statistics")

    # Books command
    subparsers.add_parser("books", help="List the books in the corpus")

    # Read command
    read_parser = subparsers.add_parser("read", help="Print a chapter, or a whole book")
    read_parser.add_argument("book", type=str, help="Book name (directory name)")
    read_parser.add_argument(
        "chapter", type=int, nargs="?", help="Chapter number (default: the whole book)"
    )

    # Search command
    search_parser = subparsers.add_parser("search", help="Search verses for a phrase")
    search_parser.add_argument("query", type=str, help="Text to search for")
    search_parser.add_argument("--book", type=str, help="Only search this book")
    search_parser.add_argument(
        "--limit",
        type=int,
        default=DEFAULT_SEARCH_LIMIT,
        help=f"Maximum number of results (default: {DEFAULT_SEARCH_LIMIT})",
    )
    search_parser.add_argument(
        "--no-context",
        dest="context",
        action="store_false",
        help="Don't show surrounding verses",
    )
    search_parser.add_argument(
        "--context-size",
        type=int,
        default=DEFAULT_CONTEXT_SIZE,
        help=f"Verses to show either side of a match (default: {DEFAULT_CONTEXT_SIZE})",
    )
    search_parser.add_argument("--json", action="store_true", help="Print results as JSON")

    # Suggest command
    suggest_parser = subparsers.add_parser("suggest", help="Autocomplete a word prefix")
    suggest_parser.add_argument("prefix", type=str, help="Word prefix")
    suggest_parser.add_argument(
        "--limit",
        type=int,
        default=DEFAULT_SUGGESTION_LIMIT,
        help=f"Maximum number of suggestions (default: {DEFAULT_SUGGESTION_LIMIT})",
    )

    args = parser.parse_args(argv)

    if args.corpus_dir is None:
        args.corpus_dir = get_default_corpus_dir()

    if args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    commands = {
        "download": cmd_download,
        "index": cmd_index,
        "books": cmd_books,
        "read": cmd_read,
        "search": cmd_search,
        "suggest": cmd_suggest,
    }
    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        return 0
    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
