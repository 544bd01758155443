"""Discover books and chapter files in the scripture corpus directory."""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from .errors import CorpusIOError, NotFoundError
from .parser import Verse, chapter_title, parse_verses

logger = logging.getLogger(__name__)

# Chapter files look like "Chapter_01.md", "Chapter_150.md"
CHAPTER_FILE_PATTERN = re.compile(r"^Chapter_(\d+)\.md$")


@dataclass(frozen=True)
class ChapterFile:
    """A chapter file on disk."""

    book: str
    number: int
    path: Path


@dataclass
class Chapter:
    """A chapter loaded for reading."""

    book: str
    number: int
    title: str
    content: str
    verses: list[Verse] = field(default_factory=list)


@dataclass
class Book:
    """A whole book loaded for reading."""

    name: str
    chapters: list[Chapter] = field(default_factory=list)

    @property
    def content(self) -> str:
        """The book as one markdown document: a title header, then every chapter."""
        parts = [f"# {self.name}\n\n"]
        for chapter in self.chapters:
            parts.append(chapter.content + "\n\n")
        return "".join(parts)


def chapter_number(filename: str) -> int | None:
    """
    Recover the chapter number from a chapter filename.

    Args:
        filename: Bare filename such as "Chapter_07.md"

    Returns:
        The chapter number with leading zeros stripped, or None if the name
        doesn't follow the chapter file convention or encodes chapter 0
    """
    match = CHAPTER_FILE_PATTERN.match(filename)
    if not match:
        return None
    number = int(match.group(1))
    return number if number > 0 else None


def _book_dir(root_dir: str | Path, book: str) -> Path:
    # Book ids are directory names, never paths
    if not book or book in (".", "..") or "/" in book or "\\" in book:
        raise NotFoundError(f"Book not found: {book!r}")
    return Path(root_dir) / book


def discover_books(root_dir: str | Path) -> list[str]:
    """
    Find every book directory in the corpus.

    A book is an immediate subdirectory of root_dir holding at least one
    chapter file. Subdirectories that can't be read are skipped.

    Args:
        root_dir: Corpus root directory

    Returns:
        Book identifiers in lexicographic order

    Raises:
        NotFoundError: If root_dir does not exist
        CorpusIOError: If root_dir exists but can't be listed
    """
    root_dir = Path(root_dir)

    if not root_dir.exists():
        raise NotFoundError(f"Corpus directory not found: {root_dir}")

    try:
        entries = sorted(root_dir.iterdir(), key=lambda p: p.name)
    except OSError as e:
        raise CorpusIOError(f"Failed to read corpus directory {root_dir}: {e}") from e

    books = []
    for entry in entries:
        try:
            if not entry.is_dir():
                continue
            if any(chapter_number(child.name) is not None for child in entry.iterdir()):
                books.append(entry.name)
        except OSError as e:
            logger.debug("Skipping unreadable directory %s: %s", entry, e)

    return books


def discover_chapters(root_dir: str | Path, book: str) -> list[ChapterFile]:
    """
    List the chapter files of one book.

    Args:
        root_dir: Corpus root directory
        book: Book identifier (directory name)

    Returns:
        ChapterFile objects sorted lexicographically by filename

    Raises:
        NotFoundError: If the book directory does not exist
        CorpusIOError: If the book directory can't be listed
    """
    book_dir = _book_dir(root_dir, book)

    if not book_dir.is_dir():
        raise NotFoundError(f"Book not found: {book}")

    try:
        names = sorted(child.name for child in book_dir.iterdir())
    except OSError as e:
        raise CorpusIOError(f"Failed to read book directory {book_dir}: {e}") from e

    chapters = []
    for name in names:
        number = chapter_number(name)
        if number is None:
            continue
        chapters.append(ChapterFile(book=book, number=number, path=book_dir / name))

    return chapters


def read_chapter_text(path: str | Path) -> str:
    """
    Read a chapter file as UTF-8 text.

    Bytes that aren't valid UTF-8 are replaced with U+FFFD.

    Raises:
        NotFoundError: If the file does not exist
        CorpusIOError: If the file exists but can't be read
    """
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            return f.read()
    except FileNotFoundError as e:
        raise NotFoundError(f"Chapter file not found: {path}") from e
    except OSError as e:
        raise CorpusIOError(f"Failed to read chapter file {path}: {e}") from e


def _read_chapter(chapter_file: ChapterFile) -> Chapter:
    content = read_chapter_text(chapter_file.path)
    return Chapter(
        book=chapter_file.book,
        number=chapter_file.number,
        title=chapter_title(content),
        content=content,
        verses=parse_verses(content, chapter_file.book, chapter_file.number),
    )


def load_chapter(root_dir: str | Path, book: str, chapter: int) -> Chapter:
    """
    Load one chapter for reading, with its title and parsed verses.

    Args:
        root_dir: Corpus root directory
        book: Book identifier
        chapter: Chapter number

    Returns:
        The loaded Chapter

    Raises:
        NotFoundError: If the book or chapter does not exist
        CorpusIOError: If the chapter file can't be read
    """
    for chapter_file in discover_chapters(root_dir, book):
        if chapter_file.number == chapter:
            return _read_chapter(chapter_file)

    raise NotFoundError(f"Chapter {chapter} not found in book {book!r}")


def load_book(root_dir: str | Path, book: str) -> Book:
    """
    Load every chapter of a book, in chapter file order.

    Args:
        root_dir: Corpus root directory
        book: Book identifier

    Returns:
        The loaded Book

    Raises:
        NotFoundError: If the book does not exist or has no chapter files
        CorpusIOError: If a chapter file can't be read
    """
    chapters = [_read_chapter(f) for f in discover_chapters(root_dir, book)]

    if not chapters:
        raise NotFoundError(f"No chapters found for book {book!r}")

    return Book(name=book, chapters=chapters)
