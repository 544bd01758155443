"""In-memory verse index built from the scripture corpus."""

import enum
import logging
import threading
import time
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from .config import get_default_corpus_dir
from .corpus import discover_books, discover_chapters, read_chapter_text
from .errors import BuildError, CorpusIOError, NotFoundError
from .parser import Verse, parse_verses

logger = logging.getLogger(__name__)

VerseKey = tuple[str, int, int]


class IndexState(enum.Enum):
    """Lifecycle of a VerseIndex."""

    EMPTY = "empty"
    BUILDING = "building"
    READY = "ready"


@dataclass(frozen=True)
class BuildStats:
    """Summary of a completed build."""

    books: int
    chapters: int
    verses: int
    skipped_chapters: int
    seconds: float


class VerseStore:
    """
    A point-in-time snapshot of every verse in the corpus.

    The store is never modified after construction, so any number of readers
    can use it without locking.
    """

    def __init__(self, verses: dict[VerseKey, Verse]):
        self._verses = verses

        chapters: dict[tuple[str, int], list[Verse]] = {}
        for verse in verses.values():
            chapters.setdefault((verse.book, verse.chapter), []).append(verse)
        for chapter_verses in chapters.values():
            chapter_verses.sort(key=lambda v: v.verse)
        self._chapters = chapters

    def __len__(self) -> int:
        return len(self._verses)

    def get(self, key: VerseKey) -> Verse | None:
        return self._verses.get(key)

    def verses(self) -> Iterator[Verse]:
        """Iterate over verses in insertion order."""
        return iter(self._verses.values())

    def chapter_verses(self, book: str, chapter: int) -> list[Verse]:
        """All verses of one chapter, ascending by verse number."""
        return list(self._chapters.get((book, chapter), []))

    def books(self) -> list[str]:
        """Books present in the store, in first-seen order."""
        return list(dict.fromkeys(book for book, _ in self._chapters))


class VerseIndex:
    """
    Owns the verse store and guards how it is built.

    Builds are exclusive: a lock ensures only one runs at a time. Each build
    fills a fresh store and swaps it in when complete, so readers only ever
    see a fully built snapshot.
    """

    def __init__(self, corpus_dir: str | Path | None = None):
        """
        Initialize an empty index.

        Args:
            corpus_dir: Corpus root directory. Defaults to the configured corpus directory
        """
        if corpus_dir is None:
            corpus_dir = get_default_corpus_dir()
        self.corpus_dir = Path(corpus_dir)

        self._build_lock = threading.Lock()
        self._store: VerseStore | None = None
        self._state = IndexState.EMPTY
        self.last_build: BuildStats | None = None

    @property
    def state(self) -> IndexState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._store is not None

    def build(self) -> int:
        """
        Rebuild the index from the corpus, replacing any previous content.

        Blocks while another build is in flight, then runs its own.

        Returns:
            Number of verses in the new store

        Raises:
            BuildError: If the corpus root can't be enumerated
        """
        with self._build_lock:
            return len(self._build_locked())

    def ensure_ready(self) -> VerseStore:
        """
        Return the current store, building it first if the index is empty.

        Callers that arrive while a build is in flight wait for it and reuse
        its result instead of starting another.
        """
        store = self._store
        if store is not None:
            return store

        with self._build_lock:
            if self._store is not None:
                return self._store
            return self._build_locked()

    def _build_locked(self) -> VerseStore:
        previous_state = IndexState.READY if self._store is not None else IndexState.EMPTY
        self._state = IndexState.BUILDING
        logger.info("Building search index from %s", self.corpus_dir)

        try:
            store, stats = self._load_corpus()
        except Exception:
            self._state = previous_state
            raise

        self._store = store
        self.last_build = stats
        self._state = IndexState.READY
        logger.info(
            "Search index built with %d verses from %d chapters in %d books (%.2fs)",
            stats.verses,
            stats.chapters,
            stats.books,
            stats.seconds,
        )
        if stats.skipped_chapters:
            logger.warning("Skipped %d unreadable chapters", stats.skipped_chapters)
        return store

    def _load_corpus(self) -> tuple[VerseStore, BuildStats]:
        started = time.perf_counter()

        try:
            books = discover_books(self.corpus_dir)
        except (NotFoundError, CorpusIOError) as e:
            raise BuildError(f"Failed to read corpus directory {self.corpus_dir}: {e}") from e

        verses: dict[VerseKey, Verse] = {}
        chapter_count = 0
        skipped = 0

        for book in books:
            try:
                chapter_files = discover_chapters(self.corpus_dir, book)
            except (NotFoundError, CorpusIOError) as e:
                logger.warning("Skipping book %s: %s", book, e)
                continue

            for chapter_file in chapter_files:
                try:
                    content = read_chapter_text(chapter_file.path)
                except (NotFoundError, CorpusIOError) as e:
                    logger.warning("Skipping chapter file %s: %s", chapter_file.path, e)
                    skipped += 1
                    continue

                chapter_count += 1
                for verse in parse_verses(content, book, chapter_file.number):
                    verses[verse.key] = verse

        stats = BuildStats(
            books=len(books),
            chapters=chapter_count,
            verses=len(verses),
            skipped_chapters=skipped,
            seconds=time.perf_counter() - started,
        )
        return VerseStore(verses), stats
