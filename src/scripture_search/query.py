"""Full-text verse search with heuristic relevance ranking."""

import re
from dataclasses import dataclass, field

from .config import DEFAULT_CONTEXT_SIZE, DEFAULT_SEARCH_LIMIT, MIN_QUERY_LENGTH
from .index import VerseIndex
from .parser import Verse

HIGHLIGHT_OPEN = "<mark>"
HIGHLIGHT_CLOSE = "</mark>"

PHRASE_MATCH_SCORE = 100
EXACT_WORD_SCORE = 50
PARTIAL_WORD_SCORE = 25
SHORT_VERSE_SCORE = 10
SHORT_VERSE_LENGTH = 100


@dataclass
class QueryResult:
    """A verse matching a search query."""

    book: str
    chapter: int
    verse: int
    text: str
    full_text: str
    relevance: int
    highlight: str
    context: list[Verse] = field(default_factory=list)

    @property
    def reference(self) -> str:
        return f"{self.book} {self.chapter}:{self.verse}"

    def to_dict(self) -> dict:
        return {
            "book": self.book,
            "chapter": self.chapter,
            "verse": self.verse,
            "text": self.text,
            "fullText": self.full_text,
            "context": [v.to_dict() for v in self.context],
            "relevance": self.relevance,
            "highlight": self.highlight,
        }


@dataclass
class SearchResponse:
    """Ranked search results plus the number of matches before truncation."""

    query: str
    results: list[QueryResult]
    total: int = 0

    @property
    def has_more(self) -> bool:
        return self.total > len(self.results)

    def to_dict(self) -> dict:
        return {
            "results": [r.to_dict() for r in self.results],
            "total": self.total,
            "hasMore": self.has_more,
        }


def calculate_relevance(text: str, query: str) -> int:
    """
    Score how well a verse matches a query.

    The whole query appearing in the text is worth 100. Every pairing of a
    query word with a verse word adds 50 when the two are equal, or 25 when
    the verse word only contains the query word. Verses shorter than 100
    characters get another 10.

    Args:
        text: Verse text
        query: Search query

    Returns:
        Non-negative score, only comparable with scores for the same query
    """
    lower_text = text.lower()
    lower_query = query.strip().lower()

    score = 0

    if lower_query in lower_text:
        score += PHRASE_MATCH_SCORE

    text_words = lower_text.split()
    for query_word in lower_query.split():
        for text_word in text_words:
            if text_word == query_word:
                score += EXACT_WORD_SCORE
            elif query_word in text_word:
                score += PARTIAL_WORD_SCORE

    if len(text) < SHORT_VERSE_LENGTH:
        score += SHORT_VERSE_SCORE

    return score


def highlight_text(text: str, query: str) -> str:
    """
    Wrap each query word's occurrences in the text with highlight markers.

    Words are applied one after another to the already highlighted string, so
    a word that also occurs inside an earlier word's highlight gets wrapped
    again (e.g. "the he" gives "<mark>t<mark>he</mark></mark>").
    """
    highlighted = text
    for word in query.strip().lower().split():
        pattern = re.compile(re.escape(word), re.IGNORECASE)
        highlighted = pattern.sub(
            lambda m: f"{HIGHLIGHT_OPEN}{m.group(0)}{HIGHLIGHT_CLOSE}", highlighted
        )
    return highlighted


def context_window(chapter_verses: list[Verse], verse: int, context_size: int) -> list[Verse]:
    """
    Select the verses surrounding a target verse.

    Args:
        chapter_verses: Every verse of the chapter, ascending by verse number
        verse: Target verse number
        context_size: Number of neighbours to include on each side

    Returns:
        The target and up to context_size verses either side, ascending.
        Empty if the target is not in chapter_verses.
    """
    position = next((i for i, v in enumerate(chapter_verses) if v.verse == verse), None)
    if position is None:
        return []

    start = max(0, position - context_size)
    end = min(len(chapter_verses), position + context_size + 1)
    return chapter_verses[start:end]


class VerseSearchEngine:
    """Substring search over every verse in a VerseIndex."""

    def __init__(self, index: VerseIndex):
        """
        Initialize the search engine.

        Args:
            index: Index to search. Built on first use if it is still empty
        """
        self.index = index

    def search(
        self,
        query: str,
        book: str | None = None,
        limit: int = DEFAULT_SEARCH_LIMIT,
        include_context: bool = True,
        context_size: int = DEFAULT_CONTEXT_SIZE,
    ) -> SearchResponse:
        """
        Search for verses containing the query.

        Args:
            query: Text to look for; matched case-insensitively as a whole phrase
            book: Optional book to restrict results to (exact match; empty means all books)
            limit: Maximum number of results to return
            include_context: Whether to attach the surrounding verses
            context_size: Number of verses either side to attach

        Returns:
            SearchResponse with results ordered by relevance, highest first.
            Queries shorter than two characters return no results.

        Raises:
            ValueError: If limit or context_size is negative
            BuildError: If the index had to be built and the corpus is unreadable
        """
        if limit < 0:
            raise ValueError(f"limit must be >= 0, got {limit}")
        if context_size < 0:
            raise ValueError(f"context_size must be >= 0, got {context_size}")

        query = (query or "").strip()
        if len(query) < MIN_QUERY_LENGTH:
            return SearchResponse(query=query, results=[], total=0)

        store = self.index.ensure_ready()
        lower_query = query.lower()

        candidates = []
        for verse in store.verses():
            if book and verse.book != book:
                continue
            if lower_query in verse.text.lower():
                candidates.append((calculate_relevance(verse.text, query), verse))

        # sorted() is stable, so equal scores keep store order
        candidates = sorted(candidates, key=lambda c: c[0], reverse=True)

        results = []
        for relevance, verse in candidates[:limit]:
            context = []
            if include_context:
                context = context_window(
                    store.chapter_verses(verse.book, verse.chapter), verse.verse, context_size
                )

            results.append(
                QueryResult(
                    book=verse.book,
                    chapter=verse.chapter,
                    verse=verse.verse,
                    text=verse.text,
                    full_text=verse.full_text,
                    relevance=relevance,
                    highlight=highlight_text(verse.text, query),
                    context=context,
                )
            )

        return SearchResponse(query=query, results=results, total=len(candidates))
