"""Prefix autocomplete over the words of the indexed verses."""

from collections.abc import Iterable

from .config import DEFAULT_SUGGESTION_LIMIT
from .index import VerseIndex
from .parser import Verse


def collect_suggestions(
    verses: Iterable[Verse], prefix: str, limit: int = DEFAULT_SUGGESTION_LIMIT
) -> list[str]:
    """
    Collect distinct lowercase words that extend a prefix.

    Args:
        verses: Verses to draw words from
        prefix: Prefix to complete, matched case-insensitively
        limit: Maximum number of words to return

    Returns:
        Words starting with the prefix and longer than it, in the order they
        were first seen. Scanning stops once limit words are found.
    """
    suggestions: dict[str, None] = {}
    lower_prefix = prefix.lower()

    if limit <= 0:
        return []

    for verse in verses:
        for word in verse.text.lower().split():
            if word.startswith(lower_prefix) and len(word) > len(lower_prefix):
                suggestions[word] = None
                if len(suggestions) >= limit:
                    return list(suggestions)

    return list(suggestions)


class SuggestionEngine:
    """Autocomplete suggestions drawn from a VerseIndex."""

    def __init__(self, index: VerseIndex):
        self.index = index

    def get_suggestions(self, prefix: str, limit: int = DEFAULT_SUGGESTION_LIMIT) -> list[str]:
        """Suggest up to limit words starting with prefix, building the index if needed."""
        store = self.index.ensure_ready()
        return collect_suggestions(store.verses(), prefix, limit)
