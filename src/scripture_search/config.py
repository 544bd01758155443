"""Default locations and settings, overridable through environment variables."""

import os
from pathlib import Path

CORPUS_DIR_ENV = "SCRIPTURE_SEARCH_CORPUS_DIR"
CORPUS_URL_ENV = "SCRIPTURE_SEARCH_CORPUS_URL"

# The ESV markdown corpus, one directory per book under by_chapter/
DEFAULT_CORPUS_URL = "https://github.com/lguenth/mdbible/archive/refs/heads/main.zip"

DEFAULT_SEARCH_LIMIT = 50
DEFAULT_CONTEXT_SIZE = 2
DEFAULT_SUGGESTION_LIMIT = 10
MIN_QUERY_LENGTH = 2


def get_default_corpus_dir() -> Path:
    """
    Get the corpus directory.

    Returns:
        Path from SCRIPTURE_SEARCH_CORPUS_DIR if set, otherwise ~/.scripture-search/corpus
    """
    corpus_dir = os.getenv(CORPUS_DIR_ENV)
    if corpus_dir:
        return Path(corpus_dir).expanduser()
    return Path.home() / ".scripture-search" / "corpus"


def get_corpus_url() -> str:
    """Get the URL of the corpus archive to download."""
    return os.getenv(CORPUS_URL_ENV) or DEFAULT_CORPUS_URL
