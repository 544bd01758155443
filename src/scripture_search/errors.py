"""Exceptions raised while loading, indexing and reading the scripture corpus."""


class NotFoundError(FileNotFoundError):
    """The corpus root, a book directory or a chapter file does not exist."""


class CorpusIOError(OSError):
    """A corpus path exists but could not be read."""


class BuildError(RuntimeError):
    """The verse index could not be built because the corpus root is unusable."""
