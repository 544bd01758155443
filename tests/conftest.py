"""Shared pytest fixtures for scripture-search tests."""

import pytest

from scripture_search.index import VerseIndex
from scripture_search.parser import Verse


@pytest.fixture
def sample_chapter_content():
    """Sample markdown chapter in the mixed verse formats the corpus uses."""
    return """# Genesis 1

1. In the beginning, God created the heavens and the earth.
2. The earth was without form and void, and darkness was over the face of the deep.
And the Spirit of God was hovering over the face of the waters.

**3** And God said, "Let there be light," and there was light.
4 And God saw that the light was good.

## The Second Day

5. God called the light Day, and the darkness he called Night.
"""


@pytest.fixture
def corpus_dir(tmp_path, sample_chapter_content):
    """Create a small corpus directory with two books."""
    root = tmp_path / "corpus"
    root.mkdir()

    genesis = root / "Genesis"
    genesis.mkdir()
    (genesis / "Chapter_01.md").write_text(sample_chapter_content, encoding="utf-8")
    (genesis / "Chapter_02.md").write_text(
        "# Genesis 2\n\n"
        "1. Thus the heavens and the earth were finished.\n"
        "2. And on the seventh day God finished his work.\n",
        encoding="utf-8",
    )
    (genesis / "notes.txt").write_text("1. Not a chapter file\n", encoding="utf-8")

    john = root / "John"
    john.mkdir()
    (john / "Chapter_03.md").write_text(
        "# John 3\n\n"
        "14. And as Moses lifted up the serpent in the wilderness.\n"
        "15. That whoever believes in him may have eternal life.\n"
        "16. For God so loved the world, that he gave his only Son.\n"
        "17. For God did not send his Son into the world to condemn the world.\n"
        "18. Whoever believes in him is not condemned.\n",
        encoding="utf-8",
    )

    # Not a book: no chapter files
    (root / "assets").mkdir()
    (root / "assets" / "cover.png").write_bytes(b"\x89PNG")

    return root


@pytest.fixture
def verse_index(corpus_dir):
    """An unbuilt VerseIndex over the sample corpus."""
    return VerseIndex(corpus_dir)


@pytest.fixture
def sample_verses():
    """Sample Verse objects for one chapter."""
    return [
        Verse(
            book="John",
            chapter=3,
            verse=n,
            text=f"Verse {n} text",
            full_text=f"{n}. Verse {n} text",
        )
        for n in range(1, 8)
    ]
