"""Parse markdown chapter files into verse records."""

import re
from dataclasses import dataclass

# Matches lines like: "1. In the beginning..."
# or: "1 In the beginning..."
# or: "**1** In the beginning..."
VERSE_PATTERN = re.compile(r"^(\*\*)?(\d+)(\*\*)?[.\s]\s*(.+)$")

HEADER_MARKER = "#"


@dataclass(frozen=True)
class Verse:
    """A single verse, addressed by book, chapter and verse number."""

    book: str
    chapter: int
    verse: int
    text: str
    full_text: str

    @property
    def key(self) -> tuple[str, int, int]:
        return (self.book, self.chapter, self.verse)

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
        }


def parse_verses(content: str, book: str, chapter: int) -> list[Verse]:
    """
    Parse the verses out of one chapter's markdown text.

    Headers and blank lines are skipped. Lines that don't start with a verse
    number are dropped, so a verse that wraps onto several lines keeps only
    its first line.

    Args:
        content: Raw chapter text
        book: Book identifier the verses belong to
        chapter: Chapter number the verses belong to

    Returns:
        List of Verse objects in line order (verse 0 is never produced)
    """
    verses = []

    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith(HEADER_MARKER):
            continue

        match = VERSE_PATTERN.match(line)
        if not match:
            continue

        number = int(match.group(2))
        if number == 0:
            continue

        verses.append(
            Verse(
                book=book,
                chapter=chapter,
                verse=number,
                text=match.group(4),
                full_text=line,
            )
        )

    return verses


def chapter_title(content: str) -> str:
    """Return the text of the first header line, or an empty string."""
    for line in content.splitlines():
        line = line.strip()
        if line.startswith(HEADER_MARKER):
            return line.lstrip(HEADER_MARKER).strip()
    return ""
