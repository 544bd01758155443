"""Tests for the verse index and its build lifecycle."""

import threading

import pytest

from scripture_search import index as index_module
from scripture_search.errors import BuildError
from scripture_search.index import IndexState, VerseIndex, VerseStore
from scripture_search.parser import Verse


def store_contents(store):
    return {v.key: v.text for v in store.verses()}


class TestVerseStore:
    """Tests for VerseStore."""

    def test_chapter_verses_sorted(self):
        verses = {
            ("John", 3, 17): Verse("John", 3, 17, "b", "17 b"),
            ("John", 3, 2): Verse("John", 3, 2, "a", "2 a"),
            ("Ruth", 1, 1): Verse("Ruth", 1, 1, "c", "1 c"),
        }
        store = VerseStore(verses)

        assert [v.verse for v in store.chapter_verses("John", 3)] == [2, 17]
        assert store.chapter_verses("John", 4) == []
        assert store.books() == ["John", "Ruth"]
        assert len(store) == 3

    def test_iterates_in_insertion_order(self):
        verses = {
            ("Ruth", 1, 2): Verse("Ruth", 1, 2, "second", "2 second"),
            ("Ruth", 1, 1): Verse("Ruth", 1, 1, "first", "1 first"),
        }
        store = VerseStore(verses)

        assert [v.verse for v in store.verses()] == [2, 1]


class TestVerseIndexBuild:
    """Tests for VerseIndex.build."""

    def test_initial_state(self, verse_index):
        assert verse_index.state is IndexState.EMPTY
        assert verse_index.is_ready is False
        assert verse_index.last_build is None

    def test_build(self, verse_index):
        count = verse_index.build()

        assert count == 5 + 2 + 5
        assert verse_index.state is IndexState.READY
        assert verse_index.is_ready is True

        stats = verse_index.last_build
        assert stats.books == 2
        assert stats.chapters == 3
        assert stats.verses == count
        assert stats.skipped_chapters == 0

    def test_verses_belong_to_discovered_chapters(self, verse_index):
        verse_index.build()
        store = verse_index.ensure_ready()

        chapters = {("Genesis", 1), ("Genesis", 2), ("John", 3)}
        for verse in store.verses():
            assert verse.chapter >= 1
            assert verse.verse >= 1
            assert (verse.book, verse.chapter) in chapters

    def test_rebuild_is_idempotent(self, verse_index):
        verse_index.build()
        first = store_contents(verse_index.ensure_ready())

        verse_index.build()
        second = store_contents(verse_index.ensure_ready())

        assert first == second

    def test_rebuild_replaces_content(self, verse_index, corpus_dir):
        verse_index.build()
        (corpus_dir / "Genesis" / "Chapter_02.md").unlink()

        verse_index.build()
        store = verse_index.ensure_ready()

        assert store.chapter_verses("Genesis", 2) == []
        assert store.get(("Genesis", 1, 1)) is not None

    def test_duplicate_verse_last_write_wins(self, tmp_path):
        book = tmp_path / "Ruth"
        book.mkdir()
        (book / "Chapter_01.md").write_text("1. First\n2. Middle\n1. Second\n")

        index = VerseIndex(tmp_path)
        index.build()
        store = index.ensure_ready()

        assert len(store) == 2
        assert store.get(("Ruth", 1, 1)).text == "Second"

    def test_unreadable_chapter_skipped(self, verse_index, mocker):
        original = index_module.read_chapter_text

        def fake_read_chapter_text(path):
            if path.name == "Chapter_02.md":
                raise index_module.CorpusIOError("denied")
            return original(path)

        mocker.patch.object(index_module, "read_chapter_text", side_effect=fake_read_chapter_text)

        count = verse_index.build()

        assert count == 5 + 5
        assert verse_index.last_build.skipped_chapters == 1
        assert verse_index.state is IndexState.READY

    def test_invalid_utf8_chapter_still_indexed(self, tmp_path):
        (tmp_path / "John").mkdir()
        (tmp_path / "John" / "Chapter_01.md").write_bytes(
            b"1. In the beginning\n2. the Word\x92s light\n3. And it was so\n"
        )
        index = VerseIndex(tmp_path)

        assert index.build() == 3
        assert index.last_build.skipped_chapters == 0
        assert index.ensure_ready().get(("John", 1, 2)).text == "the Word\ufffds light"

    def test_unreadable_book_skipped(self, verse_index, mocker):
        original = index_module.discover_chapters

        def fake_discover_chapters(root_dir, book):
            if book == "John":
                raise index_module.CorpusIOError("denied")
            return original(root_dir, book)

        mocker.patch.object(index_module, "discover_chapters", side_effect=fake_discover_chapters)

        verse_index.build()
        store = verse_index.ensure_ready()

        assert store.books() == ["Genesis"]

    def test_missing_root_raises_build_error(self, tmp_path):
        index = VerseIndex(tmp_path / "missing")

        with pytest.raises(BuildError):
            index.build()

        assert index.state is IndexState.EMPTY
        assert index.is_ready is False

    def test_failed_rebuild_keeps_previous_snapshot(self, verse_index, mocker):
        verse_index.build()
        before = verse_index.ensure_ready()

        mocker.patch.object(
            index_module, "discover_books", side_effect=index_module.NotFoundError("gone")
        )

        with pytest.raises(BuildError):
            verse_index.build()

        assert verse_index.state is IndexState.READY
        assert verse_index.ensure_ready() is before

    def test_retry_after_failure(self, tmp_path):
        index = VerseIndex(tmp_path / "corpus")

        with pytest.raises(BuildError):
            index.ensure_ready()

        book = tmp_path / "corpus" / "Ruth"
        book.mkdir(parents=True)
        (book / "Chapter_01.md").write_text("1. Text\n")

        assert len(index.ensure_ready()) == 1

    def test_default_corpus_dir_from_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SCRIPTURE_SEARCH_CORPUS_DIR", str(tmp_path))

        assert VerseIndex().corpus_dir == tmp_path


class TestVerseIndexConcurrency:
    """Tests for exclusive and coalesced builds."""

    def test_ensure_ready_builds_once(self, verse_index, mocker):
        spy = mocker.spy(verse_index, "_load_corpus")

        verse_index.ensure_ready()
        verse_index.ensure_ready()

        assert spy.call_count == 1

    def test_concurrent_lazy_builds_coalesce(self, verse_index, mocker):
        """Test that readers arriving mid-build wait for it instead of building again."""
        release = threading.Event()
        started = threading.Event()
        original = verse_index._load_corpus
        calls = []

        def slow_load():
            calls.append(1)
            started.set()
            release.wait(timeout=5)
            return original()

        mocker.patch.object(verse_index, "_load_corpus", side_effect=slow_load)

        stores = []
        errors = []

        def reader():
            try:
                stores.append(verse_index.ensure_ready())
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=reader) for _ in range(8)]
        threads[0].start()
        assert started.wait(timeout=5)
        assert verse_index.state is IndexState.BUILDING

        for t in threads[1:]:
            t.start()
        release.set()
        for t in threads:
            t.join(timeout=5)

        assert errors == []
        assert len(calls) == 1
        assert len(stores) == 8
        assert all(s is stores[0] for s in stores)

    def test_readers_see_previous_snapshot_during_rebuild(self, verse_index, mocker):
        verse_index.build()
        before = verse_index.ensure_ready()

        release = threading.Event()
        started = threading.Event()
        original = verse_index._load_corpus

        def slow_load():
            started.set()
            release.wait(timeout=5)
            return original()

        mocker.patch.object(verse_index, "_load_corpus", side_effect=slow_load)

        builder = threading.Thread(target=verse_index.build)
        builder.start()
        assert started.wait(timeout=5)

        assert verse_index.state is IndexState.BUILDING
        assert verse_index.ensure_ready() is before

        release.set()
        builder.join(timeout=5)

        assert verse_index.state is IndexState.READY
        assert verse_index.ensure_ready() is not before
