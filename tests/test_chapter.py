"""Tests for chapter content, titles and reference lookups."""

import io
import threading

import pytest

from rebook import Book, Chapter, ChapterSet, NotFoundError, Parameters


class TestContent:
    """Tests for content loading."""

    def test_lines_returns_independent_copies(self, sample_book):
        """Should not let callers mutate the cached lines."""
        chapter = Book.load(sample_book).chapter("ch1")

        first = chapter.lines()
        first.append("extra\n")
        first[0] = "changed\n"
        second = chapter.lines()

        assert second[0] == "= First Chapter\n"
        assert "extra\n" not in second
        assert first is not second

    def test_content_is_cached(self, sample_book):
        """Should not re-read the file after the first access."""
        chapter = Book.load(sample_book).chapter("ch3")
        assert chapter.content() == "= Third Chapter\n"

        (sample_book / "ch3.re").write_text("= Rewritten\n")

        assert chapter.content() == "= Third Chapter\n"

    def test_missing_file_raises_not_found(self, make_book):
        """Should report a chapter whose file is missing."""
        root = make_book({"CHAPS": "ghost\n"})
        chapter = Book.load(root).chapter("ghost")

        with pytest.raises(NotFoundError, match="no such file"):
            chapter.content()

    def test_euc_content_is_transcoded(self, make_book):
        """Should decode content with the configured legacy encoding."""
        root = make_book(
            {
                "config.yml": "inencoding: euc\n",
                "CHAPS": "ja\n",
                "ja.re": "= 日本語\n本文\n".encode("euc_jp"),
            }
        )
        chapter = Book.load(root).chapter("ja")

        assert chapter.content() == "= 日本語\n本文\n"

    def test_title_tag_is_case_sensitive(self, make_book):
        """Should only honour an exact-case tag for titles."""
        root = make_book(
            {
                "config.yml": "inencoding: SJIS\n",
                "CHAPS": "ja\n",
                "ja.re": "= 見出し\n".encode("cp932"),
            }
        )
        chapter = Book.load(root).chapter("ja")

        assert chapter.title() == "見出し"

    def test_untagged_content_is_detected(self, make_book):
        """Should auto-detect encodings without a tag."""
        root = make_book({"CHAPS": "ja\n", "ja.re": "= 章\n".encode("iso2022_jp")})
        chapter = Book.load(root).chapter("ja")

        assert chapter.title() == "章"
        assert chapter.content() == "= 章\n"


class TestTitle:
    """Tests for chapter titles."""

    def test_first_heading(self, sample_book):
        """Should use the text after the first = heading."""
        assert Book.load(sample_book).chapter("ch1").title() == "First Chapter"

    def test_no_heading(self, make_book):
        """Should return an empty title when there is no heading."""
        root = make_book({"CHAPS": "plain\n", "plain.re": "just text\n"})

        assert Book.load(root).chapter("plain").title() == ""

    def test_deeper_heading_counts(self, make_book):
        """Should strip any number of = markers."""
        root = make_book({"CHAPS": "c\n", "c.re": "text\n===  Deep  \n= Later\n"})

        assert Book.load(root).chapter("c").title() == "Deep"


class TestReferences:
    """Tests for reference lookups through a chapter."""

    def test_list_lookup(self, sample_book):
        """Should resolve lists defined in the chapter."""
        chapter = Book.load(sample_book).chapter("ch1")

        assert chapter.list("hello").caption == "Hello world"
        assert chapter.list("hello").lines == ("puts 'hello'",)
        with pytest.raises(NotFoundError):
            chapter.list("other")

    def test_table_and_footnote(self, sample_book):
        """Should resolve tables and footnotes."""
        book = Book.load(sample_book)

        assert book.chapter("ch2").table("tbl").caption == "Numbers"
        assert book.chapter("ch1").footnote("fn1").content == "A footnote"

    def test_index_is_built_once(self, sample_book):
        """Should return the same index object each time."""
        chapter = Book.load(sample_book).chapter("ch1")

        assert chapter.list_index() is chapter.list_index()

    def test_image_bound_to_book_image_dir(self, sample_book):
        """Should find image files under the book's image directory."""
        image = Book.load(sample_book).chapter("ch1").image("diagram")

        assert image.path == sample_book / "images" / "ch1-diagram.png"

    def test_numbered_image_wins_over_icon(self, make_book):
        """Should prefer the numbered image index over icons."""
        root = make_book(
            {
                "CHAPS": "c\n",
                "c.re": "See @<icon>{logo}.\n//image[logo][Numbered logo]\n//indepimage[solo]\n",
            }
        )
        chapter = Book.load(root).chapter("c")

        assert chapter.image("logo").caption == "Numbered logo"
        assert chapter.image("logo") is chapter.image_index()["logo"]
        assert chapter.image("solo") is chapter.indepimage_index()["solo"]
        with pytest.raises(NotFoundError):
            chapter.image("absent")

    def test_icon_wins_over_numberless(self, make_book):
        """Should prefer icons over numberless images."""
        root = make_book(
            {"CHAPS": "c\n", "c.re": "//numberlessimage[x][N]\n@<icon>{x}\n"}
        )
        chapter = Book.load(root).chapter("c")

        assert chapter.image("x") is chapter.icon_index()["x"]

    def test_headline_lookup(self, sample_book):
        """Should resolve headlines by caption."""
        headline = Book.load(sample_book).chapter("ch1").headline("Introduction")

        assert headline.number == (1,)

    def test_bibpaper_from_book(self, make_book):
        """Should resolve bibliography entries from the bib file."""
        root = make_book(
            {"CHAPS": "c\n", "c.re": "", "bib.re": "//bibpaper[k][Knuth]{\nTAOCP\n//}\n"}
        )
        book = Book.load(root)

        assert book.chapter("c").bibpaper("k").caption == "Knuth"
        assert book.chapter("c").bibpaper_index() is book.bibpaper_index()

    def test_bibpaper_without_bib_file(self, sample_book):
        """Should fail when the book has no bibliography."""
        chapter = Book.load(sample_book).chapter("ch1")

        with pytest.raises(NotFoundError, match="no such bib file"):
            chapter.bibpaper("k")


class TestManifestMembership:
    """Tests for on_manifest."""

    def test_listed_with_extension(self, sample_book):
        """Should detect file names listed on their own line."""
        book = Book.load(sample_book)

        assert book.chapter("ch3").on_manifest()
        assert not book.chapter("preface").on_manifest()

    def test_listed_without_extension(self, make_book):
        """Should require the file name with extension."""
        root = make_book({"CHAPS": "ch1\n"})

        assert not Book.load(root).chapter("ch1").on_manifest()


class TestStandaloneChapters:
    """Tests for chapters outside a book."""

    def test_stream_chapter(self):
        """Should read and cache content from a stream."""
        stream = io.BytesIO("= Piped\n//list[l][L]{\nx\n//}\n".encode("utf-8"))
        chapter = Chapter.for_stdin(stream)

        assert chapter.book is None
        assert chapter.id == "-"
        assert chapter.title() == "Piped"
        assert chapter.list("l").lines == ("x",)
        assert chapter.content() == chapter.content()
        assert chapter.volume().lines == 4

    def test_text_stream(self):
        """Should accept text streams without decoding."""
        chapter = Chapter.for_stdin(io.StringIO("= Text\n"))

        assert chapter.lines() == ["= Text\n"]

    def test_for_path(self, tmp_path):
        """Should use default parameters for a lone file."""
        path = tmp_path / "solo.re"
        path.write_text("= Solo\n//image[pic][P]\n")
        (tmp_path / "images").mkdir()
        (tmp_path / "images" / "solo-pic.jpg").write_bytes(b"")

        chapter = Chapter.for_path(7, path)

        assert chapter.number == 7
        assert chapter.id == "solo"
        assert chapter.parameters == Parameters.default()
        assert chapter.image("pic").path == tmp_path / "images" / "solo-pic.jpg"
        assert not chapter.on_manifest()

    def test_chapter_set_for_paths(self, sample_book):
        """Should intern paths into their books' chapters."""
        chapter_set = ChapterSet.for_paths([sample_book / "ch1.re", sample_book / "ch3.re"])
        chapters = chapter_set.chapters()

        assert chapter_set.no_part is True
        assert [c.id for c in chapters] == ["ch1", "ch3"]
        assert chapters[0].book is chapters[1].book
        assert chapters[1].number == 3

    def test_chapter_set_unknown_path(self, sample_book):
        """Should fail for files that are not chapters of their book."""
        stray = sample_book / "stray.re"
        stray.write_text("")

        with pytest.raises(NotFoundError, match="no such file"):
            ChapterSet.for_paths([stray])

    def test_chapter_set_for_empty_argv(self, monkeypatch):
        """Should read standard input when no files are given."""
        monkeypatch.setattr("sys.stdin", io.TextIOWrapper(io.BytesIO(b"= In\n")))
        chapter_set = ChapterSet.for_argv([])

        assert [c.title() for c in chapter_set.each_chapter()] == ["In"]


class TestConcurrency:
    """Tests for compute-once lazy values."""

    def test_concurrent_first_access_parses_once(self, sample_book, monkeypatch):
        """Should build an index once under concurrent access."""
        from rebook.services import reference_index

        calls = []
        real_parse = reference_index.ListIndex.parse.__func__

        def counting_parse(cls, lines):
            calls.append(1)
            return real_parse(cls, lines)

        monkeypatch.setattr(
            reference_index.ListIndex, "parse", classmethod(counting_parse)
        )
        chapter = Book.load(sample_book).chapter("ch1")

        results = []
        threads = [
            threading.Thread(target=lambda: results.append(chapter.list_index()))
            for _ in range(8)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(calls) == 1
        assert all(r is results[0] for r in results)
