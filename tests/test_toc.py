"""
Tests for the book outline.

Tests:
- Nesting of headlines within a chapter
- Grouping chapters by part
- Plain-text rendering
"""

from rebook import Book
from rebook.services import TocService


def test_chapter_outline_nests_headlines(make_book):
    """Should nest === headings under their == heading."""
    root = make_book(
        {
            "CHAPS": "c\n",
            "c.re": "= Chapter\n== Setup\n=== Install\n=== Configure\n== Usage\n==== Too deep\n",
        }
    )
    chapter = Book.load(root).chapter("c")

    toc = TocService().extract_chapter_toc(chapter)

    assert toc.chapter_title == "Chapter"
    assert [e.title for e in toc.entries] == ["Setup", "Usage"]
    assert [e.title for e in toc.entries[0].children] == ["Install", "Configure"]
    assert toc.entries[0].children[1].number == (1, 2)
    assert toc.entries[1].children == []


def test_book_outline_groups_by_part(sample_book):
    """Should produce one outline part per book part."""
    toc = TocService().build_book_toc(Book.load(sample_book))

    assert [p.number for p in toc.parts] == [None, 1, 2, None]
    assert [p.name for p in toc.parts[1:3]] == ["Basics", "Advanced"]
    assert [c.chapter_id for c in toc.parts[1].chapters] == ["ch1", "ch2"]


def test_outline_text(sample_book):
    """Should render numbered chapters and sections."""
    text = TocService().build_book_toc(Book.load(sample_book)).to_text()
    lines = text.splitlines()

    assert lines[0] == "Preface"
    assert "Basics" in lines
    assert "1. First Chapter" in lines
    assert "  1 Introduction" in lines
    assert lines[-1] == "Afterword"
