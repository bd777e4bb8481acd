"""Domain models for content features.

Provides dataclasses for the elements a chapter can reference by id
(lists, tables, footnotes, images, headlines, bibliography entries)
and for the headline outline of a book.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class ListItem:
    """A ``//list`` block.

    ``lines`` holds the block body without the opening and
    closing markers.
    """

    id: str
    number: int
    caption: str = ""
    lines: tuple[str, ...] = ()
    line_number: int = 0  # 1-based line of the opening marker


@dataclass(frozen=True)
class TableItem:
    """A ``//table`` block."""

    id: str
    number: int
    caption: str = ""
    lines: tuple[str, ...] = ()
    line_number: int = 0


@dataclass(frozen=True)
class FootnoteItem:
    """A ``//footnote`` definition."""

    id: str
    number: int
    content: str = ""


@dataclass(frozen=True)
class ImageItem:
    """An image anchor and the files found for it.

    ``paths`` is ordered by accepted-extension priority and is empty
    when no file exists on disk.
    """

    id: str
    number: int
    caption: str = ""
    paths: tuple[Path, ...] = ()

    @property
    def bound(self) -> bool:
        """True if at least one image file was found."""
        return bool(self.paths)

    @property
    def path(self) -> Optional[Path]:
        return self.paths[0] if self.paths else None


@dataclass(frozen=True)
class HeadlineItem:
    """A section heading below the chapter title.

    ``id`` is the ``|``-joined path of labels (or captions) from the
    top-level section down to this one.
    """

    id: str
    number: tuple[int, ...]
    caption: str
    level: int  # 2 for ==, 3 for ===, ...


@dataclass(frozen=True)
class BibpaperItem:
    """A ``//bibpaper`` entry of the bibliography file."""

    id: str
    number: int
    caption: str = ""
    lines: tuple[str, ...] = ()


@dataclass
class TocEntry:
    """A single headline in the book outline."""

    title: str
    level: int  # 1 for ==, 2 for ===, ...
    number: tuple[int, ...] = ()
    children: list["TocEntry"] = field(default_factory=list)

    @property
    def indent(self) -> str:
        """Get indentation for rendering."""
        return "  " * (self.level - 1)


@dataclass
class ChapterToc:
    """Outline of a single chapter."""

    chapter_id: str
    chapter_number: Optional[int]
    chapter_title: str
    entries: list[TocEntry] = field(default_factory=list)


@dataclass
class PartToc:
    """Outline of a part."""

    number: Optional[int]
    name: Optional[str]
    chapters: list[ChapterToc] = field(default_factory=list)


@dataclass
class BookToc:
    """Full book outline grouped by part."""

    parts: list[PartToc] = field(default_factory=list)

    def to_text(self) -> str:
        """Render the outline as indented plain text."""
        lines: list[str] = []
        for part in self.parts:
            if part.name:
                lines.append(part.name)
            for chapter in part.chapters:
                prefix = (
                    "" if chapter.chapter_number is None else f"{chapter.chapter_number}. "
                )
                lines.append(f"{prefix}{chapter.chapter_title or chapter.chapter_id}")
                for entry in chapter.entries:
                    lines.extend(_render_toc_entry(entry))
        return "\n".join(lines)


def _render_toc_entry(entry: TocEntry) -> list[str]:
    """Render a TOC entry and its children."""
    number = ".".join(str(n) for n in entry.number)
    lines = [f"  {entry.indent}{number} {entry.title}"]
    for child in entry.children:
        lines.extend(_render_toc_entry(child))
    return lines
