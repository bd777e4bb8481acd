"""TOC (Table of Contents) service implementation.

Builds a hierarchical outline of a book from the title and headline
index of each chapter.
"""

from typing import TYPE_CHECKING, Iterable

from ..domain.content import BookToc, ChapterToc, HeadlineItem, PartToc, TocEntry

if TYPE_CHECKING:
    from ..domain import Book, Chapter


class TocService:
    """Service for building a book outline.

    Uses each chapter's headline index, so building the outline also
    warms those caches.
    """

    def __init__(self, max_level: int = 3) -> None:
        """Initialize the TOC service.

        Args:
            max_level: Deepest heading level included (2 for ``==``).
        """
        self._max_level = max_level

    def extract_chapter_toc(self, chapter: "Chapter") -> ChapterToc:
        """Extract the outline of a single chapter.

        Args:
            chapter: The chapter to extract the outline from.

        Returns:
            ChapterToc with hierarchical entries.
        """
        headlines = [
            item
            for item in chapter.headline_index().values()
            if item.level <= self._max_level
        ]
        return ChapterToc(
            chapter_id=chapter.id,
            chapter_number=chapter.number,
            chapter_title=chapter.title(),
            entries=self._build_hierarchy(headlines),
        )

    def build_book_toc(self, book: "Book") -> BookToc:
        """Build the outline of a whole book, grouped by part.

        Args:
            book: The book to build the outline for.

        Returns:
            BookToc with one PartToc per part.
        """
        return BookToc(
            parts=[
                PartToc(
                    number=part.number,
                    name=part.name,
                    chapters=[self.extract_chapter_toc(ch) for ch in part],
                )
                for part in book.parts()
            ]
        )

    def _build_hierarchy(self, headlines: Iterable[HeadlineItem]) -> list[TocEntry]:
        """Nest headlines by level.

        Args:
            headlines: Headlines in document order.

        Returns:
            Top-level entries with children populated.
        """
        result: list[TocEntry] = []
        stack: list[TocEntry] = []

        for item in headlines:
            entry = TocEntry(title=item.caption, level=item.level - 1, number=item.number)

            # Find parent at lower level
            while stack and stack[-1].level >= entry.level:
                stack.pop()

            if stack:
                stack[-1].children.append(entry)
            else:
                result.append(entry)

            stack.append(entry)

        return result
