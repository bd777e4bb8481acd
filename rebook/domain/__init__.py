"""Domain layer for book representation."""

from .content import (
    ListItem,
    TableItem,
    FootnoteItem,
    ImageItem,
    HeadlineItem,
    BibpaperItem,
    TocEntry,
    ChapterToc,
    PartToc,
    BookToc,
)
from .metric import MetricData, PageMetric
from .volume import Volume
from .chapter import Chapter
from .part import Part
from .book import Book, default_book, reset_default_book
from .chapter_set import ChapterSet
from .interfaces import IChapterContainer

__all__ = [
    "ListItem",
    "TableItem",
    "FootnoteItem",
    "ImageItem",
    "HeadlineItem",
    "BibpaperItem",
    "TocEntry",
    "ChapterToc",
    "PartToc",
    "BookToc",
    "MetricData",
    "PageMetric",
    "Volume",
    "Chapter",
    "Part",
    "Book",
    "default_book",
    "reset_default_book",
    "ChapterSet",
    "IChapterContainer",
]
