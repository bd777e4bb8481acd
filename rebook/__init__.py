"""Document model for multi-chapter books written in Re:VIEW-style markup.

Loads a book directory (chapter files plus a ``CHAPS`` manifest) into
parts and chapters and resolves references such as lists, tables,
footnotes, images, headlines and bibliography entries by id.
"""

from .domain import (
    Book,
    Chapter,
    ChapterSet,
    Part,
    PageMetric,
    Volume,
    default_book,
)
from .exceptions import (
    ConfigurationError,
    DuplicateIdError,
    NotFoundError,
    ReviewError,
)
from .parameters import Parameters

__all__ = [
    "Book",
    "Chapter",
    "ChapterSet",
    "Part",
    "PageMetric",
    "Volume",
    "default_book",
    "Parameters",
    "ReviewError",
    "NotFoundError",
    "DuplicateIdError",
    "ConfigurationError",
]
