"""Capabilities shared by containers of chapters."""

from typing import TYPE_CHECKING, Iterator, Protocol

if TYPE_CHECKING:
    from .chapter import Chapter


class IChapterContainer(Protocol):
    """Protocol for anything that yields chapters.

    Implemented by Book (chapters grouped in parts) and ChapterSet
    (a flat list of chapters).
    """

    @property
    def no_part(self) -> bool:
        """True if the container has no part structure."""
        ...

    @property
    def ext(self) -> str:
        """Source file extension."""
        ...

    def chapters(self) -> list["Chapter"]:
        ...

    def each_chapter(self) -> Iterator["Chapter"]:
        ...
