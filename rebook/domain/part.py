"""Part model."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, Optional

from .volume import Volume

if TYPE_CHECKING:
    from .chapter import Chapter


@dataclass(frozen=True)
class Part:
    """An ordered group of chapters.

    Preface and postscript parts have no number.
    """

    number: Optional[int]
    chapters: tuple["Chapter", ...] = ()
    name: Optional[str] = None

    def __iter__(self) -> Iterator["Chapter"]:
        return iter(self.chapters)

    def __len__(self) -> int:
        return len(self.chapters)

    def each_chapter(self) -> Iterator["Chapter"]:
        return iter(self.chapters)

    def volume(self) -> Volume:
        return Volume.sum(chapter.volume() for chapter in self.chapters)
