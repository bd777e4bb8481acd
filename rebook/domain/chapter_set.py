"""Flat chapter collections for standalone processing."""

from pathlib import Path
from typing import Iterator, Sequence, Union

from .chapter import Chapter


class ChapterSet:
    """Chapters given on the command line, without part structure."""

    no_part = True
    ext = ".re"

    def __init__(self, chapters: Sequence[Chapter]) -> None:
        self._chapters = list(chapters)

    @classmethod
    def for_argv(cls, argv: Sequence[Union[Path, str]]) -> "ChapterSet":
        """Chapters for file arguments, or standard input if there are none."""
        if not argv:
            return cls([Chapter.for_stdin()])
        return cls.for_paths(argv)

    @classmethod
    def for_paths(cls, paths: Sequence[Union[Path, str]]) -> "ChapterSet":
        return cls(Chapter.intern_paths(paths))

    def chapters(self) -> list[Chapter]:
        return list(self._chapters)

    def each_chapter(self) -> Iterator[Chapter]:
        return iter(self._chapters)

    def __len__(self) -> int:
        return len(self._chapters)
