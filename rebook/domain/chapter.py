"""Chapter model.

A chapter wraps one source file (or an anonymous stream) and resolves
the references defined in it. Content, title, volume and every
reference index are computed on first use and cached.
"""

from __future__ import annotations

import re
import sys
import threading
from pathlib import Path
from typing import IO, TYPE_CHECKING, Iterable, Optional, Union

from ..exceptions import NotFoundError
from ..parameters import Parameters
from ..services.encoding import CodecTranscoder, ITranscoder
from ..services.reference_index import (
    BibpaperIndex,
    FootnoteIndex,
    HeadlineIndex,
    IconIndex,
    ImageIndex,
    IndepImageIndex,
    ListIndex,
    NumberlessImageIndex,
    TableIndex,
)
from ..services.volume_service import VolumeCounter
from .content import (
    BibpaperItem,
    FootnoteItem,
    HeadlineItem,
    ImageItem,
    ListItem,
    TableItem,
)
from .memo import memoized
from .volume import Volume

if TYPE_CHECKING:
    from .book import Book

TITLE_PATTERN = re.compile(r"^=+")


class Chapter:
    """One chapter of a book.

    ``book`` is None for chapters read from a stream or created with
    ``for_path``; such chapters use default parameters.
    """

    def __init__(
        self,
        book: Optional[Book],
        number: Optional[int],
        name: str,
        path: Union[Path, str, None],
        io: Optional[IO] = None,
        parameters: Optional[Parameters] = None,
        transcoder: Optional[ITranscoder] = None,
    ) -> None:
        self.book = book
        self.number = number
        self._name = name
        self.path = Path(path) if path is not None else None
        self._io = io
        self._parameters = parameters
        self._transcoder = transcoder
        self._lock = threading.RLock()

    @classmethod
    def for_stdin(cls, stream: Optional[IO] = None) -> Chapter:
        """Create a chapter reading standard input (or another stream)."""
        return cls(None, None, "-", None, stream if stream is not None else sys.stdin.buffer)

    @classmethod
    def for_path(cls, number: Optional[int], path: Union[Path, str]) -> Chapter:
        """Create a standalone chapter for a file outside any book."""
        return cls(None, number, Path(path).name, path)

    @classmethod
    def intern_paths(cls, paths: Iterable[Union[Path, str]]) -> list[Chapter]:
        """Look up chapters of their books by file path.

        Loads one book per directory.

        Raises:
            NotFoundError: If a path is not a chapter of its book.
        """
        from .book import Book

        books: dict[Path, Book] = {}
        chapters: list[Chapter] = []
        for path in paths:
            path = Path(path)
            key = path.parent.resolve()
            if key not in books:
                books[key] = Book.load(path.parent)
            try:
                chapters.append(books[key].chapter(path.stem))
            except NotFoundError:
                raise NotFoundError(f"no such file: {path}") from None
        return chapters

    def __repr__(self) -> str:
        return f"<Chapter {self.number} {self.path}>"

    @property
    def id(self) -> str:
        return Path(self._name).stem

    name = id

    @property
    def parameters(self) -> Parameters:
        if self.book is not None:
            return self.book.parameters
        if self._parameters is None:
            self._parameters = Parameters.default()
        return self._parameters

    @property
    def transcoder(self) -> ITranscoder:
        if self.book is not None:
            return self.book.transcoder
        if self._transcoder is None:
            self._transcoder = CodecTranscoder()
        return self._transcoder

    @property
    def basedir(self) -> Path:
        """Directory that image lookup is relative to."""
        if self.book is not None:
            return self.book.basedir
        if self.path is not None:
            return self.path.parent
        return Path(".")

    @property
    def dirname(self) -> Optional[Path]:
        return self.path.parent if self.path is not None else None

    @property
    def basename(self) -> Optional[str]:
        return self.path.name if self.path is not None else None

    def size(self) -> int:
        """Size of the source in bytes."""
        if self.path is not None:
            return self.path.stat().st_size
        return len(self._raw)

    def title(self) -> str:
        """Text of the first ``=`` heading, or "" if there is none."""
        return self._title

    def content(self) -> str:
        return self._content

    def lines(self) -> list[str]:
        """Get the content lines; callers own the returned list."""
        return list(self._lines)

    def volume(self) -> Volume:
        return self._volume

    def on_manifest(self) -> bool:
        """Whether this chapter's file name is a line of the manifest."""
        if self.book is None:
            return False
        filename = f"{self.id}{self.parameters.ext}"
        manifest = self.book.read_manifest_text()
        return filename in [line.strip() for line in manifest.splitlines()]

    def list(self, item_id: str) -> ListItem:
        return self.list_index()[item_id]

    def list_index(self) -> ListIndex:
        return self._list_index

    def table(self, item_id: str) -> TableItem:
        return self.table_index()[item_id]

    def table_index(self) -> TableIndex:
        return self._table_index

    def footnote(self, item_id: str) -> FootnoteItem:
        return self.footnote_index()[item_id]

    def footnote_index(self) -> FootnoteIndex:
        return self._footnote_index

    def image(self, item_id: str) -> ImageItem:
        """Resolve an image id.

        Numbered images win over icons, icons over numberless images,
        and those over independent images.
        """
        for index in (
            self.image_index(),
            self.icon_index(),
            self.numberless_image_index(),
        ):
            if item_id in index:
                return index[item_id]
        return self.indepimage_index()[item_id]

    def image_index(self) -> ImageIndex:
        return self._image_index

    def icon_index(self) -> IconIndex:
        return self._icon_index

    def numberless_image_index(self) -> NumberlessImageIndex:
        return self._numberless_image_index

    def indepimage_index(self) -> IndepImageIndex:
        return self._indepimage_index

    def bibpaper(self, item_id: str) -> BibpaperItem:
        return self.bibpaper_index()[item_id]

    def bibpaper_index(self) -> BibpaperIndex:
        """Get the book's bibliography index.

        Raises:
            NotFoundError: If the book has no bibliography file.
        """
        if self.book is None or not self.book.bib_exists():
            raise NotFoundError(
                f"no such bib file: {self.parameters.bib_path(self.basedir)}"
            )
        return self.book.bibpaper_index()

    def headline(self, caption: str) -> HeadlineItem:
        return self.headline_index()[caption]

    def headline_index(self) -> HeadlineIndex:
        return self._headline_index

    def _read_source(self) -> Union[bytes, str]:
        if self._io is not None:
            return self._io.read()
        try:
            return self.path.read_bytes()  # type: ignore[union-attr]
        except FileNotFoundError:
            raise NotFoundError(f"no such file: {self.path}") from None

    @memoized
    def _raw(self) -> Union[bytes, str]:
        return self._read_source()

    @memoized
    def _content(self) -> str:
        return self.transcoder.decode(self._raw, self.parameters.inencoding)

    @memoized
    def _lines(self) -> tuple[str, ...]:
        return tuple(self._content.splitlines(keepends=True))

    @memoized
    def _title(self) -> str:
        if self._io is not None:
            for line in self._lines:
                if TITLE_PATTERN.match(line):
                    return TITLE_PATTERN.sub("", line, count=1).strip()
            return ""

        try:
            with open(self.path, "rb") as f:  # type: ignore[arg-type]
                for raw in f:
                    if raw.startswith(b"="):
                        line = self.transcoder.decode(
                            raw, self.parameters.inencoding, ignore_case=False
                        )
                        return TITLE_PATTERN.sub("", line, count=1).strip()
        except FileNotFoundError:
            raise NotFoundError(f"no such file: {self.path}") from None
        return ""

    @memoized
    def _volume(self) -> Volume:
        counter = VolumeCounter(self.parameters.page_metric)
        if self.path is None:
            return counter.count_lines(self.lines())
        try:
            return counter.count_file(
                self.path, self.transcoder, self.parameters.inencoding
            )
        except FileNotFoundError:
            raise NotFoundError(f"no such file: {self.path}") from None

    def _image_args(self) -> tuple[str, Path, tuple[str, ...]]:
        params = self.parameters
        return self.id, params.image_path(self.basedir), params.image_types

    @memoized
    def _list_index(self) -> ListIndex:
        return ListIndex.parse(self.lines())

    @memoized
    def _table_index(self) -> TableIndex:
        return TableIndex.parse(self.lines())

    @memoized
    def _footnote_index(self) -> FootnoteIndex:
        return FootnoteIndex.parse(self.lines())

    @memoized
    def _image_index(self) -> ImageIndex:
        return ImageIndex.parse(self.lines(), *self._image_args())

    @memoized
    def _icon_index(self) -> IconIndex:
        return IconIndex.parse(self.lines(), *self._image_args())

    @memoized
    def _numberless_image_index(self) -> NumberlessImageIndex:
        return NumberlessImageIndex.parse(self.lines(), *self._image_args())

    @memoized
    def _indepimage_index(self) -> IndepImageIndex:
        return IndepImageIndex.parse(self.lines(), *self._image_args())

    @memoized
    def _headline_index(self) -> HeadlineIndex:
        return HeadlineIndex.parse(self.lines())
