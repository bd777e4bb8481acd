"""Book model.

A book is a directory of chapter files plus a manifest (``CHAPS``) that
orders them into parts. Preface and postscript chapters are collected
into unnumbered parts at the front and back.
"""

from __future__ import annotations

import logging
import os
import re
import threading
from pathlib import Path
from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Union

from ..exceptions import DuplicateIdError, NotFoundError
from ..parameters import Parameters, find_config
from ..plugins import prepare_environment
from ..services.encoding import CodecTranscoder, ITranscoder
from ..services.reference_index import BibpaperIndex
from .chapter import Chapter
from .memo import memoized
from .part import Part
from .volume import Volume

logger = logging.getLogger(__name__)

# Environment variable naming the book directory for load_default
BOOK_ROOT_ENV = "REBOOK_ROOT"

# Directories searched for a manifest by load_default
DEFAULT_ROOTS = (".", "..", "../..")

# Manifest file that marks a book directory
MANIFEST_MARKER = "CHAPS"

# Chapter ids looked up when there is no PREDEF / POSTDEF file
PREFACE_NAMES = ("preface",)
POSTSCRIPT_NAMES = ("appendix", "postscript")

BLOCK_SEPARATOR = re.compile(r"\n{2,}")

_default_book: Optional[Book] = None
_default_lock = threading.Lock()


def default_book() -> Book:
    """Get the process-wide default book, loading it on first use."""
    global _default_book
    with _default_lock:
        if _default_book is None:
            _default_book = Book.load_default()
        return _default_book


def reset_default_book() -> None:
    """Forget the process-wide default book."""
    global _default_book
    with _default_lock:
        _default_book = None


class Book:
    """A book made of parts and chapters.

    Parts are built on first use and cached for the lifetime of the
    instance; create a new Book to pick up changes on disk.
    """

    no_part = False

    def __init__(
        self,
        basedir: Union[Path, str],
        parameters: Optional[Parameters] = None,
        transcoder: Optional[ITranscoder] = None,
    ) -> None:
        self.basedir = Path(basedir)
        self.parameters = parameters if parameters is not None else Parameters.default()
        self.transcoder = transcoder if transcoder is not None else CodecTranscoder()
        self._lock = threading.RLock()

    @classmethod
    def load_default(cls) -> Book:
        """Find and load the book around the current directory.

        Uses the directory named by ``REBOOK_ROOT`` if set, otherwise
        the first of ``.``, ``..`` and ``../..`` containing a ``CHAPS``
        file. Falls back to an empty book rooted at ``.``.
        """
        env_root = os.environ.get(BOOK_ROOT_ENV)
        candidates = (env_root,) if env_root else DEFAULT_ROOTS
        for basedir in candidates:
            if (Path(basedir) / MANIFEST_MARKER).is_file():
                return cls.load(basedir)
        logger.debug("No %s found, using an empty book", MANIFEST_MARKER)
        return cls(".")

    @classmethod
    def load(
        cls,
        basedir: Union[Path, str],
        parameters: Optional[Parameters] = None,
        transcoder: Optional[ITranscoder] = None,
    ) -> Book:
        """Load a book from a directory.

        Reads ``config.yml`` from the directory unless parameters are
        given, prepares the directory's plugins once per process and
        builds the parts.

        Raises:
            ConfigurationError: If the configuration is invalid.
            DuplicateIdError: If two chapters share an id.
            NotFoundError: If a PREDEF/POSTDEF entry has no file.
        """
        basedir = Path(basedir)
        if parameters is None:
            config = find_config(basedir)
            parameters = Parameters.load(config) if config else Parameters.default()
        prepare_environment(basedir, parameters.plugins)
        logger.debug("Loading book from %s", basedir)
        book = cls(basedir, parameters, transcoder)
        book.parts()
        return book

    def __repr__(self) -> str:
        return f"<Book {self.basedir}>"

    @property
    def ext(self) -> str:
        return self.parameters.ext

    def parts(self) -> list[Part]:
        return list(self._parts)

    def part(self, number: int) -> Part:
        for part in self._parts:
            if part.number == number:
                return part
        raise NotFoundError(f"part not found: {number}")

    def each_part(self) -> Iterator[Part]:
        return iter(self._parts)

    def chapters(self) -> list[Chapter]:
        return [chapter for part in self._parts for chapter in part.chapters]

    def each_chapter(self) -> Iterator[Chapter]:
        return iter(self.chapters())

    def chapter_index(self) -> Mapping[str, Chapter]:
        return self._chapter_index

    def chapter(self, chapter_id: str) -> Chapter:
        try:
            return self._chapter_index[chapter_id]
        except KeyError:
            raise NotFoundError(f"chapter not found: {chapter_id}") from None

    def volume(self) -> Volume:
        return Volume.sum(chapter.volume() for chapter in self.chapters())

    def read_manifest_text(self) -> str:
        """Get the manifest text without comments.

        Lines starting with ``#`` are dropped and inline ``#`` comments
        removed. Without a manifest file, lists the chapter files of the
        base directory in sorted order.
        """
        path = self.parameters.chapter_path(self.basedir)
        try:
            text = self.read_text(path)
        except FileNotFoundError:
            logger.debug("No manifest at %s, listing %s files", path, self.ext)
            return "\n".join(self._list_chapter_files())
        return "".join(
            re.sub(r"#.*$", "", line)
            for line in text.splitlines(keepends=True)
            if not line.startswith("#")
        )

    def part_exists(self) -> bool:
        return self.parameters.part_path(self.basedir).is_file()

    def read_part_names(self) -> list[str]:
        return list(self._part_names)

    def bib_exists(self) -> bool:
        return self.parameters.bib_path(self.basedir).is_file()

    def read_bib(self) -> str:
        return self.read_text(self.parameters.bib_path(self.basedir))

    def read_text(self, path: Path) -> str:
        """Read a source file of the book in its configured input encoding."""
        return self.transcoder.decode(path.read_bytes(), self.parameters.inencoding)

    def bibpaper_index(self) -> BibpaperIndex:
        return self._bibpaper_index

    def prefaces(self) -> Optional[Part]:
        """Build the preface part, or None if there are no prefaces."""
        path = self.parameters.predef_path(self.basedir)
        if path.is_file():
            try:
                return self._part_from_namelist_file(path)
            except NotFoundError as e:
                raise NotFoundError(f"preface {e}") from e
        return self._part_from_names(PREFACE_NAMES)

    def postscripts(self) -> Optional[Part]:
        """Build the postscript part, or None if there are no postscripts."""
        path = self.parameters.postdef_path(self.basedir)
        if path.is_file():
            try:
                return self._part_from_namelist_file(path)
            except NotFoundError as e:
                raise NotFoundError(f"postscript {e}") from e
        return self._part_from_names(POSTSCRIPT_NAMES)

    @memoized
    def _parts(self) -> tuple[Part, ...]:
        parts = self._parse_chapters()
        preface = self.prefaces()
        if preface is not None:
            parts.insert(0, preface)
        postscript = self.postscripts()
        if postscript is not None:
            parts.append(postscript)
        _build_chapter_index(parts)
        return tuple(parts)

    @memoized
    def _chapter_index(self) -> Mapping[str, Chapter]:
        return MappingProxyType(_build_chapter_index(self._parts))

    @memoized
    def _part_names(self) -> tuple[str, ...]:
        if not self.part_exists():
            return ()
        text = self.read_text(self.parameters.part_path(self.basedir))
        return tuple(text.splitlines())

    @memoized
    def _bibpaper_index(self) -> BibpaperIndex:
        if not self.bib_exists():
            raise NotFoundError(
                f"no such bib file: {self.parameters.bib_path(self.basedir)}"
            )
        return BibpaperIndex.parse(self.read_bib().splitlines(keepends=True))

    def _parse_chapters(self) -> list[Part]:
        text = self.read_manifest_text().strip()
        text = "\n".join(line.strip() for line in text.splitlines())
        blocks = [block for block in BLOCK_SEPARATOR.split(text) if block.strip()]
        names = self._part_names

        parts: list[Part] = []
        number = 0
        for index, block in enumerate(blocks):
            chapters = []
            for chapter_id in block.split():
                number += 1
                chapters.append(
                    Chapter(self, number, chapter_id, self.basedir / self._filename(chapter_id))
                )
            name = names[index] if index < len(names) and names[index].strip() else None
            parts.append(Part(index + 1, tuple(chapters), name))
        return parts

    def _part_from_namelist_file(self, path: Path) -> Optional[Part]:
        names = self.read_text(path).split()
        return _make_part([self._make_chapter(name) for name in names])

    def _part_from_names(self, names: tuple[str, ...]) -> Optional[Part]:
        chapters = []
        for name in names:
            path = self.basedir / f"{name}{self.ext}"
            if path.is_file():
                chapters.append(Chapter(self, None, path.name, path))
            else:
                logger.debug("Skipping absent %s", path)
        return _make_part(chapters)

    def _make_chapter(self, name: str) -> Chapter:
        filename = self._filename(name)
        path = self.basedir / filename
        if not path.is_file():
            raise NotFoundError(f"file not exist: {path}")
        return Chapter(self, None, filename, path)

    def _filename(self, name: str) -> str:
        return name if Path(name).suffix else f"{name}{self.ext}"

    def _list_chapter_files(self) -> list[str]:
        """Chapter file names in the base directory, sorted.

        The bibliography and conventional preface/postscript files are
        not chapters of the main sequence.
        """
        reserved = {str(self.parameters.bib_file)}
        reserved.update(f"{name}{self.ext}" for name in PREFACE_NAMES + POSTSCRIPT_NAMES)
        try:
            entries = [
                entry.name
                for entry in self.basedir.iterdir()
                if entry.is_file() and entry.name.endswith(self.ext)
            ]
        except FileNotFoundError:
            return []
        return sorted(name for name in entries if name not in reserved)


def _make_part(chapters: list[Chapter]) -> Optional[Part]:
    return Part(None, tuple(chapters)) if chapters else None


def _build_chapter_index(parts) -> dict[str, Chapter]:
    index: dict[str, Chapter] = {}
    for part in parts:
        for chapter in part.chapters:
            if chapter.id in index:
                raise DuplicateIdError(f"duplicate chapter id: {chapter.id}")
            index[chapter.id] = chapter
    return index
