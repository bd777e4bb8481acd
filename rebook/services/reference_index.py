"""Reference index implementations.

Each index scans a chapter's lines once for one kind of anchor and maps
the anchor ids to element records. Lookups are exact-match.
"""

import logging
import re
from pathlib import Path
from typing import Any, Generic, Iterable, Iterator, Optional, Sequence, TypeVar

from ..domain.content import (
    BibpaperItem,
    FootnoteItem,
    HeadlineItem,
    ImageItem,
    ListItem,
    TableItem,
)
from ..exceptions import DuplicateIdError, NotFoundError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Closing marker of a //xxx{ ... //} block
BLOCK_END_PATTERN = re.compile(r"^//\}")


class ReferenceIndex(Generic[T]):
    """Immutable mapping from anchor id to element record.

    Subclasses set ``ITEM_TYPE`` and implement ``parse``.
    """

    ITEM_TYPE = ""

    def __init__(self, items: Iterable[T]) -> None:
        self._items: dict[str, T] = {}
        for item in items:
            item_id = item.id  # type: ignore[attr-defined]
            if item_id in self._items:
                raise DuplicateIdError(f"duplicate {self.ITEM_TYPE} id: {item_id}")
            self._items[item_id] = item

    @classmethod
    def parse(cls, lines: Sequence[str], *args: Any, **kwargs: Any) -> "ReferenceIndex[T]":
        raise NotImplementedError

    def __getitem__(self, item_id: str) -> T:
        try:
            return self._items[item_id]
        except KeyError:
            raise NotFoundError(f"{self.ITEM_TYPE} not found: {item_id}") from None

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ReferenceIndex):
            return NotImplemented
        return type(self) is type(other) and self._items == other._items

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {list(self._items)}>"

    def get(self, item_id: str, default: Optional[T] = None) -> Optional[T]:
        return self._items.get(item_id, default)

    def items(self) -> list[tuple[str, T]]:
        return list(self._items.items())

    def values(self) -> list[T]:
        return list(self._items.values())

    def number(self, item_id: str) -> int:
        """Get the sequence number of an element."""
        return self[item_id].number  # type: ignore[attr-defined]


def _strip_eol(line: str) -> str:
    return line.rstrip("\r\n")


def _scan_blocks(
    lines: Sequence[str], pattern: re.Pattern, item_type: str
) -> Iterator[tuple[str, str, tuple[str, ...], int]]:
    """Yield (id, caption, body, line_number) for each block opener.

    The opener pattern captures the id, an optional caption and an
    optional ``{`` that starts a body running until ``//}``.
    """
    body: list[str] = []
    current: Optional[tuple[str, str, int]] = None

    for line_num, line in enumerate(lines, start=1):
        if current is not None:
            if BLOCK_END_PATTERN.match(line):
                yield current[0], current[1], tuple(body), current[2]
                current = None
            else:
                body.append(_strip_eol(line))
            continue

        match = pattern.match(line)
        if not match:
            continue
        item_id = match.group("id")
        caption = match.group("caption") or ""
        if not item_id:
            logger.warning("no ID of %s in line %d: %s", item_type, line_num, line.strip())
            continue
        if match.group("open"):
            current = (item_id, caption, line_num)
            body = []
        else:
            yield item_id, caption, (), line_num

    if current is not None:
        logger.warning("unterminated %s block: %s", item_type, current[0])
        yield current[0], current[1], tuple(body), current[2]


class ListIndex(ReferenceIndex[ListItem]):
    """Index of ``//list`` and ``//listnum`` blocks."""

    ITEM_TYPE = "list"

    PATTERN = re.compile(
        r"^//list(?:num)?\[(?P<id>.*?)\](?:\[(?P<caption>.*?)\])?(?:\[.*?\])*\s*(?P<open>\{)?"
    )

    @classmethod
    def parse(cls, lines: Sequence[str]) -> "ListIndex":
        items = [
            ListItem(id=item_id, number=seq, caption=caption, lines=body, line_number=line_num)
            for seq, (item_id, caption, body, line_num) in enumerate(
                _scan_blocks(lines, cls.PATTERN, cls.ITEM_TYPE), start=1
            )
        ]
        return cls(items)


class TableIndex(ReferenceIndex[TableItem]):
    """Index of ``//table`` blocks."""

    ITEM_TYPE = "table"

    PATTERN = re.compile(
        r"^//table\[(?P<id>.*?)\](?:\[(?P<caption>.*?)\])?(?:\[.*?\])*\s*(?P<open>\{)?"
    )

    @classmethod
    def parse(cls, lines: Sequence[str]) -> "TableIndex":
        items = [
            TableItem(id=item_id, number=seq, caption=caption, lines=body, line_number=line_num)
            for seq, (item_id, caption, body, line_num) in enumerate(
                _scan_blocks(lines, cls.PATTERN, cls.ITEM_TYPE), start=1
            )
        ]
        return cls(items)


class FootnoteIndex(ReferenceIndex[FootnoteItem]):
    """Index of ``//footnote[id][content]`` definitions."""

    ITEM_TYPE = "footnote"

    PATTERN = re.compile(r"^//footnote\[(.*?)\]\[(.*)\]")

    @classmethod
    def parse(cls, lines: Sequence[str]) -> "FootnoteIndex":
        items: list[FootnoteItem] = []
        for line in lines:
            match = cls.PATTERN.match(line)
            if not match:
                continue
            if not match.group(1):
                logger.warning("no ID of footnote in %s", line.strip())
                continue
            items.append(
                FootnoteItem(id=match.group(1), number=len(items) + 1, content=match.group(2))
            )
        return cls(items)


class ImageIndex(ReferenceIndex[ImageItem]):
    """Index of numbered ``//image`` anchors bound to files on disk.

    Candidate files for an image ``id`` of chapter ``chap`` are, for each
    accepted extension in priority order:
    ``<image_dir>/<chap>/<id><ext>``, ``<image_dir>/<chap>-<id><ext>``
    and ``<image_dir>/<id><ext>``. Extensions match case-insensitively.
    """

    ITEM_TYPE = "image"

    PATTERN = re.compile(r"^//image\[(.*?)\](?:\[(.*?)\])?")

    def __init__(
        self,
        items: Iterable[ImageItem],
        chapter_id: str = "",
        image_dir: Optional[Path] = None,
        image_types: Sequence[str] = (),
    ) -> None:
        self._chapter_id = chapter_id
        self._image_dir = Path(image_dir) if image_dir is not None else None
        self._image_types = [ext.lower() for ext in image_types]
        self._entries: dict[Path, dict[str, str]] = {}
        super().__init__(self._bind(item) for item in items)

    @classmethod
    def parse(
        cls,
        lines: Sequence[str],
        chapter_id: str = "",
        image_dir: Optional[Path] = None,
        image_types: Sequence[str] = (),
    ) -> "ImageIndex":
        items: list[ImageItem] = []
        for item_id, caption in cls._scan(lines):
            items.append(ImageItem(id=item_id, number=len(items) + 1, caption=caption))
        return cls(items, chapter_id, image_dir, image_types)

    @classmethod
    def _scan(cls, lines: Sequence[str]) -> Iterator[tuple[str, str]]:
        for line in lines:
            match = cls.PATTERN.match(line)
            if not match:
                continue
            if not match.group(1):
                logger.warning("no ID of %s in %s", cls.ITEM_TYPE, line.strip())
                continue
            yield match.group(1), match.group(2) or ""

    def _bind(self, item: ImageItem) -> ImageItem:
        return ImageItem(
            id=item.id,
            number=item.number,
            caption=item.caption,
            paths=tuple(self.find_paths(item.id)),
        )

    def find_paths(self, item_id: str) -> list[Path]:
        """Find existing image files for an id.

        Args:
            item_id: The image id.

        Returns:
            Existing files ordered by extension priority, then location.
        """
        if self._image_dir is None:
            return []

        chapter_dir = self._image_dir / self._chapter_id
        locations = [
            (chapter_dir, item_id),
            (self._image_dir, f"{self._chapter_id}-{item_id}"),
            (self._image_dir, item_id),
        ]

        found: list[Path] = []
        for ext in self._image_types:
            for directory, stem in locations:
                name = self._lookup(directory, f"{stem}{ext}")
                if name is not None:
                    found.append(directory / name)
        return found

    def _lookup(self, directory: Path, name: str) -> Optional[str]:
        """Find a directory entry by case-insensitive name."""
        if directory not in self._entries:
            try:
                self._entries[directory] = {
                    entry.name.lower(): entry.name
                    for entry in directory.iterdir()
                    if entry.is_file()
                }
            except (FileNotFoundError, NotADirectoryError):
                self._entries[directory] = {}
        return self._entries[directory].get(name.lower())


class IconIndex(ImageIndex):
    """Index of inline ``@<icon>{id}`` references.

    An icon may be referenced several times; repeats share one record.
    """

    ITEM_TYPE = "icon"

    PATTERN = re.compile(r"@<icon>\{(.+?)\}")

    @classmethod
    def parse(
        cls,
        lines: Sequence[str],
        chapter_id: str = "",
        image_dir: Optional[Path] = None,
        image_types: Sequence[str] = (),
    ) -> "IconIndex":
        items: dict[str, ImageItem] = {}
        for line in lines:
            for match in cls.PATTERN.finditer(line):
                icon_id = match.group(1)
                if icon_id not in items:
                    items[icon_id] = ImageItem(id=icon_id, number=len(items) + 1)
        return cls(items.values(), chapter_id, image_dir, image_types)


class NumberlessImageIndex(ImageIndex):
    """Index of ``//numberlessimage`` anchors."""

    ITEM_TYPE = "numberlessimage"

    PATTERN = re.compile(r"^//numberlessimage\[(.*?)\](?:\[(.*?)\])?")


class IndepImageIndex(ImageIndex):
    """Index of ``//indepimage`` anchors."""

    ITEM_TYPE = "indepimage"

    PATTERN = re.compile(r"^//indepimage\[(.*?)\](?:\[(.*?)\])?")


class HeadlineIndex(ReferenceIndex[HeadlineItem]):
    """Index of section headings (``==`` and deeper).

    Headings are keyed by the ``|``-joined path of their labels, using
    the caption where a heading has no ``{label}``.
    """

    ITEM_TYPE = "headline"

    PATTERN = re.compile(r"^(=+)(?:\[(.+?)\])?(?:\{(.+?)\})?(.*)")

    @classmethod
    def parse(cls, lines: Sequence[str]) -> "HeadlineIndex":
        items: list[HeadlineItem] = []
        counters: list[int] = []
        path: list[str] = []

        for line in lines:
            match = cls.PATTERN.match(line)
            if not match:
                continue
            option = match.group(2)
            if option and (option == "column" or option.startswith("/")):
                continue
            depth = len(match.group(1)) - 2
            if depth < 0:
                continue

            # Drop deeper levels, pad skipped levels with zero
            del counters[depth + 1 :]
            del path[depth + 1 :]
            while len(counters) <= depth:
                counters.append(0)
                path.append("")
            counters[depth] += 1

            caption = match.group(4).strip()
            label = match.group(3)
            path[depth] = label.strip() if label else caption
            items.append(
                HeadlineItem(
                    id="|".join(path),
                    number=tuple(counters),
                    caption=caption,
                    level=depth + 2,
                )
            )
        return cls(items)


class BibpaperIndex(ReferenceIndex[BibpaperItem]):
    """Index of ``//bibpaper`` entries in the bibliography file."""

    ITEM_TYPE = "bibpaper"

    PATTERN = re.compile(
        r"^//bibpaper\[(?P<id>.*?)\](?:\[(?P<caption>.*?)\])?(?:\[.*?\])*\s*(?P<open>\{)?"
    )

    @classmethod
    def parse(cls, lines: Sequence[str]) -> "BibpaperIndex":
        items = [
            BibpaperItem(id=item_id, number=seq, caption=caption, lines=body)
            for seq, (item_id, caption, body, _) in enumerate(
                _scan_blocks(lines, cls.PATTERN, cls.ITEM_TYPE), start=1
            )
        ]
        return cls(items)
