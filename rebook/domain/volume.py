"""Volume of a chapter, part or book."""

import math
from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class Volume:
    """Size counters and an estimated page count.

    ``pages`` is kept fractional so that sums over many chapters
    do not accumulate rounding.
    """

    bytes: int = 0
    chars: int = 0
    lines: int = 0
    pages: float = 0.0

    @classmethod
    def sum(cls, volumes: Iterable["Volume"]) -> "Volume":
        total = cls()
        for volume in volumes:
            total = total + volume
        return total

    @property
    def kbytes(self) -> int:
        return math.ceil(self.bytes / 1024)

    @property
    def page(self) -> int:
        return math.ceil(self.pages)

    def __add__(self, other: "Volume") -> "Volume":
        if not isinstance(other, Volume):
            return NotImplemented
        return Volume(
            bytes=self.bytes + other.bytes,
            chars=self.chars + other.chars,
            lines=self.lines + other.lines,
            pages=self.pages + other.pages,
        )

    def __str__(self) -> str:
        return f"{self.kbytes}KB {self.chars}C {self.lines}L {self.page}P"
