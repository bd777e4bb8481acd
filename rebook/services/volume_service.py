"""Volume counting service.

Estimates the printed size of a chapter from its source lines and the
book's page metric.
"""

import math
import re
import unicodedata
from pathlib import Path
from typing import Optional, Sequence

from ..domain.metric import PageMetric
from ..domain.volume import Volume
from .encoding import ITranscoder


class VolumeCounter:
    """Service for estimating chapter volume.

    Counts bytes, characters and lines of visible text and converts the
    wrapped line count into pages using a PageMetric.
    """

    # Preprocessor directives do not reach the printed page
    DIRECTIVE_PATTERN = re.compile(r"^#@")

    # Blocks laid out with the list metric
    LIST_BLOCK_PATTERN = re.compile(
        r"^//(?:list|listnum|emlist|emlistnum|cmd|source)(?:\[.*?\])*\s*\{"
    )
    BLOCK_END_PATTERN = re.compile(r"^//\}")

    WHITESPACE_PATTERN = re.compile(r"\s+")

    def __init__(self, page_metric: PageMetric) -> None:
        """Initialize the counter.

        Args:
            page_metric: Page geometry used for the estimate.
        """
        self._metric = page_metric

    def count_file(
        self,
        path: Path,
        transcoder: Optional[ITranscoder] = None,
        tag: Optional[str] = None,
    ) -> Volume:
        """Count the volume of a file.

        Files containing NUL bytes are not text and are estimated from
        their size using ``page_per_kbyte``.

        Args:
            path: The file to count.
            transcoder: Decoder for text files; UTF-8 if omitted.
            tag: Input encoding tag passed to the transcoder.

        Returns:
            Volume of the file.
        """
        data = Path(path).read_bytes()
        if b"\x00" in data:
            return self.count_binary(data)
        if transcoder is not None:
            text = transcoder.decode(data, tag)
        else:
            text = data.decode("utf-8", errors="replace")
        return self.count_lines(text.splitlines())

    def count_binary(self, data: bytes) -> Volume:
        """Estimate the volume of non-text content."""
        kbytes = math.ceil(len(data) / 1024)
        return Volume(
            bytes=len(data),
            pages=float(kbytes * self._metric.page_per_kbyte),
        )

    def count_lines(self, lines: Sequence[str]) -> Volume:
        """Count the volume of source lines.

        Args:
            lines: Decoded source lines.

        Returns:
            Volume with bytes and chars of non-whitespace text.
        """
        n_bytes = n_chars = n_lines = 0
        list_rows = text_rows = 0
        in_list = False

        for line in lines:
            if self.DIRECTIVE_PATTERN.match(line):
                continue
            visible = self.WHITESPACE_PATTERN.sub("", line)
            n_bytes += len(visible.encode("utf-8"))
            n_chars += len(visible)
            n_lines += 1

            if in_list:
                if self.BLOCK_END_PATTERN.match(line):
                    in_list = False
                else:
                    list_rows += self._rows(line, self._metric.list.n_columns)
                continue
            if self.LIST_BLOCK_PATTERN.match(line):
                in_list = True
                continue
            if visible:
                text_rows += self._rows(line.strip(), self._metric.text.n_columns)

        pages = (
            list_rows / self._metric.list.n_lines + text_rows / self._metric.text.n_lines
        )
        return Volume(bytes=n_bytes, chars=n_chars, lines=n_lines, pages=pages)

    def _rows(self, line: str, columns: int) -> int:
        """Number of printed rows a line wraps into."""
        width = display_width(line.rstrip("\r\n"))
        return max(1, math.ceil(width / columns))


def display_width(text: str) -> int:
    """Width of text in half-width columns."""
    return sum(
        2 if unicodedata.east_asian_width(ch) in ("W", "F") else 1 for ch in text
    )
