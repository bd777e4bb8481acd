"""Input encoding normalization.

Chapters may be written in legacy Japanese encodings. A transcoder turns
raw file bytes into text according to the book's ``inencoding`` tag, or
guesses the encoding when no tag is configured.
"""

import logging
import re
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class ITranscoder(Protocol):
    """Protocol for turning raw chapter bytes into text."""

    def decode(
        self, data: bytes | str, tag: Optional[str], ignore_case: bool = True
    ) -> str:
        """Decode ``data`` according to an encoding tag.

        Args:
            data: Raw bytes, or text that needs no decoding.
            tag: Configured input encoding tag (EUC, SJIS, JIS) or None.
            ignore_case: Whether the tag is matched case-insensitively.

        Returns:
            The decoded text.
        """
        ...


class CodecTranscoder:
    """Transcoder built on Python codecs.

    Implements ITranscoder with fixed tag-to-codec mapping and a simple
    detection chain for untagged input.
    """

    CODECS = {
        "EUC": "euc_jp",
        "SJIS": "cp932",
        "JIS": "iso2022_jp",
    }

    # Tried in order when no tag is configured
    DETECT_ORDER = ("utf-8", "euc_jp", "cp932")

    ESC = b"\x1b"

    def decode(
        self, data: bytes | str, tag: Optional[str], ignore_case: bool = True
    ) -> str:
        if isinstance(data, str):
            return data

        codec = self.codec_for(tag, ignore_case)
        if codec is not None:
            try:
                return data.decode(codec)
            except UnicodeDecodeError as e:
                logger.warning(
                    "Invalid %s input at byte %d, replacing undecodable bytes",
                    tag,
                    e.start,
                )
                return data.decode(codec, errors="replace")
        return self.detect(data)

    def codec_for(self, tag: Optional[str], ignore_case: bool = True) -> Optional[str]:
        """Map an encoding tag to a codec name.

        Args:
            tag: The configured tag.
            ignore_case: Match the tag case-insensitively.

        Returns:
            Codec name, or None if the tag is missing or unrecognized.
        """
        if not tag:
            return None
        flags = re.IGNORECASE if ignore_case else 0
        for name, codec in self.CODECS.items():
            if re.fullmatch(name, tag, flags):
                return codec
        return None

    def detect(self, data: bytes) -> str:
        """Decode bytes of unknown encoding."""
        if data.startswith(b"\xef\xbb\xbf"):
            return data[3:].decode("utf-8", errors="replace")

        candidates = self.DETECT_ORDER
        if self.ESC in data:
            candidates = ("iso2022_jp",) + candidates

        for codec in candidates:
            try:
                return data.decode(codec)
            except UnicodeDecodeError:
                continue

        logger.warning("Could not detect input encoding, decoding as UTF-8")
        return data.decode("utf-8", errors="replace")
