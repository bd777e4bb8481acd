"""Service layer for book operations.

Provides the scanners, estimators and helpers the domain model is
built from.
"""

from .encoding import ITranscoder, CodecTranscoder
from .reference_index import (
    ReferenceIndex,
    ListIndex,
    TableIndex,
    FootnoteIndex,
    ImageIndex,
    IconIndex,
    NumberlessImageIndex,
    IndepImageIndex,
    HeadlineIndex,
    BibpaperIndex,
)
from .volume_service import VolumeCounter
from .toc_service import TocService

__all__ = [
    "ITranscoder",
    "CodecTranscoder",
    "ReferenceIndex",
    "ListIndex",
    "TableIndex",
    "FootnoteIndex",
    "ImageIndex",
    "IconIndex",
    "NumberlessImageIndex",
    "IndepImageIndex",
    "HeadlineIndex",
    "BibpaperIndex",
    "VolumeCounter",
    "TocService",
]
