"""
Text writers handed to template callbacks.
"""

from .text_writer import TextWriter
from .stream_writer import StreamWriter
from .regions import (
    RegionMarkerFormatter,
    DefaultRegionMarkerFormatter,
    CommentRegionMarkerFormatter,
)

__all__ = [
    "TextWriter",
    "StreamWriter",
    "RegionMarkerFormatter",
    "DefaultRegionMarkerFormatter",
    "CommentRegionMarkerFormatter",
]
