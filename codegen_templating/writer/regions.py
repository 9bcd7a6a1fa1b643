"""
Region markers.

A region is a named span in an existing file, delimited by a start and an
end marker, whose contents can be copied verbatim into generated output.
"""

from abc import ABC, abstractmethod


class RegionMarkerFormatter(ABC):
    """Formats a region name into its start and end marker strings."""

    @abstractmethod
    def get_region_start_marker(self, region_name: str) -> str:
        """Return the string that marks the start of the region."""
        pass

    @abstractmethod
    def get_region_end_marker(self, region_name: str) -> str:
        """Return the string that marks the end of the region."""
        pass


class CommentRegionMarkerFormatter(RegionMarkerFormatter):
    """
    Markers of the form "<prefix> <name>" and "<prefix> </name>".

    Use the line comment syntax of the target language as prefix, for
    example "#" for Python or "--" for SQL.
    """

    def __init__(self, comment_prefix: str):
        self.comment_prefix = comment_prefix

    def get_region_start_marker(self, region_name: str) -> str:
        return f"{self.comment_prefix} <{region_name}>"

    def get_region_end_marker(self, region_name: str) -> str:
        return f"{self.comment_prefix} </{region_name}>"


class DefaultRegionMarkerFormatter(CommentRegionMarkerFormatter):
    """The default format: "/// <name>" ... "/// </name>"."""

    def __init__(self):
        super().__init__("///")
