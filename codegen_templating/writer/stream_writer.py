"""
StreamWriter: the TextWriter implementation bound to one output stream.

A new StreamWriter is created for every generate call and discarded when the
output file is closed. Besides indentation and line counting, it can copy
other files, or named regions of them, into the output.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, TextIO

from ..logging_config import get_logger
from ..templates import TemplateEngine
from .regions import DefaultRegionMarkerFormatter, RegionMarkerFormatter
from .text_writer import TextWriter

logger = get_logger(__name__)

_UTF8_NAMES = {"utf-8", "utf8", "utf_8"}


class StreamWriter(TextWriter):
    """Writes template output to a text stream."""

    def __init__(
        self,
        stream: TextIO,
        region_marker_formatter: Optional[RegionMarkerFormatter] = None,
        working_dir: Optional[Path] = None,
    ):
        """
        Args:
            stream: Writable text stream, opened with newline="" so that
                end-of-line strings are written as given.
            region_marker_formatter: Formatter for write_file_region markers.
            working_dir: Directory that relative file paths resolve against.
                Defaults to the current directory.
        """
        self._stream = stream
        self._region_marker_formatter = region_marker_formatter or DefaultRegionMarkerFormatter()
        self.working_dir = Path(working_dir) if working_dir else Path.cwd()

        self.end_of_line_string: str = os.linesep
        self.indent_string: str = "\t"
        # Total number of lines written
        self.loc: int = 0
        # Lines written with content, excluding those written while frozen
        self.sloc: int = 0

        self._indent = 0
        self._count_sloc = True
        self._no_indent = False
        self._no_end_of_line = False
        self._text_file_cache: Dict[str, Optional[str]] = {}
        self._template_engine: Optional[TemplateEngine] = None

    @property
    def indent_level(self) -> int:
        return self._indent

    @property
    def template_engine(self) -> TemplateEngine:
        if self._template_engine is None:
            self._template_engine = TemplateEngine(self.working_dir)
        return self._template_engine

    def _increment_loc(self, has_contents: bool) -> None:
        self.loc += 1
        if has_contents and self._count_sloc:
            self.sloc += 1

    def _create_indent_string(self) -> str:
        if self._no_indent:
            return ""
        return self.indent_string * self._indent

    def _end_of_line(self) -> str:
        return "" if self._no_end_of_line else self.end_of_line_string

    # TextWriter implementation

    def write(self, value: Optional[str]) -> "StreamWriter":
        if value is None:
            return self
        self._stream.write(value)
        return self

    def write_line(self, value: Optional[str] = None) -> "StreamWriter":
        if value is None:
            self._stream.write(self._end_of_line())
            self._increment_loc(False)
            return self

        self._stream.write(self._create_indent_string() + value + self._end_of_line())
        self._increment_loc(bool(value))
        return self

    def write_lines(self, values: Sequence[str], delimiter: Optional[str] = None) -> "StreamWriter":
        if not values:
            return self

        last = len(values) - 1
        for index, value in enumerate(values):
            self._stream.write(self._create_indent_string() + (value or ""))
            if delimiter and index < last:
                self._stream.write(delimiter)
            self._stream.write(self._end_of_line())
            self._increment_loc(bool(value))
        return self

    def write_line_indented(self, value: str) -> "StreamWriter":
        indent = "" if self._no_indent else self.indent_string + self._create_indent_string()
        self._stream.write(indent + value + self._end_of_line())
        self._increment_loc(True)
        return self

    def write_end_of_line(self, value: Optional[str] = None) -> "StreamWriter":
        if value:
            self._stream.write(value)
        self._stream.write(self._end_of_line())
        self._increment_loc(True)
        return self

    def write_indent(self) -> "StreamWriter":
        self._stream.write(self._create_indent_string())
        return self

    def increase_indent(self) -> "StreamWriter":
        self._indent += 1
        return self

    def decrease_indent(self) -> "StreamWriter":
        if self._indent > 0:
            self._indent -= 1
        return self

    def clear_indent(self) -> "StreamWriter":
        self._indent = 0
        return self

    def suppress_indent(self) -> "StreamWriter":
        self._no_indent = True
        return self

    def resume_indent(self) -> "StreamWriter":
        self._no_indent = False
        return self

    def suppress_end_of_line(self) -> "StreamWriter":
        self._no_end_of_line = True
        return self

    def resume_end_of_line(self) -> "StreamWriter":
        self._no_end_of_line = False
        return self

    def freeze_sloc(self) -> "StreamWriter":
        self._count_sloc = False
        return self

    def unfreeze_sloc(self) -> "StreamWriter":
        self._count_sloc = True
        return self

    def write_file(self, path: str, encoding: Optional[str] = None) -> "StreamWriter":
        contents = self._read_text_file(self._resolve_file_name(path), False, encoding)
        if contents:
            self._stream.write(contents)
        return self

    def write_file_region(self, region_name: str, path: str,
                          encoding: Optional[str] = None) -> bool:
        if not region_name or not path:
            return False

        contents = self._read_text_file(self._resolve_file_name(path), True, encoding)
        if not contents:
            return False

        start_marker = self._region_marker_formatter.get_region_start_marker(region_name)
        start_index = contents.find(start_marker)
        if start_index < 0:
            logger.debug("Region '%s' not found in %s", region_name, path)
            return False

        region_start = start_index + len(start_marker)
        end_marker = self._region_marker_formatter.get_region_end_marker(region_name)
        end_index = contents.find(end_marker, region_start)
        if end_index < 0:
            logger.debug("End of region '%s' not found in %s", region_name, path)
            return False

        region = contents[region_start:end_index]
        # The line break after the start marker belongs to the marker line
        if region.startswith("\r\n"):
            region = region[2:]
        elif region.startswith("\n"):
            region = region[1:]

        self._stream.write(region)
        self.write_end_of_line()
        return True

    def write_template(self, source: str, context: Optional[Dict[str, Any]] = None,
                       **kwargs: Any) -> "StreamWriter":
        variables = dict(context or {})
        variables.update(kwargs)
        rendered = self.template_engine.render_string(source, variables)
        for line in rendered.split("\n"):
            line = line.rstrip("\r")
            if line.strip():
                self.write_line(line)
            else:
                self.write_line()
        return self

    # File access

    def _resolve_file_name(self, file_name: str) -> Path:
        return self.working_dir / file_name

    def _read_text_file(self, path: Path, use_cache: bool,
                        encoding: Optional[str] = None) -> Optional[str]:
        """
        Read a text file, or return None if it is missing or empty.

        With use_cache, the first read of a path wins for the lifetime of
        this writer, including misses.
        """
        key = str(path)
        if use_cache and key in self._text_file_cache:
            return self._text_file_cache[key]

        contents = None
        if path.is_file():
            encoding = encoding.lower() if encoding else "utf-8"
            # utf-8-sig drops a leading byte order mark
            if encoding in _UTF8_NAMES:
                encoding = "utf-8-sig"
            # Undecodable bytes become U+FFFD instead of failing the lookup
            with open(path, "r", encoding=encoding, errors="replace", newline="") as f:
                contents = f.read() or None
        else:
            logger.debug("Cannot read %s: the file does not exist", path)

        if use_cache:
            self._text_file_cache[key] = contents
        return contents
