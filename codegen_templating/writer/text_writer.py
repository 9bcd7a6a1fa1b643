"""
The writer contract handed to template callbacks.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, Optional, Sequence


class TextWriter(ABC):
    """
    Abstract text writer used by templates.

    Every method returns the writer itself so calls can be chained, except
    write_file_region, which reports whether the region was found.
    """

    @abstractmethod
    def write(self, value: Optional[str]) -> "TextWriter":
        """Write a raw value. None is ignored."""
        pass

    @abstractmethod
    def write_line(self, value: Optional[str] = None) -> "TextWriter":
        """
        Write an indented line ended by the end-of-line string.

        Without a value only the end-of-line string is written.
        """
        pass

    @abstractmethod
    def write_lines(self, values: Sequence[str], delimiter: Optional[str] = None) -> "TextWriter":
        """Write each value as a line, appending delimiter to all but the last."""
        pass

    @abstractmethod
    def write_line_indented(self, value: str) -> "TextWriter":
        """Write one line with one extra level of indentation; it always counts as content."""
        pass

    @abstractmethod
    def write_end_of_line(self, value: Optional[str] = None) -> "TextWriter":
        pass

    @abstractmethod
    def write_indent(self) -> "TextWriter":
        pass

    def write_white_space(self) -> "TextWriter":
        return self.write(" ")

    @abstractmethod
    def increase_indent(self) -> "TextWriter":
        pass

    @abstractmethod
    def decrease_indent(self) -> "TextWriter":
        pass

    @abstractmethod
    def clear_indent(self) -> "TextWriter":
        pass

    @abstractmethod
    def suppress_indent(self) -> "TextWriter":
        """Stop writing indentation until resume_indent is called."""
        pass

    @abstractmethod
    def resume_indent(self) -> "TextWriter":
        pass

    @abstractmethod
    def suppress_end_of_line(self) -> "TextWriter":
        """Stop writing end-of-line strings until resume_end_of_line is called."""
        pass

    @abstractmethod
    def resume_end_of_line(self) -> "TextWriter":
        pass

    @abstractmethod
    def write_file(self, path: str, encoding: Optional[str] = None) -> "TextWriter":
        """Write the full contents of a file, relative to the working directory."""
        pass

    @abstractmethod
    def write_file_region(self, region_name: str, path: str,
                          encoding: Optional[str] = None) -> bool:
        """Write a named region of a file. Returns False if it was not found."""
        pass

    @abstractmethod
    def write_template(self, source: str, context: Optional[Dict[str, Any]] = None,
                       **kwargs: Any) -> "TextWriter":
        """Render a Jinja2 string template and write it line by line."""
        pass

    @abstractmethod
    def freeze_sloc(self) -> "TextWriter":
        """Stop counting significant lines."""
        pass

    @abstractmethod
    def unfreeze_sloc(self) -> "TextWriter":
        pass

    @contextmanager
    def frozen_sloc(self) -> Iterator["TextWriter"]:
        """Context manager that writes without counting significant lines."""
        self.freeze_sloc()
        try:
            yield self
        finally:
            self.unfreeze_sloc()

    def with_frozen_sloc(self, contents: Optional[Callable[["TextWriter"], Any]]) -> "TextWriter":
        """Call contents(writer) without counting significant lines."""
        with self.frozen_sloc():
            if contents is not None:
                contents(self)
        return self
