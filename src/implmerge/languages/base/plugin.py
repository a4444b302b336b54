"""
Base source parser interface.

The merge pipeline only talks to parsers through this interface, so the
parsing backend can be swapped without touching the merge algorithm.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from implmerge.languages.java.model import JavaFile


class SourceParser(ABC):
    """
    Abstract base class for source parsers.

    A parser provides:
    - the language name and file extensions it handles
    - parsing of files and strings into the owned syntax model
    """

    @property
    @abstractmethod
    def language_name(self) -> str:
        """Return the language name (e.g., 'java')."""
        pass

    @property
    @abstractmethod
    def file_extensions(self) -> list[str]:
        """Return file extensions for this language (e.g., ['.java'])."""
        pass

    @abstractmethod
    def parse_source(self, source_code: str, file_path: Path | None = None) -> JavaFile:
        """
        Parse source code into the syntax model.

        Args:
            source_code: Source code as string
            file_path: Where the source came from, if anywhere

        Returns:
            Parsed compilation unit
        """
        pass

    def parse_file(self, file_path: Path, encoding: str = "utf-8") -> JavaFile:
        """
        Parse a source file into the syntax model.

        Args:
            file_path: Path to the source file
            encoding: Source file encoding

        Returns:
            Parsed compilation unit
        """
        return self.parse_source(file_path.read_text(encoding=encoding), file_path)
