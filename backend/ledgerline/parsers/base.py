"""
Base parser class for statement parsing.
"""

from abc import ABC, abstractmethod
from typing import List, Tuple

from ledgerline.schemas.import_file import ParsedCSV


class ParseError(ValueError):
    """A value in a statement could not be interpreted."""


class BaseParser(ABC):
    """Base class for statement parsers"""

    @abstractmethod
    def can_parse(self, filename: str) -> bool:
        """Check if this parser can handle the file"""
        pass

    @abstractmethod
    def parse(self, text: str) -> ParsedCSV:
        """
        Parse statement text into headers and rows.
        Each row maps header name to raw string value.
        """
        pass

    @abstractmethod
    def get_preview(
        self,
        text: str,
        rows: int = 5
    ) -> Tuple[List[str], List[List[str]]]:
        """Return (headers, preview_rows) for mapping confirmation"""
        pass
