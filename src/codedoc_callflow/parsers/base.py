"""
Base classes for source parsers.

A source parser turns source files into the TypeRecord corpus the call
flow engine consumes.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..core.exceptions import CallFlowError
from ..core.models import TypeRecord


class SourceParser(ABC):
    """Base class for source parsers"""

    @abstractmethod
    def supports(self, file_path: str) -> bool:
        """Check if this parser supports the given file.

        Args:
            file_path: Path to the file to be parsed

        Returns:
            True if this parser can handle the file
        """
        pass

    @abstractmethod
    def parse(self, content: str, file_path: Optional[str] = None) -> List[TypeRecord]:
        """Parse one source file into the types it declares.

        Args:
            content: Raw file content as string
            file_path: Path to the file being parsed, recorded on each TypeRecord

        Returns:
            TypeRecords in declaration order
        """
        pass


class ParseError(CallFlowError):
    """Raised when parsing fails."""
    pass


class UnsupportedLanguageError(ParseError):
    """Raised when a file's language is not supported by the parser."""
    pass
