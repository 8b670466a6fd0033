"""Source parsers producing the TypeRecord corpus"""

from .base import SourceParser, ParseError, UnsupportedLanguageError
from .java_parser import JavaSourceParser, classify_type

__all__ = [
    "SourceParser",
    "ParseError",
    "UnsupportedLanguageError",
    "JavaSourceParser",
    "classify_type",
]
