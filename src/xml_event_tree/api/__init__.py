"""Parsing entry points and library bridges."""

from .adapters import from_lxml, to_lxml
from .parser import (
    ParseResult,
    TokenizerError,
    XMLParser,
    parse,
    parse_bytes,
    parse_file,
    parse_string,
)

__all__ = [
    "ParseResult",
    "TokenizerError",
    "XMLParser",
    "from_lxml",
    "parse",
    "parse_bytes",
    "parse_file",
    "parse_string",
    "to_lxml",
]
