"""Event-driven XML tree builder and serializer.

A push-style event stream (declaration, element start, element end, text) is
assembled into an owned document tree, which can then be re-emitted as
indented, well-formed markup.

Progressive API Disclosure:
- Level 1: Simple functions - parse(), parse_string(), parse_file(), to_string()
- Level 2: Configured objects - XMLParser, XMLPrinter, ParserConfig
- Level 3: Raw events - XMLTreeBuilder fed by any event source
"""

__version__ = "0.1.0"

# Level 1: simple functions
# Level 2: configured parser and printer
from .api import XMLParser, parse, parse_bytes, parse_file, parse_string
from .printer import XMLPrinter, to_bytes, to_string

# Configuration and results
from .api import ParseResult, TokenizerError
from .shared import ErrorCode, Outcome, ParserConfig

# Level 3: data model and builder
from .tree import Standalone, XMLAttribute, XMLDocument, XMLElement, XMLTreeBuilder

__all__ = [
    "__version__",

    # Level 1
    "parse",
    "parse_bytes",
    "parse_file",
    "parse_string",
    "to_bytes",
    "to_string",

    # Level 2
    "XMLParser",
    "XMLPrinter",
    "ParserConfig",

    # Results
    "ErrorCode",
    "Outcome",
    "ParseResult",
    "TokenizerError",

    # Level 3
    "Standalone",
    "XMLAttribute",
    "XMLDocument",
    "XMLElement",
    "XMLTreeBuilder",
]
