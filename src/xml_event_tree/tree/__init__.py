"""Document tree model and event-driven tree builder.

Key Components:
    XMLTreeBuilder: Consumes structural events and assembles an XMLDocument
    XMLDocument: Root container with declaration metadata and the root element
    XMLElement: Named node with ordered attributes, children and text contents
    TextBuffer: Order-preserving accumulator for element contents
"""

from .builder import XMLTreeBuilder
from .contents import TextBuffer
from .document import Standalone, XMLDocument
from .element import XMLAttribute, XMLElement
from .events import (
    Characters,
    Declaration,
    ElementEnd,
    ElementStart,
    Event,
    EventType,
)

__all__ = [
    "Characters",
    "Declaration",
    "ElementEnd",
    "ElementStart",
    "Event",
    "EventType",
    "Standalone",
    "TextBuffer",
    "XMLAttribute",
    "XMLDocument",
    "XMLElement",
    "XMLTreeBuilder",
]
