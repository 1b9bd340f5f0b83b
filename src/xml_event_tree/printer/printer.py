"""Serializer that re-emits a document tree as indented markup.

Formatting rules:

- An element with neither contents nor children is written as ``<name/>``.
- An element without contents puts a line break after its start tag and
  indents its end tag to its own depth.
- Contents are written verbatim right before the end tag, after any
  children, with no line break of their own.
- Attribute values and contents are not escaped.

Line breaks and indentation are only written when ``indented`` is on.
"""

from dataclasses import replace
from typing import Optional, Union

from xml_event_tree.shared import ErrorCode, Outcome, PrinterConfig, get_logger
from xml_event_tree.shared.errors import record
from xml_event_tree.tree import XMLAttribute, XMLDocument, XMLElement

from .writer import BufferWriter, Writer

_PI_START = "<?"
_PI_END = "?>"
_XML = "xml"


class _SinkWriteFailed(Exception):
    """Raised internally to abandon a traversal on the first failed write."""


class XMLPrinter:
    """Walks documents and elements and writes them to a sink.

    Every public ``print_*`` method returns an ``Outcome``; a failed sink write
    stops the traversal at once and reports ``ErrorCode.IO``, which is also
    stored as the process-wide last error. What was written
    before the failure stays in the sink and is not well-formed.

    The printer never modifies the tree. Printing the same tree twice with the
    same configuration produces identical bytes.
    """

    def __init__(
        self,
        writer: Writer,
        config: Optional[PrinterConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.writer = writer
        self.config = replace(config) if config is not None else PrinterConfig()
        self.logger = get_logger(__name__, correlation_id, "xml_printer")

    # Configuration

    def set_writer(self, writer: Writer) -> Writer:
        """Swap the sink and return the previous one."""
        previous = self.writer
        self.writer = writer
        return previous

    def set_indented(self, indented: bool) -> None:
        self.config = replace(self.config, indented=indented)

    def set_indentation(self, spaces: int) -> None:
        """Set the number of spaces written per nesting level."""
        self.config = replace(self.config, indent_width=spaces)

    # Public printing operations

    def print_document(self, document: XMLDocument) -> Outcome:
        """Write the XML declaration followed by the root element (if any).

        The declaration always carries ``version`` (empty when unset), then
        ``encoding`` when present, then ``standalone`` when known, in that
        fixed order.
        """
        return self._run(self._document, document)

    def print_element(self, element: XMLElement, depth: int = 0) -> Outcome:
        """Write ``element`` and its subtree, indented for ``depth``."""
        return self._run(self._element, element, depth)

    def print_element_children(self, element: XMLElement, depth: int = 0) -> Outcome:
        """Write the children of ``element`` (itself at ``depth``)."""
        return self._run(self._children, element, depth)

    def print_element_attributes(self, element: XMLElement) -> Outcome:
        """Write every attribute of ``element`` as `` name="value"``."""
        return self._run(self._attributes, element)

    def print_attribute(self, attribute: XMLAttribute) -> Outcome:
        return self._run(self._attribute, attribute.name, attribute.value)

    # Traversal

    def _run(self, step, *args) -> Outcome:
        try:
            step(*args)
        except _SinkWriteFailed as e:
            self.logger.warning(
                "Serialization aborted",
                extra={"error_code": ErrorCode.IO.name, "reason": str(e)},
            )
            return record(Outcome.fail(ErrorCode.IO, str(e)))
        return Outcome.ok()

    def _document(self, document: XMLDocument) -> None:
        self._write(_PI_START)
        self._write(_XML)
        self._attribute("version", document.version or "")
        if document.encoding is not None:
            self._attribute("encoding", document.encoding)
        standalone = document.standalone.declaration_value
        if standalone is not None:
            self._attribute("standalone", standalone)
        self._write(_PI_END)
        self._eol()

        if document.root is not None:
            self._element(document.root, 0)
        self._flush()

    def _element(self, element: XMLElement, depth: int) -> None:
        # Explicit stack so deep trees do not hit the recursion limit.
        # Entries are (element, depth, closing).
        pending = [(element, depth, False)]
        while pending:
            node, level, closing = pending.pop()
            if closing:
                self._element_end(node, level)
                continue

            self._indent(level)
            if not self._element_start(node):
                continue

            pending.append((node, level, True))
            for child in reversed(node.children):
                pending.append((child, level + 1, False))

    def _children(self, element: XMLElement, depth: int) -> None:
        for child in element.children:
            self._element(child, depth + 1)

    def _element_start(self, element: XMLElement) -> bool:
        """Write the start tag; return False when it was self-closing."""
        self._write("<")
        self._write(element.name)
        self._attributes(element)

        if not element.has_contents and not element.children:
            self._write("/>")
            self._eol()
            return False

        self._write(">")
        if not element.has_contents:
            self._eol()
        return True

    def _element_end(self, element: XMLElement, depth: int) -> None:
        contents = element.contents
        if contents is not None:
            self._write(contents)
        else:
            self._indent(depth)
        self._write("</")
        self._write(element.name)
        self._write(">")
        self._eol()

    def _attributes(self, element: XMLElement) -> None:
        for attribute in element.attributes:
            self._attribute(attribute.name, attribute.value)

    def _attribute(self, name: str, value: str) -> None:
        self._write(" ")
        self._write(name)
        self._write('="')
        self._write(value)
        self._write('"')

    def _eol(self) -> None:
        if self.config.indented:
            self._write("\n")

    def _indent(self, depth: int) -> None:
        if self.config.indented and depth > 0 and self.config.indent_width > 0:
            self._write(self.config.indent_unit * depth)

    def _write(self, text: str) -> None:
        try:
            data = text.encode(self.config.encoding)
        except UnicodeEncodeError as e:
            raise _SinkWriteFailed(f"Cannot encode output as {self.config.encoding}: {e}") from e
        try:
            written = self.writer.write(data)
        except OSError as e:
            raise _SinkWriteFailed(f"Sink write failed: {e}") from e
        if not written:
            raise _SinkWriteFailed("Sink write failed")

    def _flush(self) -> None:
        flush = getattr(self.writer, "flush", None)
        if flush is not None and flush() is False:
            raise _SinkWriteFailed("Sink flush failed")


def to_bytes(
    node: Union[XMLDocument, XMLElement],
    config: Optional[PrinterConfig] = None,
) -> bytes:
    """Serialize a document or element into bytes.

    Raises:
        ValueError: If the output cannot be encoded with the configured encoding
    """
    writer = BufferWriter()
    printer = XMLPrinter(writer, config)
    if isinstance(node, XMLDocument):
        outcome = printer.print_document(node)
    else:
        outcome = printer.print_element(node)
    if not outcome:
        raise ValueError(outcome.failure.message)
    return writer.getvalue()


def to_string(
    node: Union[XMLDocument, XMLElement],
    config: Optional[PrinterConfig] = None,
) -> str:
    """Serialize a document or element into text."""
    encoding = config.encoding if config is not None else PrinterConfig().encoding
    return to_bytes(node, config).decode(encoding)
