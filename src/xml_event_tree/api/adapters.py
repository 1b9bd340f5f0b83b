"""Bridge between document trees and ``lxml.etree``.

``to_lxml`` converts a document or element into lxml elements. ``from_lxml``
walks an lxml tree and replays it as builder events, so the result goes
through the same construction path as parsed input.

Differences to keep in mind:

- lxml stores one value per attribute name, so when an element carries a
  name twice the last value wins in ``to_lxml``.
- Contents are emitted after the children in this model; ``to_lxml`` puts
  them on the last child's ``tail`` so the printed order is kept.
- ``from_lxml`` keeps names in lxml's ``{uri}local`` notation and skips
  comments and processing instructions (their tails are kept).
"""

from typing import Any, List, Optional, Union

from xml_event_tree.shared import ErrorCode, Outcome, ParserConfig, get_logger
from xml_event_tree.tree import XMLDocument, XMLElement, XMLTreeBuilder

logger = get_logger(__name__, component="lxml_adapter")

_STANDALONE_CODES = {None: -1, False: 0, True: 1}


def is_available() -> bool:
    """Check if lxml can be imported."""
    try:
        import lxml.etree  # noqa: F401
    except ImportError:
        return False
    return True


def to_lxml(node: Union[XMLDocument, XMLElement]) -> Any:
    """Convert a document (its root) or an element into an ``lxml.etree`` element.

    Raises:
        ValueError: If a document without a root element is given
    """
    import lxml.etree as ET

    if isinstance(node, XMLDocument):
        if node.root is None:
            raise ValueError("Document has no root element")
        node = node.root

    root = ET.Element(node.name)
    pending = [(node, root)]
    while pending:
        element, target = pending.pop()
        for attribute in element.attributes:
            target.set(attribute.name, attribute.value)

        children = []
        for child in element.children:
            children.append((child, ET.SubElement(target, child.name)))

        if element.has_contents:
            if children:
                children[-1][1].tail = element.contents
            else:
                target.text = element.contents

        pending.extend(reversed(children))

    logger.debug("Converted tree to lxml", extra={"root": node.name})
    return root


def from_lxml(
    source: Any,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None,
) -> XMLDocument:
    """Build a document from an lxml element or element tree.

    An ``_ElementTree`` also contributes its declaration (version, encoding,
    standalone) through ``docinfo``.

    Raises:
        ValueError: If the builder rejects the replayed events
    """
    import lxml.etree as ET

    config = config or ParserConfig()
    builder = XMLTreeBuilder(config.builder, correlation_id)

    if isinstance(source, ET._ElementTree):
        info = source.docinfo
        _check(builder.on_declaration(
            info.xml_version,
            info.encoding,
            _STANDALONE_CODES.get(info.standalone, -1),
        ))
        root = source.getroot()
    else:
        root = source

    if not isinstance(root.tag, str):
        raise ValueError("Root must be an element, not a comment or processing instruction")

    # Entries are (node, closing); iterating an lxml element also yields
    # comments, processing instructions and entities, whose tails are text.
    pending = [(root, False)]
    while pending:
        node, closing = pending.pop()
        if closing or not isinstance(node.tag, str):
            if closing:
                _check(builder.on_element_end(node.tag))
            if node is not root and node.tail is not None:
                _check(builder.on_text(node.tail))
            continue

        _check(builder.on_element_start(node.tag, _flatten(node.attrib)))
        if node.text is not None:
            _check(builder.on_text(node.text))
        pending.append((node, True))
        pending.extend((child, False) for child in reversed(node))

    document = builder.detach_document()
    if document is None:
        raise ValueError("No document was built")
    return document


def _flatten(attrib: Any) -> List[str]:
    pairs: List[str] = []
    for name, value in attrib.items():
        pairs.append(name)
        pairs.append(value)
    return pairs


def _check(outcome: Outcome) -> None:
    if not outcome:
        failure = outcome.failure
        logger.warning(
            "lxml replay rejected",
            extra={"error_code": failure.code.name if failure else ErrorCode.NONE.name},
        )
        raise ValueError(failure.message if failure else "lxml replay failed")
