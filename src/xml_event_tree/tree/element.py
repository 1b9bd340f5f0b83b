"""Element and attribute nodes of the document tree."""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from .contents import Chunk, TextBuffer


@dataclass
class XMLAttribute:
    """A single ``name="value"`` pair of an element."""

    name: str
    value: str

    def __post_init__(self) -> None:
        """Validate attribute values."""
        if not isinstance(self.name, str) or not isinstance(self.value, str):
            raise TypeError("Attribute name and value must be strings")
        if not self.name:
            raise ValueError("Attribute name cannot be empty")

    def as_pair(self) -> Tuple[str, str]:
        return (self.name, self.value)


AttributeInput = Union[
    Dict[str, str],
    Iterable[Union[XMLAttribute, Tuple[str, str]]],
]


class XMLElement:
    """A named node with ordered attributes, ordered children and text contents.

    Children are owned by their parent: adding a child links it into this
    element's child list and sets its ``parent`` back-reference, which is used
    for navigation only. Attribute names may repeat; attributes are kept in
    insertion order and never merged.

    Contents are tri-state: ``None`` when no text was ever received, a string
    (possibly empty) otherwise. When an element has both children and
    contents, serialization emits the children first and the contents after
    them; the original interleaving is not kept.
    """

    __slots__ = ("_name", "attributes", "children", "parent", "_text", "_released")

    def __init__(
        self,
        name: str,
        attributes: Optional[AttributeInput] = None,
        contents: Optional[str] = None,
        children: Optional[Iterable["XMLElement"]] = None,
    ) -> None:
        if not isinstance(name, str):
            raise TypeError("Element name must be a string")
        if not name:
            raise ValueError("Element name cannot be empty")

        self._name = name
        self.attributes: List[XMLAttribute] = []
        self.children: List[XMLElement] = []
        self.parent: Optional[XMLElement] = None
        self._text = TextBuffer(contents)
        self._released = False

        if attributes:
            items = attributes.items() if isinstance(attributes, dict) else attributes
            for item in items:
                if isinstance(item, XMLAttribute):
                    self.attributes.append(item)
                else:
                    self.add_attribute(*item)

        for child in children or ():
            self.add_child(child)

    @property
    def name(self) -> str:
        """Element name; fixed at creation."""
        return self._name

    def __repr__(self) -> str:
        return (
            f"XMLElement(name={self._name!r}, attributes={len(self.attributes)}, "
            f"children={len(self.children)}, contents={self.contents!r})"
        )

    # Contents

    @property
    def contents(self) -> Optional[str]:
        return self._text.value

    @contents.setter
    def contents(self, text: Optional[str]) -> None:
        self._text.set(text)

    @property
    def has_contents(self) -> bool:
        """Check if any text was received (empty text counts)."""
        return not self._text.is_absent

    def append_contents(self, chunk: Chunk, length: Optional[int] = None) -> int:
        """Append a text chunk to the contents and return the new length."""
        return self._text.append(chunk, length)

    def finish_contents(self) -> None:
        """Decode bytes held back from a character split across chunks."""
        self._text.finish()

    def trim_contents(self) -> bool:
        """Strip surrounding whitespace; whitespace-only contents become absent."""
        return self._text.trim()

    def free_contents(self) -> None:
        """Make the contents absent."""
        self._text.clear()

    @property
    def is_mixed(self) -> bool:
        """Check if the element has both child elements and text contents."""
        return bool(self.children) and self.has_contents

    @property
    def is_empty(self) -> bool:
        """Check if the element would print as a self-closing tag."""
        return not self.children and not self.has_contents

    # Attributes

    def add_attribute(self, name: str, value: str) -> XMLAttribute:
        """Append an attribute, keeping any existing one with the same name."""
        attribute = XMLAttribute(name, value)
        self.attributes.append(attribute)
        return attribute

    def get_attribute(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get the value of the first attribute called ``name``."""
        for attribute in self.attributes:
            if attribute.name == name:
                return attribute.value
        return default

    def set_attribute(self, name: str, value: str) -> None:
        """Update the first attribute called ``name`` or append a new one."""
        for attribute in self.attributes:
            if attribute.name == name:
                attribute.value = value
                return
        self.add_attribute(name, value)

    def has_attribute(self, name: str) -> bool:
        return any(attribute.name == name for attribute in self.attributes)

    def remove_attribute(self, name: str) -> int:
        """Remove every attribute called ``name`` and return how many went."""
        kept = [attribute for attribute in self.attributes if attribute.name != name]
        removed = len(self.attributes) - len(kept)
        self.attributes = kept
        return removed

    # Children

    def add_child(self, child: "XMLElement") -> "XMLElement":
        """Append a child element and take ownership of it."""
        if not isinstance(child, XMLElement):
            raise TypeError("Child must be an XMLElement instance")
        if child is self:
            raise ValueError("Element cannot be its own child")

        child.parent = self
        self.children.append(child)
        return child

    def insert_child(self, index: int, child: "XMLElement") -> None:
        """Insert child element at specific index."""
        if not isinstance(child, XMLElement):
            raise TypeError("Child must be an XMLElement instance")
        if not (0 <= index <= len(self.children)):
            raise IndexError("Child index out of range")

        child.parent = self
        self.children.insert(index, child)

    def remove_child(self, child: "XMLElement") -> bool:
        """Detach a child element, handing ownership back to the caller."""
        for index, existing in enumerate(self.children):
            if existing is child:
                del self.children[index]
                child.parent = None
                return True
        return False

    def find_child(self, name: str) -> Optional["XMLElement"]:
        """Find first direct child with matching name."""
        for child in self.children:
            if child.name == name:
                return child
        return None

    def find_children(self, name: str) -> List["XMLElement"]:
        """Find all direct children with matching name."""
        return [child for child in self.children if child.name == name]

    def iter(self) -> Iterator["XMLElement"]:
        """Yield this element and its descendants in document order."""
        stack = [self]
        while stack:
            element = stack.pop()
            yield element
            stack.extend(reversed(element.children))

    def find(self, name: str) -> Optional["XMLElement"]:
        """Find first descendant (not self) with matching name."""
        return next(
            (element for element in self.iter() if element is not self and element.name == name),
            None,
        )

    def find_all(self, name: str) -> List["XMLElement"]:
        """Find all descendants (not self) with matching name."""
        return [
            element for element in self.iter()
            if element is not self and element.name == name
        ]

    def find_by_attribute(
        self, name: str, value: Optional[str] = None
    ) -> List["XMLElement"]:
        """Find this element and descendants by attribute name and optionally value."""
        return [
            element for element in self.iter()
            if any(
                attribute.name == name and (value is None or attribute.value == value)
                for attribute in element.attributes
            )
        ]

    def get_depth(self) -> int:
        """Get depth of this element in the tree (root = 0)."""
        depth = 0
        node = self.parent
        while node is not None:
            depth += 1
            node = node.parent
        return depth

    def get_path(self) -> str:
        """Get a slash-separated path from the root to this element.

        Siblings sharing a name are told apart with a 1-based ``[n]`` suffix.
        """
        parts = []
        node: Optional[XMLElement] = self
        while node is not None:
            part = node.name
            if node.parent is not None:
                siblings = node.parent.find_children(node.name)
                if len(siblings) > 1:
                    position = next(i for i, s in enumerate(siblings) if s is node) + 1
                    part = f"{part}[{position}]"
            parts.append(part)
            node = node.parent
        return "/" + "/".join(reversed(parts))

    # Lifetime

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """Tear down this element and every descendant exactly once.

        The element is detached from its parent, its subtree is emptied and
        every node is marked released. Releasing an element twice is an
        ownership bug and raises ``RuntimeError``.
        """
        if self._released:
            raise RuntimeError(f"Element {self._name!r} already released")

        if self.parent is not None:
            self.parent.remove_child(self)

        stack = [self]
        while stack:
            element = stack.pop()
            if element._released:
                raise RuntimeError(f"Element {element._name!r} already released")
            element._released = True
            stack.extend(element.children)
            element.children = []
            element.attributes = []
            element.parent = None
            element._text.clear()

    def to_dict(self) -> Dict[str, Any]:
        """Convert element to dictionary representation."""
        result: Dict[str, Any] = {
            "name": self._name,
            "attributes": [attribute.as_pair() for attribute in self.attributes],
        }

        if self.has_contents:
            result["contents"] = self.contents

        if self.children:
            result["children"] = [child.to_dict() for child in self.children]

        return result
