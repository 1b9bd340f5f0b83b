"""Root document container with declaration metadata."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from .element import XMLElement


class Standalone(Enum):
    """Tri-state ``standalone`` declaration value."""

    UNKNOWN = 0
    NO = 1
    YES = 2

    @classmethod
    def from_tokenizer(cls, code: int) -> "Standalone":
        """Map the tokenizer's -1/0/1 code onto the enum with a fixed +1 shift."""
        try:
            return cls(code + 1)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid standalone code: {code!r}") from None

    @property
    def declaration_value(self) -> Optional[str]:
        """Text written in the declaration, ``None`` when unknown."""
        if self is Standalone.YES:
            return "yes"
        if self is Standalone.NO:
            return "no"
        return None


@dataclass(eq=False)
class XMLDocument:
    """Document root: declaration metadata plus the owned root element.

    ``version`` and ``encoding`` stay ``None`` unless a declaration provided
    them. The root is ``None`` until the outermost element closes.
    """

    root: Optional[XMLElement] = None
    version: Optional[str] = None
    encoding: Optional[str] = None
    standalone: Standalone = Standalone.UNKNOWN
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate document values."""
        if self.root is not None and not isinstance(self.root, XMLElement):
            raise TypeError("Document root must be an XMLElement instance")
        if not isinstance(self.standalone, Standalone):
            raise TypeError("standalone must be a Standalone value")
        self._released = False

    def set_declaration(
        self,
        version: Optional[str] = None,
        encoding: Optional[str] = None,
        standalone: Standalone = Standalone.UNKNOWN,
    ) -> None:
        """Refresh declaration fields; ``None`` leaves a field untouched."""
        if version is not None:
            self.version = version
        if encoding is not None:
            self.encoding = encoding
        self.standalone = standalone

    def set_root(self, root: XMLElement) -> Optional[XMLElement]:
        """Install ``root`` and return the previous root, now owned by the caller."""
        if not isinstance(root, XMLElement):
            raise TypeError("Document root must be an XMLElement instance")
        previous = self.root
        self.root = root
        return previous

    # Navigation

    def iter_elements(self) -> Iterator[XMLElement]:
        """Iterate over all elements in document order."""
        if self.root is None:
            return iter(())
        return self.root.iter()

    def find(self, name: str) -> Optional[XMLElement]:
        """Find first element with matching name, root included."""
        return next(
            (element for element in self.iter_elements() if element.name == name),
            None,
        )

    def find_all(self, name: str) -> List[XMLElement]:
        """Find all elements with matching name, root included."""
        return [element for element in self.iter_elements() if element.name == name]

    def find_by_attribute(
        self, name: str, value: Optional[str] = None
    ) -> List[XMLElement]:
        """Find elements by attribute name and optionally value."""
        if self.root is None:
            return []
        return self.root.find_by_attribute(name, value)

    def get_element_by_id(self, id_value: str) -> Optional[XMLElement]:
        """Find element by ID attribute value."""
        return next(iter(self.find_by_attribute("id", id_value)), None)

    # Statistics

    @property
    def total_elements(self) -> int:
        return sum(1 for _ in self.iter_elements())

    @property
    def total_attributes(self) -> int:
        return sum(len(element.attributes) for element in self.iter_elements())

    @property
    def max_depth(self) -> int:
        """Deepest nesting level (root = 0, empty document = 0)."""
        if self.root is None:
            return 0
        deepest = 0
        stack = [(self.root, 0)]
        while stack:
            element, depth = stack.pop()
            deepest = max(deepest, depth)
            stack.extend((child, depth + 1) for child in element.children)
        return deepest

    # Lifetime

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """Release the whole element tree exactly once."""
        if self._released:
            raise RuntimeError("Document already released")
        self._released = True
        root, self.root = self.root, None
        if root is not None:
            root.release()

    def to_dict(self) -> Dict[str, Any]:
        """Convert document to dictionary representation."""
        result: Dict[str, Any] = {
            "version": self.version,
            "encoding": self.encoding,
            "standalone": self.standalone.name.lower(),
            "total_elements": self.total_elements,
            "total_attributes": self.total_attributes,
            "max_depth": self.max_depth,
        }

        if self.root is not None:
            result["root"] = self.root.to_dict()

        return result
