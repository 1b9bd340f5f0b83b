"""Structural events consumed by the tree builder.

An event source either calls the builder's ``on_*`` methods directly or hands
it a sequence of these records through ``XMLTreeBuilder.feed``/``build``.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Sequence, Union


class EventType(Enum):
    """The four kinds of structural events."""

    DECLARATION = auto()
    ELEMENT_START = auto()
    ELEMENT_END = auto()
    CHARACTERS = auto()


@dataclass(frozen=True)
class Declaration:
    version: Optional[str] = None
    encoding: Optional[str] = None
    standalone: int = -1  # -1 unknown, 0 no, 1 yes

    type = EventType.DECLARATION


@dataclass(frozen=True)
class ElementStart:
    """Element open with a flat ``[name, value, name, value, ...]`` list.

    A ``None`` entry terminates the list early.
    """

    name: str
    attributes: Sequence[Optional[str]] = ()

    type = EventType.ELEMENT_START


@dataclass(frozen=True)
class ElementEnd:
    name: str

    type = EventType.ELEMENT_END


@dataclass(frozen=True)
class Characters:
    """Text chunk; ``length`` (when set) is authoritative over ``data``."""

    data: Union[str, bytes]
    length: Optional[int] = None

    type = EventType.CHARACTERS


Event = Union[Declaration, ElementStart, ElementEnd, Characters]
