"""Serialization of document trees to byte sinks."""

from .printer import XMLPrinter, to_bytes, to_string
from .writer import (
    BufferedWriter,
    BufferWriter,
    FileWriter,
    StreamWriter,
    Writer,
    as_writer,
)

__all__ = [
    "BufferedWriter",
    "BufferWriter",
    "FileWriter",
    "StreamWriter",
    "Writer",
    "XMLPrinter",
    "as_writer",
    "to_bytes",
    "to_string",
]
