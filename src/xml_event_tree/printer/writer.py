"""Output sinks for the serializer.

A sink only needs ``write(data: bytes) -> bool``; a falsy return (or an
``OSError``) means the write failed. The printer issues many small writes, so
``BufferedWriter`` can sit in front of a slow sink without changing the bytes
that reach it.
"""

import io
from pathlib import Path
from typing import Any, BinaryIO, List, Optional, Protocol, Union, runtime_checkable

from xml_event_tree.shared import get_logger

DEFAULT_BUFFER_SIZE = 8192


@runtime_checkable
class Writer(Protocol):
    """Anything the printer can write serialized bytes to."""

    def write(self, data: bytes) -> bool:
        ...


class BufferWriter:
    """In-memory sink."""

    def __init__(self) -> None:
        self._buffer = io.BytesIO()

    def write(self, data: bytes) -> bool:
        self._buffer.write(data)
        return True

    def getvalue(self) -> bytes:
        return self._buffer.getvalue()

    def text(self, encoding: str = "utf-8") -> str:
        return self._buffer.getvalue().decode(encoding)

    def clear(self) -> None:
        self._buffer = io.BytesIO()

    def __len__(self) -> int:
        return self._buffer.getbuffer().nbytes


class StreamWriter:
    """Sink over a binary file-like object the caller owns."""

    def __init__(self, stream: BinaryIO) -> None:
        if not hasattr(stream, "write"):
            raise TypeError("Stream must provide a write() method")
        self.stream = stream
        self.logger = get_logger(__name__, component="stream_writer")

    def write(self, data: bytes) -> bool:
        try:
            written = self.stream.write(data)
        except (OSError, ValueError) as e:
            self.logger.warning(
                "Stream write failed",
                extra={"error": str(e), "size": len(data)},
            )
            return False
        # Raw streams may report a short write
        return written is None or written == len(data)

    def flush(self) -> bool:
        flush = getattr(self.stream, "flush", None)
        if flush is None:
            return True
        try:
            flush()
        except (OSError, ValueError):
            return False
        return True


class FileWriter(StreamWriter):
    """Sink that opens, owns and closes a file."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        super().__init__(self.path.open("wb"))

    def close(self) -> None:
        if not self.stream.closed:
            self.stream.close()

    def __enter__(self) -> "FileWriter":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class BufferedWriter:
    """Collect small writes and pass them on in larger blocks."""

    def __init__(self, writer: Writer, buffer_size: int = DEFAULT_BUFFER_SIZE) -> None:
        if buffer_size <= 0:
            raise ValueError("buffer_size must be > 0")
        self.writer = writer
        self.buffer_size = buffer_size
        self._pending: List[bytes] = []
        self._pending_size = 0

    def write(self, data: bytes) -> bool:
        self._pending.append(data)
        self._pending_size += len(data)
        if self._pending_size >= self.buffer_size:
            return self.flush()
        return True

    def flush(self) -> bool:
        """Pass pending bytes on to the wrapped sink."""
        if not self._pending:
            return True
        data = b"".join(self._pending)
        self._pending = []
        self._pending_size = 0
        if not self.writer.write(data):
            return False
        inner_flush = getattr(self.writer, "flush", None)
        return inner_flush() is not False if inner_flush is not None else True

    def __enter__(self) -> "BufferedWriter":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.flush()


def as_writer(target: Optional[Union[Writer, BinaryIO]]) -> Writer:
    """Wrap a binary stream in ``StreamWriter`` unless it already is a sink.

    ``None`` yields a fresh ``BufferWriter``.
    """
    if target is None:
        return BufferWriter()
    if isinstance(target, (BufferWriter, StreamWriter, BufferedWriter)):
        return target
    if isinstance(target, io.IOBase) or hasattr(target, "fileno"):
        return StreamWriter(target)
    if isinstance(target, Writer):
        return target
    raise TypeError(f"Cannot write to {type(target).__name__}")
