"""Text accumulation for element contents.

Character events arrive in arbitrary chunks. ``TextBuffer`` concatenates them
in order with amortized growth and keeps "never received text" (absent)
distinct from "received text, possibly empty".

Byte chunks go through an incremental UTF-8 decoder, so a multibyte character
may be split across any number of chunks. The bytes of an incomplete
character stay pending until the rest arrives or ``finish()`` is called.
"""

import codecs
from typing import Any, List, Optional, Union

Chunk = Union[str, bytes]

# C isspace() set; other Unicode whitespace (NBSP, U+3000) is content
WHITESPACE = " \t\n\r\v\f"


class TextBuffer:
    """Order-preserving accumulator for one element's text contents."""

    __slots__ = ("_chunks", "_length", "_joined", "_decoder")

    def __init__(self, initial: Optional[str] = None) -> None:
        self._chunks: Optional[List[str]] = None
        self._length = 0
        self._joined: Optional[str] = None
        self._decoder: Optional[Any] = None
        if initial is not None:
            self.append(initial)

    @property
    def is_absent(self) -> bool:
        """True until the first chunk arrives, or after ``clear()``."""
        return self._chunks is None

    @property
    def has_pending_bytes(self) -> bool:
        """True while a byte chunk ended inside a multibyte character."""
        return self._decoder is not None and bool(self._decoder.getstate()[0])

    def __len__(self) -> int:
        return self._length

    def append(self, chunk: Chunk, length: Optional[int] = None) -> int:
        """Append ``chunk`` and return the new total length in characters.

        ``length`` is authoritative when given: only the first ``length``
        items of ``chunk`` are taken (bytes for a byte chunk, characters for
        a string), embedded NULs included. An empty chunk still marks the
        contents present.

        Raises:
            UnicodeDecodeError: If byte chunks are not valid UTF-8, or a
                string arrives while a split character is still pending
        """
        if length is not None:
            if length < 0:
                raise ValueError("Chunk length must be >= 0")
            chunk = chunk[:length]

        if isinstance(chunk, bytes):
            if self._decoder is None:
                self._decoder = codecs.getincrementaldecoder("utf-8")()
            text = self._decoder.decode(chunk)
        else:
            self.finish()
            text = chunk

        if self._chunks is None:
            self._chunks = []
        if text:
            self._chunks.append(text)
            self._length += len(text)
            self._joined = None
        return self._length

    def finish(self) -> None:
        """Decode any pending bytes, failing if they are an incomplete character.

        Raises:
            UnicodeDecodeError: If the byte chunks ended mid-character
        """
        decoder, self._decoder = self._decoder, None
        if decoder is None:
            return
        text = decoder.decode(b"", final=True)
        if self._chunks is None:
            self._chunks = []
        if text:
            self._chunks.append(text)
            self._length += len(text)
            self._joined = None

    @property
    def value(self) -> Optional[str]:
        """Accumulated text, or ``None`` when absent.

        Bytes of a character that is still incomplete are not included.
        """
        if self._chunks is None:
            return None
        if self._joined is None:
            self._joined = "".join(self._chunks)
            # Collapse so later appends grow from a single piece
            self._chunks = [self._joined] if self._joined else []
        return self._joined

    def set(self, text: Optional[str]) -> None:
        """Replace the contents; ``None`` makes them absent."""
        self.clear()
        if text is not None:
            self.append(text)

    def trim(self) -> bool:
        """Strip leading and trailing whitespace in place.

        Only space, tab, newline, carriage return, vertical tab and form feed
        count as whitespace. Contents that trim to nothing become absent.
        Returns True when the contents are still present afterwards.
        """
        text = self.value
        if text is None:
            return False
        stripped = text.strip(WHITESPACE)
        if not stripped:
            self.clear()
            return False
        if stripped != text:
            self.set(stripped)
        return True

    def clear(self) -> None:
        self._chunks = None
        self._length = 0
        self._joined = None
        self._decoder = None

    def __repr__(self) -> str:
        return f"TextBuffer({self.value!r})"
