"""Expat-driven parsing API.

``XMLParser`` connects ``xml.parsers.expat`` to ``XMLTreeBuilder``: every
declaration, element start, element end and character-data callback becomes
one builder event. The first builder failure stops expat immediately.

Progressive API disclosure:
- Level 1: ``parse()``, ``parse_string()``, ``parse_bytes()``, ``parse_file()``
  returning a ``ParseResult`` and never raising on bad input
- Level 2: ``XMLParser`` with explicit loads, incremental streams and a
  per-document stream callback
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, BinaryIO, Callable, Dict, List, Optional, TextIO, Union
from xml.parsers import expat

from xml_event_tree.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    ErrorCode,
    Failure,
    Outcome,
    ParserConfig,
    PerformanceMetrics,
    error_string,
    get_logger,
)
from xml_event_tree.shared.errors import record
from xml_event_tree.tree import XMLDocument, XMLTreeBuilder

InputType = Union[str, bytes, BinaryIO, TextIO, Path]
StreamCallback = Callable[["XMLParser"], bool]

READ_CHUNK_SIZE = 64 * 1024
MS_PER_SECOND = 1000
PREVIEW_LENGTH = 100


@dataclass(frozen=True)
class TokenizerError:
    """Diagnostic detail reported by expat when it rejects the input."""

    code: int
    line: int
    column: int
    message: str

    def describe(self) -> str:
        return (
            f"Expat error #{self.code} (line {self.line}, column {self.column}): "
            f"{self.message}"
        )


class _StopParsing(Exception):
    """Raised from an expat handler to stop the parse with an outcome."""

    def __init__(self, outcome: Outcome) -> None:
        super().__init__(outcome.failure.message if outcome.failure else "stopped")
        self.outcome = outcome


@dataclass
class ParseResult:
    """Result of a complete parse: the document plus failure and diagnostics.

    On failure ``document`` still holds whatever was built before the parse
    stopped, which may be ``None`` or lack a root.
    """

    document: Optional[XMLDocument] = None
    success: bool = True
    failure: Optional[Failure] = None
    tokenizer_error: Optional[TokenizerError] = None
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    correlation_id: Optional[str] = None

    @property
    def error_code(self) -> ErrorCode:
        return self.failure.code if self.failure else ErrorCode.NONE

    @property
    def root(self):
        return self.document.root if self.document else None

    @property
    def element_count(self) -> int:
        return self.document.total_elements if self.document else 0

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        position: Optional[Dict[str, int]] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add diagnostic entry to result."""
        self.diagnostics.append(
            DiagnosticEntry(
                severity=severity,
                message=message,
                component=component,
                position=position,
                details=details,
                correlation_id=self.correlation_id,
            )
        )

    def has_errors(self) -> bool:
        """Check if result contains any error diagnostics."""
        return any(
            diag.severity in (DiagnosticSeverity.ERROR, DiagnosticSeverity.CRITICAL)
            for diag in self.diagnostics
        )

    def error_message(self) -> Optional[str]:
        """Canonical ``(code, message)`` report as one line, ``None`` on success."""
        if self.failure is None:
            return None
        text = f"{error_string(self.failure.code)}: {self.failure.message}"
        if self.tokenizer_error is not None:
            text = f"{text} [{self.tokenizer_error.describe()}]"
        return text

    def summary(self) -> Dict[str, Any]:
        """Get a flat summary suitable for logging or JSON output."""
        return {
            "success": self.success,
            "error_code": self.error_code.name,
            "error": self.error_message(),
            "element_count": self.element_count,
            "processing_time_ms": self.performance.processing_time_ms,
            "events_processed": self.performance.events_processed,
            "bytes_processed": self.performance.bytes_processed,
            "diagnostic_count": len(self.diagnostics),
            "correlation_id": self.correlation_id,
        }


class XMLParser:
    """Load XML through expat into a document tree.

    Each ``load_*`` call starts a fresh parse; keep the previous document with
    ``detach_document()`` first if it is still needed. ``load_stream`` accepts
    input in arbitrary chunks. With a ``stream_callback`` set, the callback is
    invoked every time a top-level element completes, and the parser then
    starts over for the next document in the same stream; a falsy return
    from the callback stops the stream with ``ErrorCode.CALLBACK``.

    Example:
        >>> parser = XMLParser()
        >>> if parser.load_string('<a x="1"><b/></a>'):
        ...     root = parser.document.root
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        correlation_id: Optional[str] = None,
        stream_callback: Optional[StreamCallback] = None,
    ) -> None:
        self.config = config or ParserConfig()
        self.correlation_id = correlation_id
        self.stream_callback = stream_callback
        self.logger = get_logger(__name__, correlation_id, "xml_parser")

        self.builder = XMLTreeBuilder(self.config.builder, correlation_id)
        self._expat: Optional[Any] = None
        self._tokenizer_error: Optional[TokenizerError] = None
        self._failure: Optional[Failure] = None
        self._streaming = False
        self._between_documents = False
        self._document_ready = False
        self._bytes_processed = 0

    # State

    @property
    def ignore_whitespace(self) -> bool:
        return self.builder.ignore_whitespace

    @ignore_whitespace.setter
    def ignore_whitespace(self, value: bool) -> None:
        self.builder.ignore_whitespace = value

    def set_stream_callback(self, callback: Optional[StreamCallback]) -> None:
        self.stream_callback = callback

    @property
    def document(self) -> Optional[XMLDocument]:
        return self.builder.document

    def detach_document(self) -> Optional[XMLDocument]:
        """Hand the built document to the caller; the parser forgets it."""
        return self.builder.detach_document()

    @property
    def tokenizer_error(self) -> Optional[TokenizerError]:
        """Expat's code, position and message for the last rejected input."""
        return self._tokenizer_error

    @property
    def failure(self) -> Optional[Failure]:
        return self._failure

    @property
    def bytes_processed(self) -> int:
        return self._bytes_processed

    def reset(self) -> None:
        """Drop all parse state, including an undetached document."""
        self.builder.reset()
        self._expat = None
        self._tokenizer_error = None
        self._failure = None
        self._streaming = False
        self._between_documents = False
        self._document_ready = False
        self._bytes_processed = 0

    # Loading

    def load_string(self, text: str) -> Outcome:
        """Parse a complete document held in a string."""
        self._start(encoding="utf-8")
        return self._feed(text, final=True)

    def load_bytes(self, data: bytes) -> Outcome:
        """Parse a complete document; the encoding comes from the declaration."""
        self._start()
        return self._feed(data, final=True)

    def load_fileobj(self, stream: Union[BinaryIO, TextIO]) -> Outcome:
        """Parse a complete document read from a file-like object."""
        first = stream.read(READ_CHUNK_SIZE)
        self._start(encoding="utf-8" if isinstance(first, str) else None)
        chunk = first
        while chunk:
            outcome = self._feed(chunk, final=False)
            if not outcome:
                return outcome
            chunk = stream.read(READ_CHUNK_SIZE)
        return self._feed(b"", final=True)

    def load_file(self, path: Union[str, Path]) -> Outcome:
        """Parse a complete document from a file on disk."""
        try:
            with Path(path).open("rb") as stream:
                return self.load_fileobj(stream)
        except OSError as e:
            self.logger.warning("Unable to read input file", extra={"path": str(path)})
            return self._fail(Outcome.fail(ErrorCode.IO, f"Unable to read {path}: {e}"))

    def load_stream(self, chunk: Union[str, bytes]) -> Outcome:
        """Feed the next chunk of an incremental stream.

        String chunks are encoded as UTF-8. Call ``finish_stream()`` once the
        input is exhausted.
        """
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        if not self._streaming:
            self._start()
            self._streaming = True

        if self.stream_callback is None:
            return self._feed(chunk, final=False)

        # Byte at a time, so the parser can restart exactly where a
        # top-level element ends.
        for index in range(len(chunk)):
            byte = chunk[index:index + 1]
            if self._between_documents:
                if byte.isspace():
                    self._bytes_processed += 1
                    continue
                self._between_documents = False
            outcome = self._feed(byte, final=False)
            if not outcome:
                return outcome
            if self._document_ready:
                outcome = self._complete_stream_document()
                if not outcome:
                    return outcome
        return Outcome.ok()

    def finish_stream(self) -> Outcome:
        """Signal the end of an incremental stream."""
        if not self._streaming:
            return Outcome.ok()
        self._streaming = False
        if self._between_documents:
            self._between_documents = False
            return Outcome.ok()
        return self._feed(b"", final=True)

    # Expat plumbing

    def _start(self, encoding: Optional[str] = None) -> None:
        self.reset()
        self._expat = self._create_expat(encoding)
        self.logger.info(
            "Starting parse",
            extra={"ignore_whitespace": self.ignore_whitespace},
        )

    def _create_expat(self, encoding: Optional[str] = None) -> Any:
        parser = expat.ParserCreate(encoding)
        parser.ordered_attributes = True
        parser.XmlDeclHandler = self._handle_declaration
        parser.StartElementHandler = self._handle_start
        parser.EndElementHandler = self._handle_end
        parser.CharacterDataHandler = self._handle_characters
        return parser

    def _feed(self, data: Union[str, bytes], final: bool) -> Outcome:
        if self._failure is not None:
            return Outcome.fail(
                ErrorCode.INTERNAL,
                "Parser stopped by an earlier failure; reset() before a new parse",
            )
        try:
            self._expat.Parse(data, final)
        except _StopParsing as stop:
            return self._fail(stop.outcome)
        except expat.ExpatError as e:
            self._tokenizer_error = TokenizerError(
                code=e.code,
                line=e.lineno,
                column=e.offset,
                message=expat.errors.messages[e.code],
            )
            self.logger.warning(
                "Tokenizer rejected input",
                extra={"line": e.lineno, "column": e.offset, "reason": str(e)},
            )
            return self._fail(Outcome.fail(ErrorCode.TOKENIZER, str(e)))
        self._bytes_processed += len(data)
        return Outcome.ok()

    def _fail(self, outcome: Outcome) -> Outcome:
        self._failure = outcome.failure
        self._expat = None
        return record(outcome)

    def _complete_stream_document(self) -> Outcome:
        self._document_ready = False
        callback = self.stream_callback
        if callback is not None and not callback(self):
            return self._fail(
                Outcome.fail(ErrorCode.CALLBACK, "Stream callback requested stop")
            )
        # Start over for the next top-level document in the stream
        self.builder.reset()
        self._expat = self._create_expat()
        self._between_documents = True
        return Outcome.ok()

    def _check(self, outcome: Outcome) -> None:
        if not outcome:
            raise _StopParsing(outcome)

    def _handle_declaration(
        self, version: Optional[str], encoding: Optional[str], standalone: int
    ) -> None:
        self._check(self.builder.on_declaration(version, encoding, standalone))

    def _handle_start(self, name: str, attributes: List[str]) -> None:
        self._check(self.builder.on_element_start(name, attributes))

    def _handle_end(self, name: str) -> None:
        self._check(self.builder.on_element_end(name))
        if self.builder.depth == 0:
            self._document_ready = True

    def _handle_characters(self, data: str) -> None:
        self._check(self.builder.on_text(data))


# Level 1 functions

def parse(
    input_data: InputType,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None,
) -> ParseResult:
    """Parse XML from a string, bytes, path or file-like object.

    Strings are treated as markup, not as file names; pass a ``Path`` to read
    a file.

    Examples:
        >>> result = parse('<root><item>value</item></root>')
        >>> result.success
        True
        >>> result.root.name
        'root'
    """
    if isinstance(input_data, str):
        return parse_string(input_data, config, correlation_id)
    if isinstance(input_data, (bytes, bytearray)):
        return parse_bytes(bytes(input_data), config, correlation_id)
    if isinstance(input_data, Path):
        return parse_file(input_data, config, correlation_id)
    if hasattr(input_data, "read"):
        return _run(
            lambda parser: parser.load_fileobj(input_data),
            config,
            correlation_id,
            {"input_type": type(input_data).__name__},
        )
    raise TypeError(f"Unsupported input type: {type(input_data).__name__}")


def parse_string(
    xml_string: str,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None,
) -> ParseResult:
    """Parse XML held in a string."""
    preview = (
        xml_string[:PREVIEW_LENGTH] + "..."
        if len(xml_string) > PREVIEW_LENGTH else xml_string
    )
    return _run(
        lambda parser: parser.load_string(xml_string),
        config,
        correlation_id,
        {"content_length": len(xml_string), "preview": preview},
    )


def parse_bytes(
    data: bytes,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None,
) -> ParseResult:
    """Parse XML held in bytes, honouring the declared encoding."""
    return _run(
        lambda parser: parser.load_bytes(data),
        config,
        correlation_id,
        {"content_length": len(data)},
    )


def parse_file(
    file_path: Union[str, Path],
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None,
) -> ParseResult:
    """Parse XML from a file on disk."""
    return _run(
        lambda parser: parser.load_file(file_path),
        config,
        correlation_id,
        {"path": str(file_path)},
    )


def _run(
    load: Callable[[XMLParser], Outcome],
    config: Optional[ParserConfig],
    correlation_id: Optional[str],
    context: Dict[str, Any],
) -> ParseResult:
    start_time = time.time()
    logger = get_logger(__name__, correlation_id, "parse")
    logger.info("Starting parse operation", extra=context)

    parser = XMLParser(config, correlation_id)
    outcome = load(parser)

    result = ParseResult(
        document=parser.detach_document(),
        success=outcome.success,
        failure=outcome.failure,
        tokenizer_error=parser.tokenizer_error,
        performance=parser.builder.metrics,
        correlation_id=correlation_id,
    )
    result.performance.bytes_processed = parser.bytes_processed
    result.performance.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND

    if outcome:
        if result.document is None or result.document.root is None:
            result.add_diagnostic(
                DiagnosticSeverity.WARNING,
                "Parse finished without a root element",
                "parser",
            )
        logger.info("Parse operation completed", extra=result.summary())
    else:
        position = None
        if parser.tokenizer_error is not None:
            position = {
                "line": parser.tokenizer_error.line,
                "column": parser.tokenizer_error.column,
            }
        result.add_diagnostic(
            DiagnosticSeverity.ERROR,
            result.error_message() or error_string(outcome.code),
            "parser",
            position=position,
            details={"error_code": outcome.code.name},
        )
        logger.error("Parse operation failed", extra=result.summary())
    parser.reset()
    return result
