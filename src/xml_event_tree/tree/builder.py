"""Event-driven tree builder.

The builder consumes structural events one at a time and assembles them into an
``XMLDocument``. Open elements are tracked on an explicit construction stack,
so nesting depth never depends on the Python call stack.

Ownership moves to the parent the moment a child is appended, before the child
is pushed. The stack only holds references; popping never releases anything.
The one element the stack can orphan is its bottom entry (a root that has not
closed yet), which ``unwind()`` releases when a parse is abandoned.
"""

import time
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from xml_event_tree.shared import (
    BuilderConfig,
    ErrorCode,
    Failure,
    Outcome,
    PerformanceMetrics,
    get_logger,
)

from .document import Standalone, XMLDocument
from .element import XMLElement
from .events import Event, EventType

_ABORTED_MESSAGE = "Builder aborted by an earlier failure; reset() before a new parse"


class XMLTreeBuilder:
    """Consumer of declaration, element-start, element-end and text events.

    Every ``on_*`` method returns an ``Outcome``. The first failing event
    aborts the parse: the failure is kept in ``failure`` and each later event
    fails with ``ErrorCode.INTERNAL`` until ``reset()``. Elements already
    linked into the tree stay reachable through ``document`` or ``stack``;
    nothing is rolled back.

    Example:
        >>> builder = XMLTreeBuilder()
        >>> outcome = builder.on_element_start("root", ["id", "1"])
        >>> outcome = builder.on_text("hello")
        >>> outcome = builder.on_element_end("root")
        >>> builder.document.root.contents
        'hello'
    """

    def __init__(
        self,
        config: Optional[BuilderConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize tree builder.

        Args:
            config: Builder configuration, defaults to ``BuilderConfig()``
            correlation_id: Optional correlation ID for request tracking
        """
        self.config = config or BuilderConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "xml_tree_builder")

        self._document: Optional[XMLDocument] = None
        self._current: Optional[XMLElement] = None
        self._stack: List[XMLElement] = []
        self._failure: Optional[Failure] = None
        self._roots_completed = 0
        self.metrics = PerformanceMetrics()
        self._start_time: Optional[float] = None

    # State

    @property
    def ignore_whitespace(self) -> bool:
        return self.config.ignore_whitespace

    @ignore_whitespace.setter
    def ignore_whitespace(self, value: bool) -> None:
        self.config = BuilderConfig(ignore_whitespace=value)

    @property
    def document(self) -> Optional[XMLDocument]:
        return self._document

    @property
    def current(self) -> Optional[XMLElement]:
        """Innermost open element, ``None`` when nothing is open."""
        return self._current

    @property
    def stack(self) -> Tuple[XMLElement, ...]:
        """Open elements from outermost to innermost."""
        return tuple(self._stack)

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def failure(self) -> Optional[Failure]:
        return self._failure

    @property
    def aborted(self) -> bool:
        return self._failure is not None

    @property
    def roots_completed(self) -> int:
        """Number of times the outermost element closed and became the root."""
        return self._roots_completed

    @property
    def is_complete(self) -> bool:
        """Check if a root has closed and no element is open."""
        return self._roots_completed > 0 and not self._stack

    def reset(self) -> None:
        """Forget all state and prepare for a new parse.

        Elements still on the stack are unwound first. A document built so far
        is dropped without being released; detach it beforehand to keep it.
        """
        if self._stack:
            self.unwind()
        self._document = None
        self._current = None
        self._failure = None
        self._roots_completed = 0
        self.metrics = PerformanceMetrics()
        self._start_time = None

    def detach_document(self) -> Optional[XMLDocument]:
        """Hand the document over to the caller and forget it."""
        document, self._document = self._document, None
        return document

    # Events

    def on_declaration(
        self,
        version: Optional[str],
        encoding: Optional[str],
        standalone: int = -1,
    ) -> Outcome:
        """Handle an XML declaration.

        Creates the document if needed (a repeated declaration reuses it) and
        refreshes its declaration fields. ``standalone`` is the tokenizer's
        -1/0/1 code.
        """
        blocked = self._begin_event()
        if blocked is not None:
            return blocked

        try:
            mapped = Standalone.from_tokenizer(standalone)
        except ValueError as e:
            return self._abort(ErrorCode.INTERNAL, str(e), {"standalone": standalone})

        try:
            document = self._ensure_document()
        except MemoryError:
            return self._abort(ErrorCode.OUT_OF_MEMORY, "Unable to allocate document")

        document.set_declaration(version, encoding, mapped)
        self.logger.debug(
            "Declaration received",
            extra={"version": version, "encoding": encoding, "standalone": mapped.name},
        )
        return Outcome.ok()

    def on_element_start(
        self,
        name: str,
        attributes: Sequence[Optional[str]] = (),
    ) -> Outcome:
        """Open a new element.

        ``attributes`` is a flat alternating ``[name, value, ...]`` list; a
        ``None`` entry ends it early. The new element is appended to the
        current element (if any) and becomes the new current element.
        """
        blocked = self._begin_event()
        if blocked is not None:
            return blocked

        try:
            element = self._create_element(name, attributes)
        except MemoryError:
            return self._abort(
                ErrorCode.OUT_OF_MEMORY,
                "Unable to allocate element",
                {"element": name},
            )
        except (TypeError, ValueError) as e:
            return self._abort(ErrorCode.INTERNAL, f"Invalid element start: {e}", {"element": name})

        parent = self._current
        if parent is not None:
            parent.add_child(element)

        try:
            self._stack.append(element)
        except MemoryError:
            if parent is None:
                element.release()
            return self._abort(
                ErrorCode.OUT_OF_MEMORY,
                "Unable to push element onto the construction stack",
                {"element": name, "depth": len(self._stack)},
            )

        self._current = element
        self.metrics.elements_created += 1
        self.metrics.attributes_created += len(element.attributes)
        if self.logger.is_debug_enabled():
            self.logger.debug(
                "Element opened",
                extra={"element": name, "depth": len(self._stack)},
            )
        return Outcome.ok()

    def on_element_end(self, name: Optional[str] = None) -> Outcome:
        """Close the current element.

        ``name`` is informational only; matching start and end names is the
        event source's job. When the stack empties, the closed element
        becomes the document root.
        """
        blocked = self._begin_event()
        if blocked is not None:
            return blocked

        closed = self._current
        if closed is None:
            return self._abort(
                ErrorCode.INTERNAL,
                "Element end received with no open element",
                {"element": name},
            )

        try:
            closed.finish_contents()
        except UnicodeDecodeError as e:
            return self._abort(
                ErrorCode.INTERNAL,
                f"Invalid character data: {e}",
                {"element": closed.name},
            )

        if self.config.ignore_whitespace and closed.has_contents:
            closed.trim_contents()

        self._stack.pop()
        self._current = self._stack[-1] if self._stack else None

        if self._current is None:
            try:
                document = self._ensure_document()
            except MemoryError:
                closed.release()
                return self._abort(ErrorCode.OUT_OF_MEMORY, "Unable to allocate document")

            previous = document.set_root(closed)
            if previous is not None and previous is not closed:
                self.logger.warning(
                    "Replacing existing document root",
                    extra={"previous": previous.name, "element": closed.name},
                )
                previous.release()
            self._roots_completed += 1
            self._finish_timing()
            self.logger.info(
                "Document root completed",
                extra={
                    "element": closed.name,
                    "elements_created": self.metrics.elements_created,
                    "events_processed": self.metrics.events_processed,
                },
            )
        return Outcome.ok()

    def on_text(
        self,
        chunk: Union[str, bytes],
        length: Optional[int] = None,
    ) -> Outcome:
        """Append a text chunk to the current element's contents.

        Chunk boundaries carry no meaning; consecutive chunks are concatenated
        in order. ``length``, when given, is authoritative over ``chunk``.
        """
        blocked = self._begin_event()
        if blocked is not None:
            return blocked

        current = self._current
        if current is None:
            return self._abort(
                ErrorCode.INTERNAL,
                "Character data received with no open element",
                {"length": length if length is not None else len(chunk)},
            )

        try:
            current.append_contents(chunk, length)
        except MemoryError:
            return self._abort(
                ErrorCode.OUT_OF_MEMORY,
                "Unable to grow element contents",
                {"element": current.name},
            )
        except (UnicodeDecodeError, ValueError) as e:
            return self._abort(ErrorCode.INTERNAL, f"Invalid character data: {e}")

        self.metrics.text_chunks += 1
        return Outcome.ok()

    def feed(self, event: Event) -> Outcome:
        """Dispatch a single event record to the matching ``on_*`` method."""
        event_type = getattr(event, "type", None)
        if event_type is EventType.DECLARATION:
            return self.on_declaration(event.version, event.encoding, event.standalone)
        if event_type is EventType.ELEMENT_START:
            return self.on_element_start(event.name, event.attributes)
        if event_type is EventType.ELEMENT_END:
            return self.on_element_end(event.name)
        if event_type is EventType.CHARACTERS:
            return self.on_text(event.data, event.length)
        return self._abort(
            ErrorCode.INTERNAL,
            f"Unrecognized event: {type(event).__name__}",
        )

    def build(self, events: Iterable[Event]) -> Outcome:
        """Feed events in order, stopping at the first failure."""
        self.logger.info("Starting tree building")
        for event in events:
            outcome = self.feed(event)
            if not outcome:
                return outcome
        return Outcome.ok()

    # Teardown

    def unwind(self) -> int:
        """Pop every open element after an abandoned parse.

        Elements above the bottom of the stack already belong to their parents
        and are left alone. The bottom entry is a root that never reached the
        document, so it is released together with its partial subtree.

        Returns:
            Number of stack entries popped
        """
        popped = 0
        while self._stack:
            element = self._stack.pop()
            popped += 1
            if not self._stack and element.parent is None:
                owner = self._document.root if self._document else None
                if owner is not element and not element.released:
                    element.release()
        self._current = None
        if popped:
            self.logger.debug("Construction stack unwound", extra={"popped": popped})
        return popped

    # Helpers

    def _begin_event(self) -> Optional[Outcome]:
        if self._failure is not None:
            return Outcome.fail(
                ErrorCode.INTERNAL,
                _ABORTED_MESSAGE,
                {"original_code": self._failure.code.name},
            )
        if self._start_time is None:
            self._start_time = time.perf_counter()
        self.metrics.events_processed += 1
        return None

    def _finish_timing(self) -> None:
        if self._start_time is not None:
            self.metrics.processing_time_ms = (
                time.perf_counter() - self._start_time
            ) * 1000

    def _ensure_document(self) -> XMLDocument:
        if self._document is None:
            self._document = XMLDocument(correlation_id=self.correlation_id)
        return self._document

    def _create_element(
        self, name: str, attributes: Sequence[Optional[str]]
    ) -> XMLElement:
        attributes = list(attributes)
        element = XMLElement(name)
        try:
            for index in range(0, len(attributes), 2):
                attr_name = attributes[index]
                if attr_name is None:
                    break
                if index + 1 >= len(attributes) or attributes[index + 1] is None:
                    raise ValueError(f"Attribute {attr_name!r} has no value")
                element.add_attribute(attr_name, attributes[index + 1])
        except Exception:
            element.release()
            raise
        return element

    def _abort(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[dict] = None,
    ) -> Outcome:
        outcome = Outcome.fail(code, message, details)
        self._failure = outcome.failure
        self._finish_timing()
        self.logger.error(
            f"Tree building aborted: {message}",
            extra={"error_code": code.name, "depth": len(self._stack)},
        )
        return outcome
