"""Result objects and diagnostic types for event-driven tree building.

Every fallible operation of the builder and the printer returns an ``Outcome``
instead of raising, so callers can compose failure handling explicitly. The
diagnostic and metrics types are shared by the API layer when it reports on a
complete parse.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    """Failure kinds reported by the builder, the printer and the API layer."""

    NONE = auto()            # No failure recorded
    OUT_OF_MEMORY = auto()   # Allocation failed during tree construction
    INTERNAL = auto()        # Event protocol violation or aborted builder
    IO = auto()              # Sink write failed during serialization
    CALLBACK = auto()        # Stream callback asked to stop
    TOKENIZER = auto()       # The event source rejected its input


@dataclass(frozen=True)
class Failure:
    """A single failure with its code and a human-readable message."""

    code: ErrorCode
    message: str
    details: Optional[Dict[str, Any]] = None

    def __post_init__(self) -> None:
        """Validate failure values."""
        if self.code is ErrorCode.NONE:
            raise ValueError("Failure code cannot be NONE")
        if not self.message:
            raise ValueError("Failure message cannot be empty")


@dataclass(frozen=True)
class Outcome:
    """Success indicator returned by every fallible operation.

    An ``Outcome`` is truthy on success, so ``if not builder.on_text(...)``
    reads the same way as checking a boolean return value.
    """

    success: bool = True
    failure: Optional[Failure] = None

    @classmethod
    def ok(cls) -> "Outcome":
        return _OK

    @classmethod
    def fail(
        cls,
        code: ErrorCode,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> "Outcome":
        return cls(success=False, failure=Failure(code, message, details))

    @property
    def code(self) -> ErrorCode:
        """Error code of the failure, ``ErrorCode.NONE`` on success."""
        return self.failure.code if self.failure else ErrorCode.NONE

    def __bool__(self) -> bool:
        return self.success


_OK = Outcome()


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()
    CRITICAL = auto()


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    position: Optional[Dict[str, int]] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")


@dataclass
class PerformanceMetrics:
    """Counters collected while a document is being built."""

    processing_time_ms: float = 0.0
    bytes_processed: int = 0
    events_processed: int = 0
    elements_created: int = 0
    attributes_created: int = 0
    text_chunks: int = 0

    @property
    def events_per_second(self) -> float:
        """Calculate builder events handled per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.events_processed * 1000.0) / self.processing_time_ms

    @property
    def bytes_per_second(self) -> float:
        """Calculate input bytes consumed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.bytes_processed * 1000.0) / self.processing_time_ms
