"""Shared utilities for event-driven XML tree building.

This module provides result types, error reporting, configuration objects
and logging used by the tree, printer and API layers.
"""

from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    ErrorCode,
    Failure,
    Outcome,
    PerformanceMetrics,
)
from .errors import (
    clear_last_error,
    error_string,
    last_error,
    last_error_code,
    set_last_error,
)
from .config import (
    BuilderConfig,
    ConfigError,
    ConfigValidationError,
    ParserConfig,
    PrinterConfig,
)
from .logging import (
    ComponentLogger,
    get_logger,
)

__all__ = [
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "ErrorCode",
    "Failure",
    "Outcome",
    "PerformanceMetrics",
    "clear_last_error",
    "error_string",
    "last_error",
    "last_error_code",
    "set_last_error",
    "BuilderConfig",
    "ConfigError",
    "ConfigValidationError",
    "ParserConfig",
    "PrinterConfig",
    "ComponentLogger",
    "get_logger",
]
