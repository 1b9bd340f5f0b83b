"""Component-aware logging for tree building and serialization.

Records carry the emitting component and an optional correlation ID in their
``extra`` mapping so that log output from several parses can be told apart.
"""

import logging
from typing import Any, Dict, Optional


class ComponentLogger:
    """Wrapper around ``logging.Logger`` that tags records with a component."""

    def __init__(
        self,
        name: str,
        correlation_id: Optional[str] = None,
        component: Optional[str] = None
    ) -> None:
        """Initialize component logger.

        Args:
            name: Logger name (typically __name__)
            correlation_id: Optional correlation ID shared by related records
            component: Component name, defaults to the last part of ``name``
        """
        self.logger = logging.getLogger(name)
        self.correlation_id = correlation_id
        self.component = component or name.rsplit(".", 1)[-1]

    def _extra(self, extra: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        combined = {
            "component": self.component,
            "correlation_id": self.correlation_id,
        }
        if extra:
            combined.update(extra)
        return combined

    def is_debug_enabled(self) -> bool:
        """Check whether DEBUG records would be emitted."""
        return self.logger.isEnabledFor(logging.DEBUG)

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self.logger.debug(message, extra=self._extra(extra))

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self.logger.info(message, extra=self._extra(extra))

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self.logger.warning(message, extra=self._extra(extra))

    def error(
        self,
        message: str,
        extra: Optional[Dict[str, Any]] = None,
        exc_info: bool = False
    ) -> None:
        """Log error message; tracebacks are opt-in since most failures are codes."""
        self.logger.error(message, extra=self._extra(extra), exc_info=exc_info)

    def exception(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        """Log error message with the active exception's traceback."""
        self.logger.exception(message, extra=self._extra(extra))

    def child(self, component: str) -> "ComponentLogger":
        """Create a logger for a sub-component sharing the correlation ID."""
        return ComponentLogger(self.logger.name, self.correlation_id, component)


def get_logger(
    name: str,
    correlation_id: Optional[str] = None,
    component: Optional[str] = None
) -> ComponentLogger:
    """Get a component-aware logger instance.

    Args:
        name: Logger name (typically __name__)
        correlation_id: Optional correlation ID for request tracking
        component: Component name for structured logging

    Returns:
        ComponentLogger instance
    """
    return ComponentLogger(name, correlation_id, component)
