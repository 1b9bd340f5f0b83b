"""Configuration classes for tree building and serialization.

This module provides configuration objects for the builder and the printer,
plus a frozen ``ParserConfig`` that composes both and round-trips through
dictionaries and JSON.
"""

import codecs
import json
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

DEFAULT_INDENT_WIDTH = 3


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass
class BuilderConfig:
    """Configuration for the event-driven tree builder."""

    # Trim element contents on close; whitespace-only contents become absent
    ignore_whitespace: bool = False

    def __post_init__(self) -> None:
        """Validate builder configuration."""
        if not isinstance(self.ignore_whitespace, bool):
            raise ValueError("ignore_whitespace must be a bool")


@dataclass
class PrinterConfig:
    """Configuration for the serializer."""

    indented: bool = True
    indent_width: int = DEFAULT_INDENT_WIDTH
    encoding: str = "utf-8"

    def __post_init__(self) -> None:
        """Validate printer configuration."""
        if not isinstance(self.indented, bool):
            raise ValueError("indented must be a bool")
        if self.indent_width < 0:
            raise ValueError("indent_width must be >= 0")
        try:
            codecs.lookup(self.encoding)
        except LookupError:
            raise ValueError(f"Unknown encoding: {self.encoding}") from None

    @property
    def indent_unit(self) -> str:
        """Whitespace written once per nesting level."""
        return " " * self.indent_width


_COMPONENTS = ("builder", "printer")


@dataclass(frozen=True)
class ParserConfig:
    """Complete configuration for building and printing documents.

    Immutable, so one instance can be shared by several parsers and printers.
    """

    builder: BuilderConfig = field(default_factory=BuilderConfig)
    printer: PrinterConfig = field(default_factory=PrinterConfig)

    name: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the complete configuration."""
        for component in _COMPONENTS:
            try:
                getattr(self, component).__post_init__()
            except ValueError as e:
                raise ConfigValidationError(str(e), field_name=component) from e

    def override(self, **kwargs: Any) -> "ParserConfig":
        """Create a new configuration with specific overrides.

        Args:
            **kwargs: Fields to override; component fields use the
                ``component__field`` notation

        Returns:
            New ParserConfig instance with overrides applied

        Example:
            >>> config = ParserConfig().override(
            ...     printer__indent_width=2,
            ...     builder__ignore_whitespace=True,
            ... )
        """
        nested: Dict[str, Dict[str, Any]] = {}
        top_level: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = key.split("__", 1)
                if component not in _COMPONENTS:
                    raise ConfigValidationError(
                        f"Unknown configuration component: {component}",
                        field_name=key,
                        suggestions=list(_COMPONENTS),
                    )
                nested.setdefault(component, {})[field_name] = value
            else:
                top_level[key] = value

        new_fields: Dict[str, Any] = dict(top_level)
        for component, overrides in nested.items():
            try:
                new_fields[component] = replace(getattr(self, component), **overrides)
            except (TypeError, ValueError) as e:
                raise ConfigValidationError(str(e), field_name=component) from e

        return replace(self, **new_fields)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        return {
            "builder": dict(vars(self.builder)),
            "printer": dict(vars(self.printer)),
            "name": self.name,
            "description": self.description,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParserConfig":
        """Create configuration from dictionary.

        Unknown keys are rejected rather than silently dropped.
        """
        try:
            return cls(
                builder=BuilderConfig(**data.get("builder", {})),
                printer=PrinterConfig(**data.get("printer", {})),
                name=data.get("name"),
                description=data.get("description"),
            )
        except TypeError as e:
            raise ConfigValidationError(f"Invalid configuration data: {e}") from e
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

    @classmethod
    def from_json(cls, json_str: str) -> "ParserConfig":
        data = json.loads(json_str)
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration JSON must be an object")
        return cls.from_dict(data)

    # Preset factory methods
    @classmethod
    def compact(cls) -> "ParserConfig":
        """Single-line output from whitespace-trimmed trees."""
        return cls(
            builder=BuilderConfig(ignore_whitespace=True),
            printer=PrinterConfig(indented=False),
            name="compact",
            description="Whitespace-only contents dropped, no indentation",
        )

    @classmethod
    def pretty(cls) -> "ParserConfig":
        """Indented output from whitespace-trimmed trees."""
        return cls(
            builder=BuilderConfig(ignore_whitespace=True),
            printer=PrinterConfig(indented=True),
            name="pretty",
            description="Whitespace-only contents dropped, indented output",
        )
