"""
Type definitions for the XML emitter module.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class XMLError(Exception):
    """Base exception for XML emitter errors."""
    pass


class InvalidRootStructureError(XMLError):
    """Top-level data would produce more than one document root."""
    pass


class WriterError(XMLError):
    """The token writer refused an operation or the sink failed."""

    def __init__(self, message: str, name: Optional[str] = None):
        self.name = name
        if name is not None:
            message = f"'{name}': {message}"
        super().__init__(message)


class TypeMisuseError(XMLError):
    """A value of the wrong shape was used where the key dialect forbids it."""
    pass


class NestingDepthError(XMLError):
    """Input nesting exceeds the configured maximum depth."""

    def __init__(self, max_depth: int):
        self.max_depth = max_depth
        super().__init__(f"Input nesting exceeds maximum depth of {max_depth}")


class NodeKind(Enum):
    """Structural shape of an input node."""
    SCALAR = "scalar"
    SEQUENTIAL = "sequential"        # Keys are exactly 0..n-1
    ASSOCIATIVE = "associative"      # Any other mapping


class Directive(Enum):
    """Meaning of a key inside an associative node."""
    ATTRIBUTES = "attributes"
    VALUE = "value"
    CDATA = "cdata"
    MIXED = "mixed"
    NUMERIC = "numeric"
    CHILD = "child"


NUMERIC_KEY = "__numeric"

DIRECTIVE_KEYS: Dict[str, Directive] = {
    "_attributes": Directive.ATTRIBUTES,
    "@attributes": Directive.ATTRIBUTES,
    "_value": Directive.VALUE,
    "@value": Directive.VALUE,
    "_cdata": Directive.CDATA,
    "@cdata": Directive.CDATA,
    "_mixed": Directive.MIXED,
    "@mixed": Directive.MIXED,
    NUMERIC_KEY: Directive.NUMERIC,
}


@dataclass
class ConverterConfig:
    """Configuration for tree to XML conversion."""

    # Key handling
    numeric_tag_prefix: str = "numeric_"
    replace_spaces_in_keys: bool = True

    # XML declaration
    xml_encoding: Optional[str] = None
    xml_version: str = "1.0"

    # Streaming: closed elements before each sink flush
    flush_threshold: int = 1000

    # Output formatting
    indent: bool = True
    indent_string: str = " "

    # Recursion guard
    max_depth: int = 200

    @classmethod
    def for_streaming(cls, flush_threshold: int = 100) -> "ConverterConfig":
        """Create configuration for large documents written to a sink."""
        return cls(
            flush_threshold=flush_threshold,
            xml_encoding="UTF-8",
        )

    @classmethod
    def compact(cls) -> "ConverterConfig":
        """Create configuration that emits no indentation whitespace."""
        return cls(indent=False)

    @classmethod
    def from_settings(cls, settings: Optional[Any] = None) -> "ConverterConfig":
        """Create configuration from environment-driven settings."""
        if settings is None:
            from .settings import get_settings
            settings = get_settings()

        return cls(
            numeric_tag_prefix=settings.numeric_tag_prefix,
            replace_spaces_in_keys=settings.replace_spaces_in_keys,
            xml_encoding=settings.xml_encoding,
            xml_version=settings.xml_version,
            flush_threshold=settings.flush_threshold,
            indent=settings.indent,
            max_depth=settings.max_depth,
        )


@dataclass
class ConversionStats:
    """Counters collected during one conversion."""

    elements_written: int = 0
    attributes_written: int = 0
    text_nodes_written: int = 0
    cdata_sections_written: int = 0
    flushes: int = 0
    max_depth_reached: int = 0
    conversion_time: float = 0.0

    def summary(self) -> str:
        """Get conversion summary."""
        return (
            f"XML conversion: "
            f"{self.elements_written} elements, "
            f"{self.attributes_written} attributes, "
            f"{self.flushes} flushes, "
            f"depth {self.max_depth_reached}"
        )
