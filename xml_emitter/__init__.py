"""
XML output generation from nested mappings and sequences.

This module converts generic dict/list trees into XML documents with:
- Repeated sibling elements for sequences
- A key dialect for attributes, text, CDATA and raw mixed content
- Prefixed element names for numeric-keyed nodes
- In-memory output or streaming to a file with periodic flushing
"""

from .classifier import classify, resolve_directive
from .converter import TreeXMLConverter, convert
from .schemas import RootDescriptor
from .types import (
    ConversionStats,
    ConverterConfig,
    Directive,
    InvalidRootStructureError,
    NestingDepthError,
    NodeKind,
    TypeMisuseError,
    WriterError,
    XMLError,
)
from .writer import XMLStreamWriter

__version__ = "1.0.0"

__all__ = [
    # Core API
    "convert",
    "TreeXMLConverter",
    "XMLStreamWriter",
    "classify",
    "resolve_directive",
    # Configuration
    "ConverterConfig",
    "RootDescriptor",
    "ConversionStats",
    "NodeKind",
    "Directive",
    # Exceptions
    "XMLError",
    "InvalidRootStructureError",
    "WriterError",
    "TypeMisuseError",
    "NestingDepthError",
]
