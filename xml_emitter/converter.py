"""
Nested mapping/sequence to XML converter.
"""

import dataclasses
import io
import os
import time
from collections.abc import Mapping
from typing import Any, Optional, TextIO, Tuple, Union
import structlog

from .classifier import classify, is_collection, is_sequential, resolve_directive
from .formatter import attribute_to_text, normalize_key, scalar_to_text, strip_control_characters
from .schemas import AttributeBag, RootDescriptor, validate_attribute_bag
from .types import (
    ConversionStats, ConverterConfig, Directive, InvalidRootStructureError,
    NestingDepthError, NodeKind, TypeMisuseError, WriterError, XMLError
)
from .writer import XMLStreamWriter


logger = structlog.get_logger(__name__)

ATTRIBUTE_KEYS = ("_attributes", "@attributes")

OutputTarget = Union[None, str, "os.PathLike[str]", TextIO]
RootElement = Union[None, str, Mapping, RootDescriptor]


class TreeXMLConverter:
    """
    Converts nested mappings and sequences into an XML document.

    Mappings become named child elements, sequences become repeated sibling
    elements named after the key they were found under, and a small key
    dialect (``_attributes``, ``_value``, ``_cdata``, ``_mixed``,
    ``__numeric`` and their ``@`` aliases) controls attributes and content.

    The document is returned as a string, or streamed to a file path or
    text stream with a flush every time the closed-element count passes
    ``flush_threshold``.
    """

    def __init__(
        self,
        data: Any,
        output: OutputTarget = None,
        root_element: RootElement = "",
        replace_spaces_in_keys: bool = True,
        xml_encoding: Optional[str] = None,
        xml_version: str = "1.0",
        flush_threshold: int = 1000,
        config: Optional[ConverterConfig] = None
    ):
        """
        Initialize the converter.

        Args:
            data: Tree to convert; must not be a non-empty sequence
            output: File path or writable text stream; None builds a string
            root_element: Root name, or mapping with ``rootElementName`` and
                ``_attributes``/``@attributes``
            replace_spaces_in_keys: Replace spaces in child keys with underscores
            xml_encoding: Encoding named in the XML declaration
            xml_version: Version named in the XML declaration
            flush_threshold: Closed elements between sink flushes
            config: Complete configuration; when given, the individual
                formatting arguments above are ignored

        Raises:
            InvalidRootStructureError: If data is a non-empty sequence
            TypeMisuseError: If root_element has the wrong shape
        """
        if config is None:
            config = ConverterConfig(
                replace_spaces_in_keys=replace_spaces_in_keys,
                xml_encoding=xml_encoding,
                xml_version=xml_version,
                flush_threshold=flush_threshold,
            )
        self.config = dataclasses.replace(config)
        self.logger = logger.bind(component="TreeXMLConverter")

        if is_sequential(data) and len(data) > 0:
            raise InvalidRootStructureError(
                "Top-level data is a non-empty sequence and would produce multiple root elements"
            )

        self.data = data
        self.output = output
        self.root = RootDescriptor.from_value(root_element)
        self.in_memory = output is None

        self.writer: Optional[XMLStreamWriter] = None
        self.stats = ConversionStats()
        self._nodes_closed = 0
        self._depth = 0
        self._converted = False

        self.logger.debug("Tree XML converter initialized",
                          root_element=self.root.element_name,
                          in_memory=self.in_memory,
                          flush_threshold=self.config.flush_threshold)

    def set_numeric_tag_prefix(self, prefix: str) -> None:
        """Set the prefix that turns numeric keys into element names."""
        self.config.numeric_tag_prefix = prefix

    @classmethod
    def convert(
        cls,
        data: Any,
        output: OutputTarget = None,
        root_element: RootElement = "",
        replace_spaces_in_keys: bool = True,
        xml_encoding: Optional[str] = None,
        xml_version: str = "1.0",
        flush_threshold: int = 1000,
        config: Optional[ConverterConfig] = None
    ) -> Optional[str]:
        """Convert data in one call; see ``__init__`` for the arguments."""
        converter = cls(
            data,
            output,
            root_element,
            replace_spaces_in_keys,
            xml_encoding,
            xml_version,
            flush_threshold,
            config=config,
        )
        return converter.to_xml()

    def to_xml(self) -> Optional[str]:
        """
        Write the document.

        Returns:
            The XML document when converting in memory, otherwise None

        Raises:
            XMLError: On writer failure, type misuse or excessive nesting.
                Output already flushed to a sink is left in place.
        """
        if self._converted:
            raise XMLError("Converter has already produced its document")
        self._converted = True

        start_time = time.time()
        stream, owns_stream = self._open_output()
        self.writer = XMLStreamWriter(
            stream,
            indent=self.config.indent,
            indent_string=self.config.indent_string,
        )

        try:
            self.writer.start_document(self.config.xml_version, self.config.xml_encoding)
            self._create_root_element()
            self.writer.end_document()
        except XMLError as e:
            self.logger.error("Error in tree XML conversion",
                              error=str(e),
                              error_type=type(e).__name__,
                              elements_written=self.stats.elements_written)
            raise
        finally:
            if owns_stream:
                stream.close()

        self.stats.conversion_time = time.time() - start_time
        self.logger.info("Tree XML conversion completed",
                         root_element=self.root.element_name,
                         in_memory=self.in_memory,
                         elements_written=self.stats.elements_written,
                         flushes=self.stats.flushes,
                         conversion_time=self.stats.conversion_time)

        if self.in_memory:
            return stream.getvalue()
        return None

    def _open_output(self) -> Tuple[TextIO, bool]:
        """Return the stream to write to and whether this converter must close it."""
        if self.output is None:
            return io.StringIO(), False

        if isinstance(self.output, (str, os.PathLike)):
            encoding = self.config.xml_encoding or "utf-8"
            try:
                return open(os.fspath(self.output), "w", encoding=encoding), True
            except (OSError, LookupError) as e:
                raise WriterError(f"Cannot open output: {e}", name=os.fspath(self.output)) from e

        if hasattr(self.output, "write"):
            return self.output, False

        raise TypeMisuseError(
            f"Output must be a path or writable text stream, got {type(self.output).__name__}"
        )

    def _create_root_element(self) -> None:
        self._start_element(self.root.element_name)
        self._add_attributes(self.root.attribute_bag())
        self.convert_element(self.data)
        self._end_element()

    def convert_element(self, value: Any, sibling_key: Optional[str] = None) -> None:
        """
        Emit the XML for one node inside the currently open element.

        Args:
            value: Node to emit
            sibling_key: Name given to each item if value is sequential
        """
        self._depth += 1
        try:
            if self._depth > self.config.max_depth:
                raise NestingDepthError(self.config.max_depth)
            self.stats.max_depth_reached = max(self.stats.max_depth_reached, self._depth)

            kind = classify(value)
            if kind is NodeKind.SCALAR:
                self._write_text(value)
            elif kind is NodeKind.ASSOCIATIVE:
                self._expand_associative(value)
            else:
                self._expand_sequential(value, sibling_key)
        finally:
            self._depth -= 1

    def _expand_associative(self, node: Mapping) -> None:
        # Attributes go first wherever they appear in the mapping
        for attribute_key in ATTRIBUTE_KEYS:
            bag = node.get(attribute_key)
            if bag:
                self._add_attributes(validate_attribute_bag(bag, attribute_key))

        for key, data in node.items():
            directive = resolve_directive(key)
            if directive is Directive.ATTRIBUTES:
                continue

            if directive is Directive.VALUE and isinstance(data, str):
                self._write_text(data)
            elif directive is Directive.CDATA and isinstance(data, str):
                self.writer.cdata(strip_control_characters(data))
                self.stats.cdata_sections_written += 1
            elif directive is Directive.MIXED and isinstance(data, str):
                self.writer.raw(data)
            elif directive is Directive.NUMERIC:
                self.add_numeric_node(data)
            else:
                self.add_node(key, data)

    def _expand_sequential(self, node: Any, sibling_key: Optional[str]) -> None:
        items = node.values() if isinstance(node, Mapping) else node
        for item in items:
            if is_collection(item):
                self.add_collection_node(item, sibling_key)
            else:
                self.add_sequential_node(item, sibling_key)

    def add_numeric_node(self, numeric_map: Any) -> None:
        """
        Emit the whole numeric map once per key, renamed to ``prefix + key``.

        Each value of the map becomes its own ``prefix + key`` sibling, so
        every key repeats all of the map's values.
        """
        if isinstance(numeric_map, Mapping):
            keys = list(numeric_map.keys())
            values = list(numeric_map.values())
        elif isinstance(numeric_map, (list, tuple)):
            keys = list(range(len(numeric_map)))
            values = list(numeric_map)
        else:
            raise TypeMisuseError(
                f"'__numeric' must be a mapping or sequence, got {type(numeric_map).__name__}"
            )

        for key in keys:
            name = normalize_key(f"{self.config.numeric_tag_prefix}{key}",
                                 self.config.replace_spaces_in_keys)
            self.convert_element(values, name)

    def add_node(self, key: Any, value: Any) -> None:
        """Emit a named child; sequences become repeated ``key`` siblings."""
        name = normalize_key(key, self.config.replace_spaces_in_keys)

        if is_sequential(value):
            self.convert_element(value, name)
            return

        self._start_element(name)
        self.convert_element(value, name)
        self._end_element()

    def add_collection_node(self, item: Any, sibling_key: Optional[str]) -> None:
        """Emit a collection item of a sequence as one ``sibling_key`` element."""
        self._start_element(sibling_key)
        self.convert_element(item)
        self._end_element()

    def add_sequential_node(self, item: Any, sibling_key: Optional[str]) -> None:
        """Emit a scalar item of a sequence as one ``sibling_key`` text element."""
        self._start_element(sibling_key)
        self._write_text(item)
        self._end_element()

    def _add_attributes(self, bag: AttributeBag) -> None:
        for name, value in bag.items():
            self.writer.write_attribute(name, attribute_to_text(value))
            self.stats.attributes_written += 1

    def _write_text(self, value: Any) -> None:
        text = scalar_to_text(value)
        if text is None:
            return
        self.writer.text(strip_control_characters(text))
        self.stats.text_nodes_written += 1

    def _start_element(self, name: Optional[str]) -> None:
        self.writer.start_element(name)
        self.stats.elements_written += 1

    def _end_element(self) -> None:
        self.writer.end_element()
        # Counter is never reset: past the threshold every close flushes
        if not self.in_memory and self._nodes_closed > self.config.flush_threshold:
            self.writer.flush()
            self.stats.flushes += 1
        self._nodes_closed += 1


def convert(
    data: Any,
    output: OutputTarget = None,
    root_element: RootElement = "",
    replace_spaces_in_keys: bool = True,
    xml_encoding: Optional[str] = None,
    xml_version: str = "1.0",
    flush_threshold: int = 1000,
    numeric_tag_prefix: Optional[str] = None,
    config: Optional[ConverterConfig] = None
) -> Optional[str]:
    """
    Convert nested mappings and sequences to XML.

    Args:
        data: Tree to convert
        output: File path or writable text stream; None returns a string
        root_element: Root name or root descriptor mapping
        replace_spaces_in_keys: Replace spaces in child keys with underscores
        xml_encoding: Encoding named in the XML declaration
        xml_version: Version named in the XML declaration
        flush_threshold: Closed elements between sink flushes
        numeric_tag_prefix: Prefix for ``__numeric`` keys (default ``numeric_``)
        config: Complete configuration, overriding the formatting arguments

    Returns:
        The XML document, or None when written to output
    """
    converter = TreeXMLConverter(
        data,
        output,
        root_element,
        replace_spaces_in_keys,
        xml_encoding,
        xml_version,
        flush_threshold,
        config=config,
    )
    if numeric_tag_prefix is not None:
        converter.set_numeric_tag_prefix(numeric_tag_prefix)
    return converter.to_xml()
