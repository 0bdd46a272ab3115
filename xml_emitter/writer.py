"""
Forward-only XML token writer built on lxml's incremental ``etree.xmlfile``.

lxml serializes elements, attributes, text and CDATA. Serialized output is
held back and handed to the text stream only when ``flush()`` is called.
"""

import codecs
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, TextIO
import structlog
from lxml import etree

from .formatter import split_cdata
from .types import WriterError


logger = structlog.get_logger(__name__)

SERIALIZER_ENCODING = "utf-8"


def validate_name(name: Any) -> str:
    """
    Validate an element or attribute name.

    Args:
        name: Candidate XML name

    Returns:
        The name, unchanged

    Raises:
        WriterError: If the name is not a legal XML name
    """
    if not isinstance(name, str) or not name:
        raise WriterError(f"Invalid XML name {name!r}")
    if "{" in name or "}" in name:
        raise WriterError("Invalid XML name", name=name)
    try:
        etree.QName(name)
    except ValueError as e:
        raise WriterError(str(e), name=name) from e
    return name


@contextmanager
def _serializer_errors(name: Optional[str] = None) -> Iterator[None]:
    try:
        yield
    except (ValueError, etree.LxmlError) as e:
        raise WriterError(f"Cannot serialize: {e}", name=name) from e


class _PendingOutput:
    """Byte target for ``etree.xmlfile`` that keeps decoded text until drained."""

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder(SERIALIZER_ENCODING)()
        self._chunks: List[str] = []

    def write(self, data: bytes) -> None:
        self._chunks.append(self._decoder.decode(data))

    def write_text(self, text: str) -> None:
        self._chunks.append(text)

    def getvalue(self) -> str:
        return "".join(self._chunks)

    def clear(self) -> None:
        self._chunks.clear()


@dataclass
class _OpenElement:
    name: str
    attributes: Dict[str, str] = field(default_factory=dict)
    # lxml element context, entered once the start tag is written
    context: Any = None
    has_children: bool = False
    has_text: bool = False


class XMLStreamWriter:
    """
    Token writer producing XML text on a stream.

    A start tag stays open for attributes until the element receives
    content or is closed; elements closed without content self-close.
    Elements containing only child elements are indented one level per
    depth; elements that received text keep their content inline.

    The XML declaration and raw mixed content are written around lxml,
    since ``etree.xmlfile`` can neither omit the encoding from its
    declaration nor emit unescaped markup.
    """

    def __init__(self, stream: TextIO, indent: bool = True, indent_string: str = " "):
        """
        Initialize the writer.

        Args:
            stream: Writable text stream receiving the document
            indent: Put nested elements on their own indented lines
            indent_string: Whitespace added per nesting level
        """
        self.stream = stream
        self.indent = indent
        self.indent_string = indent_string

        self._output = _PendingOutput()
        self._xmlfile = etree.xmlfile(self._output, encoding=SERIALIZER_ENCODING)
        self._xf = self._xmlfile.__enter__()

        self._stack: List[_OpenElement] = []
        self._document_started = False
        self._root_closed = False
        self._document_ended = False

    @property
    def depth(self) -> int:
        return len(self._stack)

    def _require_writable(self) -> None:
        if self._document_ended:
            raise WriterError("Document has already ended")

    def _require_open_element(self, operation: str) -> _OpenElement:
        self._require_writable()
        if not self._stack:
            raise WriterError(f"Cannot write {operation} outside an element")
        return self._stack[-1]

    def _write_start_tag(self, element: _OpenElement) -> None:
        if element.context is not None:
            return
        with _serializer_errors(element.name):
            context = self._xf.element(element.name, element.attributes)
            context.__enter__()
        element.context = context

    def _write_unserialized(self, text: str) -> None:
        # lxml's buffer goes out first so the text lands in document order
        with _serializer_errors():
            self._xf.flush()
        self._output.write_text(text)

    def _indent(self, depth: int) -> None:
        with _serializer_errors():
            self._xf.write("\n" + self.indent_string * depth)

    def start_document(self, version: str = "1.0", encoding: Optional[str] = None) -> None:
        if self._document_started:
            raise WriterError("Document has already started")
        declaration = f'<?xml version="{version}"'
        if encoding:
            declaration += f' encoding="{encoding}"'
        self._write_unserialized(declaration + "?>\n")
        self._document_started = True

    def start_element(self, name: str) -> None:
        validate_name(name)
        self._require_writable()
        if not self._stack and self._root_closed:
            raise WriterError("Document already has a root element", name=name)

        if self._stack:
            parent = self._stack[-1]
            self._write_start_tag(parent)
            parent.has_children = True
            if self.indent and not parent.has_text:
                self._indent(len(self._stack))

        self._stack.append(_OpenElement(name))

    def write_attribute(self, name: str, value: str) -> None:
        validate_name(name)
        self._require_writable()
        if not self._stack or self._stack[-1].context is not None:
            raise WriterError("Attribute written outside a start tag", name=name)
        # Re-setting a name keeps its position and takes the new value
        self._stack[-1].attributes[name] = value

    def text(self, text: str) -> None:
        element = self._require_open_element("text")
        self._write_start_tag(element)
        if text:
            with _serializer_errors(element.name):
                self._xf.write(text)
            element.has_text = True

    def cdata(self, text: str) -> None:
        element = self._require_open_element("CDATA")
        self._write_start_tag(element)
        with _serializer_errors(element.name):
            for section in split_cdata(text):
                self._xf.write(etree.CDATA(section))
        element.has_text = True

    def raw(self, text: str) -> None:
        element = self._require_open_element("raw content")
        self._write_start_tag(element)
        if text:
            self._write_unserialized(text)
            element.has_text = True

    def end_element(self) -> str:
        """Close the innermost open element and return its name."""
        self._require_writable()
        if not self._stack:
            raise WriterError("No element is open")

        element = self._stack.pop()
        with _serializer_errors(element.name):
            if element.context is None:
                self._xf.write(etree.Element(element.name, element.attributes))
            else:
                if self.indent and element.has_children and not element.has_text:
                    self._xf.write("\n" + self.indent_string * len(self._stack))
                element.context.__exit__(None, None, None)

        if not self._stack:
            self._root_closed = True
        return element.name

    def end_document(self) -> None:
        """Close every open element and flush the document to the stream."""
        while self._stack:
            self.end_element()
        with _serializer_errors():
            self._xmlfile.__exit__(None, None, None)
        self._output.write_text("\n")
        self._document_ended = True
        self.flush()

    def flush(self) -> int:
        """
        Write buffered output to the stream.

        Returns:
            Number of characters written
        """
        if not self._document_ended:
            with _serializer_errors():
                self._xf.flush()

        chunk = self._output.getvalue()
        if not chunk:
            return 0

        try:
            self.stream.write(chunk)
            if hasattr(self.stream, "flush"):
                self.stream.flush()
        except (OSError, ValueError) as e:
            logger.error("XML sink write failed", error=str(e), pending_characters=len(chunk))
            raise WriterError(f"Sink write failed: {e}") from e

        self._output.clear()
        return len(chunk)
