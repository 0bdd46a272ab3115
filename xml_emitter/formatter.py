"""
Scalar text conversion, CDATA splitting and key normalization helpers.
"""

import re
from typing import Any, List, Optional


# C0 controls other than LF and CR, plus DEL
_CONTROL_CHARACTERS = re.compile(r"[\x00-\x09\x0B\x0C\x0E-\x1F\x7F]")

_CDATA_END = "]]>"


def strip_control_characters(value: str) -> str:
    """Remove control characters that XML 1.0 text cannot carry."""
    return _CONTROL_CHARACTERS.sub("", value)


def scalar_to_text(value: Any) -> Optional[str]:
    """
    Convert a scalar input value to element text.

    Returns None for None so callers can skip the text node entirely.
    Booleans render as ``true``/``false``.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def attribute_to_text(value: Any) -> str:
    """Convert a scalar attribute value to its string form."""
    text = scalar_to_text(value)
    return "" if text is None else strip_control_characters(text)


def split_cdata(text: str) -> List[str]:
    """Split text into CDATA section contents, none holding ``]]>``."""
    parts = text.split(_CDATA_END)
    sections = [parts[0]]
    for part in parts[1:]:
        sections[-1] += "]]"
        sections.append(">" + part)
    return sections


def normalize_key(key: Any, replace_spaces: bool = True) -> str:
    """Turn a mapping key into an element name candidate."""
    name = str(key)
    if replace_spaces:
        name = name.replace(" ", "_")
    return name
