"""
Structural classification of input nodes and key directives.

A node is classified once from its shape:

- anything that is not a mapping, list or tuple is a scalar
- lists and tuples, empty mappings and mappings keyed exactly ``0..n-1``
  are sequential (their items become repeated sibling elements)
- every other mapping is associative (its keys become child names)
"""

from collections.abc import Mapping
from typing import Any

from .types import DIRECTIVE_KEYS, NUMERIC_KEY, Directive, NodeKind


def is_collection(node: Any) -> bool:
    """Check whether a node is a mapping, list or tuple."""
    return isinstance(node, (Mapping, list, tuple))


def _is_index(key: Any, position: int) -> bool:
    return isinstance(key, int) and not isinstance(key, bool) and key == position


def classify(node: Any) -> NodeKind:
    """
    Classify a node as scalar, sequential or associative.

    Args:
        node: Any input value

    Returns:
        The node's structural kind
    """
    if not is_collection(node):
        return NodeKind.SCALAR

    if isinstance(node, (list, tuple)):
        return NodeKind.SEQUENTIAL

    if len(node) == 0:
        return NodeKind.SEQUENTIAL

    keys = iter(node)
    first = next(keys)
    # __numeric is a directive, never data
    if isinstance(first, str) and first == NUMERIC_KEY:
        return NodeKind.ASSOCIATIVE

    if not _is_index(first, 0):
        return NodeKind.ASSOCIATIVE

    for position, key in enumerate(keys, start=1):
        if not _is_index(key, position):
            return NodeKind.ASSOCIATIVE

    return NodeKind.SEQUENTIAL


def is_sequential(node: Any) -> bool:
    return classify(node) is NodeKind.SEQUENTIAL


def resolve_directive(key: Any) -> Directive:
    """Look up the directive a key stands for; ordinary keys are children."""
    if not isinstance(key, str):
        return Directive.CHILD
    return DIRECTIVE_KEYS.get(key, Directive.CHILD)
