"""Extraction facade bound to a single node.

Three failure modes for the same conversion:

- ``extract`` / ``read_as`` raise an ExtractionError
- ``extract_opt`` / ``get_as`` return None
- ``extract_or_else`` / ``get_as_or_else`` call the supplied default

Example:
    >>> doc = ExtractableNode.from_json('{"name": "joe", "age": 32}')
    >>> doc.extract(Person)
    Person(name='joe', age=32)
    >>> (doc / 'age').extract_opt(str) is None
    True
"""
from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, TypeVar

from . import extraction
from .accessors import get_node_by_path
from .exceptions import ExtractionError
from .formats import DEFAULT_FORMATS, Formats
from .io_utils import parse_json
from .nodes import JArray, JValue, from_python
from .readers import Failure, as_reader

log = logging.getLogger(__name__)

A = TypeVar('A')


class ExtractableNode:
    __slots__ = ('node', 'formats')

    def __init__(self, node: Any, formats: Optional[Formats] = None):
        self.node = node if isinstance(node, JValue) else from_python(node)
        self.formats = DEFAULT_FORMATS if formats is None else formats

    @classmethod
    def from_json(cls, text, formats: Optional[Formats] = None, use_decimal: bool = False) -> ExtractableNode:
        return cls(parse_json(text, use_decimal=use_decimal), formats)

    def __repr__(self) -> str:
        return f"ExtractableNode({self.node!r})"

    def __truediv__(self, key: str) -> ExtractableNode:
        return ExtractableNode(self.node / key, self.formats)

    def at(self, path: str) -> ExtractableNode:
        """Rebind to the node at a dot path (see accessors.get_node_by_path)."""
        return ExtractableNode(get_node_by_path(self.node, path), self.formats)

    # Generic, type-directed extraction.

    def extract(self, tp: Any) -> Any:
        return extraction.extract(self.node, tp, self.formats)

    def extract_opt(self, tp: Any) -> Any:
        return extraction.extract_opt(self.node, tp, self.formats)

    def extract_or_else(self, tp: Any, default: Callable[[], A]) -> Any:
        """Extract ``tp``, or return ``default()`` if that fails.

        ``default`` is only called on failure. A successful extraction that
        yields None (an Optional target over null) is returned as is.
        """
        try:
            return self.extract(tp)
        except ExtractionError as e:
            log.debug("Falling back to default for %r: %s", tp, e)
            return default()

    # Explicit readers.

    def read_as(self, reader) -> Any:
        return as_reader(reader).read(self.node).unwrap()

    def get_as(self, reader) -> Any:
        result = as_reader(reader).read(self.node)
        if isinstance(result, Failure):
            return None
        return result.value

    def get_as_or_else(self, reader, default: Callable[[], A]) -> Any:
        return as_reader(reader).read(self.node).value_or(default)

    # Ad hoc functions over the bound node.

    def extract_with(self, f: Callable[[JValue], A]) -> A:
        return f(self.node)

    def extract_opt_with(self, f: Callable[[JValue], Optional[A]]) -> Optional[A]:
        return f(self.node)

    def extract_list(self, f: Callable[[JValue], A]) -> List[A]:
        """Apply ``f`` to each element of an array node.

        Unlike ``extract(List[T])``, a node that is not an array gives an
        empty list instead of an error.
        """
        if not isinstance(self.node, JArray):
            return []
        return [f(item) for item in self.node]


def extractable(node: Any, formats: Optional[Formats] = None) -> ExtractableNode:
    return ExtractableNode(node, formats)
