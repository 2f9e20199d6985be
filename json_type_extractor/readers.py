"""Explicit, per-type readers that bypass generic dispatch.

A reader's ``read`` never raises: it returns ``Success(value)`` or
``Failure(error)``. Subclasses only write ``read_value``; whatever it raises,
including faults that have nothing to do with extraction, is isolated into a
``Failure`` at that single boundary.

Example:
    >>> @reader
    ... def person(node):
    ...     return Person(extract(node / 'name', str))
    >>> person.read(parse_json('{"name": "joe"}'))
    Success(value=Person(name='joe'))
"""
from __future__ import annotations

import abc
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar, Union

from .exceptions import ConversionFailedError, ExtractionError, TypeMismatchError
from .extraction import extract, node_kind
from .formats import Formats
from .nodes import JArray, JNOTHING, JNULL, JObject, JValue

log = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

    def unwrap(self) -> T:
        return self.value

    def value_or(self, default: Callable[[], T]) -> T:
        return self.value


@dataclass(frozen=True)
class Failure:
    error: ExtractionError

    def unwrap(self):
        raise self.error

    def value_or(self, default: Callable[[], T]) -> T:
        return default()


Result = Union[Success[T], Failure]


class Reader(abc.ABC, Generic[T]):
    """Converts one node into a ``T``."""

    @abc.abstractmethod
    def read_value(self, node: JValue) -> T:
        """Convert ``node``; raise on failure."""

    def read(self, node: JValue) -> Result:
        try:
            return Success(self.read_value(node))
        except ExtractionError as e:
            return Failure(e)
        except Exception as e:
            log.debug("Reader %r raised %s: %s", self, type(e).__name__, e)
            error = ConversionFailedError(f"reader {self!r} failed: {type(e).__name__}: {e}")
            error.__cause__ = e
            return Failure(error)


class FunctionReader(Reader[T]):
    def __init__(self, fn: Callable[[JValue], T]):
        self.fn = fn

    def read_value(self, node: JValue) -> T:
        return self.fn(node)

    def __repr__(self) -> str:
        return f"FunctionReader({getattr(self.fn, '__name__', self.fn)!r})"


def reader(fn: Callable[[JValue], T]) -> FunctionReader[T]:
    """Decorator turning a plain function into a Reader."""
    return FunctionReader(fn)


class TypeReader(Reader[T]):
    """Reader backed by the generic extractor for one target type."""

    def __init__(self, tp: Any, formats: Optional[Formats] = None):
        self.tp = tp
        self.formats = formats

    def read_value(self, node: JValue) -> T:
        return extract(node, self.tp, self.formats)

    def __repr__(self) -> str:
        return f"TypeReader({self.tp!r})"


class _OptionalReader(Reader[Optional[T]]):
    def __init__(self, inner: Reader[T]):
        self.inner = inner

    def read_value(self, node: JValue) -> Optional[T]:
        if node is JNULL or node is JNOTHING:
            return None
        return self.inner.read(node).unwrap()

    def __repr__(self) -> str:
        return f"optional_reader({self.inner!r})"


class _ListReader(Reader[List[T]]):
    def __init__(self, inner: Reader[T]):
        self.inner = inner

    def read_value(self, node: JValue) -> List[T]:
        if not isinstance(node, JArray):
            raise TypeMismatchError(f"expected array, found {node_kind(node)}")
        out = []
        for index, item in enumerate(node):
            result = self.inner.read(item)
            if isinstance(result, Failure):
                raise result.error.with_prefix(index)
            out.append(result.value)
        return out

    def __repr__(self) -> str:
        return f"list_reader({self.inner!r})"


class _MapReader(Reader[Dict[str, T]]):
    def __init__(self, inner: Reader[T]):
        self.inner = inner

    def read_value(self, node: JValue) -> Dict[str, T]:
        if not isinstance(node, JObject):
            raise TypeMismatchError(f"expected object, found {node_kind(node)}")
        out = {}
        for key, value in node.to_dict().items():
            result = self.inner.read(value)
            if isinstance(result, Failure):
                raise result.error.with_prefix(key)
            out[key] = result.value
        return out

    def __repr__(self) -> str:
        return f"map_reader({self.inner!r})"


def optional_reader(inner: Reader[T]) -> Reader[Optional[T]]:
    """Null or missing reads as None; anything else goes to ``inner``."""
    return _OptionalReader(inner)


def list_reader(inner: Reader[T]) -> Reader[List[T]]:
    return _ListReader(inner)


def map_reader(inner: Reader[T]) -> Reader[Dict[str, T]]:
    return _MapReader(inner)


def as_reader(value: Any) -> Reader:
    """Accept a Reader or a plain callable."""
    if isinstance(value, Reader):
        return value
    if callable(value):
        return FunctionReader(value)
    raise TypeError(f"expected a Reader or a callable, got {type(value).__name__}")
