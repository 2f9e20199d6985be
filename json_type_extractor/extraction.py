"""Type-directed extraction of Python values from a node tree.

``extract(node, tp, formats)`` walks the node and the requested type in step.
A converter registered in ``formats`` for the exact type wins over
everything else; otherwise the type's descriptor picks the rule (see
``descriptors``). Failures raise an ``ExtractionError`` subclass whose path
points at the node that failed.
"""
from __future__ import annotations

import enum
import logging
import math
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional
from uuid import UUID

from .descriptors import (
    MapOf,
    OptionalOf,
    Primitive,
    Record,
    SequenceOf,
    SetOf,
    TupleOf,
    describe,
    type_name,
)
from .exceptions import (
    ConversionFailedError,
    DepthExceededError,
    ExtractionError,
    MissingRequiredFieldError,
    TypeMismatchError,
)
from .formats import DEFAULT_FORMATS, Converter, Formats
from .nodes import (
    JArray,
    JBool,
    JDecimal,
    JDouble,
    JInt,
    JNOTHING,
    JNULL,
    JNothing,
    JNull,
    JObject,
    JString,
    JValue,
    from_python,
)
from .paths import Segment

log = logging.getLogger(__name__)

_NODE_KINDS = {
    JNothing: 'nothing',
    JNull: 'null',
    JBool: 'boolean',
    JInt: 'integer',
    JDouble: 'number',
    JDecimal: 'number',
    JString: 'string',
    JArray: 'array',
    JObject: 'object',
}


def node_kind(node: JValue) -> str:
    return _NODE_KINDS.get(type(node), type(node).__name__)


def _mismatch(node: JValue, expected: str) -> TypeMismatchError:
    return TypeMismatchError(f"expected {expected}, found {node_kind(node)}")


class _Extraction:
    """One extraction call: the formats in force plus the recursion bookkeeping."""

    __slots__ = ('formats',)

    def __init__(self, formats: Formats):
        self.formats = formats

    def extract(self, node: JValue, tp: Any, depth: int) -> Any:
        if depth > self.formats.max_depth:
            raise DepthExceededError(f"nesting deeper than {self.formats.max_depth} levels")

        converter = self.formats.lookup_converter(tp)
        if converter is not None:
            return self._convert_custom(converter, node, tp)

        descriptor = describe(tp)
        return _DISPATCH[type(descriptor)](self, node, descriptor, depth)

    def extract_at(self, node: JValue, tp: Any, depth: int, segment: Segment) -> Any:
        try:
            return self.extract(node, tp, depth)
        except ExtractionError as e:
            e.with_prefix(segment)
            raise

    def _convert_custom(self, converter: Converter, node: JValue, tp: Any) -> Any:
        try:
            return converter(node)
        except ExtractionError:
            raise
        except Exception as e:
            raise ConversionFailedError(
                f"custom converter for {type_name(tp)} failed: {e}"
            ) from e

    def primitive(self, node: JValue, descriptor: Primitive, depth: int) -> Any:
        tp = descriptor.type
        if tp is Any:
            return self._project(node, depth)
        if isinstance(tp, type) and issubclass(tp, JValue):
            if not isinstance(node, tp):
                raise _mismatch(node, tp.__name__)
            return node
        if isinstance(tp, type) and issubclass(tp, enum.Enum):
            return _to_enum(node, tp)
        return _PRIMITIVE_READERS[tp](node, self.formats)

    def optional(self, node: JValue, descriptor: OptionalOf, depth: int) -> Any:
        if node is JNULL or node is JNOTHING:
            return None
        return self.extract(node, descriptor.inner, depth)

    def sequence(self, node: JValue, descriptor: SequenceOf, depth: int) -> Any:
        if not isinstance(node, JArray):
            raise _mismatch(node, 'array')
        out = []
        for index, item in enumerate(node):
            out.append(self.extract_at(item, descriptor.inner, depth + 1, index))
        return descriptor.factory(out)

    def set_of(self, node: JValue, descriptor: SetOf, depth: int) -> Any:
        items = self.sequence(node, SequenceOf(descriptor.inner), depth)
        try:
            result = descriptor.factory(items)
            typed = {(type(item), item) for item in items}
        except TypeError as e:
            raise ConversionFailedError(
                f"set elements of type {type_name(descriptor.inner)} are not hashable"
            ) from e
        # True == 1 in Python, so a set would silently merge a boolean and a number.
        if len(typed) != len(result):
            raise ConversionFailedError(
                f"set elements of type {type_name(descriptor.inner)} collide after conversion"
            )
        return result

    def tuple_of(self, node: JValue, descriptor: TupleOf, depth: int) -> Any:
        if not isinstance(node, JArray):
            raise _mismatch(node, 'array')
        if len(node) != len(descriptor.items):
            raise TypeMismatchError(
                f"expected array of {len(descriptor.items)} elements, found {len(node)}"
            )
        out = []
        for index, (item, tp) in enumerate(zip(node, descriptor.items)):
            out.append(self.extract_at(item, tp, depth + 1, index))
        return tuple(out)

    def mapping(self, node: JValue, descriptor: MapOf, depth: int) -> Any:
        if not isinstance(node, JObject):
            raise _mismatch(node, 'object')
        out = {}
        # to_dict keeps the last occurrence of a repeated key.
        for key, value in node.to_dict().items():
            out[key] = self.extract_at(value, descriptor.value, depth + 1, key)
        return out

    def record(self, node: JValue, descriptor: Record, depth: int) -> Any:
        cls = descriptor.cls
        if node is JNULL:
            node = JObject()
        elif not isinstance(node, JObject):
            raise _mismatch(node, f"object for {cls.__name__}")

        kwargs = {}
        for spec in descriptor.fields:
            key = spec.alias or self.formats.field_name_for(spec.name)
            arg = spec.alias or spec.name
            value = node.get(key)

            if value is JNOTHING:
                if spec.has_default:
                    continue
                if spec.optional:
                    kwargs[arg] = None
                    continue
                raise MissingRequiredFieldError(
                    f"missing required field {key!r} for {cls.__name__}", (key,)
                )
            if value is JNULL and spec.has_default and not spec.optional:
                continue
            kwargs[arg] = self.extract_at(value, spec.annotation, depth + 1, key)

        try:
            return cls(**kwargs)
        except ExtractionError:
            raise
        except Exception as e:
            raise ConversionFailedError(f"could not construct {cls.__name__}: {e}") from e

    def _project(self, node: JValue, depth: int) -> Any:
        if depth > self.formats.max_depth:
            raise DepthExceededError(f"nesting deeper than {self.formats.max_depth} levels")
        if node is JNOTHING:
            raise _mismatch(node, 'a value')
        if isinstance(node, JArray):
            return [self._project(item, depth + 1) for item in node]
        if isinstance(node, JObject):
            return {key: self._project(value, depth + 1) for key, value in node.to_dict().items()}
        return node.values


_DISPATCH = {
    Primitive: _Extraction.primitive,
    OptionalOf: _Extraction.optional,
    SequenceOf: _Extraction.sequence,
    SetOf: _Extraction.set_of,
    TupleOf: _Extraction.tuple_of,
    MapOf: _Extraction.mapping,
    Record: _Extraction.record,
}


def _to_str(node: JValue, formats: Formats) -> str:
    if not isinstance(node, JString):
        raise _mismatch(node, 'string')
    return node.value


def _to_bool(node: JValue, formats: Formats) -> bool:
    if not isinstance(node, JBool):
        raise _mismatch(node, 'boolean')
    return node.value


def _to_int(node: JValue, formats: Formats) -> int:
    if isinstance(node, JInt):
        return node.value
    if isinstance(node, JDouble):
        if not math.isfinite(node.value) or not node.value.is_integer():
            raise ConversionFailedError(f"{node.value!r} is not an integral number")
        return int(node.value)
    if isinstance(node, JDecimal):
        if not node.value.is_finite() or node.value != node.value.to_integral_value():
            raise ConversionFailedError(f"{node.value} is not an integral number")
        return int(node.value)
    raise _mismatch(node, 'integer')


def _to_float(node: JValue, formats: Formats) -> float:
    if not isinstance(node, (JInt, JDouble, JDecimal)):
        raise _mismatch(node, 'number')
    try:
        result = float(node.value)
    except (OverflowError, ValueError) as e:
        raise ConversionFailedError(f"{node.value} does not fit in a float") from e
    if not math.isfinite(result):
        raise ConversionFailedError(f"{node.value} is not a finite float")
    return result


def _to_decimal(node: JValue, formats: Formats) -> Decimal:
    if isinstance(node, JDecimal):
        return node.value
    if isinstance(node, (JInt, JDouble)):
        try:
            return Decimal(repr(node.value))
        except InvalidOperation as e:
            raise ConversionFailedError(f"{node.value!r} is not a decimal") from e
    raise _mismatch(node, 'number')


def _to_datetime(node: JValue, formats: Formats) -> datetime:
    text = _to_str(node, formats)
    try:
        result = datetime.strptime(text, formats.date_format)
    except ValueError as e:
        raise ConversionFailedError(
            f"{text!r} does not match date format {formats.date_format!r}"
        ) from e
    if result.tzinfo is None and formats.date_format.endswith('Z'):
        result = result.replace(tzinfo=timezone.utc)
    return result


def _to_date(node: JValue, formats: Formats) -> date:
    text = _to_str(node, formats)
    try:
        return datetime.strptime(text, formats.day_format).date()
    except ValueError as e:
        raise ConversionFailedError(
            f"{text!r} does not match date format {formats.day_format!r}"
        ) from e


def _to_uuid(node: JValue, formats: Formats) -> UUID:
    text = _to_str(node, formats)
    try:
        return UUID(text)
    except ValueError as e:
        raise ConversionFailedError(f"{text!r} is not a UUID") from e


def _to_enum(node: JValue, cls: type) -> enum.Enum:
    if not isinstance(node, (JString, JInt, JDouble, JDecimal, JBool)):
        raise _mismatch(node, f"{cls.__name__} value")
    try:
        return cls(node.value)
    except ValueError as e:
        raise ConversionFailedError(f"{node.value!r} is not a valid {cls.__name__}") from e


_PRIMITIVE_READERS = {
    str: _to_str,
    bool: _to_bool,
    int: _to_int,
    float: _to_float,
    Decimal: _to_decimal,
    datetime: _to_datetime,
    date: _to_date,
    UUID: _to_uuid,
}


def extract(node: Any, tp: Any, formats: Optional[Formats] = None) -> Any:
    """Extract a value of type ``tp`` from ``node``.

    ``node`` may also be plain Python data, which is converted first.
    Raises an ExtractionError subclass when the node cannot be converted.
    """
    if not isinstance(node, JValue):
        node = from_python(node)
    try:
        return _Extraction(DEFAULT_FORMATS if formats is None else formats).extract(node, tp, 0)
    except RecursionError as e:
        raise DepthExceededError("nesting exhausted the interpreter stack") from e


def extract_opt(node: Any, tp: Any, formats: Optional[Formats] = None) -> Any:
    """Like extract, but returns None instead of raising an ExtractionError."""
    try:
        return extract(node, tp, formats)
    except ExtractionError as e:
        log.debug("Extraction of %s failed: %s", type_name(tp), e)
        return None
