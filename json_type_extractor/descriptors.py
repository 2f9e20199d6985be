"""Resolve Python annotations into the shapes the extractor knows how to fill.

Every supported annotation maps to exactly one descriptor:

- ``Primitive``   scalars, enums, ``Any`` and node classes
- ``OptionalOf``  ``Optional[T]``
- ``SequenceOf``  lists, sequences and ``Tuple[T, ...]``
- ``SetOf``       sets and frozensets
- ``TupleOf``     fixed-length tuples
- ``MapOf``       string-keyed dicts and mappings
- ``Record``      dataclasses, NamedTuples, pydantic models and classes with
                  an annotated ``__init__``

Anything else (non-optional unions, ``Literal``, non-string map keys...)
raises ``NoApplicableConverterError`` rather than being guessed at.
"""
from __future__ import annotations

import collections.abc
import dataclasses
import enum
import inspect
import types
import typing
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from functools import lru_cache
from typing import Any, Callable, Dict, Optional, Tuple, TypeVar, Union
from uuid import UUID

import pydantic

from .exceptions import NoApplicableConverterError
from .nodes import JValue

PRIMITIVE_TYPES = (str, int, float, bool, Decimal, datetime, date, UUID)

_UNION_TYPES = tuple(t for t in (Union, getattr(types, 'UnionType', None)) if t is not None)
_SEQUENCE_ORIGINS = (
    list,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Collection,
    collections.abc.Iterable,
)
_SET_ORIGINS = (set, collections.abc.Set, collections.abc.MutableSet)
_MAP_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)


@dataclass(frozen=True)
class Primitive:
    type: Any


@dataclass(frozen=True)
class OptionalOf:
    inner: Any


@dataclass(frozen=True)
class SequenceOf:
    inner: Any
    factory: Callable = list


@dataclass(frozen=True)
class SetOf:
    inner: Any
    factory: Callable = set


@dataclass(frozen=True)
class TupleOf:
    items: Tuple[Any, ...]


@dataclass(frozen=True)
class MapOf:
    value: Any


@dataclass(frozen=True)
class FieldSpec:
    name: str
    annotation: Any
    optional: bool
    has_default: bool
    # Keyword the constructor expects and key to look up on the wire, when
    # they differ from what the naming rule would produce (pydantic aliases).
    alias: Optional[str] = None

    @property
    def required(self) -> bool:
        return not (self.optional or self.has_default)


@dataclass(frozen=True)
class Record:
    cls: type
    fields: Tuple[FieldSpec, ...]


Descriptor = Union[Primitive, OptionalOf, SequenceOf, SetOf, TupleOf, MapOf, Record]


def type_name(tp: Any) -> str:
    if isinstance(tp, type):
        return tp.__name__
    return repr(tp).replace('typing.', '')


def is_optional(tp: Any) -> bool:
    if typing.get_origin(tp) in _UNION_TYPES:
        return type(None) in typing.get_args(tp)
    return tp is Any or tp is object


def describe(tp: Any) -> Descriptor:
    """Resolve ``tp`` to its descriptor, raising NoApplicableConverterError."""
    try:
        hash(tp)
    except TypeError:
        return _describe(tp)
    return _describe_cached(tp)


@lru_cache(maxsize=1024)
def _describe_cached(tp: Any) -> Descriptor:
    return _describe(tp)


def _unsupported(tp: Any, why: str = '') -> NoApplicableConverterError:
    reason = f"no converter for {type_name(tp)}"
    return NoApplicableConverterError(f"{reason}: {why}" if why else reason)


def _describe(tp: Any) -> Descriptor:
    if tp is Any or tp is object:
        return Primitive(Any)
    if isinstance(tp, TypeVar):
        # Unbound type variable of an unparameterized generic.
        return Primitive(Any)

    origin = typing.get_origin(tp)
    args = typing.get_args(tp)

    if origin is typing.Annotated:
        return describe(args[0])

    if origin in _UNION_TYPES:
        members = [a for a in args if a is not type(None)]
        if len(members) == 1 and len(members) < len(args):
            return OptionalOf(members[0])
        raise _unsupported(tp, "only Optional[T] unions are supported")

    if origin is not None:
        return _describe_generic(tp, origin, args)

    if not isinstance(tp, type):
        raise _unsupported(tp)

    if issubclass(tp, JValue) or issubclass(tp, enum.Enum) or tp in PRIMITIVE_TYPES:
        return Primitive(tp)
    if tp in (list, tuple):
        return SequenceOf(Any, tp)
    if tp in (set, frozenset):
        return SetOf(Any, tp)
    if tp is dict:
        return MapOf(Any)
    return Record(tp, _record_fields(tp))


def _describe_generic(tp: Any, origin: Any, args: Tuple[Any, ...]) -> Descriptor:
    if origin is tuple:
        if not args or (len(args) == 2 and args[1] is Ellipsis):
            return SequenceOf(args[0] if args else Any, tuple)
        if Ellipsis in args:
            raise _unsupported(tp, "'...' is only allowed as Tuple[T, ...]")
        return TupleOf(tuple(args))
    if origin in _SEQUENCE_ORIGINS:
        return SequenceOf(args[0] if args else Any, list)
    if origin is frozenset:
        return SetOf(args[0] if args else Any, frozenset)
    if origin in _SET_ORIGINS:
        return SetOf(args[0] if args else Any, set)
    if origin in _MAP_ORIGINS:
        key, value = args if args else (Any, Any)
        if key not in (str, Any):
            raise _unsupported(tp, "map keys must be str")
        return MapOf(value)
    if isinstance(origin, type) and getattr(origin, '__parameters__', None):
        # Parameterized generic record such as Box[int].
        bindings = dict(zip(origin.__parameters__, args))
        fields = tuple(
            dataclasses.replace(
                spec,
                annotation=_substitute(spec.annotation, bindings),
            )
            for spec in _record_fields(origin)
        )
        return Record(origin, fields)
    raise _unsupported(tp)


def _substitute(tp: Any, bindings: Dict[Any, Any]) -> Any:
    if isinstance(tp, TypeVar):
        return bindings.get(tp, Any)
    params = getattr(tp, '__parameters__', ())
    if params:
        return tp[tuple(bindings.get(p, Any) for p in params)]
    return tp


@lru_cache(maxsize=512)
def _record_fields(cls: type) -> Tuple[FieldSpec, ...]:
    if issubclass(cls, pydantic.BaseModel):
        return _pydantic_fields(cls)
    if dataclasses.is_dataclass(cls):
        return _dataclass_fields(cls)
    if issubclass(cls, tuple) and hasattr(cls, '_fields'):
        return _namedtuple_fields(cls)
    if cls.__init__ is object.__init__:
        raise _unsupported(cls, "class has no constructor parameters to fill")
    return _init_fields(cls)


def _hints(obj: Any) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(obj)
    except (NameError, TypeError) as e:
        raise _unsupported(obj, f"cannot resolve annotations ({e})") from e


def _dataclass_fields(cls: type) -> Tuple[FieldSpec, ...]:
    hints = _hints(cls)
    specs = []
    for f in dataclasses.fields(cls):
        if not f.init:
            continue
        annotation = hints.get(f.name, Any)
        has_default = (
            f.default is not dataclasses.MISSING
            or f.default_factory is not dataclasses.MISSING
        )
        specs.append(FieldSpec(f.name, annotation, is_optional(annotation), has_default))
    return tuple(specs)


def _namedtuple_fields(cls: type) -> Tuple[FieldSpec, ...]:
    hints = _hints(cls)
    defaults = getattr(cls, '_field_defaults', {})
    specs = []
    for name in cls._fields:
        annotation = hints.get(name, Any)
        specs.append(FieldSpec(name, annotation, is_optional(annotation), name in defaults))
    return tuple(specs)


def _pydantic_fields(cls: type) -> Tuple[FieldSpec, ...]:
    specs = []
    for name, info in cls.model_fields.items():
        annotation = info.annotation if info.annotation is not None else Any
        specs.append(
            FieldSpec(
                name,
                annotation,
                is_optional(annotation),
                not info.is_required(),
                alias=info.alias,
            )
        )
    return tuple(specs)


def _init_fields(cls: type) -> Tuple[FieldSpec, ...]:
    hints = _hints(cls.__init__)
    try:
        signature = inspect.signature(cls)
    except (TypeError, ValueError) as e:
        raise _unsupported(cls, f"cannot inspect constructor ({e})") from e

    specs = []
    for param in signature.parameters.values():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        if param.kind is param.POSITIONAL_ONLY:
            raise _unsupported(cls, f"positional-only parameter {param.name!r}")
        if param.name not in hints:
            raise _unsupported(cls, f"parameter {param.name!r} is not annotated")
        annotation = hints[param.name]
        has_default = param.default is not inspect.Parameter.empty
        specs.append(FieldSpec(param.name, annotation, is_optional(annotation), has_default))
    return tuple(specs)
