"""Extraction settings: date formats, field naming and custom converters.

A ``Formats`` value is immutable. Changing a setting returns a new value, so
one instance can be shared by any number of threads extracting at once.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional

from .nodes import JValue

Converter = Callable[[JValue], Any]

_CAMEL_BOUNDARY = re.compile(r'(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])')


def identity_naming(name: str) -> str:
    return name


def snake_to_camel(name: str) -> str:
    """'created_at' -> 'createdAt'. Leading underscores are kept."""
    stripped = name.lstrip('_')
    prefix = name[:len(name) - len(stripped)]
    head, *rest = stripped.split('_')
    return prefix + head + ''.join(part[:1].upper() + part[1:] for part in rest)


def camel_to_snake(name: str) -> str:
    """'createdAt' -> 'created_at', 'HTTPStatus' -> 'http_status'."""
    return _CAMEL_BOUNDARY.sub('_', name).lower()


@dataclass(frozen=True)
class Formats:
    date_format: str = '%Y-%m-%dT%H:%M:%SZ'
    day_format: str = '%Y-%m-%d'
    field_naming: Callable[[str], str] = identity_naming
    converters: Mapping[Any, Converter] = field(default_factory=dict)
    max_depth: int = 100

    def __post_init__(self):
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be positive, got {self.max_depth}")
        # Snapshot so later changes to the caller's dict cannot leak in.
        object.__setattr__(self, 'converters', MappingProxyType(dict(self.converters)))

    def lookup_converter(self, tp: Any) -> Optional[Converter]:
        try:
            return self.converters.get(tp)
        except TypeError:
            # Unhashable annotation objects cannot have a registration.
            return None

    def field_name_for(self, name: str) -> str:
        return self.field_naming(name)

    def with_converter(self, tp: Any, converter: Converter) -> Formats:
        converters = dict(self.converters)
        converters[tp] = converter
        return replace(self, converters=converters)

    def without_converter(self, tp: Any) -> Formats:
        converters = {k: v for k, v in self.converters.items() if k != tp}
        return replace(self, converters=converters)

    def with_field_naming(self, naming: Callable[[str], str]) -> Formats:
        return replace(self, field_naming=naming)

    def with_date_format(self, date_format: str, day_format: Optional[str] = None) -> Formats:
        return replace(self, date_format=date_format, day_format=day_format or self.day_format)

    def with_max_depth(self, max_depth: int) -> Formats:
        return replace(self, max_depth=max_depth)


DEFAULT_FORMATS = Formats()
