"""In-memory JSON value tree.

Every node is immutable and compares by value. Objects keep their fields as an
ordered tuple of ``(key, value)`` pairs so repeated keys survive parsing; all
lookups resolve a repeated key to its last occurrence.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Iterator, List, Tuple


class JValue:
    """Base class of all tree nodes."""

    __slots__ = ()

    @property
    def values(self) -> Any:
        """Plain Python projection of the node."""
        raise NotImplementedError

    def children(self) -> Tuple[JValue, ...]:
        return ()

    def __truediv__(self, key: str) -> JValue:
        return JNOTHING

    def __getitem__(self, index: int) -> JValue:
        return JNOTHING

    def __iter__(self) -> Iterator[JValue]:
        return iter(())

    def __bool__(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.values!r})"


class JNothing(JValue):
    """Marker for a field that is not present at all."""

    __slots__ = ()
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @property
    def values(self) -> Any:
        return None

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "JNothing"


class JNull(JValue):
    __slots__ = ()
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @property
    def values(self) -> Any:
        return None

    def __repr__(self) -> str:
        return "JNull"


JNOTHING = JNothing()
JNULL = JNull()


class _Scalar(JValue):
    __slots__ = ('_value',)

    def __init__(self, value):
        object.__setattr__(self, '_value', value)

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def value(self):
        return self._value

    @property
    def values(self) -> Any:
        return self._value

    def __eq__(self, other) -> bool:
        # JInt(1) and JBool(True) must not compare equal even though 1 == True.
        return type(other) is type(self) and other._value == self._value

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._value))


class JBool(_Scalar):
    __slots__ = ()

    def __init__(self, value: bool):
        super().__init__(bool(value))


class JInt(_Scalar):
    __slots__ = ()

    def __init__(self, value: int):
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"JInt needs an int, got {type(value).__name__}")
        super().__init__(value)


class JDouble(_Scalar):
    __slots__ = ()

    def __init__(self, value: float):
        super().__init__(float(value))


class JDecimal(_Scalar):
    __slots__ = ()

    def __init__(self, value: Decimal):
        super().__init__(value if isinstance(value, Decimal) else Decimal(str(value)))


class JString(_Scalar):
    __slots__ = ()

    def __init__(self, value: str):
        if not isinstance(value, str):
            raise TypeError(f"JString needs a str, got {type(value).__name__}")
        super().__init__(value)


JNumber = (JInt, JDouble, JDecimal)


class JArray(JValue):
    __slots__ = ('_items',)

    def __init__(self, items=()):
        object.__setattr__(self, '_items', tuple(items))

    def __setattr__(self, name, value):
        raise AttributeError("JArray is immutable")

    @property
    def items(self) -> Tuple[JValue, ...]:
        return self._items

    @property
    def values(self) -> List[Any]:
        return [item.values for item in self._items]

    def children(self) -> Tuple[JValue, ...]:
        return self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[JValue]:
        return iter(self._items)

    def __getitem__(self, index: int) -> JValue:
        try:
            return self._items[index]
        except (IndexError, TypeError):
            return JNOTHING

    def __truediv__(self, key: str) -> JValue:
        found = [v for v in (item / key for item in self._items) if v is not JNOTHING]
        return JArray(found) if found else JNOTHING

    def __eq__(self, other) -> bool:
        return isinstance(other, JArray) and other._items == self._items

    def __hash__(self) -> int:
        return hash(('JArray', self._items))


class JObject(JValue):
    __slots__ = ('_fields',)

    def __init__(self, fields=()):
        if isinstance(fields, dict):
            fields = fields.items()
        pairs = []
        for key, value in fields:
            if not isinstance(key, str):
                raise TypeError(f"object keys must be str, got {type(key).__name__}")
            if not isinstance(value, JValue):
                raise TypeError(f"field {key!r} is not a JValue: {value!r}")
            pairs.append((key, value))
        object.__setattr__(self, '_fields', tuple(pairs))

    def __setattr__(self, name, value):
        raise AttributeError("JObject is immutable")

    @property
    def fields(self) -> Tuple[Tuple[str, JValue], ...]:
        return self._fields

    @property
    def values(self) -> Dict[str, Any]:
        return {key: value.values for key, value in self._fields}

    def children(self) -> Tuple[JValue, ...]:
        return tuple(value for _, value in self._fields)

    def keys(self) -> List[str]:
        """Distinct keys in first-seen order."""
        return list(dict.fromkeys(key for key, _ in self._fields))

    def get(self, key: str) -> JValue:
        for name, value in reversed(self._fields):
            if name == key:
                return value
        return JNOTHING

    def to_dict(self) -> Dict[str, JValue]:
        return dict(self._fields)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __contains__(self, key: str) -> bool:
        return any(name == key for name, _ in self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __truediv__(self, key: str) -> JValue:
        return self.get(key)

    def __eq__(self, other) -> bool:
        return isinstance(other, JObject) and other._fields == self._fields

    def __hash__(self) -> int:
        return hash(('JObject', self._fields))


def from_python(value: Any) -> JValue:
    """Build a tree from plain Python data (the shapes ``json.loads`` returns)."""
    if isinstance(value, JValue):
        return value
    if value is None:
        return JNULL
    if isinstance(value, bool):
        return JBool(value)
    if isinstance(value, int):
        return JInt(value)
    if isinstance(value, float):
        return JDouble(value)
    if isinstance(value, Decimal):
        return JDecimal(value)
    if isinstance(value, str):
        return JString(value)
    if isinstance(value, dict):
        return JObject([(str(k), from_python(v)) for k, v in value.items()])
    if isinstance(value, (list, tuple)):
        return JArray(from_python(v) for v in value)
    raise TypeError(f"Cannot convert {type(value).__name__} to a JSON node")
