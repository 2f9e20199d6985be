from __future__ import annotations

import json
from decimal import Decimal
from functools import partial

from .nodes import JBool, JDecimal, JDouble, JInt, JNULL, JObject, JString, JArray, JValue


def _to_node(value, number_type):
    # object_pairs_hook has already turned objects into JObject.
    if isinstance(value, JValue):
        return value
    if value is None:
        return JNULL
    if isinstance(value, bool):
        return JBool(value)
    if isinstance(value, int):
        return JInt(value)
    if isinstance(value, (float, Decimal)):
        return number_type(value)
    if isinstance(value, str):
        return JString(value)
    if isinstance(value, list):
        return JArray(_to_node(v, number_type) for v in value)
    raise TypeError(f"Unexpected decoded value: {value!r}")


def _object_pairs(pairs, number_type):
    return JObject([(key, _to_node(value, number_type)) for key, value in pairs])


def parse_json(text, use_decimal: bool = False) -> JValue:
    """Parse JSON text into a node tree.

    Repeated object keys are kept in order. Numbers with a fraction or exponent
    become JDouble, or JDecimal when ``use_decimal`` is set.
    """
    if isinstance(text, bytes):
        text = text.decode('utf-8')
    number_type = JDecimal if use_decimal else JDouble
    try:
        decoded = json.loads(
            text,
            object_pairs_hook=partial(_object_pairs, number_type=number_type),
            parse_float=Decimal if use_decimal else float,
        )
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e}") from e
    return _to_node(decoded, number_type)


def read_json_content(file_obj, use_decimal: bool = False) -> JValue:
    """Read JSON content from an uploaded file or file path."""
    if file_obj is None:
        raise ValueError("No file uploaded.")

    if hasattr(file_obj, 'read'):
        if hasattr(file_obj, 'seek'):
            file_obj.seek(0)
        return parse_json(file_obj.read(), use_decimal=use_decimal)

    path = file_obj.name if hasattr(file_obj, 'name') else file_obj
    with open(path, 'r', encoding='utf-8') as f:
        return parse_json(f.read(), use_decimal=use_decimal)
