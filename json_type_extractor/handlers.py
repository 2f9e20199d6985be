from __future__ import annotations

import dataclasses
import enum
import json
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, FrozenSet, List, Optional, Set, Tuple
from uuid import UUID

import gradio as gr
import pydantic

from .accessors import list_node_paths
from .exceptions import ExtractionError
from .extractable import ExtractableNode
from .formats import DEFAULT_FORMATS, camel_to_snake, identity_naming, snake_to_camel
from .io_utils import parse_json, read_json_content
from .nodes import JValue

MODES = ["strict", "optional", "list"]

NAMING_CHOICES = {
    "as declared": identity_naming,
    "snake_case -> camelCase": snake_to_camel,
    "camelCase -> snake_case": camel_to_snake,
}

_SCALAR_NAMES = {
    'int': int,
    'str': str,
    'float': float,
    'bool': bool,
    'Decimal': Decimal,
    'datetime': datetime,
    'date': date,
    'UUID': UUID,
    'Any': Any,
    'JValue': JValue,
}

_GENERIC_NAMES = {
    'list': List,
    'List': List,
    'set': Set,
    'Set': Set,
    'frozenset': FrozenSet,
    'FrozenSet': FrozenSet,
    'tuple': Tuple,
    'Tuple': Tuple,
    'dict': Dict,
    'Dict': Dict,
    'Optional': Optional,
}

_TOKEN = re.compile(r'\s*(\.\.\.|[A-Za-z_][A-Za-z0-9_]*|[\[\],]|\S)')


def _tokenize(text: str) -> List[str]:
    return _TOKEN.findall(text)


def parse_type_expression(text: str):
    """Parse a small annotation grammar such as ``dict[str, list[int]]``.

    Only names from a fixed table are recognised; nothing is evaluated.
    """
    tokens = _tokenize(text or '')
    if not tokens:
        raise ValueError("empty type expression")
    tp, pos = _parse_type(tokens, 0)
    if pos != len(tokens):
        raise ValueError(f"unexpected {tokens[pos]!r} after type")
    return tp


def _parse_type(tokens: List[str], pos: int):
    if pos >= len(tokens):
        raise ValueError("type expression ends too early")
    name = tokens[pos]
    pos += 1

    if name in _SCALAR_NAMES:
        return _SCALAR_NAMES[name], pos
    if name not in _GENERIC_NAMES:
        raise ValueError(f"unknown type name {name!r}")

    generic = _GENERIC_NAMES[name]
    if pos >= len(tokens) or tokens[pos] != '[':
        if generic is Optional:
            raise ValueError("Optional needs a type argument")
        return generic, pos

    args = []
    pos += 1
    while True:
        if pos < len(tokens) and tokens[pos] == '...':
            args.append(Ellipsis)
            pos += 1
        else:
            arg, pos = _parse_type(tokens, pos)
            args.append(arg)
        if pos >= len(tokens):
            raise ValueError("missing ']'")
        if tokens[pos] == ']':
            pos += 1
            break
        if tokens[pos] != ',':
            raise ValueError(f"expected ',' or ']', found {tokens[pos]!r}")
        pos += 1

    if generic is Optional and len(args) != 1:
        raise ValueError("Optional takes exactly one type argument")
    try:
        return generic[tuple(args) if len(args) > 1 else args[0]], pos
    except TypeError as e:
        raise ValueError(f"bad arguments for {name}: {e}") from e


def to_jsonable(value: Any) -> Any:
    """Round-trip an extracted value into something gr.JSON can display."""
    return json.loads(json.dumps(value, default=_json_default, ensure_ascii=False))


def _json_default(value: Any):
    if isinstance(value, (set, frozenset)):
        return list(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, JValue):
        return value.values
    if isinstance(value, pydantic.BaseModel):
        return value.model_dump()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if hasattr(value, '__dict__'):
        return vars(value)
    return str(value)


def load_document_handler(file_obj):
    if file_obj is None:
        return "", gr.update(choices=["(root)"], value="(root)"), "No file uploaded."

    try:
        node = read_json_content(file_obj)
    except Exception as e:
        return "", gr.update(choices=["(root)"], value="(root)"), f"Error parsing JSON: {str(e)}"

    paths = list_node_paths(node)
    text = json.dumps(node.values, indent=2, ensure_ascii=False, default=str)
    return (
        text,
        gr.update(choices=["(root)"] + paths, value="(root)"),
        f"Successfully loaded. Found {len(paths)} leaf paths.",
    )


def run_extraction_handler(json_text, path, type_expr, mode, naming):
    if not json_text or not json_text.strip():
        return None, "No JSON loaded."

    try:
        node = parse_json(json_text)
    except ValueError as e:
        return None, str(e)

    try:
        tp = parse_type_expression(type_expr)
    except ValueError as e:
        return None, f"Invalid type: {e}"

    formats = DEFAULT_FORMATS.with_field_naming(NAMING_CHOICES.get(naming, identity_naming))
    target = ExtractableNode(node, formats).at(path or '(root)')

    try:
        if mode == "optional":
            value = target.extract_opt(tp)
            status = "Nothing extracted." if value is None else "Extracted."
        elif mode == "list":
            value = target.extract_list(lambda item: ExtractableNode(item, formats).extract(tp))
            status = f"Extracted {len(value)} item(s)."
        else:
            value = target.extract(tp)
            status = "Extracted."
    except ExtractionError as e:
        return None, f"{type(e).__name__}: {e}"

    return to_jsonable(value), status
