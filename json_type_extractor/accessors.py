from __future__ import annotations

from typing import List, Set

from .nodes import JArray, JNOTHING, JObject, JValue
from .paths import escape_path_segment, split_path


def get_node_by_path(node: JValue, path: str) -> JValue:
    """Retrieve a node from a tree using a dot-notation path.

    Numeric segments index into arrays. Any other segment applied to an array
    is broadcast across its elements and the matches are collected into a
    new array. A miss anywhere yields JNOTHING.
    """
    if path in (None, '', '(root)'):
        return node

    keys = split_path(path)
    current = node
    i = 0
    while i < len(keys):
        key = keys[i]

        if isinstance(current, JObject):
            if key in current:
                current = current.get(key)
                i += 1
                continue
            # Fallback for unescaped dotted keys (e.g. 'gpt-3.5-turbo') when the
            # incoming path is 'responses.gpt-3.5-turbo.response'.
            candidate = key
            for j in range(i + 1, len(keys)):
                candidate = candidate + '.' + keys[j]
                if candidate in current:
                    current = current.get(candidate)
                    i = j + 1
                    break
            else:
                return JNOTHING

        elif isinstance(current, JArray):
            if key.isdigit():
                current = current[int(key)]
            else:
                current = current / key
            i += 1
        else:
            return JNOTHING

        if current is JNOTHING:
            return JNOTHING

    return current


def list_node_paths(node: JValue, parent_key: str = '', sep: str = '.') -> List[str]:
    """List every leaf path in a tree, sorted.

    Arrays do not add a segment: their elements contribute paths relative to
    the array's own path, which is how get_node_by_path broadcasts.
    """
    return sorted(_collect_paths(node, parent_key, sep))


def _collect_paths(node: JValue, parent_key: str, sep: str) -> Set[str]:
    keys: Set[str] = set()

    if isinstance(node, JObject):
        for k in node.keys():
            v = node.get(k)
            escaped_k = escape_path_segment(k)
            current_key = f"{parent_key}{sep}{escaped_k}" if parent_key else escaped_k
            if isinstance(v, (JObject, JArray)):
                keys.update(_collect_paths(v, current_key, sep))
            else:
                keys.add(current_key)
    elif isinstance(node, JArray):
        for item in node:
            if isinstance(item, (JObject, JArray)):
                keys.update(_collect_paths(item, parent_key, sep))
            elif parent_key:
                keys.add(parent_key)
    elif parent_key:
        keys.add(parent_key)

    return keys
