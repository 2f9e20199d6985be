"""Dot paths such as ``people.0.name`` and the error trails built from them.

A literal dot inside a key is written ``\\.`` and a literal backslash ``\\\\``.
"""
from __future__ import annotations

import re
from typing import Iterable, List, Union

Segment = Union[str, int]

# One path segment: escape pairs or anything but a dot or backslash. A lone
# trailing backslash is kept literally.
_SEGMENT = re.compile(r'(?:\\.|[^.\\]|\\\Z)+', re.DOTALL)
_ESCAPE_PAIR = re.compile(r'\\(.)', re.DOTALL)


def escape_path_segment(segment: Segment) -> str:
    return str(segment).replace('\\', '\\\\').replace('.', '\\.')


def unescape_path_segment(segment: str) -> str:
    return _ESCAPE_PAIR.sub(r'\1', segment or '')


def split_path(path: str) -> List[str]:
    """Split on unescaped dots. Empty segments are dropped."""
    if path is None:
        return []
    return [unescape_path_segment(m) for m in _SEGMENT.findall(str(path))]


def join_path(segments: Iterable[Segment]) -> str:
    """Inverse of split_path: escape and join segments with '.'."""
    return '.'.join(escape_path_segment(s) for s in segments)


def format_path(segments: Iterable[Segment]) -> str:
    """Render an error trail such as ``items[2].name``.

    Integer segments are array indices; string segments are object keys.
    """
    out: List[str] = []
    for segment in segments:
        if isinstance(segment, int):
            out.append(f"[{segment}]")
        elif out:
            out.append('.' + escape_path_segment(segment))
        else:
            out.append(escape_path_segment(segment))
    return ''.join(out) or '(root)'
