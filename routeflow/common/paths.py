"""
paths.py - Path extraction helpers

Resolves dotted paths ("body.items.0.id") or segment lists against nested
mappings, sequences and plain objects. A missing segment is not an error:
resolution simply yields None.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any, Callable, List, Union

_INDEX_PATTERN = re.compile(r"-?[0-9]+")

PathSegment = Union[str, int]
PathSpec = Union[str, Sequence[PathSegment]]

_MISSING = object()


def split_path(path: PathSpec) -> List[PathSegment]:
    """
    Normalize a path specification into a list of segments.

    "a.b.0.c" -> ["a", "b", "0", "c"]; a segment list is returned as a copy.
    An empty string is the empty path (the source itself).
    """
    if isinstance(path, str):
        return [segment for segment in path.split(".") if segment != ""]
    if isinstance(path, int):
        return [path]
    if isinstance(path, Sequence):
        return list(path)
    raise TypeError(f"Path must be a string or a sequence of segments, got {type(path).__name__}")


def _as_index(segment: PathSegment) -> int | None:
    if isinstance(segment, bool):
        return None
    if isinstance(segment, int):
        return segment
    if not isinstance(segment, str):
        return None
    text = segment.strip()
    if _INDEX_PATTERN.fullmatch(text):
        return int(text)
    return None


def _step(node: Any, segment: PathSegment) -> Any:
    if node is None:
        return _MISSING

    if isinstance(node, Mapping):
        if segment in node:
            return node[segment]
        # "0" also matches an integer key and vice versa
        index = _as_index(segment)
        if index is not None:
            if index in node:
                return node[index]
            if str(index) in node:
                return node[str(index)]
        return _MISSING

    if isinstance(node, Sequence) and not isinstance(node, (str, bytes, bytearray)):
        index = _as_index(segment)
        if index is None:
            return _MISSING
        try:
            return node[index]
        except IndexError:
            return _MISSING

    if isinstance(segment, str) and segment:
        return getattr(node, segment, _MISSING)
    return _MISSING


def get_path(path: PathSpec, source: Any = _MISSING) -> Any:
    """
    Resolve ``path`` against ``source``.

    Returns None when any segment is missing. Called with only a path,
    returns a reusable getter ``getter(source)``.
    """
    segments = split_path(path)

    if source is _MISSING:
        def getter(obj: Any) -> Any:
            return _resolve(segments, obj)

        return getter

    return _resolve(segments, source)


def _resolve(segments: List[PathSegment], source: Any) -> Any:
    node = source
    for segment in segments:
        node = _step(node, segment)
        if node is _MISSING:
            return None
    return node


def make_getter(getter: Union[PathSpec, Callable[[Any], Any]]) -> Callable[[Any], Any]:
    """Turn a path specification or accessor callable into an accessor."""
    if callable(getter):
        return getter
    return get_path(getter)
