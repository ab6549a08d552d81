"""
Status Selector - Pick a response status from predicates on the final value.

Usage:
    handler = flow(
        load_post,
        with_status({
            201: lambda post: post.get("created"),
            200: lambda post: True,
        }),
    )
"""

from __future__ import annotations

from collections.abc import Mapping
from http import HTTPStatus
from typing import Any, Callable, Iterable, List, Tuple, Union

from .contracts import NoStatusMatched, TaggedValue

Predicate = Callable[[Any], Any]
StatusDescriptor = Union[
    Mapping[Union[int, str, HTTPStatus], Predicate],
    Iterable[Tuple[Union[int, str, HTTPStatus], Predicate]],
]

_MISSING = object()


def _normalize_status(code: Union[int, str, HTTPStatus]) -> int:
    try:
        status = int(code)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid status code: {code!r}") from exc
    if not 100 <= status <= 599:
        raise ValueError(f"Status code out of range: {status}")
    return status


def _entries(descriptor: StatusDescriptor) -> List[Tuple[int, Predicate]]:
    items = descriptor.items() if isinstance(descriptor, Mapping) else descriptor
    entries: List[Tuple[int, Predicate]] = []
    for code, predicate in items:
        if not callable(predicate):
            raise TypeError(f"Predicate for status {code!r} is not callable")
        entries.append((_normalize_status(code), predicate))
    return entries


def with_status(descriptor: StatusDescriptor, value: Any = _MISSING) -> Any:
    """
    Tag ``value`` with the status of the first predicate that accepts it.

    Entries are tried in the descriptor's order. Raises NoStatusMatched when
    no predicate matches (an empty descriptor never matches). Called with
    only a descriptor, returns a pipeline step bound to it.
    """
    entries = _entries(descriptor)

    def select(data: Any) -> TaggedValue:
        for status, predicate in entries:
            if predicate(data):
                return TaggedValue(data=data, status=status)
        raise NoStatusMatched(data)

    if value is _MISSING:
        return select
    return select(value)
