"""
projection.py - Declarative object projection

Builds a new plain dict out of a source object from a descriptor that maps
output field names to a path (see ``paths.get_path``) or a getter callable.

Usage:
    to_summary = project({"id": "body.user.id", "tags": lambda src: len(src.body["tags"])})
    summary = to_summary(ctx)
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Union

from .paths import PathSpec, make_getter

ProjectionEntry = Union[PathSpec, Callable[[Any], Any]]
ProjectionDescriptor = Mapping[str, ProjectionEntry]

_MISSING = object()


def project(descriptor: ProjectionDescriptor, source: Any = _MISSING) -> Any:
    """
    Project ``source`` through ``descriptor``.

    The result has exactly the descriptor's keys; absent paths yield None.
    Called with only a descriptor, returns a reusable projector.
    """
    getters: Dict[str, Callable[[Any], Any]] = {
        key: make_getter(entry) for key, entry in descriptor.items()
    }

    def projector(obj: Any) -> Dict[str, Any]:
        return {key: getter(obj) for key, getter in getters.items()}

    if source is _MISSING:
        return projector
    return projector(source)
