"""
common module - path extraction and projection helpers shared by the
pipeline and web layers.
"""

from .paths import PathSegment, PathSpec, get_path, make_getter, split_path
from .projection import ProjectionDescriptor, project

__all__ = [
    # paths
    "PathSegment",
    "PathSpec",
    "get_path",
    "make_getter",
    "split_path",
    # projection
    "ProjectionDescriptor",
    "project",
]
