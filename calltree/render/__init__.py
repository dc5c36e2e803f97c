"""Marshaling of trees into display lines, annotations, and line maps."""

from __future__ import annotations

from .icons import IconSet, available_icon_set_names, resolve_icon_set
from .marshal import (
    Annotation,
    MarshaledTree,
    MarshalOptions,
    expand_glyph,
    indent_prefix,
    marshal_node,
    marshal_tree,
)

__all__ = [
    "IconSet",
    "available_icon_set_names",
    "resolve_icon_set",
    "Annotation",
    "MarshaledTree",
    "MarshalOptions",
    "expand_glyph",
    "indent_prefix",
    "marshal_node",
    "marshal_tree",
]
