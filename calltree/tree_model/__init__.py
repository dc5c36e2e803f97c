"""Tree model: nodes, payload variants, trees, and the tree registry.

``Node`` carries expansion state, ``Tree`` owns its line maps, and
``TreeRegistry`` tracks the most recent call and outline trees.
"""

from __future__ import annotations

from .registry import TreeRegistry
from .tree import Tree, build_call_root, build_outline_root, copy_subtree
from .types import (
    CALL_DIRECTIONS,
    CALLS_KIND,
    INCOMING,
    OUTGOING,
    OUTLINE,
    OUTLINE_KIND,
    CallPayload,
    DocumentSymbolPayload,
    Node,
    Payload,
    SourceLine,
    WorkspaceSymbolPayload,
    flipped_direction,
    kind_for_direction,
    payload_call_item,
    payload_location,
)

__all__ = [
    "TreeRegistry",
    "Tree",
    "build_call_root",
    "build_outline_root",
    "copy_subtree",
    "CALL_DIRECTIONS",
    "CALLS_KIND",
    "INCOMING",
    "OUTGOING",
    "OUTLINE",
    "OUTLINE_KIND",
    "CallPayload",
    "DocumentSymbolPayload",
    "Node",
    "Payload",
    "SourceLine",
    "WorkspaceSymbolPayload",
    "flipped_direction",
    "kind_for_direction",
    "payload_call_item",
    "payload_location",
]
