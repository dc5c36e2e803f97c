"""Tree entity: one independently addressable call or outline tree.

Each tree owns its rendered-line and source-line maps so they live and die
with the tree instead of sitting in side tables keyed by handle.
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any

from ..lsp.protocol import DocumentSymbol, Position, Range, SymbolInformation, SymbolKind, is_document_symbol
from ..lsp.util import uri_to_path
from .types import (
    CALL_DIRECTIONS,
    CallPayload,
    DocumentSymbolPayload,
    Node,
    Payload,
    SourceLine,
    WorkspaceSymbolPayload,
    kind_for_direction,
)


@dataclass(eq=False)
class Tree:
    """Root node plus direction, visibility flags, and owned line maps."""

    handle: int
    root: Node
    direction: str
    uri: str | None = None
    hidden: bool = False
    closed: bool = False
    generation: int = 0
    line_map: dict[int, Node] = field(default_factory=dict)
    source_line_map: dict[int, SourceLine] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # validates direction early
        kind_for_direction(self.direction)
        self.root.depth = 0

    @property
    def kind(self) -> str:
        return kind_for_direction(self.direction)

    @property
    def is_call_tree(self) -> bool:
        return self.direction in CALL_DIRECTIONS

    def node_at(self, line: int) -> Node | None:
        """Return the node rendered on 1-based ``line`` by the last render."""
        return self.line_map.get(line)

    def source_line(self, file_line: int) -> SourceLine | None:
        """Return the rendered line for a symbol starting on ``file_line``."""
        return self.source_line_map.get(file_line)

    def nearest_source_line(self, file_line: int) -> SourceLine | None:
        """Return the closest symbol starting at or before ``file_line``."""
        if not self.source_line_map:
            return None
        keys = sorted(self.source_line_map)
        idx = bisect_right(keys, file_line)
        if idx == 0:
            return None
        return self.source_line_map[keys[idx - 1]]

    def apply_maps(self, line_map: dict[int, Node], source_line_map: dict[int, SourceLine]) -> None:
        """Replace both maps wholesale after a render pass."""
        self.line_map = dict(line_map)
        self.source_line_map = dict(source_line_map)

    def contains(self, node: Node) -> bool:
        return any(candidate is node for candidate in self.root.walk())

    def discard_below_root(self) -> None:
        """Drop every non-root node and invalidate in-flight requests."""
        self.root.children = []
        self.root.expanded = False
        self.root.pending_token = None
        self.generation += 1


def copy_subtree(node: Node, depth: int = 0) -> Node:
    """Deep-copy ``node`` with depths renumbered from ``depth``.

    Expansion state and resolved children are kept; in-flight request
    tokens are not, since responses belong to the original node.
    """
    clone = Node(
        payload=node.payload,
        depth=depth,
        expanded=node.expanded,
        call_ranges=node.call_ranges,
    )
    clone.children = [copy_subtree(child, depth + 1) for child in node.children]
    return clone


def _outline_root(uri: str) -> Node:
    path = uri_to_path(uri)
    name = path.name if path is not None else (PurePosixPath(uri).name or uri)
    origin = Range(start=Position(0, 0), end=Position(0, 0))
    root_symbol = DocumentSymbol(name=name, kind=SymbolKind.FILE, range=origin, selection_range=origin)
    return Node(payload=DocumentSymbolPayload(root_symbol), depth=0, expanded=True)


def _graft_document_symbol(parent: Node, symbol: DocumentSymbol) -> None:
    child = parent.add_child(DocumentSymbolPayload(symbol))
    for nested in symbol.children:
        _graft_document_symbol(child, nested)


def build_outline_root(uri: str, symbols: Iterable[Any]) -> Node:
    """Build an outline root from a ``textDocument/documentSymbol`` result.

    Accepts nested ``DocumentSymbol`` values (parsed or raw dicts) or a flat
    ``SymbolInformation`` list. Nesting arrives upfront, so the whole tree
    is built in one pass; nested nodes start collapsed.
    """
    root = _outline_root(uri)
    for raw in symbols:
        if isinstance(raw, DocumentSymbol):
            _graft_document_symbol(root, raw)
        elif isinstance(raw, SymbolInformation):
            root.add_child(WorkspaceSymbolPayload(raw))
        elif is_document_symbol(raw):
            _graft_document_symbol(root, DocumentSymbol.from_dict(raw))
        elif isinstance(raw, dict):
            root.add_child(WorkspaceSymbolPayload(SymbolInformation.from_dict(raw)))
        else:
            raise TypeError(f"unsupported document symbol: {raw!r}")
    return root


def build_call_root(payload: Payload) -> Node:
    """Build an unresolved call-tree root from a prepared item."""
    if not isinstance(payload, (CallPayload, WorkspaceSymbolPayload)):
        raise TypeError(f"call trees need a call-hierarchy payload, got {payload!r}")
    return Node(payload=payload, depth=0)


__all__ = [
    "Tree",
    "build_call_root",
    "build_outline_root",
    "copy_subtree",
]
