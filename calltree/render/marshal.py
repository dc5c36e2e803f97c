"""Marshal a tree into display lines plus rendered-line and source-line maps.

Rendering is a pure function of node state and ``MarshalOptions``. Row
grammar, with and without an icon set::

    <indent><glyph> <icon>  <name>
    <indent><glyph>  [<Kind>] • <name>

Detail text (relative path or raw detail) is returned as an end-of-line
annotation so it never shifts the columns of sibling rows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from ..lsp.util import relative_path_from_uri, uri_to_path
from ..tree_model import (
    CallPayload,
    DocumentSymbolPayload,
    Node,
    SourceLine,
    Tree,
    WorkspaceSymbolPayload,
    payload_location,
)
from .icons import GUIDE, NONE_ICONS, SEPARATOR, SPACE, IconSet


@dataclass(frozen=True)
class MarshalOptions:
    """Glyph/indent configuration held fixed for one render pass."""

    icons: IconSet = NONE_ICONS
    indent_guides: bool = True
    workspace_root: Path | None = None


@dataclass(frozen=True)
class Annotation:
    """Trailing display text bound to a 1-based rendered line."""

    line: int
    text: str


@dataclass
class MarshaledTree:
    lines: list[str] = field(default_factory=list)
    annotations: list[Annotation] = field(default_factory=list)
    line_map: dict[int, Node] = field(default_factory=dict)
    source_line_map: dict[int, SourceLine] = field(default_factory=dict)


def indent_prefix(depth: int, indent_guides: bool) -> str:
    """Return the indent emitted before a node at ``depth``.

    With guides the first level is blank padding and deeper levels draw a
    vertical guide followed by padding.
    """
    if not indent_guides:
        return SPACE * depth
    parts: list[str] = []
    for level in range(1, depth + 1):
        parts.append(SPACE if level == 1 else GUIDE + SPACE)
    return "".join(parts)


def expand_glyph(node: Node, icons: IconSet) -> str:
    """Pick the expanded/collapsed glyph, or blank for a known leaf."""
    glyph = icons.expanded if node.expanded else icons.collapsed
    payload = node.payload
    if isinstance(payload, DocumentSymbolPayload):
        # outline nesting is known upfront, so childless means leaf
        if node.is_leaf:
            return SPACE
        return glyph
    if node.expanded and node.is_leaf:
        return SPACE
    return glyph


def node_detail(node: Node, workspace_root: Path) -> str:
    """Return trailing detail: workspace-relative path, else raw detail."""
    payload = node.payload
    if isinstance(payload, WorkspaceSymbolPayload):
        path_text, relative = relative_path_from_uri(payload.symbol.location.uri, workspace_root)
        if relative:
            return path_text
        return payload.symbol.detail or ""
    if isinstance(payload, DocumentSymbolPayload):
        return payload.symbol.detail or ""
    if isinstance(payload, CallPayload):
        path_text, relative = relative_path_from_uri(payload.item.uri, workspace_root)
        if relative:
            return path_text
        return payload.item.detail or ""
    raise TypeError(f"unsupported payload: {payload!r}")


def marshal_node(node: Node, options: MarshalOptions, workspace_root: Path) -> tuple[str, str]:
    """Return ``(line_text, detail)`` for one node."""
    kind = node.kind
    kind_label = kind.label if kind is not None else "Unknown"
    line = indent_prefix(node.depth, options.indent_guides) + expand_glyph(node, options.icons) + SPACE
    if options.icons.name != NONE_ICONS.name:
        # ▶   Func1
        line += options.icons.icon_for(kind_label) + SPACE + SPACE + node.name
    else:
        # ▶  [Function] • Func1
        line += SPACE + f"[{kind_label}]" + SPACE + SEPARATOR + SPACE + node.name
    return line, node_detail(node, workspace_root)


def marshal_tree(tree: Tree, options: MarshalOptions | None = None) -> MarshaledTree:
    """Render ``tree`` depth-first into lines and freshly built maps.

    The root is always emitted and its children always traversed; deeper
    nodes are descended into only when expanded. Siblings keep the order
    they were grafted in.
    """
    active = options or MarshalOptions()
    workspace_root = (active.workspace_root or Path.cwd()).resolve()
    out = MarshaledTree()

    def visit(node: Node) -> None:
        text, detail = marshal_node(node, active, workspace_root)
        out.lines.append(text)
        line_number = len(out.lines)
        out.line_map[line_number] = node
        if detail:
            out.annotations.append(Annotation(line=line_number, text=detail))

        location = payload_location(node.payload, tree.uri, full_range=True)
        if location is not None:
            out.source_line_map[location.range.start.line + 1] = SourceLine(
                path=uri_to_path(location.uri),
                uri=location.uri,
                line=line_number,
            )

        if node.expanded or node.depth == 0:
            for child in node.children:
                visit(child)

    visit(tree.root)
    return out


__all__ = [
    "Annotation",
    "MarshalOptions",
    "MarshaledTree",
    "expand_glyph",
    "indent_prefix",
    "marshal_node",
    "marshal_tree",
    "node_detail",
]
