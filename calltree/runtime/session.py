"""Top-level session context owning the registry, resolver, and sinks.

Every user-facing tree operation goes through ``Session``. Operations run
on the control thread; asynchronous results are applied by ``pump()``,
which re-renders each affected tree once.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

from ..errors import InvalidOperation, NotFound
from ..lsp.client import DOCUMENT_SYMBOL, PREPARE_CALL_HIERARCHY, LanguageClient
from ..lsp.protocol import CallHierarchyItem, Location
from ..lsp.util import relative_path_from_uri
from ..render.icons import resolve_icon_set
from ..render.marshal import MarshaledTree, MarshalOptions, marshal_tree, node_detail
from ..tree_model import (
    CALL_DIRECTIONS,
    INCOMING,
    OUTLINE,
    CallPayload,
    Node,
    SourceLine,
    Tree,
    TreeRegistry,
    build_call_root,
    build_outline_root,
    copy_subtree,
    flipped_direction,
    payload_call_item,
    payload_location,
)
from .config import CalltreeConfig
from .resolver import Resolution, Resolver
from .sink import WARNING, BufferSink, LogNotifier, MemorySink, Notifier

logger = logging.getLogger(__name__)


class Session:
    """Application context for one editor session."""

    def __init__(
        self,
        client: LanguageClient,
        *,
        config: CalltreeConfig | None = None,
        sink: BufferSink | None = None,
        notifier: Notifier | None = None,
        workspace_root: Path | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or CalltreeConfig()
        self.registry = TreeRegistry()
        self.resolver = Resolver(
            client,
            self.registry,
            resolve_symbols=self.config.resolve_symbols,
            request_timeout=self.config.request_timeout,
            clock=clock,
        )
        self.sink = sink if sink is not None else MemorySink()
        self.notifier = notifier if notifier is not None else LogNotifier()
        self.workspace_root = (workspace_root or Path.cwd()).resolve()
        self.options = MarshalOptions(
            icons=resolve_icon_set(self.config.icons),
            indent_guides=self.config.indent_guides,
            workspace_root=self.workspace_root,
        )

    def _require_open(self, tree: Tree) -> None:
        if not self.registry.is_open(tree):
            raise NotFound(f"tree {tree.handle} is closed")

    def _require_member(self, tree: Tree, node: Node) -> None:
        self._require_open(tree)
        if not tree.contains(node):
            raise NotFound(f"{node.name} is not part of tree {tree.handle}")

    def open_call_hierarchy(self, item: CallHierarchyItem | dict[str, Any], direction: str = INCOMING) -> Tree:
        """Seed a new call tree from a prepared item and start resolving it."""
        if isinstance(item, dict):
            item = CallHierarchyItem.from_dict(item)
        if direction not in CALL_DIRECTIONS:
            raise InvalidOperation(f"cannot open a call tree with direction {direction!r}")
        tree = Tree(
            handle=self.registry.new_handle(),
            root=build_call_root(CallPayload(item)),
            direction=direction,
        )
        self.registry.put(tree)
        self.resolver.resolve_children(tree, tree.root)
        self.render(tree)
        return tree

    def start_call_hierarchy(self, uri: str, line: int, character: int, direction: str = INCOMING) -> int:
        """Ask the server to prepare a call hierarchy; ``pump()`` opens the tree."""
        return self.resolver.prepare(uri, line, character, direction)

    def open_outline(self, uri: str, symbols: Iterable[Any]) -> Tree:
        """Build a complete outline tree from a document-symbol result."""
        tree = Tree(
            handle=self.registry.new_handle(),
            root=build_outline_root(uri, symbols),
            direction=OUTLINE,
            uri=uri,
        )
        self.registry.put(tree)
        self.render(tree)
        return tree

    def start_outline(self, uri: str) -> int:
        return self.resolver.document_symbols(uri)

    def render(self, tree: Tree) -> MarshaledTree:
        """Marshal ``tree``, rebuild its maps, and commit to the sink."""
        self._require_open(tree)
        result = marshal_tree(tree, self.options)
        tree.apply_maps(result.line_map, result.source_line_map)
        self.sink.replace(tree.handle, result.lines, result.annotations)
        return result

    def node_at(self, tree: Tree, line: int) -> Node | None:
        if not self.registry.is_open(tree):
            return None
        return tree.node_at(line)

    def source_line_lookup(self, tree: Tree, file_line: int) -> SourceLine | None:
        if not self.registry.is_open(tree):
            return None
        return tree.source_line(file_line)

    def follow_source_line(self, tree: Tree, file_line: int) -> SourceLine | None:
        """Find the row to highlight for the cursor's source line.

        Falls back to the nearest preceding symbol when ``auto_follow`` is on.
        """
        exact = self.source_line_lookup(tree, file_line)
        if exact is not None or not self.config.auto_follow or not self.registry.is_open(tree):
            return exact
        return tree.nearest_source_line(file_line)

    def expand(self, tree: Tree, node: Node) -> int | None:
        """Show ``node``'s children, resolving them from the server if needed.

        Returns the request token when a request was issued.
        """
        self._require_member(tree, node)
        if node.children:
            if not node.expanded:
                node.expanded = True
                self.render(tree)
            return None
        if node.expanded:
            return None
        if payload_call_item(node.payload) is None:
            # outline nodes arrive fully nested
            node.expanded = True
            self.render(tree)
            return None
        return self.resolver.resolve_children(tree, node)

    def collapse(self, tree: Tree, node: Node) -> None:
        """Hide ``node``'s children; they stay cached for re-expansion."""
        self._require_member(tree, node)
        if node.depth == 0:
            raise InvalidOperation("the root always shows its first level")
        self.resolver.invalidate(node)
        if node.expanded:
            node.expanded = False
            self.render(tree)

    def toggle(self, tree: Tree, node: Node) -> int | None:
        if node.expanded and node.depth > 0:
            self.collapse(tree, node)
            return None
        return self.expand(tree, node)

    def focus(self, tree: Tree, node: Node) -> Tree:
        """Open a new tree rooted at a copy of ``node``; ``tree`` is untouched."""
        self._require_member(tree, node)
        focused = Tree(
            handle=self.registry.new_handle(),
            root=copy_subtree(node),
            direction=tree.direction,
            uri=tree.uri,
        )
        self.registry.put(focused)
        if focused.is_call_tree and not focused.root.resolved:
            self.resolver.resolve_children(focused, focused.root)
        self.render(focused)
        return focused

    def switch_direction(self, tree: Tree) -> int | None:
        """Flip incoming/outgoing in place and re-resolve from the root."""
        self._require_open(tree)
        if not tree.is_call_tree:
            raise InvalidOperation("outline trees have no call direction to switch")
        if payload_call_item(tree.root.payload) is None:
            raise InvalidOperation(f"{tree.root.name} cannot be queried for calls")
        self.resolver.invalidate(tree.root)
        tree.discard_below_root()
        tree.direction = flipped_direction(tree.direction)
        token = self.resolver.resolve_children(tree, tree.root)
        self.render(tree)
        return token

    def jump(self, tree: Tree, node: Node) -> Location:
        """Return the source location to open for ``node``."""
        self._require_member(tree, node)
        location = payload_location(node.payload, tree.uri)
        if location is None:
            raise InvalidOperation(f"{node.name} has no resolvable location")
        return location

    def details(self, tree: Tree, node: Node) -> list[str]:
        """Describe ``node`` for a hover-style popup."""
        self._require_member(tree, node)
        kind = node.kind
        lines = [f"{node.name} ({kind.label if kind is not None else 'Unknown'})"]
        detail = node_detail(node, self.workspace_root)
        if detail:
            lines.append(detail)
        location = payload_location(node.payload, tree.uri)
        if location is not None:
            path_text, _relative = relative_path_from_uri(location.uri, self.workspace_root)
            lines.append(f"{path_text}:{location.range.start.line + 1}")
        if node.call_ranges:
            noun = "call site" if len(node.call_ranges) == 1 else "call sites"
            lines.append(f"{len(node.call_ranges)} {noun}")
        return lines

    def close(self, handle: int) -> bool:
        """Permanently close a tree. Unknown handles are reported, not raised."""
        try:
            self.registry.close(handle)
        except NotFound as exc:
            self.notifier.notify(str(exc), WARNING)
            return False
        self.sink.discard(handle)
        return True

    def set_hidden(self, handle: int, hidden: bool) -> Tree:
        tree = self.registry.set_hidden(handle, hidden)
        self.sink.set_visible(handle, not tree.hidden)
        return tree

    def toggle_hidden(self, kind: str) -> Tree | None:
        """Flip panel visibility of the most recent tree of ``kind``."""
        tree = self.registry.get(kind)
        if tree is None:
            return None
        return self.set_hidden(tree.handle, not tree.hidden)

    def pump(self) -> list[Resolution]:
        """Apply settled responses, open prepared trees, and re-render."""
        resolutions = self.resolver.drain()
        touched: list[Tree] = []
        for resolution in resolutions:
            if not resolution.ok:
                self.notifier.notify(str(resolution.error), WARNING)
                continue
            if resolution.method == PREPARE_CALL_HIERARCHY:
                self.open_call_hierarchy(resolution.value[0], resolution.context["direction"])
            elif resolution.method == DOCUMENT_SYMBOL:
                self.open_outline(resolution.context["uri"], resolution.value)
            elif resolution.tree is not None and all(resolution.tree is not seen for seen in touched):
                touched.append(resolution.tree)
        for tree in touched:
            if self.registry.is_open(tree):
                self.render(tree)
        return resolutions


__all__ = ["Session"]
