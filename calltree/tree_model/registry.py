"""Keyed storage of independent trees with one most-recent slot per kind."""

from __future__ import annotations

import itertools
import logging

from ..errors import NotFound
from .tree import Tree
from .types import CALLS_KIND, OUTLINE_KIND

logger = logging.getLogger(__name__)


class TreeRegistry:
    """Owns every open tree for one session.

    Handles are allocated monotonically and never reused. Opening a call
    tree never evicts the most recent outline tree and vice versa.
    """

    def __init__(self) -> None:
        self._trees: dict[int, Tree] = {}
        self._recent: dict[str, int | None] = {CALLS_KIND: None, OUTLINE_KIND: None}
        self._handles = itertools.count(1)

    def new_handle(self) -> int:
        return next(self._handles)

    def put(self, tree: Tree) -> Tree:
        """Store ``tree`` and make it the most recent tree of its kind."""
        if tree.closed:
            raise NotFound(f"tree {tree.handle} is closed")
        self._trees[tree.handle] = tree
        self._recent[tree.kind] = tree.handle
        logger.debug("registered %s tree %d", tree.kind, tree.handle)
        return tree

    def get(self, kind: str) -> Tree | None:
        """Return the most recent open tree of ``kind``, if any."""
        if kind not in self._recent:
            raise ValueError(f"unknown tree kind: {kind!r}")
        handle = self._recent[kind]
        if handle is None:
            return None
        return self._trees.get(handle)

    def lookup(self, handle: int) -> Tree:
        try:
            return self._trees[handle]
        except KeyError:
            raise NotFound(f"no open tree with handle {handle}") from None

    def is_open(self, tree: Tree) -> bool:
        return not tree.closed and self._trees.get(tree.handle) is tree

    def close(self, handle: int) -> Tree:
        """Permanently remove a tree; its pending responses become no-ops."""
        tree = self._trees.pop(handle, None)
        if tree is None:
            raise NotFound(f"no open tree with handle {handle}")
        tree.closed = True
        tree.line_map = {}
        tree.source_line_map = {}
        if self._recent.get(tree.kind) == handle:
            self._recent[tree.kind] = None
        logger.debug("closed %s tree %d", tree.kind, handle)
        return tree

    def set_hidden(self, handle: int, hidden: bool) -> Tree:
        """Toggle panel visibility only; the tree and its nodes stay alive."""
        tree = self.lookup(handle)
        tree.hidden = bool(hidden)
        return tree

    def trees(self) -> list[Tree]:
        return list(self._trees.values())

    def __contains__(self, handle: object) -> bool:
        return handle in self._trees

    def __len__(self) -> int:
        return len(self._trees)
