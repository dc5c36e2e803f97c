"""Named commands bound to the most recent tree of the active kind.

Editors map keys to these names. Failures become notifications here so no
command silently disappears and none escapes into the editor's own code.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from ..errors import CalltreeError, NotFound
from ..tree_model import CALLS_KIND, OUTLINE_KIND, Node, Tree
from .session import Session
from .sink import ERROR, WARNING


@dataclass(frozen=True)
class CommandBinding:
    """One command name and the handler it dispatches to."""

    name: str
    handler: Callable[[Tree, int | None], object]
    needs_line: bool = True


class CommandDispatcher:
    """Small dispatch table from command names to session operations."""

    def __init__(self, session: Session, active_kind: str = CALLS_KIND) -> None:
        self.session = session
        self.active_kind = active_kind
        self._bindings: dict[str, CommandBinding] = {}
        self.register_bindings(
            CommandBinding("expand", lambda tree, line: session.expand(tree, self._node(tree, line))),
            CommandBinding("collapse", lambda tree, line: session.collapse(tree, self._node(tree, line))),
            CommandBinding("toggle", lambda tree, line: session.toggle(tree, self._node(tree, line))),
            CommandBinding("focus", lambda tree, line: session.focus(tree, self._node(tree, line))),
            CommandBinding("jump", lambda tree, line: session.jump(tree, self._node(tree, line))),
            CommandBinding("details", lambda tree, line: session.details(tree, self._node(tree, line))),
            CommandBinding("switch", lambda tree, _line: session.switch_direction(tree), needs_line=False),
            CommandBinding("close", lambda tree, _line: session.close(tree.handle), needs_line=False),
            CommandBinding("hide", lambda tree, _line: session.set_hidden(tree.handle, True), needs_line=False),
            CommandBinding("show", lambda tree, _line: session.set_hidden(tree.handle, False), needs_line=False),
        )

    def register_bindings(self, *bindings: CommandBinding) -> CommandDispatcher:
        for binding in bindings:
            self._bindings[binding.name] = binding
        return self

    def command_names(self) -> tuple[str, ...]:
        return tuple(sorted(self._bindings))

    def use_kind(self, kind: str) -> None:
        if kind not in (CALLS_KIND, OUTLINE_KIND):
            raise ValueError(f"unknown tree kind: {kind!r}")
        self.active_kind = kind

    @staticmethod
    def _node(tree: Tree, line: int | None) -> Node:
        node = tree.node_at(line) if line is not None else None
        if node is None:
            raise NotFound(f"no symbol on line {line}")
        return node

    def run(self, name: str, line: int | None = None, kind: str | None = None) -> object:
        """Run command ``name`` against the most recent tree of ``kind``.

        Returns the operation's result, or ``None`` after notifying the
        user about a failure.
        """
        binding = self._bindings.get(name)
        if binding is None:
            self.session.notifier.notify(f"unknown command: {name}", ERROR)
            return None
        if binding.needs_line and line is None:
            self.session.notifier.notify(f"{name} needs a line", WARNING)
            return None
        target_kind = kind or self.active_kind
        tree = self.session.registry.get(target_kind)
        if tree is None:
            self.session.notifier.notify(f"no {target_kind} tree is open", WARNING)
            return None
        try:
            return binding.handler(tree, line)
        except CalltreeError as exc:
            self.session.notifier.notify(str(exc), WARNING)
            return None


__all__ = ["CommandBinding", "CommandDispatcher"]
