"""Command-line front door for calltree.

Replays recorded language-server responses through a session and prints
the rendered tree. Annotations follow their line after two spaces.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

from .lsp.client import ReplayClient
from .lsp.util import path_to_uri
from .render.icons import available_icon_set_names
from .runtime.config import load_calltree_config
from .runtime.session import Session
from .runtime.sink import MemorySink
from .tree_model import INCOMING, OUTGOING, Tree

MAX_SETTLE_ROUNDS = 100


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def _load_json(path: Path) -> Any:
    if not path.exists():
        raise SystemExit(f"Path not found: {path}")
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise SystemExit(f"Invalid JSON in {path}: {exc}") from exc


def _settle(session: Session) -> None:
    """Pump until every replayed request has been applied."""
    for _ in range(MAX_SETTLE_ROUNDS):
        session.pump()
        if session.resolver.pending_count == 0:
            return


def expand_to_depth(session: Session, tree: Tree, depth: int) -> None:
    """Expand every visible node shallower than ``depth``, level by level."""
    for level in range(1, depth):
        for node in list(tree.line_map.values()):
            if node.depth == level and not node.expanded:
                session.expand(tree, node)
        _settle(session)


def render_text(session: Session, tree: Tree) -> str:
    session.render(tree)
    return session.sink.buffers[tree.handle].text()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="calltree",
        description="Render call-hierarchy and outline trees from recorded language-server responses.",
    )
    parser.add_argument(
        "--icons",
        default=None,
        help=f"Icon set ({', '.join(available_icon_set_names())}).",
    )
    parser.add_argument("--no-guides", action="store_true", help="Disable indent guides.")
    parser.add_argument(
        "--resolve-symbols",
        action="store_true",
        help="Disambiguate call items with workspace-symbol lookups.",
    )
    parser.add_argument("--root", default=None, help="Workspace root for relative paths (default: cwd).")
    parser.add_argument("--verbose", action="store_true", help="Log requests and dropped responses.")
    sub = parser.add_subparsers(dest="command", required=True)

    outline = sub.add_parser("outline", help="Render a recorded textDocument/documentSymbol result.")
    outline.add_argument("path", help="JSON file holding the documentSymbol result.")
    outline.add_argument("--uri", default=None, help="Document URI (default: the JSON file's URI).")
    outline.add_argument("--depth", type=_positive_int, default=1, help="Levels to expand.")

    calls = sub.add_parser("calls", help="Replay a recorded call-hierarchy session.")
    calls.add_argument("path", help="JSON recording with item/incomingCalls/outgoingCalls.")
    calls.add_argument("--outgoing", action="store_true", help="Show outgoing calls instead of incoming.")
    calls.add_argument("--depth", type=_positive_int, default=1, help="Levels to expand.")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse CLI arguments, replay the recording, and print the tree."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="calltree: %(levelname)s: %(message)s",
    )

    settings = load_calltree_config()
    if args.icons is not None:
        settings = replace(settings, icons=args.icons)
    if args.no_guides:
        settings = replace(settings, indent_guides=False)
    if args.resolve_symbols:
        settings = replace(settings, resolve_symbols=True)

    path = Path(args.path)
    data = _load_json(path)
    workspace_root = Path(args.root) if args.root else None

    if args.command == "outline":
        if not isinstance(data, list):
            raise SystemExit(f"{path} must hold a JSON list of document symbols")
        session = Session(ReplayClient({}), config=settings, sink=MemorySink(), workspace_root=workspace_root)
        tree = session.open_outline(args.uri or path_to_uri(path), data)
    else:
        if not isinstance(data, dict) or not isinstance(data.get("item"), dict):
            raise SystemExit(f"{path} must hold a recording with an 'item' object")
        session = Session(ReplayClient(data), config=settings, sink=MemorySink(), workspace_root=workspace_root)
        tree = session.open_call_hierarchy(data["item"], OUTGOING if args.outgoing else INCOMING)
        _settle(session)

    expand_to_depth(session, tree, args.depth)
    sys.stdout.write(render_text(session, tree) + "\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
