"""Tests for session-level tree operations against replayed responses."""

from __future__ import annotations

import unittest
from concurrent.futures import Future
from pathlib import Path
from unittest import mock

from calltree.errors import InvalidOperation, NotFound
from calltree.lsp.client import DOCUMENT_SYMBOL, INCOMING_CALLS, OUTGOING_CALLS, ReplayClient
from calltree.lsp.protocol import Position
from calltree.runtime.config import CalltreeConfig
from calltree.runtime.session import Session
from calltree.runtime.sink import WARNING, LogNotifier, MemorySink
from calltree.tree_model import CALLS_KIND, INCOMING, OUTGOING, OUTLINE_KIND

WS = Path("/ws")
URI = "file:///ws/app.py"


def _raw_item(name: str, line: int) -> dict:
    return {
        "name": name,
        "kind": 12,
        "uri": URI,
        "range": {"start": {"line": line, "character": 0}, "end": {"line": line + 4, "character": 0}},
        "selectionRange": {"start": {"line": line, "character": 4}, "end": {"line": line, "character": 4 + len(name)}},
    }


def _call(name: str, line: int, peer_key: str = "from") -> dict:
    return {
        peer_key: _raw_item(name, line),
        "fromRanges": [{"start": {"line": line + 1, "character": 4}, "end": {"line": line + 1, "character": 9}}],
    }


RECORDING = {
    "item": _raw_item("main", 0),
    "incomingCalls": {
        "main": [_call("A", 10), _call("B", 20), _call("C", 30)],
        "A": [_call("A1", 40)],
        "B": [_call("B1", 50)],
    },
    "outgoingCalls": {
        "main": [_call("helper", 60, "to")],
    },
    "documentSymbols": {
        "file:///ws/shapes.py": [
            {
                "name": "Circle",
                "kind": 5,
                "range": {"start": {"line": 2, "character": 0}, "end": {"line": 8, "character": 0}},
                "children": [
                    {"name": "area", "kind": 6, "range": {"start": {"line": 4, "character": 4}, "end": {"line": 6, "character": 0}}},
                ],
            },
            {"name": "helper", "kind": 12, "range": {"start": {"line": 10, "character": 0}, "end": {"line": 12, "character": 0}}},
        ]
    },
}


def _session(recording: dict | None = None, **config) -> tuple[Session, ReplayClient, MemorySink, LogNotifier]:
    client = ReplayClient(RECORDING if recording is None else recording)
    sink = MemorySink()
    notifier = LogNotifier()
    session = Session(
        client,
        config=CalltreeConfig(**config),
        sink=sink,
        notifier=notifier,
        workspace_root=WS,
    )
    return session, client, sink, notifier


def _cancelled() -> Future:
    future: Future = Future()
    future.cancel()
    return future


def _names(tree) -> list[str]:
    return [tree.line_map[line].name for line in sorted(tree.line_map)]


class CallTreeSessionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.session, self.client, self.sink, self.notifier = _session()
        self.tree = self.session.open_call_hierarchy(RECORDING["item"], INCOMING)

    def test_open_renders_root_then_children_after_pump(self) -> None:
        buffer = self.sink.buffers[self.tree.handle]
        self.assertEqual(buffer.lines, ["▶  [Function] • main"])

        self.session.pump()

        self.assertEqual(
            buffer.lines,
            [
                "▼  [Function] • main",
                " ▶  [Function] • A",
                " ▶  [Function] • B",
                " ▶  [Function] • C",
            ],
        )
        self.assertEqual(buffer.annotations[2], "app.py")
        self.assertEqual(buffer.text().splitlines()[1], " ▶  [Function] • A  app.py")
        self.assertIs(self.session.registry.get(CALLS_KIND), self.tree)

    def test_expand_collapse_expand_reuses_cached_children(self) -> None:
        self.session.pump()
        a_node = self.session.node_at(self.tree, 2)

        self.assertIsNotNone(self.session.expand(self.tree, a_node))
        self.session.pump()
        self.assertEqual(_names(self.tree), ["main", "A", "A1", "B", "C"])
        requests_after_first_expand = len(self.client.requests)

        self.session.collapse(self.tree, a_node)
        self.assertEqual(_names(self.tree), ["main", "A", "B", "C"])
        self.assertEqual(len(a_node.children), 1)

        self.assertIsNone(self.session.expand(self.tree, a_node))
        self.assertEqual(_names(self.tree), ["main", "A", "A1", "B", "C"])
        self.assertEqual(len(self.client.requests), requests_after_first_expand)

    def test_collapsing_the_root_is_rejected(self) -> None:
        self.session.pump()
        with self.assertRaises(InvalidOperation):
            self.session.collapse(self.tree, self.tree.root)
        self.assertTrue(self.tree.root.expanded)

    def test_pump_renders_each_touched_tree_once(self) -> None:
        self.session.pump()
        buffer = self.sink.buffers[self.tree.handle]
        writes = buffer.writes

        self.session.expand(self.tree, self.session.node_at(self.tree, 2))
        self.session.expand(self.tree, self.session.node_at(self.tree, 3))
        results = self.session.pump()

        self.assertEqual(len(results), 2)
        self.assertEqual(buffer.writes, writes + 1)
        self.assertEqual(_names(self.tree), ["main", "A", "A1", "B", "B1", "C"])

    def test_toggle_flips_between_expand_and_collapse(self) -> None:
        self.session.pump()
        a_node = self.session.node_at(self.tree, 2)

        self.session.toggle(self.tree, a_node)
        self.session.pump()
        self.assertTrue(a_node.expanded)
        self.session.toggle(self.tree, a_node)
        self.assertFalse(a_node.expanded)

    def test_focus_opens_new_tree_and_leaves_original_alone(self) -> None:
        self.session.pump()
        a_node = self.session.node_at(self.tree, 2)

        focused = self.session.focus(self.tree, a_node)
        self.assertEqual(self.client.requests[-1][0], INCOMING_CALLS)
        self.session.pump()

        self.assertNotEqual(focused.handle, self.tree.handle)
        self.assertEqual(_names(focused), ["A", "A1"])
        self.assertEqual(focused.root.depth, 0)
        self.assertEqual(focused.line_map[2].depth, 1)
        self.assertEqual(a_node.children, [])
        self.assertEqual(_names(self.tree), ["main", "A", "B", "C"])
        self.assertIs(self.session.registry.get(CALLS_KIND), focused)

    def test_focus_on_resolved_node_copies_children_without_request(self) -> None:
        self.session.pump()
        a_node = self.session.node_at(self.tree, 2)
        self.session.expand(self.tree, a_node)
        self.session.pump()
        sent = len(self.client.requests)

        focused = self.session.focus(self.tree, a_node)

        self.assertEqual(len(self.client.requests), sent)
        self.assertEqual(_names(focused), ["A", "A1"])
        self.assertIsNot(focused.root.children[0], a_node.children[0])

    def test_switch_direction_rebuilds_from_root(self) -> None:
        self.session.pump()
        sent = len(self.client.requests)

        self.session.switch_direction(self.tree)
        self.assertEqual(self.tree.direction, OUTGOING)
        self.assertEqual(self.tree.root.children, [])
        self.assertEqual(_names(self.tree), ["main"])
        self.assertEqual(len(self.client.requests), sent + 1)
        self.assertEqual(self.client.requests[-1][0], OUTGOING_CALLS)

        self.session.pump()
        self.assertEqual(_names(self.tree), ["main", "helper"])

    def test_jump_returns_symbol_selection(self) -> None:
        self.session.pump()
        location = self.session.jump(self.tree, self.session.node_at(self.tree, 3))

        self.assertEqual(location.uri, URI)
        self.assertEqual(location.range.start, Position(20, 4))

    def test_details_summarize_the_node(self) -> None:
        self.session.pump()
        lines = self.session.details(self.tree, self.session.node_at(self.tree, 2))
        self.assertEqual(lines, ["A (Function)", "app.py", "app.py:11", "1 call site"])

    def test_close_discards_buffer_and_disables_lookups(self) -> None:
        self.session.pump()
        handle = self.tree.handle

        self.assertTrue(self.session.close(handle))

        self.assertNotIn(handle, self.sink.buffers)
        self.assertIsNone(self.session.node_at(self.tree, 1))
        self.assertIsNone(self.session.source_line_lookup(self.tree, 1))
        self.assertIsNone(self.session.registry.get(CALLS_KIND))
        with self.assertRaises(NotFound):
            self.session.expand(self.tree, self.tree.root.children[0])

        self.assertFalse(self.session.close(handle))
        self.assertEqual(self.notifier.messages[-1][0], WARNING)

    def test_closing_with_request_in_flight_drops_the_response(self) -> None:
        self.session.pump()
        self.session.expand(self.tree, self.session.node_at(self.tree, 2))
        self.session.close(self.tree.handle)

        self.assertEqual(self.session.pump(), [])
        self.assertEqual(self.tree.root.children[0].children, [])

    def test_nodes_from_another_tree_are_rejected(self) -> None:
        self.session.pump()
        other = self.session.open_call_hierarchy(_raw_item("B", 20))
        self.session.pump()
        foreign = other.root.children[0]
        sent = len(self.client.requests)
        other_lines = list(self.sink.buffers[other.handle].lines)

        for operation in (self.session.expand, self.session.collapse, self.session.focus):
            with self.assertRaises(NotFound):
                operation(self.tree, foreign)
        self.session.pump()

        self.assertEqual(len(self.client.requests), sent)
        self.assertFalse(foreign.expanded)
        self.assertEqual(self.sink.buffers[other.handle].lines, other_lines)
        self.assertIs(self.session.registry.get(CALLS_KIND), other)

    def test_toggle_hidden_keeps_tree_alive(self) -> None:
        self.session.pump()

        self.session.toggle_hidden(CALLS_KIND)
        self.assertFalse(self.sink.buffers[self.tree.handle].visible)
        self.assertTrue(self.session.registry.is_open(self.tree))

        self.session.toggle_hidden(CALLS_KIND)
        self.assertTrue(self.sink.buffers[self.tree.handle].visible)
        self.assertIsNone(self.session.toggle_hidden(OUTLINE_KIND))


class OutlineSessionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.session, self.client, self.sink, self.notifier = _session()
        self.uri = "file:///ws/shapes.py"
        self.tree = self.session.open_outline(self.uri, RECORDING["documentSymbols"][self.uri])

    def test_outline_opens_fully_built_with_first_level_visible(self) -> None:
        self.assertEqual(_names(self.tree), ["shapes.py", "Circle", "helper"])
        self.assertEqual(self.client.requests, [])
        self.assertIs(self.session.registry.get(OUTLINE_KIND), self.tree)

    def test_expanding_outline_nodes_needs_no_request(self) -> None:
        circle = self.session.node_at(self.tree, 2)
        self.assertIsNone(self.session.expand(self.tree, circle))
        self.assertEqual(_names(self.tree), ["shapes.py", "Circle", "area", "helper"])

        helper = self.session.node_at(self.tree, 4)
        self.session.expand(self.tree, helper)
        self.assertTrue(helper.expanded)
        self.assertEqual(self.client.requests, [])

    def test_follow_source_line_prefers_exact_then_nearest(self) -> None:
        self.assertEqual(self.session.follow_source_line(self.tree, 3).line, 2)
        self.assertEqual(self.session.follow_source_line(self.tree, 6).line, 2)
        self.assertEqual(self.session.follow_source_line(self.tree, 40).line, 3)

    def test_follow_without_auto_follow_is_exact_only(self) -> None:
        session, _client, _sink, _notifier = _session(auto_follow=False)
        tree = session.open_outline(self.uri, RECORDING["documentSymbols"][self.uri])

        self.assertIsNone(session.follow_source_line(tree, 6))
        self.assertEqual(session.follow_source_line(tree, 11).line, 3)

    def test_switch_direction_is_rejected_for_outlines(self) -> None:
        with self.assertRaises(InvalidOperation):
            self.session.switch_direction(self.tree)

    def test_outline_and_call_trees_coexist(self) -> None:
        calls = self.session.open_call_hierarchy(RECORDING["item"])
        self.assertIs(self.session.registry.get(OUTLINE_KIND), self.tree)
        self.assertIs(self.session.registry.get(CALLS_KIND), calls)


class AsyncOpenTests(unittest.TestCase):
    def test_prepared_item_opens_a_call_tree(self) -> None:
        session, client, _sink, _notifier = _session()

        session.start_call_hierarchy(URI, 0, 5, OUTGOING)
        session.pump()
        tree = session.registry.get(CALLS_KIND)
        session.pump()

        self.assertEqual(tree.direction, OUTGOING)
        self.assertEqual(_names(tree), ["main", "helper"])
        self.assertEqual(client.requests[1][0], OUTGOING_CALLS)

    def test_document_symbols_open_an_outline(self) -> None:
        session, client, _sink, _notifier = _session()

        session.start_outline("file:///ws/shapes.py")
        session.pump()

        tree = session.registry.get(OUTLINE_KIND)
        self.assertEqual(client.requests[0][0], DOCUMENT_SYMBOL)
        self.assertEqual(_names(tree), ["shapes.py", "Circle", "helper"])

    def test_failures_are_notified_and_node_stays_collapsed(self) -> None:
        session, _client, sink, notifier = _session({"item": _raw_item("lonely", 0)})
        tree = session.open_call_hierarchy(_raw_item("lonely", 0))

        session.pump()

        self.assertEqual(notifier.messages, [(WARNING, "no incoming calls for lonely")])
        self.assertFalse(tree.root.expanded)
        self.assertEqual(sink.buffers[tree.handle].lines, ["▶  [Function] • lonely"])

    def test_cancelled_request_is_notified_without_blocking_other_trees(self) -> None:
        session, client, sink, notifier = _session()
        first = session.open_call_hierarchy(RECORDING["item"])
        with mock.patch.object(client, "request", side_effect=lambda method, params: _cancelled()):
            second = session.open_call_hierarchy(_raw_item("A", 10))

        session.pump()

        self.assertEqual(notifier.messages, [(WARNING, "incoming calls for A failed: cancelled")])
        self.assertEqual(_names(first), ["main", "A", "B", "C"])
        self.assertEqual(sink.buffers[second.handle].lines, ["▶  [Function] • A"])
        self.assertEqual(session.resolver.pending_count, 0)

    def test_empty_prepare_result_notifies(self) -> None:
        session, _client, _sink, notifier = _session({})

        session.start_call_hierarchy(URI, 0, 0)
        session.pump()

        self.assertEqual(notifier.messages, [(WARNING, "no call hierarchy item at cursor")])
        self.assertIsNone(session.registry.get(CALLS_KIND))

    def test_open_rejects_outline_direction(self) -> None:
        session, _client, _sink, _notifier = _session()
        with self.assertRaises(InvalidOperation):
            session.open_call_hierarchy(RECORDING["item"], "outline")


if __name__ == "__main__":
    unittest.main()
