"""Lazy, asynchronous expansion of tree nodes from language-server calls.

Requests return ``concurrent.futures.Future`` objects that may complete on
any thread. Completion callbacks only enqueue; ``drain()`` runs on the
single control thread and is the only place nodes are mutated. Every
request is bound to the node that issued it through a token, so results
can never be grafted onto the wrong node and superseded responses become
no-ops.
"""

from __future__ import annotations

import itertools
import logging
import time
from collections.abc import Callable
from concurrent.futures import CancelledError, Future
from dataclasses import dataclass, field
from queue import Empty, Queue
from typing import Any

from ..errors import InvalidOperation, ResolutionFailure
from ..lsp.client import (
    DOCUMENT_SYMBOL,
    INCOMING_CALLS,
    OUTGOING_CALLS,
    PREPARE_CALL_HIERARCHY,
    WORKSPACE_SYMBOL,
    LanguageClient,
)
from ..lsp.protocol import CallHierarchyCall, CallHierarchyItem, SymbolInformation
from ..tree_model import (
    INCOMING,
    OUTGOING,
    CallPayload,
    Node,
    Tree,
    TreeRegistry,
    WorkspaceSymbolPayload,
    payload_call_item,
)
from .config import DEFAULT_REQUEST_TIMEOUT

logger = logging.getLogger(__name__)

_METHOD_FOR_DIRECTION = {INCOMING: INCOMING_CALLS, OUTGOING: OUTGOING_CALLS}
_PEER_KEY_FOR_DIRECTION = {INCOMING: "from", OUTGOING: "to"}


@dataclass(frozen=True)
class Resolution:
    """One settled request, reported back to the session by ``drain()``.

    Expansion results carry the tree and node they were grafted onto.
    Prepare and document-symbol results carry the parsed ``value`` and the
    request ``context`` (direction or document URI).
    """

    method: str
    tree: Tree | None = None
    node: Node | None = None
    value: Any = None
    error: ResolutionFailure | None = None
    context: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(eq=False)
class _Request:
    token: int
    method: str
    deadline: float
    tree: Tree | None = None
    node: Node | None = None
    generation: int = 0
    direction: str | None = None
    context: dict[str, Any] = field(default_factory=dict)
    calls: list[CallHierarchyCall] = field(default_factory=list)
    matches: list[SymbolInformation | None] = field(default_factory=list)
    lookup_tokens: set[int] = field(default_factory=set)


def _future_error(future: Future) -> BaseException | None:
    """Return the failure of a settled future; cancellation counts as one."""
    if future.cancelled():
        return CancelledError("cancelled")
    return future.exception()


def match_workspace_symbol(item: CallHierarchyItem, raw_symbols: object) -> SymbolInformation | None:
    """Pick the workspace symbol that describes ``item``, if any.

    A match shares the item's name and URI and its range encloses the
    item's selection range.
    """
    if not isinstance(raw_symbols, list):
        return None
    for raw in raw_symbols:
        if not isinstance(raw, dict):
            continue
        symbol = SymbolInformation.from_dict(raw)
        if symbol.name != item.name or symbol.location.uri != item.uri:
            continue
        if symbol.location.range.contains(item.selection_range):
            return symbol
    return None


class Resolver:
    """Issue expansion requests and apply their results on ``drain()``."""

    def __init__(
        self,
        client: LanguageClient,
        registry: TreeRegistry,
        *,
        resolve_symbols: bool = False,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.registry = registry
        self.resolve_symbols = resolve_symbols
        self.request_timeout = request_timeout
        self._clock = clock
        self._tokens = itertools.count(1)
        self._pending: dict[int, _Request] = {}
        self._lookups: dict[int, tuple[int, int]] = {}
        self._results: Queue[tuple[int, Future]] = Queue()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def in_flight(self, node: Node) -> bool:
        token = node.pending_token
        return token is not None and token in self._pending

    def _deadline(self) -> float:
        return self._clock() + self.request_timeout

    def _send(self, token: int, method: str, params: dict[str, Any]) -> None:
        logger.debug("request %d: %s", token, method)
        future = self.client.request(method, params)
        future.add_done_callback(lambda done, token=token: self._results.put((token, done)))

    def resolve_children(self, tree: Tree, node: Node, direction: str | None = None) -> int | None:
        """Start resolving ``node``'s children; return the request token.

        Returns ``None`` without issuing anything when the node already has
        children or a request in flight.
        """
        direction = direction or tree.direction
        if direction not in _METHOD_FOR_DIRECTION:
            raise InvalidOperation(f"{direction} trees cannot be expanded from the server")
        item = payload_call_item(node.payload)
        if item is None:
            raise InvalidOperation(f"{node.name} has no call-hierarchy item to expand")
        if node.children or self.in_flight(node):
            return None

        token = next(self._tokens)
        method = _METHOD_FOR_DIRECTION[direction]
        node.pending_token = token
        self._pending[token] = _Request(
            token=token,
            method=method,
            deadline=self._deadline(),
            tree=tree,
            node=node,
            generation=tree.generation,
            direction=direction,
        )
        self._send(token, method, {"item": item.to_dict()})
        return token

    def prepare(self, uri: str, line: int, character: int, direction: str) -> int:
        """Request call-hierarchy items at a document position."""
        if direction not in _METHOD_FOR_DIRECTION:
            raise InvalidOperation(f"cannot open a call tree with direction {direction!r}")
        token = next(self._tokens)
        self._pending[token] = _Request(
            token=token,
            method=PREPARE_CALL_HIERARCHY,
            deadline=self._deadline(),
            context={"direction": direction, "uri": uri},
        )
        params = {
            "textDocument": {"uri": uri},
            "position": {"line": line, "character": character},
        }
        self._send(token, PREPARE_CALL_HIERARCHY, params)
        return token

    def document_symbols(self, uri: str) -> int:
        """Request the nested outline of one document."""
        token = next(self._tokens)
        self._pending[token] = _Request(
            token=token,
            method=DOCUMENT_SYMBOL,
            deadline=self._deadline(),
            context={"uri": uri},
        )
        self._send(token, DOCUMENT_SYMBOL, {"textDocument": {"uri": uri}})
        return token

    def invalidate(self, node: Node) -> None:
        """Forget ``node``'s in-flight request so its response is ignored."""
        token = node.pending_token
        node.pending_token = None
        if token is None:
            return
        request = self._pending.pop(token, None)
        if request is not None:
            self._drop_lookups(request)

    def drain(self) -> list[Resolution]:
        """Apply every completed response in arrival order, then expire."""
        out: list[Resolution] = []
        while True:
            try:
                token, future = self._results.get_nowait()
            except Empty:
                break
            self._complete(token, future, out)
        self._expire(out)
        return out

    def _is_live(self, request: _Request) -> bool:
        tree = request.tree
        node = request.node
        if tree is None or node is None:
            return True
        return (
            self.registry.is_open(tree)
            and tree.generation == request.generation
            and node.pending_token == request.token
        )

    def _complete(self, token: int, future: Future, out: list[Resolution]) -> None:
        if token in self._lookups:
            self._complete_lookup(token, future, out)
            return
        request = self._pending.get(token)
        if request is None:
            logger.debug("request %d settled after it was superseded", token)
            return
        if request.method in (INCOMING_CALLS, OUTGOING_CALLS):
            self._complete_expansion(request, future, out)
        elif request.method == PREPARE_CALL_HIERARCHY:
            self._complete_prepare(request, future, out)
        else:
            self._complete_document_symbols(request, future, out)

    def _complete_expansion(self, request: _Request, future: Future, out: list[Resolution]) -> None:
        if not self._is_live(request):
            self._pending.pop(request.token, None)
            logger.debug("dropping stale response for request %d", request.token)
            return
        name = request.node.name
        error = _future_error(future)
        if error is not None:
            self._fail(request, ResolutionFailure(f"{request.direction} calls for {name} failed: {error}"), out)
            return
        raw_calls = future.result() or []
        peer_key = _PEER_KEY_FOR_DIRECTION[request.direction]
        calls = [CallHierarchyCall.from_dict(raw, peer_key) for raw in raw_calls if isinstance(raw, dict)]
        if not calls:
            self._fail(request, ResolutionFailure(f"no {request.direction} calls for {name}"), out)
            return
        request.calls = calls
        request.matches = [None] * len(calls)
        if not self.resolve_symbols:
            self._graft(request, out)
            return

        # children graft once every lookup has settled or expired
        request.deadline = self._deadline()
        for index, call in enumerate(calls):
            lookup_token = next(self._tokens)
            self._lookups[lookup_token] = (request.token, index)
            request.lookup_tokens.add(lookup_token)
            self._send(lookup_token, WORKSPACE_SYMBOL, {"query": call.item.name})

    def _complete_lookup(self, token: int, future: Future, out: list[Resolution]) -> None:
        parent_token, index = self._lookups.pop(token)
        request = self._pending.get(parent_token)
        if request is None:
            return
        request.lookup_tokens.discard(token)
        error = _future_error(future)
        if error is None:
            request.matches[index] = match_workspace_symbol(request.calls[index].item, future.result())
        else:
            logger.debug("workspace symbol lookup %d failed: %s", token, error)
        if not request.lookup_tokens:
            self._graft(request, out)

    def _graft(self, request: _Request, out: list[Resolution]) -> None:
        self._pending.pop(request.token, None)
        self._drop_lookups(request)
        if not self._is_live(request):
            logger.debug("dropping stale response for request %d", request.token)
            return
        node = request.node
        children: list[Node] = []
        for call, match in zip(request.calls, request.matches):
            payload = WorkspaceSymbolPayload(match, call.item) if match is not None else CallPayload(call.item)
            children.append(Node(payload=payload, depth=node.depth + 1, call_ranges=call.from_ranges))
        node.children = children
        node.expanded = True
        node.pending_token = None
        out.append(Resolution(method=request.method, tree=request.tree, node=node, value=children))

    def _fail(self, request: _Request, failure: ResolutionFailure, out: list[Resolution]) -> None:
        self._pending.pop(request.token, None)
        self._drop_lookups(request)
        if not self._is_live(request):
            return
        if request.node is not None:
            request.node.pending_token = None
        logger.warning("%s", failure)
        out.append(
            Resolution(
                method=request.method,
                tree=request.tree,
                node=request.node,
                error=failure,
                context=request.context,
            )
        )

    def _drop_lookups(self, request: _Request) -> None:
        for lookup_token in request.lookup_tokens:
            self._lookups.pop(lookup_token, None)
        request.lookup_tokens = set()

    def _complete_prepare(self, request: _Request, future: Future, out: list[Resolution]) -> None:
        error = _future_error(future)
        if error is not None:
            self._fail(request, ResolutionFailure(f"prepare call hierarchy failed: {error}"), out)
            return
        raw_items = future.result() or []
        items = [CallHierarchyItem.from_dict(raw) for raw in raw_items if isinstance(raw, dict)]
        if not items:
            self._fail(request, ResolutionFailure("no call hierarchy item at cursor"), out)
            return
        self._pending.pop(request.token, None)
        out.append(Resolution(method=request.method, value=items, context=request.context))

    def _complete_document_symbols(self, request: _Request, future: Future, out: list[Resolution]) -> None:
        error = _future_error(future)
        if error is not None:
            self._fail(request, ResolutionFailure(f"document symbols failed: {error}"), out)
            return
        symbols = future.result() or []
        if not symbols:
            self._fail(request, ResolutionFailure(f"no document symbols for {request.context['uri']}"), out)
            return
        self._pending.pop(request.token, None)
        out.append(Resolution(method=request.method, value=list(symbols), context=request.context))

    def _expire(self, out: list[Resolution]) -> None:
        now = self._clock()
        for request in list(self._pending.values()):
            if request.deadline > now:
                continue
            if request.lookup_tokens:
                # unanswered lookups keep their primary item
                logger.debug("workspace symbol lookups for request %d timed out", request.token)
                self._graft(request, out)
                continue
            label = request.node.name if request.node is not None else request.method
            self._fail(request, ResolutionFailure(f"{label}: request timed out"), out)


__all__ = [
    "DEFAULT_REQUEST_TIMEOUT",
    "Resolution",
    "Resolver",
    "match_workspace_symbol",
]
