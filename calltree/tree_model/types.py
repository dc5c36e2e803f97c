"""Node and payload datatypes shared by tree, resolver, and marshaler."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

from ..lsp.protocol import (
    CallHierarchyItem,
    DocumentSymbol,
    Location,
    Range,
    SymbolInformation,
    SymbolKind,
)

INCOMING = "incoming"
OUTGOING = "outgoing"
OUTLINE = "outline"
CALL_DIRECTIONS = (INCOMING, OUTGOING)

CALLS_KIND = "calls"
OUTLINE_KIND = "outline"


def kind_for_direction(direction: str) -> str:
    """Return the registry slot (``calls`` or ``outline``) for a direction."""
    if direction in CALL_DIRECTIONS:
        return CALLS_KIND
    if direction == OUTLINE:
        return OUTLINE_KIND
    raise ValueError(f"unknown tree direction: {direction!r}")


def flipped_direction(direction: str) -> str:
    """Return the opposite call direction."""
    if direction == INCOMING:
        return OUTGOING
    if direction == OUTGOING:
        return INCOMING
    raise ValueError(f"direction {direction!r} cannot be switched")


@dataclass(frozen=True)
class CallPayload:
    """Call-hierarchy item as returned by prepare or a directional call."""

    item: CallHierarchyItem


@dataclass(frozen=True)
class DocumentSymbolPayload:
    """Outline symbol; its location lives in the owning tree's document."""

    symbol: DocumentSymbol


@dataclass(frozen=True)
class WorkspaceSymbolPayload:
    """Workspace symbol, optionally disambiguating a call-hierarchy item.

    ``item`` is kept so a disambiguated call node can still be expanded.
    Flat outline entries carry no item.
    """

    symbol: SymbolInformation
    item: CallHierarchyItem | None = None


Payload = Union[CallPayload, DocumentSymbolPayload, WorkspaceSymbolPayload]


def payload_name(payload: Payload) -> str:
    if isinstance(payload, CallPayload):
        return payload.item.name
    if isinstance(payload, DocumentSymbolPayload):
        return payload.symbol.name
    if isinstance(payload, WorkspaceSymbolPayload):
        return payload.symbol.name
    raise TypeError(f"unsupported payload: {payload!r}")


def payload_kind(payload: Payload) -> SymbolKind | None:
    if isinstance(payload, CallPayload):
        return payload.item.kind
    if isinstance(payload, DocumentSymbolPayload):
        return payload.symbol.kind
    if isinstance(payload, WorkspaceSymbolPayload):
        return payload.symbol.kind
    raise TypeError(f"unsupported payload: {payload!r}")


def payload_call_item(payload: Payload) -> CallHierarchyItem | None:
    """Return the item a directional call request can be issued for."""
    if isinstance(payload, CallPayload):
        return payload.item
    if isinstance(payload, WorkspaceSymbolPayload):
        return payload.item
    if isinstance(payload, DocumentSymbolPayload):
        return None
    raise TypeError(f"unsupported payload: {payload!r}")


def payload_location(
    payload: Payload,
    document_uri: str | None = None,
    full_range: bool = False,
) -> Location | None:
    """Resolve where the payload's symbol lives.

    The selection range (the symbol name) is returned unless ``full_range``
    asks for the whole declaration. Document symbols only carry a range, so
    ``document_uri`` (the outline's file) supplies the URI; without it they
    have no resolvable location.
    """
    if isinstance(payload, CallPayload):
        item = payload.item
        return Location(uri=item.uri, range=item.range if full_range else item.selection_range)
    if isinstance(payload, WorkspaceSymbolPayload):
        if not payload.symbol.location.uri:
            return None
        return payload.symbol.location
    if isinstance(payload, DocumentSymbolPayload):
        if not document_uri:
            return None
        symbol = payload.symbol
        return Location(uri=document_uri, range=symbol.range if full_range else symbol.selection_range)
    raise TypeError(f"unsupported payload: {payload!r}")


@dataclass(eq=False)
class Node:
    """One symbol occurrence in a tree, with its own expansion state.

    Identity is the object itself: its position among the parent's children
    plus the payload it wraps. ``expanded`` only flips to ``True`` together
    with grafting children, so an expanded node is always resolved.
    """

    payload: Payload
    depth: int = 0
    expanded: bool = False
    children: list[Node] = field(default_factory=list)
    call_ranges: tuple[Range, ...] = ()
    pending_token: int | None = None

    @property
    def name(self) -> str:
        return payload_name(self.payload)

    @property
    def kind(self) -> SymbolKind | None:
        return payload_kind(self.payload)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def resolved(self) -> bool:
        """Whether children are known (populated or confirmed leaf)."""
        return self.expanded or bool(self.children)

    def add_child(self, payload: Payload, call_ranges: tuple[Range, ...] = ()) -> Node:
        child = Node(payload=payload, depth=self.depth + 1, call_ranges=call_ranges)
        self.children.append(child)
        return child

    def walk(self) -> Iterator[Node]:
        """Yield this node and all descendants in pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass(frozen=True)
class SourceLine:
    """Rendered-line target for one source-file line."""

    path: Path | None
    uri: str
    line: int
