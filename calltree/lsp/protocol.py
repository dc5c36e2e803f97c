"""Language-server value types consumed by the tree engine.

Only the fields calltree reads are modeled. Call-hierarchy items keep the
raw server dict because follow-up requests must echo it back unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class SymbolKind(IntEnum):
    FILE = 1
    MODULE = 2
    NAMESPACE = 3
    PACKAGE = 4
    CLASS = 5
    METHOD = 6
    PROPERTY = 7
    FIELD = 8
    CONSTRUCTOR = 9
    ENUM = 10
    INTERFACE = 11
    FUNCTION = 12
    VARIABLE = 13
    CONSTANT = 14
    STRING = 15
    NUMBER = 16
    BOOLEAN = 17
    ARRAY = 18
    OBJECT = 19
    KEY = 20
    NULL = 21
    ENUM_MEMBER = 22
    STRUCT = 23
    EVENT = 24
    OPERATOR = 25
    TYPE_PARAMETER = 26

    @property
    def label(self) -> str:
        """Return the protocol display name, e.g. ``EnumMember``."""
        return "".join(part.capitalize() for part in self.name.split("_"))

    @classmethod
    def coerce(cls, value: object) -> SymbolKind | None:
        """Map a raw protocol integer to a kind, ``None`` when unknown."""
        if isinstance(value, bool) or not isinstance(value, int):
            return None
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True, order=True)
class Position:
    """Zero-based line/character position."""

    line: int
    character: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Position:
        return cls(line=int(data.get("line", 0)), character=int(data.get("character", 0)))

    def to_dict(self) -> dict[str, int]:
        return {"line": self.line, "character": self.character}


@dataclass(frozen=True)
class Range:
    start: Position
    end: Position

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Range:
        return cls(
            start=Position.from_dict(data.get("start") or {}),
            end=Position.from_dict(data.get("end") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}

    def contains(self, other: Range) -> bool:
        """Return whether ``other`` lies entirely inside this range."""
        return self.start <= other.start and other.end <= self.end


@dataclass(frozen=True)
class Location:
    uri: str
    range: Range

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Location:
        return cls(uri=str(data.get("uri", "")), range=Range.from_dict(data.get("range") or {}))


@dataclass(frozen=True)
class CallHierarchyItem:
    """One ``CallHierarchyItem`` returned by prepare or a directional call."""

    name: str
    kind: SymbolKind | None
    uri: str
    range: Range
    selection_range: Range
    detail: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CallHierarchyItem:
        item_range = Range.from_dict(data.get("range") or {})
        selection = data.get("selectionRange")
        return cls(
            name=str(data.get("name", "")),
            kind=SymbolKind.coerce(data.get("kind")),
            uri=str(data.get("uri", "")),
            range=item_range,
            selection_range=Range.from_dict(selection) if selection else item_range,
            detail=data.get("detail") if isinstance(data.get("detail"), str) else None,
            raw=dict(data),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the dict to echo back in follow-up call requests."""
        if self.raw:
            return dict(self.raw)
        data: dict[str, Any] = {
            "name": self.name,
            "kind": int(self.kind) if self.kind is not None else 0,
            "uri": self.uri,
            "range": self.range.to_dict(),
            "selectionRange": self.selection_range.to_dict(),
        }
        if self.detail is not None:
            data["detail"] = self.detail
        return data


@dataclass(frozen=True)
class CallHierarchyCall:
    """One incoming or outgoing call: the peer item plus call-site ranges."""

    item: CallHierarchyItem
    from_ranges: tuple[Range, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any], peer_key: str) -> CallHierarchyCall:
        """Parse an ``IncomingCall`` (``peer_key="from"``) or ``OutgoingCall`` (``"to"``)."""
        return cls(
            item=CallHierarchyItem.from_dict(data.get(peer_key) or {}),
            from_ranges=tuple(Range.from_dict(raw) for raw in data.get("fromRanges") or ()),
        )


@dataclass(frozen=True)
class DocumentSymbol:
    """Nested outline symbol from ``textDocument/documentSymbol``."""

    name: str
    kind: SymbolKind | None
    range: Range
    selection_range: Range
    detail: str | None = None
    children: tuple[DocumentSymbol, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DocumentSymbol:
        symbol_range = Range.from_dict(data.get("range") or {})
        selection = data.get("selectionRange")
        return cls(
            name=str(data.get("name", "")),
            kind=SymbolKind.coerce(data.get("kind")),
            range=symbol_range,
            selection_range=Range.from_dict(selection) if selection else symbol_range,
            detail=data.get("detail") if isinstance(data.get("detail"), str) else None,
            children=tuple(cls.from_dict(child) for child in data.get("children") or ()),
        )


@dataclass(frozen=True)
class SymbolInformation:
    """Flat symbol with a location, from ``workspace/symbol`` or old-style outlines."""

    name: str
    kind: SymbolKind | None
    location: Location
    container_name: str | None = None
    detail: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SymbolInformation:
        container = data.get("containerName")
        return cls(
            name=str(data.get("name", "")),
            kind=SymbolKind.coerce(data.get("kind")),
            location=Location.from_dict(data.get("location") or {}),
            container_name=container if isinstance(container, str) else None,
            detail=data.get("detail") if isinstance(data.get("detail"), str) else None,
        )


def is_document_symbol(data: object) -> bool:
    """Distinguish ``DocumentSymbol`` dicts from ``SymbolInformation`` dicts."""
    return isinstance(data, dict) and "range" in data and "location" not in data


__all__ = [
    "SymbolKind",
    "Position",
    "Range",
    "Location",
    "CallHierarchyItem",
    "CallHierarchyCall",
    "DocumentSymbol",
    "SymbolInformation",
    "is_document_symbol",
]
