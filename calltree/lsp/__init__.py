"""Language-server protocol types, URI helpers, and the client seam."""

from __future__ import annotations

from .client import LanguageClient, ReplayClient
from .protocol import (
    CallHierarchyCall,
    CallHierarchyItem,
    DocumentSymbol,
    Location,
    Position,
    Range,
    SymbolInformation,
    SymbolKind,
)
from .util import path_to_uri, relative_path_from_uri, uri_to_path

__all__ = [
    "LanguageClient",
    "ReplayClient",
    "CallHierarchyCall",
    "CallHierarchyItem",
    "DocumentSymbol",
    "Location",
    "Position",
    "Range",
    "SymbolInformation",
    "SymbolKind",
    "path_to_uri",
    "relative_path_from_uri",
    "uri_to_path",
]
