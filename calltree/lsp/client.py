"""Language-server transport seam.

The transport itself lives outside calltree. Anything exposing
``request(method, params) -> Future`` can drive the tree engine; the
future may complete on any thread.
"""

from __future__ import annotations

from concurrent.futures import Future
from typing import Any, Protocol

PREPARE_CALL_HIERARCHY = "textDocument/prepareCallHierarchy"
INCOMING_CALLS = "callHierarchy/incomingCalls"
OUTGOING_CALLS = "callHierarchy/outgoingCalls"
DOCUMENT_SYMBOL = "textDocument/documentSymbol"
WORKSPACE_SYMBOL = "workspace/symbol"


class LanguageClient(Protocol):
    def request(self, method: str, params: dict[str, Any]) -> Future:
        """Send one request and return a future resolving to the raw result."""
        ...


class ReplayClient:
    """Serve recorded responses, completing every future immediately.

    The recording is a JSON object with optional keys ``item`` (prepare
    result), ``incomingCalls`` / ``outgoingCalls`` (item name -> calls),
    ``workspaceSymbols`` (query -> symbols) and ``documentSymbols``
    (uri -> symbols). Missing entries answer with an empty result.
    """

    def __init__(self, recording: dict[str, Any]) -> None:
        self.recording = recording
        self.requests: list[tuple[str, dict[str, Any]]] = []

    def request(self, method: str, params: dict[str, Any]) -> Future:
        self.requests.append((method, params))
        future: Future = Future()
        try:
            future.set_result(self._answer(method, params))
        except LookupError as exc:
            future.set_exception(exc)
        return future

    def _answer(self, method: str, params: dict[str, Any]) -> Any:
        if method == PREPARE_CALL_HIERARCHY:
            item = self.recording.get("item")
            return [item] if item else []
        if method in (INCOMING_CALLS, OUTGOING_CALLS):
            key = "incomingCalls" if method == INCOMING_CALLS else "outgoingCalls"
            name = (params.get("item") or {}).get("name", "")
            return list((self.recording.get(key) or {}).get(name, []))
        if method == WORKSPACE_SYMBOL:
            return list((self.recording.get("workspaceSymbols") or {}).get(params.get("query", ""), []))
        if method == DOCUMENT_SYMBOL:
            uri = (params.get("textDocument") or {}).get("uri", "")
            return list((self.recording.get("documentSymbols") or {}).get(uri, []))
        raise LookupError(f"unsupported method: {method}")


__all__ = [
    "LanguageClient",
    "ReplayClient",
    "PREPARE_CALL_HIERARCHY",
    "INCOMING_CALLS",
    "OUTGOING_CALLS",
    "DOCUMENT_SYMBOL",
    "WORKSPACE_SYMBOL",
]
