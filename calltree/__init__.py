"""Public package surface for calltree.

Exports ``Session`` for embedding and ``main`` for programmatic CLI
invocation. Most implementation lives in submodules under ``calltree``.
"""

from __future__ import annotations

from .errors import CalltreeError, InvalidOperation, NotFound, ResolutionFailure
from .runtime.session import Session


def main(*args, **kwargs):
    """Lazily import CLI entrypoint to keep package imports lightweight."""
    from .cli import main as _main

    return _main(*args, **kwargs)


__all__ = [
    "CalltreeError",
    "InvalidOperation",
    "NotFound",
    "ResolutionFailure",
    "Session",
    "main",
]
