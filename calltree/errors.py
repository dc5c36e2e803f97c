"""Error taxonomy shared by the tree engine.

Every failure is local to the tree or node it targets. The command layer
turns these into transient notifications.
"""

from __future__ import annotations


class CalltreeError(Exception):
    """Base class for calltree failures surfaced to the user."""


class ResolutionFailure(CalltreeError):
    """Server error, timeout, or empty result while expanding a node."""


class InvalidOperation(CalltreeError):
    """Operation rejected synchronously without changing any state."""


class NotFound(CalltreeError, LookupError):
    """Referenced tree is closed/absent or a line is out of range."""
