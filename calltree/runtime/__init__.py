"""Session runtime: resolver, session context, commands, sinks, config."""

from __future__ import annotations

from .commands import CommandBinding, CommandDispatcher
from .config import CalltreeConfig, load_calltree_config, save_calltree_config
from .resolver import Resolution, Resolver
from .session import Session
from .sink import LogNotifier, MemoryBuffer, MemorySink

__all__ = [
    "CommandBinding",
    "CommandDispatcher",
    "CalltreeConfig",
    "load_calltree_config",
    "save_calltree_config",
    "Resolution",
    "Resolver",
    "Session",
    "LogNotifier",
    "MemoryBuffer",
    "MemorySink",
]
