"""Glyph and icon-set definitions for marshaled tree rows.

Icon sets map protocol symbol-kind labels to single glyphs. The ``none``
set renders ``[Kind] •`` labels instead of icons.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class IconSet:
    """Expand/collapse glyphs plus per-kind icons."""

    name: str
    expanded: str
    collapsed: str
    kinds: dict[str, str] = field(default_factory=dict)

    def icon_for(self, kind_label: str) -> str:
        return self.kinds.get(kind_label, "")


SEPARATOR = "•"
GUIDE = "⎸"
SPACE = " "

NONE_ICONS = IconSet(name="none", expanded="▼", collapsed="▶")

CODICON_ICONS = IconSet(
    name="codicons",
    expanded="",
    collapsed="",
    kinds={
        "File": "",
        "Module": "",
        "Namespace": "",
        "Package": "",
        "Class": "",
        "Method": "",
        "Property": "",
        "Field": "",
        "Constructor": "",
        "Enum": "",
        "Interface": "",
        "Function": "",
        "Variable": "",
        "Constant": "",
        "String": "",
        "Number": "",
        "Boolean": "",
        "Array": "",
        "Object": "",
        "Key": "",
        "Null": "",
        "EnumMember": "",
        "Struct": "",
        "Event": "",
        "Operator": "",
        "TypeParameter": "",
    },
)

NERD_ICONS = IconSet(
    name="nerd",
    expanded="",
    collapsed="",
    kinds={
        "File": "",
        "Module": "",
        "Namespace": "",
        "Package": "",
        "Class": "",
        "Method": "",
        "Property": "",
        "Field": "",
        "Constructor": "",
        "Enum": "",
        "Interface": "",
        "Function": "",
        "Variable": "",
        "Constant": "",
        "String": "",
        "Number": "",
        "Boolean": "",
        "Array": "",
        "Object": "",
        "Key": "",
        "Null": "ﱯ",
        "EnumMember": "",
        "Struct": "פּ",
        "Event": "鬒",
        "Operator": "洛",
        "TypeParameter": "",
    },
)

_ICON_SETS: dict[str, IconSet] = {
    NONE_ICONS.name: NONE_ICONS,
    CODICON_ICONS.name: CODICON_ICONS,
    NERD_ICONS.name: NERD_ICONS,
}


def available_icon_set_names() -> tuple[str, ...]:
    return tuple(sorted(_ICON_SETS.keys()))


def normalize_icon_set_name(name: str | None) -> str:
    """Return a valid icon-set name, falling back to ``none``."""
    if not name:
        return NONE_ICONS.name
    candidate = str(name).strip().lower()
    if candidate == "codicon":
        candidate = CODICON_ICONS.name
    if candidate in _ICON_SETS:
        return candidate
    return NONE_ICONS.name


def resolve_icon_set(name: str | None) -> IconSet:
    return _ICON_SETS[normalize_icon_set_name(name)]


__all__ = [
    "IconSet",
    "SEPARATOR",
    "GUIDE",
    "SPACE",
    "NONE_ICONS",
    "CODICON_ICONS",
    "NERD_ICONS",
    "available_icon_set_names",
    "normalize_icon_set_name",
    "resolve_icon_set",
]
