"""URI/path helpers used when labeling nodes and mapping source lines."""

from __future__ import annotations

from pathlib import Path
from urllib.parse import quote, unquote, urlparse


def uri_to_path(uri: str) -> Path | None:
    """Return the filesystem path for a ``file://`` URI, else ``None``."""
    parsed = urlparse(uri)
    if parsed.scheme != "file":
        return None
    return Path(unquote(parsed.path))


def path_to_uri(path: Path) -> str:
    """Build a ``file://`` URI for an absolute path."""
    return "file://" + quote(str(path.resolve()))


def relative_path_from_uri(uri: str, root: Path) -> tuple[str, bool]:
    """Return ``(path_text, is_relative)`` for ``uri`` against ``root``.

    When the URI names a file under ``root`` the root-relative path is
    returned with ``True``. Otherwise the absolute path (or the raw URI for
    non-file schemes) is returned with ``False``.
    """
    path = uri_to_path(uri)
    if path is None:
        return uri, False
    try:
        return str(path.relative_to(root)), True
    except ValueError:
        return str(path), False
