"""Mapping from local file paths to remote asset keys."""

from __future__ import annotations

import fnmatch
import os
from pathlib import PurePath
from typing import TYPE_CHECKING
from urllib.parse import quote


if TYPE_CHECKING:
    from collections.abc import Sequence


DEFAULT_IGNORE_PATTERNS: tuple[str, ...] = (".DS_Store", "Thumbs.db")
"""Filesystem metadata files that never belong to a theme."""

# Reserved characters kept literal when encoding a full URI (quote always keeps "-_.~").
_URI_SAFE = ";,/?:@&=+$!*'()#"

PathLike = str | os.PathLike[str]


def _normalize(path: PathLike) -> str:
    return os.fspath(path).replace("\\", "/")


def _resolve_base(base_path: PathLike | None) -> str:
    if base_path is None or not os.fspath(base_path):
        return os.getcwd()
    return os.path.abspath(_normalize(base_path))


def make_path_relative(path: PathLike, base_path: PathLike | None = None) -> str:
    """Get the path relative to base_path using forward slashes.

    Both paths are made absolute first. An empty or missing base path means the
    current working directory. Paths that cannot be expressed relative to the
    base (e.g. different drives on Windows) are returned absolute.
    """
    absolute = os.path.abspath(_normalize(path))
    try:
        relative = os.path.relpath(absolute, _resolve_base(base_path))
    except ValueError:
        relative = absolute
    return relative.replace("\\", "/")


def make_asset_key(path: PathLike, base_path: PathLike | None = None) -> str:
    """Derive the remote asset key for a local path.

    Pure function of its arguments: the relative path with forward slashes,
    URI-encoded.

    Example:
        >>> make_asset_key("/theme/assets/my logo.png", "/theme")
        'assets/my%20logo.png'
    """
    return quote(make_path_relative(path, base_path), safe=_URI_SAFE)


def get_file_name(path: PathLike) -> str:
    """Get the last path component, accepting either separator."""
    return _normalize(path).rsplit("/", 1)[-1]


def is_ignored(
    path: PathLike,
    patterns: Sequence[str] = DEFAULT_IGNORE_PATTERNS,
    base_path: PathLike | None = None,
) -> bool:
    """Check whether any component of the path below base_path matches a pattern."""
    parts = PurePath(make_path_relative(path, base_path)).parts
    return any(fnmatch.fnmatch(part, pattern) for part in parts for pattern in patterns)
