"""Upward directory search for repository marker files."""

from __future__ import annotations

from pathlib import Path

from .constants import MARKER_FILENAME


def locate_root(start_dir: Path) -> Path | None:
    """Return the nearest directory at or above ``start_dir`` holding a marker file.

    Returns None when no ancestor up to and including the filesystem root has one.
    """
    return _walk_up(Path(start_dir).resolve(strict=False))


def locate_parent(repo_root: Path) -> Path | None:
    """Return the nearest repository strictly above ``repo_root``.

    The search starts one level up, so a repository is never its own parent.
    """
    resolved = Path(repo_root).resolve(strict=False)
    if resolved.parent == resolved:
        return None
    return _walk_up(resolved.parent)


def _walk_up(current_dir: Path) -> Path | None:
    for candidate in (current_dir, *current_dir.parents):
        if (candidate / MARKER_FILENAME).is_file():
            return candidate
    return None
