from __future__ import annotations

from pathlib import Path


def display_path(path: Path, root: Path | None) -> str:
    """
    Return a stable, POSIX-style path for labels.

    Prefer a path relative to `root` when one is given and the path lies under
    it. Fall back to `path.as_posix()` otherwise, or when either path cannot be
    resolved due to OS errors.
    """

    if root is None:
        return path.as_posix()

    try:
        resolved_path = path.resolve()
    except OSError:
        resolved_path = path

    try:
        resolved_root = root.resolve()
    except OSError:
        resolved_root = root

    try:
        return resolved_path.relative_to(resolved_root).as_posix()
    except ValueError:
        return path.as_posix()


def plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"
