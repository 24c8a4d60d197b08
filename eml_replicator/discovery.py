"""Locate message files on disk.

Recursive walks use ``os.walk`` top-down; direct listings use
``os.scandir``.  Entries are visited in sorted name order so a static
directory always yields the same sequence.

Following symlinks while walking recursively does not guard against
link cycles: a symlink pointing at one of its ancestors makes the walk
revisit the same tree until the OS refuses to resolve the path.
"""

from __future__ import annotations

import os
from pathlib import Path

import structlog

from .errors import SourceDirectoryError

logger = structlog.get_logger()


def discover_message_files(
    root: str | os.PathLike[str],
    *,
    recursive: bool = False,
    follow_symlinks: bool = False,
    extension: str = "eml",
) -> list[Path]:
    """Return every regular file under *root* whose extension is *extension*.

    Raises :class:`SourceDirectoryError` if *root* is not a directory or if
    any directory cannot be listed during the walk.
    """
    root_path = Path(root)
    if not root_path.is_dir():
        raise SourceDirectoryError(f"{root_path} is not a directory")

    try:
        if recursive:
            found = _walk(root_path, follow_symlinks, extension)
        else:
            found = _list(root_path, extension)
    except OSError as exc:
        raise SourceDirectoryError(f"failed to scan {root_path}: {exc}") from exc

    logger.debug("discovery_complete", root=str(root_path), count=len(found))
    return found


def _list(root: Path, extension: str) -> list[Path]:
    with os.scandir(root) as entries:
        names = sorted(entry.name for entry in entries)
    return [root / name for name in names if _is_candidate(root / name, extension)]


def _walk(root: Path, follow_symlinks: bool, extension: str) -> list[Path]:
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(
        root, onerror=_raise, followlinks=follow_symlinks
    ):
        # In-place sort fixes the order os.walk descends in
        dirnames.sort()
        for name in sorted(filenames):
            path = Path(dirpath) / name
            if _is_candidate(path, extension):
                found.append(path)
    return found


def _is_candidate(path: Path, extension: str) -> bool:
    # Path(".eml").suffix is "", so dotfiles never match
    return path.suffix[1:] == extension and path.is_file()


def _raise(exc: OSError) -> None:
    raise exc
