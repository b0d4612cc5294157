from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

from phototouch.util.errors import WalkError

def walk_dir(root: Path) -> list[Path]:
    """Return every file below `root` in lexical order.

    - A file root yields just itself.
    - Directories themselves are never returned.
    - Missing roots, unreadable directories and broken symlinks raise WalkError.
    """
    root = Path(root).expanduser()
    if not root.exists():
        raise WalkError(f"{root}: no such file or directory")
    if not root.is_dir():
        return [root]

    def _fail(err: OSError) -> None:
        raise WalkError(f"{err.filename}: {err.strerror}") from err

    files: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_fail):
        dirnames.sort()
        base = Path(dirpath)
        for name in sorted(filenames):
            p = base / name
            if p.is_symlink() and not p.exists():
                raise WalkError(f"{p}: broken symbolic link")
            files.append(p)
    return files

def discover(roots: Iterable[Path]) -> list[Path]:
    """Walk each root in turn; a file reached twice is kept once (first position)."""
    seen: set[Path] = set()
    out: list[Path] = []
    for root in roots:
        for p in walk_dir(root):
            key = p.resolve()
            if key in seen:
                continue
            seen.add(key)
            out.append(p)
    return out
