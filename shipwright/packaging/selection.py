from __future__ import annotations

import logging
import os
import posixpath
from pathlib import Path
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)

SOURCE_SUFFIX = ".py"


def normalize_path(path: str | os.PathLike) -> str:
    """Canonical relative POSIX form used for exact-path exclusion matching."""
    s = os.fspath(path).replace("\\", "/").strip()
    s = posixpath.normpath(s)
    while s.startswith("./"):
        s = s[2:]
    return s


def select_sources(
    root: str | os.PathLike,
    excluded: Iterable[str] = (),
    packages: Optional[Iterable[str]] = None,
) -> List[str]:
    """Return root-relative paths of the source files to compile.

    Only ``.py`` files are considered. A file is skipped when its normalized path
    equals an entry of ``excluded``; no pattern matching is done. ``packages``
    limits the walk to the given top-level directories.
    """
    root = Path(root)
    excluded_set = {normalize_path(p) for p in excluded}

    if packages is None:
        starts = [root]
    else:
        starts = [root / p for p in packages]

    selected: set[str] = set()
    seen: set[str] = set()
    for start in starts:
        if not start.is_dir():
            logger.warning("Package directory not found: %s", start)
            continue
        for dirpath, dirnames, filenames in os.walk(start):
            dirnames[:] = sorted(d for d in dirnames if d != "__pycache__" and not d.startswith("."))
            for fn in filenames:
                if not fn.endswith(SOURCE_SUFFIX):
                    continue
                rel = normalize_path(Path(dirpath, fn).relative_to(root).as_posix())
                seen.add(rel)
                if rel in excluded_set:
                    continue
                selected.add(rel)

    for missing in sorted(excluded_set - seen):
        logger.warning("Excluded file is not part of the source tree: %s", missing)

    return sorted(selected)
