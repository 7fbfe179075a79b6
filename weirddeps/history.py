"""Walk the crates.io index mirror."""

import os
from collections.abc import Iterator
from pathlib import Path

# Top-level control file of the index; not a crate.
CONTROL_FILE = "config.json"


def _is_visible(name: str) -> bool:
    return not name.startswith(".") and name != CONTROL_FILE


def iter_index_files(root: Path) -> Iterator[Path]:
    """Yield every crate file under the index root.

    Hidden entries (``.git``, ``.github``, ...) are pruned without being
    descended into, and the index ``config.json`` is skipped. Each
    directory is listed in sorted order so repeated walks agree.

    Args:
        root: Root directory of the index checkout

    Returns:
        Lazy iterator of file paths
    """
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if _is_visible(d))
        base = Path(dirpath)
        for filename in sorted(filenames):
            if not _is_visible(filename):
                continue
            path = base / filename
            if path.is_file():
                yield path
