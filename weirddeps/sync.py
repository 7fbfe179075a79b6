"""Keep the local crates.io index checkout current."""

import logging
import subprocess
from pathlib import Path

from .errors import IndexSyncError

logger = logging.getLogger(__name__)


def _git(args: list[str], cwd: Path | None = None) -> None:
    try:
        subprocess.run(["git", *args], cwd=cwd, check=True)
    except FileNotFoundError as e:
        raise IndexSyncError("git executable not found") from e
    except subprocess.CalledProcessError as e:
        raise IndexSyncError(f"git {args[0]} failed with exit code {e.returncode}") from e


def sync_index(index_dir: Path, cache_dir: Path, repo_url: str) -> None:
    """Clone the index if missing, otherwise pull it.

    The pull is skipped once a manifest cache exists: resolved versions
    must keep matching what has already been downloaded.

    Args:
        index_dir: Local checkout of the index
        cache_dir: Manifest cache root
        repo_url: Git URL of the index
    """
    logger.info("Checking git index...")
    if not (index_dir / ".git").exists():
        logger.info("Cloning git index...")
        _git(["clone", repo_url, str(index_dir)])
        return

    if cache_dir.exists():
        logger.info("Skipping updating git index to ensure cache is synced")
        return

    logger.info("Updating git index...")
    _git(["pull"], cwd=index_dir)
