"""Reduce each index file to the crate's newest non-yanked version."""

import logging
from collections.abc import Callable, Iterable, Iterator, Sequence
from pathlib import Path

from pydantic import ValidationError

from .errors import IndexReadError, ParseError
from .models import IndexRecord, ResolvedPackage

logger = logging.getLogger(__name__)


def iter_records_newest_first(lines: Sequence[str]) -> Iterator[IndexRecord]:
    """Parse index lines lazily, starting from the last one.

    Args:
        lines: Raw lines of one index file, oldest first

    Returns:
        Iterator of records, newest first

    Raises:
        ParseError: When a line that is reached is not a valid record
    """
    for lineno in range(len(lines) - 1, -1, -1):
        line = lines[lineno].strip()
        if not line:
            continue
        try:
            yield IndexRecord.model_validate_json(line)
        except ValidationError as e:
            raise ParseError(f"line {lineno + 1}: {e}") from e


def latest_unyanked(records: Iterable[IndexRecord]) -> IndexRecord | None:
    """Return the first non-yanked record of a newest-first sequence.

    Iteration stops at the match, so older records are never consumed.
    """
    return next((record for record in records if not record.yanked), None)


def resolve_file(path: Path) -> ResolvedPackage | None:
    """Resolve one index file to a single package version.

    Args:
        path: Index file for one crate

    Returns:
        The resolved package, or None if the file is empty or every
        version is yanked
    """
    lines = path.read_text(encoding="utf-8").splitlines()
    try:
        record = latest_unyanked(iter_records_newest_first(lines))
    except ParseError as e:
        raise ParseError(f"{path}: {e}") from e

    if record is None:
        return None
    return ResolvedPackage(name=record.name, version=record.version)


def resolve_index(
    paths: Iterable[Path],
    strict: bool = True,
    on_progress: Callable[[], None] | None = None,
) -> list[ResolvedPackage]:
    """Resolve every index file.

    Args:
        paths: Index files, typically from ``iter_index_files``
        strict: Abort the whole batch on the first unreadable file;
            otherwise log it and carry on
        on_progress: Called once per file processed

    Returns:
        One resolved package per crate that has a live version

    Raises:
        IndexReadError: In strict mode, when any file fails
    """
    resolved: list[ResolvedPackage] = []

    for path in paths:
        try:
            package = resolve_file(path)
        except (ParseError, OSError, UnicodeDecodeError) as e:
            if strict:
                raise IndexReadError(f"Failed to read index file {path}: {e}") from e
            logger.warning("Skipping unreadable index file %s: %s", path, e)
            package = None
        finally:
            if on_progress:
                on_progress()

        if package is not None:
            resolved.append(package)

    logger.info("Successfully parsed %d crates.", len(resolved))
    return resolved
