"""Find proc-macro crates among cached manifests."""

import logging
import os
import tomllib
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path

from pydantic import ValidationError

from .cache import MANIFEST_FILENAME
from .errors import ParseError
from .models import CargoManifest

logger = logging.getLogger(__name__)


def iter_manifest_files(cache_root: Path) -> Iterator[Path]:
    """Yield every cached manifest under the cache root."""
    for dirpath, dirnames, filenames in os.walk(cache_root):
        dirnames.sort()
        if MANIFEST_FILENAME in filenames:
            path = Path(dirpath) / MANIFEST_FILENAME
            if path.is_file():
                yield path


def parse_manifest(content: str) -> CargoManifest:
    """Parse Cargo.toml content.

    Legacy spellings (``[project]``, ``proc_macro``) are accepted.

    Args:
        content: The Cargo.toml file content

    Returns:
        Parsed manifest

    Raises:
        ParseError: Invalid TOML, or no package name
    """
    try:
        return CargoManifest.model_validate(tomllib.loads(content))
    except (tomllib.TOMLDecodeError, ValidationError) as e:
        raise ParseError(str(e)) from e


def load_manifest(path: Path) -> CargoManifest | None:
    """Read and parse one cached manifest; None if it is gone."""
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except UnicodeDecodeError as e:
        raise ParseError(f"not valid UTF-8: {e}") from e
    return parse_manifest(content)


def find_proc_macros(
    paths: Iterable[Path],
    on_progress: Callable[[], None] | None = None,
) -> dict[str, CargoManifest]:
    """Keep the manifests that declare a proc-macro library.

    Manifests are third-party data: one that fails to parse is reported
    and skipped.

    Args:
        paths: Manifest files, typically from ``iter_manifest_files``
        on_progress: Called once per file processed

    Returns:
        Mapping of declared crate name to manifest
    """
    macros: dict[str, CargoManifest] = {}

    for path in paths:
        try:
            manifest = load_manifest(path)
        except ParseError as e:
            logger.warning("Got invalid manifest file at %s: %s", path, e)
            manifest = None
        finally:
            if on_progress:
                on_progress()

        if manifest is not None and manifest.is_macro_like:
            macros[manifest.package_name] = manifest

    logger.info("Found %d proc macros.", len(macros))
    return macros
