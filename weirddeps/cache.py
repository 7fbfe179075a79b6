"""Content-addressed cache of crate manifests.

A manifest lives at ``<root>/<shard>/<name>-<version>/Cargo.toml``. The
path is a pure function of (name, version) and the file is written once,
so its existence is the cache hit signal. Nothing is ever invalidated.
"""

import asyncio
import io
import logging
import os
import tarfile
import tempfile
import zlib
from collections.abc import Callable, Iterable
from pathlib import Path, PurePosixPath
from typing import Protocol

import httpx

from .errors import ArchiveFormatError, FetchError
from .models import FetchSummary, ResolvedPackage

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "Cargo.toml"


def shard_for(name: str) -> PurePosixPath:
    """Shard directory for a crate name, relative to the cache root.

    Mirrors the crates.io index layout: ``1``, ``2``, ``3/<c>``, and
    ``<c0c1>/<c2c3>`` for longer names.
    """
    if not name:
        raise ValueError("crate name must not be empty")
    if len(name) == 1:
        return PurePosixPath("1")
    if len(name) == 2:
        return PurePosixPath("2")
    if len(name) == 3:
        return PurePosixPath("3", name[0])
    return PurePosixPath(name[:2], name[2:4])


class ManifestStore(Protocol):
    """Where manifests are looked up and stored."""

    def exists(self, package: ResolvedPackage) -> bool: ...

    async def fetch_and_store(self, package: ResolvedPackage) -> None: ...


async def ensure(store: ManifestStore, package: ResolvedPackage) -> bool:
    """Make sure a package's manifest is in the store.

    Returns:
        True if it had to be fetched, False on a cache hit
    """
    if store.exists(package):
        return False
    await store.fetch_and_store(package)
    return True


class ManifestCache:
    """On-disk manifest store filled from the crates.io archive host."""

    def __init__(self, root: Path, client: httpx.AsyncClient, base_url: str):
        """Initialize the cache.

        Args:
            root: Cache root directory
            client: HTTP client used for archive downloads
            base_url: Archive host prefix, e.g. https://static.crates.io/crates
        """
        self.root = Path(root)
        self.client = client
        self.base_url = base_url.rstrip("/")

    def locate(self, name: str) -> Path:
        """Return the shard directory for a crate, creating it if needed."""
        path = self.root / shard_for(name)
        path.mkdir(parents=True, exist_ok=True)
        return path

    def manifest_path(self, package: ResolvedPackage) -> Path:
        return self.root / shard_for(package.name) / f"{package.name}-{package.version}" / MANIFEST_FILENAME

    def archive_url(self, package: ResolvedPackage) -> str:
        name, version = package.name, package.version
        return f"{self.base_url}/{name}/{name}-{version}.crate"

    def exists(self, package: ResolvedPackage) -> bool:
        return self.manifest_path(package).is_file()

    async def fetch_and_store(self, package: ResolvedPackage) -> None:
        """Download a crate archive and cache its manifest.

        Raises:
            FetchError: Network failure, bad status, or a corrupt archive
            ArchiveFormatError: The archive has no manifest entry
        """
        url = self.archive_url(package)
        try:
            response = await self.client.get(url)
            response.raise_for_status()
            body = response.content
        except httpx.TimeoutException as e:
            raise FetchError(f"Timeout downloading {url}") from e
        except httpx.HTTPStatusError as e:
            raise FetchError(f"HTTP {e.response.status_code} downloading {url}") from e
        except httpx.HTTPError as e:
            raise FetchError(f"Network error downloading {url}: {e}") from e

        self.locate(package.name)
        target = self.manifest_path(package)
        await asyncio.to_thread(extract_manifest, body, target)

    def __repr__(self) -> str:
        return f"ManifestCache(root={str(self.root)!r}, base_url={self.base_url!r})"


def extract_manifest(archive: bytes, target: Path) -> None:
    """Copy the manifest out of a gzipped tarball into ``target``.

    Entries are read as a stream and scanning stops at the crate-root
    ``<name>-<version>/Cargo.toml``; manifests of nested workspace members
    or examples are passed over and nothing else is unpacked. The file is
    written under a temporary name and renamed, so ``target`` only ever
    exists complete.

    Raises:
        FetchError: The archive cannot be decompressed or a header is corrupt
        ArchiveFormatError: No manifest entry was found
    """
    data = None
    try:
        with tarfile.open(fileobj=io.BytesIO(archive), mode="r|gz") as tar:
            for member in tar:
                if not member.isfile() or not _is_root_manifest(member.name):
                    continue
                source = tar.extractfile(member)
                if source is not None:
                    data = source.read()
                    break
    # gzip.BadGzipFile is an OSError
    except (tarfile.TarError, EOFError, OSError, zlib.error) as e:
        raise FetchError(f"Corrupt archive for {target.parent.name}: {e}") from e

    if data is None:
        raise ArchiveFormatError(f"No {MANIFEST_FILENAME} in archive for {target.parent.name}")
    _write_atomic(target, data)


def _is_root_manifest(member_name: str) -> bool:
    parts = PurePosixPath(member_name).parts
    return len(parts) == 2 and parts[1] == MANIFEST_FILENAME


def _write_atomic(target: Path, data: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.")
    try:
        with os.fdopen(fd, "wb") as tmp:
            tmp.write(data)
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class ManifestFetcher:
    """Fill a manifest store with bounded concurrency."""

    def __init__(self, max_concurrency: int = 8):
        """Initialize the fetcher.

        Args:
            max_concurrency: Maximum concurrent archive downloads
        """
        self.max_concurrency = max_concurrency
        self._semaphore = asyncio.Semaphore(max_concurrency)

    async def ensure_one(
        self, store: ManifestStore, package: ResolvedPackage, summary: FetchSummary
    ) -> None:
        async with self._semaphore:
            try:
                fetched = await ensure(store, package)
            except ArchiveFormatError as e:
                logger.debug("%s", e)
                summary.missing_manifest += 1
            except FetchError as e:
                logger.warning("Failed to fetch %s %s: %s", package.name, package.version, e)
                summary.failed.append(package)
            else:
                if fetched:
                    summary.fetched += 1
                else:
                    summary.cached += 1

    async def ensure_all(
        self,
        store: ManifestStore,
        packages: Iterable[ResolvedPackage],
        on_progress: Callable[[], None] | None = None,
    ) -> FetchSummary:
        """Ensure every package's manifest is cached.

        A failing package is logged and recorded; it never stops the others.

        Args:
            store: Store to check and fill
            packages: Packages to ensure
            on_progress: Called once per package completed

        Returns:
            Counts of hits, downloads, archives without manifest, and failures
        """
        packages = list(packages)
        summary = FetchSummary(total=len(packages))

        async def run(package: ResolvedPackage) -> None:
            try:
                await self.ensure_one(store, package, summary)
            finally:
                if on_progress:
                    on_progress()

        await asyncio.gather(*(run(package) for package in packages))
        return summary
