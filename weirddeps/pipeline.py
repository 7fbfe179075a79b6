"""Run the whole scan: index, cache, classify, report."""

import asyncio
import logging

import httpx
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeRemainingColumn

from .aggregate import build_report
from .cache import ManifestCache, ManifestFetcher
from .classify import find_proc_macros, iter_manifest_files
from .config import Settings
from .history import iter_index_files
from .models import DependencyReport, FetchSummary, ResolvedPackage
from .resolve_index import resolve_index

logger = logging.getLogger(__name__)


def _progress(console: Console) -> Progress:
    return Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeRemainingColumn(),
        console=console,
        transient=False,
    )


def resolve_stage(settings: Settings, console: Console) -> list[ResolvedPackage]:
    console.print("Reading crate metadata from disk...")
    paths = list(iter_index_files(settings.index_dir))
    with _progress(console) as progress:
        task = progress.add_task("Resolving", total=len(paths))
        return resolve_index(
            paths,
            strict=settings.strict_index,
            on_progress=lambda: progress.advance(task),
        )


async def fetch_manifests(
    settings: Settings,
    packages: list[ResolvedPackage],
    progress: Progress,
) -> FetchSummary:
    """Fill the manifest cache for every resolved package."""
    task = progress.add_task("Downloading", total=len(packages))
    timeout = httpx.Timeout(settings.timeout)
    limits = httpx.Limits(max_connections=settings.max_concurrency)
    async with httpx.AsyncClient(timeout=timeout, limits=limits, follow_redirects=True) as client:
        store = ManifestCache(settings.cache_dir, client, settings.archive_base_url)
        fetcher = ManifestFetcher(max_concurrency=settings.max_concurrency)
        return await fetcher.ensure_all(store, packages, on_progress=lambda: progress.advance(task))


def fetch_stage(settings: Settings, packages: list[ResolvedPackage], console: Console) -> FetchSummary:
    console.print("Checking and downloading crate manifest files...")
    with _progress(console) as progress:
        summary = asyncio.run(fetch_manifests(settings, packages, progress))
    console.print(
        f"{summary.completed}/{summary.total} crates checked: {summary.cached} cached, "
        f"{summary.fetched} downloaded, {summary.missing_manifest} without manifest, "
        f"{len(summary.failed)} failed."
    )
    return summary


def classify_stage(settings: Settings, console: Console):
    console.print("Finding proc macros...")
    paths = list(iter_manifest_files(settings.cache_dir))
    with _progress(console) as progress:
        task = progress.add_task("Classifying", total=len(paths))
        return find_proc_macros(paths, on_progress=lambda: progress.advance(task))


def run_pipeline(settings: Settings, console: Console, fetch: bool = True) -> DependencyReport:
    """Run every stage and return the report.

    Args:
        settings: Scan settings
        console: Console for progress and stage summaries
        fetch: Resolve the index and fill the cache first; when False,
            classify whatever the cache already holds

    Returns:
        The dependency report
    """
    if fetch:
        packages = resolve_stage(settings, console)
        fetch_stage(settings, packages, console)
    else:
        logger.info("Skipping index resolution and downloads; using cache at %s", settings.cache_dir)

    macros = classify_stage(settings, console)

    console.print("Finding weird dependencies...")
    return build_report(macros, settings.standard_deps, settings.threshold)
