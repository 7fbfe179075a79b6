"""CLI application for weirddeps."""

from pathlib import Path

import typer
from rich.console import Console

from weirddeps.config import Settings
from weirddeps.errors import WeirdDepsError
from weirddeps.log import configure_logging
from weirddeps.pipeline import run_pipeline
from weirddeps.report import write_report
from weirddeps.sync import sync_index

console = Console()

DEFAULTS = Settings()

app = typer.Typer(
    name="weirddeps",
    help="weirddeps - Find proc-macro crates with non-standard dependencies",
    add_completion=False,
)


@app.command()
def scan(
    index_dir: Path = typer.Option(DEFAULTS.index_dir, "--index", help="Local crates.io index checkout"),
    cache_dir: Path = typer.Option(DEFAULTS.cache_dir, "--cache", help="Manifest cache directory"),
    data_path: Path = typer.Option(DEFAULTS.data_path, "--data-out", help="Per-crate report file"),
    stats_path: Path = typer.Option(DEFAULTS.stats_path, "--stats-out", help="Dependency frequency file"),
    archive_url: str = typer.Option(DEFAULTS.archive_base_url, "--archive-url", help="Crate archive host prefix"),
    jobs: int = typer.Option(DEFAULTS.max_concurrency, "--jobs", "-j", min=1, help="Concurrent downloads"),
    timeout: float = typer.Option(DEFAULTS.timeout, "--timeout", help="Per-request timeout in seconds"),
    threshold: int = typer.Option(DEFAULTS.threshold, "--threshold", min=0, help="Report crates with more non-standard deps than this"),
    fetch: bool = typer.Option(True, "--fetch/--no-fetch", help="Resolve the index and download missing manifests"),
    lenient_index: bool = typer.Option(not DEFAULTS.strict_index, "--lenient-index", help="Skip unreadable index files instead of aborting"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output"),
) -> None:
    """Scan the index and write the non-standard dependency report."""
    configure_logging(console, verbose)

    settings = Settings(
        index_dir=index_dir,
        cache_dir=cache_dir,
        archive_base_url=archive_url,
        data_path=data_path,
        stats_path=stats_path,
        max_concurrency=jobs,
        timeout=timeout,
        threshold=threshold,
        strict_index=not lenient_index,
    )

    try:
        if fetch and not settings.index_dir.is_dir():
            console.print(f"Error: Index directory {settings.index_dir} not found", style="red")
            raise typer.Exit(1)

        report = run_pipeline(settings, console, fetch=fetch)
        write_report(report, settings.data_path, settings.stats_path)
        console.print(
            f"Wrote {len(report.entries)} crates to {settings.data_path} "
            f"and {len(report.stats)} dependencies to {settings.stats_path}"
        )
    except typer.Exit:
        raise
    except (WeirdDepsError, OSError) as e:
        console.print(f"Error: {e}", style="red")
        raise typer.Exit(1)


@app.command()
def sync(
    index_dir: Path = typer.Option(DEFAULTS.index_dir, "--index", help="Local crates.io index checkout"),
    cache_dir: Path = typer.Option(DEFAULTS.cache_dir, "--cache", help="Manifest cache directory"),
    repo_url: str = typer.Option(DEFAULTS.index_repo_url, "--repo", help="Git URL of the index"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output"),
) -> None:
    """Clone or update the local index checkout."""
    configure_logging(console, verbose)

    try:
        sync_index(index_dir, cache_dir, repo_url)
    except WeirdDepsError as e:
        console.print(f"Error: {e}", style="red")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
