"""Write the dependency report artifacts."""

import json
from dataclasses import asdict
from pathlib import Path

from .models import DependencyReport


def format_entries(report: DependencyReport) -> str:
    """Per-crate listing as a JSON array of ``{name, deps}``."""
    return json.dumps([asdict(entry) for entry in report.entries])


def format_stats(report: DependencyReport) -> str:
    """Dependency frequency table as a JSON object."""
    return json.dumps(report.stats)


def write_report(report: DependencyReport, data_path: Path, stats_path: Path) -> None:
    """Write both artifacts, creating parent directories as needed."""
    for path, content in ((data_path, format_entries(report)), (stats_path, format_stats(report))):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
