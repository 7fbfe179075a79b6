"""Strip standard dependencies and tally what is left."""

import logging
from collections import Counter
from collections.abc import Iterable, Mapping
from typing import Any

from .config import STANDARD_DEPS
from .models import CargoManifest, DependencyReport, ReportEntry

logger = logging.getLogger(__name__)


def strip_standard(deps: Mapping[str, Any], allow: Iterable[str] = STANDARD_DEPS) -> dict[str, Any]:
    """Drop allow-listed dependencies, keeping the rest untouched."""
    allow = frozenset(allow)
    return {name: value for name, value in deps.items() if name not in allow}


def find_weird_dependencies(
    macros: Mapping[str, CargoManifest],
    allow: Iterable[str] = STANDARD_DEPS,
) -> dict[str, list[str]]:
    """Non-standard dependency names per crate.

    Crates without a ``[dependencies]`` table, or whose dependencies are
    all standard, are dropped.

    Args:
        macros: Proc-macro manifests keyed by crate name
        allow: Dependency names considered standard

    Returns:
        Crate name to sorted residual dependency names
    """
    allow = frozenset(allow)
    weird: dict[str, list[str]] = {}

    for name in sorted(macros):
        deps = macros[name].dependencies
        if not deps:
            continue
        residual = strip_standard(deps, allow)
        if residual:
            weird[name] = sorted(residual)

    logger.info("Found %d proc macros with non-standard dependencies.", len(weird))
    return weird


def filter_significant(weird: Mapping[str, list[str]], threshold: int = 1) -> dict[str, list[str]]:
    """Keep crates with more than ``threshold`` non-standard dependencies."""
    significant = {name: deps for name, deps in weird.items() if len(deps) > threshold}
    logger.info(
        "Found %d proc macro crates with > %d dependency, excluding 'standard' dependencies",
        len(significant),
        threshold,
    )
    return significant


def tally(weird: Mapping[str, list[str]]) -> Counter:
    """Count how many crates use each dependency.

    Every crate contributes its own counter and the counters are merged
    in place by one combining pass.
    """
    total: Counter = Counter()
    for part in (Counter(deps) for deps in weird.values()):
        total.update(part)
    return total


def build_report(
    macros: Mapping[str, CargoManifest],
    allow: Iterable[str] = STANDARD_DEPS,
    threshold: int = 1,
) -> DependencyReport:
    """Run strip, threshold and tally over the classified manifests.

    Only crates that pass the threshold reach the frequency table.

    Args:
        macros: Proc-macro manifests keyed by crate name
        allow: Dependency names considered standard
        threshold: Minimum residual dependency count, exclusive

    Returns:
        Report entries sorted by crate name and stats sorted by count
    """
    significant = filter_significant(find_weird_dependencies(macros, allow), threshold)
    counts = tally(significant)

    entries = [ReportEntry(name=name, deps=deps) for name, deps in sorted(significant.items())]
    stats = dict(sorted(counts.items(), key=lambda item: (-item[1], item[0])))

    logger.info("Found %d non-standard dependencies", len(stats))
    return DependencyReport(entries=entries, stats=stats)
