"""Runtime settings for weirddeps."""

from dataclasses import dataclass
from pathlib import Path

# Dependencies that are unremarkable for a proc-macro crate.
STANDARD_DEPS: frozenset[str] = frozenset({
    "syn",
    "proc-macro2",
    "quote",
    "proc-macro-error",
    "proc-macro-crate",
    "proc-macro-hack",
    "darling",
    "heck",
    "lazy_static",
    "regex",
    "Inflector",
    "anyhow",
    "convert_case",
    "itertools",
    "once_cell",
    "rand",
    "synstructure",
    "unicode-xid",
    "failure",
})

INDEX_REPO_URL = "https://github.com/rust-lang/crates.io-index"
ARCHIVE_BASE_URL = "https://static.crates.io/crates"


@dataclass
class Settings:
    """Paths, endpoints and tuning knobs for a scan."""

    index_dir: Path = Path("crates.io-index")
    cache_dir: Path = Path("toml_cache")
    index_repo_url: str = INDEX_REPO_URL
    archive_base_url: str = ARCHIVE_BASE_URL
    data_path: Path = Path("data")
    stats_path: Path = Path("stats")
    max_concurrency: int = 8
    timeout: float = 60.0
    threshold: int = 1  # crates need strictly more residual deps than this
    standard_deps: frozenset[str] = STANDARD_DEPS
    strict_index: bool = True
