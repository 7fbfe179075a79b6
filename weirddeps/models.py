"""Core data models for weirddeps."""

from dataclasses import dataclass, field
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictBool


class IndexRecord(BaseModel):
    """One line of a crates.io index file.

    The index carries many more fields (deps, cksum, features, ...);
    only the ones needed for resolution are kept.
    """

    model_config = ConfigDict(extra="ignore")

    name: str
    version: str = Field(alias="vers")
    yanked: bool


@dataclass(frozen=True)
class ResolvedPackage:
    """The single version chosen for a crate."""

    name: str
    version: str


class PackageSection(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str


class LibSection(BaseModel):
    model_config = ConfigDict(extra="ignore")

    proc_macro: StrictBool | None = Field(
        default=None,
        validation_alias=AliasChoices("proc-macro", "proc_macro"),
    )


class CargoManifest(BaseModel):
    """The parts of a Cargo.toml that classification looks at."""

    model_config = ConfigDict(extra="ignore")

    package: PackageSection = Field(validation_alias=AliasChoices("package", "project"))
    lib: LibSection | None = None
    dependencies: dict[str, Any] | None = None

    @property
    def package_name(self) -> str:
        return self.package.name

    @property
    def is_macro_like(self) -> bool:
        if self.lib is None:
            return False
        return bool(self.lib.proc_macro)


@dataclass
class ReportEntry:
    """A proc-macro crate and its non-standard dependencies."""

    name: str
    deps: list[str]


@dataclass
class DependencyReport:
    """Per-crate listing plus the global dependency frequency table."""

    entries: list[ReportEntry]
    stats: dict[str, int]


@dataclass
class FetchSummary:
    """Outcome counts of a manifest fetch run."""

    total: int = 0
    cached: int = 0
    fetched: int = 0
    missing_manifest: int = 0
    failed: list[ResolvedPackage] = field(default_factory=list)

    @property
    def completed(self) -> int:
        return self.cached + self.fetched + self.missing_manifest + len(self.failed)
