"""Data models for dep-inspector."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ── Raw resolved metadata (cargo metadata --format-version 1) ─────────────

class DepKindInfo(BaseModel):
    """One declared kind tag on a resolved dependency edge."""

    kind: Optional[str] = None  # null = normal, "dev", "build"
    target: Optional[str] = None


class NodeDep(BaseModel):
    """A resolved dependency of one node."""

    name: str = ""
    pkg: str
    dep_kinds: list[DepKindInfo] = Field(default_factory=list)


class ResolveNode(BaseModel):
    """A node of the resolved graph."""

    id: str
    features: list[str] = Field(default_factory=list)
    deps: list[NodeDep] = Field(default_factory=list)


class Resolve(BaseModel):
    """The ``resolve`` section of the metadata."""

    nodes: list[ResolveNode] = Field(default_factory=list)
    root: Optional[str] = None


class DeclaredDependency(BaseModel):
    """A dependency as written in a package manifest (before resolution)."""

    name: str
    source: Optional[str] = None
    req: str = "*"
    kind: Optional[str] = None
    rename: Optional[str] = None
    optional: bool = False
    target: Optional[str] = None
    path: Optional[str] = None  # set for path dependencies


class CargoPackage(BaseModel):
    """Identity of one package listed in the metadata."""

    id: str
    name: str
    version: str
    source: Optional[str] = None
    dependencies: list[DeclaredDependency] = Field(default_factory=list)


class CargoMetadata(BaseModel):
    """Pre-resolved graph input as produced by the package manager."""

    packages: list[CargoPackage] = Field(default_factory=list)
    resolve: Optional[Resolve] = None
    workspace_members: list[str] = Field(default_factory=list)


# ── Graph model ──────────────────────────────────────────────────────────

class DependencyKind(str, Enum):
    """Kind tag of a dependency edge."""

    normal = "normal"
    dev = "dev"
    build = "build"
    unknown = "unknown"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "DependencyKind":
        if raw is None:
            return cls.normal
        try:
            return cls(raw)
        except ValueError:
            return cls.unknown


class PackageKey(BaseModel):
    """Unique identity of one resolved package instance."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    source: Optional[str] = None

    def __str__(self) -> str:
        if self.source:
            return f"{self.name} {self.version} ({self.source})"
        return f"{self.name} {self.version}"


class DependencyEdge(BaseModel):
    """A dependency edge annotated with its kinds at this traversal site."""

    model_config = ConfigDict(frozen=True)

    from_key: PackageKey
    to_key: PackageKey
    is_dev: bool = False
    is_build: bool = False
    is_normal: bool = True  # carries a normal (or unknown) tag

    @property
    def includes_non_dev(self) -> bool:
        """True if the edge survives dev exclusion."""
        return self.is_normal or self.is_build

    def reversed(self) -> "DependencyEdge":
        return self.model_copy(update={"from_key": self.to_key, "to_key": self.from_key})


class PackageNode(BaseModel):
    """A resolved package with its activated features and outbound edges."""

    model_config = ConfigDict(frozen=True)

    key: PackageKey
    features: tuple[str, ...] = ()
    dependencies: tuple[DependencyEdge, ...] = ()


# ── Tree output ──────────────────────────────────────────────────────────

class TreeOptions(BaseModel):
    """View options for a dependency tree."""

    max_depth: Optional[int] = Field(default=None, ge=0)
    duplicates_only: bool = False
    show_features: bool = False
    exclude_dev: bool = False
    invert_target: Optional[str] = None


class TreeNode(BaseModel):
    """One rendered node of a dependency tree."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str = ""
    package_id: str = ""  # empty for synthetic roots
    features: list[str] = Field(default_factory=list)
    dependencies: list["TreeNode"] = Field(default_factory=list)
    is_dev: bool = False
    is_build: bool = False
    duplicate: bool = False

    @property
    def is_synthetic(self) -> bool:
        return not self.package_id


class TreeStats(BaseModel):
    """Summary counts for a rendered tree."""

    total_crates: int = 0
    direct_deps: int = 0
    transitive_deps: int = 0
    duplicate_crates: int = 0


class TreeOutput(BaseModel):
    """A tree together with its stats."""

    root: TreeNode
    stats: TreeStats


# ── Attribution paths ────────────────────────────────────────────────────

class PathStatus(str, Enum):
    """Outcome of a root-to-package path search."""

    found = "found"
    not_found = "not_found"  # package absent from the graph
    no_path = "no_path"  # present, but unreachable from every root


class AttributionPath(BaseModel):
    """Shortest chain of package names from a root to a target."""

    status: PathStatus
    path: list[str] = Field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.status is PathStatus.found


# ── Duplicate report ─────────────────────────────────────────────────────

class DuplicateVersion(BaseModel):
    """One version of a duplicated package and how it is reached."""

    version: str
    path: list[str] = Field(default_factory=list)
    path_status: PathStatus = PathStatus.found


class DuplicatePackage(BaseModel):
    """A package name resolved at more than one version."""

    name: str
    versions: list[DuplicateVersion] = Field(default_factory=list)


class DuplicateReport(BaseModel):
    """All duplicated package names in the resolved graph."""

    packages: list[DuplicatePackage] = Field(default_factory=list)
    total_duplicates: int = 0


# ── Audit ────────────────────────────────────────────────────────────────

class Severity(str, Enum):
    """Normalized advisory severity."""

    critical = "critical"
    high = "high"
    moderate = "moderate"
    low = "low"


class Advisory(BaseModel):
    """A vulnerability-database record flagging one (name, version)."""

    package: str
    version: str
    advisory_id: str
    severity: Optional[str] = None
    title: str = ""
    source: Optional[str] = None
    fix_available: bool = False


class Vulnerability(BaseModel):
    """An advisory attributed to a path through the dependency graph."""

    package: str
    package_version: str
    advisory_id: str
    severity: Severity = Severity.high
    title: str = ""
    path: list[str] = Field(default_factory=list)
    path_status: PathStatus = PathStatus.found
    fix_available: bool = False


class AuditSummary(BaseModel):
    """Vulnerability counts by severity."""

    critical: int = 0
    high: int = 0
    moderate: int = 0
    low: int = 0
    total: int = 0


class AuditReport(BaseModel):
    """Full audit result."""

    vulnerabilities: list[Vulnerability] = Field(default_factory=list)
    summary: AuditSummary = Field(default_factory=AuditSummary)


# ── Outdated dependencies ────────────────────────────────────────────────

class UpdateType(str, Enum):
    """Size of the jump from the resolved to the latest version."""

    major = "major"
    minor = "minor"
    patch = "patch"


class SkipReason(str, Enum):
    """Why a declared dependency was left out of the outdated check."""

    non_registry = "non_registry"
    missing_resolve = "missing_resolve"
    optional_not_activated = "optional_not_activated"
    target_specific = "target_specific"
    registry_metadata_missing = "registry_metadata_missing"


class VersionInfo(BaseModel):
    """Latest published versions of one registry package."""

    name: str
    latest: Optional[str] = None
    latest_stable: Optional[str] = None


class OutdatedPackage(BaseModel):
    name: str
    alias: Optional[str] = None
    current: str
    latest: str
    required: str
    update_type: UpdateType
    dependency_type: DependencyKind = DependencyKind.normal


class SkippedDependency(BaseModel):
    name: str
    alias: Optional[str] = None
    required: str
    reason: SkipReason
    dependency_type: DependencyKind = DependencyKind.normal
    source: Optional[str] = None
    target: Optional[str] = None


class OutdatedReport(BaseModel):
    """Direct dependencies of the root package with newer registry releases."""

    total: int = 0
    outdated: int = 0
    major: int = 0
    minor: int = 0
    patch: int = 0
    packages: list[OutdatedPackage] = Field(default_factory=list)
    skipped: int = 0
    skipped_packages: list[SkippedDependency] = Field(default_factory=list)
    workspace: bool = False
    members: list[str] = Field(default_factory=list)
    skipped_members: list[str] = Field(default_factory=list)


# ── TUI inspection result ────────────────────────────────────────────────

class InspectionResult(BaseModel):
    """Everything the results screen shows for one metadata file."""

    metadata_path: str
    show_features: bool = False
    tree: TreeOutput
    duplicates: DuplicateReport = Field(default_factory=DuplicateReport)
    audit: Optional[AuditReport] = None
    audit_error: str = ""


# ── Errors ───────────────────────────────────────────────────────────────

class ErrorResponse(BaseModel):
    """Serializable snapshot of an error and its cause chain."""

    code: str
    message: str
    causes: list[str] = Field(default_factory=list)


TreeNode.model_rebuild()
