"""Outdated check: compare the root package's direct dependencies with the registry."""

import logging
from typing import Optional

import semver

from dep_inspector.analysis.graph import parse_version
from dep_inspector.errors import (
    GraphConsistencyError,
    MetadataError,
    NoRootPackageError,
    RegistryError,
)
from dep_inspector.models import (
    CargoMetadata,
    CargoPackage,
    DeclaredDependency,
    DependencyKind,
    OutdatedPackage,
    OutdatedReport,
    SkippedDependency,
    SkipReason,
    UpdateType,
    VersionInfo,
)

logger = logging.getLogger(__name__)

REGISTRY_PREFIX = "registry+"


def is_registry_dependency(dep: DeclaredDependency) -> bool:
    """Registry dependencies carry a ``registry+`` source, or none at all.

    Path dependencies also have no source, so an explicit ``path`` rules
    the dependency out first.
    """
    if dep.path:
        return False
    return dep.source is None or dep.source.startswith(REGISTRY_PREFIX)


def classify_update(current: semver.Version, latest: semver.Version) -> UpdateType:
    if latest.major > current.major:
        return UpdateType.major
    if latest.minor > current.minor:
        return UpdateType.minor
    return UpdateType.patch


def root_package(metadata: CargoMetadata) -> CargoPackage:
    """The package the resolve section is rooted at."""
    root_id = metadata.resolve.root if metadata.resolve else None
    if root_id is None:
        raise NoRootPackageError()
    for package in metadata.packages:
        if package.id == root_id:
            return package
    raise GraphConsistencyError(f"package {root_id} missing from metadata")


def registry_dependency_names(metadata: CargoMetadata) -> list[str]:
    """Names to look up in the registry, one per distinct registry dependency."""
    root = root_package(metadata)
    return sorted({dep.name for dep in root.dependencies if is_registry_dependency(dep)})


def _dependency_type(dep: DeclaredDependency) -> DependencyKind:
    kind = DependencyKind.parse(dep.kind)
    return DependencyKind.normal if kind is DependencyKind.unknown else kind


def _skip(dep: DeclaredDependency, reason: SkipReason) -> SkippedDependency:
    return SkippedDependency(
        name=dep.name,
        alias=dep.rename,
        required=dep.req,
        reason=reason,
        dependency_type=_dependency_type(dep),
        source=dep.source,
        target=dep.target,
    )


def _parse_current(package: CargoPackage) -> semver.Version:
    parsed = parse_version(package.version)
    if parsed is None:
        raise MetadataError(f"package {package.name} has an invalid version {package.version!r}")
    return parsed


def build_outdated_report(
    metadata: CargoMetadata,
    latest_versions: dict[str, VersionInfo],
) -> OutdatedReport:
    """Classify every direct dependency of the root package.

    ``latest_versions`` maps dependency names to registry data, as returned
    by ``CratesIoClient.fetch_latest_versions``.
    """
    root = root_package(metadata)
    packages_by_id = {package.id: package for package in metadata.packages}

    nodes = metadata.resolve.nodes if metadata.resolve else []
    root_node = next((node for node in nodes if node.id == root.id), None)
    if root_node is None:
        raise GraphConsistencyError(f"root package {root.name} not found in resolve graph")

    # Both the (possibly renamed) dependency name and the package name resolve.
    resolved: dict[str, CargoPackage] = {}
    for node_dep in root_node.deps:
        package = packages_by_id.get(node_dep.pkg)
        if package is not None:
            resolved[node_dep.name] = package
            resolved[package.name] = package

    member_names = [
        packages_by_id[member].name
        for member in metadata.workspace_members
        if member in packages_by_id
    ]
    is_workspace = len(metadata.workspace_members) > 1
    skipped_members = [name for name in member_names if name != root.name] if is_workspace else []

    report = OutdatedReport(
        total=len(root.dependencies),
        workspace=is_workspace,
        members=member_names,
        skipped_members=skipped_members,
    )

    for dep in root.dependencies:
        if not is_registry_dependency(dep):
            report.skipped_packages.append(_skip(dep, SkipReason.non_registry))
            continue

        package = resolved.get(dep.rename or dep.name) or resolved.get(dep.name)
        if package is None:
            if dep.optional:
                reason = SkipReason.optional_not_activated
            elif dep.target is not None:
                reason = SkipReason.target_specific
            else:
                reason = SkipReason.missing_resolve
            report.skipped_packages.append(_skip(dep, reason))
            continue

        info: Optional[VersionInfo] = latest_versions.get(dep.name)
        if info is None or info.latest is None:
            report.skipped_packages.append(_skip(dep, SkipReason.registry_metadata_missing))
            continue

        latest = parse_version(info.latest)
        if latest is None:
            raise RegistryError(f"failed to parse latest version for {dep.name}: {info.latest}")
        current = _parse_current(package)
        if latest <= current:
            continue

        update_type = classify_update(current, latest)
        logger.debug("%s %s -> %s (%s)", dep.name, current, latest, update_type.value)
        report.packages.append(
            OutdatedPackage(
                name=dep.name,
                alias=dep.rename,
                current=package.version,
                latest=info.latest,
                required=dep.req,
                update_type=update_type,
                dependency_type=_dependency_type(dep),
            )
        )

    report.outdated = len(report.packages)
    report.major = sum(1 for p in report.packages if p.update_type is UpdateType.major)
    report.minor = sum(1 for p in report.packages if p.update_type is UpdateType.minor)
    report.patch = sum(1 for p in report.packages if p.update_type is UpdateType.patch)
    report.skipped = len(report.skipped_packages)
    return report
