"""Duplicate index and duplicate-version report."""

from collections import defaultdict
from typing import Optional

from dep_inspector.analysis.graph import ResolvedGraph
from dep_inspector.analysis.paths import PathFinder
from dep_inspector.models import DuplicatePackage, DuplicateReport, DuplicateVersion


class DuplicateIndex:
    """Package name -> distinct resolved versions across the whole graph."""

    def __init__(self, versions: dict[str, set[str]]) -> None:
        self.versions = versions

    def is_duplicate(self, name: str) -> bool:
        return len(self.versions.get(name, ())) > 1

    def duplicate_names(self) -> list[str]:
        return sorted(name for name, versions in self.versions.items() if len(versions) > 1)


def build_duplicate_index(graph: ResolvedGraph) -> DuplicateIndex:
    """Record name -> {version} for every node of the graph."""
    versions: dict[str, set[str]] = defaultdict(set)
    for node in graph:
        versions[node.key.name].add(node.key.version)
    return DuplicateIndex(dict(versions))


def build_duplicate_report(
    graph: ResolvedGraph,
    index: Optional[DuplicateIndex] = None,
    finder: Optional[PathFinder] = None,
) -> DuplicateReport:
    """List every duplicated name with the path that pulls in each version."""
    index = index or build_duplicate_index(graph)
    finder = finder or PathFinder(graph)

    packages: list[DuplicatePackage] = []
    for name in index.duplicate_names():
        versions: list[DuplicateVersion] = []
        for key in graph.find_by_name(name):
            result = finder.path_to_key(key)
            versions.append(
                DuplicateVersion(
                    version=key.version,
                    path=result.path,
                    path_status=result.status,
                )
            )
        packages.append(DuplicatePackage(name=name, versions=versions))

    return DuplicateReport(packages=packages, total_duplicates=len(packages))
