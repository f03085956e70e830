"""Graph model: normalized adjacency over a pre-resolved dependency graph."""

import logging
from collections.abc import Iterable, Iterator, Sequence
from typing import Optional

import semver

from dep_inspector.errors import GraphConsistencyError
from dep_inspector.models import (
    CargoMetadata,
    DependencyEdge,
    DependencyKind,
    NodeDep,
    PackageKey,
    PackageNode,
)

logger = logging.getLogger(__name__)

Adjacency = dict[PackageKey, list[DependencyEdge]]


class ResolvedGraph:
    """Immutable node set with key lookup and the root package(s).

    A graph has either a single real ``root`` or, for a virtual workspace,
    a list of ``workspace_members`` that act as roots.
    """

    def __init__(
        self,
        nodes: Iterable[PackageNode],
        root: Optional[PackageKey] = None,
        workspace_members: Sequence[PackageKey] = (),
    ) -> None:
        self._nodes: dict[PackageKey, PackageNode] = {}
        for node in nodes:
            if node.key in self._nodes:
                raise GraphConsistencyError(f"package {node.key} appears more than once")
            self._nodes[node.key] = node
        self.root = root
        self.workspace_members = list(workspace_members)

        self._by_name: dict[str, list[PackageKey]] = {}
        for key in self._nodes:
            self._by_name.setdefault(key.name, []).append(key)

    # ── Construction ──────────────────────────────────────────────────────

    @classmethod
    def from_metadata(cls, metadata: CargoMetadata) -> "ResolvedGraph":
        """Build the graph from raw metadata, annotating every edge's kinds."""
        keys: dict[str, PackageKey] = {}
        seen: dict[PackageKey, str] = {}
        for package in metadata.packages:
            key = PackageKey(name=package.name, version=package.version, source=package.source)
            if key in seen and seen[key] != package.id:
                raise GraphConsistencyError(
                    f"packages {seen[key]!r} and {package.id!r} share the identity {key}"
                )
            seen[key] = package.id
            keys[package.id] = key

        def resolve_id(package_id: str) -> PackageKey:
            try:
                return keys[package_id]
            except KeyError:
                raise GraphConsistencyError(
                    f"package {package_id} missing from metadata"
                ) from None

        resolve = metadata.resolve
        nodes: list[PackageNode] = []
        for raw in resolve.nodes if resolve else []:
            key = resolve_id(raw.id)
            edges = tuple(_annotate_edge(key, resolve_id(dep.pkg), dep) for dep in raw.deps)
            nodes.append(PackageNode(key=key, features=tuple(raw.features), dependencies=edges))

        root = resolve_id(resolve.root) if resolve and resolve.root else None
        members = [resolve_id(member) for member in metadata.workspace_members]
        logger.debug("built graph with %d nodes, root=%s, %d members", len(nodes), root, len(members))
        return cls(nodes, root=root, workspace_members=members)

    # ── Lookup ────────────────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, key: object) -> bool:
        return key in self._nodes

    def __iter__(self) -> Iterator[PackageNode]:
        return iter(self._nodes.values())

    @property
    def keys(self) -> list[PackageKey]:
        return list(self._nodes)

    @property
    def roots(self) -> list[PackageKey]:
        """The real root, or every workspace member when there is none."""
        if self.root is not None:
            return [self.root]
        return list(self.workspace_members)

    @property
    def is_virtual_workspace(self) -> bool:
        return self.root is None

    def get(self, key: PackageKey) -> PackageNode:
        """Return the node for ``key``; a missing node means a malformed graph."""
        try:
            return self._nodes[key]
        except KeyError:
            raise GraphConsistencyError(f"package {key} missing from resolved graph") from None

    def find_by_name(self, name: str) -> list[PackageKey]:
        """All keys with this name, in natural version order."""
        return sorted(self._by_name.get(name, []), key=lambda k: (version_sort_key(k.version), k.source or ""))

    def lookup(self, name: str, version: str, source: Optional[str] = None) -> Optional[PackageKey]:
        """Exact (name, version, source) lookup."""
        key = PackageKey(name=name, version=version, source=source)
        return key if key in self._nodes else None

    # ── Adjacency ─────────────────────────────────────────────────────────

    def adjacency(self, exclude_dev: bool = False) -> Adjacency:
        """Forward adjacency in input edge order."""
        forward: Adjacency = {}
        for node in self._nodes.values():
            forward[node.key] = [
                edge for edge in node.dependencies
                if not exclude_dev or edge.includes_non_dev
            ]
        return forward


def _annotate_edge(from_key: PackageKey, to_key: PackageKey, dep: NodeDep) -> DependencyEdge:
    kinds = [DependencyKind.parse(info.kind) for info in dep.dep_kinds] or [DependencyKind.unknown]
    return DependencyEdge(
        from_key=from_key,
        to_key=to_key,
        is_dev=DependencyKind.dev in kinds,
        is_build=DependencyKind.build in kinds,
        is_normal=any(k in (DependencyKind.normal, DependencyKind.unknown) for k in kinds),
    )


def invert_adjacency(adjacency: Adjacency) -> Adjacency:
    """Reverse every edge, keeping its dev/build annotation.

    Every key of the input is kept in the output so that inverting twice
    reproduces the original adjacency.
    """
    inverted: Adjacency = {key: [] for key in adjacency}
    for edges in adjacency.values():
        for edge in edges:
            inverted.setdefault(edge.to_key, []).append(edge.reversed())
    return inverted


def parse_version(version: str) -> Optional[semver.Version]:
    """Parse a semantic version, or None when the string is not one."""
    try:
        return semver.Version.parse(version)
    except ValueError:
        return None


def version_sort_key(version: str) -> tuple:
    """Semantic-version precedence; unparseable versions sort last, by text."""
    parsed = parse_version(version)
    if parsed is None:
        return (1, version)
    return (0, parsed)
