"""Path finder: shortest attribution path from the workspace roots to a package."""

import logging
from collections import deque
from typing import Optional

from dep_inspector.analysis.graph import Adjacency, ResolvedGraph
from dep_inspector.models import AttributionPath, PackageKey, PathStatus

logger = logging.getLogger(__name__)


class PathFinder:
    """Multi-source breadth-first search over the forward graph.

    All roots are enqueued before the search starts, so the returned path has
    the fewest edges across every root and every route. Ties go to the earlier
    root, then to the earlier edge in input order.
    """

    def __init__(self, graph: ResolvedGraph, adjacency: Optional[Adjacency] = None) -> None:
        self.graph = graph
        self._adjacency = adjacency if adjacency is not None else graph.adjacency()

    def resolve_target(
        self, name: str, version: str, source_hint: Optional[str] = None
    ) -> Optional[PackageKey]:
        """Find the graph key for an advisory's (name, version, source).

        Advisory source strings do not always match the recorded source
        syntactically, so the lookup relaxes in steps: exact, then without a
        source, then any source with the same name and version.
        """
        key = self.graph.lookup(name, version, source_hint)
        if key is None and source_hint is not None:
            key = self.graph.lookup(name, version, None)
        if key is None:
            key = next(
                (k for k in self.graph.keys if k.name == name and k.version == version),
                None,
            )
        return key

    def path_to(
        self, name: str, version: str, source_hint: Optional[str] = None
    ) -> AttributionPath:
        target = self.resolve_target(name, version, source_hint)
        if target is None:
            logger.debug("path_to: %s %s not in graph", name, version)
            return AttributionPath(status=PathStatus.not_found)
        return self.path_to_key(target)

    def path_to_key(self, target: PackageKey) -> AttributionPath:
        """Shortest root-to-``target`` path, as package names."""
        if target not in self.graph:
            return AttributionPath(status=PathStatus.not_found)

        parents: dict[PackageKey, PackageKey] = {}
        visited: set[PackageKey] = set()
        queue: deque[PackageKey] = deque()
        for root in self.graph.roots:
            if root not in visited:
                visited.add(root)
                queue.append(root)

        found = False
        while queue:
            current = queue.popleft()
            if current == target:
                found = True
                break
            for edge in self._adjacency.get(current, ()):
                if edge.to_key not in visited:
                    visited.add(edge.to_key)
                    parents[edge.to_key] = current
                    queue.append(edge.to_key)

        if not found:
            logger.debug("path_to: %s unreachable from roots", target)
            return AttributionPath(status=PathStatus.no_path)

        chain = [target]
        while chain[-1] in parents:
            chain.append(parents[chain[-1]])
        chain.reverse()
        return AttributionPath(status=PathStatus.found, path=[key.name for key in chain])
