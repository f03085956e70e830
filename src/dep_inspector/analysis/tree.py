"""Tree builder: depth-bounded, cycle-safe dependency trees and their text rendering."""

import logging
from typing import Optional, cast

from dep_inspector.analysis.duplicates import DuplicateIndex
from dep_inspector.analysis.graph import Adjacency, ResolvedGraph, invert_adjacency
from dep_inspector.errors import EmptyWorkspaceError, PackageNotFoundError, TraversalLimitError
from dep_inspector.models import DependencyEdge, PackageKey, TreeNode, TreeOptions

logger = logging.getLogger(__name__)

DEFAULT_TRAVERSAL_CEILING = 256

# Sorts after every real package name.
_UNRESOLVED = (1, "")


def build_tree(
    graph: ResolvedGraph,
    duplicates: DuplicateIndex,
    options: Optional[TreeOptions] = None,
    ceiling: int = DEFAULT_TRAVERSAL_CEILING,
) -> TreeNode:
    """Build the display tree for the graph's roots under ``options``.

    Raises ``PackageNotFoundError`` for an unknown invert target,
    ``EmptyWorkspaceError`` for a virtual workspace without members,
    ``GraphConsistencyError`` when an edge points at a missing node and
    ``TraversalLimitError`` when the tree grows deeper than ``ceiling``.
    """
    options = options or TreeOptions()
    adjacency = graph.adjacency(exclude_dev=options.exclude_dev)
    if options.invert_target is not None:
        adjacency = invert_adjacency(adjacency)

    traversal = _Traversal(graph, adjacency, duplicates, options, ceiling)

    if options.invert_target is not None:
        name = options.invert_target
        matches = graph.find_by_name(name)
        if not matches:
            raise PackageNotFoundError(name)
        if len(matches) == 1:
            return traversal.root(matches[0])
        return traversal.synthetic_root(f"reverse:{name}", matches)

    if graph.root is not None:
        return traversal.root(graph.root)

    if not graph.workspace_members:
        raise EmptyWorkspaceError()
    members = sorted(graph.workspace_members, key=lambda k: (k.name, k.version))
    return traversal.synthetic_root("", members)


class _Traversal:
    """Mutable state for one tree build; never shared between calls."""

    def __init__(
        self,
        graph: ResolvedGraph,
        adjacency: Adjacency,
        duplicates: DuplicateIndex,
        options: TreeOptions,
        ceiling: int,
    ) -> None:
        self.graph = graph
        self.adjacency = adjacency
        self.duplicates = duplicates
        self.options = options
        self.ceiling = ceiling
        self.expanded: set[PackageKey] = set()
        self.path: set[PackageKey] = set()

    def root(self, key: PackageKey) -> TreeNode:
        # depth 0 is never pruned
        return cast(TreeNode, self.expand(key, depth=0))

    def synthetic_root(self, label: str, keys: list[PackageKey]) -> TreeNode:
        children = []
        for key in keys:
            child = self.expand(key, depth=1)
            if child is not None:
                children.append(child)
        return TreeNode(name=label, dependencies=children)

    def expand(
        self,
        key: PackageKey,
        depth: int,
        is_dev: bool = False,
        is_build: bool = False,
    ) -> Optional[TreeNode]:
        """Build the subtree for ``key``, or None when it is pruned."""
        if depth > self.ceiling:
            raise TraversalLimitError(key.name, self.ceiling)

        package = self.graph.get(key)
        duplicate = self.duplicates.is_duplicate(key.name)
        prunable = self.options.duplicates_only and not duplicate and depth > 0

        def make(children: list[TreeNode]) -> TreeNode:
            return TreeNode(
                name=key.name,
                version=key.version,
                package_id=str(key),
                features=list(package.features) if self.options.show_features else [],
                dependencies=children,
                is_dev=is_dev,
                is_build=is_build,
                duplicate=duplicate,
            )

        max_depth = self.options.max_depth
        if max_depth is not None and depth >= max_depth:
            return None if prunable else make([])

        # Already expanded on another branch: show the edge, not the subtree.
        if key in self.expanded:
            return None if prunable else make([])
        self.expanded.add(key)

        self.path.add(key)
        children: list[TreeNode] = []
        try:
            for edge in self._sorted_edges(key):
                if edge.to_key in self.path:
                    logger.debug("skipping cycle edge %s -> %s", key, edge.to_key)
                    continue
                child = self.expand(edge.to_key, depth + 1, edge.is_dev, edge.is_build)
                if child is not None:
                    children.append(child)
        finally:
            self.path.discard(key)

        if prunable and not children:
            return None
        return make(children)

    def _sorted_edges(self, key: PackageKey) -> list[DependencyEdge]:
        def sort_key(edge: DependencyEdge) -> tuple[int, str]:
            if edge.to_key not in self.graph:
                return _UNRESOLVED
            return (0, edge.to_key.name)

        return sorted(self.adjacency.get(key, ()), key=sort_key)


# ── Text rendering ───────────────────────────────────────────────────────

BRANCH = "|-- "
LAST_BRANCH = "`-- "
PIPE = "|   "
SPACE = "    "


def render_tree(root: TreeNode, show_features: bool = False) -> str:
    """Render a tree as connector-prefixed lines, one per node."""
    lines = [format_label(root, show_features)]
    _render_children(root, "", show_features, lines)
    return "\n".join(lines)


def _render_children(node: TreeNode, prefix: str, show_features: bool, lines: list[str]) -> None:
    last = len(node.dependencies) - 1
    for index, child in enumerate(node.dependencies):
        is_last = index == last
        lines.append(f"{prefix}{LAST_BRANCH if is_last else BRANCH}{format_label(child, show_features)}")
        _render_children(child, prefix + (SPACE if is_last else PIPE), show_features, lines)


def format_label(node: TreeNode, show_features: bool = False) -> str:
    """``name vX.Y.Z [dup, dev, build, features: a, b]``."""
    name = node.name or "(virtual workspace)"
    label = f"{name} v{node.version}" if node.version else name

    annotations: list[str] = []
    if node.duplicate:
        annotations.append("dup")
    if node.is_dev:
        annotations.append("dev")
    if node.is_build:
        annotations.append("build")
    if show_features and node.features:
        annotations.append(f"features: {', '.join(node.features)}")

    if annotations:
        return f"{label} [{', '.join(annotations)}]"
    return label
