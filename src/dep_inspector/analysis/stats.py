"""Stats aggregator: summary counts over a rendered tree."""

from collections import defaultdict

from dep_inspector.models import TreeNode, TreeStats


def build_stats(root: TreeNode) -> TreeStats:
    """Count crates, direct/transitive deps and duplicates in one walk.

    Duplicates are counted within the rendered tree only, which can differ
    from the graph-wide duplicate flags on individual nodes.
    """
    package_ids: set[str] = set()
    versions_by_name: dict[str, set[str]] = defaultdict(set)

    stack = [root]
    while stack:
        node = stack.pop()
        if not node.is_synthetic:
            package_ids.add(node.package_id)
        if node.version:
            versions_by_name[node.name].add(node.version)
        stack.extend(node.dependencies)

    total_crates = len(package_ids)
    direct_deps = len(root.dependencies)
    root_is_real = 0 if root.is_synthetic else 1
    return TreeStats(
        total_crates=total_crates,
        direct_deps=direct_deps,
        transitive_deps=max(total_crates - direct_deps - root_is_real, 0),
        duplicate_crates=sum(1 for v in versions_by_name.values() if len(v) > 1),
    )
