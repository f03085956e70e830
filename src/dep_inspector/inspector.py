"""Inspection engine front door.

Builds the graph model and duplicate index once per invocation and answers
tree, duplicate, audit and outdated-dependency queries against them.
"""

from typing import Callable, Optional

from dep_inspector.advisories import OsvFetcher
from dep_inspector.analysis.audit import attribute_advisories
from dep_inspector.analysis.duplicates import build_duplicate_index, build_duplicate_report
from dep_inspector.analysis.graph import ResolvedGraph
from dep_inspector.analysis.outdated import build_outdated_report, registry_dependency_names
from dep_inspector.analysis.paths import PathFinder
from dep_inspector.analysis.stats import build_stats
from dep_inspector.analysis.tree import build_tree
from dep_inspector.config import Settings
from dep_inspector.models import (
    Advisory,
    AuditReport,
    CargoMetadata,
    DuplicateReport,
    OutdatedReport,
    TreeOptions,
    TreeOutput,
)
from dep_inspector.registry import CratesIoClient


class Inspector:
    """Dependency inspection over one resolved metadata snapshot."""

    def __init__(
        self,
        metadata: CargoMetadata,
        settings: Optional[Settings] = None,
        on_status: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.settings = settings or Settings()
        self._on_status = on_status or (lambda _: None)
        self.metadata = metadata
        self._status("Building dependency graph …")
        self.graph = ResolvedGraph.from_metadata(metadata)
        self.duplicate_index = build_duplicate_index(self.graph)

    def _status(self, msg: str) -> None:
        self._on_status(msg)

    # ── Queries ───────────────────────────────────────────────────────────

    def tree(self, options: Optional[TreeOptions] = None) -> TreeOutput:
        """Build a dependency tree and its stats."""
        self._status("Building dependency tree …")
        root = build_tree(
            self.graph,
            self.duplicate_index,
            options,
            ceiling=self.settings.traversal_ceiling,
        )
        return TreeOutput(root=root, stats=build_stats(root))

    def duplicates(self) -> DuplicateReport:
        self._status("Collecting duplicate versions …")
        return build_duplicate_report(self.graph, self.duplicate_index)

    def audit(self, advisories: list[Advisory]) -> AuditReport:
        """Attribute already-fetched advisories to dependency paths."""
        self._status(f"Attributing {len(advisories)} advisories …")
        return attribute_advisories(self.graph, advisories, PathFinder(self.graph))

    async def audit_online(self, fetcher: Optional[OsvFetcher] = None) -> AuditReport:
        """Fetch advisories from OSV for every registry package, then attribute them."""
        owned = fetcher is None
        fetcher = fetcher or OsvFetcher(self.settings)
        try:
            self._status("Querying vulnerability database …")
            advisories = await fetcher.fetch_advisories(self.graph.keys)
        finally:
            if owned:
                await fetcher.close()
        return self.audit(advisories)

    async def outdated(
        self,
        client: Optional[CratesIoClient] = None,
        allow_prerelease: bool = False,
    ) -> OutdatedReport:
        """Compare the root package's direct dependencies with their latest releases."""
        names = registry_dependency_names(self.metadata)
        owned = client is None
        client = client or CratesIoClient(self.settings, allow_prerelease=allow_prerelease)
        try:
            self._status(f"Looking up {len(names)} crates on the registry …")
            latest = await client.fetch_latest_versions(names)
        finally:
            if owned:
                await client.close()
        return build_outdated_report(self.metadata, latest)
