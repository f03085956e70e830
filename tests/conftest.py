"""Pytest configuration and fixtures."""

from typing import Optional, Union

import pytest

from dep_inspector.analysis.duplicates import build_duplicate_index
from dep_inspector.analysis.graph import ResolvedGraph
from dep_inspector.metadata import parse_metadata

REGISTRY = "registry+https://github.com/rust-lang/crates.io-index"

DepSpec = Union[str, tuple[str, list[Optional[str]]]]


def _split(spec: str) -> tuple[str, str]:
    name, _, version = spec.partition("@")
    return name, version or "0.1.0"


def _package_id(spec: str, source: Optional[str]) -> str:
    name, version = _split(spec)
    return f"{source or 'path+file:///ws/' + name}#{name}@{version}"


def build_metadata_dict(
    graph: dict[str, list[DepSpec]],
    root: Optional[str] = None,
    members: Optional[list[str]] = None,
    features: Optional[dict[str, list[str]]] = None,
    sources: Optional[dict[str, Optional[str]]] = None,
    declared: Optional[dict[str, list[dict]]] = None,
) -> dict:
    """Build ``cargo metadata`` JSON from a compact ``name@version`` adjacency.

    Without ``root`` or ``members`` the first entry is the root package. With
    ``members`` only, the result is a virtual workspace. Dependencies may be
    given as ``(spec, [kind, ...])`` where kind is None, "dev" or "build".
    Manifest dependencies are derived from the edges unless ``declared``
    overrides them for a package.
    """
    if root is None and members is None:
        root = next(iter(graph))
    if members is None:
        members = [root] if root else []
    local = set(members) | ({root} if root else set())

    specs: list[str] = []
    for spec, deps in graph.items():
        for candidate in [spec, *(d if isinstance(d, str) else d[0] for d in deps)]:
            if candidate not in specs:
                specs.append(candidate)

    def source_of(spec: str) -> Optional[str]:
        if sources and spec in sources:
            return sources[spec]
        return None if spec in local else REGISTRY

    ids = {spec: _package_id(spec, source_of(spec)) for spec in specs}

    def declared_of(spec: str) -> list[dict]:
        if declared and spec in declared:
            return declared[spec]
        deps = []
        for dep in graph.get(spec, []):
            target, kinds = (dep, [None]) if isinstance(dep, str) else dep
            name, version = _split(target)
            source = source_of(target)
            deps.append({
                "name": name,
                "source": source,
                "req": f"^{version}",
                "kind": kinds[0] if kinds else None,
                "rename": None,
                "optional": False,
                "target": None,
                "path": None if source else f"/ws/{name}",
            })
        return deps

    packages = []
    for spec in specs:
        name, version = _split(spec)
        packages.append({
            "id": ids[spec],
            "name": name,
            "version": version,
            "source": source_of(spec),
            "dependencies": declared_of(spec),
        })

    nodes = []
    for spec in specs:
        deps = []
        for dep in graph.get(spec, []):
            target, kinds = (dep, [None]) if isinstance(dep, str) else dep
            deps.append({
                "name": _split(target)[0],
                "pkg": ids[target],
                "dep_kinds": [{"kind": kind, "target": None} for kind in kinds],
            })
        nodes.append({"id": ids[spec], "features": (features or {}).get(spec, []), "deps": deps})

    return {
        "packages": packages,
        "workspace_members": [ids[m] for m in members],
        "resolve": {"nodes": nodes, "root": ids[root] if root else None},
    }


@pytest.fixture
def make_metadata():
    def _make(graph, **kwargs):
        return parse_metadata(build_metadata_dict(graph, **kwargs))

    return _make


@pytest.fixture
def make_graph(make_metadata):
    def _make(graph, **kwargs):
        return ResolvedGraph.from_metadata(make_metadata(graph, **kwargs))

    return _make


@pytest.fixture
def workspace_graph_spec():
    """An app with normal, dev and build deps and a duplicated ``dup`` package."""
    return {
        "graph": {
            "app@0.1.0": ["dep_a@0.1.0", "dep_b@0.1.0", ("dev_only@0.1.0", ["dev"])],
            "dep_a@0.1.0": ["mid@0.1.0", "dup@0.1.0", ("build_only@0.1.0", ["build"])],
            "dep_b@0.1.0": ["dup@0.2.0"],
            "mid@0.1.0": ["leaf@0.1.0"],
        },
        "features": {"dep_a@0.1.0": ["default", "extra"]},
    }


@pytest.fixture
def workspace_metadata(make_metadata, workspace_graph_spec):
    return make_metadata(workspace_graph_spec["graph"], features=workspace_graph_spec["features"])


@pytest.fixture
def workspace_graph(workspace_metadata):
    return ResolvedGraph.from_metadata(workspace_metadata)


@pytest.fixture
def workspace_index(workspace_graph):
    return build_duplicate_index(workspace_graph)
