"""Tests for analysis/graph.py: graph model construction and adjacency."""

import pytest

from dep_inspector.analysis.graph import ResolvedGraph, invert_adjacency, version_sort_key
from dep_inspector.errors import GraphConsistencyError
from dep_inspector.metadata import parse_metadata
from dep_inspector.models import PackageKey

from conftest import REGISTRY, build_metadata_dict


def _edge_set(adjacency):
    return {
        key: sorted((e.to_key.name, e.to_key.version, e.is_dev, e.is_build, e.is_normal) for e in edges)
        for key, edges in adjacency.items()
    }


class TestFromMetadata:
    def test_nodes_and_root(self, workspace_graph):
        assert len(workspace_graph) == 9
        assert workspace_graph.root.name == "app"
        assert workspace_graph.roots == [workspace_graph.root]
        assert not workspace_graph.is_virtual_workspace

    def test_root_package_has_no_source(self, workspace_graph):
        assert workspace_graph.root.source is None
        leaf = workspace_graph.find_by_name("leaf")[0]
        assert leaf.source == REGISTRY

    def test_edge_kinds_annotated(self, workspace_graph):
        edges = {e.to_key.name: e for e in workspace_graph.get(workspace_graph.root).dependencies}
        assert edges["dev_only"].is_dev and not edges["dev_only"].is_build
        assert not edges["dev_only"].includes_non_dev
        assert not edges["dep_a"].is_dev and edges["dep_a"].includes_non_dev

        dep_a = workspace_graph.find_by_name("dep_a")[0]
        build = [e for e in workspace_graph.get(dep_a).dependencies if e.to_key.name == "build_only"][0]
        assert build.is_build and not build.is_dev
        assert build.includes_non_dev

    def test_normal_and_dev_tag_survives_dev_exclusion(self, make_graph):
        graph = make_graph({"app": [("both", [None, "dev"])]})
        edge = graph.get(graph.root).dependencies[0]
        assert edge.is_dev
        assert edge.includes_non_dev
        assert [e.to_key.name for e in graph.adjacency(exclude_dev=True)[graph.root]] == ["both"]

    def test_missing_dep_kinds_counts_as_non_dev(self, make_graph):
        graph = make_graph({"app": [("old", [])]})
        edge = graph.get(graph.root).dependencies[0]
        assert not edge.is_dev
        assert edge.includes_non_dev

    def test_unknown_kind_counts_as_non_dev(self, make_graph):
        graph = make_graph({"app": [("odd", ["proc-macro"])]})
        assert graph.get(graph.root).dependencies[0].includes_non_dev

    def test_features_recorded(self, workspace_graph):
        dep_a = workspace_graph.find_by_name("dep_a")[0]
        assert workspace_graph.get(dep_a).features == ("default", "extra")

    def test_virtual_workspace_roots(self, make_graph):
        graph = make_graph({"a": ["x"], "b": ["y"]}, members=["a", "b"])
        assert graph.root is None
        assert graph.is_virtual_workspace
        assert [k.name for k in graph.roots] == ["a", "b"]

    def test_edge_to_undeclared_package_is_fatal(self):
        data = build_metadata_dict({"app": ["dep"]})
        data["resolve"]["nodes"][0]["deps"][0]["pkg"] = "ghost 1.0.0"
        with pytest.raises(GraphConsistencyError, match="ghost"):
            ResolvedGraph.from_metadata(parse_metadata(data))

    def test_duplicate_identity_is_fatal(self):
        data = build_metadata_dict({"app": ["dep@1.0.0"]})
        clone = dict(data["packages"][1], id="another-id")
        data["packages"].append(clone)
        with pytest.raises(GraphConsistencyError, match="share the identity"):
            ResolvedGraph.from_metadata(parse_metadata(data))

    def test_get_missing_node_raises(self, workspace_graph):
        with pytest.raises(GraphConsistencyError):
            workspace_graph.get(PackageKey(name="nope", version="1.0.0"))


class TestLookup:
    def test_find_by_name_orders_versions(self, make_graph):
        graph = make_graph({"app": ["dup@0.10.0", "dup@0.2.0", "dup@0.2.0-beta.1"]})
        assert [k.version for k in graph.find_by_name("dup")] == ["0.2.0-beta.1", "0.2.0", "0.10.0"]

    def test_find_by_name_unknown(self, workspace_graph):
        assert workspace_graph.find_by_name("nope") == []

    def test_lookup_exact(self, workspace_graph):
        key = workspace_graph.lookup("leaf", "0.1.0", REGISTRY)
        assert key is not None and key.name == "leaf"
        assert workspace_graph.lookup("leaf", "0.1.0", None) is None


class TestAdjacency:
    def test_forward_keeps_input_order(self, workspace_graph):
        forward = workspace_graph.adjacency()
        assert [e.to_key.name for e in forward[workspace_graph.root]] == ["dep_a", "dep_b", "dev_only"]

    def test_exclude_dev_drops_dev_only_edges(self, workspace_graph):
        forward = workspace_graph.adjacency(exclude_dev=True)
        assert [e.to_key.name for e in forward[workspace_graph.root]] == ["dep_a", "dep_b"]

    def test_invert_preserves_annotations(self, workspace_graph):
        inverted = invert_adjacency(workspace_graph.adjacency())
        dev_only = workspace_graph.find_by_name("dev_only")[0]
        [edge] = inverted[dev_only]
        assert edge.from_key == dev_only
        assert edge.to_key == workspace_graph.root
        assert edge.is_dev

    def test_double_inversion_round_trips(self, workspace_graph):
        forward = workspace_graph.adjacency()
        twice = invert_adjacency(invert_adjacency(forward))
        assert _edge_set(twice) == _edge_set(forward)

    def test_inverted_root_has_no_dependents(self, workspace_graph):
        inverted = invert_adjacency(workspace_graph.adjacency())
        assert inverted[workspace_graph.root] == []


class TestVersionSortKey:
    def test_numeric_components(self):
        assert version_sort_key("1.10.0") > version_sort_key("1.9.3")

    def test_prerelease_before_release(self):
        assert version_sort_key("1.0.0-alpha") < version_sort_key("1.0.0")

    def test_numeric_prerelease_identifiers(self):
        assert version_sort_key("1.0.0-beta.2") < version_sort_key("1.0.0-beta.11")
        assert version_sort_key("1.0.0-alpha.1") < version_sort_key("1.0.0-alpha.beta")

    def test_build_metadata_ignored(self):
        assert version_sort_key("1.0.0+build.5") == version_sort_key("1.0.0")

    def test_unparseable_sorts_last(self):
        assert version_sort_key("99.0.0") < version_sort_key("not-a-version")
        assert version_sort_key("1.0") > version_sort_key("1.0.0")


class TestFindByName:
    def test_prerelease_order(self, make_graph):
        graph = make_graph({
            "app": ["x@1.0.0-beta.11", "y"],
            "y": ["x@1.0.0-beta.2"],
        })
        assert [k.version for k in graph.find_by_name("x")] == ["1.0.0-beta.2", "1.0.0-beta.11"]

    def test_release_after_prereleases(self, make_graph):
        graph = make_graph({"app": ["x@1.0.0", "x@1.0.0-rc.1", "x@0.9.12"]})
        assert [k.version for k in graph.find_by_name("x")] == ["0.9.12", "1.0.0-rc.1", "1.0.0"]
