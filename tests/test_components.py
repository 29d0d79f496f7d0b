"""Тесты для algorithms/components.py."""

import pytest
from conftest import build_graph

from graph_engine.algorithms.components import (
    condensation_graph,
    connected_components,
    connected_components_dfs,
    get_connected_component,
    is_connected,
    is_strongly_connected,
    is_weakly_connected,
    largest_connected_component,
    number_of_connected_components,
    strongly_connected_components,
    weakly_connected_components,
)
from graph_engine.core.errors import InvalidTopologyError, NodeNotFoundError


@pytest.fixture
def forest():
    """Две компоненты и изолированный узел."""
    return build_graph([("a", "b"), ("b", "c"), ("d", "e")], nodes=["solo"])


@pytest.fixture
def scc_digraph():
    """Две компоненты сильной связности {a, b, c} и {d, e} и одиночка f."""
    return build_graph(
        [("a", "b"), ("b", "c"), ("c", "a"), ("c", "d"), ("d", "e"), ("e", "d"), ("e", "f")],
        directed=True,
    )


class TestConnectedComponents:
    def test_union_find(self, forest):
        components = connected_components(forest)
        assert sorted(sorted(c) for c in components) == [["a", "b", "c"], ["d", "e"], ["solo"]]

    def test_dfs_matches_union_find(self, forest):
        by_dfs = sorted(sorted(c) for c in connected_components_dfs(forest))
        by_uf = sorted(sorted(c) for c in connected_components(forest))
        assert by_dfs == by_uf

    def test_count_and_connectivity(self, forest, triangle_graph, empty_graph):
        assert number_of_connected_components(forest) == 3
        assert not is_connected(forest)
        assert is_connected(triangle_graph)
        assert is_connected(empty_graph)

    def test_largest(self, forest, empty_graph):
        assert sorted(largest_connected_component(forest)) == ["a", "b", "c"]
        assert largest_connected_component(empty_graph) == []

    def test_component_of_node(self, forest):
        assert sorted(get_connected_component(forest, "e")) == ["d", "e"]
        with pytest.raises(NodeNotFoundError):
            get_connected_component(forest, "zz")

    def test_directed_raises(self, dag):
        with pytest.raises(InvalidTopologyError, match="requires an undirected graph"):
            connected_components(dag)


class TestStronglyConnected:
    def test_components(self, scc_digraph):
        components = strongly_connected_components(scc_digraph)
        assert sorted(sorted(c) for c in components) == [["a", "b", "c"], ["d", "e"], ["f"]]

    def test_reverse_topological_order(self, scc_digraph):
        components = strongly_connected_components(scc_digraph)
        assert components[0] == ["f"]
        assert sorted(components[-1]) == ["a", "b", "c"]

    def test_is_strongly_connected(self, cyclic_digraph, dag):
        assert is_strongly_connected(cyclic_digraph)
        assert not is_strongly_connected(dag)

    def test_undirected_raises(self, path_graph):
        with pytest.raises(InvalidTopologyError, match="Strongly connected components require a directed graph"):
            strongly_connected_components(path_graph)

    def test_long_cycle_without_recursion(self):
        n = 5000
        graph = build_graph([(i, (i + 1) % n) for i in range(n)], directed=True)
        assert len(strongly_connected_components(graph)) == 1


class TestWeaklyConnected:
    def test_components(self):
        graph = build_graph([("a", "b"), ("c", "b"), ("d", "e")], directed=True)
        components = weakly_connected_components(graph)
        assert sorted(sorted(c) for c in components) == [["a", "b", "c"], ["d", "e"]]
        assert not is_weakly_connected(graph)

    def test_dag_is_weakly_connected(self, dag):
        assert is_weakly_connected(dag)

    def test_undirected_raises(self, path_graph):
        with pytest.raises(InvalidTopologyError):
            weakly_connected_components(path_graph)


class TestCondensation:
    def test_condensation_is_dag(self, scc_digraph):
        condensed, mapping = condensation_graph(scc_digraph)
        assert condensed.node_count == 3
        assert condensed.edge_count == 2
        assert mapping["a"] == mapping["b"] == mapping["c"]
        assert condensed.has_edge(mapping["c"], mapping["d"])
        assert condensed.has_edge(mapping["e"], mapping["f"])
        members = condensed.get_node(mapping["d"]).data["members"]
        assert sorted(members) == ["d", "e"]
