"""Тесты для algorithms/traversal.py: BFS, DFS, циклы и топосортировка."""

import pytest
from conftest import build_graph

from graph_engine.algorithms.traversal import (
    bfs_distances,
    bfs_with_path_counting,
    breadth_first_search,
    depth_first_search,
    find_cycle,
    has_cycle,
    is_bipartite,
    shortest_path_bfs,
    single_source_shortest_path_bfs,
    topological_sort,
)
from graph_engine.config.optimization import get_preset_policy
from graph_engine.core.csr import CSRGraph
from graph_engine.core.errors import InvalidTopologyError, NodeNotFoundError


class TestBreadthFirstSearch:
    def test_order_and_tree(self, dag):
        result = breadth_first_search(dag, "task")
        assert result.order == ["task", "a", "b", "c"]
        assert result.visited == {"task", "a", "b", "c"}
        assert result.tree == {"task": None, "a": "task", "b": "task", "c": "a"}

    def test_stops_at_target(self, path_graph):
        result = breadth_first_search(path_graph, "a", target_node="b")
        assert result.order == ["a", "b"]

    def test_unknown_start(self, path_graph):
        with pytest.raises(NodeNotFoundError, match="Start node zz not found in graph"):
            breadth_first_search(path_graph, "zz")

    def test_same_result_on_csr(self, weighted_digraph):
        csr = CSRGraph.from_graph(weighted_digraph)
        assert breadth_first_search(csr, "A").order == breadth_first_search(weighted_digraph, "A").order

    def test_policy_does_not_change_result(self, weighted_digraph):
        policy = get_preset_policy("default", csr_threshold=0)
        plain = breadth_first_search(weighted_digraph, "A")
        routed = breadth_first_search(weighted_digraph, "A", policy=policy)
        assert plain.order == routed.order
        assert plain.tree == routed.tree


class TestShortestPathBFS:
    def test_path(self, path_graph):
        assert shortest_path_bfs(path_graph, "a", "d") == ["a", "b", "c", "d"]

    def test_same_node(self, path_graph):
        assert shortest_path_bfs(path_graph, "b", "b") == ["b"]

    def test_unreachable(self, chain_digraph):
        assert shortest_path_bfs(chain_digraph, "d", "a") is None

    def test_unknown_target(self, path_graph):
        with pytest.raises(NodeNotFoundError, match="Target node q not found in graph"):
            shortest_path_bfs(path_graph, "a", "q")

    def test_single_source_paths(self, path_graph):
        paths = single_source_shortest_path_bfs(path_graph, "a")
        assert paths["c"] == ["a", "b", "c"]
        assert paths["a"] == ["a"]

    def test_single_source_cutoff(self, path_graph):
        paths = single_source_shortest_path_bfs(path_graph, "a", cutoff=1)
        assert set(paths) == {"a", "b"}

    def test_distances(self, path_graph):
        assert bfs_distances(path_graph, "a") == {"a": 0, "b": 1, "c": 2, "d": 3}
        assert bfs_distances(path_graph, "a", cutoff=2) == {"a": 0, "b": 1, "c": 2}


class TestPathCounting:
    def test_sigma_counts_shortest_paths(self, dag):
        result = bfs_with_path_counting(dag, "task")
        assert result.sigma["c"] == 2.0
        assert sorted(result.predecessors["c"]) == ["a", "b"]
        assert result.distances["c"] == 2
        assert result.stack[0] == "task"


class TestDepthFirstSearch:
    def test_pre_order(self, dag):
        result = depth_first_search(dag, "task")
        assert result.order == ["task", "a", "c", "b"]
        assert result.tree["c"] == "a"

    def test_post_order(self, dag):
        result = depth_first_search(dag, "task", pre_order=False)
        assert result.order == ["c", "a", "b", "task"]

    def test_stops_at_target(self, chain_digraph):
        result = depth_first_search(chain_digraph, "a", target_node="c")
        assert result.order == ["a", "b", "c"]

    def test_deep_chain_is_iterative(self):
        graph = build_graph([(i, i + 1) for i in range(3000)], directed=True)
        assert len(depth_first_search(graph, 0).order) == 3001


class TestCycles:
    def test_directed_cycle(self, cyclic_digraph):
        cycle = find_cycle(cyclic_digraph)
        assert cycle == ["a", "b", "c"]
        assert has_cycle(cyclic_digraph)

    def test_dag_has_no_cycle(self, dag):
        assert find_cycle(dag) is None
        assert not has_cycle(dag)

    def test_undirected_tree_has_no_cycle(self, path_graph):
        assert not has_cycle(path_graph)

    def test_undirected_triangle(self, triangle_graph):
        assert sorted(find_cycle(triangle_graph)) == ["a", "b", "c"]

    def test_self_loop_is_cycle(self):
        graph = build_graph([("a", "b"), ("b", "b")], directed=True)
        assert find_cycle(graph) == ["b"]


class TestTopologicalSort:
    def test_dag(self, dag):
        order = topological_sort(dag)
        assert order == ["task", "a", "b", "c"]

    def test_cycle_returns_none(self, cyclic_digraph):
        assert topological_sort(cyclic_digraph) is None

    def test_undirected_raises(self, path_graph):
        with pytest.raises(InvalidTopologyError, match="Topological sort requires a directed graph"):
            topological_sort(path_graph)


class TestBipartite:
    def test_even_cycle(self):
        graph = build_graph([("a", "b"), ("b", "c"), ("c", "d"), ("d", "a")])
        assert is_bipartite(graph)

    def test_triangle(self, triangle_graph):
        assert not is_bipartite(triangle_graph)

    def test_directed_raises(self, dag):
        with pytest.raises(InvalidTopologyError):
            is_bipartite(dag)
