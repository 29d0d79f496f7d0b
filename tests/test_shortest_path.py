"""Тесты для algorithms/shortest_path.py."""

import math

import pytest
from conftest import build_graph

from graph_engine.algorithms.shortest_path import (
    all_pairs_shortest_path,
    astar,
    bellman_ford,
    bellman_ford_path,
    bidirectional_dijkstra,
    dijkstra,
    dijkstra_path,
    euclidean_distance,
    floyd_warshall,
    floyd_warshall_path,
    grid_heuristic,
    has_negative_cycle,
    manhattan_distance,
    parse_grid_node,
    single_source_shortest_path,
    transitive_closure,
    zero_heuristic,
)
from graph_engine.core.csr import CSRGraph
from graph_engine.core.errors import (
    InvalidTopologyError,
    NegativeCycleError,
    NegativeWeightError,
    NodeNotFoundError,
)


@pytest.fixture
def negative_digraph():
    """Граф с отрицательным ребром e -> c, но без отрицательного цикла."""
    return build_graph(
        [
            ("a", "b", 6),
            ("a", "c", 2),
            ("c", "b", 2),
            ("b", "d", 5),
            ("c", "d", 8),
            ("d", "e", 2),
            ("e", "c", -3),
        ],
        directed=True,
    )


@pytest.fixture
def negative_cycle_digraph():
    """Цикл b -> c -> b суммарного веса -1."""
    return build_graph([("a", "b", 1), ("b", "c", -2), ("c", "b", 1), ("c", "d", 1)], directed=True)


@pytest.fixture
def grid_graph():
    """Сетка 3x3 с узлами вида "x,y"."""
    edges = []
    for x in range(3):
        for y in range(3):
            if x < 2:
                edges.append((f"{x},{y}", f"{x + 1},{y}"))
            if y < 2:
                edges.append((f"{x},{y}", f"{x},{y + 1}"))
    return build_graph(edges)


class TestDijkstra:
    def test_distances(self, weighted_digraph):
        result = dijkstra(weighted_digraph, "A")
        assert result["D"].distance == 8.0
        assert result["E"].distance == 10.0
        assert result["F"].distance == 12.0
        assert result["B"].path == ["A", "C", "B"]
        assert result["B"].predecessor == "C"
        assert result["A"].predecessor is None

    def test_only_reachable_nodes(self, chain_digraph):
        result = dijkstra(chain_digraph, "c")
        assert set(result) == {"c", "d"}

    def test_target_stops_early(self, weighted_digraph):
        result = dijkstra(weighted_digraph, "A", target="B")
        assert result["B"].distance == 3.0
        assert "F" not in result

    def test_path(self, weighted_digraph):
        result = dijkstra_path(weighted_digraph, "A", "F")
        assert result.path == ["A", "C", "B", "D", "E", "F"]
        assert result.distance == 12.0

    def test_unreachable_path(self, chain_digraph):
        assert dijkstra_path(chain_digraph, "d", "a") is None

    def test_negative_weight_raises(self, negative_digraph):
        with pytest.raises(NegativeWeightError):
            dijkstra(negative_digraph, "a")

    def test_negative_weight_is_topology_error(self, negative_digraph):
        with pytest.raises(InvalidTopologyError):
            dijkstra(negative_digraph, "a")

    def test_unknown_source(self, weighted_digraph):
        with pytest.raises(NodeNotFoundError, match="Source node Z not found in graph"):
            dijkstra(weighted_digraph, "Z")

    def test_undirected(self):
        graph = build_graph([("a", "b", 1), ("b", "c", 1), ("a", "c", 5)])
        assert dijkstra(graph, "c")["a"].distance == 2.0

    def test_csr_gives_same_distances(self, weighted_digraph):
        csr = CSRGraph.from_graph(weighted_digraph)
        plain = {node: r.distance for node, r in dijkstra(weighted_digraph, "A").items()}
        snapshot = {node: r.distance for node, r in dijkstra(csr, "A").items()}
        assert plain == snapshot

    def test_cutoff(self, weighted_digraph):
        result = single_source_shortest_path(weighted_digraph, "A", cutoff=5)
        assert set(result) == {"A", "B", "C"}

    def test_all_pairs(self, weighted_digraph):
        result = all_pairs_shortest_path(weighted_digraph)
        assert result["C"]["F"].distance == 10.0
        assert "A" not in result["F"]


class TestBidirectionalDijkstra:
    def test_matches_dijkstra_path(self, weighted_digraph):
        result = bidirectional_dijkstra(weighted_digraph, "A", "F")
        assert result.path == ["A", "C", "B", "D", "E", "F"]
        assert result.distance == 12.0
        assert result.predecessor == "E"

    def test_undirected_weighted(self):
        graph = build_graph(
            [("a", "b", 4), ("a", "c", 2), ("b", "c", 1), ("b", "d", 5), ("c", "d", 8), ("c", "e", 10), ("d", "e", 2)],
        )
        result = bidirectional_dijkstra(graph, "a", "e")
        assert result.path == ["a", "c", "b", "d", "e"]
        assert result.distance == 10.0

    def test_directed_cycle_respects_direction(self):
        graph = build_graph([("a", "b", 1), ("b", "c", 1), ("c", "d", 1), ("d", "a", 1)], directed=True)
        assert bidirectional_dijkstra(graph, "a", "c").path == ["a", "b", "c"]
        assert bidirectional_dijkstra(graph, "c", "a").path == ["c", "d", "a"]

    def test_long_chain_agrees_with_dijkstra(self):
        graph = build_graph([(i, i + 1, 1 + (i % 3)) for i in range(30)] + [(0, 15, 40), (10, 25, 5)])
        for target in (7, 15, 30):
            expected = dijkstra_path(graph, 0, target)
            result = bidirectional_dijkstra(graph, 0, target)
            assert result.distance == expected.distance
            assert result.path[0] == 0 and result.path[-1] == target

    def test_dispatch_from_dijkstra_path(self, weighted_digraph):
        assert dijkstra_path(weighted_digraph, "A", "E", bidirectional=True).distance == 10.0

    def test_source_equals_target(self):
        result = bidirectional_dijkstra(build_graph([], nodes=["a"]), "a", "a")
        assert result.distance == 0.0
        assert result.path == ["a"]

    def test_self_loop_ignored(self):
        graph = build_graph([("A", "A", 5), ("A", "B", 1)])
        assert bidirectional_dijkstra(graph, "A", "B").path == ["A", "B"]

    def test_unreachable(self, chain_digraph):
        assert bidirectional_dijkstra(chain_digraph, "d", "a") is None
        assert bidirectional_dijkstra(build_graph([], nodes=["a", "b"]), "a", "b") is None

    def test_csr_snapshot(self, weighted_digraph):
        assert bidirectional_dijkstra(CSRGraph.from_graph(weighted_digraph), "A", "F").distance == 12.0

    def test_negative_weight_raises(self, negative_digraph):
        with pytest.raises(NegativeWeightError):
            bidirectional_dijkstra(negative_digraph, "a", "d")

    def test_unknown_target(self, weighted_digraph):
        with pytest.raises(NodeNotFoundError, match="Target node Z not found in graph"):
            bidirectional_dijkstra(weighted_digraph, "A", "Z")


class TestBellmanFord:
    def test_distances_with_negative_edge(self, negative_digraph):
        result = bellman_ford(negative_digraph, "a")
        assert not result.has_negative_cycle
        assert result.distances == {"a": 0.0, "b": 4.0, "c": 2.0, "d": 9.0, "e": 11.0}

    def test_unreachable_is_infinite(self, chain_digraph):
        result = bellman_ford(chain_digraph, "c")
        assert result.distances["a"] == math.inf
        assert result.predecessors["a"] is None

    def test_negative_cycle_detected(self, negative_cycle_digraph):
        result = bellman_ford(negative_cycle_digraph, "a")
        assert result.has_negative_cycle
        assert set(result.negative_cycle_nodes) == {"b", "c"}

    def test_path_raises_on_negative_cycle(self, negative_cycle_digraph):
        with pytest.raises(NegativeCycleError, match="Graph contains a negative cycle"):
            bellman_ford_path(negative_cycle_digraph, "a", "d")

    def test_path(self, negative_digraph):
        result = bellman_ford_path(negative_digraph, "a", "e")
        assert result.path == ["a", "c", "b", "d", "e"]
        assert result.distance == 11.0

    def test_has_negative_cycle(self, negative_cycle_digraph, negative_digraph):
        assert has_negative_cycle(negative_cycle_digraph)
        assert not has_negative_cycle(negative_digraph)


class TestFloydWarshall:
    def test_distances(self):
        graph = build_graph(
            [("A", "B", 1), ("B", "C", 2), ("A", "C", 5), ("C", "D", 1), ("B", "D", 4)],
            directed=True,
        )
        result = floyd_warshall(graph)
        assert result.distances["A"]["C"] == 3.0
        assert result.distances["A"]["D"] == 4.0
        assert result.distances["B"]["D"] == 3.0
        assert result.distances["D"]["A"] == math.inf
        assert floyd_warshall_path(graph, "A", "D").path == ["A", "B", "C", "D"]

    def test_agrees_with_dijkstra(self, weighted_digraph):
        result = floyd_warshall(weighted_digraph)
        for source in weighted_digraph.node_ids():
            for target, path in dijkstra(weighted_digraph, source).items():
                assert result.distances[source][target] == pytest.approx(path.distance)

    def test_negative_cycle(self, negative_cycle_digraph):
        result = floyd_warshall(negative_cycle_digraph)
        assert result.has_negative_cycle
        with pytest.raises(NegativeCycleError):
            floyd_warshall_path(negative_cycle_digraph, "a", "d", result)

    def test_path_edge_cases(self, chain_digraph):
        assert floyd_warshall_path(chain_digraph, "d", "a") is None
        assert floyd_warshall_path(chain_digraph, "a", "zz") is None
        assert floyd_warshall_path(chain_digraph, "b", "b").path == ["b"]

    def test_transitive_closure(self, chain_digraph, cyclic_digraph):
        closure = transitive_closure(chain_digraph)
        assert closure["a"] == {"b", "c", "d"}
        assert closure["d"] == set()
        assert "a" in transitive_closure(cyclic_digraph)["a"]


class TestAStar:
    def test_zero_heuristic_matches_dijkstra(self, weighted_digraph):
        result = astar(weighted_digraph, "A", "F", zero_heuristic)
        assert result.path == ["A", "C", "B", "D", "E", "F"]
        assert result.cost == 12.0

    def test_grid_manhattan(self, grid_graph):
        result = astar(grid_graph, "0,0", "2,2", grid_heuristic("manhattan"))
        assert result.cost == 4.0
        assert len(result.path) == 5
        assert result.path[0] == "0,0" and result.path[-1] == "2,2"

    def test_inconsistent_admissible_heuristic_reopens_node(self):
        graph = build_graph([("S", "A", 1), ("A", "B", 1), ("S", "B", 3), ("B", "G", 3)], directed=True)
        estimates = {"S": 0.0, "A": 3.0, "B": 0.0, "G": 0.0}
        result = astar(graph, "S", "G", lambda node, _goal: estimates[node])
        assert result.path == ["S", "A", "B", "G"]
        assert result.cost == 5.0
        assert result.cost == dijkstra_path(graph, "S", "G").distance

    def test_unreachable(self, chain_digraph):
        assert astar(chain_digraph, "d", "a") is None

    def test_unknown_goal(self, chain_digraph):
        with pytest.raises(NodeNotFoundError, match="Goal node q not found in graph"):
            astar(chain_digraph, "a", "q")

    def test_distance_helpers(self):
        assert manhattan_distance((0, 0), (3, 4)) == 7.0
        assert euclidean_distance((0, 0), (3, 4)) == 5.0
        assert parse_grid_node("2,5") == (2, 5)
