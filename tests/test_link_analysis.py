"""Тесты для algorithms/link_analysis.py."""

import math

import pytest
from conftest import build_graph

from graph_engine.algorithms.link_analysis import (
    eigenvector_centrality,
    hits,
    katz_centrality,
    node_hits,
    node_katz_centrality,
    pagerank,
    pagerank_centrality,
    personalized_pagerank,
    top_pagerank_nodes,
)
from graph_engine.config.optimization import get_preset_policy
from graph_engine.core.errors import InvalidTopologyError, NodeNotFoundError


@pytest.fixture
def inward_star():
    """Листья ссылаются на центр."""
    return build_graph([(leaf, "hub") for leaf in ("l1", "l2", "l3")], directed=True)


@pytest.fixture
def outward_star():
    """Центр ссылается на листья."""
    return build_graph([("hub", leaf) for leaf in ("l1", "l2", "l3", "l4")], directed=True)


class TestPageRank:
    def test_cycle_is_uniform(self, cyclic_digraph):
        result = pagerank(cyclic_digraph)
        assert result.converged
        for rank in result.ranks.values():
            assert rank == pytest.approx(1.0 / 3.0)

    def test_ranks_sum_to_one_with_dangling_nodes(self, chain_digraph):
        result = pagerank(chain_digraph)
        assert math.fsum(result.ranks.values()) == pytest.approx(1.0)
        assert result.ranks["d"] > result.ranks["a"]

    def test_hub_ranks_highest(self, inward_star):
        ranks = pagerank_centrality(inward_star)
        assert max(ranks, key=ranks.get) == "hub"

    def test_initial_ranks_are_normalized(self, cyclic_digraph):
        result = pagerank(cyclic_digraph, initial_ranks={"a": 5.0}, max_iterations=300)
        for rank in result.ranks.values():
            assert rank == pytest.approx(1.0 / 3.0, abs=1e-4)

    def test_not_converged(self, chain_digraph):
        result = pagerank(chain_digraph, max_iterations=1)
        assert not result.converged
        assert result.iterations == 1

    def test_empty_graph(self, empty_digraph):
        result = pagerank(empty_digraph)
        assert result.ranks == {}
        assert result.converged

    def test_undirected_raises(self, path_graph):
        with pytest.raises(InvalidTopologyError, match="PageRank requires a directed graph"):
            pagerank(path_graph)

    def test_bad_damping(self, cyclic_digraph):
        with pytest.raises(InvalidTopologyError, match="Damping factor must be between 0 and 1"):
            pagerank(cyclic_digraph, damping=1.5)

    def test_weighted(self):
        graph = build_graph([("a", "b", 9.0), ("a", "c", 1.0), ("b", "a"), ("c", "a")], directed=True)
        ranks = pagerank(graph, weighted=True).ranks
        assert ranks["b"] > ranks["c"]

    def test_policy_does_not_change_result(self, weighted_digraph):
        policy = get_preset_policy("default", csr_threshold=0)
        plain = pagerank(weighted_digraph).ranks
        routed = pagerank(weighted_digraph, policy=policy).ranks
        for node, rank in plain.items():
            assert routed[node] == pytest.approx(rank)


class TestPersonalizedPageRank:
    def test_personal_node_dominates(self, chain_digraph):
        result = personalized_pagerank(chain_digraph, ["a"])
        assert max(result.ranks, key=result.ranks.get) == "a"
        assert math.fsum(result.ranks.values()) == pytest.approx(1.0)

    def test_empty_personal_nodes_is_regular_pagerank(self, chain_digraph):
        personal = personalized_pagerank(chain_digraph, []).ranks
        regular = pagerank(chain_digraph).ranks
        assert personal == pytest.approx(regular)

    def test_unknown_personal_node(self, chain_digraph):
        with pytest.raises(NodeNotFoundError):
            personalized_pagerank(chain_digraph, ["zz"])


class TestTopPageRank:
    def test_top_one(self, inward_star):
        top = top_pagerank_nodes(inward_star, 1)
        assert len(top) == 1
        assert top[0][0] == "hub"

    def test_non_positive_k(self, inward_star):
        assert top_pagerank_nodes(inward_star, 0) == []


class TestHITS:
    def test_cycle_is_uniform(self, cyclic_digraph):
        result = hits(cyclic_digraph)
        assert result.converged
        for node in ("a", "b", "c"):
            assert result.hubs[node] == pytest.approx(1.0 / 3.0)
            assert result.authorities[node] == pytest.approx(1.0 / 3.0)

    def test_hub_and_authorities(self, outward_star):
        result = hits(outward_star)
        assert result.hubs["hub"] == pytest.approx(1.0)
        assert result.authorities["hub"] == 0.0
        assert result.authorities["l1"] == pytest.approx(0.25)

    def test_empty_graph(self, empty_digraph):
        result = hits(empty_digraph)
        assert result.converged
        assert result.hubs == {}

    def test_node_hits(self, outward_star):
        hub, authority = node_hits(outward_star, "l2")
        assert hub == 0.0
        assert authority == pytest.approx(0.25)
        with pytest.raises(NodeNotFoundError):
            node_hits(outward_star, "zz")


class TestKatz:
    def test_isolated_node_gets_beta(self):
        graph = build_graph([("a", "b")], directed=True, nodes=["solo"])
        scores = katz_centrality(graph, beta=2.0)
        assert scores["solo"] == pytest.approx(2.0)
        assert scores["b"] == pytest.approx(2.0 + 0.1 * 2.0)

    def test_normalized(self):
        graph = build_graph([("a", "b")], directed=True)
        scores = katz_centrality(graph, normalized=True)
        assert scores == {"a": pytest.approx(0.0), "b": pytest.approx(1.0)}

    def test_equal_scores_stay_equal(self, cyclic_digraph):
        scores = katz_centrality(cyclic_digraph, normalized=True)
        assert len({round(value, 9) for value in scores.values()}) == 1

    def test_path_scores_grow_toward_centre(self):
        # lambda_max пути из пяти узлов равна sqrt(3), alpha = 0.3 < 1 / sqrt(3)
        graph = build_graph([("a", "b"), ("b", "c"), ("c", "d"), ("d", "e")])
        scores = katz_centrality(graph, alpha=0.3)
        assert scores["a"] < scores["b"] < scores["c"]
        assert scores["e"] < scores["d"] < scores["c"]
        assert scores["a"] == pytest.approx(scores["e"])
        assert scores["b"] == pytest.approx(1.6 / 0.73, rel=1e-4)
        assert scores["c"] == pytest.approx(1.0 + 0.6 * 1.6 / 0.73, rel=1e-4)

    def test_node_katz(self, chain_digraph):
        assert node_katz_centrality(chain_digraph, "a") == pytest.approx(1.0)
        with pytest.raises(NodeNotFoundError):
            node_katz_centrality(chain_digraph, "zz")

    def test_empty_graph(self, empty_graph):
        assert katz_centrality(empty_graph) == {}


class TestEigenvector:
    def test_triangle_is_uniform(self, triangle_graph):
        scores = eigenvector_centrality(triangle_graph)
        for value in scores.values():
            assert value == pytest.approx(1.0 / math.sqrt(3.0), abs=1e-4)

    def test_star_center(self, star_graph):
        scores = eigenvector_centrality(star_graph)
        assert scores["hub"] == pytest.approx(1.0 / math.sqrt(2.0), abs=1e-4)
        assert scores["l1"] == pytest.approx(1.0 / math.sqrt(8.0), abs=1e-4)

    def test_empty_graph(self, empty_graph):
        assert eigenvector_centrality(empty_graph) == {}
