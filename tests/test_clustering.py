"""Тесты для algorithms/clustering.py."""

import math

import pytest
from conftest import build_graph

from graph_engine.algorithms.clustering import (
    LaplacianType,
    calculate_mcl_modularity,
    cut_dendrogram,
    cut_dendrogram_k_clusters,
    degeneracy_ordering,
    get_k_core,
    get_k_core_subgraph,
    hierarchical_clustering,
    k_core_decomposition,
    k_truss,
    markov_clustering,
    modularity_hierarchical_clustering,
    spectral_clustering,
)
from graph_engine.algorithms.modularity import calculate_modularity
from graph_engine.core.errors import InvalidTopologyError

TRIANGLES = [{"a", "b", "c"}, {"d", "e", "f"}]


@pytest.fixture
def disjoint_triangles():
    """Два треугольника без моста."""
    return build_graph([("a", "b"), ("b", "c"), ("c", "a"), ("d", "e"), ("e", "f"), ("f", "d")])


@pytest.fixture
def triangle_with_tail():
    """Треугольник a-b-c и висячий узел d на c."""
    return build_graph([("a", "b"), ("b", "c"), ("c", "a"), ("c", "d")])


def _sorted_sets(clusters):
    return sorted(clusters, key=lambda members: sorted(members))


class TestSpectralClustering:
    @pytest.mark.parametrize("laplacian", list(LaplacianType))
    def test_separates_components(self, disjoint_triangles, laplacian):
        result = spectral_clustering(disjoint_triangles, 2, laplacian_type=laplacian)
        assert _sorted_sets(set(c) for c in result.communities) == TRIANGLES
        assert result.cluster_assignments["a"] == result.cluster_assignments["c"]
        assert result.cluster_assignments["a"] != result.cluster_assignments["d"]

    def test_spectrum(self, disjoint_triangles):
        result = spectral_clustering(disjoint_triangles, 2)
        assert len(result.eigenvalues) == 2
        for value in result.eigenvalues:
            assert value == pytest.approx(0.0, abs=1e-9)
        assert len(result.eigenvectors) == 2
        assert len(result.eigenvectors[0]) == 6

    def test_labels_are_contiguous(self, two_triangles):
        result = spectral_clustering(two_triangles, 2)
        assert set(result.cluster_assignments.values()) == set(range(len(result.communities)))

    def test_k_not_less_than_n(self, triangle_graph):
        result = spectral_clustering(triangle_graph, 3)
        assert result.communities == [["a"], ["b"], ["c"]]
        assert result.eigenvalues is None

    def test_invalid_k(self, triangle_graph):
        with pytest.raises(InvalidTopologyError, match="k must be a positive integer"):
            spectral_clustering(triangle_graph, 0)


class TestMarkovClustering:
    def test_triangle_is_one_cluster(self, triangle_graph):
        result = markov_clustering(triangle_graph)
        assert result.communities == [["a", "b", "c"]]
        assert result.attractors == {"a", "b", "c"}
        assert result.converged
        assert result.iterations == 1

    def test_disjoint_triangles(self, disjoint_triangles):
        result = markov_clustering(disjoint_triangles)
        assert [set(members) for members in result.communities] == TRIANGLES
        assert result.cluster_assignments["b"] == result.cluster_assignments["c"]
        assert result.cluster_assignments["a"] != result.cluster_assignments["d"]

    @pytest.mark.parametrize("self_loops", [True, False])
    def test_every_node_in_exactly_one_cluster(self, star_graph, self_loops):
        result = markov_clustering(star_graph, self_loops=self_loops)
        members = [node for community in result.communities for node in community]
        assert sorted(members) == sorted(star_graph.node_ids())
        assert set(result.cluster_assignments) == set(star_graph.node_ids())

    def test_iteration_limit(self, path_graph):
        result = markov_clustering(path_graph, max_iterations=1, tolerance=0.0)
        assert result.iterations == 1
        assert not result.converged

    def test_empty_graph(self, empty_graph):
        result = markov_clustering(empty_graph)
        assert result.communities == []
        assert result.converged

    def test_invalid_parameters(self, triangle_graph):
        with pytest.raises(InvalidTopologyError, match="expansion must be a positive integer"):
            markov_clustering(triangle_graph, expansion=0)
        with pytest.raises(InvalidTopologyError, match="inflation must be greater than 1"):
            markov_clustering(triangle_graph, inflation=1.0)

    def test_modularity(self, disjoint_triangles):
        communities = markov_clustering(disjoint_triangles).communities
        assert calculate_mcl_modularity(disjoint_triangles, communities) == pytest.approx(0.5)
        assert calculate_mcl_modularity(disjoint_triangles, communities) == pytest.approx(
            calculate_modularity(disjoint_triangles, communities)
        )


class TestHierarchicalClustering:
    def test_path_dendrogram(self, path_graph):
        result = hierarchical_clustering(path_graph)
        assert result.root.height == 2
        assert result.root.members == {"a", "b", "c", "d"}
        assert len(result.dendrogram) == 7
        assert len(result.clusters[0]) == 4
        assert _sorted_sets(result.clusters[1]) == [{"a", "b"}, {"c", "d"}]
        assert result.clusters[2] == [{"a", "b", "c", "d"}]

    def test_leaves(self, path_graph):
        result = hierarchical_clustering(path_graph)
        leaves = [node for node in result.dendrogram if node.is_leaf]
        assert len(leaves) == 4
        assert all(leaf.height == 0 for leaf in leaves)

    def test_cut_by_height(self, path_graph):
        root = hierarchical_clustering(path_graph).root
        assert len(cut_dendrogram(root, 0)) == 4
        assert len(cut_dendrogram(root, 5)) == 1

    def test_cut_k_clusters(self, path_graph):
        root = hierarchical_clustering(path_graph, linkage="complete").root
        assert len(cut_dendrogram_k_clusters(root, 2)) == 2
        assert cut_dendrogram_k_clusters(root, 1) == [{"a", "b", "c", "d"}]
        assert len(cut_dendrogram_k_clusters(root, 4)) == 4
        assert cut_dendrogram_k_clusters(root, 0) == []

    def test_disconnected_graph_gets_forest_root(self, disjoint_triangles):
        result = hierarchical_clustering(disjoint_triangles, linkage="average")
        assert result.root.id == "root-forest"
        assert math.isinf(result.root.distance)
        assert len(result.root.trees) == 2
        assert _sorted_sets(cut_dendrogram(result.root, result.root.height - 1)) == TRIANGLES

    def test_ward_is_accepted(self, path_graph):
        result = hierarchical_clustering(path_graph, linkage="ward")
        assert result.root.members == {"a", "b", "c", "d"}

    def test_empty_graph(self, empty_graph):
        result = hierarchical_clustering(empty_graph)
        assert result.root.id == "empty"
        assert result.dendrogram == []


class TestModularityHierarchical:
    def test_merges_lightest_pair_first(self, two_triangles):
        result = modularity_hierarchical_clustering(two_triangles)
        assert len(result.dendrogram) == 11
        first_merge = result.dendrogram[6]
        assert first_merge.members == {"a", "b"}
        assert first_merge.distance == pytest.approx(-(1 / 7 - 4 / 196))
        assert result.root.members == set("abcdef")


class TestKCore:
    def test_decomposition(self, triangle_with_tail):
        result = k_core_decomposition(triangle_with_tail)
        assert result.coreness == {"a": 2, "b": 2, "c": 2, "d": 1}
        assert result.cores == {2: {"a", "b", "c"}, 1: {"d"}}
        assert result.max_core == 2

    def test_self_loops_ignored(self, triangle_with_tail):
        triangle_with_tail.add_edge("d", "d")
        assert k_core_decomposition(triangle_with_tail).coreness["d"] == 1

    def test_isolated_node(self):
        graph = build_graph([("a", "b")], nodes=["solo"])
        assert k_core_decomposition(graph).coreness["solo"] == 0

    def test_empty_graph(self, empty_graph):
        assert k_core_decomposition(empty_graph).max_core == 0

    def test_k_core(self, triangle_with_tail):
        assert get_k_core(triangle_with_tail, 2) == {"a", "b", "c"}
        assert get_k_core(triangle_with_tail, 3) == set()

    def test_k_core_subgraph(self, triangle_with_tail):
        subgraph = get_k_core_subgraph(triangle_with_tail, 2)
        assert subgraph.node_count == 3
        assert subgraph.edge_count == 3
        assert not subgraph.has_node("d")

    def test_degeneracy_ordering(self, triangle_with_tail):
        assert degeneracy_ordering(triangle_with_tail) == ["d", "a", "b", "c"]


class TestKTruss:
    def test_triangle_with_tail(self, triangle_with_tail):
        assert k_truss(triangle_with_tail, 3) == {("a", "b"), ("a", "c"), ("b", "c")}
        assert ("c", "d") in k_truss(triangle_with_tail, 2)

    def test_clique(self):
        nodes = ["a", "b", "c", "d"]
        graph = build_graph([(u, v) for i, u in enumerate(nodes) for v in nodes[i + 1 :]])
        assert len(k_truss(graph, 4)) == 6
        assert k_truss(graph, 5) == set()

    def test_invalid_k(self, triangle_graph):
        with pytest.raises(InvalidTopologyError, match="k must be at least 2 for k-truss"):
            k_truss(triangle_graph, 1)
