"""Тесты для algorithms/link_prediction.py."""

import math

import pytest
from conftest import build_graph

from graph_engine.algorithms.link_prediction import (
    adamic_adar_for_pairs,
    adamic_adar_prediction,
    adamic_adar_score,
    common_neighbors_prediction,
    common_neighbors_score,
    compare_link_predictors,
    evaluate_link_prediction,
    get_top_candidates_for_node,
)


class TestScores:
    def test_common_neighbors(self, path_graph):
        assert common_neighbors_score(path_graph, "a", "c") == 1.0
        assert common_neighbors_score(path_graph, "a", "d") == 0.0

    def test_adamic_adar(self, path_graph):
        assert adamic_adar_score(path_graph, "a", "c") == pytest.approx(1.0 / math.log(2))

    def test_unknown_node_scores_zero(self, path_graph):
        assert common_neighbors_score(path_graph, "a", "zz") == 0.0
        assert adamic_adar_score(path_graph, "zz", "a") == 0.0

    def test_directed_mode_follows_paths(self):
        graph = build_graph([("a", "z"), ("z", "t")], directed=True)
        assert common_neighbors_score(graph, "a", "t", directed=True) == 1.0
        assert common_neighbors_score(graph, "t", "a", directed=True) == 0.0
        # z имеет полустепень исхода 1, вклад равен 1
        assert adamic_adar_score(graph, "a", "t", directed=True) == pytest.approx(1.0)

    def test_directed_graph_ignores_direction_by_default(self):
        graph = build_graph([("a", "z"), ("t", "z")], directed=True)
        assert common_neighbors_score(graph, "a", "t") == 1.0


class TestPrediction:
    def test_star_leaves(self, star_graph):
        predictions = common_neighbors_prediction(star_graph)
        assert len(predictions) == 6
        assert all(item.score == 1.0 for item in predictions)

    def test_top_k(self, star_graph):
        assert len(common_neighbors_prediction(star_graph, top_k=2)) == 2

    def test_existing_edges_skipped(self, triangle_graph):
        assert common_neighbors_prediction(triangle_graph) == []
        assert len(common_neighbors_prediction(triangle_graph, include_existing=True)) == 3

    def test_adamic_adar_two_triangles(self, two_triangles):
        predictions = adamic_adar_prediction(two_triangles)
        pairs = {(item.source, item.target) for item in predictions}
        assert pairs == {("a", "d"), ("b", "d"), ("c", "e"), ("c", "f")}
        for item in predictions:
            assert item.score == pytest.approx(1.0 / math.log(3))

    def test_sorted_by_score(self):
        graph = build_graph([("a", "x"), ("b", "x"), ("a", "y"), ("b", "y"), ("c", "y")])
        predictions = common_neighbors_prediction(graph)
        assert (predictions[0].source, predictions[0].target, predictions[0].score) == ("a", "b", 2.0)
        assert [item.score for item in predictions] == sorted((item.score for item in predictions), reverse=True)

    def test_for_pairs_keeps_order_and_zeros(self, path_graph):
        scores = adamic_adar_for_pairs(path_graph, [("a", "d"), ("a", "c")])
        assert [(item.source, item.target) for item in scores] == [("a", "d"), ("a", "c")]
        assert scores[0].score == 0.0
        assert scores[1].score == pytest.approx(1.0 / math.log(2))


class TestCandidates:
    def test_top_candidates(self, star_graph):
        candidates = get_top_candidates_for_node(star_graph, "l1")
        assert {item.target for item in candidates} == {"l2", "l3", "l4"}

    def test_restricted_pool(self, star_graph):
        candidates = get_top_candidates_for_node(star_graph, "l1", candidates=["l2", "zz"], metric="adamic_adar")
        assert [item.target for item in candidates] == ["l2"]
        assert candidates[0].score == pytest.approx(1.0 / math.log(4))

    def test_unknown_node(self, star_graph):
        assert get_top_candidates_for_node(star_graph, "zz") == []


class TestEvaluation:
    def test_perfect_split(self, two_triangles):
        metrics = evaluate_link_prediction(two_triangles, [("a", "d")], [("a", "e")])
        assert metrics.precision == 1.0
        assert metrics.recall == 1.0
        assert metrics.f1 == 1.0
        assert metrics.auc == 1.0

    def test_ties_favor_test_edges(self, two_triangles):
        metrics = evaluate_link_prediction(two_triangles, [("a", "e")], [("b", "e")])
        assert metrics.auc == 1.0
        assert metrics.precision == 1.0

    def test_single_class_auc(self, two_triangles):
        assert evaluate_link_prediction(two_triangles, [("a", "d")], []).auc == 0.5

    def test_compare(self, two_triangles):
        results = compare_link_predictors(two_triangles, [("a", "d")], [("a", "e")])
        assert set(results) == {"common_neighbors", "adamic_adar"}
        assert results["common_neighbors"].f1 == 1.0
