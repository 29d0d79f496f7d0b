"""Pytest fixtures and configuration."""

import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from graph_engine.core.graph import Graph


def build_graph(edges, *, directed=False, nodes=()):
    """Helper для создания Graph из списка `(u, v)` или `(u, v, w)`."""
    graph = Graph(directed=directed)
    for node_id in nodes:
        graph.add_node(node_id)
    for edge in edges:
        if len(edge) == 3:
            graph.add_edge(edge[0], edge[1], edge[2])
        else:
            graph.add_edge(edge[0], edge[1])
    return graph


@pytest.fixture
def empty_graph():
    """Пустой неориентированный граф."""
    return Graph()


@pytest.fixture
def empty_digraph():
    """Пустой ориентированный граф."""
    return Graph(directed=True)


@pytest.fixture
def triangle_graph():
    """Треугольник a-b-c."""
    return build_graph([("a", "b"), ("b", "c"), ("c", "a")])


@pytest.fixture
def path_graph():
    """Путь a-b-c-d."""
    return build_graph([("a", "b"), ("b", "c"), ("c", "d")])


@pytest.fixture
def star_graph():
    """Звезда: центр hub и четыре листа."""
    return build_graph([("hub", leaf) for leaf in ("l1", "l2", "l3", "l4")])


@pytest.fixture
def two_triangles():
    """Два треугольника, соединённые мостом c-d."""
    return build_graph(
        [
            ("a", "b"),
            ("b", "c"),
            ("c", "a"),
            ("d", "e"),
            ("e", "f"),
            ("f", "d"),
            ("c", "d"),
        ]
    )


@pytest.fixture
def weighted_digraph():
    """Взвешенный directed graph для кратчайших путей."""
    return build_graph(
        [
            ("A", "B", 4),
            ("A", "C", 2),
            ("C", "B", 1),
            ("B", "D", 5),
            ("C", "D", 8),
            ("C", "E", 10),
            ("D", "E", 2),
            ("D", "F", 6),
            ("E", "F", 2),
        ],
        directed=True,
    )


@pytest.fixture
def dag():
    """Ориентированный ацикличный граф с параллельными ветками."""
    # task -> a, b (parallel) -> c
    return build_graph(
        [("task", "a"), ("task", "b"), ("a", "c"), ("b", "c")],
        directed=True,
    )


@pytest.fixture
def cyclic_digraph():
    """Граф с циклом a -> b -> c -> a."""
    return build_graph([("a", "b"), ("b", "c"), ("c", "a")], directed=True)


@pytest.fixture
def chain_digraph():
    """Цепочка a -> b -> c -> d."""
    return build_graph([("a", "b"), ("b", "c"), ("c", "d")], directed=True)
