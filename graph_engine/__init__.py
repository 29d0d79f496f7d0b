"""
Graph Engine

Библиотека графовых алгоритмов на чистом Python:

1. Изменяемый `Graph` и неизменяемый CSR-снимок `CSRGraph`
2. Обходы, компоненты связности и SCC
3. Кратчайшие пути: Дейкстра, Беллман-Форд, Флойд-Уоршелл, A*
4. Центральности, PageRank и HITS
5. Остовные деревья, сообщества и кластеризация
6. Потоки, паросочетания и предсказание связей

Пример использования:

    from graph_engine import Graph, dijkstra, louvain

    graph = Graph(directed=False)
    graph.add_edge("a", "b", 2.0)
    graph.add_edge("b", "c", 1.0)

    paths = dijkstra(graph, "a")
    print(paths["c"].distance, paths["c"].path)

    communities = louvain(graph)
    print(communities.num_communities, communities.modularity)

Логирование через loguru отключено до вызова `setup_logging()`.
"""

from graph_engine.algorithms import *  # noqa: F403
from graph_engine.algorithms import __all__ as _algorithms_all
from graph_engine.config import (
    EngineSettings,
    OptimizationPolicy,
    OptimizationPreset,
    Representation,
    get_preset_policy,
    load_settings,
    logger,
    setup_logging,
)
from graph_engine.core import (
    CSRGraph,
    Edge,
    ElementNotFoundError,
    Graph,
    GraphAdapter,
    GraphConfig,
    GraphError,
    InvalidTopologyError,
    NegativeCycleError,
    NegativeWeightError,
    Node,
    NodeId,
    NodeNotFoundError,
    ReadableGraph,
    create_optimized_graph,
    from_rustworkx,
    is_csr_graph,
    to_csr_graph,
    to_rustworkx,
)
from graph_engine.utils import PriorityQueue, UnionFind

logger.disable("graph_engine")

__version__ = "0.1.0"

__all__ = [
    # Core
    "CSRGraph",
    "Edge",
    "Graph",
    "GraphAdapter",
    "GraphConfig",
    "Node",
    "NodeId",
    "ReadableGraph",
    "create_optimized_graph",
    "from_rustworkx",
    "is_csr_graph",
    "to_csr_graph",
    "to_rustworkx",
    # Errors
    "ElementNotFoundError",
    "GraphError",
    "InvalidTopologyError",
    "NegativeCycleError",
    "NegativeWeightError",
    "NodeNotFoundError",
    # Config
    "EngineSettings",
    "OptimizationPolicy",
    "OptimizationPreset",
    "Representation",
    "get_preset_policy",
    "load_settings",
    "setup_logging",
    # Utils
    "PriorityQueue",
    "UnionFind",
    *_algorithms_all,
]
