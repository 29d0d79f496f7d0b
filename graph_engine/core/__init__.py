"""Ядро: модель графа, CSR-снимок, адаптер и ошибки."""

from graph_engine.core.adapter import (
    GraphAdapter,
    create_optimized_graph,
    resolve_representation,
    to_csr_graph,
)
from graph_engine.core.csr import CSRGraph, is_csr_graph
from graph_engine.core.errors import (
    ElementNotFoundError,
    GraphError,
    InvalidTopologyError,
    NegativeCycleError,
    NegativeWeightError,
    NodeNotFoundError,
)
from graph_engine.core.graph import Edge, Graph, GraphConfig, Node
from graph_engine.core.interop import from_rustworkx, to_rustworkx
from graph_engine.core.types import NodeId, ReadableGraph

__all__ = [
    # Representations
    "CSRGraph",
    "Edge",
    # Errors
    "ElementNotFoundError",
    "Graph",
    "GraphAdapter",
    "GraphConfig",
    "GraphError",
    "InvalidTopologyError",
    "NegativeCycleError",
    "NegativeWeightError",
    "Node",
    "NodeId",
    "NodeNotFoundError",
    "ReadableGraph",
    "create_optimized_graph",
    # Interop
    "from_rustworkx",
    "is_csr_graph",
    "resolve_representation",
    "to_csr_graph",
    "to_rustworkx",
]
