"""Общие типы ядра: идентификатор узла и протокол графа только для чтения."""

from collections.abc import Iterator
from typing import Protocol, runtime_checkable

__all__ = ["NodeId", "ReadableGraph"]

NodeId = str | int


@runtime_checkable
class ReadableGraph(Protocol):
    """
    Минимальная поверхность чтения графа.

    Реализуется `Graph`, `CSRGraph` и `GraphAdapter`, поэтому алгоритмы,
    написанные против протокола, работают с любым представлением.
    """

    @property
    def is_directed(self) -> bool: ...

    @property
    def node_count(self) -> int: ...

    @property
    def edge_count(self) -> int: ...

    def node_ids(self) -> Iterator[NodeId]: ...

    def has_node(self, node_id: NodeId) -> bool: ...

    def has_edge(self, source: NodeId, target: NodeId) -> bool: ...

    def neighbors(self, node_id: NodeId) -> Iterator[NodeId]: ...

    def out_degree(self, node_id: NodeId) -> int: ...

    def edge_weight(self, source: NodeId, target: NodeId) -> float | None: ...
