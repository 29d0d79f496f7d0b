"""
Типизированные ошибки графового движка.

Все ошибки наследуются от `GraphError` и несут сообщение и метаданные.
Несходимость итеративных алгоритмов ошибкой не является: алгоритм
возвращает лучшую оценку после `max_iterations`.
"""

from typing import Any

__all__ = [
    "ElementNotFoundError",
    "GraphError",
    "InvalidTopologyError",
    "NegativeCycleError",
    "NegativeWeightError",
    "NodeNotFoundError",
]


class GraphError(Exception):
    """Базовая ошибка графового движка с метаданными."""

    def __init__(self, message: str, metadata: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.metadata = metadata or {}

    # KeyError.__str__ оборачивает сообщение в кавычки
    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Сериализовать ошибку в словарь для логирования/ответа."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "metadata": dict(self.metadata),
        }


class NodeNotFoundError(GraphError, KeyError):
    """Узел отсутствует в графе."""

    def __init__(self, node_id: Any, message: str | None = None):
        super().__init__(
            message or f"Node {node_id} not found in graph",
            metadata={"node_id": node_id},
        )
        self.node_id = node_id


class ElementNotFoundError(NodeNotFoundError):
    """Элемент отсутствует в структуре UnionFind."""

    def __init__(self, element: Any):
        super().__init__(element, message=f"Element {element} not found")
        self.element = element


class InvalidTopologyError(GraphError, ValueError):
    """Нарушено предусловие алгоритма: тип графа, связность или параметр."""


class NegativeWeightError(InvalidTopologyError):
    """Алгоритм не поддерживает отрицательные веса рёбер."""

    def __init__(self, message: str, source: Any = None, target: Any = None, weight: float | None = None):
        super().__init__(message, metadata={"source": source, "target": target, "weight": weight})
        self.source = source
        self.target = target
        self.weight = weight


class NegativeCycleError(InvalidTopologyError):
    """Граф содержит цикл отрицательного веса."""

    def __init__(self, message: str = "Graph contains a negative cycle", cycle: list[Any] | None = None):
        super().__init__(message, metadata={"cycle": list(cycle or [])})
        self.cycle = list(cycle or [])
