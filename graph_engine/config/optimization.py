"""
Политика оптимизации: рекомендация представления графа по его размеру.

Политика — неизменяемое значение, которое явно передаётся в конвертацию
и алгоритмы. Она только советует, идти ли через CSR-снимок или через
изменяемые списки смежности, и никогда не влияет на результат.

Пресеты:
    - `default`: CSR для графов от 10 000 узлов.
    - `performance`: CSR почти всегда (от 1 000 узлов).
    - `balanced`: CSR от 5 000 узлов.
    - `memory`: без CSR-копии, чтобы не держать второе представление.
"""

from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from graph_engine.core.types import ReadableGraph

__all__ = [
    "OptimizationPolicy",
    "OptimizationPreset",
    "Representation",
    "get_preset_policy",
]


class OptimizationPreset(str, Enum):
    """Именованные пресеты политики."""

    DEFAULT = "default"
    PERFORMANCE = "performance"
    BALANCED = "balanced"
    MEMORY = "memory"


class Representation(str, Enum):
    """Рекомендуемое представление графа для алгоритма."""

    CSR = "csr"
    ADJACENCY = "adjacency"


class OptimizationPolicy(BaseModel):
    """
    Рекомендация представления графа.

    Attributes:
        preset: Пресет, из которого построена политика.
        csr_threshold: Минимальное число узлов для CSR; `None` отключает CSR.
        prefer_csr_for_traversal: Разрешить CSR для обходов и путей.

    """

    model_config = ConfigDict(frozen=True)

    preset: OptimizationPreset = OptimizationPreset.DEFAULT
    csr_threshold: int | None = Field(default=10_000, ge=0)
    prefer_csr_for_traversal: bool = True

    def recommend_representation(self, graph: "ReadableGraph") -> Representation:
        """Рекомендовать представление по числу узлов графа."""
        if not self.prefer_csr_for_traversal or self.csr_threshold is None:
            return Representation.ADJACENCY
        if graph.node_count >= self.csr_threshold:
            return Representation.CSR
        return Representation.ADJACENCY

    def should_use_csr(self, graph: "ReadableGraph") -> bool:
        return self.recommend_representation(graph) is Representation.CSR


_PRESETS: dict[OptimizationPreset, OptimizationPolicy] = {
    OptimizationPreset.DEFAULT: OptimizationPolicy(),
    OptimizationPreset.PERFORMANCE: OptimizationPolicy(
        preset=OptimizationPreset.PERFORMANCE,
        csr_threshold=1_000,
    ),
    OptimizationPreset.BALANCED: OptimizationPolicy(
        preset=OptimizationPreset.BALANCED,
        csr_threshold=5_000,
    ),
    OptimizationPreset.MEMORY: OptimizationPolicy(
        preset=OptimizationPreset.MEMORY,
        csr_threshold=None,
        prefer_csr_for_traversal=False,
    ),
}


def get_preset_policy(
    preset: OptimizationPreset | str = OptimizationPreset.DEFAULT,
    *,
    csr_threshold: int | None = None,
) -> OptimizationPolicy:
    """
    Вернуть политику пресета, опционально переопределив порог CSR.

    Raises:
        ValueError: неизвестное имя пресета.

    """
    policy = _PRESETS[OptimizationPreset(preset)]
    if csr_threshold is not None:
        policy = policy.model_copy(update={"csr_threshold": csr_threshold})
    return policy
