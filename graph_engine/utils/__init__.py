from graph_engine.utils.priority_queue import PriorityQueue
from graph_engine.utils.union_find import UnionFind

__all__ = ["PriorityQueue", "UnionFind"]
