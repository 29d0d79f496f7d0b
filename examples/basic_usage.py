"""
Basic graph engine usage.

Demonstrates the core building blocks:
  1. Building a graph and querying it
  2. Traversal and shortest paths
  3. Centrality and PageRank
  4. Communities and clustering
  5. Flow and matching
  6. Link prediction
  7. Optimization presets and CSR snapshots

Run:
    python -m examples.basic_usage
"""

from graph_engine import (
    CSRGraph,
    Graph,
    adamic_adar_prediction,
    betweenness_centrality,
    breadth_first_search,
    dijkstra_path,
    edmonds_karp,
    get_preset_policy,
    k_core_decomposition,
    kruskal_mst,
    louvain,
    maximum_bipartite_matching,
    pagerank,
    setup_logging,
    spectral_clustering,
    topological_sort,
)

# ── Helpers ──────────────────────────────────────────────────────────────────


def _header(title: str) -> None:
    print(f"\n{'─' * 50}\n  {title}\n{'─' * 50}")


def _two_triangles() -> Graph:
    graph = Graph()
    for source, target in [("a", "b"), ("b", "c"), ("c", "a"), ("d", "e"), ("e", "f"), ("f", "d"), ("c", "d")]:
        graph.add_edge(source, target)
    return graph


# ── 1. Building a graph ─────────────────────────────────────────────────────


def example_basic_graph():
    """Create a small weighted road network."""
    graph = Graph(directed=True)
    graph.add_node("depot", {"kind": "warehouse"})
    for source, target, weight in [
        ("depot", "north", 4.0),
        ("depot", "south", 2.0),
        ("south", "north", 1.0),
        ("north", "market", 5.0),
        ("south", "market", 8.0),
    ]:
        graph.add_edge(source, target, weight)

    print(f"  Nodes  : {list(graph.node_ids())}")
    print(f"  Edges  : {graph.edge_count}")
    print(f"  depot  : {graph.get_node('depot').data}")
    return graph


# ── 2. Traversal and shortest paths ────────────────────────────────────────


def example_paths():
    """BFS order, topological order and the cheapest route."""
    graph = example_basic_graph()

    print(f"  BFS order  : {breadth_first_search(graph, 'depot').order}")
    print(f"  Topo order : {topological_sort(graph)}")

    route = dijkstra_path(graph, "depot", "market")
    print(f"  Route      : {route.path} (cost {route.distance})")
    return route


# ── 3. Centrality ───────────────────────────────────────────────────────────


def example_centrality():
    """Betweenness on an undirected graph and PageRank on a directed one."""
    scores = betweenness_centrality(_two_triangles())
    print(f"  Betweenness : {scores}")

    ranks = pagerank(example_basic_graph())
    print(f"  PageRank    : { {node: round(rank, 3) for node, rank in ranks.ranks.items()} }")
    print(f"  Converged   : {ranks.converged} after {ranks.iterations} iterations")
    return ranks


# ── 4. Communities and clustering ───────────────────────────────────────────


def example_communities():
    """Louvain, spectral clustering and k-core on two bridged triangles."""
    graph = _two_triangles()

    communities = louvain(graph)
    print(f"  Louvain  : {communities.communities} (Q = {communities.modularity:.3f})")

    spectral = spectral_clustering(graph, 2)
    print(f"  Spectral : {spectral.communities}")

    cores = k_core_decomposition(graph)
    print(f"  Coreness : {cores.coreness}")

    tree = kruskal_mst(graph)
    print(f"  MST      : {[(e.source, e.target) for e in tree.edges]}")
    return communities


# ── 5. Flow and matching ────────────────────────────────────────────────────


def example_flow():
    """Max flow through the road network and a worker/job matching."""
    flow = edmonds_karp(example_basic_graph(), "depot", "market")
    print(f"  Max flow : {flow.max_flow}")
    print(f"  Cut      : {flow.min_cut.edges}")

    jobs = Graph()
    for worker, job in [("ann", "build"), ("ann", "test"), ("bob", "build")]:
        jobs.add_edge(worker, job)
    matching = maximum_bipartite_matching(jobs)
    print(f"  Matching : {matching.matching}")
    return matching


# ── 6. Link prediction ─────────────────────────────────────────────────────


def example_link_prediction():
    """Rank missing edges by Adamic-Adar index."""
    predictions = adamic_adar_prediction(_two_triangles(), top_k=3)
    for item in predictions:
        print(f"  {item.source} -> {item.target}: {item.score:.3f}")
    return predictions


# ── 7. Optimization presets ────────────────────────────────────────────────


def example_presets():
    """Route algorithms through a CSR snapshot."""
    graph = example_basic_graph()
    policy = get_preset_policy("performance", csr_threshold=0)

    snapshot = CSRGraph.from_graph(graph)
    print(f"  CSR nodes : {snapshot.node_count}, edges: {snapshot.edge_count}")
    print(f"  BFS (CSR) : {breadth_first_search(graph, 'depot', policy=policy).order}")
    return snapshot


# ── Entry point ─────────────────────────────────────────────────────────────


def main():
    setup_logging("info")

    examples = [
        ("1. Basic graph", example_basic_graph),
        ("2. Paths", example_paths),
        ("3. Centrality", example_centrality),
        ("4. Communities", example_communities),
        ("5. Flow and matching", example_flow),
        ("6. Link prediction", example_link_prediction),
        ("7. Presets", example_presets),
    ]

    for title, fn in examples:
        _header(title)
        fn()

    print("\nAll examples completed ✅")


if __name__ == "__main__":
    main()
