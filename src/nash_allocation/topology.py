"""Interaction graphs for the pairwise allocation algorithm."""

from collections.abc import Iterable, Sequence

import networkx as nx

__all__ = [
    "complete_topology",
    "create_topology",
    "edge_differences",
    "path_topology",
]


def create_topology(
    *,
    node_count: int,
    edges: Iterable[tuple[int, int]],
) -> nx.MultiGraph:
    """Build an undirected interaction graph over node ids ``0..node_count-1``.

    The graph is a multigraph: a duplicated pair is kept as two edges and
    therefore exchanges twice per iteration. Connectivity is not required.

    Args:
        node_count: Number of nodes in the allocation state.
        edges: Unordered ``(from, to)`` node id pairs.

    Returns:
        A multigraph with every node id present, including isolated ones.

    Raises:
        ValueError: If an edge references an unknown node id or connects a
            node to itself.
    """
    graph = nx.MultiGraph()
    graph.add_nodes_from(range(node_count))

    for from_node, to_node in edges:
        missing = [
            str(n) for n in (from_node, to_node) if not 0 <= n < node_count
        ]
        if missing:
            msg = f"edge references unknown node(s): {', '.join(missing)}"
            raise ValueError(msg)
        if from_node == to_node:
            msg = f"edge connects node {from_node} to itself"
            raise ValueError(msg)
        graph.add_edge(from_node, to_node)

    return graph


def complete_topology(
    *,
    node_count: int,
) -> nx.MultiGraph:
    """Fully connected topology, every node negotiates with every other."""
    return nx.MultiGraph(nx.complete_graph(node_count))


def path_topology(
    *,
    node_count: int,
) -> nx.MultiGraph:
    """Line topology ``0 - 1 - ... - node_count-1``."""
    return nx.MultiGraph(nx.path_graph(node_count))


def edge_differences(
    *,
    topology: nx.MultiGraph,
    derivatives: Sequence[float],
) -> list[float]:
    """Absolute marginal-cost difference across every edge of `topology`.

    Args:
        topology: Graph built by `create_topology` or its helpers.
        derivatives: Marginal cost per node id.

    Returns:
        One value per edge, duplicates included, in edge iteration order.
    """
    return [
        abs(derivatives[from_node] - derivatives[to_node])
        for from_node, to_node in topology.edges()
    ]
