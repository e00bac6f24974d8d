"""
hierarchical (layered) layout.

citing papers sit above the papers they cite. the vertical gap of an edge
grows as its endpoints get less similar, so closely related work clusters
tightly while loosely related work drifts further down.
"""

import logging
from collections import defaultdict
from dataclasses import replace
from typing import Dict, List, Optional

import networkx as nx

from ..core.models import NetworkGraph, NetworkEdge, NetworkNode
from ..core.config import HierarchicalLayoutConfig

logger = logging.getLogger("citenet.layout")


def _edge_length(edge: NetworkEdge, nodes: Dict[str, NetworkNode],
                 config: HierarchicalLayoutConfig) -> int:
    similarity = edge.semantic_similarity
    if not similarity:
        target = nodes.get(edge.target)
        similarity = (target.paper.similarity_to_origin if target else None) or 0.0

    span = config.max_edge_length - config.min_edge_length
    return round(config.max_edge_length - similarity * span)


def edge_length(edge: NetworkEdge, graph: NetworkGraph,
                config: Optional[HierarchicalLayoutConfig] = None) -> int:
    """
    desired edge length: max_edge_length at similarity 0 down to
    min_edge_length at similarity 1.
    """
    config = config or HierarchicalLayoutConfig()
    return _edge_length(edge, {n.id: n for n in graph.nodes}, config)


def _rank_graph(graph: NetworkGraph, config: HierarchicalLayoutConfig) -> nx.DiGraph:
    """directed graph with a `minlen` per edge, cycles removed."""
    nodes = {n.id: n for n in graph.nodes}

    D = nx.DiGraph()
    D.add_nodes_from(n.id for n in graph.nodes)

    for edge in graph.edges:
        if edge.source == edge.target:
            continue
        if edge.source not in nodes or edge.target not in nodes:
            continue

        minlen = max(1, round(_edge_length(edge, nodes, config) / config.length_unit))
        if D.has_edge(edge.source, edge.target):
            minlen = max(minlen, D[edge.source][edge.target]["minlen"])
        D.add_edge(edge.source, edge.target, minlen=minlen)

    # break cycles by dropping the edge that closes each one
    while True:
        try:
            cycle = nx.find_cycle(D)
        except nx.NetworkXNoCycle:
            break
        u, v = cycle[-1][0], cycle[-1][1]
        logger.debug(f"[layout] dropping back edge {u} -> {v} for ranking")
        D.remove_edge(u, v)

    return D


def assign_ranks(graph: NetworkGraph,
                 config: Optional[HierarchicalLayoutConfig] = None) -> Dict[str, int]:
    """
    longest-path layering, top to bottom.
    every edge spans at least its minlen in ranks. smallest rank is 0.
    """
    config = config or HierarchicalLayoutConfig()
    if not graph.nodes:
        return {}

    D = _rank_graph(graph, config)
    order = {n.id: i for i, n in enumerate(graph.nodes)}

    ranks: Dict[str, int] = {}
    for node_id in nx.lexicographical_topological_sort(D, key=lambda nid: order[nid]):
        ranks[node_id] = max(
            (ranks[pred] + D[pred][node_id]["minlen"] for pred in D.predecessors(node_id)),
            default=0
        )

    lowest = min(ranks.values())
    return {node_id: rank - lowest for node_id, rank in ranks.items()}


def _order_rows(graph: NetworkGraph, ranks: Dict[str, int]) -> Dict[int, List[str]]:
    """group nodes per rank, then one downward barycenter sweep."""
    rows: Dict[int, List[str]] = defaultdict(list)
    for node in graph.nodes:
        rows[ranks[node.id]].append(node.id)

    upper_neighbors: Dict[str, List[str]] = defaultdict(list)
    for edge in graph.edges:
        if edge.source not in ranks or edge.target not in ranks:
            continue
        if ranks[edge.source] < ranks[edge.target]:
            upper_neighbors[edge.target].append(edge.source)
        elif ranks[edge.target] < ranks[edge.source]:
            upper_neighbors[edge.source].append(edge.target)

    position: Dict[str, int] = {}
    for rank in sorted(rows):
        row = rows[rank]

        def barycenter(node_id: str, index: int) -> float:
            placed = [position[n] for n in upper_neighbors[node_id] if n in position]
            if not placed:
                return float(index)
            return sum(placed) / len(placed)

        keyed = [(barycenter(node_id, i), i, node_id) for i, node_id in enumerate(row)]
        keyed.sort(key=lambda item: (item[0], item[1]))
        rows[rank] = [node_id for _, _, node_id in keyed]

        for i, node_id in enumerate(rows[rank]):
            position[node_id] = i

    return rows


def layout_hierarchical(graph: NetworkGraph,
                        config: Optional[HierarchicalLayoutConfig] = None) -> NetworkGraph:
    """position every node on a layered grid. the input graph is untouched."""
    config = config or HierarchicalLayoutConfig()
    if not graph.nodes:
        return replace(graph, nodes=[], edges=list(graph.edges))

    ranks = assign_ranks(graph, config)
    rows = _order_rows(graph, ranks)
    widest = max(len(row) for row in rows.values())

    coords = {}
    for rank, row in rows.items():
        offset = (widest - len(row)) * config.node_sep / 2
        for i, node_id in enumerate(row):
            coords[node_id] = (
                config.margin_x + offset + i * config.node_sep,
                config.margin_y + rank * config.rank_sep
            )

    nodes = [
        replace(node, x=coords[node.id][0], y=coords[node.id][1])
        for node in graph.nodes
    ]

    logger.debug(
        f"[layout] hierarchical: {len(nodes)} nodes over {len(rows)} ranks"
    )
    return replace(graph, nodes=nodes, edges=list(graph.edges))
