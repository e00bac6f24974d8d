"""
network metrics - levels, degrees, summary statistics and paths.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field, replace
from typing import List, Optional, Dict, Any, Tuple

import networkx as nx

from ..core.models import Paper, NetworkGraph, NetworkNode, NetworkEdge

logger = logging.getLogger("citenet.metrics")


def _undirected(nodes: List[NetworkNode], edges: List[NetworkEdge]) -> nx.Graph:
    G = nx.Graph()
    G.add_nodes_from(n.id for n in nodes)
    G.add_edges_from((e.source, e.target) for e in edges)
    return G


def calculate_node_levels(
    nodes: List[NetworkNode],
    edges: List[NetworkEdge],
    origin_id: str
) -> List[NetworkNode]:
    """
    bfs hop distance from origin over undirected edges.
    nodes unreachable from origin keep their previous level.
    """
    G = _undirected(nodes, edges)
    if origin_id not in G:
        logger.debug(f"[metrics] origin {origin_id} not in graph, levels unchanged")
        return [replace(n) for n in nodes]

    distances = nx.single_source_shortest_path_length(G, origin_id)
    return [replace(n, level=distances.get(n.id, n.level)) for n in nodes]


def calculate_local_citation_counts(
    nodes: List[NetworkNode],
    edges: List[NetworkEdge]
) -> List[NetworkNode]:
    """in-degree of every node within this edge set."""
    in_degree = Counter(e.target for e in edges)
    return [replace(n, local_citation_count=in_degree.get(n.id, 0)) for n in nodes]


@dataclass
class GraphSummary:
    """statistics about an existing network."""
    total_papers: int = 0
    total_citations: int = 0          # edges in the graph
    avg_citations_per_paper: float = 0.0
    year_range: Tuple[int, int] = (0, 0)
    most_cited_paper: Optional[Paper] = None
    max_depth: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_papers": self.total_papers,
            "total_citations": self.total_citations,
            "avg_citations_per_paper": self.avg_citations_per_paper,
            "year_range": list(self.year_range),
            "most_cited_paper": self.most_cited_paper.id if self.most_cited_paper else None,
            "max_depth": self.max_depth
        }


def calculate_network_stats(graph: NetworkGraph) -> GraphSummary:
    papers = [n.paper for n in graph.nodes]
    if not papers:
        return GraphSummary()

    total_citations = sum(p.citation_count for p in papers)
    years = [p.year for p in papers if p.year > 0]

    most_cited = papers[0]
    for paper in papers[1:]:
        if paper.citation_count > most_cited.citation_count:
            most_cited = paper

    return GraphSummary(
        total_papers=len(papers),
        total_citations=len(graph.edges),
        avg_citations_per_paper=total_citations / len(papers),
        year_range=(min(years), max(years)) if years else (0, 0),
        most_cited_paper=most_cited,
        max_depth=max(n.level or 0 for n in graph.nodes)
    )


@dataclass
class PaperMetrics:
    """metrics for one paper inside the network."""
    direct_citations: int = 0         # outgoing edges
    cited_by: int = 0                 # incoming edges
    co_citations: int = 0             # papers sharing at least one cited paper
    influence_score: int = 0
    total_connections: int = 0
    prior_works: List[Paper] = field(default_factory=list)
    derivative_works: List[Paper] = field(default_factory=list)


def calculate_paper_metrics(paper_id: str, graph: NetworkGraph) -> PaperMetrics:
    outgoing = [e.target for e in graph.edges if e.source == paper_id]
    incoming = [e.source for e in graph.edges if e.target == paper_id]

    outgoing_ids = set(outgoing)
    incoming_ids = set(incoming)
    prior = [n.paper for n in graph.nodes if n.id in outgoing_ids]
    derivative = [n.paper for n in graph.nodes if n.id in incoming_ids]
    prior.sort(key=lambda p: p.citation_count, reverse=True)
    derivative.sort(key=lambda p: p.citation_count, reverse=True)

    co_citations = _count_co_citations(paper_id, graph)

    node = graph.get_node(paper_id)
    influence = 0
    if node is not None:
        influence = _influence_score(node.paper, len(outgoing), len(incoming), co_citations)

    return PaperMetrics(
        direct_citations=len(outgoing),
        cited_by=len(incoming),
        co_citations=co_citations,
        influence_score=influence,
        total_connections=len(outgoing) + len(incoming),
        prior_works=prior,
        derivative_works=derivative
    )


def _count_co_citations(paper_id: str, graph: NetworkGraph) -> int:
    """number of other papers citing at least one paper this one cites."""
    cited_by_source: Dict[str, set] = {}
    for edge in graph.edges:
        cited_by_source.setdefault(edge.source, set()).add(edge.target)

    mine = cited_by_source.get(paper_id, set())
    if not mine:
        return 0

    return sum(
        1 for node in graph.nodes
        if node.id != paper_id and mine & cited_by_source.get(node.id, set())
    )


def _influence_score(paper: Paper, direct: int, cited_by: int, co_citations: int) -> int:
    # global citations 40%, cited-by 30%, direct 20%, co-citations 10%
    score = (
        min(paper.citation_count / 100, 100) * 0.4 +
        min(cited_by * 10, 100) * 0.3 +
        min(direct * 5, 100) * 0.2 +
        min(co_citations * 2, 100) * 0.1
    )
    return int(score + 0.5)


def calculate_network_density(graph: NetworkGraph) -> float:
    n = len(graph.nodes)
    if n <= 1:
        return 0.0
    return len(graph.edges) / (n * (n - 1) / 2)


def find_shortest_path(from_id: str, to_id: str, graph: NetworkGraph) -> Optional[List[str]]:
    """shortest undirected path of node ids, or None."""
    if from_id == to_id:
        return [from_id]

    G = _undirected(graph.nodes, graph.edges)
    try:
        return nx.shortest_path(G, from_id, to_id)
    except (nx.NetworkXNoPath, nx.NodeNotFound):
        return None


@dataclass
class BoundingBox:
    min_x: float = 0.0
    max_x: float = 0.0
    min_y: float = 0.0
    max_y: float = 0.0

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y


def calculate_bounding_box(graph: NetworkGraph) -> BoundingBox:
    """extent of positioned nodes."""
    positions = [(n.x, n.y) for n in graph.nodes if n.x is not None and n.y is not None]
    if not positions:
        return BoundingBox()

    xs = [p[0] for p in positions]
    ys = [p[1] for p in positions]
    return BoundingBox(min_x=min(xs), max_x=max(xs), min_y=min(ys), max_y=max(ys))
