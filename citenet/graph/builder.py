"""
network builder - turns a paper list and an origin into a typed citation network.

we don't have authoritative "who cites whom" data, so citation edges are
inferred from publication year and citation count. semantic edges come from
shared fields of study. co-citation and bibliographic coupling edges need
adjacency data from a retrieval collaborator and are empty without it.

usage:
    from citenet.graph import build_citation_network

    result = build_citation_network(papers, origin_id, NetworkBuilderOptions(max_nodes=50))
    print(f"nodes: {len(result.graph.nodes)}, edges: {result.stats.total_edges}")
"""

import logging
from collections import Counter
from dataclasses import dataclass, replace
from typing import List, Dict, Optional, Set, Tuple, Sequence, Mapping

from ..core.models import (
    Paper, Citation, CitationType, EdgeType, NetworkNode, NetworkEdge,
    NetworkGraph, NetworkStats, now_ms
)
from ..core.config import NetworkBuilderOptions
from ..similarity.engine import SimilarityEngine
from .metrics import calculate_node_levels, calculate_local_citation_counts

logger = logging.getLogger("citenet.builder")


# citation inference heuristic
MIN_CITING_YEAR = 1990        # older papers are not given outgoing edges
MIN_TARGET_CITATIONS = 50     # only well-cited papers are likely references
MAX_YEAR_GAP = 10
MAX_REFERENCES_PER_PAPER = 5


@dataclass
class BuildResult:
    """a built network plus its summary statistics."""
    graph: NetworkGraph
    stats: NetworkStats


def build_citation_network(
    papers: Sequence[Paper],
    origin_paper_id: str,
    options: Optional[NetworkBuilderOptions] = None,
    *,
    engine: Optional[SimilarityEngine] = None
) -> BuildResult:
    """
    build a citation network around the origin paper.

    papers below min_citations are dropped, the rest are capped at
    max_nodes by citation count. if the origin is not among the retained
    papers the most cited one becomes the origin.
    """
    options = options or NetworkBuilderOptions()
    engine = engine or SimilarityEngine()

    included = _select_papers(papers, options)
    if not included:
        logger.warning(
            f"[builder] no papers left after filtering "
            f"({len(papers)} given, min_citations={options.min_citations})"
        )
        return BuildResult(
            graph=NetworkGraph(origin_paper_id=origin_paper_id),
            stats=NetworkStats(total_papers=len(papers))
        )

    origin = next((p for p in included if p.id == origin_paper_id), included[0])
    if origin.id != origin_paper_id:
        logger.info(
            f"[builder] origin {origin_paper_id} not retained, "
            f"falling back to most cited paper {origin.id}"
        )

    # annotate copies with similarity to origin
    similarities = engine.batch_similarity(included, origin, options.citation_adjacency)
    annotated = [p.with_similarity(similarities[p.id]) for p in included]

    nodes = [
        NetworkNode(id=p.id, paper=p, is_origin=(p.id == origin.id))
        for p in annotated
    ]

    edges = generate_citation_edges(annotated)

    if options.include_semantic_edges:
        edges.extend(generate_semantic_edges(annotated, options.min_semantic_similarity))

    if options.include_co_citations:
        edges.extend(generate_co_citation_edges(annotated, options.citation_adjacency))

    if options.include_bibliographic_coupling:
        edges.extend(generate_bibliographic_coupling_edges(annotated, options.citation_adjacency))

    nodes = calculate_node_levels(nodes, edges, origin.id)
    nodes = calculate_local_citation_counts(nodes, edges)

    stats = _network_stats(included, edges, total_papers=len(papers))
    graph = NetworkGraph(nodes=nodes, edges=edges, origin_paper_id=origin.id)

    logger.info(
        f"[builder] built network: {len(nodes)} nodes, {len(edges)} edges "
        f"(origin={origin.id})"
    )
    return BuildResult(graph=graph, stats=stats)


def _select_papers(papers: Sequence[Paper], options: NetworkBuilderOptions) -> List[Paper]:
    """citation threshold, citation-count priority, max_nodes cap, unique ids."""
    eligible = [p for p in papers if p.citation_count >= options.min_citations]
    ranked = sorted(eligible, key=lambda p: p.citation_count, reverse=True)

    selected = []
    seen: Set[str] = set()
    for paper in ranked:
        if len(selected) >= options.max_nodes:
            break
        if paper.id in seen:
            logger.debug(f"[builder] duplicate paper id {paper.id} skipped")
            continue
        seen.add(paper.id)
        selected.append(paper)

    return selected


def _citation_edge(source_id: str, target_id: str, citation_type: CitationType,
                   citing_id: str, cited_id: str) -> NetworkEdge:
    return NetworkEdge(
        id=f"{citing_id}-{cited_id}",
        source=citing_id,
        target=cited_id,
        citation=Citation(source_id=source_id, target_id=target_id, type=citation_type),
        weight=1.0,
        edge_type=EdgeType.CITATION
    )


def generate_citation_edges(papers: Sequence[Paper]) -> List[NetworkEdge]:
    """
    infer "newer cites older" edges.
    each paper cites up to 5 older, well-cited papers from the previous decade.
    """
    edges = []
    by_year = sorted(papers, key=lambda p: p.year)

    for i, source in enumerate(by_year):
        if source.year < MIN_CITING_YEAR:
            continue

        candidates = [
            target for target in by_year[:i]
            if target.year < source.year
            and target.citation_count >= MIN_TARGET_CITATIONS
            and source.year - target.year <= MAX_YEAR_GAP
        ]
        candidates.sort(key=lambda p: p.citation_count, reverse=True)

        for target in candidates[:MAX_REFERENCES_PER_PAPER]:
            edges.append(_citation_edge(
                source.id, target.id, CitationType.CITES,
                citing_id=source.id, cited_id=target.id
            ))

    return edges


def _normalized_fields(paper: Paper) -> List[str]:
    # lower-cased, de-duplicated, first-seen order
    return list(dict.fromkeys(f.lower() for f in paper.fields_of_study))


def generate_semantic_edges(
    papers: Sequence[Paper],
    min_similarity: float = 0.5
) -> List[NetworkEdge]:
    """connect pairs whose fields of study overlap enough (jaccard)."""
    edges = []
    fields = {p.id: _normalized_fields(p) for p in papers}

    for i, paper_a in enumerate(papers):
        fields_a = fields[paper_a.id]
        if not fields_a:
            continue

        for paper_b in papers[i + 1:]:
            fields_b = fields[paper_b.id]
            if not fields_b:
                continue

            set_b = set(fields_b)
            shared = [f for f in fields_a if f in set_b]
            union = set(fields_a) | set_b
            similarity = len(shared) / len(union)

            if similarity >= min_similarity:
                edges.append(NetworkEdge(
                    id=f"semantic-{paper_a.id}-{paper_b.id}",
                    source=paper_a.id,
                    target=paper_b.id,
                    citation=Citation(paper_a.id, paper_b.id, CitationType.CITES),
                    weight=similarity * 2,
                    edge_type=EdgeType.SEMANTIC,
                    semantic_similarity=similarity,
                    shared_fields_of_study=shared
                ))

    logger.info(
        f"[builder] generated {len(edges)} semantic edges "
        f"(min similarity: {min_similarity})"
    )
    return edges


def generate_co_citation_edges(
    papers: Sequence[Paper],
    citation_adjacency: Optional[Mapping[str, Set[str]]] = None
) -> List[NetworkEdge]:
    """
    connect papers cited together by the same citing paper.
    weight = number of papers citing both. empty without adjacency data.
    """
    if not citation_adjacency:
        return []

    included = {p.id for p in papers}
    together: Counter = Counter()
    for cited in citation_adjacency.values():
        present = [pid for pid in cited if pid in included]
        for i, a in enumerate(present):
            for b in present[i + 1:]:
                if a != b:
                    together[frozenset((a, b))] += 1

    edges = []
    for i, paper_a in enumerate(papers):
        for paper_b in papers[i + 1:]:
            count = together.get(frozenset((paper_a.id, paper_b.id)), 0)
            if count > 0:
                edges.append(NetworkEdge(
                    id=f"co-citation-{paper_a.id}-{paper_b.id}",
                    source=paper_a.id,
                    target=paper_b.id,
                    citation=Citation(paper_a.id, paper_b.id, CitationType.CITES),
                    weight=float(count),
                    edge_type=EdgeType.CO_CITATION
                ))

    logger.debug(f"[builder] generated {len(edges)} co-citation edges")
    return edges


def generate_bibliographic_coupling_edges(
    papers: Sequence[Paper],
    citation_adjacency: Optional[Mapping[str, Set[str]]] = None
) -> List[NetworkEdge]:
    """
    connect papers that cite the same references.
    weight = number of shared references. empty without adjacency data.
    """
    if not citation_adjacency:
        return []

    edges = []
    for i, paper_a in enumerate(papers):
        refs_a = set(citation_adjacency.get(paper_a.id, ()))
        if not refs_a:
            continue

        for paper_b in papers[i + 1:]:
            shared = refs_a & set(citation_adjacency.get(paper_b.id, ()))
            if shared:
                edges.append(NetworkEdge(
                    id=f"coupling-{paper_a.id}-{paper_b.id}",
                    source=paper_a.id,
                    target=paper_b.id,
                    citation=Citation(paper_a.id, paper_b.id, CitationType.CITES),
                    weight=float(len(shared)),
                    edge_type=EdgeType.BIBLIOGRAPHIC_COUPLING
                ))

    logger.debug(f"[builder] generated {len(edges)} bibliographic coupling edges")
    return edges


def _network_stats(papers: Sequence[Paper], edges: List[NetworkEdge],
                   total_papers: int) -> NetworkStats:
    years = [p.year for p in papers]
    total_citations = sum(p.citation_count for p in papers)

    return NetworkStats(
        total_papers=total_papers,
        included_papers=len(papers),
        total_edges=len(edges),
        avg_citations=int(total_citations / len(papers) + 0.5),
        year_range=(min(years), max(years))
    )


def filter_network_by_year_range(
    graph: NetworkGraph,
    papers: Sequence[Paper],
    year_range: Tuple[int, int]
) -> NetworkGraph:
    """
    keep nodes published within year_range (inclusive).
    paper records in `papers` take precedence over the ones on the nodes.
    """
    min_year, max_year = year_range
    records = {p.id: p for p in papers or []}

    nodes = [
        replace(node) for node in graph.nodes
        if min_year <= records.get(node.id, node.paper).year <= max_year
    ]
    kept = {n.id for n in nodes}
    edges = [e for e in graph.edges if e.source in kept and e.target in kept]

    return NetworkGraph(
        nodes=nodes,
        edges=edges,
        origin_paper_id=graph.origin_paper_id,
        last_updated=now_ms()
    )


def find_influential_papers(
    graph: NetworkGraph,
    papers: Sequence[Paper],
    limit: int = 10
) -> List[Paper]:
    """
    rank papers by citation count plus network centrality.
    score = citations + in_degree * 100 + out_degree * 10
    """
    in_degree = Counter(e.target for e in graph.edges)
    out_degree = Counter(e.source for e in graph.edges)
    node_ids = graph.node_ids()

    def score(paper: Paper) -> int:
        if paper.id not in node_ids:
            return 0
        return paper.citation_count + in_degree[paper.id] * 100 + out_degree[paper.id] * 10

    return sorted(papers, key=score, reverse=True)[:max(limit, 0)]


def expand_network(
    graph: NetworkGraph,
    paper_id: str,
    cited_by: Sequence[Paper] = (),
    references: Sequence[Paper] = (),
    *,
    engine: Optional[SimilarityEngine] = None
) -> NetworkGraph:
    """
    merge papers fetched around paper_id into the graph.

    cited_by papers get an edge into paper_id, references an edge out of it.
    existing nodes are kept as they are. with nothing new to add the
    graph comes back unchanged (as a copy).
    """
    anchor = graph.get_node(paper_id)
    if anchor is None:
        logger.warning(f"[builder] cannot expand {paper_id}: not in graph")
        return replace(graph, nodes=list(graph.nodes), edges=list(graph.edges))

    if not cited_by and not references:
        return replace(graph, nodes=list(graph.nodes), edges=list(graph.edges))

    engine = engine or SimilarityEngine()
    origin = graph.origin_node()

    nodes = list(graph.nodes)
    node_ids = {n.id for n in nodes}
    edges = list(graph.edges)
    edge_ids = {e.id for e in edges}

    def add_node(paper: Paper):
        if paper.id in node_ids:
            return
        if origin is not None:
            paper = paper.with_similarity(engine.similarity(paper, origin.paper))
        nodes.append(NetworkNode(id=paper.id, paper=paper))
        node_ids.add(paper.id)

    def add_edge(edge: NetworkEdge):
        if edge.source == edge.target or edge.id in edge_ids:
            return
        edges.append(edge)
        edge_ids.add(edge.id)

    for citing in cited_by:
        if not citing.id:
            continue
        add_node(citing)
        add_edge(_citation_edge(
            paper_id, citing.id, CitationType.CITED_BY,
            citing_id=citing.id, cited_id=paper_id
        ))

    for cited in references:
        if not cited.id:
            continue
        add_node(cited)
        add_edge(_citation_edge(
            paper_id, cited.id, CitationType.CITES,
            citing_id=paper_id, cited_id=cited.id
        ))

    nodes = calculate_node_levels(nodes, edges, graph.origin_paper_id)
    nodes = calculate_local_citation_counts(nodes, edges)

    logger.info(
        f"[builder] expanded {paper_id}: {len(nodes) - len(graph.nodes)} new nodes, "
        f"{len(edges) - len(graph.edges)} new edges"
    )
    return NetworkGraph(
        nodes=nodes,
        edges=edges,
        origin_paper_id=graph.origin_paper_id,
        last_updated=now_ms()
    )


def find_connected_papers(
    paper_id: str,
    papers: Sequence[Paper]
) -> Tuple[List[Paper], List[Paper]]:
    """
    (prior, derivative) works by publication year.
    heuristic only: strictly older vs strictly newer than paper_id.
    """
    target = next((p for p in papers if p.id == paper_id), None)
    if target is None:
        return [], []

    prior = [p for p in papers if p.id != paper_id and p.year < target.year]
    derivative = [p for p in papers if p.id != paper_id and p.year > target.year]
    return prior, derivative
