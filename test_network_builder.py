#!/usr/bin/env python3
"""
test network builder: selection, edge inference, expansion.

run with: pytest test_network_builder.py -v
"""

import pytest

from citenet.core.models import Paper, CitationType, EdgeType, NetworkGraph
from citenet.core.config import NetworkBuilderOptions
from citenet.graph.builder import (
    build_citation_network, filter_network_by_year_range, find_influential_papers,
    expand_network, find_connected_papers, generate_citation_edges
)


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def abc_papers():
    """three papers, c is too rarely cited to be an inferred reference."""
    return [
        Paper(id="a", title="Paper A", year=2020, citation_count=500),
        Paper(id="b", title="Paper B", year=2015, citation_count=800),
        Paper(id="c", title="Paper C", year=2010, citation_count=40),
    ]


@pytest.fixture
def abc_network(abc_papers):
    return build_citation_network(abc_papers, "a", NetworkBuilderOptions(max_nodes=10))


@pytest.fixture
def same_year_papers():
    """same publication year, so no citation edges are inferred."""
    return [
        Paper(id="x", title="X", year=2020, citation_count=300),
        Paper(id="y", title="Y", year=2020, citation_count=200),
        Paper(id="z", title="Z", year=2020, citation_count=100),
    ]


def edge_pairs(graph, edge_type=None):
    return {
        (e.source, e.target) for e in graph.edges
        if edge_type is None or e.edge_type == edge_type
    }


# =============================================================================
# Build Tests
# =============================================================================

class TestBuildCitationNetwork:
    """test build_citation_network."""

    def test_abc_citation_edges(self, abc_network):
        pairs = edge_pairs(abc_network.graph)
        assert ("a", "b") in pairs
        assert ("a", "c") not in pairs
        assert len(pairs) == 1

    def test_abc_stats(self, abc_network):
        stats = abc_network.stats
        assert stats.total_papers == 3
        assert stats.included_papers == 3
        assert stats.total_edges == 1
        assert stats.avg_citations == 447
        assert stats.year_range == (2010, 2020)

    def test_edge_shape(self, abc_network):
        edge = abc_network.graph.edges[0]
        assert edge.id == "a-b"
        assert edge.edge_type == EdgeType.CITATION
        assert edge.citation.type == CitationType.CITES
        assert edge.weight == 1.0

    def test_single_origin(self, abc_network):
        origins = [n for n in abc_network.graph.nodes if n.is_origin]
        assert [n.id for n in origins] == ["a"]
        assert abc_network.graph.origin_paper_id == "a"

    def test_nodes_unpositioned_and_annotated(self, abc_network):
        for node in abc_network.graph.nodes:
            assert node.x is None and node.y is None
            assert node.paper.similarity_to_origin is not None
            assert node.paper.similarity_breakdown is not None

    def test_input_not_mutated(self, abc_papers):
        build_citation_network(abc_papers, "a")
        assert all(p.similarity_to_origin is None for p in abc_papers)

    def test_levels_and_local_counts(self, abc_network):
        nodes = {n.id: n for n in abc_network.graph.nodes}
        assert nodes["a"].level == 0
        assert nodes["b"].level == 1
        assert nodes["b"].local_citation_count == 1
        assert nodes["a"].local_citation_count == 0

    def test_max_nodes_keeps_most_cited(self, abc_papers):
        result = build_citation_network(abc_papers, "b", NetworkBuilderOptions(max_nodes=2))
        assert {n.id for n in result.graph.nodes} == {"a", "b"}
        assert result.stats.total_papers == 3
        assert result.stats.included_papers == 2

    def test_min_citations(self, abc_papers):
        result = build_citation_network(abc_papers, "a", NetworkBuilderOptions(min_citations=100))
        assert {n.id for n in result.graph.nodes} == {"a", "b"}

    def test_origin_fallback_to_most_cited(self, abc_papers):
        result = build_citation_network(abc_papers, "missing")
        assert result.graph.origin_paper_id == "b"
        assert result.graph.get_node("b").is_origin

    def test_origin_filtered_out(self, abc_papers):
        result = build_citation_network(abc_papers, "c", NetworkBuilderOptions(min_citations=50))
        assert result.graph.origin_paper_id == "b"
        assert sum(n.is_origin for n in result.graph.nodes) == 1

    def test_empty_input(self):
        result = build_citation_network([], "a")
        assert result.graph.nodes == []
        assert result.graph.edges == []
        assert result.stats.total_papers == 0
        assert result.stats.avg_citations == 0

    def test_everything_filtered(self, abc_papers):
        result = build_citation_network(abc_papers, "a", NetworkBuilderOptions(min_citations=10_000))
        assert result.graph.nodes == []
        assert result.stats.total_papers == 3
        assert result.stats.included_papers == 0

    def test_duplicate_ids_collapsed(self, abc_papers):
        papers = abc_papers + [Paper(id="a", title="Paper A again", year=2020, citation_count=1)]
        result = build_citation_network(papers, "a")
        ids = [n.id for n in result.graph.nodes]
        assert len(ids) == len(set(ids)) == 3

    def test_edges_reference_existing_nodes(self, abc_network):
        ids = abc_network.graph.node_ids()
        for edge in abc_network.graph.edges:
            assert edge.source in ids and edge.target in ids


class TestCitationInference:
    """test the year/citation heuristic."""

    def test_caps_references_per_paper(self):
        older = [
            Paper(id=f"old{i}", year=2011 + i, citation_count=100 + i * 10)
            for i in range(7)
        ]
        new = Paper(id="new", year=2020, citation_count=10)
        edges = [e for e in generate_citation_edges(older + [new]) if e.source == "new"]
        assert len(edges) == 5
        # most cited older papers win
        assert {e.target for e in edges} == {f"old{i}" for i in range(2, 7)}

    def test_gap_limit(self):
        papers = [
            Paper(id="new", year=2020, citation_count=10),
            Paper(id="old", year=2009, citation_count=1000),
        ]
        assert generate_citation_edges(papers) == []

    def test_pre_1990_papers_do_not_cite(self):
        papers = [
            Paper(id="p1", year=1985, citation_count=10),
            Paper(id="p0", year=1980, citation_count=1000),
        ]
        assert generate_citation_edges(papers) == []

    def test_same_year_never_cites(self, same_year_papers):
        assert generate_citation_edges(same_year_papers) == []


class TestSemanticEdges:
    """test field-of-study edges."""

    def test_example_pair(self):
        papers = [
            Paper(id="p1", year=2020, citation_count=10, fields_of_study=["Oncology", "Genomics"]),
            Paper(id="p2", year=2020, citation_count=5, fields_of_study=["Genomics", "Immunology"]),
        ]
        options = NetworkBuilderOptions(include_semantic_edges=True, min_semantic_similarity=0.3)
        graph = build_citation_network(papers, "p1", options).graph

        semantic = [e for e in graph.edges if e.edge_type == EdgeType.SEMANTIC]
        assert len(semantic) == 1
        edge = semantic[0]
        assert edge.id == "semantic-p1-p2"
        assert edge.semantic_similarity == pytest.approx(1 / 3)
        assert edge.weight == pytest.approx(2 / 3)
        assert edge.shared_fields_of_study == ["genomics"]

    def test_below_threshold(self):
        papers = [
            Paper(id="p1", fields_of_study=["Oncology", "Genomics"]),
            Paper(id="p2", fields_of_study=["Genomics", "Immunology"]),
        ]
        options = NetworkBuilderOptions(include_semantic_edges=True, min_semantic_similarity=0.5)
        graph = build_citation_network(papers, "p1", options).graph
        assert graph.edges == []

    def test_disabled_by_default(self):
        papers = [
            Paper(id="p1", fields_of_study=["Biology"]),
            Paper(id="p2", fields_of_study=["Biology"]),
        ]
        assert build_citation_network(papers, "p1").graph.edges == []

    def test_papers_without_fields_skipped(self):
        papers = [Paper(id="p1"), Paper(id="p2")]
        options = NetworkBuilderOptions(include_semantic_edges=True, min_semantic_similarity=0.0)
        assert build_citation_network(papers, "p1", options).graph.edges == []


class TestAdjacencyEdges:
    """test co-citation and bibliographic coupling."""

    def test_co_citation_needs_adjacency(self, same_year_papers):
        options = NetworkBuilderOptions(include_co_citations=True)
        assert build_citation_network(same_year_papers, "x", options).graph.edges == []

    def test_co_citation_weights(self, same_year_papers):
        options = NetworkBuilderOptions(
            include_co_citations=True,
            citation_adjacency={"p": {"x", "y"}, "q": {"x", "y", "z"}}
        )
        graph = build_citation_network(same_year_papers, "x", options).graph
        weights = {
            (e.source, e.target): e.weight for e in graph.edges
            if e.edge_type == EdgeType.CO_CITATION
        }
        assert weights == {("x", "y"): 2.0, ("x", "z"): 1.0, ("y", "z"): 1.0}

    def test_bibliographic_coupling(self, same_year_papers):
        options = NetworkBuilderOptions(
            include_bibliographic_coupling=True,
            citation_adjacency={"x": {"r1", "r2"}, "y": {"r2", "r3"}, "z": set()}
        )
        graph = build_citation_network(same_year_papers, "x", options).graph
        coupling = [e for e in graph.edges if e.edge_type == EdgeType.BIBLIOGRAPHIC_COUPLING]
        assert [(e.source, e.target, e.weight) for e in coupling] == [("x", "y", 1.0)]
        assert coupling[0].id == "coupling-x-y"


# =============================================================================
# Supporting Operations
# =============================================================================

class TestYearFilter:
    """test filter_network_by_year_range."""

    def test_example_range(self, abc_network, abc_papers):
        graph = filter_network_by_year_range(abc_network.graph, abc_papers, (2016, 2025))
        assert [n.id for n in graph.nodes] == ["a"]
        assert graph.edges == []

    def test_inclusive_bounds(self, abc_network, abc_papers):
        graph = filter_network_by_year_range(abc_network.graph, abc_papers, (2010, 2015))
        assert {n.id for n in graph.nodes} == {"b", "c"}

    def test_source_graph_untouched(self, abc_network, abc_papers):
        filter_network_by_year_range(abc_network.graph, abc_papers, (2016, 2025))
        assert len(abc_network.graph.nodes) == 3
        assert len(abc_network.graph.edges) == 1


class TestInfluentialPapers:
    """test find_influential_papers."""

    def test_ranking(self, abc_network, abc_papers):
        # b: 800 + 1 in-edge, a: 500 + 1 out-edge, c: 40
        ranked = find_influential_papers(abc_network.graph, abc_papers)
        assert [p.id for p in ranked] == ["b", "a", "c"]

    def test_limit(self, abc_network, abc_papers):
        assert len(find_influential_papers(abc_network.graph, abc_papers, limit=1)) == 1

    def test_papers_outside_graph_score_zero(self, abc_network, abc_papers):
        outsider = Paper(id="out", citation_count=10_000)
        ranked = find_influential_papers(abc_network.graph, [outsider] + abc_papers)
        assert ranked[-1].id == "out"


class TestExpandNetwork:
    """test expand_network."""

    def test_adds_neighbors(self, abc_network):
        citing = Paper(id="d", title="Paper D", year=2021, citation_count=5)
        cited = Paper(id="e", title="Paper E", year=2000, citation_count=900)
        graph = expand_network(abc_network.graph, "b", cited_by=[citing], references=[cited])

        nodes = {n.id: n for n in graph.nodes}
        assert set(nodes) == {"a", "b", "c", "d", "e"}
        assert ("d", "b") in edge_pairs(graph)
        assert ("b", "e") in edge_pairs(graph)
        assert nodes["d"].level == 2
        assert nodes["e"].level == 2
        assert nodes["b"].local_citation_count == 2
        assert nodes["d"].x is None
        assert nodes["d"].paper.similarity_to_origin is not None

    def test_cited_by_edge_type(self, abc_network):
        citing = Paper(id="d", year=2021)
        graph = expand_network(abc_network.graph, "b", cited_by=[citing])
        edge = next(e for e in graph.edges if e.source == "d")
        assert edge.citation.type == CitationType.CITED_BY

    def test_existing_nodes_kept(self, abc_network):
        replacement = Paper(id="a", title="Different title", year=2020)
        graph = expand_network(abc_network.graph, "b", cited_by=[replacement])
        assert graph.get_node("a").paper.title == "Paper A"
        assert len(graph.nodes) == 3
        assert len(graph.edges) == 1

    def test_nothing_to_add(self, abc_network):
        graph = expand_network(abc_network.graph, "b")
        assert graph is not abc_network.graph
        assert [n.id for n in graph.nodes] == [n.id for n in abc_network.graph.nodes]
        assert len(graph.edges) == len(abc_network.graph.edges)

    def test_unknown_paper(self, abc_network):
        graph = expand_network(abc_network.graph, "nope", cited_by=[Paper(id="d")])
        assert len(graph.nodes) == 3

    def test_source_graph_untouched(self, abc_network):
        expand_network(abc_network.graph, "b", cited_by=[Paper(id="d", year=2021)])
        assert len(abc_network.graph.nodes) == 3

    def test_expand_empty_graph(self):
        graph = expand_network(NetworkGraph(), "a", cited_by=[Paper(id="d")])
        assert graph.nodes == []


class TestConnectedPapers:
    """test find_connected_papers."""

    def test_prior_and_derivative(self, abc_papers):
        prior, derivative = find_connected_papers("b", abc_papers)
        assert [p.id for p in prior] == ["c"]
        assert [p.id for p in derivative] == ["a"]

    def test_unknown_paper(self, abc_papers):
        assert find_connected_papers("zzz", abc_papers) == ([], [])
