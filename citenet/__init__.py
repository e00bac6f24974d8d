"""
citenet - citation network construction and layout.
"""

from .core.config import CitenetConfig, SimilarityWeights, NetworkBuilderOptions
from .core.models import Paper, Citation, CitationType, EdgeType, NetworkGraph, NetworkStats
from .similarity.engine import SimilarityEngine
from .graph.builder import build_citation_network, expand_network
from .graph.state import GraphStateManager, filter_graph, merge_graph
from .layout import layout_hierarchical, layout_force_directed, ForceSimulation
from .providers.semantic_scholar import SemanticScholarProvider

__version__ = "0.1.0"

__all__ = [
    "CitenetConfig",
    "SimilarityWeights",
    "NetworkBuilderOptions",
    "Paper",
    "Citation",
    "CitationType",
    "EdgeType",
    "NetworkGraph",
    "NetworkStats",
    "SimilarityEngine",
    "build_citation_network",
    "expand_network",
    "GraphStateManager",
    "filter_graph",
    "merge_graph",
    "layout_hierarchical",
    "layout_force_directed",
    "ForceSimulation",
    "SemanticScholarProvider"
]
