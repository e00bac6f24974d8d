"""
configuration for citenet.
all settings in one place, easily tunable.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Set
import os
import logging

logger = logging.getLogger("citenet.config")


@dataclass
class SimilarityWeights:
    """weights for the similarity dimensions. must sum to 1.0."""
    citation: float = 0.35   # citation relationship matters most
    topic: float = 0.25
    temporal: float = 0.15
    author: float = 0.15
    venue: float = 0.10

    def total(self) -> float:
        return self.citation + self.topic + self.temporal + self.author + self.venue

    def validate(self, tolerance: float = 0.01):
        """raise ValueError if the weights do not sum to ~1."""
        total = self.total()
        if abs(total - 1.0) > tolerance:
            raise ValueError(f"similarity weights must sum to 1.0, got {total:.3f}")
        for name, value in self.to_dict().items():
            if value < 0:
                raise ValueError(f"similarity weight '{name}' is negative: {value}")

    def to_dict(self) -> Dict[str, float]:
        return {
            "citation": self.citation,
            "topic": self.topic,
            "temporal": self.temporal,
            "author": self.author,
            "venue": self.venue
        }


@dataclass
class NetworkBuilderOptions:
    """options for building a citation network."""
    max_nodes: int = 100
    min_citations: int = 0

    include_semantic_edges: bool = False
    min_semantic_similarity: float = 0.5

    # both need citation_adjacency to produce edges
    include_co_citations: bool = False
    include_bibliographic_coupling: bool = False

    # authoritative paper id -> cited ids, when a collaborator has it
    citation_adjacency: Optional[Dict[str, Set[str]]] = None


@dataclass
class HierarchicalLayoutConfig:
    """layered (top-to-bottom) layout settings."""
    node_sep: float = 100.0
    rank_sep: float = 150.0

    # edge length from similarity: high similarity -> short edge
    min_edge_length: float = 80.0
    max_edge_length: float = 300.0
    length_unit: float = 50.0   # edge length per rank step

    margin_x: float = 50.0
    margin_y: float = 50.0


@dataclass
class ForceLayoutConfig:
    """force-directed simulation settings."""
    iterations: int = 300
    alpha_decay: float = 0.02
    link_strength: float = 0.5
    link_distance: float = 100.0
    charge_strength: float = -300.0

    initial_radius: float = 200.0
    velocity_decay: float = 0.8
    centering_strength: float = 0.01


@dataclass
class RetryConfig:
    """retry behaviour for retrieval requests."""
    max_retries: int = 3
    base_delay: float = 2.0
    exponential_base: float = 2.0
    max_delay: float = 30.0
    jitter: bool = False


@dataclass
class ProviderConfig:
    """semantic scholar provider settings."""
    base_url: str = "https://api.semanticscholar.org/graph/v1"
    recommendations_url: str = "https://api.semanticscholar.org/recommendations/v1"
    api_key: Optional[str] = None
    require_api_key: bool = False
    timeout: float = 30.0

    # minimum seconds between dispatched requests
    rate_limit_interval: float = 1.1
    retry: RetryConfig = field(default_factory=RetryConfig)

    # per-call caps
    max_search_results: int = 100
    max_citation_results: int = 1000
    max_recommendations: int = 500

    fields: str = (
        "paperId,title,abstract,venue,year,citationCount,influentialCitationCount,"
        "referenceCount,authors,externalIds,url,tldr,fieldsOfStudy"
    )


@dataclass
class CitenetConfig:
    """master configuration for citenet."""
    weights: SimilarityWeights = field(default_factory=SimilarityWeights)
    builder: NetworkBuilderOptions = field(default_factory=NetworkBuilderOptions)
    hierarchical: HierarchicalLayoutConfig = field(default_factory=HierarchicalLayoutConfig)
    force: ForceLayoutConfig = field(default_factory=ForceLayoutConfig)
    provider: ProviderConfig = field(default_factory=ProviderConfig)

    # "force", "hierarchical" or "none"
    default_layout: str = "force"

    @classmethod
    def default(cls) -> 'CitenetConfig':
        """return default configuration."""
        return cls()

    @classmethod
    def minimal(cls) -> 'CitenetConfig':
        """small graphs and short simulations, for quick runs and tests."""
        config = cls()
        config.builder.max_nodes = 30
        config.force.iterations = 50
        return config

    @classmethod
    def from_env(cls) -> 'CitenetConfig':
        """default configuration with overrides from the environment."""
        config = cls()
        api_key = os.environ.get("SEMANTIC_SCHOLAR_API_KEY")
        if api_key:
            config.provider.api_key = api_key
        interval = os.environ.get("CITENET_RATE_LIMIT_INTERVAL")
        if interval:
            try:
                config.provider.rate_limit_interval = max(0.0, float(interval))
            except ValueError:
                logger.warning(f"[config] ignoring invalid CITENET_RATE_LIMIT_INTERVAL={interval!r}")
        return config
