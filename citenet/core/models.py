"""
core data models for citenet.
papers, inferred relationships, and the graph snapshots handed to renderers.
"""

from dataclasses import dataclass, field, replace
from typing import Optional, List, Dict, Any, Tuple, Set
from enum import Enum
import time


class CitationType(Enum):
    """direction of a citation relative to its source."""
    CITES = "cites"
    CITED_BY = "cited-by"


class EdgeType(Enum):
    """types of edges in the network."""
    CITATION = "citation"
    SEMANTIC = "semantic"                              # shared fields of study
    CO_CITATION = "co-citation"                        # cited together
    BIBLIOGRAPHIC_COUPLING = "bibliographic-coupling"  # shared references


@dataclass
class SimilarityBreakdown:
    """per-dimension similarity scores, each in [0, 1]."""
    citation: float = 0.0
    topic: float = 0.0
    temporal: float = 0.0
    author: float = 0.0
    venue: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {
            "citation": self.citation,
            "topic": self.topic,
            "temporal": self.temporal,
            "author": self.author,
            "venue": self.venue
        }


@dataclass
class SimilarityResult:
    """overall similarity plus its breakdown."""
    overall: float = 0.0
    breakdown: SimilarityBreakdown = field(default_factory=SimilarityBreakdown)

    def to_dict(self) -> Dict[str, Any]:
        return {"overall": self.overall, "breakdown": self.breakdown.to_dict()}


def _as_int(value: Any) -> int:
    """coerce loose numeric input, never negative."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        return 0
    return max(number, 0)


def _as_str(value: Any) -> str:
    return str(value) if value is not None else ""


def _author_names(raw: Any) -> List[str]:
    """authors may arrive as strings or {name: ...} dicts."""
    names = []
    for item in raw or []:
        if isinstance(item, dict):
            name = item.get("name") or item.get("display_name")
        else:
            name = item
        if name:
            names.append(str(name))
    return names


@dataclass
class Paper:
    """
    a scholarly paper.
    created by an ingestion collaborator and read-only afterwards,
    except for the similarity annotation (which produces a copy).
    """
    # identity
    id: str = ""

    # core metadata
    title: str = ""
    authors: List[str] = field(default_factory=list)
    year: int = 0
    citation_count: int = 0
    abstract: str = ""
    url: str = ""
    source: str = ""

    # optional metadata
    venue: Optional[str] = None
    fields_of_study: List[str] = field(default_factory=list)
    influential_citation_count: Optional[int] = None
    reference_count: Optional[int] = None
    tldr: Optional[str] = None
    external_ids: Dict[str, str] = field(default_factory=dict)

    # computed relative to the origin paper
    similarity_to_origin: Optional[float] = None
    similarity_breakdown: Optional[SimilarityBreakdown] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Paper":
        """
        map a loose record (camelCase or snake_case) to a Paper.
        missing optional fields fall back to empty values.
        """
        def pick(*keys, default=None):
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return default

        tldr = pick("tldr")
        if isinstance(tldr, dict):
            tldr = tldr.get("text")

        external_ids = pick("externalIds", "external_ids", default={})
        if not isinstance(external_ids, dict):
            external_ids = {}

        fields = pick("fieldsOfStudy", "fields_of_study", default=[])
        if isinstance(fields, str):
            fields = [fields]

        influential = pick("influentialCitationCount", "influential_citation_count")
        references = pick("referenceCount", "reference_count")

        return cls(
            id=_as_str(pick("id", "paperId", "paper_id", default="")),
            title=_as_str(pick("title", default="")),
            authors=_author_names(pick("authors", default=[])),
            year=_as_int(pick("year", "publication_year", default=0)),
            citation_count=_as_int(pick("citationCount", "citation_count", default=0)),
            abstract=_as_str(pick("abstract", default="")),
            url=_as_str(pick("url", default="")),
            source=_as_str(pick("source", default="")),
            venue=pick("venue") or None,
            fields_of_study=[str(f) for f in fields if f],
            influential_citation_count=_as_int(influential) if influential is not None else None,
            reference_count=_as_int(references) if references is not None else None,
            tldr=tldr,
            external_ids={str(k): str(v) for k, v in external_ids.items() if v},
        )

    def with_similarity(self, result: SimilarityResult) -> "Paper":
        """return an annotated copy."""
        return replace(
            self,
            similarity_to_origin=result.overall,
            similarity_breakdown=result.breakdown
        )

    def to_dict(self) -> Dict[str, Any]:
        """serialize for collaborators."""
        return {
            "id": self.id,
            "title": self.title,
            "authors": list(self.authors),
            "year": self.year,
            "citation_count": self.citation_count,
            "abstract": self.abstract,
            "url": self.url,
            "source": self.source,
            "venue": self.venue,
            "fields_of_study": list(self.fields_of_study),
            "similarity_to_origin": self.similarity_to_origin,
            "similarity_breakdown": (
                self.similarity_breakdown.to_dict()
                if self.similarity_breakdown else None
            )
        }


@dataclass
class Citation:
    """directed relationship between two papers."""
    source_id: str
    target_id: str
    type: CitationType = CitationType.CITES


@dataclass
class NetworkNode:
    """
    a paper placed in the network.
    x/y of None means the node has not been positioned yet.
    """
    id: str
    paper: Paper
    x: Optional[float] = None
    y: Optional[float] = None
    vx: Optional[float] = None
    vy: Optional[float] = None
    is_origin: bool = False
    is_selected: bool = False
    level: int = 0                    # bfs hops from origin
    local_citation_count: int = 0     # in-degree within this graph

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "paper": self.paper.to_dict(),
            "x": self.x if self.x is not None else 0.0,
            "y": self.y if self.y is not None else 0.0,
            "is_origin": self.is_origin,
            "is_selected": self.is_selected,
            "level": self.level,
            "local_citation_count": self.local_citation_count
        }


@dataclass
class NetworkEdge:
    """edge between two nodes in the network."""
    id: str
    source: str
    target: str
    citation: Citation
    weight: float = 1.0
    edge_type: Optional[EdgeType] = None
    semantic_similarity: Optional[float] = None
    shared_fields_of_study: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "type": self.citation.type.value,
            "edge_type": self.edge_type.value if self.edge_type else None,
            "weight": self.weight,
            "semantic_similarity": self.semantic_similarity,
            "shared_fields_of_study": list(self.shared_fields_of_study)
        }


def now_ms() -> int:
    """current time as epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass
class NetworkGraph:
    """
    immutable-by-convention graph snapshot.
    every transformation builds a new NetworkGraph.
    """
    nodes: List[NetworkNode] = field(default_factory=list)
    edges: List[NetworkEdge] = field(default_factory=list)
    origin_paper_id: str = ""
    last_updated: int = field(default_factory=now_ms)

    def node_ids(self) -> Set[str]:
        return {n.id for n in self.nodes}

    def get_node(self, node_id: str) -> Optional[NetworkNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def origin_node(self) -> Optional[NetworkNode]:
        """the node flagged as origin, falling back to origin_paper_id."""
        for node in self.nodes:
            if node.is_origin:
                return node
        return self.get_node(self.origin_paper_id)

    def to_dict(self) -> Dict[str, Any]:
        """snapshot for rendering collaborators."""
        return {
            "origin_paper_id": self.origin_paper_id,
            "last_updated": self.last_updated,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges]
        }


@dataclass
class NetworkStats:
    """summary statistics returned alongside a built network."""
    total_papers: int = 0
    included_papers: int = 0
    total_edges: int = 0
    avg_citations: int = 0
    year_range: Tuple[int, int] = (0, 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_papers": self.total_papers,
            "included_papers": self.included_papers,
            "total_edges": self.total_edges,
            "avg_citations": self.avg_citations,
            "year_range": list(self.year_range)
        }
