"""
multi-dimensional paper similarity.

scores how similar a paper is to the origin paper along five independent
dimensions (citation, topic, temporal, author, venue), each in [0, 1],
and combines them into a weighted overall score.
"""

import re
import math
import logging
from typing import List, Optional, Dict, Set, Iterable, Mapping

from ..core.models import Paper, Citation, CitationType, SimilarityBreakdown, SimilarityResult
from ..core.config import SimilarityWeights
from .journals import find_journal_family

logger = logging.getLogger("citenet.similarity")


CitationAdjacency = Mapping[str, Set[str]]

STOP_WORDS = frozenset([
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "as", "is", "was", "are", "been", "be",
    "have", "has", "had", "do", "does", "did", "will", "would", "should",
    "could", "may", "might", "can", "using", "used", "via", "through"
])

MAX_TITLE_KEYWORDS = 10


def jaccard_similarity(items_a: Iterable[str], items_b: Iterable[str]) -> float:
    """|A & B| / |A | B| over lower-cased items. 0 when both are empty."""
    set_a = {str(item).lower() for item in items_a}
    set_b = {str(item).lower() for item in items_b}
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)


def extract_keywords(text: str) -> List[str]:
    """significant title words: longer than 3 chars, not stop words."""
    words = re.split(r"\W+", (text or "").lower())
    keywords = [w for w in words if len(w) > 3 and w not in STOP_WORDS]
    return keywords[:MAX_TITLE_KEYWORDS]


def last_name(full_name: str) -> str:
    parts = (full_name or "").strip().split()
    return parts[-1].lower() if parts else ""


def _is_unknown_venue(venue: Optional[str]) -> bool:
    normalized = (venue or "").strip().lower()
    return not normalized or normalized == "unknown"


# dimension scores

def citation_similarity(
    paper: Paper,
    origin: Paper,
    citation_adjacency: Optional[CitationAdjacency] = None
) -> float:
    """
    1.0 for the same paper, 0.8 for a direct citation either way,
    scaled overlap of cited papers otherwise. 0 without adjacency data.
    """
    if paper.id == origin.id:
        return 1.0

    if citation_adjacency is None:
        return 0.0

    paper_cites = set(citation_adjacency.get(paper.id, ()))
    origin_cites = set(citation_adjacency.get(origin.id, ()))

    if origin.id in paper_cites or paper.id in origin_cites:
        return 0.8

    shared = paper_cites & origin_cites
    if shared:
        return len(shared) / len(paper_cites | origin_cites) * 0.6

    return 0.0


def topic_similarity(paper: Paper, origin: Paper) -> float:
    """
    jaccard of fields of study.
    falls back to half-weighted title keyword overlap when either paper has no fields.
    """
    if not paper.fields_of_study or not origin.fields_of_study:
        return jaccard_similarity(
            extract_keywords(paper.title),
            extract_keywords(origin.title)
        ) * 0.5

    return jaccard_similarity(paper.fields_of_study, origin.fields_of_study)


def temporal_similarity(paper: Paper, origin: Paper) -> float:
    """stepped decay on publication year distance."""
    year_diff = abs((paper.year or 0) - (origin.year or 0))

    if year_diff == 0:
        return 1.0
    if year_diff <= 2:
        return 0.8
    if year_diff <= 5:
        return 0.5
    if year_diff <= 10:
        return 0.2

    return max(0.0, math.exp(-year_diff / 10))


def author_similarity(paper: Paper, origin: Paper) -> float:
    """jaccard of author last names."""
    names_a = [n for n in (last_name(a) for a in paper.authors) if n]
    names_b = [n for n in (last_name(a) for a in origin.authors) if n]
    return jaccard_similarity(names_a, names_b)


def venue_similarity(paper: Paper, origin: Paper) -> float:
    """1.0 same venue, 0.7 same journal family, else 0."""
    if _is_unknown_venue(paper.venue) or _is_unknown_venue(origin.venue):
        return 0.0

    if paper.venue.strip().lower() == origin.venue.strip().lower():
        return 1.0

    family_a = find_journal_family(paper.venue)
    family_b = find_journal_family(origin.venue)
    if family_a is not None and family_b is not None and family_a.id == family_b.id:
        return 0.7

    return 0.0


def calculate_similarity(
    paper: Paper,
    origin: Paper,
    weights: Optional[SimilarityWeights] = None,
    citation_adjacency: Optional[CitationAdjacency] = None
) -> SimilarityResult:
    """weighted combination of all five dimensions, clamped to [0, 1]."""
    weights = weights or SimilarityWeights()

    breakdown = SimilarityBreakdown(
        citation=citation_similarity(paper, origin, citation_adjacency),
        topic=topic_similarity(paper, origin),
        temporal=temporal_similarity(paper, origin),
        author=author_similarity(paper, origin),
        venue=venue_similarity(paper, origin)
    )

    overall = (
        breakdown.citation * weights.citation +
        breakdown.topic * weights.topic +
        breakdown.temporal * weights.temporal +
        breakdown.author * weights.author +
        breakdown.venue * weights.venue
    )

    return SimilarityResult(overall=max(0.0, min(1.0, overall)), breakdown=breakdown)


class SimilarityEngine:
    """
    computes similarity of papers to an origin paper.

    usage:
        engine = SimilarityEngine()
        result = engine.similarity(paper, origin)
        scores = engine.batch_similarity(papers, origin)
    """

    def __init__(self, weights: Optional[SimilarityWeights] = None):
        self.weights = weights or SimilarityWeights()
        self.weights.validate()

    def similarity(
        self,
        paper: Paper,
        origin: Paper,
        citation_adjacency: Optional[CitationAdjacency] = None
    ) -> SimilarityResult:
        return calculate_similarity(paper, origin, self.weights, citation_adjacency)

    def batch_similarity(
        self,
        papers: List[Paper],
        origin: Paper,
        citation_adjacency: Optional[CitationAdjacency] = None
    ) -> Dict[str, SimilarityResult]:
        """similarity of every paper to origin, keyed by paper id."""
        results = {}
        for paper in papers:
            results[paper.id] = self.similarity(paper, origin, citation_adjacency)

        logger.debug(f"[similarity] scored {len(results)} papers against {origin.id}")
        return results


def sort_by_similarity(
    papers: List[Paper],
    similarities: Mapping[str, SimilarityResult]
) -> List[Paper]:
    """most similar first. ties keep input order."""
    def overall(paper: Paper) -> float:
        result = similarities.get(paper.id)
        return result.overall if result else 0.0

    return sorted(papers, key=overall, reverse=True)


def build_citation_adjacency(
    citations: Iterable[Citation],
    paper_ids: Optional[Iterable[str]] = None
) -> Dict[str, Set[str]]:
    """
    paper id -> ids it cites.
    cited-by records are flipped so every entry reads citing -> cited.
    """
    adjacency: Dict[str, Set[str]] = {pid: set() for pid in (paper_ids or [])}

    for citation in citations:
        if citation.type == CitationType.CITED_BY:
            citing, cited = citation.target_id, citation.source_id
        else:
            citing, cited = citation.source_id, citation.target_id
        if citing == cited:
            continue
        adjacency.setdefault(citing, set()).add(cited)
        adjacency.setdefault(cited, set())

    return adjacency


def similarity_label(score: float) -> str:
    """human-readable band for a similarity score."""
    if score >= 0.8:
        return "Highly Similar"
    if score >= 0.6:
        return "Similar"
    if score >= 0.4:
        return "Moderately Similar"
    if score >= 0.2:
        return "Somewhat Related"
    return "Distantly Related"
