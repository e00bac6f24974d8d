# similarity - multi-dimensional paper similarity to the origin
from .engine import (
    SimilarityEngine, calculate_similarity, citation_similarity, topic_similarity,
    temporal_similarity, author_similarity, venue_similarity, jaccard_similarity,
    sort_by_similarity, build_citation_adjacency, similarity_label
)
from .journals import JournalFamily, JOURNAL_FAMILIES, find_journal_family, journal_families_for
