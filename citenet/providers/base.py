"""
base provider interface for paper data sources.
all providers must implement this interface.
"""

import re
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from ..core.models import Paper

logger = logging.getLogger("citenet.providers")

# 40 hex chars (s2 corpus hash), a DOI, or a prefixed id like "DOI:..." / "arXiv:..."
PAPER_ID_PATTERN = re.compile(r"^([0-9a-f]{40}|10\.\S+|[A-Za-z]+:\S+)$")


def looks_like_paper_id(value: str) -> bool:
    return bool(PAPER_ID_PATTERN.match(value.strip()))


@dataclass
class ExpansionResult:
    """papers fetched around one paper."""
    paper_id: str
    citations: List[Paper] = field(default_factory=list)     # papers citing it
    references: List[Paper] = field(default_factory=list)    # papers it cites

    @property
    def all_papers(self) -> List[Paper]:
        return self.citations + self.references


@dataclass
class PaperNetwork:
    """an origin paper with its direct neighborhood."""
    origin: Paper
    citations: List[Paper] = field(default_factory=list)
    references: List[Paper] = field(default_factory=list)

    @property
    def all_papers(self) -> List[Paper]:
        return [self.origin] + self.citations + self.references


class PaperProvider(ABC):
    """
    abstract base class for paper data providers.
    providers fetch data from external APIs and map it to Paper records.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """provider name for logging."""
        pass

    @abstractmethod
    def search_papers(
        self,
        query: str,
        limit: int = 20,
        year_from: Optional[int] = None,
        year_to: Optional[int] = None
    ) -> List[Paper]:
        """search for papers by query string."""
        pass

    @abstractmethod
    def get_paper(self, paper_id: str) -> Optional[Paper]:
        """get paper by id, None when it does not exist."""
        pass

    @abstractmethod
    def get_citations(self, paper_id: str, limit: int = 30) -> List[Paper]:
        """get papers that cite this paper (forward cites)."""
        pass

    @abstractmethod
    def get_references(self, paper_id: str, limit: int = 30) -> List[Paper]:
        """get papers cited by this paper (backward refs)."""
        pass

    def get_recommendations(self, paper_id: str, limit: int = 10) -> List[Paper]:
        """get recommended papers. not all providers support this."""
        return []

    def expand(self, paper_id: str, citation_limit: int = 30,
               reference_limit: int = 30) -> ExpansionResult:
        """citations and references of one paper."""
        return ExpansionResult(
            paper_id=paper_id,
            citations=self.get_citations(paper_id, citation_limit),
            references=self.get_references(paper_id, reference_limit)
        )

    def fetch_network(self, paper_id_or_query: str, max_citations: int = 30,
                      max_references: int = 30) -> Optional[PaperNetwork]:
        """
        resolve an origin (by id, or top search hit) and fetch its neighborhood.
        None when nothing matches.
        """
        origin = None
        if looks_like_paper_id(paper_id_or_query):
            origin = self.get_paper(paper_id_or_query.strip())
        if origin is None:
            hits = self.search_papers(paper_id_or_query, limit=1)
            if not hits:
                logger.warning(f"[{self.name}] no papers found for {paper_id_or_query!r}")
                return None
            origin = hits[0]

        expansion = self.expand(origin.id, max_citations, max_references)
        logger.info(
            f"[{self.name}] network for {origin.id}: "
            f"{len(expansion.citations)} citations, {len(expansion.references)} references"
        )
        return PaperNetwork(
            origin=origin,
            citations=expansion.citations,
            references=expansion.references
        )
