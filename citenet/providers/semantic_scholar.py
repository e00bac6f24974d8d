"""
semantic scholar provider.
https://api.semanticscholar.org/
"""

import os
import logging
from typing import List, Optional, Dict, Any

import httpx

from .base import PaperProvider
from ..core.models import Paper
from ..core.config import ProviderConfig
from ..core.errors import (
    ProviderError, RateLimitError, ServerError, NetworkError, MissingCredentialsError
)
from ..core.resilience import RequestScheduler, execute_with_retry

logger = logging.getLogger("citenet.s2")

PAPER_URL = "https://www.semanticscholar.org/paper/{}"
SOURCE_NAME = "Semantic Scholar"


class SemanticScholarProvider(PaperProvider):
    """
    semantic scholar API client.
    every request goes through the owned scheduler and is retried on 429/5xx.
    """

    def __init__(
        self,
        config: Optional[ProviderConfig] = None,
        scheduler: Optional[RequestScheduler] = None,
        client: Optional[httpx.Client] = None
    ):
        self.config = config or ProviderConfig()
        self.api_key = self.config.api_key or os.environ.get("SEMANTIC_SCHOLAR_API_KEY")
        self.scheduler = scheduler or RequestScheduler(
            min_interval=self.config.rate_limit_interval,
            name="s2"
        )
        self._session = client  # lazy init when not injected

    @property
    def session(self) -> httpx.Client:
        """lazy session initialization."""
        if self._session is None or self._session.is_closed:
            self._session = httpx.Client(timeout=self.config.timeout)
        return self._session

    def close(self):
        """close the http session."""
        if self._session and not self._session.is_closed:
            self._session.close()
            self._session = None

    def __enter__(self) -> "SemanticScholarProvider":
        return self

    def __exit__(self, *exc):
        self.close()

    @property
    def name(self) -> str:
        return "semantic_scholar"

    def _headers(self) -> Dict[str, str]:
        if self.api_key:
            return {"x-api-key": self.api_key}
        if self.config.require_api_key:
            raise MissingCredentialsError(
                "semantic scholar api key required (set SEMANTIC_SCHOLAR_API_KEY)",
                provider=self.name
            )
        return {}

    def _request(self, url: str, params: Optional[Dict[str, Any]] = None,
                 allow_missing: bool = False) -> Optional[Dict[str, Any]]:
        """
        scheduled GET with retry.
        returns parsed json, or None on 404 when allow_missing is set.
        """
        headers = self._headers()

        def do_request():
            try:
                resp = self.session.get(url, params=params, headers=headers)
            except httpx.TransportError as e:
                logger.warning(f"[s2] transport error on {url}: {e}")
                raise NetworkError(str(e), provider=self.name) from e

            if resp.status_code == 200:
                return resp.json()
            elif resp.status_code == 429:
                logger.warning(f"[s2] rate limited on {url}")
                raise RateLimitError("rate limited", status_code=429, provider=self.name)
            elif resp.status_code >= 500:
                logger.warning(f"[s2] server error {resp.status_code} on {url}")
                raise ServerError(
                    f"server error {resp.status_code}",
                    status_code=resp.status_code,
                    provider=self.name
                )
            elif resp.status_code == 404 and allow_missing:
                logger.debug(f"[s2] 404 for {url}")
                return None
            else:
                raise ProviderError(
                    f"request failed: {resp.status_code} {resp.text[:200]}",
                    status_code=resp.status_code,
                    provider=self.name
                )

        return execute_with_retry(
            lambda: self.scheduler.submit(do_request),
            config=self.config.retry,
            operation_name=f"GET {url}"
        )

    def _parse_paper(self, item: Optional[Dict[str, Any]]) -> Optional[Paper]:
        """map one api record. records without an id are skipped."""
        if not isinstance(item, dict) or not item.get("paperId"):
            return None

        paper = Paper.from_dict(item)
        paper.source = SOURCE_NAME
        if not paper.url:
            paper.url = PAPER_URL.format(paper.id)
        return paper

    def _parse_list(self, items: Any, key: Optional[str] = None) -> List[Paper]:
        papers = []
        for item in items or []:
            if key is not None:
                item = item.get(key) if isinstance(item, dict) else None
            paper = self._parse_paper(item)
            if paper:
                papers.append(paper)
        return papers

    # paper methods

    def search_papers(
        self,
        query: str,
        limit: int = 20,
        year_from: Optional[int] = None,
        year_to: Optional[int] = None
    ) -> List[Paper]:
        """search papers by query."""
        params = {
            "query": query,
            "limit": min(limit, self.config.max_search_results),
            "fields": self.config.fields
        }

        if year_from and year_to:
            params["year"] = f"{year_from}-{year_to}"
        elif year_from:
            params["year"] = f"{year_from}-"
        elif year_to:
            params["year"] = f"-{year_to}"

        data = self._request(f"{self.config.base_url}/paper/search", params)
        papers = self._parse_list((data or {}).get("data"))
        if not papers:
            logger.info(f"[s2] no papers found for {query!r}")

        return papers[:limit]

    def get_paper(self, paper_id: str) -> Optional[Paper]:
        """get paper by id (S2 ID, DOI:..., etc)."""
        if paper_id.startswith("10."):
            paper_id = f"DOI:{paper_id}"

        data = self._request(
            f"{self.config.base_url}/paper/{paper_id}",
            {"fields": self.config.fields},
            allow_missing=True
        )
        return self._parse_paper(data)

    def get_citations(self, paper_id: str, limit: int = 30) -> List[Paper]:
        """get papers that cite this paper."""
        data = self._request(f"{self.config.base_url}/paper/{paper_id}/citations", {
            "fields": self.config.fields,
            "limit": min(limit, self.config.max_citation_results)
        })
        papers = self._parse_list((data or {}).get("data"), key="citingPaper")
        logger.debug(f"[s2] {len(papers)} citations for {paper_id}")
        return papers

    def get_references(self, paper_id: str, limit: int = 30) -> List[Paper]:
        """get papers cited by this paper."""
        data = self._request(f"{self.config.base_url}/paper/{paper_id}/references", {
            "fields": self.config.fields,
            "limit": min(limit, self.config.max_citation_results)
        })
        papers = self._parse_list((data or {}).get("data"), key="citedPaper")
        logger.debug(f"[s2] {len(papers)} references for {paper_id}")
        return papers

    def get_recommendations(self, paper_id: str, limit: int = 10) -> List[Paper]:
        """papers recommended for a single seed paper."""
        data = self._request(
            f"{self.config.recommendations_url}/papers/forpaper/{paper_id}",
            {"fields": self.config.fields, "limit": min(limit, self.config.max_recommendations)}
        )
        return self._parse_list((data or {}).get("recommendedPapers"))
