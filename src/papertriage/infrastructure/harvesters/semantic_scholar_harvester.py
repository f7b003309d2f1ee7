# src/papertriage/infrastructure/harvesters/semantic_scholar_harvester.py
"""
Semantic Scholar paper harvester.

Uses the Semantic Scholar Academic Graph API for keyword search.
API documentation: https://api.semanticscholar.org/api-docs/
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import aiohttp

from papertriage.domain.harvest import CollectedPaper, HarvestResult, HarvestSource, ParseResult
from papertriage.infrastructure.api_clients.base import RateLimiter

logger = logging.getLogger(__name__)

S2_PAPER_URL = "https://www.semanticscholar.org/paper/"


def s2_published_date(data: Dict[str, Any]) -> Optional[str]:
    """publicationDate when present, else January 1st of ``year``."""
    publication_date = data.get("publicationDate")
    if isinstance(publication_date, str) and publication_date.strip():
        return publication_date.strip()[:10]
    year = data.get("year")
    if isinstance(year, int) and year > 0:
        return f"{year}-01-01"
    return None


def parse_s2_paper(data: Any) -> ParseResult:
    """Normalize one Semantic Scholar paper object (search hit or graph neighbour)."""
    if not isinstance(data, dict):
        return ParseResult.failure("paper is not an object")

    title = str(data.get("title") or "").strip()
    if not title:
        return ParseResult.failure("paper without title")

    authors: List[str] = []
    for author in data.get("authors") or []:
        if isinstance(author, dict) and author.get("name"):
            authors.append(str(author["name"]).strip())

    external_ids = data.get("externalIds") or {}
    doi = external_ids.get("DOI") if isinstance(external_ids, dict) else None

    url = str(data.get("url") or "").strip()
    if not url and data.get("paperId"):
        url = f"{S2_PAPER_URL}{data['paperId']}"

    return ParseResult.success(
        CollectedPaper(
            title=title,
            authors=authors,
            abstract=data.get("abstract") or None,
            published_date=s2_published_date(data),
            doi=str(doi).strip() if doi else None,
            url=url,
            venue=data.get("venue") or None,
            provider=HarvestSource.SEMANTIC_SCHOLAR.value,
        )
    )


class SemanticScholarHarvester:
    """
    Semantic Scholar paper harvester.

    API: https://api.semanticscholar.org/graph/v1/paper/search
    Rate limit: 1 req/s with an API key; shared pool without one
    """

    S2_SEARCH_URL = "https://api.semanticscholar.org/graph/v1/paper/search"
    REQUEST_INTERVAL = 1.0
    FIELDS = "title,authors,abstract,year,externalIds,url,venue,publicationDate"

    def __init__(self, api_key: Optional[str] = None, *, timeout: int = 30):
        self.api_key = api_key
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None
        self._limiter = RateLimiter(self.REQUEST_INTERVAL)

    @property
    def source(self) -> HarvestSource:
        return HarvestSource.SEMANTIC_SCHOLAR

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            headers = {"Accept": "application/json"}
            if self.api_key:
                headers["x-api-key"] = self.api_key
            self._session = aiohttp.ClientSession(timeout=self._timeout, headers=headers)
        return self._session

    async def search(self, query: str, *, max_results: int = 5) -> HarvestResult:
        params = {
            "query": query,
            "limit": max(1, min(max_results, 100)),
            "fields": self.FIELDS,
        }
        try:
            await self._limiter.wait()
            session = await self._get_session()

            async with session.get(self.S2_SEARCH_URL, params=params) as resp:
                if resp.status == 429:
                    return HarvestResult(
                        source=self.source,
                        papers=[],
                        total_found=0,
                        error="Semantic Scholar API rate limit exceeded",
                        rate_limited=True,
                    )
                if resp.status != 200:
                    return HarvestResult(
                        source=self.source,
                        papers=[],
                        total_found=0,
                        error=f"Semantic Scholar API returned status {resp.status}",
                    )
                data = await resp.json(content_type=None)

            items = data.get("data") if isinstance(data, dict) else None
            if not isinstance(items, list):
                items = []
            results = [parse_s2_paper(item) for item in items]
            papers = [r.record for r in results if r.ok]

            logger.info(f"Semantic Scholar harvester found {len(papers)} papers for query: {query}")
            return HarvestResult(
                source=self.source,
                papers=papers,
                total_found=int(data.get("total", len(papers))) if isinstance(data, dict) else len(papers),
                skipped=len(results) - len(papers),
            )
        except Exception as e:
            logger.warning(f"Semantic Scholar harvester error: {e}")
            return HarvestResult(
                source=self.source,
                papers=[],
                total_found=0,
                error=str(e),
            )

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
