# src/papertriage/infrastructure/harvesters/openalex_harvester.py
"""
OpenAlex paper harvester.

Uses the OpenAlex works API for keyword search, newest publications first.
API documentation: https://docs.openalex.org/
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import aiohttp

from papertriage.domain.harvest import CollectedPaper, HarvestResult, HarvestSource, ParseResult
from papertriage.infrastructure.api_clients.base import RateLimiter

logger = logging.getLogger(__name__)

DOI_PREFIX = "https://doi.org/"


def reconstruct_abstract(inverted_index: Any) -> Optional[str]:
    """OpenAlex ships abstracts as {word: [positions]}; rebuild the text."""
    if not isinstance(inverted_index, dict) or not inverted_index:
        return None
    words: List[tuple] = []
    for word, positions in inverted_index.items():
        if not isinstance(positions, list):
            continue
        for pos in positions:
            if isinstance(pos, int):
                words.append((pos, str(word)))
    words.sort(key=lambda item: item[0])
    text = " ".join(word for _, word in words)
    return text or None


def parse_openalex_work(data: Any) -> ParseResult:
    if not isinstance(data, dict):
        return ParseResult.failure("work is not an object")

    title = str(data.get("title") or data.get("display_name") or "").strip()
    if not title:
        return ParseResult.failure("work without title")

    authors: List[str] = []
    for authorship in data.get("authorships") or []:
        author = (authorship or {}).get("author") or {}
        if author.get("display_name"):
            authors.append(str(author["display_name"]).strip())

    doi = str(data.get("doi") or "").strip()
    if doi.startswith(DOI_PREFIX):
        doi = doi[len(DOI_PREFIX) :]

    primary_location: Dict[str, Any] = data.get("primary_location") or {}
    venue_source = primary_location.get("source") or {}

    return ParseResult.success(
        CollectedPaper(
            title=title,
            authors=authors,
            abstract=reconstruct_abstract(data.get("abstract_inverted_index")),
            published_date=data.get("publication_date") or None,
            doi=doi or None,
            url=str(primary_location.get("landing_page_url") or data.get("id") or ""),
            venue=venue_source.get("display_name") or None,
            provider=HarvestSource.OPENALEX.value,
        )
    )


class OpenAlexHarvester:
    """
    OpenAlex paper harvester.

    API: https://api.openalex.org/works
    Rate limit: 10 req/s (polite pool with email), 100K/day
    """

    OPENALEX_API_URL = "https://api.openalex.org/works"
    REQUEST_INTERVAL = 0.1
    SELECT = "id,title,authorships,abstract_inverted_index,publication_date,doi,primary_location,type"

    def __init__(self, email: Optional[str] = None, *, timeout: int = 30):
        self.email = email
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None
        self._limiter = RateLimiter(self.REQUEST_INTERVAL)

    @property
    def source(self) -> HarvestSource:
        return HarvestSource.OPENALEX

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self._timeout, headers={"Accept": "application/json"}
            )
        return self._session

    async def search(self, query: str, *, max_results: int = 5) -> HarvestResult:
        params: Dict[str, Any] = {
            "search": query,
            "per_page": max(1, min(max_results, 200)),
            "sort": "publication_date:desc",
            "select": self.SELECT,
        }
        if self.email:
            params["mailto"] = self.email

        try:
            await self._limiter.wait()
            session = await self._get_session()

            async with session.get(self.OPENALEX_API_URL, params=params) as resp:
                if resp.status == 429:
                    return HarvestResult(
                        source=self.source,
                        papers=[],
                        total_found=0,
                        error="OpenAlex API rate limit exceeded",
                        rate_limited=True,
                    )
                if resp.status != 200:
                    return HarvestResult(
                        source=self.source,
                        papers=[],
                        total_found=0,
                        error=f"OpenAlex API returned status {resp.status}",
                    )
                data = await resp.json(content_type=None)

            items = data.get("results") if isinstance(data, dict) else None
            if not isinstance(items, list):
                items = []
            results = [parse_openalex_work(item) for item in items]
            papers = [r.record for r in results if r.ok]

            total_found = (data.get("meta") or {}).get("count", len(papers))
            logger.info(f"OpenAlex harvester found {len(papers)} papers for query: {query}")
            return HarvestResult(
                source=self.source,
                papers=papers,
                total_found=total_found,
                skipped=len(results) - len(papers),
            )
        except Exception as e:
            logger.warning(f"OpenAlex harvester error: {e}")
            return HarvestResult(
                source=self.source,
                papers=[],
                total_found=0,
                error=str(e),
            )

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
