"""
Semantic Scholar citation-graph connector.

Resolves stored papers to S2 paper ids and fetches their citing / cited
neighbours. Request spacing is the caller's job (CitationExplorer owns the
RateLimiter); pass ``rate_limiter`` only for standalone use.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from papertriage.domain.harvest import CollectedPaper
from papertriage.infrastructure.api_clients.base import APIClient, RateLimiter
from papertriage.infrastructure.api_clients.errors import ProviderError
from papertriage.infrastructure.harvesters.semantic_scholar_harvester import parse_s2_paper

logger = logging.getLogger(__name__)

S2_GRAPH_URL = "https://api.semanticscholar.org/graph/v1"
NEIGHBOUR_FIELDS = "title,authors,abstract,year,externalIds,url,venue,publicationDate"


def _parse_neighbours(payload: Optional[Dict[str, Any]], key: str) -> List[CollectedPaper]:
    if payload is None:
        return []
    items = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(items, list):
        raise ProviderError("malformed citation payload", provider="semantic_scholar")

    papers: List[CollectedPaper] = []
    for item in items:
        result = parse_s2_paper((item or {}).get(key) if isinstance(item, dict) else None)
        if result.ok:
            papers.append(result.record)
        else:
            logger.debug("S2 graph: skipped neighbour (%s)", result.error)
    return papers


class SemanticScholarGraphConnector:
    """Citation-graph provider: resolve-by-DOI, resolve-by-title, citing, cited."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        rate_limiter: Optional[RateLimiter] = None,
        client: Optional[APIClient] = None,
    ):
        self.client = client or APIClient(
            S2_GRAPH_URL,
            api_key=api_key,
            provider="semantic_scholar",
            rate_limiter=rate_limiter,
        )

    async def resolve_by_doi(self, doi: str) -> Optional[str]:
        payload = await self.client.get(f"/paper/DOI:{quote(doi, safe='/')}", params={"fields": "paperId"})
        if not payload:
            return None
        paper_id = payload.get("paperId")
        return str(paper_id) if paper_id else None

    async def resolve_by_title(self, title: str) -> Optional[str]:
        payload = await self.client.get(
            "/paper/search", params={"query": title, "limit": 1, "fields": "paperId,title"}
        )
        if not payload:
            return None
        items = payload.get("data") or []
        if not items or not isinstance(items[0], dict):
            return None
        paper_id = items[0].get("paperId")
        return str(paper_id) if paper_id else None

    async def fetch_citing(self, paper_id: str, *, limit: int = 10) -> List[CollectedPaper]:
        payload = await self.client.get(
            f"/paper/{paper_id}/citations", params={"fields": NEIGHBOUR_FIELDS, "limit": limit}
        )
        return _parse_neighbours(payload, "citingPaper")[:limit]

    async def fetch_cited(self, paper_id: str, *, limit: int = 10) -> List[CollectedPaper]:
        payload = await self.client.get(
            f"/paper/{paper_id}/references", params={"fields": NEIGHBOUR_FIELDS, "limit": limit}
        )
        return _parse_neighbours(payload, "citedPaper")[:limit]

    async def close(self) -> None:
        await self.client.close()
