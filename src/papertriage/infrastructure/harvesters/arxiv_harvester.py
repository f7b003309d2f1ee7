# src/papertriage/infrastructure/harvesters/arxiv_harvester.py
"""
arXiv paper harvester.

Uses the arXiv Atom API for paper search, newest submissions first.
API documentation: https://arxiv.org/help/api
"""

from __future__ import annotations

import logging
import re
from typing import Any, List, Optional
from urllib.parse import unquote

import aiohttp
import feedparser

from papertriage.domain.harvest import CollectedPaper, HarvestResult, HarvestSource, ParseResult
from papertriage.domain.paper_identity import extract_doi_from_url
from papertriage.infrastructure.api_clients.base import RateLimiter

logger = logging.getLogger(__name__)

_WS_RE = re.compile(r"\s+")


def _clean(text: Any) -> str:
    return _WS_RE.sub(" ", str(text or "")).strip()


def _link_href(entry: Any, rel: str, type_: Optional[str] = None) -> str:
    for link in entry.get("links", []) or []:
        if link.get("rel") != rel:
            continue
        if type_ and link.get("type") != type_:
            continue
        return str(link.get("href") or "")
    return ""


def parse_arxiv_entry(entry: Any) -> ParseResult:
    """Normalize one feedparser entry from the arXiv Atom feed."""
    title = _clean(entry.get("title"))
    if not title:
        return ParseResult.failure("entry without title")

    authors = [_clean(a.get("name")) for a in entry.get("authors", []) or [] if _clean(a.get("name"))]

    doi = _clean(entry.get("arxiv_doi")) or None
    if doi is None:
        for link in entry.get("links", []) or []:
            href = unquote(str(link.get("href") or ""))
            doi = extract_doi_from_url(href)
            if doi:
                break

    published = _clean(entry.get("published"))[:10] or None
    url = _link_href(entry, "alternate") or _clean(entry.get("link")) or _clean(entry.get("id"))

    return ParseResult.success(
        CollectedPaper(
            title=title,
            authors=authors,
            abstract=_clean(entry.get("summary")) or None,
            published_date=published,
            doi=doi,
            url=url,
            venue=None,
            provider=HarvestSource.ARXIV.value,
        )
    )


def parse_arxiv_feed(xml_text: str) -> List[ParseResult]:
    parsed = feedparser.parse(xml_text)
    return [parse_arxiv_entry(entry) for entry in parsed.entries]


class ArxivHarvester:
    """
    arXiv paper harvester using the Atom API.

    API: https://export.arxiv.org/api/query
    Rate limit: 1 request per 3 seconds
    """

    ARXIV_API_URL = "https://export.arxiv.org/api/query"
    REQUEST_INTERVAL = 3.0

    def __init__(self, *, timeout: int = 30):
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None
        self._limiter = RateLimiter(self.REQUEST_INTERVAL)

    @property
    def source(self) -> HarvestSource:
        return HarvestSource.ARXIV

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def search(self, query: str, *, max_results: int = 5) -> HarvestResult:
        params = {
            "search_query": f"all:{query}",
            "start": 0,
            "max_results": max(1, min(max_results, 200)),
            "sortBy": "submittedDate",
            "sortOrder": "descending",
        }

        try:
            await self._limiter.wait()
            session = await self._get_session()

            async with session.get(
                self.ARXIV_API_URL, params=params, headers={"Accept": "application/xml"}
            ) as resp:
                if resp.status == 429:
                    return HarvestResult(
                        source=self.source,
                        papers=[],
                        total_found=0,
                        error="arXiv API rate limit exceeded",
                        rate_limited=True,
                    )
                if resp.status != 200:
                    return HarvestResult(
                        source=self.source,
                        papers=[],
                        total_found=0,
                        error=f"arXiv API returned status {resp.status}",
                    )
                xml_text = await resp.text()

            results = parse_arxiv_feed(xml_text)
            papers = [r.record for r in results if r.ok]
            skipped = len(results) - len(papers)
            if skipped:
                logger.debug("arXiv: skipped %d unparseable entries for %r", skipped, query)

            logger.info(f"arXiv harvester found {len(papers)} papers for query: {query}")
            return HarvestResult(
                source=self.source,
                papers=papers,
                total_found=len(papers),
                skipped=skipped,
            )
        except Exception as e:
            logger.warning(f"arXiv harvester error: {e}")
            return HarvestResult(
                source=self.source,
                papers=[],
                total_found=0,
                error=str(e),
            )

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
