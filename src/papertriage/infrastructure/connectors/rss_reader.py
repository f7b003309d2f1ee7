"""
RSS / Atom feed reader for journal tables of contents.

Fetches with aiohttp, parses with feedparser and strips HTML with
BeautifulSoup. Only entries newer than the caller's cutoff are returned.
"""

from __future__ import annotations

import asyncio
import calendar
import logging
import re
from datetime import datetime, timezone
from typing import Any, List, Optional

import aiohttp
import feedparser
from bs4 import BeautifulSoup

from papertriage.domain.harvest import CollectedPaper, ParseResult
from papertriage.domain.paper_identity import extract_doi_from_url
from papertriage.infrastructure.api_clients.errors import ProviderError, RateLimitedError

logger = logging.getLogger(__name__)

_WS_RE = re.compile(r"\s+")
_AUTHOR_SPLIT_RE = re.compile(r"[,;]")


def clean_text(text: Any) -> str:
    return _WS_RE.sub(" ", str(text or "")).strip()


def strip_html(html: Any) -> str:
    if not html:
        return ""
    return clean_text(BeautifulSoup(str(html), "html.parser").get_text(" "))


def split_authors(creator: Any) -> List[str]:
    if not creator:
        return []
    return [a.strip() for a in _AUTHOR_SPLIT_RE.split(str(creator)) if a.strip()]


def entry_published_at(entry: Any) -> Optional[datetime]:
    parsed = entry.get("published_parsed") or entry.get("updated_parsed")
    if not parsed:
        return None
    try:
        return datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc)
    except (OverflowError, TypeError, ValueError):
        return None


def _entry_abstract(entry: Any) -> Optional[str]:
    raw = entry.get("summary") or entry.get("description")
    if not raw:
        content = entry.get("content") or []
        if content and isinstance(content[0], dict):
            raw = content[0].get("value")
    text = strip_html(raw)
    return text or None


def _entry_authors(entry: Any) -> List[str]:
    # feedparser maps dc:creator onto "author"; multi-author feeds may also fill "authors".
    authors = split_authors(entry.get("author"))
    if authors:
        return authors
    names: List[str] = []
    for author in entry.get("authors") or []:
        names.extend(split_authors((author or {}).get("name")))
    return names


def parse_rss_entry(entry: Any) -> ParseResult:
    title = clean_text(entry.get("title"))
    link = clean_text(entry.get("link"))
    if not title or not link:
        return ParseResult.failure("entry without title or link")

    published = entry_published_at(entry)
    return ParseResult.success(
        CollectedPaper(
            title=title,
            authors=_entry_authors(entry),
            abstract=_entry_abstract(entry),
            published_date=published.date().isoformat() if published else None,
            doi=extract_doi_from_url(link),
            url=link,
            venue=None,
            provider="rss",
        )
    )


def parse_feed(text: str, *, since: Optional[datetime] = None) -> List[CollectedPaper]:
    """
    Parse feed text into paper records.

    Entries dated at or before ``since`` are dropped; undated entries are kept.
    ``since=None`` keeps the whole page.
    """
    if since is not None and since.tzinfo is None:
        since = since.replace(tzinfo=timezone.utc)

    parsed = feedparser.parse(text)
    papers: List[CollectedPaper] = []
    for entry in parsed.entries:
        if since is not None:
            published = entry_published_at(entry)
            if published is not None and published <= since:
                continue
        result = parse_rss_entry(entry)
        if result.ok:
            papers.append(result.record)
        else:
            logger.debug("RSS: skipped entry (%s)", result.error)
    return papers


class RssFeedReader:
    """Fetch-and-parse for one feed URL per call."""

    def __init__(self, *, timeout: int = 15):
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                headers={"Accept": "application/rss+xml, application/atom+xml, application/xml, text/xml"},
            )
        return self._session

    async def fetch(self, feed_url: str, *, since: Optional[datetime] = None) -> List[CollectedPaper]:
        """Raise ProviderError on transport failure; an empty feed is an empty list."""
        session = await self._get_session()
        try:
            async with session.get(feed_url) as resp:
                if resp.status == 429:
                    raise RateLimitedError(provider="rss")
                if resp.status != 200:
                    raise ProviderError(f"RSS feed returned status {resp.status}", status=resp.status, provider="rss")
                text = await resp.text()
        except aiohttp.ClientError as exc:
            raise ProviderError(f"RSS fetch failed: {exc}", provider="rss") from exc
        except asyncio.TimeoutError as exc:
            raise ProviderError("RSS fetch timeout", provider="rss") from exc
        return parse_feed(text, since=since)

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
