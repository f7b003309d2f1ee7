# src/papertriage/domain/harvest.py
"""
Paper harvesting domain models.

Contains data structures for paper collection from multiple sources:
- HarvestSource: Enum of supported keyword-search providers
- CollectedPaper: Normalized paper record produced by every adapter
- ParseResult: Tagged outcome of parsing one upstream record
- HarvestResult: Result from a single harvester call
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from papertriage.domain.paper_identity import paper_identity_key


class HarvestSource(str, Enum):
    """Supported keyword-search providers."""

    ARXIV = "arxiv"
    SEMANTIC_SCHOLAR = "semantic_scholar"
    OPENALEX = "openalex"

    @classmethod
    def parse(cls, name: str) -> Optional["HarvestSource"]:
        """Accept both ids ("semantic_scholar") and display names ("Semantic Scholar")."""
        key = (name or "").strip().lower().replace(" ", "_").replace("-", "_")
        for source in cls:
            if source.value == key:
                return source
        return None


@dataclass
class CollectedPaper:
    """
    Normalized paper record shared by all source adapters.

    Required field: title. Everything else may be missing upstream.
    """

    title: str
    authors: List[str] = field(default_factory=list)
    abstract: Optional[str] = None
    published_date: Optional[str] = None
    doi: Optional[str] = None
    url: str = ""
    venue: Optional[str] = None
    provider: Optional[str] = None

    def dedup_key(self) -> str:
        """DOI when present, otherwise lowercase-trimmed title."""
        return paper_identity_key(self.doi, self.title)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "authors": list(self.authors),
            "abstract": self.abstract,
            "published_date": self.published_date,
            "doi": self.doi,
            "url": self.url,
            "venue": self.venue,
            "provider": self.provider,
        }


@dataclass
class ParseResult:
    """Outcome of parsing one loosely-typed upstream record."""

    record: Optional[CollectedPaper] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.record is not None

    @classmethod
    def success(cls, record: CollectedPaper) -> "ParseResult":
        return cls(record=record)

    @classmethod
    def failure(cls, error: str) -> "ParseResult":
        return cls(error=error)


@dataclass
class HarvestResult:
    """Result from a single harvester."""

    source: HarvestSource
    papers: List[CollectedPaper]
    total_found: int
    error: Optional[str] = None
    rate_limited: bool = False
    skipped: int = 0

    @property
    def success(self) -> bool:
        """Whether the harvest was successful."""
        return self.error is None
