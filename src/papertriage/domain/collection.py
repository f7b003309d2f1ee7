# src/papertriage/domain/collection.py
"""
Collection run domain models.

- LogOrigin / RunStatus: audit log vocabulary
- KeywordConfig / FeedConfig: active configuration rows driving a run
- *CollectResult: per keyword / feed / seed outcome
- CollectionSummary: aggregated counters returned to callers
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from papertriage.domain.review import ReviewBreakdown


class LogOrigin(str, Enum):
    KEYWORD = "keyword"
    FEED = "feed"
    SEED_PAPER = "seed_paper"


class RunStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class KeywordConfig:
    id: int
    keyword: str
    sources: List[str] = field(default_factory=list)
    journals: List[str] = field(default_factory=list)
    category: Optional[str] = None
    is_active: bool = True


@dataclass
class FeedConfig:
    id: int
    name: str
    feed_url: str
    last_fetched_at: Optional[datetime] = None
    is_active: bool = True


@dataclass
class KeywordCollectResult:
    keyword_id: int
    keyword: str
    status: RunStatus
    papers_found: int
    message: Optional[str] = None
    review_breakdown: Optional[ReviewBreakdown] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keyword_id": self.keyword_id,
            "keyword": self.keyword,
            "status": self.status.value,
            "papers_found": self.papers_found,
            "message": self.message,
            "review_breakdown": self.review_breakdown.to_dict() if self.review_breakdown else None,
        }


@dataclass
class FeedCollectResult:
    feed_id: int
    feed_name: str
    status: RunStatus
    papers_found: int
    message: Optional[str] = None
    review_breakdown: Optional[ReviewBreakdown] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "feed_id": self.feed_id,
            "feed_name": self.feed_name,
            "status": self.status.value,
            "papers_found": self.papers_found,
            "message": self.message,
            "review_breakdown": self.review_breakdown.to_dict() if self.review_breakdown else None,
        }


@dataclass
class CitationCollectResult:
    seed_paper_id: int
    seed_paper_title: str
    status: RunStatus
    papers_found: int
    message: Optional[str] = None
    review_breakdown: Optional[ReviewBreakdown] = None
    rate_limited: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seed_paper_id": self.seed_paper_id,
            "seed_paper_title": self.seed_paper_title,
            "status": self.status.value,
            "papers_found": self.papers_found,
            "message": self.message,
            "review_breakdown": self.review_breakdown.to_dict() if self.review_breakdown else None,
            "rate_limited": self.rate_limited,
        }


@dataclass
class CollectionSummary:
    """Derived counters over one orchestrator's result list."""

    processed: int = 0
    total_papers_found: int = 0
    errors: int = 0
    review_breakdown: ReviewBreakdown = field(default_factory=ReviewBreakdown)

    @classmethod
    def from_results(cls, results: Sequence[Any]) -> "CollectionSummary":
        return cls(
            processed=len(results),
            total_papers_found=sum(r.papers_found for r in results),
            errors=sum(1 for r in results if r.status is RunStatus.ERROR),
            review_breakdown=ReviewBreakdown.combine(r.review_breakdown for r in results),
        )

    def merge(self, other: "CollectionSummary") -> None:
        self.processed += other.processed
        self.total_papers_found += other.total_papers_found
        self.errors += other.errors
        self.review_breakdown.merge(other.review_breakdown)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "processed": self.processed,
            "total_papers_found": self.total_papers_found,
            "errors": self.errors,
            "review_breakdown": self.review_breakdown.to_dict(),
        }
