"""
Stored paper vocabulary: provenance tags, seeds and AI enrichment.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class PaperSource(str, Enum):
    """Provenance of a stored paper."""

    KEYWORD_SEARCH = "keyword_search"
    RSS = "rss"
    CITATION = "citation"
    MANUAL = "manual"


@dataclass(frozen=True)
class SeedPaper:
    """A stored paper used as the starting point of citation exploration."""

    id: int
    title_original: str
    doi: Optional[str] = None


@dataclass
class PaperEnrichment:
    """AI-generated text attached to a paper before it is stored."""

    title_translated: Optional[str] = None
    summary: Optional[str] = None
    explanation: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title_translated": self.title_translated,
            "summary": self.summary,
            "explanation": self.explanation,
        }


@dataclass
class ScoringInput:
    """What the relevance scorer and keyword extractor look at."""

    title_original: str
    title_translated: Optional[str] = None
    authors: Optional[List[str]] = None
    abstract: Optional[str] = None
    summary: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ScoringInput":
        return cls(
            title_original=str(row.get("title_original") or ""),
            title_translated=row.get("title_translated"),
            authors=list(row.get("authors") or []),
            abstract=row.get("abstract"),
            summary=row.get("summary"),
        )
