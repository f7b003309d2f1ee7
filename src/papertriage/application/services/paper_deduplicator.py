# src/papertriage/application/services/paper_deduplicator.py
"""
Paper deduplication service.

Identity is the DOI when present, otherwise the case/whitespace-folded title.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol, Sequence, Set, Tuple

from papertriage.domain.harvest import CollectedPaper
from papertriage.domain.paper_identity import normalize_doi

logger = logging.getLogger(__name__)


class ExistingPaperLookup(Protocol):
    def find_existing_keys(self, *, dois, titles) -> Tuple[Set[str], Set[str]]:
        ...


class PaperDeduplicator:
    """
    Batch and storage deduplication.

    Stages, in pipeline order:
    1. ``deduplicate``: same-batch duplicates, first occurrence wins
    2. ``filter_by_seen_keys``: run-scoped key set shared across seeds
    3. ``filter_by_journals``: optional venue allow-list
    4. ``filter_existing``: DOI or exact original title already stored
    """

    def __init__(self, store: Optional[ExistingPaperLookup] = None):
        self.store = store

    @staticmethod
    def deduplicate(papers: Sequence[CollectedPaper]) -> List[CollectedPaper]:
        seen: Set[str] = set()
        unique: List[CollectedPaper] = []
        for paper in papers:
            key = paper.dedup_key()
            if key in seen:
                continue
            seen.add(key)
            unique.append(paper)
        if len(unique) != len(papers):
            logger.debug("Deduplication: %d -> %d", len(papers), len(unique))
        return unique

    @staticmethod
    def filter_by_seen_keys(papers: Sequence[CollectedPaper], seen_keys: Set[str]) -> List[CollectedPaper]:
        """Drop papers whose key is already in ``seen_keys``; record the survivors' keys."""
        kept: List[CollectedPaper] = []
        for paper in papers:
            key = paper.dedup_key()
            if key in seen_keys:
                continue
            seen_keys.add(key)
            kept.append(paper)
        return kept

    @staticmethod
    def filter_by_journals(papers: Sequence[CollectedPaper], journals: Sequence[str]) -> List[CollectedPaper]:
        """Case-insensitive substring match on venue. An empty list accepts everything."""
        needles = [j.strip().lower() for j in journals or [] if j and j.strip()]
        if not needles:
            return list(papers)
        return [
            p for p in papers if p.venue and any(needle in p.venue.lower() for needle in needles)
        ]

    def filter_existing(self, papers: Sequence[CollectedPaper]) -> List[CollectedPaper]:
        if not papers:
            return []
        if self.store is None:
            return list(papers)

        existing_dois, existing_titles = self.store.find_existing_keys(
            dois=[p.doi for p in papers if p.doi],
            titles=[p.title for p in papers],
        )
        kept: List[CollectedPaper] = []
        for paper in papers:
            doi = normalize_doi(paper.doi)
            if doi and doi in existing_dois:
                continue
            if paper.title in existing_titles:
                continue
            kept.append(paper)
        return kept
