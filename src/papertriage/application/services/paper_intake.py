"""
Per-paper ingestion shared by every collector:
enrich -> score -> resolve review status -> insert.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from papertriage.application.services.paper_enricher import EnrichmentLevel, PaperEnricher
from papertriage.application.services.relevance_scorer import RelevanceScorer
from papertriage.domain.harvest import CollectedPaper
from papertriage.domain.interest import InterestEntry
from papertriage.domain.paper import PaperSource, ScoringInput
from papertriage.domain.review import ReviewSettings, ReviewStatus, resolve_review_status
from papertriage.infrastructure.stores.paper_store import PaperStore

logger = logging.getLogger(__name__)


@dataclass
class IntakeOutcome:
    saved: bool
    review_status: ReviewStatus
    relevance_score: Optional[int] = None
    paper_id: Optional[int] = None


class PaperIntake:
    def __init__(self, *, papers: PaperStore, enricher: PaperEnricher, scorer: RelevanceScorer):
        self.papers = papers
        self.enricher = enricher
        self.scorer = scorer

    async def ingest(
        self,
        paper: CollectedPaper,
        *,
        source: PaperSource,
        level: EnrichmentLevel,
        settings: ReviewSettings,
        interests: Sequence[InterestEntry],
        keyword_id: Optional[int] = None,
    ) -> IntakeOutcome:
        """
        Store one new paper. ``saved`` is False when storage already held it.

        With scoring disabled the paper is stored unscored and pending.
        """
        enrichment = await self.enricher.enrich(paper, level)

        score: Optional[int] = None
        status = ReviewStatus.PENDING
        if settings.scoring_enabled:
            score = await self.scorer.score(
                ScoringInput(
                    title_original=paper.title,
                    title_translated=enrichment.title_translated,
                    authors=list(paper.authors),
                    abstract=paper.abstract,
                    summary=enrichment.summary,
                ),
                interests,
            )
            status = resolve_review_status(score, settings)

        record = paper.to_dict()
        record.update(enrichment.to_dict())
        stored = self.papers.insert_paper(
            paper=record,
            source=source,
            review_status=status,
            relevance_score=score,
            keyword_id=keyword_id,
        )
        if stored is None:
            return IntakeOutcome(saved=False, review_status=status, relevance_score=score)
        return IntakeOutcome(saved=True, review_status=status, relevance_score=score, paper_id=stored["id"])
