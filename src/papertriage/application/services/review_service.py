"""
Human review workflow: single and bulk decisions, pending queue, rescoring
and scoring-accuracy metrics.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from papertriage.application.services.interest_learner import InterestLearner
from papertriage.application.services.relevance_scorer import RelevanceScorer, ScoreDetails
from papertriage.domain.paper import ScoringInput
from papertriage.domain.review import (
    DEFAULT_AUTO_APPROVE_THRESHOLD,
    DEFAULT_AUTO_SKIP_THRESHOLD,
    ReviewAction,
    ReviewStatus,
    expected_action,
    resolve_review_status,
)
from papertriage.infrastructure.stores.interest_store import InterestStore
from papertriage.infrastructure.stores.paper_store import PaperStore
from papertriage.infrastructure.stores.scoring_feedback_store import ScoringFeedbackStore
from papertriage.infrastructure.stores.settings_store import SettingsStore
from papertriage.utils.logging_config import LogFiles, Logger

logger = logging.getLogger(__name__)

RESCORE_BATCH = 50
PRECISION_AT = 10


class ReviewError(Exception):
    """A review request that cannot be carried out (bad input, missing paper, disabled scoring)."""


@dataclass
class ReviewOutcome:
    paper: Dict[str, Any]
    review_status: ReviewStatus
    learned_interests: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "review_status": self.review_status.value,
            "paper": self.paper,
            "learned_interests": list(self.learned_interests),
        }


def _round_or_none(value: Optional[float]) -> Optional[int]:
    return int(round(value)) if value is not None else None


class ReviewService:
    def __init__(
        self,
        *,
        papers: PaperStore,
        settings: SettingsStore,
        interests: InterestStore,
        feedback: ScoringFeedbackStore,
        learner: InterestLearner,
        scorer: RelevanceScorer,
    ):
        self.papers = papers
        self.settings = settings
        self.interests = interests
        self.feedback = feedback
        self.learner = learner
        self.scorer = scorer

    def review(self, paper_id: int, action: ReviewAction) -> ReviewOutcome:
        """Apply a human decision and record scoring feedback. Learning is separate (see ``learn``)."""
        paper = self.papers.set_review_status(paper_id, action.target_status)
        if paper is None:
            raise ReviewError(f"paper {paper_id} not found")

        score = paper.get("relevance_score")
        if score is not None:
            settings = self.settings.get_review_settings()
            is_correct = expected_action(int(score), settings) is action
            try:
                self.feedback.record(paper_id=paper_id, ai_score=int(score), action=action, is_correct=is_correct)
            except Exception as exc:
                Logger.error(f"Failed to record scoring feedback for paper {paper_id}: {exc}", file=LogFiles.ERROR)

        Logger.info(f"Paper {paper_id} reviewed: {action.value}", file=LogFiles.SCORING)
        return ReviewOutcome(paper=paper, review_status=action.target_status)

    async def learn(self, paper: Dict[str, Any], action: ReviewAction) -> List[str]:
        """Feed a decision into the interest profile. Never raises."""
        scoring_input = ScoringInput.from_row(paper)
        try:
            if action is ReviewAction.APPROVE:
                return await self.learner.learn_from_approval(scoring_input)
            await self.learner.learn_from_skip(scoring_input)
        except Exception as exc:
            logger.warning("Interest learning failed for paper %s: %s", paper.get("id"), exc)
            Logger.error(f"Interest learning failed for paper {paper.get('id')}: {exc}", file=LogFiles.ERROR)
        return []

    async def review_and_learn(self, paper_id: int, action: ReviewAction) -> ReviewOutcome:
        outcome = self.review(paper_id, action)
        outcome.learned_interests = await self.learn(outcome.paper, action)
        return outcome

    def bulk_review(
        self,
        action: str,
        *,
        min_score: Optional[int] = None,
        max_score: Optional[int] = None,
    ) -> Dict[str, Any]:
        if action == "approve_all_auto":
            threshold = DEFAULT_AUTO_APPROVE_THRESHOLD if min_score is None else int(min_score)
            affected = self.papers.bulk_update_pending(target=ReviewStatus.APPROVED, min_score=threshold)
        elif action == "skip_all_auto":
            threshold = DEFAULT_AUTO_SKIP_THRESHOLD if max_score is None else int(max_score)
            affected = self.papers.bulk_update_pending(target=ReviewStatus.SKIPPED, max_score=threshold)
        else:
            raise ReviewError("action must be 'approve_all_auto' or 'skip_all_auto'")

        Logger.info(f"Bulk review {action}: {affected} papers", file=LogFiles.SCORING)
        return {"success": True, "action": action, "affected_count": affected}

    def list_pending(self, *, sort: str = "score_desc", limit: int = 20) -> Dict[str, Any]:
        return {
            "papers": self.papers.list_pending(sort=sort, limit=limit),
            "total_pending": self.papers.count_by_status(ReviewStatus.PENDING),
        }

    async def rescore_pending(self) -> Dict[str, Any]:
        settings = self.settings.get_review_settings()
        if not settings.scoring_enabled:
            raise ReviewError("scoring is disabled")
        interests = self.interests.list_interests()
        if not interests:
            raise ReviewError("interest profile is empty; add interests first")

        pending = self.papers.list_pending(sort="collected_at", limit=RESCORE_BATCH)
        rescored = 0
        errors = 0
        results: List[Dict[str, Any]] = []
        for paper in pending:
            try:
                new_score = await self.scorer.score(ScoringInput.from_row(paper), interests)
                new_status = resolve_review_status(new_score, settings)
                self.papers.set_score(paper["id"], score=new_score, status=new_status)
            except Exception as exc:
                errors += 1
                Logger.error(f"Rescore failed for paper {paper['id']}: {exc}", file=LogFiles.ERROR)
                continue
            rescored += 1
            results.append(
                {
                    "title": (paper.get("title_original") or "")[:50],
                    "old_score": paper.get("relevance_score"),
                    "new_score": new_score,
                    "review_status": new_status.value,
                }
            )

        return {
            "rescored": rescored,
            "errors": errors,
            "total_pending": len(pending),
            "results": results,
        }

    async def diagnose_score(self, paper: ScoringInput) -> Dict[str, Any]:
        """Score one paper against the current profile and expose the parsed reply."""
        interests = self.interests.list_interests()
        details: ScoreDetails = await self.scorer.score_detailed(paper, interests)
        settings = self.settings.get_review_settings()
        payload = details.to_dict()
        payload["review_status"] = resolve_review_status(details.score, settings).value
        payload["interest_count"] = len(interests)
        return payload

    def metrics(self) -> Dict[str, Any]:
        rows = self.feedback.list_all()
        if not rows:
            return {
                "total_reviews": 0,
                "score_gap": None,
                "accuracy": None,
                "precision_at_10": None,
                "avg_approved_score": None,
                "avg_skipped_score": None,
            }

        approved = [r.ai_score for r in rows if r.user_action == ReviewAction.APPROVE.value]
        skipped = [r.ai_score for r in rows if r.user_action == ReviewAction.SKIP.value]
        avg_approved = sum(approved) / len(approved) if approved else None
        avg_skipped = sum(skipped) / len(skipped) if skipped else None
        score_gap = (
            _round_or_none(avg_approved - avg_skipped)
            if avg_approved is not None and avg_skipped is not None
            else None
        )

        correct = sum(1 for r in rows if r.is_correct)
        top = sorted(rows, key=lambda r: r.ai_score, reverse=True)[:PRECISION_AT]
        top_approved = sum(1 for r in top if r.user_action == ReviewAction.APPROVE.value)

        return {
            "total_reviews": len(rows),
            "score_gap": score_gap,
            "accuracy": int(round(correct / len(rows) * 100)),
            "precision_at_10": int(round(top_approved / len(top) * 100)) if top else None,
            "avg_approved_score": _round_or_none(avg_approved),
            "avg_skipped_score": _round_or_none(avg_skipped),
        }
