# src/papertriage/api/routes/review.py
"""
Review API Routes.

Provides endpoints for:
- The pending review queue and single human decisions
- Bulk approve / skip by score
- Favorites and memos on single papers
- Rescoring and scoring diagnostics
- Review settings, interest profile and scoring metrics
"""

from __future__ import annotations

from typing import List, Literal, Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query
from pydantic import BaseModel, Field

from papertriage.api import runtime
from papertriage.application.services.review_service import ReviewError, ReviewService
from papertriage.domain.interest import InterestType
from papertriage.domain.paper import ScoringInput
from papertriage.domain.review import ReviewAction
from papertriage.utils.logging_config import LogFiles, Logger

router = APIRouter()


def _get_review_service() -> ReviewService:
    return runtime.get_runner().review_service


# ============================================================================
# Review Queue
# ============================================================================


@router.get("/papers/review")
def list_review_queue(
    sort: Literal["score_desc", "collected_at"] = Query("score_desc"),
    limit: int = Query(20, ge=1, le=200),
):
    """Pending papers, highest score first by default."""
    return _get_review_service().list_pending(sort=sort, limit=limit)


class ReviewRequest(BaseModel):
    paper_id: int = Field(..., ge=1)
    action: ReviewAction


@router.post("/papers/review")
def review_paper(request: ReviewRequest, background_tasks: BackgroundTasks):
    """
    Approve or skip one paper.

    The decision is stored synchronously; interest learning runs after the
    response is sent and never affects it.
    """
    service = _get_review_service()
    try:
        outcome = service.review(request.paper_id, request.action)
    except ReviewError as exc:
        raise HTTPException(status_code=404, detail=str(exc))

    background_tasks.add_task(service.learn, outcome.paper, request.action)
    return outcome.to_dict()


class BulkReviewRequest(BaseModel):
    action: str = Field(..., description="approve_all_auto or skip_all_auto")
    min_score: Optional[int] = Field(None, ge=0, le=100)
    max_score: Optional[int] = Field(None, ge=0, le=100)


@router.post("/papers/review/bulk")
def bulk_review(request: BulkReviewRequest):
    try:
        return _get_review_service().bulk_review(
            request.action, min_score=request.min_score, max_score=request.max_score
        )
    except ReviewError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


class PaperUpdate(BaseModel):
    is_favorite: Optional[bool] = None
    memo: Optional[str] = None


@router.get("/papers/{paper_id}")
def get_paper(paper_id: int):
    paper = _get_review_service().papers.get_paper(paper_id)
    if paper is None:
        raise HTTPException(status_code=404, detail="Paper not found")
    return paper


@router.patch("/papers/{paper_id}")
def update_paper(paper_id: int, request: PaperUpdate):
    """Favorite or annotate a paper. Favorites become citation seeds."""
    changes = request.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(status_code=400, detail="Nothing to update")
    paper = _get_review_service().papers.update_paper(paper_id, **changes)
    if paper is None:
        raise HTTPException(status_code=404, detail="Paper not found")
    return paper


# ============================================================================
# Scoring
# ============================================================================


@router.post("/scoring/rescore")
async def rescore_pending():
    """Re-score up to 50 pending papers with the current interest profile."""
    try:
        result = await _get_review_service().rescore_pending()
    except ReviewError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    Logger.info(f"Rescored {result['rescored']} pending papers", file=LogFiles.SCORING)
    return {"success": True, **result}


class ScoringTestRequest(BaseModel):
    title: str = Field(..., min_length=1)
    abstract: Optional[str] = None
    authors: List[str] = Field(default_factory=list)


@router.post("/scoring/test")
async def test_scoring(request: ScoringTestRequest):
    """Score an ad-hoc paper and return the parsed model reply."""
    paper = ScoringInput(title_original=request.title, abstract=request.abstract, authors=request.authors)
    return await _get_review_service().diagnose_score(paper)


@router.get("/settings/review/metrics")
def scoring_metrics():
    return _get_review_service().metrics()


# ============================================================================
# Settings and Interests
# ============================================================================


class ReviewSettingsUpdate(BaseModel):
    auto_approve_threshold: Optional[int] = None
    auto_skip_threshold: Optional[int] = None
    scoring_enabled: Optional[bool] = None
    auto_collect_enabled: Optional[bool] = None


@router.get("/settings/review")
def get_review_settings():
    return _get_review_service().settings.get_review_settings().to_dict()


@router.put("/settings/review")
def update_review_settings(request: ReviewSettingsUpdate):
    changes = request.model_dump(exclude_none=True)
    try:
        updated = _get_review_service().settings.update_review_settings(changes)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return updated.to_dict()


class InterestRequest(BaseModel):
    label: str = Field(..., min_length=1)
    weight: float = Field(1.0)


@router.get("/interests")
def list_interests():
    entries = _get_review_service().interests.list_interests()
    return {"interests": [e.to_dict() for e in entries]}


@router.post("/interests")
def add_interest(request: InterestRequest):
    try:
        entry = _get_review_service().interests.add_interest(
            request.label, weight=request.weight, type=InterestType.MANUAL
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"interest": entry.to_dict()}


@router.delete("/interests/{interest_id}")
def delete_interest(interest_id: int):
    if not _get_review_service().interests.delete_interest(interest_id):
        raise HTTPException(status_code=404, detail="Interest not found")
    return {"success": True}
