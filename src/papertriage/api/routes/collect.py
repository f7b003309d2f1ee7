# src/papertriage/api/routes/collect.py
"""
Collection API Routes.

Provides endpoints for:
- Manual keyword search collection
- Manual RSS collection
- Manual citation exploration
- The scheduled combined run (cron, optional bearer secret)
"""

from __future__ import annotations

import hmac
from typing import Optional

from fastapi import APIRouter, Header, HTTPException
from pydantic import BaseModel, Field

from papertriage.api import runtime
from papertriage.utils.logging_config import LogFiles, Logger

router = APIRouter()


def _get_runner():
    return runtime.get_runner()


def _check_cron_secret(authorization: Optional[str], secret: Optional[str]) -> None:
    if not secret:
        return
    expected = f"Bearer {secret}"
    if not authorization or not hmac.compare_digest(authorization, expected):
        raise HTTPException(status_code=401, detail="Unauthorized")


def _manual_response(payload: dict) -> dict:
    return {
        "trace_id": payload.get("trace_id"),
        "results": payload["results"],
        "summary": payload["summary"],
    }


@router.post("/collect")
async def collect_keywords():
    """Run keyword search collection over every active keyword."""
    runner = _get_runner()
    Logger.info("Manual keyword collection requested", file=LogFiles.COLLECT)
    payload = await runner.run_keywords()
    return _manual_response(payload)


@router.post("/collect/rss")
async def collect_rss():
    """Run RSS collection over every active feed."""
    runner = _get_runner()
    Logger.info("Manual RSS collection requested", file=LogFiles.COLLECT)
    payload = await runner.run_rss()
    return _manual_response(payload)


class CitationCollectRequest(BaseModel):
    max_seeds: Optional[int] = Field(None, ge=1, le=100, description="Seed cap for this run")


@router.post("/collect/citations")
async def collect_citations(request: Optional[CitationCollectRequest] = None):
    """Explore the citation graph around approved or favorite papers."""
    runner = _get_runner()
    max_seeds = request.max_seeds if request else None
    Logger.info(f"Manual citation exploration requested (max_seeds={max_seeds})", file=LogFiles.CITATION)
    payload = await runner.run_citations(max_seeds=max_seeds)
    return _manual_response(payload)


@router.post("/cron/collect")
async def cron_collect(authorization: Optional[str] = Header(None)):
    """
    Scheduled combined run: keyword search, RSS, then citations if time allows.

    When a cron secret is configured the caller must send
    ``Authorization: Bearer <secret>``.
    """
    runner = _get_runner()
    _check_cron_secret(authorization, runner.config.cron_secret)

    payload = await runner.run_all(scheduled=True)
    if payload.get("skipped"):
        return {"ok": True, "skipped": True, "message": payload.get("message")}
    return {"ok": True, **payload}
