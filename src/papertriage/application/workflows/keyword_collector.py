# src/papertriage/application/workflows/keyword_collector.py
"""
Keyword collection workflow.

For each active keyword: search its configured providers one after another,
deduplicate, apply the journal allow-list, drop stored papers, then enrich,
score and store the rest. One audit log entry per keyword.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from papertriage.application.ports.harvester_port import HarvesterPort
from papertriage.application.services.paper_deduplicator import PaperDeduplicator
from papertriage.application.services.paper_enricher import EnrichmentLevel
from papertriage.application.services.paper_intake import PaperIntake
from papertriage.domain.collection import KeywordCollectResult, KeywordConfig, LogOrigin, RunStatus
from papertriage.domain.harvest import CollectedPaper, HarvestSource
from papertriage.domain.interest import InterestEntry
from papertriage.domain.paper import PaperSource
from papertriage.domain.review import ReviewBreakdown, ReviewSettings
from papertriage.infrastructure.stores.collection_log_store import CollectionLogStore
from papertriage.infrastructure.stores.interest_store import InterestStore
from papertriage.infrastructure.stores.settings_store import SettingsStore
from papertriage.infrastructure.stores.source_config_store import SourceConfigStore
from papertriage.utils.logging_config import LogFiles, Logger

logger = logging.getLogger(__name__)


def format_breakdown(breakdown: ReviewBreakdown) -> str:
    return (
        f"(auto-approved: {breakdown.auto_approved}, pending: {breakdown.pending}, "
        f"auto-skipped: {breakdown.auto_skipped})"
    )


def load_profile(interests: InterestStore, review_settings: ReviewSettings) -> List[InterestEntry]:
    """Interest profile for a run; empty when scoring is off or the read fails."""
    if not review_settings.scoring_enabled:
        return []
    try:
        return interests.list_interests()
    except Exception as exc:
        Logger.error(f"Failed to load interest profile, scoring without it: {exc}", file=LogFiles.ERROR)
        return []


class KeywordCollector:
    def __init__(
        self,
        *,
        harvesters: Dict[HarvestSource, HarvesterPort],
        configs: SourceConfigStore,
        settings: SettingsStore,
        interests: InterestStore,
        logs: CollectionLogStore,
        intake: PaperIntake,
        deduplicator: PaperDeduplicator,
        max_results: int = 5,
    ):
        self.harvesters = harvesters
        self.configs = configs
        self.settings = settings
        self.interests = interests
        self.logs = logs
        self.intake = intake
        self.deduplicator = deduplicator
        self.max_results = max_results

    async def collect_all(self) -> List[KeywordCollectResult]:
        try:
            keywords = self.configs.list_active_keywords()
        except Exception as exc:
            Logger.error(f"Failed to load active keywords: {exc}", file=LogFiles.ERROR)
            return []
        if not keywords:
            return []

        review_settings = self.settings.get_review_settings()
        profile = load_profile(self.interests, review_settings)

        results: List[KeywordCollectResult] = []
        for keyword in keywords:
            results.append(await self.collect_for_keyword(keyword, review_settings, profile))
        return results

    async def _search(self, keyword: KeywordConfig) -> List[CollectedPaper]:
        """Query each configured provider; a failing provider contributes nothing."""
        collected: List[CollectedPaper] = []
        for name in keyword.sources:
            source = HarvestSource.parse(name)
            harvester = self.harvesters.get(source) if source else None
            if harvester is None:
                logger.debug("Keyword %r: no harvester for source %r", keyword.keyword, name)
                continue
            try:
                result = await harvester.search(keyword.keyword, max_results=self.max_results)
            except Exception as exc:
                Logger.error(
                    f"{name} search raised for '{keyword.keyword}': {exc}", file=LogFiles.ERROR
                )
                continue
            if not result.success:
                label = "rate limited" if result.rate_limited else "failed"
                Logger.warning(
                    f"{name} search {label} for '{keyword.keyword}': {result.error}", file=LogFiles.COLLECT
                )
                continue
            collected.extend(result.papers)
        return collected

    async def collect_for_keyword(
        self,
        keyword: KeywordConfig,
        review_settings: ReviewSettings,
        profile: Sequence[InterestEntry],
    ) -> KeywordCollectResult:
        try:
            collected = await self._search(keyword)
            unique = self.deduplicator.deduplicate(collected)
            matching = self.deduplicator.filter_by_journals(unique, keyword.journals)
            new_papers = self.deduplicator.filter_existing(matching)

            saved = 0
            breakdown = ReviewBreakdown()
            for paper in new_papers:
                try:
                    outcome = await self.intake.ingest(
                        paper,
                        source=PaperSource.KEYWORD_SEARCH,
                        level=EnrichmentLevel.FULL,
                        settings=review_settings,
                        interests=profile,
                        keyword_id=keyword.id,
                    )
                except Exception as exc:
                    Logger.error(f"Failed to process paper '{paper.title[:80]}': {exc}", file=LogFiles.ERROR)
                    continue
                if outcome.saved:
                    saved += 1
                    breakdown.add(outcome.review_status)

            has_breakdown = review_settings.scoring_enabled and saved > 0
            message = f"{saved} of {len(unique)} papers newly registered"
            if len(matching) != len(unique):
                message += f", {len(unique) - len(matching)} outside journal filter"
            if has_breakdown:
                message += f" {format_breakdown(breakdown)}"

            self.logs.append(
                origin=LogOrigin.KEYWORD,
                origin_id=keyword.id,
                status=RunStatus.SUCCESS,
                papers_found=saved,
                message=message,
            )
            Logger.info(f"Keyword '{keyword.keyword}': {message}", file=LogFiles.COLLECT)
            return KeywordCollectResult(
                keyword_id=keyword.id,
                keyword=keyword.keyword,
                status=RunStatus.SUCCESS,
                papers_found=saved,
                message=message,
                review_breakdown=breakdown if has_breakdown else None,
            )
        except Exception as exc:
            message = str(exc) or "keyword collection failed"
            Logger.error(f"Keyword '{keyword.keyword}' failed: {message}", file=LogFiles.ERROR)
            self._log_error(keyword.id, message)
            return KeywordCollectResult(
                keyword_id=keyword.id,
                keyword=keyword.keyword,
                status=RunStatus.ERROR,
                papers_found=0,
                message=message,
            )

    def _log_error(self, keyword_id: int, message: str) -> None:
        try:
            self.logs.append(
                origin=LogOrigin.KEYWORD,
                origin_id=keyword_id,
                status=RunStatus.ERROR,
                papers_found=0,
                message=message,
            )
        except Exception as exc:
            logger.error("Could not write collection log for keyword %s: %s", keyword_id, exc)
